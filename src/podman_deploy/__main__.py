from podman_deploy.cli.app import app

app(prog_name="podman-deploy")
