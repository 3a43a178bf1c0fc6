"""Runtime command construction.

:class:`CommandBuilder` turns pod and container specs into the exact
argument lists handed to the runtime (the executable itself is prepended
by the executor). Construction is pure: nothing here touches the
filesystem or spawns a process, so the same lists can be executed by the
orchestrator or printed by ``podman-deploy plan``.

Argument grammar (podman)::

    pod create --name NAME [-p HOST:CTR]...
    run --detach --pod POD --name NAME [-e K=V]... [-v DATA/HOST:CTR]... IMAGE
    pull IMAGE
    image exists IMAGE
    container inspect --format {{.ImageName}} NAME
    login REGISTRY --username USER --password-stdin
    pod start|stop NAME
    image prune --all --force
"""

from __future__ import annotations

from podman_deploy.deploy.config import ContainerSpec, PodSpec

#: Selects the image reference a container was created from.
IMAGE_NAME_TEMPLATE = "{{.ImageName}}"


class CommandBuilder:
    """Builds runtime argument lists from the declarative model.

    Parameters
    ----------
    data_path
        Base directory every mount host path is resolved under.
    """

    def __init__(self, data_path: str) -> None:
        self.data_path = data_path

    # ------------------------------------------------------------------
    # Pods
    # ------------------------------------------------------------------

    def create_pod(self, pod: PodSpec) -> list[str]:
        args = ["pod", "create", "--name", pod.name]
        for port in pod.all_ports:
            args.extend(["-p", str(port)])
        return args

    def pod_exists(self, name: str) -> list[str]:
        return ["pod", "exists", name]

    def start_pod(self, name: str) -> list[str]:
        return ["pod", "start", name]

    def stop_pod(self, name: str) -> list[str]:
        return ["pod", "stop", name]

    def list_pods(self) -> list[str]:
        return ["pod", "ps", "--format", "json"]

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def create_container(self, pod: PodSpec, container: ContainerSpec) -> list[str]:
        """``run --detach`` inside ``pod`` with env vars and resolved mounts."""
        args = ["run", "--detach", "--pod", pod.name, "--name", container.name]
        for key in sorted(container.env_vars):
            args.extend(["-e", f"{key}={container.env_vars[key]}"])
        for mount in container.mounts:
            args.extend(["-v", mount.volume_arg(self.data_path)])
        args.append(container.image)
        return args

    def container_exists(self, name: str) -> list[str]:
        return ["container", "exists", name]

    def inspect_container_image(self, name: str) -> list[str]:
        return ["container", "inspect", "--format", IMAGE_NAME_TEMPLATE, name]

    def list_containers(self) -> list[str]:
        return ["ps", "--all", "--format", "json"]

    def stop_container(self, name: str) -> list[str]:
        return ["stop", name]

    def remove_container(self, name: str) -> list[str]:
        return ["rm", name]

    # ------------------------------------------------------------------
    # Images and registry
    # ------------------------------------------------------------------

    def pull_image(self, image: str) -> list[str]:
        return ["pull", image]

    def image_exists(self, image: str) -> list[str]:
        return ["image", "exists", image]

    def prune_images(self) -> list[str]:
        return ["image", "prune", "--all", "--force"]

    def registry_login(self, registry: str, username: str) -> list[str]:
        """Login arguments; the password is written to the process's stdin."""
        return ["login", registry, "--username", username, "--password-stdin"]

    def registry_login_status(self, registry: str) -> list[str]:
        return ["login", "--get-login", registry]
