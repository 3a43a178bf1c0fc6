"""
Root Typer application for the podman-deploy CLI.

Usage::

    podman-deploy setup                 # create mounts, pods, containers; leave them stopped
    podman-deploy list                  # configured vs. running images and status
    podman-deploy upgrade [CONTAINER]   # recreate containers whose image changed
    podman-deploy start [POD]           # start one pod or all pods
    podman-deploy stop [POD]            # stop one pod, or all containers then all pods
    podman-deploy prune                 # remove unused images
    podman-deploy plan                  # print the commands setup would run

Global options (``--config``, ``--runtime``, ``--log-level``) go before the
command. Exit code is 0 only when every entity succeeded.
"""

from __future__ import annotations

import typer
from rich.markup import escape
from typer import Typer

from podman_deploy.cli.utils import (
    build_orchestrator,
    console,
    print_error,
    run_operation,
)
from podman_deploy.core.errors import PodDeployError
from podman_deploy.core.logging import configure_logging
from podman_deploy.deploy.config import RuntimeSettings
from podman_deploy.deploy.operations import Operation

app = Typer(
    name="podman-deploy",
    help="podman-deploy — declarative pods and containers on a single host.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        from podman_deploy import __version__

        try:
            v = pkg_version("podman-deploy")
        except PackageNotFoundError:
            v = __version__
        typer.echo(f"podman-deploy {v}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(
        None, "--config", "-c", help="Config file path (skips the search locations).",
    ),
    runtime: str | None = typer.Option(
        None, "--runtime", help="Container runtime executable [default: podman].",
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", "-l", help="Log level: DEBUG, INFO, WARNING, ERROR.",
    ),
    json_logs: bool | None = typer.Option(
        None, "--json-logs/--console-logs", help="Force JSON or console log output.",
    ),
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """podman-deploy CLI — manage pods and containers from a YAML description.

    Config search order: ~/.config/podman_deploy/config.yaml,
    /etc/podman_deploy/config.yaml, ./config.yaml.
    """
    settings = RuntimeSettings.from_env(
        config_path=config,
        runtime=runtime,
        log_level=log_level,
        json_logs=json_logs,
    )
    configure_logging(level=settings.log_level, json_format=settings.json_logs)
    ctx.obj = settings


# ── Lifecycle commands ───────────────────────────────────────────────────


@app.command()
def setup(
    ctx: typer.Context,
    install: bool = typer.Option(
        False, "--install", help="Install the runtime with the OS package manager if missing.",
    ),
    json_out: bool = typer.Option(False, "--json", help="Output the report as JSON."),
) -> None:
    """Prepare mounts, log into the registry, create pods and containers, then stop them."""
    settings: RuntimeSettings = ctx.obj
    if install:
        settings = settings.model_copy(update={"auto_install": True})
    run_operation(settings, Operation.setup(), as_json=json_out)


@app.command("list")
def list_(
    ctx: typer.Context,
    json_out: bool = typer.Option(False, "--json", help="Output the report as JSON."),
) -> None:
    """Show configured vs. running image and status for every container."""
    run_operation(ctx.obj, Operation.list_pods(), as_json=json_out)


@app.command()
def upgrade(
    ctx: typer.Context,
    container: str | None = typer.Argument(None, help="Only check/upgrade this container."),
    json_out: bool = typer.Option(False, "--json", help="Output the report as JSON."),
) -> None:
    """Recreate containers whose running image differs from the configured one."""
    run_operation(ctx.obj, Operation.upgrade(container), as_json=json_out)


@app.command()
def start(
    ctx: typer.Context,
    pod: str | None = typer.Argument(None, help="Only start this pod."),
    json_out: bool = typer.Option(False, "--json", help="Output the report as JSON."),
) -> None:
    """Start one pod, or every configured pod."""
    run_operation(ctx.obj, Operation.start(pod), as_json=json_out)


@app.command()
def stop(
    ctx: typer.Context,
    pod: str | None = typer.Argument(None, help="Only stop this pod."),
    json_out: bool = typer.Option(False, "--json", help="Output the report as JSON."),
) -> None:
    """Stop one pod, or every container and then every pod."""
    run_operation(ctx.obj, Operation.stop(pod), as_json=json_out)


@app.command()
def prune(
    ctx: typer.Context,
    json_out: bool = typer.Option(False, "--json", help="Output the report as JSON."),
) -> None:
    """Remove images not used by any container."""
    run_operation(ctx.obj, Operation.prune(), as_json=json_out)


@app.command()
def plan(ctx: typer.Context) -> None:
    """Print the pod and container commands setup would run. Nothing is executed."""
    try:
        orchestrator = build_orchestrator(ctx.obj)
    except PodDeployError as exc:
        print_error(exc)
        raise typer.Exit(code=1) from exc

    for pod_name, lines in orchestrator.planned_commands():
        console.print(f"\n[bold]--- Pod: {escape(pod_name)} ---[/bold]")
        for line in lines:
            console.print(escape(line), soft_wrap=True)
