"""
CLI utility helpers — orchestrator construction and output formatting.
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from podman_deploy.core.errors import PodDeployError
from podman_deploy.deploy.config import RuntimeSettings
from podman_deploy.deploy.executor import ProcessExecutor
from podman_deploy.deploy.loader import find_config_file, load_config
from podman_deploy.deploy.operations import Operation, dispatch
from podman_deploy.deploy.orchestrator import LifecycleOrchestrator
from podman_deploy.deploy.results import OperationReport, OutcomeStatus
from podman_deploy.deploy.runtime import RuntimeInstaller

console = Console()
err_console = Console(stderr=True)

_STATUS_STYLES = {
    OutcomeStatus.SUCCEEDED: "green",
    OutcomeStatus.FAILED: "red",
    OutcomeStatus.SKIPPED: "dim",
}

_STATE_STYLES = {
    "running": "green",
    "created": "yellow",
    "exited": "yellow",
    "stopped": "yellow",
    "absent": "dim",
}


# ── Orchestrator helpers ─────────────────────────────────────────────────


def build_orchestrator(settings: RuntimeSettings) -> LifecycleOrchestrator:
    """Locate and load the config, then wire executor and installer."""
    config = load_config(find_config_file(settings.config_path))
    executor = ProcessExecutor(settings.runtime)
    installer = RuntimeInstaller(executor, auto_install=settings.auto_install)
    return LifecycleOrchestrator(config, executor, installer=installer)


def run_operation(settings: RuntimeSettings, operation: Operation, *, as_json: bool = False) -> None:
    """Dispatch ``operation``, render its report, exit non-zero on any failure."""
    try:
        orchestrator = build_orchestrator(settings)
        report = dispatch(orchestrator, operation)
    except PodDeployError as exc:
        print_error(exc)
        raise typer.Exit(code=1) from exc

    output_report(report, as_json=as_json)
    if not report.ok:
        raise typer.Exit(code=1)


# ── Output helpers ───────────────────────────────────────────────────────


def print_error(error: PodDeployError) -> None:
    """Render a fatal error naming the entity and the underlying cause."""
    err_console.print(
        f"[bold red]Error[/bold red] ({error.category.value}): {escape(error.describe())}"
    )


def output_report(report: OperationReport, *, as_json: bool = False) -> None:
    """Render an ``OperationReport`` to the terminal."""
    if as_json:
        typer.echo(report.model_dump_json(indent=2))
        return

    if report.containers:
        _print_containers(report)
    if report.outcomes:
        _print_outcomes(report)
    if report.removed_images:
        for image in report.removed_images:
            console.print(f"  [dim]removed[/dim] {escape(image)}")

    style = "green" if report.ok else "red"
    console.print(f"\n[bold]{report.operation}[/bold]: [{style}]{report.summary}[/{style}]")


# ── Private helpers ──────────────────────────────────────────────────────


def _print_outcomes(report: OperationReport) -> None:
    table = Table(title=f"{report.operation} results", show_lines=False, pad_edge=False)
    table.add_column("Kind")
    table.add_column("Name", style="bold")
    table.add_column("Pod")
    table.add_column("Action")
    table.add_column("Status")
    table.add_column("Message", overflow="fold")

    for outcome in report.outcomes:
        style = _STATUS_STYLES.get(outcome.status, "white")
        table.add_row(
            outcome.kind,
            outcome.name,
            outcome.pod or "—",
            outcome.action,
            f"[{style}]{outcome.status.value}[/{style}]",
            escape(outcome.message or ""),
        )
    console.print(table)


def _print_containers(report: OperationReport) -> None:
    table = Table(title="Pods and containers", show_lines=False, pad_edge=False)
    table.add_column("Pod", style="bold")
    table.add_column("Pod status")
    table.add_column("Container", style="bold")
    table.add_column("Status")
    table.add_column("Configured image")
    table.add_column("Running image")
    table.add_column("Up to date")

    for row in report.containers:
        pod_style = _STATE_STYLES.get(row.pod_status.split()[0] if row.pod_status else "", "white")
        state_style = _STATE_STYLES.get(row.status, "white")
        if row.up_to_date is None:
            current = "—"
        else:
            current = "[green]yes[/green]" if row.up_to_date else "[red]no[/red]"
        table.add_row(
            row.pod,
            f"[{pod_style}]{row.pod_status}[/{pod_style}]",
            row.container,
            f"[{state_style}]{row.status}[/{state_style}]",
            row.configured_image,
            row.observed_image or "—",
            current,
        )
    console.print(table)
