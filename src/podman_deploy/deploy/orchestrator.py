"""Lifecycle orchestration of configured pods and containers.

:class:`LifecycleOrchestrator` sequences the multi-step workflows behind
every CLI operation: ``setup``, ``upgrade``, ``start``, ``stop``, ``list``
and ``prune``. Entities are processed one at a time, in configuration
order; each runtime call blocks until the process exits.

Failure semantics:
    - ``ConfigurationError`` / ``TargetNotFoundError`` abort the operation
      before any process is spawned.
    - Inside a loop over pods or containers, runtime failures are recorded
      in the :class:`OperationReport` and the loop moves on. Work already
      done for earlier entities is never unwound.
    - Operations on a single named target let runtime failures propagate.
    - During ``setup`` a ``ProcessSpawnError`` is fatal; elsewhere it is
      recorded like any other runtime failure.

Per-entity state machine::

    absent ──create──▶ running ──stop──▶ created-stopped
       ▲                  ▲                   │
       └──── rm ──────────┴────── start ──────┘

Example::

    orchestrator = LifecycleOrchestrator(config, ProcessExecutor("podman"))
    report = orchestrator.upgrade()
    print(report.summary)
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from podman_deploy.core.errors import (
    ConfigurationError,
    ProcessSpawnError,
    RuntimeCommandError,
    TargetNotFoundError,
)
from podman_deploy.core.logging import LogContext, get_logger
from podman_deploy.deploy.commands import CommandBuilder
from podman_deploy.deploy.config import ContainerSpec, DeployConfig, PodSpec
from podman_deploy.deploy.executor import CommandResult, ProcessExecutor
from podman_deploy.deploy.images import images_match
from podman_deploy.deploy.mounts import prepare_mount_paths
from podman_deploy.deploy.results import ContainerState, OperationReport
from podman_deploy.deploy.runtime import RuntimeInstaller
from podman_deploy.deploy.upgrade import UpgradeDecisionEngine

logger = get_logger(__name__)

# Per-entity failures that loops record instead of aborting on.
_LOOP_ERRORS = (RuntimeCommandError, ProcessSpawnError)


class LifecycleOrchestrator:
    """Drives pod/container lifecycle for one loaded configuration.

    Parameters
    ----------
    config
        Loaded configuration; never mutated.
    executor
        Runtime executor (``podman`` on PATH by default).
    installer
        Runtime availability check used by ``setup``.
    """

    def __init__(
        self,
        config: DeployConfig,
        executor: ProcessExecutor | None = None,
        *,
        installer: RuntimeInstaller | None = None,
    ) -> None:
        self.config = config
        self.executor = executor or ProcessExecutor()
        self.builder = CommandBuilder(config.data_path)
        self.engine = UpgradeDecisionEngine(self.executor, self.builder)
        self.installer = installer or RuntimeInstaller(self.executor)

    # ------------------------------------------------------------------
    # setup
    # ------------------------------------------------------------------

    def setup(self) -> OperationReport:
        """Install check, mounts, registry login, pods, containers, then stop all.

        Leaves every pod and container in the created-but-stopped state.
        """
        report = OperationReport(operation="setup")
        logger.info("setup.started", application=self.config.application_name)

        self.installer.ensure_available()
        prepare_mount_paths(self.config)
        self._configure_registry(report)

        pods: list[PodSpec] = []
        containers: list[tuple[PodSpec, ContainerSpec]] = []
        for pod in self.config.pods:
            with LogContext(pod=pod.name):
                present = self._setup_pod(pod, report)
            if present is not None:
                pods.append(pod)
                containers.extend((pod, container) for container in present)

        # Only what exists on the host gets stopped.
        self._stop_all(
            report,
            tolerated=(RuntimeCommandError,),
            containers=containers,
            pods=pods,
        )

        report.mark_complete()
        logger.info("setup.completed", summary=report.summary)
        return report

    def _setup_pod(self, pod: PodSpec, report: OperationReport) -> list[ContainerSpec] | None:
        """Create the pod and its containers.

        Returns the containers now present in the pod, or ``None`` when the
        pod itself could not be created.
        """
        try:
            if self._succeeds(self.builder.pod_exists(pod.name)):
                logger.info("pod.exists", pod=pod.name)
                report.record_skip("pod", pod.name, "create", message="already exists")
            else:
                self._run_checked(self.builder.create_pod(pod), pod=pod.name)
                logger.info("pod.created", pod=pod.name)
                report.record_success("pod", pod.name, "create")
        except RuntimeCommandError as exc:
            logger.error("pod.create_failed", pod=pod.name, error=exc.message)
            report.record_failure("pod", pod.name, "create", exc)
            return None

        present: list[ContainerSpec] = []
        for container in pod.containers:
            with LogContext(container=container.name):
                try:
                    if self._succeeds(self.builder.container_exists(container.name)):
                        logger.info("container.exists", container=container.name)
                        report.record_skip(
                            "container", container.name, "create",
                            pod=pod.name, message="already exists",
                        )
                        present.append(container)
                        continue
                    self._ensure_image(container)
                    self._create_container(pod, container)
                    report.record_success("container", container.name, "create", pod=pod.name)
                    present.append(container)
                except RuntimeCommandError as exc:
                    logger.error("container.create_failed", container=container.name, error=exc.message)
                    report.record_failure("container", container.name, "create", exc, pod=pod.name)
        return present

    def _configure_registry(self, report: OperationReport) -> None:
        registry = self.config.private_registry
        if not registry:
            logger.debug("registry.not_configured")
            return

        credentials = self.config.registry_credentials
        if credentials is None:
            logger.info(
                "registry.no_credentials",
                registry=registry,
                hint=f"use '{self.executor.binary} login {registry}' to authenticate",
            )
            report.record_skip("registry", registry, "login", message="no credentials configured")
            return

        try:
            if self._succeeds(self.builder.registry_login_status(registry)):
                logger.info("registry.already_logged_in", registry=registry)
                report.record_skip("registry", registry, "login", message="already logged in")
                return
            self._run_checked(
                self.builder.registry_login(registry, credentials.username),
                input=credentials.password.get_secret_value(),
            )
            logger.info("registry.logged_in", registry=registry, username=credentials.username)
            report.record_success("registry", registry, "login")
        except RuntimeCommandError as exc:
            logger.warning("registry.login_failed", registry=registry, error=exc.message)
            report.record_failure("registry", registry, "login", exc)

    # ------------------------------------------------------------------
    # upgrade
    # ------------------------------------------------------------------

    def upgrade(self, target: str | None = None) -> OperationReport:
        """Recreate containers whose running image differs from configuration.

        With ``target``, only that container is considered and failures
        propagate. Without it, every configured container is checked and
        per-container failures are collected in the report.
        """
        report = OperationReport(operation="upgrade", target=target)

        if target is not None:
            pod, container = self._require_container(target)
            self._upgrade_container(pod, container, report)
        else:
            for pod, container in self.config.iter_containers():
                try:
                    self._upgrade_container(pod, container, report)
                except _LOOP_ERRORS as exc:
                    logger.error(
                        "container.upgrade_failed",
                        pod=pod.name,
                        container=container.name,
                        error=exc.message,
                    )
                    report.record_failure("container", container.name, "upgrade", exc, pod=pod.name)

        report.mark_complete()
        if not report.succeeded and report.ok:
            logger.info("upgrade.nothing_to_do")
        logger.info("upgrade.completed", summary=report.summary)
        return report

    def _upgrade_container(
        self, pod: PodSpec, container: ContainerSpec, report: OperationReport
    ) -> None:
        with LogContext(pod=pod.name, container=container.name):
            try:
                decision = self.engine.decide(container.name, container.image)
            except RuntimeCommandError as exc:
                exc.with_context(pod=pod.name, container=container.name)
                raise

            if not decision.needs_upgrade:
                report.record_skip(
                    "container", container.name, "upgrade",
                    pod=pod.name, message=f"up to date ({decision.observed_image})",
                )
                return

            context = {"pod": pod.name, "container": container.name, "image": container.image}
            self._run_checked(self.builder.pull_image(container.image), **context)
            self._run_checked(self.builder.stop_container(container.name), **context)
            self._run_checked(self.builder.remove_container(container.name), **context)
            self._create_container(pod, container)

            logger.info(
                "container.upgraded",
                previous=decision.observed_image,
                image=container.image,
            )
            report.record_success(
                "container", container.name, "upgrade",
                pod=pod.name, message=f"{decision.observed_image} -> {container.image}",
            )

    # ------------------------------------------------------------------
    # start / stop
    # ------------------------------------------------------------------

    def start(self, pod: str | None = None) -> OperationReport:
        """Start one named pod (failures propagate) or every pod (collected)."""
        report = OperationReport(operation="start", target=pod)

        if pod is not None:
            spec = self._require_pod(pod)
            self._run_checked(self.builder.start_pod(spec.name), pod=spec.name)
            logger.info("pod.started", pod=spec.name)
            report.record_success("pod", spec.name, "start")
        else:
            for spec in self.config.pods:
                self._attempt(report, "pod", spec.name, "start", self.builder.start_pod(spec.name))

        report.mark_complete()
        logger.info("start.completed", summary=report.summary)
        return report

    def stop(self, pod: str | None = None) -> OperationReport:
        """Stop one named pod (failures propagate) or every container then every pod."""
        report = OperationReport(operation="stop", target=pod)

        if pod is not None:
            spec = self._require_pod(pod)
            self._run_checked(self.builder.stop_pod(spec.name), pod=spec.name)
            logger.info("pod.stopped", pod=spec.name)
            report.record_success("pod", spec.name, "stop")
        else:
            self._stop_all(report, tolerated=_LOOP_ERRORS)

        report.mark_complete()
        logger.info("stop.completed", summary=report.summary)
        return report

    def _stop_all(
        self,
        report: OperationReport,
        *,
        tolerated: tuple[type[Exception], ...],
        containers: Sequence[tuple[PodSpec, ContainerSpec]] | None = None,
        pods: Sequence[PodSpec] | None = None,
    ) -> None:
        if containers is None:
            containers = list(self.config.iter_containers())
        if pods is None:
            pods = self.config.pods
        for pod, container in containers:
            self._attempt(
                report, "container", container.name, "stop",
                self.builder.stop_container(container.name),
                pod=pod.name, tolerated=tolerated,
            )
        for pod in pods:
            self._attempt(
                report, "pod", pod.name, "stop",
                self.builder.stop_pod(pod.name),
                tolerated=tolerated,
            )

    # ------------------------------------------------------------------
    # list / prune
    # ------------------------------------------------------------------

    def list_pods(self) -> OperationReport:
        """Configured vs. observed image and status for every container. Read-only."""
        report = OperationReport(operation="list")

        pod_status = {
            record.get("Name", ""): str(record.get("Status", "unknown")).lower()
            for record in self._query_records(self.builder.list_pods())
        }
        observed: dict[str, dict[str, Any]] = {}
        for record in self._query_records(self.builder.list_containers()):
            for name in _container_names(record):
                observed[name] = record

        for pod, container in self.config.iter_containers():
            state = ContainerState(
                pod=pod.name,
                pod_status=pod_status.get(pod.name, "absent"),
                container=container.name,
                configured_image=container.image,
            )
            record = observed.get(container.name)
            if record is not None:
                observed_image = str(record.get("Image", ""))
                state.observed_image = observed_image
                state.status = str(record.get("State", "unknown")).lower()
                state.up_to_date = images_match(container.image, observed_image)
            report.containers.append(state)

        return report.mark_complete()

    def prune(self) -> OperationReport:
        """Remove images no container uses; report what was removed."""
        report = OperationReport(operation="prune")
        result = self._run_checked(self.builder.prune_images())
        report.removed_images = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        logger.info("images.pruned", removed=len(report.removed_images))
        report.record_success(
            "image", "unused images", "prune",
            message=f"{len(report.removed_images)} image(s) removed",
        )
        return report.mark_complete()

    # ------------------------------------------------------------------
    # plan
    # ------------------------------------------------------------------

    def planned_commands(self) -> list[tuple[str, list[str]]]:
        """Command lines setup would run, per pod. Nothing is executed."""
        plan = []
        for pod in self.config.pods:
            lines = [self.executor.render(self.builder.create_pod(pod))]
            lines.extend(
                self.executor.render(self.builder.create_container(pod, c))
                for c in pod.containers
            )
            plan.append((pod.name, lines))
        return plan

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _require_pod(self, name: str) -> PodSpec:
        pod = self.config.get_pod(name)
        if pod is None:
            raise TargetNotFoundError("pod", name)
        return pod

    def _require_container(self, name: str) -> tuple[PodSpec, ContainerSpec]:
        matches = self.config.find_containers(name)
        if not matches:
            raise TargetNotFoundError("container", name)
        if len(matches) > 1:
            pods = ", ".join(p.name for p, _ in matches)
            raise ConfigurationError(
                f"Container name '{name}' is ambiguous; it is defined in pods: {pods}"
            ).with_context(container=name)
        return matches[0]

    def _ensure_image(self, container: ContainerSpec) -> None:
        if self._succeeds(self.builder.image_exists(container.image)):
            logger.debug("image.present", image=container.image)
            return
        self._run_checked(
            self.builder.pull_image(container.image),
            container=container.name,
            image=container.image,
        )
        logger.info("image.pulled", image=container.image)

    def _create_container(self, pod: PodSpec, container: ContainerSpec) -> None:
        args = self.builder.create_container(pod, container)
        logger.info("container.creating", command=self.executor.render(args))
        self._run_checked(args, pod=pod.name, container=container.name, image=container.image)
        logger.info("container.created", pod=pod.name, container=container.name)

    def _attempt(
        self,
        report: OperationReport,
        kind: str,
        name: str,
        action: str,
        args: Sequence[str],
        *,
        pod: str | None = None,
        tolerated: tuple[type[Exception], ...] = _LOOP_ERRORS,
    ) -> bool:
        """Run one per-entity command, recording the outcome instead of raising."""
        context = {"pod": pod or name} if kind == "pod" else {"pod": pod, "container": name}
        try:
            self._run_checked(args, **context)
        except tolerated as exc:
            logger.warning(f"{kind}.{action}_failed", name=name, error=exc.message)
            report.record_failure(kind, name, action, exc, pod=pod)  # type: ignore[arg-type]
            return False
        logger.info(f"{kind}.{action}_ok", name=name)
        report.record_success(kind, name, action, pod=pod)  # type: ignore[arg-type]
        return True

    def _run_checked(
        self,
        args: Sequence[str],
        *,
        input: str | None = None,
        **context: Any,
    ) -> CommandResult:
        result = self.executor.run(args, input=input)
        if not result.ok:
            raise RuntimeCommandError.from_result(result).with_context(
                **{k: v for k, v in context.items() if v is not None}
            )
        return result

    def _succeeds(self, args: Sequence[str]) -> bool:
        return self.executor.run(args).ok

    def _query_records(self, args: Sequence[str]) -> list[dict[str, Any]]:
        return _parse_json_records(self._run_checked(args).stdout)


def _parse_json_records(stdout: str) -> list[dict[str, Any]]:
    """Parse ``--format json`` output: a JSON array, or one object per line."""
    text = stdout.strip()
    if not text:
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        records = []
        for line in text.splitlines():
            if line.strip():
                try:
                    records.append(json.loads(line))
                except json.JSONDecodeError:
                    logger.debug("runtime.unparsable_line", line=line)
        return [r for r in records if isinstance(r, dict)]
    if isinstance(data, dict):
        return [data]
    return [r for r in data if isinstance(r, dict)] if isinstance(data, list) else []


def _container_names(record: dict[str, Any]) -> list[str]:
    names = record.get("Names", record.get("Name", []))
    if isinstance(names, str):
        return [n.strip().lstrip("/") for n in names.split(",") if n.strip()]
    return [str(n).lstrip("/") for n in names]
