"""Upgrade decisions: is a container stale relative to configuration?

The engine asks the runtime which image a container was created from,
normalizes both that and the configured reference, and compares the two
whole strings. Observed state is fetched fresh for every decision and never
cached.

A container the runtime cannot inspect is signalled with
``ContainerNotFoundError``; whether absence means "create it" or "report a
failure" is the caller's decision.
"""

from __future__ import annotations

from dataclasses import dataclass

from podman_deploy.core.errors import ContainerNotFoundError
from podman_deploy.core.logging import get_logger
from podman_deploy.deploy.commands import CommandBuilder
from podman_deploy.deploy.executor import ProcessExecutor
from podman_deploy.deploy.images import normalize_image

logger = get_logger(__name__)


@dataclass(frozen=True)
class UpgradeDecision:
    """Outcome of comparing a running container against its configuration."""

    container: str
    desired_image: str
    observed_image: str

    @property
    def needs_upgrade(self) -> bool:
        return normalize_image(self.desired_image) != normalize_image(self.observed_image)


class UpgradeDecisionEngine:
    """Decides recreate vs. skip for configured containers."""

    def __init__(self, executor: ProcessExecutor, builder: CommandBuilder) -> None:
        self.executor = executor
        self.builder = builder

    def observed_image(self, container_name: str) -> str:
        """Image reference the live container was created from.

        Raises
        ------
        ContainerNotFoundError
            If the inspect command fails.
        """
        args = self.builder.inspect_container_image(container_name)
        result = self.executor.run(args)
        if not result.ok:
            raise ContainerNotFoundError(
                container_name,
                exit_code=result.exit_code,
                stderr=result.stderr,
                args=result.command,
            )
        return result.output

    def decide(self, container_name: str, desired_image: str) -> UpgradeDecision:
        decision = UpgradeDecision(
            container=container_name,
            desired_image=desired_image,
            observed_image=self.observed_image(container_name),
        )
        if decision.needs_upgrade:
            logger.info(
                "container.upgrade_needed",
                container=container_name,
                current=decision.observed_image,
                expected=desired_image,
            )
        else:
            logger.info(
                "container.up_to_date",
                container=container_name,
                image=decision.observed_image,
            )
        return decision

    def needs_upgrade(self, container_name: str, desired_image: str) -> bool:
        return self.decide(container_name, desired_image).needs_upgrade
