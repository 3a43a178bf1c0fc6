"""Tests for podman_deploy.deploy.upgrade — observed vs. configured image."""

from __future__ import annotations

import pytest

from podman_deploy.core.errors import ContainerNotFoundError, RuntimeCommandError
from podman_deploy.deploy.commands import CommandBuilder
from podman_deploy.deploy.upgrade import UpgradeDecision, UpgradeDecisionEngine

INSPECT = ["container", "inspect", "--format", "{{.ImageName}}"]


@pytest.fixture
def engine(fake_executor) -> UpgradeDecisionEngine:
    return UpgradeDecisionEngine(fake_executor, CommandBuilder("/srv"))


class TestUpgradeDecision:
    """Pure comparison."""

    def test_same_after_normalization(self):
        decision = UpgradeDecision("nginx", "nginx:1.21", "docker.io/library/nginx:1.21")
        assert not decision.needs_upgrade

    def test_tag_changed(self):
        decision = UpgradeDecision("nginx", "nginx:1.22", "docker.io/library/nginx:1.21")
        assert decision.needs_upgrade

    def test_registry_changed(self):
        decision = UpgradeDecision("app", "registry.example.com/app:1", "docker.io/app:1")
        assert decision.needs_upgrade


class TestUpgradeDecisionEngine:
    """Engine queries the runtime for every decision."""

    def test_up_to_date(self, engine, fake_executor):
        fake_executor.on(INSPECT + ["nginx"], stdout="docker.io/library/nginx:1.21\n")
        assert engine.needs_upgrade("nginx", "nginx:1.21") is False
        assert fake_executor.calls == [INSPECT + ["nginx"]]

    def test_needs_upgrade(self, engine, fake_executor):
        fake_executor.on(INSPECT + ["nginx"], stdout="docker.io/library/nginx:1.21\n")
        assert engine.needs_upgrade("nginx", "nginx:1.22") is True

    def test_decision_carries_observed_image(self, engine, fake_executor):
        fake_executor.on(INSPECT + ["nginx"], stdout="docker.io/library/nginx:1.21\n")
        decision = engine.decide("nginx", "nginx:1.22")
        assert decision.observed_image == "docker.io/library/nginx:1.21"
        assert decision.desired_image == "nginx:1.22"

    def test_missing_container(self, engine, fake_executor):
        fake_executor.on(INSPECT, stderr="Error: no such container nginx", exit_code=125)
        with pytest.raises(ContainerNotFoundError) as exc_info:
            engine.needs_upgrade("nginx", "nginx:1.21")
        err = exc_info.value
        assert isinstance(err, RuntimeCommandError)
        assert err.container == "nginx"
        assert err.exit_code == 125
        assert err.command_args == ["podman", *INSPECT, "nginx"]

    def test_never_cached(self, engine, fake_executor):
        fake_executor.on(INSPECT + ["nginx"], stdout="nginx:1.21")
        engine.needs_upgrade("nginx", "nginx:1.21")
        fake_executor.on(INSPECT + ["nginx"], stdout="nginx:1.20")
        assert engine.needs_upgrade("nginx", "nginx:1.21") is True
        assert len(fake_executor.called(*INSPECT)) == 2
