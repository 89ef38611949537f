"""Shared pytest fixtures and test helpers for lambdakube tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from click.testing import CliRunner

from lambdakube.config.settings import LkSettings
from lambdakube.domain.injector import Injector
from lambdakube.infrastructure.kubectl import Kubectl


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> LkSettings:
    """Settings rooted at an empty temp project, isolated from the environment."""
    monkeypatch.delenv("LAMBDAKUBE_CONFIG", raising=False)
    return LkSettings.from_cli(project_root=tmp_path)


@pytest.fixture
def kubectl() -> MagicMock:
    """A Kubectl stand-in that records calls and succeeds by default."""
    mock = MagicMock(spec=Kubectl)
    mock.run.return_value = ""
    mock.kube_apply.return_value = True
    return mock


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Temp project directory with a local module, used as CWD.

    The module defines a ``backend`` deployment exposed as a ClusterIP
    service, a ``frontend`` pod waiting for the backend's port, and a
    ``frontend-smoke`` test gated on the ``smoke`` value.
    """
    monkeypatch.delenv("LAMBDAKUBE_CONFIG", raising=False)
    modules = tmp_path / ".lambdakube" / "modules"
    modules.mkdir(parents=True)
    (modules / "system.py").write_text(SYSTEM_MODULE, encoding="utf-8")
    (tmp_path / "lambdakube.toml").write_text(
        '[values]\nbackend-replicas = 2\n', encoding="utf-8"
    )
    monkeypatch.chdir(tmp_path)
    yield tmp_path


SYSTEM_MODULE = '''\
from lambdakube import (
    add_container,
    deployment,
    expose_cluster_ip,
    pod,
    port,
    wait_for_service_port,
)


def module(inj):
    inj.rule(
        "backend",
        ["backend-replicas"],
        lambda replicas: expose_cluster_ip(
            deployment(
                add_container(pod("backend", {"app": "backend"}), "server", "backend:1.0"),
                replicas,
            ),
            "backend",
            [port("server", "web", 8080, 80)],
        ),
    )
    inj.rule(
        "frontend",
        ["backend"],
        lambda backend: wait_for_service_port(
            add_container(pod("frontend", {"app": "frontend"}), "ui", "frontend:1.0"),
            backend,
            "web",
        ),
    )
    inj.test(
        "frontend-smoke",
        {"backend-replicas": 1, "smoke": True},
        ["backend", "smoke"],
        lambda backend, smoke: add_container(pod("smoke", {}), "curl", "curlimages/curl"),
    )
'''


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def const(value: object):
    """A build function ignoring its arguments."""
    return lambda *_args: value


def make_injector(*rules: tuple[str, list[str], object]) -> Injector:
    """Injector with the given ``(name, deps, build)`` rules."""
    inj = Injector()
    for name, deps, build in rules:
        inj.rule(name, deps, build)
    return inj
