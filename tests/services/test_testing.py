"""Tests for TestService — running declared tests against a cluster."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

from lambdakube.config.settings import LkSettings
from lambdakube.domain.errors import KubectlError
from lambdakube.domain.injector import Injector
from lambdakube.domain.objects import add_container, pod
from lambdakube.services.testing import TestService


def _test_pod(db: dict) -> dict:
    return add_container(pod("t", {}), "c", "busybox")


def _injector() -> Injector:
    inj = Injector()
    inj.rule("db", ["db-size"], lambda size: pod("db", {"size": str(size)}))
    for name, size in (("small", 1), ("large", 9)):
        inj.test(name, {"db-size": size}, ["db"], _test_pod)
    return inj


def _job_status(**status: int) -> str:
    return json.dumps({"status": status})


def _kubectl(*job_states: str, log: str = "test output") -> MagicMock:
    """Kubectl mock answering ``get job`` with *job_states* in turn."""
    states = iter(job_states)
    mock = MagicMock()

    def run(*args: str, namespace: str | None = None) -> str:
        if args[:2] == ("get", "job"):
            return next(states)
        if args[0] == "logs":
            return log
        return ""

    mock.run.side_effect = run
    return mock


def _service(settings: LkSettings, kubectl: MagicMock, **kwargs) -> TestService:
    return TestService(_injector(), settings, kubectl=kubectl, sleep=lambda s: None, **kwargs)


def _commands(kubectl: MagicMock) -> list[tuple]:
    return [(c.args, c.kwargs.get("namespace")) for c in kubectl.run.call_args_list]


class TestListTests:
    def test_list(self, settings: LkSettings) -> None:
        result = _service(settings, MagicMock()).list_tests()
        assert result.ok
        assert result.data["count"] == 2
        assert result.data["items"][0] == {"name": "small", "config": {"db-size": 1}}


class TestRunTest:
    def test_pass(self, settings: LkSettings) -> None:
        kubectl = _kubectl(_job_status(), _job_status(active=1), _job_status(succeeded=1))
        result = _service(settings, kubectl).run_test("small")
        assert result.ok
        assert result.data == {"status": "pass", "namespace": "lk-test-small", "log": "test output"}

        manifest = settings.output_dir / "lk-test-small.yaml"
        assert "name: test" in manifest.read_text()
        assert "size: '1'" in manifest.read_text()

        cmds = _commands(kubectl)
        assert cmds[0] == (("create", "ns", "lk-test-small"), None)
        assert cmds[1] == (("apply", "-f", str(manifest)), "lk-test-small")
        assert (("logs", "-ljob-name=test"), "lk-test-small") in cmds
        assert cmds[-1] == (("delete", "ns", "lk-test-small"), None)

    def test_fail_keeps_namespace(self, settings: LkSettings) -> None:
        kubectl = _kubectl(_job_status(failed=1), log="assertion failed")
        result = _service(settings, kubectl).run_test("small")
        assert result.ok
        assert result.data["status"] == "fail"
        assert result.data["log"] == "assertion failed"
        assert ("delete", "ns", "lk-test-small") not in [c[0] for c in _commands(kubectl)]

    def test_fail_deletes_namespace_when_configured(self, tmp_path, monkeypatch) -> None:
        monkeypatch.delenv("LAMBDAKUBE_CONFIG", raising=False)
        (tmp_path / "lambdakube.toml").write_text("[testing]\nkeep_failed_namespaces = false\n")
        settings = LkSettings.from_cli(project_root=tmp_path)
        kubectl = _kubectl(_job_status(failed=1))
        _service(settings, kubectl).run_test("small")
        assert ("delete", "ns", "lk-test-small") in [c[0] for c in _commands(kubectl)]

    def test_timeout(self, settings: LkSettings) -> None:
        ticks = iter([0.0, 100.0, 700.0])
        kubectl = _kubectl(_job_status(active=1), _job_status(active=1))
        result = _service(settings, kubectl, clock=lambda: next(ticks)).run_test("small")
        assert result.data["status"] == "timeout"

    def test_unknown_test(self, settings: LkSettings) -> None:
        result = _service(settings, MagicMock()).run_test("nope")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "UNKNOWN_TEST"

    def test_kubectl_error(self, settings: LkSettings) -> None:
        kubectl = MagicMock()
        kubectl.run.side_effect = KubectlError(["kubectl", "create", "ns"], "exists")
        result = _service(settings, kubectl).run_test("small")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "KUBECTL_FAILED"
        assert result.error.detail == {"test": "small"}


class TestRunTests:
    def test_all_pass(self, settings: LkSettings) -> None:
        kubectl = _kubectl(_job_status(succeeded=1), _job_status(succeeded=1))
        result = _service(settings, kubectl).run_tests()
        assert result.ok
        assert result.data["count"] == 2
        assert result.data["failed"] == []

    def test_predicate_filters(self, settings: LkSettings) -> None:
        kubectl = _kubectl(_job_status(succeeded=1))
        result = _service(settings, kubectl).run_tests(lambda cfg: cfg["db-size"] > 5)
        assert list(result.data["results"]) == ["large"]

    def test_names_filter(self, settings: LkSettings) -> None:
        kubectl = _kubectl(_job_status(succeeded=1))
        result = _service(settings, kubectl).run_tests(names=["small"])
        assert list(result.data["results"]) == ["small"]

    def test_unknown_name(self, settings: LkSettings) -> None:
        result = _service(settings, MagicMock()).run_tests(names=["small", "ghost"])
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "UNKNOWN_TEST"
        assert result.error.detail == {"unknown": ["ghost"]}

    def test_some_fail(self, settings: LkSettings) -> None:
        kubectl = _kubectl(_job_status(succeeded=1), _job_status(failed=1))
        result = _service(settings, kubectl).run_tests()
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "TESTS_FAILED"
        assert result.data["failed"] == ["large"]

    def test_uses_configured_prefix(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("LAMBDAKUBE_TESTING__PREFIX", "ci")
        monkeypatch.delenv("LAMBDAKUBE_CONFIG", raising=False)
        settings = LkSettings.from_cli(project_root=tmp_path)
        kubectl = _kubectl(_job_status(succeeded=1))
        result = _service(settings, kubectl).run_tests(names=["small"])
        assert result.data["results"]["small"]["namespace"] == "ci-small"
