"""TestService — run declared integration tests on a live cluster.

Each test gets its own namespace ``<prefix>-<name>``. The test's rule emits
a Job named ``test`` (see :meth:`Injector.test`); the service applies the
resolved system, waits for the Job to finish, and collects its logs.
Namespaces of passing tests are deleted; failing ones are kept for
inspection unless ``[testing] keep_failed_namespaces`` is false.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Hashable, Iterable, Mapping
from typing import TYPE_CHECKING, Any, Literal

import structlog

from lambdakube.domain.errors import LambdaKubeError
from lambdakube.domain.injector import TEST_JOB_NAME
from lambdakube.infrastructure.manifests import to_yaml
from lambdakube.services.base import BaseService
from lambdakube.services.resolve import get_deployable
from lambdakube.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from lambdakube.config.settings import LkSettings
    from lambdakube.domain.injector import Injector
    from lambdakube.infrastructure.kubectl import Kubectl

logger = logging.getLogger(__name__)

type TestStatus = Literal["pass", "fail", "timeout"]


class TestService(BaseService):
    """Runs the tests declared on the injector."""

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        injector: Injector,
        settings: LkSettings,
        *,
        kubectl: Kubectl | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(injector, settings, kubectl=kubectl)
        self._sleep = sleep
        self._clock = clock

    def list_tests(self) -> ServiceResult:
        """List declared tests and their configurations."""
        items = [
            {"name": str(name), "config": {str(k): v for k, v in config.items()}}
            for name, config in self._injector.tests.items()
        ]
        return ServiceResult(ok=True, op="list_tests", data={"count": len(items), "items": items})

    def run_test(self, name: Hashable) -> ServiceResult:
        """Deploy and run one test in a fresh namespace."""
        if name not in self._injector.tests:
            return ServiceResult(
                ok=False,
                op="run_test",
                error=ServiceError(code="UNKNOWN_TEST", message=f"No test named {name!r}"),
            )
        try:
            outcome = self._run(name, self._injector.tests[name])
        except LambdaKubeError as exc:
            return ServiceResult.failure("run_test", exc, test=str(name))
        return ServiceResult(ok=True, op="run_test", data=outcome)

    def run_tests(
        self,
        predicate: Callable[[Mapping[Hashable, Any]], bool] | None = None,
        *,
        names: Iterable[str] | None = None,
    ) -> ServiceResult:
        """Run every test whose configuration satisfies *predicate*.

        *names* further restricts the run to the named tests. The result is
        ok when all selected tests passed.
        """
        selected = set(names) if names is not None else None
        if selected is not None:
            unknown = sorted(selected - {str(n) for n in self._injector.tests})
            if unknown:
                return ServiceResult(
                    ok=False,
                    op="run_tests",
                    error=ServiceError(
                        code="UNKNOWN_TEST",
                        message=f"No test named {unknown[0]!r}",
                        detail={"unknown": unknown},
                    ),
                )

        results: dict[str, dict[str, Any]] = {}
        for name, config in self._injector.tests.items():
            if selected is not None and str(name) not in selected:
                continue
            if predicate is not None and not predicate(config):
                continue
            try:
                results[str(name)] = self._run(name, config)
            except LambdaKubeError as exc:
                return ServiceResult.failure("run_tests", exc, test=str(name), results=results)

        failed = sorted(n for n, r in results.items() if r["status"] != "pass")
        data = {"count": len(results), "failed": failed, "results": results}
        if failed:
            return ServiceResult(
                ok=False,
                op="run_tests",
                data=data,
                error=ServiceError(
                    code="TESTS_FAILED",
                    message=f"{len(failed)} of {len(results)} test(s) failed",
                    detail={"failed": failed},
                ),
            )
        return ServiceResult(ok=True, op="run_tests", data=data)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run(self, name: Hashable, config: Mapping[Hashable, Any]) -> dict[str, Any]:
        namespace = f"{self._settings.testing.prefix}-{name}"
        with structlog.contextvars.bound_contextvars(test=str(name), namespace=namespace):
            return self._deploy_and_wait(name, config, namespace)

    def _deploy_and_wait(
        self, name: Hashable, config: Mapping[Hashable, Any], namespace: str
    ) -> dict[str, Any]:
        testing = self._settings.testing
        manifest = to_yaml(get_deployable(self._injector, config))

        path = self._settings.output_dir / f"{namespace}.yaml"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(manifest, encoding="utf-8")

        logger.info("Creating namespace %s", namespace)
        self._kubectl.run("create", "ns", namespace)
        logger.info("Deploying test %s", name)
        self._kubectl.run("apply", "-f", str(path), namespace=namespace)

        status = self._wait_for_job(namespace)
        job_log = self._kubectl.run("logs", f"-ljob-name={TEST_JOB_NAME}", namespace=namespace)
        logger.info("Test %s completed. Status: %s", name, status)

        if status == "pass" or not testing.keep_failed_namespaces:
            logger.info("Deleting namespace %s", namespace)
            self._kubectl.run("delete", "ns", namespace)
        return {"status": status, "namespace": namespace, "log": job_log}

    def _wait_for_job(self, namespace: str) -> TestStatus:
        """Poll the test Job until it succeeds, fails, or times out."""
        testing = self._settings.testing
        deadline = self._clock() + testing.timeout
        while True:
            out = self._kubectl.run("get", "job", TEST_JOB_NAME, "-o", "json", namespace=namespace)
            status = json.loads(out).get("status", {})
            if status.get("succeeded", 0) > 0:
                return "pass"
            if status.get("failed", 0) > 0:
                return "fail"
            if self._clock() >= deadline:
                return "timeout"
            self._sleep(testing.poll_interval)
