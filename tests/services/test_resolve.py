"""Tests for the resolution loop."""

from __future__ import annotations

import copy

import pytest

from lambdakube.domain.describers import standard_descs
from lambdakube.domain.errors import ConflictError, CycleError
from lambdakube.domain.exposure import expose_cluster_ip, port
from lambdakube.domain.injector import Injector
from lambdakube.domain.objects import add_container, deployment, pod
from lambdakube.domain.types import ADDITIONAL
from lambdakube.services.resolve import get_deployable, resolve, resolve_plan
from tests.conftest import const, make_injector


class TestBasicResolution:
    def test_empty_injector(self) -> None:
        assert get_deployable(Injector(), {}) == []

    def test_rule_without_deps_fires(self) -> None:
        inj = make_injector(("a", [], const({"kind": "A"})))
        assert get_deployable(inj, {}) == [{"kind": "A"}]

    def test_build_receives_descriptions_positionally(self) -> None:
        seen: list[tuple] = []

        def build(x: object, y: object) -> dict:
            seen.append((x, y))
            return {"kind": "Out"}

        inj = make_injector(("out", ["x", "y"], build))
        get_deployable(inj, {"x": 1, "y": {"z": 2}})
        assert seen == [(1, {"z": 2})]

    def test_missing_dependency_skips(self) -> None:
        inj = make_injector(("a", ["nope"], const({"kind": "A"})), ("b", [], const({"kind": "B"})))
        assert get_deployable(inj, {}) == [{"kind": "B"}]

    def test_skip_cascades(self) -> None:
        inj = make_injector(
            ("a", ["nope"], const({"kind": "A"})),
            ("b", ["a"], const({"kind": "B"})),
        )
        assert get_deployable(inj, {}) == []

    def test_resolve_alias(self) -> None:
        assert resolve is get_deployable


class TestCompetingRules:
    def test_mutually_exclusive_deps(self) -> None:
        inj = make_injector(
            ("db", ["use-mysql"], const({"kind": "MySQL"})),
            ("db", ["use-postgres"], const({"kind": "Postgres"})),
        )
        assert get_deployable(inj, {"use-postgres": True}) == [{"kind": "Postgres"}]
        assert get_deployable(inj, {"use-mysql": True}) == [{"kind": "MySQL"}]

    def test_conflict_raises(self) -> None:
        inj = make_injector(
            ("db", [], const({"kind": "One"})),
            ("db", [], const({"kind": "Two"})),
        )
        with pytest.raises(ConflictError) as excinfo:
            get_deployable(inj, {})
        assert excinfo.value.resource == "db"
        assert str(excinfo.value) == "Conflicting prerequisites for resource db"

    def test_name_already_in_config_conflicts(self) -> None:
        inj = make_injector(("db", [], const({"kind": "DB"})))
        with pytest.raises(ConflictError):
            get_deployable(inj, {"db": {"hostname": "external"}})

    def test_cycle_raises(self) -> None:
        inj = make_injector(("a", ["b"], const({})), ("b", ["a"], const({})))
        with pytest.raises(CycleError):
            get_deployable(inj, {"a": 1})


class TestEmission:
    def test_list_result_contributes_each_element(self) -> None:
        inj = make_injector(("many", [], const([{"kind": "A"}, {"kind": "B"}])))
        assert get_deployable(inj, {}) == [{"kind": "A"}, {"kind": "B"}]

    def test_primary_before_additional(self) -> None:
        obj = {"kind": "Deployment", ADDITIONAL: [{"kind": "Service"}]}
        inj = make_injector(("d", [], const(obj)))
        assert get_deployable(inj, {}) == [{"kind": "Deployment"}, {"kind": "Service"}]

    def test_description_covers_additional_objects(self) -> None:
        inj = make_injector(
            (
                "d",
                [],
                const({"kind": "Deployment", ADDITIONAL: [{"kind": "Service", "x": 1}]}),
            ),
            ("use", ["d"], lambda d: {"kind": "Seen", "desc": d}),
        )
        inj.desc(lambda o: {"last-kind": o["kind"]})
        out = get_deployable(inj, {})
        assert out[-1]["desc"] == {"last-kind": "Service"}

    def test_build_errors_propagate(self) -> None:
        def boom() -> dict:
            raise RuntimeError("broken build")

        inj = make_injector(("a", [], boom))
        with pytest.raises(RuntimeError, match="broken build"):
            get_deployable(inj, {})


class TestEndToEnd:
    @staticmethod
    def _system() -> Injector:
        inj = standard_descs(Injector())
        inj.rule(
            "backend",
            ["replicas"],
            lambda replicas: expose_cluster_ip(
                deployment(add_container(pod("backend", {"app": "be"}), "srv", "be:1"), replicas),
                "backend-svc",
                port("srv", "web", 8080, 80),
            ),
        )
        inj.rule(
            "frontend",
            ["backend"],
            lambda backend: pod("frontend", {"backend-host": backend["hostname"]}),
        )
        return inj

    def test_deployment_service_pod(self) -> None:
        out = get_deployable(self._system(), {"replicas": 2})
        assert [o["kind"] for o in out] == ["Deployment", "Service", "Pod"]
        assert out[2]["metadata"]["labels"] == {"backend-host": "backend-svc"}

    def test_registration_order_irrelevant(self) -> None:
        inj = self._system()
        reversed_inj = Injector(rules=list(reversed(inj.rules)), describers=inj.describers)
        assert get_deployable(reversed_inj, {"replicas": 2}) == get_deployable(
            inj, {"replicas": 2}
        )

    def test_deterministic(self) -> None:
        inj = self._system()
        assert get_deployable(inj, {"replicas": 1}) == get_deployable(inj, {"replicas": 1})

    def test_config_not_mutated(self) -> None:
        config = {"replicas": 2}
        before = copy.deepcopy(config)
        get_deployable(self._system(), config)
        assert config == before


class TestResolutionPlan:
    def test_outcomes_recorded(self) -> None:
        inj = make_injector(
            ("a", [], const({"kind": "A", ADDITIONAL: [{"kind": "Extra"}]})),
            ("b", ["missing"], const({"kind": "B"})),
        )
        plan = resolve_plan(inj, {"seed": 1})
        fired, skipped = plan.fired, plan.skipped
        assert [o.rule.name for o in fired] == ["a"]
        assert fired[0].emitted == 2
        assert [o.rule.name for o in skipped] == ["b"]
        assert skipped[0].missing == ["missing"]
        assert plan.config == {"seed": 1, "a": {}}
        assert len(plan.objects) == 2
