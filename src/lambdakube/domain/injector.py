"""Injector — the registry of rules, describers, and declared tests.

A system is defined by *modules*: callables taking an injector and
registering rules on it. Rules name a resource, list the resources they
depend on, and provide a build function receiving the dependencies'
descriptions positionally::

    def backend(inj: Injector) -> Injector:
        return inj.rule(
            "backend",
            ["backend-replicas"],
            lambda replicas: deployment(pod("backend", {"app": "backend"}), replicas),
        )

Registration is append-only. Several rules may share a name; which one
fires is decided at resolution time by which dependencies are available.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from lambdakube.domain.objects import job, update_in
from lambdakube.domain.types import ApiObject, BuildFunc, Describer, ResourceName

# Name given to the pod/job a declared test runs as.
TEST_JOB_NAME = "test"

type Module = Callable[[Injector], Injector | None]


@dataclass(frozen=True)
class Rule:
    """A build recipe for one resource."""

    name: ResourceName
    deps: tuple[ResourceName, ...]
    build: BuildFunc

    def __repr__(self) -> str:
        return f"Rule({self.name!r}, deps={list(self.deps)!r})"


@dataclass
class Injector:
    """Rules and describers for one system definition.

    Attributes:
        rules: Registered rules, in registration order.
        describers: Registered describers, in registration order.
        tests: Declared integration tests, name -> configuration.
    """

    rules: list[Rule] = field(default_factory=list)
    describers: list[Describer] = field(default_factory=list)
    tests: dict[Hashable, dict[Hashable, Any]] = field(default_factory=dict)

    def rule(self, name: ResourceName, deps: Iterable[ResourceName], build: BuildFunc) -> Injector:
        """Register a rule producing *name* from *deps*."""
        self.rules.append(Rule(name=name, deps=tuple(deps), build=build))
        return self

    def desc(self, describer: Describer) -> Injector:
        """Register a describer."""
        self.describers.append(describer)
        return self

    def install(self, *modules: Module) -> Injector:
        """Apply *modules* to this injector, in order."""
        for module in modules:
            module(self)
        return self

    def test(
        self,
        name: ResourceName,
        config: Mapping[Hashable, Any],
        deps: Iterable[ResourceName],
        func: Callable[..., ApiObject],
    ) -> Injector:
        """Declare an integration test.

        *func* receives the dependencies' descriptions and returns a pod.
        The pod is renamed ``test`` and wrapped in a Job that is never
        restarted, registered as rule *name*. *config* is the resolution
        configuration the test runs under.
        """

        def build_test(*args: Any) -> ApiObject:
            test_pod = update_in(func(*args), ["metadata", "name"], lambda _: TEST_JOB_NAME)
            return job(test_pod, "Never", {"backoffLimit": 0})

        self.tests[name] = dict(config)
        return self.rule(name, deps, build_test)


def injector() -> Injector:
    """Create an empty injector."""
    return Injector()
