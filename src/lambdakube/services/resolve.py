"""Resolution loop — turn an injector and a configuration into API objects.

Single pass over the scheduled rules (see
:mod:`lambdakube.infrastructure.graph.engine`). For each rule:

1. A dependency missing from the configuration skips the rule. This is how
   optional subsystems drop out; it is not an error.
2. A rule whose name is already bound raises :class:`ConflictError`.
3. Otherwise the rule is built from its dependencies' descriptions, the
   result is flattened, emitted, described, and its description bound to
   the rule name for the rules that follow.

INVARIANT: the caller's configuration is never mutated, and the same
injector and configuration always produce the same output.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from lambdakube.domain.describers import describe
from lambdakube.domain.errors import ConflictError
from lambdakube.domain.extract import extract_additional
from lambdakube.infrastructure.graph import schedule

if TYPE_CHECKING:
    from lambdakube.domain.injector import Injector, Rule
    from lambdakube.domain.types import ApiObject, Description

logger = logging.getLogger(__name__)


@dataclass
class RuleOutcome:
    """What happened to one scheduled rule."""

    rule: Rule
    fired: bool
    missing: list[Hashable] = field(default_factory=list)
    emitted: int = 0
    description: Description | None = None


@dataclass
class ResolutionPlan:
    """Full record of one resolution run.

    Attributes:
        outcomes: One entry per scheduled rule, in evaluation order.
        objects: Emitted API objects, in emission order.
        config: Final configuration (input plus resolved descriptions).
    """

    outcomes: list[RuleOutcome] = field(default_factory=list)
    objects: list[ApiObject] = field(default_factory=list)
    config: dict[Hashable, Any] = field(default_factory=dict)

    @property
    def fired(self) -> list[RuleOutcome]:
        return [o for o in self.outcomes if o.fired]

    @property
    def skipped(self) -> list[RuleOutcome]:
        return [o for o in self.outcomes if not o.fired]


def _fire(rule: Rule, config: Mapping[Hashable, Any]) -> tuple[list[Any], list[ApiObject]]:
    """Build *rule* and split the result into primaries and additional objects."""
    result = rule.build(*(config[dep] for dep in rule.deps))
    primary, additional = extract_additional(result)
    if isinstance(result, (list, tuple)):
        return primary, additional
    return [primary], additional


def resolve_plan(injector: Injector, config: Mapping[Hashable, Any]) -> ResolutionPlan:
    """Resolve *injector* against *config*, recording every rule's outcome.

    Raises:
        CycleError: The rules depend on each other circularly.
        ConflictError: Two rules for the same resource both fired.
    """
    plan = ResolutionPlan(config=dict(config))
    for rule in schedule(injector.rules):
        missing = [dep for dep in rule.deps if dep not in plan.config]
        if missing:
            logger.debug("Skipping rule %s: missing %s", rule.name, missing)
            plan.outcomes.append(RuleOutcome(rule=rule, fired=False, missing=missing))
            continue
        if rule.name in plan.config:
            raise ConflictError(rule.name)

        with structlog.contextvars.bound_contextvars(rule=str(rule.name)):
            primaries, additional = _fire(rule, plan.config)
            emitted = [*primaries, *additional]
            description = describe(emitted, injector.describers)
            logger.debug("Resolved %s: %d object(s)", rule.name, len(emitted))
        plan.objects.extend(emitted)
        plan.config[rule.name] = description
        plan.outcomes.append(
            RuleOutcome(rule=rule, fired=True, emitted=len(emitted), description=description)
        )
    return plan


def get_deployable(injector: Injector, config: Mapping[Hashable, Any]) -> list[ApiObject]:
    """Resolve *injector* against *config* and return the API objects to deploy."""
    return resolve_plan(injector, config).objects


resolve = get_deployable
