"""Rule scheduling over a NetworkX dependency graph."""

from lambdakube.infrastructure.graph.engine import RuleGraph, schedule

__all__ = ["RuleGraph", "schedule"]
