"""RuleGraph — NetworkX dependency graph over rules and resource names.

Vertices are of two kinds: resource names and rule positions. Every rule
gets its own vertex, so competing rules for one name are never merged:

    dep-name ──▶ rule ──▶ produced-name

Because every producer of a name points at that name, and every consumer
hangs off it, all competing producers sort before any consumer.

Built lazily, once per resolution. Rule counts are small (dozens to
hundreds), so no caching beyond the instance.
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import networkx as nx

from lambdakube.domain.errors import CycleError

if TYPE_CHECKING:
    from lambdakube.domain.injector import Rule

type _Graph = nx.DiGraph


@dataclass(frozen=True)
class _Resource:
    name: Hashable

    def __str__(self) -> str:
        return str(self.name)


@dataclass(frozen=True)
class _RuleNode:
    index: int

    def __str__(self) -> str:
        return f"rule#{self.index}"


class RuleGraph:
    """Lazy-built rule/resource graph with a stable topological order."""

    def __init__(self, rules: Sequence[Rule]) -> None:
        self._rules = list(rules)
        self._graph: _Graph | None = None
        # First-seen position of each resource name, for tie-breaking.
        self._name_order: dict[Hashable, int] = {}

    @property
    def graph(self) -> _Graph:
        """Return the graph, building it on first access."""
        if self._graph is None:
            self._graph = self._build()
        return self._graph

    def _resource(self, name: Hashable) -> _Resource:
        self._name_order.setdefault(name, len(self._name_order))
        return _Resource(name)

    def _build(self) -> _Graph:
        """Add one vertex per rule, then the input and output edges.

        Rule vertices are added first so rules are present even when
        nothing else refers to them.
        """
        g: _Graph = nx.DiGraph()
        for index, rule in enumerate(self._rules):
            node = _RuleNode(index)
            g.add_node(node, rule=rule)
            for dep in rule.deps:
                g.add_edge(self._resource(dep), node)
            g.add_edge(node, self._resource(rule.name))
        return g

    def _sort_key(self, vertex: _Resource | _RuleNode) -> tuple[int, int]:
        """Ready resource names drain first, then rules by registration order."""
        if isinstance(vertex, _RuleNode):
            return (1, vertex.index)
        return (0, self._name_order[vertex.name])

    def order(self) -> list[Rule]:
        """Return the rules in dependency order.

        Raises:
            CycleError: The graph is not a DAG.
        """
        g = self.graph
        try:
            vertices = list(nx.lexicographical_topological_sort(g, key=self._sort_key))
        except nx.NetworkXUnfeasible:
            cycle = [str(u) for u, _v in nx.find_cycle(g)]
            raise CycleError(cycle) from None
        return [g.nodes[v]["rule"] for v in vertices if isinstance(v, _RuleNode)]


def schedule(rules: Sequence[Rule]) -> list[Rule]:
    """Order *rules* so every producer of a name precedes its consumers."""
    return RuleGraph(rules).order()
