"""
Dependency graph of generated code units.

Every unit of generated code (a functor call, a parameter sanitizer, an
interface operation) is a node addressed by a TopoId. Edges read "previous
must run before current". The emitted program is the topological order of the
graph restricted to nodes that carry a code block.
"""

from dataclasses import dataclass

import networkx as nx

from oolong.errors import DuplicateDefinitionError, ReferenceNotFoundError, UsageError


@dataclass(frozen=True)
class TopoId:
    """Structured node id, e.g. ("email", ":stage0~", 0, "isEmail")."""

    path: tuple

    @classmethod
    def of(cls, *parts) -> "TopoId":
        return cls(tuple(parts))

    def child(self, *parts) -> "TopoId":
        return TopoId(self.path + tuple(parts))

    @property
    def root(self):
        return self.path[0]

    def __str__(self):
        out = ""
        for part in self.path:
            if isinstance(part, int):
                out += f"[{part}]"
            elif not out or part.startswith(":"):
                out += part
            else:
                out += "/" + part
        return out


class TopoGraph:

    def __init__(self, logger=None):
        self.graph = nx.DiGraph()
        self.logger = logger
        self._created = set()
        # first-seen position of every node, keeps the sort deterministic
        self._order = {}

    def _touch(self, node: TopoId):
        if node not in self._order:
            self._order[node] = len(self._order)
            self.graph.add_node(node)

    def has(self, node: TopoId) -> bool:
        return node in self._created

    def create(self, node: TopoId) -> TopoId:
        if node in self._created:
            raise DuplicateDefinitionError(f'Topo id "{node}" already created.')
        self._created.add(node)
        self._touch(node)
        return node

    def depends_on(self, previous: TopoId, current: TopoId):
        if previous == current:
            raise UsageError(f'Topo id "{current}" cannot depend on itself.')
        if current not in self._created:
            raise UsageError(f'Topo id "{current}" not created.')

        if self.logger is not None:
            self.logger.debug(f"{current} depends on {previous}")

        self._touch(previous)
        self.graph.add_edge(previous, current)

    # ------------------------------------------------------------------------------
    # Code blocks

    def set_block(self, node: TopoId, block):
        if node not in self._created:
            raise UsageError(f'Topo id "{node}" not created.')
        self.graph.nodes[node]["block"] = block

    def block(self, node: TopoId):
        return self.graph.nodes[node].get("block") if node in self.graph else None

    # ------------------------------------------------------------------------------

    def sort(self) -> list:
        """All nodes in dependency order, ties broken by creation order."""
        missing = [node for node in self._order if node not in self._created]
        if missing:
            raise ReferenceNotFoundError(
                f'Unresolved reference "{missing[0].root}" (required by "{next(self.graph.successors(missing[0]))}").'
            )

        try:
            return list(nx.lexicographical_topological_sort(self.graph, key=self._order.__getitem__))
        except nx.NetworkXUnfeasible:
            cycle = nx.find_cycle(self.graph)
            path = " -> ".join(str(u) for u, _ in cycle) + f" -> {cycle[-1][1]}"
            raise UsageError(f"Circular dependency: {path}") from None

    def code_points(self) -> list:
        """Sorted nodes that carry a code block."""
        return [node for node in self.sort() if "block" in self.graph.nodes[node]]
