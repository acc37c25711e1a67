"""
Unit tests for the dependency graph of generated code units.

Tests TopoId addressing and the ordering guarantees of TopoGraph.
"""

import pytest

from oolong.errors import DuplicateDefinitionError, ReferenceNotFoundError, UsageError
from oolong.lib.compiler import TopoGraph, TopoId


class TestTopoId:
    """Test structured node ids."""

    def test_string_form(self):
        """Markers glue to the previous part, indexes are bracketed."""
        node = TopoId.of("email", ":stage0~", 0, "isEmail")
        assert str(node) == "email:stage0~[0]/isEmail"

    def test_child_and_root(self):
        node = TopoId.of("$params", "sanitize").child(2)
        assert node == TopoId.of("$params", "sanitize", 2)
        assert node.root == "$params"

    def test_ids_are_hashable_values(self):
        assert {TopoId.of("a", "ready"), TopoId.of("a", "ready")} == {TopoId.of("a", "ready")}


class TestTopoGraph:
    """Test dependency ordering of code blocks."""

    def test_linear_chain(self):
        """C before B before A, whatever the creation order."""
        graph = TopoGraph()
        a, b, c = (graph.create(TopoId.of(n)) for n in "abc")
        graph.depends_on(c, b)
        graph.depends_on(b, a)

        order = graph.sort()
        assert order.index(c) < order.index(b) < order.index(a)

    def test_ties_keep_creation_order(self):
        graph = TopoGraph()
        nodes = [graph.create(TopoId.of(n)) for n in ("x", "y", "z")]
        assert graph.sort() == nodes

    def test_diamond(self):
        graph = TopoGraph()
        a, b, c, d = (graph.create(TopoId.of(n)) for n in "abcd")
        graph.depends_on(a, b)
        graph.depends_on(a, c)
        graph.depends_on(b, d)
        graph.depends_on(c, d)

        order = graph.sort()
        assert order[0] == a
        assert order[-1] == d

    def test_code_points_only_carry_blocks(self):
        graph = TopoGraph()
        a, b = graph.create(TopoId.of("a")), graph.create(TopoId.of("b"))
        graph.depends_on(b, a)
        graph.set_block(a, "block-a")

        assert graph.code_points() == [a]
        assert graph.block(a) == "block-a"
        assert graph.block(b) is None

    def test_duplicate_create(self):
        graph = TopoGraph()
        graph.create(TopoId.of("a"))
        with pytest.raises(DuplicateDefinitionError):
            graph.create(TopoId.of("a"))

    def test_self_dependency(self):
        graph = TopoGraph()
        a = graph.create(TopoId.of("a"))
        with pytest.raises(UsageError):
            graph.depends_on(a, a)

    def test_dependency_of_uncreated_node(self):
        graph = TopoGraph()
        a = graph.create(TopoId.of("a"))
        with pytest.raises(UsageError):
            graph.depends_on(a, TopoId.of("b"))

    def test_cycle_is_reported(self):
        """A -> B -> C -> A."""
        graph = TopoGraph()
        a, b, c = (graph.create(TopoId.of(n)) for n in "abc")
        graph.depends_on(a, b)
        graph.depends_on(b, c)
        graph.depends_on(c, a)

        with pytest.raises(UsageError, match="Circular dependency"):
            graph.sort()

    def test_unresolved_reference(self):
        """A node only known as a dependency was never created."""
        graph = TopoGraph()
        a = graph.create(TopoId.of("a"))
        graph.depends_on(TopoId.of("missing", "ready"), a)

        with pytest.raises(ReferenceNotFoundError, match='Unresolved reference "missing"'):
            graph.sort()
