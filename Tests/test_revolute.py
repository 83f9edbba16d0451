"""
Tests for the revolute joint preprocessing.

Tests cover:
- Node duplication count and ID allocation
- Constraint generation (Ux, Uy ties)
- Vacuous joints
- Determinism and idempotence
"""
import pytest

from BeamROM.Errors import ModelValidationError, TopologyWarning
from BeamROM.Model.Dof import Component
from BeamROM.Model.Revolute import NodeIdAllocator, find_elements_using_node, process_revolute_joints
from BeamROM.Model.Tables import Element, Node, RevoluteJoint


def _star(k):
    """k elements meeting at node 1 (hub), spokes at nodes 2..k+1."""
    nodes = [Node(1, 0.0, 0.0)] + [Node(i + 2, float(i + 1), 1.0) for i in range(k)]
    elements = [Element(i + 1, 1, 1, 1, (1, i + 2)) for i in range(k)]
    return nodes, elements


@pytest.mark.unit
@pytest.mark.revolute
class TestNodeIdAllocator:
    """Tests for duplicate node ID allocation."""

    def test_starts_above_taken(self):
        alloc = NodeIdAllocator([3, 1, 7])
        assert alloc.allocate() == 8
        assert alloc.allocate() == 9

    def test_skips_reserved(self):
        alloc = NodeIdAllocator([1, 2])
        alloc.reserve(4)
        assert alloc.allocate() == 5
        assert 4 in alloc and 5 in alloc

    def test_empty(self):
        assert NodeIdAllocator().allocate() == 1


@pytest.mark.unit
@pytest.mark.revolute
class TestRevoluteJoints:
    """Tests for node duplication and constraint generation."""

    def test_two_elements(self):
        nodes, elements = _star(2)
        result = process_revolute_joints(nodes, elements, [RevoluteJoint(1, 1)])

        assert len(result.nodes) == len(nodes) + 1
        assert len(result.constraints) == 2
        assert result.duplicates == ((4, 1),)

        # First element keeps the original node, the second one gets the copy
        assert result.elements[0].nodes == (1, 2, 0)
        assert result.elements[1].nodes == (4, 3, 0)
        assert result.nodes[-1].coords.tolist() == nodes[0].coords.tolist()

    def test_constraint_records(self):
        nodes, elements = _star(2)
        result = process_revolute_joints(nodes, elements, [RevoluteJoint(1, 1)])
        ux, uy = result.constraints

        assert ux.as_record()[0] == 0.0
        assert [c for c, _ in ux.terms] == [1.0, -1.0]
        assert [dof.decode() for dof in ux.dofs] == [(1, 1), (4, 1)]
        assert [dof.decode() for dof in uy.dofs] == [(1, 2), (4, 2)]

    def test_rotation_left_free(self):
        nodes, elements = _star(3)
        result = process_revolute_joints(nodes, elements, [RevoluteJoint(1, 1)])
        components = {dof.component for c in result.constraints for dof in c.dofs}
        assert components == {Component.UX, Component.UY}

    @pytest.mark.parametrize("k", [2, 3, 5])
    def test_k_elements(self, k):
        nodes, elements = _star(k)
        result = process_revolute_joints(nodes, elements, [RevoluteJoint(1, 1)])

        assert len(result.duplicates) == k - 1
        assert len(result.constraints) == 2 * (k - 1)
        assert result.elements[0].references(1)
        assert sum(e.references(1) for e in result.elements) == 1
        assert len({n.id for n in result.nodes}) == len(result.nodes)

    def test_orientation_reference_kept(self):
        """Only end-node users are split; an orientation reference stays on the original node."""
        nodes = [Node(1, 0, 0), Node(2, 1, 0), Node(3, 2, 0), Node(4, 1, 1)]
        elements = [Element(1, 1, 1, 1, (4, 1, 2)), Element(2, 1, 1, 1, (1, 2)), Element(3, 1, 1, 1, (2, 3))]
        result = process_revolute_joints(nodes, elements, [RevoluteJoint(1, 2)])

        assert result.elements[0].nodes == (4, 1, 2)
        assert result.elements[1].nodes == (1, 2, 0)
        assert result.elements[2].nodes == (5, 3, 0)
        assert result.duplicates == ((5, 2),)
        assert find_elements_using_node(result.elements, 2) == (0, 1)
        assert find_elements_using_node(result.elements, 2, ends_only=True) == (1,)

    def test_orientation_only_joint_skipped(self):
        nodes = [Node(1, 0, 0), Node(2, 1, 0), Node(3, 2, 0), Node(4, 1, 1)]
        elements = [Element(1, 1, 1, 1, (1, 2, 4)), Element(2, 1, 1, 1, (2, 3, 4))]
        with pytest.warns(TopologyWarning, match="at least 2"):
            result = process_revolute_joints(nodes, elements, [RevoluteJoint(1, 4)])
        assert result.elements == tuple(elements)
        assert result.skipped_joints == (1,)

    def test_vacuous_joint_skipped(self):
        nodes, elements = _star(2)
        with pytest.warns(TopologyWarning, match="at least 2"):
            result = process_revolute_joints(nodes, elements, [RevoluteJoint(7, 2)])
        assert result.constraints == ()
        assert result.skipped_joints == (7,)
        assert result.elements == tuple(elements)

    def test_unknown_node(self):
        nodes, elements = _star(2)
        with pytest.raises(ModelValidationError):
            process_revolute_joints(nodes, elements, [RevoluteJoint(1, 99)])

    def test_ids_avoid_element_references(self):
        """IDs referenced by elements are never reused, even if no node carries them."""
        nodes, elements = _star(2)
        elements.append(Element(9, 1, 1, 1, (2, 3, 50)))
        result = process_revolute_joints(nodes, elements, [RevoluteJoint(1, 1)])
        assert result.duplicates == ((51, 1),)

    def test_deterministic(self):
        nodes, elements = _star(4)
        joints = [RevoluteJoint(1, 1)]
        assert process_revolute_joints(nodes, elements, joints) == process_revolute_joints(nodes, elements, joints)

    def test_idempotent(self):
        nodes, elements = _star(3)
        joints = [RevoluteJoint(1, 1)]
        first = process_revolute_joints(nodes, elements, joints)
        with pytest.warns(TopologyWarning):
            second = process_revolute_joints(first.nodes, first.elements, joints)
        assert second.nodes == first.nodes
        assert second.elements == first.elements
        assert second.constraints == ()

    def test_shared_element_between_joints(self, frame_tables):
        """An element touching two jointed nodes receives a copy of each."""
        nodes = [Node(*row) for row in frame_tables["nodes"]]
        elements = [Element(r[0], r[1], r[2], r[3], tuple(r[4:])) for r in frame_tables["elements"]]
        joints = [RevoluteJoint(*row) for row in frame_tables["joints"]]
        result = process_revolute_joints(nodes, elements, joints)

        assert result.duplicate_map == {11: 4, 12: 8, 13: 9}
        assert find_elements_using_node(result.elements, 12) == (8,)
        assert find_elements_using_node(result.elements, 13) == (8,)

    def test_verbose(self, capsys):
        nodes, elements = _star(3)
        process_revolute_joints(nodes, elements, [RevoluteJoint(1, 1)], verbose=True)
        assert "2 duplicate node(s)" in capsys.readouterr().out
