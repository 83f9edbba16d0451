"""
Tests for DOF labels and DOF sets.

Tests cover:
- (node, component) encoding and decoding
- Legacy float labels
- Ordered DOF sets and lookups
"""
import numpy as np
import pytest

from BeamROM.Errors import ModelValidationError
from BeamROM.Model.Dof import (
    ALL_COMPONENTS,
    PLANAR_COMPONENTS,
    Component,
    DofLabel,
    DofSet,
)


@pytest.mark.unit
@pytest.mark.model
class TestDofLabel:
    """Tests for single DOF labels."""

    @pytest.mark.parametrize("component", [1, 2, 3, 4, 5, 6])
    def test_round_trip(self, component):
        for node in (1, 7, 99, 12345):
            label = DofLabel.encode(node, component)
            assert label.decode() == (node, component)
            assert DofLabel.from_key(label.key) == label

    def test_total_order(self):
        labels = [DofLabel.encode(2, 1), DofLabel.encode(1, 6), DofLabel.encode(1, 2)]
        assert sorted(labels) == [DofLabel.encode(1, 2), DofLabel.encode(1, 6), DofLabel.encode(2, 1)]

    def test_component_enum(self):
        label = DofLabel.encode(3, Component.RZ)
        assert label.component is Component.RZ
        assert str(label) == "3.06"

    def test_integer_valued_float_node(self):
        assert DofLabel.encode(4.0, 2) == DofLabel.encode(4, 2)

    @pytest.mark.parametrize("node, component", [(0, 1), (-3, 1), (1.5, 1), (1, 0), (1, 7), (True, 1)])
    def test_invalid(self, node, component):
        with pytest.raises(ModelValidationError):
            DofLabel.encode(node, component)

    def test_legacy_decoding_is_exact(self):
        """Labels like 7.06 decode by rounding, not by epsilon comparison."""
        assert DofLabel.from_legacy(7.06) == DofLabel.encode(7, 6)
        assert DofLabel.from_legacy(123456.02) == DofLabel.encode(123456, 2)
        assert DofLabel.from_legacy(0.01 + 5) == DofLabel.encode(5, 1)

    def test_legacy_encoding(self):
        assert DofLabel.encode(7, 6).to_legacy() == pytest.approx(7.06)


@pytest.mark.unit
@pytest.mark.model
class TestDofSet:
    """Tests for ordered DOF sets."""

    def test_from_nodes_sorted(self):
        dofs = DofSet.from_nodes([3, 1, 3], PLANAR_COMPONENTS)
        assert [label.decode() for label in dofs] == [(1, 1), (1, 2), (1, 6), (3, 1), (3, 2), (3, 6)]

    def test_index_and_find(self):
        dofs = DofSet.from_nodes([1, 2], PLANAR_COMPONENTS)
        assert dofs.index(2, Component.UY) == 4
        assert dofs.find(2, 3) is None
        with pytest.raises(KeyError):
            dofs.index(5, 1)

    def test_contains(self):
        dofs = DofSet.from_nodes([1], PLANAR_COMPONENTS)
        assert (1, 6) in dofs
        assert (1, 3) not in dofs
        assert "bogus" not in dofs

    def test_duplicates_rejected(self):
        with pytest.raises(ModelValidationError):
            DofSet([(1, 1), (2, 1), (1, 1)])

    def test_order_is_preserved(self):
        labels = [(5, 2), (1, 1), (3, 6)]
        dofs = DofSet(labels)
        assert [label.decode() for label in dofs] == labels
        assert dofs.records()[1] == (DofLabel.encode(1, 1), 1)

    def test_remove_components(self):
        dofs = DofSet.from_nodes([1, 2], ALL_COMPONENTS).remove_components((3, 4, 5))
        assert len(dofs) == 6
        assert all(label.component in PLANAR_COMPONENTS for label in dofs)

    def test_subset_and_without(self):
        dofs = DofSet.from_nodes([1, 2], PLANAR_COMPONENTS)
        assert dofs.subset([5, 0]).labels == (DofLabel.encode(2, 6), DofLabel.encode(1, 1))
        kept = dofs.without([(1, 2), (2, 2)])
        assert len(kept) == 4
        assert kept.find(2, 6) == 3

    def test_node_indices(self):
        dofs = DofSet([(4, 6), (4, 1)])
        assert dofs.node_indices(4) == [(Component.UX, 1), (Component.RZ, 0)]

    def test_nodes(self):
        dofs = DofSet([(4, 1), (2, 1), (4, 2)])
        assert dofs.nodes == (4, 2)

    def test_legacy_round_trip(self):
        dofs = DofSet.from_nodes([1, 10, 11], PLANAR_COMPONENTS)
        assert DofSet.from_legacy(dofs.to_legacy()) == dofs

    def test_to_array(self):
        dofs = DofSet.from_nodes([2], PLANAR_COMPONENTS)
        np.testing.assert_array_equal(dofs.to_array(), [[2, 1], [2, 2], [2, 6]])
        assert DofSet().to_array().shape == (0, 2)
