"""
DOF Labels - Exact (node, component) keys for degrees of freedom
=================================================================

A degree of freedom is identified by the pair (node ID, component code)
with the component codes used by the assembly collaborator:

    1 = Ux   2 = Uy   3 = Uz   4 = Rx   5 = Ry   6 = Rz

For 2D beam models only Ux, Uy and Rz survive assembly.

The label is an integer pair, so lookup and equality are exact. The
legacy float encoding ``node + component / 100`` (e.g. ``7.06`` for Rz at
node 7) is only accepted at the boundary, through
``DofLabel.from_legacy``, and is decoded by rounding rather than by an
epsilon comparison.

The ``DofSet`` keeps the assembly order verbatim and pairs every label
with its matrix row/column position. Every matrix handled by BeamROM
travels together with the ``DofSet`` that indexes it.

Example:
    >>> dofs = DofSet.from_nodes([1, 2], PLANAR_COMPONENTS)
    >>> dofs.index(2, Component.UY)
    4
    >>> dofs[5]
    DofLabel(node=2, component=<Component.RZ: 6>)
"""

from enum import IntEnum
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from BeamROM.Errors import ModelValidationError


class Component(IntEnum):
    """Physical component code of a nodal DOF."""
    UX = 1
    UY = 2
    UZ = 3
    RX = 4
    RY = 5
    RZ = 6


ALL_COMPONENTS = tuple(Component)
PLANAR_COMPONENTS = (Component.UX, Component.UY, Component.RZ)  # 2D beam subset
OUT_OF_PLANE_COMPONENTS = (Component.UZ, Component.RX, Component.RY)


class DofLabel(NamedTuple):
    """Reversible, totally ordered key for one nodal DOF."""
    node: int
    component: Component

    @classmethod
    def encode(cls, node, component) -> "DofLabel":
        """Build a validated label from a node ID and a component code."""
        if isinstance(node, (bool, np.bool_)) or not isinstance(node, (int, np.integer)):
            if isinstance(node, (float, np.floating)) and float(node).is_integer():
                node = int(node)
            else:
                raise ModelValidationError(f"Node ID must be an integer, got {node!r}")
        if node <= 0:
            raise ModelValidationError(f"Node ID must be positive, got {node}")
        try:
            component = Component(int(component))
        except ValueError:
            raise ModelValidationError(
                f"Component code must be one of 1..6, got {component!r}") from None
        return cls(int(node), component)

    def decode(self) -> Tuple[int, int]:
        """Return the plain (node, component) pair."""
        return self.node, int(self.component)

    @property
    def key(self) -> int:
        """Composite integer key ``10 * node + component``."""
        return 10 * self.node + int(self.component)

    @classmethod
    def from_key(cls, key: int) -> "DofLabel":
        node, component = divmod(int(key), 10)
        return cls.encode(node, component)

    @classmethod
    def from_legacy(cls, value: float) -> "DofLabel":
        """Decode a float label such as ``7.06`` (node 7, Rz)."""
        value = float(value)
        node = int(np.floor(value))
        component = int(round((value - node) * 100))
        return cls.encode(node, component)

    def to_legacy(self) -> float:
        return self.node + int(self.component) / 100.0

    def __str__(self):
        return f"{self.node}.{int(self.component):02d}"


class DofSet:
    """
    Ordered, duplicate-free sequence of DOF labels.

    Position ``i`` in the set is row/column ``i`` of every matrix assembled
    on it. Instances are immutable; every filtering operation returns a new
    ``DofSet`` that preserves the relative order of the kept labels.

    Attributes
    ----------
    labels : tuple of DofLabel
        Labels in matrix order.
    """

    __slots__ = ("_labels", "_index")

    def __init__(self, labels: Iterable = ()):
        labels = tuple(DofLabel.encode(*label) for label in labels)
        index: Dict[DofLabel, int] = {}
        for i, label in enumerate(labels):
            if label in index:
                raise ModelValidationError(f"Duplicate DOF {label} in DOF set")
            index[label] = i
        self._labels = labels
        self._index = index

    @classmethod
    def from_nodes(cls, node_ids: Iterable[int], components: Sequence = ALL_COMPONENTS) -> "DofSet":
        """DOF set of the given components for every node, sorted by (node, component)."""
        comps = sorted(Component(int(c)) for c in components)
        return cls(DofLabel.encode(n, c) for n in sorted(set(node_ids)) for c in comps)

    @classmethod
    def from_legacy(cls, values: Iterable[float]) -> "DofSet":
        return cls(DofLabel.from_legacy(v) for v in values)

    # ------------------------------------------------------------------
    # Sequence protocol
    # ------------------------------------------------------------------
    @property
    def labels(self) -> Tuple[DofLabel, ...]:
        return self._labels

    def __len__(self):
        return len(self._labels)

    def __iter__(self) -> Iterator[DofLabel]:
        return iter(self._labels)

    def __getitem__(self, i):
        return self._labels[i]

    def __contains__(self, label):
        try:
            return DofLabel.encode(*label) in self._index
        except (ModelValidationError, TypeError):
            return False

    def __eq__(self, other):
        if not isinstance(other, DofSet):
            return NotImplemented
        return self._labels == other._labels

    def __hash__(self):
        return hash(self._labels)

    def __repr__(self):
        return f"DofSet({len(self)} DOFs, nodes={list(self.nodes)})"

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def index(self, node: int, component) -> int:
        """Matrix position of (node, component). Raises KeyError if absent."""
        label = DofLabel.encode(node, component)
        try:
            return self._index[label]
        except KeyError:
            raise KeyError(f"DOF {label} not in DOF set") from None

    def find(self, node: int, component) -> Optional[int]:
        """Matrix position of (node, component), or None if absent."""
        return self._index.get(DofLabel.encode(node, component))

    def node_indices(self, node: int, components: Sequence = PLANAR_COMPONENTS) -> List[Tuple[Component, int]]:
        """(component, position) pairs of a node, in the requested component order."""
        found = []
        for comp in components:
            i = self.find(node, comp)
            if i is not None:
                found.append((Component(int(comp)), i))
        return found

    @property
    def nodes(self) -> Tuple[int, ...]:
        """Node IDs in order of first appearance."""
        return tuple(dict.fromkeys(label.node for label in self._labels))

    def records(self) -> List[Tuple[DofLabel, int]]:
        """Explicit (label, position) records."""
        return [(label, i) for i, label in enumerate(self._labels)]

    # ------------------------------------------------------------------
    # Derived sets
    # ------------------------------------------------------------------
    def subset(self, indices: Iterable[int]) -> "DofSet":
        return DofSet(self._labels[i] for i in indices)

    def without(self, labels: Iterable) -> "DofSet":
        drop = {DofLabel.encode(*label) for label in labels}
        return DofSet(label for label in self._labels if label not in drop)

    def remove_components(self, components: Iterable) -> "DofSet":
        """Drop every DOF whose component code is listed (e.g. 3, 4, 5 for 2D)."""
        drop = {Component(int(c)) for c in components}
        return DofSet(label for label in self._labels if label.component not in drop)

    def to_legacy(self) -> np.ndarray:
        """Float labels (``node + component / 100``) for external tools."""
        return np.array([label.to_legacy() for label in self._labels], dtype=float)

    def to_array(self) -> np.ndarray:
        """(n, 2) integer array of (node, component) rows."""
        if not self._labels:
            return np.zeros((0, 2), dtype=int)
        return np.array([label.decode() for label in self._labels], dtype=int)
