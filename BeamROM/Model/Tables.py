"""
Model tables: typed records for the raw FE model input.

Raw tables use the column layouts of the assembly collaborator:

    Nodes      [NodID X Y Z]
    Elements   [EltID TypID SecID MatID n1 n2 n3]      (0 = empty slot)
    Types      {TypID: name}  or  [(TypID, name), ...]
    Sections   [SecID A ky kz Ixx Iyy Izz yt yb zt zb]  (ky, kz may be inf)
    Materials  [MatID E nu rho]
    Joints     [(JointID, NodeID, 'revolute'), ...]

Each record validates itself on construction; the ``parse_*`` helpers
convert whole tables and check ID uniqueness. Cross-table references are
checked in ``BeamROM.Model.Model.create_model``.
"""

import math
from dataclasses import dataclass, replace
from typing import Iterable, Tuple

import numpy as np

from BeamROM.Errors import ModelValidationError
from BeamROM.Model.Dof import DofLabel

MAX_ELEMENT_NODES = 3


def _as_id(value, what: str) -> int:
    """Convert a table entry to a positive integer ID."""
    if isinstance(value, (bool, np.bool_)):
        raise ModelValidationError(f"{what} must be a positive integer, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ModelValidationError(f"{what} must be a positive integer, got {value!r}") from None
    if not math.isfinite(number) or not number.is_integer() or number <= 0:
        raise ModelValidationError(f"{what} must be a positive integer, got {value!r}")
    return int(number)


def _as_float(value, what: str, allow_inf: bool = False) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ModelValidationError(f"{what} must be a number, got {value!r}") from None
    if math.isnan(number) or (math.isinf(number) and not (allow_inf and number > 0)):
        raise ModelValidationError(f"{what} must be finite, got {value!r}")
    return number


def _check_unique(ids, what: str):
    seen = set()
    for i in ids:
        if i in seen:
            raise ModelValidationError(f"Duplicate {what} ID {i}")
        seen.add(i)


def _rows(table, n_cols: int, what: str):
    """Rows of a 2D table after checking its column count."""
    rows = list(table)
    if not rows:
        raise ModelValidationError(f"At least one {what} must be defined")
    for row in rows:
        if len(row) != n_cols:
            raise ModelValidationError(
                f"{what.capitalize()} table must have exactly {n_cols} columns, got row {list(row)}")
    return rows


# =============================================================================
# Records
# =============================================================================

@dataclass(frozen=True)
class Node:
    """Node with a positive integer ID and 3D coordinates."""
    id: int
    x: float
    y: float
    z: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "id", _as_id(self.id, "Node ID"))
        for axis in ("x", "y", "z"):
            object.__setattr__(self, axis, _as_float(getattr(self, axis), f"Node {self.id} coordinate {axis}"))

    @property
    def coords(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    def duplicate(self, new_id: int) -> "Node":
        """Copy of this node at the same position with another ID."""
        return replace(self, id=new_id)


@dataclass(frozen=True)
class Element:
    """
    Element record referencing up to three nodes.

    For beams the first two slots are the end nodes and the third
    slot, when used, is an orientation reference node.
    """
    id: int
    type_id: int
    section_id: int
    material_id: int
    nodes: Tuple[int, ...]

    def __post_init__(self):
        object.__setattr__(self, "id", _as_id(self.id, "Element ID"))
        for attr, what in (("type_id", "type"), ("section_id", "section"), ("material_id", "material")):
            object.__setattr__(self, attr, _as_id(getattr(self, attr), f"Element {self.id}: {what} ID"))

        slots = list(self.nodes)
        if len(slots) > MAX_ELEMENT_NODES:
            raise ModelValidationError(
                f"Element {self.id}: at most {MAX_ELEMENT_NODES} node slots, got {len(slots)}")
        slots += [0] * (MAX_ELEMENT_NODES - len(slots))
        clean = []
        for n in slots:
            clean.append(0 if float(n) == 0 else _as_id(n, f"Element {self.id}: node ID"))
        if sum(1 for n in clean if n != 0) < 2:
            raise ModelValidationError(f"Element {self.id}: must reference at least 2 nodes")
        object.__setattr__(self, "nodes", tuple(clean))

    @property
    def connected_nodes(self) -> Tuple[int, ...]:
        """Non-zero node slots."""
        return tuple(n for n in self.nodes if n != 0)

    @property
    def end_nodes(self) -> Tuple[int, int]:
        """The two end nodes of a beam element (first two slots)."""
        n1, n2 = self.nodes[0], self.nodes[1]
        if n1 == 0 or n2 == 0:
            raise ModelValidationError(f"Element {self.id}: beam end nodes must occupy the first two node slots")
        return n1, n2

    def references(self, node_id: int) -> bool:
        """True if any non-empty slot holds ``node_id``."""
        return node_id in self.connected_nodes

    def connects(self, node_id: int) -> bool:
        """True if ``node_id`` is one of the two end slots (not the orientation slot)."""
        return node_id != 0 and node_id in self.nodes[:2]

    def replace_node(self, old: int, new: int) -> "Element":
        """Copy of the element with every occurrence of ``old`` rewritten to ``new``."""
        return replace(self, nodes=tuple(new if n == old else n for n in self.nodes))

    def as_row(self):
        return [self.id, self.type_id, self.section_id, self.material_id, *self.nodes]


@dataclass(frozen=True)
class ElementType:
    id: int
    name: str

    def __post_init__(self):
        object.__setattr__(self, "id", _as_id(self.id, "Element type ID"))
        if not isinstance(self.name, str) or not self.name.strip():
            raise ModelValidationError(f"Element type {self.id}: name must be a non-empty string")


@dataclass(frozen=True)
class Section:
    """
    Cross-section properties.

    Attributes:
        A: Area [m²]
        ky, kz: Shear area factors (inf = no shear deformation)
        Ixx, Iyy, Izz: Torsion and bending inertias [m⁴]; Izz drives in-plane bending
        yt, yb, zt, zb: Extreme-fiber distances [m]
    """
    id: int
    A: float
    ky: float = math.inf
    kz: float = math.inf
    Ixx: float = 0.0
    Iyy: float = 0.0
    Izz: float = 0.0
    yt: float = 0.0
    yb: float = 0.0
    zt: float = 0.0
    zb: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "id", _as_id(self.id, "Section ID"))
        for name in ("A", "Ixx", "Iyy", "Izz", "yt", "yb", "zt", "zb"):
            object.__setattr__(self, name, _as_float(getattr(self, name), f"Section {self.id}: {name}"))
        for name in ("ky", "kz"):
            object.__setattr__(self, name,
                               _as_float(getattr(self, name), f"Section {self.id}: {name}", allow_inf=True))
        if self.A <= 0:
            raise ModelValidationError(f"Section {self.id}: area must be positive, got {self.A}")
        if self.Izz < 0:
            raise ModelValidationError(f"Section {self.id}: moment of inertia cannot be negative")
        if self.ky <= 0 or self.kz <= 0:
            raise ModelValidationError(f"Section {self.id}: shear factors must be positive")


@dataclass(frozen=True)
class Material:
    """Linear elastic material: Young's modulus E, Poisson ratio nu, density rho."""
    id: int
    E: float
    nu: float
    rho: float

    def __post_init__(self):
        object.__setattr__(self, "id", _as_id(self.id, "Material ID"))
        for name in ("E", "nu", "rho"):
            object.__setattr__(self, name, _as_float(getattr(self, name), f"Material {self.id}: {name}"))
        if self.E <= 0:
            raise ModelValidationError(f"Material {self.id}: Young's modulus must be positive")
        if not -1.0 < self.nu < 0.5:
            raise ModelValidationError(f"Material {self.id}: Poisson ratio must lie in (-1, 0.5)")
        if self.rho <= 0:
            raise ModelValidationError(f"Material {self.id}: density must be positive")

    @property
    def G(self) -> float:
        return self.E / (2 * (1 + self.nu))


@dataclass(frozen=True)
class RevoluteJoint:
    """Pin joint declared on one physical node."""
    id: int
    node_id: int
    kind: str = "revolute"

    def __post_init__(self):
        object.__setattr__(self, "id", _as_id(self.id, "Joint ID"))
        object.__setattr__(self, "node_id", _as_id(self.node_id, f"Joint {self.id}: node ID"))
        if not isinstance(self.kind, str) or self.kind.strip().lower() != "revolute":
            raise ModelValidationError(
                f"Joint {self.id}: only 'revolute' joints are supported, got {self.kind!r}")
        object.__setattr__(self, "kind", "revolute")


@dataclass(frozen=True)
class EqualityConstraint:
    """
    Linear equality ``rhs = sum(coeff * u_dof)``.

    Revolute ties are written ``0 = 1 * master - 1 * slave``, i.e. the
    record ``[0, 1, master, -1, slave]``.
    """
    terms: Tuple[Tuple[float, DofLabel], ...]
    rhs: float = 0.0

    def __post_init__(self):
        terms = tuple((float(c), DofLabel.encode(*dof)) for c, dof in self.terms)
        if not terms:
            raise ModelValidationError("Constraint must have at least one term")
        object.__setattr__(self, "terms", terms)
        object.__setattr__(self, "rhs", float(self.rhs))

    @classmethod
    def tie(cls, master: DofLabel, slave: DofLabel) -> "EqualityConstraint":
        """``slave = master``."""
        return cls(terms=((1.0, master), (-1.0, slave)))

    @property
    def dofs(self) -> Tuple[DofLabel, ...]:
        return tuple(dof for _, dof in self.terms)

    def as_record(self) -> list:
        """``[rhs, coeff1, dof1, coeff2, dof2, ...]``."""
        record = [self.rhs]
        for coeff, dof in self.terms:
            record.extend([coeff, dof])
        return record

    @classmethod
    def from_record(cls, record) -> "EqualityConstraint":
        record = list(record)
        if len(record) < 3 or (len(record) - 1) % 2:
            raise ModelValidationError(f"Malformed constraint record {record}")
        terms = []
        for coeff, dof in zip(record[1::2], record[2::2]):
            if not isinstance(dof, tuple):
                dof = DofLabel.from_legacy(dof)
            terms.append((coeff, dof))
        return cls(terms=tuple(terms), rhs=record[0])

    def __str__(self):
        body = " ".join(f"{c:+g}*{dof}" for c, dof in self.terms)
        return f"{self.rhs:g} = {body}"


# =============================================================================
# Table parsing
# =============================================================================

def _listify(table):
    """Rows of a table as a list (numpy arrays are iterated row by row)."""
    if table is None:
        return []
    return list(table)


def _is_records(rows, record_type) -> bool:
    return bool(rows) and all(isinstance(row, record_type) for row in rows)


def parse_nodes(table) -> Tuple[Node, ...]:
    rows = _listify(table)
    if _is_records(rows, Node):
        nodes = tuple(rows)
    else:
        nodes = tuple(Node(*row) for row in _rows(rows, 4, "node"))
    _check_unique([n.id for n in nodes], "node")
    return nodes


def parse_elements(table) -> Tuple[Element, ...]:
    rows = _listify(table)
    if _is_records(rows, Element):
        elements = tuple(rows)
    else:
        elements = tuple(Element(row[0], row[1], row[2], row[3], tuple(row[4:7]))
                         for row in _rows(rows, 7, "element"))
    _check_unique([e.id for e in elements], "element")
    return elements


def parse_types(table) -> Tuple[ElementType, ...]:
    if isinstance(table, dict):
        rows = list(table.items())
    else:
        rows = _listify(table)
    if _is_records(rows, ElementType):
        types = tuple(rows)
    else:
        types = tuple(ElementType(*row) for row in _rows(rows, 2, "element type"))
    _check_unique([t.id for t in types], "element type")
    return types


def parse_sections(table) -> Tuple[Section, ...]:
    rows = _listify(table)
    if _is_records(rows, Section):
        sections = tuple(rows)
    else:
        sections = tuple(Section(*row) for row in _rows(rows, 11, "section"))
    _check_unique([s.id for s in sections], "section")
    return sections


def parse_materials(table) -> Tuple[Material, ...]:
    rows = _listify(table)
    if _is_records(rows, Material):
        materials = tuple(rows)
    else:
        materials = tuple(Material(*row) for row in _rows(rows, 4, "material"))
    _check_unique([m.id for m in materials], "material")
    return materials


def parse_joints(table) -> Tuple[RevoluteJoint, ...]:
    """Joint table; ``None`` or an empty table means no joints."""
    rows = _listify(table)
    if not rows:
        return ()
    if _is_records(rows, RevoluteJoint):
        joints = tuple(rows)
    else:
        joints = tuple(RevoluteJoint(*row) for row in _rows(rows, 3, "joint"))
    _check_unique([j.id for j in joints], "joint")
    return joints


def nodes_table(nodes: Iterable[Node]) -> np.ndarray:
    """Back to a ``[NodID X Y Z]`` array."""
    return np.array([[n.id, n.x, n.y, n.z] for n in nodes], dtype=float).reshape(-1, 4)


def elements_table(elements: Iterable[Element]) -> np.ndarray:
    """Back to an ``[EltID TypID SecID MatID n1 n2 n3]`` array."""
    return np.array([e.as_row() for e in elements], dtype=int).reshape(-1, 7)
