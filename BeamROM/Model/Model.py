"""
FE model container and its constructor.

``create_model`` validates the raw tables, checks every cross-table
reference, runs the revolute joint preprocessing and freezes the result
in a ``FEMModel``. Nothing downstream re-validates the tables.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

import numpy as np

from BeamROM.Errors import ModelValidationError
from BeamROM.Model.Revolute import process_revolute_joints
from BeamROM.Model.Tables import (
    Element, ElementType, EqualityConstraint, Material, Node, RevoluteJoint, Section,
    elements_table, nodes_table, parse_elements, parse_joints, parse_materials, parse_nodes,
    parse_sections, parse_types,
)


@dataclass(frozen=True)
class ModelInfo:
    """Bookkeeping about the preprocessing, mirrored in the exported bundle."""
    n_nodes: int
    n_nodes_original: int
    n_elements: int
    n_types: int
    n_sections: int
    n_materials: int
    n_revolute_joints: int
    revolute_nodes: Tuple[int, ...]
    duplicate_nodes: frozenset
    duplicate_map: Dict[int, int] = field(hash=False, compare=False)
    skipped_joints: Tuple[int, ...] = ()


@dataclass(frozen=True)
class FEMModel:
    """
    Processed FE model.

    Attributes
    ----------
    nodes, elements : tuple
        Tables after revolute duplication.
    types, sections, materials : tuple
        Property tables, unchanged.
    constraints : tuple of EqualityConstraint
        Ux/Uy ties generated by the revolute joints.
    original_nodes, original_elements, joints : tuple
        Validated input tables before duplication.
    info : ModelInfo
    """
    nodes: Tuple[Node, ...]
    elements: Tuple[Element, ...]
    types: Tuple[ElementType, ...]
    sections: Tuple[Section, ...]
    materials: Tuple[Material, ...]
    constraints: Tuple[EqualityConstraint, ...]
    original_nodes: Tuple[Node, ...]
    original_elements: Tuple[Element, ...]
    joints: Tuple[RevoluteJoint, ...]
    info: ModelInfo
    _index: Dict[str, Dict[int, object]] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_index", {
            "nodes": {n.id: n for n in self.nodes},
            "types": {t.id: t for t in self.types},
            "sections": {s.id: s for s in self.sections},
            "materials": {m.id: m for m in self.materials},
        })

    def node(self, node_id: int) -> Node:
        try:
            return self._index["nodes"][node_id]
        except KeyError:
            raise KeyError(f"Node {node_id} not in model") from None

    def node_coordinates(self) -> Dict[int, np.ndarray]:
        return {n.id: n.coords for n in self.nodes}

    def type_of(self, elem: Element) -> ElementType:
        return self._index["types"][elem.type_id]

    def section_of(self, elem: Element) -> Section:
        return self._index["sections"][elem.section_id]

    def material_of(self, elem: Element) -> Material:
        return self._index["materials"][elem.material_id]

    def nodes_table(self) -> np.ndarray:
        return nodes_table(self.nodes)

    def elements_table(self) -> np.ndarray:
        return elements_table(self.elements)


def _check_references(nodes, elements, types, sections, materials, joints):
    node_ids = {n.id for n in nodes}
    type_ids = {t.id for t in types}
    section_ids = {s.id for s in sections}
    material_ids = {m.id for m in materials}

    for elem in elements:
        if elem.type_id not in type_ids:
            raise ModelValidationError(f"Element {elem.id}: type {elem.type_id} is not defined")
        if elem.section_id not in section_ids:
            raise ModelValidationError(f"Element {elem.id}: section {elem.section_id} is not defined")
        if elem.material_id not in material_ids:
            raise ModelValidationError(f"Element {elem.id}: material {elem.material_id} is not defined")
        for n in elem.connected_nodes:
            if n not in node_ids:
                raise ModelValidationError(f"Element {elem.id}: node {n} is not defined")

    for joint in joints:
        if joint.node_id not in node_ids:
            raise ModelValidationError(f"Joint {joint.id}: node {joint.node_id} is not defined")


def create_model(nodes, elements, types, sections, materials, joints=None,
                 verbose: bool = False) -> FEMModel:
    """
    Build a processed FE model from raw tables.

    Args:
        nodes: ``[NodID X Y Z]`` rows or Node records
        elements: ``[EltID TypID SecID MatID n1 n2 n3]`` rows or Element records
        types: ``{TypID: name}`` or ``[(TypID, name), ...]``
        sections: ``[SecID A ky kz Ixx Iyy Izz yt yb zt zb]`` rows
        materials: ``[MatID E nu rho]`` rows
        joints: ``[(JointID, NodeID, 'revolute'), ...]`` or None
        verbose: Print a preprocessing summary

    Returns:
        FEMModel

    Raises:
        ModelValidationError: On any malformed table or dangling reference.
    """
    node_records = parse_nodes(nodes)
    element_records = parse_elements(elements)
    type_records = parse_types(types)
    section_records = parse_sections(sections)
    material_records = parse_materials(materials)
    joint_records = parse_joints(joints)

    _check_references(node_records, element_records, type_records, section_records,
                      material_records, joint_records)

    if verbose:
        print(f"Model: {len(node_records)} nodes, {len(element_records)} elements, "
              f"{len(joint_records)} revolute joint(s)")

    revolute = process_revolute_joints(node_records, element_records, joint_records, verbose=verbose)

    info = ModelInfo(
        n_nodes=len(revolute.nodes),
        n_nodes_original=len(node_records),
        n_elements=len(revolute.elements),
        n_types=len(type_records),
        n_sections=len(section_records),
        n_materials=len(material_records),
        n_revolute_joints=len(joint_records),
        revolute_nodes=tuple(j.node_id for j in joint_records),
        duplicate_nodes=frozenset(dup for dup, _ in revolute.duplicates),
        duplicate_map=revolute.duplicate_map,
        skipped_joints=revolute.skipped_joints,
    )

    if verbose and revolute.duplicates:
        print(f"  {len(revolute.duplicates)} duplicate node(s), "
              f"{len(revolute.constraints)} equality constraint(s)")

    return FEMModel(
        nodes=revolute.nodes,
        elements=revolute.elements,
        types=type_records,
        sections=section_records,
        materials=material_records,
        constraints=revolute.constraints,
        original_nodes=node_records,
        original_elements=element_records,
        joints=joint_records,
        info=info,
    )
