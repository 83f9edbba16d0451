"""
BeamROM Model

Typed FE model tables, DOF labels and the revolute joint preprocessing.

Model
-----
create_model : Validate raw tables and run the joint preprocessing
FEMModel : Processed, immutable model

Tables
------
Node, Element, ElementType, Section, Material, RevoluteJoint : Table records
EqualityConstraint : Linear constraint ``0 = sum(c_i * u_i)``

DOF labels
----------
Component : Component codes 1..6 (Ux, Uy, Uz, Rx, Ry, Rz)
DofLabel : Exact (node, component) key
DofSet : Ordered DOF labels paired with matrix positions

Elements
--------
Beam2D : 2-node planar beam (Timoshenko-corrected stiffness, consistent mass)
"""

from .Beam2D import Beam2D
from .Dof import (
    ALL_COMPONENTS,
    OUT_OF_PLANE_COMPONENTS,
    PLANAR_COMPONENTS,
    Component,
    DofLabel,
    DofSet,
)
from .Model import FEMModel, ModelInfo, create_model
from .Revolute import NodeIdAllocator, RevoluteResult, process_revolute_joints
from .Tables import (
    Element,
    ElementType,
    EqualityConstraint,
    Material,
    Node,
    RevoluteJoint,
    Section,
)

__all__ = [
    'create_model',
    'FEMModel',
    'ModelInfo',

    'Node',
    'Element',
    'ElementType',
    'Section',
    'Material',
    'RevoluteJoint',
    'EqualityConstraint',

    'Component',
    'DofLabel',
    'DofSet',
    'ALL_COMPONENTS',
    'PLANAR_COMPONENTS',
    'OUT_OF_PLANE_COMPONENTS',

    'process_revolute_joints',
    'RevoluteResult',
    'NodeIdAllocator',

    'Beam2D',
]
