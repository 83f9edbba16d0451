"""
BeamROM Assembly

Global K/M assembly of 2D beam models and equality-constraint elimination.
"""

from .Assembler import DEFAULT_REMOVED_COMPONENTS, AssembledSystem, assemble_system, matrix_properties
from .Constraints import ConstraintElimination

__all__ = [
    'assemble_system',
    'AssembledSystem',
    'matrix_properties',
    'DEFAULT_REMOVED_COMPONENTS',
    'ConstraintElimination',
]
