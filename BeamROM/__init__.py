"""
BeamROM - Reduced-order models of 2D beam frames

Reduces a planar beam FE model with pin (revolute) joints to its interface
DOFs plus a few fixed-interface vibration modes (Craig-Bampton), for use as
a flexible body in a multibody simulation.

Pipeline
--------
create_model : Raw tables -> FEMModel (validation, revolute node duplication)
assemble_system : FEMModel -> AssembledSystem (K, M, DOF set, constraint elimination)
craig_bampton_reduction : AssembledSystem -> ReducedModel
save_reduced_model : ReducedModel -> HDF5

Quick Start
-----------
>>> from BeamROM import create_model, assemble_system, craig_bampton_reduction
>>>
>>> model = create_model(nodes, elements, {1: 'beam'}, sections, materials,
...                      joints=[(1, 4, 'revolute')])
>>> system = assemble_system(model)
>>> reduced = craig_bampton_reduction(system, model, interface_nodes=[1, 7], num_modes=10)
>>> print(reduced.summary())

Non-fatal numerical problems are reported with ``warnings.warn`` using
subclasses of ``ReductionWarning``.
"""

__version__ = '1.0.0'

from BeamROM.Errors import (
    EigenSolverWarning,
    IllConditionedWarning,
    InterfaceWarning,
    MatrixPropertyWarning,
    ModelValidationError,
    PartitionError,
    ReductionWarning,
    SymmetryWarning,
    TopologyWarning,
)
from BeamROM.Model import DofLabel, DofSet, FEMModel, create_model
from BeamROM.Assembly import AssembledSystem, assemble_system
from BeamROM.Reduction import (
    ModalStatus,
    ReducedModel,
    ReductionConstants,
    craig_bampton_reduction,
    load_reduced_arrays,
    save_reduced_model,
)

__all__ = [
    '__version__',

    # Pipeline
    'create_model',
    'assemble_system',
    'craig_bampton_reduction',
    'save_reduced_model',
    'load_reduced_arrays',

    # Data
    'FEMModel',
    'AssembledSystem',
    'ReducedModel',
    'ModalStatus',
    'DofLabel',
    'DofSet',
    'ReductionConstants',

    # Exceptions
    'ModelValidationError',
    'PartitionError',

    # Warnings
    'ReductionWarning',
    'TopologyWarning',
    'InterfaceWarning',
    'IllConditionedWarning',
    'EigenSolverWarning',
    'SymmetryWarning',
    'MatrixPropertyWarning',
]
