"""
BeamROM Reduction

Model order reduction of an assembled K/M pair.

Stages
------
partition_dofs, partition_matrices : Master/slave split and block slicing
guyan_condensation : Static condensation (T_G, K_G, M_G)
fixed_interface_modes : Slave-block eigenmodes with Guyan-only fallback
craig_bampton_reduction : Full pipeline returning a ReducedModel

Persistence
-----------
save_reduced_model, load_reduced_arrays : HDF5 bundle

Configuration
-------------
ReductionConstants : Numerical thresholds (rcond, regularization, tolerances)
"""

from .CraigBampton import ReducedModel, craig_bampton_reduction
from .Export import load_reduced_arrays, save_reduced_model
from .Guyan import GuyanResult, guyan_condensation
from .Modal import ModalResult, ModalStatus, default_mode_count, fixed_interface_modes, natural_frequencies
from .Numerics import ReductionConstants, reciprocal_condition, relative_symmetry_error
from .Partition import MatrixBlocks, Partition, partition_dofs, partition_matrices

__all__ = [
    'craig_bampton_reduction',
    'ReducedModel',

    'partition_dofs',
    'partition_matrices',
    'Partition',
    'MatrixBlocks',

    'guyan_condensation',
    'GuyanResult',

    'fixed_interface_modes',
    'default_mode_count',
    'natural_frequencies',
    'ModalResult',
    'ModalStatus',

    'save_reduced_model',
    'load_reduced_arrays',

    'ReductionConstants',
    'reciprocal_condition',
    'relative_symmetry_error',
]
