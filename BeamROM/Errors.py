"""
Exceptions and warning categories used across BeamROM.

Fatal problems are raised as exceptions. Numerical or topological
degradations that the pipeline can absorb are reported with
``warnings.warn`` using one of the ``ReductionWarning`` subclasses below,
so callers can filter them or turn them into errors with
``warnings.simplefilter("error", ReductionWarning)``.
"""


# =============================================================================
# EXCEPTIONS
# =============================================================================

class ModelValidationError(ValueError):
    """Raised when the model tables are malformed or inconsistent.

    This typically indicates:
    - Duplicate IDs in a node, element, section, material or joint table
    - Dangling references (element pointing to an undefined node/section/...)
    - Non-positive or non-finite physical properties
    - Unsupported element or joint types
    - Matrices whose shape or symmetry does not match the DOF set
    """
    pass


class PartitionError(RuntimeError):
    """Raised when the master/slave split cannot support a reduction.

    This typically indicates:
    - No interface DOF found in the DOF set (empty master set)
    - Every DOF declared as interface (empty slave set)
    - Interface node ID missing from the node table
    """
    pass


# =============================================================================
# WARNINGS
# =============================================================================

class ReductionWarning(UserWarning):
    """Base class for non-fatal BeamROM warnings."""
    pass


class TopologyWarning(ReductionWarning):
    """Vacuous revolute joints, redundant constraints."""
    pass


class InterfaceWarning(ReductionWarning):
    """Interface node skipped (or only partially kept) during partitioning."""
    pass


class IllConditionedWarning(ReductionWarning):
    """Kss or Mss ill-conditioned; pseudo-inverse or regularization used."""
    pass


class EigenSolverWarning(ReductionWarning):
    """Fixed-interface eigensolve failed; reduction continues Guyan-only."""
    pass


class SymmetryWarning(ReductionWarning):
    """Partitioned blocks drift from symmetry beyond tolerance."""
    pass


class MatrixPropertyWarning(ReductionWarning):
    """Assembled K or M is not positive definite."""
    pass
