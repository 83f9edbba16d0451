import warnings

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla

from BeamROM.Errors import SymmetryWarning


class ReductionConstants:
    """Numerical policy of the reduction pipeline.

    These can be overridden by passing explicit values to the stage functions.
    """
    RCOND_THRESHOLD = 1e-12        # Kss / Mss treated as singular below this
    MASS_REGULARIZATION = 1e-10    # Identity multiple added to an ill-conditioned Mss
    SYMMETRY_TOLERANCE = 1e-10     # Relative Frobenius tolerance
    AUTO_MODE_FRACTION = 0.1       # Default mode count as a fraction of slave DOFs
    AUTO_MODE_MIN = 1
    AUTO_MODE_MAX = 20
    PROPERTY_EIG_LIMIT = 500       # Eigenvalue checks on assembled matrices below this size
    PROPERTY_COND_LIMIT = 1000     # Condition numbers on assembled matrices below this size


def to_dense(A) -> np.ndarray:
    if sp.issparse(A):
        return A.toarray()
    return np.asarray(A, dtype=float)


def frobenius_norm(A) -> float:
    if sp.issparse(A):
        return float(spla.norm(A, "fro"))
    return float(np.linalg.norm(A, "fro"))


def reciprocal_condition(A) -> float:
    """
    Reciprocal 1-norm condition number of a square matrix.

    Exact for dense input. Sparse input uses a sparse LU factorization and the
    Hager/Higham 1-norm estimator on A and A^-1. Singular matrices give 0.
    """
    n = A.shape[0]
    if n == 0:
        return 1.0

    if sp.issparse(A):
        A = sp.csc_matrix(A, dtype=float)
        try:
            lu = spla.splu(A)
        except RuntimeError:
            return 0.0
        inv = spla.LinearOperator(
            (n, n),
            matvec=lu.solve,
            rmatvec=lambda x: lu.solve(x, trans="T"),
            dtype=float,
        )
        norm_A = spla.onenormest(A)
        norm_inv = spla.onenormest(inv)
        if norm_A == 0 or not np.isfinite(norm_inv) or norm_inv == 0:
            return 0.0
        return float(1.0 / (norm_A * norm_inv))

    with np.errstate(all="ignore"):
        cond = np.linalg.cond(np.asarray(A, dtype=float), 1)
    if not np.isfinite(cond) or cond == 0:
        return 0.0
    return float(1.0 / cond)


def relative_symmetry_error(A) -> float:
    """``||A - A^T||_F / ||A||_F`` (0 for a zero matrix)."""
    norm = frobenius_norm(A)
    if norm == 0:
        return 0.0
    return frobenius_norm(A - A.T) / norm


def relative_difference(A, B) -> float:
    """``||A - B||_F / max(||A||_F, ||B||_F)`` (0 when both vanish)."""
    norm = max(frobenius_norm(A), frobenius_norm(B))
    if norm == 0:
        return 0.0
    return frobenius_norm(A - B) / norm


def check_symmetric(A, name: str, tol: float = None) -> bool:
    """Warn (SymmetryWarning) if ``A`` is not symmetric to ``tol``."""
    tol = ReductionConstants.SYMMETRY_TOLERANCE if tol is None else tol
    err = relative_symmetry_error(A)
    if err > tol:
        warnings.warn(f"{name} is not symmetric (relative error {err:.2e} > {tol:.0e})",
                      SymmetryWarning, stacklevel=3)
        return False
    return True
