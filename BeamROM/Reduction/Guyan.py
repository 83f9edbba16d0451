"""
Guyan Static Condensation
=========================

Slave DOFs are eliminated assuming zero slave inertial force. With the
rows ordered masters first:

    [K_mm  K_ms] [u_m]   [f_m]
    [K_sm  K_ss] [u_s] = [ 0 ]

    u_s = -K_ss^-1 * K_sm * u_m = X * u_m

    T_G = [I; X],   K_G = T_G' * K * T_G,   M_G = T_G' * M * T_G

K_G is the exact static stiffness seen from the interface; M_G is an
approximation that degrades with frequency.
"""

import warnings
from dataclasses import dataclass

import numpy as np
import scipy.linalg as la  # Dense Linear Algebra
import scipy.sparse as sp  # Sparse Matrix Storage
import scipy.sparse.linalg as spla  # Sparse Linear Algebra

from BeamROM.Errors import IllConditionedWarning
from BeamROM.Reduction.Numerics import ReductionConstants, reciprocal_condition, to_dense
from BeamROM.Reduction.Partition import MatrixBlocks


@dataclass(frozen=True)
class GuyanResult:
    """
    Attributes
    ----------
    T_G : ndarray (n_master + n_slave, n_master)
        Static transformation, rows in partitioned order (masters first).
    K_G, M_G : ndarray (n_master, n_master)
    static_modes : ndarray (n_slave, n_master)
        Slave recovery block X = -K_ss^-1 * K_sm.
    rcond_Kss : float
        Reciprocal condition estimate of K_ss.
    used_pseudo_inverse : bool
    """
    T_G: np.ndarray
    K_G: np.ndarray
    M_G: np.ndarray
    static_modes: np.ndarray
    rcond_Kss: float
    used_pseudo_inverse: bool


def project(A_mm, A_ms, A_sm, A_ss, T_m, T_s) -> np.ndarray:
    """
    T' * A * T for a partitioned matrix A and T = [T_m; T_s].

    Blocks may be dense or sparse; the result is dense.
    """
    AT_m = np.asarray(A_mm @ T_m) + np.asarray(A_ms @ T_s)
    AT_s = np.asarray(A_sm @ T_m) + np.asarray(A_ss @ T_s)
    return T_m.T @ AT_m + T_s.T @ AT_s


def static_modes(Kss, Ksm, rcond_threshold: float = None):
    """
    Solve K_ss * X = -K_sm.

    Falls back to the pseudo-inverse when the reciprocal condition number
    of K_ss is below ``rcond_threshold``.

    Returns:
        (X, rcond, used_pseudo_inverse)
    """
    rcond_threshold = ReductionConstants.RCOND_THRESHOLD if rcond_threshold is None else rcond_threshold
    rcond = reciprocal_condition(Kss)

    if rcond < rcond_threshold:
        warnings.warn(f"Kss is ill-conditioned (rcond = {rcond:.2e}); using pseudo-inverse",
                      IllConditionedWarning, stacklevel=3)
        X = -la.pinv(to_dense(Kss)) @ to_dense(Ksm)
        return X, rcond, True

    if sp.issparse(Kss):
        X = -spla.spsolve(sp.csc_matrix(Kss), to_dense(Ksm))
        X = np.asarray(X).reshape(Kss.shape[0], -1)
    else:
        X = -la.solve(Kss, Ksm)
    return X, rcond, False


def guyan_condensation(blocks: MatrixBlocks, rcond_threshold: float = None) -> GuyanResult:
    """
    Static condensation of a partitioned K/M pair.

    Args:
        blocks: Master/slave blocks from ``partition_matrices``
        rcond_threshold: Pseudo-inverse switch for K_ss

    Returns:
        GuyanResult
    """
    n_m = blocks.Kmm.shape[0]
    X, rcond, used_pinv = static_modes(blocks.Kss, blocks.Ksm, rcond_threshold)

    I_m = np.eye(n_m)
    T_G = np.vstack([I_m, X])
    K_G = project(blocks.Kmm, blocks.Kms, blocks.Ksm, blocks.Kss, I_m, X)
    M_G = project(blocks.Mmm, blocks.Mms, blocks.Msm, blocks.Mss, I_m, X)

    return GuyanResult(T_G=T_G, K_G=K_G, M_G=M_G, static_modes=X,
                       rcond_Kss=rcond, used_pseudo_inverse=used_pinv)
