import warnings
from dataclasses import dataclass
from enum import Enum

import numpy as np
import scipy.linalg as la
import scipy.sparse as sp
import scipy.sparse.linalg as spla

from BeamROM.Errors import EigenSolverWarning, IllConditionedWarning, ModelValidationError
from BeamROM.Reduction.Numerics import ReductionConstants, reciprocal_condition, to_dense


class ModalStatus(Enum):
    """Outcome of the fixed-interface eigensolve."""
    CONVERGED = "converged"
    NOT_REQUESTED = "not_requested"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class ModalResult:
    """
    Fixed-interface modes, sorted by ascending eigenvalue.

    ``mode_shapes`` is (n_slave, n_modes) and mass-normalized. A DEGRADED
    result carries no modes and the solver error in ``message``.
    """
    eigenvalues: np.ndarray
    mode_shapes: np.ndarray
    frequencies: np.ndarray
    num_requested: int
    status: ModalStatus
    message: str = ""
    mass_regularized: bool = False

    @property
    def n_modes(self) -> int:
        return self.mode_shapes.shape[1]

    @property
    def converged(self) -> bool:
        return self.status is ModalStatus.CONVERGED


def default_mode_count(n_slave: int, fraction: float = None, minimum: int = None, maximum: int = None) -> int:
    """10% of the slave DOFs (rounded half up), at least 1 and at most 20."""
    fraction = ReductionConstants.AUTO_MODE_FRACTION if fraction is None else fraction
    minimum = ReductionConstants.AUTO_MODE_MIN if minimum is None else minimum
    maximum = ReductionConstants.AUTO_MODE_MAX if maximum is None else maximum
    count = min(int(np.floor(fraction * n_slave + 0.5)), maximum)
    return max(count, minimum)


def natural_frequencies(eigenvalues) -> np.ndarray:
    """f = sqrt(|lambda|) / (2 pi) [Hz]; tiny negative eigenvalues are accepted."""
    return np.sqrt(np.abs(np.asarray(eigenvalues, dtype=float))) / (2 * np.pi)


def _empty(n_slave, num_requested, status, message="", mass_regularized=False):
    return ModalResult(
        eigenvalues=np.zeros(0),
        mode_shapes=np.zeros((n_slave, 0)),
        frequencies=np.zeros(0),
        num_requested=num_requested,
        status=status,
        message=message,
        mass_regularized=mass_regularized,
    )


def fixed_interface_modes(Kss, Mss, num_modes=None, rcond_threshold: float = None,
                          mass_regularization: float = None, verbose: bool = False) -> ModalResult:
    """
    Solve K_ss * phi = lambda * M_ss * phi for the smallest eigenpairs.

    Args:
        Kss, Mss: Slave blocks (dense or sparse)
        num_modes: Requested mode count; None selects ``default_mode_count``.
            Clamped to the slave DOF count.
        rcond_threshold: M_ss regularization switch
        mass_regularization: Identity multiple added to an ill-conditioned M_ss
        verbose: Print the mode count and frequency range

    Returns:
        ModalResult. A failed eigensolve gives a DEGRADED result with no
        modes and an EigenSolverWarning instead of an exception.
    """
    rcond_threshold = ReductionConstants.RCOND_THRESHOLD if rcond_threshold is None else rcond_threshold
    mass_regularization = (ReductionConstants.MASS_REGULARIZATION
                           if mass_regularization is None else mass_regularization)
    n_s = Kss.shape[0]

    if num_modes is None:
        num_modes = default_mode_count(n_s)
        if verbose:
            print(f"Number of modes selected automatically: {num_modes}")
    elif isinstance(num_modes, (bool, np.bool_)) or not isinstance(num_modes, (int, np.integer)) or num_modes < 0:
        raise ModelValidationError(f"num_modes must be a non-negative integer or None, got {num_modes!r}")

    num_requested = int(num_modes)
    k = min(num_requested, n_s)
    if k == 0:
        return _empty(n_s, num_requested, ModalStatus.NOT_REQUESTED)

    regularized = False
    rcond_M = reciprocal_condition(Mss)
    if rcond_M < rcond_threshold:
        warnings.warn(f"Mss is ill-conditioned (rcond = {rcond_M:.2e}); adding {mass_regularization:.0e}*I",
                      IllConditionedWarning, stacklevel=2)
        if sp.issparse(Mss):
            Mss = Mss + mass_regularization * sp.identity(n_s, format="csc")
        else:
            Mss = Mss + mass_regularization * np.eye(n_s)
        regularized = True

    try:
        if sp.issparse(Kss) and k < n_s - 1:
            # Shift-invert around 0 returns the smallest-magnitude eigenvalues
            eig_vals, eig_modes = spla.eigsh(sp.csc_matrix(Kss), k, sp.csc_matrix(Mss), sigma=0, which="LM")
        else:
            eig_vals, eig_modes = la.eigh(to_dense(Kss), to_dense(Mss), subset_by_index=[0, k - 1])
    except (la.LinAlgError, spla.ArpackNoConvergence, spla.ArpackError, ValueError, RuntimeError) as err:
        warnings.warn(f"Eigenvalue computation failed ({err}); continuing with Guyan condensation only",
                      EigenSolverWarning, stacklevel=2)
        if verbose:
            print("Using Guyan condensation only (no fixed-interface modes)")
        return _empty(n_s, num_requested, ModalStatus.DEGRADED, message=str(err), mass_regularized=regularized)

    order = np.argsort(eig_vals)
    eig_vals = eig_vals[order]
    eig_modes = eig_modes[:, order]
    freqs = natural_frequencies(eig_vals)

    if verbose:
        print(f"{k} modes computed")
        if len(freqs) <= 5:
            print("Frequencies (Hz): " + ", ".join(f"{f:.3g}" for f in freqs))
        else:
            print(f"Frequencies (Hz): {freqs[0]:.3g}, {freqs[1]:.3g}, {freqs[2]:.3g} ... {freqs[-1]:.3g}")

    return ModalResult(
        eigenvalues=eig_vals,
        mode_shapes=eig_modes,
        frequencies=freqs,
        num_requested=num_requested,
        status=ModalStatus.CONVERGED,
        mass_regularized=regularized,
    )
