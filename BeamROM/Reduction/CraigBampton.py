"""
Craig-Bampton Reduction
=======================

Guyan static modes are enriched with fixed-interface vibration modes:

    T_CB = [ I    0  ]      u_m = q_m
           [ X   phi ]      u_s = X q_m + phi eta

    K_CB = T_CB' * K * T_CB,   M_CB = T_CB' * M * T_CB

with X = -K_ss^-1 * K_sm and phi the lowest modes of (K_ss, M_ss). The
reduced coordinates are the interface DOFs (Ux, Uy, Rz per interface node,
in the requested node order) followed by the modal amplitudes.

Rows of every transformation returned here are in partitioned order
(master positions first, then slave positions, see ``row_order``).
``ReducedModel.T_in_assembly_order`` maps them back to the DOF set order.

Example:
    >>> model = create_model(nodes, elements, types, sections, materials, joints)
    >>> system = assemble_system(model)
    >>> reduced = craig_bampton_reduction(system, model, [1, 7], num_modes=10)
    >>> reduced.K_reduced.shape
    (16, 16)
"""

import time
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from BeamROM.Errors import ModelValidationError
from BeamROM.Model.Dof import DofSet
from BeamROM.Reduction.Guyan import guyan_condensation, project
from BeamROM.Reduction.Modal import ModalStatus, fixed_interface_modes
from BeamROM.Reduction.Numerics import ReductionConstants, relative_symmetry_error
from BeamROM.Reduction.Partition import partition_dofs, partition_matrices


@dataclass(frozen=True)
class ReducedModel:
    """
    Output bundle of a reduction.

    Attributes
    ----------
    K_reduced, M_reduced : ndarray (r, r)
    T : ndarray (n, r)
        Craig-Bampton transformation, rows in partitioned order.
    K_guyan, M_guyan : ndarray (n_master, n_master)
    T_guyan : ndarray (n, n_master)
        Guyan transformation, rows in partitioned order.
    master_indices, slave_indices : ndarray of int
        Positions in ``dofs``.
    dofs : DofSet
        DOF set of the full model.
    master_nodes : tuple of int
        Interface nodes as requested.
    interface_nodes : tuple of int
        Interface nodes that contributed master DOFs.
    interface_coords : ndarray (k, 3)
    num_modes : int
        Number of fixed-interface modes actually used.
    eigenvalues, frequencies : ndarray (num_modes,)
    mode_shapes : ndarray (n_slave, num_modes)
    modal_status : ModalStatus
    modal_message : str
    original_size, reduced_size : int
    reduction_ratio : float
        reduced_size / original_size
    method : str
    created : str
        Creation timestamp.
    """
    K_reduced: np.ndarray
    M_reduced: np.ndarray
    T: np.ndarray
    K_guyan: np.ndarray
    M_guyan: np.ndarray
    T_guyan: np.ndarray
    master_indices: np.ndarray
    slave_indices: np.ndarray
    dofs: DofSet
    master_nodes: Tuple[int, ...]
    interface_nodes: Tuple[int, ...]
    interface_coords: np.ndarray
    num_modes: int
    eigenvalues: np.ndarray
    frequencies: np.ndarray
    mode_shapes: np.ndarray
    modal_status: ModalStatus
    modal_message: str
    original_size: int
    reduced_size: int
    reduction_ratio: float
    method: str
    created: str

    @property
    def row_order(self) -> np.ndarray:
        """DOF positions of the rows of ``T``: masters, then slaves."""
        return np.concatenate([self.master_indices, self.slave_indices])

    @property
    def master_dofs(self) -> DofSet:
        return self.dofs.subset(self.master_indices)

    @property
    def slave_dofs(self) -> DofSet:
        return self.dofs.subset(self.slave_indices)

    @property
    def n_master(self) -> int:
        return len(self.master_indices)

    @property
    def degraded(self) -> bool:
        return self.modal_status is ModalStatus.DEGRADED

    def T_in_assembly_order(self, guyan: bool = False) -> np.ndarray:
        """Transformation with rows permuted back to the DOF set order."""
        T = self.T_guyan if guyan else self.T
        T_full = np.zeros_like(T)
        T_full[self.row_order] = T
        return T_full

    def expand(self, q) -> np.ndarray:
        """Full displacement vector (assembly order) from reduced coordinates."""
        q = np.asarray(q, dtype=float)
        if q.shape[0] != self.reduced_size:
            raise ValueError(f"Expected {self.reduced_size} reduced coordinates, got {q.shape[0]}")
        u = np.zeros((self.original_size,) + q.shape[1:])
        u[self.row_order] = self.T @ q
        return u

    def summary(self) -> str:
        lines = [
            "=== REDUCTION SUMMARY ===",
            f"Method: {self.method}",
            f"Original size: {self.original_size} DOFs",
            f"Reduced size: {self.reduced_size} DOFs",
            f"Reduction: {(1 - self.reduction_ratio) * 100:.1f}%",
            f"Interface nodes: {len(self.interface_nodes)}",
            f"Normal modes: {self.num_modes}",
        ]
        if self.num_modes:
            lines.append(f"Frequency range: {self.frequencies.min():.2f} - {self.frequencies.max():.2f} Hz")
        if self.degraded:
            lines.append(f"Modal solve degraded: {self.modal_message}")
        lines.append("=" * 32)
        return "\n".join(lines)


def _check_input_matrices(K, M, n_dofs, tol):
    for name, A in (("K", K), ("M", M)):
        if A.ndim != 2 or A.shape[0] != A.shape[1]:
            raise ModelValidationError(f"{name} must be square, got shape {A.shape}")
        if A.shape[0] != n_dofs:
            raise ModelValidationError(f"{name} is {A.shape[0]}x{A.shape[1]} but the DOF set has {n_dofs} entries")
        err = relative_symmetry_error(A)
        if err > tol:
            raise ModelValidationError(f"{name} is not symmetric (relative error {err:.2e} > {tol:.0e})")


def _freeze(*arrays):
    for a in arrays:
        a.flags.writeable = False


def craig_bampton_reduction(system, model, interface_nodes, num_modes=None, verbose: bool = False,
                            rcond_threshold: float = None, mass_regularization: float = None,
                            symmetry_tolerance: float = None) -> ReducedModel:
    """
    Reduce an assembled system to its interface DOFs plus fixed-interface modes.

    Args:
        system: AssembledSystem (or any object with K, M and dofs)
        model: FEMModel, Node records or {node_id: (x, y, z)} for interface coordinates
        interface_nodes: Interface node IDs, in master order
        num_modes: Number of fixed-interface modes; None for automatic, 0 for Guyan
        verbose: Print progress and the reduction summary
        rcond_threshold, mass_regularization, symmetry_tolerance:
            Overrides of ReductionConstants

    Returns:
        ReducedModel

    Raises:
        ModelValidationError: K/M not square, not matching the DOF set or not symmetric.
        PartitionError: Unknown interface node or empty master/slave set.
    """
    tol = ReductionConstants.SYMMETRY_TOLERANCE if symmetry_tolerance is None else symmetry_tolerance
    K, M, dofs = system.K, system.M, system.dofs
    n = len(dofs)
    _check_input_matrices(K, M, n, tol)

    if verbose:
        print("=== CRAIG-BAMPTON REDUCTION ===")
        print(f"Original matrix: {n}x{n}")
        print(f"Interface nodes: {list(interface_nodes)}")

    partition = partition_dofs(dofs, interface_nodes, model)
    if verbose:
        print(f"Master DOFs: {partition.n_master}")
        print(f"Slave DOFs: {partition.n_slave}")

    blocks = partition_matrices(K, M, partition, tol)
    guyan = guyan_condensation(blocks, rcond_threshold)
    if verbose:
        print(f"Guyan matrices computed ({guyan.K_G.shape[0]}x{guyan.K_G.shape[1]})")

    modal = fixed_interface_modes(blocks.Kss, blocks.Mss, num_modes, rcond_threshold,
                                  mass_regularization, verbose=verbose)

    n_m, k = partition.n_master, modal.n_modes
    if k:
        T_m = np.hstack([np.eye(n_m), np.zeros((n_m, k))])
        T_s = np.hstack([guyan.static_modes, modal.mode_shapes])
        T = np.vstack([T_m, T_s])
        K_red = project(blocks.Kmm, blocks.Kms, blocks.Ksm, blocks.Kss, T_m, T_s)
        M_red = project(blocks.Mmm, blocks.Mms, blocks.Msm, blocks.Mss, T_m, T_s)
        method = "Craig-Bampton"
    else:
        T, K_red, M_red = guyan.T_G, guyan.K_G, guyan.M_G
        method = "Guyan"

    reduced_size = K_red.shape[0]
    if verbose:
        print(f"{method} reduction: {n}x{n} -> {reduced_size}x{reduced_size}")

    reduced = ReducedModel(
        K_reduced=K_red,
        M_reduced=M_red,
        T=T,
        K_guyan=guyan.K_G,
        M_guyan=guyan.M_G,
        T_guyan=guyan.T_G,
        master_indices=partition.master_indices,
        slave_indices=partition.slave_indices,
        dofs=dofs,
        master_nodes=partition.requested_nodes,
        interface_nodes=partition.interface_nodes,
        interface_coords=partition.interface_coords,
        num_modes=k,
        eigenvalues=modal.eigenvalues,
        frequencies=modal.frequencies,
        mode_shapes=modal.mode_shapes,
        modal_status=modal.status,
        modal_message=modal.message,
        original_size=n,
        reduced_size=reduced_size,
        reduction_ratio=reduced_size / n,
        method=method,
        created=time.strftime("%Y-%m-%d %H:%M:%S"),
    )
    _freeze(reduced.K_reduced, reduced.M_reduced, reduced.T, reduced.K_guyan, reduced.M_guyan,
            reduced.T_guyan, reduced.master_indices, reduced.slave_indices, reduced.interface_coords,
            reduced.eigenvalues, reduced.frequencies, reduced.mode_shapes)

    if verbose:
        print()
        print(reduced.summary())
    return reduced
