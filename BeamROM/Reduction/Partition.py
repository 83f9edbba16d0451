"""
Master/slave split of an assembled DOF set.

Master DOFs are the {Ux, Uy, Rz} DOFs of the interface nodes, laid out in
the caller's interface-node order and, per node, in the fixed order
Ux, Uy, Rz. Slave DOFs are all the others, in assembly order.
"""

import warnings
from dataclasses import dataclass
from typing import Mapping, Sequence, Tuple

import numpy as np
import scipy.sparse as sp

from BeamROM.Errors import InterfaceWarning, PartitionError, SymmetryWarning
from BeamROM.Model.Dof import PLANAR_COMPONENTS, DofSet
from BeamROM.Reduction.Numerics import ReductionConstants, check_symmetric, relative_difference


@dataclass(frozen=True)
class Partition:
    """
    Disjoint, exhaustive split of the DOF positions.

    Attributes
    ----------
    master_indices, slave_indices : ndarray of int
        Positions in ``dofs``.
    requested_nodes : tuple of int
        Interface node IDs as passed by the caller.
    interface_nodes : tuple of int
        Interface nodes that contributed at least one master DOF.
    interface_coords : ndarray (k, 3)
        Coordinates of ``interface_nodes``.
    dofs : DofSet
        The partitioned DOF set.
    """
    master_indices: np.ndarray
    slave_indices: np.ndarray
    requested_nodes: Tuple[int, ...]
    interface_nodes: Tuple[int, ...]
    interface_coords: np.ndarray
    dofs: DofSet

    @property
    def n_master(self) -> int:
        return len(self.master_indices)

    @property
    def n_slave(self) -> int:
        return len(self.slave_indices)

    @property
    def master_dofs(self) -> DofSet:
        return self.dofs.subset(self.master_indices)

    @property
    def slave_dofs(self) -> DofSet:
        return self.dofs.subset(self.slave_indices)

    @property
    def row_order(self) -> np.ndarray:
        """Master positions followed by slave positions."""
        return np.concatenate([self.master_indices, self.slave_indices])


@dataclass(frozen=True)
class MatrixBlocks:
    """The eight master/slave blocks of a stiffness/mass pair."""
    Kmm: object
    Kms: object
    Ksm: object
    Kss: object
    Mmm: object
    Mms: object
    Msm: object
    Mss: object


def _coordinates_lookup(nodes):
    if isinstance(nodes, Mapping):
        return {int(k): np.asarray(v, dtype=float) for k, v in nodes.items()}
    if hasattr(nodes, "node_coordinates"):
        return nodes.node_coordinates()
    return {n.id: n.coords for n in nodes}


def partition_dofs(dofs: DofSet, interface_nodes: Sequence[int], nodes) -> Partition:
    """
    Split ``dofs`` into master (interface) and slave (internal) positions.

    Args:
        dofs: Assembled (constraint-reduced) DOF set
        interface_nodes: Interface node IDs, in the desired master order
        nodes: FEMModel, iterable of Node records or {node_id: (x, y, z)}

    Returns:
        Partition

    Raises:
        PartitionError: Interface node unknown or listed twice, or empty
            master or slave set.
    """
    coords = _coordinates_lookup(nodes)
    requested = tuple(int(n) for n in interface_nodes)

    if len(set(requested)) != len(requested):
        raise PartitionError(f"Interface node list contains duplicates: {list(requested)}")

    master = []
    kept = []
    for node_id in requested:
        if node_id not in coords:
            raise PartitionError(f"Interface node {node_id} is not defined in the model")

        found = dofs.node_indices(node_id, PLANAR_COMPONENTS)
        if not found:
            warnings.warn(f"Interface node {node_id} has no DOF in the assembled system and was skipped",
                          InterfaceWarning, stacklevel=2)
            continue
        if len(found) < len(PLANAR_COMPONENTS):
            present = [int(comp) for comp, _ in found]
            warnings.warn(f"Interface node {node_id} only provides components {present}",
                          InterfaceWarning, stacklevel=2)
        master.extend(i for _, i in found)
        kept.append(node_id)

    if not master:
        raise PartitionError("No interface DOF found: master set is empty")

    master_set = set(master)
    slave = [i for i in range(len(dofs)) if i not in master_set]
    if not slave:
        raise PartitionError("Every DOF is an interface DOF: slave set is empty")

    interface_coords = np.array([coords[n] for n in kept], dtype=float).reshape(-1, 3)

    return Partition(
        master_indices=np.asarray(master, dtype=int),
        slave_indices=np.asarray(slave, dtype=int),
        requested_nodes=requested,
        interface_nodes=tuple(kept),
        interface_coords=interface_coords,
        dofs=dofs,
    )


def _block(A, rows, cols):
    if sp.issparse(A):
        return sp.csr_matrix(A)[rows, :].tocsc()[:, cols]
    return A[np.ix_(rows, cols)]


def partition_matrices(K, M, partition: Partition, tol: float = None) -> MatrixBlocks:
    """
    Slice K and M into master/slave blocks.

    Symmetry of Kmm, Kss, Mmm, Mss and of Kms against Ksm' is checked;
    drift beyond ``tol`` emits a SymmetryWarning.
    """
    tol = ReductionConstants.SYMMETRY_TOLERANCE if tol is None else tol
    m, s = partition.master_indices, partition.slave_indices

    blocks = MatrixBlocks(
        Kmm=_block(K, m, m), Kms=_block(K, m, s), Ksm=_block(K, s, m), Kss=_block(K, s, s),
        Mmm=_block(M, m, m), Mms=_block(M, m, s), Msm=_block(M, s, m), Mss=_block(M, s, s),
    )

    check_symmetric(blocks.Kmm, "Kmm", tol)
    check_symmetric(blocks.Kss, "Kss", tol)
    check_symmetric(blocks.Mmm, "Mmm", tol)
    check_symmetric(blocks.Mss, "Mss", tol)
    err = relative_difference(blocks.Kms, blocks.Ksm.T)
    if err > tol:
        warnings.warn(f"Kms and Ksm' differ (relative error {err:.2e} > {tol:.0e})",
                      SymmetryWarning, stacklevel=2)

    return blocks
