import warnings
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np
import scipy.sparse as sp

from BeamROM.Assembly.Constraints import ConstraintElimination
from BeamROM.Errors import MatrixPropertyWarning, ModelValidationError
from BeamROM.Model.Beam2D import Beam2D
from BeamROM.Model.Dof import ALL_COMPONENTS, OUT_OF_PLANE_COMPONENTS, PLANAR_COMPONENTS, Component, DofSet
from BeamROM.Model.Model import FEMModel
from BeamROM.Model.Tables import EqualityConstraint
from BeamROM.Reduction.Numerics import ReductionConstants, relative_symmetry_error, to_dense

DEFAULT_REMOVED_COMPONENTS = (3, 4, 5)  # Uz, Rx, Ry: 2D beam convention
SUPPORTED_ELEMENT_TYPES = ("beam",)


@dataclass(frozen=True)
class AssembledSystem:
    """
    Assembled stiffness/mass pair and the DOF set indexing it.

    Attributes
    ----------
    K, M : ndarray or scipy.sparse.csc_matrix
        Matrices after constraint elimination.
    dofs : DofSet
        Labels of the rows/columns of K and M.
    dofs_initial : DofSet
        All six components of every element end node, before removal.
    removed_components : tuple of int
    constraints : tuple of EqualityConstraint
    n_constraint_dofs_removed : int
    properties : dict
        Symmetry flags, minimum eigenvalues and condition numbers.
    """
    K: object
    M: object
    dofs: DofSet
    dofs_initial: DofSet
    removed_components: Tuple[int, ...]
    constraints: Tuple[EqualityConstraint, ...]
    n_constraint_dofs_removed: int
    properties: dict = field(default_factory=dict, compare=False)

    @property
    def n_dofs(self) -> int:
        return len(self.dofs)

    @property
    def is_sparse(self) -> bool:
        return sp.issparse(self.K)


def _check_removed_components(removed_components):
    try:
        removed = tuple(sorted({int(Component(int(c))) for c in removed_components}))
    except ValueError:
        raise ModelValidationError(f"Component codes must be in 1..6, got {list(removed_components)}") from None
    retained = [c for c in ALL_COMPONENTS if int(c) not in removed]
    illegal = [c for c in retained if c in OUT_OF_PLANE_COMPONENTS]
    if illegal:
        raise ModelValidationError(
            f"2D beam models cannot retain components {[int(c) for c in illegal]}; "
            f"remove {[int(c) for c in OUT_OF_PLANE_COMPONENTS]}")
    return removed


def matrix_properties(K, M, limits=ReductionConstants) -> dict:
    """
    Symmetry, definiteness and conditioning of an assembled pair.

    Eigenvalues are only computed below ``PROPERTY_EIG_LIMIT`` DOFs and
    condition numbers below ``PROPERTY_COND_LIMIT`` DOFs.
    """
    n = K.shape[0]
    props = {
        "n_dofs": n,
        "K_symmetric": relative_symmetry_error(K) <= limits.SYMMETRY_TOLERANCE,
        "M_symmetric": relative_symmetry_error(M) <= limits.SYMMETRY_TOLERANCE,
    }

    if 0 < n < limits.PROPERTY_EIG_LIMIT:
        for name, A in (("K", K), ("M", M)):
            eigs = np.linalg.eigvalsh(to_dense(A))
            tol = 1e-12 * max(1.0, float(np.max(np.abs(eigs))))
            props[f"{name}_min_eig"] = float(eigs[0])
            props[f"{name}_positive_definite"] = bool(eigs[0] > tol)

    if 0 < n < limits.PROPERTY_COND_LIMIT:
        for name, A in (("K", K), ("M", M)):
            with np.errstate(all="ignore"):
                props[f"{name}_cond"] = float(np.linalg.cond(to_dense(A)))

    return props


def _assemble(model: FEMModel, dofs: DofSet, optimized: bool):
    n = len(dofs)
    rows, cols, k_vals, m_vals = [], [], [], []
    if not optimized:
        K = np.zeros((n, n), dtype=float)
        M = np.zeros((n, n), dtype=float)

    for elem in model.elements:
        type_name = model.type_of(elem).name.strip().lower()
        if type_name not in SUPPORTED_ELEMENT_TYPES:
            raise ModelValidationError(
                f"Element {elem.id}: unsupported element type '{model.type_of(elem).name}'")

        n1, n2 = elem.end_nodes
        fe = Beam2D([model.node(n1).coords, model.node(n2).coords],
                    model.material_of(elem), model.section_of(elem))

        # local position -> global position, dropping removed components
        local, glob = [], []
        for k, node_id in enumerate((n1, n2)):
            for j, comp in enumerate(PLANAR_COMPONENTS):
                i = dofs.find(node_id, comp)
                if i is not None:
                    local.append(Beam2D.DOFS_PER_NODE * k + j)
                    glob.append(i)
        if not glob:
            continue

        k_e = fe.get_k_glob()[np.ix_(local, local)]
        m_e = fe.get_mass()[np.ix_(local, local)]

        if optimized:
            r, c = np.meshgrid(glob, glob, indexing="ij")
            rows.append(r.ravel())
            cols.append(c.ravel())
            k_vals.append(k_e.ravel())
            m_vals.append(m_e.ravel())
        else:
            K[np.ix_(glob, glob)] += k_e
            M[np.ix_(glob, glob)] += m_e

    if optimized:
        if rows:
            rows, cols = np.concatenate(rows), np.concatenate(cols)
            k_vals, m_vals = np.concatenate(k_vals), np.concatenate(m_vals)
        K = sp.coo_matrix((k_vals, (rows, cols)), shape=(n, n)).tocsc()
        M = sp.coo_matrix((m_vals, (rows, cols)), shape=(n, n)).tocsc()
    return K, M


def assemble_system(model: FEMModel, removed_components=DEFAULT_REMOVED_COMPONENTS,
                    optimized: bool = False, verbose: bool = False) -> AssembledSystem:
    """
    Assemble the global K and M of a processed model.

    Args:
        model: Processed FEMModel (see ``create_model``)
        removed_components: Component codes dropped from every node
        optimized: Assemble in scipy sparse CSC form instead of dense
        verbose: Print a short assembly summary

    Returns:
        AssembledSystem

    Raises:
        ModelValidationError: Unsupported element type, out-of-plane geometry,
            non-planar retained components or invalid constraints.
    """
    removed = _check_removed_components(removed_components)

    end_nodes = []
    for elem in model.elements:
        end_nodes.extend(elem.end_nodes)
    dofs_initial = DofSet.from_nodes(end_nodes, ALL_COMPONENTS)
    dofs = dofs_initial.remove_components(removed)

    K, M = _assemble(model, dofs, optimized)

    n_removed = 0
    if model.constraints:
        elimination = ConstraintElimination(dofs, model.constraints)
        elimination.build_transformation(sparse=optimized)
        K, M = elimination.reduce_system(K, M)
        dofs = elimination.retained_dofs
        n_removed = elimination.nb_dofs_removed

    properties = matrix_properties(K, M)
    if properties.get("M_positive_definite") is False:
        warnings.warn(f"Mass matrix is not positive definite (min eigenvalue {properties['M_min_eig']:.3e})",
                      MatrixPropertyWarning, stacklevel=2)
    if properties.get("K_positive_definite") is False:
        warnings.warn(f"Stiffness matrix is not positive definite (min eigenvalue {properties['K_min_eig']:.3e}); "
                      f"expected for an unsupported structure", MatrixPropertyWarning, stacklevel=2)

    if verbose:
        print(f"Assembly: {len(dofs_initial)} initial DOFs, {len(dofs)} DOFs after removing components "
              f"{list(removed)} and {n_removed} constrained DOF(s) ({'sparse' if optimized else 'dense'})")

    return AssembledSystem(
        K=K,
        M=M,
        dofs=dofs,
        dofs_initial=dofs_initial,
        removed_components=removed,
        constraints=tuple(model.constraints),
        n_constraint_dofs_removed=n_removed,
        properties=properties,
    )
