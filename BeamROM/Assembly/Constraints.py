import warnings
from typing import Sequence

import numpy as np
import scipy.sparse as sp

from BeamROM.Errors import ModelValidationError, TopologyWarning
from BeamROM.Model.Dof import DofSet
from BeamROM.Model.Tables import EqualityConstraint


class ConstraintElimination:
    """
    Homogeneous equality constraints enforced by DOF elimination.

    Each constraint ``0 = sum(c_i * u_i)`` removes one DOF, preferably the
    one of its last term (the duplicate-node DOF for revolute ties), which is
    rewritten in terms of the others. Chained constraints are resolved by
    substitution. Produces a reduced system: K_red = T'*K*T.

    Attributes
    ----------
    transformation_matrix : ndarray or scipy.sparse.csc_matrix
        T matrix (n_full x n_reduced) such that u_full = T @ u_reduced
    retained_dofs : DofSet
        DOF set of the reduced system, in assembly order
    eliminated_dofs : tuple of DofLabel
        Eliminated DOFs, in elimination order
    redundant_constraints : tuple of EqualityConstraint
        Constraints already implied by earlier ones (skipped)
    nb_dofs_full : int
        Original DOF count before reduction
    nb_dofs_reduced : int
        Reduced DOF count after elimination
    """

    PIVOT_TOLERANCE = 1e-12

    def __init__(self, dofs: DofSet, constraints: Sequence[EqualityConstraint]):
        self.dofs = dofs
        self.constraints = tuple(constraints)
        self.transformation_matrix = None
        self.retained_dofs = None
        self.eliminated_dofs = ()
        self.redundant_constraints = ()
        self.nb_dofs_full = len(dofs)
        self.nb_dofs_reduced = None

    @property
    def nb_dofs_removed(self) -> int:
        return len(self.eliminated_dofs)

    def _constraint_terms(self, constraint: EqualityConstraint) -> dict:
        """Constraint coefficients keyed by DOF position."""
        if constraint.rhs != 0:
            raise ModelValidationError(
                f"Only homogeneous constraints can be eliminated, got rhs={constraint.rhs:g} in {constraint}")
        terms = {}
        for coeff, dof in constraint.terms:
            i = self.dofs.find(*dof)
            if i is None:
                raise ModelValidationError(f"Constraint {constraint} references DOF {dof} absent from the DOF set")
            terms[i] = terms.get(i, 0.0) + coeff
        return terms

    def build_transformation(self, sparse: bool = False):
        """
        Build transformation matrix T for DOF elimination.

        Enforces: u_full = T @ u_reduced

        Each eliminated DOF is stored as a sparse expression in the free DOFs.

        Args:
            sparse: Return T as a scipy CSC matrix instead of a dense array
        """
        n = self.nb_dofs_full
        free = np.ones(n, dtype=bool)
        expressions = {}  # eliminated position -> {free position: coefficient}
        users = {}        # free position -> eliminated positions whose expression uses it
        eliminated = []
        redundant = []

        for constraint in self.constraints:
            terms = self._constraint_terms(constraint)
            scale = max(abs(c) for c in terms.values())
            tol = self.PIVOT_TOLERANCE * scale

            # constraint expressed in the current independent DOFs
            r = {}
            for i, coeff in terms.items():
                if free[i]:
                    r[i] = r.get(i, 0.0) + coeff
                else:
                    for j, c in expressions[i].items():
                        r[j] = r.get(j, 0.0) + coeff * c
            r = {j: c for j, c in r.items() if abs(c) > tol}

            candidates = [self.dofs.index(*dof) for dof in reversed(constraint.dofs)]
            pivot = next((j for j in candidates if j in r), None)
            if pivot is None:
                if not r:
                    warnings.warn(f"Constraint {constraint} is redundant and was skipped",
                                  TopologyWarning, stacklevel=2)
                    redundant.append(constraint)
                    continue
                pivot = max(r)

            p_coeff = r.pop(pivot)
            expr = {j: -c / p_coeff for j, c in r.items()}

            # substitute the pivot in earlier expressions that still use it
            for d in users.pop(pivot, ()):
                c = expressions[d].pop(pivot)
                target = expressions[d]
                for j, v in expr.items():
                    target[j] = target.get(j, 0.0) + c * v
                    users.setdefault(j, set()).add(d)

            expressions[pivot] = expr
            for j in expr:
                users.setdefault(j, set()).add(pivot)
            free[pivot] = False
            eliminated.append(self.dofs[pivot])

        kept = np.flatnonzero(free)
        column = np.full(n, -1, dtype=int)
        column[kept] = np.arange(len(kept))

        rows, cols, vals = list(kept), list(column[kept]), [1.0] * len(kept)
        for d, expr in expressions.items():
            for j, c in expr.items():
                if c != 0.0:
                    rows.append(d)
                    cols.append(column[j])
                    vals.append(c)
        T = sp.coo_matrix((vals, (rows, cols)), shape=(n, len(kept))).tocsc()

        self.transformation_matrix = T if sparse else T.toarray()
        self.retained_dofs = self.dofs.subset(kept)
        self.eliminated_dofs = tuple(eliminated)
        self.redundant_constraints = tuple(redundant)
        self.nb_dofs_reduced = len(kept)
        return self.transformation_matrix

    def reduce_system(self, K, M):
        """
        Apply T to both matrices: K_red = T'*K*T, M_red = T'*M*T.

        Sparse input stays sparse (CSC).
        """
        if self.transformation_matrix is None:
            raise RuntimeError("Transformation matrix not built. Call build_transformation() first.")
        T = self.transformation_matrix
        if sp.issparse(K) or sp.issparse(M):
            T = sp.csc_matrix(T)
            return (T.T @ sp.csc_matrix(K) @ T).tocsc(), (T.T @ sp.csc_matrix(M) @ T).tocsc()
        if sp.issparse(T):
            T = T.toarray()
        return T.T @ K @ T, T.T @ M @ T

    def expand_solution(self, u_reduced):
        """Recover full displacement vector: u_full = T @ u_reduced."""
        if self.transformation_matrix is None:
            raise RuntimeError("Transformation matrix not built. Call build_transformation() first.")
        return self.transformation_matrix @ np.asarray(u_reduced)

    def verify_constraints(self, u_full) -> float:
        """
        Verify constraint satisfaction for a full displacement vector.

        Returns
        -------
        max_error : float
            Largest absolute constraint residual.
        """
        u_full = np.asarray(u_full, dtype=float)
        max_residual = 0.0
        for constraint in self.constraints:
            terms = self._constraint_terms(constraint)
            residual = abs(sum(c * u_full[i] for i, c in terms.items()) - constraint.rhs)
            max_residual = max(max_residual, residual)
        return max_residual
