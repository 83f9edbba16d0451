"""
Tests for Guyan static condensation.

Tests cover:
- Shapes of T_G, K_G, M_G
- Static exactness of K_G
- Pseudo-inverse fallback for singular K_ss
- Sparse vs dense paths
"""
import warnings

import numpy as np
import pytest
import scipy.sparse as sp

from BeamROM.Assembly import assemble_system
from BeamROM.Errors import IllConditionedWarning, MatrixPropertyWarning
from BeamROM.Model import create_model
from BeamROM.Reduction.Guyan import guyan_condensation, project, static_modes
from BeamROM.Reduction.Numerics import reciprocal_condition
from BeamROM.Reduction.Partition import partition_dofs, partition_matrices
from conftest import is_symmetric


def _blocks(tables, interface, optimized=False):
    model = create_model(**tables)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", MatrixPropertyWarning)
        system = assemble_system(model, optimized=optimized)
    part = partition_dofs(system.dofs, interface, model)
    return system, part, partition_matrices(system.K, system.M, part)


@pytest.mark.unit
@pytest.mark.reduction
class TestGuyan:
    """Tests for guyan_condensation."""

    def test_shapes(self, chain_tables):
        _, _, blocks = _blocks(chain_tables, [1, 3])
        result = guyan_condensation(blocks)
        assert result.T_G.shape == (9, 6)
        assert result.K_G.shape == (6, 6)
        assert result.M_G.shape == (6, 6)
        assert result.static_modes.shape == (3, 6)
        np.testing.assert_array_equal(result.T_G[:6], np.eye(6))
        assert not result.used_pseudo_inverse

    def test_symmetric(self, frame_tables):
        _, _, blocks = _blocks(frame_tables, [1, 7])
        result = guyan_condensation(blocks)
        assert is_symmetric(result.K_G, tol=1e-8)
        assert is_symmetric(result.M_G, tol=1e-8)

    def test_schur_complement(self, chain_tables):
        _, _, b = _blocks(chain_tables, [1, 3])
        result = guyan_condensation(b)
        schur = b.Kmm - b.Kms @ np.linalg.solve(b.Kss, b.Ksm)
        np.testing.assert_allclose(result.K_G, schur, rtol=1e-8, atol=1e-6 * np.max(np.abs(schur)))

    def test_static_exactness(self, long_chain_tables):
        """Interface forces from K_G equal those of the full model with unloaded slaves."""
        system, part, b = _blocks(long_chain_tables, [1, 11])
        result = guyan_condensation(b)

        u_m = np.random.default_rng(1).normal(size=part.n_master) * 1e-3
        u = np.zeros(system.n_dofs)
        u[part.master_indices] = u_m
        u[part.slave_indices] = result.static_modes @ u_m
        f = system.K @ u

        scale = np.max(np.abs(f))
        assert np.allclose(f[part.slave_indices], 0.0, atol=1e-6 * scale)
        np.testing.assert_allclose(result.K_G @ u_m, f[part.master_indices], atol=1e-6 * scale)

    def test_sparse_matches_dense(self, frame_tables):
        _, _, dense = _blocks(frame_tables, [1, 7])
        _, _, sparse = _blocks(frame_tables, [1, 7], optimized=True)
        assert sp.issparse(sparse.Kss)
        r_dense = guyan_condensation(dense)
        r_sparse = guyan_condensation(sparse)
        np.testing.assert_allclose(r_sparse.T_G, r_dense.T_G, rtol=1e-8, atol=1e-10)
        np.testing.assert_allclose(r_sparse.K_G, r_dense.K_G, rtol=1e-8, atol=1e-6 * np.max(np.abs(r_dense.K_G)))

    def test_project(self):
        rng = np.random.default_rng(2)
        A = rng.normal(size=(5, 5))
        T = rng.normal(size=(5, 2))
        m, s = [0, 1], [2, 3, 4]
        out = project(A[np.ix_(m, m)], A[np.ix_(m, s)], A[np.ix_(s, m)], A[np.ix_(s, s)], T[m], T[s])
        np.testing.assert_allclose(out, T.T @ A @ T)


@pytest.mark.unit
@pytest.mark.reduction
class TestStaticModes:
    """Tests for the K_ss solve and its fallback."""

    def test_direct_solve(self):
        Kss = np.array([[4.0, 1.0], [1.0, 3.0]])
        Ksm = np.array([[1.0], [2.0]])
        X, rcond, used_pinv = static_modes(Kss, Ksm)
        np.testing.assert_allclose(Kss @ X, -Ksm)
        assert not used_pinv and rcond > 0.1

    def test_singular_uses_pseudo_inverse(self):
        Kss = np.array([[1.0, 1.0], [1.0, 1.0]])
        Ksm = np.array([[1.0], [1.0]])
        with pytest.warns(IllConditionedWarning, match="pseudo-inverse"):
            X, rcond, used_pinv = static_modes(Kss, Ksm)
        assert used_pinv
        assert rcond < 1e-12
        np.testing.assert_allclose(X, -np.linalg.pinv(Kss) @ Ksm)

    def test_threshold_override(self):
        Kss = np.diag([1.0, 1e-6])
        Ksm = np.ones((2, 1))
        with pytest.warns(IllConditionedWarning):
            _, _, used_pinv = static_modes(Kss, Ksm, rcond_threshold=1e-3)
        assert used_pinv

    def test_singular_sparse(self):
        Kss = sp.csc_matrix(np.array([[1.0, 1.0], [1.0, 1.0]]))
        with pytest.warns(IllConditionedWarning):
            _, rcond, used_pinv = static_modes(Kss, sp.csc_matrix(np.ones((2, 1))))
        assert used_pinv and rcond == 0.0


@pytest.mark.unit
@pytest.mark.reduction
class TestReciprocalCondition:
    """Tests for the rcond estimate."""

    def test_identity(self):
        assert reciprocal_condition(np.eye(4)) == pytest.approx(1.0)
        assert reciprocal_condition(sp.identity(4, format="csc")) == pytest.approx(1.0)

    def test_diagonal(self):
        A = np.diag([1.0, 10.0, 100.0])
        assert reciprocal_condition(A) == pytest.approx(0.01)
        assert reciprocal_condition(sp.csc_matrix(A)) == pytest.approx(0.01)

    def test_singular(self):
        assert reciprocal_condition(np.zeros((3, 3))) == 0.0
