"""
Shared fixtures for BeamROM tests.

This module provides simple, reusable model tables and models.
"""
import math

import numpy as np
import pytest

from BeamROM.Model import create_model


# =============================================================================
# Material / Section Fixtures
# =============================================================================

@pytest.fixture
def steel_row():
    """Steel: E=200 GPa, nu=0.3, rho=7850 kg/m3."""
    return [1, 200e9, 0.3, 7850.0]


@pytest.fixture
def concrete_row():
    """Concrete: E=30 GPa, nu=0.2, rho=2400 kg/m3."""
    return [2, 30e9, 0.2, 2400.0]


@pytest.fixture
def rect_section_row():
    """10 cm x 20 cm rectangle, no shear deformation."""
    b, h = 0.1, 0.2
    return [1, b * h, math.inf, math.inf, 0.0, 0.0, b * h ** 3 / 12, h / 2, h / 2, b / 2, b / 2]


@pytest.fixture
def beam_types():
    return {1: 'beam'}


# =============================================================================
# Model Fixtures
# =============================================================================

@pytest.fixture
def chain_tables(steel_row, rect_section_row, beam_types):
    """
    3-node, 2-element straight chain along X (9 DOFs after 2D reduction).

        1 ----- 2 ----- 3
    """
    nodes = [[1, 0.0, 0.0, 0.0],
             [2, 1.0, 0.0, 0.0],
             [3, 2.0, 0.0, 0.0]]
    elements = [[1, 1, 1, 1, 1, 2, 0],
                [2, 1, 1, 1, 2, 3, 0]]
    return dict(nodes=nodes, elements=elements, types=beam_types,
                sections=[rect_section_row], materials=[steel_row])


@pytest.fixture
def chain_model(chain_tables):
    return create_model(**chain_tables)


@pytest.fixture
def long_chain_tables(steel_row, rect_section_row, beam_types):
    """11-node straight chain of 10 elements, 1 m each."""
    nodes = [[i + 1, float(i), 0.0, 0.0] for i in range(11)]
    elements = [[i + 1, 1, 1, 1, i + 1, i + 2, 0] for i in range(10)]
    return dict(nodes=nodes, elements=elements, types=beam_types,
                sections=[rect_section_row], materials=[steel_row])


@pytest.fixture
def pinned_chain_tables(chain_tables):
    """The 3-node chain with a revolute joint on the middle node."""
    return dict(chain_tables, joints=[(1, 2, 'revolute')])


def _h_area(b, h, t_f, t_w):
    return 2 * (b * t_f) + (t_w * (h - 2 * t_f))


def _h_inertia(b, h, t_f, t_w):
    return (b * h ** 3) / 12 - (b - t_w) * (h - 2 * t_f) ** 3 / 12


def _tube_area(D, t):
    d = D - 2 * t
    return math.pi / 4 * (D ** 2 - d ** 2)


def _tube_inertia(D, t):
    d = D - 2 * t
    return math.pi / 64 * (D ** 4 - d ** 4)


@pytest.fixture
def frame_tables():
    """
    Inclined 10-node frame with revolute joints on nodes 4, 8 and 9.

    Node 10 is only used as the orientation reference (third slot) of
    every element. Section data in cm, converted to m.
    """
    nodes = [
        [1, 0.0000, 0.0000, 0.0],
        [2, 0.0000, 1.0000, 0.0],
        [3, 0.7071, 1.7071, 0.0],
        [4, 1.4142, 2.4142, 0.0],
        [5, 2.4142, 2.4142, 0.0],
        [6, 3.4142, 2.4142, 0.0],
        [7, 5.4142, 2.4142, 0.0],
        [8, 0.7778, 1.6364, 0.0],
        [9, 2.4142, 2.3142, 0.0],
        [10, 2.0, 1.0, 0.0],
    ]
    raw_sections = [
        (1, _h_area(40, 60, 0.3, 0.3), _h_inertia(40, 60, 0.3, 0.3), 40 / 2, 40 / 2, 60 / 2, 60 / 2),
        (2, _h_area(40, 40, 0.3, 0.3), _h_inertia(40, 40, 0.3, 0.3), 40 / 2, 40 / 2, 40 / 2, 40 / 2),
        (3, _h_area(40, 30, 0.2, 0.2), _h_inertia(40, 30, 0.2, 0.2), 40 / 2, 40 / 2, 30 / 2, 30 / 2),
        (4, _h_area(40, 20, 0.2, 0.2), _h_inertia(40, 20, 0.2, 0.2), 40 / 2, 40 / 2, 20 / 2, 20 / 2),
        (5, 3 * 10, 3 * 10 ** 3 / 12, 3 / 2, 3 / 2, 10 / 2, 10 / 2),
        (6, _tube_area(10, 0.4), _tube_inertia(10, 0.4), 5, 5, 5, 5),
    ]
    sections = [[sid, A / 1e4, math.inf, math.inf, 0.0, 0.0, Iz / 1e8,
                 yt / 1e2, yb / 1e2, zt / 1e2, zb / 1e2]
                for sid, A, Iz, yt, yb, zt, zb in raw_sections]
    materials = [[1, 30e6, 0.2, 7850.0],
                 [2, 200e9, 0.3, 7850.0]]
    elements = [
        [1, 1, 1, 2, 1, 2, 10],
        [2, 1, 2, 2, 2, 3, 10],
        [3, 1, 2, 2, 3, 4, 10],
        [4, 1, 3, 2, 4, 5, 10],
        [5, 1, 3, 2, 5, 6, 10],
        [6, 1, 4, 2, 6, 7, 10],
        [7, 1, 5, 2, 8, 3, 10],
        [8, 1, 5, 2, 9, 5, 10],
        [9, 1, 6, 2, 8, 9, 10],
    ]
    joints = [(1, 4, 'revolute'),
              (2, 8, 'revolute'),
              (3, 9, 'revolute')]
    return dict(nodes=nodes, elements=elements, types={1: 'beam'},
                sections=sections, materials=materials, joints=joints)


# =============================================================================
# Helper Functions
# =============================================================================

def is_symmetric(matrix, tol=1e-10):
    """Check if matrix is symmetric (relative to its largest entry)."""
    matrix = np.asarray(matrix)
    scale = max(1.0, np.max(np.abs(matrix)))
    return np.allclose(matrix, matrix.T, rtol=0, atol=tol * scale)


def is_positive_definite(matrix):
    """Check if matrix is positive definite."""
    eigenvalues = np.linalg.eigvalsh(matrix)
    return np.all(eigenvalues > 0)


def is_positive_semidefinite(matrix, tol=1e-10):
    """Check if matrix is positive semi-definite (allows zero eigenvalues)."""
    eigenvalues = np.linalg.eigvalsh(matrix)
    return np.all(eigenvalues >= -tol * max(1.0, np.max(np.abs(eigenvalues))))
