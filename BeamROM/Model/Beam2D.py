import numpy as np

from BeamROM.Errors import ModelValidationError
from BeamROM.Model.Tables import Material, Section


class Beam2D:
    """
    2-node beam element for in-plane (XY) frame analysis.

    Uses 3 DOFs per node: [ux, uy, rotation_z]. Bending uses the
    shear-corrected (Timoshenko) basic stiffness when the section's shear
    factor ``ky`` is finite and reduces to Euler-Bernoulli for ``ky = inf``.
    The mass matrix is the consistent Euler-Bernoulli one.
    """
    DOFS_PER_NODE = 3  # [ux, uy, rotation_z]

    def __init__(self, nodes, mat: Material, sec: Section):
        """
        Initialize a beam element.

        Args:
            nodes: 2 node coordinates [(x1, y1, z1), (x2, y2, z2)]
            mat: Material record (E, nu, rho)
            sec: Section record (A, ky, Izz)
        """
        self.N1 = np.asarray(nodes[0], dtype=float)
        self.N2 = np.asarray(nodes[1], dtype=float)

        if self.N1.size == 3 and self.N2.size == 3:
            dz = abs(self.N2[2] - self.N1[2])
            if dz > 1e-9 * max(1.0, float(np.linalg.norm(self.N2 - self.N1))):
                raise ModelValidationError("2D beam elements must lie in a plane of constant Z")

        self.mat = mat
        self.E = mat.E
        self.nu = mat.nu
        self.rho = mat.rho

        self.A = sec.A
        self.I = sec.Izz
        self.ky = sec.ky

        if self.L <= 0:
            raise ModelValidationError("Beam element has zero length")

    @property
    def G(self):
        return self.mat.G

    @property
    def psi(self):
        # EI / (G A_s), zero without shear deformation
        if not np.isfinite(self.ky):
            return 0.0
        return self.E * self.I / (self.G * self.ky * self.A)

    @staticmethod
    def r_C(alpha):
        c = np.cos(alpha)
        s = np.sin(alpha)
        r_C = np.array([
            [c, s, 0, 0, 0, 0],
            [-s, c, 0, 0, 0, 0],
            [0, 0, 1, 0, 0, 0],
            [0, 0, 0, c, s, 0],
            [0, 0, 0, -s, c, 0],
            [0, 0, 0, 0, 0, 1]
        ])
        return r_C

    @property
    def Lx(self):
        return self.N2[0] - self.N1[0]

    @property
    def Ly(self):
        return self.N2[1] - self.N1[1]

    @property
    def L(self):
        return np.sqrt(self.Lx ** 2 + self.Ly ** 2)

    @property
    def alpha(self):
        return np.arctan2(self.Ly, self.Lx)

    @property
    def gamma_C(self):
        # basic deformations [axial, rotation i, rotation j] from local DOFs
        l = self.L
        return np.array(
            [
                [-1, 0, 0, 1, 0, 0],
                [0, 1 / l, 1, 0, -1 / l, 0],
                [0, 1 / l, 0, 0, -1 / l, 1],
            ]
        )

    def get_k_bsc(self):
        l = self.L
        ps = self.psi

        k_bsc_ax = self.E * self.A * np.array([[1 / l, 0, 0], [0, 0, 0], [0, 0, 0]])

        k_bsc_fl = (
                self.E
                * self.I
                / (l * (l * l + 12 * ps))
                * np.array(
            [
                [0, 0, 0],
                [0, 4 * l * l + 12 * ps, 2 * l * l - 12 * ps],
                [0, 2 * l * l - 12 * ps, 4 * l * l + 12 * ps],
            ]
        )
        )

        return k_bsc_ax + k_bsc_fl

    def get_k_loc(self):
        gamma_C = self.gamma_C
        return np.transpose(gamma_C) @ self.get_k_bsc() @ gamma_C

    def get_k_glob(self):
        r_C = self.r_C(self.alpha)
        return np.transpose(r_C) @ self.get_k_loc() @ r_C

    def get_m_loc(self):
        l = self.L
        m = self.rho * self.A * l

        m_loc = np.zeros((6, 6))

        # axial
        m_loc[np.ix_([0, 3], [0, 3])] = m / 6 * np.array([[2, 1], [1, 2]])

        # bending
        bend = [1, 2, 4, 5]
        m_loc[np.ix_(bend, bend)] = m / 420 * np.array(
            [
                [156, 22 * l, 54, -13 * l],
                [22 * l, 4 * l * l, 13 * l, -3 * l * l],
                [54, 13 * l, 156, -22 * l],
                [-13 * l, -3 * l * l, -22 * l, 4 * l * l],
            ]
        )
        return m_loc

    def get_mass(self):
        r_C = self.r_C(self.alpha)
        return np.transpose(r_C) @ self.get_m_loc() @ r_C
