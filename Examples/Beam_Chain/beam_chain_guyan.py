"""
Beam Chain Example - Guyan vs Craig-Bampton
============================================

Free-free straight steel beam meshed with 20 elements, reduced to its two
end nodes. The free-free frequencies of the full model are compared with
those of the Guyan reduction and of Craig-Bampton reductions with an
increasing number of fixed-interface modes.

Configuration:
- Geometry: 10 m long, 20 elements, 10 cm x 20 cm rectangle
- Material: E = 200 GPa, nu = 0.3, rho = 7850 kg/m3
- Interface: both end nodes
"""

import math
import sys
import warnings
from pathlib import Path

import numpy as np
import scipy.linalg as la

# --- Path Setup ---
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

# --- Library Imports ---
from BeamROM import MatrixPropertyWarning, assemble_system, craig_bampton_reduction, create_model
from BeamROM.Reduction import natural_frequencies

# =============================================================================
# CONFIGURATION
# =============================================================================
CONFIG = {
    "geometry": {
        "length": 10.0,
        "n_elements": 20,
        "b": 0.1,
        "h": 0.2,
    },
    "material": {
        "E": 200e9,
        "nu": 0.3,
        "rho": 7850.0,
    },
    "reduction": {
        "mode_counts": [0, 2, 5, 10],
        "n_compare": 6,
    },
}

N_RIGID = 3  # Planar free-free body


# =============================================================================
# MODEL CREATION
# =============================================================================

def create_chain(config):
    g, m = config["geometry"], config["material"]
    n = g["n_elements"]
    dx = g["length"] / n
    b, h = g["b"], g["h"]

    nodes = [[i + 1, i * dx, 0.0, 0.0] for i in range(n + 1)]
    elements = [[i + 1, 1, 1, 1, i + 1, i + 2, 0] for i in range(n)]
    sections = [[1, b * h, math.inf, math.inf, 0.0, 0.0, b * h ** 3 / 12, h / 2, h / 2, b / 2, b / 2]]
    materials = [[1, m["E"], m["nu"], m["rho"]]]
    return create_model(nodes, elements, {1: "beam"}, sections, materials)


def elastic_frequencies(K, M, n):
    """Lowest n free-free frequencies (Hz), rigid body modes skipped."""
    eigenvalues = la.eigh(K, M, eigvals_only=True)
    return natural_frequencies(eigenvalues[N_RIGID:N_RIGID + n])


# =============================================================================
# MAIN
# =============================================================================

def run(config):
    model = create_chain(config)
    with warnings.catch_warnings():
        # A free-free structure has a singular stiffness matrix
        warnings.simplefilter("ignore", MatrixPropertyWarning)
        system = assemble_system(model)

    n_compare = config["reduction"]["n_compare"]
    interface = [1, config["geometry"]["n_elements"] + 1]
    reference = elastic_frequencies(system.K, system.M, n_compare)

    print("=== FREE-FREE FREQUENCIES (Hz) ===")
    print(f"{'Model':<22}" + "".join(f"{'f' + str(i + 1):>12}" for i in range(n_compare)))
    print(f"{'Full (' + str(system.n_dofs) + ' DOFs)':<22}" + "".join(f"{f:12.2f}" for f in reference))

    results = {}
    for k in config["reduction"]["mode_counts"]:
        reduced = craig_bampton_reduction(system, model, interface, num_modes=k)
        n_avail = min(n_compare, reduced.reduced_size - N_RIGID)
        freqs = elastic_frequencies(reduced.K_reduced, reduced.M_reduced, n_avail)
        label = f"{reduced.method} ({reduced.reduced_size} DOFs)"
        print(f"{label:<22}" + "".join(f"{f:12.2f}" for f in freqs))
        results[k] = freqs

    print("\nRelative error of f1:")
    for k, freqs in results.items():
        err = abs(freqs[0] - reference[0]) / reference[0]
        print(f"  {k:>2} modes: {err:.2e}")
    return reference, results


if __name__ == "__main__":
    run(CONFIG)
