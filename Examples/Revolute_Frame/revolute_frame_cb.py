"""
Revolute Frame Example - Craig-Bampton Reduction
=================================================

Inclined steel frame with pin joints, reduced to its two support nodes
plus fixed-interface modes for use as a flexible multibody component.

Configuration:
- Geometry: 10 nodes, 9 beam elements, node 10 as orientation reference
- Sections: H profiles, one rectangle and one tube (dimensions in cm)
- Joints: revolute at nodes 4, 8 and 9
- Interface: nodes 1 and 7, 10 fixed-interface modes

Output: Examples/Results/Reduction/revolute_frame_cb.h5
"""

import math
import sys
from pathlib import Path

# --- Path Setup ---
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

# --- Library Imports ---
from BeamROM import assemble_system, craig_bampton_reduction, create_model, save_reduced_model

# =============================================================================
# CONFIGURATION
# =============================================================================
RESULTS_ROOT = str(project_root / "Examples" / "Results" / "Reduction")

CONFIG = {
    "reduction": {
        "interface_nodes": [1, 7],
        "num_modes": 10,
    },
    "io": {
        "filename": "revolute_frame_cb",
        "dir": RESULTS_ROOT,
    },
}


# =============================================================================
# SECTION PROPERTIES (cm)
# =============================================================================

def h_section(b, h, t_f, t_w):
    """Area and strong-axis inertia of a doubly symmetric H profile."""
    area = 2 * (b * t_f) + t_w * (h - 2 * t_f)
    inertia = (b * h ** 3) / 12 - (b - t_w) * (h - 2 * t_f) ** 3 / 12
    return area, inertia


def tube_section(D, t):
    d = D - 2 * t
    return math.pi / 4 * (D ** 2 - d ** 2), math.pi / 64 * (D ** 4 - d ** 4)


def section_row(sid, area_cm2, inertia_cm4, width, height):
    """Section table row in SI units, no shear deformation."""
    return [sid, area_cm2 / 1e4, math.inf, math.inf, 0.0, 0.0, inertia_cm4 / 1e8,
            width / 2 / 1e2, width / 2 / 1e2, height / 2 / 1e2, height / 2 / 1e2]


# =============================================================================
# MODEL TABLES
# =============================================================================

NODES = [
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

# [id, type, section, material, node_i, node_j, reference]
ELEMENTS = [
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

TYPES = {1: "beam"}

SECTIONS = [
    section_row(1, *h_section(40, 60, 0.3, 0.3), 40, 60),
    section_row(2, *h_section(40, 40, 0.3, 0.3), 40, 40),
    section_row(3, *h_section(40, 30, 0.2, 0.2), 40, 30),
    section_row(4, *h_section(40, 20, 0.2, 0.2), 40, 20),
    section_row(5, 3 * 10, 3 * 10 ** 3 / 12, 3, 10),
    section_row(6, *tube_section(10, 0.4), 10, 10),
]

# [id, E, nu, rho]
MATERIALS = [
    [1, 30e6, 0.2, 7850.0],
    [2, 200e9, 0.3, 7850.0],
]

JOINTS = [
    (1, 4, "revolute"),
    (2, 8, "revolute"),
    (3, 9, "revolute"),
]


# =============================================================================
# REPORTING
# =============================================================================

def print_model_report(model):
    info = model.info
    print("\n=== MODEL ===")
    print(f"- Original nodes: {info.n_nodes_original}")
    print(f"- Final nodes: {info.n_nodes}")
    print(f"- Elements: {info.n_elements}")
    print(f"- Revolute joints: {info.n_revolute_joints}")
    for dup, orig in sorted(info.duplicate_map.items()):
        print(f"- Duplicate node: {dup} (of node {orig})")


def print_matrix_report(system):
    props = system.properties
    print("\n=== ASSEMBLED MATRICES ===")
    print(f"- Initial DOFs: {len(system.dofs_initial)}")
    print(f"- Removed components: {list(system.removed_components)}")
    print(f"- DOFs removed by constraints: {system.n_constraint_dofs_removed}")
    print(f"- Active DOFs: {system.n_dofs}")
    print(f"- K symmetric: {props['K_symmetric']}")
    print(f"- M symmetric: {props['M_symmetric']}")
    if "K_cond" in props:
        print(f"- cond(K): {props['K_cond']:.2e}")
        print(f"- cond(M): {props['M_cond']:.2e}")


def print_reduction_report(reduced):
    print("\n=== REDUCED MODEL ===")
    print(f"- K_reduced: {reduced.K_reduced.shape[0]}x{reduced.K_reduced.shape[1]}")
    print(f"- M_reduced: {reduced.M_reduced.shape[0]}x{reduced.M_reduced.shape[1]}")
    print(f"- Reduction: {(1 - reduced.reduction_ratio) * 100:.1f}%")
    if reduced.num_modes:
        print("\nFirst natural frequencies (Hz):")
        for i, f in enumerate(reduced.frequencies[:5]):
            print(f"  Mode {i + 1}: {f:.2f} Hz")
    print("\nInterface nodes (coordinates):")
    for node, xyz in zip(reduced.interface_nodes, reduced.interface_coords):
        print(f"  Node {node}: [{xyz[0]:.3f}, {xyz[1]:.3f}, {xyz[2]:.3f}]")


# =============================================================================
# MAIN
# =============================================================================

def run(config):
    model = create_model(NODES, ELEMENTS, TYPES, SECTIONS, MATERIALS, JOINTS, verbose=True)
    print_model_report(model)

    system = assemble_system(model, verbose=True)
    print_matrix_report(system)

    r = config["reduction"]
    reduced = craig_bampton_reduction(system, model, r["interface_nodes"], num_modes=r["num_modes"],
                                      verbose=True)
    print_reduction_report(reduced)

    io = config["io"]
    save_reduced_model(io["filename"], reduced, model=model, system=system, dir_name=io["dir"], verbose=True)
    return reduced


if __name__ == "__main__":
    run(CONFIG)
