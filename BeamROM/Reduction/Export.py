import os

import h5py
import numpy as np

from BeamROM.Reduction.Numerics import to_dense


def _reduced_datasets(reduced) -> dict:
    return {
        "K_reduced": reduced.K_reduced,
        "M_reduced": reduced.M_reduced,
        "T_transformation": reduced.T,
        "T_assembly_order": reduced.T_in_assembly_order(),
        "K_Guyan": reduced.K_guyan,
        "M_Guyan": reduced.M_guyan,
        "T_Guyan": reduced.T_guyan,
        "DOF_master": reduced.master_indices,
        "DOF_slave": reduced.slave_indices,
        "row_order": reduced.row_order,
        "DOF_labels": reduced.dofs.to_array(),
        "DOF_master_labels": reduced.master_dofs.to_array(),
        "master_nodes": np.asarray(reduced.master_nodes, dtype=int),
        "interface_nodes": np.asarray(reduced.interface_nodes, dtype=int),
        "interface_coords": reduced.interface_coords,
        "eigenvalues": reduced.eigenvalues,
        "frequencies": reduced.frequencies,
        "mode_shapes": reduced.mode_shapes,
    }


def save_reduced_model(filepath, reduced, model=None, system=None, dir_name="", verbose: bool = False):
    """
    Write a reduction bundle to a single HDF5 file.

    Args:
        filepath: File name; ``.h5`` is appended when missing
        reduced: ReducedModel
        model: Optional FEMModel; adds the processed node/element tables
        system: Optional AssembledSystem; adds the assembled K and M
        dir_name: Output directory, created if needed
        verbose: Print the output path

    Returns:
        Full path of the written file.
    """
    if not filepath.endswith(".h5"):
        filepath += ".h5"

    if dir_name:
        os.makedirs(dir_name, exist_ok=True)
    full_path = os.path.join(dir_name, filepath)

    storage = _reduced_datasets(reduced)
    metadata = {
        "method": reduced.method,
        "num_modes": reduced.num_modes,
        "modal_status": reduced.modal_status.value,
        "modal_message": reduced.modal_message,
        "original_size": reduced.original_size,
        "reduced_size": reduced.reduced_size,
        "reduction_ratio": reduced.reduction_ratio,
        "created": reduced.created,
    }

    if model is not None:
        storage["Nodes"] = model.nodes_table()
        storage["Elements"] = model.elements_table()
        storage["duplicate_nodes"] = np.array(sorted(model.info.duplicate_map.items()), dtype=int).reshape(-1, 2)
        metadata["n_nodes_original"] = model.info.n_nodes_original
        metadata["n_revolute_joints"] = model.info.n_revolute_joints

    if system is not None:
        storage["K"] = to_dense(system.K)
        storage["M"] = to_dense(system.M)
        metadata["n_constraint_dofs_removed"] = system.n_constraint_dofs_removed

    with h5py.File(full_path, "w") as hf:
        for key, val in storage.items():
            hf.create_dataset(key, data=val)
        for k, v in metadata.items():
            if v is not None:
                try:
                    hf.attrs[k] = v
                except TypeError:
                    hf.attrs[k] = str(v)

    if verbose:
        print(f"Reduced model saved to: {full_path}")
    return full_path


def load_reduced_arrays(filepath) -> dict:
    """Read every dataset of a saved bundle; attributes go under ``"attrs"``."""
    data = {}
    with h5py.File(filepath, "r") as hf:
        for key in hf.keys():
            data[key] = hf[key][()]
        attrs = {}
        for k, v in hf.attrs.items():
            attrs[k] = v.decode() if isinstance(v, bytes) else v
        data["attrs"] = attrs
    return data
