# config.py

CONFIG = {
    # --- Model shape ---
    "num_features": 1000,
    "num_interact_features": 1000,
    "num_factors": 8,

    # Which coefficient groups are trained: bias, 1st order weights, 2nd order factors
    "use_bias": True,
    "use_first_order": True,
    "use_second_order": True,

    # --- Initialization ---
    "init_mean": 0.0,
    "init_stdev": 0.01,
    "seed": 42,

    # --- Regularization, one value per group [bias, weights, factors] ---
    "l1_reg": [0.0, 0.001, 0.001],
    "l2_reg": [0.0, 0.01, 0.01],
    "step_size": 0.1,

    # --- Checkpoint ---
    "model_path": "./models/fm_coefficients.txt",
    "prune_on_save": False,  # apply one L1 shrink step before writing the checkpoint

    # --- Logging ---
    "log_level": "INFO",
    "log_dir": "logs",
}
