# main.py
import os
import sys
import json
import logging
from datetime import datetime
from pathlib import Path

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__))))

from config import CONFIG
from mfm.exceptions import CoefficientsError
from mfm.fm_coefficients import FmCoefficients
from mfm.gaussian import GaussianRandom
from mfm.persistence import load_coefficients, save_coefficients

logger = logging.getLogger(__name__)


def setup_logging(config):
    log_level = config.get("log_level", "INFO").upper()
    log_dir = config.get("log_dir", "logs")
    os.makedirs(log_dir, exist_ok=True)

    log_file_name = f"mfm_{log_level}_{datetime.now().strftime('%Y%m%d-%H%M%S')}.log"
    log_file_path = os.path.join(log_dir, log_file_name)

    logging.basicConfig(
        level=log_level,
        format='[%(asctime)s][%(levelname)s] %(message)s',
        datefmt='%H:%M:%S',
        handlers=[
            logging.FileHandler(log_file_path),
            logging.StreamHandler(sys.stdout)
        ]
    )
    return log_file_path


def build_coefficients(config):
    return FmCoefficients(
        num_features=config['num_features'],
        num_interact_features=config['num_interact_features'],
        num_factors=config['num_factors'],
        use_bias=config.get('use_bias', True),
        use_first_order=config.get('use_first_order', True),
        use_second_order=config.get('use_second_order', True),
        init_mean=config.get('init_mean', 0.0),
        init_stdev=config.get('init_stdev', 0.01),
        rng=GaussianRandom(seed=config.get('seed')),
    )


def log_summary(coeffs, config):
    l1_reg = config.get('l1_reg', [0.0, 0.0, 0.0])
    l2_reg = config.get('l2_reg', [0.0, 0.0, 0.0])
    logger.info(f"{coeffs!r}")
    logger.info(f"Norm: {coeffs.norm():.6f} | L1 reg: {coeffs.l1_reg_value(l1_reg):.6f} | "
                f"L2 reg: {coeffs.l2_reg_value(l2_reg):.6f}")


def run(config):
    model_path = Path(config['model_path'])

    # --- 1. Load the checkpoint, or start from a fresh random model ---
    if model_path.exists():
        try:
            coeffs = load_coefficients(model_path)
        except CoefficientsError as e:
            logger.error(f"Checkpoint {model_path} is corrupt: {e}")
            raise
    else:
        logger.info(f"No checkpoint at {model_path}, initializing fresh coefficients.")
        coeffs = build_coefficients(config)

    log_summary(coeffs, config)

    # --- 2. Optional sparsification ---
    if config.get('prune_on_save', False):
        coeffs.l1_shrink(config['l1_reg'], config['step_size'])
        logger.info("Applied one L1 shrink step before saving.")
        log_summary(coeffs, config)

    # --- 3. Save ---
    save_coefficients(coeffs, model_path)
    return coeffs


def main():
    log_file_path = setup_logging(CONFIG)
    logger.info(f"Configuration:\n{json.dumps(CONFIG, indent=4)}")
    run(CONFIG)
    logger.info(f"Log file saved to: {log_file_path}")


if __name__ == '__main__':
    main()
