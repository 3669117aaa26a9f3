# mfm/persistence.py
import logging
from pathlib import Path

from mfm.fm_coefficients import FmCoefficients

logger = logging.getLogger(__name__)


def save_coefficients(coeffs, path):
    """Writes coeffs.encode() to path, creating parent folders as needed."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(coeffs.encode(), encoding="utf-8")
    logger.info(f"Saved coefficients to {path}")
    return path


def load_coefficients(path):
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Coefficient file not found at: {path}")

    coeffs = FmCoefficients.decode(path.read_text(encoding="utf-8"))
    logger.info(f"Loaded {coeffs!r} from {path}")
    return coeffs
