# mfm/__init__.py
from mfm.coefficients import Coefficients
from mfm.exceptions import CoefficientsError, CoefficientsDecodeError, DimensionMismatchError
from mfm.fm_coefficients import FmCoefficients
from mfm.gaussian import GaussianRandom

__all__ = [
    "Coefficients",
    "CoefficientsError",
    "CoefficientsDecodeError",
    "DimensionMismatchError",
    "FmCoefficients",
    "GaussianRandom",
]
