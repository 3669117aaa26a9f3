import pytest
import torch

from mfm.exceptions import CoefficientsDecodeError
from mfm.fm_coefficients import FmCoefficients
from mfm.gaussian import GaussianRandom
from mfm.persistence import load_coefficients, save_coefficients


def test_save_then_load(tmp_path):
    coeffs = FmCoefficients(8, 5, 3, init_stdev=0.1, rng=GaussianRandom(seed=9))
    path = save_coefficients(coeffs, tmp_path / "nested" / "model.txt")

    assert path.exists()
    assert not path.read_text(encoding="utf-8").endswith("\n")

    loaded = load_coefficients(path)
    assert loaded.bias == coeffs.bias
    assert torch.equal(loaded.weights, coeffs.weights)
    assert torch.equal(loaded.factors, coeffs.factors)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_coefficients(tmp_path / "missing.txt")


def test_corrupt_file(tmp_path):
    path = tmp_path / "model.txt"
    path.write_text("3:1,1,0:true,true,true\n0.0\n0,1.0", encoding="utf-8")
    with pytest.raises(CoefficientsDecodeError):
        load_coefficients(path)
