import pytest
import torch

from mfm.gaussian import GaussianRandom


def test_shapes_and_dtype():
    rng = GaussianRandom(seed=0)
    assert isinstance(rng.scalar(0.0, 1.0), float)
    vector = rng.vector(0.0, 1.0, 7)
    matrix = rng.matrix(0.0, 1.0, 3, 4)
    assert vector.shape == (7,)
    assert matrix.shape == (3, 4)
    assert vector.dtype == torch.float64
    assert matrix.dtype == torch.float64


def test_same_seed_gives_same_draws():
    a = GaussianRandom(seed=123)
    b = GaussianRandom(seed=123)
    assert a.scalar(0.0, 1.0) == b.scalar(0.0, 1.0)
    assert torch.equal(a.matrix(1.0, 0.5, 5, 2), b.matrix(1.0, 0.5, 5, 2))


def test_zero_stdev_returns_the_mean():
    rng = GaussianRandom(seed=0)
    assert torch.all(rng.vector(0.25, 0.0, 10) == 0.25)


def test_sample_statistics_follow_parameters():
    values = GaussianRandom(seed=1).vector(2.0, 0.5, 20000)
    assert values.mean().item() == pytest.approx(2.0, abs=0.02)
    assert values.std().item() == pytest.approx(0.5, abs=0.02)


def test_negative_stdev_is_rejected():
    with pytest.raises(ValueError):
        GaussianRandom(seed=0).matrix(0.0, -1.0, 2, 2)
