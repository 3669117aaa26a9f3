import copy

import pytest
import torch

import main
from config import CONFIG
from mfm.exceptions import CoefficientsError


@pytest.fixture
def config(tmp_path):
    config = copy.deepcopy(CONFIG)
    config.update({
        "num_features": 10,
        "num_interact_features": 6,
        "num_factors": 3,
        "init_stdev": 0.1,
        "model_path": str(tmp_path / "models" / "fm.txt"),
        "log_dir": str(tmp_path / "logs"),
    })
    return config


def test_run_creates_then_reloads_checkpoint(config):
    first = main.run(config)
    second = main.run(config)
    assert second.bias == first.bias
    assert torch.equal(second.weights, first.weights)
    assert torch.equal(second.factors, first.factors)


def test_run_prunes_before_saving(config):
    config.update({"prune_on_save": True, "l1_reg": [0.0, 1.0, 1.0], "step_size": 10.0})
    pruned = main.run(config)
    assert torch.count_nonzero(pruned.weights) == 0
    assert pruned.num_active_factors() == 0


def test_run_refuses_corrupt_checkpoint(config, tmp_path):
    path = tmp_path / "models" / "fm.txt"
    path.parent.mkdir(parents=True)
    path.write_text("not a checkpoint", encoding="utf-8")
    with pytest.raises(CoefficientsError):
        main.run(config)
