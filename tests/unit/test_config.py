import json

import numpy as np
import pytest

from mlpnet.config import (
    ScheduleConfig,
    TrainingConfig,
    build_network,
    load_experiment,
    load_preset,
    presets,
    read_config_file,
    training_config_from_mapping,
)
from mlpnet.core.errors import ConfigurationError


@pytest.mark.parametrize(
    "kwargs",
    [
        {"batch_size": 0, "learning_rate": 0.1},
        {"batch_size": 1.5, "learning_rate": 0.1},
        {"batch_size": 1, "learning_rate": 0.0},
        {"batch_size": 1, "learning_rate": float("nan")},
        {"batch_size": 1, "learning_rate": 0.1, "regularization": -1.0},
        {"batch_size": 1, "learning_rate": 0.1, "epochs": -1},
        {"batch_size": 1, "learning_rate": 0.1, "momentum": 1.0},
        {"batch_size": 1, "learning_rate": 0.1, "momentum": -0.1},
        {"batch_size": 1, "learning_rate": 0.1, "keep_probability": 0.0},
        {"batch_size": 1, "learning_rate": 0.1, "keep_probability": 1.5},
    ],
)
def test_invalid_training_values(kwargs):
    with pytest.raises(ConfigurationError):
        TrainingConfig(**kwargs)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"stall_epochs": 0, "rate_factor": 0.5, "cycles": 1},
        {"stall_epochs": 1, "rate_factor": 0.0, "cycles": 1},
        {"stall_epochs": 1, "rate_factor": 0.5, "cycles": 0},
    ],
)
def test_invalid_schedule_values(kwargs):
    with pytest.raises(ConfigurationError):
        ScheduleConfig(**kwargs)


def test_configuration_error_is_a_value_error():
    with pytest.raises(ValueError):
        TrainingConfig(batch_size=0, learning_rate=1.0)


def test_variant_flags():
    plain = TrainingConfig(batch_size=10, learning_rate=0.5)
    assert not plain.uses_momentum
    assert not plain.uses_dropout
    assert TrainingConfig(batch_size=10, learning_rate=0.5, momentum=0.0).uses_momentum
    assert not TrainingConfig(batch_size=10, learning_rate=0.5, keep_probability=1.0).uses_dropout
    assert TrainingConfig(batch_size=10, learning_rate=0.5, keep_probability=0.5).uses_dropout


def test_mapping_builds_nested_schedule():
    config = training_config_from_mapping(
        {
            "batch_size": 5,
            "learning_rate": 0.5,
            "schedule": {"stall_epochs": 3, "rate_factor": 0.5, "cycles": 2},
        }
    )
    assert config.schedule == ScheduleConfig(stall_epochs=3, rate_factor=0.5, cycles=2)
    assert config.as_dict()["schedule"]["cycles"] == 2


def test_mapping_rejects_unknown_and_missing_keys():
    with pytest.raises(ConfigurationError, match="lr"):
        training_config_from_mapping({"batch_size": 5, "lr": 0.5})
    with pytest.raises(ConfigurationError):
        training_config_from_mapping({"batch_size": 5})
    with pytest.raises(ConfigurationError):
        training_config_from_mapping(
            {"batch_size": 5, "learning_rate": 0.5, "schedule": {"cycles": 2}}
        )


def test_build_network_from_model_section():
    net = build_network({"layers": [3, 4, 2], "activation": "tanh", "cost": "quadratic"})
    assert net.layer_sizes == (3, 4, 2)
    assert net.activation.name == "tanh"
    with pytest.raises(ConfigurationError):
        build_network({"activation": "tanh"})


def test_read_yaml_and_json(tmp_path):
    yaml_path = tmp_path / "exp.yaml"
    yaml_path.write_text(
        "model:\n  layers: [2, 3, 2]\ntrain:\n  batch_size: 4\n  learning_rate: 0.25\n"
    )
    json_path = tmp_path / "exp.json"
    json_path.write_text(json.dumps({"model": {"layers": [2, 2]}, "train": {"batch_size": 1, "learning_rate": 1.0}}))

    assert read_config_file(yaml_path)["train"]["batch_size"] == 4
    net, config = load_experiment(json_path)
    assert net.layer_sizes == (2, 2)
    assert config.learning_rate == 1.0


def test_read_config_rejects_other_formats(tmp_path):
    path = tmp_path / "exp.toml"
    path.write_text("x = 1")
    with pytest.raises(ConfigurationError):
        read_config_file(path)
    listing = tmp_path / "list.json"
    listing.write_text("[1, 2]")
    with pytest.raises(ConfigurationError):
        read_config_file(listing)


def test_presets_build_and_are_isolated():
    names = set(presets())
    assert {"mnist-basic", "mnist-momentum", "mnist-scheduled", "mnist-dropout"} <= names
    preset = load_preset("mnist-basic")
    preset["train"]["batch_size"] = 999
    assert load_preset("mnist-basic")["train"]["batch_size"] == 10
    net, config = load_experiment("mnist-scheduled")
    assert net.layer_sizes[0] == 784
    assert config.schedule is not None
    with pytest.raises(KeyError):
        load_preset("does-not-exist")


def test_load_experiment_requires_both_sections():
    with pytest.raises(ConfigurationError):
        load_experiment({"model": {"layers": [2, 2]}})


def test_numpy_scalars_are_accepted_and_normalised():
    config = TrainingConfig(
        batch_size=np.int64(10),
        learning_rate=np.float32(0.5),
        regularization=np.float64(1.0),
        epochs=np.arange(5)[3],
        momentum=np.linspace(0.0, 0.5, 3)[1],
        seed=np.int32(7),
        schedule=ScheduleConfig(
            stall_epochs=np.int16(2), rate_factor=np.float32(0.5), cycles=np.uint8(3)
        ),
    )
    assert config.batch_size == 10 and type(config.batch_size) is int
    assert type(config.epochs) is int and config.epochs == 3
    assert type(config.seed) is int
    assert type(config.learning_rate) is float
    assert config.momentum == pytest.approx(0.25)
    assert type(config.schedule.cycles) is int
    assert type(config.schedule.rate_factor) is float
    assert json.loads(json.dumps(config.as_dict()))["batch_size"] == 10


def test_numpy_scalars_are_still_range_checked():
    with pytest.raises(ConfigurationError):
        TrainingConfig(batch_size=np.int64(0), learning_rate=0.5)
    with pytest.raises(ConfigurationError):
        TrainingConfig(batch_size=np.float64(2.0), learning_rate=0.5)
    with pytest.raises(ConfigurationError):
        TrainingConfig(batch_size=np.bool_(True), learning_rate=0.5)
    with pytest.raises(ConfigurationError):
        TrainingConfig(batch_size=1, learning_rate=np.float32("inf"))
