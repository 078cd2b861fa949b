"""Training configuration values, config files and named presets."""

from __future__ import annotations

import json
import math
import numbers
from copy import deepcopy
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import numpy as np

from .core.errors import ConfigurationError
from .core.network import Network


@dataclass(frozen=True)
class ScheduleConfig:
    """Learning-rate schedule: shrink the rate whenever accuracy stalls.

    Attributes
    ----------
    stall_epochs:
        Consecutive epochs without a strictly better accuracy (since the last
        rate change) that end a cycle.
    rate_factor:
        Multiplier applied to the learning rate between cycles.
    cycles:
        Number of cycles to run.
    """

    stall_epochs: int
    rate_factor: float
    cycles: int

    def __post_init__(self) -> None:
        _set(self, "stall_epochs", _require_int("stall_epochs", self.stall_epochs, minimum=1))
        _set(self, "cycles", _require_int("cycles", self.cycles, minimum=1))
        if not _is_finite(self.rate_factor) or self.rate_factor <= 0:
            raise ConfigurationError(f"rate_factor must be positive, got {self.rate_factor!r}")
        _set(self, "rate_factor", float(self.rate_factor))


@dataclass(frozen=True)
class TrainingConfig:
    """Hyperparameters for one optimizer run.

    ``momentum`` and ``keep_probability`` switch on the momentum and dropout
    variants; ``schedule`` is only consulted by scheduled runs. Values are
    validated eagerly so that a bad configuration never reaches the update
    rule.
    """

    batch_size: int
    learning_rate: float
    regularization: float = 0.0
    epochs: int = 1
    momentum: Optional[float] = None
    keep_probability: Optional[float] = None
    seed: Optional[int] = None
    schedule: Optional[ScheduleConfig] = None

    def __post_init__(self) -> None:
        _set(self, "batch_size", _require_int("batch_size", self.batch_size, minimum=1))
        _set(self, "epochs", _require_int("epochs", self.epochs, minimum=0))
        if not _is_finite(self.learning_rate) or self.learning_rate <= 0:
            raise ConfigurationError(
                f"learning_rate must be positive, got {self.learning_rate!r}"
            )
        if not _is_finite(self.regularization) or self.regularization < 0:
            raise ConfigurationError(
                f"regularization must be non-negative, got {self.regularization!r}"
            )
        if self.momentum is not None and not (
            _is_finite(self.momentum) and 0.0 <= self.momentum < 1.0
        ):
            raise ConfigurationError(f"momentum must lie in [0, 1), got {self.momentum!r}")
        if self.keep_probability is not None and not (
            _is_finite(self.keep_probability) and 0.0 < self.keep_probability <= 1.0
        ):
            raise ConfigurationError(
                f"keep_probability must lie in (0, 1], got {self.keep_probability!r}"
            )
        if self.seed is not None:
            _set(self, "seed", _require_int("seed", self.seed, minimum=0))
        for name in ("learning_rate", "regularization", "momentum", "keep_probability"):
            value = getattr(self, name)
            if value is not None:
                _set(self, name, float(value))

    @property
    def uses_momentum(self) -> bool:
        return self.momentum is not None

    @property
    def uses_dropout(self) -> bool:
        return self.keep_probability is not None and self.keep_probability < 1.0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _set(config: object, name: str, value: object) -> None:
    # frozen dataclass: normalise numpy scalars to builtins after validation
    object.__setattr__(config, name, value)


def _is_finite(value: object) -> bool:
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, (bool, np.bool_))
        and math.isfinite(value)
    )


def _require_int(name: str, value: object, *, minimum: int) -> int:
    if (
        isinstance(value, (bool, np.bool_))
        or not isinstance(value, numbers.Integral)
        or value < minimum
    ):
        raise ConfigurationError(f"{name} must be an integer >= {minimum}, got {value!r}")
    return int(value)


def training_config_from_mapping(data: Mapping[str, Any]) -> TrainingConfig:
    """Build a :class:`TrainingConfig` from a ``train`` config section."""

    known = {f.name for f in fields(TrainingConfig)}
    unknown = set(data) - known
    if unknown:
        raise ConfigurationError(f"Unknown training options: {', '.join(sorted(unknown))}")
    values = dict(data)
    schedule = values.get("schedule")
    if isinstance(schedule, Mapping):
        try:
            values["schedule"] = ScheduleConfig(**schedule)
        except TypeError as exc:
            raise ConfigurationError(f"Invalid schedule section: {exc}") from exc
    try:
        return TrainingConfig(**values)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid training section: {exc}") from exc


def build_network(model_cfg: Mapping[str, Any]) -> Network:
    """Build a freshly initialised :class:`Network` from a ``model`` section."""

    if "layers" not in model_cfg:
        raise ConfigurationError("Model config requires `layers`")
    return Network(
        list(model_cfg["layers"]),
        activation=model_cfg.get("activation", "sigmoid"),
        cost=model_cfg.get("cost", "cross_entropy"),
        seed=model_cfg.get("seed"),
    )


def read_config_file(path: "str | Path") -> Mapping[str, Any]:
    """Read a JSON or YAML config file into a mapping."""

    path = Path(path)
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ConfigurationError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Config {path.name} must decode to a mapping")
    return data


_PRESETS: Dict[str, Mapping[str, Any]] = {
    "mnist-basic": {
        "model": {"layers": [784, 30, 10], "activation": "sigmoid", "cost": "quadratic"},
        "train": {"batch_size": 10, "learning_rate": 3.0, "epochs": 30},
    },
    "mnist-l2": {
        "model": {"layers": [784, 100, 10], "activation": "sigmoid", "cost": "cross_entropy"},
        "train": {
            "batch_size": 10,
            "learning_rate": 0.5,
            "regularization": 5.0,
            "epochs": 30,
        },
    },
    "mnist-momentum": {
        "model": {"layers": [784, 50, 10], "activation": "sigmoid", "cost": "cross_entropy"},
        "train": {
            "batch_size": 5,
            "learning_rate": 0.5,
            "regularization": 5.0,
            "momentum": 0.2,
            "epochs": 20,
        },
    },
    "mnist-scheduled": {
        "model": {"layers": [784, 50, 10], "activation": "sigmoid", "cost": "cross_entropy"},
        "train": {
            "batch_size": 5,
            "learning_rate": 0.5,
            "regularization": 8.0,
            "momentum": 0.2,
            "schedule": {"stall_epochs": 3, "rate_factor": 0.5, "cycles": 4},
        },
    },
    "mnist-dropout": {
        "model": {"layers": [784, 100, 10], "activation": "sigmoid", "cost": "cross_entropy"},
        "train": {
            "batch_size": 10,
            "learning_rate": 0.5,
            "regularization": 1.0,
            "keep_probability": 0.5,
            "epochs": 30,
        },
    },
}


def presets() -> Mapping[str, Mapping[str, Any]]:
    return {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}


def load_preset(name: str) -> Mapping[str, Any]:
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        available = ", ".join(sorted(_PRESETS))
        raise KeyError(f"Unknown preset: {name}. Available presets: {available}") from exc


def load_experiment(source: "str | Path | Mapping[str, Any]") -> tuple[Network, TrainingConfig]:
    """Turn a preset name, config file or mapping into a network and config."""

    if isinstance(source, Mapping):
        config = source
    elif isinstance(source, str) and source in _PRESETS:
        config = load_preset(source)
    else:
        config = read_config_file(source)
    missing = {"model", "train"} - set(config)
    if missing:
        raise ConfigurationError(
            f"Config is missing required sections: {', '.join(sorted(missing))}"
        )
    return build_network(config["model"]), training_config_from_mapping(config["train"])


__all__ = [
    "ScheduleConfig",
    "TrainingConfig",
    "training_config_from_mapping",
    "build_network",
    "read_config_file",
    "presets",
    "load_preset",
    "load_experiment",
]
