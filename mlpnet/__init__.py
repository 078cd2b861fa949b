"""mlpnet public API."""

from .classification import CompositeClassifier
from .config import ScheduleConfig, TrainingConfig, load_experiment, load_preset, presets
from .core.activations import ACTIVATIONS, SIGMOID, TANH
from .core.costs import COSTS, CROSS_ENTROPY, QUADRATIC
from .core.errors import ConfigurationError, NetworkError, PersistenceError
from .core.network import Network
from .core.persistence import load_network, save_network
from .core.types import Classifiable, TrainingHistory
from .data import VectorSample
from .training import SGDOptimizer, Trainer, train

__version__ = "0.1.0"

__all__ = [
    "ACTIVATIONS",
    "COSTS",
    "CROSS_ENTROPY",
    "Classifiable",
    "CompositeClassifier",
    "ConfigurationError",
    "Network",
    "NetworkError",
    "PersistenceError",
    "QUADRATIC",
    "SGDOptimizer",
    "SIGMOID",
    "ScheduleConfig",
    "TANH",
    "Trainer",
    "TrainingConfig",
    "TrainingHistory",
    "VectorSample",
    "load_experiment",
    "load_network",
    "load_preset",
    "presets",
    "save_network",
    "train",
]
