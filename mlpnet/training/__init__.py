"""Mini-batch optimizer and training loops."""

from .checkpoints import CheckpointStore
from .optimizer import SGDOptimizer, accumulate_gradients, learn_from_mini_batch
from .trainer import Trainer, train

__all__ = [
    "CheckpointStore",
    "SGDOptimizer",
    "Trainer",
    "accumulate_gradients",
    "learn_from_mini_batch",
    "train",
]
