"""Epoch loops for every optimizer variant."""

from __future__ import annotations

import logging
from contextlib import nullcontext
from pathlib import Path
from typing import ContextManager, List, Mapping, Optional, Sequence

import numpy as np

from ..config import TrainingConfig
from ..core.errors import ConfigurationError
from ..core.network import Network
from ..core.types import Classifiable, EpochRecord, TrainingHistory
from .checkpoints import CheckpointStore
from .optimizer import SGDOptimizer, learn_from_mini_batch

logger = logging.getLogger(__name__)


class Trainer:
    """Train one network with the variant selected by a :class:`TrainingConfig`.

    Plain SGD, L2 weight decay, momentum and dropout all share the same
    mini-batch loop; :meth:`run` trains for a fixed number of epochs and
    :meth:`run_scheduled` shrinks the learning rate whenever held-out
    accuracy stalls. Both can keep the best epoch's parameters instead of
    the last ones (``keep_best=True``).

    Callbacks receive ``on_epoch(epoch, metrics)`` (or are called directly)
    after every epoch, including the untrained evaluation as epoch 0.
    """

    def __init__(
        self,
        network: Network,
        config: TrainingConfig,
        callbacks: Optional[Sequence[object]] = None,
        *,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.network = network
        self.config = config
        self.callbacks = list(callbacks or [])
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)
        self.optimizer = SGDOptimizer(
            regularization=config.regularization, momentum=config.momentum
        )

    # ------------------------------------------------------------------
    # Public entry points

    def train_epoch(
        self, training_data: Sequence[Optional[Classifiable]], learning_rate: float
    ) -> int:
        """Shuffle ``training_data`` and take one step per mini-batch.

        Returns the number of samples that contributed to an update.
        """

        size = len(training_data)
        batch_size = self.config.batch_size
        order = self.rng.permutation(size)
        used = 0
        for start in range(0, size, batch_size):
            batch = [training_data[idx] for idx in order[start : start + batch_size]]
            used += learn_from_mini_batch(
                self.network,
                batch,
                self.optimizer,
                learning_rate,
                size,
                keep_probability=self.config.keep_probability,
                rng=self.rng,
            )
        return used

    def run(
        self,
        training_data: Sequence[Optional[Classifiable]],
        eval_data: Optional[Sequence[Classifiable]] = None,
        *,
        epochs: Optional[int] = None,
        keep_best: bool = False,
        out_path: "str | Path | None" = None,
    ) -> TrainingHistory:
        """Train for ``epochs`` (default ``config.epochs``) at a fixed rate."""

        epochs = self.config.epochs if epochs is None else epochs
        if epochs < 0:
            raise ConfigurationError(f"epochs must be >= 0, got {epochs}")
        data, eval_data = self._prepare(training_data, eval_data, keep_best)
        learning_rate = self.config.learning_rate
        history = TrainingHistory()

        with self._checkpoints(keep_best) as store:
            self._evaluate_untrained(eval_data, history, learning_rate)
            for epoch in range(1, epochs + 1):
                logger.info("Epoch #%d: learning...", epoch)
                self.train_epoch(data, learning_rate)
                self._finish_epoch(history, eval_data, 1, epoch, learning_rate, store)
            self._finalise(history, store, out_path)
        return history

    def run_scheduled(
        self,
        training_data: Sequence[Optional[Classifiable]],
        eval_data: Sequence[Classifiable],
        *,
        keep_best: bool = False,
        out_path: "str | Path | None" = None,
    ) -> TrainingHistory:
        """Train in cycles, multiplying the rate by ``rate_factor`` between them.

        A cycle ends once accuracy has failed to beat the cycle's best for
        ``stall_epochs`` consecutive epochs; ties count as a stall.
        """

        schedule = self.config.schedule
        if schedule is None:
            raise ConfigurationError("Scheduled training requires `schedule` in the config")
        if not eval_data:
            raise ConfigurationError("Scheduled training requires evaluation data")
        data, eval_data = self._prepare(training_data, eval_data, keep_best)
        learning_rate = self.config.learning_rate
        history = TrainingHistory()

        with self._checkpoints(keep_best) as store:
            self._evaluate_untrained(eval_data, history, learning_rate)
            for cycle in range(1, schedule.cycles + 1):
                logger.info("Cycle #%d (learning rate = %g)", cycle, learning_rate)
                cycle_best: Optional[float] = None
                stalled = 0
                epoch = 0
                while stalled < schedule.stall_epochs:
                    epoch += 1
                    logger.info("Cycle #%d, epoch #%d: learning...", cycle, epoch)
                    self.train_epoch(data, learning_rate)
                    record = self._finish_epoch(
                        history, eval_data, cycle, epoch, learning_rate, store
                    )
                    accuracy = record.accuracy
                    if cycle_best is None or (accuracy is not None and accuracy > cycle_best):
                        cycle_best = accuracy
                        stalled = 0
                    else:
                        stalled += 1
                learning_rate *= schedule.rate_factor
            self._finalise(history, store, out_path)
        return history

    # ------------------------------------------------------------------
    # Internal helpers

    def _prepare(
        self,
        training_data: Sequence[Optional[Classifiable]],
        eval_data: Optional[Sequence[Classifiable]],
        keep_best: bool,
    ) -> tuple[List[Optional[Classifiable]], Optional[List[Classifiable]]]:
        if keep_best and not eval_data:
            raise ConfigurationError("keep_best requires evaluation data")
        self.optimizer.reset(self.network)
        data = list(training_data)
        return data, list(eval_data) if eval_data else None

    @staticmethod
    def _checkpoints(keep_best: bool) -> ContextManager[Optional[CheckpointStore]]:
        if keep_best:
            return CheckpointStore()
        return nullcontext()

    def _evaluate_untrained(
        self,
        eval_data: Optional[Sequence[Classifiable]],
        history: TrainingHistory,
        learning_rate: float,
    ) -> None:
        if not eval_data:
            return
        correct = self.network.evaluate(eval_data)
        record = EpochRecord(
            epoch=0, cycle=0, learning_rate=learning_rate, correct=correct, total=len(eval_data)
        )
        history.add(record)
        logger.info("No training: %.2f%% correctly classified", 100.0 * record.accuracy)
        self._emit_epoch(0, record.as_metrics())

    def _finish_epoch(
        self,
        history: TrainingHistory,
        eval_data: Optional[Sequence[Classifiable]],
        cycle: int,
        epoch: int,
        learning_rate: float,
        store: Optional[CheckpointStore],
    ) -> EpochRecord:
        if not self._parameters_finite():
            logger.warning(
                "Non-finite parameters after cycle %d, epoch %d; check the learning "
                "rate and cost function domain",
                cycle,
                epoch,
            )
        correct = total = None
        if eval_data:
            correct = self.network.evaluate(eval_data)
            total = len(eval_data)
        record = EpochRecord(
            epoch=epoch, cycle=cycle, learning_rate=learning_rate, correct=correct, total=total
        )
        improved = history.add(record)
        if record.accuracy is not None:
            logger.info(
                "Cycle #%d, epoch #%d: %.2f%% correctly classified%s",
                cycle,
                epoch,
                100.0 * record.accuracy,
                " (best so far)" if improved else "",
            )
        if store is not None and improved:
            store.save(self.network, cycle=cycle, epoch=epoch)
            store.prune(keep=(cycle, epoch))
        self._emit_epoch(epoch, record.as_metrics())
        return record

    def _finalise(
        self,
        history: TrainingHistory,
        store: Optional[CheckpointStore],
        out_path: "str | Path | None",
    ) -> None:
        if history.best_accuracy is not None:
            logger.info(
                "Best classification rate %.2f%% at cycle #%d, epoch #%d",
                100.0 * history.best_accuracy,
                history.best_cycle,
                history.best_epoch,
            )
        if store is not None and history.best_epoch is not None:
            store.restore_best(self.network, history.best_cycle, history.best_epoch, out_path)
        elif out_path is not None:
            self.network.save(out_path)

    def _parameters_finite(self) -> bool:
        return all(
            np.all(np.isfinite(w)) and np.all(np.isfinite(b))
            for w, b in zip(self.network.weights, self.network.biases)
        )

    def _emit_epoch(self, epoch: int, metrics: Mapping[str, object]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)


def train(
    network: Network,
    training_data: Sequence[Optional[Classifiable]],
    config: TrainingConfig,
    eval_data: Optional[Sequence[Classifiable]] = None,
    *,
    keep_best: bool = False,
    out_path: "str | Path | None" = None,
    callbacks: Optional[Sequence[object]] = None,
) -> TrainingHistory:
    """Run the variant described by ``config`` on ``network``.

    A config with a ``schedule`` runs scheduled cycles, otherwise a fixed
    number of epochs.
    """

    trainer = Trainer(network, config, callbacks=callbacks)
    if config.schedule is not None:
        if eval_data is None:
            raise ConfigurationError("Scheduled training requires evaluation data")
        return trainer.run_scheduled(
            training_data, eval_data, keep_best=keep_best, out_path=out_path
        )
    return trainer.run(training_data, eval_data, keep_best=keep_best, out_path=out_path)


__all__ = ["Trainer", "train"]
