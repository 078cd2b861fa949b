import numpy as np
import pytest

from mlpnet.config import ScheduleConfig, TrainingConfig
from mlpnet.core.errors import ConfigurationError
from mlpnet.core.network import Network
from mlpnet.data.synthetic import blob_samples
from mlpnet.reporting.metrics import HistoryCapture
from mlpnet.training.trainer import Trainer, train


def _scripted(network, monkeypatch, counts):
    script = iter(counts)
    monkeypatch.setattr(network, "evaluate", lambda samples: next(script))


def _data():
    samples = blob_samples(n_per_class=4, seed=1)
    return samples, samples[:10]


def test_scheduled_cycles_follow_stall_counter(monkeypatch):
    training, evaluation = _data()
    net = Network([2, 4, 3], seed=0)
    # epoch 0, then cycle 1: 5 5 6 4 6, cycle 2: 3 3 2
    _scripted(net, monkeypatch, [0, 5, 5, 6, 4, 6, 3, 3, 2])
    config = TrainingConfig(
        batch_size=4,
        learning_rate=0.8,
        seed=3,
        schedule=ScheduleConfig(stall_epochs=2, rate_factor=0.5, cycles=2),
    )
    capture = HistoryCapture()
    history = Trainer(net, config, callbacks=[capture]).run_scheduled(training, evaluation)

    trained = [r for r in history.records if r.epoch > 0]
    assert [(r.cycle, r.epoch) for r in trained] == [
        (1, 1), (1, 2), (1, 3), (1, 4), (1, 5), (2, 1), (2, 2), (2, 3)
    ]
    assert [r.learning_rate for r in trained] == [0.8] * 5 + [0.4] * 3
    assert history.epochs_trained == 8
    assert (history.best_cycle, history.best_epoch) == (1, 3)
    assert history.best_accuracy == pytest.approx(0.6)
    assert [epoch for epoch, _ in capture.history] == [0, 1, 2, 3, 4, 5, 1, 2, 3]


def test_keep_best_restores_best_epoch_and_writes_it(monkeypatch, tmp_path):
    training, evaluation = _data()
    net = Network([2, 4, 3], seed=0)
    _scripted(net, monkeypatch, [1, 3, 7, 5])
    snapshots = {}

    def remember(epoch, metrics):
        snapshots[epoch] = [w.copy() for w in net.weights]

    out = tmp_path / "best.net"
    config = TrainingConfig(batch_size=3, learning_rate=0.5, epochs=3, seed=2)
    history = Trainer(net, config, callbacks=[remember]).run(
        training, evaluation, keep_best=True, out_path=out
    )

    assert history.best_epoch == 2
    for i in range(1, net.num_layers):
        assert np.array_equal(net.weights[i], snapshots[2][i])
        assert not np.array_equal(net.weights[i], snapshots[3][i])
    saved = Network.load(out)
    for i in range(1, net.num_layers):
        assert np.array_equal(saved.weights[i], snapshots[2][i])


def test_without_keep_best_last_epoch_is_kept(monkeypatch, tmp_path):
    training, evaluation = _data()
    net = Network([2, 4, 3], seed=0)
    _scripted(net, monkeypatch, [1, 3, 7, 5])
    out = tmp_path / "last.net"
    config = TrainingConfig(batch_size=3, learning_rate=0.5, epochs=3, seed=2)
    Trainer(net, config).run(training, evaluation, out_path=out)
    saved = Network.load(out)
    assert np.array_equal(saved.weights[1], net.weights[1])


def test_keep_best_needs_evaluation_data():
    training, _ = _data()
    config = TrainingConfig(batch_size=3, learning_rate=0.5, epochs=1)
    with pytest.raises(ConfigurationError):
        Trainer(Network([2, 3], seed=0), config).run(training, keep_best=True)


def test_scheduled_run_needs_schedule_and_evaluation_data():
    training, evaluation = _data()
    plain = TrainingConfig(batch_size=3, learning_rate=0.5)
    with pytest.raises(ConfigurationError):
        Trainer(Network([2, 3], seed=0), plain).run_scheduled(training, evaluation)
    scheduled = TrainingConfig(
        batch_size=3,
        learning_rate=0.5,
        schedule=ScheduleConfig(stall_epochs=1, rate_factor=0.5, cycles=1),
    )
    with pytest.raises(ConfigurationError):
        train(Network([2, 3], seed=0), training, scheduled)


def test_zero_epochs_only_evaluates():
    training, evaluation = _data()
    net = Network([2, 3], seed=0)
    before = net.copy()
    config = TrainingConfig(batch_size=3, learning_rate=0.5, epochs=0)
    history = Trainer(net, config).run(training, evaluation)
    assert [r.epoch for r in history.records] == [0]
    assert history.best_epoch is None
    assert np.array_equal(net.weights[1], before.weights[1])


def test_plain_callables_receive_epoch_metrics():
    training, evaluation = _data()
    seen = []
    config = TrainingConfig(batch_size=3, learning_rate=0.5, epochs=2, seed=0)
    train(
        Network([2, 3], seed=0),
        training,
        config,
        evaluation,
        callbacks=[lambda epoch, metrics: seen.append((epoch, metrics["cycle"]))],
    )
    assert seen == [(0, 0), (1, 1), (2, 1)]


def test_keep_best_holds_at_most_one_snapshot(monkeypatch):
    from mlpnet.training import trainer as trainer_module
    from mlpnet.training.checkpoints import CheckpointStore

    stores = []

    class CountingStore(CheckpointStore):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self.saved = []
            self.on_disk = []
            stores.append(self)

        def save(self, network, *, cycle, epoch):
            self.saved.append((cycle, epoch))
            return super().save(network, cycle=cycle, epoch=epoch)

        def prune(self, keep):
            super().prune(keep)
            self.on_disk.append(len(list(self.directory.iterdir())))

    monkeypatch.setattr(trainer_module, "CheckpointStore", CountingStore)
    training, evaluation = _data()
    net = Network([2, 4, 3], seed=0)
    _scripted(net, monkeypatch, [1, 3, 7, 5, 8])
    config = TrainingConfig(batch_size=3, learning_rate=0.5, epochs=4, seed=2)
    history = Trainer(net, config).run(training, evaluation, keep_best=True)

    (store,) = stores
    assert store.saved == [(1, 1), (1, 2), (1, 4)]
    assert store.on_disk == [1, 1, 1]
    assert history.best_epoch == 4
