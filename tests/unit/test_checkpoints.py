import numpy as np
import pytest

from mlpnet.core.network import Network
from mlpnet.training.checkpoints import CheckpointStore


def test_snapshots_are_removed_on_exit(tmp_path):
    with CheckpointStore(root=tmp_path) as store:
        directory = store.directory
        store.save(Network([3, 2], seed=0), cycle=1, epoch=1)
        store.save(Network([3, 2], seed=1), cycle=1, epoch=2)
        assert len(store) == 2
        assert directory.exists()
    assert not directory.exists()


def test_snapshots_are_removed_when_training_fails(tmp_path):
    with pytest.raises(RuntimeError):
        with CheckpointStore(root=tmp_path) as store:
            directory = store.directory
            store.save(Network([3, 2], seed=0), cycle=1, epoch=1)
            raise RuntimeError("boom")
    assert not directory.exists()


def test_restore_best_loads_snapshot_and_copies_it(tmp_path):
    best = Network([3, 4, 2], seed=5)
    current = Network([3, 4, 2], seed=6)
    out = tmp_path / "out" / "best.net"
    with CheckpointStore(root=tmp_path) as store:
        store.save(best, cycle=2, epoch=7)
        store.restore_best(current, 2, 7, out_path=out)
        assert store.load(2, 7).layer_sizes == (3, 4, 2)
    for i in range(1, best.num_layers):
        assert np.array_equal(current.weights[i], best.weights[i])
    reloaded = Network.load(out)
    assert np.array_equal(reloaded.weights[2], best.weights[2])


def test_unknown_snapshot_raises_key_error(tmp_path):
    with CheckpointStore(root=tmp_path) as store:
        with pytest.raises(KeyError):
            store.path(1, 1)


def test_prune_keeps_only_the_named_snapshot(tmp_path):
    with CheckpointStore(root=tmp_path) as store:
        for epoch in (1, 2, 3):
            store.save(Network([3, 2], seed=epoch), cycle=1, epoch=epoch)
        kept = store.path(1, 2)
        store.prune(keep=(1, 2))
        assert len(store) == 1
        assert list(store.directory.iterdir()) == [kept]
        with pytest.raises(KeyError):
            store.path(1, 3)
