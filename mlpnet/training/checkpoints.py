"""Best-epoch snapshots used to recover the best-performing epoch."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Optional, Tuple

from ..core.network import Network
from ..core.persistence import load_network, save_network

logger = logging.getLogger(__name__)

EpochKey = Tuple[int, int]


class CheckpointStore:
    """Snapshots private to one training run.

    Files live in a fresh temporary directory that is removed when the store
    is closed, which the context-manager protocol guarantees on every exit
    path::

        with CheckpointStore() as store:
            store.save(network, cycle=1, epoch=3)
            ...
            best = store.load(1, 3)
    """

    def __init__(self, root: "str | Path | None" = None) -> None:
        self._tmp = tempfile.TemporaryDirectory(prefix="mlpnet-ckpt-", dir=root)
        self.directory = Path(self._tmp.name)
        self._paths: Dict[EpochKey, Path] = {}

    def __enter__(self) -> "CheckpointStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._paths.clear()
        self._tmp.cleanup()

    def save(self, network: Network, *, cycle: int, epoch: int) -> Path:
        path = self.directory / f"cycle{cycle:03d}-epoch{epoch:05d}.net"
        save_network(network, path)
        self._paths[(cycle, epoch)] = path
        return path

    def prune(self, keep: EpochKey) -> None:
        """Delete every snapshot except the one for ``keep``."""

        for key in [k for k in self._paths if k != keep]:
            self._paths.pop(key).unlink(missing_ok=True)

    def path(self, cycle: int, epoch: int) -> Path:
        try:
            return self._paths[(cycle, epoch)]
        except KeyError as exc:
            raise KeyError(f"No snapshot for cycle {cycle}, epoch {epoch}") from exc

    def load(self, cycle: int, epoch: int) -> Network:
        return load_network(self.path(cycle, epoch))

    def restore_best(
        self,
        network: Network,
        cycle: int,
        epoch: int,
        out_path: Optional["str | Path"] = None,
    ) -> None:
        """Load the snapshot for ``(cycle, epoch)`` into ``network``.

        The snapshot is also copied to ``out_path`` when given, replacing any
        existing file.
        """

        source = self.path(cycle, epoch)
        network.copy_from(load_network(source))
        if out_path is not None:
            out_path = Path(out_path)
            out_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, out_path)
            logger.info("Copied best network (cycle %d, epoch %d) to %s", cycle, epoch, out_path)

    def __len__(self) -> int:
        return len(self._paths)


__all__ = ["CheckpointStore"]
