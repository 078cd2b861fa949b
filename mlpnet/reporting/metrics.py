"""Metric sinks that record per-epoch training progress."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Mapping, Optional


def _numeric(metrics: Mapping[str, object]) -> dict[str, float]:
    return {
        k: float(v)
        for k, v in metrics.items()
        if isinstance(v, (int, float)) and not isinstance(v, bool)
    }


class JsonlSink:
    """Append-only JSONL writer for epoch metrics."""

    def __init__(self, path: "str | Path", *, run: Optional[str] = None) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.run = run

    def on_epoch(self, epoch: int, metrics: Mapping[str, object]) -> None:
        record: dict[str, object] = {"epoch": int(epoch)}
        if self.run is not None:
            record["run"] = self.run
        record.update(_numeric(metrics))
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")

    __call__ = on_epoch


class CsvSink:
    """Write epoch metrics to CSV, one row per epoch."""

    fieldnames = ("epoch", "cycle", "learning_rate", "correct", "accuracy")

    def __init__(self, path: "str | Path") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8", newline="") as handle:
            csv.DictWriter(handle, fieldnames=self.fieldnames).writeheader()

    def on_epoch(self, epoch: int, metrics: Mapping[str, object]) -> None:
        row = {"epoch": int(epoch)}
        row.update({k: v for k, v in _numeric(metrics).items() if k in self.fieldnames})
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=self.fieldnames)
            writer.writerow(row)

    __call__ = on_epoch


class HistoryCapture:
    """Keep every epoch's metrics in memory."""

    def __init__(self) -> None:
        self.history: list[tuple[int, Mapping[str, float]]] = []

    def on_epoch(self, epoch: int, metrics: Mapping[str, object]) -> None:
        self.history.append((int(epoch), _numeric(metrics)))

    @property
    def last(self) -> Mapping[str, float]:
        return self.history[-1][1] if self.history else {}


__all__ = ["JsonlSink", "CsvSink", "HistoryCapture"]
