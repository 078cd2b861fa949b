"""Deterministic summaries of JSONL metric files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Mapping

import numpy as np


def _extract_numeric(records: Iterable[Mapping[str, object]]) -> Mapping[str, list[float]]:
    metrics: dict[str, list[float]] = {}
    for record in records:
        for key, value in record.items():
            if key in {"epoch", "cycle"}:
                continue
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                metrics.setdefault(key, []).append(float(value))
    return metrics


def summarise(records: list[Mapping[str, object]]) -> Mapping[str, object]:
    summary_metrics: dict[str, Mapping[str, float]] = {}
    for name, values in _extract_numeric(records).items():
        arr = np.asarray(values, dtype=np.float64)
        summary_metrics[name] = {
            "min": float(np.min(arr)),
            "max": float(np.max(arr)),
            "mean": float(np.mean(arr)),
            "last": float(arr[-1]),
        }
    best_epoch = None
    best_accuracy = None
    for record in records:
        accuracy = record.get("accuracy")
        if not isinstance(accuracy, (int, float)) or record.get("epoch", 0) == 0:
            continue
        if best_accuracy is None or accuracy > best_accuracy:
            best_accuracy = float(accuracy)
            best_epoch = {"cycle": record.get("cycle"), "epoch": record.get("epoch")}
    return {
        "version": 1,
        "records": len(records),
        "best": {"accuracy": best_accuracy, **(best_epoch or {})},
        "metrics": summary_metrics,
    }


def write_summary(metrics_jsonl: "str | Path", out_summary_json: "str | Path") -> str:
    """Write a JSON summary of the epoch records in ``metrics_jsonl``."""

    metrics_path = Path(metrics_jsonl)
    out_path = Path(out_summary_json)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    records: list[Mapping[str, object]] = []
    if metrics_path.exists():
        for line in metrics_path.read_text().splitlines():
            line = line.strip()
            if not line:
                continue
            records.append(json.loads(line))

    out_path.write_text(json.dumps(summarise(records), sort_keys=True, indent=2))
    return str(out_path)


__all__ = ["summarise", "write_summary"]
