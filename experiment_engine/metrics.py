"""Summary statistics over a collection of trial results."""
from __future__ import annotations

from typing import Any, Dict, Sequence

import numpy as np

__all__ = [
    "summarize",
    "fraction_true",
]


def summarize(results: Sequence[Any]) -> Dict[str, float]:
    """Count, mean, standard deviation, min and max of numeric (or boolean) results."""
    values = np.asarray(results, dtype=float)
    if values.size == 0:
        return {"n": 0, "mean": float("nan"), "std": float("nan"), "min": float("nan"), "max": float("nan")}
    return {
        "n": int(values.size),
        "mean": float(np.mean(values)),
        "std": float(np.std(values)),
        "min": float(np.min(values)),
        "max": float(np.max(values)),
    }


def fraction_true(results: Sequence[Any]) -> float:
    """Share of truthy results, e.g. the heads rate of a batch of coin tosses."""
    if len(results) == 0:
        return float("nan")
    return float(np.count_nonzero(np.asarray(results, dtype=bool)) / len(results))
