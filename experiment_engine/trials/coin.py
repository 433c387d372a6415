"""Unfair coin toss: the reference experiment.

Each toss draws a uniform value in [0, 1) and reports whether it fell below
`p`.  The experiment is available both as the keyed ``coin`` tag and as the
specialized `CoinTrial` class.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

import numpy as np

from . import AbstractTrial, register_trial

__all__ = ["CoinTrial", "toss"]


def toss(p: float, seed: Optional[int] = None) -> bool:
    """Toss a coin that lands heads with probability `p`."""
    rng = np.random.default_rng(seed)
    return bool(rng.random() < p)


@register_trial("coin", bool)
def coin(configuration: Mapping[str, Any]) -> bool:
    return toss(configuration["p"], configuration.get("seed"))


class CoinTrial(AbstractTrial):
    """Specialized coin trial (one type per experiment kind)."""

    def __init__(self, p: float, seed: Optional[int] = None):
        self.p = p
        self.seed = seed

    def conduct(self) -> bool:
        return toss(self.p, self.seed)

    @classmethod
    def resulttype(cls) -> type:
        return bool

    def __repr__(self) -> str:
        return f"CoinTrial(p={self.p}, seed={self.seed})"
