"""Normal draws, useful for checking summaries and CDF plots."""
from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from . import register_trial


@register_trial("gaussian", float)
def gaussian(configuration: Mapping[str, Any]) -> float:
    rng = np.random.default_rng(configuration.get("seed"))
    mu = float(configuration.get("mu", 0.0))
    sigma = float(configuration.get("sigma", 1.0))
    return float(rng.normal(mu, sigma))
