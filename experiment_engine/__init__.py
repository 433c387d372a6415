"""Parallel experiment engine: conduct batches of independent trials."""
from __future__ import annotations

from importlib import metadata as _metadata

try:
    __version__: str = _metadata.version("experiment-engine")
except _metadata.PackageNotFoundError:
    __version__ = "0.0.0-dev"

__all__ = [
    "config",
    "trials",
    "engine",
    "AbstractTrial",
    "KeyedTrial",
    "TrialNotImplementedError",
    "register_trial",
    "resulttype",
    "conduct",
    "conduct_batch",
]

from . import config
# Import to register the built-in trial kinds
from . import trials
from .trials import AbstractTrial, KeyedTrial, TrialNotImplementedError, register_trial, resulttype
from . import engine
from .engine import conduct, conduct_batch
