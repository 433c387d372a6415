"""Global configuration definitions.

All experiment-wide tunables (which trial kind to run, how many times, and how
to spread the work over workers) live here so that the CLI, the engine and the
tests share a single source.  Config objects can be created programmatically
or loaded from YAML files to facilitate batch experiments.
"""

from __future__ import annotations

import multiprocessing as mp
import os
import random
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import yaml

from .parallel import BACKENDS, WorkerPool
from .trials import KeyedTrial

__all__ = [
    "BACKENDS",
    "ExperimentConfig",
]

DEFAULT_YAML_INDENT = 2


@dataclass
class ExperimentConfig:
    """Container for all experiment parameters.

    Attributes
    ----------
    tag
        Registered keyed-trial tag (e.g. ``coin``).
    n_trials
        Number of trials in the batch.
    configuration
        Mapping handed to every trial of the batch.
    processes
        Worker pool size; ``None`` means one worker per CPU.
    backend
        ``process`` (multiprocessing pool) or ``thread`` (thread pool).
    chunksize
        Number of trials handed to a worker at once.
    start_method
        Multiprocessing start method for the process backend (``None``: platform default).
    seed
        Global random seed ensuring experiment reproducibility.
    seed_trials
        Derive a per-trial seed ``seed + i`` for trial ``i``.
    progress
        Show a progress bar while results are collected.
    """

    tag: str = "coin"
    n_trials: int = 1000
    configuration: Dict[str, Any] = field(default_factory=dict)
    processes: Optional[int] = None
    backend: str = "process"
    chunksize: int = 1
    start_method: Optional[str] = None
    seed: Optional[int] = 0
    seed_trials: bool = True
    progress: bool = True

    # Automatically filled, not expected to be loaded from file.
    _yaml_path: Optional[Path] = field(default=None, repr=False, compare=False)

    # ---------------------------------------------------------------------
    # YAML helpers
    # ---------------------------------------------------------------------
    @classmethod
    def from_yaml(cls, path: os.PathLike | str) -> "ExperimentConfig":
        """Load a configuration from a YAML file."""
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        cfg = cls(**data)
        cfg._yaml_path = Path(path)
        return cfg

    def to_yaml(self, path: os.PathLike | str) -> None:
        """Save the config to YAML."""
        data = asdict(self)
        data.pop("_yaml_path", None)
        with open(path, "w", encoding="utf-8") as fh:
            yaml.safe_dump(data, fh, indent=DEFAULT_YAML_INDENT)

    # ------------------------------------------------------------------
    # Random Seed Control
    # ------------------------------------------------------------------
    def set_global_seeds(self) -> None:
        """Seed `random` and `numpy` for everything running in this process."""
        if self.seed is None:
            return
        random.seed(self.seed)
        np.random.seed(self.seed)
        os.environ["PYTHONHASHSEED"] = str(self.seed)

    # ------------------------------------------------------------------
    # Batch construction
    # ------------------------------------------------------------------
    def build_batch(self) -> List[KeyedTrial]:
        """Build ``n_trials`` keyed trials for the configured tag."""
        batch = []
        for i in range(self.n_trials):
            configuration = dict(self.configuration)
            if self.seed_trials and self.seed is not None and "seed" not in configuration:
                configuration["seed"] = self.seed + i
            batch.append(KeyedTrial(self.tag, configuration))
        return batch

    def open_pool(self) -> WorkerPool:
        """Create the worker pool described by this config."""
        return WorkerPool(
            processes=self.processes,
            backend=self.backend,
            chunksize=self.chunksize,
            start_method=self.start_method,
        )

    # Convenience str representation for logging
    def __str__(self) -> str:  # noqa: DunderStr
        return (
            f"ExperimentConfig(tag={self.tag}, n_trials={self.n_trials}, "
            f"backend={self.backend}, processes={self.processes}, seed={self.seed})"
        )

    def __post_init__(self):
        if self.configuration is None:
            self.configuration = {}
        if self.n_trials < 0:
            raise ValueError(f"n_trials must be >= 0, got {self.n_trials}")
        if self.processes is not None and self.processes < 1:
            raise ValueError(f"processes must be >= 1, got {self.processes}")
        if self.chunksize < 1:
            raise ValueError(f"chunksize must be >= 1, got {self.chunksize}")
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown backend '{self.backend}'. Must be one of {BACKENDS}")
        if self.start_method is not None and self.start_method not in mp.get_all_start_methods():
            raise ValueError(
                f"Unknown start_method '{self.start_method}'. Must be one of {mp.get_all_start_methods()}"
            )
