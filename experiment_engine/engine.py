"""Execution engine that conducts a batch of trials over a worker pool.

Two tasks run concurrently for every batch:

* the producer fans the trials out over the pool and pushes each result onto
  a bounded `ResultChannel` the moment a worker returns it, then closes the
  channel once every trial is accounted for;
* the collector drains the channel into a list and advances the progress bar
  once per result, stopping at the sentinel.

Results therefore come back in completion order. A failing trial aborts the
whole batch; no partial collection is returned.
"""
from __future__ import annotations

import logging
import os
import pickle
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from . import trials
from .channel import ResultChannel
from .config import ExperimentConfig
from .parallel import WorkerPool
from .progress import ProgressBar, ProgressFactory, make_progress

__all__ = ["conduct", "conduct_batch", "conduct_trial"]

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Engine entry-points
# ------------------------------------------------------------------

def conduct_trial(item: Tuple[Optional[Callable[[Mapping[str, Any]], Any]], Any]) -> Any:
    """Worker-side function: run one work item (top-level so it pickles).

    Keyed trials arrive as ``(execute, configuration)``, resolved against the
    registry of the calling process; any other trial arrives as ``(None, trial)``.
    """
    execute, payload = item
    if execute is None:
        return trials.conduct(payload)
    return execute(payload)


def conduct(obj, **kwargs):
    """Conduct a single trial, or a batch of trials in parallel."""
    if isinstance(obj, trials.AbstractTrial):
        return trials.conduct(obj)
    return conduct_batch(obj, **kwargs)


def conduct_batch(
    batch: Iterable[trials.AbstractTrial],
    pool: Optional[WorkerPool] = None,
    config: Optional[ExperimentConfig] = None,
    progress: Optional[ProgressFactory] = None,
) -> List[Any]:
    """Conduct every trial of `batch` over a worker pool.

    Parameters
    ----------
    batch
        Trials sharing one declared result type.
    pool
        Externally managed pool. When ``None`` a pool is opened from `config`
        for the duration of the call (and only if the batch is non-empty).
    config
        Supplies the pool settings and whether to show progress.
    progress
        Factory ``total -> ProgressBar``; defaults to a tqdm bar.
    """
    batch = list(batch)
    cfg = config or ExperimentConfig()
    result_type = _declared_resulttype(batch)

    if pool is None and batch:
        with cfg.open_pool() as own_pool:
            return _run(batch, own_pool, result_type, cfg, progress)
    return _run(batch, pool, result_type, cfg, progress)


# ------------------------------------------------------------------
# Internals
# ------------------------------------------------------------------

def _declared_resulttype(batch: Sequence[trials.AbstractTrial]) -> Optional[type]:
    """Resolve result types up front so capability errors surface before dispatch."""
    declared = {trials.resulttype(t) for t in batch}
    if len(declared) > 1:
        names = sorted(t.__name__ for t in declared)
        raise TypeError(f"Batch mixes result types {names}; all trials must declare the same type")
    return declared.pop() if declared else None


def _work_items(batch: Sequence[trials.AbstractTrial], pool: Optional[WorkerPool]) -> List[Tuple[Any, Any]]:
    """Pair each trial with what a worker needs to run it without the registry."""
    kinds = {}
    items = []
    for trial in batch:
        if isinstance(trial, trials.KeyedTrial):
            kind = kinds.get(trial.tag)
            if kind is None:
                kind = kinds[trial.tag] = trials.get_trial_kind(trial.tag)
                if pool is not None and pool.backend == "process":
                    _check_picklable(kind)
            items.append((kind.execute, dict(trial.configuration)))
        else:
            items.append((None, trial))
    return items


def _check_picklable(kind: trials.TrialKind) -> None:
    try:
        pickle.dumps(kind.execute)
    except (pickle.PicklingError, AttributeError, TypeError) as exc:
        raise TypeError(
            f"Trial '{kind.tag}' cannot be sent to worker processes: {kind.execute!r} "
            "is not a module-level function. Register a top-level function or use the thread backend."
        ) from exc


def _run(
    batch: List[trials.AbstractTrial],
    pool: Optional[WorkerPool],
    result_type: Optional[type],
    cfg: ExperimentConfig,
    progress: Optional[ProgressFactory],
) -> List[Any]:
    n_workers = pool.size if pool is not None else (cfg.processes or os.cpu_count() or 1)
    items = _work_items(batch, pool)
    logger.info("Distributing %d trials over %d workers", len(batch), n_workers)

    channel: ResultChannel[Any] = ResultChannel(len(batch), result_type)
    if progress is None:
        bar = make_progress(len(batch), enabled=cfg.progress)
    else:
        bar = progress(len(batch))

    try:
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="experiment-engine") as tasks:
            collector = tasks.submit(_collect, channel, bar)
            producer = tasks.submit(_produce, items, pool, channel)
            wait([collector, producer])
    finally:
        bar.close()

    # The producer's error is the root cause whenever both tasks fail.
    producer.result()
    results = collector.result()
    logger.debug("Collected %d results", len(results))
    return results


def _collect(channel: ResultChannel, bar: ProgressBar) -> List[Any]:
    results: List[Any] = []
    for result in channel:
        results.append(result)
        bar.update(1)
    return results


def _produce(items: List[Tuple[Any, Any]], pool: Optional[WorkerPool], channel: ResultChannel) -> None:
    try:
        if items:
            # Exhausting the iterator is the barrier: every trial has finished.
            for result in pool.imap_unordered(conduct_trial, items):
                channel.put(result)
    finally:
        # The collector only stops on the sentinel, failures included.
        channel.close()
