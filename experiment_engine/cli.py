"""Command‐line interface entry‐point.

Usage examples
--------------
List the registered trial kinds:
    python -m experiment_engine.cli list

Conduct a single trial:
    python -m experiment_engine.cli run --config cfgs/coin.yaml

Batch (1000 coin tosses on 4 worker processes):
    python -m experiment_engine.cli batch --config cfgs/coin.yaml --n_trials 1000 --processes 4
"""
from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List

import yaml

from .config import BACKENDS, ExperimentConfig
from .engine import conduct_batch
from .metrics import fraction_true, summarize
from .trials import conduct, get_trial_kind, registered_tags


def _parse_args(argv: List[str] | None = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="experiment_engine", description="Parallel trial engine")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...)")

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    # ------------------------------------------------------------------
    # list
    # ------------------------------------------------------------------
    subparsers.add_parser("list", help="List registered trial tags")

    # ------------------------------------------------------------------
    # run
    # ------------------------------------------------------------------
    p_run = subparsers.add_parser("run", help="Conduct a single trial")
    p_run.add_argument("--config", required=True, type=Path, help="YAML config file")

    # ------------------------------------------------------------------
    # batch
    # ------------------------------------------------------------------
    p_batch = subparsers.add_parser("batch", help="Conduct a batch of trials in parallel")
    p_batch.add_argument("--config", required=True, type=Path, help="YAML config file")
    p_batch.add_argument("--n_trials", type=int, default=None, help="Override the number of trials")
    p_batch.add_argument("--processes", type=int, default=None, help="Number of workers")
    p_batch.add_argument("--backend", choices=BACKENDS, default=None, help="Worker pool backend")
    p_batch.add_argument("--seed", type=int, default=None, help="Override the random seed")
    p_batch.add_argument("--no-progress", dest="progress", action="store_false", help="Hide the progress bar")
    p_batch.set_defaults(progress=None)
    p_batch.add_argument("--results_path", type=Path, default=None, help="Save the results to this YAML file")
    p_batch.add_argument("--plot", type=Path, default=None, help="Save an empirical CDF of the results (PNG + SVG)")
    return parser


def _apply_overrides(cfg: ExperimentConfig, args: argparse.Namespace) -> ExperimentConfig:
    overrides = {
        "n_trials": args.n_trials,
        "processes": args.processes,
        "backend": args.backend,
        "seed": args.seed,
        "progress": args.progress,
    }
    return dataclasses.replace(cfg, **{k: v for k, v in overrides.items() if v is not None})


def main(argv: List[str] | None = None) -> None:  # noqa: D401
    """Main entry point for the command-line interface."""
    parser = _parse_args(argv)
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "list":
        for tag in registered_tags():
            print(f"{tag}: {get_trial_kind(tag).resulttype.__name__}")

    elif args.cmd == "run":
        cfg = ExperimentConfig.from_yaml(args.config)
        cfg.set_global_seeds()
        trial = dataclasses.replace(cfg, n_trials=1).build_batch()[0]
        result = conduct(trial)
        print(f"Result = {result!r} (tag={cfg.tag})")

    elif args.cmd == "batch":
        cfg = _apply_overrides(ExperimentConfig.from_yaml(args.config), args)
        cfg.set_global_seeds()
        batch = cfg.build_batch()
        results = conduct_batch(batch, config=cfg)

        stats = summarize(results)
        print(
            f"Conducted {stats['n']} trials (tag={cfg.tag}): "
            f"mean={stats['mean']:.4g} std={stats['std']:.4g} min={stats['min']:.4g} max={stats['max']:.4g}"
        )
        if get_trial_kind(cfg.tag).resulttype is bool:
            print(f"Fraction true = {fraction_true(results):.4f}")

        if args.results_path is not None:
            args.results_path.parent.mkdir(parents=True, exist_ok=True)
            with open(args.results_path, "w", encoding="utf-8") as fh:
                yaml.safe_dump({"config": str(cfg), "summary": stats, "results": list(results)}, fh)
            print(f"Results saved to {args.results_path}")

        if args.plot is not None:
            from .visualize import plot_result_cdf

            plot_result_cdf([results], [str(cfg.tag)], save_path=args.plot)
            print(f"CDF plot saved to {args.plot.with_suffix('.png')}")
    else:
        raise ValueError(f"Unknown command: {args.cmd}")


if __name__ == "__main__":
    main(sys.argv[1:])
