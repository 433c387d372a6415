"""Visualisation helpers (Matplotlib)."""
from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import matplotlib.pyplot as plt
import numpy as np

__all__ = [
    "plot_result_cdf",
]


def plot_result_cdf(
    collections: List[Sequence[float]], labels: List[str], save_path: Path | None = None
) -> None:
    """Plot the empirical CDF of each result collection."""

    fig, ax = plt.subplots(figsize=(6, 4))
    for results, label in zip(collections, labels):
        sorted_res = np.sort(np.asarray(results, dtype=float))
        cdf = np.arange(1, len(sorted_res) + 1) / max(len(sorted_res), 1)
        ax.step(sorted_res, cdf, where="post", label=label)

    ax.set_xlabel("Trial result")
    ax.set_ylabel("Empirical CDF")
    ax.set_title("Result Distribution Across Trials")
    ax.grid(True, ls=":", lw=0.5)
    ax.legend()

    if save_path is not None:
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path.with_suffix(".png"), dpi=300, bbox_inches="tight")
        fig.savefig(save_path.with_suffix(".svg"), bbox_inches="tight")
    else:
        plt.show()

    plt.close(fig)
