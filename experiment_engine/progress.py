"""Progress reporting for batches (tqdm)."""
from __future__ import annotations

from typing import Callable, Protocol

from tqdm.auto import tqdm

__all__ = ["ProgressBar", "ProgressFactory", "make_progress"]

DEFAULT_DESC = "Conducting trials"


class ProgressBar(Protocol):
    """Sink with a known total that is advanced one step per collected result."""

    def update(self, n: int = 1) -> object:
        ...

    def close(self) -> None:
        ...


ProgressFactory = Callable[[int], ProgressBar]


def make_progress(total: int, enabled: bool = True, desc: str = DEFAULT_DESC) -> ProgressBar:
    """Create a tqdm bar for `total` trials (silent when `enabled` is False)."""
    return tqdm(total=total, desc=desc, unit="trial", disable=not enabled)
