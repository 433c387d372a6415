"""
Trial module: capability base class, keyed-trial registry, and public API.

This module provides:
- An abstract base class (`AbstractTrial`) for all runnable units of work.
- `KeyedTrial`, one concrete trial type that dispatches on a tag, backed by a
  registry of execute functions and their declared result types.
- The built-in trial kinds (`coin`, `gaussian`).

Usage Example:
--------------

from experiment_engine.trials import AbstractTrial, KeyedTrial, register_trial

class CoinTrial(AbstractTrial):
    def __init__(self, p):
        self.p = p

    def conduct(self):
        return random.random() < self.p

    @classmethod
    def resulttype(cls):
        return bool

@register_trial("coin", bool)
def coin(configuration) -> bool:
    return random.random() < configuration["p"]

trials = [KeyedTrial("coin", {"p": 0.2}) for _ in range(1000)]

"""
from __future__ import annotations

import inspect
import typing
from types import MappingProxyType
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, List, Mapping

# Public API: expose capability, registry and built-in kinds
__all__ = [
    "AbstractTrial",
    "KeyedTrial",
    "TrialKind",
    "TrialNotImplementedError",
    "conduct",
    "resulttype",
    "register_trial",
    "unregister_trial",
    "get_trial_kind",
    "registered_tags",
    "coin",
    "gaussian",
]


class TrialNotImplementedError(NotImplementedError):
    """Raised when a trial type or tag has no conduct/resulttype implementation."""


class AbstractTrial(ABC):
    """
    Abstract interface every trial must implement.
    A subclass that leaves out `conduct` or `resulttype` cannot be instantiated.
    """

    @abstractmethod
    def conduct(self):
        """Execute the trial once and return a value of `resulttype()`."""

    @classmethod
    @abstractmethod
    def resulttype(cls) -> type:
        """Declare the result type ahead of execution."""

    def declared_type(self) -> type:
        """Result type of this particular trial (defaults to the class declaration)."""
        return type(self).resulttype()


# ------------------------------------------------------------------
# Keyed trials
# ------------------------------------------------------------------

@dataclass(frozen=True)
class TrialKind:
    """Registration of one keyed experiment kind."""

    tag: Hashable
    execute: Callable[[Mapping[str, Any]], Any]
    resulttype: type


# Keyed-trial registry: maps tags to their execute function and result type
_REGISTRY: Dict[Hashable, TrialKind] = {}


@dataclass(frozen=True, repr=False)
class KeyedTrial(AbstractTrial):
    """A trial identified by `tag` plus an arbitrary `configuration` mapping.

    Many experiment kinds share this one type; `conduct` and `declared_type`
    look the tag up in the registry instead of relying on subclassing.
    """

    tag: Hashable
    configuration: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Read-only view over a private copy: the caller keeps its dict.
        object.__setattr__(self, "configuration", MappingProxyType(dict(self.configuration)))

    def conduct(self):
        return get_trial_kind(self.tag).execute(self.configuration)

    @classmethod
    def resulttype(cls, tag: Hashable = None) -> type:
        if tag is None:
            raise TrialNotImplementedError(
                "KeyedTrial declares its result type per tag; pass a tag or use declared_type()"
            )
        return get_trial_kind(tag).resulttype

    def declared_type(self) -> type:
        return get_trial_kind(self.tag).resulttype

    def __hash__(self) -> int:
        # Keys only: configuration values may themselves be unhashable.
        return hash((KeyedTrial, self.tag, frozenset(self.configuration)))

    def __reduce__(self):
        return (KeyedTrial, (self.tag, dict(self.configuration)))

    def __repr__(self) -> str:
        return f"KeyedTrial(tag={self.tag!r}, configuration=<{', '.join(map(str, self.configuration))}>)"


# ------------------------------------------------------------------
# Registry helpers
# ------------------------------------------------------------------

def _return_annotation(func: Callable) -> Any:
    try:
        return typing.get_type_hints(func).get("return")
    except (NameError, TypeError):
        # Unresolvable forward references: nothing to validate against.
        return None


def register_trial(tag: Hashable, resulttype: type) -> Callable:
    """
    Decorator registering `func(configuration)` as the execute function for `tag`.
    The function's return annotation, when it names a class, must agree with
    `resulttype`. Raises if duplicate or invalid registration is attempted.
    """
    if not inspect.isclass(resulttype):
        raise TypeError(f"resulttype for '{tag}' must be a class, got {resulttype!r}")

    def decorator(func: Callable) -> Callable:
        if not callable(func):
            raise TypeError("@register_trial can only decorate callables")
        annotation = _return_annotation(func)
        if inspect.isclass(annotation) and not issubclass(annotation, resulttype):
            raise TypeError(
                f"Trial '{tag}' declares {resulttype.__name__} but "
                f"{func.__name__} returns {annotation.__name__}"
            )
        if tag in _REGISTRY:
            raise KeyError(f"Trial '{tag}' is already registered")
        _REGISTRY[tag] = TrialKind(tag=tag, execute=func, resulttype=resulttype)
        return func

    return decorator


def unregister_trial(tag: Hashable) -> None:
    """Remove the registration for `tag` (no-op when absent)."""
    _REGISTRY.pop(tag, None)


def get_trial_kind(tag: Hashable) -> TrialKind:
    """
    Retrieve a keyed-trial registration by tag.
    Raises TrialNotImplementedError if not found.
    """
    try:
        return _REGISTRY[tag]
    except KeyError as exc:
        raise TrialNotImplementedError(
            f"Trial '{tag}' not found in registry. Available: {list(_REGISTRY)}"
        ) from exc


def registered_tags() -> List[Hashable]:
    return list(_REGISTRY)


# ------------------------------------------------------------------
# Capability entry points
# ------------------------------------------------------------------

def conduct(trial):
    """Conduct a single trial."""
    if not isinstance(trial, AbstractTrial):
        raise TrialNotImplementedError(f"conduct not implemented for type {type(trial).__name__}")
    return trial.conduct()


def resulttype(trial) -> type:
    """Return the result type of an `AbstractTrial` subclass or instance."""
    if isinstance(trial, AbstractTrial):
        return trial.declared_type()
    if inspect.isclass(trial) and issubclass(trial, AbstractTrial):
        return trial.resulttype()
    raise TrialNotImplementedError(f"resulttype not implemented for {trial!r}")


# ------------------------------------------------------------------
# Import built-in kinds so that they register themselves
# ------------------------------------------------------------------

from . import coin
from . import gaussian
