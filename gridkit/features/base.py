"""Abstract base class shared by every table feature engine.

The composer depends on this interface only, never on a concrete engine.
"""

# pylint: disable=unnecessary-ellipsis
# Ellipsis (...) is the standard Python idiom for abstract method bodies

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel

from ..models import FeatureConfig


ConfigT = TypeVar("ConfigT", bound=FeatureConfig)
StateT = TypeVar("StateT", bound=BaseModel)


class TableFeature(ABC, Generic[ConfigT, StateT]):
    """A single table feature: config, state, actions and fragments.

    Engines own their state exclusively and never reference each other.
    Everything they expose to the outside is read-only: ``config`` is a
    frozen model, ``state`` is a frozen snapshot, ``actions`` is a
    read-only mapping of bound methods.
    """

    #: Composition key (e.g. "sorting", "undo_redo").
    name: ClassVar[str] = ""

    #: Public action method names, exposed through ``actions``.
    action_names: ClassVar[tuple[str, ...]] = ()

    def __init__(self, config: ConfigT) -> None:
        self._config = config

    @property
    def config(self) -> ConfigT:
        """Resolved, read-only feature configuration."""
        return self._config

    @property
    @abstractmethod
    def state(self) -> StateT:
        """Immutable snapshot of the current feature state."""
        ...

    @property
    def actions(self) -> Mapping[str, Callable[..., Any]]:
        """Read-only mapping of action name to bound callable."""
        return MappingProxyType({n: getattr(self, n) for n in self.action_names})

    @abstractmethod
    def grid_props(self) -> dict[str, Any]:
        """Grid configuration fragment contributed by this feature."""
        ...

    def toolbar_props(self) -> dict[str, Any]:
        """Toolbar configuration fragment contributed by this feature."""
        return {}

    def close(self) -> None:
        """Release owned resources (timers). Default: nothing to release."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._config!r})"
