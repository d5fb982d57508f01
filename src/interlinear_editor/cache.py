"""Generation-counted derived caches."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from interlinear_editor.models import CacheKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DerivedCache(Generic[T]):
    """A value derived from the project, rebuilt in full when stale.

    ``mark_dirty`` bumps the generation; ``get_or_rebuild`` rebuilds
    whenever the value was built for an older generation.
    """

    def __init__(self, kind: CacheKind, builder: Callable[[], T]) -> None:
        self.kind = kind
        self._builder = builder
        self._value: T | None = None
        self._generation = 1
        self._built_generation = 0
        self.rebuilds = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def dirty(self) -> bool:
        return self._built_generation != self._generation

    def mark_dirty(self) -> None:
        self._generation += 1

    def get_or_rebuild(self) -> T:
        if self.dirty:
            generation = self._generation
            self._value = None
            self._value = self._builder()
            self._built_generation = generation
            self.rebuilds += 1
            logger.debug("Rebuilt %s cache (generation %d)", self.kind.value, generation)
        return self._value  # type: ignore[return-value]


class CacheRegistry:
    """Caches keyed by kind."""

    def __init__(self) -> None:
        self._caches: dict[CacheKind, DerivedCache[Any]] = {}

    def register(self, kind: CacheKind, builder: Callable[[], Any]) -> DerivedCache[Any]:
        cache: DerivedCache[Any] = DerivedCache(kind, builder)
        self._caches[kind] = cache
        return cache

    def __getitem__(self, kind: CacheKind) -> DerivedCache[Any]:
        return self._caches[CacheKind(kind)]

    def __contains__(self, kind: object) -> bool:
        return kind in self._caches

    def mark_dirty(self, *kinds: CacheKind) -> None:
        """Mark *kinds* dirty, or every cache when none are given."""
        for kind in kinds or tuple(self._caches):
            self[kind].mark_dirty()

    def get_or_rebuild(self, kind: CacheKind) -> Any:
        return self[kind].get_or_rebuild()
