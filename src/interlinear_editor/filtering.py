"""Segment filtering and ordering for list views."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from interlinear_editor.models import Segment, SortField
from interlinear_editor.project import Project


def filter_segments(project: Project, query: str) -> list[int]:
    """Positions of segments whose translation or tokens contain *query*.

    Matching is case-insensitive; an empty query matches everything.
    """
    needle = query.casefold()
    if not needle:
        return list(range(len(project.segments)))
    return [
        pos
        for pos, segment in enumerate(project.segments)
        if needle in segment.translation.casefold()
        or any(needle in text.casefold() for text in project.segment_texts(segment))
    ]


def _glossed(project: Project, segment: Segment) -> int:
    return sum(1 for t in segment.tokens if (project.token_gloss(t) or "").strip())


def _translated_ratio(project: Project, segment: Segment) -> float:
    if not segment.tokens:
        return 0.0
    return _glossed(project, segment) / len(segment.tokens)


_SORT_KEYS: dict[SortField, Callable[[Project, Segment], Any]] = {
    SortField.ORIGINAL: lambda p, s: "".join(p.segment_texts(s)),
    SortField.LENGTH: lambda p, s: len(s.tokens),
    SortField.COUNT: lambda p, s: len(s.tokens),
    SortField.TRANSLATED: _translated_ratio,
    SortField.GLOSSED_COUNT: _glossed,
}


def sort_segments(
    project: Project,
    positions: Iterable[int],
    field: SortField | str = SortField.INDEX,
    *,
    descending: bool = False,
) -> list[int]:
    """Order segment *positions* by *field*; ties keep their input order."""
    field = SortField(field)
    positions = list(positions)
    if field is SortField.INDEX:
        return sorted(positions, reverse=descending)
    key = _SORT_KEYS[field]
    return sorted(
        positions,
        key=lambda pos: key(project, project.segment(pos)),
        reverse=descending,
    )
