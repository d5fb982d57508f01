"""Signed index codec between token references and vocabulary tables.

The wire contract is asymmetric: ``v >= 0`` addresses ``original[v]``,
``v < 0`` addresses ``formatted[-v - 1]`` (``-1`` is ``formatted[0]``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from interlinear_editor.exceptions import IndexOutOfRangeError
from interlinear_editor.models import EntryKind, VocabularyEntry

if TYPE_CHECKING:
    from interlinear_editor.vocabulary import VocabularyStore


def encode(kind: EntryKind, position: int) -> int:
    """Return the signed index stored in a token for a table position."""
    if position < 0:
        raise IndexOutOfRangeError(f"Negative {kind.value} position: {position}")
    if kind is EntryKind.ORIGINAL:
        return position
    return -position - 1


def decode(
    index: int,
    vocabulary: VocabularyStore | None = None,
) -> tuple[EntryKind, int]:
    """Split a signed index into ``(kind, position)``.

    With *vocabulary* given, the position is also checked against the
    bounds of the corresponding table.
    """
    if isinstance(index, bool) or not isinstance(index, int):
        raise IndexOutOfRangeError(f"Vocabulary index must be an integer, got {index!r}")
    if index >= 0:
        kind, position = EntryKind.ORIGINAL, index
    else:
        kind, position = EntryKind.FORMATTED, -index - 1
    if vocabulary is not None:
        size = len(vocabulary.table(kind))
        if position >= size:
            raise IndexOutOfRangeError(
                f"Index {index} points at {kind.value}[{position}] "
                f"but the table has {size} entries"
            )
    return kind, position


def resolve(index: int, vocabulary: VocabularyStore) -> VocabularyEntry:
    """Return the entry a signed index refers to."""
    kind, position = decode(index, vocabulary)
    return vocabulary.table(kind)[position]
