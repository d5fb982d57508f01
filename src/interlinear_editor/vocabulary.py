"""Deduplicated original/formatted vocabulary tables."""

from __future__ import annotations

import copy
import unicodedata
from collections.abc import Iterable, Iterator

from interlinear_editor import codec
from interlinear_editor.exceptions import (
    DuplicateEntityError,
    IndexOutOfRangeError,
    ValidationError,
)
from interlinear_editor.models import EntryKind, VocabularyEntry


def normalize(text: str) -> str:
    """Return the deduplication key for a word.

    NFC, whitespace runs collapsed, surrounding whitespace removed,
    case-folded.
    """
    return " ".join(unicodedata.normalize("NFC", text).split()).casefold()


def _clean(text: str) -> str:
    if not isinstance(text, str):
        raise ValidationError(f"Vocabulary text must be a string, got {type(text).__name__}")
    cleaned = " ".join(unicodedata.normalize("NFC", text).split())
    if not cleaned:
        raise ValidationError("Vocabulary text must not be empty")
    return cleaned


class VocabularyTable:
    """Append-only table of entries unique by normalized text."""

    def __init__(self, kind: EntryKind, entries: Iterable[VocabularyEntry] = ()) -> None:
        self.kind = kind
        self._entries: list[VocabularyEntry] = []
        self._keys: dict[str, int] = {}
        for entry in entries:
            self.append(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[VocabularyEntry]:
        return iter(self._entries)

    def __getitem__(self, position: int) -> VocabularyEntry:
        if not 0 <= position < len(self._entries):
            raise IndexOutOfRangeError(
                f"{self.kind.value} position {position} out of range "
                f"(table has {len(self._entries)} entries)"
            )
        return self._entries[position]

    def position_of(self, text: str) -> int | None:
        return self._keys.get(normalize(text))

    def append(self, entry: VocabularyEntry) -> int:
        """Add a fully built entry; duplicates are rejected."""
        entry.text = _clean(entry.text)
        key = normalize(entry.text)
        if key in self._keys:
            raise DuplicateEntityError(
                f"{self.kind.value} entry already exists: {entry.text!r}"
            )
        self._keys[key] = len(self._entries)
        self._entries.append(entry)
        return len(self._entries) - 1

    def intern(self, text: str) -> tuple[int, bool]:
        """Return ``(position, created)`` for *text*."""
        cleaned = _clean(text)
        position = self._keys.get(normalize(cleaned))
        if position is not None:
            return position, False
        return self.append(VocabularyEntry(text=cleaned)), True

    def rename(self, position: int, text: str) -> None:
        entry = self[position]
        cleaned = _clean(text)
        old_key = normalize(entry.text)
        new_key = normalize(cleaned)
        if new_key != old_key and new_key in self._keys:
            raise DuplicateEntityError(
                f"{self.kind.value} entry already exists: {cleaned!r}"
            )
        del self._keys[old_key]
        self._keys[new_key] = position
        entry.text = cleaned


class VocabularyStore:
    """The two vocabulary tables addressed through signed indices."""

    def __init__(
        self,
        original: Iterable[VocabularyEntry] = (),
        formatted: Iterable[VocabularyEntry] = (),
    ) -> None:
        self.original = VocabularyTable(EntryKind.ORIGINAL, original)
        self.formatted = VocabularyTable(EntryKind.FORMATTED, formatted)

    def table(self, kind: EntryKind) -> VocabularyTable:
        return self.original if kind is EntryKind.ORIGINAL else self.formatted

    def intern(
        self,
        text: str,
        kind: EntryKind = EntryKind.ORIGINAL,
        *,
        base: int | None = None,
    ) -> int:
        """Return the signed index for *text*, appending it if new.

        *base* is recorded on newly created formatted entries. An existing
        formatted entry derived from a different base word is a
        ``DuplicateEntityError``.
        """
        if base is not None:
            if kind is not EntryKind.FORMATTED:
                raise ValidationError("Only formatted entries carry a base word")
            self.original[base]  # bounds check
            self.check_base(text, base)
        position, created = self.table(kind).intern(text)
        if created and base is not None:
            self.formatted[position].base = base
        return codec.encode(kind, position)

    def check_base(self, text: str, base: int) -> None:
        """Fail if formatted *text* already derives from another base word."""
        position = self.formatted.position_of(text)
        if position is None:
            return
        entry = self.formatted[position]
        if entry.base is not None and entry.base != base:
            raise DuplicateEntityError(
                f"Formatted entry {entry.text!r} already derives from "
                f"original {entry.base}, not {base}"
            )

    def find(self, text: str, kind: EntryKind = EntryKind.ORIGINAL) -> int | None:
        position = self.table(kind).position_of(text)
        if position is None:
            return None
        return codec.encode(kind, position)

    def lookup(self, index: int) -> VocabularyEntry:
        kind, position = codec.decode(index)
        return self.table(kind)[position]

    def text(self, index: int) -> str:
        return self.lookup(index).text

    def base_of(self, index: int) -> int | None:
        """Original position a token with *index* derives from, if known."""
        if index >= 0:
            self.original[index]  # bounds check
            return index
        return self.lookup(index).base

    # ------------------------------------------------------------------
    # Annotation edits
    # ------------------------------------------------------------------

    def set_gloss(self, index: int, gloss: str | None) -> None:
        self.lookup(index).gloss = gloss or None

    def set_references(self, index: int, references: list[str] | None) -> None:
        self.lookup(index).references = list(references) if references else None

    def set_comment(self, index: int, comment: str | None) -> None:
        self.lookup(index).comment = comment or None

    def rename(self, index: int, text: str) -> None:
        kind, position = codec.decode(index)
        self.table(kind).rename(position, text)

    def copy(self) -> VocabularyStore:
        return VocabularyStore(
            copy.deepcopy(list(self.original)),
            copy.deepcopy(list(self.formatted)),
        )

    def __len__(self) -> int:
        return len(self.original) + len(self.formatted)
