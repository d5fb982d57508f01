"""Lookup cache payload: normalized text to entry and occurrence data."""

from __future__ import annotations

import re
from collections import defaultdict
from dataclasses import dataclass, field

from interlinear_editor import codec
from interlinear_editor.models import EntryKind, LookupEntry
from interlinear_editor.project import Project
from interlinear_editor.vocabulary import normalize

_WORD_RE = re.compile(r"\w+")


@dataclass(slots=True)
class LookupTable:
    original: dict[str, LookupEntry] = field(default_factory=dict)
    formatted: dict[str, LookupEntry] = field(default_factory=dict)
    usage: dict[str, tuple[int, ...]] = field(default_factory=dict)

    def find(self, text: str, kind: EntryKind | None = None) -> LookupEntry | None:
        """Entry for *text*; without *kind*, original wins over formatted."""
        key = normalize(text)
        if kind is EntryKind.FORMATTED:
            return self.formatted.get(key)
        entry = self.original.get(key)
        if entry is None and kind is None:
            entry = self.formatted.get(key)
        return entry

    def translations_using(self, word: str) -> tuple[int, ...]:
        """Segments whose translation contains *word*."""
        return self.usage.get(normalize(word), ())


def translation_words(translation: str) -> list[str]:
    return [normalize(w) for w in _WORD_RE.findall(translation)]


def build_lookup(project: Project) -> LookupTable:
    occurrences: dict[int, list[int]] = defaultdict(list)
    usage: dict[str, list[int]] = defaultdict(list)
    for pos, segment in enumerate(project.segments):
        for index in dict.fromkeys(t.index for t in segment.tokens):
            occurrences[index].append(pos)
        for word in dict.fromkeys(translation_words(segment.translation)):
            usage[word].append(pos)

    table = LookupTable(usage={w: tuple(p) for w, p in usage.items()})
    for kind, target in (
        (EntryKind.ORIGINAL, table.original),
        (EntryKind.FORMATTED, table.formatted),
    ):
        for position, entry in enumerate(project.vocabulary.table(kind)):
            index = codec.encode(kind, position)
            target[normalize(entry.text)] = LookupEntry(
                text=entry.text,
                index=index,
                kind=kind,
                gloss=entry.gloss,
                occurrences=tuple(occurrences.get(index, ())),
            )
    return table
