"""Domain model dataclasses and enums for interlinear-editor."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class EntryKind(str, Enum):
    """Which vocabulary table an entry lives in."""

    ORIGINAL = "original"
    FORMATTED = "formatted"


class FormationType(str, Enum):
    """Category of a word formation rule."""

    DERIVATION = "Derivation"
    INFLECTION = "Inflection"
    NONMORPHOLOGICAL = "Nonmorphological"

    @classmethod
    def parse(cls, value: str | FormationType) -> FormationType:
        """Accept the persisted tag in any letter case."""
        if isinstance(value, FormationType):
            return value
        for member in cls:
            if member.value.lower() == str(value).lower():
                return member
        raise ValueError(f"Unknown formation type: {value!r}")


class CacheKind(str, Enum):
    """Derived views kept by the cache layer."""

    LOOKUP = "lookup"
    SIMILARITY = "similarity"


class TokenizationMode(str, Enum):
    """How imported lines are split into tokens."""

    WORD = "word"
    CHARACTER = "character"
    SCRIPT = "script"


class SortField(str, Enum):
    """Keys available for ordering segments."""

    INDEX = "index"
    ORIGINAL = "original"
    LENGTH = "length"
    COUNT = "count"
    TRANSLATED = "translated"
    GLOSSED_COUNT = "glossed_count"


class ValidationSeverity(str, Enum):
    """Severity level for validation results."""

    ERROR = "ERROR"
    WARNING = "WARNING"


# ---------------------------------------------------------------------------
# Project entities (mutable, owned by the Project)
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class VocabularyEntry:
    """A word form with its annotation.

    ``base`` is only used by formatted entries: the position in the
    original table of the word the form was derived from.
    """

    text: str
    gloss: str | None = None
    references: list[str] | None = None
    comment: str | None = None
    base: int | None = None


@dataclass(slots=True)
class Token:
    """One word or character in a segment, referencing vocabulary by index."""

    index: int
    rules: list[int] = field(default_factory=list)

    @property
    def is_derived(self) -> bool:
        return self.index < 0


@dataclass(slots=True)
class Segment:
    """A unit of source text (usually a line) with its translation."""

    tokens: list[Token] = field(default_factory=list)
    translation: str = ""
    comment: str | None = None


@dataclass(slots=True)
class FormationRule:
    """A pattern + script pair that turns a word into a derived form."""

    pattern: str
    script: str
    type: FormationType = FormationType.DERIVATION
    description: str = ""


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class LookupEntry:
    """A resolved vocabulary entry as served by the lookup cache."""

    text: str
    index: int
    kind: EntryKind
    gloss: str | None
    occurrences: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class SimilarityHit:
    """A segment ranked by cosine similarity to a query."""

    segment: int
    score: float


@dataclass(frozen=True, slots=True)
class SimilarWord:
    """A token text ranked by edit distance to a query word."""

    word: str
    distance: int
    common_length: int


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """A single validation finding (error or warning)."""

    rule_id: str
    severity: str
    location: str
    message: str
    details: dict[str, Any] | None = None
