"""The Project aggregate and display-text resolution."""

from __future__ import annotations

from dataclasses import dataclass, field

from interlinear_editor import codec
from interlinear_editor.exceptions import EntityNotFoundError, IndexOutOfRangeError
from interlinear_editor.models import FormationRule, Segment, Token
from interlinear_editor.vocabulary import VocabularyStore

CURRENT_VERSION = 2


@dataclass(slots=True)
class Project:
    """Everything persisted in one project document."""

    version: int = CURRENT_VERSION
    name: str = ""
    vocabulary: VocabularyStore = field(default_factory=VocabularyStore)
    segments: list[Segment] = field(default_factory=list)
    rules: list[FormationRule] = field(default_factory=list)

    def segment(self, position: int) -> Segment:
        if not 0 <= position < len(self.segments):
            raise EntityNotFoundError(f"Segment not found: {position}")
        return self.segments[position]

    def token(self, segment: int, position: int) -> Token:
        tokens = self.segment(segment).tokens
        if not 0 <= position < len(tokens):
            raise EntityNotFoundError(
                f"Token not found: segment {segment}, position {position}"
            )
        return tokens[position]

    def rule(self, index: int) -> FormationRule:
        if not 0 <= index < len(self.rules):
            raise IndexOutOfRangeError(
                f"Formation rule {index} out of range ({len(self.rules)} rules)"
            )
        return self.rules[index]

    def token_text(self, token: Token) -> str:
        return codec.resolve(token.index, self.vocabulary).text

    def token_gloss(self, token: Token) -> str | None:
        """Gloss of the token's entry, falling back to its base word."""
        entry = codec.resolve(token.index, self.vocabulary)
        if entry.gloss:
            return entry.gloss
        if token.index < 0 and entry.base is not None:
            return self.vocabulary.original[entry.base].gloss
        return None

    def segment_texts(self, segment: Segment) -> list[str]:
        return [self.token_text(t) for t in segment.tokens]

    def decode_indices(self, indices: list[int]) -> list[str]:
        """Display text for a list of stored token indices."""
        return [codec.resolve(i, self.vocabulary).text for i in indices]

    def rule_users(self, rule_index: int) -> list[tuple[int, int]]:
        """(segment, token) positions whose chain mentions *rule_index*."""
        return [
            (s, t)
            for s, seg in enumerate(self.segments)
            for t, tok in enumerate(seg.tokens)
            if rule_index in tok.rules
        ]
