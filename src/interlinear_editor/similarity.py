"""Segment similarity (TF-IDF cosine) and word similarity (edit distance)."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any

try:
    import numpy as np

    HAS_NUMPY = True
except ImportError:
    HAS_NUMPY = False

from interlinear_editor.exceptions import (
    EntityNotFoundError,
    SimilarityUnavailableError,
    ValidationError,
)
from interlinear_editor.formation import ScriptRunner
from interlinear_editor.importer import tokenize_line
from interlinear_editor.models import SimilarityHit, SimilarWord, TokenizationMode
from interlinear_editor.project import Project
from interlinear_editor.vocabulary import normalize


def _require_numpy() -> None:
    if not HAS_NUMPY:
        raise SimilarityUnavailableError(
            "Segment similarity needs numpy; install it to enable similarity queries"
        )


def _check_k(k: Any) -> None:
    if isinstance(k, bool) or not isinstance(k, int) or k < 1:
        raise ValidationError(f"k must be a positive integer, got {k!r}")


@dataclass(frozen=True, slots=True)
class TermVectors:
    """TF-IDF rows for every segment, L2-normalized."""

    terms: dict[str, int]
    idf: Any
    matrix: Any

    @property
    def n_segments(self) -> int:
        return int(self.matrix.shape[0])


def segment_terms(project: Project, position: int) -> list[str]:
    segment = project.segments[position]
    return [normalize(project.token_text(t)) for t in segment.tokens]


def build_term_vectors(project: Project) -> TermVectors:
    """Compute the TF-IDF matrix over all segments.

    ``idf = ln((1 + n) / (1 + df)) + 1`` with ``n`` the number of segments.
    """
    _require_numpy()
    rows = [segment_terms(project, pos) for pos in range(len(project.segments))]
    terms: dict[str, int] = {}
    for row in rows:
        for term in row:
            terms.setdefault(term, len(terms))

    n = len(rows)
    counts = np.zeros((n, len(terms)), dtype=np.float64)
    for r, row in enumerate(rows):
        for term, count in Counter(row).items():
            counts[r, terms[term]] = count

    df = np.count_nonzero(counts, axis=0)
    idf = np.log((1.0 + n) / (1.0 + df)) + 1.0
    weights = counts * idf
    norms = np.linalg.norm(weights, axis=1, keepdims=True)
    matrix = np.divide(weights, norms, out=np.zeros_like(weights), where=norms > 0)
    return TermVectors(terms=terms, idf=idf, matrix=matrix)


def _text_vector(vectors: TermVectors, words: list[str]):
    vec = np.zeros(len(vectors.terms), dtype=np.float64)
    for word, count in Counter(normalize(w) for w in words).items():
        col = vectors.terms.get(word)
        if col is not None:
            vec[col] = count * vectors.idf[col]
    norm = np.linalg.norm(vec)
    return vec / norm if norm > 0 else vec


def query(
    vectors: TermVectors,
    target: int | str,
    k: int,
    *,
    mode: TokenizationMode | str = TokenizationMode.WORD,
    script: str | None = None,
    runner: ScriptRunner | None = None,
) -> list[SimilarityHit]:
    """Return up to *k* segments most similar to *target*.

    *target* is a segment position (excluded from the results) or free
    text, tokenized like imported lines. Only positive scores are
    returned, best first, ties broken by ascending segment position.
    """
    _require_numpy()
    _check_k(k)
    exclude = None
    if isinstance(target, str):
        words = tokenize_line(target, mode, script=script, runner=runner)
        vec = _text_vector(vectors, words)
    elif isinstance(target, int) and not isinstance(target, bool):
        if not 0 <= target < vectors.n_segments:
            raise EntityNotFoundError(f"Segment not found: {target}")
        vec = vectors.matrix[target]
        exclude = target
    else:
        raise ValidationError(f"Query target must be a segment or text, got {target!r}")

    if vectors.n_segments == 0 or not vec.any():
        return []
    scores = vectors.matrix @ vec
    candidates = [
        (float(score), pos)
        for pos, score in enumerate(scores)
        if pos != exclude and score > 0
    ]
    candidates.sort(key=lambda c: (-round(c[0], 12), c[1]))
    return [SimilarityHit(segment=pos, score=score) for score, pos in candidates[:k]]


# ---------------------------------------------------------------------------
# Word similarity
# ---------------------------------------------------------------------------

def levenshtein_distance(s1: str, s2: str) -> int:
    """Minimum number of single-character edits turning *s1* into *s2*."""
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)
    if len(s1) > len(s2):
        s1, s2 = s2, s1

    prev_row = list(range(len(s1) + 1))
    for j, c2 in enumerate(s2, start=1):
        curr_row = [j]
        for i, c1 in enumerate(s1, start=1):
            cost = 0 if c1 == c2 else 1
            curr_row.append(min(
                prev_row[i] + 1,
                curr_row[i - 1] + 1,
                prev_row[i - 1] + cost,
            ))
        prev_row = curr_row
    return prev_row[-1]


def longest_common_substring(s1: str, s2: str) -> int:
    """Length of the longest contiguous run shared by both strings."""
    best = 0
    prev = [0] * (len(s2) + 1)
    for c1 in s1:
        curr = [0]
        for j, c2 in enumerate(s2, start=1):
            run = prev[j - 1] + 1 if c1 == c2 else 0
            curr.append(run)
            best = max(best, run)
        prev = curr
    return best


def similar_words(project: Project, word: str, limit: int = 5) -> list[SimilarWord]:
    """Distinct token texts closest to *word*, excluding *word* itself.

    Texts are compared in normalized form. Ranked by edit distance, then
    by longest common substring (longer first), then alphabetically.
    """
    _check_k(limit)
    target = normalize(word)
    seen = {
        project.token_text(t)
        for segment in project.segments
        for t in segment.tokens
    }
    ranked = sorted(
        (
            SimilarWord(
                word=text,
                distance=levenshtein_distance(target, normalize(text)),
                common_length=longest_common_substring(target, normalize(text)),
            )
            for text in seen
            if normalize(text) != target
        ),
        key=lambda s: (s.distance, -s.common_length, s.word),
    )
    return ranked[:limit]
