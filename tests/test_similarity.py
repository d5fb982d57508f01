"""Tests for TF-IDF segment similarity and word similarity."""

import math

import pytest

from interlinear_editor import (
    CacheKind,
    EntityNotFoundError,
    ProjectEditor,
    SimilarityUnavailableError,
    ValidationError,
    import_text,
)
from interlinear_editor import similarity as sim

np = pytest.importorskip("numpy")


@pytest.fixture
def corpus_editor():
    return ProjectEditor.from_text(
        "red apple pie\n"
        "green apple tart\n"
        "red wine\n"
        "blue sky\n"
        "red apple pie\n"
    )


class TestTermVectors:
    def test_idf_formula(self):
        vectors = sim.build_term_vectors(import_text("a b\na c"))
        n = 2
        assert vectors.idf[vectors.terms["a"]] == pytest.approx(math.log((1 + n) / (1 + 2)) + 1)
        assert vectors.idf[vectors.terms["b"]] == pytest.approx(math.log((1 + n) / (1 + 1)) + 1)

    def test_rows_are_unit_length(self):
        vectors = sim.build_term_vectors(import_text("a b b\nc"))
        norms = np.linalg.norm(vectors.matrix, axis=1)
        assert norms == pytest.approx([1.0, 1.0])

    def test_terms_are_normalized(self):
        vectors = sim.build_term_vectors(import_text("Apple\napple APPLE"))
        assert list(vectors.terms) == ["apple"]

    def test_empty_project(self):
        vectors = sim.build_term_vectors(import_text(""))
        assert vectors.n_segments == 0
        assert sim.query(vectors, "anything", 3) == []


class TestQuery:
    def test_segment_query_excludes_itself(self, corpus_editor):
        hits = corpus_editor.similarity_query(0, 10)
        assert 0 not in [h.segment for h in hits]
        assert hits[0].segment == 4
        assert hits[0].score == pytest.approx(1.0)

    def test_descending_positive_scores(self, corpus_editor):
        hits = corpus_editor.similarity_query(0, 10)
        scores = [h.score for h in hits]
        assert scores == sorted(scores, reverse=True)
        assert all(s > 0 for s in scores)
        assert 3 not in [h.segment for h in hits]

    def test_k_truncates(self, corpus_editor):
        assert len(corpus_editor.similarity_query(0, 1)) == 1

    def test_default_k_from_settings(self, corpus_editor):
        assert len(corpus_editor.similarity_query("red", None)) == 3

    def test_ties_by_ascending_segment(self):
        ed = ProjectEditor.from_text("x y\nx z\nx w\nq")
        hits = ed.similarity_query("x", 5)
        assert [h.segment for h in hits] == [0, 1, 2]
        assert hits[0].score == pytest.approx(hits[2].score)

    def test_repeated_queries_are_identical(self):
        ed = ProjectEditor.from_text("x y\nx z\nx w\ny z\nq")
        by_segment = ed.similarity_query(0, 10)
        by_text = ed.similarity_query("x", 10)
        assert [h.segment for h in by_text] == [0, 1, 2]
        for _ in range(3):
            assert ed.similarity_query(0, 10) == by_segment
            assert ed.similarity_query("x", 10) == by_text
        assert ed.cache_rebuilds(CacheKind.SIMILARITY) == 1

    def test_free_text(self, corpus_editor):
        hits = corpus_editor.similarity_query("Blue Sky", 2)
        assert hits[0].segment == 3
        assert hits[0].score == pytest.approx(1.0)

    def test_unknown_words(self, corpus_editor):
        assert corpus_editor.similarity_query("nothing here", 3) == []

    def test_bad_k(self, corpus_editor):
        with pytest.raises(ValidationError):
            corpus_editor.similarity_query(0, 0)

    def test_unknown_segment(self, corpus_editor):
        with pytest.raises(EntityNotFoundError):
            corpus_editor.similarity_query(99, 3)

    def test_edits_invalidate_vectors(self, corpus_editor):
        ed = corpus_editor
        ed.similarity_query(3, 2)
        ed.set_token_text(2, 1, "sky")
        hits = ed.similarity_query(3, 2)
        assert hits[0].segment == 2
        assert ed.cache_rebuilds(CacheKind.SIMILARITY) == 2

    def test_translation_edit_keeps_vectors(self, corpus_editor):
        ed = corpus_editor
        ed.similarity_query(0, 2)
        ed.set_translation(0, "a pie")
        ed.similarity_query(0, 2)
        assert ed.cache_rebuilds(CacheKind.SIMILARITY) == 1


class TestWithoutNumpy:
    def test_unavailable(self, corpus_editor, monkeypatch):
        monkeypatch.setattr(sim, "HAS_NUMPY", False)
        corpus_editor.mark_dirty(CacheKind.SIMILARITY)
        with pytest.raises(SimilarityUnavailableError):
            corpus_editor.similarity_query(0, 3)

    def test_similar_words_still_work(self, corpus_editor, monkeypatch):
        monkeypatch.setattr(sim, "HAS_NUMPY", False)
        assert corpus_editor.similar_words("aple", 1)[0].word == "apple"


class TestWordSimilarity:
    def test_levenshtein(self):
        assert sim.levenshtein_distance("kitten", "sitting") == 3
        assert sim.levenshtein_distance("", "abc") == 3
        assert sim.levenshtein_distance("same", "same") == 0

    def test_longest_common_substring(self):
        assert sim.longest_common_substring("abcdef", "zcdez") == 3
        assert sim.longest_common_substring("abc", "xyz") == 0

    def test_ranking(self, corpus_editor):
        words = corpus_editor.similar_words("red", 3)
        assert words[0].word != "red"
        assert [w.distance for w in words] == sorted(w.distance for w in words)

    def test_common_substring_breaks_ties(self):
        ed = ProjectEditor.from_text("abxd xbcd abcx")
        words = ed.similar_words("abcd", 3)
        assert [w.distance for w in words] == [1, 1, 1]
        assert [w.word for w in words] == ["abcx", "xbcd", "abxd"]
        assert [w.common_length for w in words] == [3, 3, 2]

    def test_target_excluded(self):
        ed = ProjectEditor.from_text("cat cats")
        assert [w.word for w in ed.similar_words("cat", 5)] == ["cats"]

    def test_target_excluded_ignoring_case(self):
        ed = ProjectEditor.from_text("apple apples maple")
        words = ed.similar_words("Apple", 5)
        assert [w.word for w in words] == ["apples", "maple"]
        assert [w.distance for w in words] == [1, 2]

    def test_bad_limit(self, corpus_editor):
        with pytest.raises(ValidationError):
            corpus_editor.similar_words("red", 0)
