"""Tests for document validation rules."""

import pytest

from interlinear_editor.validator import has_errors, validate_document


def v2(**overrides):
    doc = {
        "version": 2,
        "vocabulary": {
            "orignal": [{"text": "cat"}, {"text": "dog"}],
            "formatted": [{"text": "cats", "base": 0}],
        },
        "sentences": [{"words": [0, 1, -1], "translation": ""}],
        "formation_rules": [{"pattern": "", "script": "word + 's'", "type": "Derivation"}],
    }
    doc.update(overrides)
    return doc


def rule_ids(results, severity="ERROR"):
    return [r.rule_id for r in results if r.severity == severity]


class TestDocument:
    def test_valid(self):
        assert validate_document(v2()) == []

    def test_root_not_object(self):
        assert rule_ids(validate_document([1, 2])) == ["VAL-DOC-001"]

    def test_unknown_version(self):
        assert rule_ids(validate_document({"version": 9})) == ["VAL-DOC-001"]
        assert rule_ids(validate_document({"version": [2]})) == ["VAL-DOC-001"]

    def test_missing_tables(self):
        results = validate_document({"version": 2, "vocabulary": {}, "sentences": {}})
        assert rule_ids(results) == ["VAL-DOC-001", "VAL-DOC-001"]

    def test_project_name_type(self):
        assert rule_ids(validate_document(v2(project_name=5))) == ["VAL-DOC-001"]


class TestVocabulary:
    def test_empty_text(self):
        doc = v2()
        doc["vocabulary"]["orignal"].append({"text": "  "})
        assert "VAL-VOC-001" in rule_ids(validate_document(doc))

    def test_references_type(self):
        doc = v2()
        doc["vocabulary"]["orignal"][0]["references"] = "Smith"
        assert rule_ids(validate_document(doc)) == ["VAL-VOC-001"]

    def test_duplicate_after_normalization(self):
        doc = v2()
        doc["vocabulary"]["orignal"][1]["text"] = " CAT "
        results = validate_document(doc)
        assert rule_ids(results) == ["VAL-VOC-002"]
        assert results[0].details == {"first": 0, "duplicate": 1}

    def test_base_out_of_range(self):
        doc = v2()
        doc["vocabulary"]["formatted"][0]["base"] = 2
        assert rule_ids(validate_document(doc)) == ["VAL-VOC-003"]

    def test_base_on_original(self):
        doc = v2()
        doc["vocabulary"]["orignal"][0]["base"] = 0
        assert rule_ids(validate_document(doc)) == ["VAL-VOC-003"]

    def test_unused_entry_warning(self):
        doc = v2()
        doc["vocabulary"]["orignal"].append({"text": "bird"})
        results = validate_document(doc)
        assert not has_errors(results)
        assert rule_ids(results, "WARNING") == ["VAL-VOC-004"]
        assert results[0].location == "orignal[2]"


class TestSentences:
    @pytest.mark.parametrize("words", [[2], [-2], ["0"], [True]])
    def test_bad_index(self, words):
        doc = v2(sentences=[{"words": [0, 1, -1]}, {"words": words}])
        assert rule_ids(validate_document(doc)) == ["VAL-IDX-001"]

    def test_sentence_shape(self):
        doc = v2(sentences=[{"words": [0, 1, -1]}, {"translation": "x"}])
        assert rule_ids(validate_document(doc)) == ["VAL-SEG-001"]

    def test_translation_type(self):
        doc = v2(sentences=[{"words": [0, 1, -1], "translation": 3}])
        assert rule_ids(validate_document(doc)) == ["VAL-SEG-001"]

    def test_rules_must_be_parallel(self):
        doc = v2(sentences=[{"words": [0, 1, -1], "rules": [[0]]}])
        assert rule_ids(validate_document(doc)) == ["VAL-SEG-002"]

    def test_rule_index_out_of_range(self):
        doc = v2(sentences=[{"words": [0, 1, -1], "rules": [[], [], [1]]}])
        assert rule_ids(validate_document(doc)) == ["VAL-RUL-002"]

    def test_empty_sentence_warning(self):
        doc = v2(sentences=[{"words": [0, 1, -1]}, {"words": []}])
        assert rule_ids(validate_document(doc), "WARNING") == ["VAL-SEG-003"]


class TestRules:
    def test_missing_script(self):
        doc = v2(formation_rules=[{"pattern": "", "type": "Derivation"}])
        assert rule_ids(validate_document(doc)) == ["VAL-RUL-001"]

    def test_bad_type(self):
        doc = v2(formation_rules=[{"pattern": "", "script": "word", "type": "x"}])
        assert rule_ids(validate_document(doc)) == ["VAL-RUL-001"]

    def test_type_case_insensitive(self):
        doc = v2(formation_rules=[{"pattern": "", "script": "word", "type": "inflection"}])
        assert validate_document(doc) == []


class TestVersionOne:
    def test_valid(self):
        doc = {
            "version": 1,
            "vocabulary": ["cat", {"word": "dog", "meaning": "canine"}],
            "formatted_word": {"0": "cats"},
            "sentences": [{"words": [0, 1, "f0"], "meaning": "cat dog cats"}],
            "formation": [{"description": "", "type": "Derivation", "command": "x"}],
        }
        assert validate_document(doc) == []

    def test_explicit_version_overrides_document(self):
        doc = {"version": 2, "vocabulary": ["cat"], "sentences": []}
        assert validate_document(doc, 1) == []
        assert has_errors(validate_document(doc))

    def test_bad_items(self):
        doc = {
            "version": 1,
            "vocabulary": [3, {"meaning": "no word"}],
            "sentences": [{"words": [0, 7, "g1", None]}],
        }
        assert rule_ids(validate_document(doc)) == [
            "VAL-VOC-001", "VAL-VOC-001",
            "VAL-IDX-001", "VAL-IDX-001", "VAL-IDX-001",
        ]

    def test_rule_without_command(self):
        doc = {"version": 1, "vocabulary": [], "sentences": [], "formation": [{}]}
        assert rule_ids(validate_document(doc)) == ["VAL-RUL-001"]
