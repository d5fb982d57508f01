"""Tests for version detection and the v1 -> v2 migration."""

import copy
import json

import pytest

from interlinear_editor import (
    CURRENT_VERSION,
    MalformedProjectError,
    ProjectEditor,
    UnsupportedVersionError,
    load,
)
from interlinear_editor.migrations import (
    migrate,
    migrate_to_latest,
    migration_step,
    read_version,
    registered_steps,
)


def _read(fixtures_dir, name):
    return json.loads((fixtures_dir / name).read_text(encoding="utf-8"))


class TestReadVersion:
    def test_current_version_is_two(self):
        assert CURRENT_VERSION == 2
        assert registered_steps() == [1]

    @pytest.mark.parametrize("doc", [
        {},
        {"version": "2"},
        {"version": True},
        {"version": 1.0},
        {"version": 0},
        {"version": 3},
        [],
    ])
    def test_unsupported(self, doc):
        with pytest.raises(UnsupportedVersionError):
            read_version(doc)

    def test_supported(self):
        assert read_version({"version": 1}) == 1
        assert read_version({"version": 2}) == 2


class TestMigrateV1:
    def test_minimal_example(self, fixtures_dir):
        """The two-word v1 document gains a formatted table and a -1 token."""
        doc = _read(fixtures_dir, "v1_minimal.json")
        migrated = migrate_to_latest(doc)
        assert migrated["version"] == 2
        assert [e["text"] for e in migrated["vocabulary"]["orignal"]] == ["cat", "dog"]
        assert migrated["vocabulary"]["formatted"] == [{"text": "cats", "base": 0}]
        assert migrated["sentences"][0]["words"] == [0, 1, -1]

    def test_minimal_example_decodes(self, fixtures_dir):
        project = load((fixtures_dir / "v1_minimal.json").read_bytes())
        assert project.version == 2
        assert project.segment_texts(project.segments[0]) == ["cat", "dog", "cats"]

    def test_input_not_mutated(self, fixtures_dir):
        doc = _read(fixtures_dir, "v1_minimal.json")
        before = copy.deepcopy(doc)
        migrate(doc, 1)
        assert doc == before

    def test_full_document(self, fixtures_dir):
        migrated = migrate_to_latest(_read(fixtures_dir, "v1_full.json"))
        vocab = migrated["vocabulary"]
        assert migrated["project_name"] == "Field notes"
        assert vocab["orignal"][0] == {
            "text": "walk", "gloss": "to go on foot", "comment": "common verb",
        }
        assert vocab["orignal"][1] == {"text": "run"}
        assert vocab["formatted"] == [
            {"text": "walked", "base": 0},
            {"text": "ran", "base": 1},
            {"text": "houses", "gloss": "dwellings", "base": 2},
        ]
        sentences = migrated["sentences"]
        assert sentences[0] == {
            "words": [0, 2], "translation": "walk home", "comment": "first line",
        }
        assert sentences[1]["words"] == [-1, -3]
        assert sentences[1]["translation"] == "walked houses"
        assert sentences[2]["words"] == [1, -2]
        assert migrated["formation_rules"][0] == {
            "pattern": "",
            "script": 'word + "ed"',
            "type": "Inflection",
            "description": "past tense",
        }

    def test_dangling_formatted_reference(self):
        doc = {"version": 1, "vocabulary": ["a"], "sentences": [{"words": ["f3"]}]}
        with pytest.raises(MalformedProjectError) as exc_info:
            migrate_to_latest(doc)
        assert [r.rule_id for r in exc_info.value.results] == ["VAL-IDX-001"]

    def test_formatted_key_outside_vocabulary(self):
        doc = {
            "version": 1,
            "vocabulary": ["a"],
            "formatted_word": {"4": "b"},
            "sentences": [],
        }
        with pytest.raises(MalformedProjectError, match="formatted_word"):
            migrate_to_latest(doc)

    def test_formatted_text_shared_by_two_bases(self):
        doc = {
            "version": 1,
            "vocabulary": ["cat", "dog"],
            "formatted_word": {"0": "cats", "1": "Cats"},
            "sentences": [{"words": ["f1"]}],
        }
        with pytest.raises(MalformedProjectError) as exc_info:
            migrate_to_latest(doc)
        [result] = exc_info.value.results
        assert result.rule_id == "VAL-VOC-002"
        assert result.details == {"first": 0, "duplicate": 1}

    def test_formatted_keys_keep_their_base(self):
        doc = {
            "version": 1,
            "vocabulary": ["cat", "dog"],
            "formatted_word": {"1": "dogs", "0": "cats"},
            "sentences": [{"words": ["f1", "f0"]}],
        }
        ed = ProjectEditor(load(json.dumps(doc)))
        assert ed.segment_texts(0) == ["dogs", "cats"]
        assert ed.reset_token(0, 0) == 1
        assert ed.token_text(0, 0) == "dog"
        assert ed.reset_token(0, 1) == 0

    def test_duplicate_v1_vocabulary(self):
        doc = {"version": 1, "vocabulary": ["Cat", "cat"], "sentences": []}
        with pytest.raises(MalformedProjectError) as exc_info:
            migrate_to_latest(doc)
        assert exc_info.value.results[0].rule_id == "VAL-VOC-002"


class TestMigrateToLatest:
    def test_current_document_returned_unchanged(self, fixtures_dir):
        doc = _read(fixtures_dir, "v2_project.json")
        assert migrate_to_latest(doc) is doc

    def test_invalid_current_document(self):
        doc = {"version": 2, "vocabulary": {"orignal": []}, "sentences": [{"words": [0]}]}
        with pytest.raises(MalformedProjectError):
            migrate_to_latest(doc)

    def test_version_three_rejected_before_transform(self):
        with pytest.raises(UnsupportedVersionError):
            migrate_to_latest({"version": 3, "vocabulary": "garbage"})

    def test_step_registered_once(self):
        with pytest.raises(ValueError, match="already registered"):
            migration_step(1)(lambda doc: doc)
        assert registered_steps() == [1]


class TestFailedLoadKeepsProject:
    def test_version_three_leaves_project_untouched(self, editor_with_text):
        ed = editor_with_text
        before = ed.save()
        with pytest.raises(UnsupportedVersionError):
            ed.load(json.dumps({"version": 3}))
        assert ed.save() == before

    def test_malformed_json(self, editor_with_text):
        ed = editor_with_text
        before = ed.project
        with pytest.raises(MalformedProjectError):
            ed.load(b"{not json")
        assert ed.project is before

    def test_load_replaces_project(self, editor_with_text, fixtures_dir):
        ed = editor_with_text
        ed.load((fixtures_dir / "v1_minimal.json").read_bytes())
        assert ed.segment_texts(0) == ["cat", "dog", "cats"]
        assert isinstance(ed, ProjectEditor)
