"""Tests for background load/save slots."""

import json
import threading
from concurrent.futures import Future

import pytest

from interlinear_editor import (
    EditorSession,
    PendingOperationError,
    ProjectEditor,
    UnsupportedVersionError,
)


class ManualExecutor:
    """Executor whose jobs run only when ``run_all`` is called."""

    def __init__(self):
        self.jobs = []

    def submit(self, fn, *args):
        future = Future()
        self.jobs.append((future, fn, args))
        return future

    def run_all(self):
        for future, fn, args in self.jobs:
            try:
                future.set_result(fn(*args))
            except Exception as e:
                future.set_exception(e)
        self.jobs = []

    def shutdown(self, wait=True):
        pass


@pytest.fixture
def manual():
    return ManualExecutor()


class TestLoad:
    def test_applied_on_tick_only(self, editor_with_text, fixtures_dir, manual):
        ed = editor_with_text
        session = EditorSession(ed, manual)
        session.request_load(fixtures_dir / "v1_minimal.json")
        assert session.tick() == []
        assert ed.segment_texts(0) == ["the", "cat", "sat"]

        manual.run_all()
        results = session.tick()
        assert [(r.kind, r.ok) for r in results] == [("load", True)]
        assert ed.segment_texts(0) == ["cat", "dog", "cats"]
        assert not session.load_pending

    def test_second_load_rejected(self, editor, fixtures_dir, manual):
        session = EditorSession(editor, manual)
        session.request_load(fixtures_dir / "v1_minimal.json")
        with pytest.raises(PendingOperationError):
            session.request_load(fixtures_dir / "v2_project.json")
        manual.run_all()
        session.tick()
        session.request_load(fixtures_dir / "v2_project.json")

    def test_failed_load_keeps_project(self, editor_with_text, tmp_path, manual):
        path = tmp_path / "future.json"
        path.write_text(json.dumps({"version": 3}))
        ed = editor_with_text
        before = ed.project
        session = EditorSession(ed, manual)
        session.request_load(path)
        manual.run_all()
        [result] = session.tick()
        assert not result.ok
        assert isinstance(result.error, UnsupportedVersionError)
        assert ed.project is before


class TestSave:
    def test_save_written_by_worker(self, editor_with_text, tmp_path, manual):
        path = tmp_path / "out.json"
        session = EditorSession(editor_with_text, manual)
        session.request_save(path)
        assert not path.exists()
        with pytest.raises(PendingOperationError):
            session.request_save(path)
        manual.run_all()
        [result] = session.tick()
        assert result.ok and result.kind == "save"
        assert ProjectEditor.from_file(path).segment_texts(1) == ["the", "dog", "sat"]

    def test_snapshot_taken_at_request(self, editor_with_text, tmp_path, manual):
        path = tmp_path / "out.json"
        ed = editor_with_text
        session = EditorSession(ed, manual)
        session.request_save(path)
        ed.set_translation(0, "changed later")
        manual.run_all()
        session.tick()
        assert ProjectEditor.from_file(path).get_segment(0).translation == ""

    def test_load_and_save_independent(self, editor_with_text, fixtures_dir, tmp_path, manual):
        session = EditorSession(editor_with_text, manual)
        session.request_save(tmp_path / "out.json")
        session.request_load(fixtures_dir / "v2_project.json")
        manual.run_all()
        kinds = [r.kind for r in session.tick()]
        assert kinds == ["load", "save"]


class TestThreadPool:
    def test_real_executor(self, editor_with_text, fixtures_dir, tmp_path):
        with EditorSession(editor_with_text) as session:
            session.request_save(tmp_path / "out.json")
            session.request_load(fixtures_dir / "v2_project.json")
            results = session.wait(timeout=10)
            assert all(r.ok for r in results)
            assert editor_with_text.project.name == "Sample"
            assert threading.current_thread() is threading.main_thread()
        assert (tmp_path / "out.json").exists()
