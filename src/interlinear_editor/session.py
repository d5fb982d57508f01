"""Background load/save slots for an editor driven by a frame loop.

File I/O runs on a worker thread. Results are applied to the editor only
from ``tick()``, on the thread that owns the editor.
"""

from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass
from pathlib import Path

from interlinear_editor import exporter as _exp
from interlinear_editor import importer as _imp
from interlinear_editor.editor import ProjectEditor
from interlinear_editor.exceptions import PendingOperationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Outcome of a completed background load or save."""

    kind: str
    path: Path
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class _Pending:
    path: Path
    future: concurrent.futures.Future


class EditorSession:
    """Owns the pending load and save slots of one editor.

    A second request of the same kind while one is in flight is rejected
    with PendingOperationError.
    """

    def __init__(
        self,
        editor: ProjectEditor,
        executor: concurrent.futures.Executor | None = None,
    ) -> None:
        self.editor = editor
        self._owns_executor = executor is None
        self._executor = executor or concurrent.futures.ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="interlinear-io"
        )
        self._load: _Pending | None = None
        self._save: _Pending | None = None

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def __enter__(self) -> EditorSession:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def load_pending(self) -> bool:
        return self._load is not None

    @property
    def save_pending(self) -> bool:
        return self._save is not None

    def request_load(self, source: str | Path) -> None:
        if self._load is not None:
            raise PendingOperationError(f"A load of {self._load.path} is already pending")
        path = Path(source)
        self._load = _Pending(path, self._executor.submit(_imp.read_project_file, path))

    def request_save(self, destination: str | Path) -> None:
        """Serialize now; write on the worker."""
        if self._save is not None:
            raise PendingOperationError(f"A save to {self._save.path} is already pending")
        path = Path(destination)
        data = self.editor.save()
        self._save = _Pending(
            path, self._executor.submit(_exp.write_project_file, data, path)
        )

    def tick(self) -> list[OperationResult]:
        """Consume at most one finished load and one finished save."""
        results: list[OperationResult] = []
        if self._load is not None and self._load.future.done():
            pending, self._load = self._load, None
            error = pending.future.exception()
            if error is None:
                self.editor.replace_project(pending.future.result())
            else:
                logger.warning("Loading %s failed: %s", pending.path, error)
            results.append(OperationResult("load", pending.path, error))
        if self._save is not None and self._save.future.done():
            pending, self._save = self._save, None
            error = pending.future.exception()
            if error is not None:
                logger.warning("Saving %s failed: %s", pending.path, error)
            results.append(OperationResult("save", pending.path, error))
        return results

    def wait(self, timeout: float | None = None) -> list[OperationResult]:
        """Block until pending operations finish, then tick."""
        futures = [p.future for p in (self._load, self._save) if p is not None]
        concurrent.futures.wait(futures, timeout=timeout)
        return self.tick()
