"""Import pipeline: raw text tokenization and project document loading."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from interlinear_editor.exceptions import (
    InterlinearEditorError,
    MalformedProjectError,
    ScriptError,
)
from interlinear_editor.formation import SandboxedScriptRunner, ScriptRunner
from interlinear_editor.migrations import migrate_to_latest
from interlinear_editor.models import (
    FormationRule,
    FormationType,
    Segment,
    Token,
    TokenizationMode,
    VocabularyEntry,
)
from interlinear_editor.project import Project
from interlinear_editor.vocabulary import VocabularyStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Raw text
# ---------------------------------------------------------------------------

def tokenize_line(
    line: str,
    mode: TokenizationMode | str = TokenizationMode.WORD,
    *,
    script: str | None = None,
    runner: ScriptRunner | None = None,
) -> list[str]:
    """Split one line into token texts.

    Word mode splits on whitespace; character mode yields every
    non-whitespace character. Script mode evaluates *script* with the
    line bound to ``line``; it must produce a list of strings, and blank
    strings are dropped.
    """
    mode = TokenizationMode(mode)
    if mode is TokenizationMode.WORD:
        return line.split()
    if mode is TokenizationMode.CHARACTER:
        return [ch for ch in line if not ch.isspace()]
    if not script or not script.strip():
        raise ScriptError("Script tokenization needs a tokenization script")
    if runner is None:
        runner = SandboxedScriptRunner()
    result = runner.run(script, {"line": line})
    if not isinstance(result, (list, tuple)):
        raise ScriptError(
            f"Tokenization script must produce a list, got {type(result).__name__}"
        )
    tokens: list[str] = []
    for item in result:
        if not isinstance(item, str):
            raise ScriptError(f"Tokenization script produced a non-string token {item!r}")
        if item.strip():
            tokens.append(item)
    return tokens


def import_text(
    text: str,
    *,
    mode: TokenizationMode | str = TokenizationMode.WORD,
    project: Project | None = None,
    name: str = "",
    script: str | None = None,
    runner: ScriptRunner | None = None,
) -> Project:
    """Tokenize *text* line by line into segments.

    Blank lines are skipped. Segments are appended to *project* when
    given, otherwise a new project is created. Every line is tokenized
    before the project changes, so a failing script adds nothing.
    """
    lines = [
        tokenize_line(line, mode, script=script, runner=runner)
        for line in text.splitlines()
        if line.strip()
    ]
    if project is None:
        project = Project(name=name)
    added = 0
    for words in lines:
        if not words:
            continue
        tokens = [Token(index=project.vocabulary.intern(w)) for w in words]
        project.segments.append(Segment(tokens=tokens))
        added += 1
    logger.info("Imported %d segments (%s mode)", added, TokenizationMode(mode).value)
    return project


# ---------------------------------------------------------------------------
# Project documents
# ---------------------------------------------------------------------------

def _entry(data: dict) -> VocabularyEntry:
    return VocabularyEntry(
        text=data["text"],
        gloss=data.get("gloss") or None,
        references=list(data["references"]) if data.get("references") else None,
        comment=data.get("comment") or None,
        base=data.get("base"),
    )


def decode_project(doc: dict[str, Any]) -> Project:
    """Build a Project from a validated current-version document."""
    vocabulary = doc["vocabulary"]
    try:
        store = VocabularyStore(
            (_entry(e) for e in vocabulary["orignal"]),
            (_entry(e) for e in vocabulary.get("formatted", [])),
        )
        rules = [
            FormationRule(
                pattern=r["pattern"],
                script=r["script"],
                type=FormationType.parse(r["type"]),
                description=r.get("description", ""),
            )
            for r in doc.get("formation_rules", [])
        ]
    except (InterlinearEditorError, ValueError) as e:
        raise MalformedProjectError(f"Cannot decode project: {e}") from e

    segments = []
    for sentence in doc["sentences"]:
        chains = sentence.get("rules") or [[] for _ in sentence["words"]]
        segments.append(Segment(
            tokens=[
                Token(index=index, rules=list(chain))
                for index, chain in zip(sentence["words"], chains)
            ],
            translation=sentence.get("translation", ""),
            comment=sentence.get("comment") or None,
        ))

    return Project(
        version=doc["version"],
        name=doc.get("project_name", ""),
        vocabulary=store,
        segments=segments,
        rules=rules,
    )


def load(data: bytes | str) -> Project:
    """Parse, migrate, validate and decode a serialized project.

    Raises a ``LoadError`` subclass on any failure.
    """
    try:
        project = decode_project(migrate_to_latest(json.loads(data)))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedProjectError(f"Project is not valid JSON: {e}") from e
    except RecursionError as e:
        raise MalformedProjectError("Project JSON is nested too deeply") from e
    logger.info(
        "Loaded project %r: %d segments, %d original, %d formatted, %d rules",
        project.name,
        len(project.segments),
        len(project.vocabulary.original),
        len(project.vocabulary.formatted),
        len(project.rules),
    )
    return project


def read_project_file(path: str | Path) -> Project:
    """Load a project from disk."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return load(path.read_bytes())
