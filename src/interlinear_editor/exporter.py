"""Export pipeline: project documents and typeset interlinear text."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from interlinear_editor import validator as _validator
from interlinear_editor.exceptions import ValidationError
from interlinear_editor.models import VocabularyEntry
from interlinear_editor.project import CURRENT_VERSION, Project

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Project documents
# ---------------------------------------------------------------------------

def _entry(entry: VocabularyEntry, *, formatted: bool) -> dict[str, Any]:
    data: dict[str, Any] = {"text": entry.text}
    if entry.gloss:
        data["gloss"] = entry.gloss
    if entry.references:
        data["references"] = list(entry.references)
    if entry.comment:
        data["comment"] = entry.comment
    if formatted and entry.base is not None:
        data["base"] = entry.base
    return data


def encode_project(project: Project) -> dict[str, Any]:
    """Convert a Project into the current-version document layout."""
    doc: dict[str, Any] = {"version": CURRENT_VERSION}
    if project.name:
        doc["project_name"] = project.name
    doc["vocabulary"] = {
        "orignal": [_entry(e, formatted=False) for e in project.vocabulary.original],
        "formatted": [_entry(e, formatted=True) for e in project.vocabulary.formatted],
    }

    sentences = []
    for segment in project.segments:
        sentence: dict[str, Any] = {
            "words": [t.index for t in segment.tokens],
            "translation": segment.translation,
        }
        if segment.comment:
            sentence["comment"] = segment.comment
        if any(t.rules for t in segment.tokens):
            sentence["rules"] = [list(t.rules) for t in segment.tokens]
        sentences.append(sentence)
    doc["sentences"] = sentences

    doc["formation_rules"] = [
        {
            "pattern": rule.pattern,
            "script": rule.script,
            "type": rule.type.value,
            **({"description": rule.description} if rule.description else {}),
        }
        for rule in project.rules
    ]
    return doc


def save(project: Project, *, indent: int | None = 2) -> bytes:
    """Serialize *project*; refuses to emit a document that would not load."""
    doc = encode_project(project)
    errors = _validator.errors_only(_validator.validate_document(doc))
    if errors:
        first = errors[0]
        raise ValidationError(
            f"Refusing to save invalid project: {first.location}: {first.message}"
        )
    return json.dumps(doc, indent=indent, ensure_ascii=False).encode("utf-8")


def write_project_file(data: bytes, destination: str | Path) -> None:
    """Write serialized project bytes, replacing *destination* atomically.

    The previous file stays intact if writing fails.
    """
    destination = Path(destination)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, destination)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    logger.info("Wrote %s (%d bytes)", destination, len(data))


# ---------------------------------------------------------------------------
# Typst
# ---------------------------------------------------------------------------

_TYPST_SPECIAL = frozenset('[]#*_`$\\@<>{}"~=&')


def escape_typst(text: str) -> str:
    """Backslash-escape markup characters and drop line breaks."""
    out = []
    for ch in text:
        if ch in "\r\n":
            continue
        if ch in _TYPST_SPECIAL:
            out.append("\\")
        out.append(ch)
    return "".join(out)


def export_to_typeset_text(project: Project) -> str:
    """Render *project* as Typst markup with glosses stacked above tokens."""
    parts = [
        '#set page(paper: "a4")\n',
        "#set text(size: 12pt)\n",
        f"= {escape_typst(project.name)}\n\n",
    ]
    for segment in project.segments:
        parts.append("#block(inset: 10pt, stroke: none)[\n  ")
        for token in segment.tokens:
            gloss = escape_typst(project.token_gloss(token) or "")
            original = escape_typst(project.token_text(token))
            parts.append(
                f"#box(stack(dir: ttb, align(center, text(size: 8pt)[{gloss}]), "
                f"v(0.5em), align(center)[{original}])) #h(5pt) "
            )
        parts.append("\n\n")
        parts.append(f"  *trans:* {escape_typst(segment.translation)}\n]\n#v(1em)\n")
    return "".join(parts)


def write_typeset_file(project: Project, destination: str | Path) -> None:
    content = export_to_typeset_text(project)
    write_project_file(content.encode("utf-8"), destination)
