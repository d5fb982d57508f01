"""Forward-only migration of project documents to the current version."""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from typing import Any

from interlinear_editor import validator as _validator
from interlinear_editor.exceptions import (
    MalformedProjectError,
    UnsupportedVersionError,
)
from interlinear_editor.models import FormationType
from interlinear_editor.project import CURRENT_VERSION

logger = logging.getLogger(__name__)

MigrationStep = Callable[[dict], dict]

_STEPS: dict[int, MigrationStep] = {}


def migration_step(from_version: int) -> Callable[[MigrationStep], MigrationStep]:
    """Register a step transforming ``from_version`` into ``from_version + 1``."""

    def decorator(func: MigrationStep) -> MigrationStep:
        if from_version in _STEPS:
            raise ValueError(f"Migration from version {from_version} already registered")
        _STEPS[from_version] = func
        return func

    return decorator


def registered_steps() -> list[int]:
    return sorted(_STEPS)


def read_version(doc: Any) -> int:
    """Return the declared version of *doc* if this build can load it."""
    if not isinstance(doc, dict):
        raise UnsupportedVersionError("Project document has no version field")
    if "version" not in doc:
        raise UnsupportedVersionError("Project document has no version field")
    version = doc["version"]
    if isinstance(version, bool) or not isinstance(version, int):
        raise UnsupportedVersionError(f"Unparseable project version: {version!r}")
    if version < 1 or version > CURRENT_VERSION:
        raise UnsupportedVersionError(
            f"Unsupported project version: {version} "
            f"(this build reads 1 to {CURRENT_VERSION})"
        )
    return version


def migrate(doc: dict, from_version: int) -> dict:
    """Apply the single step from *from_version* to a copy of *doc*."""
    step = _STEPS.get(from_version)
    if step is None:
        raise UnsupportedVersionError(f"No migration from version {from_version}")
    migrated = step(copy.deepcopy(doc))
    migrated["version"] = from_version + 1
    return migrated


def migrate_to_latest(doc: Any) -> dict:
    """Validate and migrate *doc* step by step up to ``CURRENT_VERSION``.

    A document already at the current version is validated and returned
    as is. Any validation failure aborts the whole migration.
    """
    version = read_version(doc)
    _check(doc, version)
    if version == CURRENT_VERSION:
        return doc

    logger.info("Migrating project from version %d to %d", version, CURRENT_VERSION)
    while version < CURRENT_VERSION:
        doc = migrate(doc, version)
        version += 1
        _check(doc, version)
        logger.info("Migrated project to version %d", version)
    return doc


def _check(doc: dict, version: int) -> None:
    results = _validator.validate_document(doc, version)
    errors = _validator.errors_only(results)
    if errors:
        first = errors[0]
        raise MalformedProjectError(
            f"Invalid version {version} document: {first.location}: {first.message}"
            + (f" (and {len(errors) - 1} more)" if len(errors) > 1 else ""),
            errors,
        )


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------

def _v1_entry(item: str | dict) -> dict:
    if isinstance(item, str):
        return {"text": item}
    entry: dict[str, Any] = {"text": item["word"]}
    if item.get("meaning"):
        entry["gloss"] = item["meaning"]
    if item.get("comment"):
        entry["comment"] = item["comment"]
    return entry


@migration_step(1)
def _v1_to_v2(doc: dict) -> dict:
    """Split the flat vocabulary into the two-table, signed-index layout."""
    original = [_v1_entry(item) for item in doc["vocabulary"]]

    # Formatted texts are unique across keys once validated, so each key
    # gets its own entry and keeps its base word.
    formatted: list[dict] = []
    by_key: dict[str, int] = {}
    for key in sorted(doc.get("formatted_word", {}), key=int):
        entry = _v1_entry(doc["formatted_word"][key])
        entry["base"] = int(key)
        by_key[key] = len(formatted)
        formatted.append(entry)

    sentences = []
    for sentence in doc["sentences"]:
        words = []
        for word in sentence["words"]:
            if isinstance(word, str):
                words.append(-(by_key[word[1:]] + 1))
            else:
                words.append(word)
        migrated: dict[str, Any] = {
            "words": words,
            "translation": sentence.get("translation", sentence.get("meaning", "")),
        }
        if sentence.get("comment"):
            migrated["comment"] = sentence["comment"]
        sentences.append(migrated)

    rules = [
        {
            "pattern": "",
            "script": rule["command"],
            "type": FormationType.parse(rule.get("type", "Derivation")).value,
            "description": rule.get("description", ""),
        }
        for rule in doc.get("formation", [])
    ]

    result: dict[str, Any] = {"version": 2}
    if doc.get("project_name"):
        result["project_name"] = doc["project_name"]
    result["vocabulary"] = {"orignal": original, "formatted": formatted}
    result["sentences"] = sentences
    result["formation_rules"] = rules
    return result
