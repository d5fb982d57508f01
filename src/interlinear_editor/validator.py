"""Validation engine for interlinear project documents.

Documents are checked as plain decoded JSON (dicts and lists) so the same
rules run before decoding, between migration steps and on save output.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

from interlinear_editor.models import (
    FormationType,
    ValidationResult,
    ValidationSeverity,
)
from interlinear_editor.vocabulary import normalize

_FORMATTED_REF = re.compile(r"^f(\d+)$")

_ERROR = ValidationSeverity.ERROR.value
_WARNING = ValidationSeverity.WARNING.value


def validate_document(
    doc: Any, version: int | None = None
) -> list[ValidationResult]:
    """Run all validation rules for *doc* at *version*.

    When *version* is omitted it is taken from the document itself.
    """
    if not isinstance(doc, dict):
        return [_error("VAL-DOC-001", "document", "Document root must be an object")]
    if version is None:
        version = doc.get("version")
    validator = _VALIDATORS.get(version) if _is_int(version) else None
    if validator is None:
        return [_error(
            "VAL-DOC-001", "version",
            f"No validation rules for version {version!r}",
        )]
    return validator(doc)


def has_errors(results: list[ValidationResult]) -> bool:
    return any(r.severity == _ERROR for r in results)


def errors_only(results: list[ValidationResult]) -> list[ValidationResult]:
    return [r for r in results if r.severity == _ERROR]


def _error(
    rule_id: str, location: str, message: str, details: dict | None = None
) -> ValidationResult:
    return ValidationResult(
        rule_id=rule_id,
        severity=_ERROR,
        location=location,
        message=message,
        details=details,
    )


def _warning(
    rule_id: str, location: str, message: str, details: dict | None = None
) -> ValidationResult:
    return ValidationResult(
        rule_id=rule_id,
        severity=_WARNING,
        location=location,
        message=message,
        details=details,
    )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _check_duplicates(
    texts: list[tuple[int, str]], table: str
) -> list[ValidationResult]:
    # VAL-VOC-002
    results: list[ValidationResult] = []
    seen: dict[str, int] = {}
    for pos, text in texts:
        key = normalize(text)
        if key in seen:
            results.append(_error(
                "VAL-VOC-002", f"{table}[{pos}]",
                f"Duplicate {table} entry {text!r} (first at {seen[key]})",
                {"first": seen[key], "duplicate": pos},
            ))
        else:
            seen[key] = pos
    return results


# ---------------------------------------------------------------------------
# Version 1
# ---------------------------------------------------------------------------

def _v1_word(value: Any) -> str | None:
    """Word text of a v1 vocabulary item, or None when malformed."""
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, dict) and _is_text(value.get("word")):
        meaning = value.get("meaning")
        comment = value.get("comment")
        if meaning is not None and not isinstance(meaning, str):
            return None
        if comment is not None and not isinstance(comment, str):
            return None
        return value["word"]
    return None


def _validate_v1(doc: dict) -> list[ValidationResult]:
    results: list[ValidationResult] = []

    vocabulary = doc.get("vocabulary")
    sentences = doc.get("sentences")
    formatted = doc.get("formatted_word", {})
    formation = doc.get("formation", [])
    if not isinstance(vocabulary, list):
        results.append(_error("VAL-DOC-001", "vocabulary", "vocabulary must be a list"))
    if not isinstance(sentences, list):
        results.append(_error("VAL-DOC-001", "sentences", "sentences must be a list"))
    if not isinstance(formatted, dict):
        results.append(_error(
            "VAL-DOC-001", "formatted_word", "formatted_word must be an object"
        ))
    if not isinstance(formation, list):
        results.append(_error("VAL-DOC-001", "formation", "formation must be a list"))
    name = doc.get("project_name")
    if name is not None and not isinstance(name, str):
        results.append(_error(
            "VAL-DOC-001", "project_name", "project_name must be a string"
        ))
    if results:
        return results

    # VAL-VOC-001
    words: list[tuple[int, str]] = []
    for pos, item in enumerate(vocabulary):
        text = _v1_word(item)
        if text is None:
            results.append(_error(
                "VAL-VOC-001", f"vocabulary[{pos}]", "Malformed vocabulary item"
            ))
        else:
            words.append((pos, text))
    results.extend(_check_duplicates(words, "vocabulary"))

    # VAL-VOC-003
    derived: list[tuple[int, str]] = []
    for key, item in formatted.items():
        location = f"formatted_word[{key!r}]"
        base = int(key) if key.isdecimal() else None
        if base is None or base >= len(vocabulary):
            results.append(_error(
                "VAL-VOC-003", location,
                f"formatted_word key {key!r} is not an index into vocabulary",
            ))
        text = _v1_word(item)
        if text is None:
            results.append(_error("VAL-VOC-001", location, "Malformed formatted word"))
        elif base is not None:
            derived.append((base, text))
    results.extend(_v1_derived_duplicates(derived))

    for pos, sentence in enumerate(sentences):
        location = f"sentences[{pos}]"
        if not isinstance(sentence, dict) or not isinstance(sentence.get("words"), list):
            results.append(_error(
                "VAL-SEG-001", location, "Sentence must be an object with a words list"
            ))
            continue
        for key in ("meaning", "translation", "comment"):
            value = sentence.get(key)
            if value is not None and not isinstance(value, str):
                results.append(_error(
                    "VAL-SEG-001", f"{location}.{key}", f"{key} must be a string"
                ))
        for t, word in enumerate(sentence["words"]):
            results.extend(_v1_token(word, f"{location}.words[{t}]", vocabulary, formatted))

    for pos, rule in enumerate(formation):
        location = f"formation[{pos}]"
        if not isinstance(rule, dict) or not isinstance(rule.get("command"), str):
            results.append(_error(
                "VAL-RUL-001", location, "Formation rule needs a command string"
            ))
            continue
        results.extend(_check_rule_type(rule.get("type", "Derivation"), location))

    return results


def _v1_derived_duplicates(derived: list[tuple[int, str]]) -> list[ValidationResult]:
    # VAL-VOC-002: one formatted text cannot derive from two base words
    results: list[ValidationResult] = []
    seen: dict[str, int] = {}
    for base, text in sorted(derived):
        key = normalize(text)
        if key in seen:
            results.append(_error(
                "VAL-VOC-002", f"formatted_word[{str(base)!r}]",
                f"Formatted word {text!r} already derives from vocabulary[{seen[key]}]",
                {"first": seen[key], "duplicate": base},
            ))
        else:
            seen[key] = base
    return results


def _v1_token(
    word: Any, location: str, vocabulary: list, formatted: dict
) -> list[ValidationResult]:
    # VAL-IDX-001
    if _is_int(word):
        if 0 <= word < len(vocabulary):
            return []
        return [_error(
            "VAL-IDX-001", location,
            f"Word index {word} outside vocabulary of {len(vocabulary)}",
        )]
    if isinstance(word, str):
        match = _FORMATTED_REF.match(word)
        if match and match.group(1) in formatted:
            return []
        return [_error(
            "VAL-IDX-001", location, f"Unresolved formatted reference {word!r}"
        )]
    return [_error("VAL-IDX-001", location, f"Invalid word reference {word!r}")]


def _check_rule_type(value: Any, location: str) -> list[ValidationResult]:
    try:
        FormationType.parse(value)
    except ValueError:
        return [_error(
            "VAL-RUL-001", f"{location}.type", f"Unknown formation type {value!r}"
        )]
    return []


# ---------------------------------------------------------------------------
# Version 2
# ---------------------------------------------------------------------------

def _validate_v2(doc: dict) -> list[ValidationResult]:
    results: list[ValidationResult] = []

    vocabulary = doc.get("vocabulary")
    sentences = doc.get("sentences")
    rules = doc.get("formation_rules", [])
    if (
        not isinstance(vocabulary, dict)
        or not isinstance(vocabulary.get("orignal"), list)
        or not isinstance(vocabulary.get("formatted", []), list)
    ):
        results.append(_error(
            "VAL-DOC-001", "vocabulary",
            "vocabulary must hold 'orignal' and 'formatted' lists",
        ))
    if not isinstance(sentences, list):
        results.append(_error("VAL-DOC-001", "sentences", "sentences must be a list"))
    if not isinstance(rules, list):
        results.append(_error(
            "VAL-DOC-001", "formation_rules", "formation_rules must be a list"
        ))
    name = doc.get("project_name")
    if name is not None and not isinstance(name, str):
        results.append(_error(
            "VAL-DOC-001", "project_name", "project_name must be a string"
        ))
    if results:
        return results

    original = vocabulary["orignal"]
    formatted = vocabulary.get("formatted", [])

    results.extend(_v2_table(original, "orignal", None))
    results.extend(_v2_table(formatted, "formatted", len(original)))

    for pos, rule in enumerate(rules):
        location = f"formation_rules[{pos}]"
        if (
            not isinstance(rule, dict)
            or not isinstance(rule.get("pattern"), str)
            or not isinstance(rule.get("script"), str)
        ):
            results.append(_error(
                "VAL-RUL-001", location,
                "Formation rule needs 'pattern' and 'script' strings",
            ))
            continue
        description = rule.get("description")
        if description is not None and not isinstance(description, str):
            results.append(_error(
                "VAL-RUL-001", f"{location}.description", "description must be a string"
            ))
        results.extend(_check_rule_type(rule.get("type"), location))

    used_original: set[int] = set()
    used_formatted: set[int] = set()
    for pos, sentence in enumerate(sentences):
        results.extend(_v2_sentence(
            sentence, pos, len(original), len(formatted), len(rules),
            used_original, used_formatted,
        ))

    # VAL-VOC-004
    for kind, table, used in (
        ("orignal", original, used_original),
        ("formatted", formatted, used_formatted),
    ):
        for pos in range(len(table)):
            if pos not in used:
                results.append(_warning(
                    "VAL-VOC-004", f"{kind}[{pos}]", "Entry is not used by any sentence"
                ))

    return results


def _v2_table(
    entries: list, table: str, original_size: int | None
) -> list[ValidationResult]:
    results: list[ValidationResult] = []
    texts: list[tuple[int, str]] = []
    for pos, entry in enumerate(entries):
        location = f"{table}[{pos}]"
        if not isinstance(entry, dict) or not _is_text(entry.get("text")):
            results.append(_error("VAL-VOC-001", location, "Entry needs a non-empty text"))
            continue
        texts.append((pos, entry["text"]))
        for key in ("gloss", "comment"):
            value = entry.get(key)
            if value is not None and not isinstance(value, str):
                results.append(_error(
                    "VAL-VOC-001", f"{location}.{key}", f"{key} must be a string"
                ))
        references = entry.get("references")
        if references is not None and (
            not isinstance(references, list)
            or not all(isinstance(r, str) for r in references)
        ):
            results.append(_error(
                "VAL-VOC-001", f"{location}.references",
                "references must be a list of strings",
            ))
        if "base" in entry:
            base = entry["base"]
            if original_size is None:
                results.append(_error(
                    "VAL-VOC-003", f"{location}.base", "Original entries have no base"
                ))
            elif not _is_int(base) or not 0 <= base < original_size:
                results.append(_error(
                    "VAL-VOC-003", f"{location}.base",
                    f"Base {base!r} does not resolve into orignal",
                ))
    results.extend(_check_duplicates(texts, table))
    return results


def _v2_sentence(
    sentence: Any,
    pos: int,
    n_original: int,
    n_formatted: int,
    n_rules: int,
    used_original: set[int],
    used_formatted: set[int],
) -> list[ValidationResult]:
    location = f"sentences[{pos}]"
    if not isinstance(sentence, dict) or not isinstance(sentence.get("words"), list):
        return [_error(
            "VAL-SEG-001", location, "Sentence must be an object with a words list"
        )]

    results: list[ValidationResult] = []
    if not isinstance(sentence.get("translation", ""), str):
        results.append(_error(
            "VAL-SEG-001", f"{location}.translation", "translation must be a string"
        ))
    comment = sentence.get("comment")
    if comment is not None and not isinstance(comment, str):
        results.append(_error(
            "VAL-SEG-001", f"{location}.comment", "comment must be a string"
        ))

    words = sentence["words"]
    if not words:
        results.append(_warning("VAL-SEG-003", location, "Sentence has no tokens"))
    for t, index in enumerate(words):
        token_loc = f"{location}.words[{t}]"
        if not _is_int(index):
            results.append(_error(
                "VAL-IDX-001", token_loc, f"Token index must be an integer, got {index!r}"
            ))
        elif index >= 0:
            if index < n_original:
                used_original.add(index)
            else:
                results.append(_error(
                    "VAL-IDX-001", token_loc,
                    f"Index {index} outside orignal table of {n_original}",
                ))
        else:
            position = -index - 1
            if position < n_formatted:
                used_formatted.add(position)
            else:
                results.append(_error(
                    "VAL-IDX-001", token_loc,
                    f"Index {index} outside formatted table of {n_formatted}",
                ))

    chains = sentence.get("rules")
    if chains is None:
        return results
    if not isinstance(chains, list) or len(chains) != len(words):
        results.append(_error(
            "VAL-SEG-002", f"{location}.rules",
            "rules must be a list parallel to words",
        ))
        return results
    for t, chain in enumerate(chains):
        chain_loc = f"{location}.rules[{t}]"
        if not isinstance(chain, list):
            results.append(_error("VAL-SEG-002", chain_loc, "Rule chain must be a list"))
            continue
        for rule_index in chain:
            # VAL-RUL-002
            if not _is_int(rule_index) or not 0 <= rule_index < n_rules:
                results.append(_error(
                    "VAL-RUL-002", chain_loc,
                    f"Rule index {rule_index!r} outside rule table of {n_rules}",
                ))
    return results


_VALIDATORS: dict[int, Callable[[dict], list[ValidationResult]]] = {
    1: _validate_v1,
    2: _validate_v2,
}
