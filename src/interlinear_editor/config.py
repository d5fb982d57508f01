"""Editor settings loaded from YAML."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from interlinear_editor.exceptions import ConfigError
from interlinear_editor.models import TokenizationMode


@dataclass(frozen=True, slots=True)
class EditorSettings:
    """Tunables for scripts, similarity results, import and save."""

    script_max_steps: int = 100_000
    script_max_depth: int = 200
    script_timeout: float = 1.0
    similarity_results: int = 5
    similar_words_results: int = 5
    tokenization: str = TokenizationMode.WORD.value
    tokenization_script: str = ""
    json_indent: int = 2

    @property
    def tokenization_mode(self) -> TokenizationMode:
        return TokenizationMode(self.tokenization)


_POSITIVE_INTS = (
    "script_max_steps",
    "script_max_depth",
    "similarity_results",
    "similar_words_results",
)


def load_settings(source: str | Path | dict[str, Any] | None = None) -> EditorSettings:
    """Build settings from a YAML file, a parsed mapping, or defaults.

    Raises:
        ConfigError: Invalid YAML, unknown keys, or out-of-range values.
        FileNotFoundError: If *source* names a missing file.
    """
    if source is None:
        return EditorSettings()
    if isinstance(source, dict):
        data = source
    else:
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        data = _load_yaml_file(path)
    return _parse_settings(data)


def _load_yaml_file(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        line = mark.line + 1 if mark else None
        raise ConfigError(f"Invalid YAML in {path}: {e}", line=line) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Settings root must be a mapping")
    return data


def _parse_settings(data: dict[str, Any]) -> EditorSettings:
    known = {f.name for f in dataclasses.fields(EditorSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown settings: {', '.join(map(str, unknown))}")

    for key in _POSITIVE_INTS:
        if key in data:
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigError(f"{key} must be a positive integer, got {value!r}")

    if "script_timeout" in data:
        value = data["script_timeout"]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ConfigError(f"script_timeout must be a positive number, got {value!r}")
        data = {**data, "script_timeout": float(value)}

    if "json_indent" in data:
        value = data["json_indent"]
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigError(f"json_indent must be a non-negative integer, got {value!r}")

    if "tokenization" in data:
        try:
            TokenizationMode(data["tokenization"])
        except ValueError:
            raise ConfigError(
                f"tokenization must be one of "
                f"{', '.join(m.value for m in TokenizationMode)}, "
                f"got {data['tokenization']!r}"
            ) from None

    script = data.get("tokenization_script", "")
    if not isinstance(script, str):
        raise ConfigError(f"tokenization_script must be a string, got {script!r}")
    if data.get("tokenization") == TokenizationMode.SCRIPT.value and not script.strip():
        raise ConfigError("tokenization: script needs a tokenization_script")

    return EditorSettings(**data)
