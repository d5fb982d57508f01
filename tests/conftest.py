"""Shared test fixtures for interlinear-editor."""

from pathlib import Path

import pytest

from interlinear_editor import ProjectEditor

FIXTURES = Path(__file__).parent / "fixtures"

SAMPLE_TEXT = """\
the cat sat
the dog sat

the cat ran home
"""


@pytest.fixture
def fixtures_dir():
    return FIXTURES


@pytest.fixture
def editor():
    """An editor holding an empty project."""
    return ProjectEditor()


@pytest.fixture
def editor_with_text():
    """Editor with three imported segments and no annotations."""
    return ProjectEditor.from_text(SAMPLE_TEXT, name="Sample")


@pytest.fixture
def editor_with_rules(editor_with_text):
    """Editor with a plural rule (0) and a regex past-tense rule (1)."""
    ed = editor_with_text
    ed.add_rule("", "word + 's'", "Derivation", "plural")
    ed.add_rule(r"^(\w+?)(e?)$", "groups[0] + 'ed'", "Inflection", "past")
    return ed
