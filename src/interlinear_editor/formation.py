"""Word formation rules: pattern match plus a bounded, sandboxed script.

Scripts are single expressions evaluated with ``simpleeval``. They see
three names: ``word`` (the input text), ``groups`` (positional captures
of the rule pattern, unmatched groups as ``""``) and ``named`` (named
captures). The result must be a non-empty string.

Rule patterns and the ``sub`` helper run on the ``regex`` engine with a
timeout taken from the same deadline as the script, so a backtracking
pattern cannot outlive the time limit.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

import regex
import simpleeval

from interlinear_editor.exceptions import IndexOutOfRangeError, ScriptError
from interlinear_editor.models import FormationRule

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 100_000
DEFAULT_MAX_DEPTH = 200
DEFAULT_TIMEOUT = 1.0
MAX_TEXT_LENGTH = simpleeval.MAX_STRING_LENGTH

# ``sub`` is bound per evaluation, see _BoundedEval.sub
SCRIPT_FUNCTIONS: dict[str, Any] = {
    "len": len,
    "str": str,
    "int": int,
}


class ScriptRunner(Protocol):
    """Capability interface for executing a rule script."""

    def run(self, script: str, names: Mapping[str, Any]) -> Any: ...


class _BoundedEval(simpleeval.EvalWithCompoundTypes):
    """Evaluator that charges one step per visited node."""

    def __init__(
        self,
        names: Mapping[str, Any],
        *,
        max_steps: int,
        max_depth: int,
        deadline: float,
    ) -> None:
        functions = dict(SCRIPT_FUNCTIONS, sub=self.sub)
        super().__init__(functions=functions, names=dict(names))
        self.max_steps = max_steps
        self.max_depth = max_depth
        self.deadline = deadline
        self.steps = 0
        self.depth = 0

    def remaining(self) -> float:
        left = self.deadline - time.monotonic()
        if left <= 0:
            raise ScriptError("Script exceeded its time limit")
        return left

    def sub(self, pattern: str, repl: str, string: str, count: int = 0) -> str:
        """``regex.sub`` limited to string arguments and the script deadline."""
        for value in (pattern, repl, string):
            if not isinstance(value, str):
                raise ScriptError("sub() takes string arguments only")
            if len(value) > MAX_TEXT_LENGTH:
                raise ScriptError(f"sub() argument longer than {MAX_TEXT_LENGTH}")
        try:
            return regex.sub(pattern, repl, string, count=count, timeout=self.remaining())
        except TimeoutError as e:
            raise ScriptError("Script exceeded its time limit") from e

    def _eval(self, node):
        self.steps += 1
        if self.steps > self.max_steps:
            raise ScriptError(f"Script exceeded {self.max_steps} evaluation steps")
        self.remaining()
        self.depth += 1
        try:
            if self.depth > self.max_depth:
                raise ScriptError(f"Script nesting deeper than {self.max_depth}")
            value = super()._eval(node)
        finally:
            self.depth -= 1
        if isinstance(value, str) and len(value) > MAX_TEXT_LENGTH:
            raise ScriptError(f"Script built a string longer than {MAX_TEXT_LENGTH}")
        return value


class SandboxedScriptRunner:
    """Default runner: no imports, no statements, bounded work."""

    def __init__(
        self,
        *,
        max_steps: int = DEFAULT_MAX_STEPS,
        max_depth: int = DEFAULT_MAX_DEPTH,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.max_steps = max_steps
        self.max_depth = max_depth
        self.timeout = timeout

    def run(self, script: str, names: Mapping[str, Any]) -> Any:
        if not script.strip():
            raise ScriptError("Script is empty")
        evaluator = _BoundedEval(
            names,
            max_steps=self.max_steps,
            max_depth=self.max_depth,
            deadline=time.monotonic() + self.timeout,
        )
        try:
            return evaluator.eval(script.strip())
        except ScriptError:
            raise
        except simpleeval.InvalidExpression as e:
            raise ScriptError(f"Disallowed script: {e}") from e
        except SyntaxError as e:
            raise ScriptError(f"Script syntax error: {e.msg}") from e
        except RecursionError as e:
            raise ScriptError("Script nesting too deep") from e
        except (
            ArithmeticError,
            AttributeError,
            IndexError,
            KeyError,
            TypeError,
            ValueError,
            regex.error,
        ) as e:
            raise ScriptError(f"Script failed: {type(e).__name__}: {e}") from e


def compile_pattern(pattern: str) -> regex.Pattern | None:
    """Compile a rule pattern; an empty pattern matches any word."""
    if not pattern:
        return None
    try:
        return regex.compile(pattern)
    except regex.error as e:
        raise ScriptError(f"Invalid rule pattern {pattern!r}: {e}") from e


class FormationEngine:
    """Applies formation rules to word texts."""

    def __init__(
        self,
        runner: ScriptRunner | None = None,
        *,
        match_timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.runner = runner if runner is not None else SandboxedScriptRunner()
        self.match_timeout = match_timeout

    def apply(self, rule: FormationRule, text: str) -> str:
        """Return the form derived from *text* by *rule*.

        Raises ScriptError on pattern mismatch or script failure.
        """
        compiled = compile_pattern(rule.pattern)
        groups: tuple[str, ...] = ()
        named: dict[str, str] = {}
        if compiled is not None:
            try:
                match = compiled.search(text, timeout=self.match_timeout)
            except TimeoutError as e:
                raise ScriptError(
                    f"Pattern {rule.pattern!r} timed out on {text!r}"
                ) from e
            if match is None:
                raise ScriptError(
                    f"Pattern {rule.pattern!r} does not match {text!r}"
                )
            groups = tuple(g or "" for g in match.groups())
            named = {k: v or "" for k, v in match.groupdict().items()}

        try:
            result = self.runner.run(
                rule.script, {"word": text, "groups": groups, "named": named}
            )
        except ScriptError as e:
            logger.debug("Rule %r failed on %r: %s", rule.description or rule.script, text, e)
            raise

        if not isinstance(result, str):
            raise ScriptError(
                f"Script must produce a string, got {type(result).__name__}"
            )
        if not result.strip():
            raise ScriptError("Script produced an empty word")
        return result

    def apply_chain(
        self, rules: Sequence[FormationRule], chain: Sequence[int], text: str
    ) -> str:
        """Re-derive a form by applying the rules of *chain* in order."""
        for index in chain:
            if not 0 <= index < len(rules):
                raise IndexOutOfRangeError(
                    f"Formation rule {index} out of range ({len(rules)} rules)"
                )
            text = self.apply(rules[index], text)
        return text
