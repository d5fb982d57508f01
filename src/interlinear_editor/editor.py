"""ProjectEditor: main entry point for the interlinear-editor library."""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from interlinear_editor import exporter as _exp
from interlinear_editor import importer as _imp
from interlinear_editor import similarity as _sim
from interlinear_editor.cache import CacheRegistry
from interlinear_editor.config import EditorSettings
from interlinear_editor.exceptions import (
    DuplicateEntityError,
    RuleInUseError,
    ScriptError,
    ValidationError,
)
from interlinear_editor.filtering import filter_segments, sort_segments
from interlinear_editor.formation import (
    FormationEngine,
    SandboxedScriptRunner,
    ScriptRunner,
    compile_pattern,
)
from interlinear_editor.lookup import LookupTable, build_lookup
from interlinear_editor.models import (
    CacheKind,
    EntryKind,
    FormationRule,
    FormationType,
    LookupEntry,
    Segment,
    SimilarityHit,
    SimilarWord,
    SortField,
    TokenizationMode,
    ValidationResult,
    VocabularyEntry,
)
from interlinear_editor.project import Project
from interlinear_editor.validator import validate_document
from interlinear_editor.vocabulary import normalize

logger = logging.getLogger(__name__)

_F = TypeVar("_F", bound=Callable[..., Any])

# Sentinel for "no change" in update methods
_UNSET: Any = type("_UNSET", (), {"__repr__": lambda self: "..."})()


def _invalidates(*kinds: CacheKind) -> Callable[[_F], _F]:
    """Decorator: marks the listed caches dirty after a mutation."""

    def decorator(method: _F) -> _F:
        @functools.wraps(method)
        def wrapper(self: ProjectEditor, *args: Any, **kwargs: Any) -> Any:
            result = method(self, *args, **kwargs)
            self._caches.mark_dirty(*kinds)
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


class ProjectEditor:
    """Owns one open project, its formation engine and derived caches."""

    def __init__(
        self,
        project: Project | None = None,
        *,
        settings: EditorSettings | None = None,
        runner: ScriptRunner | None = None,
    ) -> None:
        self.settings = settings or EditorSettings()
        if runner is None:
            runner = SandboxedScriptRunner(
                max_steps=self.settings.script_max_steps,
                max_depth=self.settings.script_max_depth,
                timeout=self.settings.script_timeout,
            )
        self.engine = FormationEngine(runner, match_timeout=self.settings.script_timeout)
        self._project = project if project is not None else Project()
        self._caches = CacheRegistry()
        self._caches.register(CacheKind.LOOKUP, lambda: build_lookup(self._project))
        self._caches.register(
            CacheKind.SIMILARITY, lambda: _sim.build_term_vectors(self._project)
        )

    @property
    def project(self) -> Project:
        return self._project

    # ------------------------------------------------------------------
    # Project lifecycle
    # ------------------------------------------------------------------

    @classmethod
    def from_text(
        cls,
        text: str,
        *,
        name: str = "",
        mode: TokenizationMode | str | None = None,
        script: str | None = None,
        settings: EditorSettings | None = None,
    ) -> ProjectEditor:
        editor = cls(Project(name=name), settings=settings)
        editor.import_text(text, mode=mode, script=script)
        return editor

    @classmethod
    def from_file(
        cls, source: str | Path, *, settings: EditorSettings | None = None
    ) -> ProjectEditor:
        return cls(_imp.read_project_file(source), settings=settings)

    def replace_project(self, project: Project) -> None:
        """Swap in a freshly loaded project; every cache becomes stale."""
        self._project = project
        self._caches.mark_dirty()

    def load(self, data: bytes | str) -> None:
        """Replace the open project with *data*.

        On any ``LoadError`` the open project is left untouched.
        """
        self.replace_project(_imp.load(data))

    def open_file(self, source: str | Path) -> None:
        self.replace_project(_imp.read_project_file(source))

    def save(self) -> bytes:
        return _exp.save(self._project, indent=self.settings.json_indent)

    def save_file(self, destination: str | Path) -> None:
        _exp.write_project_file(self.save(), destination)

    def export_typeset(self) -> str:
        return _exp.export_to_typeset_text(self._project)

    def export_typeset_file(self, destination: str | Path) -> None:
        _exp.write_typeset_file(self._project, destination)

    @_invalidates(CacheKind.LOOKUP, CacheKind.SIMILARITY)
    def import_text(
        self,
        text: str,
        *,
        mode: TokenizationMode | str | None = None,
        script: str | None = None,
    ) -> list[int]:
        """Append the lines of *text* as new segments; return their positions.

        *mode* and *script* default to the tokenization settings. Scripts
        run on the editor's script runner with its budgets.
        """
        start = len(self._project.segments)
        _imp.import_text(
            text,
            mode=mode or self.settings.tokenization_mode,
            project=self._project,
            script=script or self.settings.tokenization_script,
            runner=self.engine.runner,
        )
        return list(range(start, len(self._project.segments)))

    # ------------------------------------------------------------------
    # Vocabulary
    # ------------------------------------------------------------------

    @_invalidates(CacheKind.LOOKUP)
    def intern(self, text: str, kind: EntryKind = EntryKind.ORIGINAL) -> int:
        return self._project.vocabulary.intern(text, kind)

    def lookup(self, index: int) -> VocabularyEntry:
        return self._project.vocabulary.lookup(index)

    def find_entry(
        self, text: str, kind: EntryKind | None = None
    ) -> LookupEntry | None:
        table: LookupTable = self._caches.get_or_rebuild(CacheKind.LOOKUP)
        return table.find(text, kind)

    def translations_using(self, word: str) -> tuple[int, ...]:
        table: LookupTable = self._caches.get_or_rebuild(CacheKind.LOOKUP)
        return table.translations_using(word)

    @_invalidates(CacheKind.LOOKUP)
    def set_gloss(self, index: int, gloss: str | None) -> None:
        self._project.vocabulary.set_gloss(index, gloss)

    def set_references(self, index: int, references: list[str] | None) -> None:
        self._project.vocabulary.set_references(index, references)

    def set_entry_comment(self, index: int, comment: str | None) -> None:
        self._project.vocabulary.set_comment(index, comment)

    @_invalidates(CacheKind.LOOKUP, CacheKind.SIMILARITY)
    def rename_entry(self, index: int, text: str) -> None:
        self._project.vocabulary.rename(index, text)

    # ------------------------------------------------------------------
    # Segments and tokens
    # ------------------------------------------------------------------

    def get_segment(self, position: int) -> Segment:
        return self._project.segment(position)

    def segment_texts(self, position: int) -> list[str]:
        return self._project.segment_texts(self._project.segment(position))

    def token_text(self, segment: int, token: int) -> str:
        return self._project.token_text(self._project.token(segment, token))

    def token_gloss(self, segment: int, token: int) -> str | None:
        return self._project.token_gloss(self._project.token(segment, token))

    @_invalidates(CacheKind.LOOKUP)
    def set_translation(self, position: int, translation: str) -> None:
        self._project.segment(position).translation = translation

    def set_segment_comment(self, position: int, comment: str | None) -> None:
        self._project.segment(position).comment = comment or None

    @_invalidates(CacheKind.LOOKUP, CacheKind.SIMILARITY)
    def set_token_text(self, segment: int, token: int, text: str) -> int:
        """Point a token at the original entry for *text*, dropping its chain."""
        tok = self._project.token(segment, token)
        tok.index = self._project.vocabulary.intern(text)
        tok.rules = []
        return tok.index

    @_invalidates(CacheKind.LOOKUP, CacheKind.SIMILARITY)
    def reset_token(self, segment: int, token: int) -> int:
        """Return a derived token to its base word and clear its chain."""
        tok = self._project.token(segment, token)
        base = self._project.vocabulary.base_of(tok.index)
        if base is None:
            raise ValidationError(
                f"Token {segment}:{token} has no known base word to reset to"
            )
        tok.index = base
        tok.rules = []
        return tok.index

    # ------------------------------------------------------------------
    # Formation rules
    # ------------------------------------------------------------------

    def _build_rule(
        self, pattern: str, script: str, type: Any, description: str
    ) -> FormationRule:
        try:
            rule_type = FormationType.parse(type)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if not isinstance(script, str) or not script.strip():
            raise ValidationError("Formation rule script must not be empty")
        try:
            compile_pattern(pattern)
        except ScriptError as e:
            raise ValidationError(str(e)) from e
        return FormationRule(
            pattern=pattern, script=script, type=rule_type, description=description
        )

    def add_rule(
        self,
        pattern: str,
        script: str,
        type: FormationType | str = FormationType.DERIVATION,
        description: str = "",
    ) -> int:
        self._project.rules.append(self._build_rule(pattern, script, type, description))
        return len(self._project.rules) - 1

    def update_rule(
        self,
        index: int,
        *,
        pattern: Any = _UNSET,
        script: Any = _UNSET,
        type: Any = _UNSET,
        description: Any = _UNSET,
    ) -> FormationRule:
        """Edit a rule in place. Existing derived forms are not recomputed."""
        current = self._project.rule(index)
        rule = self._build_rule(
            current.pattern if pattern is _UNSET else pattern,
            current.script if script is _UNSET else script,
            current.type if type is _UNSET else type,
            current.description if description is _UNSET else description,
        )
        self._project.rules[index] = rule
        return rule

    def get_rule(self, index: int) -> FormationRule:
        return self._project.rule(index)

    def list_rules(self) -> list[FormationRule]:
        return list(self._project.rules)

    def delete_rule(self, index: int, cascade: bool = False) -> None:
        """Remove a rule and renumber the chains referencing later rules.

        Raises RuleInUseError while any token chain uses the rule, unless
        *cascade* is set, in which case those chains are cleared.
        """
        self._project.rule(index)
        users = self._project.rule_users(index)
        if users and not cascade:
            raise RuleInUseError(
                f"Formation rule {index} is used by {len(users)} token(s); "
                "use cascade=True to force deletion"
            )

        if users:
            logger.warning(
                "Deleting formation rule %d clears the rule chain of %d token(s)",
                index, len(users),
            )
        for segment in self._project.segments:
            for tok in segment.tokens:
                if index in tok.rules:
                    tok.rules = []
                else:
                    tok.rules = [r - 1 if r > index else r for r in tok.rules]
        del self._project.rules[index]

    def preview_rule(self, index: int, text: str) -> str:
        """Run a rule on *text* without touching the project."""
        return self.engine.apply(self._project.rule(index), text)

    @_invalidates(CacheKind.LOOKUP, CacheKind.SIMILARITY)
    def apply_rule(self, segment: int, token: int, rule_index: int) -> int:
        """Derive a new form for a token and return its signed index.

        The result is interned into the formatted table with the token's
        base word and the rule is appended to the token's chain. A failing
        script leaves the project unmodified.
        """
        tok = self._project.token(segment, token)
        rule = self._project.rule(rule_index)
        vocabulary = self._project.vocabulary
        base = vocabulary.base_of(tok.index)
        derived = self.engine.apply(rule, self._project.token_text(tok))

        tok.index = vocabulary.intern(derived, EntryKind.FORMATTED, base=base)
        tok.rules = [*tok.rules, rule_index]
        return tok.index

    def _rederive(self, segment: int, token: int) -> tuple[int, str | None]:
        tok = self._project.token(segment, token)
        base = self._project.vocabulary.base_of(tok.index)
        if base is None:
            raise ValidationError(
                f"Token {segment}:{token} has no known base word to re-derive from"
            )
        if not tok.rules:
            return base, None
        text = self._project.vocabulary.original[base].text
        return base, self.engine.apply_chain(self._project.rules, tok.rules, text)

    @_invalidates(CacheKind.LOOKUP, CacheKind.SIMILARITY)
    def reapply_chain(self, segment: int, token: int) -> int:
        """Recompute a token's form from its base word and rule chain."""
        base, derived = self._rederive(segment, token)
        tok = self._project.token(segment, token)
        if derived is None:
            tok.index = base
        else:
            tok.index = self._project.vocabulary.intern(
                derived, EntryKind.FORMATTED, base=base
            )
        return tok.index

    @_invalidates(CacheKind.LOOKUP, CacheKind.SIMILARITY)
    def reapply_rule(self, rule_index: int) -> int:
        """Recompute every token whose chain uses *rule_index*.

        All forms are derived before any token changes, so one failing
        script leaves every token as it was. Returns the tokens updated.
        """
        self._project.rule(rule_index)
        planned = [
            (seg, tok, *self._rederive(seg, tok))
            for seg, tok in self._project.rule_users(rule_index)
        ]
        vocabulary = self._project.vocabulary
        derived_bases: dict[str, int] = {}
        for seg, tok, base, derived in planned:
            if derived is None:
                continue
            vocabulary.check_base(derived, base)
            key = normalize(derived)
            if derived_bases.setdefault(key, base) != base:
                raise DuplicateEntityError(
                    f"Rule {rule_index} derives {derived!r} from more than one base word"
                )
        for seg, tok, base, derived in planned:
            target = self._project.token(seg, tok)
            if derived is None:
                target.index = base
            else:
                target.index = vocabulary.intern(derived, EntryKind.FORMATTED, base=base)
        return len(planned)

    # ------------------------------------------------------------------
    # Caches and derived views
    # ------------------------------------------------------------------

    def mark_dirty(self, *kinds: CacheKind) -> None:
        self._caches.mark_dirty(*kinds)

    def get_or_rebuild(self, kind: CacheKind) -> Any:
        return self._caches.get_or_rebuild(kind)

    def cache_rebuilds(self, kind: CacheKind) -> int:
        return self._caches[kind].rebuilds

    def similarity_query(
        self, target: int | str, k: int | None = None
    ) -> list[SimilarityHit]:
        """Segments most similar to a segment position or free text."""
        vectors = self._caches.get_or_rebuild(CacheKind.SIMILARITY)
        return _sim.query(
            vectors,
            target,
            self.settings.similarity_results if k is None else k,
            mode=self.settings.tokenization_mode,
            script=self.settings.tokenization_script,
            runner=self.engine.runner,
        )

    def similar_words(self, word: str, limit: int | None = None) -> list[SimilarWord]:
        return _sim.similar_words(
            self._project,
            word,
            self.settings.similar_words_results if limit is None else limit,
        )

    def filter_segments(self, query: str) -> list[int]:
        return filter_segments(self._project, query)

    def sort_segments(
        self,
        positions: list[int] | None = None,
        field: SortField | str = SortField.INDEX,
        *,
        descending: bool = False,
    ) -> list[int]:
        if positions is None:
            positions = list(range(len(self._project.segments)))
        return sort_segments(self._project, positions, field, descending=descending)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> list[ValidationResult]:
        return validate_document(_exp.encode_project(self._project))
