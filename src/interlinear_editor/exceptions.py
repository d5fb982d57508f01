"""Custom exception hierarchy for interlinear-editor."""


class InterlinearEditorError(Exception):
    """Base exception for all interlinear-editor errors."""


class LoadError(InterlinearEditorError):
    """A project document could not be loaded."""


class UnsupportedVersionError(LoadError):
    """Document version is missing, unparseable, or newer than supported."""


class MalformedProjectError(LoadError):
    """Document is structurally invalid at some migration step."""

    def __init__(self, message: str, results: list | None = None) -> None:
        self.results = list(results or [])
        super().__init__(message)


class IndexOutOfRangeError(InterlinearEditorError):
    """A vocabulary or rule index does not resolve."""


class ScriptError(InterlinearEditorError):
    """Formation-rule execution failed or exceeded its budget."""


class SimilarityUnavailableError(InterlinearEditorError):
    """The numeric backend used by the similarity engine is not installed."""


class ValidationError(InterlinearEditorError):
    """Invalid input value (empty word, unknown rule type, bad k)."""


class EntityNotFoundError(InterlinearEditorError):
    """Segment or token position doesn't exist in the project."""


class DuplicateEntityError(InterlinearEditorError):
    """Entry with the same normalized text already exists."""


class RuleInUseError(InterlinearEditorError):
    """Formation rule is still referenced by token rule chains."""


class PendingOperationError(InterlinearEditorError):
    """A load or save of the same kind is already in flight."""


class ConfigError(InterlinearEditorError):
    """Settings file cannot be parsed or holds invalid values."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        super().__init__(message)
