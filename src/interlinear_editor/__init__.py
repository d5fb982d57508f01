__version__ = "0.1.0"

from .editor import ProjectEditor as ProjectEditor
from .session import (
    EditorSession as EditorSession,
    OperationResult as OperationResult,
)
from .project import (
    CURRENT_VERSION as CURRENT_VERSION,
    Project as Project,
)
from .vocabulary import (
    VocabularyStore as VocabularyStore,
    normalize as normalize,
)
from .models import (
    CacheKind as CacheKind,
    EntryKind as EntryKind,
    FormationRule as FormationRule,
    FormationType as FormationType,
    LookupEntry as LookupEntry,
    Segment as Segment,
    SimilarityHit as SimilarityHit,
    SimilarWord as SimilarWord,
    SortField as SortField,
    Token as Token,
    TokenizationMode as TokenizationMode,
    ValidationResult as ValidationResult,
    VocabularyEntry as VocabularyEntry,
)
from .importer import (
    import_text as import_text,
    load as load,
    read_project_file as read_project_file,
)
from .exporter import (
    encode_project as encode_project,
    export_to_typeset_text as export_to_typeset_text,
    save as save,
    write_project_file as write_project_file,
)
from .config import (
    EditorSettings as EditorSettings,
    load_settings as load_settings,
)
from .exceptions import (
    ConfigError as ConfigError,
    DuplicateEntityError as DuplicateEntityError,
    EntityNotFoundError as EntityNotFoundError,
    IndexOutOfRangeError as IndexOutOfRangeError,
    InterlinearEditorError as InterlinearEditorError,
    LoadError as LoadError,
    MalformedProjectError as MalformedProjectError,
    PendingOperationError as PendingOperationError,
    RuleInUseError as RuleInUseError,
    ScriptError as ScriptError,
    SimilarityUnavailableError as SimilarityUnavailableError,
    UnsupportedVersionError as UnsupportedVersionError,
    ValidationError as ValidationError,
)

__all__ = [
    # Editor
    "ProjectEditor",
    "EditorSession",
    "OperationResult",
    # Model
    "CURRENT_VERSION",
    "Project",
    "VocabularyStore",
    "normalize",
    "CacheKind",
    "EntryKind",
    "FormationRule",
    "FormationType",
    "LookupEntry",
    "Segment",
    "SimilarityHit",
    "SimilarWord",
    "SortField",
    "Token",
    "TokenizationMode",
    "ValidationResult",
    "VocabularyEntry",
    # Persistence
    "import_text",
    "load",
    "read_project_file",
    "encode_project",
    "export_to_typeset_text",
    "save",
    "write_project_file",
    # Settings
    "EditorSettings",
    "load_settings",
    # Errors
    "ConfigError",
    "DuplicateEntityError",
    "EntityNotFoundError",
    "IndexOutOfRangeError",
    "InterlinearEditorError",
    "LoadError",
    "MalformedProjectError",
    "PendingOperationError",
    "RuleInUseError",
    "ScriptError",
    "SimilarityUnavailableError",
    "UnsupportedVersionError",
    "ValidationError",
]
