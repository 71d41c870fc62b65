"""
ProtoBreak - Breaking Change Detection for Protocol Buffer Schemas

A stateless engine that compares two resolved descriptor trees (a previous
and a current snapshot of the same schema) and reports every change that
breaks already-deployed producers or consumers.
"""

from .engine import BreakingChangeEngine, compare
from .models import (
    EngineConfig,
    PackageGrouping,
    LogLevel,
    CheckReport,
    UnitResult,
    UnitStatus,
    Finding,
    FindingKind,
    Severity,
    SchemaFile,
    Message,
    Field,
    FieldKind,
    Cardinality,
    EnumType,
    EnumValue,
    Service,
    Method,
)
from .exceptions import (
    ProtoBreakError,
    DescriptorError,
    DescriptorLoadError,
    RevisionNotFoundError,
    ConfigError,
)
from .namespace import flatten_messages, flatten_enums
from .loader import DescriptorLoader
from .config import load_config
from .sources import FileSource, GitRevisionSource, changed_files
from .runner import (
    BreakingChangeRunner,
    run_check,
)

__version__ = "1.0.0"
__all__ = [
    # Engine
    "BreakingChangeEngine",
    "compare",
    "EngineConfig",
    "PackageGrouping",
    "LogLevel",
    "load_config",
    # Reports
    "CheckReport",
    "UnitResult",
    "UnitStatus",
    "Finding",
    "FindingKind",
    "Severity",
    # Descriptor tree
    "SchemaFile",
    "Message",
    "Field",
    "FieldKind",
    "Cardinality",
    "EnumType",
    "EnumValue",
    "Service",
    "Method",
    "flatten_messages",
    "flatten_enums",
    # Errors
    "ProtoBreakError",
    "DescriptorError",
    "DescriptorLoadError",
    "RevisionNotFoundError",
    "ConfigError",
    # Loading and sources
    "DescriptorLoader",
    "FileSource",
    "GitRevisionSource",
    "changed_files",
    # Runner
    "BreakingChangeRunner",
    "run_check",
]
