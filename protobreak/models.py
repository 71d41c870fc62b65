"""Data models for ProtoBreak engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

from .exceptions import ConfigError


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class FieldKind(Enum):
    """Wire-level kind of a field."""
    DOUBLE = "double"
    FLOAT = "float"
    INT64 = "int64"
    UINT64 = "uint64"
    INT32 = "int32"
    FIXED64 = "fixed64"
    FIXED32 = "fixed32"
    BOOL = "bool"
    STRING = "string"
    GROUP = "group"
    MESSAGE = "message"
    BYTES = "bytes"
    UINT32 = "uint32"
    ENUM = "enum"
    SFIXED32 = "sfixed32"
    SFIXED64 = "sfixed64"
    SINT32 = "sint32"
    SINT64 = "sint64"


class Cardinality(Enum):
    SINGULAR = "singular"
    OPTIONAL = "optional"
    REPEATED = "repeated"


class FindingKind(Enum):
    MESSAGE_REMOVED = "MESSAGE_REMOVED"
    FIELD_REMOVED = "FIELD_REMOVED"
    FIELD_TYPE_CHANGED = "FIELD_TYPE_CHANGED"
    FIELD_RENAMED = "FIELD_RENAMED"
    FIELD_CARDINALITY_NARROWED = "FIELD_CARDINALITY_NARROWED"
    ENUM_REMOVED = "ENUM_REMOVED"
    ENUM_VALUE_REMOVED = "ENUM_VALUE_REMOVED"
    ENUM_VALUE_RENAMED = "ENUM_VALUE_RENAMED"
    SERVICE_REMOVED = "SERVICE_REMOVED"
    METHOD_REMOVED = "METHOD_REMOVED"
    METHOD_INPUT_CHANGED = "METHOD_INPUT_CHANGED"
    METHOD_OUTPUT_CHANGED = "METHOD_OUTPUT_CHANGED"
    METHOD_STREAMING_CHANGED = "METHOD_STREAMING_CHANGED"
    PACKAGE_REMOVED = "PACKAGE_REMOVED"


class Severity(Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


class UnitStatus(Enum):
    CLEAN = "CLEAN"
    BREAKING = "BREAKING"
    ERROR = "ERROR"


class PackageGrouping(Enum):
    """How files sharing a package are compared."""
    UNION = "union"
    REPRESENTATIVE = "representative"


@dataclass
class EngineConfig:
    """Global configuration for the comparison engine."""
    package_grouping: PackageGrouping = PackageGrouping.UNION
    report_renames: bool = True
    validate_inputs: bool = True
    log_level: LogLevel = LogLevel.INFO

    @classmethod
    def from_dict(cls, data: dict) -> 'EngineConfig':
        """Build a config from plain values (e.g. a parsed YAML mapping)."""
        config = cls()
        unknown = set(data) - {
            "package_grouping", "report_renames", "validate_inputs", "log_level"
        }
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        try:
            if "package_grouping" in data:
                config.package_grouping = PackageGrouping(str(data["package_grouping"]).lower())
            if "log_level" in data:
                config.log_level = LogLevel(str(data["log_level"]).upper())
        except ValueError as e:
            raise ConfigError(str(e)) from e

        for flag in ("report_renames", "validate_inputs"):
            if flag in data:
                if not isinstance(data[flag], bool):
                    raise ConfigError(f"'{flag}' must be a boolean")
                setattr(config, flag, data[flag])

        return config


# Descriptor tree

@dataclass
class Field:
    name: str
    number: int
    kind: FieldKind
    cardinality: Cardinality = Cardinality.SINGULAR
    type_name: Optional[str] = None


@dataclass
class EnumValue:
    name: str
    number: int


@dataclass
class EnumType:
    name: str
    values: list[EnumValue] = field(default_factory=list)


@dataclass
class Message:
    name: str
    fields: list[Field] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)
    enums: list[EnumType] = field(default_factory=list)


@dataclass
class Method:
    name: str
    input_type: str
    output_type: str
    client_streaming: bool = False
    server_streaming: bool = False


@dataclass
class Service:
    name: str
    methods: list[Method] = field(default_factory=list)


@dataclass
class SchemaFile:
    """One parsed schema unit (a single .proto file)."""
    path: str
    package: str = ""
    messages: list[Message] = field(default_factory=list)
    enums: list[EnumType] = field(default_factory=list)
    services: list[Service] = field(default_factory=list)
    syntax: str = "proto3"


# Findings and reports

@dataclass
class Finding:
    """A single breaking change found during comparison."""
    kind: FindingKind
    subject: str
    message: str
    severity: Severity = Severity.ERROR
    old_value: Any = None
    new_value: Any = None

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "subject": self.subject,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "message": self.message,
        }


@dataclass
class UnitResult:
    """Outcome of comparing one package (or one removed file)."""
    name: str
    paths: list[str] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def status(self) -> UnitStatus:
        if self.error is not None:
            return UnitStatus.ERROR
        if self.findings:
            return UnitStatus.BREAKING
        return UnitStatus.CLEAN

    @property
    def label(self) -> str:
        return ", ".join(self.paths) if self.paths else self.name

    def to_dict(self) -> dict:
        result = {
            "name": self.name,
            "paths": self.paths,
            "status": self.status.value,
            "findings": [f.to_dict() for f in self.findings],
        }
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class Summary:
    """Summary statistics of a check run."""
    units_compared: int = 0
    units_breaking: int = 0
    units_failed: int = 0
    findings_count: int = 0

    def to_dict(self) -> dict:
        return {
            "units_compared": self.units_compared,
            "units_breaking": self.units_breaking,
            "units_failed": self.units_failed,
            "findings_count": self.findings_count,
        }


@dataclass
class CheckReport:
    """Aggregated result of one comparison run."""
    units: list[UnitResult] = field(default_factory=list)
    timestamp: str = ""
    engine_version: str = ""

    @property
    def findings(self) -> list[Finding]:
        return [f for unit in self.units for f in unit.findings]

    @property
    def errors(self) -> list[UnitResult]:
        return [u for u in self.units if u.status == UnitStatus.ERROR]

    @property
    def is_breaking(self) -> bool:
        return len(self.findings) > 0

    @property
    def summary(self) -> Summary:
        return Summary(
            units_compared=len(self.units),
            units_breaking=sum(1 for u in self.units if u.status == UnitStatus.BREAKING),
            units_failed=len(self.errors),
            findings_count=len(self.findings),
        )

    def filter(self, kinds: Iterable[FindingKind]) -> list[Finding]:
        """Return findings of the given kinds, in report order."""
        wanted = set(kinds)
        return [f for f in self.findings if f.kind in wanted]

    def to_dict(self) -> dict:
        return {
            "is_breaking": self.is_breaking,
            "timestamp": self.timestamp,
            "engine_version": self.engine_version,
            "summary": self.summary.to_dict(),
            "units": [u.to_dict() for u in self.units],
        }

    def print_summary(self):
        for unit in self.units:
            if unit.status == UnitStatus.ERROR:
                print(f"Error processing {unit.label}: {unit.error}")
            elif unit.status == UnitStatus.CLEAN:
                print(f"No breaking changes detected in {unit.label}")
            else:
                print(f"Detected {len(unit.findings)} breaking changes in {unit.label}:")
                for finding in unit.findings:
                    print(f"  - {finding.message}")

        summary = self.summary
        print(f"\nChecked {summary.units_compared} units: "
              f"{summary.units_breaking} breaking, {summary.units_failed} failed")
