"""Descriptor loading: JSON/YAML documents to descriptor trees."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from .models import (
    Cardinality,
    EnumType,
    EnumValue,
    Field,
    FieldKind,
    Message,
    Method,
    SchemaFile,
    Service,
)
from .exceptions import DescriptorError, DescriptorLoadError
from .jsonpath_utils import JSONPathMatcher

logger = logging.getLogger(__name__)

# FieldDescriptorProto.Type numbering; TYPE_DOUBLE = 1 ... TYPE_SINT64 = 18
_KINDS_BY_NUMBER = {i + 1: kind for i, kind in enumerate(FieldKind)}

_LABELS_BY_NUMBER = {1: "LABEL_OPTIONAL", 2: "LABEL_REQUIRED", 3: "LABEL_REPEATED"}


def _get(entry: dict, camel: str, snake: str = None, default: Any = None) -> Any:
    """Read a descriptor key in either protobuf JSON or proto field-name spelling."""
    if camel in entry:
        return entry[camel]
    if snake and snake in entry:
        return entry[snake]
    return default


def _require(entry: Any, key: str, what: str, source: str) -> Any:
    if not isinstance(entry, dict):
        raise DescriptorError(f"{what} must be a mapping, got {type(entry).__name__}", path=source)
    value = entry.get(key)
    if value is None or value == "":
        raise DescriptorError(f"{what} is missing '{key}'", path=source)
    return value


def _as_int(value: Any, what: str, source: str) -> int:
    if isinstance(value, bool):
        raise DescriptorError(f"{what} must be an integer, got {value!r}", path=source)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise DescriptorError(f"{what} must be an integer, got {value!r}", path=source)


def _as_list(value: Any, what: str, source: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise DescriptorError(f"{what} must be a list", path=source)
    return value


def parse_kind(value: Any, source: str = None) -> FieldKind:
    """Accept 'string', 'TYPE_STRING' or the numeric type (9)."""
    if isinstance(value, FieldKind):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        if value in _KINDS_BY_NUMBER:
            return _KINDS_BY_NUMBER[value]
    elif isinstance(value, str):
        name = value.lower()
        if name.startswith("type_"):
            name = name[5:]
        try:
            return FieldKind(name)
        except ValueError:
            pass
    raise DescriptorError(f"Unknown field kind {value!r}", path=source)


def parse_cardinality(value: Any, source: str = None) -> Cardinality:
    if isinstance(value, Cardinality):
        return value
    if value is None:
        return Cardinality.SINGULAR
    try:
        return Cardinality(str(value).lower())
    except ValueError:
        raise DescriptorError(f"Unknown cardinality {value!r}", path=source)


def _strip_dot(type_name: Optional[str]) -> Optional[str]:
    if type_name and type_name.startswith("."):
        return type_name[1:]
    return type_name


class DescriptorLoader:
    """
    Builds SchemaFile trees from descriptor documents.

    Two document shapes are understood:

    - native: ``{"files": [{"path", "package", "messages", "enums", "services"}]}``
    - descriptor set: the JSON form of a ``FileDescriptorSet``
      (``{"file": [{"name", "package", "messageType", ...}]}``), as emitted
      by ``buf build -o image.json`` or ``protoc`` plus a JSON conversion

    Usage:
        loader = DescriptorLoader()
        files = loader.load_path("descriptors.json")

    ``files_path`` is a JSONPath locating file entries inside a larger
    document, e.g. ``$.image.file[*]``.
    """

    def __init__(self, files_path: Optional[str] = None):
        self.files_path = files_path

    def load_path(self, path: str | Path) -> list[SchemaFile]:
        """Load a .json/.yaml/.yml descriptor document from disk."""
        path = Path(path)
        if not path.exists():
            raise DescriptorLoadError("file not found", source=str(path))
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise DescriptorLoadError(str(e), source=str(path)) from e
        return self.load_text(content, source=str(path))

    def load_text(self, content: str, source: str = "<text>") -> list[SchemaFile]:
        """Parse YAML or JSON text (JSON is valid YAML)."""
        try:
            document = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise DescriptorLoadError(f"Failed to parse descriptor document: {e}", source=source)
        return self.load_document(document, source)

    def load_document(self, document: Any, source: str = "<document>") -> list[SchemaFile]:
        """
        Convert an already-decoded document to schema files.

        Returns:
            Schema files in document order (an empty document yields none)
        """
        if document is None:
            return []
        if not isinstance(document, dict):
            raise DescriptorLoadError(
                f"Descriptor document root must be a mapping, got {type(document).__name__}",
                source=source
            )

        if self.files_path:
            try:
                entries = JSONPathMatcher.find_list(document, self.files_path)
            except ValueError as e:
                raise DescriptorLoadError(str(e), source=source)
        elif "files" in document:
            entries = _as_list(document["files"], "'files'", source)
        elif "file" in document:
            entries = _as_list(document["file"], "'file'", source)
        else:
            entries = [document]

        files = [self._load_entry(entry, source) for entry in entries]
        logger.debug("Loaded %d schema files from %s", len(files), source)
        return files

    def _load_entry(self, entry: Any, source: str) -> SchemaFile:
        if isinstance(entry, dict) and "path" in entry:
            return self._native_file(entry, source)
        return self._descriptor_file(entry, source)

    # Native format

    def _native_file(self, entry: dict, source: str) -> SchemaFile:
        path = str(_require(entry, "path", "Schema file", source))
        return SchemaFile(
            path=path,
            package=entry.get("package") or "",
            syntax=entry.get("syntax", "proto3"),
            messages=[self._native_message(m, path)
                      for m in _as_list(entry.get("messages"), "'messages'", path)],
            enums=[self._native_enum(e, path)
                   for e in _as_list(entry.get("enums"), "'enums'", path)],
            services=[self._native_service(s, path)
                      for s in _as_list(entry.get("services"), "'services'", path)],
        )

    def _native_message(self, entry: Any, path: str) -> Message:
        name = _require(entry, "name", "Message", path)
        fields = []
        for fld in _as_list(entry.get("fields"), f"Fields of '{name}'", path):
            field_name = _require(fld, "name", f"Field in message '{name}'", path)
            fields.append(Field(
                name=field_name,
                number=_as_int(
                    _require(fld, "number", f"Field '{field_name}'", path),
                    f"Number of field '{field_name}'", path
                ),
                kind=parse_kind(_require(fld, "kind", f"Field '{field_name}'", path), path),
                cardinality=parse_cardinality(fld.get("cardinality"), path),
                type_name=fld.get("type_name"),
            ))
        return Message(
            name=name,
            fields=fields,
            messages=[self._native_message(m, path)
                      for m in _as_list(entry.get("messages"), f"Messages of '{name}'", path)],
            enums=[self._native_enum(e, path)
                   for e in _as_list(entry.get("enums"), f"Enums of '{name}'", path)],
        )

    def _native_enum(self, entry: Any, path: str) -> EnumType:
        name = _require(entry, "name", "Enum", path)
        values = entry.get("values") or []
        # Short form: {UNKNOWN: 0, ACTIVE: 1}
        if isinstance(values, dict):
            values = [{"name": k, "number": v} for k, v in values.items()]
        return EnumType(name=name, values=[
            EnumValue(
                name=_require(v, "name", f"Value of enum '{name}'", path),
                number=_as_int(v.get("number"), f"Number of value in enum '{name}'", path),
            )
            for v in _as_list(values, f"Values of '{name}'", path)
        ])

    def _native_service(self, entry: Any, path: str) -> Service:
        name = _require(entry, "name", "Service", path)
        methods = []
        for method in _as_list(entry.get("methods"), f"Methods of '{name}'", path):
            method_name = _require(method, "name", f"Method in service '{name}'", path)
            methods.append(Method(
                name=method_name,
                input_type=_strip_dot(_require(method, "input_type", f"Method '{method_name}'", path)),
                output_type=_strip_dot(_require(method, "output_type", f"Method '{method_name}'", path)),
                client_streaming=bool(method.get("client_streaming", False)),
                server_streaming=bool(method.get("server_streaming", False)),
            ))
        return Service(name=name, methods=methods)

    # FileDescriptorSet JSON

    def _descriptor_file(self, entry: Any, source: str) -> SchemaFile:
        path = str(_require(entry, "name", "File descriptor", source))
        syntax = entry.get("syntax") or "proto2"
        return SchemaFile(
            path=path,
            package=entry.get("package") or "",
            syntax=syntax,
            messages=[self._descriptor_message(m, path, syntax)
                      for m in _as_list(_get(entry, "messageType", "message_type"),
                                        "'messageType'", path)],
            enums=[self._descriptor_enum(e, path)
                   for e in _as_list(_get(entry, "enumType", "enum_type"), "'enumType'", path)],
            services=[self._descriptor_service(s, path)
                      for s in _as_list(entry.get("service"), "'service'", path)],
        )

    def _descriptor_message(self, entry: Any, path: str, syntax: str) -> Message:
        name = _require(entry, "name", "Message descriptor", path)
        fields = []
        for fld in _as_list(entry.get("field"), f"Fields of '{name}'", path):
            field_name = _require(fld, "name", f"Field in message '{name}'", path)
            fields.append(Field(
                name=field_name,
                number=_as_int(
                    _require(fld, "number", f"Field '{field_name}'", path),
                    f"Number of field '{field_name}'", path
                ),
                kind=parse_kind(_require(fld, "type", f"Field '{field_name}'", path), path),
                cardinality=self._descriptor_cardinality(fld, syntax, path),
                type_name=_strip_dot(_get(fld, "typeName", "type_name")),
            ))
        return Message(
            name=name,
            fields=fields,
            messages=[self._descriptor_message(m, path, syntax)
                      for m in _as_list(_get(entry, "nestedType", "nested_type"),
                                        f"Nested types of '{name}'", path)],
            enums=[self._descriptor_enum(e, path)
                   for e in _as_list(_get(entry, "enumType", "enum_type"),
                                     f"Enums of '{name}'", path)],
        )

    def _descriptor_cardinality(self, fld: dict, syntax: str, path: str) -> Cardinality:
        label = fld.get("label", "LABEL_OPTIONAL")
        if isinstance(label, int) and not isinstance(label, bool):
            label = _LABELS_BY_NUMBER.get(label, label)

        if label == "LABEL_REPEATED":
            return Cardinality.REPEATED
        if label == "LABEL_REQUIRED":
            return Cardinality.SINGULAR
        if label == "LABEL_OPTIONAL":
            if syntax != "proto3" or _get(fld, "proto3Optional", "proto3_optional", False):
                return Cardinality.OPTIONAL
            return Cardinality.SINGULAR
        raise DescriptorError(f"Unknown label {label!r} on field '{fld.get('name')}'", path=path)

    def _descriptor_enum(self, entry: Any, path: str) -> EnumType:
        name = _require(entry, "name", "Enum descriptor", path)
        return EnumType(name=name, values=[
            EnumValue(
                name=_require(v, "name", f"Value of enum '{name}'", path),
                number=_as_int(v.get("number", 0), f"Number of value in enum '{name}'", path),
            )
            for v in _as_list(entry.get("value"), f"Values of '{name}'", path)
        ])

    def _descriptor_service(self, entry: Any, path: str) -> Service:
        name = _require(entry, "name", "Service descriptor", path)
        methods = []
        for method in _as_list(entry.get("method"), f"Methods of '{name}'", path):
            method_name = _require(method, "name", f"Method in service '{name}'", path)
            input_type = _get(method, "inputType", "input_type")
            output_type = _get(method, "outputType", "output_type")
            if not input_type or not output_type:
                raise DescriptorError(
                    f"Method '{method_name}' in service '{name}' is missing its input or output type",
                    path=path
                )
            methods.append(Method(
                name=method_name,
                input_type=_strip_dot(input_type),
                output_type=_strip_dot(output_type),
                client_streaming=bool(_get(method, "clientStreaming", "client_streaming", False)),
                server_streaming=bool(_get(method, "serverStreaming", "server_streaming", False)),
            ))
        return Service(name=name, methods=methods)
