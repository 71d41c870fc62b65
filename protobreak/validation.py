"""Structural validation of descriptor trees before comparison."""

from __future__ import annotations

from typing import Any, Iterable

from .models import (
    Cardinality,
    EnumType,
    FieldKind,
    Message,
    SchemaFile,
    Service,
)
from .exceptions import DescriptorError


def validate_schema_file(schema_file: SchemaFile):
    """
    Check the identity fields the comparators rely on.

    Raises:
        DescriptorError: if a name or number is missing or duplicated
    """
    if not isinstance(schema_file, SchemaFile):
        raise DescriptorError(
            "Descriptor tree must be a SchemaFile",
            details={"type": type(schema_file).__name__}
        )
    path = schema_file.path
    if not isinstance(path, str) or not path:
        raise DescriptorError("Schema file is missing its path")
    if not isinstance(schema_file.package, str):
        raise DescriptorError("Package must be a string", path=path)

    _check_unique_names(schema_file.messages, path, "message", "")
    _check_unique_names(schema_file.enums, path, "enum", "")
    _check_unique_names(schema_file.services, path, "service", "")

    stack = [("", msg) for msg in schema_file.messages]
    while stack:
        scope, msg = stack.pop()
        qualified = f"{scope}{msg.name}"
        _validate_message(msg, qualified, path)
        stack.extend((qualified + ".", child) for child in msg.messages)
        for enum in msg.enums:
            _validate_enum(enum, f"{qualified}.{enum.name}", path)

    for enum in schema_file.enums:
        _validate_enum(enum, enum.name, path)

    for service in schema_file.services:
        _validate_service(service, path)


def _check_unique_names(entities: Iterable[Any], path: str, what: str, scope: str):
    seen = set()
    for entity in entities:
        name = getattr(entity, "name", None)
        if not isinstance(name, str) or not name:
            raise DescriptorError(f"A {what} in scope '{scope or '<root>'}' has no name", path=path)
        if name in seen:
            raise DescriptorError(
                f"Duplicate {what} name '{scope}{name}'",
                path=path,
                details={"name": f"{scope}{name}"}
            )
        seen.add(name)


def _validate_message(msg: Message, qualified: str, path: str):
    _check_unique_names(msg.messages, path, "message", qualified + ".")
    _check_unique_names(msg.enums, path, "enum", qualified + ".")
    _check_unique_names(msg.fields, path, "field", qualified + ".")

    numbers = set()
    for fld in msg.fields:
        number = fld.number
        if isinstance(number, bool) or not isinstance(number, int) or number <= 0:
            raise DescriptorError(
                f"Field '{fld.name}' in message '{qualified}' has invalid number {number!r}",
                path=path
            )
        if number in numbers:
            raise DescriptorError(
                f"Field number {number} is used twice in message '{qualified}'",
                path=path
            )
        numbers.add(number)
        if not isinstance(fld.kind, FieldKind):
            raise DescriptorError(
                f"Field '{fld.name}' in message '{qualified}' has unknown kind {fld.kind!r}",
                path=path
            )
        if not isinstance(fld.cardinality, Cardinality):
            raise DescriptorError(
                f"Field '{fld.name}' in message '{qualified}' has unknown cardinality "
                f"{fld.cardinality!r}",
                path=path
            )


def _validate_enum(enum: EnumType, qualified: str, path: str):
    # Numbers may repeat within an enum (aliases), names may not.
    _check_unique_names(enum.values, path, "enum value", qualified + ".")
    for value in enum.values:
        if isinstance(value.number, bool) or not isinstance(value.number, int):
            raise DescriptorError(
                f"Enum value '{value.name}' in enum '{qualified}' has invalid number "
                f"{value.number!r}",
                path=path
            )


def _validate_service(service: Service, path: str):
    _check_unique_names(service.methods, path, "method", service.name + ".")
    for method in service.methods:
        if not method.input_type or not method.output_type:
            raise DescriptorError(
                f"Method '{method.name}' in service '{service.name}' is missing "
                f"its input or output type",
                path=path
            )
