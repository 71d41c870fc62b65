"""Qualified-name flattening and identity keys for descriptor trees."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Sequence

from .models import EnumType, EnumValue, Field, Message, Method, Service


# How each entity kind is matched across versions. Fields and enum values
# carry a wire tag; everything else is matched by name.
IDENTITY_KEYS: dict[type, Callable[[Any], Any]] = {
    Field: lambda f: f.number,
    EnumValue: lambda v: v.number,
    Method: lambda m: m.name,
    Service: lambda s: s.name,
    Message: lambda m: m.name,
    EnumType: lambda e: e.name,
}


def identity_key(entity: Any) -> Any:
    """Return the cross-version identity key of an entity."""
    try:
        return IDENTITY_KEYS[type(entity)](entity)
    except KeyError:
        raise TypeError(f"No identity key defined for {type(entity).__name__}")


def index_by(entities: Iterable[Any], kind: type) -> dict[Any, Any]:
    """
    Build an identity-key lookup for entities of one kind.

    The first declaration wins when two entities share a key (enum aliases).
    """
    key = IDENTITY_KEYS[kind]
    index: dict[Any, Any] = {}
    for entity in entities:
        index.setdefault(key(entity), entity)
    return index


def qualify(prefix: str, name: str) -> str:
    return f"{prefix}{name}"


def flatten_messages(
    messages: Sequence[Message],
    prefix: str = ""
) -> dict[str, Message]:
    """
    Map every message at every nesting depth by its qualified name.

    Args:
        messages: Top-level messages of a schema file
        prefix: Scope prefix, including the trailing dot ("" for file root)

    Returns:
        Dict of qualified name -> message, in depth-first declaration order
    """
    output: dict[str, Message] = {}
    stack = [(prefix, msg) for msg in reversed(messages)]

    while stack:
        scope, msg = stack.pop()
        name = qualify(scope, msg.name)
        output[name] = msg
        stack.extend((name + ".", child) for child in reversed(msg.messages))

    return output


def flatten_enums(
    messages: Sequence[Message],
    enums: Sequence[EnumType] = (),
    prefix: str = ""
) -> dict[str, EnumType]:
    """
    Map every enum (top-level and nested inside messages) by qualified name.

    Top-level enums come first, then enums declared inside messages are
    recorded as ``<EnclosingMessage>.<Enum>`` while walking depth-first.
    """
    output: dict[str, EnumType] = {}
    for enum in enums:
        output[qualify(prefix, enum.name)] = enum

    stack = [(prefix, msg) for msg in reversed(messages)]
    while stack:
        scope, msg = stack.pop()
        name = qualify(scope, msg.name)
        for enum in msg.enums:
            output[f"{name}.{enum.name}"] = enum
        stack.extend((name + ".", child) for child in reversed(msg.messages))

    return output
