"""Comparison functions for each kind of schema entity."""

from __future__ import annotations

from collections import defaultdict
from typing import Mapping, Sequence

from .models import (
    Cardinality,
    EnumType,
    EnumValue,
    Field,
    Finding,
    FindingKind,
    Message,
    Method,
    SchemaFile,
    Service,
    Severity,
)
from .namespace import flatten_enums, flatten_messages, index_by


def _bool(value: bool) -> str:
    return "true" if value else "false"


def compare_fields(
    prev_msg: Message,
    curr_msg: Message,
    msg_name: str,
    report_renames: bool = True
) -> list[Finding]:
    """
    Compare the fields of one matched message pair.

    Fields are matched by number. Nested messages are not visited here;
    they are matched separately through their qualified names.

    Args:
        prev_msg: Message from the previous schema
        curr_msg: Message with the same qualified name in the current schema
        msg_name: Qualified name used in finding messages
        report_renames: Whether a renamed field is reported

    Returns:
        Findings for this message, in previous-field order
    """
    findings: list[Finding] = []
    curr_by_number = index_by(curr_msg.fields, Field)

    for prev_field in prev_msg.fields:
        subject = f"{msg_name}.{prev_field.name}"
        curr_field = curr_by_number.get(prev_field.number)

        if curr_field is None:
            findings.append(Finding(
                kind=FindingKind.FIELD_REMOVED,
                subject=subject,
                message=f'Field "{prev_field.name}" (number {prev_field.number}) '
                        f'was removed from message "{msg_name}"',
                old_value=prev_field.number,
            ))
            continue

        if report_renames and prev_field.name != curr_field.name:
            findings.append(Finding(
                kind=FindingKind.FIELD_RENAMED,
                subject=subject,
                severity=Severity.WARNING,
                message=f'Field renamed from "{prev_field.name}" to "{curr_field.name}" '
                        f'in message "{msg_name}"',
                old_value=prev_field.name,
                new_value=curr_field.name,
            ))

        if prev_field.kind != curr_field.kind:
            findings.append(Finding(
                kind=FindingKind.FIELD_TYPE_CHANGED,
                subject=subject,
                message=f'Field "{prev_field.name}" type changed from '
                        f'{prev_field.kind.value} to {curr_field.kind.value} '
                        f'in message "{msg_name}"',
                old_value=prev_field.kind.value,
                new_value=curr_field.kind.value,
            ))

        # Only narrowing is breaking; singular -> repeated is wire-compatible.
        if (prev_field.cardinality == Cardinality.REPEATED
                and curr_field.cardinality != Cardinality.REPEATED):
            findings.append(Finding(
                kind=FindingKind.FIELD_CARDINALITY_NARROWED,
                subject=subject,
                message=f'Field "{prev_field.name}" cardinality changed from repeated '
                        f'to singular in message "{msg_name}"',
                old_value=prev_field.cardinality.value,
                new_value=curr_field.cardinality.value,
            ))

    return findings


def compare_enums(
    prev_enums: Mapping[str, EnumType],
    curr_enums: Mapping[str, EnumType],
    report_renames: bool = True
) -> list[Finding]:
    """
    Compare flattened enum maps (qualified name -> enum).

    Returns:
        Findings for removed enums, removed values and renamed values
    """
    findings: list[Finding] = []

    for enum_name, prev_enum in prev_enums.items():
        curr_enum = curr_enums.get(enum_name)
        if curr_enum is None:
            findings.append(Finding(
                kind=FindingKind.ENUM_REMOVED,
                subject=enum_name,
                message=f'Enum "{enum_name}" was removed',
            ))
            continue

        curr_by_number = index_by(curr_enum.values, EnumValue)
        names_by_number: dict[int, set[str]] = defaultdict(set)
        for value in curr_enum.values:
            names_by_number[value.number].add(value.name)

        for prev_value in prev_enum.values:
            subject = f"{enum_name}.{prev_value.name}"
            curr_value = curr_by_number.get(prev_value.number)

            if curr_value is None:
                findings.append(Finding(
                    kind=FindingKind.ENUM_VALUE_REMOVED,
                    subject=subject,
                    message=f'Enum value "{prev_value.name}" (number {prev_value.number}) '
                            f'was removed from enum "{enum_name}"',
                    old_value=prev_value.number,
                ))
                continue

            # An alias sharing the number keeps the old name valid.
            if report_renames and prev_value.name not in names_by_number[prev_value.number]:
                findings.append(Finding(
                    kind=FindingKind.ENUM_VALUE_RENAMED,
                    subject=subject,
                    severity=Severity.WARNING,
                    message=f'Enum value renamed from "{prev_value.name}" to '
                            f'"{curr_value.name}" in enum "{enum_name}"',
                    old_value=prev_value.name,
                    new_value=curr_value.name,
                ))

    return findings


def _compare_method(
    prev_method: Method,
    curr_method: Method,
    service_name: str
) -> list[Finding]:
    """Check every axis of a matched method; all differences are reported."""
    findings: list[Finding] = []
    name = prev_method.name
    subject = f"{service_name}.{name}"

    if prev_method.input_type != curr_method.input_type:
        findings.append(Finding(
            kind=FindingKind.METHOD_INPUT_CHANGED,
            subject=subject,
            message=f'Method "{name}" input type changed from {prev_method.input_type} '
                    f'to {curr_method.input_type} in service "{service_name}"',
            old_value=prev_method.input_type,
            new_value=curr_method.input_type,
        ))

    if prev_method.output_type != curr_method.output_type:
        findings.append(Finding(
            kind=FindingKind.METHOD_OUTPUT_CHANGED,
            subject=subject,
            message=f'Method "{name}" output type changed from {prev_method.output_type} '
                    f'to {curr_method.output_type} in service "{service_name}"',
            old_value=prev_method.output_type,
            new_value=curr_method.output_type,
        ))

    for side in ("client", "server"):
        before = getattr(prev_method, f"{side}_streaming")
        after = getattr(curr_method, f"{side}_streaming")
        if before != after:
            findings.append(Finding(
                kind=FindingKind.METHOD_STREAMING_CHANGED,
                subject=subject,
                message=f'Method "{name}" {side} streaming changed from {_bool(before)} '
                        f'to {_bool(after)} in service "{service_name}"',
                old_value=before,
                new_value=after,
            ))

    return findings


def compare_services(
    prev_services: Sequence[Service],
    curr_services: Sequence[Service]
) -> list[Finding]:
    """
    Compare top-level services; services and methods are matched by name.

    Returns:
        Findings in previous-service, previous-method order
    """
    findings: list[Finding] = []
    curr_by_name = index_by(curr_services, Service)

    for prev_service in prev_services:
        service_name = prev_service.name
        curr_service = curr_by_name.get(service_name)
        if curr_service is None:
            findings.append(Finding(
                kind=FindingKind.SERVICE_REMOVED,
                subject=service_name,
                message=f'Service "{service_name}" was removed',
            ))
            continue

        curr_methods = index_by(curr_service.methods, Method)
        for prev_method in prev_service.methods:
            curr_method = curr_methods.get(prev_method.name)
            if curr_method is None:
                findings.append(Finding(
                    kind=FindingKind.METHOD_REMOVED,
                    subject=f"{service_name}.{prev_method.name}",
                    message=f'Method "{prev_method.name}" was removed from service '
                            f'"{service_name}"',
                ))
                continue
            findings.extend(_compare_method(prev_method, curr_method, service_name))

    return findings


def compare_messages(
    prev_msgs: Mapping[str, Message],
    curr_msgs: Mapping[str, Message],
    report_renames: bool = True
) -> list[Finding]:
    """
    Compare flattened message maps (qualified name -> message).

    Each message, nested or not, is compared once against the message with
    the same qualified name.
    """
    findings: list[Finding] = []

    for msg_name, prev_msg in prev_msgs.items():
        curr_msg = curr_msgs.get(msg_name)
        if curr_msg is None:
            findings.append(Finding(
                kind=FindingKind.MESSAGE_REMOVED,
                subject=msg_name,
                message=f'Message "{msg_name}" was removed',
            ))
            continue
        findings.extend(compare_fields(prev_msg, curr_msg, msg_name, report_renames))

    return findings


def compare_schema_files(
    prev_file: SchemaFile,
    curr_file: SchemaFile,
    report_renames: bool = True
) -> list[Finding]:
    """Compare messages, then enums, then services of two schema files."""
    findings = compare_messages(
        flatten_messages(prev_file.messages),
        flatten_messages(curr_file.messages),
        report_renames
    )
    findings.extend(compare_enums(
        flatten_enums(prev_file.messages, prev_file.enums),
        flatten_enums(curr_file.messages, curr_file.enums),
        report_renames
    ))
    findings.extend(compare_services(prev_file.services, curr_file.services))
    return findings
