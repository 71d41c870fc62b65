"""Tests for ProtoBreak comparison engine."""

import pytest
from protobreak import (
    BreakingChangeEngine,
    Cardinality,
    DescriptorError,
    EngineConfig,
    EnumType,
    EnumValue,
    Field,
    FieldKind,
    FindingKind,
    Message,
    Method,
    PackageGrouping,
    SchemaFile,
    Service,
    Severity,
    UnitStatus,
    compare,
    flatten_enums,
    flatten_messages,
)
from protobreak.comparators import (
    compare_enums,
    compare_fields,
    compare_messages,
    compare_schema_files,
    compare_services,
)
from protobreak.namespace import identity_key, index_by


def fld(name, number, kind=FieldKind.STRING, cardinality=Cardinality.SINGULAR):
    return Field(name=name, number=number, kind=kind, cardinality=cardinality)


def enum(name, **values):
    return EnumType(name=name, values=[EnumValue(n, v) for n, v in values.items()])


def rpc(name, input_type="test.Request", output_type="test.Response",
        client_streaming=False, server_streaming=False):
    return Method(name, input_type, output_type, client_streaming, server_streaming)


def proto(path="test.proto", package="test", messages=(), enums=(), services=()):
    return SchemaFile(
        path=path,
        package=package,
        messages=list(messages),
        enums=list(enums),
        services=list(services),
    )


def kinds(findings):
    return [f.kind for f in findings]


class TestNamespaceFlattener:
    """Test qualified-name flattening of nested scopes."""

    def test_top_level_messages_use_bare_names(self):
        """Test top-level messages are keyed by their own name."""
        result = flatten_messages([Message("User"), Message("Order")])
        assert list(result) == ["User", "Order"]

    def test_nested_messages_depth_first(self):
        """Test nested messages are keyed by dotted path, depth-first."""
        outer = Message("Outer", messages=[
            Message("Inner", messages=[Message("Deepest")]),
            Message("Sibling"),
        ])
        result = flatten_messages([outer, Message("Other")])
        assert list(result) == [
            "Outer", "Outer.Inner", "Outer.Inner.Deepest", "Outer.Sibling", "Other"
        ]
        assert result["Outer.Inner.Deepest"].name == "Deepest"

    def test_prefix_is_prepended(self):
        """Test a starting prefix scopes every key."""
        result = flatten_messages([Message("A", messages=[Message("B")])], prefix="pkg.")
        assert list(result) == ["pkg.A", "pkg.A.B"]

    def test_enums_top_level_and_nested(self):
        """Test enums are collected at every depth."""
        outer = Message("Outer", enums=[enum("Kind", A=0)], messages=[
            Message("Inner", enums=[enum("Status", UNKNOWN=0)]),
        ])
        result = flatten_enums([outer], [enum("Color", RED=0)])
        assert list(result) == ["Color", "Outer.Kind", "Outer.Inner.Status"]

    def test_deep_nesting_without_recursion_limit(self):
        """Test very deep nesting is walked without hitting the call stack limit."""
        root = Message("M0")
        current = root
        for i in range(1, 1500):
            child = Message(f"M{i}")
            current.messages.append(child)
            current = child

        result = flatten_messages([root])
        assert len(result) == 1500
        assert ".".join(f"M{i}" for i in range(1500)) in result

    def test_empty_input(self):
        assert flatten_messages([]) == {}
        assert flatten_enums([]) == {}


class TestIdentityKeys:
    """Test identity keys per entity kind."""

    def test_numbered_entities_keyed_by_number(self):
        assert identity_key(fld("name", 7)) == 7
        assert identity_key(EnumValue("ACTIVE", 1)) == 1

    def test_named_entities_keyed_by_name(self):
        assert identity_key(rpc("Get")) == "Get"
        assert identity_key(Service("Users")) == "Users"

    def test_unknown_kind_rejected(self):
        with pytest.raises(TypeError):
            identity_key(object())

    def test_index_keeps_first_declaration(self):
        """Test aliases sharing a number resolve to the first declared value."""
        index = index_by([EnumValue("STARTED", 1), EnumValue("RUNNING", 1)], EnumValue)
        assert index[1].name == "STARTED"


class TestFieldComparator:
    """Test field comparison by number."""

    def test_type_change(self):
        """Test a changed kind is reported."""
        prev = Message("TestMessage", [fld("name", 1, FieldKind.STRING)])
        curr = Message("TestMessage", [fld("name", 1, FieldKind.INT64)])

        findings = compare_fields(prev, curr, "TestMessage")
        assert len(findings) == 1
        assert findings[0].kind == FindingKind.FIELD_TYPE_CHANGED
        assert findings[0].message == (
            'Field "name" type changed from string to int64 in message "TestMessage"'
        )

    def test_removal_by_number(self):
        """Test a missing number is reported as removal."""
        prev = Message("TestMessage", [fld("name", 1), fld("age", 2, FieldKind.INT32)])
        curr = Message("TestMessage", [fld("name", 1)])

        findings = compare_fields(prev, curr, "TestMessage")
        assert [f.message for f in findings] == [
            'Field "age" (number 2) was removed from message "TestMessage"'
        ]

    def test_same_name_new_number_is_removal(self):
        """Test name is irrelevant to removal detection."""
        prev = Message("M", [fld("age", 2)])
        curr = Message("M", [fld("age", 3)])

        findings = compare_fields(prev, curr, "M")
        assert kinds(findings) == [FindingKind.FIELD_REMOVED]

    def test_rename(self):
        """Test a renamed field is reported with warning severity."""
        prev = Message("TestMessage", [fld("name", 1)])
        curr = Message("TestMessage", [fld("full_name", 1)])

        findings = compare_fields(prev, curr, "TestMessage")
        assert len(findings) == 1
        assert findings[0].kind == FindingKind.FIELD_RENAMED
        assert findings[0].severity == Severity.WARNING
        assert findings[0].message == (
            'Field renamed from "name" to "full_name" in message "TestMessage"'
        )

    def test_rename_can_be_disabled(self):
        prev = Message("M", [fld("name", 1)])
        curr = Message("M", [fld("full_name", 1)])
        assert compare_fields(prev, curr, "M", report_renames=False) == []

    def test_all_axes_reported_independently(self):
        """Test rename, type change and narrowing fire together, in order."""
        prev = Message("M", [fld("tags", 1, FieldKind.STRING, Cardinality.REPEATED)])
        curr = Message("M", [fld("labels", 1, FieldKind.BYTES, Cardinality.SINGULAR)])

        findings = compare_fields(prev, curr, "M")
        assert kinds(findings) == [
            FindingKind.FIELD_RENAMED,
            FindingKind.FIELD_TYPE_CHANGED,
            FindingKind.FIELD_CARDINALITY_NARROWED,
        ]

    def test_repeated_to_singular(self):
        prev = Message("TestMessage", [fld("names", 1, cardinality=Cardinality.REPEATED)])
        curr = Message("TestMessage", [fld("names", 1)])

        findings = compare_fields(prev, curr, "TestMessage")
        assert [f.message for f in findings] == [
            'Field "names" cardinality changed from repeated to singular in message "TestMessage"'
        ]

    def test_repeated_to_optional(self):
        prev = Message("M", [fld("names", 1, cardinality=Cardinality.REPEATED)])
        curr = Message("M", [fld("names", 1, cardinality=Cardinality.OPTIONAL)])

        findings = compare_fields(prev, curr, "M")
        assert kinds(findings) == [FindingKind.FIELD_CARDINALITY_NARROWED]
        assert findings[0].new_value == "optional"
        assert findings[0].message == (
            'Field "names" cardinality changed from repeated to singular in message "M"'
        )

    def test_cardinality_is_asymmetric_for_every_kind(self):
        """Test narrowing always finds and widening never does, for every kind."""
        for kind in FieldKind:
            repeated = Message("M", [fld("f", 1, kind, Cardinality.REPEATED)])
            for narrow in (Cardinality.SINGULAR, Cardinality.OPTIONAL):
                single = Message("M", [fld("f", 1, kind, narrow)])
                assert kinds(compare_fields(repeated, single, "M")) == [
                    FindingKind.FIELD_CARDINALITY_NARROWED
                ], kind
                assert compare_fields(single, repeated, "M") == [], kind

    def test_added_fields_ignored(self):
        prev = Message("M", [fld("name", 1)])
        curr = Message("M", [fld("name", 1), fld("age", 2, FieldKind.INT32)])
        assert compare_fields(prev, curr, "M") == []

    def test_optional_and_singular_interchangeable(self):
        prev = Message("M", [fld("name", 1, cardinality=Cardinality.OPTIONAL)])
        curr = Message("M", [fld("name", 1, cardinality=Cardinality.SINGULAR)])
        assert compare_fields(prev, curr, "M") == []


class TestEnumComparator:
    """Test enum comparison over flattened maps."""

    def test_enum_removal(self):
        findings = compare_enums({"Status": enum("Status", UNKNOWN=0)}, {})
        assert [f.message for f in findings] == ['Enum "Status" was removed']

    def test_value_removal(self):
        prev = {"Status": enum("Status", UNKNOWN=0, ACTIVE=1, INACTIVE=2)}
        curr = {"Status": enum("Status", UNKNOWN=0, ACTIVE=1)}

        findings = compare_enums(prev, curr)
        assert [f.message for f in findings] == [
            'Enum value "INACTIVE" (number 2) was removed from enum "Status"'
        ]

    def test_value_rename(self):
        prev = {"Status": enum("Status", UNKNOWN=0, ACTIVE=1)}
        curr = {"Status": enum("Status", UNKNOWN=0, ENABLED=1)}

        findings = compare_enums(prev, curr)
        assert len(findings) == 1
        assert findings[0].kind == FindingKind.ENUM_VALUE_RENAMED
        assert findings[0].message == (
            'Enum value renamed from "ACTIVE" to "ENABLED" in enum "Status"'
        )

    def test_value_addition_ignored(self):
        prev = {"Status": enum("Status", UNKNOWN=0, ACTIVE=1)}
        curr = {"Status": enum("Status", UNKNOWN=0, ACTIVE=1, INACTIVE=2)}
        assert compare_enums(prev, curr) == []

    def test_alias_keeps_old_name(self):
        """Test adding an alias before the old name is not a rename."""
        prev = {"State": enum("State", UNKNOWN=0, RUNNING=1)}
        curr = {"State": EnumType("State", [
            EnumValue("UNKNOWN", 0), EnumValue("STARTED", 1), EnumValue("RUNNING", 1),
        ])}
        assert compare_enums(prev, curr) == []

    def test_nested_enum_matched_by_qualified_name(self):
        prev = flatten_enums([Message("Outer", enums=[enum("Status", A=0)])])
        curr = flatten_enums([], [enum("Status", A=0)])

        findings = compare_enums(prev, curr)
        assert [f.message for f in findings] == ['Enum "Outer.Status" was removed']


class TestServiceComparator:
    """Test service and method comparison by name."""

    def test_service_removal(self):
        prev = [Service("TestService", [rpc("DoSomething")])]
        findings = compare_services(prev, [])
        assert [f.message for f in findings] == ['Service "TestService" was removed']

    def test_method_removal(self):
        prev = [Service("TestService", [rpc("DoSomething"), rpc("DoSomethingElse")])]
        curr = [Service("TestService", [rpc("DoSomething")])]

        findings = compare_services(prev, curr)
        assert [f.message for f in findings] == [
            'Method "DoSomethingElse" was removed from service "TestService"'
        ]

    def test_input_type_change(self):
        prev = [Service("TestService", [rpc("DoSomething", input_type="test.Request1")])]
        curr = [Service("TestService", [rpc("DoSomething", input_type="test.Request2")])]

        findings = compare_services(prev, curr)
        assert [f.message for f in findings] == [
            'Method "DoSomething" input type changed from test.Request1 to test.Request2 '
            'in service "TestService"'
        ]

    def test_output_type_change(self):
        prev = [Service("TestService", [rpc("DoSomething", output_type="test.Response1")])]
        curr = [Service("TestService", [rpc("DoSomething", output_type="test.Response2")])]

        findings = compare_services(prev, curr)
        assert kinds(findings) == [FindingKind.METHOD_OUTPUT_CHANGED]

    def test_client_streaming_change(self):
        prev = [Service("TestService", [rpc("DoSomething", client_streaming=True)])]
        curr = [Service("TestService", [rpc("DoSomething")])]

        findings = compare_services(prev, curr)
        assert [f.message for f in findings] == [
            'Method "DoSomething" client streaming changed from true to false '
            'in service "TestService"'
        ]

    def test_every_method_axis_reported(self):
        """Test the four method checks are not short-circuited."""
        prev = [Service("S", [rpc("Call", "a.In", "a.Out", False, False)])]
        curr = [Service("S", [rpc("Call", "b.In", "b.Out", True, True)])]

        findings = compare_services(prev, curr)
        assert kinds(findings) == [
            FindingKind.METHOD_INPUT_CHANGED,
            FindingKind.METHOD_OUTPUT_CHANGED,
            FindingKind.METHOD_STREAMING_CHANGED,
            FindingKind.METHOD_STREAMING_CHANGED,
        ]

    def test_method_addition_ignored(self):
        prev = [Service("TestService", [rpc("DoSomething")])]
        curr = [Service("TestService", [rpc("DoSomething"), rpc("DoSomethingElse")])]
        assert compare_services(prev, curr) == []


class TestMessageComparator:
    """Test message matching by qualified name."""

    def test_message_removal(self):
        prev = flatten_messages([Message("Message1"), Message("Message2")])
        curr = flatten_messages([Message("Message1")])

        findings = compare_messages(prev, curr)
        assert [f.message for f in findings] == ['Message "Message2" was removed']

    def test_nested_removal_reports_only_inner(self):
        """Test removing an inner message leaves the outer unreported."""
        prev = flatten_messages([Message("Outer", messages=[Message("Inner1"), Message("Inner2")])])
        curr = flatten_messages([Message("Outer", messages=[Message("Inner1")])])

        findings = compare_messages(prev, curr)
        assert [f.message for f in findings] == ['Message "Outer.Inner2" was removed']

    def test_nested_field_change_uses_qualified_name(self):
        prev = flatten_messages([Message("Outer", messages=[Message("Inner", [fld("x", 1)])])])
        curr = flatten_messages([Message("Outer", messages=[Message("Inner", [])])])

        findings = compare_messages(prev, curr)
        assert [f.message for f in findings] == [
            'Field "x" (number 1) was removed from message "Outer.Inner"'
        ]
        assert findings[0].subject == "Outer.Inner.x"

    def test_message_addition_ignored(self):
        prev = flatten_messages([Message("Message1")])
        curr = flatten_messages([Message("Message1"), Message("Message2")])
        assert compare_messages(prev, curr) == []

    def test_enum_in_removed_message_reported_too(self):
        """Test an enum inside a removed message yields its own finding."""
        prev = proto(messages=[Message("Outer", messages=[
            Message("Inner", enums=[enum("Status", UNKNOWN=0)]),
        ])])
        curr = proto(messages=[Message("Outer")])

        findings = compare_schema_files(prev, curr)
        assert [f.message for f in findings] == [
            'Message "Outer.Inner" was removed',
            'Enum "Outer.Inner.Status" was removed',
        ]


class TestConcreteScenarios:
    """End-to-end scenarios through the engine."""

    def setup_method(self):
        self.engine = BreakingChangeEngine()

    def test_field_type_change(self):
        prev = proto(messages=[Message("TestMessage", [fld("name", 1, FieldKind.STRING)])])
        curr = proto(messages=[Message("TestMessage", [fld("name", 1, FieldKind.INT64)])])

        report = self.engine.compare(prev, curr)
        assert kinds(report.findings) == [FindingKind.FIELD_TYPE_CHANGED]
        assert report.findings[0].old_value == "string"
        assert report.findings[0].new_value == "int64"

    def test_middle_field_removed(self):
        prev = proto(messages=[Message("M", [fld("a", 1), fld("b", 2), fld("c", 3)])])
        curr = proto(messages=[Message("M", [fld("a", 1), fld("c", 3)])])

        report = self.engine.compare(prev, curr)
        assert len(report.findings) == 1
        assert report.findings[0].kind == FindingKind.FIELD_REMOVED
        assert '"b" (number 2)' in report.findings[0].message

    def test_enum_value_renamed(self):
        prev = proto(enums=[enum("Status", UNKNOWN=0, ACTIVE=1)])
        curr = proto(enums=[enum("Status", UNKNOWN=0, ENABLED=1)])

        report = self.engine.compare(prev, curr)
        assert kinds(report.findings) == [FindingKind.ENUM_VALUE_RENAMED]

    def test_server_streaming_dropped(self):
        prev = proto(services=[Service("S", [rpc("Get", "test.Req", "test.Res", server_streaming=True)])])
        curr = proto(services=[Service("S", [rpc("Get", "test.Req", "test.Res")])])

        report = self.engine.compare(prev, curr)
        assert len(report.findings) == 1
        assert report.findings[0].kind == FindingKind.METHOD_STREAMING_CHANGED
        assert "server streaming changed from true to false" in report.findings[0].message

    def test_package_removed(self):
        prev = proto(path="p/a.proto", package="p", messages=[Message("A")])

        report = self.engine.compare(prev, [])
        assert len(report.findings) == 1
        assert report.findings[0].kind == FindingKind.PACKAGE_REMOVED
        assert "p/a.proto" in report.findings[0].message


class TestProperties:
    """Properties that hold for any schema."""

    def setup_method(self):
        self.engine = BreakingChangeEngine()
        self.schema = proto(
            messages=[Message("User", [
                fld("id", 1),
                fld("tags", 2, cardinality=Cardinality.REPEATED),
                fld("role", 3, FieldKind.ENUM),
            ], messages=[Message("Address", [fld("city", 1)])],
               enums=[enum("Role", NONE=0, ADMIN=1)])],
            enums=[enum("Status", UNKNOWN=0, ACTIVE=1)],
            services=[Service("Users", [rpc("Get", "test.User", "test.User")])],
        )

    def _widened(self):
        return proto(
            messages=[Message("User", [
                fld("id", 1),
                fld("tags", 2, cardinality=Cardinality.REPEATED),
                fld("role", 3, FieldKind.ENUM),
                fld("email", 4),
            ], messages=[
                Message("Address", [fld("city", 1), fld("zip", 2)]),
                Message("Phone"),
            ], enums=[enum("Role", NONE=0, ADMIN=1, OWNER=2)])],
            enums=[enum("Status", UNKNOWN=0, ACTIVE=1, BANNED=2), enum("Color", RED=0)],
            services=[
                Service("Users", [rpc("Get", "test.User", "test.User"), rpc("List")]),
                Service("Admin"),
            ],
        )

    def test_self_comparison_is_clean(self):
        report = self.engine.compare(self.schema, self.schema)
        assert report.findings == []
        assert report.is_breaking is False

    def test_additions_only_are_clean(self):
        report = self.engine.compare(self.schema, self._widened())
        assert report.findings == []
        assert report.units[0].status == UnitStatus.CLEAN

    def test_reverting_additions_is_breaking(self):
        report = self.engine.compare(self._widened(), self.schema)
        assert set(kinds(report.findings)) == {
            FindingKind.FIELD_REMOVED,
            FindingKind.MESSAGE_REMOVED,
            FindingKind.ENUM_VALUE_REMOVED,
            FindingKind.ENUM_REMOVED,
            FindingKind.METHOD_REMOVED,
            FindingKind.SERVICE_REMOVED,
        }

    def test_findings_are_deterministic(self):
        first = self.engine.compare(self._widened(), self.schema)
        second = self.engine.compare(self._widened(), self.schema)
        assert [f.message for f in first.findings] == [f.message for f in second.findings]


class TestEngine:
    """Test package orchestration and aggregation."""

    def setup_method(self):
        self.engine = BreakingChangeEngine()

    def test_none_inputs(self):
        assert compare(None, None).findings == []
        assert compare(None, proto(messages=[Message("A")])).is_breaking is False

    def test_everything_removed_when_current_empty(self):
        prev = [
            proto(path="p/a.proto", package="p"),
            proto(path="p/b.proto", package="p"),
            proto(path="q/c.proto", package="q"),
        ]
        report = self.engine.compare(prev, None)
        assert kinds(report.findings) == [FindingKind.PACKAGE_REMOVED] * 3
        assert [u.paths for u in report.units] == [["p/a.proto"], ["p/b.proto"], ["q/c.proto"]]

    def test_new_package_is_not_a_finding(self):
        prev = proto(path="a.proto", package="a")
        curr = [proto(path="a.proto", package="a"), proto(path="b.proto", package="b")]
        assert self.engine.compare(prev, curr).findings == []

    def test_default_package(self):
        prev = proto(path="a.proto", package="", messages=[Message("A"), Message("B")])
        curr = proto(path="a.proto", package="", messages=[Message("A")])

        report = self.engine.compare(prev, curr)
        assert [f.message for f in report.findings] == ['Message "B" was removed']

    def test_union_sees_every_file_in_package(self):
        """Test a change in a non-first file of a package is found."""
        prev = [
            proto(path="p/a.proto", package="p", messages=[Message("A", [fld("x", 1)])]),
            proto(path="p/b.proto", package="p", messages=[Message("B", [fld("y", 1)])]),
        ]
        curr = [
            proto(path="p/a.proto", package="p", messages=[Message("A", [fld("x", 1)])]),
            proto(path="p/b.proto", package="p", messages=[Message("B")]),
        ]

        report = self.engine.compare(prev, curr)
        assert kinds(report.findings) == [FindingKind.FIELD_REMOVED]
        assert report.units[0].paths == ["p/a.proto", "p/b.proto"]

    def test_union_allows_moving_declarations_between_files(self):
        prev = [
            proto(path="p/a.proto", package="p", messages=[Message("A")]),
            proto(path="p/b.proto", package="p", messages=[Message("B")]),
        ]
        curr = [proto(path="p/all.proto", package="p", messages=[Message("A"), Message("B")])]

        report = self.engine.compare(prev, curr)
        assert report.findings == []

    def test_representative_mode_compares_first_files_only(self):
        config = EngineConfig(package_grouping=PackageGrouping.REPRESENTATIVE)
        prev = [
            proto(path="p/a.proto", package="p", messages=[Message("A", [fld("x", 1)])]),
            proto(path="p/b.proto", package="p", messages=[Message("B", [fld("y", 1)])]),
        ]
        curr = [
            proto(path="p/a.proto", package="p", messages=[Message("A", [fld("x", 1)])]),
            proto(path="p/b.proto", package="p", messages=[Message("B")]),
        ]

        report = BreakingChangeEngine(config).compare(prev, curr)
        assert report.findings == []
        assert report.units[0].paths == ["p/a.proto"]

    def test_representative_mode_ignores_other_files(self):
        """Test an invalid file outside the representative pair does not fail the package."""
        config = EngineConfig(package_grouping=PackageGrouping.REPRESENTATIVE)
        prev = [
            proto(path="p/a.proto", package="p", messages=[Message("A", [fld("x", 1)])]),
            proto(path="p/b.proto", package="p", messages=[Message("B", [fld("y", 0)])]),
        ]
        curr = [proto(path="p/a.proto", package="p", messages=[Message("A")])]

        report = BreakingChangeEngine(config).compare(prev, curr)
        assert report.errors == []
        assert kinds(report.findings) == [FindingKind.FIELD_REMOVED]

    def test_representative_mode_validates_compared_files(self):
        config = EngineConfig(package_grouping=PackageGrouping.REPRESENTATIVE)
        prev = proto(path="p/a.proto", package="p", messages=[Message("A", [fld("x", 0)])])

        report = BreakingChangeEngine(config).compare(prev, prev)
        assert len(report.errors) == 1
        assert report.findings == []

    def test_invalid_package_is_isolated(self):
        """Test an invalid tree yields an error unit and other packages still run."""
        prev = [
            proto(path="bad.proto", package="bad", messages=[Message("A", [fld("x", 1)])]),
            proto(path="good.proto", package="good", messages=[Message("B", [fld("y", 1)])]),
        ]
        curr = [
            proto(path="bad.proto", package="bad", messages=[Message("A", [fld("x", 1), fld("z", 1)])]),
            proto(path="good.proto", package="good", messages=[Message("B")]),
        ]

        report = self.engine.compare(prev, curr)
        bad, good = report.units
        assert bad.status == UnitStatus.ERROR
        assert bad.findings == []
        assert "used twice" in bad.error
        assert good.status == UnitStatus.BREAKING
        assert kinds(report.findings) == [FindingKind.FIELD_REMOVED]
        assert report.summary.units_failed == 1

    def test_error_unit_alone_is_not_breaking(self):
        prev = proto(messages=[Message("A", [fld("x", 0)])])
        report = self.engine.compare(prev, prev)
        assert report.is_breaking is False
        assert len(report.errors) == 1

    def test_duplicate_declarations_across_package_files(self):
        prev = [
            proto(path="p/a.proto", package="p", messages=[Message("A")]),
            proto(path="p/b.proto", package="p", messages=[Message("A")]),
        ]
        report = self.engine.compare(prev, prev)
        assert report.units[0].status == UnitStatus.ERROR
        assert "Duplicate message name 'A'" in report.units[0].error

    def test_non_schema_input_rejected(self):
        with pytest.raises(DescriptorError):
            self.engine.compare("test.proto", None)
        with pytest.raises(DescriptorError):
            self.engine.compare([proto(), {"path": "x"}], None)

    def test_compare_files_ignores_packages(self):
        prev = proto(path="a.proto", package="old", messages=[Message("A")])
        curr = proto(path="a.proto", package="new")

        findings = self.engine.compare_files(prev, curr)
        assert kinds(findings) == [FindingKind.MESSAGE_REMOVED]

    def test_compare_files_validates(self):
        with pytest.raises(DescriptorError):
            self.engine.compare_files(proto(path=""), proto())

    def test_filter_by_kind(self):
        prev = proto(messages=[Message("M", [fld("a", 1), fld("b", 2)])])
        curr = proto(messages=[Message("M", [fld("renamed", 1)])])

        report = self.engine.compare(prev, curr)
        assert kinds(report.filter([FindingKind.FIELD_RENAMED])) == [FindingKind.FIELD_RENAMED]
        assert report.filter([FindingKind.SERVICE_REMOVED]) == []

    def test_report_to_dict(self):
        prev = proto(messages=[Message("M", [fld("a", 1)])])
        curr = proto(messages=[Message("M")])

        result = self.engine.compare(prev, curr).to_dict()
        assert result["is_breaking"] is True
        assert result["engine_version"] == BreakingChangeEngine.VERSION
        assert result["summary"] == {
            "units_compared": 1,
            "units_breaking": 1,
            "units_failed": 0,
            "findings_count": 1,
        }
        unit = result["units"][0]
        assert unit["status"] == "BREAKING"
        assert unit["findings"][0]["kind"] == "FIELD_REMOVED"
        assert unit["findings"][0]["subject"] == "M.a"

    def test_print_summary(self, capsys):
        prev = proto(path="x.proto", messages=[Message("M", [fld("a", 1)])])
        curr = proto(path="x.proto", messages=[Message("M")])

        self.engine.compare(prev, curr).print_summary()
        out = capsys.readouterr().out
        assert "Detected 1 breaking changes in x.proto:" in out
        assert '  - Field "a" (number 1) was removed from message "M"' in out


class TestEngineConfig:
    """Test configuration values."""

    def test_defaults(self):
        config = EngineConfig()
        assert config.package_grouping == PackageGrouping.UNION
        assert config.report_renames is True

    def test_from_dict(self):
        config = EngineConfig.from_dict({
            "package_grouping": "representative",
            "report_renames": False,
            "log_level": "debug",
        })
        assert config.package_grouping == PackageGrouping.REPRESENTATIVE
        assert config.report_renames is False
        assert config.log_level.value == "DEBUG"

    def test_renames_disabled_through_engine(self):
        config = EngineConfig(report_renames=False)
        prev = proto(messages=[Message("M", [fld("a", 1)])], enums=[enum("E", A=0)])
        curr = proto(messages=[Message("M", [fld("b", 1)])], enums=[enum("E", B=0)])
        assert compare(prev, curr, config).findings == []
