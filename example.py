"""Example usage of ProtoBreak breaking change detection."""

import json
from protobreak import DescriptorLoader, BreakingChangeEngine, EngineConfig

# Previous version of the schema, in the native descriptor format
previous = """
files:
  - path: api/user.proto
    package: acme.user
    messages:
      - name: User
        fields:
          - {name: id, number: 1, kind: string}
          - {name: age, number: 2, kind: int32}
          - {name: tags, number: 3, kind: string, cardinality: repeated}
        messages:
          - name: Address
            fields:
              - {name: city, number: 1, kind: string}
        enums:
          - name: Status
            values: {UNKNOWN: 0, ACTIVE: 1}
    services:
      - name: UserService
        methods:
          - name: Get
            input_type: acme.user.User
            output_type: acme.user.User
            server_streaming: true
"""

# Current version: age changed type, tags narrowed, Address removed,
# ACTIVE renamed and Get no longer streams
current = """
files:
  - path: api/user.proto
    package: acme.user
    messages:
      - name: User
        fields:
          - {name: id, number: 1, kind: string}
          - {name: age, number: 2, kind: int64}
          - {name: tags, number: 3, kind: string}
          - {name: email, number: 4, kind: string}
        enums:
          - name: Status
            values: {UNKNOWN: 0, ENABLED: 1}
    services:
      - name: UserService
        methods:
          - name: Get
            input_type: acme.user.User
            output_type: acme.user.User
"""

loader = DescriptorLoader()
engine = BreakingChangeEngine(EngineConfig())

report = engine.compare(
    loader.load_text(previous, "previous"),
    loader.load_text(current, "current"),
)

# Print results
print("=" * 60)
print("ProtoBreak Report")
print("=" * 60)
print(f"Breaking: {report.is_breaking}")
print(f"Findings: {report.summary.findings_count}")
print()

report.print_summary()

print()
print("Full JSON Report:")
print(json.dumps(report.to_dict(), indent=2))
