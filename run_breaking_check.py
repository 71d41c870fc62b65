#!/usr/bin/env python
"""Run ProtoBreak checks from command line."""

import argparse
import json
import logging
import sys
from pathlib import Path

from protobreak import (
    BreakingChangeEngine,
    BreakingChangeRunner,
    CheckReport,
    EngineConfig,
    FileSource,
    GitRevisionSource,
    ProtoBreakError,
    UnitResult,
    changed_files,
    load_config,
)

EXIT_CLEAN = 0
EXIT_BREAKING = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Detect breaking changes between two versions of a protobuf schema",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_breaking_check.py old.json new.json
  python run_breaking_check.py --git-ref HEAD~1 api/descriptors.json
  python run_breaking_check.py --git-ref main            # every changed descriptor file
  python run_breaking_check.py old.json new.json -r report.json -c protobreak.yaml
        """
    )

    parser.add_argument(
        "previous",
        nargs="?",
        help="Descriptor document of the previous version (path at --git-ref when given)"
    )
    parser.add_argument(
        "current",
        nargs="?",
        help="Descriptor document of the current version (defaults to PREVIOUS with --git-ref)"
    )
    parser.add_argument("-g", "--git-ref", help="Git revision to read the previous version from")
    parser.add_argument("--repo", default=".", help="Git repository root (default: .)")
    parser.add_argument("-c", "--config", help="Path to YAML engine configuration")
    parser.add_argument("-f", "--files-path", help="JSONPath to file entries in the documents")
    parser.add_argument("-r", "--report", help="Path to output JSON report file")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress console output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _pairs(args, parser):
    """Yield (previous_source, current_source) pairs to compare."""
    if args.previous:
        current = args.current or args.previous
        if args.git_ref:
            yield GitRevisionSource(args.previous, args.git_ref, args.repo), \
                FileSource(Path(args.repo) / current)
        else:
            if not args.current:
                parser.error("Current document is required without --git-ref")
            yield FileSource(args.previous), FileSource(current)
        return

    if not args.git_ref:
        parser.error("Either descriptor paths or --git-ref is required")
    for name in changed_files(args.git_ref, repo=args.repo):
        yield GitRevisionSource(name, args.git_ref, args.repo), FileSource(Path(args.repo) / name)


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config) if args.config else EngineConfig()
    except ProtoBreakError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    level = logging.DEBUG if args.verbose else getattr(
        logging, config.log_level.value.replace("WARN", "WARNING")
    )
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    report = CheckReport(engine_version=BreakingChangeEngine.VERSION)

    try:
        pairs = list(_pairs(args, parser))
    except ProtoBreakError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    if not pairs:
        if not args.quiet:
            print("No modified descriptor files found")
        return EXIT_CLEAN

    for previous, current in pairs:
        runner = BreakingChangeRunner(previous, current, config, args.files_path)
        try:
            result = runner.run()
        except ProtoBreakError as e:
            print(f"Error processing {current.label}: {e}", file=sys.stderr)
            report.units.append(
                UnitResult(name=current.label, paths=[current.label], error=str(e))
            )
            continue

        report.timestamp = result.timestamp
        report.units.extend(result.units)

    if not args.quiet:
        report.print_summary()

    if args.report:
        with open(args.report, 'w') as f:
            json.dump(report.to_dict(), indent=2, fp=f)
        if not args.quiet:
            print(f"\nReport saved to: {args.report}")

    if report.is_breaking:
        return EXIT_BREAKING
    if report.errors:
        return EXIT_ERROR
    return EXIT_CLEAN


if __name__ == "__main__":
    sys.exit(main())
