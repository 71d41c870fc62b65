"""Main comparison engine for ProtoBreak."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional, Union

from .models import (
    CheckReport,
    EngineConfig,
    Finding,
    FindingKind,
    PackageGrouping,
    SchemaFile,
    UnitResult,
)
from .comparators import compare_schema_files
from .exceptions import DescriptorError
from .validation import validate_schema_file

logger = logging.getLogger(__name__)

DescriptorInput = Union[SchemaFile, Iterable[SchemaFile], None]


class BreakingChangeEngine:
    """
    Orchestrates the comparison of two schema snapshots:

    1. Grouping: files are grouped by declared package
    2. Removal: packages missing from the current snapshot are reported
    3. Validation: identity fields of each package pair are checked
    4. Comparison: messages, enums and services are diffed per package

    A package that fails validation is recorded as an error with no
    findings; the remaining packages are still compared.
    """

    VERSION = "1.0.0"

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize the engine.

        Args:
            config: Engine configuration (uses defaults if not provided)
        """
        self.config = config or EngineConfig()

    def compare(
        self,
        previous: DescriptorInput,
        current: DescriptorInput
    ) -> CheckReport:
        """
        Compare two snapshots of a schema.

        Args:
            previous: Schema file(s) of the baseline version
            current: Schema file(s) of the version being checked

        Returns:
            CheckReport with one unit per compared package or removed file

        Raises:
            DescriptorError: if an input is not a schema file or a collection of them
        """
        prev_packages = self._group_by_package(self._as_files(previous, "previous"))
        curr_packages = self._group_by_package(self._as_files(current, "current"))

        report = CheckReport(
            timestamp=datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            engine_version=self.VERSION
        )

        for package, prev_files in prev_packages.items():
            curr_files = curr_packages.get(package)
            if curr_files is None:
                report.units.extend(self._removed_package(package, prev_files))
                continue
            report.units.append(self._compare_package(package, prev_files, curr_files))

        logger.debug(
            "Compared %d packages, %d findings",
            len(prev_packages), len(report.findings)
        )
        return report

    def compare_files(self, prev_file: SchemaFile, curr_file: SchemaFile) -> list[Finding]:
        """
        Compare exactly one pair of schema files, ignoring packages.

        Raises:
            DescriptorError: if either file is structurally invalid
        """
        if self.config.validate_inputs:
            validate_schema_file(prev_file)
            validate_schema_file(curr_file)
        return compare_schema_files(prev_file, curr_file, self.config.report_renames)

    def _as_files(self, tree: DescriptorInput, side: str) -> list[SchemaFile]:
        """Normalize a descriptor input to a list of schema files."""
        if tree is None:
            return []
        if isinstance(tree, SchemaFile):
            return [tree]
        try:
            files = list(tree)
        except TypeError:
            raise DescriptorError(
                f"{side} descriptor tree must be a SchemaFile or a collection of them",
                details={"type": type(tree).__name__}
            )
        for item in files:
            if not isinstance(item, SchemaFile):
                raise DescriptorError(
                    f"{side} descriptor tree contains a {type(item).__name__}, "
                    f"expected SchemaFile"
                )
        return files

    def _group_by_package(self, files: list[SchemaFile]) -> dict[str, list[SchemaFile]]:
        packages: dict[str, list[SchemaFile]] = {}
        for schema_file in files:
            packages.setdefault(schema_file.package or "", []).append(schema_file)
        return packages

    def _removed_package(self, package: str, prev_files: list[SchemaFile]) -> list[UnitResult]:
        """One finding per file of a package that no longer exists."""
        units = []
        for prev_file in prev_files:
            logger.debug("Package '%s' removed (file %s)", package, prev_file.path)
            units.append(UnitResult(
                name=package,
                paths=[prev_file.path],
                findings=[Finding(
                    kind=FindingKind.PACKAGE_REMOVED,
                    subject=package,
                    message=f'Package "{package}" was removed (file "{prev_file.path}")',
                    old_value=prev_file.path,
                )]
            ))
        return units

    def _compare_package(
        self,
        package: str,
        prev_files: list[SchemaFile],
        curr_files: list[SchemaFile]
    ) -> UnitResult:
        paths = [f.path for f in prev_files]
        paths.extend(f.path for f in curr_files if f.path not in paths)
        unit = UnitResult(name=package, paths=paths)

        try:
            if self.config.package_grouping == PackageGrouping.REPRESENTATIVE:
                prev_view, curr_view = prev_files[0], curr_files[0]
                unit.paths = list(dict.fromkeys([prev_view.path, curr_view.path]))
                if self.config.validate_inputs:
                    validate_schema_file(prev_view)
                    validate_schema_file(curr_view)
            else:
                if self.config.validate_inputs:
                    for schema_file in prev_files + curr_files:
                        validate_schema_file(schema_file)
                prev_view = merge_package(package, prev_files)
                curr_view = merge_package(package, curr_files)
                if self.config.validate_inputs:
                    validate_schema_file(prev_view)
                    validate_schema_file(curr_view)

            logger.debug("Comparing package '%s' (%s)", package, unit.label)
            unit.findings = compare_schema_files(
                prev_view, curr_view, self.config.report_renames
            )
        except DescriptorError as e:
            where = f" ({e.path})" if e.path else ""
            logger.warning("Cannot compare package '%s'%s: %s", package, where, e.message)
            unit.findings = []
            unit.error = f"{e.message}{where}"

        return unit


def merge_package(package: str, files: list[SchemaFile]) -> SchemaFile:
    """Combine the top-level declarations of all files sharing a package."""
    if len(files) == 1:
        return files[0]

    merged = SchemaFile(
        path=", ".join(f.path for f in files),
        package=package,
        syntax=files[0].syntax
    )
    for schema_file in files:
        merged.messages.extend(schema_file.messages)
        merged.enums.extend(schema_file.enums)
        merged.services.extend(schema_file.services)
    return merged


def compare(
    previous: DescriptorInput,
    current: DescriptorInput,
    config: Optional[EngineConfig] = None
) -> CheckReport:
    """
    Convenience function to compare two schema snapshots.

    Args:
        previous: Schema file(s) of the baseline version
        current: Schema file(s) of the version being checked
        config: Optional engine configuration

    Returns:
        CheckReport; ``report.is_breaking`` tells whether anything broke
    """
    engine = BreakingChangeEngine(config)
    return engine.compare(previous, current)
