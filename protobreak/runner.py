"""Runner that loads two descriptor documents and checks them for breaking changes."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from .engine import BreakingChangeEngine
from .exceptions import RevisionNotFoundError
from .loader import DescriptorLoader
from .models import CheckReport, EngineConfig
from .sources import make_source

logger = logging.getLogger(__name__)


class DocumentSource(Protocol):
    label: str

    def read(self) -> str: ...


class BreakingChangeRunner:
    """
    Loads the previous and current descriptor documents and runs the engine.

    Usage:
        runner = BreakingChangeRunner(FileSource("old.json"), FileSource("new.json"))
        report = runner.run()
        report.print_summary()

    Or as a one-liner:
        report = BreakingChangeRunner.check("old.json", "new.json")
    """

    def __init__(
        self,
        previous: DocumentSource,
        current: DocumentSource,
        engine_config: Optional[EngineConfig] = None,
        files_path: Optional[str] = None
    ):
        """
        Initialize the runner.

        Args:
            previous: Source of the baseline descriptor document
            current: Source of the descriptor document being checked
            engine_config: Optional engine configuration
            files_path: Optional JSONPath to the file entries in both documents
        """
        self.previous = previous
        self.current = current
        self.engine_config = engine_config or EngineConfig()
        self.loader = DescriptorLoader(files_path)

    def run(self, print_report: bool = False) -> CheckReport:
        """
        Retrieve both versions, then compare them.

        Retrieval and loading errors propagate before any comparison starts.
        A document missing at an existing revision counts as an empty
        previous version.
        """
        try:
            previous_text = self.previous.read()
        except RevisionNotFoundError as e:
            if e.path is None:
                raise
            logger.info("%s did not exist at %s", e.path, e.revision)
            previous_text = ""
        current_text = self.current.read()

        previous_files = self.loader.load_text(previous_text, self.previous.label)
        current_files = self.loader.load_text(current_text, self.current.label)
        logger.info(
            "Comparing %s (%d files) with %s (%d files)",
            self.previous.label, len(previous_files),
            self.current.label, len(current_files)
        )

        report = BreakingChangeEngine(self.engine_config).compare(previous_files, current_files)
        if print_report:
            report.print_summary()
        return report

    @classmethod
    def check(
        cls,
        previous_path: str,
        current_path: str,
        revision: Optional[str] = None,
        repo: str = ".",
        engine_config: Optional[EngineConfig] = None,
        files_path: Optional[str] = None,
        print_report: bool = False
    ) -> CheckReport:
        """
        Convenience class method to run a check in one call.

        When ``revision`` is given, the previous document is read from git at
        that revision instead of from disk.
        """
        runner = cls(
            make_source(previous_path, revision, repo),
            make_source(current_path),
            engine_config,
            files_path
        )
        return runner.run(print_report=print_report)


def run_check(
    previous_path: str,
    current_path: str,
    revision: Optional[str] = None,
    print_report: bool = True
) -> CheckReport:
    """
    Check two descriptor documents for breaking changes.

        from protobreak.runner import run_check
        report = run_check("descriptors.json", "descriptors.json", revision="HEAD~1")
    """
    return BreakingChangeRunner.check(
        previous_path, current_path, revision=revision, print_report=print_report
    )
