"""Revision sources: where the previous and current descriptor documents come from."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Iterable, Optional

from .exceptions import DescriptorLoadError, RevisionNotFoundError

logger = logging.getLogger(__name__)

DESCRIPTOR_SUFFIXES = (".json", ".yaml", ".yml")


class FileSource:
    """A descriptor document on disk."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    @property
    def label(self) -> str:
        return str(self.path)

    def read(self) -> str:
        if not self.path.exists():
            raise DescriptorLoadError("file not found", source=self.label)
        try:
            return self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise DescriptorLoadError(str(e), source=self.label) from e


class GitRevisionSource:
    """
    A descriptor document as it existed at a git revision.

    Usage:
        source = GitRevisionSource("api/descriptors.json", "HEAD~1")
        text = source.read()
    """

    def __init__(self, path: str | Path, revision: str = "HEAD", repo: str | Path = "."):
        self.path = Path(path).as_posix()
        self.revision = revision
        self.repo = Path(repo)

    @property
    def label(self) -> str:
        return f"{self.revision}:{self.path}"

    def read(self) -> str:
        """
        Return the document text at the revision.

        Raises:
            RevisionNotFoundError: if the revision or the file at it does not exist
        """
        verify_revision(self.revision, self.repo)
        # "rev:./path" resolves against the working directory, not the top level
        object_path = self.path if self.path.startswith("/") else f"./{self.path}"
        result = _git(["show", f"{self.revision}:{object_path}"], self.repo, self.revision)
        if result.returncode != 0:
            raise RevisionNotFoundError(
                self.revision, path=self.path, reason=result.stderr.strip() or None
            )
        return result.stdout


def _git(args: list[str], repo: Path, revision: str) -> subprocess.CompletedProcess:
    cmd = ["git", *args]
    logger.debug("Running %s in %s", " ".join(cmd), repo)
    try:
        return subprocess.run(cmd, cwd=repo, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise RevisionNotFoundError(revision, reason="git executable not found") from e


def verify_revision(revision: str, repo: str | Path = "."):
    """Raise RevisionNotFoundError unless the revision resolves to a commit."""
    result = _git(
        ["rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"], Path(repo), revision
    )
    if result.returncode != 0:
        raise RevisionNotFoundError(revision)


def changed_files(
    revision: str,
    suffixes: Iterable[str] = DESCRIPTOR_SUFFIXES,
    repo: str | Path = "."
) -> list[str]:
    """
    List files with the given suffixes changed since a revision.

    Paths are relative to ``repo``, which may be a subdirectory of the
    work tree; changes outside it are not listed. Files deleted from the
    working tree are skipped.
    """
    repo = Path(repo)
    verify_revision(revision, repo)
    result = _git(["diff", "--name-only", "--relative", revision], repo, revision)
    if result.returncode != 0:
        raise RevisionNotFoundError(revision, reason=result.stderr.strip() or None)

    suffixes = tuple(suffixes)
    files = []
    for line in result.stdout.splitlines():
        name = line.strip()
        if not name or not name.endswith(suffixes):
            continue
        if (repo / name).exists():
            files.append(name)
    return files


def make_source(path: str, revision: Optional[str] = None, repo: str | Path = "."):
    """Pick a git source when a revision is given, a file source otherwise."""
    if revision:
        return GitRevisionSource(path, revision, repo)
    return FileSource(path)
