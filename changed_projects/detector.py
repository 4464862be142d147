"""Detection of the subprojects changed since the last release tag."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence
import logging

from .config import DetectorSettings
from .history import HistoryQuery, create_history_query
from .models import HEAD_SENTINEL, Module, unique_paths
from .modules import validate_modules

logger = logging.getLogger('cpd')


@dataclass
class DetectionResult:
    """Everything one detection run found."""
    since: str
    committed: List[str] = field(default_factory=list)
    unstaged: List[str] = field(default_factory=list)
    modules: List[Module] = field(default_factory=list)

    @property
    def changed_files(self) -> List[str]:
        return unique_paths(self.committed + self.unstaged)

    @property
    def module_names(self) -> List[str]:
        return [module.name for module in self.modules]

    @property
    def has_changes(self) -> bool:
        return bool(self.modules)


def filter_affected_modules(modules: Sequence[Module], changed_files: Iterable[str]) -> List[Module]:
    """Keep the modules that own at least one changed file, in input order."""
    paths = unique_paths(changed_files)
    if not paths:
        return []

    affected = []
    seen_names = set()
    for module in modules:
        if module.name in seen_names:
            continue
        if any(module.owns(path) for path in paths):
            affected.append(module)
            seen_names.add(module.name)
    return affected


class ChangeDetector:
    """Best-effort detection of changes since the last release.

    Every history query failure is treated as "no information": the tag falls
    back to HEAD and file lists fall back to empty, so CI keeps going.
    """

    def __init__(self, repo_root: Path, history: Optional[HistoryQuery] = None,
                 settings: Optional[DetectorSettings] = None):
        """Initialize the detector.

        Args:
            repo_root: Path to the repository root
            history: History backend; created from the repository when omitted
            settings: Settings used when creating the history backend

        Raises:
            ValueError: If repo_root is not an existing directory
        """
        repo_root = Path(repo_root)
        if not repo_root.is_dir():
            raise ValueError(f"Repository root is not a directory: {repo_root}")
        self.repo_root = repo_root
        self.history = history or create_history_query(repo_root, settings=settings)

    def resolve_last_tag(self) -> str:
        """Return the most recent reachable tag, or HEAD when there is none."""
        result = self.history.last_tag()
        tag = result.first()
        if tag is None:
            logger.info("No release tag found, comparing against the previous commit")
            if result.reason:
                logger.debug(f"Tag lookup: {result.reason}")
            return HEAD_SENTINEL
        logger.debug(f"Last release tag: {tag}")
        return tag

    def changed_since(self, ref: str) -> List[str]:
        """Files differing between ref and HEAD; empty when history is unreadable."""
        result = self.history.diff_since(ref)
        if not result.known:
            logger.info(f"Could not list files changed since {ref}, assuming none")
            logger.debug(f"Diff: {result.reason}")
        return result.or_empty()

    def unstaged_files(self) -> List[str]:
        """Files with working-tree modifications; empty when unavailable."""
        result = self.history.unstaged_files()
        if not result.known:
            logger.info("Could not list unstaged files, assuming none")
            logger.debug(f"Unstaged: {result.reason}")
        return result.or_empty()

    def changed_files(self) -> List[str]:
        """Union of committed changes since the last tag and unstaged files."""
        return self.detect([]).changed_files

    def detect(self, modules: Sequence[Module]) -> DetectionResult:
        """Run tag, diff and unstaged queries in order and map files to modules."""
        modules = validate_modules(modules)
        since = self.resolve_last_tag()
        committed = self.changed_since(since)
        unstaged = self.unstaged_files()

        result = DetectionResult(since=since, committed=committed, unstaged=unstaged)
        result.modules = filter_affected_modules(modules, result.changed_files)
        logger.debug(f"{len(result.changed_files)} changed files, "
                     f"{len(result.modules)}/{len(modules)} modules affected")
        return result

    def affected_modules(self, modules: Sequence[Module]) -> List[Module]:
        """Modules touched since the last release, in input order."""
        return self.detect(modules).modules


def affected_modules(repo_root: Path, modules: Sequence[Module],
                     settings: Optional[DetectorSettings] = None) -> List[Module]:
    """Convenience wrapper: detect affected modules for one repository."""
    return ChangeDetector(repo_root, settings=settings).affected_modules(modules)
