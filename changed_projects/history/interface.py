"""Abstract interface for version-control history queries."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import logging

logger = logging.getLogger('cpd')


@dataclass(frozen=True)
class QueryResult:
    """Outcome of one history query: either data or an unknown with a reason."""
    lines: List[str] = field(default_factory=list)
    reason: Optional[str] = None

    @classmethod
    def of(cls, lines: List[str]) -> "QueryResult":
        return cls(lines=list(lines))

    @classmethod
    def unknown(cls, reason: str) -> "QueryResult":
        return cls(lines=[], reason=reason)

    @property
    def known(self) -> bool:
        return self.reason is None

    def or_empty(self) -> List[str]:
        """Collapse an unknown result to an empty list."""
        return list(self.lines) if self.known else []

    def first(self) -> Optional[str]:
        """First line of a known result, or None."""
        if self.known and self.lines:
            return self.lines[0]
        return None


class HistoryQuery(ABC):
    """Read-only queries against a repository's history."""

    def __init__(self, repo_root: Path):
        """Initialize the history backend.

        Args:
            repo_root: Path to the repository root
        """
        self.repo_root = repo_root

    @abstractmethod
    def get_vcs_name(self) -> str:
        """Get the name of the version-control tool (e.g., 'git')."""
        pass

    @abstractmethod
    def last_tag(self) -> QueryResult:
        """Describe the nearest reachable tag.

        Returns:
            A result whose first line is the tag name
        """
        pass

    @abstractmethod
    def diff_since(self, ref: str) -> QueryResult:
        """List files differing between ref and the current checkout.

        Args:
            ref: Tag, commit or the HEAD sentinel

        Returns:
            A result holding repository-relative file paths
        """
        pass

    @abstractmethod
    def unstaged_files(self) -> QueryResult:
        """List files modified in the working tree but not staged."""
        pass
