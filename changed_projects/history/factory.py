"""History backend factory for automatic detection and creation."""

from pathlib import Path
from typing import Optional
import logging

from .interface import HistoryQuery
from .git_history import GitHistory
from ..config import DetectorSettings

logger = logging.getLogger('cpd')

SUPPORTED_VCS = ("git",)


def detect_vcs_type(repo_root: Path) -> Optional[str]:
    """Detect the version-control tool for a repository root.

    Args:
        repo_root: Path to the repository root

    Returns:
        The tool name ('git') or None if not detected
    """
    # .git is a directory in clones and a file in worktrees and submodules
    if (repo_root / ".git").exists():
        return "git"
    return None


def create_history_query(repo_root: Path, vcs_type: Optional[str] = None,
                         settings: Optional[DetectorSettings] = None) -> HistoryQuery:
    """Create the history backend for a repository.

    An undetected tool falls back to git, whose queries then fail leniently.

    Args:
        repo_root: Path to the repository root
        vcs_type: Optional override for tool detection
        settings: Executable and timeout settings

    Returns:
        A HistoryQuery instance

    Raises:
        ValueError: If vcs_type names an unsupported tool
    """
    settings = settings or DetectorSettings()

    if vcs_type is None:
        vcs_type = detect_vcs_type(repo_root)
        if vcs_type is None:
            logger.debug(f"No version-control metadata found in {repo_root}, assuming git")
            vcs_type = "git"

    if vcs_type == "git":
        logger.debug(f"Creating git history for repository: {repo_root}")
        return GitHistory(repo_root, settings.git_executable, settings.git_timeout)

    raise ValueError(f"Unsupported version-control tool '{vcs_type}'. Expected one of: {', '.join(SUPPORTED_VCS)}")
