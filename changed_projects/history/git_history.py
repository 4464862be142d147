"""Git implementation of the history queries."""

import subprocess
from pathlib import Path
from typing import List
import logging

from ..models import HEAD_SENTINEL, unique_paths
from .interface import HistoryQuery, QueryResult

logger = logging.getLogger('cpd')

# Print non-ASCII paths verbatim instead of as octal escapes
GIT_OPTIONS = ["-c", "core.quotePath=false"]

_C_ESCAPES = {
    "a": 7, "b": 8, "t": 9, "n": 10, "v": 11, "f": 12, "r": 13,
    '"': ord('"'), "\\": ord("\\"),
}


def unquote_path(line: str) -> str:
    """Undo git's C-style quoting of a path, e.g. "tab\\there.txt".

    git still quotes paths containing a double quote, a backslash or a
    control character when core.quotePath is off. Unquoted lines are
    returned unchanged.
    """
    if len(line) < 2 or not (line.startswith('"') and line.endswith('"')):
        return line

    body = line[1:-1]
    decoded = bytearray()
    i = 0
    while i < len(body):
        char = body[i]
        if char != "\\" or i + 1 == len(body):
            decoded.extend(char.encode("utf-8"))
            i += 1
            continue
        escape = body[i + 1]
        if escape in "0123" and i + 4 <= len(body) and all(c in "01234567" for c in body[i + 1:i + 4]):
            decoded.append(int(body[i + 1:i + 4], 8))
            i += 4
        elif escape in _C_ESCAPES:
            decoded.append(_C_ESCAPES[escape])
            i += 2
        else:
            decoded.extend(("\\" + escape).encode("utf-8"))
            i += 2
    return decoded.decode("utf-8", errors="replace")


class GitHistory(HistoryQuery):
    """Runs read-only git commands in the repository root.

    File lists are produced with --relative, so paths are relative to
    repo_root even when it is a subdirectory of the git checkout, and
    files outside of it are left out.
    """

    def __init__(self, repo_root: Path, git_executable: str = "git", timeout: int = 30):
        super().__init__(repo_root)
        self.git_executable = git_executable
        self.timeout = timeout

    def get_vcs_name(self) -> str:
        return "git"

    def _run(self, args: List[str]) -> QueryResult:
        """Run one git command, turning every failure into an unknown result."""
        command = [self.git_executable] + GIT_OPTIONS + args
        command_str = ' '.join(command)
        logger.debug(f"Running: {command_str} (cwd={self.repo_root})")

        try:
            result = subprocess.run(
                command,
                cwd=self.repo_root,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired:
            return QueryResult.unknown(f"'{command_str}' timed out after {self.timeout}s")
        except FileNotFoundError:
            return QueryResult.unknown(f"'{self.git_executable}' is not available or {self.repo_root} does not exist")
        except OSError as e:
            return QueryResult.unknown(f"'{command_str}' could not be started: {e}")

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            logger.debug(f"Exit code {result.returncode}: {stderr}")
            return QueryResult.unknown(f"'{command_str}' exited with code {result.returncode}")

        lines = [line.strip() for line in (result.stdout or "").splitlines()]
        return QueryResult.of([line for line in lines if line])

    def _file_list(self, args: List[str]) -> QueryResult:
        result = self._run(args)
        if not result.known:
            return result
        return QueryResult.of(unique_paths(unquote_path(line) for line in result.lines))

    def last_tag(self) -> QueryResult:
        result = self._run(["describe", "--tags", "--abbrev=0"])
        if result.known and not result.lines:
            return QueryResult.unknown("git describe returned no tag")
        return result

    def diff_since(self, ref: str) -> QueryResult:
        if ref != HEAD_SENTINEL:
            return self._file_list(["diff", "--name-only", "--relative", ref, "HEAD"])

        # No tag: compare against the parent commit
        result = self._file_list(["diff", "--name-only", "--relative", "HEAD~1", "HEAD"])
        if result.known:
            return result

        # A single commit has no parent; report the files it introduced
        head = self._run(["rev-parse", "--verify", "--quiet", "HEAD"])
        if not head.known:
            return QueryResult.unknown("repository has no commits")
        logger.debug("HEAD has no parent, listing files of the root commit")
        return self._file_list(["diff-tree", "-r", "--root", "--no-commit-id", "--name-only", "--relative", "HEAD"])

    def unstaged_files(self) -> QueryResult:
        return self._file_list(["diff", "--name-only", "--relative"])
