"""Value types shared across the detector."""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

HEAD_SENTINEL = "HEAD"


class ModuleListError(ValueError):
    """Raised when the module list handed to the detector is malformed."""


def normalize_path(path: str) -> str:
    """Normalize a repository-relative path to forward slashes without './' or trailing '/'."""
    normalized = path.strip().replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.rstrip("/")


def unique_paths(paths: Iterable[str]) -> List[str]:
    """Drop blanks and duplicates from changed paths, keeping first-seen order.

    Changed paths come from git with forward slashes already; a backslash
    in them is part of a file name and is kept.
    """
    seen = {}
    for path in paths:
        path = path.strip()
        if path:
            seen.setdefault(path, None)
    return list(seen)


@dataclass(frozen=True)
class Module:
    """An independently versioned subproject and its root directory."""
    name: str
    root: str
    project_path: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ModuleListError(f"Module name must be a non-empty string, got {self.name!r}")
        if not isinstance(self.root, str):
            raise ModuleListError(f"Module '{self.name}' root must be a string, got {self.root!r}")

        root = normalize_path(self.root)
        if not root:
            raise ModuleListError(f"Module '{self.name}' has an empty root directory")
        if root.startswith("/") or (len(root) > 1 and root[1] == ":"):
            raise ModuleListError(f"Module '{self.name}' root must be relative to the repository: {self.root}")
        if ".." in root.split("/"):
            raise ModuleListError(f"Module '{self.name}' root must not leave the repository: {self.root}")
        object.__setattr__(self, "root", root)
        if not self.project_path:
            object.__setattr__(self, "project_path", ":" + root.replace("/", ":"))

    def owns(self, file_path: str) -> bool:
        """Return True if file_path lies inside this module's root directory.

        The match is case-sensitive and stops at path boundaries, so a module
        rooted at 'lib' does not own 'lib-other/x.txt'.
        """
        return file_path == self.root or file_path.startswith(self.root + "/")
