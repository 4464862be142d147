"""Enumeration and validation of the monorepo's subprojects."""

import re
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

import yaml

from .models import Module, ModuleListError

logger = logging.getLogger('cpd')

SETTINGS_FILES = ("settings.gradle.kts", "settings.gradle")
UNSPECIFIED_VERSION = "unspecified"

_INCLUDE_PATTERN = re.compile(r"\binclude\b\s*\(?\s*((?:[\"'][^\"'\n]+[\"']\s*,?\s*)+)\)?")
_QUOTED_PATTERN = re.compile(r"[\"']([^\"'\n]+)[\"']")
_PROJECT_DIR_PATTERN = re.compile(
    r"project\(\s*[\"']([^\"']+)[\"']\s*\)\.projectDir\s*=\s*(?:file\(\s*)?[\"']([^\"']+)[\"']"
)
_PROPERTIES_VERSION_PATTERN = re.compile(r"^\s*version\s*=\s*(.*?)\s*$", re.MULTILINE)
_SCRIPT_VERSION_PATTERN = re.compile(r"^\s*version\s*=\s*[\"']([^\"']+)[\"']", re.MULTILINE)


def _strip_comments(content: str) -> str:
    content = re.sub(r"/\*.*?\*/", "", content, flags=re.DOTALL)
    return re.sub(r"(?m)//.*$", "", content)


def _project_path_to_module(project_path: str) -> Tuple[str, str]:
    """Map a Gradle project path like ':libs:core' to (name, root)."""
    segments = [segment for segment in project_path.split(":") if segment]
    if not segments:
        raise ModuleListError(f"Invalid project path in settings file: {project_path!r}")
    return segments[-1], "/".join(segments)


def parse_settings_includes(content: str) -> List[Module]:
    """Parse include(...) statements of a Groovy or Kotlin settings script.

    Custom locations assigned through project(":x").projectDir = file("dir")
    replace the default root derived from the project path.

    A module is named after the last segment of its project path. Projects
    sharing that segment, like ':a:core' and ':b:core', are named by their
    full path without the leading colon ('a:core', 'b:core').
    """
    content = _strip_comments(content)

    project_dirs = {}
    for project_path, directory in _PROJECT_DIR_PATTERN.findall(content):
        project_dirs[":" + project_path.lstrip(":")] = directory

    includes = {}
    for match in _INCLUDE_PATTERN.finditer(content):
        for project_path in _QUOTED_PATTERN.findall(match.group(1)):
            name, root = _project_path_to_module(project_path)
            project_path = ":" + project_path.lstrip(":")
            includes.setdefault(project_path, (name, project_dirs.get(project_path, root)))

    leaf_counts = Counter(name for name, _ in includes.values())
    modules = []
    for project_path, (name, root) in includes.items():
        if leaf_counts[name] > 1:
            name = project_path.lstrip(":")
        modules.append(Module(name, root, project_path))
    return modules


def find_settings_file(directory: Path) -> Optional[Path]:
    for file_name in SETTINGS_FILES:
        candidate = directory / file_name
        if candidate.is_file():
            return candidate
    return None


def discover_modules(repo_root: Path) -> List[Module]:
    """Read the subproject list from the root settings script.

    Raises:
        ModuleListError: If repo_root is not the root project or has no settings script
    """
    repo_root = Path(repo_root).resolve()
    settings_file = find_settings_file(repo_root)

    if settings_file is None:
        for parent in repo_root.parents:
            parent_settings = find_settings_file(parent)
            if parent_settings is not None:
                raise ModuleListError(
                    f"Change detection must be run from the root project: "
                    f"{repo_root} is inside the build defined by {parent_settings}"
                )
        raise ModuleListError(
            f"No {' or '.join(SETTINGS_FILES)} found in {repo_root}. "
            f"Pass --modules-file to list the modules explicitly"
        )

    logger.debug(f"Reading subprojects from {settings_file}")
    modules = parse_settings_includes(settings_file.read_text(encoding='utf-8'))
    return validate_modules(modules)


def _module_from_entry(entry: Any) -> Module:
    if isinstance(entry, Module):
        return entry
    if isinstance(entry, dict):
        if "name" not in entry:
            raise ModuleListError(f"Module entry is missing 'name': {entry!r}")
        return Module(entry["name"], entry.get("root", entry["name"]), entry.get("path"))
    if isinstance(entry, (tuple, list)) and len(entry) == 2:
        return Module(entry[0], entry[1])
    raise ModuleListError(f"Cannot interpret module entry: {entry!r}")


def validate_modules(entries: Iterable[Any]) -> List[Module]:
    """Turn module entries into Module values and reject malformed lists.

    Entries may be Module instances, (name, root) pairs or {name, root} mappings.

    Raises:
        ModuleListError: On malformed entries or duplicate names
    """
    if entries is None or isinstance(entries, (str, bytes, dict)):
        raise ModuleListError(f"Module list must be a sequence of modules, got {type(entries).__name__}")

    modules = [_module_from_entry(entry) for entry in entries]

    seen: Dict[str, Module] = {}
    for module in modules:
        if module.name in seen:
            raise ModuleListError(
                f"Duplicate module name '{module.name}' "
                f"(roots '{seen[module.name].root}' and '{module.root}')"
            )
        seen[module.name] = module
    return modules


def load_module_manifest(manifest_path: Path) -> List[Module]:
    """Load modules from a YAML manifest.

    The manifest is either a list of {name, root} mappings or a mapping with a
    'modules' key holding that list.

    Raises:
        FileNotFoundError: If the manifest does not exist
        ModuleListError: If the manifest content is malformed
    """
    manifest_path = Path(manifest_path)
    if not manifest_path.exists():
        raise FileNotFoundError(f"Module manifest not found: {manifest_path}")

    with open(manifest_path, 'r', encoding='utf-8') as f:
        try:
            content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ModuleListError(f"Module manifest {manifest_path} is not valid YAML: {e}")

    if isinstance(content, dict):
        content = content.get("modules")
    if not isinstance(content, list):
        raise ModuleListError(f"Module manifest {manifest_path} must contain a list of modules")

    return validate_modules(content)


def read_module_version(repo_root: Path, module: Module) -> str:
    """Read a subproject's declared version.

    Looks at the module's gradle.properties, then its build script, and
    falls back to Gradle's 'unspecified'.
    """
    module_dir = Path(repo_root) / module.root

    properties_file = module_dir / "gradle.properties"
    if properties_file.is_file():
        try:
            match = _PROPERTIES_VERSION_PATTERN.search(properties_file.read_text(encoding='utf-8'))
            if match and match.group(1):
                return match.group(1)
        except OSError as e:
            logger.warning(f"Could not read {properties_file}: {e}")

    for script_name in ("build.gradle.kts", "build.gradle"):
        script = module_dir / script_name
        if not script.is_file():
            continue
        try:
            match = _SCRIPT_VERSION_PATTERN.search(script.read_text(encoding='utf-8'))
        except OSError as e:
            logger.warning(f"Could not read {script}: {e}")
            continue
        if match:
            return match.group(1)

    return UNSPECIFIED_VERSION
