"""Text, JSON and CI renderings of detection results."""

import json
import os
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple
import logging

from .detector import DetectionResult
from .models import Module

logger = logging.getLogger('cpd')


def _banner(title: str, lines: List[str], width: Optional[int] = None) -> str:
    header = f"=== {title} ==="
    footer = "=" * (width or len(header))
    body = lines or ["No changes detected"]
    return "\n".join([header] + body + [footer])


def format_module_listing(modules: Sequence[Module]) -> str:
    """Human-readable listing of changed modules."""
    return _banner("Changed Projects", [f"  - {module.name}" for module in modules])


def format_changed_files(result: DetectionResult) -> str:
    """Listing of every changed file since the comparison point."""
    return _banner(f"Changed Files (since {result.since})",
                   [f"  {path}" for path in result.changed_files], width=40)


def format_versions(versions: Iterable[Tuple[str, str]]) -> str:
    lines = [f"{name}: {version}" for name, version in versions]
    return _banner("Project Versions", lines or ["No projects configured"], width=24)


def format_task_paths(modules: Sequence[Module], task: str) -> str:
    """Gradle task paths for the given modules, e.g. ':library-a:test'."""
    return " ".join(f"{module.project_path}:{task}" for module in modules)


def modules_to_json(modules: Sequence[Module]) -> str:
    """Compact JSON array of module names, e.g. ["library-a","library-b"]."""
    return json.dumps([module.name for module in modules], separators=(",", ":"))


def ci_output_lines(modules: Sequence[Module]) -> List[str]:
    has_changes = "true" if modules else "false"
    return [f"projects={modules_to_json(modules)}", f"has-changes={has_changes}"]


def write_ci_outputs(modules: Sequence[Module], output_env: str = "GITHUB_OUTPUT",
                     environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    """Publish the changed projects as CI step outputs.

    Appends key=value lines to the file named by the output_env variable when
    running under CI; prints them to stdout otherwise.

    Returns:
        The output file that was written, or None when printing
    """
    environ = os.environ if environ is None else environ
    lines = ci_output_lines(modules)
    output_file = environ.get(output_env)

    if output_file:
        with open(output_file, 'a', encoding='utf-8') as f:
            for line in lines:
                f.write(line + "\n")
        logger.info(f"Set CI output: {lines[0]}")
        return Path(output_file)

    for line in lines:
        print(line)
    return None
