#!/usr/bin/env python3
"""
Changed Projects CLI Tool

Lists the subprojects of a Gradle monorepo that changed since the last
release tag, so CI can build and test only what was touched. Detection is
best-effort: when git history is missing or unreadable the tool reports no
changes instead of failing the pipeline.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional
import logging

from .batch import detect_many
from .config import DetectorSettings
from .detector import ChangeDetector
from .logger import setup_logger
from .models import Module, ModuleListError
from .modules import discover_modules, load_module_manifest, read_module_version
from .output import (
    format_changed_files,
    format_module_listing,
    format_task_paths,
    format_versions,
    modules_to_json,
    write_ci_outputs,
)
from .report import write_change_report

logger = logging.getLogger('cpd')

__version__ = "0.1.0"


def validate_repo_root(repo_path: str) -> Path:
    """Validate and return the resolved repository root."""
    repo_root = Path(repo_path).resolve()
    if not repo_root.exists():
        raise FileNotFoundError(f"Repository path does not exist: {repo_root}")
    if not repo_root.is_dir():
        raise ValueError(f"Repository path is not a directory: {repo_root}")
    return repo_root


def load_modules(repo_root: Path, modules_file: Optional[str] = None) -> List[Module]:
    """Module list from an explicit manifest, or from the root settings script."""
    if modules_file:
        return load_module_manifest(Path(modules_file))
    return discover_modules(repo_root)


def versions_phase(repo_root: Path, modules: List[Module]) -> None:
    rows = [(module.name, read_module_version(repo_root, module)) for module in modules]
    print(format_versions(rows))


def detect_phase(repo_root: Path, modules: List[Module], args: argparse.Namespace,
                 settings: DetectorSettings) -> None:
    """Detect changes in one repository and render them in the requested mode."""
    logger.debug(f"Repository: {repo_root}")
    logger.debug(f"Modules: {', '.join(module.name for module in modules) or '(none)'}")

    detector = ChangeDetector(repo_root, settings=settings)
    result = detector.detect(modules)

    if args.files:
        print(format_changed_files(result))
    elif args.json:
        print(modules_to_json(result.modules))
    elif args.ci_output:
        write_ci_outputs(result.modules, settings.ci_output_env)
    elif args.tasks:
        if not result.modules:
            logger.info("No changed projects detected")
        print(format_task_paths(result.modules, args.tasks))
    else:
        print(format_module_listing(result.modules))

    if args.report:
        write_change_report(result, modules, Path(args.report))


def batch_phase(repo_roots: List[Path], args: argparse.Namespace, settings: DetectorSettings) -> None:
    """Detect changes in several repositories at once."""
    results = detect_many(
        repo_roots,
        lambda root: load_modules(root, args.modules_file),
        settings,
        show_progress=not args.json
    )

    if args.json:
        payload = {str(root): result.module_names for root, result in results.items()}
        print(json.dumps(payload, separators=(",", ":")))
        return

    for root, result in results.items():
        print(f"\n{root}")
        print(format_module_listing(result.modules))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="changed-projects",
        description="List the subprojects changed since the last release tag",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Human-readable listing for the repository in the current directory
  changed-projects

  # JSON array for CI scripting
  changed-projects --repo /path/to/monorepo --json

  # Set GitHub Actions step outputs (projects, has-changes)
  changed-projects --ci-output

  # Gradle task paths for the changed projects
  ./gradlew $(changed-projects --tasks test)

  # Several repositories at once
  changed-projects --repo ../service-a --repo ../service-b --json
        """
    )

    parser.add_argument(
        "--repo",
        dest="repos",
        action="append",
        help="Repository root (default: current directory). Repeat for several repositories"
    )
    parser.add_argument(
        "--modules-file",
        help="YAML manifest listing modules (default: read include(...) from settings.gradle[.kts])"
    )

    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--list",
        action="store_true",
        help="Print the changed projects (default)"
    )
    mode_group.add_argument(
        "--json",
        action="store_true",
        help="Print the changed projects as a JSON array"
    )
    mode_group.add_argument(
        "--files",
        action="store_true",
        help="Print the files changed since the last release"
    )
    mode_group.add_argument(
        "--ci-output",
        action="store_true",
        help="Write projects=<json> and has-changes=<bool> to the CI output file"
    )
    mode_group.add_argument(
        "--tasks",
        metavar="TASK",
        help="Print Gradle task paths of the changed projects, e.g. ':library-a:TASK'"
    )
    mode_group.add_argument(
        "--versions",
        action="store_true",
        help="Print the declared version of every project"
    )

    parser.add_argument(
        "--report",
        metavar="CSV",
        help="Also write a CSV report mapping changed files to projects"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging of the git commands and their results"
    )
    parser.add_argument(
        "--log-dir",
        help="Directory for a debug log file (with --debug)"
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"changed-projects v{__version__}"
    )
    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    repos = args.repos or ["."]
    if len(repos) > 1 and (args.files or args.ci_output or args.tasks or args.versions or args.report):
        parser.error("several --repo values only support --list and --json")

    # Keep stdout clean when it carries machine-readable output
    machine_readable = args.json or args.ci_output or args.tasks is not None
    setup_logger(args.debug, Path(args.log_dir) if args.log_dir else None,
                 stream=sys.stderr if machine_readable else sys.stdout)

    try:
        settings = DetectorSettings.from_env()
        repo_roots = [validate_repo_root(repo) for repo in repos]

        if len(repo_roots) > 1:
            batch_phase(repo_roots, args, settings)
            return

        repo_root = repo_roots[0]
        modules = load_modules(repo_root, args.modules_file)

        if args.versions:
            versions_phase(repo_root, modules)
        else:
            detect_phase(repo_root, modules, args, settings)

    except KeyboardInterrupt:
        logger.warning("\n⚠ Operation cancelled by user")
        sys.exit(1)
    except (ModuleListError, ValueError, FileNotFoundError) as e:
        logger.error(f"✗ {e}")
        sys.exit(1)
    except Exception as e:
        logger.critical(f"✗ An unexpected error occurred: {str(e)}", exc_info=args.debug)
        sys.exit(1)


if __name__ == "__main__":
    main()
