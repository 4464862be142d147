"""CSV report mapping each changed file to its owning module."""

import csv
from pathlib import Path
from typing import Any, Dict, List, Sequence
import logging

import pandas as pd

from .detector import DetectionResult
from .models import Module

logger = logging.getLogger('cpd')

REPORT_COLUMNS = ['file_path', 'module', 'source', 'since']


def build_report_rows(result: DetectionResult, modules: Sequence[Module]) -> List[Dict[str, Any]]:
    """One row per changed file; unstaged wins over committed for files in both."""
    unstaged = set(result.unstaged)
    rows = []
    for path in result.changed_files:
        owner = next((module.name for module in modules if module.owns(path)), "")
        rows.append({
            'file_path': path,
            'module': owner,
            'source': 'unstaged' if path in unstaged else 'committed',
            'since': result.since,
        })
    return rows


def write_change_report(result: DetectionResult, modules: Sequence[Module], output_file: Path) -> Path:
    """Write the change report CSV and return its path."""
    output_file = Path(output_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    df = pd.DataFrame(build_report_rows(result, modules), columns=REPORT_COLUMNS)
    df.to_csv(output_file, index=False, quoting=csv.QUOTE_ALL)

    logger.info(f"✓ Change report saved to {output_file} ({len(df)} files)")
    return output_file
