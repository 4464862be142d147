"""Change detection across several repositories."""

from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence
import logging

from tqdm import tqdm

from .config import DetectorSettings
from .detector import ChangeDetector, DetectionResult
from .models import Module

logger = logging.getLogger('cpd')


def detect_many(repo_roots: Sequence[Path],
                modules_for: Callable[[Path], List[Module]],
                settings: Optional[DetectorSettings] = None,
                show_progress: bool = True) -> Dict[Path, DetectionResult]:
    """Detect changed modules for each repository in parallel.

    Each repository gets its own detector; runs share no state and each one
    queries its history sequentially.

    Args:
        repo_roots: Repository root directories
        modules_for: Returns the module list for a repository root
        settings: Settings for every detector
        show_progress: Show a progress bar on stderr

    Returns:
        Results keyed by repository root, in the order of repo_roots.
        A root given more than once is detected once.

    Raises:
        ValueError: If a repository root or its module list is invalid
    """
    settings = settings or DetectorSettings()

    # Each repository runs once; read every module list before any git call
    unique_roots = list(dict.fromkeys(Path(root) for root in repo_roots))
    jobs = [(root, modules_for(root)) for root in unique_roots]

    def _detect_worker(repo_root: Path, modules: List[Module]) -> DetectionResult:
        return ChangeDetector(repo_root, settings=settings).detect(modules)

    results: Dict[Path, DetectionResult] = {}
    workers = max(1, min(settings.max_workers, len(jobs)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_root = {executor.submit(_detect_worker, root, modules): root for root, modules in jobs}

        progress_bar = tqdm(as_completed(future_to_root), total=len(jobs),
                            desc="Detecting changes", disable=not show_progress,
                            ascii=True)
        for future in progress_bar:
            root = future_to_root[future]
            results[root] = future.result()
            logger.debug(f"{root}: {len(results[root].modules)} modules affected")

    return {root: results[root] for root, _ in jobs}
