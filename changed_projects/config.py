"""Runtime settings loaded from the environment."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_GIT_TIMEOUT = 30
DEFAULT_MAX_WORKERS = 4


def _positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be greater than zero, got {value}")
    return value


@dataclass(frozen=True)
class DetectorSettings:
    """Settings shared by the detector, the git backend and the CLI."""
    git_executable: str = "git"
    git_timeout: int = DEFAULT_GIT_TIMEOUT
    ci_output_env: str = "GITHUB_OUTPUT"
    max_workers: int = DEFAULT_MAX_WORKERS

    @classmethod
    def from_env(cls) -> "DetectorSettings":
        """Build settings from CPD_* environment variables (and a .env file if present).

        Raises:
            ValueError: If a numeric setting is malformed
        """
        load_dotenv()
        return cls(
            git_executable=os.getenv("CPD_GIT_EXECUTABLE") or "git",
            git_timeout=_positive_int("CPD_GIT_TIMEOUT", DEFAULT_GIT_TIMEOUT),
            ci_output_env=os.getenv("CPD_CI_OUTPUT_ENV") or "GITHUB_OUTPUT",
            max_workers=_positive_int("CPD_MAX_WORKERS", DEFAULT_MAX_WORKERS),
        )
