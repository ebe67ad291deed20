# setup/config.py
"""
Static constants for the workstation setup.

Values here are not user-configurable; everything that a user may reasonably
want to change lives in ``setup.config_models.AppSettings``.
"""

from pathlib import Path

PROGRAM_NAME: str = "workstation-setup"
SCRIPT_VERSION: str = "1.0.0"

# Log files are written to a fixed temp directory, one per run.
LOG_DIR: Path = Path("/tmp")
LOG_TIMESTAMP_FORMAT: str = "%Y%m%d_%H%M%S"

# Environment used for every apt/dpkg invocation in automatic mode.
NONINTERACTIVE_APT_ENV: dict[str, str] = {
    "DEBIAN_FRONTEND": "noninteractive",
}

# Exit codes.
EXIT_OK: int = 0
EXIT_FATAL: int = 1
EXIT_INTERRUPTED: int = 130
