# installer/source_build.py
# -*- coding: utf-8 -*-
"""
Helpers for building tools from source: checking out a tagged git tree and
running build commands inside it.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from common.command_utils import run_command
from common.exceptions import BuildError
from setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def run_build_command(
    command: List[str],
    cwd: Path,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    check: bool = True,
) -> None:
    """
    Run one build command in ``cwd``.

    Raises:
        BuildError: If the command fails and ``check`` is True.
    """
    logger_to_use = current_logger if current_logger else module_logger
    try:
        run_command(
            command,
            app_settings,
            check=check,
            current_logger=logger_to_use,
            cwd=str(cwd),
        )
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        raise BuildError(
            f"'{' '.join(command)}' failed in {cwd}: {e}"
        ) from e


def checkout_tag(
    repo_url: str,
    checkout_dir: Path,
    tag: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> Path:
    """
    Clone ``repo_url`` into ``checkout_dir`` (reusing an existing clone) and
    check out ``tag``.

    Returns:
        The checkout directory.

    Raises:
        BuildError: If cloning, fetching or checking out fails.
    """
    checkout_dir.parent.mkdir(parents=True, exist_ok=True)
    if not (checkout_dir / ".git").is_dir():
        run_build_command(
            ["git", "clone", repo_url, str(checkout_dir)],
            checkout_dir.parent,
            app_settings,
            current_logger,
        )
    run_build_command(
        ["git", "fetch", "--all", "--tags"],
        checkout_dir,
        app_settings,
        current_logger,
    )
    run_build_command(
        ["git", "checkout", tag], checkout_dir, app_settings, current_logger
    )
    return checkout_dir
