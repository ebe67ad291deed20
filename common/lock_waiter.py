# common/lock_waiter.py
# -*- coding: utf-8 -*-
"""
Waits for other package-manager activity to finish before the setup mutates
the system.

Two signals count as "busy": a running process whose name exactly matches one
of the configured package-manager processes, and an open descriptor on one of
the dpkg lock files.
"""

import logging
import time
from typing import List, Optional

from common.command_utils import get_symbols, log_message, run_command
from common.exceptions import LockTimeoutError
from setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def _probe(
    command: List[str],
    app_settings: AppSettings,
    logger_to_use: logging.Logger,
) -> bool:
    """
    True when ``command`` exits 0. A missing tool counts as "not busy" and is
    logged as a warning.
    """
    try:
        result = run_command(
            command,
            app_settings,
            check=False,
            capture_output=True,
            current_logger=logger_to_use,
        )
    except FileNotFoundError:
        symbols = get_symbols(app_settings)
        log_message(
            f"{symbols.get('warning', '⚠️')} '{command[0]}' is not available; skipping this lock check.",
            "warning",
            logger_to_use,
            app_settings,
        )
        return False
    return result.returncode == 0


def find_running_package_processes(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> List[str]:
    """Names of configured package-manager processes currently running."""
    logger_to_use = current_logger if current_logger else module_logger
    running: List[str] = []
    for process_name in app_settings.lock.processes:
        if _probe(["pgrep", "-x", process_name], app_settings, logger_to_use):
            running.append(process_name)
    return running


def find_held_lock_files(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> List[str]:
    """Lock files that some process currently holds open (per ``fuser``)."""
    logger_to_use = current_logger if current_logger else module_logger
    held: List[str] = []
    for lock_file in app_settings.lock.lock_files:
        if _probe(["fuser", lock_file], app_settings, logger_to_use):
            held.append(lock_file)
    return held


def wait_for_package_manager(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    max_wait: Optional[int] = None,
    poll_interval: Optional[int] = None,
) -> None:
    """
    Block until no package-manager process runs and no lock file is held.

    Polls at a fixed interval; elapsed time is accumulated per interval slept.

    Args:
        app_settings: Settings providing the process names, lock files and
            default timings.
        current_logger: Optional logger instance.
        max_wait: Seconds to wait before giving up. Defaults to
            ``app_settings.lock.max_wait_seconds``.
        poll_interval: Seconds between checks. Defaults to
            ``app_settings.lock.poll_interval_seconds``.

    Raises:
        LockTimeoutError: If the package manager is still busy once the
            elapsed wait exceeds ``max_wait``.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    limit = (
        max_wait if max_wait is not None else app_settings.lock.max_wait_seconds
    )
    interval = (
        poll_interval
        if poll_interval is not None
        else app_settings.lock.poll_interval_seconds
    )

    log_message(
        f"{symbols.get('info', 'ℹ️')} Checking for package manager locks...",
        "info",
        logger_to_use,
        app_settings,
    )
    elapsed = 0
    while True:
        holders = find_running_package_processes(
            app_settings, logger_to_use
        ) + find_held_lock_files(app_settings, logger_to_use)
        if not holders:
            log_message(
                f"{symbols.get('success', '✅')} Package manager is available.",
                "info",
                logger_to_use,
                app_settings,
            )
            return

        if elapsed >= limit:
            log_message(
                f"{symbols.get('error', '❌')} Timed out after {elapsed}s waiting for: {', '.join(holders)}",
                "error",
                logger_to_use,
                app_settings,
            )
            raise LockTimeoutError(elapsed, holders)

        log_message(
            f"{symbols.get('warning', '⚠️')} Package manager busy ({', '.join(holders)}). Waiting {interval}s ({elapsed}/{limit}s)...",
            "warning",
            logger_to_use,
            app_settings,
        )
        time.sleep(interval)
        elapsed += interval
