# common/file_utils.py
# -*- coding: utf-8 -*-
"""
File system utility functions: idempotent writes into configuration files,
timestamped backups and scratch-directory cleanup.

Writes happen directly from the (root) setup process. When a file belongs to
the target user, ownership is handed back through ``fix_ownership``.
"""

import datetime
import logging
import shutil
from pathlib import Path
from typing import List, Optional, Union

from common.command_utils import get_symbols, log_message
from common.user_context import UserContext, fix_ownership
from setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _create_parents(path: Path) -> List[Path]:
    """Create missing parent directories, returning the ones created (outermost first)."""
    created: List[Path] = []
    parent = path.parent
    while not parent.exists():
        created.append(parent)
        parent = parent.parent
    created.reverse()
    path.parent.mkdir(parents=True, exist_ok=True)
    return created


def _terminated(content: str) -> str:
    return content if content.endswith("\n") else content + "\n"


def _hand_over(
    paths: List[Path],
    user_context: Optional[UserContext],
    app_settings: Optional[AppSettings],
    logger_to_use: logging.Logger,
) -> None:
    if user_context is None:
        return
    for item in paths:
        fix_ownership(
            item, user_context, app_settings, current_logger=logger_to_use
        )


def ensure_line_in_file(
    path: PathLike,
    marker: str,
    content: str,
    user_context: Optional[UserContext] = None,
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Make sure ``content`` is present in ``path``, identified by ``marker``.

    - Missing file: created (with parent directories) containing exactly
      ``content``, newline-terminated.
    - File already containing ``marker``: left byte-for-byte unchanged.
    - Otherwise ``content`` is appended once, preceded by a newline when the
      file does not already end with one.

    Args:
        path: Target file.
        marker: Substring whose presence means the content is already there.
        content: Text to add.
        user_context: When given, the file (and any directory created for it)
            is handed to this user afterwards.
        app_settings: Settings providing log symbols.
        current_logger: Optional logger instance.

    Returns:
        True if the file was created or modified, False if it was unchanged.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    target = Path(path)

    if not target.exists():
        created_dirs = _create_parents(target)
        target.write_text(_terminated(content), encoding="utf-8")
        log_message(
            f"{symbols.get('success', '✅')} Created {target}",
            "info",
            logger_to_use,
            app_settings,
        )
        _hand_over(created_dirs + [target], user_context, app_settings, logger_to_use)
        return True

    existing = target.read_text(encoding="utf-8", errors="surrogateescape")
    if marker in existing:
        log_message(
            f"{symbols.get('info', 'ℹ️')} {target} already contains '{marker}'. Skipping.",
            "debug",
            logger_to_use,
            app_settings,
        )
        return False

    separator = "" if not existing or existing.endswith("\n") else "\n"
    with open(target, "a", encoding="utf-8") as f:
        f.write(separator + _terminated(content))
    log_message(
        f"{symbols.get('success', '✅')} Added '{marker}' to {target}",
        "info",
        logger_to_use,
        app_settings,
    )
    _hand_over([target], user_context, app_settings, logger_to_use)
    return True


def write_file_if_missing(
    path: PathLike,
    content: str,
    user_context: Optional[UserContext] = None,
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Create ``path`` with ``content`` unless it already exists.

    Returns:
        True if the file was created.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    target = Path(path)
    if target.exists():
        log_message(
            f"{symbols.get('info', 'ℹ️')} {target} already exists. Leaving it untouched.",
            "debug",
            logger_to_use,
            app_settings,
        )
        return False

    created_dirs = _create_parents(target)
    target.write_text(content, encoding="utf-8")
    log_message(
        f"{symbols.get('success', '✅')} Created {target}",
        "info",
        logger_to_use,
        app_settings,
    )
    _hand_over(created_dirs + [target], user_context, app_settings, logger_to_use)
    return True


def write_file_if_changed(
    path: PathLike,
    content: str,
    backup: bool = False,
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Write ``content`` to ``path`` only when the current content differs.

    Args:
        path: Target file; parent directories are created as needed.
        content: Desired full content.
        backup: Keep a timestamped copy of the previous version before
            overwriting it.
        app_settings: Settings providing log symbols.
        current_logger: Optional logger instance.

    Returns:
        True if the file was written.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    target = Path(path)

    if target.is_file() and target.read_text(encoding="utf-8", errors="surrogateescape") == content:
        log_message(
            f"{symbols.get('info', 'ℹ️')} {target} is already up to date.",
            "debug",
            logger_to_use,
            app_settings,
        )
        return False

    if backup:
        backup_file(target, app_settings, logger_to_use)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    log_message(
        f"{symbols.get('success', '✅')} Wrote {target}",
        "info",
        logger_to_use,
        app_settings,
    )
    return True


def file_contains(path: PathLike, marker: str) -> bool:
    """True if ``path`` is a readable file containing ``marker``."""
    target = Path(path)
    if not target.is_file():
        return False
    try:
        return marker in target.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return False


def backup_file(
    file_path: PathLike,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> Optional[Path]:
    """
    Backup a specified file to a timestamped backup file.

    The copy keeps metadata (``shutil.copy2``) and is placed next to the
    original as ``<name>.bak.<YYYYmmdd-HHMMSS>``.

    Parameters:
        file_path: The path of the file to be backed up.
        app_settings: Application-specific settings, which may include
            customized symbols for log messages.
        current_logger: Logger instance to use for logging messages.

    Returns:
        The backup path, or None when there was nothing to back up.

    Raises:
        OSError: If the copy fails.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    source = Path(file_path)

    if not source.is_file():
        log_message(
            f"{symbols.get('info', 'ℹ️')} File {source} does not exist or is not a regular file. No backup needed.",
            "info",
            logger_to_use,
            app_settings,
        )
        return None

    timestamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
    backup_path = source.with_name(f"{source.name}.bak.{timestamp}")
    try:
        shutil.copy2(source, backup_path)
    except OSError as e:
        log_message(
            f"{symbols.get('error', '❌')} Failed to backup {source} to {backup_path}: {e}",
            "error",
            logger_to_use,
            app_settings,
        )
        raise
    log_message(
        f"{symbols.get('success', '✅')} Backed up {source} to {backup_path}",
        "success",
        logger_to_use,
        app_settings,
    )
    return backup_path


def cleanup_directory(
    directory_path: Path,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Removes a scratch directory (download or build tree) if it exists.

    Failures are logged as warnings; a leftover scratch directory never
    fails a step.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    if not directory_path.exists():
        return
    try:
        if directory_path.is_dir():
            shutil.rmtree(directory_path)
        else:
            directory_path.unlink()
        log_message(
            f"Removed {directory_path}",
            "debug",
            logger_to_use,
            app_settings,
        )
    except OSError as e:
        log_message(
            f"{symbols.get('warning', '!')} Could not remove {directory_path}: {e}",
            "warning",
            logger_to_use,
            app_settings,
        )
