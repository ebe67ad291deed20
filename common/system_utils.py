# common/system_utils.py
# -*- coding: utf-8 -*-
"""
System-level utility functions for the workstation setup.

This module includes functions for querying the distribution codename and
architecture, reading tool versions, managing groups and systemd services.
"""

import grp
import logging
import pwd
import re
from pathlib import Path
from typing import Dict, List, Optional

from common.command_utils import (
    get_symbols,
    log_message,
    run_command,
    run_elevated_command,
)
from setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r"v?(\d+(?:\.\d+)+)")


def read_os_release(os_release_path: str = "/etc/os-release") -> Dict[str, str]:
    """Parse an os-release file into a dict (quotes stripped)."""
    values: Dict[str, str] = {}
    path = Path(os_release_path)
    if not path.is_file():
        return values
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip().strip('"').strip("'")
    return values


def get_os_codename(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> Optional[str]:
    """
    Get the distribution codename, preferring ``UBUNTU_CODENAME``.

    Returns:
        The codename (e.g. "oracular"), or None if it cannot be determined.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    values = read_os_release(app_settings.paths.os_release)
    codename = values.get("UBUNTU_CODENAME") or values.get("VERSION_CODENAME")
    if not codename:
        log_message(
            f"{symbols.get('warning', '!')} Could not determine the distribution codename from {app_settings.paths.os_release}.",
            "warning",
            logger_to_use,
            app_settings,
        )
        return None
    return codename


def get_architecture(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> str:
    """
    Native dpkg architecture (e.g. "amd64").

    Raises:
        subprocess.CalledProcessError: If dpkg cannot be queried.
    """
    result = run_command(
        ["dpkg", "--print-architecture"],
        app_settings,
        capture_output=True,
        current_logger=current_logger,
    )
    return result.stdout.strip()


def parse_version(output: str) -> Optional[str]:
    """Extract the first dotted version number from tool output."""
    match = VERSION_PATTERN.search(output or "")
    return match.group(1) if match else None


def version_matches(reported: Optional[str], pinned: str) -> bool:
    """Compare a reported version with a pinned tag, ignoring a leading "v"."""
    if not reported:
        return False
    return reported.lstrip("v") == pinned.lstrip("v")


def get_command_version(
    command: List[str],
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> Optional[str]:
    """
    Run a version command (``lua -v``, ``podman -v``...) and parse its output.

    Returns:
        The version string, or None if the command is missing or fails.
    """
    try:
        result = run_command(
            command,
            app_settings,
            check=False,
            capture_output=True,
            current_logger=current_logger,
        )
    except FileNotFoundError:
        return None
    if result.returncode != 0:
        return None
    return parse_version(f"{result.stdout or ''} {result.stderr or ''}")


def group_exists(group_name: str) -> bool:
    try:
        grp.getgrnam(group_name)
    except KeyError:
        return False
    return True


def user_in_group(username: str, group_name: str) -> bool:
    """True if ``username`` is a supplementary member or has it as primary group."""
    try:
        group = grp.getgrnam(group_name)
    except KeyError:
        return False
    if username in group.gr_mem:
        return True
    try:
        return pwd.getpwnam(username).pw_gid == group.gr_gid
    except KeyError:
        return False


def ensure_group(
    group_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """Create ``group_name`` if missing. Returns True if it was created."""
    if group_exists(group_name):
        return False
    run_elevated_command(
        ["groupadd", group_name],
        app_settings,
        current_logger=current_logger,
    )
    return True


def add_user_to_group(
    username: str,
    group_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Add ``username`` to ``group_name`` unless already a member.

    Returns:
        True if membership was added (takes effect on next login).
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    if user_in_group(username, group_name):
        log_message(
            f"{symbols.get('info', 'ℹ️')} {username} is already in group {group_name}.",
            "debug",
            logger_to_use,
            app_settings,
        )
        return False
    run_elevated_command(
        ["usermod", "-aG", group_name, username],
        app_settings,
        current_logger=logger_to_use,
    )
    log_message(
        f"{symbols.get('success', '✅')} Added {username} to group {group_name} (log out and back in to apply).",
        "info",
        logger_to_use,
        app_settings,
    )
    return True


def systemd_enable_now(
    units: List[str],
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Enable and start systemd units.

    Raises:
        subprocess.CalledProcessError: If systemctl fails.
    """
    for unit in units:
        run_elevated_command(
            ["systemctl", "enable", "--now", unit],
            app_settings,
            current_logger=current_logger,
        )


def systemd_is_enabled(
    unit: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    try:
        result = run_command(
            ["systemctl", "is-enabled", unit],
            app_settings,
            check=False,
            capture_output=True,
            current_logger=current_logger,
        )
    except FileNotFoundError:
        return False
    return result.returncode == 0


def get_login_shell(username: str) -> Optional[str]:
    try:
        return pwd.getpwnam(username).pw_shell
    except KeyError:
        return None


def set_login_shell(
    username: str,
    shell_path: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Change the login shell of ``username`` with ``chsh``.

    Raises:
        subprocess.CalledProcessError: If chsh rejects the shell.
    """
    run_elevated_command(
        ["chsh", "-s", shell_path, username],
        app_settings,
        current_logger=current_logger,
    )
