# common/user_context.py
# -*- coding: utf-8 -*-
"""
Resolution of the human user on whose behalf the setup runs.

The setup itself runs as root; per-user tools and shell configuration must end
up in the invoking user's home directory and owned by that user.
"""

import logging
import os
import pwd
import subprocess
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict

from common.command_utils import get_symbols, log_message, run_command
from common.exceptions import PreconditionError
from setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)


class UserContext(BaseModel):
    """The invoking user, resolved once at start-up."""

    model_config = ConfigDict(frozen=True)

    username: str
    home_directory: Path
    uid: int
    gid: int

    @property
    def owner(self) -> str:
        """``user:group`` string for chown."""
        return f"{self.uid}:{self.gid}"

    def home_path(self, *parts: str) -> Path:
        return self.home_directory.joinpath(*parts)

    @property
    def fish_config_dir(self) -> Path:
        return self.home_path(".config", "fish")

    @property
    def fish_config_file(self) -> Path:
        return self.fish_config_dir / "config.fish"

    @property
    def bashrc(self) -> Path:
        return self.home_path(".bashrc")


def _login_name(
    app_settings: Optional[AppSettings], current_logger: logging.Logger
) -> Optional[str]:
    try:
        result = run_command(
            ["logname"],
            app_settings,
            check=False,
            capture_output=True,
            current_logger=current_logger,
        )
    except FileNotFoundError:
        return None
    name = (result.stdout or "").strip()
    if result.returncode != 0 or not name:
        return None
    return name


def detect_invoking_username(
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> str:
    """
    Determine the human user behind the privileged process.

    Order: the configured ``target_user`` override, ``logname`` (the login
    session owner), ``$SUDO_USER``, ``$USER``.
    """
    logger_to_use = current_logger if current_logger else module_logger
    if app_settings is not None and app_settings.target_user:
        return app_settings.target_user

    name = _login_name(app_settings, logger_to_use)
    if name:
        return name
    return os.environ.get("SUDO_USER") or os.environ.get("USER") or "root"


def resolve_user_context(
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> UserContext:
    """
    Resolve the invoking user into a ``UserContext``.

    Raises:
        PreconditionError: If the user does not exist in the password database.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    username = detect_invoking_username(app_settings, logger_to_use)

    try:
        entry = pwd.getpwnam(username)
    except KeyError as e:
        raise PreconditionError(
            f"Invoking user '{username}' not found in the password database."
        ) from e

    if entry.pw_uid == 0:
        log_message(
            f"{symbols.get('warning', '!')} Could not determine a non-root invoking user; per-user tools will be installed for root.",
            "warning",
            logger_to_use,
            app_settings,
        )

    context = UserContext(
        username=entry.pw_name,
        home_directory=Path(entry.pw_dir),
        uid=entry.pw_uid,
        gid=entry.pw_gid,
    )
    log_message(
        f"{symbols.get('info', 'ℹ️')} Target user: {context.username} (home: {context.home_directory})",
        "info",
        logger_to_use,
        app_settings,
    )
    return context


def fix_ownership(
    path: Path,
    user_context: UserContext,
    app_settings: Optional[AppSettings] = None,
    recursive: bool = False,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Hand ``path`` back to the target user after the privileged process wrote it.

    Raises:
        subprocess.CalledProcessError: If chown fails.
    """
    command = ["chown"]
    if recursive:
        command.append("-R")
    command.extend([user_context.owner, str(path)])
    try:
        run_command(
            command,
            app_settings,
            check=True,
            current_logger=current_logger,
        )
    except subprocess.CalledProcessError:
        log_message(
            f"{get_symbols(app_settings).get('error', '❌')} Could not hand {path} over to {user_context.username}.",
            "error",
            current_logger,
            app_settings,
        )
        raise
