# setup/cli_handler.py
# -*- coding: utf-8 -*-
"""
Handles Command Line Interface (CLI) interactions for the workstation setup:
confirmation prompts, the end-of-run summary and the restart prompt.
"""

import logging
import time
from typing import Optional

from common.command_utils import log_message, run_elevated_command
from common.orchestrator import RunSummary
from setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)

RESTART_PROMPT = "Would you like to restart now? (y/n): "

POST_RUN_NOTES = (
    "Note: You may need to log out and back in for the following changes to take effect:",
    "- Docker group membership",
    "- pyenv initialization",
    "- mise initialization",
    "- Default shell change to fish",
    "Alternatively, run 'newgrp docker' for the Docker group and 'exec fish' to start using fish immediately.",
    "To launch JetBrains Toolbox, run 'jetbrains-toolbox' as your normal user (not as root).",
)


def cli_confirm(
    prompt_message: str,
    app_settings: AppSettings,
    current_logger_instance: Optional[logging.Logger] = None,
) -> bool:
    """
    Ask a yes/no question on the terminal.

    Parameters:
    prompt_message : str
        The message to display in the CLI when prompting the user.
    app_settings : AppSettings
        The application settings object providing necessary configuration, such as symbols.
    current_logger_instance : Optional[logging.Logger]
        The logger instance to use for logging.

    Returns:
    bool
        True if the answer is "y" or "yes" (case-insensitive). Anything else,
        including end-of-file, counts as "no".
    """
    logger_to_use = (
        current_logger_instance if current_logger_instance else module_logger
    )
    symbols = app_settings.symbols
    try:
        user_input = input(prompt_message).strip().lower()
    except EOFError:
        log_message(
            f"{symbols.get('warning', '!')} No user input (EOF), defaulting to 'n' for prompt: '{prompt_message.strip()}'",
            "warning",
            logger_to_use,
            app_settings,
        )
        return False
    return user_input in ("y", "yes")


def _reboot(
    app_settings: AppSettings, logger_to_use: logging.Logger
) -> None:
    log_message(
        f"{app_settings.symbols.get('warning', '⚠️')} System will restart in {app_settings.restart_delay_seconds} seconds. Press Ctrl+C to cancel.",
        "warning",
        logger_to_use,
        app_settings,
    )
    time.sleep(app_settings.restart_delay_seconds)
    run_elevated_command(["reboot"], app_settings, current_logger=logger_to_use)


def prompt_for_restart(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Offer to reboot the machine at the end of the run.

    In auto mode the reboot happens after ``restart_delay_seconds`` without
    asking. Interactively, "y"/"yes" reboots after the same delay; any other
    answer (or EOF) only logs a reminder.

    Returns:
        True if a reboot was issued.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols

    if app_settings.auto_mode:
        log_message(
            f"{symbols.get('info', 'ℹ️')} Running in automatic mode.",
            "info",
            logger_to_use,
            app_settings,
        )
        _reboot(app_settings, logger_to_use)
        return True

    log_message(
        f"{symbols.get('info', 'ℹ️')} It is recommended to restart your system to ensure all changes take effect.",
        "info",
        logger_to_use,
        app_settings,
    )
    if cli_confirm(RESTART_PROMPT, app_settings, logger_to_use):
        _reboot(app_settings, logger_to_use)
        return True

    log_message(
        f"{symbols.get('info', 'ℹ️')} Restart skipped. Remember to restart your system later for all changes to take effect.",
        "info",
        logger_to_use,
        app_settings,
    )
    return False


def print_summary(
    summary: RunSummary,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Log the per-step outcome of the run followed by the post-run notes."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols

    rows = (
        ("success", "Completed", summary.completed),
        ("info", "Already satisfied", summary.skipped),
        ("warning", "Unverified", summary.warned),
        ("warning", "Failed (best-effort)", summary.failed),
    )
    log_message(
        f"{symbols.get('sparkles', '✨')} Setup summary:",
        "info",
        logger_to_use,
        app_settings,
    )
    for symbol_key, label, names in rows:
        if not names:
            continue
        log_message(
            f"  {symbols.get(symbol_key, '')} {label} ({len(names)}): {', '.join(names)}",
            "warning" if symbol_key == "warning" else "info",
            logger_to_use,
            app_settings,
        )
    for note in POST_RUN_NOTES:
        log_message(note, "info", logger_to_use, app_settings)
