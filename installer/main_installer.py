# installer/main_installer.py
# -*- coding: utf-8 -*-
"""
Main entry point for the workstation setup.

Handles argument parsing, logging setup, the root and lock pre-checks, and
runs the ordered step catalog through the orchestrator.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from common.command_utils import log_message
from common.core_utils import build_log_file_path
from common.core_utils import setup_logging as common_setup_logging
from common.debian.apt_manager import AptManager
from common.exceptions import SetupError
from common.lock_waiter import wait_for_package_manager
from common.orchestrator import Orchestrator
from common.user_context import resolve_user_context
from installer.step_catalog import build_steps
from setup import config as static_config
from setup.cli_handler import print_summary, prompt_for_restart
from setup.config_loader import load_app_settings
from setup.config_models import SYMBOLS_DEFAULT

logger = logging.getLogger(__name__)


class SetupArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on unrecognized arguments."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(
            static_config.EXIT_FATAL,
            f"{self.prog}: error: {message}\nUse --help for usage information\n",
        )


def build_parser() -> argparse.ArgumentParser:
    parser = SetupArgumentParser(
        prog=static_config.PROGRAM_NAME,
        description="Provision an Ubuntu development workstation.",
        epilog=f"Example: sudo {static_config.PROGRAM_NAME} --auto",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        add_help=False,
    )
    parser.add_argument(
        "-h",
        "--help",
        action="help",
        default=argparse.SUPPRESS,
        help="Show this help message and exit.",
    )
    parser.add_argument(
        "-a",
        "--auto",
        action="store_true",
        help="Run in automatic mode (no interactive prompts, reboot at the end).",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Path to a YAML configuration file.",
    )
    parser.add_argument(
        "-u",
        "--user",
        default=None,
        help="Install per-user tools for this user instead of the detected one.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable DEBUG logging.",
    )
    parser.add_argument(
        "--no-restart",
        action="store_true",
        help="Never prompt for or perform a reboot.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {static_config.SCRIPT_VERSION}",
    )
    return parser


def main(cli_args_list: Optional[List[str]] = None) -> int:
    """
    Run the workstation setup.

    Args:
        cli_args_list: Command-line arguments. If None, sys.argv[1:] is used.

    Returns:
        Exit code: 0 on success, 1 on a fatal error, 130 when interrupted.
    """
    parsed_args = build_parser().parse_args(cli_args_list)

    log_file = build_log_file_path()
    common_setup_logging(
        log_level=logging.DEBUG if parsed_args.verbose else logging.INFO,
        log_file=str(log_file),
        log_to_console=True,
    )
    log_message(
        f"{SYMBOLS_DEFAULT['rocket']} Starting {static_config.PROGRAM_NAME} {static_config.SCRIPT_VERSION} (log: {log_file})",
        "info",
        logger,
    )

    if os.geteuid() != 0:
        log_message(
            f"{SYMBOLS_DEFAULT['error']} This program must be run as root. Please use sudo.",
            "error",
            logger,
        )
        return static_config.EXIT_FATAL

    try:
        app_settings = load_app_settings(parsed_args, current_logger=logger)
    except SystemExit as e:
        log_message(
            f"{SYMBOLS_DEFAULT['critical']} {e}", "critical", logger
        )
        return static_config.EXIT_FATAL

    if app_settings.auto_mode:
        log_message(
            f"{app_settings.symbols.get('info', 'ℹ️')} Automatic mode enabled - no interactive prompts will be shown.",
            "info",
            logger,
            app_settings,
        )

    try:
        user_context = resolve_user_context(app_settings, logger)
        wait_for_package_manager(app_settings, logger)
        apt_manager = AptManager(app_settings, logger)

        orchestrator = Orchestrator(app_settings, logger)
        for step in build_steps(
            app_settings, user_context, apt_manager, logger, log_file=log_file
        ):
            orchestrator.add_step(step)
        summary = orchestrator.run()

        print_summary(summary, app_settings, logger)
        log_message(
            f"{app_settings.symbols.get('success', '✅')} System setup completed.",
            "success",
            logger,
            app_settings,
        )
        if app_settings.restart_enabled:
            prompt_for_restart(app_settings, logger)
    except SetupError as e:
        log_message(
            f"{app_settings.symbols.get('error', '❌')} ERROR: {e}",
            "error",
            logger,
            app_settings,
        )
        return static_config.EXIT_FATAL
    except KeyboardInterrupt:
        log_message(
            f"{app_settings.symbols.get('warning', '⚠️')} Interrupted by user.",
            "warning",
            logger,
            app_settings,
        )
        return static_config.EXIT_INTERRUPTED

    return static_config.EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
