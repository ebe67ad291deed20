# common/command_utils.py
# -*- coding: utf-8 -*-
"""
Utilities for executing shell commands and logging their output.
"""

import logging
import os
import shlex
import shutil
import subprocess
from typing import Dict, List, Optional, Union

from setup.config_models import SYMBOLS_DEFAULT, AppSettings

module_logger = logging.getLogger(__name__)


def log_message(
    message: str,
    level: str = "info",
    current_logger: Optional[logging.Logger] = None,
    app_settings: Optional[AppSettings] = None,
    exc_info: bool = False,
) -> None:
    """
    Logs a message through the injected logger at the requested level.

    Every module of the setup logs through this function so that tests can hand
    in a mock logger and capture output without touching the log file.

    Args:
        message (str): The log message to be recorded.
        level (str): The severity level of the log message. Defaults to "info".
            Accepts "debug", "info", "success", "warning", "error" and "critical";
            unknown levels (including "success") are logged at INFO.
        current_logger (Optional[logging.Logger]): A logger instance to use for
            logging. If not provided, a module-level logger will be used.
        app_settings (Optional[AppSettings]): Optional application settings,
            accepted for a uniform call signature.
        exc_info (bool): Include exception details in the log. Defaults to False.

    Returns:
        None
    """
    effective_logger = current_logger if current_logger else module_logger

    if level == "warning":
        effective_logger.warning(message, exc_info=exc_info)
    elif level == "error":
        effective_logger.error(message, exc_info=exc_info)
    elif level == "critical":
        effective_logger.critical(message, exc_info=exc_info)
    elif level == "debug":
        effective_logger.debug(message, exc_info=exc_info)
    else:
        effective_logger.info(message, exc_info=exc_info)


def get_symbols(app_settings: Optional[AppSettings]) -> Dict[str, str]:
    """Return the configured log symbols, falling back to the defaults."""
    if app_settings is not None and getattr(app_settings, "symbols", None):
        return app_settings.symbols
    return SYMBOLS_DEFAULT


def _get_elevated_command_prefix() -> List[str]:
    """
    Determines the command prefix that ensures elevated privileges when required.

    Returns:
        List[str]: ``["sudo"]`` if the effective user is not root, otherwise an
        empty list.
    """
    return [] if os.geteuid() == 0 else ["sudo"]


def run_command(
    command: Union[List[str], str],
    app_settings: Optional[AppSettings],
    check: bool = True,
    shell: bool = False,
    capture_output: bool = False,
    text: bool = True,
    cmd_input: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
) -> subprocess.CompletedProcess:
    """
    Executes a system command and logs the process details and results, including both
    standard output and error, if specified.

    Args:
        command (Union[List[str], str]): The system command to execute. This can be
            provided as a string or a list of strings. If shell mode is enabled and
            the input is a list, elements will be joined into a single string.
        app_settings (Optional[AppSettings]): Settings providing log symbols.
        check (bool): Whether to raise a CalledProcessError when a non-zero exit code is returned.
            Defaults to True.
        shell (bool): If True, the command will be executed in a shell. Defaults to False.
        capture_output (bool): Whether to capture standard output and standard error. Defaults to False.
        text (bool): Indicates if the output streams should be interpreted as text. Defaults to True.
        cmd_input (Optional[str]): Input to be passed to the command's standard input. Defaults to None.
        current_logger (Optional[logging.Logger]): A logger to use for logging details.
        cwd (Optional[str]): Working directory for the command.
        env (Optional[Dict[str, str]]): Extra environment variables, merged over
            the inherited environment of the current process.

    Returns:
        subprocess.CompletedProcess: The completed process instance.

    Raises:
        subprocess.CalledProcessError: If the process returns a non-zero exit code and
            ``check`` is True.
        FileNotFoundError: If the specified command is not found on the system.
    """
    effective_logger = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    command_to_log_str: str
    command_to_run: Union[List[str], str]

    if shell:
        if isinstance(command, list):
            command_to_run = " ".join(command)
        else:
            command_to_run = command
        command_to_log_str = str(command_to_run)
    else:
        if isinstance(command, str):
            log_message(
                f"{symbols.get('warning', '!')} Running string command '{command}' without shell=True. Consider list format.",
                "warning",
                effective_logger,
                app_settings,
            )
            command_to_run = shlex.split(command)
            command_to_log_str = command
        else:
            command_to_run = command
            command_to_log_str = subprocess.list2cmdline(command)

    merged_env = None
    if env:
        merged_env = dict(os.environ)
        merged_env.update(env)

    log_message(
        f"{symbols.get('gear', '⚙️')} Executing: {command_to_log_str} {f'(in {cwd})' if cwd else ''}",
        "info",
        effective_logger,
        app_settings,
    )
    try:
        result = subprocess.run(
            command_to_run,
            check=check,
            shell=shell,
            capture_output=capture_output,
            text=text,
            input=cmd_input,
            cwd=cwd,
            env=merged_env,
        )
        if capture_output:
            if result.stdout and result.stdout.strip():
                log_message(
                    f"   stdout: {result.stdout.strip()}",
                    "debug",
                    effective_logger,
                    app_settings,
                )
            if (
                result.stderr
                and result.stderr.strip()
                and (not check or result.returncode == 0)
            ):
                log_message(
                    f"   stderr: {result.stderr.strip()}",
                    "debug",
                    effective_logger,
                    app_settings,
                )
        return result
    except subprocess.CalledProcessError as e:
        stdout_info = (
            e.stdout.strip()
            if e.stdout and hasattr(e.stdout, "strip")
            else "N/A"
        )
        stderr_info = (
            e.stderr.strip()
            if e.stderr and hasattr(e.stderr, "strip")
            else "N/A"
        )
        cmd_executed_str = (
            subprocess.list2cmdline(e.cmd)
            if isinstance(e.cmd, list)
            else str(e.cmd)
        )

        log_message(
            f"{symbols.get('error', '❌')} Command `{cmd_executed_str}` failed (rc {e.returncode}).",
            "error",
            effective_logger,
            app_settings,
        )
        if stdout_info != "N/A":
            log_message(
                f"   stdout: {stdout_info}",
                "error",
                effective_logger,
                app_settings,
            )
        if stderr_info != "N/A":
            log_message(
                f"   stderr: {stderr_info}",
                "error",
                effective_logger,
                app_settings,
            )
        raise
    except FileNotFoundError as e:
        log_message(
            f"{symbols.get('error', '❌')} Command not found: {e.filename}. Ensure it's installed and in PATH.",
            "error",
            effective_logger,
            app_settings,
        )
        raise


def run_elevated_command(
    command: List[str],
    app_settings: Optional[AppSettings],
    check: bool = True,
    capture_output: bool = False,
    cmd_input: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
) -> subprocess.CompletedProcess:
    """
    Executes a command with elevated permissions, prefixing ``sudo`` only when
    the current process is not already root.

    Raises:
        subprocess.CalledProcessError: If ``check`` is True and the command fails.
    """
    prefix = _get_elevated_command_prefix()
    elevated_command_list = prefix + list(command)
    return run_command(
        elevated_command_list,
        app_settings,
        check=check,
        shell=False,
        capture_output=capture_output,
        text=True,
        cmd_input=cmd_input,
        current_logger=current_logger,
        cwd=cwd,
        env=env,
    )


def run_as_user(
    username: str,
    command: str,
    app_settings: Optional[AppSettings],
    check: bool = True,
    current_logger: Optional[logging.Logger] = None,
) -> subprocess.CompletedProcess:
    """
    Runs a shell command as ``username`` through a login shell (``su -l``).

    The privileged setup process uses this for everything that has to happen
    inside the invoking user's environment: per-user installers, flatpak user
    remotes, git clones into the home directory.

    Args:
        username: The non-privileged user to run as.
        command: The shell command line, interpreted by the user's login shell.
        app_settings: Settings providing log symbols.
        check: Raise CalledProcessError on a non-zero exit status.
        current_logger: Optional logger instance.

    Returns:
        subprocess.CompletedProcess with captured stdout/stderr.
    """
    return run_command(
        ["su", "-l", username, "-c", command],
        app_settings,
        check=check,
        capture_output=True,
        current_logger=current_logger,
    )


def command_exists(command_name: str) -> bool:
    """
    Check if a command exists in the system's PATH.

    Parameters:
        command_name (str): The name of the command to check for existence.

    Returns:
        bool: True if the command is found in the system's PATH, False otherwise.
    """
    return shutil.which(command_name) is not None



def check_package_installed(
    package_name: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Checks if a given package is installed on the system using the `dpkg-query`
    command. Architecture-qualified identifiers (``name:arch``) are passed
    through unchanged; dpkg-query understands them.

    Args:
        package_name (str): The name of the package to check for installation status.
        app_settings (Optional[AppSettings]): Optional application settings containing
            configurations like symbols for different log types.
        current_logger (Optional[logging.Logger]): Logger to use for logging messages.

    Returns:
        bool: True if dpkg reports "install ok installed", otherwise False.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    try:
        result = run_command(
            ["dpkg-query", "-W", "-f=${Status}", package_name],
            app_settings,
            check=False,
            capture_output=True,
            text=True,
            current_logger=logger_to_use,
        )
        return (
            result.returncode == 0 and "install ok installed" in result.stdout
        )
    except FileNotFoundError:
        log_message(
            f"{symbols.get('error', '❌')} dpkg-query command not found. Cannot check package '{package_name}'.",
            "error",
            logger_to_use,
            app_settings,
        )
        return False
