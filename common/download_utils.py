# common/download_utils.py
# -*- coding: utf-8 -*-
"""
Handles downloading installer artifacts (.deb packages, tarballs, installer
scripts, GPG keys) and querying small JSON release feeds.
"""

import logging
import tarfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

import requests

from common.command_utils import get_symbols, log_message
from common.exceptions import DownloadError
from setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def _timeout(app_settings: Optional[AppSettings]) -> int:
    if app_settings is None:
        return 300
    return app_settings.sources.download_timeout_seconds


def download_file(
    url: str,
    download_to_path: Union[str, Path],
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> Path:
    """
    Download ``url`` to ``download_to_path``, streaming it in chunks.

    Args:
        url: The URL to fetch.
        download_to_path: The file path where the download will be saved.
            Parent directories are created as needed.
        app_settings: Settings providing the timeout and log symbols.
        current_logger: Optional logger instance.

    Returns:
        The path of the downloaded file.

    Raises:
        DownloadError: On any HTTP, connection, timeout or file I/O failure.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    download_path = Path(download_to_path)
    log_message(
        f"{symbols.get('info', 'ℹ️')} Downloading {url} -> {download_path}",
        "info",
        logger_to_use,
        app_settings,
    )
    response: Optional[requests.Response] = None

    try:
        download_path.parent.mkdir(parents=True, exist_ok=True)
        response = requests.get(url, stream=True, timeout=_timeout(app_settings))
        response.raise_for_status()

        with open(download_path, "wb") as f:
            for chunk in response.iter_content(chunk_size=8192):
                if chunk:
                    f.write(chunk)
    except requests.exceptions.HTTPError as http_err:
        status_code = response.status_code if response is not None else "Unknown"
        raise DownloadError(
            f"HTTP error downloading {url}: {http_err} (status {status_code})"
        ) from http_err
    except requests.exceptions.ConnectionError as conn_err:
        raise DownloadError(
            f"Connection error downloading {url}: {conn_err}"
        ) from conn_err
    except requests.exceptions.Timeout as timeout_err:
        raise DownloadError(
            f"Timed out downloading {url}: {timeout_err}"
        ) from timeout_err
    except requests.exceptions.RequestException as req_err:
        raise DownloadError(f"Failed to download {url}: {req_err}") from req_err
    except OSError as io_err:
        raise DownloadError(
            f"Could not save {url} to {download_path}: {io_err}"
        ) from io_err

    log_message(
        f"{symbols.get('success', '✅')} Downloaded {download_path.name}",
        "info",
        logger_to_use,
        app_settings,
    )
    return download_path


def fetch_json(
    url: str,
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> Dict[str, Any]:
    """
    GET ``url`` and decode its JSON body.

    Raises:
        DownloadError: On request failure or an undecodable body.
    """
    logger_to_use = current_logger if current_logger else module_logger
    log_message(f"Querying {url}", "debug", logger_to_use, app_settings)
    try:
        response = requests.get(url, timeout=_timeout(app_settings))
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as req_err:
        raise DownloadError(f"Failed to query {url}: {req_err}") from req_err
    except ValueError as decode_err:
        raise DownloadError(
            f"Response from {url} is not valid JSON: {decode_err}"
        ) from decode_err


def extract_tarball(
    archive_path: Union[str, Path],
    extract_to_dir: Union[str, Path],
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> Path:
    """
    Extract a (possibly compressed) tar archive into ``extract_to_dir``.

    Returns:
        The extraction directory.

    Raises:
        DownloadError: If the archive is missing or corrupt.
    """
    logger_to_use = current_logger if current_logger else module_logger
    archive = Path(archive_path)
    target = Path(extract_to_dir)
    if not archive.is_file():
        raise DownloadError(f"Archive not found: {archive}")
    try:
        target.mkdir(parents=True, exist_ok=True)
        with tarfile.open(archive, "r:*") as tar:
            tar.extractall(target)
    except (tarfile.TarError, OSError) as e:
        raise DownloadError(f"Could not extract {archive}: {e}") from e
    log_message(
        f"Extracted {archive.name} into {target}",
        "debug",
        logger_to_use,
        app_settings,
    )
    return target


def fetch_installer_script(
    url: str,
    script_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> Path:
    """
    Download an installer script into the build directory and make it
    world-readable so a non-privileged user can execute it.

    Raises:
        DownloadError: If the script cannot be fetched.
    """
    script_path = download_file(
        url,
        Path(app_settings.paths.build_dir) / script_name,
        app_settings,
        current_logger,
    )
    script_path.chmod(0o644)
    return script_path
