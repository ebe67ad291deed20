import io
import tarfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

from common.download_utils import (
    download_file,
    extract_tarball,
    fetch_installer_script,
    fetch_json,
)
from common.exceptions import DownloadError


@pytest.fixture
def mock_get(mocker):
    return mocker.patch("common.download_utils.requests.get")


def _response(chunks=(b"",), json_body=None):
    response = MagicMock()
    response.status_code = 200
    response.iter_content.return_value = list(chunks)
    response.json.return_value = json_body
    return response


def test_download_file_streams_to_disk(mock_get, tmp_path, app_settings, mock_logger):
    mock_get.return_value = _response([b"abc", b"", b"def"])
    target = tmp_path / "downloads" / "steam.deb"

    result = download_file(
        "https://example.invalid/steam.deb", target, app_settings, mock_logger
    )

    assert result == target
    assert target.read_bytes() == b"abcdef"
    mock_get.assert_called_once_with(
        "https://example.invalid/steam.deb", stream=True, timeout=300
    )


def test_download_file_http_error(mock_get, tmp_path, app_settings, mock_logger):
    response = _response()
    response.status_code = 404
    response.raise_for_status.side_effect = requests.exceptions.HTTPError("404")
    mock_get.return_value = response

    with pytest.raises(DownloadError, match="status 404"):
        download_file("https://example.invalid/x", tmp_path / "x", app_settings, mock_logger)


def test_download_file_connection_error(mock_get, tmp_path, app_settings, mock_logger):
    mock_get.side_effect = requests.exceptions.ConnectionError("refused")

    with pytest.raises(DownloadError, match="Connection error"):
        download_file("https://example.invalid/x", tmp_path / "x", app_settings, mock_logger)


def test_fetch_json(mock_get, app_settings, mock_logger):
    mock_get.return_value = _response(json_body={"TBA": []})
    assert fetch_json("https://example.invalid/releases", app_settings, mock_logger) == {"TBA": []}


def test_fetch_json_invalid_body(mock_get, app_settings, mock_logger):
    response = _response()
    response.json.side_effect = ValueError("Expecting value")
    mock_get.return_value = response

    with pytest.raises(DownloadError, match="not valid JSON"):
        fetch_json("https://example.invalid/releases", app_settings, mock_logger)


def test_extract_tarball(tmp_path, app_settings, mock_logger):
    archive = tmp_path / "lua-5.4.7.tar.gz"
    payload = b"all:\n\ttrue\n"
    with tarfile.open(archive, "w:gz") as tar:
        info = tarfile.TarInfo("lua-5.4.7/Makefile")
        info.size = len(payload)
        tar.addfile(info, io.BytesIO(payload))

    extract_tarball(archive, tmp_path / "build", app_settings, mock_logger)

    assert (tmp_path / "build" / "lua-5.4.7" / "Makefile").read_bytes() == payload


def test_extract_tarball_corrupt(tmp_path, app_settings, mock_logger):
    archive = tmp_path / "broken.tar.gz"
    archive.write_bytes(b"not a tarball")

    with pytest.raises(DownloadError):
        extract_tarball(archive, tmp_path / "build", app_settings, mock_logger)


def test_fetch_installer_script(mock_get, app_settings, mock_logger):
    mock_get.return_value = _response([b"#!/bin/sh\necho hi\n"])

    script = fetch_installer_script(
        "https://mise.run", "mise-installer.sh", app_settings, mock_logger
    )

    assert script.parent == Path(app_settings.paths.build_dir)
    assert script.stat().st_mode & 0o777 == 0o644
