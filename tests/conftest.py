# tests/conftest.py
import logging
from unittest.mock import MagicMock

import pytest

from common.debian.apt_manager import AptManager
from common.user_context import UserContext
from setup.config_models import AppSettings, LockSettings, PathSettings


@pytest.fixture
def app_settings(tmp_path):
    """AppSettings whose system paths all point into a temporary directory."""
    etc = tmp_path / "etc"
    return AppSettings(
        paths=PathSettings(
            apt_sources_dir=str(etc / "apt" / "sources.list.d"),
            apt_keyrings_dir=str(etc / "apt" / "keyrings"),
            containers_dir=str(etc / "containers"),
            registries_conf=str(etc / "containers" / "registries.conf"),
            apparmor_podman_profile=str(etc / "apparmor.d" / "podman"),
            podman_userns_sysctl=str(etc / "sysctl.d" / "99-podman-userns.conf"),
            os_release=str(etc / "os-release"),
            build_dir=str(tmp_path / "build"),
        ),
        lock=LockSettings(max_wait_seconds=20, poll_interval_seconds=10),
        restart_delay_seconds=0,
    )


@pytest.fixture
def mock_logger():
    """Fixture to create a mock logger for testing."""
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def user_context(tmp_path):
    home = tmp_path / "home" / "alice"
    home.mkdir(parents=True)
    return UserContext(username="alice", home_directory=home, uid=1000, gid=1000)


@pytest.fixture
def apt():
    """An AptManager double; every package is reported as missing."""
    manager = MagicMock(spec=AptManager)
    manager.all_installed.return_value = False
    manager.partition.return_value = ([], [])
    manager.install.return_value = []
    return manager


@pytest.fixture
def no_chown(mocker):
    """Files written for the target user are not really chowned in tests."""
    return mocker.patch("common.file_utils.fix_ownership")
