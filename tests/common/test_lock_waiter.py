from unittest.mock import MagicMock

import pytest

from common.exceptions import LockTimeoutError
from common.lock_waiter import (
    find_held_lock_files,
    find_running_package_processes,
    wait_for_package_manager,
)


@pytest.fixture
def mock_sleep(mocker):
    return mocker.patch("common.lock_waiter.time.sleep")


def test_returns_immediately_when_idle(mocker, app_settings, mock_logger, mock_sleep):
    mocker.patch(
        "common.lock_waiter.run_command", return_value=MagicMock(returncode=1)
    )

    wait_for_package_manager(app_settings, mock_logger)

    mock_sleep.assert_not_called()
    infos = [c.args[0] for c in mock_logger.info.call_args_list]
    assert any("Package manager is available" in line for line in infos)


def test_waits_until_lock_released(mocker, app_settings, mock_logger, mock_sleep):
    mocker.patch(
        "common.lock_waiter.find_running_package_processes",
        side_effect=[["unattended-upgrade"], []],
    )
    mocker.patch("common.lock_waiter.find_held_lock_files", return_value=[])

    wait_for_package_manager(app_settings, mock_logger)

    mock_sleep.assert_called_once_with(10)
    mock_logger.warning.assert_called_once()


def test_times_out(mocker, app_settings, mock_logger, mock_sleep):
    mocker.patch(
        "common.lock_waiter.run_command", return_value=MagicMock(returncode=0)
    )

    with pytest.raises(LockTimeoutError) as exc_info:
        wait_for_package_manager(app_settings, mock_logger)

    # checks at 0s, 10s and 20s; the third check gives up
    assert mock_sleep.call_count == 2
    assert exc_info.value.waited_seconds == 20
    assert "apt-get" in exc_info.value.holders
    assert "/var/lib/dpkg/lock-frontend" in exc_info.value.holders


def test_explicit_timings_override_settings(mocker, app_settings, mock_logger, mock_sleep):
    mocker.patch(
        "common.lock_waiter.run_command", return_value=MagicMock(returncode=0)
    )

    with pytest.raises(LockTimeoutError):
        wait_for_package_manager(app_settings, mock_logger, max_wait=0, poll_interval=1)

    mock_sleep.assert_not_called()


def test_process_detection_uses_exact_names(mocker, app_settings, mock_logger):
    mock_run = mocker.patch(
        "common.lock_waiter.run_command",
        side_effect=lambda cmd, *a, **kw: MagicMock(
            returncode=0 if cmd[-1] == "dpkg" else 1
        ),
    )

    assert find_running_package_processes(app_settings, mock_logger) == ["dpkg"]
    assert all(c.args[0][:2] == ["pgrep", "-x"] for c in mock_run.call_args_list)


def test_lock_file_detection(mocker, app_settings, mock_logger):
    mocker.patch(
        "common.lock_waiter.run_command",
        side_effect=lambda cmd, *a, **kw: MagicMock(
            returncode=0 if cmd[-1] == "/var/lib/dpkg/lock" else 1
        ),
    )

    assert find_held_lock_files(app_settings, mock_logger) == ["/var/lib/dpkg/lock"]


def test_missing_fuser_counts_as_not_held(mocker, app_settings, mock_logger, mock_sleep):
    def fake_run(cmd, *args, **kwargs):
        if cmd[0] == "fuser":
            raise FileNotFoundError(2, "No such file or directory", "fuser")
        return MagicMock(returncode=1)

    mocker.patch("common.lock_waiter.run_command", side_effect=fake_run)

    assert find_held_lock_files(app_settings, mock_logger) == []
    wait_for_package_manager(app_settings, mock_logger)

    mock_sleep.assert_not_called()
    warnings = [c.args[0] for c in mock_logger.warning.call_args_list]
    assert any("'fuser' is not available" in line for line in warnings)


def test_missing_pgrep_counts_as_not_running(mocker, app_settings, mock_logger):
    mocker.patch("common.lock_waiter.run_command", side_effect=FileNotFoundError)

    assert find_running_package_processes(app_settings, mock_logger) == []
    assert mock_logger.warning.call_count == len(app_settings.lock.processes)
