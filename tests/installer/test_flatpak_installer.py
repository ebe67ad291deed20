import subprocess
from unittest.mock import MagicMock

import pytest

from common.orchestrator import Orchestrator
from installer.flatpak_installer import FlatpakAppsStep, FlatpakStep

APP_X = "org.example.X"
APP_Y = "org.example.Y"


@pytest.fixture
def two_app_settings(app_settings):
    catalogs = dict(app_settings.catalogs)
    catalogs["flatpak_apps"] = (APP_X, APP_Y)
    return app_settings.model_copy(update={"catalogs": catalogs})


@pytest.fixture
def fake_flatpak(mocker):
    """run_as_user double: nothing installed yet, installing X fails."""
    installed = set()

    def run_as_user(username, command, *args, **kwargs):
        if command.startswith("flatpak list"):
            return MagicMock(returncode=0, stdout="\n".join(sorted(installed)))
        if command.startswith("flatpak install"):
            app = command.split()[-1]
            if app == APP_X:
                raise subprocess.CalledProcessError(1, ["su"])
            installed.add(app)
        return MagicMock(returncode=0, stdout="")

    return mocker.patch(
        "installer.flatpak_installer.run_as_user", side_effect=run_as_user
    )


def test_failing_app_does_not_stop_the_others(two_app_settings, user_context, apt, mock_logger, fake_flatpak):
    step = FlatpakAppsStep(two_app_settings, user_context, apt, mock_logger)

    step.apply()

    assert step.failed_apps == [APP_X]
    install_commands = [
        c.args[1] for c in fake_flatpak.call_args_list if "install" in c.args[1]
    ]
    assert install_commands == [
        f"flatpak install --user -y flathub {APP_X}",
        f"flatpak install --user -y flathub {APP_Y}",
    ]
    assert fake_flatpak.call_args_list[-1].args[0] == "alice"
    warnings = [c.args[0] for c in mock_logger.warning.call_args_list]
    assert any("Failed to install Flatpak app X" in line for line in warnings)


def test_partial_failure_is_reported_as_warning(two_app_settings, user_context, apt, mock_logger, fake_flatpak):
    orchestrator = Orchestrator(two_app_settings, mock_logger)
    orchestrator.add_step(FlatpakAppsStep(two_app_settings, user_context, apt, mock_logger))

    summary = orchestrator.run()

    assert summary.warned == ["flatpak-apps"]
    assert summary.failed == []


def test_already_installed_apps_are_skipped(two_app_settings, user_context, apt, mock_logger, mocker):
    mock_run = mocker.patch(
        "installer.flatpak_installer.run_as_user",
        return_value=MagicMock(returncode=0, stdout=f"{APP_X}\n{APP_Y}\n"),
    )
    step = FlatpakAppsStep(two_app_settings, user_context, apt, mock_logger)

    assert step.is_satisfied() is True
    step.apply()

    assert not any("install" in c.args[1] for c in mock_run.call_args_list)


def test_empty_app_catalog_is_satisfied(app_settings, user_context, apt, mock_logger, mocker):
    catalogs = dict(app_settings.catalogs)
    catalogs["flatpak_apps"] = ()
    settings = app_settings.model_copy(update={"catalogs": catalogs})
    mock_run = mocker.patch("installer.flatpak_installer.run_as_user")

    assert FlatpakAppsStep(settings, user_context, apt, mock_logger).is_satisfied() is True
    mock_run.assert_not_called()


def test_flathub_remote_is_added_for_user(app_settings, user_context, apt, mock_logger, mocker):
    mock_run = mocker.patch("installer.flatpak_installer.run_as_user")
    step = FlatpakStep(app_settings, user_context, apt, mock_logger)

    step.apply()

    apt.install.assert_called_once_with(app_settings.catalog("flatpak"))
    assert mock_run.call_args.args[:2] == (
        "alice",
        "flatpak remote-add --user --if-not-exists flathub https://flathub.org/repo/flathub.flatpakrepo",
    )


def test_flathub_detection(app_settings, user_context, apt, mock_logger, mocker):
    apt.all_installed.return_value = True
    mocker.patch(
        "installer.flatpak_installer.run_as_user",
        return_value=MagicMock(returncode=0, stdout="flathub\n"),
    )
    assert FlatpakStep(app_settings, user_context, apt, mock_logger).is_satisfied() is True
