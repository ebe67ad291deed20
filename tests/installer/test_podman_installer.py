# tests/installer/test_podman_installer.py
# -*- coding: utf-8 -*-
"""
Tests for the Podman, crun and container configuration steps.
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from common.exceptions import BuildError
from installer.podman_installer import (
    APPARMOR_PODMAN_PROFILE,
    POLICY_JSON,
    PODMAN_USERNS_SYSCTL,
    CrunStep,
    PodmanConfigStep,
    PodmanStep,
    PodmanUsernsStep,
    registries_line,
)


def test_registries_line():
    assert (
        registries_line(("docker.io", "quay.io"))
        == "unqualified-search-registries = ['docker.io', 'quay.io']"
    )


class TestPodmanConfigStep:
    def test_writes_policy_and_registries(self, mocker, app_settings, user_context, apt, mock_logger):
        mocker.patch("installer.podman_installer.command_exists", return_value=False)
        step = PodmanConfigStep(app_settings, user_context, apt, mock_logger)

        assert step.is_satisfied() is False
        step.apply()

        containers = Path(app_settings.paths.containers_dir)
        assert (containers / "policy.json").read_text(encoding="utf-8") == POLICY_JSON
        assert Path(app_settings.paths.registries_conf).read_text(encoding="utf-8") == (
            "unqualified-search-registries = ['docker.io', 'quay.io']\n"
        )
        assert step.is_satisfied() is True

    def test_existing_files_are_preserved(self, mocker, app_settings, user_context, apt, mock_logger):
        mocker.patch("installer.podman_installer.command_exists", return_value=False)
        containers = Path(app_settings.paths.containers_dir)
        containers.mkdir(parents=True)
        (containers / "policy.json").write_text('{"default": []}\n', encoding="utf-8")
        registries = Path(app_settings.paths.registries_conf)
        registries.write_text(
            "# site config\nunqualified-search-registries = ['registry.example']\n",
            encoding="utf-8",
        )
        step = PodmanConfigStep(app_settings, user_context, apt, mock_logger)

        step.apply()

        assert (containers / "policy.json").read_text(encoding="utf-8") == '{"default": []}\n'
        assert "registry.example" in registries.read_text(encoding="utf-8")
        assert "docker.io" not in registries.read_text(encoding="utf-8")

    def test_saves_podman_info(self, mocker, tmp_path, app_settings, user_context, apt, mock_logger):
        mocker.patch("installer.podman_installer.command_exists", return_value=True)
        mocker.patch(
            "installer.podman_installer.run_command",
            return_value=MagicMock(stdout="host:\n  arch: amd64\n", stderr=""),
        )
        info_path = tmp_path / "workstation-setup.log.podman_info"
        step = PodmanConfigStep(
            app_settings, user_context, apt, mock_logger, podman_info_path=info_path
        )

        step.apply()

        assert info_path.read_text(encoding="utf-8") == "host:\n  arch: amd64\n"


class TestPodmanUsernsStep:
    def test_without_distribution_profile(self, mocker, app_settings, user_context, apt, mock_logger):
        mock_elevated = mocker.patch("installer.podman_installer.run_elevated_command")
        step = PodmanUsernsStep(app_settings, user_context, apt, mock_logger)

        step.apply()

        profile = Path(app_settings.paths.apparmor_podman_profile)
        sysctl_file = Path(app_settings.paths.podman_userns_sysctl)
        assert not profile.exists()
        assert sysctl_file.read_text(encoding="utf-8") == PODMAN_USERNS_SYSCTL
        assert [c.args[0] for c in mock_elevated.call_args_list] == [
            ["sysctl", "-p", str(sysctl_file)]
        ]
        assert step.is_satisfied() is True

    def test_rewrites_and_reloads_existing_profile(self, mocker, app_settings, user_context, apt, mock_logger):
        mocker.patch("installer.podman_installer.command_exists", return_value=True)
        mock_elevated = mocker.patch(
            "installer.podman_installer.run_elevated_command",
            return_value=MagicMock(returncode=0),
        )
        profile = Path(app_settings.paths.apparmor_podman_profile)
        profile.parent.mkdir(parents=True)
        profile.write_text("profile podman /usr/bin/podman {}\n", encoding="utf-8")
        step = PodmanUsernsStep(app_settings, user_context, apt, mock_logger)

        assert step.is_satisfied() is False
        step.apply()

        assert profile.read_text(encoding="utf-8") == APPARMOR_PODMAN_PROFILE
        assert len(list(profile.parent.glob("podman.bak.*"))) == 1
        commands = [c.args[0] for c in mock_elevated.call_args_list]
        assert ["apparmor_parser", "-r", str(profile)] in commands


class TestSourceBuilds:
    def test_podman_satisfied_at_pinned_version(self, mocker, app_settings, user_context, apt, mock_logger):
        mocker.patch(
            "installer.podman_installer.get_command_version", return_value="5.4.2"
        )
        assert PodmanStep(app_settings, user_context, apt, mock_logger).is_satisfied() is True

    def test_podman_rebuilt_on_version_mismatch(self, mocker, app_settings, user_context, apt, mock_logger):
        mocker.patch(
            "installer.podman_installer.get_command_version", return_value="4.9.3"
        )
        assert PodmanStep(app_settings, user_context, apt, mock_logger).is_satisfied() is False

    def test_podman_build_sequence(self, mocker, app_settings, user_context, apt, mock_logger):
        source_dir = Path(app_settings.paths.build_dir) / "podman_build" / "podman"
        mock_checkout = mocker.patch(
            "installer.podman_installer.checkout_tag", return_value=source_dir
        )
        mock_build = mocker.patch("installer.podman_installer.run_build_command")

        PodmanStep(app_settings, user_context, apt, mock_logger).apply()

        apt.install.assert_called_once_with(app_settings.catalog("podman_build"))
        assert mock_checkout.call_args.args[:3] == (
            "https://github.com/containers/podman.git",
            source_dir,
            "v5.4.2",
        )
        assert [c.args[0] for c in mock_build.call_args_list] == [
            ["make", "clean"],
            ["make"],
            ["make", "install"],
        ]

    def test_crun_build_failure_propagates(self, mocker, app_settings, user_context, apt, mock_logger):
        mocker.patch("installer.podman_installer.checkout_tag", return_value=Path("/x"))
        mocker.patch(
            "installer.podman_installer.run_build_command",
            side_effect=BuildError("./autogen.sh failed"),
        )

        with pytest.raises(BuildError):
            CrunStep(app_settings, user_context, apt, mock_logger).apply()
