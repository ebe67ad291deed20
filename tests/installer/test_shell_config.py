"""
Tests for the steps that write into the user's shell configuration:
pyenv, mise, fish and the Neovim aliases.
"""

import subprocess
from unittest.mock import MagicMock

import pytest

from installer.fish_installer import INITIAL_FISH_CONFIG, FishShellStep
from installer.mise_installer import MISE_FISH_ACTIVATION, MiseStep
from installer.neovim_installer import ALIAS_MARKER, NEOVIM_ALIASES, NeovimStep
from installer.pyenv_installer import (
    PYENV_BASH_BLOCK,
    PYENV_FISH_BLOCK,
    PyenvStep,
)


def _touch(path, content=""):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


class TestPyenvStep:
    @pytest.fixture
    def step(self, app_settings, user_context, apt, mock_logger, no_chown):
        _touch(user_context.home_path(".pyenv", "bin", "pyenv"))
        return PyenvStep(app_settings, user_context, apt, mock_logger)

    def test_activates_bash_and_fish(self, step, user_context):
        _touch(user_context.bashrc, "# ~/.bashrc\n")

        step.apply()

        assert user_context.bashrc.read_text(encoding="utf-8") == "# ~/.bashrc\n" + PYENV_BASH_BLOCK
        assert user_context.fish_config_file.read_text(encoding="utf-8") == PYENV_FISH_BLOCK
        assert step.is_satisfied() is True

    def test_second_run_changes_nothing(self, step, user_context):
        _touch(user_context.bashrc, "# ~/.bashrc\n")
        step.apply()
        bashrc_before = user_context.bashrc.read_bytes()
        fish_before = user_context.fish_config_file.read_bytes()

        step.apply()

        assert user_context.bashrc.read_bytes() == bashrc_before
        assert user_context.fish_config_file.read_bytes() == fish_before

    def test_missing_bashrc_is_not_created(self, step, user_context):
        step.apply()

        assert not user_context.bashrc.exists()
        assert user_context.fish_config_file.is_file()

    def test_runs_installer_when_missing(self, mocker, app_settings, user_context, apt, mock_logger, no_chown, tmp_path):
        script = tmp_path / "pyenv-installer.sh"
        script.write_text("#!/bin/bash\n", encoding="utf-8")
        mocker.patch("installer.pyenv_installer.fetch_installer_script", return_value=script)
        mock_run = mocker.patch(
            "installer.pyenv_installer.run_as_user", return_value=MagicMock(returncode=1)
        )
        step = PyenvStep(app_settings, user_context, apt, mock_logger)

        step.apply()

        assert mock_run.call_args.args[:2] == ("alice", f"bash {script}")
        assert not script.exists()

    def test_pyenv_on_path_elsewhere_is_not_reinstalled(self, mocker, app_settings, user_context, apt, mock_logger, no_chown):
        mock_fetch = mocker.patch("installer.pyenv_installer.fetch_installer_script")
        mock_run = mocker.patch(
            "installer.pyenv_installer.run_as_user",
            return_value=MagicMock(returncode=0, stdout="/opt/pyenv/bin/pyenv\n"),
        )
        _touch(user_context.fish_config_file, PYENV_FISH_BLOCK)
        step = PyenvStep(app_settings, user_context, apt, mock_logger)

        assert step.is_satisfied() is True
        step.apply()

        mock_fetch.assert_not_called()
        assert all(c.args[1] == "command -v pyenv" for c in mock_run.call_args_list)


class TestMiseStep:
    def test_apply(self, mocker, app_settings, user_context, apt, mock_logger, no_chown):
        _touch(user_context.home_path(".local", "bin", "mise"))
        mock_run = mocker.patch("installer.mise_installer.run_as_user")
        step = MiseStep(app_settings, user_context, apt, mock_logger)

        step.apply()

        assert MISE_FISH_ACTIVATION in user_context.fish_config_file.read_text(encoding="utf-8")
        commands = [c.args[1] for c in mock_run.call_args_list]
        assert commands[0] == "~/.local/bin/mise use -g usage"
        assert "mise completion fish > ~/.config/fish/completions/mise.fish" in commands[1]

    def test_installer_failure_propagates(self, mocker, app_settings, user_context, apt, mock_logger, tmp_path):
        script = tmp_path / "mise-installer.sh"
        script.write_text("#!/bin/sh\n", encoding="utf-8")
        mocker.patch("installer.mise_installer.fetch_installer_script", return_value=script)
        mocker.patch(
            "installer.mise_installer.run_as_user",
            side_effect=subprocess.CalledProcessError(1, ["su"]),
        )

        with pytest.raises(subprocess.CalledProcessError):
            MiseStep(app_settings, user_context, apt, mock_logger).apply()
        assert not script.exists()


class TestFishShellStep:
    @pytest.fixture(autouse=True)
    def fish_binary(self, mocker):
        mocker.patch("installer.fish_installer.fish_path", return_value="/usr/bin/fish")

    def test_sets_shell_and_writes_initial_config(self, mocker, app_settings, user_context, apt, mock_logger, no_chown):
        mocker.patch("installer.fish_installer.get_login_shell", return_value="/bin/bash")
        mock_chsh = mocker.patch("installer.fish_installer.set_login_shell")
        step = FishShellStep(app_settings, user_context, apt, mock_logger)

        step.apply()

        apt.install.assert_called_once_with(["fish"])
        mock_chsh.assert_called_once_with("alice", "/usr/bin/fish", app_settings, mock_logger)
        assert user_context.fish_config_file.read_text(encoding="utf-8") == INITIAL_FISH_CONFIG

    def test_existing_config_is_kept(self, mocker, app_settings, user_context, apt, mock_logger, no_chown):
        mocker.patch("installer.fish_installer.get_login_shell", return_value="/usr/bin/fish")
        mock_chsh = mocker.patch("installer.fish_installer.set_login_shell")
        _touch(user_context.fish_config_file, PYENV_FISH_BLOCK)

        FishShellStep(app_settings, user_context, apt, mock_logger).apply()

        mock_chsh.assert_not_called()
        assert user_context.fish_config_file.read_text(encoding="utf-8") == PYENV_FISH_BLOCK


class TestNeovimStep:
    def test_aliases_in_bashrc_and_fish_config(self, mocker, app_settings, user_context, apt, mock_logger, no_chown):
        mocker.patch("installer.neovim_installer.command_exists", return_value=True)
        apt.ppa_present.return_value = True
        _touch(user_context.home_path(".config", "nvim", "init.lua"))
        _touch(user_context.bashrc, "# rc\n")
        step = NeovimStep(app_settings, user_context, apt, mock_logger)

        step.apply()

        assert ALIAS_MARKER in user_context.bashrc.read_text(encoding="utf-8")
        assert user_context.fish_config_file.read_text(encoding="utf-8") == NEOVIM_ALIASES
        assert step.is_satisfied() is True

    def test_installs_from_ppa_and_clones_kickstart(self, mocker, app_settings, user_context, apt, mock_logger, no_chown):
        mocker.patch(
            "installer.neovim_installer.command_exists", side_effect=[False, True]
        )
        mock_run = mocker.patch("installer.neovim_installer.run_as_user")
        step = NeovimStep(app_settings, user_context, apt, mock_logger)

        step.apply()

        apt.add_ppa.assert_called_once_with("ppa:neovim-ppa/unstable")
        apt.install.assert_called_once_with(app_settings.catalog("neovim"))
        assert mock_run.call_args.args[1] == (
            "git clone https://github.com/nvim-lua/kickstart.nvim.git ~/.config/nvim"
        )

    def test_kickstart_failure_only_warns(self, mocker, app_settings, user_context, apt, mock_logger, no_chown):
        mocker.patch("installer.neovim_installer.command_exists", return_value=True)
        apt.ppa_present.return_value = True
        mocker.patch(
            "installer.neovim_installer.run_as_user",
            side_effect=subprocess.CalledProcessError(128, ["su"]),
        )

        NeovimStep(app_settings, user_context, apt, mock_logger).apply()

        mock_logger.warning.assert_called_once()
