# tests/installer/test_second_run.py
# -*- coding: utf-8 -*-
"""
Running the file-writing steps a second time must leave the system exactly
as the first run left it: no duplicate apt sources, no repeated config
blocks and nothing handed to apt-get install.
"""

import shutil
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from common.debian.apt_manager import AptManager
from common.orchestrator import Orchestrator
from installer.docker_installer import DockerStep
from installer.mise_installer import MISE_MARKER, MiseStep
from installer.neovim_installer import ALIAS_MARKER, NeovimStep
from installer.podman_installer import REGISTRIES_MARKER, PodmanConfigStep
from installer.pyenv_installer import PYENV_MARKER, PyenvStep


def _touch(path, content=""):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _snapshot(*roots):
    return {
        path: path.read_bytes()
        for root in roots
        for path in sorted(Path(root).rglob("*"))
        if path.is_file()
    }


@pytest.fixture
def system(mocker, app_settings):
    """
    A real AptManager over a faked system: dpkg reports every package as
    installed, privileged commands only act on files under tmp_path.
    """
    sources_dir = Path(app_settings.paths.apt_sources_dir)

    def fake_elevated(cmd, *args, **kwargs):
        if cmd[:4] == ["install", "-m", "0755", "-d"]:
            Path(cmd[4]).mkdir(parents=True, exist_ok=True)
        elif cmd[:3] == ["install", "-m", "0644"]:
            shutil.copyfile(cmd[3], cmd[4])
        elif cmd[0] == "add-apt-repository":
            owner, _, name = cmd[-1].split(":", 1)[-1].partition("/")
            sources_dir.mkdir(parents=True, exist_ok=True)
            (sources_dir / f"{owner}-ubuntu-{name}-plucky.sources").write_text(
                f"URIs: https://ppa.launchpadcontent.net/{owner}/{name}/ubuntu/\n",
                encoding="utf-8",
            )
        return MagicMock(returncode=0, stdout="", stderr="")

    def fake_download(url, destination, *args, **kwargs):
        Path(destination).parent.mkdir(parents=True, exist_ok=True)
        Path(destination).write_bytes(b"-----BEGIN PGP PUBLIC KEY BLOCK-----\n")
        return Path(destination)

    mocker.patch("common.debian.apt_manager.command_exists", return_value=True)
    mocker.patch("common.debian.apt_manager.check_package_installed", return_value=True)
    download = mocker.patch("common.debian.apt_manager.download_file", side_effect=fake_download)
    elevated = mocker.patch(
        "common.debian.apt_manager.run_elevated_command", side_effect=fake_elevated
    )
    _touch(Path(app_settings.paths.os_release), 'NAME="Ubuntu"\nUBUNTU_CODENAME=plucky\n')
    return {"download": download, "elevated": elevated}


@pytest.fixture
def user_tools(mocker, user_context):
    """pyenv and mise already installed, nvim on PATH, Docker and Podman absent."""
    _touch(user_context.bashrc, "# ~/.bashrc\n")
    _touch(user_context.home_path(".pyenv", "bin", "pyenv"))
    _touch(user_context.home_path(".local", "bin", "mise"))

    def fake_clone(user, command, *args, **kwargs):
        _touch(user_context.home_path(".config", "nvim", "init.lua"), "-- kickstart\n")
        return MagicMock(returncode=0)

    def fake_mise(user, command, *args, **kwargs):
        if "completion fish" in command:
            _touch(user_context.fish_config_dir / "completions" / "mise.fish", "complete -c mise\n")
        return MagicMock(returncode=0)

    mocker.patch("installer.neovim_installer.command_exists", return_value=True)
    mocker.patch("installer.neovim_installer.run_as_user", side_effect=fake_clone)
    mocker.patch("installer.mise_installer.run_as_user", side_effect=fake_mise)
    mocker.patch("installer.docker_installer.command_exists", return_value=False)
    mocker.patch("installer.docker_installer.get_architecture", return_value="amd64")
    mocker.patch("installer.docker_installer.systemd_enable_now")
    mocker.patch("installer.docker_installer.run_elevated_command")
    mocker.patch("installer.podman_installer.command_exists", return_value=False)


def _run_once(app_settings, user_context, apt_manager, logger):
    orchestrator = Orchestrator(app_settings, logger)
    for step_cls in (NeovimStep, DockerStep, PodmanConfigStep, PyenvStep, MiseStep):
        orchestrator.add_step(step_cls(app_settings, user_context, apt_manager, logger))
    return orchestrator.run()


def test_second_run_changes_nothing(mocker, app_settings, user_context, mock_logger, no_chown, system, user_tools, tmp_path):
    apt_manager = AptManager(app_settings, mock_logger)
    install_spy = mocker.spy(apt_manager, "install")
    roots = (tmp_path / "etc", user_context.home_directory)

    first = _run_once(app_settings, user_context, apt_manager, mock_logger)
    after_first = _snapshot(*roots)
    second = _run_once(app_settings, user_context, apt_manager, mock_logger)
    after_second = _snapshot(*roots)

    assert first.failed == [] and second.failed == []
    assert after_second == after_first

    sources_dir = Path(app_settings.paths.apt_sources_dir)
    docker_list = (sources_dir / "docker.list").read_text(encoding="utf-8")
    assert docker_list.count("download.docker.com") == 1
    assert len(list(sources_dir.glob("neovim-ppa-*"))) == 1

    bashrc = user_context.bashrc.read_text(encoding="utf-8")
    fish_config = user_context.fish_config_file.read_text(encoding="utf-8")
    registries = Path(app_settings.paths.registries_conf).read_text(encoding="utf-8")
    assert bashrc.count(PYENV_MARKER) == 1
    assert bashrc.count(ALIAS_MARKER) == 1
    assert fish_config.count(PYENV_MARKER) == 1
    assert fish_config.count(ALIAS_MARKER) == 1
    assert fish_config.count(MISE_MARKER) == 1
    assert registries.count(REGISTRIES_MARKER) == 1

    assert install_spy.call_count > 0
    assert all(result == [] for result in install_spy.spy_return_list)
    commands = [c.args[0] for c in system["elevated"].call_args_list]
    assert not [cmd for cmd in commands if cmd[:2] == ["apt-get", "install"]]
    assert sum(cmd[0] == "add-apt-repository" for cmd in commands) == 1
    assert system["download"].call_count == 1


def test_forced_reapply_is_a_noop(app_settings, user_context, mock_logger, no_chown, system, user_tools, tmp_path):
    apt_manager = AptManager(app_settings, mock_logger)
    steps = [
        step_cls(app_settings, user_context, apt_manager, mock_logger)
        for step_cls in (NeovimStep, DockerStep, PodmanConfigStep, PyenvStep, MiseStep)
    ]
    for step in steps:
        step.apply()
    after_first = _snapshot(tmp_path / "etc", user_context.home_directory)

    for step in steps:
        step.apply()

    assert _snapshot(tmp_path / "etc", user_context.home_directory) == after_first
