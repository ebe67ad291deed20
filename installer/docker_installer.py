# installer/docker_installer.py
# -*- coding: utf-8 -*-
"""
Handles the installation of Docker Engine and its post-installation setup.
"""

import subprocess
from pathlib import Path

from common.command_utils import command_exists, run_command, run_elevated_command
from common.exceptions import PreconditionError, SetupError
from common.system_utils import (
    add_user_to_group,
    ensure_group,
    get_architecture,
    get_os_codename,
    group_exists,
    systemd_enable_now,
    systemd_is_enabled,
    user_in_group,
)
from installer.base_step import BaseStep

DOCKER_KEYRING_NAME = "docker.asc"
DOCKER_GROUP = "docker"


class DockerStep(BaseStep):
    """Docker's apt repository, Docker Engine packages and services."""

    name = "docker"
    fatal = True

    def is_satisfied(self) -> bool:
        if not command_exists("docker"):
            return False
        result = run_command(
            ["docker", "--version"],
            self.app_settings,
            check=False,
            capture_output=True,
            current_logger=self.logger,
        )
        return result.returncode == 0

    def apply(self) -> None:
        sources = self.app_settings.sources
        keyring = Path(self.app_settings.paths.apt_keyrings_dir) / DOCKER_KEYRING_NAME

        self.log(f"{self.symbols.get('step', '➡️')} Setting up the Docker repository")
        self.apt.update()
        self.apt.install(["ca-certificates", "curl"])
        self.apt.add_gpg_key_from_url(sources.docker_key_url, str(keyring))

        arch = get_architecture(self.app_settings, self.logger)
        codename = get_os_codename(self.app_settings, self.logger)
        if not codename:
            raise PreconditionError("Could not determine the Ubuntu codename for the Docker repository.")
        self.apt.add_source_list(
            "docker",
            f"deb [arch={arch} signed-by={keyring}] {sources.docker_repo_url} {codename} stable",
        )
        self.apt.update()

        self.log(f"{self.symbols.get('package', '📦')} Installing Docker packages")
        self.apt.install(self.app_settings.catalog("docker"))

        systemd_enable_now(["docker.service"], self.app_settings, self.logger)
        run_elevated_command(
            ["systemctl", "enable", "containerd.service"],
            self.app_settings,
            current_logger=self.logger,
        )


class DockerPostInstallStep(BaseStep):
    """docker group membership for the target user, services on boot, hello-world check."""

    name = "docker-post-install"
    fatal = True

    def is_satisfied(self) -> bool:
        return (
            group_exists(DOCKER_GROUP)
            and user_in_group(self.user_context.username, DOCKER_GROUP)
            and systemd_is_enabled("docker.service", self.app_settings, self.logger)
        )

    def apply(self) -> None:
        if ensure_group(DOCKER_GROUP, self.app_settings, self.logger):
            self.log("Created the docker group.")
        if add_user_to_group(
            self.user_context.username, DOCKER_GROUP, self.app_settings, self.logger
        ):
            self.log("Alternatively, run 'newgrp docker' to activate the group immediately.")

        if not systemd_is_enabled("docker.service", self.app_settings, self.logger):
            for unit in ("docker.service", "containerd.service"):
                run_elevated_command(
                    ["systemctl", "enable", unit],
                    self.app_settings,
                    current_logger=self.logger,
                )

        try:
            run_elevated_command(
                ["docker", "run", "--rm", "hello-world"],
                self.app_settings,
                capture_output=True,
                current_logger=self.logger,
            )
        except subprocess.CalledProcessError as e:
            raise SetupError(
                "Docker installation verification failed. Please check your installation."
            ) from e
        self.log(f"{self.symbols.get('success', '✅')} Docker installation verified.")
