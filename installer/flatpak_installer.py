# installer/flatpak_installer.py
# -*- coding: utf-8 -*-
"""
Handles Flatpak: the system packages, the per-user Flathub remote and the
per-user application list.
"""

import subprocess
from typing import List, Set

from common.command_utils import run_as_user
from installer.base_step import BaseStep


class FlatpakStep(BaseStep):
    name = "flatpak"
    fatal = False

    def _flathub_configured(self) -> bool:
        result = run_as_user(
            self.user_context.username,
            "flatpak remotes --user --columns=name",
            self.app_settings,
            check=False,
            current_logger=self.logger,
        )
        return result.returncode == 0 and "flathub" in (result.stdout or "").split()

    def is_satisfied(self) -> bool:
        return (
            self.apt.all_installed(self.app_settings.catalog("flatpak"))
            and self._flathub_configured()
        )

    def apply(self) -> None:
        self.log(f"{self.symbols.get('package', '📦')} Installing Flatpak packages")
        self.apt.install(self.app_settings.catalog("flatpak"))
        self.log(f"Adding Flathub repository for user {self.user_context.username}")
        run_as_user(
            self.user_context.username,
            f"flatpak remote-add --user --if-not-exists flathub {self.app_settings.sources.flathub_repo_url}",
            self.app_settings,
            current_logger=self.logger,
        )


class FlatpakAppsStep(BaseStep):
    """
    Installs each configured Flatpak app for the target user. A failing app is
    logged and skipped; the remaining apps are still installed.
    """

    name = "flatpak-apps"
    fatal = False

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.failed_apps: List[str] = []

    def installed_apps(self) -> Set[str]:
        result = run_as_user(
            self.user_context.username,
            "flatpak list --app --columns=application",
            self.app_settings,
            check=False,
            current_logger=self.logger,
        )
        if result.returncode != 0:
            return set()
        return {line.strip() for line in (result.stdout or "").splitlines() if line.strip()}

    def is_satisfied(self) -> bool:
        wanted = self.app_settings.catalog("flatpak_apps")
        if not wanted:
            return True
        installed = self.installed_apps()
        return all(app in installed for app in wanted)

    def apply(self) -> None:
        self.failed_apps = []
        self.apt.install(self.app_settings.catalog("flatpak"))
        installed = self.installed_apps()

        for app in self.app_settings.catalog("flatpak_apps"):
            app_name = app.rsplit(".", 1)[-1]
            if app in installed:
                self.log(f"Flatpak app {app_name} is already installed.")
                continue
            self.log(f"Installing Flatpak app: {app_name}")
            try:
                run_as_user(
                    self.user_context.username,
                    f"flatpak install --user -y flathub {app}",
                    self.app_settings,
                    current_logger=self.logger,
                )
            except subprocess.CalledProcessError:
                self.log(
                    f"{self.symbols.get('warning', '⚠️')} Failed to install Flatpak app {app_name}. Continuing.",
                    "warning",
                )
                self.failed_apps.append(app)
                continue
            self.log(f"{self.symbols.get('success', '✅')} Flatpak app {app_name} installed.")
