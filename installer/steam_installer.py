# installer/steam_installer.py
# -*- coding: utf-8 -*-
"""
Handles the installation of Steam: i386 multi-arch, the 32-bit runtime
libraries (installed group by group, each best-effort) and the Steam .deb.
"""

from typing import List

from common.command_utils import check_package_installed
from installer.base_step import BaseStep
from installer.deb_app_installer import download_and_install_deb
from setup.config_models import STEAM_DEPENDENCY_GROUPS


class SteamStep(BaseStep):
    name = "steam"
    fatal = False

    def is_satisfied(self) -> bool:
        return check_package_installed(
            "steam", self.app_settings, self.logger
        ) or check_package_installed("steam-launcher", self.app_settings, self.logger)

    def install_dependencies(self) -> List[str]:
        """
        Install the Steam dependency groups.

        Returns:
            The identifiers still missing afterwards (logged, not fatal).
        """
        if self.apt.add_architecture("i386"):
            self.apt.update()

        for group in STEAM_DEPENDENCY_GROUPS:
            self.log(f"Installing Steam {group.replace('steam_', '')} dependencies")
            if not self.apt.install_best_effort(self.app_settings.catalog(group)):
                self.log(
                    f"{self.symbols.get('warning', '⚠️')} Some {group} dependencies may have failed",
                    "warning",
                )

        all_dependencies: List[str] = []
        for group in STEAM_DEPENDENCY_GROUPS:
            all_dependencies.extend(self.app_settings.catalog(group))
        _, missing = self.apt.partition(all_dependencies)
        if missing:
            self.log(
                f"{self.symbols.get('warning', '⚠️')} These Steam dependencies did not install: {' '.join(missing)}. "
                "Continuing, Steam may pull them in during its own setup.",
                "warning",
            )
        else:
            self.log(f"{self.symbols.get('success', '✅')} All Steam dependencies installed.")
        return missing

    def apply(self) -> None:
        self.log(f"{self.symbols.get('step', '➡️')} Installing Steam")
        self.install_dependencies()
        download_and_install_deb(
            self.app_settings.sources.steam_deb_url,
            self.apt,
            self.app_settings,
            self.logger,
        )
