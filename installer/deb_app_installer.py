# installer/deb_app_installer.py
# -*- coding: utf-8 -*-
"""
Desktop applications distributed as standalone .deb files: Google Chrome Beta
and 1Password (desktop app and CLI).
"""

import logging
from pathlib import Path

from common.command_utils import check_package_installed, command_exists
from common.debian.apt_manager import AptManager
from common.download_utils import download_file
from common.file_utils import cleanup_directory
from installer.base_step import BaseStep
from setup.config_models import AppSettings


def download_and_install_deb(
    url: str,
    apt_manager: AptManager,
    app_settings: AppSettings,
    current_logger: logging.Logger,
) -> None:
    """
    Download a .deb into the build directory, install it and remove the file.

    Raises:
        DownloadError: If the download fails.
        PackageInstallError: If dpkg fails even after repairing dependencies.
    """
    deb_path = Path(app_settings.paths.build_dir) / url.rsplit("/", 1)[-1]
    try:
        download_file(url, deb_path, app_settings, current_logger)
        apt_manager.install_deb(deb_path)
    finally:
        cleanup_directory(deb_path, app_settings, current_logger)


class ChromeBetaStep(BaseStep):
    name = "chrome-beta"
    fatal = False

    def is_satisfied(self) -> bool:
        return check_package_installed("google-chrome-beta", self.app_settings, self.logger)

    def apply(self) -> None:
        self.log(f"{self.symbols.get('step', '➡️')} Installing Google Chrome Beta")
        download_and_install_deb(
            self.app_settings.sources.chrome_beta_deb_url,
            self.apt,
            self.app_settings,
            self.logger,
        )


class OnePasswordStep(BaseStep):
    """1Password desktop (.deb, which also adds its apt repository) and the ``op`` CLI."""

    name = "1password"
    fatal = False

    def _desktop_installed(self) -> bool:
        return check_package_installed("1password", self.app_settings, self.logger)

    def is_satisfied(self) -> bool:
        return self._desktop_installed() and command_exists("op")

    def apply(self) -> None:
        if self._desktop_installed():
            self.log("1Password desktop is already installed.")
        else:
            self.log(f"{self.symbols.get('step', '➡️')} Installing 1Password desktop")
            download_and_install_deb(
                self.app_settings.sources.onepassword_deb_url,
                self.apt,
                self.app_settings,
                self.logger,
            )

        if command_exists("op"):
            self.log("1Password CLI is already installed.")
        else:
            self.apt.update()
            self.apt.install(["1password-cli"])
