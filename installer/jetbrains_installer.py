# installer/jetbrains_installer.py
# -*- coding: utf-8 -*-
"""
Handles the installation of JetBrains Toolbox into the target user's home.
"""

import os
from pathlib import Path
from typing import Any, Dict

from common.command_utils import run_command
from common.download_utils import download_file, fetch_json
from common.exceptions import DownloadError
from common.file_utils import cleanup_directory
from common.user_context import fix_ownership
from installer.base_step import BaseStep

TOOLBOX_BINARY = "jetbrains-toolbox"


def latest_linux_archive_url(releases: Dict[str, Any]) -> str:
    """
    Pick the Linux download link out of the JetBrains releases feed
    (``{"TBA": [{"downloads": {"linux": {"link": ...}}}]}``).

    Raises:
        DownloadError: If the feed has no Linux download.
    """
    for release in releases.get("TBA", []):
        link = release.get("downloads", {}).get("linux", {}).get("link")
        if link:
            return link
    raise DownloadError("No Linux download found in the JetBrains Toolbox release feed.")


class JetbrainsToolboxStep(BaseStep):
    name = "jetbrains-toolbox"
    fatal = False

    @property
    def install_dir(self) -> Path:
        return self.user_context.home_path(".local", "share", "JetBrains", "Toolbox", "bin")

    @property
    def symlink_dir(self) -> Path:
        return self.user_context.home_path(".local", "bin")

    @property
    def symlink(self) -> Path:
        return self.symlink_dir / TOOLBOX_BINARY

    def is_satisfied(self) -> bool:
        return self.symlink.is_symlink() or self.symlink.exists()

    def apply(self) -> None:
        self.log(f"{self.symbols.get('step', '➡️')} Installing JetBrains Toolbox")
        self.apt.install(["libfuse2"])

        releases = fetch_json(
            self.app_settings.sources.jetbrains_releases_url,
            self.app_settings,
            self.logger,
        )
        archive_url = latest_linux_archive_url(releases)
        archive = Path(self.app_settings.paths.build_dir) / os.path.basename(archive_url)

        try:
            download_file(archive_url, archive, self.app_settings, self.logger)
            self.install_dir.mkdir(parents=True, exist_ok=True)
            binary = self.install_dir / TOOLBOX_BINARY
            if binary.exists():
                binary.unlink()
            run_command(
                ["tar", "-xzf", str(archive), "-C", str(self.install_dir), "--strip-components=1"],
                self.app_settings,
                current_logger=self.logger,
            )
            binary.chmod(0o755)

            self.symlink_dir.mkdir(parents=True, exist_ok=True)
            if self.symlink.is_symlink() or self.symlink.exists():
                self.symlink.unlink()
            self.symlink.symlink_to(binary)
        finally:
            cleanup_directory(archive, self.app_settings, self.logger)

        fix_ownership(
            self.user_context.home_path(".local", "share", "JetBrains"),
            self.user_context,
            self.app_settings,
            recursive=True,
            current_logger=self.logger,
        )
        fix_ownership(
            self.symlink_dir,
            self.user_context,
            self.app_settings,
            recursive=True,
            current_logger=self.logger,
        )
        self.log(
            f"Run '{TOOLBOX_BINARY}' as {self.user_context.username} (not as root) to finish the setup."
        )
