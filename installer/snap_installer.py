# installer/snap_installer.py
# -*- coding: utf-8 -*-
"""
Handles Snap applications, bootstrapping snapd when it is missing.
"""

import subprocess
from typing import List, Set

from common.command_utils import command_exists, run_command, run_elevated_command
from common.system_utils import systemd_enable_now
from installer.base_step import BaseStep


def snap_name(entry: str) -> str:
    """The snap name of a catalog entry such as ``"code --classic"``."""
    return entry.split()[0]


class SnapAppsStep(BaseStep):
    """
    Installs each configured snap (entries may carry flags, e.g.
    ``"code --classic"``). A failing snap is logged and skipped.
    """

    name = "snap-apps"
    fatal = False

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.failed_apps: List[str] = []

    def installed_snaps(self) -> Set[str]:
        if not command_exists("snap"):
            return set()
        result = run_command(
            ["snap", "list"],
            self.app_settings,
            check=False,
            capture_output=True,
            current_logger=self.logger,
        )
        if result.returncode != 0:
            return set()
        lines = (result.stdout or "").splitlines()[1:]
        return {line.split()[0] for line in lines if line.strip()}

    def is_satisfied(self) -> bool:
        wanted = self.app_settings.catalog("snap_apps")
        if not wanted:
            return True
        installed = self.installed_snaps()
        return all(snap_name(entry) in installed for entry in wanted)

    def _ensure_snapd(self) -> None:
        if command_exists("snap"):
            self.log("snapd is already installed and available.")
            return
        self.log(f"{self.symbols.get('warning', '⚠️')} snap command not found. Installing snapd.", "warning")
        self.apt.update()
        self.apt.install(["snapd"])
        systemd_enable_now(["snapd.service"], self.app_settings, self.logger)

    def apply(self) -> None:
        self.failed_apps = []
        self._ensure_snapd()
        installed = self.installed_snaps()

        for entry in self.app_settings.catalog("snap_apps"):
            name = snap_name(entry)
            if name in installed:
                self.log(f"Snap app {name} is already installed.")
                continue
            self.log(f"Installing Snap app: {name}")
            try:
                run_elevated_command(
                    ["snap", "install"] + entry.split(),
                    self.app_settings,
                    current_logger=self.logger,
                )
            except subprocess.CalledProcessError:
                self.log(
                    f"{self.symbols.get('warning', '⚠️')} Failed to install Snap app {name}. Continuing.",
                    "warning",
                )
                self.failed_apps.append(entry)
