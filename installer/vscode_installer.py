# installer/vscode_installer.py
# -*- coding: utf-8 -*-
"""
Handles the installation of Visual Studio Code from Microsoft's apt repository.
"""

from pathlib import Path

from common.command_utils import command_exists
from common.system_utils import get_architecture
from installer.base_step import BaseStep

VSCODE_KEYRING_NAME = "packages.microsoft.gpg"
VSCODE_DEBCONF_SELECTION = "code code/add-microsoft-repo boolean true"


class VscodeStep(BaseStep):
    name = "vscode"
    fatal = False

    def is_satisfied(self) -> bool:
        return command_exists("code")

    def apply(self) -> None:
        sources = self.app_settings.sources
        keyring = Path(self.app_settings.paths.apt_keyrings_dir) / VSCODE_KEYRING_NAME

        self.log(f"{self.symbols.get('step', '➡️')} Installing Visual Studio Code")
        self.apt.set_debconf_selection(VSCODE_DEBCONF_SELECTION)
        self.apt.install(self.app_settings.catalog("vscode_prereqs"))
        self.apt.add_gpg_key_from_url(sources.vscode_key_url, str(keyring), dearmor=True)

        arch = get_architecture(self.app_settings, self.logger)
        self.apt.add_source_list(
            "vscode",
            f"deb [arch={arch} signed-by={keyring}] {sources.vscode_repo_url} stable main",
        )
        self.apt.update()
        self.apt.install(["code"])
