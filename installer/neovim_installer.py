# installer/neovim_installer.py
# -*- coding: utf-8 -*-
"""
Handles the installation of Neovim from the unstable PPA, the kickstart.nvim
configuration and the vim/vi aliases.
"""

import subprocess

from common.command_utils import command_exists, run_as_user
from common.exceptions import SetupError
from common.file_utils import ensure_line_in_file, file_contains
from installer.base_step import BaseStep

ALIAS_MARKER = "alias vim='nvim'"
NEOVIM_ALIASES = """# Neovim aliases
alias vim='nvim'
alias vi='nvim'
"""


class NeovimStep(BaseStep):
    """Neovim (unstable PPA), kickstart.nvim and vim/vi aliases."""

    name = "neovim"
    fatal = True

    @property
    def init_lua(self):
        return self.user_context.home_path(".config", "nvim", "init.lua")

    def _alias_targets(self):
        """config.fish always; ~/.bashrc only when the user already has one."""
        targets = [self.user_context.fish_config_file]
        if self.user_context.bashrc.is_file():
            targets.insert(0, self.user_context.bashrc)
        return targets

    def _neovim_installed(self) -> bool:
        return command_exists("nvim") and self.apt.ppa_present(
            self.app_settings.sources.neovim_ppa
        )

    def is_satisfied(self) -> bool:
        return (
            self._neovim_installed()
            and self.init_lua.is_file()
            and all(file_contains(path, ALIAS_MARKER) for path in self._alias_targets())
        )

    def apply(self) -> None:
        if self._neovim_installed():
            self.log("Neovim (unstable) is already installed.")
        else:
            self.log(
                f"{self.symbols.get('step', '➡️')} Installing Neovim from {self.app_settings.sources.neovim_ppa}"
            )
            self.apt.add_ppa(self.app_settings.sources.neovim_ppa)
            self.apt.update()
            self.apt.install(self.app_settings.catalog("neovim"))
            if not command_exists("nvim"):
                raise SetupError("Neovim installation failed: 'nvim' not found on PATH.")

        if self.init_lua.is_file():
            self.log("kickstart.nvim configuration already exists.")
        else:
            self.log(f"Setting up kickstart.nvim for user {self.user_context.username}")
            try:
                run_as_user(
                    self.user_context.username,
                    f"git clone {self.app_settings.sources.kickstart_nvim_repo} ~/.config/nvim",
                    self.app_settings,
                    current_logger=self.logger,
                )
            except subprocess.CalledProcessError:
                self.log(
                    f"{self.symbols.get('warning', '⚠️')} kickstart.nvim configuration may have failed, please check ~/.config/nvim manually.",
                    "warning",
                )

        for rc_file in self._alias_targets():
            ensure_line_in_file(
                rc_file,
                ALIAS_MARKER,
                NEOVIM_ALIASES,
                user_context=self.user_context,
                app_settings=self.app_settings,
                current_logger=self.logger,
            )
