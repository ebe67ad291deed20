# installer/fish_installer.py
# -*- coding: utf-8 -*-
"""
Handles the fish shell: installation, default login shell and the initial
configuration file.
"""

import shutil

from common.command_utils import check_package_installed
from common.file_utils import write_file_if_missing
from common.system_utils import get_login_shell, set_login_shell
from installer.base_step import BaseStep

DEFAULT_FISH_PATH = "/usr/bin/fish"

INITIAL_FISH_CONFIG = """# Fish shell configuration

# Add user's private bin to PATH if it exists
if test -d "$HOME/bin"
   fish_add_path "$HOME/bin"
end

if test -d "$HOME/.local/bin"
   fish_add_path "$HOME/.local/bin"
end

# Set environment variables
set -gx EDITOR nvim

# Custom aliases
alias ll='ls -la'
alias la='ls -A'
alias l='ls -CF'

# Fish greeting
function fish_greeting
   echo "Welcome to Fish shell!"
end

# Load local config if exists
if test -f "$HOME/.config/fish/local.fish"
   source "$HOME/.config/fish/local.fish"
end
"""


def fish_path() -> str:
    return shutil.which("fish") or DEFAULT_FISH_PATH


class FishShellStep(BaseStep):
    name = "fish-shell"
    fatal = True

    def is_satisfied(self) -> bool:
        return (
            check_package_installed("fish", self.app_settings, self.logger)
            and get_login_shell(self.user_context.username) == fish_path()
            and self.user_context.fish_config_file.is_file()
        )

    def apply(self) -> None:
        self.apt.install(["fish"])

        shell = fish_path()
        if get_login_shell(self.user_context.username) == shell:
            self.log(f"Fish is already the default shell for {self.user_context.username}.")
        else:
            self.log(f"Setting fish as the default shell for user {self.user_context.username}")
            set_login_shell(self.user_context.username, shell, self.app_settings, self.logger)

        write_file_if_missing(
            self.user_context.fish_config_file,
            INITIAL_FISH_CONFIG,
            user_context=self.user_context,
            app_settings=self.app_settings,
            current_logger=self.logger,
        )
