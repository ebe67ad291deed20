# installer/mise_installer.py
# -*- coding: utf-8 -*-
"""
Handles the per-user mise installation, its fish activation, the global
``usage`` tool and fish completions.
"""

from pathlib import Path

from common.command_utils import run_as_user
from common.download_utils import fetch_installer_script
from common.file_utils import cleanup_directory, ensure_line_in_file, file_contains
from installer.base_step import BaseStep

MISE_MARKER = "mise activate"
MISE_FISH_ACTIVATION = "~/.local/bin/mise activate fish | source"


class MiseStep(BaseStep):
    name = "mise"
    fatal = False

    @property
    def mise_binary(self) -> Path:
        return self.user_context.home_path(".local", "bin", "mise")

    @property
    def completions_file(self) -> Path:
        return self.user_context.fish_config_dir / "completions" / "mise.fish"

    def is_satisfied(self) -> bool:
        return (
            self.mise_binary.exists()
            and file_contains(self.user_context.fish_config_file, MISE_MARKER)
            and self.completions_file.is_file()
        )

    def apply(self) -> None:
        user = self.user_context.username
        if self.mise_binary.exists():
            self.log(f"mise is already installed for user {user}.")
        else:
            self.log(f"{self.symbols.get('step', '➡️')} Installing mise for user {user}")
            script = fetch_installer_script(
                self.app_settings.sources.mise_installer_url,
                "mise-installer.sh",
                self.app_settings,
                self.logger,
            )
            try:
                run_as_user(user, f"sh {script}", self.app_settings, current_logger=self.logger)
            finally:
                cleanup_directory(script, self.app_settings, self.logger)

        ensure_line_in_file(
            self.user_context.fish_config_file,
            MISE_MARKER,
            MISE_FISH_ACTIVATION,
            user_context=self.user_context,
            app_settings=self.app_settings,
            current_logger=self.logger,
        )

        self.log("Setting up mise global usage")
        run_as_user(
            user, "~/.local/bin/mise use -g usage", self.app_settings, current_logger=self.logger
        )

        self.log("Generating mise completions for fish")
        run_as_user(
            user,
            "mkdir -p ~/.config/fish/completions && "
            "~/.local/bin/mise completion fish > ~/.config/fish/completions/mise.fish",
            self.app_settings,
            current_logger=self.logger,
        )
