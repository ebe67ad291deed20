# installer/pyenv_installer.py
# -*- coding: utf-8 -*-
"""
Handles the per-user pyenv installation and its bash/fish activation.
"""

from pathlib import Path

from common.command_utils import run_as_user
from common.download_utils import fetch_installer_script
from common.file_utils import cleanup_directory, ensure_line_in_file, file_contains
from installer.base_step import BaseStep

PYENV_MARKER = "pyenv init"

PYENV_BASH_BLOCK = """# pyenv setup
export PYENV_ROOT="$HOME/.pyenv"
[[ -d $PYENV_ROOT/bin ]] && export PATH="$PYENV_ROOT/bin:$PATH"
eval "$(pyenv init -)"
eval "$(pyenv virtualenv-init -)"
"""

PYENV_FISH_BLOCK = """# pyenv setup
set -gx PYENV_ROOT $HOME/.pyenv
fish_add_path $PYENV_ROOT/bin
pyenv init - | source
status --is-interactive; and pyenv virtualenv-init - | source
"""


class PyenvStep(BaseStep):
    name = "pyenv"
    fatal = False

    @property
    def pyenv_binary(self) -> Path:
        return self.user_context.home_path(".pyenv", "bin", "pyenv")

    def pyenv_installed(self) -> bool:
        """The default install location, or any pyenv on the user's login PATH."""
        if self.pyenv_binary.exists():
            return True
        result = run_as_user(
            self.user_context.username,
            "command -v pyenv",
            self.app_settings,
            check=False,
            current_logger=self.logger,
        )
        return result.returncode == 0

    def _bash_activated(self) -> bool:
        bashrc = self.user_context.bashrc
        return not bashrc.is_file() or file_contains(bashrc, PYENV_MARKER)

    def is_satisfied(self) -> bool:
        return (
            self.pyenv_installed()
            and self._bash_activated()
            and file_contains(self.user_context.fish_config_file, PYENV_MARKER)
        )

    def apply(self) -> None:
        self.log(f"{self.symbols.get('package', '📦')} Installing pyenv dependencies")
        self.apt.install(self.app_settings.catalog("pyenv_build"))

        if self.pyenv_installed():
            self.log(f"pyenv is already installed for user {self.user_context.username}.")
        else:
            script = fetch_installer_script(
                self.app_settings.sources.pyenv_installer_url,
                "pyenv-installer.sh",
                self.app_settings,
                self.logger,
            )
            try:
                run_as_user(
                    self.user_context.username,
                    f"bash {script}",
                    self.app_settings,
                    current_logger=self.logger,
                )
            finally:
                cleanup_directory(script, self.app_settings, self.logger)

        if self.user_context.bashrc.is_file():
            ensure_line_in_file(
                self.user_context.bashrc,
                PYENV_MARKER,
                PYENV_BASH_BLOCK,
                user_context=self.user_context,
                app_settings=self.app_settings,
                current_logger=self.logger,
            )
        ensure_line_in_file(
            self.user_context.fish_config_file,
            PYENV_MARKER,
            PYENV_FISH_BLOCK,
            user_context=self.user_context,
            app_settings=self.app_settings,
            current_logger=self.logger,
        )
