# installer/lua_installer.py
# -*- coding: utf-8 -*-
"""
Builds and installs the pinned Lua and LuaRocks releases from source.
"""

from pathlib import Path

from common.download_utils import download_file, extract_tarball
from common.exceptions import BuildError
from common.file_utils import cleanup_directory
from common.system_utils import get_command_version, version_matches
from installer.base_step import BaseStep
from installer.source_build import run_build_command


class LuaStep(BaseStep):
    """Lua and LuaRocks at their pinned versions, built from source."""

    name = "lua"
    fatal = True

    @property
    def build_root(self) -> Path:
        return Path(self.app_settings.paths.build_dir) / "lua_build"

    def _lua_ok(self) -> bool:
        return version_matches(
            get_command_version(["lua", "-v"], self.app_settings, self.logger),
            self.app_settings.versions.lua,
        )

    def _luarocks_ok(self) -> bool:
        return version_matches(
            get_command_version(["luarocks", "--version"], self.app_settings, self.logger),
            self.app_settings.versions.luarocks,
        )

    def is_satisfied(self) -> bool:
        return self._lua_ok() and self._luarocks_ok()

    def _fetch_source(self, url_template: str, project: str, version: str) -> Path:
        url = url_template.format(version=version)
        tarball = download_file(
            url,
            self.build_root / f"{project}-{version}.tar.gz",
            self.app_settings,
            self.logger,
        )
        extract_tarball(tarball, self.build_root, self.app_settings, self.logger)
        source_dir = self.build_root / f"{project}-{version}"
        if not source_dir.is_dir():
            raise BuildError(f"Expected source directory {source_dir} after extracting {tarball.name}")
        return source_dir

    def _build_lua(self) -> None:
        version = self.app_settings.versions.lua
        self.log(f"{self.symbols.get('gear', '⚙️')} Building Lua {version} from source")
        source_dir = self._fetch_source(
            self.app_settings.sources.lua_tarball_url, "lua", version
        )
        run_build_command(["make", "all", "test"], source_dir, self.app_settings, self.logger)
        run_build_command(["make", "install"], source_dir, self.app_settings, self.logger)

    def _build_luarocks(self) -> None:
        version = self.app_settings.versions.luarocks
        self.log(f"{self.symbols.get('gear', '⚙️')} Building LuaRocks {version} from source")
        source_dir = self._fetch_source(
            self.app_settings.sources.luarocks_tarball_url, "luarocks", version
        )
        run_build_command(
            ["./configure", "--with-lua-include=/usr/local/include"],
            source_dir,
            self.app_settings,
            self.logger,
        )
        run_build_command(["make"], source_dir, self.app_settings, self.logger)
        run_build_command(["make", "install"], source_dir, self.app_settings, self.logger)

    def apply(self) -> None:
        self.apt.install(self.app_settings.catalog("lua_build"))
        try:
            if self._lua_ok():
                self.log(f"Lua {self.app_settings.versions.lua} is already installed.")
            else:
                self._build_lua()
            if self._luarocks_ok():
                self.log(f"LuaRocks {self.app_settings.versions.luarocks} is already installed.")
            else:
                self._build_luarocks()
        finally:
            cleanup_directory(self.build_root, self.app_settings, self.logger)
