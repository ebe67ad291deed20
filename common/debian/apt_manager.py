# common/debian/apt_manager.py
# -*- coding: utf-8 -*-
import logging
import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from common.command_utils import (
    check_package_installed,
    command_exists,
    run_command,
    run_elevated_command,
)
from common.download_utils import download_file
from common.exceptions import PackageInstallError, PreconditionError
from common.file_utils import cleanup_directory, write_file_if_changed
from setup import config
from setup.config_models import AppSettings


class AptManager:
    """
    A centralized manager for apt/dpkg operations on Ubuntu.

    Every installation goes through ``install``, which only hands the missing
    subset of a package set to apt, so repeated runs never re-install
    packages that dpkg already reports as installed.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initializes the AptManager.
        Args:
            app_settings: The application settings.
            logger: An optional logging object.
        """
        self.app_settings = app_settings
        self.logger = logger or logging.getLogger(__name__)
        if not command_exists("apt-get"):
            self.logger.critical(
                "'apt-get' command not found. This manager cannot function."
            )
            raise PreconditionError(
                "'apt-get' not found. Is this a Debian-based system?"
            )

    @property
    def env(self) -> Optional[Dict[str, str]]:
        """Environment overrides for apt: non-interactive in auto mode."""
        if self.app_settings.auto_mode:
            return dict(config.NONINTERACTIVE_APT_ENV)
        return None

    def _apt(
        self,
        args: List[str],
        description: str,
        raise_error: bool,
    ) -> bool:
        self.logger.info(f"{description}...")
        try:
            run_elevated_command(
                ["apt-get"] + args,
                self.app_settings,
                current_logger=self.logger,
                env=self.env,
            )
        except subprocess.CalledProcessError as e:
            if raise_error:
                raise
            self.logger.warning(f"{description} failed: {e}")
            return False
        return True

    def update(self, raise_error: bool = True) -> bool:
        """
        Updates the list of available packages using 'apt-get update'.

        Args:
            raise_error: Whether to raise an exception on failure. When False
                the failure is logged as a warning.

        Returns:
            True if successful, False otherwise.
        """
        return self._apt(["update"], "Updating apt package lists", raise_error)

    def upgrade(self, raise_error: bool = True) -> bool:
        return self._apt(["upgrade", "-y"], "Upgrading installed packages", raise_error)

    def dist_upgrade(self, raise_error: bool = True) -> bool:
        return self._apt(["dist-upgrade", "-y"], "Running dist-upgrade", raise_error)

    def autoremove(self, raise_error: bool = True) -> bool:
        return self._apt(["autoremove", "-y"], "Removing unused packages", raise_error)

    def clean(self, raise_error: bool = True) -> bool:
        return self._apt(["clean"], "Cleaning the package cache", raise_error)

    def partition(self, packages: Iterable[str]) -> Tuple[List[str], List[str]]:
        """
        Split ``packages`` into (installed, missing), preserving order.

        Installation state is queried from dpkg on every call.
        """
        installed: List[str] = []
        missing: List[str] = []
        for pkg_name in packages:
            if pkg_name in installed or pkg_name in missing:
                continue
            if check_package_installed(pkg_name, self.app_settings, self.logger):
                installed.append(pkg_name)
            else:
                missing.append(pkg_name)
        return installed, missing

    def all_installed(self, packages: Iterable[str]) -> bool:
        _, missing = self.partition(packages)
        return not missing

    def install(
        self,
        packages: Union[Iterable[str], str],
        update_first: bool = False,
    ) -> List[str]:
        """
        Installs the packages of ``packages`` that are not installed yet.

        Args:
            packages: A single package name or an iterable of identifiers
                (``name`` or ``name:architecture``).
            update_first: Whether to update the package lists before installing.

        Returns:
            The identifiers that were handed to apt (empty if nothing was missing).

        Raises:
            PackageInstallError: If apt exits non-zero. The error names the
                attempted set.
        """
        if isinstance(packages, str):
            packages = [packages]

        installed, missing = self.partition(packages)
        for pkg_name in installed:
            self.logger.info(f"Package '{pkg_name}' is already installed. Skipping.")

        if not missing:
            self.logger.info("All requested packages are already installed.")
            return []

        if update_first:
            self.update()

        self.logger.info(f"Installing: {', '.join(missing)}")
        try:
            run_elevated_command(
                ["apt-get", "install", "-y"] + missing,
                self.app_settings,
                current_logger=self.logger,
                env=self.env,
            )
        except subprocess.CalledProcessError as e:
            raise PackageInstallError(missing, f"apt-get exited with {e.returncode}") from e
        self.logger.info("Packages installed successfully.")
        return missing

    def install_best_effort(self, packages: Union[Iterable[str], str]) -> bool:
        """
        Like ``install`` but an apt failure is only logged as a warning.

        Returns:
            True if every package ended up installed.
        """
        try:
            self.install(packages)
        except PackageInstallError as e:
            self.logger.warning(f"{e}. Continuing.")
            return False
        return True

    def remove(self, packages: Iterable[str]) -> List[str]:
        """
        Removes whichever of ``packages`` are installed, one at a time. A
        package that cannot be removed is logged as a warning and the rest
        are still attempted.

        Returns:
            The identifiers actually removed.
        """
        installed, _ = self.partition(packages)
        if not installed:
            self.logger.info("None of the packages to remove are installed.")
            return []
        removed: List[str] = []
        for package in installed:
            if self._apt(["remove", "-y", package], f"Removing {package}", raise_error=False):
                removed.append(package)
            else:
                self.logger.warning(f"Package '{package}' could not be removed.")
        return removed

    def source_list_path(self, name: str) -> Path:
        return Path(self.app_settings.paths.apt_sources_dir) / f"{name}.list"

    def add_source_list(self, name: str, line: str) -> bool:
        """
        Writes ``/etc/apt/sources.list.d/<name>.list`` containing ``line``.

        The file is only rewritten when its content differs, so the source is
        never duplicated.

        Returns:
            True if the file changed (the caller should run ``update``).
        """
        content = line if line.endswith("\n") else line + "\n"
        changed = write_file_if_changed(
            self.source_list_path(name),
            content,
            app_settings=self.app_settings,
            current_logger=self.logger,
        )
        if changed:
            self.logger.info(f"Added apt source '{name}'.")
        return changed

    def add_gpg_key_from_url(
        self, key_url: str, keyring_path: str, dearmor: bool = False
    ) -> bool:
        """
        Downloads a signing key and stores it at ``keyring_path``.

        Args:
            key_url: The URL of the GPG key.
            keyring_path: Destination keyring (skipped when it already exists).
            dearmor: Convert an ASCII-armored key to the binary format.

        Returns:
            True if the keyring was written, False if it already existed.

        Raises:
            DownloadError: If the key cannot be downloaded.
            subprocess.CalledProcessError: If gpg or install fails.
        """
        keyring = Path(keyring_path)
        if keyring.exists():
            self.logger.info(f"Keyring {keyring} already present. Skipping.")
            return False

        self.logger.info(f"Adding GPG key from {key_url} to {keyring}")
        scratch = Path(self.app_settings.paths.build_dir) / f"{keyring.name}.download"
        try:
            download_file(key_url, scratch, self.app_settings, self.logger)
            run_elevated_command(
                ["install", "-m", "0755", "-d", str(keyring.parent)],
                self.app_settings,
                current_logger=self.logger,
            )
            if dearmor:
                run_command(
                    ["gpg", "--batch", "--yes", "--dearmor", "-o", str(keyring), str(scratch)],
                    self.app_settings,
                    current_logger=self.logger,
                )
                run_elevated_command(
                    ["chmod", "644", str(keyring)],
                    self.app_settings,
                    current_logger=self.logger,
                )
            else:
                run_elevated_command(
                    ["install", "-m", "0644", str(scratch), str(keyring)],
                    self.app_settings,
                    current_logger=self.logger,
                )
        finally:
            cleanup_directory(scratch, self.app_settings, self.logger)
        self.logger.info("GPG key added and permissions set.")
        return True

    def ppa_present(self, ppa: str) -> bool:
        """True if any apt source file already references ``ppa``."""
        needle = ppa.split(":", 1)[-1]
        sources_dir = Path(self.app_settings.paths.apt_sources_dir)
        if not sources_dir.is_dir():
            return False
        for source_file in sources_dir.iterdir():
            if not source_file.is_file():
                continue
            try:
                if needle in source_file.read_text(encoding="utf-8"):
                    return True
            except (OSError, UnicodeDecodeError):
                continue
        return False

    def add_ppa(self, ppa: str) -> bool:
        """
        Adds a Launchpad PPA unless a source file already references it.

        Returns:
            True if the PPA was added.
        """
        if self.ppa_present(ppa):
            self.logger.info(f"PPA {ppa} already configured. Skipping.")
            return False
        run_elevated_command(
            ["add-apt-repository", "-y", ppa],
            self.app_settings,
            current_logger=self.logger,
            env=self.env,
        )
        return True

    def has_foreign_architecture(self, arch: str) -> bool:
        result = run_command(
            ["dpkg", "--print-foreign-architectures"],
            self.app_settings,
            check=False,
            capture_output=True,
            current_logger=self.logger,
        )
        return arch in (result.stdout or "").split()

    def add_architecture(self, arch: str) -> bool:
        """
        Enables a foreign architecture (e.g. i386) unless already enabled.

        Returns:
            True if it was added (the caller should run ``update``).
        """
        if self.has_foreign_architecture(arch):
            self.logger.info(f"Architecture {arch} already enabled.")
            return False
        run_elevated_command(
            ["dpkg", "--add-architecture", arch],
            self.app_settings,
            current_logger=self.logger,
        )
        return True

    def install_deb(self, deb_path: Union[str, Path]) -> None:
        """
        Installs a local .deb file with dpkg, repairing missing dependencies.

        When ``dpkg -i`` fails, ``apt-get install -f -y`` pulls in the missing
        dependencies and the package is installed once more.

        Raises:
            PackageInstallError: If the second attempt fails as well.
        """
        deb = str(deb_path)
        try:
            run_elevated_command(
                ["dpkg", "-i", deb],
                self.app_settings,
                current_logger=self.logger,
                env=self.env,
            )
            return
        except subprocess.CalledProcessError:
            self.logger.warning(
                f"dpkg could not install {deb} directly. Fixing dependencies and retrying."
            )

        try:
            run_elevated_command(
                ["apt-get", "install", "-f", "-y"],
                self.app_settings,
                current_logger=self.logger,
                env=self.env,
            )
            run_elevated_command(
                ["dpkg", "-i", deb],
                self.app_settings,
                current_logger=self.logger,
                env=self.env,
            )
        except subprocess.CalledProcessError as e:
            raise PackageInstallError([deb], "dpkg -i failed after dependency repair") from e

    def set_debconf_selection(self, selection: str) -> None:
        """Pre-seeds a debconf answer (``<owner> <question> <type> <value>``)."""
        run_elevated_command(
            ["debconf-set-selections"],
            self.app_settings,
            cmd_input=selection if selection.endswith("\n") else selection + "\n",
            current_logger=self.logger,
        )
