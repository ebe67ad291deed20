# installer/podman_installer.py
# -*- coding: utf-8 -*-
"""
Handles Podman and crun built from source at pinned tags, the system-wide
container policy and registries configuration, and the AppArmor/user
namespace adjustments rootless Podman needs on Ubuntu.
"""

import json
from pathlib import Path
from typing import Optional

from common.command_utils import command_exists, run_command, run_elevated_command
from common.file_utils import (
    ensure_line_in_file,
    file_contains,
    write_file_if_changed,
    write_file_if_missing,
)
from common.system_utils import get_command_version, version_matches
from installer.base_step import BaseStep
from installer.source_build import checkout_tag, run_build_command

REGISTRIES_MARKER = "unqualified-search-registries"

POLICY_JSON = json.dumps({"default": [{"type": "insecureAcceptAnything"}]}, indent=2) + "\n"

APPARMOR_PODMAN_PROFILE = """# This profile allows everything and only exists to give the
# application a name instead of having the label "unconfined"

abi <abi/4.0>,
include <tunables/global>

profile podman /usr/{bin,local/bin}/podman flags=(unconfined) {
  userns,

  # Site-specific additions and overrides. See local/README for details.
  include if exists <local/podman>
}
"""

PODMAN_USERNS_SYSCTL = """# Allow unprivileged user namespaces for Podman
kernel.apparmor_restrict_unprivileged_unconfined=0
kernel.apparmor_restrict_unprivileged_userns=0
"""


def registries_line(registries) -> str:
    """``unqualified-search-registries = ['docker.io', 'quay.io']``"""
    quoted = ", ".join(f"'{registry}'" for registry in registries)
    return f"{REGISTRIES_MARKER} = [{quoted}]"


class PodmanStep(BaseStep):
    name = "podman"
    fatal = True

    def is_satisfied(self) -> bool:
        return version_matches(
            get_command_version(["podman", "-v"], self.app_settings, self.logger),
            self.app_settings.versions.podman,
        )

    def apply(self) -> None:
        version = self.app_settings.versions.podman
        self.log(f"{self.symbols.get('package', '📦')} Installing Podman build dependencies")
        self.apt.install(self.app_settings.catalog("podman_build"))

        source_dir = checkout_tag(
            self.app_settings.sources.podman_git_url,
            Path(self.app_settings.paths.build_dir) / "podman_build" / "podman",
            version,
            self.app_settings,
            self.logger,
        )
        self.log(f"{self.symbols.get('gear', '⚙️')} Building Podman {version}")
        run_build_command(["make", "clean"], source_dir, self.app_settings, self.logger, check=False)
        run_build_command(["make"], source_dir, self.app_settings, self.logger)
        run_build_command(["make", "install"], source_dir, self.app_settings, self.logger)


class CrunStep(BaseStep):
    name = "crun"
    fatal = True

    def is_satisfied(self) -> bool:
        return version_matches(
            get_command_version(["crun", "-v"], self.app_settings, self.logger),
            self.app_settings.versions.crun,
        )

    def apply(self) -> None:
        version = self.app_settings.versions.crun
        source_dir = checkout_tag(
            self.app_settings.sources.crun_git_url,
            Path(self.app_settings.paths.build_dir) / "crun_build" / "crun",
            version,
            self.app_settings,
            self.logger,
        )
        self.log(f"{self.symbols.get('gear', '⚙️')} Building crun {version}")
        run_build_command(["./autogen.sh"], source_dir, self.app_settings, self.logger)
        run_build_command(["./configure"], source_dir, self.app_settings, self.logger)
        run_build_command(["make"], source_dir, self.app_settings, self.logger)
        run_build_command(["make", "install"], source_dir, self.app_settings, self.logger)


class PodmanConfigStep(BaseStep):
    """System-wide policy.json, unqualified search registries and a ``podman info`` dump."""

    name = "podman-config"
    fatal = False

    def __init__(self, *args, podman_info_path: Optional[Path] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.podman_info_path = podman_info_path

    @property
    def policy_file(self) -> Path:
        return Path(self.app_settings.paths.containers_dir) / "policy.json"

    @property
    def registries_conf(self) -> Path:
        return Path(self.app_settings.paths.registries_conf)

    def is_satisfied(self) -> bool:
        return self.policy_file.is_file() and file_contains(
            self.registries_conf, REGISTRIES_MARKER
        )

    def apply(self) -> None:
        write_file_if_missing(
            self.policy_file,
            POLICY_JSON,
            app_settings=self.app_settings,
            current_logger=self.logger,
        )
        ensure_line_in_file(
            self.registries_conf,
            REGISTRIES_MARKER,
            registries_line(self.app_settings.sources.unqualified_search_registries),
            app_settings=self.app_settings,
            current_logger=self.logger,
        )

        if not command_exists("podman"):
            self.log("Skipping Podman verification as it doesn't appear to be installed.", "warning")
            return
        result = run_command(
            ["podman", "info", "--debug"],
            self.app_settings,
            check=False,
            capture_output=True,
            current_logger=self.logger,
        )
        if self.podman_info_path is not None:
            self.podman_info_path.write_text(
                (result.stdout or "") + (result.stderr or ""), encoding="utf-8"
            )
            self.log(f"Podman debug output saved to {self.podman_info_path}")


class PodmanUsernsStep(BaseStep):
    """AppArmor profile matching both podman locations and the userns sysctl drop-in."""

    name = "podman-userns"
    fatal = False

    @property
    def profile(self) -> Path:
        return Path(self.app_settings.paths.apparmor_podman_profile)

    @property
    def sysctl_file(self) -> Path:
        return Path(self.app_settings.paths.podman_userns_sysctl)

    def _profile_ok(self) -> bool:
        # Only an existing distribution profile is rewritten.
        if not self.profile.is_file():
            return True
        return self.profile.read_text(encoding="utf-8") == APPARMOR_PODMAN_PROFILE

    def _sysctl_ok(self) -> bool:
        return (
            self.sysctl_file.is_file()
            and self.sysctl_file.read_text(encoding="utf-8") == PODMAN_USERNS_SYSCTL
        )

    def is_satisfied(self) -> bool:
        return self._profile_ok() and self._sysctl_ok()

    def apply(self) -> None:
        self.log("Allowing Podman to use unprivileged user namespaces")
        profile_present = self.profile.is_file()
        if profile_present:
            write_file_if_changed(
                self.profile,
                APPARMOR_PODMAN_PROFILE,
                backup=True,
                app_settings=self.app_settings,
                current_logger=self.logger,
            )

        write_file_if_changed(
            self.sysctl_file,
            PODMAN_USERNS_SYSCTL,
            app_settings=self.app_settings,
            current_logger=self.logger,
        )
        run_elevated_command(
            ["sysctl", "-p", str(self.sysctl_file)],
            self.app_settings,
            current_logger=self.logger,
        )

        if not profile_present:
            return
        if not command_exists("apparmor_parser"):
            self.log("AppArmor parser not found, skipping profile reload.")
            return
        result = run_elevated_command(
            ["apparmor_parser", "-r", str(self.profile)],
            self.app_settings,
            check=False,
            current_logger=self.logger,
        )
        if result.returncode != 0:
            self.log(f"{self.symbols.get('warning', '⚠️')} Failed to reload the AppArmor profile.", "warning")
