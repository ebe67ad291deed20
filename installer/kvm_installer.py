# installer/kvm_installer.py
# -*- coding: utf-8 -*-
"""
Handles the installation of KVM/libvirt and the default NAT network.
"""

from common.command_utils import run_elevated_command
from common.system_utils import (
    add_user_to_group,
    systemd_enable_now,
    user_in_group,
)
from installer.base_step import BaseStep

KVM_GROUPS = ("kvm", "libvirt")


class KvmStep(BaseStep):
    """KVM and libvirt packages, libvirtd service, group membership, default network."""

    name = "kvm"
    fatal = False

    def is_satisfied(self) -> bool:
        return self.apt.all_installed(self.app_settings.catalog("kvm")) and all(
            user_in_group(self.user_context.username, group) for group in KVM_GROUPS
        )

    def _default_network_active(self) -> bool:
        result = run_elevated_command(
            ["virsh", "net-info", "default"],
            self.app_settings,
            check=False,
            capture_output=True,
            current_logger=self.logger,
        )
        for line in (result.stdout or "").splitlines():
            if line.startswith("Active:") and "yes" in line:
                return True
        return False

    def apply(self) -> None:
        self.log(f"{self.symbols.get('package', '📦')} Installing KVM and libvirt packages")
        self.apt.install(self.app_settings.catalog("kvm"))
        systemd_enable_now(["libvirtd"], self.app_settings, self.logger)

        for group in KVM_GROUPS:
            add_user_to_group(
                self.user_context.username, group, self.app_settings, self.logger
            )

        self.log("Starting and enabling the default NAT network")
        if not self._default_network_active():
            result = run_elevated_command(
                ["virsh", "net-start", "default"],
                self.app_settings,
                check=False,
                capture_output=True,
                current_logger=self.logger,
            )
            if result.returncode != 0:
                self.log("Default network may already be running.", "warning")
        run_elevated_command(
            ["virsh", "net-autostart", "default"],
            self.app_settings,
            check=False,
            capture_output=True,
            current_logger=self.logger,
        )
