# installer/package_installer.py
# -*- coding: utf-8 -*-
"""
Steps that operate on plain apt package catalogs: the initial system update,
the system/dev/util catalogs, removal of packages that conflict with Docker
Engine and the final upgrade pass.
"""

from installer.base_step import BaseStep


class UpdateSystemStep(BaseStep):
    """Refresh package lists and upgrade installed packages."""

    name = "update-system"
    fatal = True

    def is_satisfied(self) -> bool:
        return False

    def apply(self) -> None:
        self.log(f"{self.symbols.get('step', '➡️')} Updating and upgrading the system...")
        self.apt.update()
        self.apt.upgrade()

    def verify(self) -> bool:
        return True


class CatalogStep(BaseStep):
    """Install every package of a named catalog."""

    catalog_name: str = ""

    @property
    def packages(self):
        return self.app_settings.catalog(self.catalog_name)

    def is_satisfied(self) -> bool:
        return self.apt.all_installed(self.packages)

    def apply(self) -> None:
        self.log(
            f"{self.symbols.get('package', '📦')} Installing {self.catalog_name} packages..."
        )
        self.apt.install(self.packages)


class SystemPackagesStep(CatalogStep):
    name = "system-packages"
    catalog_name = "system"


class DevPackagesStep(CatalogStep):
    name = "dev-packages"
    catalog_name = "dev"


class UtilPackagesStep(CatalogStep):
    name = "util-packages"
    catalog_name = "util"


class RemoveDockerConflictsStep(BaseStep):
    """
    Remove distribution packages that clash with Docker Engine. Each package
    is removed on its own; one that cannot be removed only leaves the step
    unverified.
    """

    name = "remove-docker-conflicts"
    fatal = False

    def is_satisfied(self) -> bool:
        installed, _ = self.apt.partition(
            self.app_settings.catalog("docker_conflicts")
        )
        return not installed

    def apply(self) -> None:
        removed = self.apt.remove(self.app_settings.catalog("docker_conflicts"))
        if removed:
            self.log(f"Removed conflicting packages: {', '.join(removed)}")


class FinalUpdateStep(BaseStep):
    """
    Last update/upgrade/cleanup pass. Each operation is allowed to fail with a
    warning so that a flaky mirror never spoils an otherwise complete run.
    """

    name = "final-update"
    fatal = False

    def is_satisfied(self) -> bool:
        return False

    def apply(self) -> None:
        self.log(f"{self.symbols.get('step', '➡️')} Performing final system update and upgrade")
        for operation in (
            self.apt.update,
            self.apt.upgrade,
            self.apt.dist_upgrade,
            self.apt.autoremove,
            self.apt.clean,
        ):
            operation(raise_error=False)

    def verify(self) -> bool:
        return True
