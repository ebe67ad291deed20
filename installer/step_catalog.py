# installer/step_catalog.py
# -*- coding: utf-8 -*-
"""
The default, ordered list of setup steps.

Order matters: conflicting Docker packages are removed before Docker Engine is
installed, Docker is installed before its post-install configuration, Podman
and crun are built before Podman is configured, and fish is configured last
so that earlier steps only append to an existing config.fish.
"""

import logging
from pathlib import Path
from typing import List, Optional, Type

from common.debian.apt_manager import AptManager
from common.user_context import UserContext
from installer.base_step import BaseStep
from installer.deb_app_installer import ChromeBetaStep, OnePasswordStep
from installer.docker_installer import DockerPostInstallStep, DockerStep
from installer.fish_installer import FishShellStep
from installer.flatpak_installer import FlatpakAppsStep, FlatpakStep
from installer.jetbrains_installer import JetbrainsToolboxStep
from installer.kvm_installer import KvmStep
from installer.lua_installer import LuaStep
from installer.mise_installer import MiseStep
from installer.neovim_installer import NeovimStep
from installer.package_installer import (
    DevPackagesStep,
    FinalUpdateStep,
    RemoveDockerConflictsStep,
    SystemPackagesStep,
    UpdateSystemStep,
    UtilPackagesStep,
)
from installer.podman_installer import (
    CrunStep,
    PodmanConfigStep,
    PodmanStep,
    PodmanUsernsStep,
)
from installer.pyenv_installer import PyenvStep
from installer.snap_installer import SnapAppsStep
from installer.steam_installer import SteamStep
from installer.vscode_installer import VscodeStep
from setup.config_models import AppSettings

STEP_ORDER: List[Type[BaseStep]] = [
    UpdateSystemStep,
    SystemPackagesStep,
    DevPackagesStep,
    NeovimStep,
    LuaStep,
    KvmStep,
    UtilPackagesStep,
    VscodeStep,
    JetbrainsToolboxStep,
    ChromeBetaStep,
    SteamStep,
    OnePasswordStep,
    FlatpakStep,
    FlatpakAppsStep,
    SnapAppsStep,
    RemoveDockerConflictsStep,
    DockerStep,
    DockerPostInstallStep,
    PodmanStep,
    CrunStep,
    PodmanConfigStep,
    PodmanUsernsStep,
    PyenvStep,
    MiseStep,
    FishShellStep,
    FinalUpdateStep,
]


def build_steps(
    app_settings: AppSettings,
    user_context: UserContext,
    apt_manager: AptManager,
    logger: Optional[logging.Logger] = None,
    log_file: Optional[Path] = None,
) -> List[BaseStep]:
    """
    Instantiate the default steps in execution order.

    Args:
        app_settings: The application settings.
        user_context: The invoking user.
        apt_manager: Shared apt manager.
        logger: Logger handed to every step.
        log_file: The run's log file; ``podman info`` output is saved next to
            it as ``<log_file>.podman_info``.
    """
    steps: List[BaseStep] = []
    for step_class in STEP_ORDER:
        if step_class is PodmanConfigStep:
            podman_info_path = (
                Path(f"{log_file}.podman_info") if log_file is not None else None
            )
            steps.append(
                PodmanConfigStep(
                    app_settings,
                    user_context,
                    apt_manager,
                    logger,
                    podman_info_path=podman_info_path,
                )
            )
        else:
            steps.append(step_class(app_settings, user_context, apt_manager, logger))
    return steps
