# installer/base_step.py
# -*- coding: utf-8 -*-
"""
Base step class for all installation steps.

This module provides the base class that every step of the workstation setup
inherits from. A step is a named, independently idempotent unit of work: the
orchestrator asks whether it is already satisfied, applies it otherwise and
then verifies the outcome.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from common.command_utils import get_symbols, log_message
from common.debian.apt_manager import AptManager
from common.user_context import UserContext
from setup.config_models import AppSettings


class BaseStep(ABC):
    """
    Base class for all setup steps.

    Subclasses set ``name`` and ``fatal`` and implement ``is_satisfied`` and
    ``apply``. ``verify`` defaults to re-running ``is_satisfied``.
    """

    name: str = ""
    fatal: bool = True
    description: str = ""

    def __init__(
        self,
        app_settings: AppSettings,
        user_context: UserContext,
        apt_manager: AptManager,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the step.

        Args:
            app_settings: The application settings.
            user_context: The invoking user the per-user work is done for.
            apt_manager: Shared apt/dpkg manager.
            logger: Optional logger instance. If not provided, a new logger will be created.
        """
        self.app_settings = app_settings
        self.user_context = user_context
        self.apt = apt_manager
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.symbols = get_symbols(app_settings)

    @abstractmethod
    def is_satisfied(self) -> bool:
        """
        Check the external state this step is responsible for.

        Returns:
            True if nothing needs to be done.
        """
        pass

    @abstractmethod
    def apply(self) -> None:
        """
        Perform the work. Raises on failure.
        """
        pass

    def verify(self) -> bool:
        """
        Re-check the post-condition after ``apply``.

        Returns:
            True if the step achieved its goal.
        """
        return self.is_satisfied()

    def log(self, message: str, level: str = "info") -> None:
        log_message(message, level, self.logger, self.app_settings)

    def __repr__(self) -> str:
        policy = "fatal" if self.fatal else "best-effort"
        return f"<{self.__class__.__name__} {self.name} ({policy})>"
