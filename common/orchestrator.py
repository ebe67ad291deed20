# common/orchestrator.py
# -*- coding: utf-8 -*-
"""
Centralized orchestrator for executing the ordered sequence of setup steps.
"""

import logging
import sys
from typing import List, Optional

from pydantic import BaseModel, Field

from installer.base_step import BaseStep
from setup.config_models import AppSettings


class RunSummary(BaseModel):
    """Outcome of an orchestration run, by step name."""

    completed: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    warned: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.warned


class Orchestrator:
    """A centralized orchestrator to run a series of setup steps."""

    def __init__(
        self,
        app_settings: AppSettings,
        orchestrator_logger: Optional[logging.Logger] = None,
    ):
        """
        Initializes the Orchestrator.

        Args:
            app_settings: The application settings object.
            orchestrator_logger: An optional logger instance.
        """
        self.app_settings = app_settings
        self.logger = orchestrator_logger or logging.getLogger(__name__)
        self.steps: List[BaseStep] = []
        self.summary = RunSummary()

    def add_step(self, step: BaseStep) -> None:
        """
        Adds a step to the execution list. Insertion order is execution order.
        """
        self.steps.append(step)
        self.logger.debug(f"Step '{step.name}' added to the queue.")

    def run(self) -> RunSummary:
        """
        Executes all added steps in sequence.

        A step that is already satisfied is skipped. A failing fatal step
        ends the process with exit status 1; a failing best-effort step is
        logged as a warning and the run continues.

        Returns:
            The run summary.
        """
        symbols = self.app_settings.symbols
        self.summary = RunSummary()
        self.logger.info("Orchestration started.")
        total = len(self.steps)
        for i, step in enumerate(self.steps):
            self.logger.info(
                f"--- Stage {i + 1}/{total}: Running step '{step.name}' ---"
            )

            try:
                if step.is_satisfied():
                    self.logger.info(
                        f"{symbols.get('info', 'ℹ️')} Step '{step.name}' already satisfied. Skipping."
                    )
                    self.summary.skipped.append(step.name)
                    continue

                step.apply()

                if step.verify():
                    self.logger.info(
                        f"{symbols.get('success', '✅')} Step '{step.name}' completed successfully."
                    )
                    self.summary.completed.append(step.name)
                else:
                    self.logger.warning(
                        f"{symbols.get('warning', '⚠️')} Step '{step.name}' ran but its result could not be verified."
                    )
                    self.summary.warned.append(step.name)

            except Exception as e:
                if step.fatal:
                    self.logger.error(
                        f"{symbols.get('error', '❌')} ERROR: Step '{step.name}' failed: {e}",
                        exc_info=True,
                    )
                    self.logger.error(
                        "A fatal error occurred. Halting orchestration and exiting application."
                    )
                    sys.exit(1)
                self.logger.warning(
                    f"{symbols.get('warning', '⚠️')} Step '{step.name}' failed: {e}. Continuing with the next step."
                )
                self.summary.failed.append(step.name)

        self.logger.info(f"{symbols.get('sparkles', '✨')} Orchestration finished.")
        return self.summary
