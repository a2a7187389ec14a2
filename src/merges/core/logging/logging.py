# -----------------------------------------------------------------------------
# /*
#  * Copyright (C) 2025 CodeStory
#  *
#  * This program is free software; you can redistribute it and/or modify
#  * it under the terms of the GNU General Public License as published by
#  * the Free Software Foundation; Version 2.
#  *
#  * This program is distributed in the hope that it will be useful,
#  * but WITHOUT ANY WARRANTY; without even the implied warranty of
#  * MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
#  * GNU General Public License for more details.
#  *
#  * You should have received a copy of the GNU General Public License
#  * along with this program; if not, you can contact us at support@codestory.build
#  */
# -----------------------------------------------------------------------------


"""
Logging configuration for the merges CLI application.

A rich console sink for the user, and a per-run log file with full detail
for debugging. While the tool surface is served on stdout the console sink
writes to stderr instead.
"""

import os
from datetime import datetime
from pathlib import Path

from loguru import logger
from rich.console import Console

from merges.constants import APP_NAME, ENV_APP_PREFIX, LOG_DIR

LOG_LEVEL_ENV = f"{ENV_APP_PREFIX}LOG_LEVEL"
CONSOLE_LOG_LEVEL_ENV = f"{ENV_APP_PREFIX}CONSOLE_LOG_LEVEL"


class StructuredLogger:
    """Structured logging helper for consistent log formatting."""

    def __init__(self, command_name: str, silent: bool = False, stderr: bool = False):
        self.command_name = command_name
        self.silent = silent
        self.console = Console(stderr=stderr)
        self._setup_logger()

    def _setup_logger(self) -> None:
        """Set up loguru with proper formatting and sinks."""
        # Clear existing sinks to avoid duplicates
        logger.remove()

        log_level = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
        console_level = os.getenv(CONSOLE_LOG_LEVEL_ENV, log_level).upper()
        if self.silent:
            console_level = "ERROR"

        def console_sink(message):
            text = message.record["message"].rstrip("\n")
            self.console.print(text)

        logger.add(console_sink, level=console_level, format="{message}", catch=True)

        logfile = None
        try:
            LOG_DIR.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            logfile = LOG_DIR / f"{APP_NAME}_{timestamp}.log"
            logger.add(
                logfile,
                level="DEBUG",
                format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "<level>{message}</level>",
                rotation="10 MB",
                retention="14 days",
                compression="gz",
                catch=True,
                backtrace=True,
                diagnose=True,
            )
        except OSError as e:
            logger.warning(f"File logging disabled: {e}")

        logger.bind(
            command=self.command_name, logfile=str(logfile), log_level=log_level
        ).debug("Logger initialized")

        self.logfile = logfile

    def get_logfile(self) -> Path | None:
        """Get the current log file path."""
        return self.logfile


def setup_logger(
    command_name: str, debug: bool = False, silent: bool = False, stderr: bool = False
) -> Path | None:
    """
    Set up logging for a command.

    Args:
        command_name: Name of the command being executed
        debug: Enable debug logging
        silent: Only show errors on the console
        stderr: Send console output to stderr (stdout carries protocol data)

    Returns:
        Path to the log file
    """
    if debug:
        os.environ[LOG_LEVEL_ENV] = "DEBUG"
        os.environ[CONSOLE_LOG_LEVEL_ENV] = "DEBUG"

    structured_logger = StructuredLogger(command_name, silent=silent, stderr=stderr)
    return structured_logger.get_logfile()


def log_operation(operation: str, success: bool, **details) -> None:
    """
    Log operation results with structured data.

    Args:
        operation: Name of the operation
        success: Whether the operation succeeded
        **details: Additional operation details
    """
    status = "SUCCESS" if success else "FAILED"
    bound = logger.bind(operation=operation, success=success, **details)
    if success:
        bound.debug(f"Operation {operation}: {status}")
    else:
        bound.error(f"Operation {operation}: {status}")


def get_log_directory() -> Path:
    """Get the directory where log files are stored."""
    return LOG_DIR
