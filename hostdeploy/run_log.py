"""Dated run log shared by the console and the log file."""

from __future__ import annotations

import logging
import sys
from datetime import date
from pathlib import Path
from typing import Callable

LOGGER_NAME = "hostdeploy"

logger = logging.getLogger(LOGGER_NAME)

# Records already shown on the terminal (e.g. prompts) go to the file only.
FILE_ONLY = {"file_only": True}


def log_file_name(today: date | None = None) -> str:
    return f"deploy_{(today or date.today()).strftime('%Y%m%d')}.log"


def configure_run_log(workdir: Path, *, today: date | None = None) -> Path:
    """Send the `hostdeploy` logger to stdout and to `deploy_YYYYMMDD.log`.

    The file is opened in append mode so reruns on the same day accumulate,
    like `tee -a`. Calling this again replaces the previously installed
    handlers.
    """
    log_path = workdir / log_file_name(today)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter("%(message)s")

    file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # Errors go to stderr, everything else to stdout.
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    stdout_handler.addFilter(lambda record: record.levelno < logging.ERROR and not getattr(record, "file_only", False))
    logger.addHandler(stdout_handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    stderr_handler.setLevel(logging.ERROR)
    logger.addHandler(stderr_handler)

    logger.setLevel(logging.INFO)
    logger.propagate = False
    return log_path


class StepLogger:
    """Numbered step banners in the `[deploy]` style."""

    def __init__(self) -> None:
        self.step_number = 0

    def step(self, message: str, *, icon: str = "🚀") -> None:
        self.step_number += 1
        logger.info(f"[deploy] {icon} Step {self.step_number}: {message}")

    def info(self, message: str, *, icon: str = "ℹ️") -> None:
        logger.info(f"[deploy] {icon} {message}")


def logged_prompt(prompt_fn: Callable[[str], str], *, secret: bool = False) -> Callable[[str], str]:
    """Wrap `prompt_fn` so each question and answer is appended to the log file.

    Secret answers are never written; only the question is.
    """

    def prompt(message: str) -> str:
        answer = prompt_fn(message)
        shown = "" if secret else str(answer or "")
        logger.info(f"{message}{shown}", extra=FILE_ONLY)
        return answer

    return prompt
