"""
Progress reporting.

Reporters receive human-readable status strings. A broken reporter must
never change the submission outcome, so the sender only talks to reporters
through SafeReporter.
"""

from typing import Optional, Protocol

from tx_lander.utils.logger import get_logger

logger = get_logger(__name__)


class ProgressReporter(Protocol):
    """Write-only status sink (spinner, bot message, log line...)."""

    def set_message(self, message: str) -> None:
        ...

    def finish_with_message(self, message: str) -> None:
        ...


class LoggingProgressReporter:
    """Default reporter: status lines go to the tx_lander.progress logger."""

    def __init__(self, name: str = "tx_lander.progress"):
        self._logger = get_logger(name)

    def set_message(self, message: str) -> None:
        self._logger.info(message)

    def finish_with_message(self, message: str) -> None:
        if message.startswith("ERROR"):
            self._logger.error(message)
        else:
            self._logger.info(message)


class SafeReporter:
    """Wraps a reporter and swallows its failures."""

    def __init__(self, reporter: Optional[ProgressReporter] = None):
        self._reporter = reporter or LoggingProgressReporter()

    def set_message(self, message: str) -> None:
        try:
            self._reporter.set_message(message)
        except Exception as e:
            logger.debug(f"Progress reporter failed: {e}")

    def finish_with_message(self, message: str) -> None:
        try:
            self._reporter.finish_with_message(message)
        except Exception as e:
            logger.debug(f"Progress reporter failed: {e}")
