"""
Result publishers.

A publisher is the external sink for experiment results. Publishing is
strictly passive:
- Never influences the value returned to the caller
- Never mutates the result
- Failures are contained by the runner (reported under `publish`)
"""

import logging
from abc import ABC, abstractmethod
from typing import Any


logger = logging.getLogger(__name__)


class Publisher(ABC):
    """Abstract result sink."""

    @abstractmethod
    def publish(self, result: Any) -> None:
        """
        Deliver one experiment result.

        Args:
            result: Result of one experiment run
        """
        pass

    @abstractmethod
    def is_enabled(self) -> bool:
        """Whether this publisher records anything."""
        pass


class NoOpPublisher(Publisher):
    """Publisher that discards every result."""

    def publish(self, result: Any) -> None:
        """No-op implementation."""
        pass

    def is_enabled(self) -> bool:
        return False


class LoggingPublisher(Publisher):
    """
    Publisher that emits each result as a structured log record.

    Matches and ignored mismatches are logged at INFO, mismatches at WARNING.
    The serialized ResultSummary is attached as `extra={"experiment_result": ...}`.
    """

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def publish(self, result: Any) -> None:
        summary = result.summary()
        payload = summary.model_dump(mode="json")

        if result.is_mismatched():
            self.log.warning(
                f"Experiment '{summary.experiment}' mismatched: {summary.mismatched_names}",
                extra={"experiment_result": payload},
            )
        else:
            self.log.info(
                f"Experiment '{summary.experiment}' "
                f"{'ignored mismatches' if summary.ignored else 'matched'}",
                extra={"experiment_result": payload},
            )

    def is_enabled(self) -> bool:
        return True
