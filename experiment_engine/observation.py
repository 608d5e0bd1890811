"""
Observation: the captured outcome of one behavior call.

Exactly one of value/failure is meaningful: `failure is None` means the
behavior returned normally and `value` holds what it returned (which may
itself be None).
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from experiment_engine.boundary import Failure, FailureKind, capture


@dataclass(frozen=True)
class Observation:
    """Outcome of executing one named behavior once."""

    experiment: Any = field(repr=False, compare=False)
    name: str
    value: Any = None
    failure: Optional[Failure] = None
    duration: float = 0.0  # seconds

    # Set by the runner when the experiment has a cleaner
    cleaned_value: Any = None
    cleaned: bool = False
    clean_failed: bool = False

    @classmethod
    def new(cls, experiment: Any, name: str, fn: Callable[[], Any]) -> "Observation":
        """
        Run fn once and capture its outcome.

        Args:
            experiment: Experiment the behavior belongs to
            name: Behavior name ("control" or a candidate name)
            fn: Zero-argument behavior

        Returns:
            Observation holding the value or the failure, and the duration
        """
        start = time.perf_counter()
        value, failure = capture(fn)
        duration = time.perf_counter() - start
        return cls(
            experiment=experiment,
            name=name,
            value=value,
            failure=failure,
            duration=duration,
        )

    @property
    def failed(self) -> bool:
        return self.failure is not None

    @property
    def raised(self) -> bool:
        return self.failure is not None and self.failure.kind is FailureKind.RAISED

    @property
    def thrown(self) -> bool:
        return self.failure is not None and self.failure.kind is FailureKind.THROWN

    @property
    def comparable_value(self) -> Any:
        """Value used for comparison: cleaned when a cleaner ran, raw otherwise."""
        return self.cleaned_value if self.cleaned else self.value

    def outcome(self) -> Any:
        """Return the captured value, or re-raise the captured failure."""
        if self.failure is not None:
            self.failure.reraise()
        return self.value
