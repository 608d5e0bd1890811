"""
Failure containment boundary.

Every non-control extension point of an experiment runs through `contain`:
- Thrown signals are routed to hooks.thrown(experiment, operation, value)
- Exceptions are routed to hooks.raised(experiment, operation, error)
- Nothing escapes to the caller

Behaviors themselves go through `capture`, which records the failure
instead of reporting it. The runner decides what to do with it.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from experiment_engine.errors import Thrown


logger = logging.getLogger(__name__)


class Operation(str, Enum):
    """Extension points guarded by the containment boundary."""

    ENABLED = "enabled"
    RUN_IF = "run_if"
    BEFORE_RUN = "before_run"
    COMPARE = "compare"
    CLEAN = "clean"
    IGNORE = "ignore"
    PUBLISH = "publish"


class FailureKind(str, Enum):
    """Failure channel."""

    RAISED = "raised"  # structured: an Exception instance
    THROWN = "thrown"  # unstructured: a Thrown signal with a payload


@dataclass(frozen=True)
class Failure:
    """A captured failure, tagged with the channel it arrived on."""

    kind: FailureKind
    error: BaseException

    @property
    def payload(self) -> Any:
        """The exception for raised failures, the thrown value otherwise."""
        if self.kind is FailureKind.THROWN:
            return self.error.value
        return self.error

    def reraise(self) -> None:
        """Re-raise the original exception object."""
        raise self.error

    def describe(self) -> str:
        return f"{self.kind.value}: {self.payload!r}"


def capture(fn: Callable, *args: Any) -> Tuple[Any, Optional[Failure]]:
    """
    Call fn and capture its outcome.

    Returns:
        (value, None) on success, (None, Failure) on a raised or thrown failure
    """
    try:
        return fn(*args), None
    except Thrown as signal:
        return None, Failure(kind=FailureKind.THROWN, error=signal)
    except Exception as e:
        return None, Failure(kind=FailureKind.RAISED, error=e)


def contain(
    experiment: Any,
    operation: Operation,
    fn: Callable,
    *args: Any,
) -> Tuple[Any, Optional[Failure]]:
    """
    Run an extension point inside the containment boundary.

    Args:
        experiment: Experiment whose hooks receive any failure
        operation: Which extension point is running
        fn: The extension point callable
        *args: Arguments for fn

    Returns:
        (value, None) on success, (None, Failure) after the failure has been
        reported to the experiment's hooks
    """
    value, failure = capture(fn, *args)
    if failure is not None:
        logger.debug(
            f"Experiment '{experiment.name}' contained {failure.describe()} "
            f"during {operation.value}"
        )
        report(experiment, operation, failure)
    return value, failure


def contain_truth(experiment: Any, operation: Operation, fn: Callable, *args: Any) -> bool:
    """
    Run a predicate-like extension point and coerce its result to bool.

    The coercion happens inside the boundary, so a value whose truthiness
    is ambiguous is reported under the operation like any other failure.
    A failure counts as False.
    """
    def truth(*call_args: Any) -> bool:
        return bool(fn(*call_args))

    value, failure = contain(experiment, operation, truth, *args)
    return failure is None and value


def report(experiment: Any, operation: Operation, failure: Failure) -> None:
    """
    Deliver a failure to the raised/thrown hook.

    Non-fatal: a hook that fails is logged and dropped.
    """
    hooks = experiment.hooks
    try:
        if failure.kind is FailureKind.THROWN:
            hooks.thrown(experiment, operation, failure.payload)
        else:
            hooks.raised(experiment, operation, failure.payload)
    except Thrown as signal:
        logger.debug(f"Failure hook threw {signal.value!r} while reporting {operation.value}")
    except Exception as e:
        logger.debug(f"Failure hook raised {e!r} while reporting {operation.value}")
