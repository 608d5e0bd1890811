"""
Experiment engine errors.

Two kinds of failure are visible to callers of the engine:
- ConfigurationError: invalid builder usage, raised at the point of misuse
- whatever the control behavior raised, re-raised unmodified

Thrown is the unstructured failure channel. It carries an arbitrary payload
and derives from BaseException so that ordinary `except Exception` blocks in
behavior code do not intercept it.
"""

from typing import Any


class ConfigurationError(ValueError):
    """Invalid experiment configuration (duplicate control, missing control, ...)."""


class Thrown(BaseException):
    """Unstructured abort signal carrying a payload instead of an error."""

    def __init__(self, value: Any):
        super().__init__(value)
        self.value = value

    def __repr__(self) -> str:
        return f"Thrown({self.value!r})"


def throw(value: Any) -> None:
    """
    Abort the current call with an unstructured signal.

    Args:
        value: Payload delivered to the `thrown` hook (or re-raised with the
               Thrown signal when the control throws)

    Raises:
        Thrown: always
    """
    raise Thrown(value)
