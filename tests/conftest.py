"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from experiment_engine import DefaultHooks, EngineConfig, set_config


class RecordingHooks(DefaultHooks):
    """
    Hooks that record everything the runner hands them.

    `enabled` may be a bool or an exception/Thrown instance to raise.
    """

    def __init__(
        self,
        name="My awesome experiment",
        default_context=None,
        enabled=True,
        publish_error=None,
    ):
        super().__init__(config=EngineConfig())
        self._name = name
        self._default_context = default_context or {}
        self._enabled = enabled
        self.publish_error = publish_error
        self.published = []
        self.raised_calls = []
        self.thrown_calls = []

    def name(self):
        return self._name

    def default_context(self):
        return dict(self._default_context)

    def enabled(self):
        if isinstance(self._enabled, BaseException):
            raise self._enabled
        return self._enabled

    def publish(self, result):
        if self.publish_error is not None:
            raise self.publish_error
        self.published.append(result)

    def raised(self, experiment, operation, error):
        self.raised_calls.append((operation, error))

    def thrown(self, experiment, operation, value):
        self.thrown_calls.append((operation, value))


@pytest.fixture(autouse=True)
def engine_config():
    """Pin the process-wide config so the host environment cannot leak in."""
    config = EngineConfig()
    set_config(config)
    yield config
    set_config(None)


@pytest.fixture
def hooks():
    """Recording hooks with default settings."""
    return RecordingHooks()


@pytest.fixture
def make_hooks():
    """Factory for recording hooks with custom settings."""
    return RecordingHooks
