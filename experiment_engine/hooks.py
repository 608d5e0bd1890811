"""
Experiment capability set.

The host application customizes an experiment by supplying an
ExperimentHooks implementation. The runner depends only on this interface.

Hooks are passive with respect to the caller:
- enabled() gates extra work, never the control
- publish() receives results for analysis
- raised()/thrown() observe contained failures
- Failures in any hook never reach the caller
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from experiment_engine.config import EngineConfig, get_config
from experiment_engine.publishing.factory import create_publisher


DEFAULT_EXPERIMENT_NAME = "experiment"


class ExperimentHooks(ABC):
    """
    Abstract capability set for experiments.

    The runner contains failures from enabled() and publish(), along with
    the experiment's own run_if, before_run, compare, clean and ignore
    callables, and reports them through raised()/thrown(). Failures from
    raised()/thrown() are logged and dropped. name() and default_context()
    run while the experiment is being built, outside any containment, so
    their failures reach the caller of Experiment.new().
    """

    @abstractmethod
    def name(self) -> str:
        """Default experiment name."""
        pass

    @abstractmethod
    def default_context(self) -> Dict[str, Any]:
        """Context merged under any context supplied at construction."""
        pass

    @abstractmethod
    def enabled(self) -> bool:
        """
        Whether candidates should run at all.

        Returns:
            True to run the experiment, False to run only the control
        """
        pass

    @abstractmethod
    def publish(self, result: Any) -> None:
        """
        Deliver a Result to an external sink.

        Args:
            result: Fully populated Result for one run
        """
        pass

    @abstractmethod
    def raised(self, experiment: Any, operation: Any, error: Exception) -> None:
        """
        Observe an exception contained at an extension point.

        Args:
            experiment: The running Experiment
            operation: Operation that failed (enabled, run_if, compare, ...)
            error: The exception instance
        """
        pass

    @abstractmethod
    def thrown(self, experiment: Any, operation: Any, value: Any) -> None:
        """
        Observe an unstructured signal contained at an extension point.

        Args:
            experiment: The running Experiment
            operation: Operation that failed
            value: The thrown payload
        """
        pass


class DefaultHooks(ExperimentHooks):
    """
    Default capability set.

    Enabled unless EXPERIMENTS_ENABLED is switched off; publish and the
    failure hooks are no-ops.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self._config = config

    @property
    def config(self) -> EngineConfig:
        return self._config or get_config()

    def name(self) -> str:
        return DEFAULT_EXPERIMENT_NAME

    def default_context(self) -> Dict[str, Any]:
        return {}

    def enabled(self) -> bool:
        return self.config.experiments_enabled

    def publish(self, result: Any) -> None:
        """No-op implementation."""
        pass

    def raised(self, experiment: Any, operation: Any, error: Exception) -> None:
        """No-op implementation."""
        pass

    def thrown(self, experiment: Any, operation: Any, value: Any) -> None:
        """No-op implementation."""
        pass


class PublishingHooks(DefaultHooks):
    """Default hooks that forward every result to a Publisher."""

    def __init__(self, publisher: Optional[Any] = None, config: Optional[EngineConfig] = None):
        """
        Initialize publishing hooks.

        Args:
            publisher: Publisher instance. If None, one is created from config.
            config: Engine configuration. If None, the process-wide config is used.
        """
        super().__init__(config=config)
        if publisher is None:
            publisher = create_publisher(self.config)
        self.publisher = publisher

    def publish(self, result: Any) -> None:
        self.publisher.publish(result)
