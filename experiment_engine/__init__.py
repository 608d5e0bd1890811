"""
Experiment engine

Runs a trusted control code path alongside experimental candidates,
compares their outcomes, and reports discrepancies without ever changing
what the caller observes.

Callers always receive the control's value or exception. Candidates,
comparators, cleaners, ignore predicates, gates and publishers are
contained: their failures are reported through the experiment's hooks
and never reach the caller.

What it does NOT do:
- Statistical significance testing
- Persist results (publishers are the integration point)
- Cancel or time out behaviors
"""

__version__ = "0.1.0"

from experiment_engine.errors import ConfigurationError, Thrown, throw
from experiment_engine.boundary import Operation, Failure, FailureKind
from experiment_engine.config import EngineConfig, get_config, set_config
from experiment_engine.hooks import ExperimentHooks, DefaultHooks, PublishingHooks
from experiment_engine.observation import Observation
from experiment_engine.result import Result, ResultSummary, ObservationSummary
from experiment_engine.runner import run
from experiment_engine.experiment import Experiment, should_ignore_mismatch
from experiment_engine.publishing import (
    Publisher,
    NoOpPublisher,
    LoggingPublisher,
    MemoryPublisher,
    ResultStore,
    create_publisher,
    get_publisher_config,
)

__all__ = [
    "ConfigurationError",
    "Thrown",
    "throw",
    "Operation",
    "Failure",
    "FailureKind",
    "EngineConfig",
    "get_config",
    "set_config",
    "ExperimentHooks",
    "DefaultHooks",
    "PublishingHooks",
    "Observation",
    "Result",
    "ResultSummary",
    "ObservationSummary",
    "run",
    "Experiment",
    "should_ignore_mismatch",
    "Publisher",
    "NoOpPublisher",
    "LoggingPublisher",
    "MemoryPublisher",
    "ResultStore",
    "create_publisher",
    "get_publisher_config",
]
