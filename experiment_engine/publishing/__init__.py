"""Result publishing sinks."""

from experiment_engine.publishing.publisher import Publisher, NoOpPublisher, LoggingPublisher
from experiment_engine.publishing.store import ResultStore, MemoryPublisher
from experiment_engine.publishing.factory import (
    create_publisher,
    get_publisher_backend,
    get_publisher_config,
)

__all__ = [
    "Publisher",
    "NoOpPublisher",
    "LoggingPublisher",
    "ResultStore",
    "MemoryPublisher",
    "create_publisher",
    "get_publisher_backend",
    "get_publisher_config",
]
