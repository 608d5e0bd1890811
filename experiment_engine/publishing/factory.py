"""
Publisher factory and initialization logic.

Implements the EXPERIMENT_PUBLISHER setting:
- "noop" (default): results are discarded
- "log": results are logged (LoggingPublisher)
- "memory": results are kept in a bounded in-memory store (MemoryPublisher)
"""

import logging
from typing import Optional

from experiment_engine.config import VALID_PUBLISHERS, EngineConfig, get_config
from experiment_engine.publishing.publisher import LoggingPublisher, NoOpPublisher, Publisher
from experiment_engine.publishing.store import MemoryPublisher


logger = logging.getLogger(__name__)


def get_publisher_backend(config: Optional[EngineConfig] = None) -> str:
    """
    Get the configured publisher backend.

    Returns:
        Backend name; unknown names fall back to "noop"
    """
    backend = (config or get_config()).publisher_backend

    if backend not in VALID_PUBLISHERS:
        return "noop"

    return backend


def create_publisher(config: Optional[EngineConfig] = None) -> Publisher:
    """
    Create a publisher based on configuration.

    Args:
        config: Engine configuration. If None, the process-wide config is used.

    Returns:
        Publisher instance (never None, defaults to NoOpPublisher)

    Behavior:
        - Always returns a valid Publisher instance
        - Failures gracefully downgrade to NoOpPublisher
    """
    config = config or get_config()
    backend = get_publisher_backend(config)

    try:
        if backend == "log":
            return LoggingPublisher()

        elif backend == "memory":
            return MemoryPublisher(max_results=config.store_size)

        else:
            return NoOpPublisher()

    except Exception as e:
        # Publisher initialization failure is non-fatal
        logger.warning(f"Failed to initialize publisher backend '{backend}': {e}")
        return NoOpPublisher()


def get_publisher_config(config: Optional[EngineConfig] = None) -> dict:
    """
    Get current publisher configuration for health/debug output.

    Returns:
        Dict with publisher backend and related settings
    """
    config = config or get_config()
    backend = get_publisher_backend(config)

    info = {
        "publisher_backend": backend,
        "enabled": backend != "noop",
    }

    if backend == "memory":
        info["store_size"] = config.store_size

    if config.publisher_backend != backend:
        info["note"] = f"Unknown backend '{config.publisher_backend}', using noop"

    return info
