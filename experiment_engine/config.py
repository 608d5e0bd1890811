"""
Configuration management for the experiment engine.

Loads environment variables (optionally from a .env file) and provides typed
access to engine settings.

Environment Variables:
    EXPERIMENTS_ENABLED: "true" (default) / "false", global switch for DefaultHooks
    EXPERIMENT_PARALLEL: "true" / "false" (default), run behaviors on a thread pool
    EXPERIMENT_MAX_WORKERS: thread pool size for parallel runs (default: unset)
    EXPERIMENT_PUBLISHER: "noop" (default), "log" or "memory"
    EXPERIMENT_STORE_SIZE: bound of the in-memory result store (default: 100)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import find_dotenv, load_dotenv


logger = logging.getLogger(__name__)

VALID_PUBLISHERS = {"noop", "log", "memory"}

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_int(key: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {key}={raw!r}")
        return default


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for the experiment engine."""

    experiments_enabled: bool = True
    parallel: bool = False
    max_workers: Optional[int] = None
    publisher_backend: str = "noop"
    store_size: int = 100

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "EngineConfig":
        """
        Build configuration from the environment.

        Args:
            env_file: Optional .env file. If None, the nearest .env from the
                      working directory is used when one exists.

        Returns:
            EngineConfig
        """
        dotenv_path = env_file or find_dotenv(usecwd=True)
        if dotenv_path:
            # Real environment variables always win over the file
            load_dotenv(dotenv_path, override=False)

        return cls(
            experiments_enabled=_env_bool("EXPERIMENTS_ENABLED", True),
            parallel=_env_bool("EXPERIMENT_PARALLEL", False),
            max_workers=_env_int("EXPERIMENT_MAX_WORKERS", None),
            publisher_backend=os.getenv("EXPERIMENT_PUBLISHER", "noop").lower().strip() or "noop",
            store_size=_env_int("EXPERIMENT_STORE_SIZE", 100),
        )

    def validate(self) -> bool:
        """Validate settings, logging every problem found."""
        problems = []
        if self.publisher_backend not in VALID_PUBLISHERS:
            problems.append(
                f"EXPERIMENT_PUBLISHER={self.publisher_backend!r} "
                f"(expected one of {sorted(VALID_PUBLISHERS)})"
            )
        if self.max_workers is not None and self.max_workers < 1:
            problems.append(f"EXPERIMENT_MAX_WORKERS={self.max_workers} (must be >= 1)")
        if self.store_size < 1:
            problems.append(f"EXPERIMENT_STORE_SIZE={self.store_size} (must be >= 1)")

        for problem in problems:
            logger.warning(f"Invalid experiment engine setting: {problem}")

        return not problems


_config: Optional[EngineConfig] = None


def get_config() -> EngineConfig:
    """Get the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = EngineConfig.from_env()
    return _config


def set_config(config: Optional[EngineConfig]) -> None:
    """Replace the process-wide configuration (None reloads from env on next use)."""
    global _config
    _config = config
