"""
In-memory result store for local development and tests.

Collects summaries of published results.
- Bounded size (FIFO eviction)
- Thread-safe
- No persistence
- Summaries only (values are kept as repr strings)
"""

import logging
import threading
from collections import deque
from typing import Any, Dict, List, Optional

from experiment_engine.publishing.publisher import Publisher
from experiment_engine.result import ResultSummary


logger = logging.getLogger(__name__)


class ResultStore:
    """Thread-safe, bounded in-memory store of ResultSummary records."""

    def __init__(self, max_results: int = 100):
        """
        Initialize bounded store.

        Args:
            max_results: Maximum number of recent results to keep
        """
        self.max_results = max_results
        self.results: deque = deque(maxlen=max_results)
        self._lock = threading.RLock()
        self._counts = {"published": 0, "matched": 0, "mismatched": 0, "ignored": 0}

    def record(self, summary: ResultSummary) -> None:
        """Record a published result summary."""
        with self._lock:
            self.results.append(summary)
            self._counts["published"] += 1
            if summary.matched:
                self._counts["matched"] += 1
            if summary.mismatched_names:
                self._counts["mismatched"] += 1
            if summary.ignored:
                self._counts["ignored"] += 1

    def get_recent_results(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Get the most recent summaries, oldest first."""
        with self._lock:
            recent = list(self.results)[-limit:]
        return [r.model_dump() for r in recent]

    def get_mismatches(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Get the most recent summaries that had at least one mismatch."""
        with self._lock:
            mismatches = [r for r in self.results if r.mismatched_names][-limit:]
        return [r.model_dump() for r in mismatches]

    def get_stats(self) -> Dict[str, int]:
        """
        Get store statistics.

        Counts cover every result recorded since the last clear(), including
        ones already evicted.
        """
        with self._lock:
            return {"stored": len(self.results), **self._counts}

    def clear(self) -> None:
        """Clear all stored data."""
        with self._lock:
            self.results.clear()
            for key in self._counts:
                self._counts[key] = 0


class MemoryPublisher(Publisher):
    """Publisher that records result summaries in a ResultStore."""

    def __init__(self, store: Optional[ResultStore] = None, max_results: int = 100):
        self.store = store or ResultStore(max_results=max_results)

    def publish(self, result: Any) -> None:
        self.store.record(result.summary())
        logger.debug(f"Stored result for experiment '{result.experiment.name}'")

    def is_enabled(self) -> bool:
        return True
