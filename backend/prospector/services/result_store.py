# backend/prospector/services/result_store.py
"""
Result store - last completed enrichment batch per session

Export and results views read from here. The orchestrator writes a batch
wholesale once it completes (or aborts); there are no partial writes.
"""

from abc import ABC, abstractmethod
from threading import Lock
from typing import Dict, List, Optional
import logging

from prospector.schemas.enrichment import EnrichedCompany

logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default"


class ResultStore(ABC):
    """Storage interface for enrichment batch results"""

    @abstractmethod
    def save(self, session_id: str, results: List[EnrichedCompany]) -> None:
        """Replace the session's results with a finished batch"""

    @abstractmethod
    def get(self, session_id: str) -> Optional[List[EnrichedCompany]]:
        """Results of the session's last batch, or None"""

    @abstractmethod
    def clear(self, session_id: str) -> None:
        """Drop the session's results (e.g. when a new scrape starts)"""


class InMemoryResultStore(ResultStore):
    """Process-local store. Nothing survives a restart."""

    def __init__(self):
        self._results: Dict[str, List[EnrichedCompany]] = {}
        self._lock = Lock()

    def save(self, session_id: str, results: List[EnrichedCompany]) -> None:
        with self._lock:
            self._results[session_id] = list(results)
        logger.info(f"💾 Stored {len(results)} enriched companies for session '{session_id}'")

    def get(self, session_id: str) -> Optional[List[EnrichedCompany]]:
        with self._lock:
            results = self._results.get(session_id)
        return list(results) if results is not None else None

    def clear(self, session_id: str) -> None:
        with self._lock:
            self._results.pop(session_id, None)


_default_store = InMemoryResultStore()


def get_result_store() -> ResultStore:
    """FastAPI dependency"""
    return _default_store
