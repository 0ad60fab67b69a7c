"""In-memory cache of computed match scores."""
import logging
from dataclasses import dataclass
from threading import Lock
from typing import Any, Dict, Hashable, Optional, Tuple

from nexus.services.matching.types import MatchScore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Entry:
    score: MatchScore
    stamp: Any


class ScoreCache:
    """
    Score cache keyed by (subject, candidate, variant).

    The variant separates plain scores from contextual scores computed under
    a given MatchContext. An optional stamp (typically the entities'
    update timestamps) is stored with each score; a lookup with a different
    stamp is treated as a miss, so edited entities are rescored.

    There is no TTL. Concurrent writers to the same key are last-writer-wins.

    Usage:
        cache = ScoreCache()
        engine = MatchingEngine(profile_store, job_store, cache=cache)
    """

    def __init__(self):
        self._entries: Dict[Tuple[Hashable, Hashable, Hashable], _Entry] = {}
        self._lock = Lock()
        self._epoch = 0
        self._hits = 0
        self._misses = 0

    @property
    def epoch(self) -> int:
        """Incremented every time the cache is cleared."""
        return self._epoch

    def get(
        self,
        subject_id: Hashable,
        candidate_id: Hashable,
        variant: Hashable = None,
        stamp: Any = None,
    ) -> Optional[MatchScore]:
        key = (subject_id, candidate_id, variant)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.stamp != stamp:
                logger.debug(f"Stale score for {subject_id}/{candidate_id}, recomputing")
                del self._entries[key]
                self._misses += 1
                return None
            self._hits += 1
            return entry.score

    def put(
        self,
        subject_id: Hashable,
        candidate_id: Hashable,
        score: MatchScore,
        variant: Hashable = None,
        stamp: Any = None,
    ) -> None:
        with self._lock:
            self._entries[(subject_id, candidate_id, variant)] = _Entry(score=score, stamp=stamp)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._epoch += 1
            epoch = self._epoch
        logger.info(f"Score cache cleared (epoch {epoch})")

    def get_status(self) -> dict:
        """Cache statistics for monitoring."""
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "epoch": self._epoch,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
