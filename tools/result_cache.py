import os
import time
from typing import Callable, Dict, List, Optional
from loguru import logger

from tools.models import CompletedEnrichment, EnrichmentResult, normalize_identifier

DEFAULT_RESULT_TTL = 60 * 60


class ResultCache:
    """
    In-memory store of completed enrichment results, one per identifier.

    Owned by whoever creates it (the web app's lifespan in production) and
    gone when that owner goes away. Reads are non-destructive; expired entries
    are evicted on every write and whenever a read finds one.
    """

    def __init__(self, ttl: Optional[float] = None, clock: Callable[[], float] = time.time):
        self.ttl = ttl if ttl is not None else float(os.getenv("RESULT_TTL_SECONDS", DEFAULT_RESULT_TTL))
        self.clock = clock
        self._results: Dict[str, CompletedEnrichment] = {}

    def __len__(self) -> int:
        return len(self._results)

    def _is_expired(self, entry: CompletedEnrichment, now: float) -> bool:
        return now - entry.resolved_at >= self.ttl

    def store_result(self, identifier: str, result: EnrichmentResult) -> CompletedEnrichment:
        """Store ``result`` for ``identifier``, replacing whatever was there."""
        email = normalize_identifier(identifier)
        entry = CompletedEnrichment(identifier=email, result=result, resolved_at=self.clock())
        self._results[email] = entry
        logger.info(f"Stored completed LinkedIn result for {email}. Total stored: {len(self._results)}")

        self.evict_expired()
        return entry

    def fetch_result(self, identifier: str) -> Optional[EnrichmentResult]:
        """Return the fresh result for ``identifier``, or None if there is none yet."""
        email = normalize_identifier(identifier)
        entry = self._results.get(email)
        if entry is None:
            logger.info(f"No LinkedIn result found for: {email}")
            return None

        if self._is_expired(entry, self.clock()):
            self._evict(email)
            logger.info(f"Expired LinkedIn result for: {email}")
            return None

        logger.info(f"Found fresh LinkedIn result for: {email}")
        return entry.result

    def _evict(self, email: str) -> bool:
        # Re-check against the live mapping: the key may have been replaced since it was judged expired
        current = self._results.get(email)
        if current is not None and self._is_expired(current, self.clock()):
            self._results.pop(email, None)
            return True
        return False

    def evict_expired(self) -> int:
        """Remove every expired entry and return how many were removed."""
        now = self.clock()
        candidates = [email for email, entry in list(self._results.items()) if self._is_expired(entry, now)]
        evicted = sum(1 for email in candidates if self._evict(email))
        if evicted:
            logger.info(f"Evicted {evicted} expired LinkedIn results")
        return evicted

    def all_results(self) -> List[CompletedEnrichment]:
        """Every stored entry, expired or not (debugging)."""
        return list(self._results.values())

    def clear(self) -> None:
        """Drop every stored entry (debugging)."""
        self._results.clear()
        logger.info("Cleared all LinkedIn results from server store")
