import json
import os
import threading
import time
import uuid
from typing import Callable, List, Optional
from loguru import logger

from tools.models import PendingEnrichment, normalize_identifier
from tools.storage import StorageError

PENDING_REQUESTS_KEY = "linkedin_pending_requests"
DEFAULT_PENDING_TTL = 5 * 60


class LedgerStorageError(Exception):
    """The pending ledger could not be read or persisted."""


class PendingLedger:
    """
    Durable record of enrichment requests still waiting for a result.

    The whole ledger is one JSON list stored under a single key. Expired
    entries are swept whenever the ledger is read; there is no background timer.
    """

    def __init__(
        self,
        storage,
        requester: Optional[str] = None,
        ttl: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage
        self.key = f"{PENDING_REQUESTS_KEY}:{requester}" if requester else PENDING_REQUESTS_KEY
        self.ttl = ttl if ttl is not None else float(os.getenv("PENDING_TTL_SECONDS", DEFAULT_PENDING_TTL))
        self.clock = clock
        self._lock = threading.Lock()

    def _new_request_id(self) -> str:
        return f"{int(self.clock() * 1000)}{uuid.uuid4().hex[:9]}"

    def _load(self) -> List[PendingEnrichment]:
        try:
            raw = self.storage.get_item(self.key)
            if not raw:
                return []
            return [PendingEnrichment.from_dict(item) for item in json.loads(raw)]
        except StorageError as e:
            raise LedgerStorageError(f"Failed to read pending ledger: {e}") from e
        except (ValueError, KeyError, TypeError) as e:
            raise LedgerStorageError(f"Pending ledger is corrupt: {e}") from e

    def _save(self, entries: List[PendingEnrichment]) -> None:
        try:
            self.storage.set_item(self.key, json.dumps([entry.to_dict() for entry in entries]))
        except StorageError as e:
            raise LedgerStorageError(f"Failed to persist pending ledger: {e}") from e

    def _sweep(self, entries: List[PendingEnrichment]) -> List[PendingEnrichment]:
        now = self.clock()
        return [entry for entry in entries if now - entry.issued_at < self.ttl]

    def record_pending(self, identifier: str) -> str:
        """
        Record that an enrichment for ``identifier`` was requested.

        Returns:
            The request id of the new entry

        Raises:
            LedgerStorageError: if the ledger cannot be read or persisted
        """
        email = normalize_identifier(identifier)
        request_id = self._new_request_id()
        try:
            with self._lock:
                entries = self._load()
                entries.append(PendingEnrichment(identifier=email, issued_at=self.clock(), request_id=request_id))
                self._save(entries)
        except LedgerStorageError as e:
            logger.error(f"Error storing pending request for {email}: {e}")
            raise

        logger.info(f"Stored pending LinkedIn request for {email} with ID {request_id}")
        return request_id

    def is_pending(self, identifier: str) -> bool:
        """Sweep expired entries, then report whether ``identifier`` has a live one."""
        email = normalize_identifier(identifier)
        try:
            with self._lock:
                entries = self._load()
                recent = self._sweep(entries)
                if len(recent) != len(entries):
                    self._save(recent)
                    logger.info(f"Evicted {len(entries) - len(recent)} expired pending requests")
        except LedgerStorageError as e:
            logger.error(f"Error checking pending status for {email}: {e}")
            raise

        return any(entry.identifier == email for entry in recent)

    def clear_pending(self, identifier: str) -> None:
        """Drop every entry for ``identifier``. Persistence failures are logged, not raised."""
        email = normalize_identifier(identifier)
        try:
            with self._lock:
                entries = self._load()
                remaining = [entry for entry in entries if entry.identifier != email]
                if len(remaining) != len(entries):
                    self._save(remaining)
        except LedgerStorageError as e:
            logger.error(f"Error clearing pending request for {email}: {e}")

    def pending_entries(self) -> List[PendingEnrichment]:
        """Live entries after a sweep, oldest first."""
        with self._lock:
            entries = self._load()
            recent = self._sweep(entries)
            if len(recent) != len(entries):
                self._save(recent)
        return recent
