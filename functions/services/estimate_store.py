"""Estimate store for Estimate Inbox.

Owns the collection of estimate requests: an in-memory working copy backed
by a single JSON snapshot file that is re-written in full on every mutation.

Consistency policy:
- A mutation builds the new collection, writes it durably, and only then
  swaps it into memory. If the write fails, memory keeps the previous
  collection and PersistenceError is raised, so memory and disk never
  diverge across a call.
- One lock per instance guards loading, reads and every mutate-and-persist
  critical section. Nothing inside a critical section awaits, so the store
  is safe under asyncio tasks and under threaded request handlers alike.
  Methods are async for interface compatibility; the work is synchronous,
  and waiting for the lock blocks the calling thread for up to
  lock_timeout. Drive a store from one event loop per thread (the HTTP
  handlers call asyncio.run per request), not from many threads sharing a
  single loop.
- Ids are never reused within a process, deleted ones included. After a
  restart only the ids still in the snapshot are known; ids deleted by an
  earlier process are not remembered, and uniqueness across restarts rests
  on the millisecond timestamp and random suffix in each id.
- Only one instance per process should own a snapshot path (see
  get_estimate_store). Separate processes each keep their own cache and can
  lose each other's updates; that needs an external lock or a database.

Re-writing the whole file is the main scalability limit and is fine for a
low-volume lead inbox.
"""

from __future__ import annotations

import json
import os
import secrets
import shutil
import string
import tempfile
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple

import structlog
from pydantic import ValidationError as PydanticValidationError

from config.errors import CollisionError, ErrorCode, PersistenceError
from models.estimate import EstimateRecord, EstimateSubmission
from models.quote import QuoteBreakdown

logger = structlog.get_logger(__name__)

ID_PREFIX = "est"
ID_SUFFIX_LENGTH = 7
ID_ALPHABET = string.digits + string.ascii_lowercase
MAX_ID_ATTEMPTS = 10
DEFAULT_LOCK_TIMEOUT_SECONDS = 10.0


def generate_estimate_id() -> str:
    """Return `est_<epoch-ms>_<random base36>`."""
    suffix = "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_SUFFIX_LENGTH))
    return f"{ID_PREFIX}_{int(time.time() * 1000)}_{suffix}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EstimateStore:
    """Durable, lock-protected collection of EstimateRecord.

    Records are kept most-recent-first. The unread counter is maintained
    alongside the collection and always equals the number of records with
    is_new set.
    """

    def __init__(
        self,
        path: str | os.PathLike,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """Initialize EstimateStore.

        Args:
            path: Snapshot file. Its directory is created on first write.
            lock_timeout: Seconds to wait for the store lock before failing.
            clock: Returns the creation timestamp. Defaults to UTC now.
            id_factory: Returns candidate ids. Defaults to generate_estimate_id.
        """
        self.path = Path(path)
        self._lock = threading.Lock()
        self._lock_timeout = lock_timeout
        self._clock = clock or _utcnow
        self._id_factory = id_factory or generate_estimate_id

        self._records: List[EstimateRecord] = []
        self._unread = 0
        # Every id this instance has loaded or issued, deleted ones included.
        self._seen_ids: Set[str] = set()
        self._initialized = False
        self._read_only = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_read_only(self) -> bool:
        return self._read_only

    async def create(
        self,
        submission: EstimateSubmission,
        quote: Optional[QuoteBreakdown] = None,
    ) -> EstimateRecord:
        """Store a new unread estimate at the head of the collection.

        Args:
            submission: Validated input.
            quote: Breakdown from the pricing engine, if it ran.

        Returns:
            Copy of the stored record including its id and createdAt.

        Raises:
            PersistenceError: If the snapshot could not be written.
            CollisionError: If no unique id could be generated.
        """
        with self._locked():
            self._ensure_loaded()
            self._ensure_writable()

            estimate_id = self._next_id()
            record = EstimateRecord.from_submission(
                submission,
                estimate_id=estimate_id,
                created_at=self._clock(),
                quote=quote,
            )
            self._commit([record, *self._records], self._unread + 1)
            self._seen_ids.add(estimate_id)

        logger.info(
            "estimate_created",
            estimate_id=estimate_id,
            service_category=record.property_profile.service_category.value,
            quote_total=record.quote_total,
        )
        return record.model_copy(deep=True)

    async def list(self) -> List[EstimateRecord]:
        """Return every record, most recent first."""
        with self._locked():
            self._ensure_loaded()
            return [record.model_copy(deep=True) for record in self._records]

    async def get(self, estimate_id: str) -> Optional[EstimateRecord]:
        """Return one record by id, or None."""
        with self._locked():
            self._ensure_loaded()
            index = self._index_of(estimate_id)
            if index is None:
                return None
            return self._records[index].model_copy(deep=True)

    async def mark_as_read(self, estimate_id: str) -> bool:
        """Clear the new flag on one record.

        Returns:
            True if the record exists (already read included), False if not.
        """
        with self._locked():
            self._ensure_loaded()
            index = self._index_of(estimate_id)
            if index is None:
                return False

            record = self._records[index]
            if not record.is_new:
                return True

            self._ensure_writable()
            updated = list(self._records)
            updated[index] = record.model_copy(update={"is_new": False})
            self._commit(updated, self._unread - 1)

        logger.info("estimate_marked_read", estimate_id=estimate_id)
        return True

    async def mark_all_as_read(self) -> int:
        """Clear the new flag on every record.

        Returns:
            Number of records that changed. The snapshot is written once,
            and only if that number is non-zero.
        """
        with self._locked():
            self._ensure_loaded()
            if self._unread == 0:
                return 0

            self._ensure_writable()
            changed = 0
            updated: List[EstimateRecord] = []
            for record in self._records:
                if record.is_new:
                    record = record.model_copy(update={"is_new": False})
                    changed += 1
                updated.append(record)
            self._commit(updated, 0)

        logger.info("estimates_marked_all_read", count=changed)
        return changed

    async def delete(self, estimate_id: str) -> bool:
        """Remove a record permanently.

        Returns:
            True if removed, False if no record had that id (nothing written).
        """
        with self._locked():
            self._ensure_loaded()
            index = self._index_of(estimate_id)
            if index is None:
                return False

            self._ensure_writable()
            removed = self._records[index]
            updated = self._records[:index] + self._records[index + 1:]
            self._commit(updated, self._unread - (1 if removed.is_new else 0))

        logger.info("estimate_deleted", estimate_id=estimate_id)
        return True

    async def unread_count(self) -> int:
        """Number of records still flagged new."""
        with self._locked():
            self._ensure_loaded()
            return self._unread

    async def summary(self) -> Tuple[List[EstimateRecord], int]:
        """Records and unread count read under a single lock acquisition."""
        with self._locked():
            self._ensure_loaded()
            return [record.model_copy(deep=True) for record in self._records], self._unread

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self._lock_timeout):
            logger.error("estimate_store_busy", path=str(self.path), timeout=self._lock_timeout)
            raise PersistenceError(
                message=f"Estimate store busy for more than {self._lock_timeout}s",
                path=str(self.path),
                code=ErrorCode.STORE_BUSY,
            )
        try:
            yield
        finally:
            self._lock.release()

    # ------------------------------------------------------------------
    # Helpers (call with the lock held)
    # ------------------------------------------------------------------

    def _index_of(self, estimate_id: str) -> Optional[int]:
        for index, record in enumerate(self._records):
            if record.id == estimate_id:
                return index
        return None

    def _next_id(self) -> str:
        candidate = ""
        for attempt in range(1, MAX_ID_ATTEMPTS + 1):
            candidate = self._id_factory()
            if candidate not in self._seen_ids:
                return candidate
            logger.warning("estimate_id_collision", estimate_id=candidate, attempt=attempt)
        raise CollisionError(candidate, MAX_ID_ATTEMPTS)

    def _ensure_writable(self) -> None:
        if self._read_only:
            raise PersistenceError(
                message=(
                    "Estimate snapshot was unreadable and could not be preserved; "
                    "writes are disabled until it is inspected"
                ),
                path=str(self.path),
                code=ErrorCode.STORE_READ_ONLY,
            )

    def _commit(self, records: List[EstimateRecord], unread: int) -> None:
        """Persist `records`, then make them the in-memory collection."""
        self._write_snapshot(records)
        self._records = records
        self._unread = unread

    # ------------------------------------------------------------------
    # Snapshot I/O
    # ------------------------------------------------------------------

    def _ensure_loaded(self) -> None:
        if self._initialized:
            return

        records = self._load_snapshot()
        self._records = records
        self._unread = sum(1 for record in records if record.is_new)
        # Ids deleted by an earlier process are not recoverable from the snapshot
        self._seen_ids = {record.id for record in records}
        self._initialized = True
        logger.info(
            "estimate_store_loaded",
            path=str(self.path),
            count=len(records),
            unread=self._unread,
            read_only=self._read_only,
        )

    def _load_snapshot(self) -> List[EstimateRecord]:
        """Read and validate the snapshot.

        A missing file is an empty collection. Anything unreadable is copied
        aside before the store starts without it.

        Raises:
            PersistenceError: If the file exists but cannot be read.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except UnicodeDecodeError as e:
            self._quarantine(f"not UTF-8: {e}")
            return []
        except OSError as e:
            logger.error("estimate_snapshot_read_failed", path=str(self.path), error=str(e))
            raise PersistenceError(
                message=f"Failed to read estimate snapshot: {e}",
                path=str(self.path),
                code=ErrorCode.STORE_READ_FAILED,
            ) from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            self._quarantine(f"invalid JSON: {e}")
            return []

        if not isinstance(data, list):
            self._quarantine(f"expected a JSON array, got {type(data).__name__}")
            return []

        records: List[EstimateRecord] = []
        ids: Set[str] = set()
        dropped: List[Dict[str, Any]] = []
        for position, item in enumerate(data):
            try:
                record = EstimateRecord.model_validate(item)
            except PydanticValidationError as e:
                dropped.append({"position": position, "error": str(e.errors()[:1])})
                continue
            if record.id in ids:
                dropped.append({"position": position, "error": f"duplicate id {record.id}"})
                continue
            ids.add(record.id)
            records.append(record)

        if dropped:
            self._quarantine(f"{len(dropped)} invalid record(s)", dropped=dropped[:10])
        return records

    def _quarantine(self, reason: str, **context: Any) -> None:
        """Keep a byte-for-byte copy of a bad snapshot for the operator.

        If the copy fails the store turns read-only so the original file is
        never overwritten.
        """
        stamp = _utcnow().strftime("%Y%m%dT%H%M%S%fZ")
        target = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        try:
            shutil.copy2(self.path, target)
        except OSError as e:
            self._read_only = True
            logger.error(
                "estimate_snapshot_corrupt",
                path=str(self.path),
                reason=reason,
                quarantine_error=str(e),
                read_only=True,
                **context,
            )
            return

        logger.error(
            "estimate_snapshot_corrupt",
            path=str(self.path),
            reason=reason,
            quarantined_to=str(target),
            **context,
        )

    def _write_snapshot(self, records: List[EstimateRecord]) -> None:
        payload = json.dumps(
            [record.to_storage_dict() for record in records],
            indent=2,
            ensure_ascii=False,
        )
        try:
            self._write_file(payload)
        except OSError as e:
            logger.error(
                "estimate_persist_failed",
                path=str(self.path),
                count=len(records),
                error=str(e),
            )
            raise PersistenceError(
                message=f"Failed to write estimate snapshot: {e}",
                path=str(self.path),
                code=ErrorCode.STORE_WRITE_FAILED,
            ) from e

    def _write_file(self, payload: str) -> None:
        """Atomically replace the snapshot with `payload`."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            dir=str(self.path.parent),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise


# =============================================================================
# Process-wide owner per snapshot path
# =============================================================================

_stores: Dict[str, EstimateStore] = {}
_stores_lock = threading.Lock()


def get_estimate_store(path: Optional[str | os.PathLike] = None) -> EstimateStore:
    """Get the EstimateStore that owns `path` in this process.

    Defaults to settings.estimates_data_path.
    """
    from config.settings import settings

    target = Path(path or settings.estimates_data_path).resolve()
    key = str(target)
    with _stores_lock:
        store = _stores.get(key)
        if store is None:
            store = EstimateStore(target, lock_timeout=settings.store_lock_timeout_seconds)
            _stores[key] = store
        return store


def reset_estimate_stores() -> None:
    """Forget every registered store. Used by tests."""
    with _stores_lock:
        _stores.clear()
