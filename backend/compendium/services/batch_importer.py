"""
Batch Importer: stores many discovered NFTs without letting one bad record
sink the batch.

How a batch is processed:
  Records are handled strictly in input order, in chunks of `chunk_size`.
  Each record is adapted to MinimalNftData, then upserted through the
  IndexStore under a per-operation deadline. Only TransientStorageError
  (pool exhaustion or deadline) is retried, with a fixed delay, up to
  `max_attempts` attempts. Everything else is recorded once and skipped.
  A fixed pause between chunks keeps the connection pool below saturation.

Progress of long imports is tracked in an ImportJob persisted through a
JobStore (in memory, or Redis via CacheService).
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Callable, Literal, Optional

from compendium.core.config import settings
from compendium.models.base import utcnow
from compendium.core.errors import (
    IndexingError,
    NormalizationError,
    TransientStorageError,
)
from compendium.schemas.artwork_index import NftType
from compendium.schemas.nft import MinimalNftData
from compendium.services.cache import CacheService
from compendium.services.index_store import IndexStore
from compendium.services.normalization.adapters import adapt
from compendium.services.rate_limiting import retry_async

logger = logging.getLogger(__name__)

JobStatus = Literal["queued", "running", "completed", "failed"]


@dataclass
class BatchError:
    """One record that could not be stored."""

    index: int          # position in the input list
    error: str
    record: dict


@dataclass
class BatchResult:
    total: int = 0
    stored: int = 0
    skipped: int = 0    # missing contract / token id, never attempted
    errors: list[BatchError] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        """Stored fraction of the input, 1.0 for an empty batch."""
        if self.total == 0:
            return 1.0
        return round(self.stored / self.total, 4)

    def to_dict(self) -> dict:
        return {
            "stored": self.stored,
            "skipped": self.skipped,
            "errors": [asdict(e) for e in self.errors],
            "success_rate": self.success_rate,
        }


@dataclass
class ImportJob:
    """Handle for one batch import, passed around explicitly."""

    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: JobStatus = "queued"
    total: int = 0
    processed: int = 0
    stored: int = 0
    skipped: int = 0
    errors: list[dict] = field(default_factory=list)
    message: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def progress(self) -> float:
        if self.total == 0:
            return 1.0 if self.status == "completed" else 0.0
        return round(self.processed / self.total, 4)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["progress"] = self.progress
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ImportJob":
        data = dict(data)
        data.pop("progress", None)
        for key in ("created_at", "updated_at"):
            if isinstance(data.get(key), str):
                data[key] = datetime.fromisoformat(data[key])
        return cls(**data)


# ------------------------------------------------------------------
# Job persistence
# ------------------------------------------------------------------

class JobStore(ABC):
    """Where ImportJob state lives between requests."""

    @abstractmethod
    async def save(self, job: ImportJob) -> None:
        ...

    @abstractmethod
    async def get(self, job_id: str) -> Optional[ImportJob]:
        ...


class InMemoryJobStore(JobStore):
    """Process-local job store; jobs vanish on restart."""

    def __init__(self):
        self._jobs: dict[str, dict] = {}

    async def save(self, job: ImportJob) -> None:
        job.updated_at = utcnow()
        self._jobs[job.id] = job.to_dict()

    async def get(self, job_id: str) -> Optional[ImportJob]:
        data = self._jobs.get(job_id)
        return ImportJob.from_dict(data) if data else None


class RedisJobStore(JobStore):
    """Jobs as JSON blobs in Redis with a TTL (best-effort, like the cache)."""

    def __init__(self, cache: type[CacheService] = CacheService, ttl: int = settings.JOB_TTL_SEC):
        self.cache = cache
        self.ttl = ttl

    async def save(self, job: ImportJob) -> None:
        job.updated_at = utcnow()
        await self.cache.set_json(job.id, job.to_dict(), ttl=self.ttl)

    async def get(self, job_id: str) -> Optional[ImportJob]:
        data = await self.cache.get_json(job_id)
        return ImportJob.from_dict(data) if data else None


# ------------------------------------------------------------------
# Importer
# ------------------------------------------------------------------

class BatchImporter:
    """Chunked, retrying wrapper around IndexStore.store_nft."""

    def __init__(
        self,
        store: IndexStore,
        chunk_size: int = settings.IMPORT_CHUNK_SIZE,
        max_attempts: int = settings.IMPORT_MAX_ATTEMPTS,
        retry_delay: float = settings.IMPORT_RETRY_DELAY_SEC,
        chunk_delay: float = settings.IMPORT_CHUNK_DELAY_SEC,
        storage_timeout: float = settings.STORAGE_TIMEOUT_SEC,
        job_store: Optional[JobStore] = None,
        sleep: Callable[[float], Any] = asyncio.sleep,
    ):
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.store = store
        self.chunk_size = chunk_size
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.chunk_delay = chunk_delay
        self.storage_timeout = storage_timeout
        self.job_store = job_store
        self.sleep = sleep

    async def store_many(
        self,
        records: list[Any],
        type: NftType = "owned",
        indexing_wallet: Optional[str] = None,
        job: Optional[ImportJob] = None,
    ) -> BatchResult:
        """
        Store every record, collecting per-record failures.

        Never raises for an individual record. Returns counts plus a list of
        {index, error, record} for everything that was not stored.
        """
        result = BatchResult(total=len(records))
        chunk_count = (len(records) + self.chunk_size - 1) // self.chunk_size

        logger.info(
            "Storing batch of %d NFTs (type: %s, wallet: %s)",
            len(records),
            type,
            indexing_wallet or "-",
        )

        if job is not None:
            job.status = "running"
            job.total = len(records)
            await self._save_job(job)

        for chunk_no, start in enumerate(range(0, len(records), self.chunk_size), 1):
            chunk = records[start:start + self.chunk_size]
            logger.info(
                "Processing chunk %d/%d (%d items)", chunk_no, chunk_count, len(chunk)
            )

            for offset, record in enumerate(chunk):
                await self._store_one(start + offset, record, type, indexing_wallet, result)

            if job is not None:
                self._sync_job(job, result, processed=start + len(chunk))
                await self._save_job(job)

            if start + self.chunk_size < len(records):
                await self.sleep(self.chunk_delay)

        logger.info(
            "Batch complete: %d stored, %d errors, %d skipped (%d total)",
            result.stored,
            len(result.errors),
            result.skipped,
            result.total,
        )

        if job is not None:
            self._sync_job(job, result, processed=len(records))
            job.status = "completed"
            await self._save_job(job)

        return result

    async def run_job(
        self,
        job: ImportJob,
        records: list[Any],
        type: NftType = "owned",
        indexing_wallet: Optional[str] = None,
    ) -> None:
        """Background entry point: a crash marks the job failed instead of vanishing."""
        try:
            await self.store_many(records, type=type, indexing_wallet=indexing_wallet, job=job)
        except Exception as e:
            logger.exception("Import job %s crashed", job.id)
            job.status = "failed"
            job.message = str(e)
            await self._save_job(job)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _store_one(
        self,
        index: int,
        record: Any,
        type: NftType,
        indexing_wallet: Optional[str],
        result: BatchResult,
    ) -> None:
        raw = _record_payload(record)

        try:
            nft = adapt(record)
        except NormalizationError as e:
            logger.warning("Record %d could not be normalized: %s", index, e)
            result.errors.append(BatchError(index=index, error=str(e), record=raw))
            return

        if not nft.contract_address or not nft.token_id:
            logger.warning(
                "Skipping record %d, missing required fields (contract=%s, token=%s, title=%s)",
                index,
                nft.contract_address,
                nft.token_id,
                nft.title,
            )
            result.skipped += 1
            return

        uid = f"{nft.contract_address}:{nft.token_id}"
        try:
            index_id = await retry_async(
                self._store_with_deadline,
                nft,
                type,
                indexing_wallet,
                raw,
                max_attempts=self.max_attempts,
                delay=self.retry_delay,
                sleep=self.sleep,
            )
        except IndexingError as e:
            logger.error("Failed to store NFT %s: %s", uid, e)
            result.errors.append(BatchError(index=index, error=str(e), record=raw))
            return
        except Exception as e:
            logger.exception("Unexpected error storing NFT %s", uid)
            result.errors.append(
                BatchError(index=index, error=f"{e.__class__.__name__}: {e}", record=raw)
            )
            return

        result.stored += 1
        logger.debug("Stored NFT %s with index id %d", uid, index_id)

    async def _store_with_deadline(
        self,
        nft: MinimalNftData,
        type: NftType,
        indexing_wallet: Optional[str],
        raw: dict,
    ) -> int:
        try:
            return await asyncio.wait_for(
                self.store.store_nft(
                    nft, type=type, indexing_wallet=indexing_wallet, raw_response=raw
                ),
                timeout=self.storage_timeout,
            )
        except asyncio.TimeoutError as e:
            raise TransientStorageError(
                f"Storage operation exceeded {self.storage_timeout:.0f}s deadline", original=e
            ) from e

    @staticmethod
    def _sync_job(job: ImportJob, result: BatchResult, processed: int) -> None:
        job.processed = processed
        job.stored = result.stored
        job.skipped = result.skipped
        job.errors = [asdict(e) for e in result.errors]

    async def _save_job(self, job: ImportJob) -> None:
        if self.job_store is not None:
            await self.job_store.save(job)


def _record_payload(record: Any) -> dict:
    if isinstance(record, MinimalNftData):
        return record.to_payload()
    if isinstance(record, dict):
        return record
    return {"value": repr(record)}
