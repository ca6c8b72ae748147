"""Commits dirty score records to the backing store, row by row."""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from medals.errors import PersistenceError
from medals.models import CommitReport, FailedRow, SampleId, ScoreRecord
from medals.store import ScoreStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 8


class SampleBackend(ABC):
    """Abstract base class for the store that sample rows are written to.

    Implementations should raise PersistenceError with a meaningful
    error_kind; any other exception is reported with the kind "backend".
    """

    @abstractmethod
    async def update_sample(self, sample_id: SampleId, row: dict[str, Any]) -> None:
        """Write the given columns to one sample row.

        Args:
            sample_id: Id of the row to update
            row: Column values, as produced by ScoreRecord.to_update_row()
        """
        pass


class BatchPersistenceGateway:
    """Writes every dirty sample to a SampleBackend, one call per row.

    Calls are dispatched concurrently and each row succeeds or fails on its
    own. A failed row stays dirty and is listed in the report; nothing is
    retried automatically. The batch never raises because of a row failure.
    """

    def __init__(
        self,
        store: ScoreStore,
        backend: SampleBackend,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.store = store
        self.backend = backend
        self.max_concurrency = max_concurrency

    async def commit_dirty(self, dirty_set: Iterable[SampleId] | None = None) -> CommitReport:
        """Persist dirty samples and report the outcome of each row.

        Args:
            dirty_set: Samples to commit; defaults to the store's current
                dirty set. Ids that are not dirty are still written.

        Returns:
            CommitReport listing succeeded and failed sample ids, in store
            order (unknown ids last)
        """
        requested = set(self.store.dirty_ids() if dirty_set is None else dirty_set)
        known = [sid for sid in self.store.sample_ids() if sid in requested]
        unknown = [sid for sid in requested if sid not in self.store]

        report = CommitReport()
        if not requested:
            return report

        # Snapshot before dispatch: later edits bump the revision and keep
        # the sample dirty even if this commit succeeds.
        snapshots = {sid: self.store.snapshot(sid) for sid in known}
        semaphore = asyncio.Semaphore(self.max_concurrency)

        outcomes = await asyncio.gather(*(
            self._commit_one(sid, record, semaphore)
            for sid, (record, _revision) in snapshots.items()
        ))

        for sid, failure in zip(snapshots, outcomes):
            if failure is None:
                self.store.mark_clean(sid, snapshots[sid][1])
                report.succeeded.append(sid)
            else:
                report.failed.append(failure)

        for sid in unknown:
            report.failed.append(FailedRow(
                sample_id=sid, error_kind="not_found", message=f"Unknown sample: {sid!r}",
            ))

        if report.failed:
            logger.warning(
                "Committed %d of %d samples; failed: %s",
                len(report.succeeded), report.attempted,
                ", ".join(f"{f.sample_id} ({f.error_kind})" for f in report.failed),
            )
        else:
            logger.info("Committed %d samples", len(report.succeeded))
        return report

    async def _commit_one(
        self, sample_id: SampleId, record: ScoreRecord, semaphore: asyncio.Semaphore
    ) -> FailedRow | None:
        async with semaphore:
            try:
                await self.backend.update_sample(sample_id, record.to_update_row())
            except PersistenceError as e:
                return FailedRow(sample_id=sample_id, error_kind=e.error_kind, message=str(e))
            except Exception as e:
                # Report rather than abort the batch
                logger.exception("Unexpected error saving sample %r", sample_id)
                return FailedRow(sample_id=sample_id, error_kind="backend", message=str(e))
        return None
