"""In-memory store of per-sample judge scores with dirty tracking."""

import logging
import math
from collections.abc import Callable, Iterable
from numbers import Real
from typing import Any

from medals.errors import NotFoundError, ValidationError
from medals.models import NUM_SLOTS, SCORE_MAX, SCORE_MIN, SampleId, ScoreRecord

logger = logging.getLogger(__name__)

ScoreListener = Callable[[SampleId], None]


def validate_score(value: Any) -> float | None:
    """Return the score as a float, or None for "judge did not score".

    Raises:
        ValidationError: If the value is not a finite number in [0, 100]
    """
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError(f"Score must be a number or empty, got {value!r}")
    value = float(value)
    if not math.isfinite(value) or not SCORE_MIN <= value <= SCORE_MAX:
        raise ValidationError(
            f"Score must be between {SCORE_MIN:g} and {SCORE_MAX:g}, got {value:g}"
        )
    return value


def validate_slot(slot_index: Any) -> int:
    if isinstance(slot_index, bool) or not isinstance(slot_index, int):
        raise ValidationError(f"Slot index must be an integer, got {slot_index!r}")
    if not 0 <= slot_index < NUM_SLOTS:
        raise ValidationError(
            f"Slot index must be between 0 and {NUM_SLOTS - 1}, got {slot_index}"
        )
    return slot_index


def _validated(record: ScoreRecord) -> ScoreRecord:
    scores = tuple(validate_score(s) for s in record.scores)
    if scores == record.scores:
        return record
    return ScoreRecord(
        sample_id=record.sample_id,
        scores=scores,
        medal=record.medal,
        code=record.code,
        name=record.name,
        category=record.category,
    )


class ScoreStore:
    """Holds one ScoreRecord per sample and the set of unsaved samples.

    Records are immutable; every mutation swaps in a new record and bumps a
    per-sample revision counter. A sample leaves the dirty set only through
    mark_clean() with the revision that was actually persisted, so an edit
    made while a commit is in flight keeps the sample dirty.

    Score listeners are called synchronously after every successful
    set_score(), which lets the recalculation coordinator reclassify the
    sample before set_score() returns.
    """

    def __init__(self, records: Iterable[ScoreRecord] = ()):
        self._records: dict[SampleId, ScoreRecord] = {}
        self._revisions: dict[SampleId, int] = {}
        self._dirty: set[SampleId] = set()
        self._listeners: list[ScoreListener] = []
        for record in records:
            self.add_record(record)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, sample_id: SampleId) -> bool:
        return sample_id in self._records

    def add_listener(self, listener: ScoreListener) -> None:
        self._listeners.append(listener)

    # --- Loading ---

    def add_record(self, record: ScoreRecord) -> ScoreRecord:
        """Register a sample handed over by the sample lifecycle.

        Scores are validated; the record starts clean. Adding a sample that
        is already present replaces it and discards its dirty mark.
        """
        record = _validated(record)
        self._records[record.sample_id] = record
        self._bump(record.sample_id)
        self._dirty.discard(record.sample_id)
        return record

    def load_rows(self, rows: Iterable[dict[str, Any]]) -> int:
        """Replace the store contents with samples-table rows.

        All rows are validated first. If one is rejected, the current records
        and dirty marks are kept as they were.

        Returns the number of records loaded.

        Raises:
            ValidationError: If a row carries an invalid score
        """
        loaded: dict[SampleId, ScoreRecord] = {}
        for row in rows:
            record = _validated(ScoreRecord.from_row(row))
            loaded[record.sample_id] = record

        self._records = loaded
        self._dirty.clear()
        for sample_id in loaded:
            self._bump(sample_id)
        logger.info("Loaded %d score records", len(loaded))
        return len(loaded)

    # --- Reading ---

    def get_record(self, sample_id: SampleId) -> ScoreRecord:
        try:
            return self._records[sample_id]
        except KeyError:
            raise NotFoundError(f"Unknown sample: {sample_id!r}") from None

    def get_aggregate(self, sample_id: SampleId) -> float | None:
        """Current mean of the sample's scores, or None if it has none."""
        return self.get_record(sample_id).aggregate

    def get_medal(self, sample_id: SampleId) -> str | None:
        return self.get_record(sample_id).medal

    def records(self) -> list[ScoreRecord]:
        return list(self._records.values())

    def sample_ids(self) -> list[SampleId]:
        return list(self._records)

    # --- Writing ---

    def set_score(self, sample_id: SampleId, slot_index: int, value: float | None) -> ScoreRecord:
        """Set one judge score (or clear it with None).

        Nothing is written unless both the slot and the value are valid.

        Raises:
            NotFoundError: If the sample is unknown
            ValidationError: If the slot or value is invalid
        """
        record = self.get_record(sample_id)
        slot_index = validate_slot(slot_index)
        value = validate_score(value)

        updated = record.with_score(slot_index, value)
        self._replace(updated)
        logger.debug(
            "Sample %r slot %d set to %r (aggregate %r -> %r)",
            sample_id, slot_index, value, record.aggregate, updated.aggregate,
        )
        for listener in self._listeners:
            listener(sample_id)
        return self._records[sample_id]

    def set_medal(self, sample_id: SampleId, medal: str | None) -> bool:
        """Store a newly classified medal. Returns True if it changed.

        Unchanged medals do not touch the dirty set.
        """
        record = self.get_record(sample_id)
        if record.medal == medal:
            return False
        self._replace(record.with_medal(medal))
        return True

    def _replace(self, record: ScoreRecord) -> None:
        self._records[record.sample_id] = record
        self._bump(record.sample_id)
        self._dirty.add(record.sample_id)

    def _bump(self, sample_id: SampleId) -> None:
        self._revisions[sample_id] = self._revisions.get(sample_id, 0) + 1

    # --- Dirty tracking ---

    def dirty_ids(self) -> frozenset[SampleId]:
        """Snapshot of the samples changed since their last confirmed save."""
        return frozenset(self._dirty)

    def is_dirty(self, sample_id: SampleId) -> bool:
        return sample_id in self._dirty

    def mark_dirty(self, sample_id: SampleId) -> None:
        self.get_record(sample_id)
        self._bump(sample_id)
        self._dirty.add(sample_id)

    def snapshot(self, sample_id: SampleId) -> tuple[ScoreRecord, int]:
        """The record as it is now, with the revision to pass to mark_clean()."""
        return self.get_record(sample_id), self._revisions[sample_id]

    def mark_clean(self, sample_id: SampleId, revision: int) -> bool:
        """Clear the dirty mark if nothing changed since `revision`.

        Returns True if the sample was cleared. A sample edited after its
        snapshot was taken stays dirty.
        """
        if self._revisions.get(sample_id) != revision:
            logger.debug("Sample %r changed during commit; keeping it dirty", sample_id)
            return False
        self._dirty.discard(sample_id)
        return True
