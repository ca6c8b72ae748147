"""Core data models for judge scores and medal bands."""

import math
from dataclasses import dataclass, field, replace
from typing import Any, Self

from medals.errors import ValidationError

NUM_SLOTS = 5
SCORE_MIN = 0.0
SCORE_MAX = 100.0

DEFAULT_COLOR = "#CD7F32"
NO_MEDAL_LABEL = "Sin medalla"

# Column names of the judge score slots in the samples table (slot 0 -> p1)
SCORE_COLUMNS = tuple(f"p{i + 1}" for i in range(NUM_SLOTS))

SampleId = int | str


def round_half_up(value: float, digits: int = 2) -> float:
    """Round the way the contest tool always has: halves go up, not to even."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def compute_aggregate(scores: tuple[float | None, ...] | list[float | None]) -> float | None:
    """Arithmetic mean of the present scores, rounded to 2 decimals.

    Returns None when no score is present. The sum is computed with
    math.fsum, so the result does not depend on the order of the slots.
    """
    present = [s for s in scores if s is not None]
    if not present:
        return None
    return round_half_up(math.fsum(present) / len(present))


@dataclass(frozen=True)
class ScoreRecord:
    """Judge scores for one sample and the medal derived from them.

    Attributes:
        sample_id: Stable identifier of the sample in the samples table
        scores: Exactly NUM_SLOTS entries, each in [0, 100] or None
        medal: Medal label assigned by the classifier, or None
        code: Sample code shown to admins (informational)
        name: Sample name (informational)
        category: Tasting category (informational, used for summaries)

    The aggregate is a property and is never stored on the record, so it
    can only ever be the mean of the current scores.

    Example:
        >>> record = ScoreRecord(sample_id=7, scores=(92, 90, 91, None, None))
        >>> record.aggregate
        91.0
    """
    sample_id: SampleId
    scores: tuple[float | None, ...] = field(default=(None,) * NUM_SLOTS)
    medal: str | None = None
    code: str | None = None
    name: str | None = None
    category: str | None = None

    def __post_init__(self):
        scores = tuple(self.scores)
        if len(scores) > NUM_SLOTS:
            raise ValidationError(
                f"A sample has at most {NUM_SLOTS} score slots, got {len(scores)}"
            )
        if len(scores) < NUM_SLOTS:
            scores = scores + (None,) * (NUM_SLOTS - len(scores))
        object.__setattr__(self, "scores", scores)

    @property
    def aggregate(self) -> float | None:
        return compute_aggregate(self.scores)

    @property
    def score_count(self) -> int:
        return sum(1 for s in self.scores if s is not None)

    @property
    def tasted(self) -> bool:
        """Whether the sample counts as tasted (has at least one score)."""
        return self.aggregate is not None

    def with_score(self, slot_index: int, value: float | None) -> Self:
        scores = list(self.scores)
        scores[slot_index] = value
        return replace(self, scores=tuple(scores))

    def with_medal(self, medal: str | None) -> Self:
        return replace(self, medal=medal)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Self:
        """Build a record from a samples-table row."""
        scores = tuple(
            None if row.get(column) is None else float(row[column])
            for column in SCORE_COLUMNS
        )
        code = row.get("codigotexto") or row.get("codigo")
        return cls(
            sample_id=row["id"],
            scores=scores,
            medal=row.get("medalla") or None,
            code=None if code is None else str(code),
            name=row.get("nombre"),
            category=row.get("categoriadecata"),
        )

    def to_update_row(self) -> dict[str, Any]:
        """Columns written back to the samples table for this record."""
        row: dict[str, Any] = dict(zip(SCORE_COLUMNS, self.scores))
        aggregate = self.aggregate
        row.update({
            "puntuacion_total": aggregate,
            "medalla": self.medal,
            "catada": aggregate is not None,
            "num_puntuaciones": self.score_count,
        })
        return row

    def to_dict(self) -> dict[str, Any]:
        return {
            "sample_id": self.sample_id,
            "code": self.code,
            "name": self.name,
            "category": self.category,
            "scores": list(self.scores),
            "aggregate": self.aggregate,
            "medal": self.medal,
        }


@dataclass(frozen=True)
class MedalBand:
    """A configured scoring interval and the medal it awards.

    Attributes:
        label: Medal name; two bands may share a label
        min_score: Inclusive lower bound
        max_score: Inclusive upper bound (min_score <= max_score is not enforced)
        order: Priority; lower values are checked first
        active: Inactive bands are ignored by the classifier
        id: Row id in the bands table, None for bands not saved yet
        color: Opaque color reference shown next to the medal
    """
    label: str
    min_score: float
    max_score: float
    order: int
    active: bool = True
    id: int | None = None
    color: str = DEFAULT_COLOR

    @property
    def is_malformed(self) -> bool:
        """Active but impossible to match (min_score > max_score)."""
        return self.active and self.min_score > self.max_score

    def contains(self, aggregate: float) -> bool:
        return self.min_score <= aggregate <= self.max_score

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Self:
        """Build a band from a bands-table row."""
        return cls(
            id=row.get("id"),
            label=row["medalla"],
            min_score=float(row["puntuacion_minima"]),
            max_score=float(row["puntuacion_maxima"]),
            order=int(row["orden"]),
            active=bool(row.get("activo", True)),
            color=row.get("color_hex") or DEFAULT_COLOR,
        )

    def to_row(self) -> dict[str, Any]:
        """Columns written to the bands table (the id is never written)."""
        return {
            "medalla": self.label,
            "puntuacion_minima": self.min_score,
            "puntuacion_maxima": self.max_score,
            "color_hex": self.color,
            "orden": self.order,
            "activo": self.active,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "min": self.min_score,
            "max": self.max_score,
            "order": self.order,
            "active": self.active,
            "color": self.color,
        }


@dataclass
class FailedRow:
    """A row that could not be persisted during a batch commit."""
    sample_id: SampleId
    error_kind: str
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "sample_id": self.sample_id,
            "error_kind": self.error_kind,
            "message": self.message,
        }


@dataclass
class CommitReport:
    """Outcome of one batch commit, one entry per attempted row.

    Attributes:
        succeeded: Sample ids confirmed persisted (and no longer dirty)
        failed: Rows that failed; they stay dirty for a later retry
    """
    succeeded: list[SampleId] = field(default_factory=list)
    failed: list[FailedRow] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "succeeded": list(self.succeeded),
            "failed": [f.to_dict() for f in self.failed],
        }
