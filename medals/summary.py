"""Preliminary results over the samples tasted so far."""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from medals.models import NO_MEDAL_LABEL, ScoreRecord

NO_CATEGORY_LABEL = "Sin categoría"
TOP_N = 10


@dataclass
class CategorySummary:
    """Tasted samples of one tasting category."""
    name: str
    total: int
    mean: float
    top: ScoreRecord

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "total": self.total,
            "mean": round(self.mean, 2),
            "top": self.top.to_dict(),
        }


@dataclass
class ResultsSummary:
    """Preliminary results across all tasted samples.

    Attributes:
        total_tasted: Samples that have an aggregate score
        overall_mean: Mean of those aggregates (0.0 when nothing is tasted)
        best: Highest-scoring sample, or None
        top: Up to TOP_N best samples, highest first
        medal_counts: Medal label -> number of tasted samples; unclassified
            samples are counted under NO_MEDAL_LABEL
        most_awarded: (label, count) of the most frequent entry, or None
        categories: Per-category figures, highest mean first
    """
    total_tasted: int
    overall_mean: float
    best: ScoreRecord | None
    top: list[ScoreRecord]
    medal_counts: dict[str, int]
    most_awarded: tuple[str, int] | None
    categories: list[CategorySummary] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_tasted": self.total_tasted,
            "overall_mean": round(self.overall_mean, 2),
            "best": self.best.to_dict() if self.best else None,
            "top": [r.to_dict() for r in self.top],
            "medal_counts": self.medal_counts,
            "most_awarded": list(self.most_awarded) if self.most_awarded else None,
            "categories": [c.to_dict() for c in self.categories],
        }


def summarize(records: Iterable[ScoreRecord]) -> ResultsSummary:
    """Summarize the tasted samples among `records`.

    Samples without an aggregate are ignored. Ties keep the input order.
    """
    tasted = [r for r in records if r.aggregate is not None]
    if not tasted:
        return ResultsSummary(
            total_tasted=0, overall_mean=0.0, best=None, top=[],
            medal_counts={}, most_awarded=None,
        )

    overall_mean = sum(r.aggregate for r in tasted) / len(tasted)
    ranked = sorted(tasted, key=lambda r: r.aggregate, reverse=True)

    counts = Counter(r.medal or NO_MEDAL_LABEL for r in tasted)

    by_category: dict[str, list[ScoreRecord]] = {}
    for record in tasted:
        by_category.setdefault(record.category or NO_CATEGORY_LABEL, []).append(record)

    categories = []
    for name, members in by_category.items():
        top = members[0]
        for record in members[1:]:
            if record.aggregate > top.aggregate:
                top = record
        categories.append(CategorySummary(
            name=name,
            total=len(members),
            mean=sum(r.aggregate for r in members) / len(members),
            top=top,
        ))
    categories.sort(key=lambda c: c.mean, reverse=True)

    return ResultsSummary(
        total_tasted=len(tasted),
        overall_mean=overall_mean,
        best=ranked[0],
        top=ranked[:TOP_N],
        medal_counts=dict(counts),
        most_awarded=counts.most_common(1)[0],
        categories=categories,
    )
