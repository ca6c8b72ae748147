"""Shared test helpers."""

import asyncio
import json
from pathlib import Path

import pytest

from medals.models import MedalBand, ScoreRecord
from medals.persistence import SampleBackend

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def make_record(sample_id, *scores, medal=None, category=None) -> ScoreRecord:
    """Build a ScoreRecord from positional scores (missing slots are None)."""
    return ScoreRecord(sample_id=sample_id, scores=tuple(scores), medal=medal, category=category)


def make_band(label, min_score, max_score, order, active=True, id=None) -> MedalBand:
    return MedalBand(
        label=label, min_score=min_score, max_score=max_score,
        order=order, active=active, id=id,
    )


def contest_bands() -> list[MedalBand]:
    """The three standard bands, as saved rows (with ids)."""
    return [
        make_band("Gran Oro", 94, 100, 1, id=11),
        make_band("Oro", 90, 93.99, 2, id=12),
        make_band("Plata", 87, 89.99, 3, id=13),
    ]


class FakeBackend(SampleBackend):
    """In-memory stand-in for the Supabase tables.

    Attributes:
        samples: sample id -> row
        bands: band id -> row
        failures: sample id -> exception raised by update_sample()
        updates: (sample_id, row) for every update_sample() call, in order
    """

    def __init__(self, samples=(), bands=()):
        self.samples = {row["id"]: dict(row) for row in samples}
        self.bands = {row["id"]: dict(row) for row in bands}
        self.failures: dict = {}
        self.updates: list = []
        self._next_band_id = max(self.bands, default=100) + 1

    async def fetch_samples(self):
        return [dict(row) for row in self.samples.values()]

    async def update_sample(self, sample_id, row):
        self.updates.append((sample_id, row))
        await asyncio.sleep(0)
        if sample_id in self.failures:
            raise self.failures[sample_id]
        self.samples.setdefault(sample_id, {"id": sample_id}).update(row)

    async def fetch_bands(self):
        return sorted((dict(row) for row in self.bands.values()), key=lambda r: r["orden"])

    async def insert_band(self, row):
        stored = {**row, "id": self._next_band_id}
        self._next_band_id += 1
        self.bands[stored["id"]] = stored
        return dict(stored)

    async def update_band(self, band_id, row):
        self.bands[band_id].update(row)

    async def delete_band(self, band_id):
        self.bands.pop(band_id, None)


@pytest.fixture
def contest_data():
    """Anonymized export: six samples and the three standard bands.

         id  scores                 stored medal  fresh aggregate/medal
          1  92 90 91 -  -          Oro           91.0  Oro
          2  95 96 94 95 -          Gran Oro      95.0  Gran Oro
          3  88 87 -  -  -          Oro (stale)   87.5  Plata
          4  -  -  -  -  -          Plata (stale) None  None
          5  80 82.5 - 79 -         None          80.5  None
          6  89 90 91 92 93         Oro           91.0  Oro
    """
    return json.loads((FIXTURES_DIR / "contest.json").read_text(encoding="utf-8"))
