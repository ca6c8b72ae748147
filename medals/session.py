"""Orchestrator: load a contest, apply edits and save them back."""

import logging
from typing import Self

from medals.bands import DEFAULT_BANDS, MedalBandRegistry
from medals.config import Settings
from medals.errors import PersistenceError
from medals.models import CommitReport, MedalBand, SampleId, ScoreRecord
from medals.persistence import DEFAULT_MAX_CONCURRENCY, BatchPersistenceGateway
from medals.recalculate import RecalculationCoordinator
from medals.store import ScoreStore
from medals.summary import ResultsSummary, summarize
from medals.supabase import SupabaseBackend

logger = logging.getLogger(__name__)


class ScoringSession:
    """One admin's working copy of the contest scores and medal bands.

    Wires the store, registry, coordinator and gateway together around a
    backend that provides fetch_samples(), update_sample(), fetch_bands(),
    insert_band(), update_band() and delete_band() (normally a
    SupabaseBackend).

    Score edits are saved with save_scores(); band edits with save_bands().
    Both can be called any number of times. Concurrent sessions are not
    reconciled: the last write to a row wins.
    """

    def __init__(self, backend, max_concurrency: int = DEFAULT_MAX_CONCURRENCY):
        self.backend = backend
        self.store = ScoreStore()
        self.registry = MedalBandRegistry()
        self.coordinator = RecalculationCoordinator(self.store, self.registry)
        self.gateway = BatchPersistenceGateway(self.store, backend, max_concurrency)
        self._removed_band_ids: list[int] = []

    @classmethod
    def from_settings(cls, settings: Settings) -> Self:
        return cls(SupabaseBackend(settings), max_concurrency=settings.max_concurrency)

    async def load(self) -> None:
        """Fetch bands and samples, then bring every medal up to date.

        An empty bands table is seeded with DEFAULT_BANDS. If seeding fails
        part way, the defaults that were not stored are still used, unsaved,
        so that save_bands() can store them later.
        """
        band_rows = await self.backend.fetch_bands()
        bands = [MedalBand.from_row(row) for row in band_rows]
        if not bands:
            bands = await self._seed_default_bands()

        self.store.load_rows(await self.backend.fetch_samples())
        self.registry.replace_all(bands)
        self.coordinator.recalculate_all()
        self._removed_band_ids.clear()

        stale = len(self.store.dirty_ids())
        logger.info(
            "Session loaded: %d samples, %d bands, %d stale medals to save",
            len(self.store), len(self.registry), stale,
        )

    async def _seed_default_bands(self) -> list[MedalBand]:
        logger.info("No medal bands configured; seeding the defaults")
        seeded: list[MedalBand] = []
        try:
            for band in DEFAULT_BANDS:
                seeded.append(MedalBand.from_row(await self.backend.insert_band(band.to_row())))
        except PersistenceError as e:
            logger.error(
                "Saved %d of %d default medal bands: %s", len(seeded), len(DEFAULT_BANDS), e,
            )
            return seeded + list(DEFAULT_BANDS[len(seeded):])
        return seeded

    # --- Edits ---

    def set_score(self, sample_id: SampleId, slot_index: int, value: float | None) -> ScoreRecord:
        return self.store.set_score(sample_id, slot_index, value)

    def upsert_band(self, band: MedalBand) -> MedalBand:
        return self.registry.upsert_band(band)

    def add_band(self) -> MedalBand:
        """Add a new, unsaved band after all the existing ones."""
        return self.registry.upsert_band(self.registry.new_band_template())

    def remove_band(self, band: MedalBand) -> None:
        """Remove a band; saved bands are deleted from the store on save_bands()."""
        if band.id is None:
            self.registry.discard_band(band)
        else:
            self.registry.remove_band(band.id)
            self._removed_band_ids.append(band.id)

    # --- Saving ---

    async def save_scores(self) -> CommitReport:
        """Write every dirty sample. Failed samples stay dirty for a retry."""
        return await self.gateway.commit_dirty()

    async def save_bands(self) -> None:
        """Write the band set to the store and reload it.

        Saved bands are updated, new ones inserted and removed ones deleted.
        The reloaded set replaces the registry, which reclassifies every
        sample; call save_scores() afterwards to store the new medals.

        Raises:
            PersistenceError: On the first band that cannot be written. Bands
                written before it stay written and new ones carry their stored
                id, so calling save_bands() again does not insert them twice.
        """
        while self._removed_band_ids:
            await self.backend.delete_band(self._removed_band_ids[0])
            self._removed_band_ids.pop(0)

        for band in self.registry.bands():
            if band.id is None:
                stored = await self.backend.insert_band(band.to_row())
                self.registry.mark_saved(band, MedalBand.from_row(stored))
            else:
                await self.backend.update_band(band.id, band.to_row())

        fresh = [MedalBand.from_row(row) for row in await self.backend.fetch_bands()]
        self.registry.replace_all(fresh)
        logger.info("Saved %d medal bands", len(fresh))

    def summary(self) -> ResultsSummary:
        return summarize(self.store.records())
