"""Keeps medals in step with scores and medal bands."""

import logging
from collections.abc import Iterable

from medals.bands import MedalBandRegistry
from medals.classify import classify
from medals.models import MedalBand, SampleId, ScoreRecord
from medals.store import ScoreStore

logger = logging.getLogger(__name__)


class RecalculationCoordinator:
    """Reclassifies samples when their scores or the medal bands change.

    The coordinator registers itself as a listener on both the store and the
    registry, so a set_score() or upsert_band()/remove_band() call
    reclassifies the affected samples before it returns. The two handlers
    can also be called directly.

    Every affected record is visited on each pass, even when most
    reclassifications turn out to be no-ops.
    """

    def __init__(self, store: ScoreStore, registry: MedalBandRegistry):
        self.store = store
        self.registry = registry
        store.add_listener(self.on_score_changed)
        registry.add_listener(self.on_bands_changed)

    def on_score_changed(self, sample_id: SampleId) -> bool:
        """Reclassify one sample after a score edit.

        The aggregate is a pure function of the scores, so it is already
        current; this step derives the medal from it with the current bands.
        The sample is marked dirty if the aggregate or medal differs from
        what was last saved or loaded.

        Returns:
            True if the medal changed
        """
        record = self.store.get_record(sample_id)
        medal = classify(record.aggregate, self.registry.active_bands_ordered())
        changed = self.store.set_medal(sample_id, medal)
        if changed:
            logger.debug("Sample %r medal %r -> %r", sample_id, record.medal, medal)
        return changed

    def on_bands_changed(
        self,
        bands: Iterable[MedalBand] | None = None,
        records: Iterable[ScoreRecord] | None = None,
    ) -> list[SampleId]:
        """Reclassify every scored sample against a new band set.

        Only samples whose medal actually changes are marked dirty. Samples
        without an aggregate are left alone.

        Args:
            bands: Bands in precedence order; defaults to the registry's
                active bands
            records: Records to reclassify; defaults to the whole store

        Returns:
            Ids of the samples whose medal changed
        """
        bands = self.registry.active_bands_ordered() if bands is None else list(bands)
        records = self.store.records() if records is None else list(records)

        changed = []
        for record in records:
            aggregate = record.aggregate
            if aggregate is None:
                continue
            medal = classify(aggregate, bands)
            if self.store.set_medal(record.sample_id, medal):
                changed.append(record.sample_id)

        logger.info(
            "Reclassified %d samples against %d active bands; %d medals changed",
            len(records), len(bands), len(changed),
        )
        return changed

    def recalculate_all(self) -> list[SampleId]:
        """Reclassify every sample, including those without scores.

        Used after loading rows from the store, where a sample can carry a
        stale medal even though its scores were cleared.
        """
        bands = self.registry.active_bands_ordered()
        changed = []
        for record in self.store.records():
            if self.store.set_medal(record.sample_id, classify(record.aggregate, bands)):
                changed.append(record.sample_id)
        if changed:
            logger.info("Corrected %d stale medals", len(changed))
        return changed
