"""Registry of configurable medal bands."""

import logging
import math
import warnings
from collections.abc import Callable, Iterable

from medals.errors import MalformedBandWarning, NotFoundError, ValidationError
from medals.models import MedalBand

logger = logging.getLogger(__name__)

BandListener = Callable[[list[MedalBand]], None]

# Seeded into an empty bands table on first load
DEFAULT_BANDS: tuple[MedalBand, ...] = (
    MedalBand(label="Gran Oro", min_score=94, max_score=100, order=1, color="#B8860B"),
    MedalBand(label="Oro", min_score=90, max_score=93.99, order=2, color="#FFD700"),
    MedalBand(label="Plata", min_score=87, max_score=89.99, order=3, color="#C0C0C0"),
)

NEW_BAND_LABEL = "Nueva Medalla"

# Shown for a medal label that no configured band carries
FALLBACK_COLOR = "#888"


class MedalBandRegistry:
    """Ordered collection of medal bands.

    Bands are kept in insertion order. Replacing a band (same id) keeps its
    position, so ties in `order` are always broken the same way.

    Bands are immutable. To change one, build a new MedalBand (for example
    with dataclasses.replace) and pass it to upsert_band(): that is the only
    way listeners, and therefore medal recalculation, get triggered.
    """

    def __init__(self, bands: Iterable[MedalBand] = ()):
        self._bands: list[MedalBand] = []
        self._listeners: list[BandListener] = []
        for band in bands:
            self._insert(band)

    def __len__(self) -> int:
        return len(self._bands)

    def add_listener(self, listener: BandListener) -> None:
        self._listeners.append(listener)

    def bands(self) -> list[MedalBand]:
        """All bands, active or not, in insertion order."""
        return list(self._bands)

    def get_band(self, band_id: int) -> MedalBand:
        for band in self._bands:
            if band.id is not None and band.id == band_id:
                return band
        raise NotFoundError(f"Unknown medal band: {band_id!r}")

    def active_bands_ordered(self) -> list[MedalBand]:
        """Active bands sorted by `order`, ties kept in insertion order."""
        return sorted((b for b in self._bands if b.active), key=lambda b: b.order)

    def malformed_bands(self) -> list[MedalBand]:
        return [b for b in self._bands if b.is_malformed]

    def color_for(self, label: str | None) -> str | None:
        """Color of the first band carrying this label.

        No label means no medal and gives None; a label that no band carries
        gives FALLBACK_COLOR.
        """
        if not label:
            return None
        for band in self._bands:
            if band.label == label:
                return band.color
        return FALLBACK_COLOR

    def new_band_template(self) -> MedalBand:
        """A fresh, unsaved band placed after every existing one."""
        max_order = max((b.order for b in self._bands), default=0)
        return MedalBand(
            label=NEW_BAND_LABEL,
            min_score=0,
            max_score=69.99,
            order=max_order + 1,
        )

    # --- Mutations ---

    def upsert_band(self, band: MedalBand) -> MedalBand:
        """Insert a band, or replace the band with the same id.

        A band without an id is always inserted as new. min_score > max_score
        is accepted, but an active band like that is reported with a
        MalformedBandWarning because it can never match.

        Raises:
            ValidationError: If a bound is not a finite number
        """
        self._insert(band)
        self._notify()
        return band

    def remove_band(self, band_id: int) -> MedalBand:
        """Remove a saved band by id.

        Asking the user for confirmation is up to the caller.

        Raises:
            NotFoundError: If no band has this id
        """
        band = self.get_band(band_id)
        self._bands = [b for b in self._bands if b is not band]
        logger.info("Removed medal band %r (id %s)", band.label, band_id)
        self._notify()
        return band

    def discard_band(self, band: MedalBand) -> None:
        """Remove an unsaved band (one without an id) by identity."""
        for i, existing in enumerate(self._bands):
            if existing is band:
                del self._bands[i]
                self._notify()
                return
        raise NotFoundError(f"Medal band {band.label!r} is not in the registry")

    def mark_saved(self, band: MedalBand, saved: MedalBand) -> MedalBand:
        """Swap an unsaved band for the stored copy the backend returned.

        The stored copy takes the unsaved band's position, so ordering ties
        do not move.

        Raises:
            NotFoundError: If `band` is not in the registry
        """
        for i, existing in enumerate(self._bands):
            if existing is band:
                self._bands[i] = saved
                self._notify()
                return saved
        raise NotFoundError(f"Medal band {band.label!r} is not in the registry")

    def replace_all(self, bands: Iterable[MedalBand]) -> None:
        """Swap in a whole new band set, e.g. after reloading from the store.

        If any band is rejected the previous set is kept.
        """
        previous = self._bands
        self._bands = []
        try:
            for band in bands:
                self._insert(band)
        except ValidationError:
            self._bands = previous
            raise
        logger.info("Medal bands replaced (%d bands)", len(self._bands))
        self._notify()

    def _insert(self, band: MedalBand) -> None:
        for bound in (band.min_score, band.max_score):
            if not isinstance(bound, (int, float)) or not math.isfinite(bound):
                raise ValidationError(
                    f"Invalid bounds for medal band {band.label!r}: "
                    f"{band.min_score!r}..{band.max_score!r}"
                )

        if band.is_malformed:
            message = (
                f"Medal band {band.label!r} has min {band.min_score:g} > "
                f"max {band.max_score:g} and will never match"
            )
            logger.warning(message)
            warnings.warn(message, MalformedBandWarning, stacklevel=3)

        if band.id is not None:
            for i, existing in enumerate(self._bands):
                if existing.id == band.id:
                    self._bands[i] = band
                    return
        self._bands.append(band)

    def _notify(self) -> None:
        bands = self.active_bands_ordered()
        for listener in self._listeners:
            listener(bands)
