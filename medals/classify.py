"""Medal classification of an aggregate score."""

from collections.abc import Iterable

from medals.models import MedalBand


def classify(aggregate: float | None, bands: Iterable[MedalBand]) -> str | None:
    """Return the medal label for an aggregate score, or None.

    Bands are checked in the order given (normally
    MedalBandRegistry.active_bands_ordered()) and the first band whose
    inclusive [min_score, max_score] range contains the aggregate wins.
    Bands after the first match are never looked at, so when ranges overlap
    the band with the lower order takes precedence. There is deliberately no
    "best fit" or "narrowest range" rule.

    Inactive bands are skipped. A band with min_score > max_score cannot
    contain anything and so never matches.

    Args:
        aggregate: Mean judge score, or None when the sample has no scores
        bands: Bands in precedence order

    Returns:
        The winning band's label, or None if the aggregate is None or no
        band matches
    """
    band = find_band(aggregate, bands)
    return None if band is None else band.label


def find_band(aggregate: float | None, bands: Iterable[MedalBand]) -> MedalBand | None:
    """Like classify(), but return the matching band itself."""
    if aggregate is None:
        return None
    for band in bands:
        if band.active and band.contains(aggregate):
            return band
    return None
