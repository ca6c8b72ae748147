"""Tests for medal classification."""

import itertools

from tests.conftest import contest_bands, make_band

from medals.bands import MedalBandRegistry
from medals.classify import classify, find_band
from medals.models import compute_aggregate


class TestClassify:
    def setup_method(self):
        self.bands = MedalBandRegistry(contest_bands()).active_bands_ordered()

    def test_oro(self):
        """Scores 92, 90, 91 average to 91.00, inside the Oro band."""
        aggregate = compute_aggregate([92, 90, 91, None, None])
        assert aggregate == 91.0
        assert classify(aggregate, self.bands) == "Oro"

    def test_absent_aggregate(self):
        aggregate = compute_aggregate([None] * 5)
        assert aggregate is None
        assert classify(aggregate, self.bands) is None

    def test_bounds_are_inclusive(self):
        assert classify(94, self.bands) == "Gran Oro"
        assert classify(100, self.bands) == "Gran Oro"
        assert classify(93.99, self.bands) == "Oro"
        assert classify(87, self.bands) == "Plata"

    def test_below_lowest_band(self):
        """Aggregates below the lowest band get no medal."""
        assert classify(86.99, self.bands) is None
        assert classify(0, self.bands) is None

    def test_no_bands(self):
        assert classify(91.0, []) is None

    def test_pure(self):
        results = {classify(91.0, self.bands) for _ in range(10)}
        assert results == {"Oro"}

    def test_does_not_mutate_bands(self):
        before = list(self.bands)
        classify(91.0, self.bands)
        assert self.bands == before


class TestOverlap:
    def setup_method(self):
        self.registry = MedalBandRegistry([
            make_band("Mencion", 60, 100, 2),
            make_band("Sin distincion", 0, 69.99, 1),
        ])

    def test_first_match_by_order_wins(self):
        bands = self.registry.active_bands_ordered()
        assert classify(65, bands) == "Sin distincion"

    def test_second_band_still_used_outside_overlap(self):
        bands = self.registry.active_bands_ordered()
        assert classify(75, bands) == "Mencion"

    def test_never_returns_later_band_than_first_match(self):
        bands = self.registry.active_bands_ordered()
        for aggregate in [0, 59.99, 60, 65, 69.99, 70, 100]:
            band = find_band(aggregate, bands)
            if band is None:
                continue
            first = next(i for i, b in enumerate(bands) if b.contains(aggregate))
            assert bands.index(band) == first

    def test_wider_band_first_hides_narrower(self):
        """No narrowest-range logic: the wide band with lower order wins."""
        registry = MedalBandRegistry([
            make_band("Amplia", 0, 100, 1),
            make_band("Estrecha", 90, 91, 2),
        ])
        assert classify(90.5, registry.active_bands_ordered()) == "Amplia"

    def test_all_orderings_of_equal_order_follow_insertion(self):
        labels = ["A", "B", "C"]
        for perm in itertools.permutations(labels):
            registry = MedalBandRegistry([make_band(label, 0, 100, 1) for label in perm])
            assert classify(50, registry.active_bands_ordered()) == perm[0]


class TestActiveFlag:
    def test_deactivated_band_has_no_influence(self):
        registry = MedalBandRegistry([
            make_band("Gran Oro", 90, 100, 1, active=False, id=1),
            make_band("Oro", 90, 93.99, 2, id=2),
        ])
        assert classify(95, registry.active_bands_ordered()) is None
        assert classify(91, registry.active_bands_ordered()) == "Oro"
        assert registry.get_band(1).label == "Gran Oro"

    def test_inactive_band_skipped_even_if_passed_in(self):
        bands = [make_band("Gran Oro", 90, 100, 1, active=False), make_band("Oro", 90, 93.99, 2)]
        assert classify(91, bands) == "Oro"

    def test_malformed_band_never_matches(self):
        bands = [make_band("Broken", 95, 90, 1), make_band("Oro", 90, 93.99, 2)]
        assert classify(92, bands) == "Oro"
        assert classify(96, bands) is None
