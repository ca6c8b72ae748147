"""Tests for the preliminary results summary."""

from tests.conftest import contest_bands, make_record

from medals.bands import MedalBandRegistry
from medals.recalculate import RecalculationCoordinator
from medals.store import ScoreStore
from medals.summary import NO_CATEGORY_LABEL, summarize


class TestSummarize:
    def test_nothing_tasted(self):
        summary = summarize([make_record(1), make_record(2)])
        assert summary.total_tasted == 0
        assert summary.overall_mean == 0.0
        assert summary.best is None
        assert summary.most_awarded is None
        assert summary.to_dict()["top"] == []

    def test_contest_fixture(self, contest_data):
        store = ScoreStore()
        store.load_rows(contest_data["samples"])
        RecalculationCoordinator(store, MedalBandRegistry(contest_bands())).recalculate_all()

        summary = summarize(store.records())
        assert summary.total_tasted == 5
        # (91 + 95 + 87.5 + 80.5 + 91) / 5
        assert summary.overall_mean == 89.0
        assert summary.best.sample_id == 2
        assert [r.sample_id for r in summary.top] == [2, 1, 6, 3, 5]
        assert summary.medal_counts == {
            "Oro": 2, "Gran Oro": 1, "Plata": 1, "Sin medalla": 1,
        }
        assert summary.most_awarded == ("Oro", 2)
        assert [(c.name, c.total, c.mean, c.top.sample_id) for c in summary.categories] == [
            ("Blanco", 1, 91.0, 6),
            ("Tinto", 2, 89.25, 1),
            ("AOVE", 2, 87.75, 2),
        ]

    def test_top_is_capped(self):
        records = [make_record(i, 50 + i) for i in range(15)]
        summary = summarize(records)
        assert len(summary.top) == 10
        assert summary.top[0].sample_id == 14

    def test_missing_category(self):
        summary = summarize([make_record(1, 90, medal="Oro")])
        assert summary.categories[0].name == NO_CATEGORY_LABEL

    def test_to_dict_is_json_ready(self):
        summary = summarize([make_record(1, 90, 91, medal="Oro", category="Tinto")])
        data = summary.to_dict()
        assert data["most_awarded"] == ["Oro", 1]
        assert data["best"]["aggregate"] == 90.5
        assert data["categories"][0]["top"]["sample_id"] == 1
