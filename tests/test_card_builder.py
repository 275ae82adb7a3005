"""
Tests for end-to-end card building and manual card analytics
Run with: pytest tests/test_card_builder.py -v
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from edgelab.core.card_config import CardConfig
from edgelab.schemas import Candidate, VenueBalance, VenueQuote
from edgelab.services.card_builder import CardBuilder, analyze_card, get_card_builder


def _candidate(cid, **overrides) -> Candidate:
    data = dict(
        id=cid, sport="NBA", market="total", side="OVER",
        home_team=f"Home{cid}", away_team=f"Away{cid}",
        decision="PLAYABLE", confidence="MEDIUM",
        line_points=1.5, price_cents=0.0,
        best_venue="FanDuel", best_line=220.5, best_odds="-110",
    )
    data.update(overrides)
    return Candidate(**data)


def _balances(**venues):
    return [VenueBalance(venue_name=k, available_balance=v) for k, v in venues.items()]


class TestBuild:

    def test_example_card(self):
        pool = [
            _candidate("A", market="spread", side="AWAY", line_points=1.0, best_line=-2.5),
            _candidate("B", market="spread", side="HOME", line_points=0.0, price_cents=6, best_line=3.5),
            _candidate("C", market="spread", side="AWAY", line_points=2.0, best_odds="-170"),
        ]
        report = CardBuilder(CardConfig(daily_cap=2)).build(pool, _balances(FanDuel=1000))
        assert report.selection.slotted_ids == ["A", "B"]
        assert [s.candidate_id for s in report.stakes] == ["A", "B"]
        assert report.stake_for("C") is None
        assert len(report.projection.scenarios) == 3

    def test_analytics_cover_slotted_only(self):
        overs = [_candidate(str(i)) for i in range(4)]
        unslotted = _candidate("pass", decision="PASS")
        report = CardBuilder().build(overs + [unslotted], _balances(FanDuel=1000))
        assert report.selection.picked == 4
        direction = [w for w in report.warnings if w.type == "DIRECTION"]
        assert direction[0].breakdown == "Overs: 4, Unders: 0"
        assert len(report.projection.scenarios) == 5

    def test_bankroll_is_sum_of_balances(self):
        report = CardBuilder().build([_candidate("a")], _balances(FanDuel=600, DraftKings=400))
        assert report.bankroll == pytest.approx(1000.0)
        assert report.stakes[0].amount == pytest.approx(20.0)

    def test_ledger_reflects_reservations(self):
        report = CardBuilder().build(
            [_candidate(str(i), confidence="HIGH") for i in range(3)],
            _balances(FanDuel=1000),
        )
        assert report.ledger.available("FanDuel") == pytest.approx(910.0)
        assert report.total_staked == pytest.approx(90.0)

    def test_empty_pool(self):
        report = CardBuilder().build([], _balances(FanDuel=1000))
        assert report.selection.picked == 0
        assert report.stakes == []
        assert report.warnings == []
        assert report.projection.scenarios == []

    def test_fallback_venue_in_report(self):
        dk = VenueQuote(venue_name="DraftKings", total_line=220.5, total_odds_over=-105)
        report = CardBuilder(CardConfig(bankroll=1000)).build(
            [_candidate("a", venue_quotes=[dk])],
            _balances(FanDuel=5, DraftKings=100),
        )
        stake = report.stake_for("a")
        assert stake.venue == "DraftKings"
        assert stake.is_fallback_venue

    def test_repeat_builds_identical(self):
        pool = [_candidate(str(i), line_points=1.5 + i * 0.5) for i in range(8)]
        builder = CardBuilder()
        first = builder.build(pool, _balances(FanDuel=100)).to_dict()
        second = builder.build(pool, _balances(FanDuel=100)).to_dict()
        assert first == second

    def test_concurrent_builds_match_serial(self):
        """Parallel runs on one builder each see their own ledger"""
        pool = [_candidate(str(i), line_points=1.5 + i * 0.5, confidence="HIGH") for i in range(8)]
        builder = CardBuilder()
        serial = builder.build(pool, _balances(FanDuel=100, DraftKings=50)).to_dict()

        with ThreadPoolExecutor(max_workers=8) as executor:
            futures = [
                executor.submit(builder.build, pool, _balances(FanDuel=100, DraftKings=50))
                for _ in range(16)
            ]
            results = [f.result().to_dict() for f in futures]

        assert all(r == serial for r in results)

    def test_duplicate_ids_stake_first_occurrence(self):
        pool = [
            _candidate("a", confidence="LOW"),
            _candidate("a", confidence="HIGH"),
        ]
        report = CardBuilder(CardConfig(bankroll=1000)).build(pool, _balances(FanDuel=1000))
        assert report.selection.slotted_ids == ["a"]
        assert report.selection.vetoed == 1
        assert report.stakes[0].amount == pytest.approx(10.0)


class TestAnalyzeCard:

    def test_all_playable_by_default(self):
        pool = [_candidate(str(i)) for i in range(3)] + [_candidate("x", decision="PASS")]
        analytics = analyze_card(pool, bankroll=1000.0)
        assert analytics.active_ids == ["0", "1", "2"]
        assert analytics.projection.total_wagered == pytest.approx(60.0)

    def test_slotted_subset(self):
        pool = [_candidate(str(i)) for i in range(4)]
        analytics = analyze_card(pool, slotted_ids=["1", "3"], bankroll=1000.0)
        assert analytics.active_ids == ["1", "3"]
        assert len(analytics.projection.scenarios) == 3


def test_get_card_builder_is_shared():
    assert get_card_builder() is get_card_builder()
