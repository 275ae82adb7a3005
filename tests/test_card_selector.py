"""
Tests for daily card selection
Run with: pytest tests/test_card_selector.py -v
"""

import pytest

from edgelab.core.card_config import CardConfig
from edgelab.core.time_window import TimeWindow
from edgelab.schemas import Candidate, EdgeTier
from edgelab.services.card_selector import juice_veto_reason, rank_key, select_card


def _candidate(cid, **overrides) -> Candidate:
    data = dict(
        id=cid, sport="NBA", market="spread", side="AWAY",
        home_team=f"Home{cid}", away_team=f"Away{cid}",
        decision="PLAYABLE", confidence="MEDIUM",
        line_points=0.0, price_cents=0.0,
        best_venue="FanDuel", best_odds="-110",
    )
    data.update(overrides)
    return Candidate(**data)


class TestExampleCard:
    """Three playable picks, one vetoed on price, cap of two"""

    def _pool(self):
        return [
            _candidate("A", line_points=1.0),              # PREMIUM
            _candidate("B", price_cents=6),                # STANDARD
            _candidate("C", line_points=2.0, best_odds="-170"),
        ]

    def test_slots(self):
        result = select_card(self._pool(), CardConfig(daily_cap=2))
        assert result.slotted_ids == ["A", "B"]
        assert result.slot_for("A") == 1
        assert result.slot_for("B") == 2
        assert result.slot_for("C") is None

    def test_counts(self):
        result = select_card(self._pool(), CardConfig(daily_cap=2))
        assert result.picked == 2
        assert result.skipped == 0
        assert result.vetoed == 1

    def test_tiers_recorded(self):
        result = select_card(self._pool(), CardConfig(daily_cap=2))
        assert result.slots[0].tier == EdgeTier.PREMIUM
        assert result.slots[1].tier == EdgeTier.STANDARD


class TestEligibility:

    def test_pass_candidates_ignored(self):
        result = select_card([_candidate("P", decision="PASS", line_points=3.0)])
        assert result.picked == 0
        assert result.skipped == 0

    def test_juice_ceiling_is_inclusive(self):
        """-160 stays eligible, -161 does not"""
        result = select_card([
            _candidate("ok", line_points=1.0, best_odds="-160"),
            _candidate("no", line_points=1.0, best_odds="-161"),
        ])
        assert result.slotted_ids == ["ok"]

    def test_unreadable_price_is_vetoed(self):
        reason = juice_veto_reason(_candidate("x", best_odds="N/A"), -160)
        assert "unreadable" in reason

    def test_missing_price_is_vetoed(self):
        assert juice_veto_reason(_candidate("x", best_odds=None), -160) is not None

    def test_skip_reason_format(self):
        result = select_card([_candidate("S", line_points=0.2, price_cents=2)])
        assert result.skipped == 1
        assert result.reasons == ["AwayS @ HomeS spread: +0.2 pts / 2¢"]

    def test_time_window_filter(self):
        early = _candidate("E", line_points=1.0, kickoff_time="2026-01-15T16:00:00Z")
        late = _candidate("L", line_points=1.0, kickoff_time="2026-01-16T00:30:00Z")
        result = select_card([early, late], window=TimeWindow.EVENING)
        assert result.slotted_ids == ["L"]

    def test_duplicate_id_is_vetoed(self):
        """The first occurrence of an id is kept; later copies are vetoed"""
        pool = [
            _candidate("A", price_cents=6),
            _candidate("A", line_points=3.0),
            _candidate("B", line_points=1.0),
        ]
        result = select_card(pool)
        assert result.slotted_ids == ["B", "A"]
        assert result.slots[1].price_cents == 6
        assert result.vetoed == 1
        assert result.veto_reasons == ["AwayA @ HomeA spread: duplicate candidate id 'A'"]

    def test_slot_kickoff_in_eastern_time(self):
        result = select_card([
            _candidate("L", line_points=1.0, kickoff_time="2026-01-16T00:30:00Z"),
            _candidate("N", line_points=1.0),
        ])
        assert [s.kickoff_et for s in result.slots] == ["07:30 PM ET", "--:-- ET"]
        assert result.to_dict()["slots"][0]["kickoff_et"] == "07:30 PM ET"


class TestRanking:

    def test_points_then_cents_then_id(self):
        pool = [
            _candidate("b", line_points=1.0, price_cents=2),
            _candidate("a", line_points=1.0, price_cents=2),
            _candidate("c", line_points=1.0, price_cents=8),
            _candidate("d", line_points=2.0),
        ]
        result = select_card(pool)
        assert result.slotted_ids == ["d", "c", "a", "b"]

    def test_premium_before_standard(self):
        pool = [
            _candidate("std", price_cents=12),
            _candidate("prem", confidence="HIGH", price_cents=1),
        ]
        assert select_card(pool).slotted_ids == ["prem", "std"]

    def test_rank_key_order(self):
        a = _candidate("a", line_points=1.0)
        b = _candidate("b", line_points=1.0)
        assert rank_key(a, EdgeTier.PREMIUM) < rank_key(b, EdgeTier.PREMIUM)


class TestInvariants:

    def _big_pool(self):
        return [
            _candidate(f"g{i:02d}", line_points=(i % 4) * 0.5, price_cents=i % 7,
                       best_odds=str(-100 - 10 * (i % 8)))
            for i in range(30)
        ]

    @pytest.mark.parametrize("cap", [0, 1, 3, 6, 50])
    def test_cap(self, cap):
        result = select_card(self._big_pool(), CardConfig(daily_cap=cap))
        assert result.picked <= cap
        assert [s.slot for s in result.slots] == list(range(1, result.picked + 1))

    def test_deterministic(self):
        pool = self._big_pool()
        first = select_card(pool).to_dict()
        second = select_card(list(reversed(pool))).to_dict()
        assert first["slots"] == second["slots"]

    def test_no_vetoed_pick_slotted(self):
        result = select_card(self._big_pool(), CardConfig(daily_cap=50, juice_ceiling=-140))
        pool = {c.id: c for c in self._big_pool()}
        for cid in result.slotted_ids:
            assert float(pool[cid].best_odds) >= -140

    def test_ranking_order_holds(self):
        result = select_card(self._big_pool(), CardConfig(daily_cap=50))
        keys = [(s.tier.rank, -s.line_points, -s.price_cents, s.candidate_id) for s in result.slots]
        assert keys == sorted(keys)

    def test_empty_pool(self):
        result = select_card([])
        assert result.picked == 0
        assert result.slots == []
