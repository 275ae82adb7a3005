"""
Tests for concentration warnings
Run with: pytest tests/test_concentration.py -v
"""

from edgelab.schemas import Candidate, Severity, VenueQuote
from edgelab.services.concentration import (
    TYPE_DIRECTION,
    TYPE_MARKET,
    TYPE_SPORT,
    TYPE_TIME_SLOT,
    analyze_concentration,
    backs_favorite,
)


def _pick(cid, **overrides) -> Candidate:
    data = dict(
        id=cid, sport="NBA", market="spread", side="AWAY",
        home_team=f"Home{cid}", away_team=f"Away{cid}",
        decision="PLAYABLE", best_venue="FanDuel", best_odds="-110",
    )
    data.update(overrides)
    return Candidate(**data)


def _of_type(warnings, kind):
    return [w for w in warnings if w.type == kind]


class TestMinimumSize:

    def test_single_pick_has_no_warnings(self):
        assert analyze_concentration([_pick("a")]) == []

    def test_pass_picks_ignored(self):
        pool = [_pick("a"), _pick("b", decision="PASS"), _pick("c", decision="PASS")]
        assert analyze_concentration(pool) == []


class TestSport:

    def test_sport_heavy_warning(self):
        pool = [_pick(str(i)) for i in range(4)] + [_pick("x", sport="NHL")]
        warning = _of_type(analyze_concentration(pool), TYPE_SPORT)[0]
        assert warning.severity == Severity.WARNING
        assert warning.breakdown == "NBA: 4, NHL: 1"
        assert warning.title == "NBA Heavy"

    def test_sport_caution(self):
        pool = [_pick(str(i)) for i in range(3)] + [_pick("x", sport="NHL"), _pick("y", sport="NFL")]
        warning = _of_type(analyze_concentration(pool), TYPE_SPORT)[0]
        assert warning.severity == Severity.CAUTION

    def test_exactly_half_is_fine(self):
        pool = [_pick(str(i)) for i in range(3)] + [_pick(f"n{i}", sport="NHL") for i in range(3)]
        assert _of_type(analyze_concentration(pool), TYPE_SPORT) == []


class TestMarket:

    def test_market_dominant(self):
        pool = [_pick(str(i), sport=s) for i, s in enumerate(["NBA", "NHL", "NFL"])]
        pool.append(_pick("t", sport="MLB", market="total", side="OVER"))
        warning = _of_type(analyze_concentration(pool), TYPE_MARKET)[0]
        assert warning.breakdown == "spread: 3, total: 1"
        assert warning.severity == Severity.CAUTION

    def test_below_sixty_percent(self):
        pool = [
            _pick("1"), _pick("2", sport="NHL"),
            _pick("3", market="total", side="OVER", sport="NFL"),
            _pick("4", market="moneyline", sport="MLB"),
        ]
        assert _of_type(analyze_concentration(pool), TYPE_MARKET) == []


class TestTotalsDirection:

    def test_four_overs(self):
        """Four Overs → one DIRECTION warning at WARNING severity"""
        pool = [_pick(str(i), market="total", side="OVER", sport=s)
                for i, s in enumerate(["NBA", "NHL", "NFL", "MLB"])]
        direction = _of_type(analyze_concentration(pool), TYPE_DIRECTION)
        assert len(direction) == 1
        assert direction[0].severity == Severity.WARNING
        assert direction[0].breakdown == "Overs: 4, Unders: 0"

    def test_two_unders_is_caution(self):
        pool = [_pick("a", market="total", side="UNDER"), _pick("b", market="total", side="UNDER", sport="NHL")]
        direction = _of_type(analyze_concentration(pool), TYPE_DIRECTION)
        assert direction[0].title == "All Unders"
        assert direction[0].severity == Severity.CAUTION

    def test_mixed_totals(self):
        pool = [_pick("a", market="total", side="UNDER"), _pick("b", market="total", side="OVER")]
        assert _of_type(analyze_concentration(pool), TYPE_DIRECTION) == []


class TestSidesDirection:

    @staticmethod
    def _fav(cid, sport):
        # Away team favoured by 3.5, pick the away side
        return _pick(cid, sport=sport, side="AWAY", sharp_lines=VenueQuote(spread_line_away=-3.5))

    def test_backs_favorite(self):
        assert backs_favorite(self._fav("a", "NBA")) is True
        home = _pick("h", side="HOME", sharp_lines=VenueQuote(spread_line_home=4.5))
        assert backs_favorite(home) is False
        assert backs_favorite(_pick("n")) is None

    def test_all_favorites(self):
        pool = [self._fav(str(i), s) for i, s in enumerate(["NBA", "NHL", "NFL"])]
        direction = _of_type(analyze_concentration(pool), TYPE_DIRECTION)
        assert direction[0].title == "Favorite Heavy"
        assert direction[0].severity == Severity.WARNING
        assert direction[0].breakdown == "Favorites: 3, Underdogs: 0"

    def test_three_of_four_favorites_is_caution(self):
        pool = [self._fav(str(i), s) for i, s in enumerate(["NBA", "NHL", "NFL"])]
        pool.append(_pick("dog", sport="MLB", side="HOME", sharp_lines=VenueQuote(spread_line_away=-1.5)))
        direction = _of_type(analyze_concentration(pool), TYPE_DIRECTION)
        assert direction[0].severity == Severity.CAUTION
        assert direction[0].breakdown == "Favorites: 3, Underdogs: 1"

    def test_picks_without_reference_not_counted(self):
        pool = [self._fav("1", "NBA"), self._fav("2", "NHL"), _pick("3", sport="NFL")]
        assert _of_type(analyze_concentration(pool), TYPE_DIRECTION) == []


class TestTimeSlot:

    def test_cluster(self):
        # 00:00 UTC in January = 7 PM ET
        pool = [_pick(str(i), sport=s, kickoff_time="2026-01-16T00:00:00Z")
                for i, s in enumerate(["NBA", "NHL", "NFL"])]
        slot = _of_type(analyze_concentration(pool), TYPE_TIME_SLOT)
        assert len(slot) == 1
        assert slot[0].severity == Severity.INFO
        assert slot[0].title == "3 Games at 7:00 PM ET"
        assert slot[0].breakdown == "Away0 @ Home0, Away1 @ Home1, Away2 @ Home2"

    def test_spread_out(self):
        pool = [_pick(str(i), kickoff_time=f"2026-01-16T0{i}:00:00Z") for i in range(3)]
        assert _of_type(analyze_concentration(pool), TYPE_TIME_SLOT) == []

    def test_each_clustered_hour_reported(self):
        """Two busy hours give two warnings, largest cluster first"""
        seven = [_pick(f"s{i}", kickoff_time="2026-01-16T00:00:00Z") for i in range(3)]
        eight = [_pick(f"e{i}", kickoff_time="2026-01-16T01:00:00Z") for i in range(4)]
        slot = _of_type(analyze_concentration(seven + eight), TYPE_TIME_SLOT)
        assert [w.title for w in slot] == ["4 Games at 8:00 PM ET", "3 Games at 7:00 PM ET"]

    def test_warnings_serialise(self):
        pool = [_pick(str(i), market="total", side="OVER") for i in range(3)]
        for warning in analyze_concentration(pool):
            data = warning.to_dict()
            assert set(data) == {"type", "severity", "title", "message", "breakdown"}
