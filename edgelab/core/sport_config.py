"""Sport-level configuration — all sport- and market-specific constants in one place.

This module is the **registry** for every threshold that differs between
sports or market types.  Nowhere else in the codebase should edge floors or
confidence multipliers be hard-coded.

Architecture
------------
:class:`EdgeFloorTable` is a frozen mapping from ``(sport, market)`` to an
:class:`EdgeFloor`.  Half a point means different things in a sport decided
by ones of points (hockey, baseball) versus one decided by tens (basketball),
so every pair carries its own floors.  To add a sport:

1. Add its identifier below.
2. Add one :class:`EdgeFloor` per market to :data:`DEFAULT_EDGE_FLOORS`, or
   derive a table at runtime with :meth:`EdgeFloorTable.with_floor`.

Pairs missing from the table fall back to
:meth:`EdgeFloorTable.most_conservative` — the hardest floors anywhere in the
table — so an unknown league can never earn an easier edge than a known one.

Typical usage::

    from edgelab.core.sport_config import DEFAULT_EDGE_FLOORS, SPORT_ID_NBA

    floor = DEFAULT_EDGE_FLOORS.floor_for(SPORT_ID_NBA, "total")
    custom = DEFAULT_EDGE_FLOORS.with_floor(SPORT_ID_NBA, "total", premium=2.0, standard=1.0)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final, Mapping

# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

#: Sport identifier strings used on candidates and in the floor table.
SPORT_ID_NBA: Final[str] = "NBA"    # basketball, pro
SPORT_ID_CBB: Final[str] = "CBB"    # basketball, college
SPORT_ID_NFL: Final[str] = "NFL"    # football, pro
SPORT_ID_CFB: Final[str] = "CFB"    # football, college
SPORT_ID_NHL: Final[str] = "NHL"    # hockey
SPORT_ID_MLB: Final[str] = "MLB"    # baseball

MARKET_MONEYLINE: Final[str] = "moneyline"
MARKET_SPREAD: Final[str] = "spread"
MARKET_TOTAL: Final[str] = "total"

#: Price improvement (cents) that makes any pick PREMIUM / STANDARD.
PREMIUM_CENTS: Final[float] = 15.0
STANDARD_CENTS: Final[float] = 5.0

#: Unit multiplier per confidence tier for fixed-unit staking.
CONFIDENCE_UNIT_MULTIPLIERS: Final[Mapping[str, float]] = MappingProxyType({
    "HIGH": 1.5,
    "MEDIUM": 1.0,
    "LOW": 0.5,
})


# ---------------------------------------------------------------------------
# Edge floors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EdgeFloor:
    """Line-value floors, in points, for one ``(sport, market)`` pair.

    Attributes:
        premium: ``|points|`` at or above this is a PREMIUM edge.
        standard: ``|points|`` at or above this is a STANDARD edge.  A
            floor of ``0.0`` means any strictly positive value qualifies.
    """

    premium: float
    standard: float

    def meets_premium(self, abs_points: float) -> bool:
        return _meets(abs_points, self.premium)

    def meets_standard(self, abs_points: float) -> bool:
        return _meets(abs_points, self.standard)


def _meets(abs_points: float, floor: float) -> bool:
    if floor <= 0.0:
        return abs_points > 0.0
    return abs_points >= floor


@dataclass(frozen=True)
class EdgeFloorTable:
    """Immutable ``(sport, market) → EdgeFloor`` lookup.

    Keys are normalised to ``(SPORT_UPPER, market_lower)``.
    """

    floors: Mapping[tuple[str, str], EdgeFloor] = field(default_factory=dict)

    def __post_init__(self) -> None:
        normalised = {
            (sport.upper(), market.lower()): floor
            for (sport, market), floor in dict(self.floors).items()
        }
        object.__setattr__(self, "floors", MappingProxyType(normalised))

    def floor_for(self, sport: str, market: str) -> EdgeFloor:
        """Floors for a pair, or :meth:`most_conservative` when unknown."""
        key = ((sport or "").upper(), (market or "").lower())
        found = self.floors.get(key)
        if found is not None:
            return found
        return self.most_conservative()

    def most_conservative(self) -> EdgeFloor:
        """The hardest-to-satisfy floors anywhere in the table."""
        if not self.floors:
            return _EMPTY_TABLE_FLOOR
        return EdgeFloor(
            premium=max(f.premium for f in self.floors.values()),
            standard=max(f.standard for f in self.floors.values()),
        )

    def with_floor(
        self,
        sport: str,
        market: str,
        *,
        premium: float,
        standard: float,
    ) -> EdgeFloorTable:
        """Return a copy of this table with one pair added or replaced."""
        merged = dict(self.floors)
        merged[(sport.upper(), market.lower())] = EdgeFloor(premium=premium, standard=standard)
        return EdgeFloorTable(merged)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Mapping[str, Mapping[str, float]]]) -> EdgeFloorTable:
        """Build a table from ``{"NBA": {"total": {"premium": 1.5, "standard": 1.0}}}``."""
        floors = {
            (sport, market): EdgeFloor(
                premium=float(values["premium"]),
                standard=float(values["standard"]),
            )
            for sport, markets in raw.items()
            for market, values in markets.items()
        }
        return cls(floors)

    def to_dict(self) -> dict[str, dict[str, dict[str, float]]]:
        out: dict[str, dict[str, dict[str, float]]] = {}
        for (sport, market), floor in sorted(self.floors.items()):
            out.setdefault(sport, {})[market] = {
                "premium": floor.premium,
                "standard": floor.standard,
            }
        return out


#: Floors used when a table is empty.  Matches the hardest default floors.
_EMPTY_TABLE_FLOOR: Final[EdgeFloor] = EdgeFloor(premium=1.5, standard=1.0)


def _sides(premium: float, standard: float) -> dict[str, EdgeFloor]:
    # Spreads and moneylines share floors; a moneyline edge usually
    # shows up in cents rather than points.
    floor = EdgeFloor(premium=premium, standard=standard)
    return {MARKET_SPREAD: floor, MARKET_MONEYLINE: floor}


def _build_default_floors() -> EdgeFloorTable:
    raw: dict[tuple[str, str], EdgeFloor] = {}
    per_sport = {
        # sport:        (spread/ML premium, standard), (total premium, standard)
        SPORT_ID_NBA: ((1.0, 0.5), (1.5, 1.0)),
        SPORT_ID_CBB: ((1.0, 0.5), (1.5, 1.0)),
        SPORT_ID_NFL: ((0.5, 0.0), (1.0, 0.5)),
        SPORT_ID_CFB: ((0.5, 0.0), (1.0, 0.5)),
        SPORT_ID_NHL: ((0.5, 0.5), (0.5, 0.5)),
        SPORT_ID_MLB: ((0.5, 0.5), (0.5, 0.5)),
    }
    for sport, (side_floor, total_floor) in per_sport.items():
        for market, floor in _sides(*side_floor).items():
            raw[(sport, market)] = floor
        raw[(sport, MARKET_TOTAL)] = EdgeFloor(*total_floor)
    return EdgeFloorTable(raw)


DEFAULT_EDGE_FLOORS: Final[EdgeFloorTable] = _build_default_floors()
