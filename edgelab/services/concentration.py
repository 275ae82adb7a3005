"""
Correlated-risk detection over the active card.

Each check is independent and every check runs on every call:

    SPORT      one league > half the card and >= 3 picks
    MARKET     one market type >= 60% of the card and >= 3 picks
    DIRECTION  every total on the same side (>= 2 totals), or
               >= 75% of spread/moneyline sides backing favourites
               (or underdogs) with >= 3 picks in that class
    TIME_SLOT  >= 3 picks kicking off in the same Eastern-time hour
               (one INFO warning per clustered hour, largest first,
               ties on the earlier hour; a card with two busy hours
               gets two warnings, not just the biggest)

Warnings are informational.  They never remove a pick from the card.
"""

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from edgelab.core.time_window import eastern_hour, format_hour
from edgelab.schemas import Candidate, Market, Severity, Side

logger = logging.getLogger(__name__)

TYPE_SPORT = "SPORT"
TYPE_MARKET = "MARKET"
TYPE_DIRECTION = "DIRECTION"
TYPE_TIME_SLOT = "TIME_SLOT"

MIN_ACTIVE_PICKS = 2
MIN_CLUSTER = 3

_SIDE_MARKETS = (Market.SPREAD, Market.MONEYLINE)


@dataclass
class ConcentrationWarning:
    """A single concentration finding.

    ``breakdown`` holds the raw counts ("NBA: 4, NHL: 1") so callers can
    assert on figures without parsing ``message``.
    """

    type: str
    severity: Severity
    title: str
    message: str
    breakdown: str

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "severity": self.severity.value,
            "title": self.title,
            "message": self.message,
            "breakdown": self.breakdown,
        }


def _market_label(candidate: Candidate) -> str:
    return candidate.market.value if candidate.market else "unknown"


def _format_counts(counts: Counter) -> str:
    return ", ".join(f"{key}: {count}" for key, count in counts.most_common())


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------

def _sport_warning(picks: List[Candidate]) -> Optional[ConcentrationWarning]:
    total = len(picks)
    counts = Counter(p.sport or "UNKNOWN" for p in picks)
    sport, count = counts.most_common(1)[0]
    if count <= total / 2 or count < MIN_CLUSTER:
        return None
    return ConcentrationWarning(
        type=TYPE_SPORT,
        severity=Severity.WARNING if count >= total * 0.75 else Severity.CAUTION,
        title=f"{sport} Heavy",
        message=(
            f"{count} of {total} picks are {sport}. "
            f"A bad night for that league affects most of the card."
        ),
        breakdown=_format_counts(counts),
    )


def _market_warning(picks: List[Candidate]) -> Optional[ConcentrationWarning]:
    total = len(picks)
    counts = Counter(_market_label(p) for p in picks)
    market, count = counts.most_common(1)[0]
    if count < total * 0.6 or count < MIN_CLUSTER:
        return None
    return ConcentrationWarning(
        type=TYPE_MARKET,
        severity=Severity.WARNING if count >= total * 0.8 else Severity.CAUTION,
        title=f"{market.capitalize()} Dominant",
        message=f"{count} of {total} picks are {market} bets. Consider mixing market types.",
        breakdown=_format_counts(counts),
    )


def _totals_warning(picks: List[Candidate]) -> Optional[ConcentrationWarning]:
    totals = [p for p in picks if p.market == Market.TOTAL]
    if len(totals) < 2:
        return None
    overs = sum(1 for p in totals if p.side == Side.OVER)
    unders = sum(1 for p in totals if p.side == Side.UNDER)
    n = len(totals)
    severity = Severity.WARNING if n >= 3 else Severity.CAUTION
    breakdown = f"Overs: {overs}, Unders: {unders}"
    if overs == n:
        return ConcentrationWarning(
            type=TYPE_DIRECTION,
            severity=severity,
            title="All Overs",
            message=f"All {n} totals are Overs. A league-wide scoring slump hits every one.",
            breakdown=breakdown,
        )
    if unders == n:
        return ConcentrationWarning(
            type=TYPE_DIRECTION,
            severity=severity,
            title="All Unders",
            message=f"All {n} totals are Unders. A fast-paced night hurts everywhere.",
            breakdown=breakdown,
        )
    return None


def backs_favorite(candidate: Candidate) -> Optional[bool]:
    """Whether a side pick backs the favourite per the sharp spread.

    ``None`` when the pick has no usable reference spread or side.
    """
    if candidate.sharp_lines is None:
        return None
    away_spread = candidate.sharp_lines.away_spread()
    if away_spread is None:
        return None
    away_is_favorite = away_spread < 0
    if candidate.side == Side.AWAY:
        return away_is_favorite
    if candidate.side == Side.HOME:
        return not away_is_favorite
    return None


def _sides_warning(picks: List[Candidate]) -> Optional[ConcentrationWarning]:
    sides = [p for p in picks if p.market in _SIDE_MARKETS]
    if len(sides) < MIN_CLUSTER:
        return None

    favorites = underdogs = 0
    for pick in sides:
        verdict = backs_favorite(pick)
        if verdict is None:
            continue
        if verdict:
            favorites += 1
        else:
            underdogs += 1

    counted = favorites + underdogs
    breakdown = f"Favorites: {favorites}, Underdogs: {underdogs}"
    if favorites >= MIN_CLUSTER and favorites >= counted * 0.75:
        return ConcentrationWarning(
            type=TYPE_DIRECTION,
            severity=Severity.WARNING if favorites == counted else Severity.CAUTION,
            title="Favorite Heavy",
            message=f"{favorites} of {counted} sides are favorites. An upset-heavy night hurts across the card.",
            breakdown=breakdown,
        )
    if underdogs >= MIN_CLUSTER and underdogs >= counted * 0.75:
        return ConcentrationWarning(
            type=TYPE_DIRECTION,
            severity=Severity.WARNING if underdogs == counted else Severity.CAUTION,
            title="Underdog Heavy",
            message=f"{underdogs} of {counted} sides are underdogs. The card needs multiple upsets to profit.",
            breakdown=breakdown,
        )
    return None


def _time_slot_warnings(picks: List[Candidate]) -> List[ConcentrationWarning]:
    by_hour: Dict[int, List[Candidate]] = defaultdict(list)
    for pick in picks:
        hour = eastern_hour(pick.kickoff_time)
        if hour is not None:
            by_hour[hour].append(pick)

    clustered = sorted(
        ((hour, games) for hour, games in by_hour.items() if len(games) >= MIN_CLUSTER),
        key=lambda item: (-len(item[1]), item[0]),
    )
    return [
        ConcentrationWarning(
            type=TYPE_TIME_SLOT,
            severity=Severity.INFO,
            title=f"{len(games)} Games at {format_hour(hour)} ET",
            message="These games start together. There is no time to adjust if early action goes sideways.",
            breakdown=", ".join(g.matchup for g in games),
        )
        for hour, games in clustered
    ]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def analyze_concentration(candidates: Iterable[Candidate]) -> List[ConcentrationWarning]:
    """
    Run every concentration check over the active picks.

    PASS candidates are ignored.  Fewer than two active picks yields no
    warnings.  Warnings come back in check order: sport, market, totals
    direction, sides direction, then time slots.
    """
    picks = [c for c in candidates if c.is_playable]
    if len(picks) < MIN_ACTIVE_PICKS:
        return []

    warnings: List[ConcentrationWarning] = []
    for check in (_sport_warning, _market_warning, _totals_warning, _sides_warning):
        warning = check(picks)
        if warning is not None:
            warnings.append(warning)
    warnings.extend(_time_slot_warnings(picks))

    if warnings:
        logger.info(
            "Concentration: %d warning(s) over %d picks (%s)",
            len(warnings), len(picks), ", ".join(w.title for w in warnings),
        )
    return warnings
