"""
Win/loss scenario table for the active card.

For ``N`` picks the projector emits exactly ``N + 1`` scenarios, from
``N-0`` down to ``0-N``.  Every scenario uses the card-wide *average* wager
and *average* potential profit:

    net_pl(w) = w × avg_profit − (N − w) × avg_wager

This is a uniform-average approximation.  It models how many picks win,
not which ones, so a 3-3 night is a single row rather than C(6, 3)
combinations.  A scenario is flagged break-even when ``|net_pl|`` is
strictly less than one average wager.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import numpy as np

from edgelab.core.card_config import CardConfig
from edgelab.core.kelly import unit_size
from edgelab.core.odds_math import parse_american_odds, profit
from edgelab.schemas import Candidate

logger = logging.getLogger(__name__)


@dataclass
class PickFinancials:
    """Money on one pick: amount risked and profit if it wins."""

    candidate_id: str
    wager: float
    potential_profit: float
    odds: float

    def to_dict(self) -> dict:
        return {
            "candidate_id": self.candidate_id,
            "wager": round(self.wager, 2),
            "potential_profit": round(self.potential_profit, 2),
            "odds": self.odds,
        }


@dataclass
class OutcomeScenario:
    record: str       # "4-2"
    wins: int
    losses: int
    net_pl: float     # rounded to cents
    is_break_even: bool

    def to_dict(self) -> dict:
        return {
            "record": self.record,
            "wins": self.wins,
            "losses": self.losses,
            "net_pl": self.net_pl,
            "is_break_even": self.is_break_even,
        }


@dataclass
class OutcomeProjection:
    scenarios: List[OutcomeScenario] = field(default_factory=list)
    picks: List[PickFinancials] = field(default_factory=list)
    total_wagered: float = 0.0
    total_potential_profit: float = 0.0
    best_case: float = 0.0
    worst_case: float = 0.0

    def to_dict(self) -> dict:
        return {
            "scenarios": [s.to_dict() for s in self.scenarios],
            "picks": [p.to_dict() for p in self.picks],
            "total_wagered": self.total_wagered,
            "total_potential_profit": self.total_potential_profit,
            "best_case": self.best_case,
            "worst_case": self.worst_case,
        }


# ---------------------------------------------------------------------------
# Financials
# ---------------------------------------------------------------------------

def financials_from_stakes(stakes: Iterable) -> List[PickFinancials]:
    """Financials from sized :class:`StakeRecommendation` objects.

    Unfunded picks stay on the card with a zero wager.
    """
    picks = []
    for stake in stakes:
        odds = stake.odds if stake.odds is not None else parse_american_odds(None)
        picks.append(PickFinancials(
            candidate_id=stake.candidate_id,
            wager=stake.amount,
            potential_profit=profit(stake.amount, odds),
            odds=odds,
        ))
    return picks


def financials_from_tiers(
    candidates: Iterable[Candidate],
    bankroll: float,
    config: Optional[CardConfig] = None,
) -> List[PickFinancials]:
    """Financials from confidence units alone, ignoring venue funds.

    Prices that cannot be read are assumed to be -110.
    """
    config = config or CardConfig()
    one_unit = unit_size(bankroll, config.unit_size_pct)
    picks = []
    for candidate in candidates:
        wager = one_unit * config.unit_multiplier(candidate.confidence)
        odds = parse_american_odds(candidate.best_odds)
        picks.append(PickFinancials(
            candidate_id=candidate.id,
            wager=wager,
            potential_profit=profit(wager, odds),
            odds=odds,
        ))
    return picks


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------

def project_outcomes(picks: List[PickFinancials]) -> OutcomeProjection:
    """
    Build the scenario table for ``picks``.

    Returns:
        :class:`OutcomeProjection`.  An empty card yields no scenarios and
        zero totals.
    """
    n = len(picks)
    if n == 0:
        return OutcomeProjection()

    wagers = np.array([p.wager for p in picks], dtype=float)
    profits = np.array([p.potential_profit for p in picks], dtype=float)
    total_wagered = float(wagers.sum())
    total_profit = float(profits.sum())
    avg_wager = total_wagered / n
    avg_profit = total_profit / n

    wins = np.arange(n, -1, -1)
    net = wins * avg_profit - (n - wins) * avg_wager

    scenarios = [
        OutcomeScenario(
            record=f"{int(w)}-{n - int(w)}",
            wins=int(w),
            losses=n - int(w),
            net_pl=round(float(pl), 2),
            is_break_even=bool(abs(pl) < avg_wager),
        )
        for w, pl in zip(wins, net)
    ]

    projection = OutcomeProjection(
        scenarios=scenarios,
        picks=list(picks),
        total_wagered=round(total_wagered, 2),
        total_potential_profit=round(total_profit, 2),
        best_case=scenarios[0].net_pl,
        worst_case=scenarios[-1].net_pl,
    )
    logger.debug(
        "Projected %d picks: wagered %.2f, best %.2f, worst %.2f",
        n, projection.total_wagered, projection.best_case, projection.worst_case,
    )
    return projection
