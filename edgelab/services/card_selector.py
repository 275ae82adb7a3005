"""
Daily card selection.

Turns a pool of analyzed candidates into a bounded, ranked card:

    1. Eligibility  — PLAYABLE only, optionally inside a kickoff window;
                      best retail price present and not beyond the juice
                      ceiling (a veto, not a ranking penalty).
    2. Quality      — edge tier must be STANDARD or PREMIUM; failures are
                      kept as human-readable skip reasons.
    3. Ranking      — PREMIUM before STANDARD, then line points desc, then
                      price cents desc, then candidate id asc.
    4. Capping      — the top ``daily_cap`` receive slots 1..k.

The selector is a single pass with no clock or randomness: identical pools
always produce identical slot assignments.

Candidate ids are unique on a card.  A repeated id is vetoed and only its
first occurrence in the pool is considered.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from edgelab.core.card_config import CardConfig
from edgelab.core.odds_math import parse_american_odds
from edgelab.core.time_window import TimeWindow, format_et_time, in_time_window
from edgelab.schemas import Candidate, EdgeTier
from edgelab.services.edge_classifier import classify_candidate

logger = logging.getLogger(__name__)

QUALIFYING_TIERS = frozenset({EdgeTier.PREMIUM, EdgeTier.STANDARD})


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class SlotAssignment:
    """One numbered position on the card."""

    slot: int
    candidate_id: str
    tier: EdgeTier
    line_points: float
    price_cents: float
    kickoff_et: str = format_et_time(None)

    def to_dict(self) -> dict:
        return {
            "slot": self.slot,
            "candidate_id": self.candidate_id,
            "tier": self.tier.value,
            "line_points": self.line_points,
            "price_cents": self.price_cents,
            "kickoff_et": self.kickoff_et,
        }


@dataclass
class SelectionResult:
    """Outcome of one selection run.

    ``skipped`` counts candidates that passed eligibility but failed the
    quality filter.  Vetoed and out-of-window candidates are reported
    separately and never counted as skipped.
    """

    slots: List[SlotAssignment] = field(default_factory=list)
    skipped: int = 0
    reasons: List[str] = field(default_factory=list)
    vetoed: int = 0
    veto_reasons: List[str] = field(default_factory=list)
    qualified: int = 0
    tiers: Dict[str, EdgeTier] = field(default_factory=dict)

    @property
    def picked(self) -> int:
        return len(self.slots)

    @property
    def slotted_ids(self) -> List[str]:
        return [s.candidate_id for s in self.slots]

    def slot_for(self, candidate_id: str) -> Optional[int]:
        for assignment in self.slots:
            if assignment.candidate_id == candidate_id:
                return assignment.slot
        return None

    def to_dict(self) -> dict:
        return {
            "picked": self.picked,
            "skipped": self.skipped,
            "reasons": list(self.reasons),
            "vetoed": self.vetoed,
            "veto_reasons": list(self.veto_reasons),
            "qualified": self.qualified,
            "slots": [s.to_dict() for s in self.slots],
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _points(candidate: Candidate) -> float:
    return candidate.line_points or 0.0


def _cents(candidate: Candidate) -> float:
    return candidate.price_cents or 0.0


def _label(candidate: Candidate) -> str:
    market = candidate.market.value if candidate.market else "unknown"
    return f"{candidate.matchup} {market}"


def juice_veto_reason(candidate: Candidate, juice_ceiling: float) -> Optional[str]:
    """Why a candidate's price disqualifies it, or ``None`` if it is fine.

    Missing and unparseable prices are disqualifying: a pick that cannot be
    priced cannot be staked or projected.
    """
    odds = parse_american_odds(candidate.best_odds, default=None)
    if odds is None:
        if candidate.best_odds:
            return f"{_label(candidate)}: unreadable price {candidate.best_odds!r}"
        return f"{_label(candidate)}: no best price"
    if odds < juice_ceiling:
        return f"{_label(candidate)}: {odds:+.0f} beyond {juice_ceiling:+.0f} ceiling"
    return None


def skip_reason(candidate: Candidate) -> str:
    return f"{_label(candidate)}: {_points(candidate):+.1f} pts / {_cents(candidate):.0f}¢"


def rank_key(candidate: Candidate, tier: EdgeTier) -> tuple:
    """Sort key: tier, points desc, cents desc, id asc."""
    return (tier.rank, -_points(candidate), -_cents(candidate), candidate.id)


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------

def select_card(
    candidates: Iterable[Candidate],
    config: Optional[CardConfig] = None,
    window: Optional[TimeWindow] = None,
) -> SelectionResult:
    """
    Select and rank the daily card.

    Args:
        candidates: The full candidate pool.  Not mutated.
        config: Engine configuration (cap, juice ceiling, edge floors).
        window: Optional kickoff window; ``None``/``ALL`` keeps every game.

    Returns:
        :class:`SelectionResult` with slots ``1..k`` in rank order.
    """
    config = config or CardConfig()
    result = SelectionResult()
    qualified: List[tuple] = []
    seen: set = set()

    for candidate in candidates:
        if candidate.id in seen:
            result.vetoed += 1
            result.veto_reasons.append(f"{_label(candidate)}: duplicate candidate id {candidate.id!r}")
            continue
        seen.add(candidate.id)

        if not candidate.is_playable:
            continue
        if not in_time_window(candidate.kickoff_time, window):
            continue

        veto = juice_veto_reason(candidate, config.juice_ceiling)
        if veto is not None:
            result.vetoed += 1
            result.veto_reasons.append(veto)
            continue

        tier = classify_candidate(candidate, config.edge_floors)
        result.tiers[candidate.id] = tier
        if tier not in QUALIFYING_TIERS:
            result.skipped += 1
            result.reasons.append(skip_reason(candidate))
            continue

        qualified.append((rank_key(candidate, tier), candidate, tier))

    qualified.sort(key=lambda entry: entry[0])
    result.qualified = len(qualified)

    cap = max(0, config.daily_cap)
    for slot, (_, candidate, tier) in enumerate(qualified[:cap], start=1):
        result.slots.append(SlotAssignment(
            slot=slot,
            candidate_id=candidate.id,
            tier=tier,
            line_points=_points(candidate),
            price_cents=_cents(candidate),
            kickoff_et=format_et_time(candidate.kickoff_time),
        ))

    logger.info(
        "Card selection: %d picked, %d qualified, %d skipped, %d vetoed (cap=%d, window=%s)",
        result.picked, result.qualified, result.skipped, result.vetoed, cap,
        window.value if window else "ALL",
    )
    return result
