"""
Daily card orchestration.

Wires the stages into one run:

    candidates ─► select_card ─► size_card (slot order) ─┬─► analyze_concentration
                                                          └─► project_outcomes

Every stage is a pure function of its inputs.  The only mutable state in a
run is the venue ledger, which is created from the balance snapshot at the
start of :meth:`CardBuilder.build` and returned inside the report.  Runs on
one builder are serialised by a lock so two requests never interleave their
reservations.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from edgelab.core.card_config import CardConfig
from edgelab.core.time_window import TimeWindow
from edgelab.schemas import Candidate, VenueBalance
from edgelab.services.card_selector import SelectionResult, select_card
from edgelab.services.concentration import ConcentrationWarning, analyze_concentration
from edgelab.services.outcome_projector import (
    OutcomeProjection,
    financials_from_stakes,
    financials_from_tiers,
    project_outcomes,
)
from edgelab.services.stake_sizer import StakeRecommendation, VenueLedger, size_card

logger = logging.getLogger(__name__)


@dataclass
class CardReport:
    """Everything one build produces."""

    selection: SelectionResult
    stakes: List[StakeRecommendation] = field(default_factory=list)
    warnings: List[ConcentrationWarning] = field(default_factory=list)
    projection: OutcomeProjection = field(default_factory=OutcomeProjection)
    ledger: VenueLedger = field(default_factory=VenueLedger)
    bankroll: float = 0.0
    config: CardConfig = field(default_factory=CardConfig)

    @property
    def total_staked(self) -> float:
        return round(sum(s.amount for s in self.stakes), 2)

    def stake_for(self, candidate_id: str) -> Optional[StakeRecommendation]:
        for stake in self.stakes:
            if stake.candidate_id == candidate_id:
                return stake
        return None

    def to_dict(self) -> Dict:
        return {
            "selection": self.selection.to_dict(),
            "stakes": [s.to_dict() for s in self.stakes],
            "warnings": [w.to_dict() for w in self.warnings],
            "projection": self.projection.to_dict(),
            "ledger": self.ledger.to_dict(),
            "bankroll": self.bankroll,
            "total_staked": self.total_staked,
            "config": self.config.to_dict(),
        }


@dataclass
class CardAnalytics:
    """Risk view of a card the user assembled by hand."""

    warnings: List[ConcentrationWarning] = field(default_factory=list)
    projection: OutcomeProjection = field(default_factory=OutcomeProjection)
    active_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "active_ids": list(self.active_ids),
            "warnings": [w.to_dict() for w in self.warnings],
            "projection": self.projection.to_dict(),
        }


class CardBuilder:
    """Runs the full selection → staking → analytics pipeline."""

    def __init__(self, config: Optional[CardConfig] = None):
        self.config = config or CardConfig()
        self._lock = threading.Lock()

    def build(
        self,
        candidates: Iterable[Candidate],
        balances: Iterable[VenueBalance],
        window: Optional[TimeWindow] = None,
        config: Optional[CardConfig] = None,
    ) -> CardReport:
        """
        Build the daily card.

        Args:
            candidates: Analyzed candidate pool (read-only).
            balances: Per-venue funds at the start of the run.
            window: Optional kickoff window filter.
            config: Per-call config; defaults to the builder's.

        Returns:
            :class:`CardReport`.  Analytics cover the slotted picks only.
        """
        config = config or self.config
        pool = list(candidates)
        ledger = VenueLedger.from_balances(balances)
        bankroll = config.bankroll if config.bankroll is not None else ledger.total()

        with self._lock:
            selection = select_card(pool, config, window)
            # First occurrence wins, as in select_card
            by_id: Dict[str, Candidate] = {}
            for c in pool:
                by_id.setdefault(c.id, c)
            slotted = [by_id[cid] for cid in selection.slotted_ids]

            stakes, remaining = size_card(slotted, ledger, config, bankroll)
            warnings = analyze_concentration(slotted)
            projection = project_outcomes(financials_from_stakes(stakes))

        logger.info(
            "Card built: %d slots, %.2f staked of %.2f bankroll, %d warning(s)",
            selection.picked, sum(s.amount for s in stakes), bankroll, len(warnings),
        )
        return CardReport(
            selection=selection,
            stakes=stakes,
            warnings=warnings,
            projection=projection,
            ledger=remaining,
            bankroll=bankroll,
            config=config,
        )


def analyze_card(
    candidates: Iterable[Candidate],
    config: Optional[CardConfig] = None,
    stakes: Optional[List[StakeRecommendation]] = None,
    slotted_ids: Optional[Iterable[str]] = None,
    bankroll: float = 0.0,
) -> CardAnalytics:
    """
    Concentration and scenario analytics for an arbitrary card.

    Args:
        candidates: Candidate pool.
        config: Unit size and confidence multipliers for tier-based sizing.
        stakes: Pre-sized stakes.  When given, they drive the projection.
        slotted_ids: Restrict the analysis to these ids; otherwise every
            PLAYABLE candidate is active.
        bankroll: Bankroll for tier-based sizing when ``stakes`` is absent.
    """
    config = config or CardConfig()
    pool = [c for c in candidates if c.is_playable]
    if slotted_ids is not None:
        wanted = set(slotted_ids)
        pool = [c for c in pool if c.id in wanted]

    if stakes is not None:
        active = {c.id for c in pool}
        financials = financials_from_stakes(s for s in stakes if s.candidate_id in active)
    else:
        financials = financials_from_tiers(pool, bankroll, config)

    return CardAnalytics(
        warnings=analyze_concentration(pool),
        projection=project_outcomes(financials),
        active_ids=[c.id for c in pool],
    )


_card_builder: Optional[CardBuilder] = None


def get_card_builder() -> CardBuilder:
    global _card_builder
    if _card_builder is None:
        _card_builder = CardBuilder(CardConfig.from_env())
    return _card_builder
