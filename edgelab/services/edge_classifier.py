"""
Edge strength classification.

Scores a single candidate's edge into NONE / STANDARD / PREMIUM from its
line value (points gained over the sharp line), its price value (cents
gained over the sharp price) and the analyst's confidence.

Rules, checked in order:

    PREMIUM   confidence HIGH, or cents >= 15, or |points| >= premium floor
    STANDARD  cents >= 5, or |points| >= standard floor
    NONE      otherwise

Point floors come from the configured :class:`EdgeFloorTable` and depend on
the (sport, market) pair.  The classifier is total: missing or non-finite
inputs count as zero and it never raises.
"""

import logging
import math
from typing import Optional

from edgelab.core.sport_config import (
    DEFAULT_EDGE_FLOORS,
    PREMIUM_CENTS,
    STANDARD_CENTS,
    EdgeFloorTable,
)
from edgelab.schemas import Candidate, Confidence, EdgeTier, Market

logger = logging.getLogger(__name__)


def _finite(value: Optional[float]) -> float:
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def classify_edge(
    line_points: Optional[float] = 0.0,
    price_cents: Optional[float] = 0.0,
    confidence: Optional[str] = Confidence.MEDIUM,
    sport: Optional[str] = "",
    market: Optional[str] = Market.SPREAD,
    floors: EdgeFloorTable = DEFAULT_EDGE_FLOORS,
) -> EdgeTier:
    """Classify one edge.

    Args:
        line_points: Signed line improvement in points; only the magnitude
            is used.
        price_cents: Price improvement over the sharp price, in cents.
        confidence: ``LOW`` / ``MEDIUM`` / ``HIGH``.
        sport: League code (``"NBA"``).  Unknown sports use the most
            conservative floor in ``floors``.
        market: ``moneyline`` / ``spread`` / ``total``.
        floors: Point-floor table.

    Returns:
        The :class:`EdgeTier`.
    """
    abs_points = abs(_finite(line_points))
    cents = _finite(price_cents)
    market_key = str(getattr(market, "value", market) or "")
    floor = floors.floor_for(str(sport or ""), market_key)

    if str(getattr(confidence, "value", confidence) or "").upper() == Confidence.HIGH.value:
        return EdgeTier.PREMIUM
    if cents >= PREMIUM_CENTS or floor.meets_premium(abs_points):
        return EdgeTier.PREMIUM
    if cents >= STANDARD_CENTS or floor.meets_standard(abs_points):
        return EdgeTier.STANDARD
    return EdgeTier.NONE


def has_value_signal(candidate: Candidate) -> bool:
    """True when the candidate shows any positive line or price value."""
    return abs(_finite(candidate.line_points)) > 0 or _finite(candidate.price_cents) > 0


def classify_candidate(
    candidate: Candidate,
    floors: EdgeFloorTable = DEFAULT_EDGE_FLOORS,
) -> EdgeTier:
    """Classify a candidate, enforcing the playable-pick invariants.

    PASS candidates, and PLAYABLE ones without a best-price venue or
    without any positive value signal, are treated as having zero edge.
    """
    if not candidate.is_playable:
        return EdgeTier.NONE
    if not (candidate.best_venue or "").strip():
        logger.debug("Candidate %s has no best venue, treating as zero edge", candidate.id)
        return EdgeTier.NONE
    if not has_value_signal(candidate):
        return EdgeTier.NONE
    return classify_edge(
        line_points=candidate.line_points,
        price_cents=candidate.price_cents,
        confidence=candidate.confidence,
        sport=candidate.sport,
        market=candidate.market,
        floors=floors,
    )
