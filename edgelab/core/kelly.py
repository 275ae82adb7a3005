"""Kelly criterion sizing — the single source of truth for Kelly math.

All functions here are **pure**: no I/O, no logging.
Import from this module; never reimplement Kelly locally in services.

Design decisions
----------------
* **Fractional Kelly** is applied as a caller-selected *multiplier*
  (0.25 / 0.5 / 1.0) on the full Kelly fraction, matching how the card's
  staking setting is expressed to the user.
* A negative or zero full Kelly means no edge at the offered price.  The
  sized fraction is then exactly 0.0; sizing is never negative.
* The stake is exactly ``f* × multiplier``.  A ceiling on the applied
  fraction is opt-in: pass ``max_fraction`` (or set
  ``EDGELAB_MAX_KELLY_FRACTION``) to bound a single pick.

Run tests with::

    pytest tests/test_kelly.py -v
"""

from __future__ import annotations

import math
from typing import Final, Optional

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Default fractional multiplier (quarter Kelly).
DEFAULT_KELLY_MULTIPLIER: Final[float] = 0.25


# ---------------------------------------------------------------------------
# Probability normalisation
# ---------------------------------------------------------------------------


def normalize_win_probability(value: Optional[float]) -> Optional[float]:
    """Return a win probability in ``(0, 1)`` or ``None``.

    The analysis collaborator reports probabilities either as fractions
    (``0.56``) or as percentages (``56``).  Values in ``(1, 100]`` are read
    as percentages.  Anything that is missing, non-finite, or lands outside
    the open unit interval is unusable for sizing.

    Examples::

        normalize_win_probability(0.56) → 0.56
        normalize_win_probability(56)   → 0.56
        normalize_win_probability(0)    → None
    """
    if value is None:
        return None
    try:
        p = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(p) or math.isinf(p):
        return None
    if 1.0 < p <= 100.0:
        p /= 100.0
    if not (0.0 < p < 1.0):
        return None
    return p


# ---------------------------------------------------------------------------
# Kelly
# ---------------------------------------------------------------------------


def full_kelly(win_prob: float, decimal_odds: float) -> float:
    """Full Kelly fraction for a simple win/loss bet.

    ``f* = (p · d − 1) / (d − 1)`` with ``d`` the decimal odds.  Can be
    negative (negative-EV bet).  Returns 0.0 when ``d <= 1`` since there is
    no payout to size against.

    Examples::

        full_kelly(0.55, 1.9091) → 0.055
        full_kelly(0.60, 2.0)    → 0.200
        full_kelly(0.45, 1.9091) → -0.1050
    """
    if decimal_odds <= 1.0:
        return 0.0
    return (win_prob * decimal_odds - 1.0) / (decimal_odds - 1.0)


def fractional_kelly(
    win_prob: float,
    decimal_odds: float,
    *,
    multiplier: float = DEFAULT_KELLY_MULTIPLIER,
    max_fraction: Optional[float] = None,
) -> float:
    """Bankroll fraction to stake under fractional Kelly.

    Args:
        win_prob: Estimated win probability in ``(0, 1)``.
        decimal_odds: Decimal odds of the price being taken.
        multiplier: Fraction of full Kelly to apply.
        max_fraction: Optional ceiling on the returned fraction; ``None``
            leaves it uncapped.

    Returns:
        Fraction ``>= 0``; 0.0 when full Kelly ``<= 0``.

    Examples::

        fractional_kelly(0.55, 1.9091)                  → 0.01375
        fractional_kelly(0.55, 1.9091, multiplier=1.0)  → 0.055
        fractional_kelly(0.45, 1.9091)                  → 0.0
    """
    f_star = full_kelly(win_prob, decimal_odds)
    if f_star <= 0.0 or multiplier <= 0.0:
        return 0.0
    fraction = f_star * multiplier
    if max_fraction is not None:
        fraction = min(fraction, max_fraction)
    return fraction


# ---------------------------------------------------------------------------
# Utility — unit conversion
# ---------------------------------------------------------------------------


def unit_size(bankroll: float, unit_size_pct: float) -> float:
    """Dollar value of one unit: ``bankroll × unit_size_pct / 100``.

    Examples::

        unit_size(1000.0, 2.0) → 20.0
    """
    if bankroll <= 0 or unit_size_pct <= 0:
        return 0.0
    return bankroll * unit_size_pct / 100.0


def dollars_to_units(amount: float, one_unit: float) -> float:
    """Express a dollar stake in units for display (0 when units are undefined)."""
    if one_unit <= 0:
        return 0.0
    return amount / one_unit
