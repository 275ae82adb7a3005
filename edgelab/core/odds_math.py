"""Fundamental odds arithmetic — the single source of truth.

Every function here is **pure**: no I/O, no logging, no side effects.
Import from this module; never reimplement locally in services.

The pillars exposed are:

1. **Odds conversion** — American ↔ decimal, decimal → implied probability.
2. **Payouts** — profit on a winning wager and expected value.
3. **Parsing** — turning the loosely-formatted odds strings produced by the
   analysis collaborator (``"+110"``, ``"-105"``, ``"N/A"``) into numbers.

Design decisions
----------------
* Odds arrive as strings or numbers from upstream.  :func:`parse_american_odds`
  falls back to standard vig (-110) when a price is missing or unreadable.
  Assuming a *worse* price than an unknown one means a parsing gap can only
  understate projected profit, never inflate it.
* Price comparisons go through decimal odds.  Comparing raw American numbers
  breaks across the ±100 boundary (``-105`` pays more than ``-110`` but
  ``+100`` is not "195 better" than ``-105``).

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

import math
from typing import Final, Optional, Union

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: Conservative price assumed when a quote is missing or unparseable.
DEFAULT_ODDS: Final[float] = -110.0

#: Strings the odds feed uses for "no quote".
_MISSING_TOKENS: Final[frozenset[str]] = frozenset({"", "n/a", "na", "none", "null", "-", "off"})

OddsInput = Union[int, float, str, None]


# ---------------------------------------------------------------------------
# Odds conversion
# ---------------------------------------------------------------------------


def american_to_decimal(american: int | float) -> float:
    """Convert American odds to decimal (European) format.

    Decimal odds represent the total payout per unit staked, **including**
    the return of the stake itself.  Examples::

        american_to_decimal(-110) → 1.9091   (risk 110 to win 100)
        american_to_decimal(+150) → 2.5000   (risk 100 to win 150)

    Raises:
        ValueError: If ``american == 0``, which has no meaning as a price.
    """
    if american == 0:
        raise ValueError(
            "American odds of 0 are undefined. "
            "Check upstream odds parsing for data errors."
        )
    if american > 0:
        return 1.0 + american / 100.0
    # Negative: risk |american| to win 100
    return 1.0 + 100.0 / abs(american)


def decimal_to_american(decimal_odds: float) -> int:
    """Convert decimal odds to the nearest American integer.

    Inverse of :func:`american_to_decimal`, for display and logging.

    Raises:
        ValueError: If ``decimal_odds <= 1.0`` (no payout to express).
    """
    if decimal_odds <= 1.0:
        raise ValueError(f"Decimal odds {decimal_odds!r} must be > 1.0.")
    if decimal_odds >= 2.0:
        return round((decimal_odds - 1.0) * 100)
    return round(-100.0 / (decimal_odds - 1.0))


def implied_probability(decimal_odds: float) -> float:
    """Implied win probability, as a percentage, of a decimal price.

    Returns 0.0 for non-positive input instead of dividing by zero.

    Examples::

        implied_probability(2.0)    → 50.0
        implied_probability(1.9091) → 52.38
    """
    if decimal_odds <= 0:
        return 0.0
    return 100.0 / decimal_odds


# ---------------------------------------------------------------------------
# Payouts
# ---------------------------------------------------------------------------


def profit(wager: float, american: int | float) -> float:
    """Net profit of a winning ``wager`` at ``american`` odds.

    A zero price pays nothing rather than raising.

    Examples::

        profit(30.0, -110) → 27.27
        profit(20.0, +150) → 30.00
    """
    if american > 0:
        return wager * (american / 100.0)
    if american < 0:
        return wager * (100.0 / abs(american))
    return 0.0


def expected_value_pct(true_probability_pct: float, decimal_odds: float) -> float:
    """Expected value per unit staked, as a percentage.

    ``((p / 100) · d − 1) · 100``, where ``p`` is the estimated true win
    probability in percent.  A 55% side at -110 returns ≈ +5.0.
    """
    return ((true_probability_pct / 100.0) * decimal_odds - 1.0) * 100.0


def is_better_price(candidate: int | float, incumbent: int | float) -> bool:
    """True when ``candidate`` pays strictly more than ``incumbent``."""
    return american_to_decimal(candidate) > american_to_decimal(incumbent)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_number(value: OddsInput) -> Optional[float]:
    """Parse a line or price value; ``None`` when missing or non-numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) or math.isinf(value) else float(value)
    text = str(value).strip()
    if text.lower() in _MISSING_TOKENS:
        return None
    # Totals sometimes arrive as "o212.5" / "u6.5"
    if text[:1].lower() in {"o", "u"}:
        text = text[1:]
    try:
        number = float(text.replace("+", "", 1))
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_american_odds(
    value: OddsInput,
    default: Optional[float] = DEFAULT_ODDS,
) -> Optional[float]:
    """Parse American odds, falling back to ``default`` when unusable.

    Zero and anything strictly between -100 and +100 are not representable
    American prices and are treated as unparseable.

    Args:
        value: Raw odds (``-110``, ``"+145"``, ``"N/A"``, ``None``).
        default: Returned for missing or malformed input.  Pass ``None``
            for strict parsing (Kelly sizing, juice veto).

    Examples::

        parse_american_odds("+145")           → 145.0
        parse_american_odds("N/A")            → -110.0
        parse_american_odds("N/A", None)      → None
    """
    number = parse_number(value)
    if number is None or abs(number) < 100:
        return default
    return number
