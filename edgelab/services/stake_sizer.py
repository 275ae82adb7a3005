"""
Stake sizing against per-venue funds.

Two staking modes:

    TIERED  one unit = bankroll × unit_size_pct / 100, times a confidence
            multiplier (HIGH 1.5u, MEDIUM 1.0u, LOW 0.5u).
    KELLY   bankroll × f* × kelly_multiplier, f* = (p·d − 1) / (d − 1);
            no edge → zero stake, never negative.

Either amount is then funded from a venue:

    1. The candidate's best-price venue, if it holds the full amount.
    2. Otherwise the best-priced alternate venue that holds the full amount
       and quotes the same side at a line no worse than the target and a
       price no worse than ``alternate_odds_floor``.
    3. Otherwise a partial stake at the eligible venue with the most money,
       flagged ``capped``.
    4. Otherwise nothing: a zero stake flagged ``NO_FUNDS``.

Venue funds are tracked on an explicit :class:`VenueLedger`.  Every assigned
stake is reserved on the ledger before the next candidate is sized, so two
picks in the same run can never spend the same dollars.  The caller's ledger
is never mutated; :func:`size_card` works on a copy and returns it.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from edgelab.core.card_config import CardConfig, StakingMode
from edgelab.core.kelly import (
    dollars_to_units,
    fractional_kelly,
    full_kelly,
    normalize_win_probability,
    unit_size,
)
from edgelab.core.odds_math import (
    american_to_decimal,
    decimal_to_american,
    expected_value_pct,
    is_better_price,
    parse_american_odds,
    profit,
)
from edgelab.schemas import Candidate, Market, Side, VenueBalance

logger = logging.getLogger(__name__)

STATUS_OK = "OK"
STATUS_CAPPED = "CAPPED"
STATUS_NO_FUNDS = "NO_FUNDS"
STATUS_NO_EDGE = "NO_EDGE"
STATUS_INSUFFICIENT_DATA = "INSUFFICIENT_DATA"
STATUS_PASS = "PASS"

#: Balances below a cent are treated as empty.
_MIN_FUNDABLE = 0.01


def _cents(amount: float) -> float:
    return round(amount + 0.0, 2)


def _floor_cents(amount: float) -> float:
    """Round down to whole cents; never more money than was there."""
    return math.floor(round(amount * 100, 6)) / 100


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------

@dataclass
class VenueLedger:
    """Run-scoped view of the funds available at each venue.

    Venue names match case-insensitively, and a partial name matches a full
    one either way round ("FanDuel" ↔ "FanDuel Sportsbook"), as venue names
    coming from odds feeds and from the bankroll are rarely spelled alike.
    """

    balances: Dict[str, float] = field(default_factory=dict)
    starting: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_balances(cls, balances: Iterable[VenueBalance]) -> "VenueLedger":
        ledger = cls()
        for entry in balances:
            # Sub-cent remainders cannot be wagered
            amount = _floor_cents(max(0.0, entry.available_balance))
            name = entry.venue_name
            ledger.balances[name] = _cents(ledger.balances.get(name, 0.0) + amount)
            ledger.starting[name] = _cents(ledger.starting.get(name, 0.0) + amount)
        return ledger

    def copy(self) -> "VenueLedger":
        return VenueLedger(balances=dict(self.balances), starting=dict(self.starting))

    def resolve(self, venue_name: Optional[str]) -> Optional[str]:
        """Ledger key for ``venue_name``: exact match first, then substring."""
        if not venue_name or not venue_name.strip():
            return None
        wanted = venue_name.strip().lower()
        for name in self.balances:
            if name.lower() == wanted:
                return name
        for name in sorted(self.balances):
            lowered = name.lower()
            if wanted in lowered or lowered in wanted:
                return name
        return None

    def available(self, venue_name: Optional[str]) -> float:
        key = self.resolve(venue_name)
        return self.balances.get(key, 0.0) if key else 0.0

    def starting_balance(self, venue_name: Optional[str]) -> float:
        key = self.resolve(venue_name)
        return self.starting.get(key, 0.0) if key else 0.0

    def reserved(self, venue_name: Optional[str]) -> float:
        return _cents(self.starting_balance(venue_name) - self.available(venue_name))

    def reserve(self, venue_name: str, amount: float) -> None:
        """Take ``amount`` out of a venue's available funds.

        Raises:
            ValueError: On an unknown venue, a negative amount, or an
                amount larger than the venue's available balance.
        """
        key = self.resolve(venue_name)
        if key is None:
            raise ValueError(f"Unknown venue {venue_name!r}")
        if amount < 0:
            raise ValueError(f"Cannot reserve a negative amount ({amount!r})")
        if amount > self.balances[key] + 1e-9:
            raise ValueError(
                f"Reserve of {amount:.2f} exceeds {key} balance {self.balances[key]:.2f}"
            )
        self.balances[key] = _cents(max(0.0, self.balances[key] - amount))

    def total(self) -> float:
        return _cents(sum(self.balances.values()))

    def to_dict(self) -> dict:
        return {
            name: {
                "starting": _cents(self.starting.get(name, 0.0)),
                "available": _cents(balance),
            }
            for name, balance in sorted(self.balances.items())
        }


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass
class StakeRecommendation:
    """Recommended wager for one candidate."""

    candidate_id: str
    amount: float
    mode: StakingMode
    status: str
    requested_amount: float = 0.0
    unit_multiplier: Optional[float] = None
    units: float = 0.0
    kelly_fraction: Optional[float] = None    # full Kelly f*
    applied_fraction: Optional[float] = None  # fraction of bankroll actually staked
    expected_value_pct: Optional[float] = None
    fair_odds: Optional[int] = None
    venue: Optional[str] = None
    requested_venue: Optional[str] = None
    odds: Optional[float] = None
    potential_profit: float = 0.0
    is_fallback_venue: bool = False
    capped: bool = False
    note: str = ""

    def to_dict(self) -> dict:
        return {
            "candidate_id": self.candidate_id,
            "amount": self.amount,
            "requested_amount": self.requested_amount,
            "mode": self.mode.value,
            "status": self.status,
            "unit_multiplier": self.unit_multiplier,
            "units": self.units,
            "kelly_fraction": self.kelly_fraction,
            "applied_fraction": self.applied_fraction,
            "expected_value_pct": self.expected_value_pct,
            "fair_odds": self.fair_odds,
            "venue": self.venue,
            "requested_venue": self.requested_venue,
            "odds": self.odds,
            "potential_profit": self.potential_profit,
            "is_fallback_venue": self.is_fallback_venue,
            "capped": self.capped,
            "note": self.note,
        }


@dataclass
class _VenueOption:
    venue: str
    odds: float
    balance: float


# ---------------------------------------------------------------------------
# Requested amounts
# ---------------------------------------------------------------------------

def tiered_stake(bankroll: float, unit_size_pct: float, multiplier: float) -> float:
    """Fixed-unit stake: ``unit × multiplier``.

    >>> tiered_stake(1000.0, 2.0, 1.5)
    30.0
    """
    return _cents(unit_size(bankroll, unit_size_pct) * max(0.0, multiplier))


def kelly_stake(
    bankroll: float,
    american_odds: float,
    win_prob: float,
    multiplier: float,
    max_fraction: Optional[float] = None,
) -> Tuple[float, float, float]:
    """Fractional Kelly stake: ``bankroll × f* × multiplier``.

    ``max_fraction`` is an optional ceiling on the applied fraction.

    Returns:
        ``(amount, full_kelly_fraction, applied_fraction)``.  ``amount`` is
        0.0 whenever the full fraction is not positive.
    """
    decimal_odds = american_to_decimal(american_odds)
    f_star = full_kelly(win_prob, decimal_odds)
    applied = fractional_kelly(
        win_prob, decimal_odds, multiplier=multiplier, max_fraction=max_fraction,
    )
    return _cents(max(0.0, bankroll) * applied), f_star, applied


# ---------------------------------------------------------------------------
# Venue search
# ---------------------------------------------------------------------------

def _line_no_worse(market: Optional[Market], side: Optional[Side], line: Optional[float],
                   target: Optional[float]) -> bool:
    """Whether an alternate venue's line is at least as good as ``target``.

    Spreads: more points is better for either side.  Totals: a lower number
    is better for an Over and a higher one for an Under.  Moneylines have
    no line.  Without a target line only an exact quote is meaningful, so a
    missing target accepts any quoted line.
    """
    if market == Market.MONEYLINE:
        return True
    if line is None:
        return False
    if target is None:
        return True
    if market == Market.SPREAD:
        return line >= target
    if market == Market.TOTAL:
        if side == Side.OVER:
            return line <= target
        if side == Side.UNDER:
            return line >= target
    return False


def alternate_venues(
    candidate: Candidate,
    ledger: VenueLedger,
    odds_floor: float,
    exclude: Optional[str] = None,
) -> List[_VenueOption]:
    """Alternate venues quoting this pick acceptably, best price first.

    Ties on price break on the larger balance, then the venue name.
    """
    excluded_key = ledger.resolve(exclude) if exclude else None
    best: Dict[str, _VenueOption] = {}
    for quote in candidate.venue_quotes:
        key = ledger.resolve(quote.venue_name)
        if key is None or key == excluded_key:
            continue
        if candidate.market is None or candidate.side is None:
            continue
        line, price = quote.quote_for(candidate.market, candidate.side)
        odds = parse_american_odds(price, default=None)
        if odds is None or odds < odds_floor:
            continue
        if not _line_no_worse(candidate.market, candidate.side, line, candidate.best_line):
            continue
        # A venue listed twice keeps its better quote
        if key in best and not is_better_price(odds, best[key].odds):
            continue
        best[key] = _VenueOption(venue=key, odds=odds, balance=ledger.available(key))

    options = list(best.values())
    options.sort(key=lambda o: (-american_to_decimal(o.odds), -o.balance, o.venue))
    return options


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------

def _requested(
    candidate: Candidate,
    config: CardConfig,
    bankroll: float,
    odds: Optional[float],
    rec: StakeRecommendation,
) -> Optional[float]:
    """Fill in the sizing fields on ``rec``; ``None`` when sizing is impossible."""
    if config.staking_mode == StakingMode.KELLY:
        win_prob = normalize_win_probability(candidate.win_probability)
        if win_prob is None or odds is None:
            rec.status = STATUS_INSUFFICIENT_DATA
            rec.note = "insufficient data: win probability and a readable price are required"
            return None
        amount, f_star, applied = kelly_stake(
            bankroll, odds, win_prob, config.kelly_multiplier, config.max_kelly_fraction,
        )
        rec.kelly_fraction = round(f_star, 6)
        rec.applied_fraction = round(applied, 6)
        rec.expected_value_pct = round(
            expected_value_pct(win_prob * 100, american_to_decimal(odds)), 2
        )
        rec.fair_odds = decimal_to_american(1.0 / win_prob)
        if amount <= 0:
            rec.status = STATUS_NO_EDGE
            rec.note = f"no edge at {odds:+.0f} (fair {rec.fair_odds:+d}, f*={f_star:.4f})"
            return None
        return amount

    multiplier = config.unit_multiplier(candidate.confidence)
    rec.unit_multiplier = multiplier
    amount = tiered_stake(bankroll, config.unit_size_pct, multiplier)
    if bankroll > 0:
        rec.applied_fraction = round(amount / bankroll, 6)
    return amount


def size_stake(
    candidate: Candidate,
    ledger: VenueLedger,
    config: Optional[CardConfig] = None,
    bankroll: Optional[float] = None,
) -> StakeRecommendation:
    """
    Size one candidate and reserve its stake on ``ledger`` (mutated).

    Args:
        candidate: The pick to size.
        ledger: Run-scoped ledger; the chosen venue is debited in place.
        config: Engine configuration.
        bankroll: Bankroll for unit/Kelly math.  Defaults to
            ``config.bankroll`` and then the ledger total.

    Returns:
        :class:`StakeRecommendation`.  Degraded states (no data, no edge,
        no funds) are reported through ``status``; nothing raises.
    """
    config = config or CardConfig()
    if bankroll is None:
        bankroll = config.bankroll if config.bankroll is not None else ledger.total()

    rec = StakeRecommendation(
        candidate_id=candidate.id,
        amount=0.0,
        mode=config.staking_mode,
        status=STATUS_OK,
        requested_venue=candidate.best_venue,
    )

    if not candidate.is_playable:
        rec.status = STATUS_PASS
        rec.note = "PASS verdict carries no stake"
        return rec

    strict_odds = parse_american_odds(candidate.best_odds, default=None)
    requested = _requested(candidate, config, bankroll, strict_odds, rec)
    if requested is None:
        return rec
    rec.requested_amount = requested
    if requested <= 0:
        rec.status = STATUS_NO_FUNDS
        rec.capped = True
        rec.note = "bankroll is empty"
        return rec

    # Projection odds at the first-choice venue: assume standard vig when unreadable.
    best_odds = strict_odds if strict_odds is not None else parse_american_odds(candidate.best_odds)

    one_unit = unit_size(bankroll, config.unit_size_pct)

    # 1. First-choice venue
    first_key = ledger.resolve(candidate.best_venue)
    if first_key is not None and ledger.available(first_key) + 1e-9 >= requested:
        return _fund(rec, ledger, first_key, requested, best_odds, False, one_unit)

    # 2. Fully funded alternate
    options = alternate_venues(candidate, ledger, config.alternate_odds_floor, exclude=candidate.best_venue)
    for option in options:
        if option.balance + 1e-9 >= requested:
            rec.note = (
                f"{candidate.best_venue or 'first-choice venue'} short "
                f"({ledger.available(first_key):.2f}); using {option.venue} at {option.odds:+.0f}"
            )
            return _fund(rec, ledger, option.venue, requested, option.odds, True, one_unit)

    # 3. Partial funding at whichever eligible venue has the most money
    partial: List[_VenueOption] = []
    if first_key is not None and ledger.available(first_key) >= _MIN_FUNDABLE:
        partial.append(_VenueOption(first_key, best_odds, ledger.available(first_key)))
    partial.extend(o for o in options if o.balance >= _MIN_FUNDABLE)
    if partial:
        pick = max(partial, key=lambda o: (o.balance, american_to_decimal(o.odds)))
        amount = _floor_cents(min(pick.balance, requested))
        rec.capped = True
        rec.note = f"capped at {pick.venue} balance ({amount:.2f} of {requested:.2f})"
        _fund(rec, ledger, pick.venue, amount, pick.odds, pick.venue != first_key, one_unit)
        rec.status = STATUS_CAPPED
        return rec

    # 4. Nothing available anywhere
    rec.status = STATUS_NO_FUNDS
    rec.capped = True
    rec.note = "no venue with funds quotes this pick"
    logger.warning(
        "No funded venue for %s (wanted %.2f at %s)",
        candidate.id, requested, candidate.best_venue,
    )
    return rec


def _fund(
    rec: StakeRecommendation,
    ledger: VenueLedger,
    venue: str,
    amount: float,
    odds: float,
    fallback: bool,
    one_unit: float,
) -> StakeRecommendation:
    ledger.reserve(venue, amount)
    rec.units = round(dollars_to_units(amount, one_unit), 3)
    rec.amount = amount
    rec.venue = venue
    rec.odds = odds
    rec.potential_profit = _cents(profit(amount, odds))
    rec.is_fallback_venue = fallback
    return rec


def size_card(
    candidates: Iterable[Candidate],
    ledger: VenueLedger,
    config: Optional[CardConfig] = None,
    bankroll: Optional[float] = None,
) -> Tuple[List[StakeRecommendation], VenueLedger]:
    """
    Size every candidate in order against one shared ledger.

    Candidates should arrive in slot order: earlier slots get first claim on
    scarce venue funds.  ``ledger`` is copied; the copy, debited by every
    assigned stake, is returned alongside the recommendations.
    """
    config = config or CardConfig()
    working = ledger.copy()
    if bankroll is None:
        bankroll = config.bankroll if config.bankroll is not None else working.total()

    stakes = [size_stake(c, working, config, bankroll) for c in candidates]

    logger.info(
        "Sized %d picks (%s): %.2f staked, %d capped, %d unfunded",
        len(stakes),
        config.staking_mode.value,
        sum(s.amount for s in stakes),
        sum(1 for s in stakes if s.status == STATUS_CAPPED),
        sum(1 for s in stakes if s.status == STATUS_NO_FUNDS),
    )
    return stakes, working
