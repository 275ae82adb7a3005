"""
Pydantic request/response schemas for the EdgeLab card engine.

Candidates and bankroll snapshots are produced by external collaborators
(the analysis agent, the bankroll ledger).  Their fields are loosely typed
upstream — odds arrive as ``"+110"`` or ``"N/A"``, markets as ``"Spread"`` or
``"ML"`` — so every validator here *coerces* to a safe value instead of
rejecting the record.  A malformed quote must never take the card down.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from edgelab.core.card_config import StakingMode
from edgelab.core.odds_math import parse_number
from edgelab.core.time_window import TimeWindow


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Decision(str, Enum):
    PLAYABLE = "PLAYABLE"
    PASS = "PASS"


class Confidence(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Market(str, Enum):
    MONEYLINE = "moneyline"
    SPREAD = "spread"
    TOTAL = "total"


class Side(str, Enum):
    HOME = "HOME"
    AWAY = "AWAY"
    OVER = "OVER"
    UNDER = "UNDER"


class EdgeTier(str, Enum):
    NONE = "NONE"
    STANDARD = "STANDARD"
    PREMIUM = "PREMIUM"

    @property
    def rank(self) -> int:
        """Sort rank: lower sorts first (PREMIUM before STANDARD)."""
        return _TIER_RANK[self]


_TIER_RANK = {EdgeTier.PREMIUM: 0, EdgeTier.STANDARD: 1, EdgeTier.NONE: 2}


class Severity(str, Enum):
    INFO = "INFO"
    CAUTION = "CAUTION"
    WARNING = "WARNING"


_MARKET_ALIASES = {
    "moneyline": Market.MONEYLINE,
    "ml": Market.MONEYLINE,
    "h2h": Market.MONEYLINE,
    "spread": Market.SPREAD,
    "spreads": Market.SPREAD,
    "point spread": Market.SPREAD,
    "runline": Market.SPREAD,
    "puckline": Market.SPREAD,
    "total": Market.TOTAL,
    "totals": Market.TOTAL,
    "over/under": Market.TOTAL,
}


def _coerce_enum(enum_cls, value: Any, default):
    if isinstance(value, enum_cls):
        return value
    if value is None:
        return default
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

class VenueQuote(BaseModel):
    """
    One venue's board for a single game.

    The sharp (reference) line uses the same shape.  Lines and prices are
    parsed leniently; anything unreadable becomes ``None`` ("not offered").
    """

    venue_name: str = ""
    spread_line_away: Optional[float] = None
    spread_odds_away: Optional[float] = None
    spread_line_home: Optional[float] = None
    spread_odds_home: Optional[float] = None
    total_line: Optional[float] = None
    total_odds_over: Optional[float] = None
    total_odds_under: Optional[float] = None
    ml_odds_away: Optional[float] = None
    ml_odds_home: Optional[float] = None

    @field_validator(
        "spread_line_away", "spread_odds_away", "spread_line_home", "spread_odds_home",
        "total_line", "total_odds_over", "total_odds_under", "ml_odds_away", "ml_odds_home",
        mode="before",
    )
    @classmethod
    def parse_loose_number(cls, v: Any) -> Optional[float]:
        return parse_number(v)

    def quote_for(self, market: Market, side: Side) -> tuple[Optional[float], Optional[float]]:
        """``(line, price)`` this venue offers on one side of one market.

        Moneylines have no line; mismatched market/side pairs (an OVER on a
        spread) return ``(None, None)``.
        """
        if market == Market.MONEYLINE:
            if side == Side.AWAY:
                return None, self.ml_odds_away
            if side == Side.HOME:
                return None, self.ml_odds_home
        elif market == Market.SPREAD:
            if side == Side.AWAY:
                return self.spread_line_away, self.spread_odds_away
            if side == Side.HOME:
                return self.spread_line_home, self.spread_odds_home
        elif market == Market.TOTAL:
            if side == Side.OVER:
                return self.total_line, self.total_odds_over
            if side == Side.UNDER:
                return self.total_line, self.total_odds_under
        return None, None

    def away_spread(self) -> Optional[float]:
        """Away spread, derived from the home spread when only that is quoted."""
        if self.spread_line_away is not None:
            return self.spread_line_away
        if self.spread_line_home is not None:
            return -self.spread_line_home
        return None


class Candidate(BaseModel):
    """
    One analyzed game/market opportunity, as delivered by the analysis agent.

    Read-only to the engine: selection and staking produce separate result
    objects keyed by ``id``.
    """

    id: str = Field(..., min_length=1)
    sport: str = Field("", description='League code, e.g. "NBA", "NFL", "NHL"')
    market: Optional[Market] = None
    side: Optional[Side] = None
    home_team: str = ""
    away_team: str = ""
    kickoff_time: Optional[datetime] = None

    decision: Decision = Decision.PASS
    confidence: Confidence = Confidence.MEDIUM
    line_points: Optional[float] = Field(
        None, description="Line improvement over the sharp line, in points"
    )
    price_cents: Optional[float] = Field(
        None, description="Price improvement over the sharp price, in cents"
    )
    win_probability: Optional[float] = Field(
        None, description="Estimated win probability (0-1 or percent)"
    )

    best_venue: Optional[str] = None
    best_line: Optional[float] = None
    best_odds: Optional[str] = Field(None, description='Best retail price as quoted, e.g. "-105"')

    sharp_lines: Optional[VenueQuote] = None
    venue_quotes: list[VenueQuote] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("sport", mode="before")
    @classmethod
    def normalise_sport(cls, v: Any) -> str:
        return str(v).strip().upper() if v is not None else ""

    @field_validator("market", mode="before")
    @classmethod
    def normalise_market(cls, v: Any) -> Optional[Market]:
        if isinstance(v, Market):
            return v
        return _MARKET_ALIASES.get(str(v or "").strip().lower())

    @field_validator("side", mode="before")
    @classmethod
    def normalise_side(cls, v: Any) -> Optional[Side]:
        return _coerce_enum(Side, v, None)

    @field_validator("decision", mode="before")
    @classmethod
    def normalise_decision(cls, v: Any) -> Decision:
        return _coerce_enum(Decision, v, Decision.PASS)

    @field_validator("confidence", mode="before")
    @classmethod
    def normalise_confidence(cls, v: Any) -> Confidence:
        return _coerce_enum(Confidence, v, Confidence.MEDIUM)

    @field_validator("line_points", "price_cents", "win_probability", "best_line", mode="before")
    @classmethod
    def parse_loose_number(cls, v: Any) -> Optional[float]:
        return parse_number(v)

    @field_validator("best_odds", mode="before")
    @classmethod
    def stringify_odds(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return f"{v:+g}"
        return str(v)

    @field_validator("kickoff_time", mode="before")
    @classmethod
    def lenient_kickoff(cls, v: Any) -> Optional[datetime]:
        if isinstance(v, datetime):
            return v
        if isinstance(v, str) and v.strip():
            try:
                return datetime.fromisoformat(v.strip().replace("Z", "+00:00"))
            except ValueError:
                return None
        return None

    @property
    def is_playable(self) -> bool:
        return self.decision == Decision.PLAYABLE

    @property
    def matchup(self) -> str:
        away = self.away_team or "Away"
        home = self.home_team or "Home"
        return f"{away} @ {home}"


class VenueBalance(BaseModel):
    """Funds available at one venue (owned by the external bankroll ledger)."""

    venue_name: str = Field(..., min_length=1)
    available_balance: float = 0.0

    @field_validator("available_balance", mode="before")
    @classmethod
    def non_negative(cls, v: Any) -> float:
        number = parse_number(v)
        if number is None or number < 0:
            return 0.0
        return number


# ---------------------------------------------------------------------------
# API payloads
# ---------------------------------------------------------------------------

class ConfigOverrides(BaseModel):
    """Per-request overrides of the deployment's :class:`CardConfig`."""

    unit_size_pct: Optional[float] = Field(None, gt=0, le=100)
    staking_mode: Optional[StakingMode] = None
    kelly_multiplier: Optional[float] = Field(None, gt=0, le=1)
    max_kelly_fraction: Optional[float] = Field(None, gt=0, le=1)
    daily_cap: Optional[int] = Field(None, ge=0, le=50)
    juice_ceiling: Optional[float] = Field(None, le=-100)
    alternate_odds_floor: Optional[float] = None
    bankroll: Optional[float] = Field(None, ge=0)
    edge_floors: Optional[dict[str, dict[str, dict[str, float]]]] = Field(
        None, description='e.g. {"NBA": {"total": {"premium": 2.0, "standard": 1.0}}}'
    )


class CardBuildRequest(BaseModel):
    """Payload for POST /api/card/build."""

    candidates: list[Candidate] = Field(default_factory=list)
    balances: list[VenueBalance] = Field(default_factory=list)
    time_window: Optional[TimeWindow] = None
    config: Optional[ConfigOverrides] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "candidates": [{
                    "id": "nba-bos-nyk",
                    "sport": "NBA",
                    "market": "Spread",
                    "side": "AWAY",
                    "away_team": "Celtics",
                    "home_team": "Knicks",
                    "kickoff_time": "2026-01-15T00:30:00Z",
                    "decision": "PLAYABLE",
                    "confidence": "HIGH",
                    "line_points": 1.0,
                    "price_cents": 4,
                    "best_venue": "FanDuel",
                    "best_line": -2.5,
                    "best_odds": "-108",
                }],
                "balances": [{"venue_name": "FanDuel", "available_balance": 500}],
                "time_window": "EVENING",
            }
        }
    }


class CardAnalyzeRequest(BaseModel):
    """Payload for POST /api/card/analyze."""

    candidates: list[Candidate] = Field(default_factory=list)
    slotted_ids: Optional[list[str]] = Field(
        None, description="Restrict analytics to these candidates (the slotted card)"
    )
    bankroll: float = Field(0.0, ge=0)
    config: Optional[ConfigOverrides] = None


class EdgeClassifyRequest(BaseModel):
    """Payload for POST /api/edge/classify."""

    line_points: Optional[float] = None
    price_cents: Optional[float] = None
    confidence: Confidence = Confidence.MEDIUM
    sport: str = ""
    market: Optional[Market] = None

    @field_validator("confidence", mode="before")
    @classmethod
    def normalise_confidence(cls, v: Any) -> Confidence:
        return _coerce_enum(Confidence, v, Confidence.MEDIUM)

    @field_validator("market", mode="before")
    @classmethod
    def normalise_market(cls, v: Any) -> Optional[Market]:
        """Unknown markets stay ``None`` and meet the most conservative floor."""
        if isinstance(v, Market):
            return v
        return _MARKET_ALIASES.get(str(v or "").strip().lower())

    @field_validator("line_points", "price_cents", mode="before")
    @classmethod
    def parse_loose_number(cls, v: Any) -> Optional[float]:
        return parse_number(v)


class EdgeClassifyResponse(BaseModel):
    tier: EdgeTier
    sport: str
    market: Optional[Market] = None
    premium_floor: float
    standard_floor: float
