"""Engine configuration — every tunable of the card engine in one frozen bundle.

:class:`CardConfig` carries the unit size, Kelly multiplier, daily slot cap,
juice veto and the per-(sport, market) edge-floor table.  Nothing in
``edgelab.services`` hard-codes these values; each stage receives the config
it was called with.

Defaults come from the class itself.  Deployments override them through
``EDGELAB_*`` environment variables (a ``.env`` file is honoured) via
:meth:`CardConfig.from_env`, and callers override single fields with
:func:`dataclasses.replace`::

    from dataclasses import replace
    from edgelab.core.card_config import CardConfig

    cfg = CardConfig.from_env()
    tight = replace(cfg, daily_cap=4, juice_ceiling=-140)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Final, Mapping, Optional

from dotenv import load_dotenv

from edgelab.core.kelly import DEFAULT_KELLY_MULTIPLIER
from edgelab.core.sport_config import (
    CONFIDENCE_UNIT_MULTIPLIERS,
    DEFAULT_EDGE_FLOORS,
    EdgeFloorTable,
)

#: Maximum number of slots on one day's card.
DEFAULT_DAILY_CAP: Final[int] = 6

#: Favourites priced beyond this are vetoed outright.
DEFAULT_JUICE_CEILING: Final[float] = -160.0

#: Worst price an alternate venue may offer when the first choice is short.
DEFAULT_ALTERNATE_ODDS_FLOOR: Final[float] = -130.0

DEFAULT_UNIT_SIZE_PCT: Final[float] = 2.0


class StakingMode(str, Enum):
    TIERED = "TIERED"
    KELLY = "KELLY"

    @classmethod
    def parse(cls, value: Any) -> StakingMode:
        """Case-insensitive lookup; unknown values fall back to ``TIERED``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.TIERED


@dataclass(frozen=True)
class CardConfig:
    """Immutable configuration for one engine run.

    Attributes:
        unit_size_pct: One unit as a percentage of bankroll (2.0 → 2%).
        staking_mode: Fixed confidence-tiered units or fractional Kelly.
        kelly_multiplier: Fraction of full Kelly applied (0.25 / 0.5 / 1.0).
        max_kelly_fraction: Optional ceiling on any applied Kelly fraction;
            ``None`` stakes the full ``f* × kelly_multiplier``.
        daily_cap: Maximum number of card slots.
        juice_ceiling: American price beyond which a pick is vetoed
            (-160 vetoes -170 and keeps -160).
        alternate_odds_floor: Worst price accepted from a fallback venue.
        edge_floors: Per-(sport, market) line-value floors.
        confidence_multipliers: Units staked per confidence tier.
        bankroll: Optional fixed bankroll.  ``None`` means the sum of venue
            balances at the start of the run.
    """

    unit_size_pct: float = DEFAULT_UNIT_SIZE_PCT
    staking_mode: StakingMode = StakingMode.TIERED
    kelly_multiplier: float = DEFAULT_KELLY_MULTIPLIER
    max_kelly_fraction: Optional[float] = None
    daily_cap: int = DEFAULT_DAILY_CAP
    juice_ceiling: float = DEFAULT_JUICE_CEILING
    alternate_odds_floor: float = DEFAULT_ALTERNATE_ODDS_FLOOR
    edge_floors: EdgeFloorTable = DEFAULT_EDGE_FLOORS
    confidence_multipliers: Mapping[str, float] = field(
        default_factory=lambda: dict(CONFIDENCE_UNIT_MULTIPLIERS)
    )
    bankroll: Optional[float] = None

    # ------------------------------------------------------------------ #
    #  Constructors                                                        #
    # ------------------------------------------------------------------ #

    @classmethod
    def from_env(cls) -> CardConfig:
        """Build a config from ``EDGELAB_*`` environment variables.

        Unset variables keep the class defaults.  Malformed numeric values
        raise ``ValueError`` at startup rather than skewing every card.
        """
        load_dotenv()
        bankroll = os.getenv("EDGELAB_BANKROLL")
        kelly_cap = os.getenv("EDGELAB_MAX_KELLY_FRACTION")
        return cls(
            unit_size_pct=float(os.getenv("EDGELAB_UNIT_SIZE_PCT", str(DEFAULT_UNIT_SIZE_PCT))),
            staking_mode=StakingMode.parse(os.getenv("EDGELAB_STAKING_MODE", "TIERED")),
            kelly_multiplier=float(
                os.getenv("EDGELAB_KELLY_MULTIPLIER", str(DEFAULT_KELLY_MULTIPLIER))
            ),
            max_kelly_fraction=float(kelly_cap) if kelly_cap else None,
            daily_cap=int(os.getenv("EDGELAB_DAILY_CAP", str(DEFAULT_DAILY_CAP))),
            juice_ceiling=float(os.getenv("EDGELAB_JUICE_CEILING", str(DEFAULT_JUICE_CEILING))),
            alternate_odds_floor=float(
                os.getenv("EDGELAB_ALTERNATE_ODDS_FLOOR", str(DEFAULT_ALTERNATE_ODDS_FLOOR))
            ),
            bankroll=float(bankroll) if bankroll else None,
        )

    def with_overrides(self, **overrides: Any) -> CardConfig:
        """Return a copy with the non-``None`` overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "staking_mode" in changes:
            changes["staking_mode"] = StakingMode.parse(changes["staking_mode"])
        if "edge_floors" in changes and not isinstance(changes["edge_floors"], EdgeFloorTable):
            # Partial tables extend the current one rather than replacing it.
            table = self.edge_floors
            for (sport, market), floor in EdgeFloorTable.from_dict(changes["edge_floors"]).floors.items():
                table = table.with_floor(
                    sport, market, premium=floor.premium, standard=floor.standard
                )
            changes["edge_floors"] = table
        return replace(self, **changes)

    # ------------------------------------------------------------------ #
    #  Convenience accessors                                               #
    # ------------------------------------------------------------------ #

    def unit_multiplier(self, confidence: Optional[str]) -> float:
        """Units for a confidence tier; unknown tiers stake like MEDIUM."""
        key = (confidence or "MEDIUM").upper()
        return self.confidence_multipliers.get(
            key, self.confidence_multipliers.get("MEDIUM", 1.0)
        )

    def to_dict(self) -> dict:
        return {
            "unit_size_pct": self.unit_size_pct,
            "staking_mode": self.staking_mode.value,
            "kelly_multiplier": self.kelly_multiplier,
            "max_kelly_fraction": self.max_kelly_fraction,
            "daily_cap": self.daily_cap,
            "juice_ceiling": self.juice_ceiling,
            "alternate_odds_floor": self.alternate_odds_floor,
            "edge_floors": self.edge_floors.to_dict(),
            "confidence_multipliers": dict(self.confidence_multipliers),
            "bankroll": self.bankroll,
        }
