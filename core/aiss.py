"""
AISS Controller Setting Lookup

Maps an estimated transformer capacity (Max TR) onto the standard
protective settings of an AISS (automatic interrupting switch with
sectionalizer) controller: phase pickup current, ground pickup current
and time delay.

The tier table is ordered by ascending capacity limit. A capacity is
served by the first tier whose limit is at least that capacity. Anything
larger than the last limit falls back to the last tier, so the lookup
always returns a setting.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Any, List, Optional, Sequence

from .metering import PowerRow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AissTier:
    """
    One row of the AISS setting table.

    Attributes:
        limit: Upper transformer capacity bound (kVA) for this tier
        phase_current: Phase pickup current (A)
        ground_current: Ground pickup current (A)
        time_delay: Trip time delay range (s)
    """
    limit: int
    phase_current: str
    ground_current: str
    time_delay: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "limit": self.limit,
            "phase_current": self.phase_current,
            "ground_current": self.ground_current,
            "time_delay": self.time_delay,
        }


@dataclass(frozen=True)
class AissSetting:
    """
    Setting shown when a CT row is inspected.

    Merges the row's CT and Max TR with the matched tier. It is a
    momentary view and is never persisted.
    """
    ct: int
    max_tr: int
    phase_current: str
    ground_current: str
    time_delay: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "ct": self.ct,
            "max_tr": self.max_tr,
            "phase_current": self.phase_current,
            "ground_current": self.ground_current,
            "time_delay": self.time_delay,
        }


# [변압기 용량 상한, 상전류, 지락전류, 시간지연]
AISS_CONFIG_TABLE: Sequence[AissTier] = (
    AissTier(limit=200, phase_current="5", ground_current="2.5", time_delay="0.5~1.0"),
    AissTier(limit=250, phase_current="10", ground_current="5", time_delay="0.5~1.0"),
    AissTier(limit=500, phase_current="20", ground_current="10", time_delay="0.5~1.0"),
    AissTier(limit=750, phase_current="30", ground_current="15", time_delay="0.5~1.0"),
    AissTier(limit=1300, phase_current="50", ground_current="25", time_delay="0.5~1.0"),
    AissTier(limit=1800, phase_current="70", ground_current="35", time_delay="0.5~1.0"),
    AissTier(limit=2600, phase_current="100", ground_current="50", time_delay="0.5~1.0"),
    AissTier(limit=3700, phase_current="140", ground_current="70", time_delay="0.5~1.0"),
    AissTier(limit=5000, phase_current="200", ground_current="100", time_delay="0.5~1.0"),
)


class AissLookup:
    """
    Linear scan over an ascending AISS tier table.

    Example:
        lookup = AissLookup()
        tier = lookup.find_tier(536)
        print(tier.limit)  # 750
    """

    def __init__(self, tiers: Optional[Sequence[AissTier]] = None):
        """
        Initialize the lookup.

        Args:
            tiers: Custom tier table, ascending by limit. If None, uses
                   the standard table.

        Raises:
            ValueError: If the table is empty or not ascending
        """
        tiers = list(AISS_CONFIG_TABLE if tiers is None else tiers)

        if not tiers:
            raise ValueError("AISS tier table must contain at least one tier")

        limits = [t.limit for t in tiers]
        if limits != sorted(limits):
            raise ValueError(f"AISS tier limits must be ascending, got {limits}")

        self.tiers: List[AissTier] = tiers

    def find_tier(self, max_tr: float) -> AissTier:
        """Return the first tier with limit >= max_tr, else the last tier."""
        for tier in self.tiers:
            if tier.limit >= max_tr:
                return tier

        logger.debug(f"Max TR {max_tr} above every tier limit, using ceiling tier")
        return self.tiers[-1]

    def lookup(self, row: PowerRow) -> AissSetting:
        """Resolve the AISS setting for a CT table row."""
        tier = self.find_tier(row.max_tr)

        return AissSetting(
            ct=row.ct,
            max_tr=row.max_tr,
            phase_current=tier.phase_current,
            ground_current=tier.ground_current,
            time_delay=tier.time_delay,
        )


def lookup_aiss_setting(row: PowerRow) -> AissSetting:
    """Convenience function using the standard tier table."""
    return AissLookup().lookup(row)
