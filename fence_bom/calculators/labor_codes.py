"""
Labor code selection tables.

Which labor codes apply to a fence is pure lookup: variant, style, height
threshold and post type pick a fixed set of codes. Rates come from the
business unit's rate table; a code with no rate prices at 0 ("not priced yet").
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from .specs import IronStyle, PostType

UNIT_LINEAR_FOOT = "LF"
UNIT_EACH = "EA"

# labor_sku -> (description, unit_type). Seeded into labor_codes on startup.
DEFAULT_LABOR_CODES = {
    "W02": ("Set posts", UNIT_LINEAR_FOOT),
    "W03": ("Nail up 6' and under (wood posts)", UNIT_LINEAR_FOOT),
    "W04": ("Nail up over 6' (wood posts)", UNIT_LINEAR_FOOT),
    "M03": ("Nail up 6' and under (steel posts)", UNIT_LINEAR_FOOT),
    "M04": ("Nail up over 6' (steel posts)", UNIT_LINEAR_FOOT),
    "W06": ("Good neighbor add-on (wood posts)", UNIT_LINEAR_FOOT),
    "M06": ("Good neighbor add-on (steel posts)", UNIT_LINEAR_FOOT),
    "W07": ("Cap and trim install (wood posts)", UNIT_LINEAR_FOOT),
    "M07": ("Cap and trim install (steel posts)", UNIT_LINEAR_FOOT),
    "W08": ("Trim install", UNIT_LINEAR_FOOT),
    "W09": ("Cap install", UNIT_LINEAR_FOOT),
    "W10": ("Gate install 6' and under", UNIT_EACH),
    "W11": ("Gate install over 6'", UNIT_EACH),
    "W12": ("Set posts (horizontal)", UNIT_LINEAR_FOOT),
    "W13": ("Nail up horizontal boards", UNIT_LINEAR_FOOT),
    "W15": ("Gate install (horizontal)", UNIT_EACH),
    "IR01": ("Set iron posts", UNIT_LINEAR_FOOT),
    "IR02": ("Install standard 2 rail panels", UNIT_LINEAR_FOOT),
    "IR04": ("Install iron rail panels", UNIT_LINEAR_FOOT),
    "IR06": ("Install Ameristar panels", UNIT_LINEAR_FOOT),
    "IR07": ("Iron gate install", UNIT_EACH),
}

# --- Wood vertical ---
WV_SET_POSTS = "W02"
# (post_type, over 6 ft) -> nail up code
WV_NAIL_UP = {
    (PostType.WOOD, False): "W03",
    (PostType.WOOD, True): "W04",
    (PostType.STEEL, False): "M03",
    (PostType.STEEL, True): "M04",
}
WV_GOOD_NEIGHBOR = {PostType.WOOD: "W06", PostType.STEEL: "M06"}
WV_CAP_AND_TRIM = {PostType.WOOD: "W07", PostType.STEEL: "M07"}
WV_CAP_ONLY = "W09"
WV_TRIM_ONLY = "W08"
# over 6 ft -> gate code
WV_GATE = {False: "W10", True: "W11"}

# --- Wood horizontal ---
WH_SET_POSTS = "W12"
WH_NAIL_UP = "W13"
WH_GATE = "W15"

# --- Iron ---
IR_SET_POSTS = "IR01"
IR_STYLE_INSTALL = {
    IronStyle.STANDARD_2_RAIL: "IR02",
    IronStyle.IRON_RAIL: "IR04",
    IronStyle.AMERISTAR: "IR06",
}
IR_GATE = "IR07"

@dataclass(frozen=True)
class LaborRate:
    labor_sku: str
    rate: float
    description: str = ""
    unit_type: str = UNIT_LINEAR_FOOT
    labor_code_id: Optional[int] = None

@dataclass(frozen=True)
class LaborRateTable:
    """Labor rates for one business unit, keyed by labor code."""

    business_unit_code: Optional[str] = None
    rates: Dict[str, LaborRate] = field(default_factory=dict)

    @classmethod
    def from_rates(cls, rates: Iterable[LaborRate], business_unit_code: str = None) -> "LaborRateTable":
        return cls(business_unit_code=business_unit_code, rates={r.labor_sku: r for r in rates})

    def rate_for(self, labor_sku: str) -> float:
        """Rate per unit; 0.0 when the code has no rate in this business unit."""
        entry = self.rates.get(labor_sku)
        return entry.rate if entry else 0.0

    def is_priced(self, labor_sku: str) -> bool:
        return labor_sku in self.rates

    def describe(self, labor_sku: str) -> LaborRate:
        """Rate record for a code, falling back to the default description at rate 0."""
        entry = self.rates.get(labor_sku)
        if entry:
            return entry
        description, unit_type = DEFAULT_LABOR_CODES.get(labor_sku, (labor_sku, UNIT_LINEAR_FOOT))
        return LaborRate(labor_sku=labor_sku, rate=0.0, description=description, unit_type=unit_type)
