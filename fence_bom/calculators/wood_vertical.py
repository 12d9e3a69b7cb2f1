"""
Wood vertical (picket) fence calculator.

Posts every `post_spacing` ft, rails between posts, pickets side by side along
the run. Steel-post fences hang rails on brackets.
"""

import math

from ..config import settings
from .base import BaseFenceCalculator
from .labor_codes import (
    WV_CAP_AND_TRIM, WV_CAP_ONLY, WV_GATE, WV_GOOD_NEIGHBOR, WV_NAIL_UP,
    WV_SET_POSTS, WV_TRIM_ONLY,
)
from .specs import MaterialRef, PostType, WoodVerticalStyle

# Picket count multipliers; double-sided styles overlap pickets
STYLE_PICKET_MULTIPLIER = {
    WoodVerticalStyle.STANDARD: 1.0,
    WoodVerticalStyle.GOOD_NEIGHBOR: 1.1,
    WoodVerticalStyle.BOARD_ON_BOARD: 1.14,
}

RAIL_BRACKET = MaterialRef(
    sku="RAIL-BRACKET",
    name="Steel post rail bracket",
    unit_cost=settings.RAIL_BRACKET_UNIT_COST,
    category="08-Hardware",
)


class WoodVerticalCalculator(BaseFenceCalculator):

    DEFAULT_PICKET_WIDTH_IN = settings.DEFAULT_PICKET_WIDTH_IN

    def component_lines(self, spec, run, posts, warnings):
        items = []

        if spec.picket is not None:
            items.append(self.make_material_line(spec.picket, self.picket_count(spec, run)))

        if spec.rail is not None:
            rails = (posts - 1) * spec.rail_count
            items.append(self.make_material_line(spec.rail, rails))

        if spec.post_type == PostType.STEEL:
            brackets = posts * spec.rail_count
            items.append(self.make_material_line(
                RAIL_BRACKET, brackets, note="%d rails x %d steel posts" % (spec.rail_count, posts)))

        if spec.cap is not None:
            items.append(self.make_material_line(spec.cap, self.run_per_length(run.net_length, spec.cap)))
        if spec.trim is not None:
            items.append(self.make_material_line(spec.trim, self.run_per_length(run.net_length, spec.trim)))

        return items

    def picket_count(self, spec, run) -> int:
        width_in = spec.picket.actual_width or self.DEFAULT_PICKET_WIDTH_IN
        run_in = run.net_length * 12
        multiplier = STYLE_PICKET_MULTIPLIER[spec.style]
        return math.ceil((run_in / width_in) * (1 + self.PICKET_WASTE) * multiplier)

    def labor_codes(self, spec, run):
        footage = [WV_SET_POSTS, WV_NAIL_UP[(spec.post_type, spec.is_tall)]]

        if spec.style == WoodVerticalStyle.GOOD_NEIGHBOR:
            footage.append(WV_GOOD_NEIGHBOR[spec.post_type])

        has_cap = spec.cap is not None
        has_trim = spec.trim is not None
        if has_cap and has_trim:
            footage.append(WV_CAP_AND_TRIM[spec.post_type])
        elif has_cap:
            footage.append(WV_CAP_ONLY)
        elif has_trim:
            footage.append(WV_TRIM_ONLY)

        return self.footage_and_gate_codes(run, footage, WV_GATE[spec.is_tall])
