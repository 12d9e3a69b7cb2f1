"""
Wood horizontal fence calculator.

Boards run post to post in stacked rows; each section between posts gets a
full stack. Nailers back the board ends.
"""

import math

from ..config import settings
from .base import BaseFenceCalculator
from .labor_codes import WH_GATE, WH_NAIL_UP, WH_SET_POSTS
from .specs import WoodHorizontalStyle


class WoodHorizontalCalculator(BaseFenceCalculator):

    DEFAULT_BOARD_WIDTH_IN = settings.DEFAULT_BOARD_WIDTH_IN

    def component_lines(self, spec, run, posts, warnings):
        items = []
        sections = self.sections(spec, run)

        if spec.board is not None:
            rows = math.ceil((spec.height * 12) / self.board_width(spec))
            boards = rows * sections
            if spec.style == WoodHorizontalStyle.GOOD_NEIGHBOR:
                boards *= 2  # boards on both faces
            items.append(self.make_material_line(
                spec.board, boards, note="%d rows x %d sections" % (rows, sections)))

        if spec.nailer is not None:
            if spec.style == WoodHorizontalStyle.EXPOSED:
                nailers = posts * 2
            else:
                nailers = sections
            items.append(self.make_material_line(spec.nailer, nailers))

        if spec.cap is not None:
            items.append(self.make_material_line(spec.cap, self.run_per_length(run.net_length, spec.cap)))

        return items

    def board_width(self, spec) -> float:
        if spec.board_width:
            return spec.board_width
        return spec.board.actual_width or self.DEFAULT_BOARD_WIDTH_IN

    def labor_codes(self, spec, run):
        return self.footage_and_gate_codes(run, [WH_SET_POSTS, WH_NAIL_UP], WH_GATE)
