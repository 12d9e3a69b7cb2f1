"""
Iron fence calculator.

Panel-based: run length / panel width = panel count, a steel post between
panels and a cap on every post. Ameristar panels hang on rail brackets.
"""

import math

from .base import BaseFenceCalculator
from .labor_codes import IR_GATE, IR_SET_POSTS, IR_STYLE_INSTALL
from .specs import IronStyle


class IronCalculator(BaseFenceCalculator):

    def component_lines(self, spec, run, posts, warnings):
        items = []
        panels = self.panel_count(spec, run)

        if spec.panel is not None:
            items.append(self.make_material_line(spec.panel, panels))

        if spec.style == IronStyle.AMERISTAR:
            if spec.bracket is not None:
                brackets = panels * spec.rails_per_panel * 2
                items.append(self.make_material_line(
                    spec.bracket, brackets,
                    note="%d panels x %d rails x 2" % (panels, spec.rails_per_panel)))
            else:
                warnings.append("Ameristar style without a bracket material; brackets not included.")

        if spec.post_cap is not None:
            items.append(self.make_material_line(spec.post_cap, posts))
        else:
            warnings.append("No post cap material selected; %d post caps not included." % posts)

        return items

    def panel_count(self, spec, run) -> int:
        return math.ceil(run.net_length / spec.panel_width)

    def labor_codes(self, spec, run):
        return self.footage_and_gate_codes(
            run, [IR_SET_POSTS, IR_STYLE_INSTALL[spec.style]], IR_GATE)
