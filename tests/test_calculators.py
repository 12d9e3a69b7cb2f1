"""
Quantity engine tests: pure calculators, no database.

Tests:
1-7.   Run input validation, post spacing, shared post/concrete formulas, gate jambs
8-15.  Wood vertical (pickets, rails, brackets, cap/trim, labor codes)
16-19. Wood horizontal
20-23. Iron
24-28. Missing materials, unpriced labor, determinism, registry
"""

import pytest

from fence_bom.calculators.base import CalculationResult
from fence_bom.calculators.labor_codes import LaborRate, LaborRateTable
from fence_bom.calculators.registry import CALCULATOR_REGISTRY, calculate, get_calculator
from fence_bom.calculators.specs import (
    STYLE_POST_SPACING, CalculationInput, ConcreteMaterials, FenceType, InvalidCalculationInput, IronSpec,
    IronStyle, MaterialRef, PostType, WoodHorizontalSpec, WoodHorizontalStyle,
    WoodVerticalSpec, WoodVerticalStyle,
)
from fence_bom.calculators.wood_vertical import WoodVerticalCalculator

POST = MaterialRef(sku="PS13", name="4x4x8 Wood Post", unit_cost=10.0, length_ft=8)
STEEL_POST = MaterialRef(sku="PS21", name="Steel Post 10'", unit_cost=25.0, length_ft=10)
GATE_POST = MaterialRef(sku="GP01", name="Steel Gate Post", unit_cost=28.0, length_ft=10)
PICKET = MaterialRef(sku="P601", name="1x6 Picket", unit_cost=2.5, actual_width=5.5)
NARROW_PICKET = MaterialRef(sku="P401", name="1x4 Picket", unit_cost=1.75, actual_width=3.5)
RAIL = MaterialRef(sku="RA01", name="2x4x8 Rail", unit_cost=5.0, length_ft=8)
CAP = MaterialRef(sku="CAP8", name="2x6x8 Cap", unit_cost=8.0, length_ft=8)
TRIM = MaterialRef(sku="TR8", name="1x4x8 Trim", unit_cost=3.0, length_ft=8)
BOARD = MaterialRef(sku="HB06", name="1x6 Board", unit_cost=6.0, actual_width=5.5)
NAILER = MaterialRef(sku="NL01", name="2x4 Nailer", unit_cost=4.0)
PANEL = MaterialRef(sku="IP01", name="8' Iron Panel", unit_cost=90.0)
BRACKET = MaterialRef(sku="IB01", name="Ameristar Bracket", unit_cost=1.5)
POST_CAP = MaterialRef(sku="IC01", name="Post Cap", unit_cost=3.0)
CONCRETE = ConcreteMaterials(
    sand_gravel=MaterialRef(sku="CTS", name="Sand & Gravel", unit_cost=5.0),
    portland=MaterialRef(sku="CTP", name="Portland", unit_cost=15.0),
    quickrock=MaterialRef(sku="CTQ", name="QuickRock", unit_cost=7.0),
)

RATES = LaborRateTable.from_rates([
    LaborRate(labor_sku="W02", rate=1.00, description="Set posts"),
    LaborRate(labor_sku="W03", rate=2.50, description="Nail up"),
    LaborRate(labor_sku="W10", rate=30.00, description="Gate", unit_type="EA"),
], business_unit_code="ATX-RES")


def wood_vertical(**overrides):
    fields = dict(height=6, style=WoodVerticalStyle.STANDARD, post_type=PostType.WOOD,
                  rail_count=2, post=POST, picket=PICKET, rail=RAIL)
    fields.update(overrides)
    return WoodVerticalSpec(**fields)


def qty(result: CalculationResult, sku: str) -> float:
    return result.material(sku).quantity


# ============================================================
# Run input + shared formulas
# ============================================================

@pytest.mark.parametrize("kwargs", [
    dict(net_length=0),
    dict(net_length=-10),
    dict(net_length=100, number_of_lines=0),
    dict(net_length=100, number_of_gates=-1),
])
def test_invalid_run_rejected(kwargs):
    with pytest.raises(InvalidCalculationInput):
        CalculationInput(**kwargs)


def test_default_post_spacing_per_fence_type():
    """Wood styles share names across variants; each keeps its own spacing."""
    assert {ft: len(styles) for ft, styles in STYLE_POST_SPACING.items()} == {
        FenceType.WOOD_VERTICAL: 3, FenceType.WOOD_HORIZONTAL: 3, FenceType.IRON: 3}
    for style in WoodVerticalStyle:
        assert wood_vertical(style=style).spacing_ft == 8.0
    for style in WoodHorizontalStyle:
        assert wood_horizontal(style=style).spacing_ft == 6.0
    assert wood_vertical(post_spacing=7.5).spacing_ft == 7.5


def test_post_count_with_extra_lines():
    """100 ft at 8 ft spacing, 4 lines: ceil(12.5)+1 = 14, +ceil((4-2)/2) = 15."""
    calc = WoodVerticalCalculator()
    assert calc.post_count(wood_vertical(), CalculationInput(100, 4, 0)) == 15
    assert calc.post_count(wood_vertical(), CalculationInput(100, 1, 0)) == 14
    assert calc.post_count(wood_vertical(), CalculationInput(100, 5, 0)) == 16  # ceil(3/2) = 2


def test_gate_posts_depend_on_post_type():
    """Wood fences get two jamb posts per gate, steel fences one."""
    calc = WoodVerticalCalculator()
    run = CalculationInput(100, 1, 2)
    assert calc.post_count(wood_vertical(), run) == 14 + 4
    assert calc.post_count(wood_vertical(post_type=PostType.STEEL, post=STEEL_POST), run) == 14 + 2


def test_jamb_posts_billed_as_gate_post():
    """Board-on-Board, 100 ft, 1 gate: 14 wood posts + 2 steel jambs, concrete for all 16."""
    spec = wood_vertical(style=WoodVerticalStyle.BOARD_ON_BOARD, gate_post=GATE_POST)
    result = calculate(spec, CalculationInput(100, 1, 1), RATES, CONCRETE)
    assert result.posts == 16
    assert qty(result, "PS13") == 14
    assert qty(result, "GP01") == 2
    assert result.material("GP01").total == pytest.approx(56.0)
    assert qty(result, "CTQ") == 8  # ceil(16 * 0.5)
    assert result.is_complete


def test_jamb_posts_without_gate_post_reported_missing():
    result = calculate(wood_vertical(), CalculationInput(100, 1, 1), RATES, CONCRETE)
    assert result.missing == ("gate_post",)
    assert qty(result, "PS13") == 14  # jambs never billed at the wood post price
    assert result.material("GP01") is None

    no_gates = calculate(wood_vertical(), CalculationInput(100), RATES, CONCRETE)
    assert no_gates.is_complete
    steel = calculate(wood_vertical(post_type=PostType.STEEL, post=STEEL_POST),
                      CalculationInput(100, 1, 1), RATES, CONCRETE)
    assert qty(steel, "PS21") == 15
    assert steel.is_complete


def test_concrete_for_15_posts():
    """sand/gravel ceil(15/10)=2, portland ceil(15/20)=1, quickrock ceil(7.5)=8."""
    result = calculate(wood_vertical(), CalculationInput(100, 4, 0), RATES, CONCRETE)
    assert result.posts == 15
    assert qty(result, "CTS") == 2
    assert qty(result, "CTP") == 1
    assert qty(result, "CTQ") == 8


# ============================================================
# Wood vertical
# ============================================================

def test_wood_vertical_standard_quantities():
    result = calculate(wood_vertical(), CalculationInput(100, 4, 0), RATES, CONCRETE)
    assert qty(result, "PS13") == 15
    assert qty(result, "P601") == 224  # ceil(1200/5.5 * 1.025) = ceil(223.6)
    assert qty(result, "RA01") == 28   # (15-1) * 2
    assert result.material("RAIL-BRACKET") is None
    # 150 + 560 + 140 + 10 + 15 + 56
    assert result.total_material_cost == pytest.approx(931.0)


@pytest.mark.parametrize("style,expected", [
    (WoodVerticalStyle.STANDARD, 352),        # 1200/3.5 * 1.025 = 351.4
    (WoodVerticalStyle.GOOD_NEIGHBOR, 387),   # * 1.1 = 386.6
    (WoodVerticalStyle.BOARD_ON_BOARD, 401),  # * 1.14 = 400.6
])
def test_picket_style_multipliers(style, expected):
    spec = wood_vertical(style=style, picket=NARROW_PICKET)
    result = calculate(spec, CalculationInput(100), RATES, CONCRETE)
    assert qty(result, "P401") == expected


def test_steel_posts_add_rail_brackets():
    """50 ft, 2 gates, 3 rails: posts = 7+1+2 = 10, brackets = 10*3, rails = 9*3."""
    spec = wood_vertical(post_type=PostType.STEEL, post=STEEL_POST, rail_count=3)
    result = calculate(spec, CalculationInput(50, 1, 2), RATES, CONCRETE)
    assert result.posts == 10
    assert qty(result, "RAIL-BRACKET") == 30
    assert qty(result, "RA01") == 27
    assert result.material("RAIL-BRACKET").unit_cost > 0


def test_cap_and_trim_are_unrounded():
    spec = wood_vertical(cap=CAP, trim=TRIM)
    result = calculate(spec, CalculationInput(100), RATES, CONCRETE)
    assert qty(result, "CAP8") == pytest.approx(12.5)  # 100 / 8
    assert qty(result, "TR8") == pytest.approx(12.5)


def test_wood_vertical_labor_codes():
    """6 ft wood post standard: set posts W02 + nail up W03, both per net foot; gates W10."""
    result = calculate(wood_vertical(), CalculationInput(100, 1, 1), RATES, CONCRETE)
    assert [l.labor_sku for l in result.labor] == ["W02", "W03", "W10"]
    assert result.labor_line("W02").total == pytest.approx(100.0)
    assert result.labor_line("W03").total == pytest.approx(250.0)
    assert result.labor_line("W10").quantity == 1
    assert result.labor_line("W10").total == pytest.approx(30.0)
    assert result.total_labor_cost == pytest.approx(380.0)


def test_tall_steel_good_neighbor_labor_codes():
    spec = wood_vertical(height=8, post_type=PostType.STEEL, post=STEEL_POST,
                         style=WoodVerticalStyle.GOOD_NEIGHBOR, cap=CAP, trim=TRIM)
    result = calculate(spec, CalculationInput(100, 1, 1), RATES, CONCRETE)
    codes = [l.labor_sku for l in result.labor]
    assert codes == ["W02", "M04", "M06", "M07", "W11"]


@pytest.mark.parametrize("cap,trim,code", [
    (CAP, None, "W09"),
    (None, TRIM, "W08"),
    (CAP, TRIM, "W07"),
])
def test_cap_trim_labor_code(cap, trim, code):
    result = calculate(wood_vertical(cap=cap, trim=trim), CalculationInput(100), RATES, CONCRETE)
    assert result.labor_line(code) is not None


def test_short_post_on_tall_fence_warns():
    result = calculate(wood_vertical(height=8), CalculationInput(100), RATES, CONCRETE)
    assert any("PS13" in w for w in result.warnings)
    ok = calculate(wood_vertical(height=8, post=STEEL_POST), CalculationInput(100), RATES, CONCRETE)
    assert ok.warnings == ()


# ============================================================
# Wood horizontal
# ============================================================

def wood_horizontal(**overrides):
    fields = dict(height=6, style=WoodHorizontalStyle.STANDARD, post_type=PostType.WOOD,
                  post=POST, board=BOARD, nailer=NAILER)
    fields.update(overrides)
    return WoodHorizontalSpec(**fields)


def test_wood_horizontal_quantities():
    """60 ft at 6 ft spacing: 10 sections, 11 posts; rows = ceil(72/5.5) = 14."""
    result = calculate(wood_horizontal(), CalculationInput(60), RATES, CONCRETE)
    assert qty(result, "PS13") == 11
    assert qty(result, "HB06") == 140
    assert qty(result, "NL01") == 10


def test_wood_horizontal_good_neighbor_doubles_boards():
    result = calculate(wood_horizontal(style=WoodHorizontalStyle.GOOD_NEIGHBOR),
                       CalculationInput(60), RATES, CONCRETE)
    assert qty(result, "HB06") == 280


def test_wood_horizontal_exposed_nailers():
    result = calculate(wood_horizontal(style=WoodHorizontalStyle.EXPOSED),
                       CalculationInput(60), RATES, CONCRETE)
    assert qty(result, "NL01") == 22  # posts * 2


def test_wood_horizontal_labor_codes():
    result = calculate(wood_horizontal(), CalculationInput(60, 1, 1), RATES, CONCRETE)
    assert [l.labor_sku for l in result.labor] == ["W12", "W13", "W15"]


# ============================================================
# Iron
# ============================================================

def iron(**overrides):
    fields = dict(height=5, style=IronStyle.STANDARD_2_RAIL, post=STEEL_POST,
                  panel=PANEL, post_cap=POST_CAP)
    fields.update(overrides)
    return IronSpec(**fields)


def test_iron_quantities():
    """100 ft, 1 gate: 13 panels, 13+1+1 posts, one cap per post."""
    result = calculate(iron(), CalculationInput(100, 1, 1), RATES, CONCRETE)
    assert qty(result, "IP01") == 13
    assert result.posts == 15
    assert qty(result, "IC01") == 15
    assert result.material("IB01") is None


def test_ameristar_brackets():
    spec = iron(style=IronStyle.AMERISTAR, bracket=BRACKET, rails_per_panel=3)
    result = calculate(spec, CalculationInput(100), RATES, CONCRETE)
    assert qty(result, "IB01") == 78  # 13 panels * 3 rails * 2


def test_iron_labor_codes():
    result = calculate(iron(style=IronStyle.AMERISTAR, bracket=BRACKET), CalculationInput(100, 1, 2),
                       RATES, CONCRETE)
    assert [l.labor_sku for l in result.labor] == ["IR01", "IR06", "IR07"]
    assert result.labor_line("IR07").quantity == 2


def test_iron_without_post_cap_warns():
    result = calculate(iron(post_cap=None), CalculationInput(100), RATES, CONCRETE)
    assert result.material("IC01") is None
    assert result.warnings
    assert result.is_complete  # post caps are optional


# ============================================================
# Missing data, determinism, registry
# ============================================================

def test_missing_required_material_omits_line():
    result = calculate(wood_vertical(picket=None), CalculationInput(100), RATES, CONCRETE)
    assert result.missing == ("picket",)
    assert not result.is_complete
    assert result.material("P601") is None
    assert qty(result, "PS13") == 14  # everything else still calculated
    assert qty(result, "RA01") == 26


def test_missing_concrete_reported():
    result = calculate(wood_vertical(), CalculationInput(100), RATES, ConcreteMaterials())
    assert set(result.missing) == {"concrete_sand_gravel", "concrete_portland", "concrete_quickrock"}
    assert result.material("CTS") is None


def test_unpriced_labor_code_costs_zero():
    result = calculate(wood_vertical(), CalculationInput(100), LaborRateTable(), CONCRETE)
    line = result.labor_line("W03")
    assert line.rate == 0.0
    assert line.total == 0.0
    assert not line.priced
    assert line.description  # default description still shown


def test_calculation_is_deterministic():
    spec = wood_vertical(cap=CAP)
    run = CalculationInput(137.5, 3, 1)
    assert calculate(spec, run, RATES, CONCRETE) == calculate(spec, run, RATES, CONCRETE)


def test_registry_covers_every_fence_type():
    assert set(CALCULATOR_REGISTRY) == set(FenceType)
    assert isinstance(get_calculator("wood_vertical"), WoodVerticalCalculator)
    with pytest.raises(ValueError):
        get_calculator("chain_link")
