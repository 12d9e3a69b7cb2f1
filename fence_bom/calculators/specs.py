"""
FenceSpecification value objects.

One frozen dataclass per fence type. Each variant carries only the material
references it uses and declares which of them are required. A missing required
reference is not an error here; the calculator omits the affected lines and
reports the gap back to the operator.
"""

import enum
from dataclasses import dataclass
from typing import ClassVar, Optional, Tuple, Union


class FenceType(str, enum.Enum):
    WOOD_VERTICAL = "wood_vertical"
    WOOD_HORIZONTAL = "wood_horizontal"
    IRON = "iron"


class PostType(str, enum.Enum):
    WOOD = "WOOD"
    STEEL = "STEEL"


class WoodVerticalStyle(str, enum.Enum):
    STANDARD = "Standard"
    GOOD_NEIGHBOR = "Good Neighbor"
    BOARD_ON_BOARD = "Board-on-Board"


class WoodHorizontalStyle(str, enum.Enum):
    STANDARD = "Standard"
    GOOD_NEIGHBOR = "Good Neighbor"
    EXPOSED = "Exposed"


class IronStyle(str, enum.Enum):
    STANDARD_2_RAIL = "Standard 2 Rail"
    AMERISTAR = "Ameristar"
    IRON_RAIL = "Iron Rail"


# Max distance between posts (ft) when the SKU doesn't override it.
# Keyed per fence type: the wood styles share string values.
STYLE_POST_SPACING = {
    FenceType.WOOD_VERTICAL: {
        WoodVerticalStyle.STANDARD: 8.0,
        WoodVerticalStyle.GOOD_NEIGHBOR: 8.0,
        WoodVerticalStyle.BOARD_ON_BOARD: 8.0,
    },
    FenceType.WOOD_HORIZONTAL: {
        WoodHorizontalStyle.STANDARD: 6.0,
        WoodHorizontalStyle.GOOD_NEIGHBOR: 6.0,
        WoodHorizontalStyle.EXPOSED: 6.0,
    },
    FenceType.IRON: {
        IronStyle.STANDARD_2_RAIL: 8.0,
        IronStyle.AMERISTAR: 8.0,
        IronStyle.IRON_RAIL: 8.0,
    },
}


class InvalidCalculationInput(ValueError):
    """Run length, line count or gate count outside the allowed range."""


@dataclass(frozen=True)
class MaterialRef:
    """A catalog material as the calculator sees it."""

    sku: str
    name: str
    unit_cost: float
    category: str = ""
    unit_type: str = "ea"
    material_id: Optional[int] = None
    length_ft: Optional[float] = None
    actual_width: Optional[float] = None
    width_nominal: Optional[int] = None


@dataclass(frozen=True)
class CalculationInput:
    """The run being quoted: net length in feet, physical fence lines, gates."""

    net_length: float
    number_of_lines: int = 1
    number_of_gates: int = 0

    def __post_init__(self):
        if self.net_length is None or self.net_length <= 0:
            raise InvalidCalculationInput("net_length must be greater than 0 (got %r)" % self.net_length)
        if self.number_of_lines < 1:
            raise InvalidCalculationInput("number_of_lines must be at least 1 (got %r)" % self.number_of_lines)
        if self.number_of_gates < 0:
            raise InvalidCalculationInput("number_of_gates cannot be negative (got %r)" % self.number_of_gates)


@dataclass(frozen=True)
class ConcreteMaterials:
    """3-part concrete mix: sand & gravel, portland cement, QuickRock."""

    sand_gravel: Optional[MaterialRef] = None
    portland: Optional[MaterialRef] = None
    quickrock: Optional[MaterialRef] = None


class _SpecMixin:
    fence_type: ClassVar[FenceType]
    REQUIRED_MATERIALS: ClassVar[Tuple[str, ...]] = ()

    def missing_materials(self) -> Tuple[str, ...]:
        """Names of required material references that are not selected."""
        return tuple(name for name in self.REQUIRED_MATERIALS if getattr(self, name) is None)

    @property
    def is_tall(self) -> bool:
        return self.height > 6


@dataclass(frozen=True)
class WoodVerticalSpec(_SpecMixin):
    height: float
    style: WoodVerticalStyle
    post_type: PostType
    rail_count: int
    post: Optional[MaterialRef]
    picket: Optional[MaterialRef]
    rail: Optional[MaterialRef]
    cap: Optional[MaterialRef] = None
    trim: Optional[MaterialRef] = None
    gate_post: Optional[MaterialRef] = None  # steel jamb posts, wood-post fences with gates
    post_spacing: Optional[float] = None
    sku_code: Optional[str] = None

    fence_type: ClassVar[FenceType] = FenceType.WOOD_VERTICAL
    REQUIRED_MATERIALS: ClassVar[Tuple[str, ...]] = ("post", "picket", "rail")

    @property
    def spacing_ft(self) -> float:
        return self.post_spacing or STYLE_POST_SPACING[self.fence_type][self.style]


@dataclass(frozen=True)
class WoodHorizontalSpec(_SpecMixin):
    height: float
    style: WoodHorizontalStyle
    post_type: PostType
    post: Optional[MaterialRef]
    board: Optional[MaterialRef]
    nailer: Optional[MaterialRef] = None
    cap: Optional[MaterialRef] = None
    gate_post: Optional[MaterialRef] = None
    board_width: Optional[float] = None  # actual width, inches
    post_spacing: Optional[float] = None
    sku_code: Optional[str] = None

    fence_type: ClassVar[FenceType] = FenceType.WOOD_HORIZONTAL
    REQUIRED_MATERIALS: ClassVar[Tuple[str, ...]] = ("post", "board")

    @property
    def spacing_ft(self) -> float:
        return self.post_spacing or STYLE_POST_SPACING[self.fence_type][self.style]


@dataclass(frozen=True)
class IronSpec(_SpecMixin):
    height: float
    style: IronStyle
    post: Optional[MaterialRef]
    panel: Optional[MaterialRef] = None
    bracket: Optional[MaterialRef] = None
    post_cap: Optional[MaterialRef] = None
    rails_per_panel: int = 2
    panel_width: float = 8.0
    post_type: PostType = PostType.STEEL
    sku_code: Optional[str] = None

    fence_type: ClassVar[FenceType] = FenceType.IRON
    REQUIRED_MATERIALS: ClassVar[Tuple[str, ...]] = ("post",)

    @property
    def spacing_ft(self) -> float:
        return self.panel_width or STYLE_POST_SPACING[self.fence_type][self.style]


FenceSpecification = Union[WoodVerticalSpec, WoodHorizontalSpec, IronSpec]
