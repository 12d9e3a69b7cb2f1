from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./fence_bom.db"
    COMPANY_NAME: str = "Fence BOM Hub"

    # SKU standard cost assumptions: every catalog SKU is costed against the same run
    SKU_STANDARD_NET_LENGTH: float = 100.0
    SKU_STANDARD_LINES: int = 4
    SKU_STANDARD_GATES: int = 0

    # Calculator defaults
    PICKET_WASTE_FACTOR: float = 0.025
    RAIL_BRACKET_UNIT_COST: float = 1.85
    DEFAULT_PICKET_WIDTH_IN: float = 5.5
    DEFAULT_BOARD_WIDTH_IN: float = 5.5
    DEFAULT_CAP_LENGTH_FT: float = 8.0
    TALL_FENCE_MIN_POST_LENGTH_FT: float = 10.0

    # Project line items: footage buffer subtracted to get net length
    DEFAULT_BUFFER_FT: float = 5.0

    # Steel post billed for gate jambs on wood-post fences
    GATE_POST_SKU: str = "GP01"

    # Labor cost for this business unit is mirrored onto the SKU row
    PRIMARY_BUSINESS_UNIT_CODE: Optional[str] = None

    class Config:
        env_file = ".env"


settings = Settings()
