from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime, date
from .calculators.specs import FenceType
from .models import ProjectStatus


# --- Calculator ---

class CalculateRequest(BaseModel):
    """Live preview. Either a saved SKU (product_id) or an ad-hoc spec with material ids by role."""
    fence_type: FenceType
    product_id: Optional[int] = None
    height: Optional[float] = None
    style: Optional[str] = None
    post_type: Optional[str] = None
    rail_count: Optional[int] = None
    post_spacing: Optional[float] = None
    board_width: Optional[float] = None
    rails_per_panel: Optional[int] = None
    panel_width: Optional[float] = None
    materials: Dict[str, int] = {}  # role -> material id, e.g. {"post": 3, "picket": 7}
    net_length: float
    number_of_lines: int = 1
    number_of_gates: int = 0
    business_unit_id: Optional[int] = None


class MaterialLineOut(BaseModel):
    sku: str
    name: str
    quantity: float
    unit_cost: float
    total: float
    category: str = ""
    material_id: Optional[int] = None
    note: str = ""


class LaborLineOut(BaseModel):
    labor_sku: str
    description: str
    quantity: float
    rate: float
    total: float
    unit_type: str
    priced: bool


class CalculationResponse(BaseModel):
    posts: int
    materials: List[MaterialLineOut]
    labor: List[LaborLineOut]
    missing: List[str] = []
    warnings: List[str] = []
    total_material_cost: float
    total_labor_cost: float
    total_cost: float
    is_complete: bool


# --- Recalculation ---

class RecalculationErrorOut(BaseModel):
    sku_code: str
    fence_type: str
    message: str
    business_unit: Optional[str] = None


class RecalculationResponse(BaseModel):
    updated_materials: int
    updated_labor_rows: int
    errors: List[RecalculationErrorOut] = []
    interrupted: bool = False
    last_completed: Optional[str] = None


# --- Projects ---

class QuoteLineIn(BaseModel):
    fence_type: FenceType
    product_id: int
    total_footage: float = Field(gt=0)
    buffer: float = Field(default=5.0, ge=0)
    number_of_lines: int = Field(default=1, ge=1)
    number_of_gates: int = Field(default=0, ge=0)


class ProjectCreate(BaseModel):
    project_name: str
    customer_name: Optional[str] = None
    business_unit_id: Optional[int] = None
    yard_id: Optional[int] = None
    expected_pickup_date: Optional[date] = None
    notes: Optional[str] = None
    lines: List[QuoteLineIn] = Field(min_length=1)


class ProjectLineItem(BaseModel):
    id: int
    fence_type: str
    product_id: int
    product_sku_code: str
    total_footage: float
    buffer: float
    net_length: float
    number_of_lines: int
    number_of_gates: int
    class Config:
        from_attributes = True


class ProjectMaterial(BaseModel):
    id: int
    material_id: Optional[int] = None
    material_sku: str
    material_name: Optional[str] = None
    calculated_quantity: float
    rounded_quantity: Optional[int] = None
    manual_quantity: Optional[float] = None
    final_quantity: Optional[float] = None
    unit_cost: float
    extended_cost: Optional[float] = None
    calculation_note: Optional[str] = None
    class Config:
        from_attributes = True


class ProjectLabor(BaseModel):
    id: int
    labor_sku: str
    description: Optional[str] = None
    calculated_quantity: float
    manual_quantity: Optional[float] = None
    final_quantity: Optional[float] = None
    labor_rate: float
    extended_cost: Optional[float] = None
    class Config:
        from_attributes = True


class Project(BaseModel):
    id: int
    project_code: Optional[str] = None
    project_name: str
    customer_name: Optional[str] = None
    business_unit_id: Optional[int] = None
    status: ProjectStatus
    yard_id: Optional[int] = None
    yard_spot_id: Optional[int] = None
    expected_pickup_date: Optional[date] = None
    crew_name: Optional[str] = None
    partial_pickup: bool = False
    partial_pickup_notes: Optional[str] = None
    is_archived: bool = False
    is_bundle: bool = False
    bundle_id: Optional[int] = None
    total_linear_feet: Optional[float] = None
    total_material_cost: Optional[float] = None
    total_labor_cost: Optional[float] = None
    manual_adjustments: Optional[float] = None
    total_project_cost: Optional[float] = None
    cost_per_foot: Optional[float] = None
    line_items: List[ProjectLineItem] = []
    materials: List[ProjectMaterial] = []
    labor: List[ProjectLabor] = []
    created_at: datetime
    class Config:
        from_attributes = True


class ManualQuantityUpdate(BaseModel):
    manual_quantity: Optional[float] = Field(default=None, ge=0)  # null clears the override


class ManualAdjustmentUpdate(BaseModel):
    manual_adjustments: float = Field(ge=0)


# --- Fulfillment ---

class AdvanceRequest(BaseModel):
    yard_spot_id: Optional[int] = None
    notes: Optional[str] = None
    crew_name: Optional[str] = None


class StatusUpdate(BaseModel):
    status: ProjectStatus
    notes: Optional[str] = None
    yard_spot_id: Optional[int] = None


class StageRequest(BaseModel):
    yard_spot_id: int
    notes: Optional[str] = None


class CompleteRequest(BaseModel):
    partial: bool = False
    notes: Optional[str] = None
    crew_name: Optional[str] = None


class RevertRequest(BaseModel):
    notes: Optional[str] = None


class StatusHistoryEntry(BaseModel):
    id: int
    old_status: Optional[str] = None
    new_status: str
    changed_at: datetime
    notes: Optional[str] = None
    yard_spot_id: Optional[int] = None
    class Config:
        from_attributes = True


# --- Bundles ---

class BundleCreate(BaseModel):
    project_ids: List[int]
    bundle_name: Optional[str] = None
    crew_name: Optional[str] = None


class Bundle(BaseModel):
    id: int
    project_code: Optional[str] = None
    project_name: str
    status: ProjectStatus
    yard_id: Optional[int] = None
    expected_pickup_date: Optional[date] = None
    crew_name: Optional[str] = None
    child_ids: List[int] = []


class PickListEntry(BaseModel):
    material_sku: str
    material_name: Optional[str] = None
    quantity: float
    project_codes: List[Optional[str]] = []
