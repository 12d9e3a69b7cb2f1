from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Date, Text, ForeignKey, Boolean,
    UniqueConstraint, event,
)
from sqlalchemy.orm import relationship, backref
from datetime import datetime
from .database import Base
import enum
import math


class ProjectStatus(str, enum.Enum):
    DRAFT = "draft"
    READY = "ready"
    SENT_TO_YARD = "sent_to_yard"
    STAGED = "staged"
    LOADED = "loaded"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Forward path used by "advance". Cancelled is a side state reached only by direct assignment.
STATUS_SEQUENCE = [
    ProjectStatus.DRAFT,
    ProjectStatus.READY,
    ProjectStatus.SENT_TO_YARD,
    ProjectStatus.STAGED,
    ProjectStatus.LOADED,
    ProjectStatus.COMPLETED,
]


# --- Reference data ---

class BusinessUnit(Base):
    """Location + client type. Labor rates are scoped per business unit."""
    __tablename__ = "business_units"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False)  # 'ATX-RES', 'SA-HB'
    name = Column(String, nullable=False)
    location = Column(String, nullable=True)
    business_type = Column(String, nullable=True)  # 'Residential' | 'Home Builders'
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    labor_rates = relationship("LaborRate", back_populates="business_unit", cascade="all, delete-orphan")


class Material(Base):
    """Posts, pickets, rails, hardware, concrete. Dimensions feed the calculators."""
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True, index=True)
    material_sku = Column(String, unique=True, nullable=False)
    material_name = Column(String, nullable=False)
    category = Column(String, nullable=False)  # '01-Post', '02-Pickets', '06-Concrete'
    sub_category = Column(String, nullable=True)
    unit_type = Column(String, default="Each")
    unit_cost = Column(Float, nullable=False, default=0.0)

    # Physical dimensions
    length_ft = Column(Float, nullable=True)
    width_nominal = Column(Integer, nullable=True)
    actual_width = Column(Float, nullable=True)  # inches
    thickness = Column(String, nullable=True)

    status = Column(String, default="Active")
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class LaborCode(Base):
    """Labor activity definition, independent of rate."""
    __tablename__ = "labor_codes"

    id = Column(Integer, primary_key=True, index=True)
    labor_sku = Column(String, unique=True, nullable=False)  # 'W03', 'M03', 'IR01'
    description = Column(String, nullable=False)
    unit_type = Column(String, default="LF")  # 'LF' | 'EA'
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class LaborRate(Base):
    __tablename__ = "labor_rates"
    __table_args__ = (UniqueConstraint("labor_code_id", "business_unit_id"),)

    id = Column(Integer, primary_key=True, index=True)
    labor_code_id = Column(Integer, ForeignKey("labor_codes.id"), nullable=False)
    business_unit_id = Column(Integer, ForeignKey("business_units.id"), nullable=False)
    rate = Column(Float, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    labor_code = relationship("LaborCode")
    business_unit = relationship("BusinessUnit", back_populates="labor_rates")


# --- SKU tables (one per fence type) ---

class StandardCostColumns:
    """Cached catalog pricing, written by the recalculation service."""

    standard_material_cost = Column(Float, nullable=True)
    standard_labor_cost = Column(Float, nullable=True)
    standard_cost_per_foot = Column(Float, nullable=True)
    standard_cost_calculated_at = Column(DateTime, nullable=True)


class WoodVerticalProduct(StandardCostColumns, Base):
    __tablename__ = "wood_vertical_products"

    id = Column(Integer, primary_key=True, index=True)
    sku_code = Column(String, unique=True, nullable=False)  # 'A01', 'B04'
    sku_name = Column(String, nullable=False)
    height = Column(Float, nullable=False)  # ft
    rail_count = Column(Integer, nullable=False, default=2)
    post_type = Column(String, nullable=False, default="WOOD")
    style = Column(String, nullable=False, default="Standard")
    post_spacing = Column(Float, nullable=True)

    post_material_id = Column(Integer, ForeignKey("materials.id"), nullable=True)
    picket_material_id = Column(Integer, ForeignKey("materials.id"), nullable=True)
    rail_material_id = Column(Integer, ForeignKey("materials.id"), nullable=True)
    cap_material_id = Column(Integer, ForeignKey("materials.id"), nullable=True)
    trim_material_id = Column(Integer, ForeignKey("materials.id"), nullable=True)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    post_material = relationship("Material", foreign_keys=[post_material_id])
    picket_material = relationship("Material", foreign_keys=[picket_material_id])
    rail_material = relationship("Material", foreign_keys=[rail_material_id])
    cap_material = relationship("Material", foreign_keys=[cap_material_id])
    trim_material = relationship("Material", foreign_keys=[trim_material_id])


class WoodHorizontalProduct(StandardCostColumns, Base):
    __tablename__ = "wood_horizontal_products"

    id = Column(Integer, primary_key=True, index=True)
    sku_code = Column(String, unique=True, nullable=False)
    sku_name = Column(String, nullable=False)
    height = Column(Float, nullable=False)
    post_type = Column(String, nullable=False, default="WOOD")
    style = Column(String, nullable=False, default="Standard")
    post_spacing = Column(Float, nullable=True)
    board_width_actual = Column(Float, nullable=True)  # inches

    post_material_id = Column(Integer, ForeignKey("materials.id"), nullable=True)
    board_material_id = Column(Integer, ForeignKey("materials.id"), nullable=True)
    nailer_material_id = Column(Integer, ForeignKey("materials.id"), nullable=True)
    cap_material_id = Column(Integer, ForeignKey("materials.id"), nullable=True)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    post_material = relationship("Material", foreign_keys=[post_material_id])
    board_material = relationship("Material", foreign_keys=[board_material_id])
    nailer_material = relationship("Material", foreign_keys=[nailer_material_id])
    cap_material = relationship("Material", foreign_keys=[cap_material_id])


class IronProduct(StandardCostColumns, Base):
    __tablename__ = "iron_products"

    id = Column(Integer, primary_key=True, index=True)
    sku_code = Column(String, unique=True, nullable=False)
    sku_name = Column(String, nullable=False)
    height = Column(Float, nullable=False)
    style = Column(String, nullable=False, default="Standard 2 Rail")
    panel_width = Column(Float, default=8.0)
    rails_per_panel = Column(Integer, default=2)

    post_material_id = Column(Integer, ForeignKey("materials.id"), nullable=True)
    panel_material_id = Column(Integer, ForeignKey("materials.id"), nullable=True)
    bracket_material_id = Column(Integer, ForeignKey("materials.id"), nullable=True)
    post_cap_material_id = Column(Integer, ForeignKey("materials.id"), nullable=True)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    post_material = relationship("Material", foreign_keys=[post_material_id])
    panel_material = relationship("Material", foreign_keys=[panel_material_id])
    bracket_material = relationship("Material", foreign_keys=[bracket_material_id])
    post_cap_material = relationship("Material", foreign_keys=[post_cap_material_id])


class SkuLaborCost(Base):
    """Labor cost of one SKU in one business unit. One row per (product, unit)."""
    __tablename__ = "sku_labor_costs"
    __table_args__ = (UniqueConstraint("product_type", "product_id", "business_unit_id"),)

    id = Column(Integer, primary_key=True, index=True)
    product_type = Column(String, nullable=False)  # FenceType value
    product_id = Column(Integer, nullable=False)
    business_unit_id = Column(Integer, ForeignKey("business_units.id"), nullable=False)
    labor_cost = Column(Float, default=0.0)
    labor_cost_per_foot = Column(Float, default=0.0)
    calculated_at = Column(DateTime, default=datetime.utcnow)

    business_unit = relationship("BusinessUnit")


# --- Yard ---

class Yard(Base):
    __tablename__ = "yards"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    is_active = Column(Boolean, default=True)

    spots = relationship("YardSpot", back_populates="yard", cascade="all, delete-orphan")


class YardSpot(Base):
    """Physical staging spot. Holds at most one project."""
    __tablename__ = "yard_spots"
    __table_args__ = (UniqueConstraint("yard_id", "spot_code"),)

    id = Column(Integer, primary_key=True, index=True)
    yard_id = Column(Integer, ForeignKey("yards.id"), nullable=False)
    spot_code = Column(String, nullable=False)
    spot_name = Column(String, nullable=True)
    is_occupied = Column(Boolean, default=False)
    # No FK, bom_projects already references yard_spots
    occupied_by_project_id = Column(Integer, nullable=True)
    occupied_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True)

    yard = relationship("Yard", back_populates="spots")


# --- Projects ---

class BOMProject(Base):
    __tablename__ = "bom_projects"

    id = Column(Integer, primary_key=True, index=True)
    project_code = Column(String, unique=True, nullable=True)  # 'AAA-001'
    project_name = Column(String, nullable=False)
    customer_name = Column(String, nullable=True)
    business_unit_id = Column(Integer, ForeignKey("business_units.id"), nullable=True)
    concrete_type = Column(String, default="3-part")

    # Totals
    total_linear_feet = Column(Float, default=0.0)
    total_material_cost = Column(Float, default=0.0)
    total_labor_cost = Column(Float, default=0.0)
    manual_adjustments = Column(Float, default=0.0)
    total_project_cost = Column(Float, default=0.0)
    cost_per_foot = Column(Float, default=0.0)

    # Fulfillment
    status = Column(String, default=ProjectStatus.DRAFT.value, nullable=False)
    yard_id = Column(Integer, ForeignKey("yards.id"), nullable=True)
    yard_spot_id = Column(Integer, ForeignKey("yard_spots.id"), nullable=True)
    expected_pickup_date = Column(Date, nullable=True)
    crew_name = Column(String, nullable=True)
    staged_at = Column(DateTime, nullable=True)
    loaded_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    partial_pickup = Column(Boolean, default=False, nullable=False)
    partial_pickup_notes = Column(Text, nullable=True)
    is_archived = Column(Boolean, default=False, nullable=False)
    archived_at = Column(DateTime, nullable=True)

    # Bundling: a parent has is_bundle=True and never a bundle_id
    is_bundle = Column(Boolean, default=False, nullable=False)
    bundle_id = Column(Integer, ForeignKey("bom_projects.id"), nullable=True)
    bundle_name = Column(String, nullable=True)

    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    business_unit = relationship("BusinessUnit")
    yard = relationship("Yard")
    yard_spot = relationship("YardSpot")
    line_items = relationship("ProjectLineItem", back_populates="project", cascade="all, delete-orphan",
                              order_by="ProjectLineItem.sort_order")
    materials = relationship("ProjectMaterial", back_populates="project", cascade="all, delete-orphan")
    labor = relationship("ProjectLabor", back_populates="project", cascade="all, delete-orphan")
    status_history = relationship("ProjectStatusHistory", back_populates="project",
                                  cascade="all, delete-orphan", order_by="ProjectStatusHistory.id")
    signoffs = relationship("ProjectSignoff", back_populates="project", cascade="all, delete-orphan")
    children = relationship("BOMProject", backref=backref("bundle", remote_side=[id]))


class ProjectLineItem(Base):
    """One SKU run inside a project."""
    __tablename__ = "project_line_items"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("bom_projects.id"), nullable=False)
    fence_type = Column(String, nullable=False)
    product_id = Column(Integer, nullable=False)
    product_sku_code = Column(String, nullable=False)
    product_name = Column(String, nullable=True)
    total_footage = Column(Float, nullable=False)
    buffer = Column(Float, default=5.0)
    net_length = Column(Float, nullable=False)  # max(0, total_footage - buffer)
    number_of_lines = Column(Integer, default=1)
    number_of_gates = Column(Integer, default=0)
    sort_order = Column(Integer, default=0)
    notes = Column(Text)

    project = relationship("BOMProject", back_populates="line_items")


class ProjectMaterial(Base):
    """Aggregated material row. final/extended are derived, never written directly."""
    __tablename__ = "project_materials"
    __table_args__ = (UniqueConstraint("project_id", "material_sku"),)

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("bom_projects.id"), nullable=False)
    material_id = Column(Integer, ForeignKey("materials.id"), nullable=True)
    material_sku = Column(String, nullable=False)
    material_name = Column(String, nullable=True)
    calculated_quantity = Column(Float, nullable=False, default=0.0)
    rounded_quantity = Column(Integer, nullable=True)
    manual_quantity = Column(Float, nullable=True)
    final_quantity = Column(Float, nullable=True)
    unit_cost = Column(Float, nullable=False, default=0.0)
    extended_cost = Column(Float, nullable=True)
    calculation_note = Column(Text, nullable=True)

    project = relationship("BOMProject", back_populates="materials")
    material = relationship("Material")

    def recompute(self):
        # round() first so float noise like 15.000000001 does not ceil to 16
        self.rounded_quantity = math.ceil(round(self.calculated_quantity or 0.0, 6))
        if self.manual_quantity is not None:
            self.final_quantity = self.manual_quantity
        else:
            self.final_quantity = float(self.rounded_quantity)
        self.extended_cost = self.final_quantity * (self.unit_cost or 0.0)


class ProjectLabor(Base):
    """Aggregated labor row. Labor quantities are never ceiled, only rounded to cents."""
    __tablename__ = "project_labor"
    __table_args__ = (UniqueConstraint("project_id", "labor_sku"),)

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("bom_projects.id"), nullable=False)
    labor_code_id = Column(Integer, ForeignKey("labor_codes.id"), nullable=True)
    labor_sku = Column(String, nullable=False)
    description = Column(String, nullable=True)
    calculated_quantity = Column(Float, nullable=False, default=0.0)
    manual_quantity = Column(Float, nullable=True)
    final_quantity = Column(Float, nullable=True)
    labor_rate = Column(Float, nullable=False, default=0.0)
    extended_cost = Column(Float, nullable=True)

    project = relationship("BOMProject", back_populates="labor")

    def recompute(self):
        if self.manual_quantity is not None:
            self.final_quantity = self.manual_quantity
        else:
            self.final_quantity = round(self.calculated_quantity or 0.0, 2)
        self.extended_cost = self.final_quantity * (self.labor_rate or 0.0)


class ProjectStatusHistory(Base):
    __tablename__ = "project_status_history"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("bom_projects.id"), nullable=False)
    old_status = Column(String, nullable=True)
    new_status = Column(String, nullable=False)
    changed_at = Column(DateTime, default=datetime.utcnow)
    notes = Column(Text, nullable=True)
    yard_spot_id = Column(Integer, nullable=True)

    project = relationship("BOMProject", back_populates="status_history")


class ProjectSignoff(Base):
    """Crew sign-off recorded when a project is picked up."""
    __tablename__ = "project_signoffs"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("bom_projects.id"), nullable=False)
    crew_name = Column(String, nullable=True)
    is_partial_pickup = Column(Boolean, default=False)
    partial_pickup_notes = Column(Text, nullable=True)
    signed_at = Column(DateTime, default=datetime.utcnow)

    project = relationship("BOMProject", back_populates="signoffs")


# --- Derived column maintenance ---
# (Declared AFTER the classes they reference)

@event.listens_for(ProjectMaterial, "before_insert")
@event.listens_for(ProjectMaterial, "before_update")
def _project_material_derive(mapper, connection, target: ProjectMaterial):
    """rounded/final/extended always follow calculated, manual and unit cost."""
    target.recompute()


@event.listens_for(ProjectLabor, "before_insert")
@event.listens_for(ProjectLabor, "before_update")
def _project_labor_derive(mapper, connection, target: ProjectLabor):
    target.recompute()
