"""
Shared test fixtures: SQLite test database, test client and seeded catalog.
"""

import os
from datetime import date
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Point settings at the test database before importing app modules
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

from fence_bom import models
from fence_bom.catalog import seed_labor_codes
from fence_bom.database import Base, get_db
from fence_bom.main import app
from fence_bom.project_costing import generate_project_code


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PICKUP_DATE = date(2026, 11, 3)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def _material(db, sku, name, category, unit_cost, **dims):
    m = models.Material(material_sku=sku, material_name=name, category=category,
                        unit_cost=unit_cost, **dims)
    db.add(m)
    return m


@pytest.fixture
def seeded(db):
    """
    Small catalog:
    - posts (wood, steel, steel gate post), pickets, rails, cap, trim, boards, iron parts, concrete
    - two business units, ATX-RES fully priced for wood vertical 6ft, SA-HB partly
    - SKU A01: 6' wood vertical, standard, wood posts, 2 rails
    - two yards; Y1 has spots S1/S2, Y2 has T1
    """
    seed_labor_codes(db)

    post = _material(db, "PS13", "4x4x8 Wood Post", "01-Post", 10.00, length_ft=8)
    steel_post = _material(db, "PS21", "2-3/8 x 10' Steel Post", "01-Post", 25.00, length_ft=10)
    gate_post = _material(db, "GP01", "4 in x 10' Steel Gate Post", "01-Post", 28.00, length_ft=10)
    picket = _material(db, "P601", "1x6x6 Cedar Picket", "02-Pickets", 2.50, actual_width=5.5, width_nominal=6)
    rail = _material(db, "RA01", "2x4x8 Rail", "03-Rails", 5.00, length_ft=8)
    cap = _material(db, "CAP8", "2x6x8 Cap", "04-Cap/Trim", 8.00, length_ft=8)
    trim = _material(db, "TR8", "1x4x8 Trim", "04-Cap/Trim", 3.00, length_ft=8)
    board = _material(db, "HB06", "1x6x6 Horizontal Board", "02-Pickets", 6.00, actual_width=5.5)
    nailer = _material(db, "NL01", "2x4 Nailer", "03-Rails", 4.00)
    panel = _material(db, "IP01", "8' Iron Panel", "07-Iron", 90.00)
    bracket = _material(db, "IB01", "Ameristar Bracket", "08-Hardware", 1.50)
    post_cap = _material(db, "IC01", "Iron Post Cap", "08-Hardware", 3.00)
    _material(db, "CTS", "Sand & Gravel 50lb", "06-Concrete", 5.00)
    _material(db, "CTP", "Portland Cement 94lb", "06-Concrete", 15.00)
    _material(db, "CTQ", "QuickRock 50lb", "06-Concrete", 7.00)

    atx = models.BusinessUnit(code="ATX-RES", name="Austin Residential", location="ATX",
                              business_type="Residential")
    sa = models.BusinessUnit(code="SA-HB", name="San Antonio Home Builders", location="SA",
                             business_type="Home Builders")
    db.add_all([atx, sa])
    db.flush()

    codes = {c.labor_sku: c for c in db.query(models.LaborCode).all()}
    for unit, rates in ((atx, {"W02": 1.00, "W03": 2.50, "W10": 30.00, "M03": 3.00}),
                        (sa, {"W02": 1.25, "W03": 2.75})):
        for labor_sku, rate in rates.items():
            db.add(models.LaborRate(labor_code_id=codes[labor_sku].id, business_unit_id=unit.id, rate=rate))

    a01 = models.WoodVerticalProduct(
        sku_code="A01", sku_name="6' Ver 1x6 : 2R : WOOD Post", height=6, rail_count=2,
        post_type="WOOD", style="Standard",
        post_material=post, picket_material=picket, rail_material=rail,
    )
    db.add(a01)

    y1 = models.Yard(code="Y1", name="North Yard")
    y2 = models.Yard(code="Y2", name="South Yard")
    y1.spots = [models.YardSpot(spot_code="S1"), models.YardSpot(spot_code="S2")]
    y2.spots = [models.YardSpot(spot_code="T1")]
    db.add_all([y1, y2])
    db.commit()

    return SimpleNamespace(
        post=post, steel_post=steel_post, gate_post=gate_post, picket=picket, rail=rail, cap=cap, trim=trim,
        board=board, nailer=nailer, panel=panel, bracket=bracket, post_cap=post_cap,
        atx=atx, sa=sa, a01=a01, y1=y1, y2=y2,
        s1=y1.spots[0], s2=y1.spots[1], t1=y2.spots[0],
    )


@pytest.fixture
def make_project(db):
    """Factory for bare projects (no BOM) used by fulfillment and bundle tests."""
    def _make(name="Smith Backyard", status="draft", yard_id=None,
              expected_pickup_date=PICKUP_DATE, **kwargs):
        project = models.BOMProject(
            project_code=generate_project_code(db),
            project_name=name,
            status=status,
            yard_id=yard_id,
            expected_pickup_date=expected_pickup_date,
            **kwargs,
        )
        db.add(project)
        db.commit()
        db.refresh(project)
        return project
    return _make
