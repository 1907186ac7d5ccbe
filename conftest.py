"""Shared fixtures for the label printing tests."""
from datetime import datetime

import pytest

from reelprint import schemas
from reelprint.config import Settings
from reelprint.services.assets import BrandingAssets


@pytest.fixture
def no_assets():
    """Branding with neither logo nor header, as when both fail to load."""
    return BrandingAssets()


@pytest.fixture
def test_settings():
    return Settings(logo_url=None, header_image_url=None)


@pytest.fixture
def scan_result():
    return schemas.ScanResult(
        code="CR_08001-25",
        barcode_id="CR_08001-25",
        roll_details=schemas.RollDetails(
            width_inches=36.0,
            weight_kg=512.4,
            status="available",
            roll_type="cut",
            location="warehouse",
        ),
        parent_rolls=schemas.ParentRolls(
            parent_set_barcode="SET_00002-25",
            parent_jumbo_barcode="JR_00001-25",
        ),
        paper_specifications=schemas.PaperSpecifications(gsm=80, bf=18.0, shade="White"),
        client_info=schemas.ClientInfo(client_name="Acme Packaging"),
        production_info=schemas.ProductionInfo(created_at=datetime(2025, 3, 14, 10, 30), created_by="operator"),
    )


def make_item(size, gsm, bf, shade, reel, weight):
    return schemas.DispatchItem(size=size, gsm=gsm, bf=bf, shade=shade, reel=reel, weight=weight)


@pytest.fixture
def five_items():
    return [
        make_item(36, 80, 18, "White", "08003-25", 52.4),
        make_item(24, 100, 20, "Natural", "08001-25", 61.0),
        make_item(36, 80, 18, "White", "08002-25", 70.0),
        make_item(24, 80, 18, "Golden", "08005-25", 45.6),
        make_item(42, 120, 22, "Natural", "08004-25", 88.0),
    ]


@pytest.fixture
def shipment(five_items):
    return schemas.PackingSlipRequest(
        dispatch_number="DSP-0042",
        reference_number="REF-7",
        dispatch_date=datetime(2025, 3, 15),
        client=schemas.ClientDetails(company_name="Acme Packaging", address="Plot 4, Sector 3, Pithampur"),
        vehicle_number="MP09 AB 1234",
        driver_name="Ramesh",
        driver_mobile="9800000000",
        items=five_items,
    )
