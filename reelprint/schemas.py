from typing import List, Optional, Dict, Any, Union
from pydantic import AliasChoices, BaseModel, Field, field_validator
from datetime import datetime
from enum import Enum

# ============================================================================
# ENUMS
# ============================================================================

class RollStatus(str, Enum):
    IN_PRODUCTION = "in_production"
    CUTTING = "cutting"
    AVAILABLE = "available"
    ALLOCATED = "allocated"
    IN_DISPATCH = "in_dispatch"
    DISPATCHED = "dispatched"
    USED = "used"
    DAMAGED = "damaged"

class BarcodeKind(str, Enum):
    SET = "set"
    JUMBO = "jumbo"
    REEL = "reel"

class OutputMode(str, Enum):
    """How the caller wants the PDF handed back"""
    PRINT = "print"
    DOWNLOAD = "download"

# ============================================================================
# SCAN RESULT SCHEMAS
# ============================================================================

class RollDetails(BaseModel):
    width_inches: float = Field(..., gt=0, description="Roll width in inches")
    weight_kg: float = Field(default=0.0, ge=0, description="Weight in kg (0 until weighed)")
    status: RollStatus = Field(default=RollStatus.IN_PRODUCTION)
    roll_type: Optional[str] = None
    location: Optional[str] = None
    reel_number: Optional[int] = Field(None, description="Operator reel number for manual cut rolls")

class PaperSpecifications(BaseModel):
    gsm: Optional[int] = None
    bf: Optional[float] = None
    shade: Optional[str] = None
    paper_type: Optional[str] = None

class ParentRolls(BaseModel):
    """Backward references only - a roll never owns its parents"""
    parent_set_barcode: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("parent_set_barcode", "parent_118_barcode"),
    )
    parent_jumbo_barcode: Optional[str] = None

class ClientInfo(BaseModel):
    client_name: Optional[str] = None

class ProductionInfo(BaseModel):
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None

class ScanResult(BaseModel):
    """Result of resolving one physical roll, as returned by the lookup service"""
    code: str = Field(..., min_length=1, description="Canonical barcode, unique per physical roll")
    barcode_id: Optional[str] = Field(None, description="Human-facing label, falls back to code")
    inventory_id: Optional[str] = None
    roll_details: RollDetails
    parent_rolls: ParentRolls = Field(default_factory=ParentRolls)
    paper_specifications: Optional[PaperSpecifications] = None
    client_info: Optional[ClientInfo] = None
    production_info: Optional[ProductionInfo] = None
    scan_timestamp: Optional[datetime] = None

    @property
    def display_id(self) -> str:
        return self.barcode_id or self.code

class ScanHistoryEntry(BaseModel):
    """One row of the caller-owned scan history"""
    code: str
    barcode_id: Optional[str] = None
    scanned_at: datetime = Field(default_factory=datetime.now)
    action_taken: str = "Manual scan"
    width_inches: Optional[float] = None
    weight_kg: Optional[float] = None
    status: Optional[RollStatus] = None
    location: Optional[str] = None
    gsm: Optional[int] = None
    bf: Optional[float] = None
    shade: Optional[str] = None
    client_name: Optional[str] = None

# ============================================================================
# REQUEST / RESPONSE SCHEMAS
# ============================================================================

class ScanDecodeRequest(BaseModel):
    """Free-text scanner or keyboard input"""
    input: str
    year: Optional[str] = Field(None, description="Two-digit year appended when the code has no -YY suffix")
    history: List[ScanHistoryEntry] = Field(default_factory=list)

class ScanDecodeResponse(BaseModel):
    code: str
    is_valid: bool
    kind: Optional[str] = None
    history: List[ScanHistoryEntry] = Field(default_factory=list)

class BarcodeDisplayRequest(BaseModel):
    kind: BarcodeKind
    raw: Optional[str] = None

class BarcodeDisplayResponse(BaseModel):
    kind: BarcodeKind
    raw: Optional[str] = None
    display: str

class LineageResponse(BaseModel):
    code: str
    reel_number: str
    set_display: str
    jumbo_display: str

class ScanSummaryResponse(BaseModel):
    """Short display strings for a scanned roll"""
    code: str
    code_display: str
    weight: str
    dimensions: str
    paper_spec: str

class WeightUpdateRequest(BaseModel):
    """Weight update for a scanned roll - status automatically set to 'available'"""
    scan: ScanResult
    weight_kg: float = Field(..., gt=0)
    location: Optional[str] = None

class WeightUpdateResponse(BaseModel):
    scan: ScanResult
    old_weight_kg: float
    new_weight_kg: float
    weight_difference: float
    percentage: float
    is_increase: bool
    message: str

# ============================================================================
# PACKING SLIP SCHEMAS
# ============================================================================

class DispatchItem(BaseModel):
    """One row of a shipment; sno is assigned at render time"""
    gsm: Union[int, float, str] = ""
    bf: Union[int, float, str] = ""
    shade: Union[str, int, float] = ""
    size: Union[float, str] = Field("", description="Width in inches")
    reel: Union[str, int] = Field("", description="Display reel number")
    weight: float = Field(default=0.0, ge=0, description="Weight in kg")
    barcode_id: Optional[str] = None
    order_frontend_id: Optional[str] = None

    @field_validator('shade', mode='before')
    @classmethod
    def strip_shade(cls, v):
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

class QualityCheckRecord(BaseModel):
    barcode_id: str
    gsm: Optional[Union[str, float]] = None
    bf: Optional[Union[str, float]] = None
    cobb_value: Optional[Union[str, float]] = None

class ClientDetails(BaseModel):
    company_name: str = "Unknown Client"
    contact_person: Optional[str] = None
    address: Optional[str] = None
    mobile: Optional[str] = None

class PackingSlipRequest(BaseModel):
    """Dispatch header plus the item list consumed by the packing slip generator"""
    dispatch_number: str = ""
    reference_number: Optional[str] = None
    dispatch_date: datetime = Field(default_factory=datetime.now)
    client: ClientDetails = Field(default_factory=ClientDetails)
    vehicle_number: str = ""
    driver_name: str = ""
    driver_mobile: str = ""
    items: List[DispatchItem] = Field(default_factory=list)
    qc: Optional[List[QualityCheckRecord]] = None

class DispatchRecordPayload(BaseModel):
    """Raw dispatch record as stored by the dispatch service"""
    dispatch_number: Optional[str] = None
    reference_number: Optional[str] = None
    dispatch_date: Optional[datetime] = None
    client: Optional[Dict[str, Any]] = None
    vehicle_number: Optional[str] = None
    driver_name: Optional[str] = None
    driver_mobile: Optional[str] = None
    items: Optional[List[Dict[str, Any]]] = None
    dispatch_items: Optional[List[Dict[str, Any]]] = None
    qc: Optional[List[QualityCheckRecord]] = None

# ============================================================================
# BARCODE SHEET SCHEMAS
# ============================================================================

class CutRollEntry(BaseModel):
    """One cut roll of a production plan, as listed on the barcode sheet"""
    barcode_id: Optional[str] = None
    qr_code: Optional[str] = None
    width_inches: float = Field(..., gt=0)
    weight_kg: float = Field(default=0.0, ge=0)
    jumbo_roll_frontend_id: Optional[str] = Field(None, description="Parent jumbo id used for grouping")
    paper_specs: Optional[PaperSpecifications] = None

    @property
    def barcode_value(self) -> str:
        return self.barcode_id or self.qr_code or ""

class BarcodeSheetRequest(BaseModel):
    plan_name: Optional[str] = None
    cut_rolls: List[CutRollEntry] = Field(default_factory=list)
