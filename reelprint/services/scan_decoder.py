"""
Scan decoding, scan history and weight update helpers.

Camera and keyboard-wedge scanners both end up here as a plain string; the
decoder only checks its shape. Looking the code up is the caller's job and
must not happen when the decode result is invalid.
"""
import csv
import io
import re
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union

from .. import schemas
from ..exceptions import InvalidScanError
from .barcode_identity import classify_barcode, split_year_suffix

logger = logging.getLogger(__name__)

VALID_CODE = re.compile(r"^[A-Za-z0-9_-]+$")
MAX_CODE_LENGTH = 64
MAX_ROLL_WEIGHT_KG = 1000
# Below this a roll is considered not weighed yet
WEIGHED_THRESHOLD_KG = 0.1


@dataclass(frozen=True)
class ScanDecodeResult:
    code: str
    is_valid: bool
    kind: Optional[str] = None


def is_valid_code(code: str) -> bool:
    """Structural check only: printable charset, sane length, at least one digit."""
    if not code or len(code) > MAX_CODE_LENGTH:
        return False
    if not VALID_CODE.match(code):
        return False
    # A bare prefix such as "CR_" is a placeholder, not a code
    return any(ch.isdigit() for ch in code)


def parse_qr_code_data(scan_data: Optional[str]) -> ScanDecodeResult:
    """
    Normalize scanner / manual input into a canonical code.

    Never raises: malformed input comes back with is_valid=False.
    """
    if scan_data is None:
        return ScanDecodeResult(code="", is_valid=False)
    try:
        cleaned = str(scan_data).strip()
    except Exception as e:
        logger.warning(f"Could not read scan input: {e}")
        return ScanDecodeResult(code="", is_valid=False)

    if not is_valid_code(cleaned):
        return ScanDecodeResult(code=cleaned, is_valid=False)

    return ScanDecodeResult(code=cleaned, is_valid=True, kind=classify_barcode(cleaned))


def require_valid_scan(scan_data: Optional[str]) -> ScanDecodeResult:
    """Decode, raising InvalidScanError so callers stop before any lookup."""
    result = parse_qr_code_data(scan_data)
    if not result.is_valid:
        raise InvalidScanError("Invalid QR code format", raw_input=scan_data)
    return result


def with_year_suffix(code: str, year: Optional[str]) -> str:
    """Append -YY to a code that has no year suffix yet."""
    if not year:
        return code
    if len(year) != 2 or not year.isdigit():
        raise ValueError(f"Year must be two digits, got '{year}'")
    _core, existing = split_year_suffix(code)
    if existing:
        return code
    return f"{code}-{year}"


# ============================================================================
# SCAN HISTORY
# ============================================================================

def history_entry_from_scan(scan: schemas.ScanResult, action_taken: str = "Manual scan") -> schemas.ScanHistoryEntry:
    paper = scan.paper_specifications
    return schemas.ScanHistoryEntry(
        code=scan.code,
        barcode_id=scan.barcode_id,
        action_taken=action_taken,
        width_inches=scan.roll_details.width_inches,
        weight_kg=scan.roll_details.weight_kg,
        status=scan.roll_details.status,
        location=scan.roll_details.location,
        gsm=paper.gsm if paper else None,
        bf=paper.bf if paper else None,
        shade=paper.shade if paper else None,
        client_name=scan.client_info.client_name if scan.client_info else None,
    )


def record_scan(
    history: Sequence[schemas.ScanHistoryEntry],
    entry: schemas.ScanHistoryEntry,
    limit: int = 50,
) -> List[schemas.ScanHistoryEntry]:
    """Return a new history list, newest first, holding at most `limit` entries."""
    if limit < 1:
        raise ValueError("History limit must be at least 1")
    return [entry, *history][:limit]


def export_scan_history_csv(history: Sequence[schemas.ScanHistoryEntry]) -> str:
    headers = [
        'Code', 'Barcode', 'Width (inches)', 'Weight (kg)', 'Status', 'Location',
        'GSM', 'BF', 'Shade', 'Client Name', 'Action', 'Scanned At'
    ]
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    for entry in history:
        writer.writerow([
            entry.code,
            entry.barcode_id or '',
            '' if entry.width_inches is None else entry.width_inches,
            '' if entry.weight_kg is None else entry.weight_kg,
            entry.status.value if entry.status else '',
            entry.location or '',
            '' if entry.gsm is None else entry.gsm,
            '' if entry.bf is None else entry.bf,
            entry.shade or '',
            entry.client_name or 'No Client',
            entry.action_taken,
            entry.scanned_at.isoformat(),
        ])
    return buffer.getvalue()


# ============================================================================
# WEIGHT UPDATES & DISPLAY HELPERS
# ============================================================================

def validate_weight(weight: float) -> Dict[str, Union[bool, str]]:
    if weight <= 0:
        return {"is_valid": False, "message": "Weight must be greater than 0"}
    if weight > MAX_ROLL_WEIGHT_KG:
        return {"is_valid": False, "message": f"Weight seems too high (>{MAX_ROLL_WEIGHT_KG}kg)"}
    return {"is_valid": True}


def calculate_weight_difference(old_weight: float, new_weight: float) -> Dict[str, Union[float, bool]]:
    difference = new_weight - old_weight
    percentage = abs(difference / old_weight) * 100 if old_weight > 0 else 0.0
    return {
        "difference": abs(difference),
        "percentage": percentage,
        "is_increase": difference > 0,
    }


def apply_weight_update(
    scan: schemas.ScanResult,
    weight_kg: float,
    location: Optional[str] = None,
) -> schemas.ScanResult:
    """
    Return a copy of `scan` carrying the new weight.

    When a real weight is recorded the roll is ready for dispatch, so its
    status moves to 'available'.
    """
    check = validate_weight(weight_kg)
    if not check["is_valid"]:
        raise ValueError(check["message"])

    updates = {"weight_kg": weight_kg}
    if location:
        updates["location"] = location
    if weight_kg > WEIGHED_THRESHOLD_KG:
        updates["status"] = schemas.RollStatus.AVAILABLE

    roll_details = scan.roll_details.model_copy(update=updates)
    logger.info(f"Weight for {scan.code}: {scan.roll_details.weight_kg}kg -> {weight_kg}kg, status '{roll_details.status.value}'")
    return scan.model_copy(update={"roll_details": roll_details})


def format_weight(weight_kg: float) -> str:
    return f"{weight_kg:.2f} kg"


def format_dimensions(width_inches: float) -> str:
    return f'{width_inches:g}"'


def format_code_display(code: str) -> str:
    """Show the first and last few characters of long codes"""
    if len(code) <= 12:
        return code
    return f"{code[:6]}...{code[-6:]}"


def get_paper_spec_summary(scan: schemas.ScanResult) -> str:
    paper = scan.paper_specifications
    if not paper:
        return 'Unknown specification'
    bf = f"{paper.bf:g}" if paper.bf is not None else ""
    return f"{paper.gsm}gsm, {bf}bf, {paper.shade}"
