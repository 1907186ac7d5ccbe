from fastapi import APIRouter, HTTPException, Response
from typing import List
import logging

from .. import schemas
from ..config import settings
from ..exceptions import InvalidScanError
from ..services import barcode_identity, scan_decoder
from ..services.barcode_renderer import image_to_png_bytes, render_barcode, render_qr_code

router = APIRouter()
logger = logging.getLogger(__name__)

# ============================================================================
# QR CODE / BARCODE ENDPOINTS
# ============================================================================

@router.post("/qr/decode", response_model=schemas.ScanDecodeResponse, tags=["QR Code Management"])
def decode_scan(request: schemas.ScanDecodeRequest):
    """Validate scanner or typed input and add it to the caller's scan history"""
    try:
        try:
            result = scan_decoder.require_valid_scan(request.input)
        except InvalidScanError as e:
            logger.warning(f"Rejected scan input {e.raw_input!r}")
            raise HTTPException(status_code=400, detail=str(e))

        try:
            code = scan_decoder.with_year_suffix(result.code, request.year)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        history = scan_decoder.record_scan(
            request.history,
            schemas.ScanHistoryEntry(code=code, action_taken="Manual scan"),
            limit=settings.scan_history_limit,
        )
        return schemas.ScanDecodeResponse(
            code=code,
            is_valid=True,
            kind=barcode_identity.classify_barcode(code),
            history=history,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error decoding scan input: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/barcode/display", response_model=schemas.BarcodeDisplayResponse, tags=["Barcode Management"])
def barcode_display(request: schemas.BarcodeDisplayRequest):
    """Strip the family prefix from a stored barcode for display"""
    display = barcode_identity.transform_barcode(request.kind.value, request.raw)
    return schemas.BarcodeDisplayResponse(kind=request.kind, raw=request.raw, display=display)

@router.post("/barcode/lineage", response_model=schemas.LineageResponse, tags=["Barcode Management"])
def barcode_lineage(scan: schemas.ScanResult):
    """Reel number plus the set and jumbo a cut roll came from"""
    lineage = barcode_identity.lineage_display(
        scan.parent_rolls.parent_set_barcode,
        scan.parent_rolls.parent_jumbo_barcode,
    )
    return schemas.LineageResponse(
        code=scan.code,
        reel_number=barcode_identity.extract_reel_number(scan.display_id),
        **lineage,
    )

@router.put("/qr/update-weight", response_model=schemas.WeightUpdateResponse, tags=["QR Code Management"])
def update_weight_via_qr(weight_update: schemas.WeightUpdateRequest):
    """Apply a weight to a scanned roll - status automatically set to 'available'"""
    try:
        old_weight = weight_update.scan.roll_details.weight_kg
        try:
            updated = scan_decoder.apply_weight_update(
                weight_update.scan, weight_update.weight_kg, weight_update.location
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        new_weight = updated.roll_details.weight_kg
        diff = scan_decoder.calculate_weight_difference(old_weight, new_weight)
        return schemas.WeightUpdateResponse(
            scan=updated,
            old_weight_kg=old_weight,
            new_weight_kg=new_weight,
            weight_difference=new_weight - old_weight,
            percentage=diff["percentage"],
            is_increase=diff["is_increase"],
            message=f"Weight updated successfully from {old_weight}kg to {new_weight}kg",
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating weight for {weight_update.scan.code}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/barcode/{value}/image", tags=["Barcode Management"])
def barcode_image(value: str):
    """Code128 PNG for a roll code (text-only image if it cannot be encoded)"""
    try:
        barcode = render_barcode(value)
        return Response(
            content=image_to_png_bytes(barcode.image),
            media_type="image/png",
            headers={"X-Barcode-Fallback": "true" if barcode.is_fallback else "false"},
        )
    except Exception as e:
        logger.error(f"Error rendering barcode image for {value}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/qr/{value}/image", tags=["QR Code Management"])
def qr_image(value: str):
    """QR code PNG for a roll code"""
    try:
        result = scan_decoder.require_valid_scan(value)
    except InvalidScanError as e:
        raise HTTPException(status_code=400, detail=str(e))
    try:
        return Response(content=image_to_png_bytes(render_qr_code(result.code)), media_type="image/png")
    except Exception as e:
        logger.error(f"Error rendering QR image for {value}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

# ============================================================================
# SCAN HISTORY ENDPOINTS
# ============================================================================

@router.post("/qr/history/csv", tags=["QR Code Management"])
def export_scan_history(history: List[schemas.ScanHistoryEntry]):
    """Download the caller's scan history as CSV"""
    try:
        content = scan_decoder.export_scan_history_csv(history)
        return Response(
            content=content,
            media_type="text/csv",
            headers={"Content-Disposition": "attachment; filename=scan_history.csv"},
        )
    except Exception as e:
        logger.error(f"Error exporting scan history: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/qr/summary", response_model=schemas.ScanSummaryResponse, tags=["QR Code Management"])
def scan_summary(scan: schemas.ScanResult):
    """Display strings for the scan result card"""
    return schemas.ScanSummaryResponse(
        code=scan.code,
        code_display=scan_decoder.format_code_display(scan.code),
        weight=scan_decoder.format_weight(scan.roll_details.weight_kg),
        dimensions=scan_decoder.format_dimensions(scan.roll_details.width_inches),
        paper_spec=scan_decoder.get_paper_spec_summary(scan),
    )
