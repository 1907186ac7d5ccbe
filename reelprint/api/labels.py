from fastapi import APIRouter, HTTPException, Query
from typing import List
import logging

from .. import schemas
from ..exceptions import DocumentGenerationError
from ..services.barcode_sheet import barcode_sheet_filename, render_barcode_sheet
from ..services.label_generator import label_filename, render_label, render_labels
from ..services.pdf_renderer import render_pdf
from .base import pdf_response

router = APIRouter()
logger = logging.getLogger(__name__)

# ============================================================================
# LABEL PDF ENDPOINTS
# ============================================================================

@router.post("/labels/pdf", tags=["Label Printing"])
def generate_label_pdf(
    roll: schemas.ScanResult,
    mode: schemas.OutputMode = Query(schemas.OutputMode.PRINT, description="print opens inline, download saves"),
):
    """Generate the 15.00cm x 10.13cm reel label for a scanned roll"""
    try:
        document = render_label(roll)
        return pdf_response(render_pdf(document), label_filename(roll), mode)

    except DocumentGenerationError as e:
        logger.error(f"Label generation failed for {roll.code}: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate label PDF")
    except Exception as e:
        logger.error(f"Error generating label PDF for {roll.code}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/labels/batch/pdf", tags=["Label Printing"])
def generate_label_batch_pdf(
    rolls: List[schemas.ScanResult],
    mode: schemas.OutputMode = Query(schemas.OutputMode.PRINT),
):
    """Generate one label page per roll in a single PDF"""
    if not rolls:
        raise HTTPException(status_code=400, detail="At least one roll is required")
    try:
        document = render_labels(rolls)
        return pdf_response(render_pdf(document), f"labels_{len(rolls)}.pdf", mode)

    except DocumentGenerationError as e:
        logger.error(f"Batch label generation failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate label PDF")
    except Exception as e:
        logger.error(f"Error generating batch label PDF: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/barcode-sheet/pdf", tags=["Label Printing"])
def generate_barcode_sheet_pdf(
    sheet: schemas.BarcodeSheetRequest,
    mode: schemas.OutputMode = Query(schemas.OutputMode.DOWNLOAD),
):
    """Barcode sheet for every cut roll of a plan, grouped by jumbo roll"""
    try:
        try:
            document = render_barcode_sheet(sheet)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return pdf_response(render_pdf(document), barcode_sheet_filename(sheet.plan_name), mode)

    except HTTPException:
        raise
    except DocumentGenerationError as e:
        logger.error(f"Barcode sheet generation failed for {sheet.plan_name}: {e}")
        raise HTTPException(status_code=500, detail="Failed to export barcode PDF")
    except Exception as e:
        logger.error(f"Error generating barcode sheet PDF: {e}")
        raise HTTPException(status_code=500, detail=str(e))
