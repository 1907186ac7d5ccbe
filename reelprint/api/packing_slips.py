from fastapi import APIRouter, HTTPException, Query
import logging

from .. import schemas
from ..exceptions import DocumentGenerationError
from ..services.packing_slip import convert_dispatch_to_packing_slip, packing_slip_filename, render_packing_slip
from ..services.pdf_renderer import render_pdf
from .base import pdf_response

router = APIRouter()
logger = logging.getLogger(__name__)

# ============================================================================
# PACKING SLIP ENDPOINTS
# ============================================================================

def _packing_slip_response(shipment: schemas.PackingSlipRequest, mode: schemas.OutputMode):
    document = render_packing_slip(shipment)
    filename = packing_slip_filename(shipment.dispatch_number or "unknown")
    return pdf_response(render_pdf(document), filename, mode)

@router.post("/packing-slip/pdf", tags=["Packing Slip"])
def generate_packing_slip_pdf(
    shipment: schemas.PackingSlipRequest,
    mode: schemas.OutputMode = Query(schemas.OutputMode.DOWNLOAD, description="print opens inline, download saves"),
):
    """Generate the packing slip for a dispatch"""
    try:
        return _packing_slip_response(shipment, mode)

    except DocumentGenerationError as e:
        logger.error(f"Packing slip generation failed for {shipment.dispatch_number}: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate packing slip PDF")
    except Exception as e:
        logger.error(f"Error generating packing slip PDF: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/dispatch/packing-slip/pdf", tags=["Packing Slip"])
def generate_dispatch_packing_slip_pdf(
    dispatch: schemas.DispatchRecordPayload,
    mode: schemas.OutputMode = Query(schemas.OutputMode.DOWNLOAD),
):
    """Generate the packing slip straight from a stored dispatch record"""
    try:
        try:
            shipment = convert_dispatch_to_packing_slip(dispatch)
        except (ValueError, ArithmeticError) as e:
            raise HTTPException(status_code=400, detail=f"Invalid dispatch record: {e}")
        return _packing_slip_response(shipment, mode)

    except HTTPException:
        raise
    except DocumentGenerationError as e:
        logger.error(f"Packing slip generation failed for {dispatch.dispatch_number}: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate packing slip PDF")
    except Exception as e:
        logger.error(f"Error generating dispatch packing slip PDF: {e}")
        raise HTTPException(status_code=500, detail=str(e))
