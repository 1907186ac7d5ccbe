from fastapi import APIRouter
from .api import qr_codes, labels, packing_slips

# Create main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(qr_codes.router, prefix="/api", tags=["QR Code Management"])
api_router.include_router(labels.router, prefix="/api", tags=["Label Printing"])
api_router.include_router(packing_slips.router, prefix="/api", tags=["Packing Slip"])
