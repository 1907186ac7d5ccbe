from fastapi import Response
import logging

from .. import schemas

logger = logging.getLogger(__name__)


def pdf_response(content: bytes, filename: str, mode: schemas.OutputMode) -> Response:
    """
    Wrap PDF bytes for the browser.

    print    -> inline, the dashboard opens it in a new tab and prints
    download -> attachment with the conventional filename
    """
    disposition = "inline" if mode == schemas.OutputMode.PRINT else "attachment"
    logger.info(f"Returning {filename} ({len(content)} bytes, {disposition})")
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"{disposition}; filename={filename}"},
    )
