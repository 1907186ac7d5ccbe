import io
import logging

from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from ..exceptions import DocumentGenerationError
from .layout import Document, ImageBox, Line, Rect, Text

logger = logging.getLogger(__name__)

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"


def _rgb(color):
    return tuple(component / 255.0 for component in color)


def _draw_command(pdf: canvas.Canvas, cmd, page_height: float) -> None:
    # Layout uses a top-left origin in mm; reportlab uses bottom-left in points
    if isinstance(cmd, Rect):
        pdf.setLineWidth(cmd.line_width * mm)
        if cmd.fill is not None:
            pdf.setFillColorRGB(*_rgb(cmd.fill))
        pdf.rect(
            cmd.x * mm,
            (page_height - cmd.y - cmd.height) * mm,
            cmd.width * mm,
            cmd.height * mm,
            stroke=1 if cmd.stroke else 0,
            fill=1 if cmd.fill is not None else 0,
        )
    elif isinstance(cmd, Line):
        pdf.setLineWidth(cmd.line_width * mm)
        pdf.line(cmd.x1 * mm, (page_height - cmd.y1) * mm, cmd.x2 * mm, (page_height - cmd.y2) * mm)
    elif isinstance(cmd, Text):
        pdf.setFillColorRGB(*_rgb(cmd.color))
        pdf.setFont(FONT_BOLD if cmd.bold else FONT_REGULAR, cmd.font_size)
        x, y = cmd.x * mm, (page_height - cmd.y) * mm
        if cmd.align == "center":
            pdf.drawCentredString(x, y, cmd.text)
        elif cmd.align == "right":
            pdf.drawRightString(x, y, cmd.text)
        else:
            pdf.drawString(x, y, cmd.text)
    elif isinstance(cmd, ImageBox):
        pdf.drawImage(
            ImageReader(cmd.image),
            cmd.x * mm,
            (page_height - cmd.y - cmd.height) * mm,
            width=cmd.width * mm,
            height=cmd.height * mm,
        )
    else:
        raise TypeError(f"Unsupported draw command {type(cmd).__name__}")


def render_pdf(document: Document) -> bytes:
    """
    Draw a layout Document with reportlab and return the PDF bytes.

    Raises DocumentGenerationError if any page fails; nothing partial is returned.
    """
    buffer = io.BytesIO()
    try:
        pdf = canvas.Canvas(buffer, pagesize=(document.width * mm, document.height * mm))
        if document.title:
            pdf.setTitle(document.title)

        for page in document.pages:
            pdf.setStrokeColorRGB(0, 0, 0)
            for cmd in page.commands:
                _draw_command(pdf, cmd, document.height)
            pdf.showPage()

        pdf.save()
        return buffer.getvalue()
    except Exception as e:
        logger.error(f"Error rendering PDF '{document.title}': {e}")
        raise DocumentGenerationError(f"Failed to render {document.title or 'document'} PDF") from e
    finally:
        buffer.close()
