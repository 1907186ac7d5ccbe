import io
import logging
from dataclasses import dataclass
from typing import Optional

import qrcode
from barcode import Code128
from barcode.writer import ImageWriter
from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)

# Print band on labels is 100mm x 20mm; bars plus text must fit inside it
BARCODE_BAND_WIDTH_MM = 100.0
BARCODE_BAND_HEIGHT_MM = 20.0
RENDER_DPI = 300

BARCODE_WRITER_OPTIONS = {
    "module_width": 0.33,   # mm per narrow bar
    "module_height": 12.0,  # bar height in mm
    "quiet_zone": 4.0,
    "font_size": 12,
    "text_distance": 4.0,
    "dpi": RENDER_DPI,
    "background": "white",
    "foreground": "black",
    "write_text": True,
}


@dataclass
class BarcodeImage:
    """Raster barcode ready for embedding; is_fallback marks the text-only variant."""
    image: Image.Image
    value: str
    is_fallback: bool = False


def _mm_to_px(mm: float, dpi: int = RENDER_DPI) -> int:
    return int(round(mm / 25.4 * dpi))


def _load_font(size: int) -> ImageFont.ImageFont:
    try:
        return ImageFont.truetype("DejaVuSans-Bold.ttf", size)
    except OSError:
        return ImageFont.load_default()


def render_text_fallback(value: str, width_mm: float = BARCODE_BAND_WIDTH_MM,
                         height_mm: float = BARCODE_BAND_HEIGHT_MM) -> Image.Image:
    """Plain bordered rectangle with the literal value centred."""
    width_px, height_px = _mm_to_px(width_mm), _mm_to_px(height_mm)
    image = Image.new("RGB", (width_px, height_px), "white")
    draw = ImageDraw.Draw(image)
    draw.rectangle([0, 0, width_px - 1, height_px - 1], outline="black", width=3)

    font = _load_font(int(height_px * 0.35))
    left, top, right, bottom = draw.textbbox((0, 0), value, font=font)
    text_x = (width_px - (right - left)) / 2 - left
    text_y = (height_px - (bottom - top)) / 2 - top
    draw.text((text_x, text_y), value, fill="black", font=font)
    return image


def render_barcode(value: Optional[str]) -> BarcodeImage:
    """
    Render `value` as a Code128 raster with the human-readable text below.

    Never raises: values the encoder rejects come back as a text-only
    rectangle so the surrounding document can still be printed.
    """
    text = "" if value is None else str(value)
    if not text.strip():
        logger.warning("Empty barcode value, rendering text fallback")
        return BarcodeImage(image=render_text_fallback(text), value=text, is_fallback=True)

    try:
        code = Code128(text, writer=ImageWriter())
        image = code.render(writer_options=BARCODE_WRITER_OPTIONS)
        return BarcodeImage(image=image.convert("RGB"), value=text)
    except Exception as e:
        logger.warning(f"Code128 encoding failed for '{text}': {e} - using text fallback")
        return BarcodeImage(image=render_text_fallback(text), value=text, is_fallback=True)


def render_qr_code(value: str, box_size: int = 10, border: int = 4) -> Image.Image:
    """QR sticker image for a roll code."""
    if not value:
        raise ValueError("QR value must be a non-empty string")
    qr = qrcode.QRCode(version=1, box_size=box_size, border=border)
    qr.add_data(value)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffered = io.BytesIO()
    img.save(buffered, format="PNG")
    buffered.seek(0)
    return Image.open(buffered).convert("RGB")


def image_to_png_bytes(image: Image.Image) -> bytes:
    buffered = io.BytesIO()
    image.save(buffered, format="PNG")
    return buffered.getvalue()
