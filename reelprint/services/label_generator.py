import logging
from datetime import datetime
from typing import Iterable, Optional

from .. import schemas
from ..config import Settings, settings as default_settings
from ..exceptions import DocumentGenerationError
from .assets import BrandingAssets, load_branding_assets
from .barcode_identity import extract_reel_number, transform_jumbo_barcode
from .barcode_renderer import BARCODE_BAND_HEIGHT_MM, BARCODE_BAND_WIDTH_MM, render_barcode
from .layout import LABEL_LANDSCAPE_MM, Document, Page, fit_image
from .packing_slip import round_half_up

logger = logging.getLogger(__name__)

LABEL_WIDTH, LABEL_HEIGHT = LABEL_LANDSCAPE_MM
MARGIN = 4.0

# Header band
LOGO_BOX = (6.0, 3.0, 18.0, 18.0)  # x, y, width, height
HEADER_RULE_Y = 24.0

# Spec block
SPEC_TOP = 32.0
SPEC_ROW_STEP = 8.0
LEFT_LABEL_X, LEFT_VALUE_X = 8.0, 30.0
RIGHT_LABEL_X, RIGHT_VALUE_X = 80.0, 108.0

# Bottom barcode band, centred
BARCODE_BAND_X = (LABEL_WIDTH - BARCODE_BAND_WIDTH_MM) / 2
BARCODE_BAND_Y = 74.0
BARCODE_PADDING = 1.0


def _fmt_number(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _label_date(roll: schemas.ScanResult, today: Optional[datetime] = None) -> str:
    if roll.production_info and roll.production_info.created_at:
        return roll.production_info.created_at.strftime("%d/%m/%Y")
    return (today or datetime.now()).strftime("%d/%m/%Y")


def label_fields(roll: schemas.ScanResult, today: Optional[datetime] = None) -> dict:
    """Printable values for one roll; anything unknown is an empty string."""
    paper = roll.paper_specifications
    details = roll.roll_details
    weight = details.weight_kg
    return {
        "SHADE": (paper.shade or "") if paper else "",
        "SIZE": f'{_fmt_number(details.width_inches)}"' if details.width_inches else "",
        "GSM": _fmt_number(paper.gsm) if paper else "",
        "BF": _fmt_number(paper.bf) if paper else "",
        "BATCH": transform_jumbo_barcode(roll.parent_rolls.parent_jumbo_barcode),
        "DATE": _label_date(roll, today),
        "REEL NO": extract_reel_number(roll.display_id),
        "WEIGHT": f"{round_half_up(weight)} kg" if weight and weight > 0.1 else "",
    }


def _draw_header(page: Page, assets: BrandingAssets, settings: Settings) -> None:
    if assets.logo is not None:
        x, y, box_w, box_h = LOGO_BOX
        width, height = fit_image(assets.logo, box_w, box_h)
        page.image(x + (box_w - width) / 2, y + (box_h - height) / 2, width, height, assets.logo, alt_text="logo")

    page.text(LABEL_WIDTH / 2, 11, settings.mill_name, font_size=16, bold=True, align="center")
    page.text(LABEL_WIDTH / 2, 16.5, settings.mill_tagline, font_size=9, align="center")
    page.text(LABEL_WIDTH / 2, 21, settings.plant_address, font_size=8, bold=True, align="center")
    page.line(MARGIN, HEADER_RULE_Y, LABEL_WIDTH - MARGIN, HEADER_RULE_Y, line_width=0.4)


def _draw_spec_block(page: Page, fields: dict) -> None:
    left = ["SHADE", "SIZE", "GSM", "BF", "BATCH"]
    right = ["DATE", "REEL NO", "WEIGHT"]
    for i, key in enumerate(left):
        y = SPEC_TOP + i * SPEC_ROW_STEP
        page.text(LEFT_LABEL_X, y, f"{key}:", font_size=11, bold=True)
        page.text(LEFT_VALUE_X, y, fields[key], font_size=11)
    for i, key in enumerate(right):
        y = SPEC_TOP + i * SPEC_ROW_STEP
        page.text(RIGHT_LABEL_X, y, f"{key}:", font_size=11, bold=True)
        page.text(RIGHT_VALUE_X, y, fields[key], font_size=12 if key == "REEL NO" else 11, bold=key == "REEL NO")


def _draw_barcode_band(page: Page, code: str) -> None:
    page.rect(BARCODE_BAND_X, BARCODE_BAND_Y, BARCODE_BAND_WIDTH_MM, BARCODE_BAND_HEIGHT_MM, line_width=0.4)
    barcode = render_barcode(code)
    if barcode.is_fallback:
        logger.warning(f"Label for {code} printed with text instead of barcode")
        page.text(LABEL_WIDTH / 2, BARCODE_BAND_Y + BARCODE_BAND_HEIGHT_MM / 2 + 2, code,
                  font_size=16, bold=True, align="center")
        return
    inner_w = BARCODE_BAND_WIDTH_MM - 2 * BARCODE_PADDING
    inner_h = BARCODE_BAND_HEIGHT_MM - 2 * BARCODE_PADDING
    width, height = fit_image(barcode.image, inner_w, inner_h)
    page.image(
        BARCODE_BAND_X + (BARCODE_BAND_WIDTH_MM - width) / 2,
        BARCODE_BAND_Y + (BARCODE_BAND_HEIGHT_MM - height) / 2,
        width,
        height,
        barcode.image,
        alt_text=code,
    )


def _draw_label(document: Document, roll: schemas.ScanResult, assets: BrandingAssets, settings: Settings) -> None:
    page = document.add_page()
    _draw_header(page, assets, settings)
    _draw_spec_block(page, label_fields(roll))
    _draw_barcode_band(page, roll.code)


def render_label(
    roll: schemas.ScanResult,
    assets: Optional[BrandingAssets] = None,
    settings: Optional[Settings] = None,
) -> Document:
    """Compose the 150 x 101.3 mm landscape label for one roll."""
    return render_labels([roll], assets=assets, settings=settings)


def render_labels(
    rolls: Iterable[schemas.ScanResult],
    assets: Optional[BrandingAssets] = None,
    settings: Optional[Settings] = None,
) -> Document:
    """One label per page, all sharing the same fixed canvas."""
    settings = settings or default_settings
    rolls = list(rolls)
    if not rolls:
        raise ValueError("At least one roll is required to print labels")

    if assets is None:
        assets = load_branding_assets(settings)

    title = f"Label {rolls[0].display_id}" if len(rolls) == 1 else f"Labels ({len(rolls)})"
    document = Document(width=LABEL_WIDTH, height=LABEL_HEIGHT, title=title)
    try:
        for roll in rolls:
            _draw_label(document, roll, assets, settings)
    except Exception as e:
        logger.error(f"Error generating label document: {e}")
        raise DocumentGenerationError("Failed to generate label", document_type="label") from e

    logger.info(f"Generated {document.page_count} label page(s)")
    return document


def label_filename(roll: schemas.ScanResult) -> str:
    reel = extract_reel_number(roll.display_id) or roll.code
    return f"label_{reel}.pdf"
