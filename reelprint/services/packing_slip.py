"""
Packing slip generation.

Items are sorted by (size, gsm, bf, shade, reel) and laid out in two tables
side by side. The left table is filled completely before the right one
starts, and every table carries at least `packing_slip_min_rows` rows so
short shipments still fill the printed sheet. Subtotals per paper spec, a
totals footer and an optional quality-check appendix follow the tables.
"""
import logging
import math
import re
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .. import schemas
from ..config import Settings, settings as default_settings
from ..exceptions import DocumentGenerationError
from .assets import BrandingAssets, load_branding_assets
from .barcode_identity import extract_reel_number
from .layout import A4_PORTRAIT_MM, HEADER_FILL, ROW_SHADE, Document, Page, fit_image

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4_PORTRAIT_MM
MARGIN_X = 10.0
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN_X
PAGE_BOTTOM = PAGE_HEIGHT - 10.0

# Page 1 reserves this much for the company / dispatch header
FIRST_PAGE_TABLE_TOP = 62.0
CONTINUATION_TABLE_TOP = 15.0

HEADER_ROW_HEIGHT = 7.0
ROW_HEIGHT = 6.5
TABLE_GAP = 6.0
TABLE_WIDTH = (CONTENT_WIDTH - TABLE_GAP) / 2

ITEM_COLUMNS: List[Tuple[str, float]] = [
    ("S.No", 8.0), ("GSM", 11.0), ("BF", 9.0), ("Shade", 16.0),
    ("Size", 11.0), ("Reel", 21.0), ("Weight", 16.0),
]
QC_COLUMNS: List[Tuple[str, float]] = [
    ("Reel No", 32.0), ("GSM", 20.0), ("BF", 20.0), ("Cobb", 20.0),
]

SUBTOTALS_PER_ROW = 3
SUBTOTAL_LINE_HEIGHT = 5.0
FOOTER_BOX_HEIGHT = 10.0
SECTION_GAP = 6.0

LEADING_NUMBER = re.compile(r"^\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)")


# ============================================================================
# PURE HELPERS
# ============================================================================

def leading_number(value: Any) -> float:
    """Numeric prefix of a value ("08001-25" -> 8001.0); 0 when there is none."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if not math.isnan(float(value)) else 0.0
    match = LEADING_NUMBER.match(str(value))
    return float(match.group(0)) if match else 0.0


def round_half_up(value: Union[float, int, str, None]) -> int:
    if value is None or value == "":
        return 0
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def display_value(value: Any) -> str:
    """Mixed-type spec values as printed: 80.0 -> "80", None -> ""."""
    if value is None:
        return ""
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else f"{value:g}"
    return str(value).strip()


def sort_items(items: Sequence[schemas.DispatchItem]) -> List[schemas.DispatchItem]:
    """Order by size, gsm, bf (numeric), shade (text), then reel (numeric, then text)."""
    def key(item: schemas.DispatchItem):
        return (
            leading_number(item.size),
            leading_number(item.gsm),
            leading_number(item.bf),
            display_value(item.shade),
            leading_number(item.reel),
            display_value(item.reel),
        )
    return sorted(items, key=key)


def table_row_count(item_count: int, min_rows: int) -> int:
    return max(math.ceil(item_count / 2), min_rows)


def rows_fitting(top: float, bottom: float = PAGE_BOTTOM) -> int:
    """Data rows that fit under a table header starting at `top`."""
    return max(0, int((bottom - top - HEADER_ROW_HEIGHT) // ROW_HEIGHT))


FIRST_PAGE_ROWS = rows_fitting(FIRST_PAGE_TABLE_TOP)
CONTINUATION_PAGE_ROWS = rows_fitting(CONTINUATION_TABLE_TOP)


def plan_pages(total_rows: int, first_capacity: int, capacity: int) -> List[Tuple[int, int]]:
    """
    Split `total_rows` table rows into per-page [start, end) ranges.

    The first page holds `first_capacity` rows, every later page `capacity`.
    """
    if capacity < 1:
        raise ValueError("Page capacity must be at least one row")
    if first_capacity < 1:
        raise ValueError("First page capacity must be at least one row")
    if total_rows <= 0:
        return [(0, 0)]
    ranges = []
    start, cap = 0, first_capacity
    while start < total_rows:
        end = min(total_rows, start + cap)
        ranges.append((start, end))
        start, cap = end, capacity
    return ranges


def table_page_count(item_count: int, min_rows: int = 23) -> int:
    rows = table_row_count(item_count, min_rows)
    return len(plan_pages(rows, FIRST_PAGE_ROWS, CONTINUATION_PAGE_ROWS))


@dataclass
class SpecSubtotal:
    gsm: str
    bf: str
    shade: str
    count: int = 0
    weight: int = 0

    @property
    def label(self) -> str:
        return f"{self.gsm} gsm, {self.bf} bf, {self.shade} : {self.count} | {self.weight} kg"


def compute_subtotals(items: Sequence[schemas.DispatchItem]) -> List[SpecSubtotal]:
    """Group by (gsm, bf, shade) in order of first appearance."""
    groups: "OrderedDict[Tuple[str, str, str], SpecSubtotal]" = OrderedDict()
    for item in items:
        key = (display_value(item.gsm), display_value(item.bf), display_value(item.shade))
        if key not in groups:
            groups[key] = SpecSubtotal(*key)
        groups[key].count += 1
        groups[key].weight += round_half_up(item.weight)
    return list(groups.values())


@dataclass
class PackingSlipPlan:
    """Everything the drawing step needs, computed up front."""
    items: List[schemas.DispatchItem]
    rows: int
    page_ranges: List[Tuple[int, int]]
    subtotals: List[SpecSubtotal]
    total_items: int
    total_weight: int
    qc: List[schemas.QualityCheckRecord] = field(default_factory=list)

    def left(self, row: int) -> Optional[Tuple[int, schemas.DispatchItem]]:
        return (row, self.items[row]) if row < len(self.items) else None

    def right(self, row: int) -> Optional[Tuple[int, schemas.DispatchItem]]:
        index = self.rows + row
        return (index, self.items[index]) if index < len(self.items) else None


def build_packing_slip_plan(shipment: schemas.PackingSlipRequest, min_rows: int = 23) -> PackingSlipPlan:
    if min_rows < 1:
        raise ValueError("Minimum table rows must be at least 1")
    items = sort_items(shipment.items)
    rows = table_row_count(len(items), min_rows)
    return PackingSlipPlan(
        items=items,
        rows=rows,
        page_ranges=plan_pages(rows, FIRST_PAGE_ROWS, CONTINUATION_PAGE_ROWS),
        subtotals=compute_subtotals(items),
        total_items=len(items),
        total_weight=sum(round_half_up(item.weight) for item in items),
        qc=list(shipment.qc or []),
    )


def split_qc_records(records: Sequence[schemas.QualityCheckRecord]):
    """Left/right halves by index midpoint; order is kept as supplied."""
    mid = math.ceil(len(records) / 2)
    return list(records[:mid]), list(records[mid:])


# ============================================================================
# DRAWING
# ============================================================================

def _item_cells(entry: Optional[Tuple[int, schemas.DispatchItem]]) -> List[str]:
    if entry is None:
        return [""] * len(ITEM_COLUMNS)
    index, item = entry
    return [
        str(index + 1),
        display_value(item.gsm),
        display_value(item.bf),
        display_value(item.shade),
        display_value(item.size),
        display_value(item.reel),
        str(round_half_up(item.weight)),
    ]


def _qc_cells(record: Optional[schemas.QualityCheckRecord]) -> List[str]:
    if record is None:
        return [""] * len(QC_COLUMNS)
    return [
        extract_reel_number(record.barcode_id),
        display_value(record.gsm),
        display_value(record.bf),
        display_value(record.cobb_value),
    ]


def draw_table(page: Page, x: float, top: float, columns: Sequence[Tuple[str, float]],
               rows: Sequence[Sequence[str]], first_row_index: int = 0) -> float:
    """
    Draw one table section and return its bottom y.

    Shaded header with a single rule beneath it, odd data rows shaded, no
    rules between data rows, outer border around the section.
    """
    width = sum(w for _title, w in columns)
    page.rect(x, top, width, HEADER_ROW_HEIGHT, fill=HEADER_FILL, stroke=False)
    col_x = x
    for title, col_width in columns:
        page.text(col_x + col_width / 2, top + HEADER_ROW_HEIGHT / 2 + 1.2, title, font_size=8, bold=True, align="center")
        col_x += col_width
    page.line(x, top + HEADER_ROW_HEIGHT, x + width, top + HEADER_ROW_HEIGHT)

    y = top + HEADER_ROW_HEIGHT
    for offset, cells in enumerate(rows):
        # 1-based row numbers: odd rows are shaded
        if (first_row_index + offset) % 2 == 0:
            page.rect(x, y, width, ROW_HEIGHT, fill=ROW_SHADE, stroke=False)
        col_x = x
        for (_title, col_width), cell in zip(columns, cells):
            if cell:
                page.text(col_x + col_width / 2, y + ROW_HEIGHT / 2 + 1.1, cell, font_size=8, align="center")
            col_x += col_width
        y += ROW_HEIGHT

    page.rect(x, top, width, y - top)
    return y


class _Cursor:
    """Current page and y position while content flows down the document."""

    def __init__(self, document: Document, page: Page, y: float):
        self.document = document
        self.page = page
        self.y = y

    def new_page(self, caption: str) -> None:
        self.page = self.document.add_page()
        self.page.text(MARGIN_X, 10, caption, font_size=8)
        self.y = CONTINUATION_TABLE_TOP

    def ensure_space(self, height: float, caption: str) -> None:
        if self.y + height > PAGE_BOTTOM:
            self.new_page(caption)


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit - 3] + "..."


def _draw_first_page_header(page: Page, shipment: schemas.PackingSlipRequest,
                            assets: BrandingAssets, settings: Settings) -> None:
    if assets.logo is not None:
        width, height = fit_image(assets.logo, 16, 16)
        page.image(MARGIN_X, 4, width, height, assets.logo, alt_text="logo")

    if assets.header is not None:
        width, height = fit_image(assets.header, 120, 16)
        page.image((PAGE_WIDTH - width) / 2, 3, width, height, assets.header, alt_text="header")
    else:
        page.text(PAGE_WIDTH / 2 - 15, 13, settings.mill_name, font_size=18, bold=True, align="center")
        page.text(150, 11, settings.mill_tagline, font_size=10)
        page.text(150, 16, settings.plant_address, font_size=8, bold=True)

    page.text(PAGE_WIDTH / 2, 27, "PACKING SLIP", font_size=16, bold=True, align="center")
    page.text(PAGE_WIDTH - MARGIN_X, 27, f"Date: {shipment.dispatch_date.strftime('%d/%m/%Y')}", font_size=11, align="right")

    client = shipment.client
    right_x = 135
    page.text(MARGIN_X, 36, f"Party: {_truncate(client.company_name or '', 48)}", font_size=11, bold=True)
    page.text(right_x, 36, f"Dispatch No: {shipment.dispatch_number}", font_size=11)
    page.text(MARGIN_X, 43, f"Address: {_truncate(client.address or '', 48)}", font_size=10)
    page.text(right_x, 43, f"Vehicle No.: {shipment.vehicle_number}", font_size=10)

    contact = " / ".join(part for part in (client.contact_person, client.mobile) if part)
    page.text(MARGIN_X, 50, f"Contact: {contact}", font_size=10)
    driver = shipment.driver_name
    if shipment.driver_mobile:
        driver = f"{driver} ({shipment.driver_mobile})"
    page.text(right_x, 50, f"Driver: {driver}", font_size=10)
    if shipment.reference_number:
        page.text(right_x, 57, f"Reference No: {shipment.reference_number}", font_size=10)


def _draw_item_tables(cursor: _Cursor, plan: PackingSlipPlan, caption: str) -> None:
    right_x = MARGIN_X + TABLE_WIDTH + TABLE_GAP
    for page_index, (start, end) in enumerate(plan.page_ranges):
        if page_index > 0:
            cursor.new_page(caption)
        left_rows = [_item_cells(plan.left(row)) for row in range(start, end)]
        right_rows = [_item_cells(plan.right(row)) for row in range(start, end)]
        draw_table(cursor.page, MARGIN_X, cursor.y, ITEM_COLUMNS, left_rows, first_row_index=start)
        cursor.y = draw_table(cursor.page, right_x, cursor.y, ITEM_COLUMNS, right_rows, first_row_index=start)


def _draw_subtotals(cursor: _Cursor, subtotals: Sequence[SpecSubtotal], caption: str) -> None:
    if not subtotals:
        return
    lines = math.ceil(len(subtotals) / SUBTOTALS_PER_ROW)
    cursor.y += SECTION_GAP
    cursor.ensure_space(6 + SUBTOTAL_LINE_HEIGHT, caption)
    cursor.page.text(MARGIN_X, cursor.y + 4, "Spec-wise Summary", font_size=9, bold=True)
    cursor.y += 6

    column_width = CONTENT_WIDTH / SUBTOTALS_PER_ROW
    for line in range(lines):
        cursor.ensure_space(SUBTOTAL_LINE_HEIGHT, caption)
        for col in range(SUBTOTALS_PER_ROW):
            index = line * SUBTOTALS_PER_ROW + col
            if index >= len(subtotals):
                break
            cursor.page.text(MARGIN_X + col * column_width, cursor.y + 4, subtotals[index].label, font_size=8)
        cursor.y += SUBTOTAL_LINE_HEIGHT


def _draw_footer(cursor: _Cursor, plan: PackingSlipPlan, caption: str) -> None:
    cursor.y += SECTION_GAP
    cursor.ensure_space(FOOTER_BOX_HEIGHT, caption)
    page, y = cursor.page, cursor.y
    boxes = [
        (MARGIN_X, 40.0, f"Total Items: {plan.total_items}"),
        (MARGIN_X + 40.0, 48.0, f"Total Weight: {plan.total_weight} kg"),
        (MARGIN_X + 88.0, 42.0, "Freight:"),
    ]
    for x, width, label in boxes:
        page.rect(x, y, width, FOOTER_BOX_HEIGHT, line_width=0.4)
        page.text(x + 3, y + FOOTER_BOX_HEIGHT / 2 + 1.5, label, font_size=10, bold=True)

    # Signature labels, unbordered
    page.text(155, y + FOOTER_BOX_HEIGHT / 2 + 1.5, "Manager", font_size=10, bold=True, align="center")
    page.text(185, y + FOOTER_BOX_HEIGHT / 2 + 1.5, "In-charge", font_size=10, bold=True, align="center")
    cursor.y = y + FOOTER_BOX_HEIGHT


def _draw_qc_appendix(cursor: _Cursor, records: Sequence[schemas.QualityCheckRecord], caption: str) -> None:
    left, right = split_qc_records(records)
    rows = len(left)
    title_height = 6.0

    cursor.y += SECTION_GAP
    if rows_fitting(cursor.y + title_height) < 1:
        cursor.new_page(caption)
    cursor.page.text(MARGIN_X, cursor.y + 4, "Quality Check", font_size=10, bold=True)
    cursor.y += title_height

    qc_width = sum(w for _title, w in QC_COLUMNS)
    right_x = MARGIN_X + qc_width + TABLE_GAP
    ranges = plan_pages(rows, rows_fitting(cursor.y), CONTINUATION_PAGE_ROWS)
    for page_index, (start, end) in enumerate(ranges):
        if page_index > 0:
            cursor.new_page(caption)
        left_rows = [_qc_cells(left[row]) for row in range(start, end)]
        right_rows = [_qc_cells(right[row] if row < len(right) else None) for row in range(start, end)]
        draw_table(cursor.page, MARGIN_X, cursor.y, QC_COLUMNS, left_rows, first_row_index=start)
        cursor.y = draw_table(cursor.page, right_x, cursor.y, QC_COLUMNS, right_rows, first_row_index=start)


def _number_pages(document: Document) -> None:
    total = document.page_count
    for number, page in enumerate(document.pages, start=1):
        page.text(PAGE_WIDTH / 2, PAGE_HEIGHT - 4, f"Page {number} of {total}", font_size=7, align="center")


def render_packing_slip(
    shipment: schemas.PackingSlipRequest,
    assets: Optional[BrandingAssets] = None,
    settings: Optional[Settings] = None,
) -> Document:
    """
    Lay out the packing slip for one dispatch on A4 portrait pages.

    Raises DocumentGenerationError when the slip cannot be produced as a whole.
    """
    settings = settings or default_settings
    if assets is None:
        assets = load_branding_assets(settings)

    try:
        plan = build_packing_slip_plan(shipment, settings.packing_slip_min_rows)
        caption = f"Packing Slip - Dispatch No: {shipment.dispatch_number} (contd.)"

        document = Document(width=PAGE_WIDTH, height=PAGE_HEIGHT, title=f"Packing Slip {shipment.dispatch_number}")
        first_page = document.add_page()
        _draw_first_page_header(first_page, shipment, assets, settings)

        cursor = _Cursor(document, first_page, FIRST_PAGE_TABLE_TOP)
        _draw_item_tables(cursor, plan, caption)
        _draw_subtotals(cursor, plan.subtotals, caption)
        _draw_footer(cursor, plan, caption)
        if plan.qc:
            _draw_qc_appendix(cursor, plan.qc, caption)
        _number_pages(document)
    except Exception as e:
        logger.error(f"Error generating packing slip for dispatch {shipment.dispatch_number}: {e}")
        raise DocumentGenerationError("Failed to generate packing slip PDF", document_type="packing_slip") from e

    logger.info(
        f"Generated packing slip {shipment.dispatch_number}: {plan.total_items} items, "
        f"{plan.total_weight} kg, {document.page_count} page(s)"
    )
    return document


# ============================================================================
# DISPATCH RECORD CONVERSION
# ============================================================================

def extract_gsm_from_spec(spec: Optional[str]) -> str:
    if not spec:
        return ''
    match = re.search(r'(\d+)\s*gsm', spec, re.IGNORECASE)
    return match.group(1) if match else ''


def extract_bf_from_spec(spec: Optional[str]) -> str:
    if not spec:
        return ''
    match = re.search(r'(\d+(?:\.\d+)?)\s*bf', spec, re.IGNORECASE)
    return match.group(1) if match else ''


def extract_shade_from_spec(spec: Optional[str]) -> str:
    if not spec:
        return ''
    for part in (p.strip() for p in spec.split(',')):
        lowered = part.lower()
        if part and 'gsm' not in lowered and 'bf' not in lowered and not part[0].isdigit():
            return part
    return ''


def _dispatch_item(raw: Dict[str, Any]) -> schemas.DispatchItem:
    spec = raw.get('paper_spec') or ''
    barcode_id = raw.get('barcode_id')
    width = raw.get('width_inches', raw.get('size'))
    return schemas.DispatchItem(
        gsm=raw.get('gsm') if raw.get('gsm') not in (None, '') else extract_gsm_from_spec(spec),
        bf=raw.get('bf') if raw.get('bf') not in (None, '') else extract_bf_from_spec(spec),
        shade=raw.get('shade') or extract_shade_from_spec(spec),
        size=leading_number(width) if width not in (None, '') else '',
        reel=extract_reel_number(barcode_id) or raw.get('qr_code') or barcode_id or raw.get('reel') or '',
        weight=round_half_up(raw.get('weight_kg', raw.get('weight')) or 0),
        barcode_id=barcode_id,
        order_frontend_id=raw.get('order_frontend_id'),
    )


def convert_dispatch_to_packing_slip(dispatch: Union[schemas.DispatchRecordPayload, Dict[str, Any]]) -> schemas.PackingSlipRequest:
    """Convert a stored dispatch record into the packing slip payload."""
    if isinstance(dispatch, dict):
        dispatch = schemas.DispatchRecordPayload(**dispatch)

    raw_items = dispatch.items or dispatch.dispatch_items or []
    client = dispatch.client or {}
    return schemas.PackingSlipRequest(
        dispatch_number=dispatch.dispatch_number or '',
        reference_number=dispatch.reference_number,
        dispatch_date=dispatch.dispatch_date or datetime.now(),
        client=schemas.ClientDetails(
            company_name=client.get('company_name') or 'Unknown Client',
            contact_person=client.get('contact_person') or '',
            address=client.get('address') or '',
            mobile=client.get('mobile') or client.get('phone'),
        ),
        vehicle_number=dispatch.vehicle_number or '',
        driver_name=dispatch.driver_name or '',
        driver_mobile=dispatch.driver_mobile or '',
        items=[_dispatch_item(raw) for raw in raw_items],
        qc=dispatch.qc,
    )


def packing_slip_filename(dispatch_number: str, on: Optional[date] = None) -> str:
    on = on or date.today()
    return f"packing_slip_{dispatch_number}_{on.isoformat()}.pdf"
