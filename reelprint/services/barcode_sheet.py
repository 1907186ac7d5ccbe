"""
Barcode sheet for a production plan.

Every cut roll of a plan gets a full-width Code128 with its size, weight and
paper spec underneath, grouped under the jumbo roll it is cut from. Jumbos
are renumbered JR-00001, JR-00002, ... in sorted order of their ids.
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Sequence

from .. import schemas
from ..exceptions import DocumentGenerationError
from .barcode_renderer import render_barcode
from .layout import A4_PORTRAIT_MM, Document, Page
from .packing_slip import display_value

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4_PORTRAIT_MM
MARGIN_X = 20.0
MARGIN_Y = 20.0
LABEL_WIDTH = PAGE_WIDTH - 2 * MARGIN_X
BARCODE_WIDTH = LABEL_WIDTH * 0.8
BARCODE_HEIGHT = 25.0
ITEMS_PER_PAGE = 8
UNGROUPED = "ungrouped"
GREY = (100, 100, 100)


@dataclass
class JumboGroup:
    jumbo_id: str
    display_id: str
    rolls: List[schemas.CutRollEntry] = field(default_factory=list)

    @property
    def total_weight(self) -> float:
        return sum(roll.weight_kg for roll in self.rolls)


def sequential_jumbo_id(jumbo_id: Optional[str], all_ids: Sequence[str]) -> str:
    """JR-00001 style id from the position of `jumbo_id` among the sorted unique ids."""
    if not jumbo_id:
        return "Unknown"
    unique = sorted({i for i in all_ids if i and i != UNGROUPED})
    if jumbo_id in unique:
        return f"JR-{unique.index(jumbo_id) + 1:05d}"
    return jumbo_id


def group_by_jumbo(rolls: Sequence[schemas.CutRollEntry]) -> List[JumboGroup]:
    """Groups in order of first appearance; rolls without a jumbo go to 'Ungrouped Items'."""
    all_ids = [roll.jumbo_roll_frontend_id or UNGROUPED for roll in rolls]
    groups: "OrderedDict[str, JumboGroup]" = OrderedDict()
    for roll, jumbo_id in zip(rolls, all_ids):
        if jumbo_id not in groups:
            display = "Ungrouped Items" if jumbo_id == UNGROUPED else sequential_jumbo_id(jumbo_id, all_ids)
            groups[jumbo_id] = JumboGroup(jumbo_id=jumbo_id, display_id=display)
        groups[jumbo_id].rolls.append(roll)
    return list(groups.values())


def roll_info_line(roll: schemas.CutRollEntry) -> str:
    line = f'{display_value(roll.width_inches)}" x {display_value(roll.weight_kg)}kg'
    specs = roll.paper_specs
    if specs:
        line += f" | {display_value(specs.gsm)}gsm, BF:{display_value(specs.bf)}, {specs.shade or ''}"
    return line


class _SheetCursor:

    def __init__(self, document: Document):
        self.document = document
        self.page: Page = document.add_page()
        self.y = MARGIN_Y
        self.items_on_page = 0

    def break_if(self, reserve: float) -> None:
        if self.items_on_page >= ITEMS_PER_PAGE or self.y > PAGE_HEIGHT - reserve:
            self.page = self.document.add_page()
            self.y = MARGIN_Y
            self.items_on_page = 0


def _draw_roll(cursor: _SheetCursor, roll: schemas.CutRollEntry, last_in_group: bool) -> None:
    cursor.break_if(80)
    page = cursor.page
    value = roll.barcode_value
    barcode = render_barcode(value)
    if barcode.is_fallback:
        page.text(PAGE_WIDTH / 2, cursor.y, f"|||| {value} ||||", font_size=12, bold=True, align="center")
        cursor.y += 12
    else:
        x = MARGIN_X + (LABEL_WIDTH - BARCODE_WIDTH) / 2
        page.image(x, cursor.y, BARCODE_WIDTH, BARCODE_HEIGHT, barcode.image, alt_text=value)
        cursor.y += BARCODE_HEIGHT + 8

    page.text(PAGE_WIDTH / 2, cursor.y, roll_info_line(roll), font_size=10, align="center", color=(60, 60, 60))
    cursor.y += 12

    if not last_in_group:
        page.line(MARGIN_X + 40, cursor.y, PAGE_WIDTH - MARGIN_X - 40, cursor.y)
        cursor.y += 10
    cursor.items_on_page += 1


def render_barcode_sheet(sheet: schemas.BarcodeSheetRequest, generated_at: Optional[datetime] = None) -> Document:
    """
    Lay out the plan's cut roll barcodes on A4 pages.

    Raises ValueError when there is nothing to print and
    DocumentGenerationError when the sheet cannot be drawn.
    """
    if not sheet.cut_rolls:
        raise ValueError("No cut rolls available for export")

    generated_at = generated_at or datetime.now()
    plan_name = sheet.plan_name or "Plan Details"
    document = Document(width=PAGE_WIDTH, height=PAGE_HEIGHT, title=f"Barcode Labels - {plan_name}")
    try:
        cursor = _SheetCursor(document)
        page = cursor.page
        page.text(PAGE_WIDTH / 2, cursor.y, f"Barcode Labels - {plan_name}", font_size=16, bold=True, align="center")
        cursor.y += 15
        page.text(PAGE_WIDTH / 2, cursor.y, f"Generated on: {generated_at.strftime('%d/%m/%Y %H:%M')}", align="center")
        cursor.y += 8
        page.text(PAGE_WIDTH / 2, cursor.y, f"Total Items: {len(sheet.cut_rolls)}", align="center")
        cursor.y += 20

        for group in group_by_jumbo(sheet.cut_rolls):
            cursor.break_if(100)
            cursor.page.text(PAGE_WIDTH / 2, cursor.y, group.display_id, font_size=18, bold=True,
                             align="center", color=(40, 40, 40))
            cursor.y += 8
            summary = f"{len(group.rolls)} cut rolls - Total Weight: {group.total_weight:.1f} kg"
            cursor.page.text(PAGE_WIDTH / 2, cursor.y, summary, align="center", color=GREY)
            cursor.y += 15

            for index, roll in enumerate(group.rolls):
                _draw_roll(cursor, roll, last_in_group=index == len(group.rolls) - 1)
            cursor.y += 20

        total = document.page_count
        for number, numbered in enumerate(document.pages, start=1):
            numbered.text(PAGE_WIDTH - 20, PAGE_HEIGHT - 10, f"Page {number} of {total}", font_size=8,
                          align="right", color=GREY)
    except Exception as e:
        logger.error(f"Error generating barcode sheet for {plan_name}: {e}")
        raise DocumentGenerationError("Failed to export barcode PDF", document_type="barcode_sheet") from e

    logger.info(f"Generated barcode sheet '{plan_name}': {len(sheet.cut_rolls)} rolls, {document.page_count} page(s)")
    return document


def barcode_sheet_filename(plan_name: Optional[str], on: Optional[date] = None) -> str:
    on = on or date.today()
    return f"barcode-labels-{plan_name or 'plan'}-{on.isoformat()}.pdf"
