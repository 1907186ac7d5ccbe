from datetime import date

import pytest

from conftest import make_item
from reelprint import schemas
from reelprint.exceptions import DocumentGenerationError
from reelprint.services import packing_slip
from reelprint.services.layout import ROW_SHADE, Line, Rect, Text
from reelprint.services.packing_slip import (
    CONTINUATION_PAGE_ROWS,
    FIRST_PAGE_ROWS,
    PAGE_BOTTOM,
    PAGE_HEIGHT,
    build_packing_slip_plan,
    compute_subtotals,
    convert_dispatch_to_packing_slip,
    leading_number,
    packing_slip_filename,
    plan_pages,
    render_packing_slip,
    round_half_up,
    sort_items,
    split_qc_records,
    table_page_count,
)
from reelprint.services.pdf_renderer import render_pdf


class TestHelpers:

    @pytest.mark.parametrize("value, expected", [
        ("08001-25", 8001.0),
        ("12.5in", 12.5),
        (36, 36.0),
        ("Natural", 0.0),
        ("", 0.0),
        (None, 0.0),
    ])
    def test_leading_number(self, value, expected):
        assert leading_number(value) == expected

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(45.5) == 46
        assert round_half_up(45.49) == 45
        assert round_half_up(None) == 0

    def test_page_capacities(self):
        assert FIRST_PAGE_ROWS == 33
        assert CONTINUATION_PAGE_ROWS == 40


class TestSorting:

    def test_sorted_by_size_gsm_bf_shade_reel(self, five_items):
        ordered = sort_items(five_items)
        assert [item.reel for item in ordered] == ["08005-25", "08001-25", "08002-25", "08003-25", "08004-25"]

    def test_numeric_not_lexicographic(self):
        items = [make_item("100", 80, 18, "White", "1", 10), make_item("36", 80, 18, "White", "2", 10)]
        assert [item.reel for item in sort_items(items)] == ["2", "1"]

    def test_shade_compared_as_text(self):
        items = [make_item(36, 80, 18, "White", "1", 10), make_item(36, 80, 18, "Golden", "2", 10)]
        assert [item.shade for item in sort_items(items)] == ["Golden", "White"]

    def test_sort_is_stable_for_equal_keys(self):
        items = [make_item(36, 80, 18, "White", "5", w) for w in (10, 20, 30)]
        assert [item.weight for item in sort_items(items)] == [10, 20, 30]


class TestPagination:

    @pytest.mark.parametrize("item_count, pages", [(0, 1), (1, 1), (46, 1), (66, 1), (67, 2), (146, 2), (147, 3)])
    def test_table_page_count(self, item_count, pages):
        assert table_page_count(item_count) == pages

    def test_plan_pages(self):
        assert plan_pages(0, 33, 40) == [(0, 0)]
        assert plan_pages(23, 33, 40) == [(0, 23)]
        assert plan_pages(80, 33, 40) == [(0, 33), (33, 73), (73, 80)]

    def test_plan_pages_rejects_zero_capacity(self):
        with pytest.raises(ValueError):
            plan_pages(10, 33, 0)

    def test_left_table_fills_before_right(self):
        items = [make_item(36, 80, 18, "White", f"{i:05d}-25", 10) for i in range(1, 51)]
        plan = build_packing_slip_plan(schemas.PackingSlipRequest(items=items))
        assert plan.rows == 25
        assert plan.left(0)[0] == 0
        assert plan.right(0)[0] == 25
        assert plan.right(24)[0] == 49
        assert plan.left(24)[1].reel == "00025-25"

    def test_minimum_rows_leave_right_table_empty(self, shipment):
        plan = build_packing_slip_plan(shipment)
        assert plan.rows == 23
        assert all(plan.right(row) is None for row in range(plan.rows))
        assert plan.left(4) is not None
        assert plan.left(5) is None


class TestSubtotals:

    def test_grouped_by_spec_in_first_appearance_order(self, five_items):
        labels = [s.label for s in compute_subtotals(sort_items(five_items))]
        assert labels == [
            "80 gsm, 18 bf, Golden : 1 | 46 kg",
            "100 gsm, 20 bf, Natural : 1 | 61 kg",
            "80 gsm, 18 bf, White : 2 | 122 kg",
            "120 gsm, 22 bf, Natural : 1 | 88 kg",
        ]

    def test_counts_and_weights_add_up(self, five_items):
        plan = build_packing_slip_plan(schemas.PackingSlipRequest(items=five_items))
        assert sum(s.count for s in plan.subtotals) == plan.total_items == 5
        assert sum(s.weight for s in plan.subtotals) == plan.total_weight == 317


class TestRenderPackingSlip:

    def test_short_shipment_single_page(self, shipment, no_assets, test_settings):
        document = render_packing_slip(shipment, assets=no_assets, settings=test_settings)
        assert document.page_count == 1

        texts = document.texts()
        assert "PACKING SLIP" in texts
        assert "Party: Acme Packaging" in texts
        assert "Dispatch No: DSP-0042" in texts
        assert "Reference No: REF-7" in texts
        assert "Total Items: 5" in texts
        assert "Total Weight: 317 kg" in texts
        assert "Freight:" in texts
        assert "Manager" in texts and "In-charge" in texts
        assert "Page 1 of 1" in texts
        # no header banner loaded, so the mill name is printed as text
        assert test_settings.mill_name in texts

        # both tables are padded to 23 rows, every other row shaded
        shaded = [cmd for cmd in document.pages[0].commands if isinstance(cmd, Rect) and cmd.fill == ROW_SHADE]
        assert len(shaded) == 2 * 12

        assert render_pdf(document).startswith(b"%PDF")

    def test_second_page_when_rows_exceed_first_page(self, no_assets, test_settings):
        items = [make_item(36, 80, 18, "White", f"{i:05d}-25", 10) for i in range(1, 68)]
        shipment = schemas.PackingSlipRequest(dispatch_number="DSP-0099", items=items)
        document = render_packing_slip(shipment, assets=no_assets, settings=test_settings)

        assert document.page_count == 2
        first, second = document.pages[0].texts(), document.pages[1].texts()
        # 34 table rows: left holds serials 1-34, right holds 35-67
        assert "33" in first and "35" in first and "67" in first
        assert "34" not in first
        assert "34" in second
        assert "Total Items: 67" in second
        assert "Page 2 of 2" in second
        assert any("(contd.)" in text for text in second)

    def test_qc_appendix(self, shipment, no_assets, test_settings):
        qc = [
            schemas.QualityCheckRecord(barcode_id=f"CR_0900{i}-25", gsm=80, bf=18, cobb_value=32)
            for i in range(1, 6)
        ]
        shipment = shipment.model_copy(update={"qc": qc})
        document = render_packing_slip(shipment, assets=no_assets, settings=test_settings)
        texts = document.texts()
        assert "Quality Check" in texts
        assert "Cobb" in texts
        assert "09005-25" in texts

    def test_qc_appendix_flows_across_pages(self, shipment, no_assets, test_settings):
        qc = [
            schemas.QualityCheckRecord(barcode_id=f"CR_{i:05d}-25", gsm=80, bf=18, cobb_value=30 + i % 5)
            for i in range(1, 121)
        ]
        shipment = shipment.model_copy(update={"qc": qc})
        document = render_packing_slip(shipment, assets=no_assets, settings=test_settings)
        reels = {f"{i:05d}-25" for i in range(1, 121)}

        # page index and y of every QC reel cell
        placed = {}
        qc_pages = set()
        for index, page in enumerate(document.pages):
            for command in page.commands:
                if isinstance(command, Text) and command.text in reels:
                    assert command.text not in placed, f"{command.text} drawn twice"
                    placed[command.text] = (index, command.y)
                    qc_pages.add(index)
        assert set(placed) == reels
        assert len(qc_pages) >= 2

        # every page carrying QC rows repeats the header for both halves
        for index in qc_pages:
            assert document.pages[index].texts().count("Cobb") == 2
        assert document.pages[max(qc_pages)].texts()[0] == "Packing Slip - Dispatch No: DSP-0042 (contd.)"

        # right half row i sits beside left half row i
        left, right = split_qc_records(qc)
        for left_record, right_record in zip(left, right):
            assert placed[right_record.barcode_id[3:]] == placed[left_record.barcode_id[3:]]

        for page in document.pages:
            for command in page.commands:
                if isinstance(command, Rect):
                    assert command.y + command.height <= PAGE_HEIGHT
                elif isinstance(command, Line):
                    assert max(command.y1, command.y2) <= PAGE_HEIGHT
                else:
                    assert command.y <= PAGE_HEIGHT
        for index in qc_pages:
            rows = [y for page_index, y in placed.values() if page_index == index]
            assert max(rows) <= PAGE_BOTTOM

    def test_failure_raises_generation_error(self, shipment, no_assets, test_settings, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(packing_slip, "_draw_footer", broken)
        with pytest.raises(DocumentGenerationError):
            render_packing_slip(shipment, assets=no_assets, settings=test_settings)


def test_split_qc_records():
    records = [schemas.QualityCheckRecord(barcode_id=str(i)) for i in range(5)]
    left, right = split_qc_records(records)
    assert [r.barcode_id for r in left] == ["0", "1", "2"]
    assert [r.barcode_id for r in right] == ["3", "4"]
    assert split_qc_records([]) == ([], [])


def test_convert_dispatch_record():
    shipment = convert_dispatch_to_packing_slip({
        "dispatch_number": "DSP-0100",
        "client": {"company_name": "Acme Packaging", "phone": "9800000000"},
        "vehicle_number": "MP09 AB 1234",
        "dispatch_items": [
            {"barcode_id": "CR_08001-25", "paper_spec": "90gsm, 18bf, Natural", "width_inches": "36", "weight_kg": 51.5},
            {"qr_code": "3387", "gsm": 120, "bf": 22, "shade": " White ", "size": 42, "weight_kg": 80.2},
        ],
    })
    assert shipment.client.mobile == "9800000000"
    first, second = shipment.items
    assert str(first.gsm) == "90"
    assert str(first.bf) == "18"
    assert first.shade == "Natural"
    assert first.size == 36.0
    assert first.reel == "08001-25"
    assert first.weight == 52
    assert second.reel == "3387"
    assert second.shade == "White"


def test_packing_slip_filename():
    assert packing_slip_filename("DSP-0042", date(2025, 3, 15)) == "packing_slip_DSP-0042_2025-03-15.pdf"
