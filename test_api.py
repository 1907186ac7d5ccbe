import pytest
from fastapi.testclient import TestClient

from reelprint.main import app
from reelprint.services import label_generator, packing_slip
from reelprint.services.assets import BrandingAssets


@pytest.fixture
def client(monkeypatch):
    # keep document endpoints off the network
    monkeypatch.setattr(label_generator, "load_branding_assets", lambda settings=None: BrandingAssets())
    monkeypatch.setattr(packing_slip, "load_branding_assets", lambda settings=None: BrandingAssets())
    return TestClient(app)


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


class TestScanEndpoints:

    def test_decode_appends_year_and_records_history(self, client):
        response = client.post("/api/qr/decode", json={"input": "  CR_08001 ", "year": "25"})
        assert response.status_code == 200
        body = response.json()
        assert body["code"] == "CR_08001-25"
        assert body["kind"] == "cut_roll"
        assert [entry["code"] for entry in body["history"]] == ["CR_08001-25"]

    def test_decode_rejects_bare_prefix(self, client):
        response = client.post("/api/qr/decode", json={"input": "CR_"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid QR code format"

    def test_decode_rejects_bad_year(self, client):
        response = client.post("/api/qr/decode", json={"input": "CR_08001", "year": "2025"})
        assert response.status_code == 400

    def test_barcode_display(self, client):
        response = client.post("/api/barcode/display", json={"kind": "jumbo", "raw": "JR_00001-25"})
        assert response.json()["display"] == "00001-25"

    def test_lineage(self, client, scan_result):
        response = client.post("/api/barcode/lineage", json=scan_result.model_dump(mode="json"))
        assert response.json() == {
            "code": "CR_08001-25",
            "reel_number": "08001-25",
            "set_display": "00002-25",
            "jumbo_display": "00001-25",
        }

    def test_lineage_accepts_legacy_set_field(self, client, scan_result):
        payload = scan_result.model_dump(mode="json")
        payload["parent_rolls"] = {"parent_118_barcode": "SET_00009-25"}
        response = client.post("/api/barcode/lineage", json=payload)
        assert response.json()["set_display"] == "00009-25"

    def test_update_weight(self, client, scan_result):
        payload = {"scan": scan_result.model_dump(mode="json"), "weight_kg": 498.5, "location": "bay-3"}
        response = client.put("/api/qr/update-weight", json=payload)
        assert response.status_code == 200
        body = response.json()
        assert body["scan"]["roll_details"]["status"] == "available"
        assert body["new_weight_kg"] == 498.5
        assert body["is_increase"] is False

    def test_update_weight_rejects_unreasonable_weight(self, client, scan_result):
        payload = {"scan": scan_result.model_dump(mode="json"), "weight_kg": 1500}
        assert client.put("/api/qr/update-weight", json=payload).status_code == 400

    def test_update_weight_validation_error(self, client, scan_result):
        payload = {"scan": scan_result.model_dump(mode="json"), "weight_kg": 0}
        assert client.put("/api/qr/update-weight", json=payload).status_code == 422

    def test_update_weight_rejects_unknown_status(self, client, scan_result):
        scan = scan_result.model_dump(mode="json")
        scan["roll_details"]["status"] = "bogus_status"
        assert client.put("/api/qr/update-weight", json={"scan": scan, "weight_kg": 498.5}).status_code == 422

    def test_history_csv_download(self, client):
        history = [{"code": "CR_08002-25", "status": "allocated"}, {"code": "CR_08001-25", "weight_kg": 512.4}]
        response = client.post("/api/qr/history/csv", json=history)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["content-disposition"] == "attachment; filename=scan_history.csv"
        header, first, second = response.text.strip().split("\n")
        assert header.startswith('"Code","Barcode"')
        assert first.startswith('"CR_08002-25","","","","allocated"')
        assert '"512.4"' in second

    def test_scan_summary(self, client, scan_result):
        response = client.post("/api/qr/summary", json=scan_result.model_dump(mode="json"))
        assert response.json() == {
            "code": "CR_08001-25",
            "code_display": "CR_08001-25",
            "weight": "512.40 kg",
            "dimensions": '36"',
            "paper_spec": "80gsm, 18bf, White",
        }

    def test_barcode_image(self, client):
        response = client.get("/api/barcode/CR_08001-25/image")
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.headers["x-barcode-fallback"] == "false"

    def test_qr_image_rejects_invalid_code(self, client):
        assert client.get("/api/qr/CR_/image").status_code == 400


class TestDocumentEndpoints:

    def test_label_pdf_opens_inline(self, client, scan_result):
        response = client.post("/api/labels/pdf", json=scan_result.model_dump(mode="json"))
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == "inline; filename=label_08001-25.pdf"
        assert response.content.startswith(b"%PDF")

    def test_label_pdf_download(self, client, scan_result):
        response = client.post("/api/labels/pdf?mode=download", json=scan_result.model_dump(mode="json"))
        assert response.headers["content-disposition"].startswith("attachment;")

    def test_label_batch_requires_rolls(self, client):
        assert client.post("/api/labels/batch/pdf", json=[]).status_code == 400

    def test_barcode_sheet(self, client):
        sheet = {
            "plan_name": "Plan14",
            "cut_rolls": [{"barcode_id": "CR_00001-25", "width_inches": 36, "weight_kg": 250, "jumbo_roll_frontend_id": "INV-367"}],
        }
        response = client.post("/api/barcode-sheet/pdf", json=sheet)
        assert response.status_code == 200
        assert response.headers["content-disposition"].startswith("attachment; filename=barcode-labels-Plan14-")

    def test_barcode_sheet_requires_rolls(self, client):
        assert client.post("/api/barcode-sheet/pdf", json={"cut_rolls": []}).status_code == 400

    def test_packing_slip_downloads(self, client, shipment):
        response = client.post("/api/packing-slip/pdf", json=shipment.model_dump(mode="json"))
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"].startswith("attachment; filename=packing_slip_DSP-0042_")
        assert response.content.startswith(b"%PDF")

    def test_packing_slip_from_dispatch_record(self, client):
        record = {
            "dispatch_number": "DSP-0100",
            "client": {"company_name": "Acme Packaging"},
            "dispatch_items": [
                {"barcode_id": "CR_08001-25", "paper_spec": "90gsm, 18bf, Natural", "width_inches": 36, "weight_kg": 51.5},
            ],
        }
        response = client.post("/api/dispatch/packing-slip/pdf?mode=print", json=record)
        assert response.status_code == 200
        assert response.headers["content-disposition"].startswith("inline; filename=packing_slip_DSP-0100_")
