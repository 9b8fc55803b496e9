"""
End-to-end tests for the InvoiceEngine facade and the command-line entry point.
"""

import json
import random

import pytest

from invoice_ocr import InvoiceEngine, InvoiceExtraction
from invoice_ocr.fields import FIELD_NAMES
from invoice_ocr.tables import InvoiceLineItem
from invoice_ocr.utils.exceptions import InvalidInputError
from invoice_ocr.utils.helpers import NOT_FOUND
import main


RANDOM_VOCABULARY = (
    "Invoice", "No:", "TRN", "Date", "Total", "Sub Total", "VAT", "5%", "Qty", "UOM",
    "Rate", "Amount", "Description", "Item Code", "S.No", "Salesman:", "Payment Terms",
    "DO No:", "SO No:", "Freight", "Exchange Rate", "LLC", "Trading", "Co.", "EA", "PCS",
    "MTR", "Ball", "Valve", "Gate", "Brass", "inch", "TOYO CHAIN BLOCK", "G665168000",
    "70CB3X6", "100234567890003", "09/02/2026", "15-Jan-2026", "1", "2", "10", "25.00",
    "1,640.00", "820,00", "1.640,00", "4500123", "|", "#", "-", ":", "%", "(", ")",
)


@pytest.fixture
def engine(library):
    return InvoiceEngine(library)


class TestInvoiceEngine:
    """Tests for whole-document extraction"""

    def test_standard_invoice(self, engine, standard_invoice):
        result = engine.extract(standard_invoice)

        assert result.header.invoice_number == "INV-2024-00123"
        assert result.strategy == "vertical_table"
        assert [item.serial_number for item in result.line_items] == [1, 2]

    def test_known_vendor(self, engine, techno_king_invoice):
        result = engine.extract(techno_king_invoice)

        assert result.header.company_name == "Techno King Trading Co. LLC"
        assert result.header.invoice_number == "TK-45821"
        assert result.header.invoice_date == "15-Jan-2026"
        assert result.strategy == "horizontal_summary"

    def test_coded_rows_vendor(self, engine, coded_rows_invoice):
        result = engine.extract(coded_rows_invoice)

        assert result.header.company_name == "GF Corys Piping Systems LLC - Dubai"
        assert result.header.invoice_number == "908765"
        assert len(result.line_items) == 2

    def test_empty_text(self, engine):
        result = engine.extract("")

        assert all(value == NOT_FOUND for value in result.header.fields.values())
        assert result.line_items == []
        assert result.strategy is None

    def test_non_string_input(self, engine):
        with pytest.raises(InvalidInputError):
            engine.extract(42)

    def test_idempotent_output(self, engine, standard_invoice):
        assert engine.extract(standard_invoice).to_json() == engine.extract(standard_invoice).to_json()

    def test_table_failure_degrades_to_no_items(self, engine, standard_invoice, monkeypatch):
        def explode(text):
            raise RuntimeError("boom")

        monkeypatch.setattr(engine.orchestrator, "extract_with_strategy", explode)
        result = engine.extract(standard_invoice)

        assert result.line_items == []
        assert result.header.invoice_number == "INV-2024-00123"


class TestSerialization:
    """Tests for result serialization"""

    def test_to_dict_shape(self, engine, standard_invoice):
        data = engine.extract(standard_invoice).to_dict()

        assert set(data) == {"header", "line_items", "table_strategy"}
        assert tuple(data["header"]) == FIELD_NAMES
        assert data["line_items"][0]["item_code"] == "G665168000"

    def test_json_has_no_empty_header_values(self, engine, no_table_text):
        data = json.loads(engine.extract(no_table_text).to_json())
        assert all(data["header"].values())

    def test_line_item_round_trip(self):
        item = InvoiceLineItem(serial_number=1, description="Ball Valve", quantity="2")
        assert InvoiceLineItem.from_dict(item.to_dict()) == item

    def test_default_extraction(self):
        extraction = InvoiceExtraction()
        assert extraction.to_dict()["line_items"] == []


class TestCommandLine:
    """Tests for the command-line entry point"""

    def test_writes_json_file(self, tmp_path, standard_invoice):
        source = tmp_path / "invoice.txt"
        source.write_text(standard_invoice, encoding="utf-8")
        target = tmp_path / "out" / "result.json"

        assert main.main(["--input", str(source), "--output", str(target), "--quiet"]) == 0

        data = json.loads(target.read_text(encoding="utf-8"))
        assert data["header"]["trn"] == "100234567890003"
        assert len(data["line_items"]) == 2

    def test_fields_only(self, tmp_path, capsys, standard_invoice):
        source = tmp_path / "invoice.txt"
        source.write_text(standard_invoice, encoding="utf-8")

        assert main.main(["--input", str(source), "--fields-only", "--quiet"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert list(data) == ["header"]

    def test_missing_input_file(self, tmp_path, capsys):
        assert main.main(["--input", str(tmp_path / "missing.txt"), "--quiet"]) == 1
        assert "not found" in capsys.readouterr().err

    def test_scope_flags_are_exclusive(self, tmp_path):
        with pytest.raises(SystemExit):
            main.main(["--input", "x.txt", "--fields-only", "--items-only"])


class TestRandomText:
    """Engine invariants over seeded random OCR-like text"""

    @staticmethod
    def random_text(rng):
        lines = []
        for _ in range(rng.randint(0, 25)):
            words = [rng.choice(RANDOM_VOCABULARY) for _ in range(rng.randint(1, 10))]
            lines.append(rng.choice(["  ", " "]).join(words))
        return "\n".join(lines)

    @pytest.mark.parametrize("seed", range(3))
    def test_invariants_hold(self, engine, seed):
        rng = random.Random(seed)

        for _ in range(100):
            result = engine.extract(self.random_text(rng))

            assert all(isinstance(value, str) and value for value in result.header.fields.values())
            assert all(item.is_valid for item in result.line_items)
            assert [item.serial_number for item in result.line_items] == list(
                range(1, len(result.line_items) + 1)
            )
