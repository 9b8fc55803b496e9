"""
Integration tests for the line-item strategy cascade.
"""

import pytest

from invoice_ocr.tables import LineItemOrchestrator
from invoice_ocr.tables.row_parser import LineItemParser
from invoice_ocr.tables.strategies import (
    CodedRowStrategy,
    HorizontalSummaryStrategy,
    VerticalTableStrategy,
)
from invoice_ocr.utils.exceptions import InvalidInputError


@pytest.fixture
def orchestrator(library):
    return LineItemOrchestrator(library)


class TestVerticalTable:
    """Tests for header-driven tables"""

    def test_standard_rows(self, orchestrator, standard_invoice):
        items, strategy = orchestrator.extract_with_strategy(standard_invoice)

        assert strategy == "vertical_table"
        assert len(items) == 2

        first, second = items
        assert first.item_code == "G665168000"
        assert first.description == "Ball Valve 2 inch"
        assert (first.uom, first.quantity, first.unit_rate, first.amount_excl_vat) == (
            "EA", "10", "25.00", "250.00"
        )
        assert second.description == "Gate Valve 3 inch"
        assert (second.uom, second.quantity, second.unit_rate, second.amount_excl_vat) == (
            "PC", "4", "110.00", "440.00"
        )

    def test_header_and_single_row(self, orchestrator):
        text = (
            "S.No  Item Code  Description  Qty  UOM  Rate  Amount\n"
            "1  G665168000  Ball Valve 2 inch  10  EA  25.00  250.00\n"
        )
        items = orchestrator.extract_line_items(text)

        assert len(items) == 1
        assert items[0].to_dict() == {
            "serial_number": 1,
            "item_code": "G665168000",
            "description": "Ball Valve 2 inch",
            "uom": "EA",
            "quantity": "10",
            "unit_rate": "25.00",
            "amount_excl_vat": "250.00",
            "vat_percent": "",
            "vat_amount": "",
            "amount_incl_vat": "",
        }

    def test_totals_block_not_parsed(self, orchestrator, standard_invoice):
        items = orchestrator.extract_line_items(standard_invoice)
        assert all("Total" not in item.description for item in items)

    def test_split_row_is_merged(self, orchestrator):
        text = (
            "Description  Qty  UOM  Rate  Amount\n"
            "1 Stainless Steel Elbow 2 inch\n"
            "6 PCS 15.00 90.00\n"
            "2 Brass Nipple Half inch 8 EA 4.00 32.00\n"
            "Total 122.00\n"
        )
        items = orchestrator.extract_line_items(text)

        assert [item.description for item in items] == [
            "Stainless Steel Elbow 2 inch", "Brass Nipple Half inch"
        ]
        assert items[0].amount_excl_vat == "90.00"

    def test_non_item_rows_skipped(self, orchestrator):
        text = (
            "Description  Qty  UOM  Rate\n"
            "Ship To: Warehouse 4, Jebel Ali\n"
            "Widget Assembly 2 EA 5.00 10.00\n"
        )
        items = orchestrator.extract_line_items(text)

        assert len(items) == 1
        assert items[0].description == "Widget Assembly"


class TestHorizontalSummary:
    """Tests for known single-row vendor layouts"""

    def test_amounts_bound_by_arithmetic(self, orchestrator, techno_king_invoice):
        items, strategy = orchestrator.extract_with_strategy(techno_king_invoice)

        assert strategy == "horizontal_summary"
        assert len(items) == 1

        item = items[0]
        assert item.item_code == "70CB3X6"
        assert item.description == "TOYO CHAIN BLOCK 3.0T X 6MTR"
        assert item.uom == "PC"
        assert item.quantity == "4.00"
        assert item.unit_rate == "410.00"
        assert item.amount_excl_vat == "1640.00"
        assert item.vat_amount == "82.00"
        assert item.amount_incl_vat == "1722.00"
        assert item.vat_percent == "5%"

    def test_binding_cap_from_settings(self, library):
        strategy = HorizontalSummaryStrategy(library, LineItemParser(library))
        assert strategy.max_bind_candidates == 20


class TestCodedRows:
    """Tests for long item-code rows without a column header"""

    def test_code_rows_absorb_following_lines(self, orchestrator, coded_rows_invoice):
        items, strategy = orchestrator.extract_with_strategy(coded_rows_invoice)

        assert strategy == "coded_rows"
        assert [item.item_code for item in items] == ["G665168000", "G665170000"]
        assert items[0].description == "PVC Ball Valve DN50"
        assert (items[0].quantity, items[0].unit_rate, items[0].amount_excl_vat) == (
            "10", "25.00", "250.00"
        )
        assert items[1].description == "PVC Gate Valve DN80"
        assert items[1].amount_excl_vat == "480.00"


class TestCascade:
    """Tests for cascade behavior"""

    def test_no_table(self, orchestrator, no_table_text):
        assert orchestrator.extract_with_strategy(no_table_text) == ([], None)

    def test_empty_text(self, orchestrator):
        assert orchestrator.extract_line_items("") == []

    def test_serials_are_contiguous(self, orchestrator, standard_invoice):
        items = orchestrator.extract_line_items(standard_invoice)
        assert [item.serial_number for item in items] == list(range(1, len(items) + 1))

    def test_every_item_is_valid(self, orchestrator, coded_rows_invoice):
        assert all(item.is_valid for item in orchestrator.extract_line_items(coded_rows_invoice))

    def test_custom_strategy_order(self, library, standard_invoice):
        coded_only = [CodedRowStrategy(library, LineItemParser(library))]
        orchestrator = LineItemOrchestrator(library, strategies=coded_only)
        _, strategy = orchestrator.extract_with_strategy(standard_invoice)
        assert strategy == "coded_rows"

    def test_default_strategy_order(self, orchestrator):
        names = [s.name for s in orchestrator.strategies]
        assert names == ["horizontal_summary", "vertical_table", "coded_rows"]
        assert isinstance(orchestrator.strategies[1], VerticalTableStrategy)

    def test_non_string_input(self, orchestrator):
        with pytest.raises(InvalidInputError):
            orchestrator.extract_line_items(b"bytes")
