"""
Unit tests for row parsing: merging, code/description/UOM extraction
and count-based numeric role assignment.
"""

import pytest

from invoice_ocr.tables.row_parser import LineItemParser, RowContext, assign_numeric_roles


@pytest.fixture
def parser(library):
    return LineItemParser(library)


class TestAssignNumericRoles:
    """Tests for the count table"""

    def test_seven_or_more_numbers(self):
        numbers = ["2", "10.00", "20.00", "3", "99", "1.00", "21.00"]
        roles = assign_numeric_roles(numbers, "2 10.00 20.00 5% 1.00 21.00")
        assert roles["quantity"] == "2"
        assert roles["unit_rate"] == "10.00"
        assert roles["amount_excl_vat"] == "20.00"
        assert roles["vat_amount"] == "1.00"
        assert roles["amount_incl_vat"] == "21.00"
        assert roles["vat_percent"] == "5%"

    def test_six_numbers_small_fourth_is_vat_percent(self):
        roles = assign_numeric_roles(["2", "10.00", "20.00", "5", "1.00", "21.00"])
        assert roles["vat_percent"] == "5%"
        assert roles["vat_amount"] == "1.00"
        assert roles["amount_incl_vat"] == "21.00"

    def test_six_numbers_large_fourth_is_not_percent(self):
        roles = assign_numeric_roles(["2", "10.00", "20.00", "50", "1.00", "21.00"])
        assert "vat_percent" not in roles

    def test_five_numbers(self):
        roles = assign_numeric_roles(["2", "10.00", "20.00", "1.00", "21.00"])
        assert roles == {
            "quantity": "2", "unit_rate": "10.00", "amount_excl_vat": "20.00",
            "vat_amount": "1.00", "amount_incl_vat": "21.00",
        }

    def test_four_numbers(self):
        roles = assign_numeric_roles(["2", "10.00", "20.00", "21.00"])
        assert roles == {
            "quantity": "2", "unit_rate": "10.00",
            "amount_excl_vat": "20.00", "amount_incl_vat": "21.00",
        }

    def test_three_numbers(self):
        roles = assign_numeric_roles(["2", "10.00", "20.00"])
        assert roles == {"quantity": "2", "unit_rate": "10.00", "amount_excl_vat": "20.00"}

    def test_two_numbers(self):
        assert assign_numeric_roles(["2", "20.00"]) == {"quantity": "2", "amount_excl_vat": "20.00"}

    def test_one_number(self):
        assert assign_numeric_roles(["20.00"]) == {"amount_excl_vat": "20.00"}

    def test_no_numbers(self):
        assert assign_numeric_roles([]) == {}

    def test_vat_percent_from_library_pattern(self, library):
        roles = assign_numeric_roles(["2", "10.00", "20.00"], "2 10.00 20.00 5 %", library.vat_percent)
        assert roles["vat_percent"] == "5%"


class TestRowFields:
    """Tests for code, description, UOM and number extraction"""

    def test_long_item_code(self, parser):
        assert parser.extract_item_code("1 G665168000 Ball Valve") == "G665168000"

    def test_bare_digit_run_is_not_a_code(self, parser):
        assert parser.extract_item_code("TRN 100234567890003") == ""

    def test_description_fallback_accumulates_tokens(self, parser):
        assert parser.extract_description("(SS) Hex Bolt 12 EA 3.50 42.00") == ("(SS) Hex Bolt", 13)

    def test_description_stops_before_quantity_and_uom(self, parser):
        description, _ = parser.extract_description("Gate Valve 3 inch 4 PCS 110.00 440.00")
        assert description == "Gate Valve 3 inch"

    def test_short_description_is_empty(self, parser):
        assert parser.extract_description("Ab EA 3.00") == ("", 0)

    @pytest.mark.parametrize("text, expected", [
        ("4 PCS", "PC"),
        ("12 METRE", "MTR"),
        ("3 kgs", "KG"),
        ("10 NOS", "EA"),
        ("1 EACH", "EA"),
    ])
    def test_uom_canonical_form(self, parser, text, expected):
        assert parser.extract_uom(text) == expected

    def test_uom_absent(self, parser):
        assert parser.extract_uom("25.00 250.00") == ""

    def test_numbers_strip_commas_and_drop_huge_values(self, parser):
        assert parser.extract_numbers("Qty 2 Rate 1,640.00 Ref 1234567.00") == ["2", "1640.00"]

    def test_numbers_ignore_glued_tokens(self, parser):
        assert parser.extract_numbers("3.0T X 6MTR 4.00") == ["4.00"]

    def test_decimal_comma_numbers_kept_verbatim(self, parser):
        assert parser.extract_numbers("2 EA 820,00 1.640,00") == ["2", "820,00", "1.640,00"]

    def test_serial_is_one_or_two_digits(self, library):
        assert library.row_serial.match("12 Hex Bolt")
        assert not library.row_serial.match("123 Hex Bolt")


class TestMergeContinuation:
    """Tests for multi-line row merging"""

    def test_absorbs_amount_line(self, parser):
        lines = ["1 G665168000 Ball Valve 2 inch", "10 EA 25.00 250.00", "Sub Total 250.00"]
        merged, last = parser.merge_continuation(lines[0], RowContext(lines, 0, len(lines)))
        assert last == 1
        assert merged == "1 G665168000 Ball Valve 2 inch 10 EA 25.00 250.00"

    def test_complete_row_not_merged(self, parser):
        lines = ["1 G665168000 Ball Valve 2 inch 10 EA 25.00 250.00", "2 G665169000 Gate"]
        merged, last = parser.merge_continuation(lines[0], RowContext(lines, 0, len(lines)))
        assert (merged, last) == (lines[0], 0)

    def test_total_marker_not_absorbed(self, parser):
        lines = ["1 G665168000 Ball Valve 2 inch", "Sub Total 690.00"]
        _, last = parser.merge_continuation(lines[0], RowContext(lines, 0, len(lines)))
        assert last == 0

    def test_new_item_not_absorbed(self, parser):
        lines = ["1 Ball Valve 2 inch", "2 Gate Valve 40.00"]
        _, last = parser.merge_continuation(lines[0], RowContext(lines, 0, len(lines)))
        assert last == 0

    def test_line_without_digits_stops_merge(self, parser):
        lines = ["1 Ball Valve 2 inch", "brass body", "10 EA 25.00 250.00"]
        _, last = parser.merge_continuation(lines[0], RowContext(lines, 0, len(lines)))
        assert last == 0

    def test_merge_respects_end_index(self, parser):
        lines = ["1 Ball Valve 2 inch", "10 EA 25.00 250.00"]
        _, last = parser.merge_continuation(lines[0], RowContext(lines, 0, 1))
        assert last == 0

    def test_merge_absorbs_at_most_two_lines(self, parser):
        lines = ["1 Ball Valve 2 inch", "10 EA", "25", "250.00"]
        merged, last = parser.merge_continuation(lines[0], RowContext(lines, 0, len(lines)))
        assert last == 2
        assert merged == "1 Ball Valve 2 inch 10 EA 25"


class TestParseRow:
    """Tests for whole-row parsing"""

    def test_standard_row(self, parser):
        item = parser.parse_row("1  G665168000  Ball Valve 2 inch  10  EA  25.00  250.00")
        assert item.item_code == "G665168000"
        assert item.description == "Ball Valve 2 inch"
        assert item.uom == "EA"
        assert (item.quantity, item.unit_rate, item.amount_excl_vat) == ("10", "25.00", "250.00")

    def test_row_with_vat_columns(self, parser):
        item = parser.parse_row("3 Copper Pipe 15mm 20 MTR 12.50 250.00 5% 12.50 262.50")
        assert item.description == "Copper Pipe 15mm"
        assert item.uom == "MTR"
        assert item.vat_percent == "5%"
        assert item.amount_incl_vat == "262.50"

    def test_numbers_only_row_is_dropped(self, parser):
        assert parser.parse_row("12 25.00 300.00") is None

    def test_blank_row_is_dropped(self, parser):
        assert parser.parse_row("   ") is None

    def test_serial_number_from_context(self, parser):
        item = parser.parse_row("Hex Bolt M12 50 PCS 0.80 40.00", RowContext.single("x", serial_number=4))
        assert item.serial_number == 4

    def test_decimal_comma_row(self, parser):
        item = parser.parse_row("Ball Valve Brass 2 EA 820,00 1.640,00")
        assert item.description == "Ball Valve Brass"
        assert item.uom == "EA"
        assert (item.quantity, item.unit_rate, item.amount_excl_vat) == ("2", "820,00", "1.640,00")

    def test_decimal_comma_row_is_complete(self, parser):
        lines = ["Ball Valve Brass 2 EA 820,00 1.640,00", "10 EA 25.00 250.00"]
        _, last = parser.merge_continuation(lines[0], RowContext(lines, 0, len(lines)))
        assert last == 0
