"""
Row / Line-Item Parser Module.

This module converts one table body line into an InvoiceLineItem:
    - Multi-line continuation merging for rows split by OCR
    - Item code, description and unit-of-measure extraction
    - Numeric token collection and count-based role assignment

Every step is best-effort. A row that ends up with neither a
description nor an item code is dropped (None), never an error.

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Sequence, Tuple

from config import get_config
from invoice_ocr.patterns import PatternLibrary, get_pattern_library
from invoice_ocr.patterns.library import VAT_PERCENT_RE
from invoice_ocr.utils.helpers import DECIMAL_COMMA_RE, collapse_whitespace, parse_number
from invoice_ocr.utils.logger import get_logger
from .line_item import InvoiceLineItem, MIN_DESCRIPTION_LENGTH

# Initialize module logger
logger = get_logger(__name__)

MAX_DESCRIPTION_TOKENS = 10
MAX_SMALL_VAT_PERCENT = 20

_DIGIT_RE = re.compile(r'\d')
_LONG_NUMBER_TOKEN_RE = re.compile(r'^\d{2,}\.?\d*$')
_TWO_LETTERS_RE = re.compile(r'[A-Za-z].*[A-Za-z]')
_LEADING_NUMBER_RE = re.compile(r'^\d+\s+')
_WORD_RE = re.compile(r'^[A-Za-z]{3,}')


@dataclass(frozen=True)
class RowContext:
    """
    Position of a row inside the document.

    Attributes:
        lines: All document lines
        index: Index of the row being parsed
        end_index: First index past the table body; merging never crosses it
        serial_number: Serial number to stamp on the item (0 = assign later)
    """
    lines: Sequence[str]
    index: int
    end_index: int
    serial_number: int = 0

    @classmethod
    def single(cls, line: str, serial_number: int = 0) -> 'RowContext':
        """Context for a standalone line with nothing to merge."""
        return cls(lines=(line,), index=0, end_index=1, serial_number=serial_number)


def assign_numeric_roles(
    numbers: Sequence[str],
    line: str = "",
    vat_pattern: Pattern = VAT_PERCENT_RE,
) -> Dict[str, str]:
    """
    Assign numeric tokens to line-item fields purely by their count.

    Count table:
        7+ -> qty, rate, amount-excl, VAT-amount (second-to-last),
              amount-incl (last); VAT % from an explicit "%" token
        6  -> qty, rate, amount-excl, VAT % (explicit "%" token, else the
              fourth number when <= 20), VAT-amount, amount-incl
        5  -> qty, rate, amount-excl, VAT-amount, amount-incl
        4  -> qty, rate, amount-excl, amount-incl
        3  -> qty, rate, amount-excl
        2  -> qty, amount-excl
        1  -> amount-excl

    Args:
        numbers: Numeric tokens in document order, grouping commas stripped.
        line: Source line, searched for an explicit VAT percentage.
        vat_pattern: Regex whose first group is an explicit VAT percentage.

    Returns:
        Mapping of InvoiceLineItem field names to values.
    """
    n = list(numbers)
    count = len(n)
    roles: Dict[str, str] = {}

    match = vat_pattern.search(line or "")
    explicit_vat = f"{match.group(1)}%" if match else ""

    if count >= 7:
        roles.update(
            quantity=n[0], unit_rate=n[1], amount_excl_vat=n[2],
            vat_amount=n[-2], amount_incl_vat=n[-1],
        )
    elif count == 6:
        roles.update(quantity=n[0], unit_rate=n[1], amount_excl_vat=n[2])
        if not explicit_vat:
            fourth = parse_number(n[3])
            if fourth is not None and fourth <= MAX_SMALL_VAT_PERCENT:
                roles['vat_percent'] = f"{n[3]}%"
        roles.update(vat_amount=n[4], amount_incl_vat=n[5])
    elif count == 5:
        roles.update(
            quantity=n[0], unit_rate=n[1], amount_excl_vat=n[2],
            vat_amount=n[3], amount_incl_vat=n[4],
        )
    elif count == 4:
        roles.update(quantity=n[0], unit_rate=n[1], amount_excl_vat=n[2], amount_incl_vat=n[3])
    elif count == 3:
        roles.update(quantity=n[0], unit_rate=n[1], amount_excl_vat=n[2])
    elif count == 2:
        roles.update(quantity=n[0], amount_excl_vat=n[1])
    elif count == 1:
        roles['amount_excl_vat'] = n[0]

    if explicit_vat and not roles.get('vat_percent'):
        roles['vat_percent'] = explicit_vat

    return roles


class LineItemParser:
    """
    Parses table body lines into line items.

    Attributes:
        library: Pattern library with code, description and UOM shapes
        merge_lookahead: Maximum continuation lines absorbed into a row
        max_amount: Numeric tokens at or above this value are discarded

    Example:
        >>> parser = LineItemParser()
        >>> item = parser.parse_row("1  G665168000  Ball Valve 2 inch  10  EA  25.00  250.00")
        >>> item.item_code, item.quantity, item.amount_excl_vat
        ('G665168000', '10', '250.00')
    """

    def __init__(self, library: Optional[PatternLibrary] = None) -> None:
        """
        Initialize the parser.

        Args:
            library: Pattern library. If None, uses the shared library.
        """
        self.library = library or get_pattern_library()
        self.merge_lookahead = int(get_config("extraction.table.merge_lookahead", 2))
        self.max_amount = float(get_config("extraction.table.max_amount", 1_000_000))

    # -------------------------------------------------------------------------
    # Row entry points
    # -------------------------------------------------------------------------

    def parse_row(self, line: str, context: Optional[RowContext] = None) -> Optional[InvoiceLineItem]:
        """
        Parse a table row, absorbing continuation lines first.

        Args:
            line: The row's first line.
            context: Row position; None parses the line on its own.

        Returns:
            InvoiceLineItem, or None when the row fails the validity gate.
        """
        context = context or RowContext.single(line)
        merged, _ = self.merge_continuation(line, context)
        return self.parse_line(merged, context.serial_number)

    def merge_continuation(self, line: str, context: RowContext) -> Tuple[str, int]:
        """
        Append continuation lines to a row that looks incomplete.

        A row is complete once it ends in a decimal amount. Otherwise up
        to ``merge_lookahead`` following lines are absorbed while they
        contain digits and do not open a new item or the totals block.

        Args:
            line: The row's first line.
            context: Row position.

        Returns:
            Tuple of (merged line, index of the last consumed line).
        """
        if self.library.terminal_amount.search(line):
            return line, context.index

        merged = line
        last = context.index
        stop = min(context.index + 1 + self.merge_lookahead, context.end_index, len(context.lines))

        for index in range(context.index + 1, stop):
            following = context.lines[index].strip()
            if not _DIGIT_RE.search(following) or self._breaks_continuation(following):
                break

            merged = f"{merged} {following}"
            last = index
            if self.library.terminal_amount.search(following):
                break

        if last != context.index:
            logger.debug(f"Merged lines {context.index}-{last} into one row")
        return merged, last

    def _breaks_continuation(self, line: str) -> bool:
        """True when a line is a total marker or starts a new item."""
        library = self.library
        if library.continuation_stop.match(line) or library.table_end.match(line):
            return True
        if library.shouted_word.match(line):
            return True
        if any(pattern.match(line) for pattern in library.item_code_patterns):
            return True

        serial = library.row_serial.match(line)
        if serial:
            rest = line[serial.end():]
            word = _WORD_RE.match(rest)
            if word and not library.is_uom(rest.split()[0]):
                return True
            if any(pattern.match(rest) for pattern in library.item_code_patterns):
                return True
        return False

    def parse_line(self, line: str, serial_number: int = 0) -> Optional[InvoiceLineItem]:
        """
        Parse one (already merged) row.

        Args:
            line: Row text.
            serial_number: Serial number to stamp on the item.

        Returns:
            InvoiceLineItem, or None when the row fails the validity gate.
        """
        text = collapse_whitespace(line)
        if not text:
            return None

        code = self.extract_item_code(text)
        body = self._strip_row_prefix(text, code)
        description, description_end = self.extract_description(body, code)
        tail = body[description_end:]

        item = InvoiceLineItem(
            serial_number=serial_number,
            item_code=code,
            description=description,
            uom=self.extract_uom(tail) or self.extract_uom(body),
        )

        roles = assign_numeric_roles(self.extract_numbers(tail), tail, self.library.vat_percent)
        for name, value in roles.items():
            setattr(item, name, value)

        if not item.is_valid:
            logger.debug(f"Row dropped (no description or code): {text[:60]}")
            return None
        return item

    # -------------------------------------------------------------------------
    # Field extraction
    # -------------------------------------------------------------------------

    def extract_item_code(self, text: str) -> str:
        """
        Find the item code using shapes in decreasing specificity.

        Candidates starting with a tax-ID prefix are rejected.

        Args:
            text: Row text.

        Returns:
            Item code or "".
        """
        for pattern in self.library.item_code_patterns:
            for match in pattern.finditer(text):
                candidate = match.group(1)
                if not 4 <= len(candidate) <= 15:
                    continue
                if candidate.startswith(self.library.tax_id_prefixes):
                    continue
                return candidate
        return ""

    def _strip_row_prefix(self, text: str, code: str) -> str:
        """Drop a leading serial number and a leading item code."""
        serial = self.library.row_serial.match(text)
        body = text[serial.end():] if serial else text
        if code and body.startswith(code):
            body = body[len(code):].lstrip()
        return body

    def extract_description(self, body: str, code: str = "") -> Tuple[str, int]:
        """
        Extract the description from a row body.

        Three shapes are tried (text before a UOM token, upper-case text
        before a UOM token, text before a numeric run); when none matches,
        leading word tokens are accumulated instead.

        Args:
            body: Row text without serial number and leading item code.
            code: Item code already extracted, removed if embedded.

        Returns:
            Tuple of (description or "", offset in body where it ends).
        """
        for pattern in self.library.description_patterns:
            match = pattern.match(body)
            if not match:
                continue
            description = self._clean_description(match.group(1), code)
            if len(description) >= MIN_DESCRIPTION_LENGTH:
                return description, match.end(1)

        return self._accumulate_description(body, code)

    def _accumulate_description(self, body: str, code: str) -> Tuple[str, int]:
        """Collect leading word tokens up to the first long number or UOM."""
        words: List[str] = []
        end = 0

        for match in re.finditer(r'\S+', body):
            token = match.group(0)
            if _LONG_NUMBER_TOKEN_RE.match(token) or self.library.is_uom(token):
                break
            if code and token == code:
                end = match.end()
                continue
            if _TWO_LETTERS_RE.search(token):
                words.append(token)
                end = match.end()
                if len(words) >= MAX_DESCRIPTION_TOKENS:
                    break

        description = self._clean_description(' '.join(words), code)
        if len(description) < MIN_DESCRIPTION_LENGTH:
            return "", 0
        return description, end

    @staticmethod
    def _clean_description(description: str, code: str) -> str:
        if code:
            description = description.replace(code, ' ')
        description = collapse_whitespace(description).rstrip(':;,').strip()
        return _LEADING_NUMBER_RE.sub('', description)

    def extract_uom(self, text: str) -> str:
        """
        Find a unit of measure and map it to its canonical form.

        Args:
            text: Text to search.

        Returns:
            Canonical UOM (e.g. PCS -> PC) or "".
        """
        match = self.library.uom_pattern.search(text)
        return self.library.canonical_uom(match.group(1)) if match else ""

    def extract_numbers(self, text: str) -> List[str]:
        """
        Collect standalone decimal tokens with grouping commas stripped.

        Decimal-comma amounts ("1.640,00") are kept verbatim.

        Tokens at or above ``max_amount`` are dropped; they are stray
        tax-ID or reference fragments rather than amounts.

        Args:
            text: Row text after the description.

        Returns:
            Numeric tokens in document order.
        """
        numbers = []
        for match in self.library.numeric_token.finditer(text):
            token = match.group(1)
            if not DECIMAL_COMMA_RE.match(token):
                token = token.replace(',', '')
            value = parse_number(token)
            if value is None or value >= self.max_amount:
                continue
            numbers.append(token)
        return numbers
