"""
Table Strategies Module.

Each strategy turns a whole document into a list of line items for one
family of table layouts:
    - HorizontalSummaryStrategy: a known vendor's single summary row,
      located by the template's product anchor
    - VerticalTableStrategy: a classic multi-row table under a detected
      header row
    - CodedRowStrategy: rows opened by long item codes after an
      "S.No" / "Item Code" marker, for tables whose header is split

Strategies return an empty list when their layout is not present.

Author: ML Engineering Team
"""

import re
from typing import List, Optional

from config import get_config
from invoice_ocr.patterns import KnownTemplate, PatternLibrary
from invoice_ocr.utils.helpers import OcrDocument, collapse_whitespace, parse_number
from invoice_ocr.utils.logger import get_logger
from .amounts import bind_amounts
from .line_item import InvoiceLineItem
from .row_parser import LineItemParser, RowContext, assign_numeric_roles
from .structure import TableStructureAnalyzer

# Initialize module logger
logger = get_logger(__name__)

DEFAULT_SUMMARY_UOM = "PC"

_BARE_SERIAL_RE = re.compile(r'^\d{1,3}$')
_MIN_ROW_LENGTH = 10


class TableStrategy:
    """Base class for whole-document table strategies."""

    name = "table"

    def extract(self, document: OcrDocument) -> List[InvoiceLineItem]:
        """
        Extract line items for this layout.

        Args:
            document: OCR document being processed.

        Returns:
            Line items in document order (possibly empty).
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class HorizontalSummaryStrategy(TableStrategy):
    """
    Single summary row of a known vendor template.

    The description is the product anchor match; the amounts are bound
    by arithmetic consistency over the numbers printed near the anchor,
    falling back to count-based assignment on the anchor line.
    """

    name = "horizontal_summary"

    def __init__(self, library: PatternLibrary, parser: LineItemParser) -> None:
        self.library = library
        self.parser = parser
        self.summary_window = int(get_config("extraction.table.summary_window", 20))
        self.max_bind_candidates = int(get_config("extraction.table.max_bind_candidates", 20))

    def extract(self, document: OcrDocument) -> List[InvoiceLineItem]:
        for template in self.library.templates.match(document.text):
            if template.product_anchor is None:
                continue
            item = self._extract_for(template, document)
            if item:
                logger.debug(f"Summary row found for template '{template.name}'")
                return [item]
        return []

    def _extract_for(self, template: KnownTemplate, document: OcrDocument) -> Optional[InvoiceLineItem]:
        anchor_index = next(
            (i for i, line in enumerate(document.lines) if template.product_anchor.search(line)),
            None
        )
        if anchor_index is None:
            return None

        anchor_line = document.lines[anchor_index]
        match = template.product_anchor.search(anchor_line)
        description = collapse_whitespace(match.group(0).split('•')[0])

        region_lines = document.lines[anchor_index:anchor_index + self.summary_window + 1]
        region = '\n'.join(region_lines).replace(match.group(0), ' ', 1)

        item = InvoiceLineItem(
            serial_number=1,
            item_code=self._item_code(template, document.text, region),
            description=description,
            uom=(
                self.parser.extract_uom(anchor_line[match.end():])
                or self.parser.extract_uom(region)
                or DEFAULT_SUMMARY_UOM
            ),
            vat_percent=self._vat_percent(document.text),
        )

        vat_value = parse_number(item.vat_percent.rstrip('%')) if item.vat_percent else None
        roles = bind_amounts(
            self.parser.extract_numbers(region), vat_value, self.max_bind_candidates
        )
        if roles is None:
            logger.debug("Summary amounts not consistent, using count-based assignment")
            tail = anchor_line[match.end():]
            roles = assign_numeric_roles(
                self.parser.extract_numbers(tail), tail, self.library.vat_percent
            )

        for name, value in roles.items():
            if name == 'vat_percent' and item.vat_percent:
                continue
            setattr(item, name, value)

        return item if item.is_valid else None

    def _item_code(self, template: KnownTemplate, text: str, region: str) -> str:
        for code in template.item_codes:
            if re.search(rf'\b{re.escape(code)}\b', text):
                return code
        return self.parser.extract_item_code(region)

    def _vat_percent(self, text: str) -> str:
        match = self.library.vat_rate_label.search(text) or self.library.vat_percent.search(text)
        return f"{match.group(1)}%" if match else ""


class VerticalTableStrategy(TableStrategy):
    """
    Multi-row table located by the Table Structure Analyzer.

    Every body line between the header and the table end is parsed as a
    row; continuation lines absorbed into a row are not parsed again.
    """

    name = "vertical_table"

    def __init__(
        self,
        library: PatternLibrary,
        analyzer: TableStructureAnalyzer,
        parser: LineItemParser
    ) -> None:
        self.library = library
        self.analyzer = analyzer
        self.parser = parser

    def is_non_item_row(self, line: str) -> bool:
        """Repeated headers, address blocks, bare serials and label rows."""
        return (
            len(line) < _MIN_ROW_LENGTH
            or bool(_BARE_SERIAL_RE.match(line))
            or bool(self.library.non_item_row.match(line))
            or bool(self.library.row_skip.match(line))
            or self.analyzer.is_header_row(line)
        )

    def extract(self, document: OcrDocument) -> List[InvoiceLineItem]:
        structure = self.analyzer.analyze(document.lines)
        if not structure.is_detected:
            return []

        items: List[InvoiceLineItem] = []
        index = structure.header_row_index + 1

        while index < structure.table_end_index:
            line = document.lines[index]
            if self.is_non_item_row(line):
                index += 1
                continue

            context = RowContext(
                lines=document.lines,
                index=index,
                end_index=structure.table_end_index,
                serial_number=len(items) + 1,
            )
            merged, last = self.parser.merge_continuation(line, context)
            item = self.parser.parse_line(merged, context.serial_number)
            if item:
                items.append(item)
            index = last + 1

        return items


class CodedRowStrategy(TableStrategy):
    """
    Rows opened by long item codes (e.g. G665168000).

    After the first "S.No" / "Item Code" marker, each line carrying a
    long code starts an item that absorbs up to ``coded_row_lookahead``
    following lines, stopping at the next coded line or the totals block.
    """

    name = "coded_rows"

    def __init__(self, library: PatternLibrary, parser: LineItemParser) -> None:
        self.library = library
        self.parser = parser
        self.lookahead = int(get_config("extraction.table.coded_row_lookahead", 3))

    def extract(self, document: OcrDocument) -> List[InvoiceLineItem]:
        lines = document.lines
        start = next(
            (i for i, line in enumerate(lines) if self.library.coded_table_start.search(line)),
            None
        )
        if start is None:
            return []

        items: List[InvoiceLineItem] = []
        for index in range(start + 1, len(lines)):
            line = lines[index]
            if self.library.table_end.match(line):
                break
            if not self.library.long_item_code.search(line):
                continue

            parts = [line]
            for following in lines[index + 1:index + 1 + self.lookahead]:
                if self.library.long_item_code.search(following) or self.library.table_end.match(following):
                    break
                parts.append(following)

            item = self.parser.parse_line(' '.join(parts), len(items) + 1)
            if item:
                items.append(item)

        return items
