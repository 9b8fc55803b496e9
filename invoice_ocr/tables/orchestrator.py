"""
Line Item Orchestrator Module.

Runs the table strategies in a fixed priority order and returns the
items of the first strategy that yields at least one valid item:

    1. HorizontalSummaryStrategy (known template product anchor)
    2. VerticalTableStrategy     (detected header row)
    3. CodedRowStrategy          (long item codes after a marker line)

Serial numbers are re-assigned 1..n on the winning list. When no
strategy matches, the result is an empty list.

Author: ML Engineering Team
"""

from typing import List, Optional, Sequence, Tuple

from invoice_ocr.patterns import PatternLibrary, get_pattern_library
from invoice_ocr.utils.helpers import OcrDocument, require_text
from invoice_ocr.utils.logger import get_logger
from .line_item import InvoiceLineItem
from .row_parser import LineItemParser
from .strategies import (
    CodedRowStrategy,
    HorizontalSummaryStrategy,
    TableStrategy,
    VerticalTableStrategy,
)
from .structure import TableStructureAnalyzer

# Initialize module logger
logger = get_logger(__name__)


class LineItemOrchestrator:
    """
    Extracts the ordered line items of one invoice.

    Attributes:
        library: Pattern library shared by all strategies
        strategies: Strategies in priority order

    Example:
        >>> orchestrator = LineItemOrchestrator()
        >>> items = orchestrator.extract_line_items(ocr_text)
        >>> [item.serial_number for item in items]
        [1, 2, 3]
    """

    def __init__(
        self,
        library: Optional[PatternLibrary] = None,
        strategies: Optional[Sequence[TableStrategy]] = None
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            library: Pattern library. If None, uses the shared library.
            strategies: Custom strategy order. If None, uses the default cascade.
        """
        self.library = library or get_pattern_library()
        self.parser = LineItemParser(self.library)
        self.analyzer = TableStructureAnalyzer(self.library)

        if strategies is None:
            strategies = (
                HorizontalSummaryStrategy(self.library, self.parser),
                VerticalTableStrategy(self.library, self.analyzer, self.parser),
                CodedRowStrategy(self.library, self.parser),
            )
        self.strategies = tuple(strategies)

        logger.debug(
            f"LineItemOrchestrator initialized "
            f"({', '.join(s.name for s in self.strategies)})"
        )

    def extract_line_items(self, text: str) -> List[InvoiceLineItem]:
        """
        Extract line items from OCR text.

        Args:
            text: Raw OCR text.

        Returns:
            Valid line items numbered 1..n, or an empty list.
        """
        items, _ = self.extract_with_strategy(text)
        return items

    def extract_with_strategy(self, text: str) -> Tuple[List[InvoiceLineItem], Optional[str]]:
        """
        Extract line items and report which strategy produced them.

        Args:
            text: Raw OCR text.

        Returns:
            Tuple of (line items, strategy name or None).

        Raises:
            InvalidInputError: If text is not a string.
        """
        require_text(text)
        document = OcrDocument.from_text(text)

        for strategy in self.strategies:
            items = [item for item in strategy.extract(document) if item.is_valid]
            if not items:
                logger.debug(f"Strategy {strategy.name}: no items")
                continue

            for serial_number, item in enumerate(items, start=1):
                item.serial_number = serial_number

            logger.info(f"Strategy {strategy.name}: {len(items)} line items")
            return items, strategy.name

        logger.info("No line items found")
        return [], None
