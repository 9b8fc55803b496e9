"""
Invoice Extraction Engine Module.

This module provides the InvoiceEngine facade that runs both extraction
paths on one OCR text:

    OCR text ──► FieldExtractor        ──► HeaderFields
             └─► LineItemOrchestrator  ──► List[InvoiceLineItem]

The two paths are independent. The engine holds only read-only state,
so one instance can serve concurrent callers.

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import json

from invoice_ocr.fields import FieldExtractor, HeaderFields
from invoice_ocr.patterns import PatternLibrary, get_pattern_library
from invoice_ocr.tables import InvoiceLineItem, LineItemOrchestrator
from invoice_ocr.utils.helpers import require_text
from invoice_ocr.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


@dataclass
class InvoiceExtraction:
    """
    Complete extraction result for one invoice.

    Holds no timestamps or other run-dependent data, so identical input
    always serializes to identical JSON.

    Attributes:
        header: Scalar header fields
        line_items: Ordered line items
        strategy: Name of the table strategy that produced the items

    Example:
        >>> result = InvoiceEngine().extract(ocr_text)
        >>> print(result.header.invoice_number)
        >>> print(result.to_json())
    """
    header: HeaderFields = field(default_factory=HeaderFields)
    line_items: List[InvoiceLineItem] = field(default_factory=list)
    strategy: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary format.

        Returns:
            Dictionary with ``header``, ``line_items`` and ``table_strategy``.
        """
        return {
            'header': self.header.to_dict(),
            'line_items': [item.to_dict() for item in self.line_items],
            'table_strategy': self.strategy,
        }

    def to_json(self, indent: int = 2) -> str:
        """
        Convert to JSON string.

        Args:
            indent: JSON indentation level.

        Returns:
            JSON string representation.
        """
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def __repr__(self) -> str:
        return (
            f"InvoiceExtraction("
            f"invoice={self.header.invoice_number}, "
            f"items={len(self.line_items)}, "
            f"strategy={self.strategy})"
        )


class InvoiceEngine:
    """
    Facade over the scalar field extractor and the line-item orchestrator.

    Attributes:
        library: Pattern library shared by both paths
        field_extractor: Scalar field extractor
        orchestrator: Line-item strategy orchestrator

    Example:
        >>> engine = InvoiceEngine()
        >>> result = engine.extract(open("invoice.txt").read())
        >>> [item.description for item in result.line_items]
    """

    def __init__(self, library: Optional[PatternLibrary] = None) -> None:
        """
        Initialize the engine.

        Args:
            library: Pattern library. If None, uses the shared library.
        """
        self.library = library or get_pattern_library()
        self.field_extractor = FieldExtractor(self.library)
        self.orchestrator = LineItemOrchestrator(self.library)

        logger.info(f"InvoiceEngine initialized (patterns {self.library.version})")

    def extract(self, text: str) -> InvoiceExtraction:
        """
        Extract header fields and line items from OCR text.

        Args:
            text: Raw OCR text.

        Returns:
            InvoiceExtraction with every field set or "N/A".

        Raises:
            InvalidInputError: If text is not a string.
        """
        require_text(text)
        header = self.extract_fields(text)
        items, strategy = self._extract_items(text)
        return InvoiceExtraction(header=header, line_items=items, strategy=strategy)

    def extract_fields(self, text: str) -> HeaderFields:
        """
        Extract only the scalar header fields.

        Args:
            text: Raw OCR text.

        Returns:
            HeaderFields instance.
        """
        return self.field_extractor.extract_all(text)

    def extract_line_items(self, text: str) -> List[InvoiceLineItem]:
        """
        Extract only the line items.

        Args:
            text: Raw OCR text.

        Returns:
            Line items numbered 1..n, or an empty list.
        """
        items, _ = self._extract_items(text)
        return items

    def _extract_items(self, text: str):
        """Run the table path, degrading unexpected failures to no items."""
        require_text(text)
        try:
            return self.orchestrator.extract_with_strategy(text)
        except Exception as e:
            logger.error(f"Line item extraction failed: {e}", exc_info=True)
            return [], None
