"""
Header Fields Data Class.

This module defines the data structure holding the scalar header
fields of one invoice, providing a standardized, serializable format.

Author: ML Engineering Team
"""

from dataclasses import dataclass, fields as dataclass_fields
from typing import Dict, Any, List
import json

from invoice_ocr.utils.helpers import NOT_FOUND, is_found


# Extraction order; also the order of the serialized output
FIELD_NAMES = (
    'company_name',
    'invoice_number',
    'invoice_date',
    'trn',
    'sales_person',
    'payment_terms',
    'ship_date',
    'do_number',
    'so_number',
)


@dataclass
class HeaderFields:
    """
    Scalar header fields extracted from one OCR text.

    Every field holds either an extracted string or the "N/A"
    sentinel. Fields are independent of each other.

    Attributes:
        company_name: Vendor company name
        invoice_number: Invoice identifier
        invoice_date: Date the invoice was issued, as printed
        trn: Tax registration number
        sales_person: Salesman / sales representative name
        payment_terms: Payment terms, e.g. "30 Days"
        ship_date: Shipping or delivery date, as printed
        do_number: Delivery-order number
        so_number: Sales-order number

    Example:
        >>> header = HeaderFields(invoice_number="INV-2024-00123")
        >>> header.missing_fields[:2]
        ['company_name', 'invoice_date']
    """
    company_name: str = NOT_FOUND
    invoice_number: str = NOT_FOUND
    invoice_date: str = NOT_FOUND
    trn: str = NOT_FOUND
    sales_person: str = NOT_FOUND
    payment_terms: str = NOT_FOUND
    ship_date: str = NOT_FOUND
    do_number: str = NOT_FOUND
    so_number: str = NOT_FOUND

    @property
    def fields(self) -> Dict[str, str]:
        """
        Get all header fields as an ordered dictionary.

        Returns:
            Dictionary of field names to values.
        """
        return {name: getattr(self, name) for name in FIELD_NAMES}

    @property
    def found_fields(self) -> Dict[str, str]:
        """Fields holding an extracted value."""
        return {k: v for k, v in self.fields.items() if is_found(v)}

    @property
    def missing_fields(self) -> List[str]:
        """Names of fields left at the sentinel."""
        return [k for k, v in self.fields.items() if not is_found(v)]

    @property
    def extraction_rate(self) -> float:
        """
        Calculate the percentage of fields successfully extracted.

        Returns:
            Extraction rate as a percentage (0-100).
        """
        return len(self.found_fields) / len(FIELD_NAMES) * 100

    def to_dict(self) -> Dict[str, str]:
        """
        Convert to dictionary format.

        Returns:
            Field names to values, in extraction order.
        """
        return self.fields

    def to_json(self, indent: int = 2) -> str:
        """
        Convert to JSON string.

        Args:
            indent: JSON indentation level.

        Returns:
            JSON string representation.
        """
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HeaderFields':
        """
        Create HeaderFields from a dictionary.

        Missing, empty or unknown keys fall back to the sentinel or are
        ignored.

        Args:
            data: Dictionary with field values.

        Returns:
            HeaderFields instance.
        """
        known = {f.name for f in dataclass_fields(cls)}
        return cls(**{
            k: str(v) if v not in (None, "") else NOT_FOUND
            for k, v in data.items() if k in known
        })

    def __repr__(self) -> str:
        return (
            f"HeaderFields("
            f"invoice={self.invoice_number}, "
            f"company={self.company_name}, "
            f"rate={self.extraction_rate:.0f}%)"
        )
