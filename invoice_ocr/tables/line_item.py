"""
Invoice Line Item Data Class.

This module defines one parsed row of the invoice's itemized table.
Numeric values stay display-preserving strings: only grouping commas
are removed, nothing is re-formatted.

Author: ML Engineering Team
"""

from dataclasses import dataclass, asdict, fields as dataclass_fields
from typing import Any, Dict

# Shortest description that makes a row worth emitting
MIN_DESCRIPTION_LENGTH = 5


@dataclass
class InvoiceLineItem:
    """
    One line item of an invoice.

    Empty strings mean "absent". The serial number is assigned by the
    engine after all rows are collected and is never read from OCR.

    Attributes:
        serial_number: 1-based position in the output list
        item_code: Vendor item / part code
        description: Item description
        uom: Canonical unit of measure (EA, PC, MTR, ...)
        quantity: Quantity as printed
        unit_rate: Unit price as printed
        amount_excl_vat: Line amount before VAT
        vat_percent: VAT rate, e.g. "5%"
        vat_amount: VAT amount
        amount_incl_vat: Line amount including VAT

    Example:
        >>> item = InvoiceLineItem(item_code="G665168000", description="Ball Valve 2 inch")
        >>> item.is_valid
        True
    """
    serial_number: int = 0
    item_code: str = ""
    description: str = ""
    uom: str = ""
    quantity: str = ""
    unit_rate: str = ""
    amount_excl_vat: str = ""
    vat_percent: str = ""
    vat_amount: str = ""
    amount_incl_vat: str = ""

    @property
    def is_valid(self) -> bool:
        """A row is kept only with a real description or an item code."""
        return len(self.description) >= MIN_DESCRIPTION_LENGTH or bool(self.item_code)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InvoiceLineItem':
        """
        Create an InvoiceLineItem from a dictionary.

        Args:
            data: Dictionary with line item values; unknown keys are ignored.

        Returns:
            InvoiceLineItem instance.
        """
        values = {}
        for f in dataclass_fields(cls):
            if f.name not in data or data[f.name] is None:
                continue
            values[f.name] = int(data[f.name]) if f.name == 'serial_number' else str(data[f.name])
        return cls(**values)

    def __repr__(self) -> str:
        return (
            f"InvoiceLineItem("
            f"#{self.serial_number}, "
            f"code={self.item_code or '-'}, "
            f"desc={self.description[:30]!r}, "
            f"qty={self.quantity or '-'}, "
            f"excl={self.amount_excl_vat or '-'})"
        )
