"""
Field Validators Module.

This module provides the post-filters applied to every candidate value
before a scalar field strategy is allowed to win:
    - Date fields (parsed with python-dateutil)
    - Company name, invoice number and sales person shape checks
    - Digit-run fields (TRN, DO and SO numbers)

Every validator returns a ``(is_valid, message)`` tuple; the message is
only used for debug logging.

Author: ML Engineering Team
"""

import re
from typing import Tuple

from dateutil import parser as date_parser

from invoice_ocr.patterns import PatternLibrary
from invoice_ocr.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

Validation = Tuple[bool, str]

_DIGITS_RE = re.compile(r'^\d+$')
_TRN_AS_INVOICE_RE = re.compile(r'^100\d{12}')


class DateValidator:
    """
    Validates date fields.

    A date is accepted when python-dateutil can parse it (day-first,
    then month-first) and its year falls inside a reasonable range.

    Example:
        >>> validator = DateValidator()
        >>> validator.validate("09/02/2026")
        (True, 'Valid date')
        >>> validator.is_valid("31/31/2026")
        False
    """

    # Reasonable date range for invoices
    MIN_YEAR = 2000
    MAX_YEAR = 2100

    def is_valid(self, date_str: str) -> bool:
        """Check if date string is valid."""
        valid, _ = self.validate(date_str)
        return valid

    def validate(self, date_str: str) -> Validation:
        """
        Validate a date string with detailed feedback.

        Args:
            date_str: Date string to validate.

        Returns:
            Tuple of (is_valid, message).
        """
        if not date_str:
            return False, "Date is empty"

        parsed = None
        for dayfirst in (True, False):
            try:
                parsed = date_parser.parse(date_str, dayfirst=dayfirst)
                break
            except (ValueError, OverflowError):
                continue

        if parsed is None:
            return False, f"Could not parse date: {date_str}"

        if parsed.year < self.MIN_YEAR:
            return False, f"Year {parsed.year} is too old"
        if parsed.year > self.MAX_YEAR:
            return False, f"Year {parsed.year} is too far in future"

        return True, "Valid date"


class FieldValidator:
    """
    Per-field validation for scalar header fields.

    Attributes:
        library: Pattern library supplying rejection patterns
        date_validator: Shared date validator

    Example:
        >>> validator = FieldValidator(get_pattern_library())
        >>> validator.validate_company_name("ACME TRADING LLC")
        (True, 'Valid company name')
    """

    def __init__(self, library: PatternLibrary) -> None:
        """
        Initialize the field validator.

        Args:
            library: Pattern library used by the shape checks.
        """
        self.library = library
        self.date_validator = DateValidator()

    def _looks_like_date(self, value: str) -> bool:
        return any(shape.search(value) for shape in self.library.date_shapes)

    def validate_company_name(self, value: str) -> Validation:
        """
        Validate company name.

        Args:
            value: Company name to validate.

        Returns:
            Tuple of (is_valid, message).
        """
        if not value:
            return False, "Company name is empty"

        if not 10 <= len(value) <= 100:
            return False, f"Company name length {len(value)} outside 10-100"

        if self.library.numeric_line.match(value):
            return False, "Company name is purely numeric"

        if self._looks_like_date(value):
            return False, "Company name looks like a date"

        if self.library.trn_like.search(value):
            return False, "Company name contains a TRN-like digit run"

        if self.library.company_contact.search(value):
            return False, "Company name contains address or contact tokens"

        return True, "Valid company name"

    def validate_invoice_number(self, value: str) -> Validation:
        """
        Validate invoice number format.

        Args:
            value: Invoice number to validate.

        Returns:
            Tuple of (is_valid, message).
        """
        if not value:
            return False, "Invoice number is empty"

        if not 3 <= len(value) <= 20:
            return False, f"Invoice number length {len(value)} outside 3-20"

        if self.library.invoice_reject.match(value):
            return False, f"Invoice number is a keyword: {value}"

        if self.library.date_prefix.match(value):
            return False, "Invoice number starts like a date"

        if not re.search(r'\d', value):
            return False, "Invoice number has no digits"

        if _TRN_AS_INVOICE_RE.match(value):
            return False, "Invoice number looks like a TRN"

        return True, "Valid invoice number"

    def validate_trn(self, value: str) -> Validation:
        """Validate a tax registration number (9-20 digits)."""
        if not value or not _DIGITS_RE.match(value):
            return False, "TRN must be digits only"
        if not 9 <= len(value) <= 20:
            return False, f"TRN length {len(value)} outside 9-20"
        return True, "Valid TRN"

    def validate_sales_person(self, value: str) -> Validation:
        """
        Validate sales person name.

        Args:
            value: Name to validate.

        Returns:
            Tuple of (is_valid, message).
        """
        if not value:
            return False, "Sales person is empty"

        if not 3 <= len(value) <= 50:
            return False, f"Sales person length {len(value)} outside 3-50"

        if not self.library.person_name.match(value):
            return False, "Sales person must be letters, spaces and dots"

        if self.library.sales_reject.match(value):
            return False, f"Sales person is a keyword: {value}"

        return True, "Valid sales person"

    def validate_payment_terms(self, value: str) -> Validation:
        """Validate payment terms (2-50 chars, not a bare keyword)."""
        if not value:
            return False, "Payment terms are empty"
        if not 2 <= len(value) <= 50:
            return False, f"Payment terms length {len(value)} outside 2-50"
        if self.library.payment_terms_reject.match(value):
            return False, f"Payment terms are a keyword: {value}"
        return True, "Valid payment terms"

    def validate_order_number(self, value: str) -> Validation:
        """Validate a delivery or sales order number (5-12 digits)."""
        if not value or not _DIGITS_RE.match(value):
            return False, "Order number must be digits only"
        if not 5 <= len(value) <= 12:
            return False, f"Order number length {len(value)} outside 5-12"
        return True, "Valid order number"
