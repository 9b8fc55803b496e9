"""
Helper Utilities Module.

This module provides the text utilities shared by the scalar field
extractors and the table strategies. Functions here are generic and
have no knowledge of specific invoice fields.

Functions:
    - split_lines: Split OCR text into trimmed, non-blank lines
    - collapse_whitespace: Replace whitespace runs with a single space
    - is_found: Check a field value against the "N/A" sentinel
    - require_text: Reject non-string engine input
    - parse_number: Convert a numeric token to float
"""

import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

from invoice_ocr.utils.exceptions import InvalidInputError

# Sentinel returned for every scalar field that no strategy could extract
NOT_FOUND = "N/A"

_LINE_BREAK_RE = re.compile(r'[\r\n]+')
_WHITESPACE_RE = re.compile(r'\s+')

# Decimal-comma amount (820,00 or 1.640,00)
DECIMAL_COMMA_RE = re.compile(r'^\d+(?:\.\d{3})*,\d{2}$')


def split_lines(text: str) -> Tuple[str, ...]:
    """
    Split OCR text into an ordered tuple of trimmed, non-blank lines.

    Args:
        text: Raw OCR text.

    Returns:
        Tuple of lines with surrounding whitespace removed.

    Example:
        >>> split_lines("INVOICE\\r\\n\\n  Date 09/02/2026  ")
        ('INVOICE', 'Date 09/02/2026')
    """
    return tuple(
        line.strip() for line in _LINE_BREAK_RE.split(text or "")
        if line.strip()
    )


def collapse_whitespace(text: str) -> str:
    """
    Collapse runs of whitespace into single spaces and trim the result.

    Args:
        text: Text to clean.

    Returns:
        Cleaned text.
    """
    return _WHITESPACE_RE.sub(' ', text or "").strip()


def is_found(value: Optional[str]) -> bool:
    """
    Check whether a field value holds an extracted result.

    Args:
        value: Field value.

    Returns:
        True unless the value is empty or the "N/A" sentinel.
    """
    return bool(value) and value != NOT_FOUND


def require_text(text) -> str:
    """
    Guard the engine entry points against non-text input.

    Args:
        text: Value handed to the engine.

    Returns:
        The text unchanged.

    Raises:
        InvalidInputError: If text is not a string.
    """
    if not isinstance(text, str):
        raise InvalidInputError(type(text).__name__)
    return text


def parse_number(token: str) -> Optional[float]:
    """
    Convert a numeric token to a float.

    Grouping commas ("1,640.00") are stripped; a decimal comma
    ("1.640,00") is read as the decimal point.

    Args:
        token: Numeric token, e.g. "1,640.00" or "820,00".

    Returns:
        Float value or None if the token is not numeric.
    """
    try:
        if DECIMAL_COMMA_RE.match(token):
            return float(token.replace('.', '').replace(',', '.'))
        return float(token.replace(',', ''))
    except (AttributeError, TypeError, ValueError):
        return None


@dataclass(frozen=True)
class OcrDocument:
    """
    Immutable view of one OCR text block.

    The text is split once per extraction call; every strategy reads
    the same tuple of lines.

    Attributes:
        text: Original OCR text.
        lines: Trimmed, non-blank lines in document order.
    """
    text: str
    lines: Tuple[str, ...] = field(default=())

    @classmethod
    def from_text(cls, text: str) -> 'OcrDocument':
        """Build a document from raw OCR text."""
        return cls(text=text or "", lines=split_lines(text))

    def head(self, count: int) -> Tuple[str, ...]:
        """Return at most the first ``count`` lines."""
        return self.lines[:max(count, 0)]

    def __len__(self) -> int:
        return len(self.lines)
