"""
Scalar Field Extractor Module.

This module provides the FieldExtractor class that pulls the invoice
header fields out of raw OCR text.

Approach:
    Each field is a declarative FieldSpec: an ordered list of strategies
    (known literal, inline label, next-line label, positional scan), a
    cleaner and a validator. A single runner returns the first candidate
    that survives cleaning and validation, else the "N/A" sentinel.

Line windows are read from ``extraction.windows`` in settings.yaml.

Author: ML Engineering Team
"""

import re
from functools import partial
from typing import Dict, Iterator, Optional

from config import get_config
from invoice_ocr.patterns import PatternLibrary, get_pattern_library
from invoice_ocr.utils.exceptions import UnknownFieldError
from invoice_ocr.utils.helpers import NOT_FOUND, OcrDocument, collapse_whitespace, require_text
from invoice_ocr.utils.logger import get_logger
from .header_fields import FIELD_NAMES, HeaderFields
from .strategies import (
    FieldSpec,
    InlineLabelStrategy,
    KnownLiteralStrategy,
    NextLineLabelStrategy,
    PositionalStrategy,
)
from .validators import FieldValidator

# Initialize module logger
logger = get_logger(__name__)

DEFAULT_WINDOWS = {
    'company_name': 30,
    'company_fallback': 15,
    'invoice_number': 50,
    'invoice_positional': 30,
    'date': 50,
    'sales_person_ratio': 0.7,
    'sales_person_cap': 120,
}

_MULTI_SPACE_RE = re.compile(r'\s{2,}')
_TRAILING_NON_ALPHA_RE = re.compile(r'[^A-Za-z]+$')
_COMPANY_NOISE_RE = re.compile(r'[|\\]')
_MIN_LETTER_RUN_RE = re.compile(r'[A-Za-z]{8,}')


def load_windows() -> Dict[str, float]:
    """
    Read line-window sizes from configuration.

    Returns:
        Window name to size, with defaults for missing keys.
    """
    configured = get_config("extraction.windows", {}) or {}
    return {key: configured.get(key, default) for key, default in DEFAULT_WINDOWS.items()}


# =============================================================================
# CLEANERS
# =============================================================================

def clean_value(value: str) -> str:
    """Collapse whitespace and strip separator punctuation at both ends."""
    return collapse_whitespace(value).strip(' :;,.-')


def clean_company_name(value: str, library: PatternLibrary) -> str:
    """
    Clean a company name candidate.

    Strips a leading serial number, pipes and backslashes, collapses
    whitespace and drops trailing dashes.
    """
    value = library.leading_serial.sub('', value.strip())
    value = _COMPANY_NOISE_RE.sub(' ', value)
    return collapse_whitespace(value).rstrip('- ').strip()


def clean_sales_person(value: str) -> str:
    """Keep the first column of a sales person capture."""
    value = _MULTI_SPACE_RE.split(value.strip())[0]
    value = collapse_whitespace(value)
    return _TRAILING_NON_ALPHA_RE.sub('', value)


def clean_date(value: str) -> str:
    return collapse_whitespace(value).strip(' ,')


def clean_digits(value: str) -> str:
    return re.sub(r'\s', '', value)


# =============================================================================
# POSITIONAL SCANS
# =============================================================================

def scan_company_by_suffix(document: OcrDocument, library: PatternLibrary, window: int) -> Iterator[str]:
    """
    Propose names carrying a legal suffix (LLC, Ltd, Co., ...).

    The name is cut right after its suffix so trailing address or
    contact fragments are excluded; a short line free of contact tokens
    is proposed whole when the cut fails.
    """
    for line in document.head(window):
        stripped = library.leading_serial.sub('', line).strip()
        if len(stripped) < 5 or library.numeric_line.match(stripped):
            continue
        if library.company_skip.match(stripped):
            continue
        if not library.legal_suffix.search(stripped):
            continue

        match = library.company_with_suffix.match(stripped)
        if match:
            yield match.group(1)
        elif len(stripped) < 80 and not library.company_contact.search(stripped):
            yield stripped


def scan_company_by_keyword(document: OcrDocument, library: PatternLibrary, window: int) -> Iterator[str]:
    """Propose lines naming a trading-style business (Trading, Group, ...)."""
    for line in document.head(window):
        stripped = library.leading_serial.sub('', line).strip()
        if not 10 <= len(stripped) <= 100:
            continue
        if library.trading_skip.match(stripped) or not library.trading_keyword.search(stripped):
            continue

        match = library.trading_name.match(stripped)
        if match:
            yield match.group(1)


def scan_company_first_line(document: OcrDocument, library: PatternLibrary, window: int) -> Iterator[str]:
    """Propose the first meaningful capitalised line near the top."""
    for line in document.head(window):
        stripped = library.leading_serial.sub('', line).strip()
        if not 15 <= len(stripped) <= 100:
            continue
        if library.numeric_line.match(stripped) or library.company_skip.match(stripped):
            continue
        if not _MIN_LETTER_RUN_RE.search(stripped):
            continue

        match = library.first_line_name.match(stripped)
        if match:
            yield match.group(1)


def scan_invoice_six_digit(document: OcrDocument, library: PatternLibrary, window: int) -> Iterator[str]:
    """
    Propose a standalone 6-digit number on or just below an "Invoice" line.

    Lines carrying a full date are skipped so date fragments never pass.
    """
    lines = document.head(window)
    for index, line in enumerate(lines):
        if library.full_date.search(line):
            continue
        match = library.six_digit.search(line)
        if not match:
            continue

        previous = lines[index - 1] if index > 0 else ""
        if library.invoice_context.search(previous) or library.invoice_self_context.search(line):
            yield match.group(1)


def scan_first_date(document: OcrDocument, library: PatternLibrary, window: int) -> Iterator[str]:
    """Propose date-shaped tokens in document order."""
    for line in document.head(window):
        for shape in library.date_shapes:
            match = shape.search(line)
            if match:
                yield match.group(1)


# =============================================================================
# FIELD SPECS
# =============================================================================

def build_field_specs(
    library: PatternLibrary,
    windows: Optional[Dict[str, float]] = None
) -> Dict[str, FieldSpec]:
    """
    Declare the strategy cascade of every scalar field.

    Args:
        library: Pattern library shared by all strategies.
        windows: Line-window sizes (defaults from configuration).

    Returns:
        Field name to FieldSpec, in extraction order.
    """
    windows = windows or load_windows()
    validator = FieldValidator(library)
    templates = library.templates
    date_window = int(windows['date'])

    def sales_window(document: OcrDocument) -> int:
        return min(int(len(document) * windows['sales_person_ratio']), int(windows['sales_person_cap']))

    def date_cascade(field_name, labels, exclude=None):
        return (
            KnownLiteralStrategy(field_name, templates),
            InlineLabelStrategy(labels, library.date_shapes, exclude=exclude, name="date_label"),
            NextLineLabelStrategy(
                labels, library.date_shapes, lookahead=1, exclude=exclude, name="date_label_next_line"
            ),
        )

    specs = [
        FieldSpec(
            name='company_name',
            strategies=(
                KnownLiteralStrategy('company_name', templates),
                PositionalStrategy('legal_suffix', partial(
                    scan_company_by_suffix, library=library, window=int(windows['company_name']))),
                PositionalStrategy('trading_keyword', partial(
                    scan_company_by_keyword, library=library, window=int(windows['company_name']))),
                PositionalStrategy('first_line', partial(
                    scan_company_first_line, library=library, window=int(windows['company_fallback']))),
            ),
            cleaner=partial(clean_company_name, library=library),
            validator=validator.validate_company_name,
        ),
        FieldSpec(
            name='invoice_number',
            strategies=(
                KnownLiteralStrategy('invoice_number', templates),
                InlineLabelStrategy(
                    library.invoice_number_patterns,
                    window=int(windows['invoice_number']),
                    reject=library.invoice_reject,
                    name="invoice_label",
                ),
                NextLineLabelStrategy(
                    (library.invoice_label_only,),
                    (library.invoice_next_line_value,),
                    lookahead=1,
                    window=int(windows['invoice_number']),
                    reject=library.invoice_reject,
                    name="invoice_label_next_line",
                ),
                PositionalStrategy('six_digit', partial(
                    scan_invoice_six_digit, library=library, window=int(windows['invoice_positional']))),
            ),
            cleaner=clean_value,
            validator=validator.validate_invoice_number,
        ),
        FieldSpec(
            name='invoice_date',
            strategies=(
                date_cascade('invoice_date', (library.invoice_date_label,))
                + date_cascade('invoice_date', (library.generic_date_label,), exclude=library.other_date_label)[1:]
                + (PositionalStrategy('first_date', partial(
                    scan_first_date, library=library, window=date_window)),)
            ),
            cleaner=clean_date,
            validator=validator.date_validator.validate,
        ),
        FieldSpec(
            name='trn',
            strategies=(
                KnownLiteralStrategy('trn', templates),
                InlineLabelStrategy(library.trn_patterns, all_matches=True, name="trn_label"),
            ),
            cleaner=clean_digits,
            validator=validator.validate_trn,
        ),
        FieldSpec(
            name='sales_person',
            strategies=(
                KnownLiteralStrategy('sales_person', templates),
                InlineLabelStrategy(
                    library.sales_inline_patterns,
                    window=sales_window,
                    reject=library.sales_reject,
                    name="sales_label",
                ),
                NextLineLabelStrategy(
                    library.sales_label_only_patterns,
                    (library.sales_next_line_value,),
                    lookahead=3,
                    window=sales_window,
                    reject=library.sales_reject,
                    name="sales_label_next_line",
                ),
            ),
            cleaner=clean_sales_person,
            validator=validator.validate_sales_person,
        ),
        FieldSpec(
            name='payment_terms',
            strategies=(
                KnownLiteralStrategy('payment_terms', templates),
                InlineLabelStrategy(
                    library.payment_terms_patterns,
                    reject=library.payment_terms_reject,
                    name="payment_terms",
                ),
            ),
            cleaner=clean_value,
            validator=validator.validate_payment_terms,
        ),
        FieldSpec(
            name='ship_date',
            strategies=(
                date_cascade('ship_date', (library.ship_date_label,))
                + (PositionalStrategy('first_date', partial(
                    scan_first_date, library=library, window=date_window)),)
            ),
            cleaner=clean_date,
            validator=validator.date_validator.validate,
        ),
        FieldSpec(
            name='do_number',
            strategies=(
                KnownLiteralStrategy('do_number', templates),
                InlineLabelStrategy(library.do_number_patterns, name="do_label"),
            ),
            cleaner=clean_digits,
            validator=validator.validate_order_number,
        ),
        FieldSpec(
            name='so_number',
            strategies=(
                KnownLiteralStrategy('so_number', templates),
                InlineLabelStrategy(library.so_number_patterns, name="so_label"),
            ),
            cleaner=clean_digits,
            validator=validator.validate_order_number,
        ),
    ]

    return {spec.name: spec for spec in specs}


class FieldExtractor:
    """
    Rule-based extractor for invoice header fields.

    The extractor holds only read-only state (the pattern library and
    the compiled field specs) and can be shared between threads.

    Attributes:
        library: Pattern library in use
        specs: Field name to FieldSpec mapping

    Example:
        >>> extractor = FieldExtractor()
        >>> extractor.extract("invoice_number", "Invoice No: INV-2024-00123")
        'INV-2024-00123'
        >>> extractor.extract("trn", "no tax number here")
        'N/A'
    """

    def __init__(
        self,
        library: Optional[PatternLibrary] = None,
        windows: Optional[Dict[str, float]] = None
    ) -> None:
        """
        Initialize the field extractor.

        Args:
            library: Pattern library. If None, uses the shared library.
            windows: Line-window overrides. If None, uses config.
        """
        self.library = library or get_pattern_library()
        self.specs = build_field_specs(self.library, windows)
        logger.debug(f"FieldExtractor initialized ({len(self.specs)} fields)")

    @property
    def field_names(self):
        """Supported field names in extraction order."""
        return tuple(self.specs)

    def extract(self, field_name: str, text: str) -> str:
        """
        Extract a single field.

        Args:
            field_name: One of the supported field names.
            text: Raw OCR text.

        Returns:
            Extracted value or "N/A".

        Raises:
            UnknownFieldError: If the field name is not supported.
            InvalidInputError: If text is not a string.
        """
        if field_name not in self.specs:
            raise UnknownFieldError(field_name, list(self.specs))
        require_text(text)
        return self._run(self.specs[field_name], OcrDocument.from_text(text))

    def extract_all(self, text: str) -> HeaderFields:
        """
        Extract every header field from one OCR text.

        Args:
            text: Raw OCR text.

        Returns:
            HeaderFields with each field set or left at "N/A".
        """
        require_text(text)
        document = OcrDocument.from_text(text)
        values = {name: self._run(self.specs[name], document) for name in FIELD_NAMES}
        header = HeaderFields(**values)
        logger.info(
            f"Header fields: {len(header.found_fields)}/{len(FIELD_NAMES)} found"
        )
        return header

    def _run(self, spec: FieldSpec, document: OcrDocument) -> str:
        """Run one field spec, degrading unexpected failures to the sentinel."""
        try:
            return spec.run(document)
        except Exception as e:
            logger.error(f"Extraction of {spec.name} failed: {e}", exc_info=True)
            return NOT_FOUND
