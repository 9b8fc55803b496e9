"""
Scalar Field Extraction Module.

This module extracts the invoice header fields from OCR text:
    - Declarative per-field strategy cascades
    - Per-field validators
    - HeaderFields result container
"""

from .header_fields import FIELD_NAMES, HeaderFields
from .extractor import FieldExtractor, build_field_specs
from .strategies import (
    FieldSpec,
    InlineLabelStrategy,
    KnownLiteralStrategy,
    NextLineLabelStrategy,
    PositionalStrategy,
)
from .validators import DateValidator, FieldValidator

__all__ = [
    'FIELD_NAMES',
    'HeaderFields',
    'FieldExtractor',
    'build_field_specs',
    'FieldSpec',
    'InlineLabelStrategy',
    'KnownLiteralStrategy',
    'NextLineLabelStrategy',
    'PositionalStrategy',
    'DateValidator',
    'FieldValidator',
]
