"""
Invoice OCR Extraction Engine - Source Package.

This package turns raw OCR text of an invoice into a fixed set of
scalar header fields plus an ordered list of line items.

Modules:
    - patterns: Immutable pattern library and known vendor templates
    - fields: Scalar header field extraction
    - tables: Table detection, row parsing and layout strategies
    - engine: InvoiceEngine facade running both paths
    - utils: Logging, exceptions and text helpers

Architecture:
    OCR text → Field Extractor ────────────► Header fields
             → Strategy Orchestrator → Table Analyzer + Row Parser → Line items
"""

__version__ = "1.0.0"
__author__ = "ML Engineering Team"

from .engine import InvoiceEngine, InvoiceExtraction

__all__ = [
    'InvoiceEngine',
    'InvoiceExtraction',
    'patterns',
    'fields',
    'tables',
    'utils'
]
