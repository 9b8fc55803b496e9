"""
Utility Module for the Invoice OCR Extraction Engine.

This module provides common utilities used across all other modules:
    - Logging configuration
    - Exception hierarchy
    - Text helpers shared by the extractors
"""

from .logger import setup_logger, get_logger
from .helpers import NOT_FOUND, OcrDocument, split_lines, collapse_whitespace, is_found

__all__ = [
    'setup_logger',
    'get_logger',
    'NOT_FOUND',
    'OcrDocument',
    'split_lines',
    'collapse_whitespace',
    'is_found'
]
