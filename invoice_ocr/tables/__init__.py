"""
Line Item Table Module.

This module extracts the itemized table of an invoice:
    - Table structure detection (header row, columns, end boundary)
    - Row parsing with continuation merging
    - Layout strategies and their orchestrator
"""

from .line_item import InvoiceLineItem
from .structure import TableStructure, TableStructureAnalyzer
from .row_parser import LineItemParser, RowContext, assign_numeric_roles
from .amounts import bind_amounts
from .strategies import (
    CodedRowStrategy,
    HorizontalSummaryStrategy,
    TableStrategy,
    VerticalTableStrategy,
)
from .orchestrator import LineItemOrchestrator

__all__ = [
    'InvoiceLineItem',
    'TableStructure',
    'TableStructureAnalyzer',
    'LineItemParser',
    'RowContext',
    'assign_numeric_roles',
    'bind_amounts',
    'CodedRowStrategy',
    'HorizontalSummaryStrategy',
    'TableStrategy',
    'VerticalTableStrategy',
    'LineItemOrchestrator',
]
