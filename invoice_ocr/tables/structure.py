"""
Table Structure Analyzer Module.

This module locates the line-item table inside OCR text: the header
row naming the columns, the position of each recognized column and the
line where the table ends (first totals / freight / exchange-rate line).

"No table" is a normal negative result, signalled by an unresolved
header index; it is never an exception.

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

from config import get_config
from invoice_ocr.patterns import ColumnRole, PatternLibrary, get_pattern_library
from invoice_ocr.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

UNKNOWN = -1


def _unknown_columns() -> Dict[ColumnRole, int]:
    return {role: UNKNOWN for role in ColumnRole}


@dataclass
class TableStructure:
    """
    Detected layout of the line-item table.

    Attributes:
        header_row_index: Index of the header line, -1 when no table
        table_end_index: Index of the first line after the table body
        columns: Column role to token position, -1 when unresolved

    Example:
        >>> structure = TableStructureAnalyzer().analyze(lines)
        >>> if structure.is_detected:
        ...     body = lines[structure.header_row_index + 1:structure.table_end_index]
    """
    header_row_index: int = UNKNOWN
    table_end_index: int = UNKNOWN
    columns: Dict[ColumnRole, int] = field(default_factory=_unknown_columns)

    @property
    def is_detected(self) -> bool:
        """True when a header row was found."""
        return self.header_row_index != UNKNOWN

    def has_column(self, role: ColumnRole) -> bool:
        """Check whether a column role was resolved."""
        return self.columns.get(role, UNKNOWN) != UNKNOWN

    def column(self, role: ColumnRole) -> Optional[int]:
        """
        Position of a resolved column.

        Returns:
            Token position, or None when the role is unresolved.
        """
        position = self.columns.get(role, UNKNOWN)
        return None if position == UNKNOWN else position

    @property
    def body_range(self) -> range:
        """Line indices of the table body (empty when no table)."""
        if not self.is_detected:
            return range(0)
        return range(self.header_row_index + 1, self.table_end_index)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            'header_row_index': self.header_row_index,
            'table_end_index': self.table_end_index,
            'columns': {role.value: position for role, position in self.columns.items()},
        }


class TableStructureAnalyzer:
    """
    Finds the header row, column positions and end of the item table.

    A line is the header row when it names at least ``min_header_roles``
    distinct detection roles (description, item code, quantity, UOM,
    rate). Only the first ``header_scan`` lines are inspected.

    Attributes:
        library: Pattern library with column synonyms
        header_scan: Number of leading lines scanned for the header
        min_header_roles: Distinct roles a header must name
    """

    def __init__(self, library: Optional[PatternLibrary] = None) -> None:
        """
        Initialize the analyzer.

        Args:
            library: Pattern library. If None, uses the shared library.
        """
        self.library = library or get_pattern_library()
        self.header_scan = int(get_config("extraction.windows.header_scan", 50))
        self.min_header_roles = int(get_config("extraction.table.min_header_roles", 3))

    def count_header_roles(self, line: str) -> int:
        """Number of distinct detection roles a line names."""
        patterns = self.library.role_patterns
        return sum(
            1 for role in self.library.header_detection_roles
            if role in patterns and patterns[role].search(line)
        )

    def is_header_row(self, line: str) -> bool:
        """Check whether a line qualifies as a table header."""
        return self.count_header_roles(line) >= self.min_header_roles

    def analyze(self, lines: Sequence[str]) -> TableStructure:
        """
        Detect the table structure of a document.

        Args:
            lines: Trimmed, non-blank OCR lines.

        Returns:
            TableStructure; header_row_index is -1 when no header qualifies.
        """
        structure = TableStructure()

        for index, line in enumerate(lines[:self.header_scan]):
            if self.is_header_row(line):
                structure.header_row_index = index
                break

        if not structure.is_detected:
            logger.debug("No table header row found")
            return structure

        structure.columns = self.map_columns(lines[structure.header_row_index])
        structure.table_end_index = self.find_table_end(lines, structure.header_row_index)

        logger.debug(f"Table structure detected: {structure.to_dict()}")
        return structure

    def map_columns(self, header_line: str) -> Dict[ColumnRole, int]:
        """
        Map header tokens to column roles.

        Each whitespace token is matched by substring against the role
        synonyms; the first matching role wins for that token and a later
        token overrides an earlier one for the same role.

        Args:
            header_line: The detected header row.

        Returns:
            Column role to token position (-1 when unresolved).
        """
        columns = _unknown_columns()

        for position, token in enumerate(header_line.upper().split()):
            for role in ColumnRole:
                synonyms = self.library.column_synonyms.get(role, ())
                if any(synonym in token for synonym in synonyms):
                    columns[role] = position
                    break

        return columns

    def find_table_end(self, lines: Sequence[str], header_index: int) -> int:
        """Index of the first terminal-section line after the header."""
        for index in range(header_index + 1, len(lines)):
            if self.library.table_end.match(lines[index]):
                return index
        return len(lines)
