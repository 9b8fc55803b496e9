"""
Pytest configuration and shared OCR samples.

Every test starts from a fresh configuration singleton and a fresh
pattern library cache so settings never leak between tests.
"""

import pytest

from config import ConfigurationManager
from invoice_ocr.patterns import build_pattern_library, get_pattern_library


STANDARD_INVOICE = """
123 ACME TRADING LLC, P.O. Box 4567
Dubai, United Arab Emirates
TRN: 100234567890003
TAX INVOICE
Invoice No: INV-2024-00123
Date 09/02/2026
Salesman: John Smith
Payment Terms: 30 Days
DO No: 4500123
SO No: 7700456
S.No  Item Code  Description  Qty  UOM  Rate  Amount
1  G665168000  Ball Valve 2 inch  10  EA  25.00  250.00
2  G665169000  Gate Valve 3 inch  4  PCS  110.00  440.00
Sub Total  690.00
VAT 5%  34.50
Grand Total  724.50
"""

TECHNO_KING_INVOICE = """
Techno King Trading Co. LLC
P.O. Box 12345, Dubai
TRN 100456789000003
TAX INVOICE
Invoice No: TK-45821
Invoice Date: 15-Jan-2026
Item Code  Description
70CB3X6
TOYO CHAIN BLOCK 3.0T X 6MTR
PCS
4.00
410.00
1,640.00
VAT Rate % 5 %
82.00
1,722.00
"""

CODED_ROWS_INVOICE = """
GF Corys Piping Systems LLC - Dubai
Invoice Number: 908765
S.no
Item Code
1 G665168000 PVC Ball Valve DN50
10 EA 25.00 250.00
2 G665170000 PVC Gate Valve DN80
12 EA 40.00 480.00
Total 730.00
"""

NO_TABLE_TEXT = """
Invoice No: 55512
Thank you for your business
Please call us with any questions
"""


@pytest.fixture(autouse=True)
def reset_config():
    """Fresh configuration and pattern library for each test."""
    ConfigurationManager.reset()
    get_pattern_library.cache_clear()
    yield
    ConfigurationManager.reset()
    get_pattern_library.cache_clear()


@pytest.fixture
def library():
    """Pattern library built from built-in data only."""
    return build_pattern_library()


@pytest.fixture
def standard_invoice():
    return STANDARD_INVOICE


@pytest.fixture
def techno_king_invoice():
    return TECHNO_KING_INVOICE


@pytest.fixture
def coded_rows_invoice():
    return CODED_ROWS_INVOICE


@pytest.fixture
def no_table_text():
    return NO_TABLE_TEXT
