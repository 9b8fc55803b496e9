"""
Pattern Library Module.

This module holds every regular expression and synonym list the engine
uses, grouped per semantic field and per table concern. The library is
pure data: it is built once per process, never mutated, and passed by
reference into each extractor.

Groups:
    - Company name: legal suffixes, keyword guards, name shapes
    - Invoice number, dates, TRN, sales person, payment terms, DO/SO numbers
    - Table: column header synonyms, terminal markers, UOM vocabulary,
      item-code shapes, description shapes, numeric tokens

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Pattern, Tuple

from config import get_config
from invoice_ocr.utils.logger import get_logger
from invoice_ocr.utils.exceptions import PatternLibraryError
from .templates import BUILTIN_TEMPLATES, KnownTemplate, TemplateRegistry

logger = get_logger(__name__)

IC = re.IGNORECASE


def _ci(*patterns: str) -> Tuple[Pattern, ...]:
    """Compile case-insensitive patterns preserving order."""
    return tuple(re.compile(p, IC) for p in patterns)


class ColumnRole(str, Enum):
    """Semantic role of a line-item table column."""
    DESCRIPTION = "description"
    ITEM_CODE = "item_code"
    QUANTITY = "quantity"
    UOM = "uom"
    RATE = "rate"
    AMOUNT_EXCL_VAT = "amount_excl_vat"
    VAT_PERCENT = "vat_percent"
    VAT_AMOUNT = "vat_amount"
    AMOUNT_INCL_VAT = "amount_incl_vat"


# =============================================================================
# COMPANY NAME
# =============================================================================

_LEGAL_SUFFIX = (
    r'L\.?\s?L\.?\s?C|Ltd|Limited|Inc|Incorporated|Corp|Corporation|Co\.|Company'
    r'|PLC|FZE|FZCO|FZ-LLC'
)

LEGAL_SUFFIX_RE = re.compile(rf'\b(?:{_LEGAL_SUFFIX})(?![A-Za-z])', IC)

# Name up to the legal suffix; trailing suffixes ("Co. LLC") stay attached
COMPANY_WITH_SUFFIX_RE = re.compile(
    rf'^([A-Z][^,\d]*?\b(?:{_LEGAL_SUFFIX})(?:\s+(?:{_LEGAL_SUFFIX}))*)(?=\s|,|$)', IC
)

COMPANY_SKIP_RE = re.compile(
    r'^(?:Invoice|Tax\s*Invoice|Date|Total|TRN|VAT|Amount|Payment|Tel|Fax|Phone|Mobile'
    r'|E-?mail|Website|www\.|P\.?\s*O\b|Address|Bill\s*To|Ship\s*To|Customer|Attention|Page)',
    IC
)

COMPANY_CONTACT_RE = re.compile(
    r'(?:\bTel\b|\bFax\b|E-?mail|P\.\s*O\.|\bBox\b|Address|\d{7,})', IC
)

TRADING_KEYWORD_RE = re.compile(
    r'\b(?:Trading|Enterprises|Group|Industries|International|Piping|Engineering|Contracting)\b',
    IC
)

TRADING_SKIP_RE = re.compile(r'^(?:Invoice|Date|Tel|Fax|E-?mail|Bill|Ship|Area)', IC)

TRADING_NAME_RE = re.compile(r'^([A-Z][^,]*?)(?:,|\d{5,}|$)')

FIRST_LINE_NAME_RE = re.compile(
    r'^([A-Z][^,\d]*?)(?:,|\d{5,}|\bTRN\b|\bVAT\b|\bTel\b|\bFax\b|$)'
)

# Serial numbers and other digit/punctuation-only lines
NUMERIC_LINE_RE = re.compile(r'^[\d\s,.\-/]+$')
LEADING_SERIAL_RE = re.compile(r'^\d+\s*')


# =============================================================================
# INVOICE NUMBER
# =============================================================================

INVOICE_NUMBER_PATTERNS = _ci(
    r'Invoice\s*(?:No\.?|Number|#)[:\s]*([A-Z0-9\-/]{3,20})',
    r'\bInv\.?\s*(?:No\.?|Number|#)[:\s]*([A-Z0-9\-/]{3,20})',
    r'Tax\s*Invoice\s*(?:No\.?|Number)?[:\s]*([A-Z0-9\-/]{3,20})',
)

INVOICE_LABEL_ONLY_RE = re.compile(
    r'^(?:Invoice\s*(?:No\.?|Number|#)|Inv\.?\s*(?:No\.?|Number|#)|Tax\s*Invoice(?:\s*No\.?)?)[:\s]*$',
    IC
)

INVOICE_NEXT_LINE_VALUE_RE = re.compile(r'^([A-Z0-9][A-Z0-9\-/]{2,19})')

INVOICE_REJECT_RE = re.compile(
    r'^(?:Date|Tax|Total|Amount|Ref|Number|No|Customer|Value|Salesman|Legal|Original|Copy)$',
    IC
)

SIX_DIGIT_RE = re.compile(r'\b(\d{6})\b')
INVOICE_CONTEXT_RE = re.compile(r'(?:Invoice|\bInv\b|\bTax\b)', IC)
INVOICE_SELF_CONTEXT_RE = re.compile(r'(?:Invoice|\bInv\b)', IC)
FULL_DATE_RE = re.compile(r'\d{2}[/-]\d{2}[/-]\d{4}')
DATE_PREFIX_RE = re.compile(r'^\d{1,2}[-/]\d{1,2}')


# =============================================================================
# DATES
# =============================================================================

_MONTHS = r'(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)'

DATE_SHAPES = _ci(
    r'\b(\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4})\b',
    rf'\b(\d{{1,2}}\s+{_MONTHS}[a-z]*[,\s]+\d{{4}})\b',
    rf'\b(\d{{1,2}}[-/]{_MONTHS}[-/]\d{{2,4}})\b',
    r'\b(\d{4}[-/.]\d{1,2}[-/.]\d{1,2})\b',
)

INVOICE_DATE_LABEL_RE = re.compile(
    r'\b(?:Invoice\s*Date|Inv\.?\s*Date|Dated|Date\s*of\s*Invoice)(?=\s|:|$)', IC
)

GENERIC_DATE_LABEL_RE = re.compile(r'\bDate(?=\s|:|$)', IC)

OTHER_DATE_LABEL_RE = re.compile(
    r'\b(?:Ship(?:ping)?|Delivery|Dispatch|Due|Expiry|LPO|PO)\s*Date', IC
)

SHIP_DATE_LABEL_RE = re.compile(
    r'\b(?:Ship\s*Date|Shipping\s*Date|Delivery\s*Date|Dispatch\s*Date)', IC
)


# =============================================================================
# TAX REGISTRATION NUMBER
# =============================================================================

TRN_PATTERNS = _ci(
    r'TRN[:\s#.]*(\d{9,20})',
    r'VAT\s*TRN\s*(?:No\.?|Number)?[:\s]*(\d{9,20})',
    r'Tax\s*Registration\s*(?:No\.?|Number)[:\s]*(\d{9,20})',
    r'VAT\s*(?:No\.?|Number|Registration)[:\s]*(\d{9,20})',
    r'Tax\s*(?:ID|No\.?|Number)[:\s]*(\d{9,20})',
    r'\b(100\d{12,15})\b',
    r'\b(\d{9,20})\b',
)

TRN_LIKE_RE = re.compile(r'\d{9,}')
TAX_ID_PREFIXES = ("100",)


# =============================================================================
# SALES PERSON
# =============================================================================

SALES_LABELS = (
    r'Salesman',
    r'Sales\s*Man',
    r'Sales\s*Person',
    r'Salesperson',
    r'Sales\s*Rep(?:resentative)?',
    r'Sales\s*Name',
    r'Sales\s*Agent',
    r'Sales\s*Executive',
)

SALES_INLINE_PATTERNS = tuple(
    re.compile(label + r'[:\s]+([A-Z][A-Za-z\s.]{2,50})', IC) for label in SALES_LABELS
)

SALES_LABEL_ONLY_PATTERNS = tuple(
    re.compile(r'^\s*' + label + r'\s*:?\s*$', IC) for label in SALES_LABELS
)

SALES_NEXT_LINE_VALUE_RE = re.compile(r'^([A-Z][A-Za-z\s.]{2,49})$')
PERSON_NAME_RE = re.compile(r'^[A-Z][A-Za-z\s.]+$')

SALES_REJECT_RE = re.compile(
    r'^(?:Payment|Terms|Date|Ship|Invoice|Total|Customer|Number|TRN|Tax|Delivery|Rate'
    r'|Amount|Qty|Price|UOM|Legal|Area|Code|Name)$',
    IC
)


# =============================================================================
# PAYMENT TERMS, DELIVERY ORDER, SALES ORDER
# =============================================================================

PAYMENT_TERMS_PATTERNS = _ci(
    r'Payment\s*Terms?[:\s]*([^\n\r]{3,50}?)[ \t]*(?:[\n\r]|$)',
    r'\bTerms[:\s]*(\d+\s*(?:Days?|Net))',
    r'\b(\d+\s*Days?(?:\s*PDC)?)\b',
    r'\b(Net\s*\d+)\b',
)

PAYMENT_TERMS_REJECT_RE = re.compile(
    r'^(?:Date|Due\s*Date|Total|Amount|Salesman|Sales\s*Person|N/?A)$', IC
)

DO_NUMBER_PATTERNS = _ci(
    r'\bD\.?\s*O\.?\s*(?:No\.?|Number|#)[:\s]*(\d{5,12})',
    r'Delivery\s*(?:Order|Note)\s*(?:No\.?|Number|#)?[:\s]*(\d{5,12})',
    r'\bDO\s*(?:No\.?|Number|#)[:\s]*(\d{5,12})',
    r'\bDO[:\s#-]*(\d{5,12})\b',
)

SO_NUMBER_PATTERNS = _ci(
    r'\bS\.?\s*O\.?\s*(?:No\.?|Number|#)[:\s]*(\d{5,12})',
    r'Sales\s*Order\s*(?:No\.?|Number|#)?[:\s]*(\d{5,12})',
    r'\bSO\s*(?:No\.?|Number|#)[:\s]*(\d{5,12})',
    r'\bSO[:\s#-]*(\d{5,12})\b',
    r'\b(?:L?P)\.?\s*O\.?\s*(?:No\.?|Number|#)[:\s]*(\d{5,12})',
)


# =============================================================================
# TABLE STRUCTURE
# =============================================================================

COLUMN_SYNONYMS: Dict[ColumnRole, Tuple[str, ...]] = {
    ColumnRole.DESCRIPTION: (
        "ITEM DESCRIPTION", "DESCRIPTION", "DESC", "ITEM", "PRODUCT",
        "PRODUCT DESCRIPTION", "PARTICULARS", "DETAILS",
    ),
    ColumnRole.ITEM_CODE: (
        "ITEM CODE", "CODE", "ITEM NO", "PRODUCT CODE", "SKU",
        "PART NO", "PART NUMBER", "ITEM#",
    ),
    ColumnRole.QUANTITY: ("QTY", "QUANTITY", "QUAN", "QTY.", "NO", "NOS", "PCS"),
    ColumnRole.UOM: ("UOM", "UNIT", "U/M", "UNITS", "UM"),
    ColumnRole.RATE: (
        "UNIT RATE", "RATE", "UNIT PRICE", "PRICE", "RATE/UNIT",
        "UNIT RATE (AED)", "UNIT RATE(AED)",
    ),
    ColumnRole.AMOUNT_EXCL_VAT: (
        "TOTAL (EXCL. VAT)", "TOTAL (EXCL VAT)", "AMOUNT", "TOTAL",
        "SUBTOTAL", "AMOUNT (AED)", "TOTAL(EXCL. VAT)",
    ),
    ColumnRole.VAT_PERCENT: ("VAT %", "VAT%", "TAX %", "TAX%", "VAT"),
    ColumnRole.VAT_AMOUNT: (
        "VAT AMOUNT", "VAT AMT", "TAX AMOUNT", "TAX",
        "VAT AMOUNT (AED)", "VAT AMT (AED)",
    ),
    ColumnRole.AMOUNT_INCL_VAT: (
        "TOTAL (INCL. VAT)", "TOTAL (INCL VAT)", "TOTAL INCL. VAT",
        "GRAND TOTAL", "NET TOTAL", "TOTAL(INCL. VAT)",
    ),
}

# Amount and VAT headers also label the totals block, so they do not count
HEADER_DETECTION_ROLES = (
    ColumnRole.DESCRIPTION,
    ColumnRole.ITEM_CODE,
    ColumnRole.QUANTITY,
    ColumnRole.UOM,
    ColumnRole.RATE,
)

TABLE_END_RE = re.compile(
    r'^(?:TOTAL|SUB[\s-]*TOTAL|GRAND\s*TOTAL|NET\s*TOTAL|AMOUNT\s*DUE|BALANCE\s*DUE'
    r'|FREIGHT|MISCELLANEOUS|EXCHANGE\s*RATE|INVOICE\s*VALUE)\b',
    IC
)

# Rows that restate a header or open the totals block
ROW_SKIP_RE = re.compile(
    r'^(?:Total|Sub\s*Total|Grand|VAT|Tax|Freight|Misc|Exchange|S\.?\s*No|Sl\.?\s*No'
    r'|Sr\.?\s*No|Code|Description|UOM|QTY|Quantity|Rate|Amount|Price|Units)\b',
    IC
)

NON_ITEM_ROW_RE = re.compile(
    r'^(?:BILL\s*TO|SHIP\s*TO|CUSTOMER|E-?MAIL|PHONE|FAX|ADDRESS|ATTENTION|P\.O\.|@)', IC
)

CODED_TABLE_START_RE = re.compile(r'S\.?\s*no\b|Item\s+Code', IC)
LONG_ITEM_CODE_RE = re.compile(r'\b[A-Z]\d{9,10}\b')


# =============================================================================
# LINE ITEMS
# =============================================================================

UOM_VOCABULARY = (
    "EA", "EACH", "PC", "PCS", "PIECE", "PIECES", "UNIT", "UNITS", "KG", "KGS",
    "KILOGRAM", "KILOGRAMS", "MTR", "MTRS", "METER", "METERS", "METRE", "METRES",
    "SET", "SETS", "BOX", "BOXES", "PACK", "PACKS", "NO", "NOS", "TON", "TONS",
    "TONNE", "TONNES", "ROLL", "ROLLS", "LTR", "PAIR", "LOT",
)

UOM_ALIASES: Dict[str, str] = {
    "EACH": "EA", "NO": "EA", "NOS": "EA",
    "PCS": "PC", "PIECE": "PC", "PIECES": "PC",
    "UNITS": "UNIT",
    "KGS": "KG", "KILOGRAM": "KG", "KILOGRAMS": "KG",
    "MTRS": "MTR", "METER": "MTR", "METERS": "MTR", "METRE": "MTR", "METRES": "MTR",
    "SETS": "SET", "BOXES": "BOX", "PACKS": "PACK", "ROLLS": "ROLL",
    "TONS": "TON", "TONNE": "TON", "TONNES": "TON",
}

# Most specific first
ITEM_CODE_PATTERNS = (
    re.compile(r'\b([A-Z]\d{9,10})\b'),
    re.compile(r'\b(\d{2}[A-Z]{2}\d[A-Z]\d)\b'),
    re.compile(r'\b([A-Z]{2,5}\d{1,10}[A-Z]{0,3})\b'),
    re.compile(r'\b([A-Z]\d{6,12})\b'),
    re.compile(r'\b([A-Z]{1,3}-\d{3,10})\b'),
)

_DESC_UOMS = r'EA|PC|PCS|KG|TON|BOX|SET|MTR|UNIT|METER'

DESCRIPTION_PATTERNS = _ci(
    rf'^([A-Za-z][A-Za-z0-9\s\-()°/.:&"\']+?)(?:(?:\s+\d+(?:\.\d+)?)?\s+(?:{_DESC_UOMS})\b|\s+\d{{2,}}\.?\d*(?:\s|$))',
    r'^([A-Z][A-Z0-9\s&\-°/.:"\']+?)(?:\s+(?:EA|PC|PCS|KG|TON|BOX|SET|MTR|UNIT)\b)',
    r'^([A-Za-z][A-Za-z0-9\s\-°/.:"\']+?)(?:\s+\d{2,})',
)

ROW_SERIAL_RE = re.compile(r'^(\d{1,2})[.)]?\s+(?=\S)')

# Standalone decimal token; grouping commas or a decimal comma allowed, glued letters are not
NUMERIC_TOKEN_RE = re.compile(
    r'(?<![\w.,/-])(\d+(?:\.\d{3})*,\d{2}|\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)'
    r'(?![\w/]|[.,]\d)'
)

TERMINAL_AMOUNT_RE = re.compile(
    r'(?:(?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2}|\d+(?:\.\d{3})*,\d{2})\s*$'
)

VAT_PERCENT_RE = re.compile(r'(\d{1,2}(?:\.\d{1,2})?)\s?%')
VAT_RATE_LABEL_RE = re.compile(r'Rate\s*%\s*(\d+(?:\.\d+)?)\s*%', IC)

CONTINUATION_STOP_RE = re.compile(r'^(?:Total|Sub|Grand|S\.?\s*No|Sr\.?\s*No)\b', IC)
SHOUTED_WORD_RE = re.compile(r'^[A-Z]{5,}')


def _role_regex(synonyms: Tuple[str, ...]) -> Pattern:
    """Whole-word, case-insensitive alternation over header synonyms."""
    ordered = sorted(set(synonyms), key=len, reverse=True)
    body = '|'.join(re.escape(s) for s in ordered)
    return re.compile(rf'(?<![A-Z0-9])(?:{body})(?![A-Z0-9])', IC)


def _uom_regex(vocabulary: Tuple[str, ...]) -> Pattern:
    ordered = sorted(set(vocabulary), key=len, reverse=True)
    return re.compile(r'\b(' + '|'.join(re.escape(u) for u in ordered) + r')\b', IC)


@dataclass(frozen=True, eq=False)
class PatternLibrary:
    """
    Immutable, versioned pattern set consumed by every extractor.

    Only the table synonyms, UOM aliases and templates are configurable;
    the remaining regexes are module constants exposed as attributes so
    strategies read everything from one object.

    Attributes:
        version: Identifier of the pattern set, logged at startup.
        column_synonyms: Header synonyms per column role.
        uom_aliases: Spelling to canonical UOM mapping.
        templates: Known recurring vendor templates.
    """
    version: str = "builtin"
    column_synonyms: Mapping[ColumnRole, Tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType(dict(COLUMN_SYNONYMS))
    )
    uom_vocabulary: Tuple[str, ...] = UOM_VOCABULARY
    uom_aliases: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(dict(UOM_ALIASES))
    )
    templates: TemplateRegistry = field(
        default_factory=lambda: TemplateRegistry(BUILTIN_TEMPLATES)
    )
    header_detection_roles: Tuple[ColumnRole, ...] = HEADER_DETECTION_ROLES
    tax_id_prefixes: Tuple[str, ...] = TAX_ID_PREFIXES

    # Company name
    legal_suffix: Pattern = LEGAL_SUFFIX_RE
    company_with_suffix: Pattern = COMPANY_WITH_SUFFIX_RE
    company_skip: Pattern = COMPANY_SKIP_RE
    company_contact: Pattern = COMPANY_CONTACT_RE
    trading_keyword: Pattern = TRADING_KEYWORD_RE
    trading_skip: Pattern = TRADING_SKIP_RE
    trading_name: Pattern = TRADING_NAME_RE
    first_line_name: Pattern = FIRST_LINE_NAME_RE
    numeric_line: Pattern = NUMERIC_LINE_RE
    leading_serial: Pattern = LEADING_SERIAL_RE

    # Invoice number
    invoice_number_patterns: Tuple[Pattern, ...] = INVOICE_NUMBER_PATTERNS
    invoice_label_only: Pattern = INVOICE_LABEL_ONLY_RE
    invoice_next_line_value: Pattern = INVOICE_NEXT_LINE_VALUE_RE
    invoice_reject: Pattern = INVOICE_REJECT_RE
    six_digit: Pattern = SIX_DIGIT_RE
    invoice_context: Pattern = INVOICE_CONTEXT_RE
    invoice_self_context: Pattern = INVOICE_SELF_CONTEXT_RE
    full_date: Pattern = FULL_DATE_RE
    date_prefix: Pattern = DATE_PREFIX_RE

    # Dates
    date_shapes: Tuple[Pattern, ...] = DATE_SHAPES
    invoice_date_label: Pattern = INVOICE_DATE_LABEL_RE
    generic_date_label: Pattern = GENERIC_DATE_LABEL_RE
    other_date_label: Pattern = OTHER_DATE_LABEL_RE
    ship_date_label: Pattern = SHIP_DATE_LABEL_RE

    # TRN
    trn_patterns: Tuple[Pattern, ...] = TRN_PATTERNS
    trn_like: Pattern = TRN_LIKE_RE

    # Sales person
    sales_inline_patterns: Tuple[Pattern, ...] = SALES_INLINE_PATTERNS
    sales_label_only_patterns: Tuple[Pattern, ...] = SALES_LABEL_ONLY_PATTERNS
    sales_next_line_value: Pattern = SALES_NEXT_LINE_VALUE_RE
    person_name: Pattern = PERSON_NAME_RE
    sales_reject: Pattern = SALES_REJECT_RE

    # Payment terms and order references
    payment_terms_patterns: Tuple[Pattern, ...] = PAYMENT_TERMS_PATTERNS
    payment_terms_reject: Pattern = PAYMENT_TERMS_REJECT_RE
    do_number_patterns: Tuple[Pattern, ...] = DO_NUMBER_PATTERNS
    so_number_patterns: Tuple[Pattern, ...] = SO_NUMBER_PATTERNS

    # Table and rows
    table_end: Pattern = TABLE_END_RE
    row_skip: Pattern = ROW_SKIP_RE
    non_item_row: Pattern = NON_ITEM_ROW_RE
    coded_table_start: Pattern = CODED_TABLE_START_RE
    long_item_code: Pattern = LONG_ITEM_CODE_RE
    item_code_patterns: Tuple[Pattern, ...] = ITEM_CODE_PATTERNS
    description_patterns: Tuple[Pattern, ...] = DESCRIPTION_PATTERNS
    row_serial: Pattern = ROW_SERIAL_RE
    numeric_token: Pattern = NUMERIC_TOKEN_RE
    terminal_amount: Pattern = TERMINAL_AMOUNT_RE
    vat_percent: Pattern = VAT_PERCENT_RE
    vat_rate_label: Pattern = VAT_RATE_LABEL_RE
    continuation_stop: Pattern = CONTINUATION_STOP_RE
    shouted_word: Pattern = SHOUTED_WORD_RE

    def __post_init__(self) -> None:
        # Derived regexes are cached on the frozen instance
        role_patterns = {
            role: _role_regex(synonyms) for role, synonyms in self.column_synonyms.items()
        }
        object.__setattr__(self, '_role_patterns', MappingProxyType(role_patterns))
        object.__setattr__(self, '_uom_pattern', _uom_regex(self.uom_vocabulary))

    @property
    def role_patterns(self) -> Mapping[ColumnRole, Pattern]:
        """Whole-word header regex per column role."""
        return self._role_patterns

    @property
    def uom_pattern(self) -> Pattern:
        """Regex matching any unit-of-measure spelling."""
        return self._uom_pattern

    def canonical_uom(self, token: str) -> str:
        """Map a unit-of-measure spelling to its canonical short form."""
        upper = token.upper()
        return self.uom_aliases.get(upper, upper)

    def is_uom(self, token: str) -> bool:
        """Check whether a whole token is a unit of measure."""
        return token.upper() in self.uom_vocabulary or token.upper() in self.uom_aliases

    def with_overrides(self, overrides: Dict[str, Any]) -> 'PatternLibrary':
        """
        Return a copy extended with configured synonyms, aliases and templates.

        Args:
            overrides: The ``patterns`` section of settings.yaml.

        Returns:
            New PatternLibrary; this instance is left untouched.

        Raises:
            PatternLibraryError: If an override entry is malformed.
        """
        overrides = overrides or {}

        synonyms = dict(self.column_synonyms)
        for role_name, extra in (overrides.get('column_synonyms') or {}).items():
            try:
                role = ColumnRole(role_name)
            except ValueError:
                raise PatternLibraryError(
                    f"column_synonyms.{role_name}", "unknown column role"
                )
            synonyms[role] = synonyms[role] + tuple(str(s).upper() for s in extra or ())

        aliases = dict(self.uom_aliases)
        vocabulary = list(self.uom_vocabulary)
        for spelling, canonical in (overrides.get('uom_aliases') or {}).items():
            spelling, canonical = str(spelling).upper(), str(canonical).upper()
            aliases[spelling] = canonical
            for token in (spelling, canonical):
                if token not in vocabulary:
                    vocabulary.append(token)

        templates = self.templates
        for entry in overrides.get('templates') or ():
            templates = templates.with_template(KnownTemplate.from_dict(entry))

        return replace(
            self,
            version=str(overrides.get('version', self.version)),
            column_synonyms=MappingProxyType(synonyms),
            uom_vocabulary=tuple(vocabulary),
            uom_aliases=MappingProxyType(aliases),
            templates=templates,
        )


@lru_cache(maxsize=1)
def get_pattern_library() -> PatternLibrary:
    """
    Build the process-wide pattern library once.

    Returns:
        Shared PatternLibrary with settings.yaml overrides applied.
    """
    library = PatternLibrary().with_overrides(get_config("patterns", {}))
    logger.info(
        f"Pattern library {library.version} loaded "
        f"({len(library.templates)} known templates)"
    )
    return library


def build_pattern_library(overrides: Optional[Dict[str, Any]] = None) -> PatternLibrary:
    """
    Build an independent library from explicit overrides (no caching).

    Args:
        overrides: Mapping shaped like the ``patterns`` settings section.

    Returns:
        New PatternLibrary.
    """
    return PatternLibrary().with_overrides(overrides or {})
