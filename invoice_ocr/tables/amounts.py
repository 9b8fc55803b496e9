"""
Amount Binding Module.

This module assigns loose numeric tokens to line-item amounts by
arithmetic consistency rather than by position:

    quantity x unit rate ~= amount excl. VAT
    amount excl. VAT + VAT amount ~= amount incl. VAT
    amount excl. VAT x VAT % / 100 ~= VAT amount

It is used for single-row "horizontal summary" layouts where OCR emits
the amounts in no reliable order.

Author: ML Engineering Team
"""

from typing import Dict, List, Optional, Sequence, Tuple

from invoice_ocr.utils.helpers import parse_number
from invoice_ocr.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

# Absolute slack for rounding in printed amounts
ABSOLUTE_TOLERANCE = 0.05
RELATIVE_TOLERANCE = 0.001

# Distinct amounts considered per binding, in first-seen order
MAX_BIND_CANDIDATES = 20

Candidate = Tuple[str, float]


def approx_equal(a: float, b: float) -> bool:
    """
    Compare two amounts allowing for printed rounding.

    Args:
        a: First amount.
        b: Second amount.

    Returns:
        True if the amounts agree within tolerance.
    """
    return abs(a - b) <= max(ABSOLUTE_TOLERANCE, abs(b) * RELATIVE_TOLERANCE)


def distinct_amounts(tokens: Sequence[str]) -> List[Candidate]:
    """
    Keep the first token of each distinct positive value.

    Args:
        tokens: Numeric tokens, grouping commas already stripped.

    Returns:
        List of (token, value) in first-seen order.
    """
    seen = set()
    candidates = []
    for token in tokens:
        value = parse_number(token)
        if value is None or value <= 0 or value in seen:
            continue
        seen.add(value)
        candidates.append((token, value))
    return candidates


def _bind_vat(
    candidates: Sequence[Candidate],
    excl: float,
    vat_percent: Optional[float],
    used: set
) -> Tuple[Dict[str, str], int]:
    """Find VAT amount and amount incl. VAT consistent with ``excl``."""
    best: Dict[str, str] = {}
    best_score = 0

    for vat_token, vat in candidates:
        if vat_token in used:
            continue
        for incl_token, incl in candidates:
            if incl_token in used or incl_token == vat_token:
                continue
            if not approx_equal(excl + vat, incl):
                continue

            score = 2
            if vat_percent is not None and approx_equal(excl * vat_percent / 100, vat):
                score += 1
            if score > best_score:
                best = {'vat_amount': vat_token, 'amount_incl_vat': incl_token}
                best_score = score

    if not best and vat_percent is not None:
        # No printed VAT amount; the inclusive total alone still binds
        for incl_token, incl in candidates:
            if incl_token not in used and approx_equal(excl * (1 + vat_percent / 100), incl):
                return {'amount_incl_vat': incl_token}, 1

    return best, best_score


def bind_amounts(
    tokens: Sequence[str],
    vat_percent: Optional[float] = None,
    max_candidates: int = MAX_BIND_CANDIDATES
) -> Optional[Dict[str, str]]:
    """
    Choose the most consistent assignment of tokens to amount roles.

    A binding requires ``quantity x rate ~= amount excl``; the VAT
    relations add to its score. Ties prefer an integral quantity, then
    the smaller quantity.

    Only the first ``max_candidates`` distinct amounts take part, and
    products above the largest amount are skipped, so the search stays
    bounded on noisy regions.

    Args:
        tokens: Numeric tokens found in the summary region.
        vat_percent: VAT rate printed on the invoice, if known.
        max_candidates: Cap on distinct amounts considered.

    Returns:
        Mapping of InvoiceLineItem field names to tokens, or None when
        no product relation holds.

    Example:
        >>> bind_amounts(["4.00", "82.00", "410.00", "1640.00", "1722.00"], 5.0)
        {'quantity': '4.00', 'unit_rate': '410.00', 'amount_excl_vat': '1640.00',
         'vat_amount': '82.00', 'amount_incl_vat': '1722.00'}
    """
    candidates = distinct_amounts(tokens)[:max_candidates]
    if len(candidates) < 3:
        return None

    ceiling = max(value for _, value in candidates)
    ceiling += max(ABSOLUTE_TOLERANCE, ceiling * RELATIVE_TOLERANCE)
    best: Optional[Dict[str, str]] = None
    best_key = None

    for qty_token, qty in candidates:
        for rate_token, rate in candidates:
            if rate_token == qty_token:
                continue
            product = qty * rate
            if product > ceiling:
                continue
            for excl_token, excl in candidates:
                if excl_token in (qty_token, rate_token) or not approx_equal(product, excl):
                    continue

                binding = {
                    'quantity': qty_token,
                    'unit_rate': rate_token,
                    'amount_excl_vat': excl_token,
                }
                vat_binding, vat_score = _bind_vat(
                    candidates, excl, vat_percent, {qty_token, rate_token, excl_token}
                )
                binding.update(vat_binding)

                key = (3 + vat_score, qty.is_integer(), -qty)
                if best_key is None or key > best_key:
                    best, best_key = binding, key

    if best:
        logger.debug(f"Amounts bound by arithmetic: {best}")
    return best
