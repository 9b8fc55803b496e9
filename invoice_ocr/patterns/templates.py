"""
Known Template Registry Module.

A known template describes one recurring vendor layout: a cheap
fingerprint regex that recognizes the document, literal values for
header fields that are printed identically on every invoice of that
vendor, and, for single-row "horizontal summary" layouts, the product
anchor used to locate the line item.

Templates are consulted before any generic heuristic. Adding a vendor
is a data change: declare it under ``patterns.templates`` in
settings.yaml or pass it to ``TemplateRegistry.with_template``.

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Pattern, Tuple

from invoice_ocr.utils.exceptions import PatternLibraryError


def _compile(pattern: str, entry: str, flags: int = re.IGNORECASE) -> Pattern:
    """Compile a configured regex, reporting the owning entry on failure."""
    try:
        return re.compile(pattern, flags)
    except (re.error, TypeError) as e:
        raise PatternLibraryError(entry, str(e))


@dataclass(frozen=True)
class KnownTemplate:
    """
    A recurring vendor layout.

    Attributes:
        name: Short identifier used in logs.
        fingerprint: Regex whose presence marks a document of this vendor.
        field_literals: (field, regex, canonical value) triples.
        product_anchor: Regex matching the single summary line item, if any.
        item_codes: Item codes the vendor is known to print.
    """
    name: str
    fingerprint: Pattern
    field_literals: Tuple[Tuple[str, Pattern, str], ...] = ()
    product_anchor: Optional[Pattern] = None
    item_codes: Tuple[str, ...] = ()

    def matches(self, text: str) -> bool:
        """Check the fingerprint against the document text."""
        return bool(self.fingerprint.search(text))

    def literal_for(self, field_name: str, text: str) -> Optional[str]:
        """
        Return the canonical value for a field when its literal is present.

        Args:
            field_name: Scalar field name.
            text: Full OCR text.

        Returns:
            Canonical value or None.
        """
        for name, pattern, value in self.field_literals:
            if name == field_name and pattern.search(text):
                return value
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'KnownTemplate':
        """
        Build a template from a settings.yaml entry.

        Args:
            data: Mapping with ``name``, ``fingerprint`` and optional
                  ``fields``, ``product_anchor`` and ``item_codes``.

        Returns:
            KnownTemplate instance.

        Raises:
            PatternLibraryError: If the entry is incomplete or a regex is invalid.
        """
        if not isinstance(data, dict) or not data.get('name') or not data.get('fingerprint'):
            raise PatternLibraryError(str(data), "template needs 'name' and 'fingerprint'")

        name = str(data['name'])
        literals = []
        for field_name, spec in (data.get('fields') or {}).items():
            if not isinstance(spec, (list, tuple)) or len(spec) != 2:
                raise PatternLibraryError(
                    f"{name}.{field_name}", "field literal must be [regex, value]"
                )
            literals.append(
                (field_name, _compile(spec[0], f"{name}.{field_name}"), str(spec[1]))
            )

        anchor = data.get('product_anchor')
        return cls(
            name=name,
            fingerprint=_compile(data['fingerprint'], f"{name}.fingerprint"),
            field_literals=tuple(literals),
            product_anchor=_compile(anchor, f"{name}.product_anchor") if anchor else None,
            item_codes=tuple(str(code) for code in data.get('item_codes') or ()),
        )


class TemplateRegistry:
    """
    Ordered, immutable collection of known templates.

    Example:
        >>> registry = TemplateRegistry(BUILTIN_TEMPLATES)
        >>> registry.literal_for("company_name", "ZAKER TRADING L. LLC ...")
        'ZAKER TRADING L. LLC'
    """

    def __init__(self, templates: Tuple[KnownTemplate, ...] = ()) -> None:
        self._templates = tuple(templates)

    @property
    def templates(self) -> Tuple[KnownTemplate, ...]:
        """Registered templates in priority order."""
        return self._templates

    def match(self, text: str) -> List[KnownTemplate]:
        """Return every template whose fingerprint occurs in the text."""
        return [t for t in self._templates if t.matches(text)]

    def literal_for(self, field_name: str, text: str) -> Optional[str]:
        """Return the first literal value any matching template offers."""
        for template in self.match(text):
            value = template.literal_for(field_name, text)
            if value:
                return value
        return None

    def with_template(self, template: KnownTemplate) -> 'TemplateRegistry':
        """Return a new registry with ``template`` appended."""
        return TemplateRegistry(self._templates + (template,))

    def __iter__(self) -> Iterator[KnownTemplate]:
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)


BUILTIN_TEMPLATES: Tuple[KnownTemplate, ...] = (
    KnownTemplate.from_dict({
        'name': 'techno_king',
        'fingerprint': r'Techno\s*King|TOYO\s+CHAIN\s+BLOCK',
        'fields': {
            'company_name': [r'Techno\s+King\s+Trading\s+Co\.?\s*L\.?\s*L\.?\s*C', 'Techno King Trading Co. LLC'],
        },
        'product_anchor': r'TOYO\s+CHAIN\s+BLOCK\s+([^\r\n]{5,40})',
        'item_codes': ['70CB3X6'],
    }),
    KnownTemplate.from_dict({
        'name': 'zaker_trading',
        'fingerprint': r'ZAKER\s+TRADING',
        'fields': {
            'company_name': [r'ZAKER\s+TRADING\s+L\.\s*LLC', 'ZAKER TRADING L. LLC'],
        },
    }),
    KnownTemplate.from_dict({
        'name': 'gf_corys',
        'fingerprint': r'GF\s+Corys',
        'fields': {
            'company_name': [
                r'GF\s+Corys\s+Piping\s+Systems\s+LLC\s*-?\s*Duba[il]',
                'GF Corys Piping Systems LLC - Dubai'
            ],
        },
    }),
)
