"""
Scalar Field Strategies Module.

A strategy is one self-contained way of proposing candidate values for
a field. Strategies only propose; cleaning, validation and the choice
of the winner happen in ``FieldSpec.run`` so every field shares the
same "first validated match" loop.

Strategies (in their usual precedence):
    - KnownLiteralStrategy: canonical values of recognized vendors
    - InlineLabelStrategy: label and value on the same line
    - NextLineLabelStrategy: label line, value on one of the next lines
    - PositionalStrategy: field-specific generic scans

Author: ML Engineering Team
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional, Pattern, Sequence, Tuple, Union

from invoice_ocr.patterns import TemplateRegistry
from invoice_ocr.utils.helpers import OcrDocument, NOT_FOUND
from invoice_ocr.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

# A line window is a fixed count or computed from the document
Window = Union[None, int, Callable[[OcrDocument], int]]


def _window_lines(document: OcrDocument, window: Window) -> Tuple[str, ...]:
    if window is None:
        return document.lines
    if callable(window):
        return document.head(window(document))
    return document.head(window)


class ExtractionStrategy:
    """
    Base class for scalar field strategies.

    Subclasses implement ``candidates``; a strategy never raises for a
    miss, it simply yields nothing.
    """

    name = "strategy"

    def candidates(self, document: OcrDocument) -> Iterator[str]:
        """
        Yield raw candidate values in priority order.

        Args:
            document: OCR document being processed.

        Yields:
            Candidate strings (uncleaned).
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name})"


class KnownLiteralStrategy(ExtractionStrategy):
    """
    Proposes the canonical value a known vendor template declares.

    Example:
        >>> strategy = KnownLiteralStrategy("company_name", registry)
        >>> list(strategy.candidates(OcrDocument.from_text("ZAKER TRADING L. LLC")))
        ['ZAKER TRADING L. LLC']
    """

    name = "known_literal"

    def __init__(self, field_name: str, templates: TemplateRegistry) -> None:
        self.field_name = field_name
        self.templates = templates

    def candidates(self, document: OcrDocument) -> Iterator[str]:
        value = self.templates.literal_for(self.field_name, document.text)
        if value:
            yield value


class InlineLabelStrategy(ExtractionStrategy):
    """
    Label token followed by a value on the same line.

    Two shapes are supported:
        - ``value_patterns`` is None: each label pattern captures the
          value itself in group 1.
        - ``value_patterns`` given: a label match only marks the line;
          the value is searched in the text after the label.

    Args:
        labels: Ordered label patterns.
        value_patterns: Optional ordered value patterns.
        window: Number of leading lines to scan (None = all lines).
        reject: Pattern of non-value keywords; matching captures are skipped.
        exclude: Lines matching this pattern are ignored.
        all_matches: Yield every match on a line rather than the first.
        name: Label used in debug logs.
    """

    def __init__(
        self,
        labels: Sequence[Pattern],
        value_patterns: Optional[Sequence[Pattern]] = None,
        window: Window = None,
        reject: Optional[Pattern] = None,
        exclude: Optional[Pattern] = None,
        all_matches: bool = False,
        name: str = "inline_label"
    ) -> None:
        self.labels = tuple(labels)
        self.value_patterns = tuple(value_patterns) if value_patterns else None
        self.window = window
        self.reject = reject
        self.exclude = exclude
        self.all_matches = all_matches
        self.name = name

    def _accept(self, value: str) -> bool:
        return bool(value) and not (self.reject and self.reject.match(value))

    def candidates(self, document: OcrDocument) -> Iterator[str]:
        lines = [
            line for line in _window_lines(document, self.window)
            if not (self.exclude and self.exclude.search(line))
        ]

        for label in self.labels:
            for line in lines:
                matches = label.finditer(line) if self.all_matches else [label.search(line)]
                for match in matches:
                    if match is None:
                        continue
                    if self.value_patterns is None:
                        value = match.group(1).strip()
                        if self._accept(value):
                            yield value
                        continue
                    for value in _search_values(self.value_patterns, line[match.end():]):
                        if self._accept(value):
                            yield value


class NextLineLabelStrategy(ExtractionStrategy):
    """
    Label on one line, value on one of the following lines.

    Args:
        labels: Label patterns; with ``label_only`` they must describe
                the whole line (anchored patterns).
        value_patterns: Ordered value patterns tried on each following line.
        lookahead: How many following lines may hold the value (1-3).
        window: Number of leading lines to scan for the label.
        reject: Pattern of non-value keywords.
        exclude: Label lines matching this pattern are ignored.
        name: Label used in debug logs.
    """

    def __init__(
        self,
        labels: Sequence[Pattern],
        value_patterns: Sequence[Pattern],
        lookahead: int = 1,
        window: Window = None,
        reject: Optional[Pattern] = None,
        exclude: Optional[Pattern] = None,
        name: str = "next_line_label"
    ) -> None:
        self.labels = tuple(labels)
        self.value_patterns = tuple(value_patterns)
        self.lookahead = max(1, min(lookahead, 3))
        self.window = window
        self.reject = reject
        self.exclude = exclude
        self.name = name

    def candidates(self, document: OcrDocument) -> Iterator[str]:
        lines = _window_lines(document, self.window)
        all_lines = document.lines

        for index, line in enumerate(lines):
            if self.exclude and self.exclude.search(line):
                continue
            if not any(label.search(line) for label in self.labels):
                continue

            for following in all_lines[index + 1:index + 1 + self.lookahead]:
                for value in _search_values(self.value_patterns, following):
                    if self.reject and self.reject.match(value):
                        logger.debug(f"{self.name}: rejected keyword '{value}'")
                        continue
                    yield value


class PositionalStrategy(ExtractionStrategy):
    """
    Field-specific generic scan used when no labelled match exists.

    The scan is a plain callable so heuristics stay declarative data in
    the field specs.

    Example:
        >>> strategy = PositionalStrategy("first_date", scan_first_date)
    """

    def __init__(self, name: str, scan: Callable[[OcrDocument], Iterable[str]]) -> None:
        self.name = name
        self.scan = scan

    def candidates(self, document: OcrDocument) -> Iterator[str]:
        for value in self.scan(document):
            if value:
                yield value


def _search_values(patterns: Sequence[Pattern], text: str) -> Iterator[str]:
    """Yield the group-1 capture of each value pattern found in text."""
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            yield match.group(1).strip()


@dataclass(frozen=True)
class FieldSpec:
    """
    Declarative extraction recipe for one scalar field.

    Attributes:
        name: Field name.
        strategies: Strategies in priority order.
        cleaner: Normalizes a raw candidate.
        validator: Returns (is_valid, message) for a cleaned candidate.
    """
    name: str
    strategies: Tuple[ExtractionStrategy, ...]
    cleaner: Callable[[str], str]
    validator: Callable[[str], Tuple[bool, str]]

    def run(self, document: OcrDocument) -> str:
        """
        Return the first cleaned candidate that validates, else "N/A".

        Args:
            document: OCR document being processed.

        Returns:
            Extracted value or the sentinel.
        """
        for strategy in self.strategies:
            for candidate in strategy.candidates(document):
                value = self.cleaner(candidate)
                if not value:
                    continue

                is_valid, message = self.validator(value)
                if is_valid:
                    logger.debug(f"{self.name}: '{value}' via {strategy.name}")
                    return value

                logger.debug(f"{self.name}: rejected '{value}' from {strategy.name} ({message})")

        logger.debug(f"{self.name}: not found")
        return NOT_FOUND
