"""
Product parsing for video description text.

Turns "Brand Product Name - https://link" runs into ExtractedProduct records:
every URL claims the text that precedes it, the brand is split off with an
anchored longest-first match against the brand directory, and the product
type is guessed from keywords.

Example:
    >>> parser = ProductParser(snapshot)
    >>> parser.parse_segment("Rare Beauty Soft Pinch Blush - https://go.shopmy.us/def")[0].brand
    'Rare Beauty'
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Optional

from content_engine.extractors.segmenter import URL_PATTERN
from content_engine.extractors.taxonomy import (
    CONTEXT_LINE_MARKERS,
    NON_PRODUCT_MARKERS,
    REJECTED_CANDIDATES,
    TYPE_KEYWORDS,
)
from content_engine.models.schemas import (
    UNKNOWN_BRAND,
    ExtractedProduct,
    ProductSource,
    ProductType,
)
from content_engine.services.brand_directory import BrandSnapshot
from content_engine.utils.logger import get_logger

logger = get_logger(__name__)

MIN_CANDIDATE_LENGTH = 2

# Exclusive bounds for a name borrowed from the line above a bare URL.
MIN_CONTEXT_LENGTH = 3
MAX_CONTEXT_LENGTH = 100

SEPARATOR_CHARS = "-–—:"
QUOTE_CHARS = "\"'“”‘’«»`"
LEADING_MARKER_PATTERN = re.compile(r"^(?:[•·*▪►→>]+|\d{1,2}[.)])\s*")
URL_TRAILING_PUNCTUATION = ".,;:!?)]}"


# =============================================================================
# Text helpers
# =============================================================================

def clean_product_text(text: Optional[str]) -> str:
    """
    Strip list bullets, separator runs and wrapping quotes from both ends.

    Repeats until nothing changes, so applying it to its own output is a no-op.
    """
    value = (text or "").strip()
    previous = None
    while value != previous:
        previous = value
        value = LEADING_MARKER_PATTERN.sub("", value)
        value = value.strip().strip(SEPARATOR_CHARS).strip()
        if len(value) >= 2 and value[0] in QUOTE_CHARS and value[-1] in QUOTE_CHARS:
            value = value[1:-1].strip()
    return value


@lru_cache(maxsize=8)
def _compile_type_patterns(
    table: tuple[tuple[ProductType, tuple[str, ...]], ...],
) -> tuple[tuple[ProductType, re.Pattern], ...]:
    compiled = []
    for product_type, keywords in table:
        alternatives = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
        compiled.append(
            (product_type, re.compile(rf"\b(?:{alternatives})(?:e?s)?\b", re.IGNORECASE))
        )
    return tuple(compiled)


def infer_product_type(
    text: str,
    default: ProductType = ProductType.OTHER,
    table: tuple[tuple[ProductType, tuple[str, ...]], ...] = TYPE_KEYWORDS,
) -> ProductType:
    """First category in ``table`` with a keyword present in ``text``."""
    for product_type, pattern in _compile_type_patterns(table):
        if pattern.search(text or ""):
            return product_type
    return default


def find_urls(text: str) -> list[tuple[int, int, str]]:
    """(start, end, url) for every absolute URL, trailing punctuation removed."""
    found = []
    for match in URL_PATTERN.finditer(text):
        url = match.group(0).rstrip(URL_TRAILING_PUNCTUATION)
        if len(url) <= len("https://"):
            continue
        found.append((match.start(), match.start() + len(url), url))
    return found


def is_non_product_line(line: str) -> bool:
    lowered = line.lower()
    return any(marker in lowered for marker in NON_PRODUCT_MARKERS)


# =============================================================================
# Parser
# =============================================================================

class ProductParser:
    """Extracts candidate product records from description text."""

    def __init__(
        self,
        snapshot: BrandSnapshot,
        default_type: ProductType = ProductType.OTHER,
        type_keywords: tuple[tuple[ProductType, tuple[str, ...]], ...] = TYPE_KEYWORDS,
    ):
        self.snapshot = snapshot
        self.default_type = default_type
        self.type_keywords = type_keywords

    def split_brand(self, candidate: str) -> tuple[str, str]:
        """
        Split "Brand Product" into (canonical brand, product name).

        The first directory name (longest first) that prefixes the candidate,
        ignoring case, and is followed by whitespace wins.
        """
        for brand in self.snapshot.names:
            size = len(brand)
            if len(candidate) <= size or not candidate[size].isspace():
                continue
            if candidate[:size].casefold() != brand.casefold():
                continue
            entry = self.snapshot.resolve(brand)
            canonical = entry.canonical_name if entry else brand
            return canonical, clean_product_text(candidate[size:])
        return UNKNOWN_BRAND, candidate

    @staticmethod
    def candidate_from_gap(gap: str) -> str:
        """Last line of the gap before a URL that still has text after cleaning."""
        for line in reversed(gap.splitlines()):
            cleaned = clean_product_text(line)
            if cleaned:
                return cleaned
        return ""

    @staticmethod
    def is_acceptable(candidate: str) -> bool:
        if len(candidate) < MIN_CANDIDATE_LENGTH:
            return False
        return candidate.lower() not in REJECTED_CANDIDATES

    def build_product(
        self,
        candidate: str,
        url: str,
        source: ProductSource = ProductSource.PRODUCT_SECTION,
    ) -> ExtractedProduct:
        brand, name = self.split_brand(candidate)
        return ExtractedProduct(
            brand=brand,
            name=name,
            type=infer_product_type(candidate, self.default_type, self.type_keywords),
            original_url=url,
            source=source,
        )

    def parse_segment(
        self,
        text: str,
        source: ProductSource = ProductSource.PRODUCT_SECTION,
    ) -> list[ExtractedProduct]:
        """One record per URL whose preceding text is a usable product name."""
        products = []
        cursor = 0
        for start, end, url in find_urls(text or ""):
            candidate = self.candidate_from_gap(text[cursor:start])
            cursor = end
            if not self.is_acceptable(candidate):
                logger.debug("Rejected product candidate", candidate=candidate, url=url)
                continue
            products.append(self.build_product(candidate, url, source))
        return products

    @staticmethod
    def context_candidate(line: Optional[str]) -> str:
        """Product name offered by a URL-free line sitting above a bare URL."""
        if not line or find_urls(line) or is_non_product_line(line):
            return ""
        lowered = line.lower()
        if any(marker in lowered for marker in CONTEXT_LINE_MARKERS):
            return ""
        candidate = clean_product_text(line)
        if not MIN_CONTEXT_LENGTH < len(candidate) < MAX_CONTEXT_LENGTH:
            return ""
        return candidate

    def parse_lines(self, lines: list[str]) -> list[ExtractedProduct]:
        """
        Line-by-line fallback; social and business lines are skipped.

        A line that starts with its URL takes the product name from the line
        before it, so "Brand Product" followed by a link on its own line still
        yields one record.
        """
        products = []
        previous = None
        for line in lines:
            context, previous = previous, line
            if not line.strip() or is_non_product_line(line):
                continue

            urls = find_urls(line)
            if urls and not clean_product_text(line[:urls[0][0]]):
                _, end, url = urls[0]
                candidate = self.context_candidate(context)
                if self.is_acceptable(candidate):
                    products.append(self.build_product(candidate, url, ProductSource.LINE_SCAN))
                    products.extend(self.parse_segment(line[end:], source=ProductSource.LINE_SCAN))
                    continue

            products.extend(self.parse_segment(line, source=ProductSource.LINE_SCAN))
        return products
