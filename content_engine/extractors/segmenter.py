"""
Description segmentation.

Creators usually list products under a "PRODUCTS:" heading. That labeled
section is the high-confidence input; every line of the description is kept
as the low-confidence fallback.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

PRODUCT_HEADER_PATTERN = re.compile(r"^\s*PRODUCTS?\b\s*(?:MENTIONED)?:?", re.IGNORECASE)

SECTION_KEYWORD_PATTERN = re.compile(r"^\s*(?:FOLLOW|SUBSCRIBE|BUSINESS|MUSIC)\b", re.IGNORECASE)

# ALL-CAPS "LABEL:" line, e.g. "DISCOUNT CODES:"
SECTION_LABEL_PATTERN = re.compile(r"^\s*[A-Z][A-Z0-9 &'/()-]{2,}:")

URL_PATTERN = re.compile(r"https?://[^\s<>\"']+")


@dataclass
class Segmentation:
    """Primary product section (if any) plus every non-empty line."""
    primary: Optional[str]
    lines: list[str] = field(default_factory=list)

    @property
    def has_product_section(self) -> bool:
        return self.primary is not None


def is_section_header(line: str) -> bool:
    """True for lines that close a product section."""
    if SECTION_KEYWORD_PATTERN.match(line):
        return True
    # A caps label carrying a link is a product line ("NARS: https://...")
    return bool(SECTION_LABEL_PATTERN.match(line)) and not URL_PATTERN.search(line)


def find_product_section(text: str) -> Optional[str]:
    """Text after the first PRODUCTS header, up to the next section header."""
    lines = text.splitlines()
    for index, line in enumerate(lines):
        match = PRODUCT_HEADER_PATTERN.match(line)
        if not match:
            continue
        # Anything after the header on the same line belongs to the section
        section = [line[match.end():]]
        for following in lines[index + 1:]:
            if is_section_header(following):
                break
            section.append(following)
        return "\n".join(section)
    return None


def segment_description(text: Optional[str]) -> Segmentation:
    """Split a raw video description into primary and fallback candidates."""
    if not text:
        return Segmentation(primary=None, lines=[])
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return Segmentation(primary=find_product_section(text), lines=lines)
