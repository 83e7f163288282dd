"""
Description extraction: segment, parse and classify one video description.

Strategies are tried in order until one yields products:

    1. ``product_section``: the labeled "PRODUCTS:" section, any URL accepted
    2. ``line_scan``: every line, only affiliate or retail URLs accepted

Running both unconditionally would count products listed in the section a
second time as stray lines.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from content_engine.extractors.link_classifier import LinkClassifier
from content_engine.extractors.product_parser import ProductParser
from content_engine.extractors.segmenter import Segmentation, segment_description
from content_engine.models.schemas import ExtractedProduct
from content_engine.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ExtractionOutcome:
    """Products found in a description and the strategy that found them."""
    products: list[ExtractedProduct] = field(default_factory=list)
    strategy: str = "none"


class DescriptionExtractor:
    """Runs the extraction strategy chain over a raw description."""

    def __init__(self, parser: ProductParser, classifier: LinkClassifier | None = None):
        self.parser = parser
        self.classifier = classifier or LinkClassifier()

    def _strategies(self) -> list[tuple[str, Callable[[Segmentation], list[ExtractedProduct]]]]:
        return [
            ("product_section", self._from_product_section),
            ("line_scan", self._from_line_scan),
        ]

    def _from_product_section(self, segmentation: Segmentation) -> list[ExtractedProduct]:
        if not segmentation.has_product_section:
            return []
        products = self.parser.parse_segment(segmentation.primary)
        return [self.classifier.tag(p) for p in products]

    def _from_line_scan(self, segmentation: Segmentation) -> list[ExtractedProduct]:
        products = self.parser.parse_lines(segmentation.lines)
        # Social profiles and other unrelated links are dropped here
        return [
            self.classifier.tag(p)
            for p in products
            if self.classifier.is_recognized(p.original_url)
        ]

    def extract(self, description: str | None) -> ExtractionOutcome:
        segmentation = segment_description(description)

        for name, strategy in self._strategies():
            products = strategy(segmentation)
            if products:
                logger.info(
                    "Products extracted from description",
                    strategy=name,
                    count=len(products),
                )
                return ExtractionOutcome(products=products, strategy=name)

        logger.info(
            "No products found in description",
            had_product_section=segmentation.has_product_section,
            lines=len(segmentation.lines),
        )
        return ExtractionOutcome()
