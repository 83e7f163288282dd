"""
Extractors module for the creator content engine.

Turns free-text video descriptions into product-link records.

Components:
    - segment_description: split a description into section and lines
    - ProductParser: brand/name/type extraction around URLs
    - LinkClassifier: affiliate vs retail URL classification
    - DescriptionExtractor: strategy chain tying the three together
"""

from content_engine.extractors.description_extractor import (
    DescriptionExtractor,
    ExtractionOutcome,
)
from content_engine.extractors.link_classifier import (
    LinkClassifier,
    add_affiliate_tag,
)
from content_engine.extractors.product_parser import (
    ProductParser,
    clean_product_text,
    infer_product_type,
)
from content_engine.extractors.segmenter import Segmentation, segment_description

__all__ = [
    "DescriptionExtractor",
    "ExtractionOutcome",
    "LinkClassifier",
    "add_affiliate_tag",
    "ProductParser",
    "clean_product_text",
    "infer_product_type",
    "Segmentation",
    "segment_description",
]
