"""Data models module for the creator content engine."""

from content_engine.models.schemas import (
    # Base Models
    BaseModel,
    UNKNOWN_BRAND,

    # Enums
    ProductType,
    LinkKind,
    ProductSource,

    # Brand Models
    BrandEntry,

    # Product Models
    ExtractedProduct,
    LinkClassification,
    RetailSearchResult,

    # Video Models
    VideoInput,
    VideoAnalysis,
    VideoProcessingResult,
)

__all__ = [
    "BaseModel",
    "UNKNOWN_BRAND",
    "ProductType",
    "LinkKind",
    "ProductSource",
    "BrandEntry",
    "ExtractedProduct",
    "LinkClassification",
    "RetailSearchResult",
    "VideoInput",
    "VideoAnalysis",
    "VideoProcessingResult",
]
