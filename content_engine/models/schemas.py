"""
Pydantic models and schemas for the creator content engine.

This module defines all data structures used throughout the pipeline,
ensuring type safety, validation, and serialization consistency.

Models:
    - BrandEntry: Canonical brand name with its aliases
    - ExtractedProduct: Product-link record produced from a video description
    - LinkClassification: Marketplace classification of a single URL
    - RetailSearchResult: Best-match retail catalog hit (cache entry payload)
    - VideoInput: Video record handed over by the fetch collaborator
    - VideoAnalysis: Generative analysis of a video (blog + products)
    - VideoProcessingResult: Final per-video output of the pipeline
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional, Self

from pydantic import (
    BaseModel as PydanticBaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


UNKNOWN_BRAND = "Unknown"


# =============================================================================
# Base Configuration
# =============================================================================

class BaseModel(PydanticBaseModel):
    """Base model with common configuration for all schemas."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=False,
        populate_by_name=True,
        use_enum_values=False,
    )

    def to_json(self, **kwargs) -> str:
        """Serialize model to JSON string."""
        return self.model_dump_json(indent=2, **kwargs)

    def to_dict(self, **kwargs) -> dict[str, Any]:
        """Serialize model to dictionary."""
        return self.model_dump(mode="json", **kwargs)

    @classmethod
    def from_json(cls, json_str: str) -> Self:
        """Deserialize model from JSON string."""
        return cls.model_validate_json(json_str)


# =============================================================================
# Enums
# =============================================================================

class ProductType(str, Enum):
    """Best-effort product category."""
    MAKEUP = "makeup"
    SKINCARE = "skincare"
    HAIRCARE = "haircare"
    FRAGRANCE = "fragrance"
    BODYCARE = "bodycare"
    TOOLS = "tools"
    FASHION = "fashion"
    OTHER = "other"


class LinkKind(str, Enum):
    """Marketplace a URL belongs to."""
    AFFILIATE = "affiliate"
    RETAIL = "retail"
    OTHER = "other"


class ProductSource(str, Enum):
    """Heuristic that produced a product record."""
    PRODUCT_SECTION = "product_section"
    LINE_SCAN = "line_scan"
    LLM = "llm"


# =============================================================================
# Brand Models
# =============================================================================

class BrandEntry(BaseModel):
    """
    A canonical brand name and the alias spellings that resolve to it.

    Example:
        >>> BrandEntry(canonical_name="e.l.f.", aliases=["elf", ""]).aliases
        ['elf']
    """

    canonical_name: str = Field(..., min_length=1, alias="name")
    aliases: list[str] = Field(default_factory=list)

    @field_validator("aliases", mode="before")
    @classmethod
    def drop_blank_aliases(cls, v: Any) -> list[str]:
        """Malformed aliases (None, empty, whitespace) are filtered silently."""
        if not v:
            return []
        return [a.strip() for a in v if isinstance(a, str) and a.strip()]

    @model_validator(mode="after")
    def drop_self_alias(self) -> Self:
        seen = {self.canonical_name}
        unique = []
        for alias in self.aliases:
            if alias not in seen:
                seen.add(alias)
                unique.append(alias)
        self.aliases = unique
        return self

    def all_names(self) -> list[str]:
        """Canonical name first, then aliases in declared order."""
        return [self.canonical_name, *self.aliases]


# =============================================================================
# Product Models
# =============================================================================

class ExtractedProduct(BaseModel):
    """
    A product mention with its shoppable links.

    Records are values: classification and enrichment produce copies via
    ``model_copy(update=...)`` rather than mutating in place.
    """

    brand: str = Field(default=UNKNOWN_BRAND)
    name: str = Field(default="")
    type: ProductType = Field(default=ProductType.OTHER)
    search_query: Optional[str] = Field(default=None, alias="searchQuery")
    shopmy_url: Optional[str] = Field(default=None, alias="shopmyUrl")
    amazon_url: Optional[str] = Field(default=None, alias="amazonUrl")
    original_url: Optional[str] = Field(default=None, alias="originalUrl")

    # Retail enrichment
    amazon_asin: Optional[str] = Field(default=None, alias="amazonAsin")
    amazon_price: Optional[str] = Field(default=None, alias="amazonPrice")
    amazon_title: Optional[str] = Field(default=None, alias="amazonTitle")
    amazon_image_url: Optional[str] = Field(default=None, alias="amazonImageUrl")

    source: ProductSource = Field(default=ProductSource.PRODUCT_SECTION)

    @field_validator("brand", mode="before")
    @classmethod
    def default_brand(cls, v: Any) -> str:
        if v is None or (isinstance(v, str) and not v.strip()):
            return UNKNOWN_BRAND
        return v

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> ProductType:
        """Unrecognized categories (e.g. from LLM output) become OTHER."""
        if isinstance(v, ProductType):
            return v
        try:
            return ProductType(str(v).strip().lower())
        except ValueError:
            return ProductType.OTHER

    @field_validator("shopmy_url", "amazon_url", "original_url", mode="before")
    @classmethod
    def blank_url_to_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        v = str(v).strip()
        if not v or v.lower() in ("null", "none"):
            return None
        return v

    @model_validator(mode="after")
    def derive_search_query(self) -> Self:
        """Search query is "brand name"; an unresolved brand is left out."""
        if self.search_query is None:
            if self.brand == UNKNOWN_BRAND:
                self.search_query = self.name
            else:
                self.search_query = f"{self.brand} {self.name}".strip()
        return self

    @property
    def has_link(self) -> bool:
        return bool(self.shopmy_url or self.amazon_url or self.original_url)

    def dedup_key(self) -> str:
        if self.original_url:
            return self.original_url
        return f"{self.brand}-{self.name}".lower()


class LinkClassification(BaseModel):
    """At most one of the two URLs is set."""

    affiliate_url: Optional[str] = None
    retail_url: Optional[str] = None

    @model_validator(mode="after")
    def exclusive(self) -> Self:
        if self.affiliate_url and self.retail_url:
            raise ValueError("A URL cannot be both affiliate and retail")
        return self

    @property
    def kind(self) -> LinkKind:
        if self.affiliate_url:
            return LinkKind.AFFILIATE
        if self.retail_url:
            return LinkKind.RETAIL
        return LinkKind.OTHER


class RetailSearchResult(BaseModel):
    """Best match returned by the retail catalog for one query."""

    query: str
    asin: str
    title: str
    url: str = Field(..., description="Detail page URL carrying the partner tag")
    detail_page_url: Optional[str] = None
    price: Optional[str] = Field(default=None, description="Display price, e.g. '$38.00'")
    image_url: Optional[str] = None
    brand: Optional[str] = None
    available: bool = False
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# =============================================================================
# Video Models
# =============================================================================

class VideoInput(BaseModel):
    """Video record supplied by the (external) platform fetcher."""

    video_id: str = Field(..., min_length=1, alias="videoId")
    title: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    platform: Literal["youtube", "tiktok"] = "youtube"
    url: Optional[str] = None

    @field_validator("description", "title", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        return "" if v is None else v

    @field_validator("tags", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> list[str]:
        return [] if v is None else v


class VideoAnalysis(BaseModel):
    """Blog/SEO analysis plus the merged product list for one video."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        extra="ignore",
    )

    category: str = "lifestyle"
    products: list[ExtractedProduct] = Field(default_factory=list)
    blog_title: str = Field(default="", alias="blogTitle")
    blog_excerpt: str = Field(default="", alias="blogExcerpt")
    blog_content: str = Field(default="", alias="blogContent")
    seo_title: str = Field(default="", alias="seoTitle")
    seo_description: str = Field(default="", alias="seoDescription")
    suggested_tags: list[str] = Field(default_factory=list, alias="suggestedTags")
    generated_by: Literal["llm", "fallback"] = "llm"

    @field_validator("products", mode="before")
    @classmethod
    def drop_unusable_products(cls, v: Any) -> list[Any]:
        if not v:
            return []
        return [p for p in v if isinstance(p, (dict, ExtractedProduct))]


class VideoProcessingResult(BaseModel):
    """Per-video output handed to content assembly."""

    video_id: str
    title: str = ""
    products: list[ExtractedProduct] = Field(default_factory=list)
    analysis: Optional[VideoAnalysis] = None
    extraction_strategy: str = "none"
    errors: list[str] = Field(default_factory=list)
    step_timings: dict[str, int] = Field(default_factory=dict)

    @property
    def affiliate_link_count(self) -> int:
        return sum(1 for p in self.products if p.shopmy_url)

    @property
    def retail_link_count(self) -> int:
        return sum(1 for p in self.products if p.amazon_url)
