"""
Services module for the creator content engine.

External integrations:
    - BrandDirectory: TTL-cached brand names from the CMS with a built-in fallback
    - RetailCatalogClient: signed, rate-limited, cached retail catalog search
    - ClaudeService: Claude API wrapper used for video analysis
"""

from content_engine.services.brand_directory import (
    BrandDirectory,
    BrandSnapshot,
    FALLBACK_BRANDS,
    SanityBrandSource,
)
from content_engine.services.llm_service import (
    ClaudeService,
    ClaudeServiceError,
    InvalidResponseError,
    MaxRetriesExceededError,
)
from content_engine.services.request_signing import (
    SignableRequest,
    SigningCredentials,
    sign,
)
from content_engine.services.retail_catalog import (
    RateGate,
    RetailCatalogClient,
    RetailSearchCache,
)

__all__ = [
    "BrandDirectory",
    "BrandSnapshot",
    "FALLBACK_BRANDS",
    "SanityBrandSource",
    "ClaudeService",
    "ClaudeServiceError",
    "InvalidResponseError",
    "MaxRetriesExceededError",
    "SignableRequest",
    "SigningCredentials",
    "sign",
    "RateGate",
    "RetailCatalogClient",
    "RetailSearchCache",
]
