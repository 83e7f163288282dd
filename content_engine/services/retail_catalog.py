"""
Retail catalog client for the Amazon Product Advertising API (PA-API 5).

Resolves a free-text product query to the best-matching catalog item. Every
outbound request goes through one shared rate gate, and every outcome,
including "no result", is cached per normalized query for a TTL.

This client never raises to its caller: failures are logged with a category
and resolve to ``None``.

Example:
    >>> async with RetailCatalogClient(settings) as client:
    ...     result = await client.search("Farmacy Green Clean")
    ...     result.url if result else None
    'https://www.amazon.com/dp/B00...?tag=...'
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from content_engine.config.settings import Settings, get_settings
from content_engine.extractors.link_classifier import add_affiliate_tag
from content_engine.extractors.taxonomy import RETAIL_DETAIL_BASE_URL
from content_engine.models.schemas import RetailSearchResult
from content_engine.services.request_signing import (
    SEARCH_ITEMS_PATH,
    SignableRequest,
    SigningCredentials,
    sign,
)
from content_engine.utils.clock import SystemClock
from content_engine.utils.logger import get_logger
from content_engine.utils.retry import ErrorHandler

logger = get_logger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 24 * 60 * 60
DEFAULT_MIN_INTERVAL_SECONDS = 1.1
DEFAULT_CATEGORY = "Beauty"

SEARCH_RESOURCES = [
    "Images.Primary.Large",
    "ItemInfo.Title",
    "ItemInfo.ByLineInfo",
    "Offers.Listings.Price",
    "Offers.Listings.Availability.Type",
]
SEARCH_ITEM_COUNT = 3


# =============================================================================
# Cache Implementation
# =============================================================================

@dataclass
class CacheEntry:
    """Cached search outcome. ``data`` is None for a negative result."""
    data: Optional[RetailSearchResult]
    created_at: float
    ttl_seconds: int
    hits: int = 0

    def is_expired(self, now: float) -> bool:
        return now - self.created_at >= self.ttl_seconds


def normalize_query(query: str) -> str:
    return " ".join((query or "").lower().split())


class RetailSearchCache:
    """In-memory TTL cache keyed by normalized query."""

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        clock: Optional[SystemClock] = None,
    ):
        self.ttl_seconds = ttl_seconds
        self.clock = clock or SystemClock()
        self._cache: dict[str, CacheEntry] = {}

    def get(self, query: str) -> Optional[CacheEntry]:
        """Live entry for ``query``, or None on a miss. Expired entries are evicted."""
        key = normalize_query(query)
        entry = self._cache.get(key)
        if entry is None:
            return None
        if entry.is_expired(self.clock.now()):
            del self._cache[key]
            return None
        entry.hits += 1
        return entry

    def set(self, query: str, result: Optional[RetailSearchResult]) -> None:
        now = self.clock.now()
        self._purge_expired(now)
        self._cache[normalize_query(query)] = CacheEntry(
            data=result,
            created_at=now,
            ttl_seconds=self.ttl_seconds,
        )

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, entry in self._cache.items() if entry.is_expired(now)]
        for key in expired:
            del self._cache[key]
        if expired:
            logger.debug("Expired retail cache entries purged", count=len(expired))

    def clear(self) -> None:
        self._cache.clear()
        logger.info("Retail search cache cleared")

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        now = self.clock.now()
        return {
            "size": len(self._cache),
            "negative_entries": sum(1 for e in self._cache.values() if e.data is None),
            "expired_entries": sum(1 for e in self._cache.values() if e.is_expired(now)),
            "total_hits": sum(e.hits for e in self._cache.values()),
            "entries": list(self._cache.keys()),
        }


# =============================================================================
# Rate Gate
# =============================================================================

class RateGate:
    """
    Enforces a minimum interval between outbound requests.

    One instance is shared by every caller in the process; the lock
    serializes concurrent callers so each sees the previous request's time.
    """

    def __init__(
        self,
        min_interval_seconds: float = DEFAULT_MIN_INTERVAL_SECONDS,
        clock: Optional[SystemClock] = None,
    ):
        self.min_interval_seconds = min_interval_seconds
        self.clock = clock or SystemClock()
        self._last_request: Optional[float] = None
        self._lock = asyncio.Lock()

    async def wait(self) -> float:
        """
        Block until a request may be sent.

        Returns wait time in seconds (0 if immediate).
        """
        async with self._lock:
            waited = 0.0
            if self._last_request is not None:
                elapsed = self.clock.now() - self._last_request
                if elapsed < self.min_interval_seconds:
                    waited = self.min_interval_seconds - elapsed
                    await self.clock.sleep(waited)
            self._last_request = self.clock.now()
            return waited


# =============================================================================
# Client
# =============================================================================

class RetailCatalogClient:
    """Signed PA-API SearchItems client with caching and rate limiting."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache: Optional[RetailSearchCache] = None,
        rate_gate: Optional[RateGate] = None,
        clock: Optional[SystemClock] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self.clock = clock or SystemClock()
        self.cache = cache or RetailSearchCache(
            ttl_seconds=self.settings.retail_cache_ttl_seconds,
            clock=self.clock,
        )
        self.rate_gate = rate_gate or RateGate(
            min_interval_seconds=self.settings.retail_min_request_interval_seconds,
            clock=self.clock,
        )
        self._client = http_client
        self._owns_client = http_client is None
        self._request_count = 0
        self._error_count = 0
        self._last_error: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        """Access key, secret key and partner tag are all present."""
        return self.settings.is_retail_configured() and bool(self.settings.amazon_partner_tag)

    @property
    def endpoint(self) -> str:
        return f"https://{self.settings.amazon_host}{SEARCH_ITEMS_PATH}"

    @property
    def partner_tag(self) -> Optional[str]:
        return self.settings.amazon_partner_tag

    async def connect(self) -> None:
        """Initialize HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(float(self.settings.request_timeout_seconds)),
                limits=httpx.Limits(max_keepalive_connections=2, max_connections=4),
            )
            self._owns_client = True
            logger.info(
                "Retail catalog client initialized",
                configured=self.is_configured,
                partner_tag=self.partner_tag,
                marketplace=self.settings.amazon_marketplace,
            )

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "RetailCatalogClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _credentials(self) -> SigningCredentials:
        return SigningCredentials(
            access_key=self.settings.amazon_access_key.get_secret_value(),
            secret_key=self.settings.amazon_secret_key.get_secret_value(),
            region=self.settings.amazon_region,
        )

    def build_payload(self, query: str, category_hint: str) -> dict[str, Any]:
        return {
            "Keywords": query,
            "Resources": SEARCH_RESOURCES,
            "SearchIndex": category_hint,
            "ItemCount": SEARCH_ITEM_COUNT,
            "PartnerTag": self.partner_tag,
            "PartnerType": "Associates",
            "Marketplace": self.settings.amazon_marketplace,
        }

    def parse_item(self, query: str, item: dict[str, Any]) -> RetailSearchResult:
        """Map one SearchItems result item to a RetailSearchResult."""
        asin = item["ASIN"]
        item_info = item.get("ItemInfo") or {}
        listings = (item.get("Offers") or {}).get("Listings") or [{}]
        listing = listings[0] or {}

        title = (item_info.get("Title") or {}).get("DisplayValue") or query
        brand = ((item_info.get("ByLineInfo") or {}).get("Brand") or {}).get("DisplayValue")
        price = (listing.get("Price") or {}).get("DisplayAmount")
        availability = (listing.get("Availability") or {}).get("Type")
        image = (((item.get("Images") or {}).get("Primary") or {}).get("Large") or {}).get("URL")

        return RetailSearchResult(
            query=query,
            asin=asin,
            title=title,
            url=add_affiliate_tag(f"{RETAIL_DETAIL_BASE_URL}/{asin}", self.partner_tag),
            detail_page_url=item.get("DetailPageURL"),
            price=price or None,
            image_url=image or None,
            brand=brand or None,
            available=availability == "Now",
            fetched_at=datetime.now(timezone.utc),
        )

    def _record_failure(self, query: str, category: str, detail: str) -> None:
        self._error_count += 1
        self._last_error = f"{category}: {detail}"
        self.cache.set(query, None)

    async def search(
        self,
        query: str,
        category_hint: str = DEFAULT_CATEGORY,
    ) -> Optional[RetailSearchResult]:
        """
        Best catalog match for ``query``.

        Args:
            query: Free-text product query, e.g. "Farmacy Green Clean".
            category_hint: PA-API SearchIndex.

        Returns:
            The first result item, or None when unconfigured, not found or failed.
        """
        if not self.is_configured:
            return None

        cached = self.cache.get(query)
        if cached is not None:
            logger.debug(
                "Retail search cache hit",
                query=query,
                found=cached.data is not None,
            )
            return cached.data

        waited = await self.rate_gate.wait()
        if waited > 0:
            logger.debug("Rate limit applied", wait_seconds=f"{waited:.2f}")

        if self._client is None:
            await self.connect()

        body = json.dumps(self.build_payload(query, category_hint))
        request = SignableRequest(host=self.settings.amazon_host, body=body)
        self._request_count += 1

        try:
            headers = sign(request, self._credentials(), datetime.now(timezone.utc))
            logger.info("Searching retail catalog", query=query, category=category_hint)
            response = await self._client.post(self.endpoint, content=body, headers=headers)

            if not response.is_success:
                category = ErrorHandler.categorize_status(response.status_code)
                logger.warning(
                    "Retail catalog request failed",
                    query=query,
                    status_code=response.status_code,
                    error_type=category,
                    body=response.text[:200],
                )
                self._record_failure(query, category, f"HTTP {response.status_code}")
                return None

            items = ((response.json() or {}).get("SearchResult") or {}).get("Items") or []
            if not items:
                logger.info("No retail catalog results", query=query)
                self.cache.set(query, None)
                return None

            result = self.parse_item(query, items[0])
            logger.info(
                "Retail catalog match found",
                query=query,
                asin=result.asin,
                title=result.title[:50],
                price=result.price,
            )
            self.cache.set(query, result)
            return result

        except Exception as e:
            category = ErrorHandler.categorize_error(e)
            logger.error(
                "Retail catalog search error",
                query=query,
                error=str(e),
                error_type=category,
            )
            self._record_failure(query, category, str(e))
            return None

    def get_stats(self) -> dict[str, Any]:
        """Get client statistics."""
        return {
            "configured": self.is_configured,
            "request_count": self._request_count,
            "error_count": self._error_count,
            "last_error": self._last_error,
            "cache": self.cache.get_stats(),
        }
