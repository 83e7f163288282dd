"""
Reconciliation of candidate products into the final per-video list.

Steps, in order:
    1. Deduplicate (first occurrence wins)
    2. Apply the partner tag to retail links
    3. Enrich records without a retail link from the retail catalog, one at a time
    4. Drop records that still carry no link

Output keeps the relative order of first occurrence. Links found in the
description are never replaced by catalog results.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from content_engine.extractors.link_classifier import add_affiliate_tag
from content_engine.models.schemas import UNKNOWN_BRAND, ExtractedProduct
from content_engine.services.retail_catalog import RetailCatalogClient
from content_engine.utils.logger import get_logger

logger = get_logger(__name__)

MIN_QUERY_LENGTH = 3
DEFAULT_MAX_ENRICHED = 50


def deduplicate_products(products: Iterable[ExtractedProduct]) -> list[ExtractedProduct]:
    """Keep the first record per ``dedup_key()``, preserving order."""
    seen: set[str] = set()
    unique = []
    for product in products:
        key = product.dedup_key()
        if key in seen:
            continue
        seen.add(key)
        unique.append(product)
    return unique


def is_searchable(query: Optional[str]) -> bool:
    """False for queries too ambiguous to send to the catalog."""
    query = (query or "").strip()
    return bool(query) and query != UNKNOWN_BRAND and len(query) >= MIN_QUERY_LENGTH


@dataclass
class ReconciliationStats:
    input_count: int = 0
    duplicates: int = 0
    enriched: int = 0
    already_retail: int = 0
    skipped: int = 0
    not_found: int = 0
    dropped_no_link: int = 0


class ReconciliationEngine:
    """Deduplicates, tags and enriches candidate products."""

    def __init__(
        self,
        retail_client: Optional[RetailCatalogClient] = None,
        partner_tag: Optional[str] = None,
        category_hint: str = "Beauty",
        max_enriched: int = DEFAULT_MAX_ENRICHED,
    ):
        self.retail_client = retail_client
        self.partner_tag = partner_tag
        self.category_hint = category_hint
        self.max_enriched = max_enriched
        self.last_stats = ReconciliationStats()

    @property
    def can_enrich(self) -> bool:
        return self.retail_client is not None and self.retail_client.is_configured

    def _tag_retail_link(self, product: ExtractedProduct) -> ExtractedProduct:
        if not product.amazon_url or not self.partner_tag:
            return product
        tagged = add_affiliate_tag(product.amazon_url, self.partner_tag)
        if tagged == product.amazon_url:
            return product
        return product.model_copy(update={"amazon_url": tagged})

    async def _enrich(
        self,
        products: list[ExtractedProduct],
        stats: ReconciliationStats,
    ) -> list[ExtractedProduct]:
        enriched = []
        for index, product in enumerate(products):
            if index >= self.max_enriched:
                enriched.append(product)
                continue
            if product.amazon_url:
                stats.already_retail += 1
                enriched.append(product)
                continue
            if not is_searchable(product.search_query):
                stats.skipped += 1
                logger.debug("Skipping ambiguous product query", query=product.search_query)
                enriched.append(product)
                continue

            # One search in flight at a time
            result = await self.retail_client.search(product.search_query, self.category_hint)
            if result is None:
                stats.not_found += 1
                enriched.append(product)
                continue

            stats.enriched += 1
            enriched.append(product.model_copy(update={
                "amazon_url": result.url,
                "amazon_asin": result.asin,
                "amazon_price": result.price,
                "amazon_title": result.title,
                "amazon_image_url": result.image_url,
            }))
        return enriched

    async def reconcile(self, candidates: Iterable[ExtractedProduct]) -> list[ExtractedProduct]:
        """
        Final product list for one video.

        Args:
            candidates: Raw candidates from description parsing and analysis

        Returns:
            Deduplicated, link-bearing records in first-occurrence order
        """
        candidates = list(candidates)
        stats = ReconciliationStats(input_count=len(candidates))

        products = deduplicate_products(candidates)
        stats.duplicates = len(candidates) - len(products)

        products = [self._tag_retail_link(p) for p in products]

        if self.can_enrich:
            products = await self._enrich(products, stats)
        else:
            logger.debug("Retail enrichment disabled")

        final = [p for p in products if p.has_link]
        stats.dropped_no_link = len(products) - len(final)
        self.last_stats = stats

        logger.info(
            "Reconciliation complete",
            input=stats.input_count,
            duplicates=stats.duplicates,
            enriched=stats.enriched,
            already_had_retail_link=stats.already_retail,
            skipped=stats.skipped,
            not_found=stats.not_found,
            dropped_no_link=stats.dropped_no_link,
            output=len(final),
        )
        return final
