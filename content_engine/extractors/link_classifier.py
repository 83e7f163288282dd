"""
Marketplace classification for product URLs.

A URL is an affiliate-shortener link, a retail marketplace link, or neither.
The domain table lives in ``taxonomy.DOMAIN_RULES``.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import parse_qs, quote_plus, urlsplit, urlunsplit

from content_engine.extractors.taxonomy import DOMAIN_RULES, SHORT_LINK_HOSTS
from content_engine.models.schemas import ExtractedProduct, LinkClassification, LinkKind
from content_engine.utils.logger import get_logger

logger = get_logger(__name__)


def _hostname(url: str) -> Optional[str]:
    try:
        return urlsplit(url.strip()).hostname
    except ValueError:
        return None


def _host_matches(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


def add_affiliate_tag(url: Optional[str], partner_tag: Optional[str]) -> Optional[str]:
    """
    Append ``tag=<partner_tag>`` to a retail URL.

    Short-link redirects, URLs already carrying a tag and an unset partner tag
    are returned unchanged.
    """
    if not url or not partner_tag:
        return url

    host = _hostname(url)
    if host is None:
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}tag={quote_plus(partner_tag)}"

    if any(_host_matches(host, short) for short in SHORT_LINK_HOSTS):
        return url

    parts = urlsplit(url)
    if "tag" in parse_qs(parts.query):
        return url

    tag_param = f"tag={quote_plus(partner_tag)}"
    query = f"{parts.query}&{tag_param}" if parts.query else tag_param
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


class LinkClassifier:
    """Classifies URLs by originating marketplace using an ordered domain table."""

    def __init__(self, rules: tuple[tuple[str, LinkKind], ...] = DOMAIN_RULES):
        self.rules = rules

    def kind_of(self, url: Optional[str]) -> LinkKind:
        if not url:
            return LinkKind.OTHER
        host = _hostname(url)
        if not host:
            return LinkKind.OTHER
        for domain, kind in self.rules:
            if _host_matches(host, domain):
                return kind
        return LinkKind.OTHER

    def classify(self, url: Optional[str]) -> LinkClassification:
        kind = self.kind_of(url)
        if kind is LinkKind.AFFILIATE:
            return LinkClassification(affiliate_url=url)
        if kind is LinkKind.RETAIL:
            return LinkClassification(retail_url=url)
        return LinkClassification()

    def is_recognized(self, url: Optional[str]) -> bool:
        return self.kind_of(url) is not LinkKind.OTHER

    def tag(self, product: ExtractedProduct) -> ExtractedProduct:
        """Copy of ``product`` with its original URL filed under the right field."""
        classification = self.classify(product.original_url)
        update = {}
        if classification.affiliate_url and not product.shopmy_url:
            update["shopmy_url"] = classification.affiliate_url
        if classification.retail_url and not product.amazon_url:
            update["amazon_url"] = classification.retail_url
        if not update:
            return product
        return product.model_copy(update=update)
