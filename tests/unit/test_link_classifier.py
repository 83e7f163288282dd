import pytest

from content_engine.extractors.link_classifier import LinkClassifier, add_affiliate_tag
from content_engine.extractors.taxonomy import DOMAIN_RULES
from content_engine.models.schemas import ExtractedProduct, LinkKind


@pytest.fixture
def classifier():
    return LinkClassifier()


@pytest.mark.parametrize("url, kind", [
    ("https://go.shopmy.us/abc123", LinkKind.AFFILIATE),
    ("https://shopmy.us/collections/1", LinkKind.AFFILIATE),
    ("https://shop-links.co/123", LinkKind.AFFILIATE),
    ("https://liketoknow.it/abc", LinkKind.AFFILIATE),
    ("https://www.shopltk.com/x", LinkKind.OTHER),
    ("https://ltk.app/p/123", LinkKind.AFFILIATE),
    ("https://rstyle.me/+abc", LinkKind.AFFILIATE),
    ("https://www.shopstyle.com/l/abc", LinkKind.AFFILIATE),
    ("https://www.amazon.com/dp/B00TEST001", LinkKind.RETAIL),
    ("https://amzn.to/xyz789", LinkKind.RETAIL),
    ("https://amzn.com/B00TEST001", LinkKind.RETAIL),
    ("https://a.co/d/abc", LinkKind.RETAIL),
    ("https://instagram.com/kyndall", LinkKind.OTHER),
    ("https://notamazon.com/x", LinkKind.OTHER),
    ("https://shopmy.us.evil.example/x", LinkKind.OTHER),
    ("not a url", LinkKind.OTHER),
    (None, LinkKind.OTHER),
])
def test_kind_of(classifier, url, kind):
    assert classifier.kind_of(url) == kind


def test_classification_is_exclusive(classifier):
    affiliate = classifier.classify("https://go.shopmy.us/abc")
    assert affiliate.affiliate_url == "https://go.shopmy.us/abc"
    assert affiliate.retail_url is None
    assert affiliate.kind == LinkKind.AFFILIATE

    retail = classifier.classify("https://amzn.to/xyz")
    assert retail.retail_url == "https://amzn.to/xyz"
    assert retail.affiliate_url is None

    other = classifier.classify("https://instagram.com/kyndall")
    assert other.kind == LinkKind.OTHER


def test_rules_are_data():
    assert ("shopmy.us", LinkKind.AFFILIATE) in DOMAIN_RULES
    custom = LinkClassifier(rules=(("collective.example", LinkKind.AFFILIATE),))
    assert custom.kind_of("https://go.collective.example/x") == LinkKind.AFFILIATE
    assert custom.kind_of("https://go.shopmy.us/x") == LinkKind.OTHER


def test_tag_returns_copy(classifier):
    product = ExtractedProduct(brand="NARS", name="Blush", original_url="https://go.shopmy.us/n")
    tagged = classifier.tag(product)
    assert tagged.shopmy_url == "https://go.shopmy.us/n"
    assert tagged.amazon_url is None
    assert product.shopmy_url is None


def test_tag_leaves_unrecognized_links(classifier):
    product = ExtractedProduct(name="Thing", original_url="https://example.com/thing")
    assert classifier.tag(product) is product


def test_tag_keeps_existing_links(classifier):
    product = ExtractedProduct(
        name="Cream",
        amazon_url="https://www.amazon.com/dp/KEEP",
        original_url="https://amzn.to/other",
    )
    assert classifier.tag(product).amazon_url == "https://www.amazon.com/dp/KEEP"


# =============================================================================
# Affiliate tag
# =============================================================================

def test_add_tag_to_plain_url():
    assert (
        add_affiliate_tag("https://www.amazon.com/dp/B001", "creator-20")
        == "https://www.amazon.com/dp/B001?tag=creator-20"
    )


def test_add_tag_appends_to_query():
    assert (
        add_affiliate_tag("https://www.amazon.com/dp/B001?th=1", "creator-20")
        == "https://www.amazon.com/dp/B001?th=1&tag=creator-20"
    )


@pytest.mark.parametrize("url", [
    "https://amzn.to/xyz789",
    "https://a.co/d/abc",
    "https://www.amazon.com/dp/B001?tag=someone-20",
])
def test_add_tag_leaves_short_and_tagged_links(url):
    assert add_affiliate_tag(url, "creator-20") == url


def test_add_tag_without_partner_tag():
    assert add_affiliate_tag("https://www.amazon.com/dp/B001", None) == "https://www.amazon.com/dp/B001"
    assert add_affiliate_tag(None, "creator-20") is None
