import pytest

from content_engine.extractors.description_extractor import DescriptionExtractor
from content_engine.extractors.link_classifier import LinkClassifier
from content_engine.extractors.product_parser import ProductParser
from content_engine.models.schemas import ProductSource, ProductType


@pytest.fixture
def extractor(brand_snapshot):
    return DescriptionExtractor(ProductParser(brand_snapshot), LinkClassifier())


def test_product_section_scenario(extractor, scenario_a_description):
    outcome = extractor.extract(scenario_a_description)

    assert outcome.strategy == "product_section"
    assert len(outcome.products) == 2

    farmacy, cerave = outcome.products
    assert farmacy.brand == "Farmacy"
    assert farmacy.name == "Green Clean Cleansing Balm"
    assert farmacy.shopmy_url == "https://go.shopmy.us/abc123"
    assert farmacy.amazon_url is None
    assert farmacy.type == ProductType.SKINCARE

    assert cerave.brand == "CeraVe"
    assert cerave.name == "Moisturizing Cream"
    assert cerave.amazon_url == "https://amzn.to/xyz789"
    assert cerave.shopmy_url is None
    assert cerave.type == ProductType.SKINCARE


def test_line_scan_fallback(extractor):
    description = (
        "Today's look was so fun!\n"
        "Rare Beauty Soft Pinch Blush - https://go.shopmy.us/def\n"
    )
    outcome = extractor.extract(description)

    assert outcome.strategy == "line_scan"
    assert len(outcome.products) == 1
    product = outcome.products[0]
    assert product.brand == "Rare Beauty"
    assert product.name == "Soft Pinch Blush"
    assert product.shopmy_url == "https://go.shopmy.us/def"
    assert product.type == ProductType.MAKEUP
    assert product.source == ProductSource.LINE_SCAN


def test_social_lines_produce_nothing(extractor):
    outcome = extractor.extract("Follow me on Instagram: https://instagram.com/kyndall")
    assert outcome.products == []
    assert outcome.strategy == "none"


def test_line_scan_requires_recognized_domain(extractor):
    outcome = extractor.extract("Glossier Balm Dotcom - https://glossier.com/balm")
    assert outcome.products == []


def test_product_section_accepts_any_domain(extractor):
    outcome = extractor.extract("PRODUCTS:\nGlossier Balm Dotcom - https://glossier.com/balm")
    assert outcome.strategy == "product_section"
    product = outcome.products[0]
    assert product.original_url == "https://glossier.com/balm"
    assert product.shopmy_url is None
    assert product.amazon_url is None


def test_fallback_not_run_when_section_has_products(extractor, full_description):
    outcome = extractor.extract(full_description)

    assert outcome.strategy == "product_section"
    assert [p.brand for p in outcome.products] == ["Rare Beauty", "Charlotte Tilbury", "Dyson"]
    assert all(p.source == ProductSource.PRODUCT_SECTION for p in outcome.products)


def test_empty_section_falls_back_to_line_scan(extractor):
    description = (
        "PRODUCTS:\n"
        "coming soon!\n"
        "FOLLOW ME:\n"
        "Kosas Revealer Concealer https://go.shopmy.us/k1\n"
    )
    outcome = extractor.extract(description)
    assert outcome.strategy == "line_scan"
    assert [p.brand for p in outcome.products] == ["Kosas"]


def test_empty_description(extractor):
    outcome = extractor.extract("")
    assert outcome.products == []
    assert outcome.strategy == "none"


def test_line_scan_link_on_its_own_line(extractor):
    description = (
        "My routine\n"
        "Rare Beauty Soft Pinch Blush\n"
        "https://go.shopmy.us/def\n"
    )
    outcome = extractor.extract(description)

    assert outcome.strategy == "line_scan"
    assert len(outcome.products) == 1
    product = outcome.products[0]
    assert product.brand == "Rare Beauty"
    assert product.name == "Soft Pinch Blush"
    assert product.shopmy_url == "https://go.shopmy.us/def"


def test_line_scan_other_affiliate_platforms(extractor):
    description = (
        "Rare Beauty Soft Pinch Blush - https://liketoknow.it/abc\n"
        "Tatcha Dewy Skin Cream - https://rstyle.me/xyz\n"
    )
    outcome = extractor.extract(description)

    assert outcome.strategy == "line_scan"
    assert [p.brand for p in outcome.products] == ["Rare Beauty", "Tatcha"]
    assert [p.shopmy_url for p in outcome.products] == [
        "https://liketoknow.it/abc",
        "https://rstyle.me/xyz",
    ]
    assert all(p.amazon_url is None for p in outcome.products)
