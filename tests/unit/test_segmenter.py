import pytest

from content_engine.extractors.segmenter import (
    find_product_section,
    is_section_header,
    segment_description,
)


def test_empty_description():
    segmentation = segment_description("")
    assert segmentation.primary is None
    assert segmentation.lines == []
    assert segment_description(None).has_product_section is False


def test_product_section_found(scenario_a_description):
    segmentation = segment_description(scenario_a_description)
    assert segmentation.has_product_section
    assert "Farmacy Green Clean Cleansing Balm" in segmentation.primary
    assert "CeraVe Moisturizing Cream" in segmentation.primary


def test_section_stops_at_next_header(full_description):
    section = find_product_section(full_description)
    assert "Dyson Airwrap" in section
    assert "instagram.com" not in section
    assert "BUSINESS" not in section


@pytest.mark.parametrize("header", [
    "PRODUCTS:",
    "Products mentioned:",
    "PRODUCT:",
    "  products",
])
def test_header_variants(header):
    text = f"{header}\nNARS Blush https://go.shopmy.us/n1"
    assert find_product_section(text) is not None


def test_header_word_must_stand_alone():
    assert find_product_section("Productive morning routine\nhttps://go.shopmy.us/x") is None


def test_same_line_content_is_kept():
    section = find_product_section("PRODUCTS: Glossier Balm Dotcom https://go.shopmy.us/g1")
    assert "Glossier Balm Dotcom" in section


def test_section_header_detection():
    assert is_section_header("FOLLOW ME:")
    assert is_section_header("subscribe for more")
    assert is_section_header("DISCOUNT CODES:")
    assert not is_section_header("NARS: https://go.shopmy.us/n1")
    assert not is_section_header("Rare Beauty Blush - https://go.shopmy.us/def")


def test_lines_are_stripped_and_non_empty():
    segmentation = segment_description("  one  \n\n   \ntwo\n")
    assert segmentation.lines == ["one", "two"]
