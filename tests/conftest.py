import pytest
from unittest.mock import AsyncMock, MagicMock

from content_engine.config.settings import Settings
from content_engine.models.schemas import (
    BrandEntry,
    ExtractedProduct,
    ProductType,
    RetailSearchResult,
    VideoInput,
)
from content_engine.services.brand_directory import FALLBACK_BRANDS, BrandSnapshot


SCENARIO_A_DESCRIPTION = (
    "PRODUCTS:\n"
    "Farmacy Green Clean Cleansing Balm - https://go.shopmy.us/abc123\n"
    "CeraVe Moisturizing Cream https://amzn.to/xyz789\n"
)

FULL_DESCRIPTION = """My everyday glowy makeup routine!

PRODUCTS MENTIONED:
• Rare Beauty Soft Pinch Liquid Blush - https://go.shopmy.us/p-111
• Charlotte Tilbury Airbrush Flawless Setting Spray – https://go.shopmy.us/p-222
• Dyson Airwrap https://www.amazon.com/dp/B0B8Z1K1XY

FOLLOW ME:
Instagram: https://instagram.com/kyndall
TikTok: https://tiktok.com/@kyndall

BUSINESS INQUIRIES: hello@example.com
"""


class FakeClock:
    """Deterministic clock; ``sleep`` advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.current = start
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self.current

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds

    def advance(self, seconds: float) -> None:
        self.current += seconds


def make_settings(**overrides) -> Settings:
    values = {
        "ANTHROPIC_API_KEY": None,
        "SANITY_PROJECT_ID": None,
        "SANITY_TOKEN": None,
        "AMAZON_ACCESS_KEY": None,
        "AMAZON_SECRET_KEY": None,
        "AMAZON_ASSOCIATE_TAG": None,
        "APP_ENV": "development",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    """Settings with every optional integration disabled."""
    return make_settings()


@pytest.fixture
def retail_settings():
    """Settings with retail catalog credentials."""
    return make_settings(
        AMAZON_ACCESS_KEY="AKIDEXAMPLE",
        AMAZON_SECRET_KEY="wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
        AMAZON_ASSOCIATE_TAG="creator-20",
    )


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def brand_snapshot():
    return BrandSnapshot.build(FALLBACK_BRANDS, loaded_at=0.0, source="fallback")


@pytest.fixture
def small_snapshot():
    return BrandSnapshot.build(
        [
            BrandEntry(canonical_name="Benefit Cosmetics"),
            BrandEntry(canonical_name="Benefit"),
            BrandEntry(canonical_name="e.l.f.", aliases=["elf"]),
        ],
        loaded_at=0.0,
        source="test",
    )


@pytest.fixture
def sample_video():
    return VideoInput(
        video_id="vid-001",
        title="My Everyday Glowy Makeup",
        description=FULL_DESCRIPTION,
        tags=["makeup", "grwm"],
    )


@pytest.fixture
def sample_products():
    return [
        ExtractedProduct(
            brand="Farmacy",
            name="Green Clean Cleansing Balm",
            type=ProductType.SKINCARE,
            shopmy_url="https://go.shopmy.us/abc123",
            original_url="https://go.shopmy.us/abc123",
        ),
        ExtractedProduct(
            brand="CeraVe",
            name="Moisturizing Cream",
            type=ProductType.SKINCARE,
            amazon_url="https://amzn.to/xyz789",
            original_url="https://amzn.to/xyz789",
        ),
    ]


@pytest.fixture
def retail_result():
    return RetailSearchResult(
        query="Farmacy Green Clean Cleansing Balm",
        asin="B00TEST001",
        title="Farmacy Green Clean Makeup Removing Cleansing Balm",
        url="https://www.amazon.com/dp/B00TEST001?tag=creator-20",
        price="$38.00",
        image_url="https://m.media-amazon.com/images/I/test.jpg",
        brand="Farmacy",
        available=True,
    )


@pytest.fixture
def mock_retail_client(retail_result):
    client = MagicMock()
    client.is_configured = True
    client.search = AsyncMock(return_value=retail_result)
    return client


@pytest.fixture
def scenario_a_description():
    return SCENARIO_A_DESCRIPTION


@pytest.fixture
def full_description():
    return FULL_DESCRIPTION
