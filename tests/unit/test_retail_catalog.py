import json

import httpx
import pytest

from content_engine.services.retail_catalog import (
    RateGate,
    RetailCatalogClient,
    RetailSearchCache,
    SEARCH_RESOURCES,
    normalize_query,
)


SEARCH_RESPONSE = {
    "SearchResult": {
        "Items": [
            {
                "ASIN": "B07VWSN95S",
                "DetailPageURL": "https://www.amazon.com/dp/B07VWSN95S?tag=creator-20&linkCode=ogi",
                "ItemInfo": {
                    "Title": {"DisplayValue": "Farmacy Green Clean Makeup Removing Cleansing Balm"},
                    "ByLineInfo": {"Brand": {"DisplayValue": "Farmacy"}},
                },
                "Offers": {
                    "Listings": [
                        {
                            "Price": {"DisplayAmount": "$38.00"},
                            "Availability": {"Type": "Now"},
                        }
                    ]
                },
                "Images": {"Primary": {"Large": {"URL": "https://m.media-amazon.com/images/I/farmacy.jpg"}}},
            },
            {"ASIN": "B000SECOND"},
        ]
    }
}


class Recorder:
    """httpx MockTransport handler that records requests."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def make_client(settings, clock, recorder):
    return RetailCatalogClient(
        settings=settings,
        clock=clock,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(recorder)),
    )


# =============================================================================
# Cache
# =============================================================================

def test_normalize_query():
    assert normalize_query("  Farmacy   GREEN clean ") == "farmacy green clean"


def test_cache_hit_and_expiry(fake_clock):
    cache = RetailSearchCache(ttl_seconds=100, clock=fake_clock)
    cache.set("CeraVe Cream", None)

    entry = cache.get("cerave  cream")
    assert entry is not None
    assert entry.data is None

    fake_clock.advance(100)
    assert cache.get("CeraVe Cream") is None
    assert cache.get_stats()["size"] == 0


def test_cache_stats_and_clear(fake_clock, retail_result):
    cache = RetailSearchCache(clock=fake_clock)
    cache.set("a", retail_result)
    cache.set("b", None)
    cache.get("a")

    stats = cache.get_stats()
    assert stats["size"] == 2
    assert stats["negative_entries"] == 1
    assert stats["total_hits"] == 1

    cache.clear()
    assert cache.get_stats()["size"] == 0


def test_cache_set_purges_expired_entries(fake_clock, retail_result):
    cache = RetailSearchCache(ttl_seconds=100, clock=fake_clock)
    cache.set("a", retail_result)
    cache.set("stale miss", None)

    fake_clock.advance(150)
    cache.set("b", None)

    stats = cache.get_stats()
    assert stats["size"] == 1
    assert stats["entries"] == ["b"]
    assert stats["expired_entries"] == 0


# =============================================================================
# Rate gate
# =============================================================================

@pytest.mark.asyncio
async def test_rate_gate_first_call_immediate(fake_clock):
    gate = RateGate(min_interval_seconds=1.1, clock=fake_clock)
    assert await gate.wait() == 0.0
    assert fake_clock.sleeps == []


@pytest.mark.asyncio
async def test_rate_gate_spaces_requests(fake_clock):
    gate = RateGate(min_interval_seconds=1.1, clock=fake_clock)
    start = fake_clock.now()

    for _ in range(3):
        await gate.wait()

    assert fake_clock.now() - start >= 2 * 1.1 - 1e-9
    assert fake_clock.sleeps == pytest.approx([1.1, 1.1])


@pytest.mark.asyncio
async def test_rate_gate_no_wait_after_interval(fake_clock):
    gate = RateGate(min_interval_seconds=1.1, clock=fake_clock)
    await gate.wait()
    fake_clock.advance(0.6)
    assert await gate.wait() == pytest.approx(0.5)
    fake_clock.advance(5)
    assert await gate.wait() == 0.0


# =============================================================================
# Client
# =============================================================================

@pytest.mark.asyncio
async def test_unconfigured_client_returns_none(settings, fake_clock):
    recorder = Recorder(httpx.Response(200, json=SEARCH_RESPONSE))
    client = make_client(settings, fake_clock, recorder)

    assert client.is_configured is False
    assert await client.search("Farmacy Green Clean") is None
    assert recorder.requests == []
    assert client.cache.get_stats()["size"] == 0


@pytest.mark.asyncio
async def test_search_maps_first_item(retail_settings, fake_clock):
    recorder = Recorder(httpx.Response(200, json=SEARCH_RESPONSE))
    client = make_client(retail_settings, fake_clock, recorder)

    result = await client.search("Farmacy Green Clean")

    assert result.asin == "B07VWSN95S"
    assert result.title == "Farmacy Green Clean Makeup Removing Cleansing Balm"
    assert result.url == "https://www.amazon.com/dp/B07VWSN95S?tag=creator-20"
    assert result.detail_page_url.startswith("https://www.amazon.com/dp/B07VWSN95S")
    assert result.price == "$38.00"
    assert result.image_url == "https://m.media-amazon.com/images/I/farmacy.jpg"
    assert result.brand == "Farmacy"
    assert result.available is True


@pytest.mark.asyncio
async def test_search_request_is_signed(retail_settings, fake_clock):
    recorder = Recorder(httpx.Response(200, json=SEARCH_RESPONSE))
    client = make_client(retail_settings, fake_clock, recorder)

    await client.search("Farmacy Green Clean", category_hint="Beauty")

    request = recorder.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://webservices.amazon.com/paapi5/searchitems"
    assert request.headers["Authorization"].startswith(
        "AWS4-HMAC-SHA256 Credential=AKIDEXAMPLE/"
    )
    assert request.headers["X-Amz-Target"].endswith("ProductAdvertisingAPIv1.SearchItems")
    assert request.headers["Content-Encoding"] == "amz-1.0"

    payload = json.loads(request.content)
    assert payload == {
        "Keywords": "Farmacy Green Clean",
        "Resources": SEARCH_RESOURCES,
        "SearchIndex": "Beauty",
        "ItemCount": 3,
        "PartnerTag": "creator-20",
        "PartnerType": "Associates",
        "Marketplace": "www.amazon.com",
    }


@pytest.mark.asyncio
async def test_sparse_item_mapping(retail_settings, fake_clock):
    body = {"SearchResult": {"Items": [{"ASIN": "B000SPARSE"}]}}
    client = make_client(retail_settings, fake_clock, Recorder(httpx.Response(200, json=body)))

    result = await client.search("Mystery Glow Drops")

    assert result.title == "Mystery Glow Drops"
    assert result.price is None
    assert result.image_url is None
    assert result.brand is None
    assert result.available is False


@pytest.mark.asyncio
async def test_positive_result_cached(retail_settings, fake_clock):
    recorder = Recorder(httpx.Response(200, json=SEARCH_RESPONSE))
    client = make_client(retail_settings, fake_clock, recorder)

    first = await client.search("Farmacy Green Clean")
    second = await client.search("farmacy  green clean")

    assert len(recorder.requests) == 1
    assert second == first


@pytest.mark.asyncio
async def test_negative_result_short_circuits(retail_settings, fake_clock):
    recorder = Recorder(httpx.Response(200, json={"SearchResult": {"Items": []}}))
    client = make_client(retail_settings, fake_clock, recorder)

    assert await client.search("Unfindable Thing") is None
    assert await client.search("Unfindable Thing") is None

    assert len(recorder.requests) == 1


@pytest.mark.asyncio
async def test_negative_result_expires(retail_settings, fake_clock):
    recorder = Recorder(
        httpx.Response(200, json={}),
        httpx.Response(200, json=SEARCH_RESPONSE),
    )
    client = make_client(retail_settings, fake_clock, recorder)

    assert await client.search("Farmacy Green Clean") is None
    fake_clock.advance(24 * 60 * 60)
    assert (await client.search("Farmacy Green Clean")).asin == "B07VWSN95S"
    assert len(recorder.requests) == 2


@pytest.mark.parametrize("status", [429, 401, 403, 400, 500, 503])
@pytest.mark.asyncio
async def test_http_errors_resolve_to_none(retail_settings, fake_clock, status):
    recorder = Recorder(httpx.Response(status, text="error"))
    client = make_client(retail_settings, fake_clock, recorder)

    assert await client.search("CeraVe Moisturizing Cream") is None
    assert await client.search("CeraVe Moisturizing Cream") is None

    assert len(recorder.requests) == 1
    assert client.get_stats()["error_count"] == 1


@pytest.mark.parametrize("status, category", [
    (429, "RATE_LIMIT_ERROR"),
    (401, "API_KEY_ERROR"),
    (404, "HTTP_ERROR"),
    (502, "SERVER_ERROR"),
])
@pytest.mark.asyncio
async def test_http_error_categories(retail_settings, fake_clock, status, category):
    client = make_client(retail_settings, fake_clock, Recorder(httpx.Response(status)))
    await client.search("CeraVe Moisturizing Cream")
    assert client.get_stats()["last_error"] == f"{category}: HTTP {status}"


@pytest.mark.asyncio
async def test_network_error_resolves_to_none(retail_settings, fake_clock):
    recorder = Recorder(httpx.ConnectError("connection refused"))
    client = make_client(retail_settings, fake_clock, recorder)

    assert await client.search("CeraVe Moisturizing Cream") is None
    assert client.get_stats()["last_error"].startswith("NETWORK_ERROR")
    assert client.cache.get("CeraVe Moisturizing Cream").data is None


@pytest.mark.asyncio
async def test_invalid_json_resolves_to_none(retail_settings, fake_clock):
    recorder = Recorder(httpx.Response(200, content=b"not json"))
    client = make_client(retail_settings, fake_clock, recorder)
    assert await client.search("CeraVe Moisturizing Cream") is None


@pytest.mark.asyncio
async def test_sequential_searches_respect_rate_gate(retail_settings, fake_clock):
    recorder = Recorder(httpx.Response(200, json=SEARCH_RESPONSE))
    client = make_client(retail_settings, fake_clock, recorder)
    start = fake_clock.now()

    for query in ("one product", "two product", "three product"):
        await client.search(query)

    assert len(recorder.requests) == 3
    assert fake_clock.now() - start >= 2 * 1.1 - 1e-9


@pytest.mark.asyncio
async def test_context_manager_closes_owned_client(retail_settings):
    async with RetailCatalogClient(settings=retail_settings) as client:
        assert client._client is not None
    assert client._client is None
