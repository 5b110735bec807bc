"""
Tests for Shopify Storefront mascot search.
"""

import json

import httpx
import pytest

from figurine_bot.core.exceptions import CatalogSearchError
from figurine_bot.services.integrations.shopify_catalog import CatalogItem, ShopifyCatalog

SEARCH_RESPONSE = {
    "data": {
        "search": {
            "edges": [
                {
                    "node": {
                        "title": "Mascote Corinthians 16cm",
                        "handle": "mascote-corinthians-16cm",
                        "tags": ["futebol", "corinthians"],
                        "featuredImage": {"url": "https://cdn.shopify.com/c16.png"},
                        "priceRange": {"minVariantPrice": {"amount": "199.9", "currencyCode": "BRL"}},
                    }
                },
                {"node": {}},
                {"node": {"title": "Mascote Corinthians 10cm", "handle": "mascote-corinthians-10cm"}},
            ]
        }
    }
}


def make_catalog(handler, **overrides) -> ShopifyCatalog:
    values = {
        "domain": "loja.myshopify.com",
        "storefront_token": "storefront-token",
        "api_version": "2024-10",
        "public_domain": "https://3dfans.com.br/",
        "max_results": 6,
        "transport": httpx.MockTransport(handler),
    }
    values.update(overrides)
    return ShopifyCatalog(**values)


@pytest.mark.asyncio
async def test_search_posts_graphql_and_parses_items():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=SEARCH_RESPONSE)

    items = await make_catalog(handler).search("  corinthians ")

    request = requests[0]
    assert str(request.url) == "https://loja.myshopify.com/api/2024-10/graphql.json"
    assert request.headers["X-Shopify-Storefront-Access-Token"] == "storefront-token"
    body = json.loads(request.content)
    assert body["variables"] == {"q": "corinthians", "first": 6}

    assert items == [
        CatalogItem(
            title="Mascote Corinthians 16cm",
            url="https://3dfans.com.br/products/mascote-corinthians-16cm",
            image_url="https://cdn.shopify.com/c16.png",
            price_amount="199.9",
            currency="BRL",
            tags=("futebol", "corinthians"),
        ),
        CatalogItem(
            title="Mascote Corinthians 10cm",
            url="https://3dfans.com.br/products/mascote-corinthians-10cm",
        ),
    ]


@pytest.mark.asyncio
async def test_search_truncates_to_max_results():
    catalog = make_catalog(lambda request: httpx.Response(200, json=SEARCH_RESPONSE), max_results=1)
    items = await catalog.search("corinthians")
    assert [i.title for i in items] == ["Mascote Corinthians 16cm"]


@pytest.mark.asyncio
async def test_empty_term_returns_nothing_without_request():
    def handler(request):
        raise AssertionError("no request expected")

    assert await make_catalog(handler).search("   ") == []


@pytest.mark.asyncio
async def test_unconfigured_catalog_is_disabled(caplog):
    catalog = ShopifyCatalog(domain=None, storefront_token=None)
    assert catalog.enabled is False
    assert await catalog.search("corinthians") == []
    assert "not configured" in caplog.text


@pytest.mark.asyncio
async def test_http_error_raises():
    catalog = make_catalog(lambda request: httpx.Response(502, text="bad gateway"))
    with pytest.raises(CatalogSearchError):
        await catalog.search("corinthians")


@pytest.mark.asyncio
async def test_graphql_errors_raise():
    catalog = make_catalog(
        lambda request: httpx.Response(200, json={"errors": [{"message": "Throttled"}]})
    )
    with pytest.raises(CatalogSearchError, match="Throttled"):
        await catalog.search("corinthians")


@pytest.mark.asyncio
async def test_invalid_json_raises():
    catalog = make_catalog(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(CatalogSearchError):
        await catalog.search("corinthians")


@pytest.mark.parametrize(
    "amount,currency,expected",
    [
        ("199.9", "BRL", "R$ 199,90"),
        ("1299.00", None, "R$ 1.299,00"),
        ("49.5", "USD", "USD 49.50"),
        (None, "BRL", "consulte"),
        ("grátis", "BRL", "grátis"),
    ],
)
def test_price_label(amount, currency, expected):
    item = CatalogItem(title="x", url="u", price_amount=amount, currency=currency)
    assert item.price_label == expected
