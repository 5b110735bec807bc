"""
Mascot catalog search via the Shopify Storefront GraphQL API.

Missing credentials mean the feature is off: search returns an empty list
after a warning, never an error.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

import httpx

from figurine_bot.core.exceptions import CatalogSearchError
from figurine_bot.services.integrations.http_client import create_httpx_client
from figurine_bot.services.payments.pricing import format_brl

logger = logging.getLogger(__name__)

SEARCH_QUERY = """
query ($q: String!, $first: Int!) {
  search(query: $q, first: $first, types: [PRODUCT]) {
    edges {
      node {
        ... on Product {
          title
          handle
          tags
          featuredImage { url }
          priceRange { minVariantPrice { amount currencyCode } }
        }
      }
    }
  }
}
"""


@dataclass(frozen=True)
class CatalogItem:
    title: str
    url: str
    image_url: str | None = None
    price_amount: str | None = None
    currency: str | None = None
    tags: tuple[str, ...] = ()

    @property
    def price_label(self) -> str:
        if not self.price_amount:
            return "consulte"
        try:
            cents = int((Decimal(self.price_amount) * 100).quantize(Decimal("1")))
        except InvalidOperation:
            return self.price_amount
        if (self.currency or "BRL") != "BRL":
            return f"{self.currency} {cents / 100:.2f}"
        return format_brl(cents)


class ShopifyCatalog:
    def __init__(
        self,
        domain: str | None,
        storefront_token: str | None,
        api_version: str = "2024-10",
        public_domain: str = "",
        max_results: int = 6,
        timeout_seconds: float = 25.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.domain = domain
        self.storefront_token = storefront_token
        self.api_version = api_version
        self.public_domain = public_domain.rstrip("/")
        self.max_results = max_results
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.domain and self.storefront_token)

    def _parse_item(self, node: dict) -> CatalogItem:
        price = (node.get("priceRange") or {}).get("minVariantPrice") or {}
        return CatalogItem(
            title=node.get("title") or "",
            url=f"{self.public_domain}/products/{node.get('handle', '')}",
            image_url=(node.get("featuredImage") or {}).get("url"),
            price_amount=price.get("amount"),
            currency=price.get("currencyCode"),
            tags=tuple(node.get("tags") or ()),
        )

    async def search(self, term: str) -> list[CatalogItem]:
        """
        Search products by free text.

        Raises:
            CatalogSearchError: upstream HTTP or GraphQL failure
        """
        term = (term or "").strip()
        if not term:
            return []
        if not self.enabled:
            logger.warning("Shopify Storefront not configured - catalog search disabled")
            return []

        url = f"https://{self.domain}/api/{self.api_version}/graphql.json"
        headers = {
            "X-Shopify-Storefront-Access-Token": self.storefront_token,
            "Content-Type": "application/json",
        }
        payload = {"query": SEARCH_QUERY, "variables": {"q": term, "first": self.max_results}}

        try:
            async with create_httpx_client(self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(url, headers=headers, json=payload)
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise CatalogSearchError(f"Catalog search for {term!r} failed: {e}") from e

        if body.get("errors"):
            raise CatalogSearchError(f"Catalog search for {term!r} failed: {body['errors']}")

        edges = (((body.get("data") or {}).get("search") or {}).get("edges")) or []
        items = [self._parse_item(edge.get("node") or {}) for edge in edges]
        return [item for item in items if item.title][: self.max_results]
