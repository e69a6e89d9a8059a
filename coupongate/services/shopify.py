import json
import logging
from typing import Any, Dict, Optional

import aiohttp
from yarl import URL

from coupongate.config import ShopifyConfig
from coupongate.discounts.errors import MissingCredentialsError, ProviderError
from coupongate.discounts.model import DiscountRule
from coupongate.discounts.normalize import rule_from_shopify_graphql, rule_from_shopify_rest

logger = logging.getLogger(__name__)

_REDIRECTS = {301, 302, 303, 307, 308}

CODE_DISCOUNT_QUERY = """
query discountByCode($code: String!) {
  codeDiscountNodeByCode(code: $code) {
    id
    codeDiscount {
      __typename
      ... on DiscountCodeBasic {
        status
        usageLimit
        asyncUsageCount
        minimumRequirement {
          __typename
          ... on DiscountMinimumSubtotal {
            greaterThanOrEqualToSubtotal { amount }
          }
        }
        customerGets {
          value {
            __typename
            ... on DiscountPercentage { percentage }
            ... on DiscountAmount { amount { amount } }
          }
        }
      }
    }
  }
}
"""


class _ShopifyClient:
    """
    Shopify Admin API, authenticated with X-Shopify-Access-Token.
    Base URL: https://{SHOP_NAME}/admin/api/{version}/
    """

    def __init__(self, cfg: ShopifyConfig):
        self.cfg = cfg
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.cfg.timeout)
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()

    def _check_credentials(self) -> None:
        missing = [
            name
            for name, value in (
                ("SHOP_NAME", self.cfg.shop_name),
                ("SHOPIFY_ACCESS_TOKEN", self.cfg.access_token),
            )
            if not value
        ]
        if missing:
            raise MissingCredentialsError(
                f"Server misconfiguration: Missing {' or '.join(missing)}"
            )

    def _headers(self) -> Dict[str, str]:
        return {
            "X-Shopify-Access-Token": self.cfg.access_token or "",
            "Content-Type": "application/json",
        }

    def api_url(self, path: str) -> str:
        return f"{self.cfg.base_url}/admin/api/{self.cfg.api_version}/{path}"

    async def _error(self, r: aiohttp.ClientResponse) -> ProviderError:
        text = await r.text()
        if r.status in (401, 403):
            logger.error("Shopify rejected the access token (%s)", r.status)
            return ProviderError("Shopify rejected the access token", r.status)
        logger.error("Shopify error %s: %s", r.status, text[:500])
        return ProviderError(f"Shopify error {r.status}: {text[:200]}", r.status)

    async def _json(self, r: aiohttp.ClientResponse, key: str) -> Dict[str, Any]:
        try:
            data = await r.json(content_type=None)
        except json.JSONDecodeError as e:
            raise ProviderError("Shopify returned a non-JSON body", r.status) from e

        item = data.get(key) if isinstance(data, dict) else None
        if not isinstance(item, dict):
            raise ProviderError(f"Shopify response has no {key!r} object", r.status)
        return item


class ShopifyRestProvider(_ShopifyClient):
    """Two lookups: code -> discount code (with price_rule_id) -> price rule."""

    async def _get(self, url: Any, key: str) -> Optional[Dict[str, Any]]:
        s = await self._get_session()
        async with s.get(url, headers=self._headers(), allow_redirects=False) as r:
            if r.status == 404:
                return None
            if r.status != 200:
                raise await self._error(r)
            return await self._json(r, key)

    async def _lookup_code(self, code: str) -> Optional[Dict[str, Any]]:
        s = await self._get_session()
        url = self.api_url("discount_codes/lookup.json")
        async with s.get(
            url,
            headers=self._headers(),
            params={"code": code},
            allow_redirects=False,
        ) as r:
            if r.status == 404:
                return None
            if r.status == 200:
                return await self._json(r, "discount_code")
            if r.status not in _REDIRECTS:
                raise await self._error(r)

            location = r.headers.get("Location")
            if not location:
                raise ProviderError("Shopify lookup redirect without Location", r.status)
            target = r.url.join(URL(location))

        return await self._get(target, "discount_code")

    async def lookup_rule(self, code: str) -> Optional[DiscountRule]:
        self._check_credentials()

        discount_code = await self._lookup_code(code)
        if discount_code is None:
            return None

        price_rule_id = discount_code.get("price_rule_id")
        if price_rule_id is None:
            raise ProviderError("Shopify discount code has no price_rule_id")

        price_rule = await self._get(self.api_url(f"price_rules/{price_rule_id}.json"), "price_rule")
        if price_rule is None:
            logger.info("price rule %s for code %r is gone", price_rule_id, code)
            return None

        return rule_from_shopify_rest(price_rule, discount_code)


class ShopifyGraphQLProvider(_ShopifyClient):
    """One codeDiscountNodeByCode query."""

    async def lookup_rule(self, code: str) -> Optional[DiscountRule]:
        self._check_credentials()

        s = await self._get_session()
        body = {"query": CODE_DISCOUNT_QUERY, "variables": {"code": code}}
        async with s.post(self.api_url("graphql.json"), headers=self._headers(), json=body) as r:
            if r.status != 200:
                raise await self._error(r)
            try:
                data = await r.json(content_type=None)
            except json.JSONDecodeError as e:
                raise ProviderError("Shopify returned a non-JSON body", r.status) from e

        if not isinstance(data, dict):
            raise ProviderError("Shopify GraphQL response is not an object")
        if data.get("errors"):
            logger.error("Shopify GraphQL errors: %s", data["errors"])
            raise ProviderError(f"Shopify GraphQL errors: {data['errors']}")

        payload = data.get("data")
        node = payload.get("codeDiscountNodeByCode") if isinstance(payload, dict) else None
        if node is None:
            return None
        if not isinstance(node, dict):
            raise ProviderError("Shopify GraphQL node is not an object")
        if not isinstance(node.get("codeDiscount"), dict):
            raise ProviderError("Shopify GraphQL node has no codeDiscount object")

        return rule_from_shopify_graphql(node)
