from decimal import Decimal

import pytest

from coupongate.discounts.errors import MissingCredentialsError, ProviderError
from coupongate.discounts.model import RuleStatus, ValueKind
from coupongate.discounts.resolver import RuleResolver
from coupongate.discounts.service import DiscountService
from coupongate.web.app import create_app

ORIGIN = "https://example-shop.myshopify.com"


@pytest.fixture
def rules(make_rule):
    return {
        "SAVE10": make_rule(),
        "TWENTY": make_rule(value_kind=ValueKind.FIXED_AMOUNT, value=Decimal("20.00")),
        "OFF": make_rule(status=RuleStatus.INACTIVE),
        "BIG": make_rule(minimum_subtotal=Decimal("50.00")),
        "USED": make_rule(usage_limit=5, usage_count=5),
    }


@pytest.fixture
def make_client(aiohttp_client, static_provider):
    async def _make(rules=None, error=None):
        service = DiscountService(RuleResolver(static_provider(rules, error)))
        return await aiohttp_client(create_app(service, allowed_origin=ORIGIN))

    return _make


async def test_preflight(make_client):
    client = await make_client()
    resp = await client.options("/api/validate-coupon")

    assert resp.status == 200
    assert resp.headers["Access-Control-Allow-Origin"] == ORIGIN
    assert resp.headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"
    assert resp.headers["Access-Control-Max-Age"] == "86400"


async def test_get_not_allowed(make_client):
    client = await make_client()
    resp = await client.get("/api/validate-coupon")

    assert resp.status == 405
    assert await resp.json() == {"valid": False, "message": "Method not allowed"}


@pytest.mark.parametrize("body", [{}, {"code": ""}, {"code": "   "}, {"code": 42}])
async def test_missing_code(make_client, body):
    client = await make_client()
    resp = await client.post("/api/validate-coupon", json=body)

    assert resp.status == 400
    assert (await resp.json())["message"] == "No coupon provided"


async def test_non_json_body(make_client):
    client = await make_client()
    resp = await client.post("/api/validate-coupon", data="code=SAVE10")
    assert resp.status == 400


async def test_valid_coupon(make_client, rules):
    client = await make_client(rules)
    resp = await client.post("/api/validate-coupon", json={"code": "SAVE10", "cart_total": 999})

    assert resp.status == 200
    assert resp.headers["Access-Control-Allow-Origin"] == ORIGIN
    data = await resp.json()
    assert data["valid"] is True
    assert data["code"] == "SAVE10"
    assert data["discount"] == {"amount_cents": 100, "original_total_cents": 999, "new_total_cents": 899}
    assert data["message"] == "Coupon SAVE10 applied: -$1.00, new total $8.99"


async def test_fixed_amount_clamped(make_client, rules):
    client = await make_client(rules)
    resp = await client.post("/api/validate-coupon/", json={"code": "TWENTY", "cart_total": 1500})

    data = await resp.json()
    assert data["discount"]["amount_cents"] == 1500
    assert data["discount"]["new_total_cents"] == 0


async def test_missing_cart_total_counts_as_zero(make_client, rules):
    client = await make_client(rules)
    resp = await client.post("/api/validate-coupon", json={"code": "SAVE10"})

    data = await resp.json()
    assert data["valid"] is True
    assert data["discount"]["original_total_cents"] == 0
    assert data["message"] == "Coupon SAVE10 is valid but gives no discount on this cart"


@pytest.mark.parametrize(
    "code,total,reason,message",
    [
        ("NOPE", 1000, "not_found", "Discount code not found"),
        ("OFF", 1000, "inactive", "Discount code OFF is not active"),
        ("BIG", 4999, "below_minimum_subtotal", "Discount code BIG requires a minimum subtotal of $50.00"),
        ("USED", 1000, "usage_limit_reached", "Discount code USED has reached its usage limit"),
    ],
)
async def test_ineligible_is_success_status(make_client, rules, code, total, reason, message):
    client = await make_client(rules)
    resp = await client.post("/api/validate-coupon", json={"code": code, "cart_total": total})

    assert resp.status == 200
    data = await resp.json()
    assert data["valid"] is False
    assert data["reason"] == reason
    assert data["message"] == message


async def test_missing_credentials_is_500(make_client):
    error = MissingCredentialsError("Server misconfiguration: Missing SHOP_NAME")
    client = await make_client(error=error)
    resp = await client.post("/api/validate-coupon", json={"code": "SAVE10", "cart_total": 100})

    assert resp.status == 500
    data = await resp.json()
    assert data == {"valid": False, "message": "Server misconfiguration: Missing SHOP_NAME"}


async def test_provider_failure_is_502(make_client):
    client = await make_client(error=ProviderError("Shopify error 503", 503))
    resp = await client.post("/api/validate-coupon", json={"code": "SAVE10", "cart_total": 100})

    assert resp.status == 502
    data = await resp.json()
    assert data["valid"] is False
    assert "reason" not in data


async def test_healthz(make_client):
    client = await make_client()
    resp = await client.get("/healthz")
    assert await resp.json() == {"status": "ok"}


async def test_huge_cart_total(make_client, rules):
    client = await make_client(rules)
    resp = await client.post("/api/validate-coupon", json={"code": "SAVE10", "cart_total": 10**30})

    assert resp.status == 200
    assert resp.headers["Access-Control-Allow-Origin"] == ORIGIN
    data = await resp.json()
    assert data["valid"] is True
    assert data["discount"]["amount_cents"] == 10**29


async def test_huge_float_cart_total(make_client, rules):
    client = await make_client(rules)
    resp = await client.post("/api/validate-coupon", json={"code": "TWENTY", "cart_total": 1e40})

    data = await resp.json()
    assert data["discount"]["amount_cents"] == 2000
    assert data["discount"]["original_total_cents"] == 10**40
