from decimal import Decimal

import pytest

from coupongate.discounts.model import DiscountRule, RuleStatus, ValueKind


@pytest.fixture
def make_rule():
    def _make(**overrides) -> DiscountRule:
        fields = dict(
            id="gid://shopify/PriceRule/1",
            status=RuleStatus.ACTIVE,
            value_kind=ValueKind.PERCENTAGE,
            value=Decimal("10"),
            minimum_subtotal=None,
            usage_limit=None,
            usage_count=0,
        )
        fields.update(overrides)
        return DiscountRule(**fields)

    return _make


class StaticProvider:
    """Rule provider double: fixed rules by code, or a fixed error."""

    def __init__(self, rules=None, error=None):
        self.rules = rules or {}
        self.error = error
        self.calls = []

    async def lookup_rule(self, code):
        self.calls.append(code)
        if self.error is not None:
            raise self.error
        return self.rules.get(code)


@pytest.fixture
def static_provider():
    return StaticProvider
