"""Provider payloads -> DiscountRule.

Providers disagree on shapes and are not trusted: values can come back as
negative strings, numbers can be missing or garbage. Everything here is total;
anything unusable becomes "absent" or ValueKind.UNKNOWN.
"""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Mapping, Optional

from coupongate.discounts.model import DiscountRule, RuleStatus, ValueKind
from coupongate.discounts.money import parse_decimal

_VALUE_KINDS = {
    "percentage": ValueKind.PERCENTAGE,
    "percent": ValueKind.PERCENTAGE,
    "fixed_amount": ValueKind.FIXED_AMOUNT,
    "fixed": ValueKind.FIXED_AMOUNT,
}

_STATUSES = {
    "active": RuleStatus.ACTIVE,
    "enabled": RuleStatus.ACTIVE,
    "inactive": RuleStatus.INACTIVE,
    "disabled": RuleStatus.INACTIVE,
    "expired": RuleStatus.INACTIVE,
    "scheduled": RuleStatus.INACTIVE,
}


def _parse_dt(value: Any) -> Optional[datetime]:
    if value in (None, "", 0):
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _opt_int(value: Any) -> Optional[int]:
    d = parse_decimal(value)
    if d is None or d < 0:
        return None
    return int(d)


def _count(value: Any) -> int:
    return _opt_int(value) or 0


def _opt_amount(value: Any) -> Optional[Decimal]:
    d = parse_decimal(value)
    if d is None or d < 0:
        return None
    return d


def value_kind(raw: Any) -> ValueKind:
    if not isinstance(raw, str):
        return ValueKind.UNKNOWN
    return _VALUE_KINDS.get(raw.strip().lower(), ValueKind.UNKNOWN)


def status(raw: Any) -> RuleStatus:
    if isinstance(raw, bool):
        return RuleStatus.ACTIVE if raw else RuleStatus.INACTIVE
    if not isinstance(raw, str):
        return RuleStatus.UNKNOWN
    return _STATUSES.get(raw.strip().lower(), RuleStatus.UNKNOWN)


def status_from_window(
    starts_at: Any,
    ends_at: Any,
    now: Optional[datetime] = None,
) -> RuleStatus:
    start = _parse_dt(starts_at)
    end = _parse_dt(ends_at)
    if start is None and end is None:
        return RuleStatus.UNKNOWN

    now = now or datetime.now(timezone.utc)
    if start is not None and now < start:
        return RuleStatus.INACTIVE
    if end is not None and now >= end:
        return RuleStatus.INACTIVE
    return RuleStatus.ACTIVE


def _rule(
    rule_id: Any,
    rule_status: RuleStatus,
    kind: ValueKind,
    raw_value: Any,
    minimum_subtotal: Any,
    usage_limit: Any,
    usage_count: Any,
) -> DiscountRule:
    value = parse_decimal(raw_value)
    if value is None:
        kind, value = ValueKind.UNKNOWN, Decimal(0)

    return DiscountRule(
        id=str(rule_id) if rule_id is not None else "",
        status=rule_status,
        value_kind=kind,
        value=abs(value),
        minimum_subtotal=_opt_amount(minimum_subtotal),
        usage_limit=_opt_int(usage_limit),
        usage_count=_count(usage_count),
    )


def rule_from_record(raw: Mapping[str, Any], default_id: Any = None) -> DiscountRule:
    """Flat record as kept by the JSON and PostgreSQL storages."""
    return _rule(
        raw.get("id", default_id),
        status(raw.get("status", raw.get("active"))),
        value_kind(raw.get("value_type")),
        raw.get("value"),
        raw.get("minimum_subtotal"),
        raw.get("usage_limit"),
        raw.get("usage_count"),
    )


def rule_from_shopify_rest(
    price_rule: Mapping[str, Any],
    discount_code: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> DiscountRule:
    """``price_rule`` and ``discount_code`` objects of the Admin REST API."""
    prerequisite = price_rule.get("prerequisite_subtotal_range") or {}
    if not isinstance(prerequisite, Mapping):
        prerequisite = {}

    return _rule(
        price_rule.get("id"),
        status_from_window(price_rule.get("starts_at"), price_rule.get("ends_at"), now),
        value_kind(price_rule.get("value_type")),
        price_rule.get("value"),
        prerequisite.get("greater_than_or_equal_to"),
        price_rule.get("usage_limit"),
        discount_code.get("usage_count"),
    )


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, Mapping):
            return None
        data = data.get(key)
    return data


def rule_from_shopify_graphql(node: Mapping[str, Any]) -> DiscountRule:
    """``codeDiscountNodeByCode`` node of the Admin GraphQL API."""
    discount = node.get("codeDiscount")
    if not isinstance(discount, Mapping):
        discount = {}
    value = _dig(discount, "customerGets", "value") or {}

    kind, raw_value = ValueKind.UNKNOWN, None
    typename = value.get("__typename") if isinstance(value, Mapping) else None
    if typename == "DiscountPercentage":
        fraction = parse_decimal(value.get("percentage"))
        # GraphQL отдаёт 10% как 0.1
        kind, raw_value = ValueKind.PERCENTAGE, (fraction * 100 if fraction is not None else None)
    elif typename == "DiscountAmount":
        kind, raw_value = ValueKind.FIXED_AMOUNT, _dig(value, "amount", "amount")

    minimum = None
    requirement = discount.get("minimumRequirement")
    if isinstance(requirement, Mapping) and requirement.get("__typename") == "DiscountMinimumSubtotal":
        minimum = _dig(requirement, "greaterThanOrEqualToSubtotal", "amount")

    return _rule(
        node.get("id"),
        status(discount.get("status")),
        kind,
        raw_value,
        minimum,
        discount.get("usageLimit"),
        discount.get("asyncUsageCount"),
    )
