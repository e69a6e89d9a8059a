from __future__ import annotations

from typing import Any, Optional

from coupongate.discounts.model import (
    DiscountRule,
    Eligible,
    EvaluationResult,
    Ineligible,
    IneligibleReason,
    RuleStatus,
    ValueKind,
)
from coupongate.discounts.money import coerce_total_cents, percent_of, to_cents


def discount_amount_cents(rule: DiscountRule, original_total_cents: int) -> Optional[int]:
    """Amount for a rule that passed eligibility; None when the value is not computable."""
    value = abs(rule.value)
    if not value.is_finite():
        return None

    if rule.value_kind == ValueKind.PERCENTAGE:
        amount = percent_of(original_total_cents, value)
    elif rule.value_kind == ValueKind.FIXED_AMOUNT:
        amount = to_cents(value)
    else:
        return None

    # защита от отрицательных цен
    return max(0, min(amount, original_total_cents))


def evaluate_rule(
    rule: Optional[DiscountRule],
    original_total_cents: Any,
    *,
    strict: bool = False,
) -> EvaluationResult:
    """Check eligibility in a fixed order, then compute the discount.

    The first failing check wins. With ``strict`` a rule whose value cannot be
    computed is reported as MALFORMED_RULE; otherwise it is a zero discount.
    """
    total = coerce_total_cents(original_total_cents)

    if rule is None:
        return Ineligible(IneligibleReason.NOT_FOUND)

    if rule.status == RuleStatus.INACTIVE:
        return Ineligible(IneligibleReason.INACTIVE, {"rule_id": rule.id})

    if rule.minimum_subtotal is not None and rule.minimum_subtotal.is_finite():
        minimum_cents = to_cents(rule.minimum_subtotal)
        if total < minimum_cents:
            return Ineligible(
                IneligibleReason.BELOW_MINIMUM_SUBTOTAL,
                {"minimum_subtotal_cents": minimum_cents, "original_total_cents": total},
            )

    if rule.usage_limit is not None and rule.usage_count >= rule.usage_limit:
        return Ineligible(
            IneligibleReason.USAGE_LIMIT_REACHED,
            {"usage_count": rule.usage_count, "usage_limit": rule.usage_limit},
        )

    amount = discount_amount_cents(rule, total)
    if amount is None:
        if strict:
            return Ineligible(
                IneligibleReason.MALFORMED_RULE,
                {"rule_id": rule.id, "value_kind": rule.value_kind.value},
            )
        amount = 0

    return Eligible(
        discount_amount_cents=amount,
        original_total_cents=total,
        new_total_cents=max(0, total - amount),
    )
