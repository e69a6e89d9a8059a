from coupongate.discounts.model import Eligible, Ineligible, IneligibleReason


def money_text(cents: int) -> str:
    return f"${cents // 100}.{cents % 100:02d}"


def eligible_text(code: str, result: Eligible) -> str:
    if result.discount_amount_cents == 0:
        return f"Coupon {code} is valid but gives no discount on this cart"
    return (
        f"Coupon {code} applied: -{money_text(result.discount_amount_cents)}, "
        f"new total {money_text(result.new_total_cents)}"
    )


def ineligible_text(code: str, result: Ineligible) -> str:
    details = result.details
    reason = result.reason

    if reason == IneligibleReason.NOT_FOUND:
        return "Discount code not found"
    if reason == IneligibleReason.INACTIVE:
        return f"Discount code {code} is not active"
    if reason == IneligibleReason.BELOW_MINIMUM_SUBTOTAL:
        minimum = money_text(int(details.get("minimum_subtotal_cents", 0)))
        return f"Discount code {code} requires a minimum subtotal of {minimum}"
    if reason == IneligibleReason.USAGE_LIMIT_REACHED:
        return f"Discount code {code} has reached its usage limit"
    return f"Discount code {code} cannot be applied"
