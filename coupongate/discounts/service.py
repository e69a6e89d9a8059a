from __future__ import annotations

import logging
from typing import Any, Optional

from coupongate.discounts.calculator import evaluate_rule
from coupongate.discounts.model import EvaluationResult, Ineligible
from coupongate.discounts.resolver import RuleResolver

logger = logging.getLogger(__name__)


class DiscountService:
    def __init__(self, resolver: RuleResolver, strict: bool = False):
        self.resolver = resolver
        self.strict = strict

    async def evaluate(
        self,
        code: str,
        original_total_cents: Any,
        timeout: Optional[float] = None,
    ) -> EvaluationResult:
        # ProviderError пробрасываем: "не смогли проверить" != "промокод невалиден"
        rule = await self.resolver.resolve(code, timeout=timeout)
        result = evaluate_rule(rule, original_total_cents, strict=self.strict)

        if isinstance(result, Ineligible):
            logger.info("discount code %r not applicable: %s", code, result.reason.value)
        else:
            logger.info(
                "discount code %r applied: -%s cents of %s",
                code,
                result.discount_amount_cents,
                result.original_total_cents,
            )
        return result
