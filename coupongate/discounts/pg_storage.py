from __future__ import annotations

from typing import Optional

import asyncpg

from coupongate.discounts.errors import ProviderError
from coupongate.discounts.model import DiscountRule
from coupongate.discounts.normalize import rule_from_record


class PgRuleStorage:
    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def lookup_rule(self, code: str) -> Optional[DiscountRule]:
        sql = """
        SELECT
            id,
            status,
            value_type,
            value,
            minimum_subtotal,
            usage_limit,
            usage_count
        FROM discount_rules
        WHERE code = $1
        """
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(sql, code.strip().upper())
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            raise ProviderError(f"Rule database error: {type(e).__name__}") from e

        if not row:
            return None

        return rule_from_record(dict(row), default_id=code)
