import asyncio
import json
import os
from typing import Optional

from coupongate.discounts.errors import ProviderError
from coupongate.discounts.model import DiscountRule
from coupongate.discounts.normalize import rule_from_record


class JsonRuleStorage:
    """Rules kept in a JSON file, keyed by upper-cased code.

    {"SPRING10": {"id": "1", "status": "active", "value_type": "percentage",
                  "value": "10", "minimum_subtotal": "50.00",
                  "usage_limit": 100, "usage_count": 3}}
    """

    def __init__(self, rules_path: str):
        self.rules_path = rules_path
        self._lock = asyncio.Lock()

    def _read_json(self) -> dict:
        if not os.path.exists(self.rules_path):
            return {}
        with open(self.rules_path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ProviderError(f"Rules file {self.rules_path} is not valid JSON") from e

        if not isinstance(data, dict):
            raise ProviderError(f"Rules file {self.rules_path} must hold an object")
        return data

    async def lookup_rule(self, code: str) -> Optional[DiscountRule]:
        code = code.strip().upper()
        async with self._lock:
            all_rules = self._read_json()

        raw = all_rules.get(code)
        if not raw:
            return None
        if not isinstance(raw, dict):
            raise ProviderError(f"Rule for {code} is not an object")

        return rule_from_record(raw, default_id=code)
