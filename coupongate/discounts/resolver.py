from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

import aiohttp

from coupongate.discounts.errors import ProviderError
from coupongate.discounts.model import DiscountRule

logger = logging.getLogger(__name__)


class RuleProvider(Protocol):
    async def lookup_rule(self, code: str) -> Optional[DiscountRule]:
        """Fully resolved rule, None when the code does not exist.

        Raises ProviderError when the provider cannot answer.
        """
        ...


class RuleResolver:
    def __init__(self, provider: RuleProvider, timeout: Optional[float] = None):
        self.provider = provider
        self.timeout = timeout

    async def resolve(self, code: str, timeout: Optional[float] = None) -> Optional[DiscountRule]:
        if not code or not code.strip():
            raise ValueError("discount code must be a non-empty string")

        timeout = timeout if timeout is not None else self.timeout
        try:
            if timeout is None:
                rule = await self.provider.lookup_rule(code)
            else:
                rule = await asyncio.wait_for(self.provider.lookup_rule(code), timeout)
        except ProviderError:
            raise
        except asyncio.TimeoutError as e:
            logger.warning("rule lookup timed out after %ss", timeout)
            raise ProviderError(f"Rule lookup timed out after {timeout}s") from e
        except aiohttp.ClientError as e:
            logger.warning("rule lookup failed: %s: %s", type(e).__name__, e)
            raise ProviderError(f"Rule provider unreachable: {type(e).__name__}") from e

        if rule is None:
            logger.info("discount code %r not found", code)
        return rule
