from coupongate.config import Config
from coupongate.discounts.resolver import RuleProvider, RuleResolver
from coupongate.discounts.service import DiscountService
from coupongate.discounts.storage import JsonRuleStorage


def create_provider(cfg: Config, pg_pool=None) -> RuleProvider:
    if cfg.rule_provider == "json":
        return JsonRuleStorage(cfg.rules_path)

    if cfg.rule_provider == "pg":
        if pg_pool is None:
            raise RuntimeError("RULE_PROVIDER=pg needs a PostgreSQL pool")
        # lazy import: без PG-режима asyncpg не нужен
        from coupongate.discounts.pg_storage import PgRuleStorage
        return PgRuleStorage(pg_pool)

    from coupongate.services.shopify import ShopifyGraphQLProvider, ShopifyRestProvider

    if cfg.rule_provider == "shopify_graphql":
        return ShopifyGraphQLProvider(cfg.shopify)
    return ShopifyRestProvider(cfg.shopify)


def create_discount_service(cfg: Config, pg_pool=None) -> DiscountService:
    resolver = RuleResolver(create_provider(cfg, pg_pool), timeout=cfg.lookup_timeout)
    return DiscountService(resolver, strict=cfg.strict_rules)
