import asyncpg

from coupongate.config import PgConfig


def _ssl_arg(sslmode: str):
    return None if sslmode == "disable" else True


async def create_pool(cfg: PgConfig) -> asyncpg.Pool:
    if cfg.min_size > cfg.max_size:
        raise RuntimeError("PG_POOL_MIN must not exceed PG_POOL_MAX")

    # пул только на чтение правил: discount_rules
    return await asyncpg.create_pool(
        host=cfg.host,
        port=cfg.port,
        database=cfg.database,
        user=cfg.user,
        password=cfg.password,
        ssl=_ssl_arg(cfg.sslmode),
        min_size=cfg.min_size,
        max_size=cfg.max_size,
        command_timeout=cfg.command_timeout,
    )
