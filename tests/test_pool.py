import asyncpg
import pytest

from coupongate.config import PgConfig
from coupongate.db import pool as pool_module


def _pg(**overrides) -> PgConfig:
    fields = dict(host="db", port=5432, database="shop", user="u", password="p")
    fields.update(overrides)
    return PgConfig(**fields)


async def test_create_pool_uses_config(monkeypatch):
    seen = {}

    async def fake_create_pool(**kwargs):
        seen.update(kwargs)
        return "pool"

    monkeypatch.setattr(asyncpg, "create_pool", fake_create_pool)

    assert await pool_module.create_pool(_pg(sslmode="require", max_size=12, command_timeout=3.0)) == "pool"
    assert seen["database"] == "shop"
    assert seen["ssl"] is True
    assert seen["min_size"] == 1
    assert seen["max_size"] == 12
    assert seen["command_timeout"] == 3.0


async def test_create_pool_rejects_inverted_sizes():
    with pytest.raises(RuntimeError, match="PG_POOL_MIN"):
        await pool_module.create_pool(_pg(min_size=10, max_size=2))
