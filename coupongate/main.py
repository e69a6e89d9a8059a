import asyncio
import logging

from aiohttp import web

from coupongate.config import load_config
from coupongate.db.pool import create_pool
from coupongate.discounts import create_discount_service
from coupongate.web.app import create_app

logger = logging.getLogger(__name__)


async def main():
    cfg = load_config()

    logging.basicConfig(
        level=cfg.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    pool = None

    # --- PostgreSQL pool (только для RULE_PROVIDER=pg) ---
    if cfg.pg is not None:
        pool = await create_pool(cfg.pg)
        await pool.execute("select 1;")
        logger.info("PG: OK")

    service = create_discount_service(cfg, pool)
    logger.info(
        "APP_ENV=%s, rule provider: %s, strict rules: %s",
        cfg.app_env,
        cfg.rule_provider,
        "ON" if cfg.strict_rules else "OFF",
    )

    app = create_app(service, allowed_origin=cfg.allowed_origin)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host=cfg.host, port=cfg.port)

    try:
        await site.start()
        logger.info("listening on %s:%s", cfg.host, cfg.port)
        while True:
            await asyncio.sleep(3600)
    finally:
        await runner.cleanup()
        close = getattr(service.resolver.provider, "close", None)
        if close is not None:
            await close()
        if pool is not None:
            await pool.close()


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
