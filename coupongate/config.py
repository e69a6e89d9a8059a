from __future__ import annotations
from dataclasses import dataclass
from dotenv import load_dotenv
import os

load_dotenv()


def _str_to_bool(v: str | None, default: bool = False) -> bool:
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, *, required: bool = False, default: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        if required:
            raise RuntimeError(f"{name} is not set")
        return default
    try:
        return int(raw)
    except ValueError as e:
        if required:
            raise RuntimeError(f"{name} must be an integer") from e
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise RuntimeError(f"{name} must be a number") from e


# === Режим приложения ===
# - APP_ENV=prod  → правила из Shopify (если RULE_PROVIDER не задан)
# - APP_ENV=test  → правила из JSON-файла (если RULE_PROVIDER не задан)
PROVIDERS = {"shopify_rest", "shopify_graphql", "json", "pg"}


@dataclass(frozen=True)
class ShopifyConfig:
    shop_name: str | None = None
    access_token: str | None = None
    api_version: str = "2025-10"
    endpoint: str | None = None
    timeout: float = 10.0

    @property
    def base_url(self) -> str:
        if self.endpoint:
            return self.endpoint.rstrip("/")
        return f"https://{self.shop_name}"


@dataclass(frozen=True)
class PgConfig:
    host: str
    port: int
    database: str
    user: str
    password: str
    sslmode: str = "disable"
    min_size: int = 1
    max_size: int = 5
    command_timeout: float = 10.0


@dataclass(frozen=True)
class Config:
    app_env: str
    rule_provider: str
    shopify: ShopifyConfig
    rules_path: str = "data/discounts.json"
    pg: PgConfig | None = None
    allowed_origin: str = "*"
    host: str = "0.0.0.0"
    port: int = 8080
    lookup_timeout: float = 15.0
    strict_rules: bool = False
    log_level: str = "INFO"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_config() -> Config:
    app_env = (os.getenv("APP_ENV") or "prod").strip().lower()
    default_provider = "shopify_rest" if app_env == "prod" else "json"

    rule_provider = (os.getenv("RULE_PROVIDER") or default_provider).strip().lower()
    if rule_provider not in PROVIDERS:
        raise RuntimeError(f"RULE_PROVIDER must be one of {', '.join(sorted(PROVIDERS))}")

    # Креды Shopify здесь не проверяем: провайдер сообщит о них при lookup,
    # сервис стартует и отвечает 500.
    shopify = ShopifyConfig(
        shop_name=os.getenv("SHOP_NAME") or None,
        access_token=os.getenv("SHOPIFY_ACCESS_TOKEN") or None,
        api_version=os.getenv("SHOPIFY_API_VERSION") or "2025-10",
        endpoint=os.getenv("SHOPIFY_BASE_URL") or None,
        timeout=_env_float("SHOPIFY_TIMEOUT", 10.0),
    )

    pg = None
    if rule_provider == "pg":
        pg = PgConfig(
            host=os.getenv("PG_HOST") or "localhost",
            port=_env_int("PG_PORT", default=5432),
            database=os.getenv("PG_DB") or "",
            user=os.getenv("PG_USER") or "",
            password=os.getenv("PG_PASS") or "",
            sslmode=os.getenv("PG_SSLMODE", "disable"),
            min_size=_env_int("PG_POOL_MIN", default=1),
            max_size=_env_int("PG_POOL_MAX", default=5),
            command_timeout=_env_float("PG_COMMAND_TIMEOUT", 10.0),
        )
        if not pg.database:
            raise RuntimeError("PG_DB is not set (RULE_PROVIDER=pg)")

    return Config(
        app_env=app_env,
        rule_provider=rule_provider,
        shopify=shopify,
        rules_path=os.getenv("RULES_PATH") or "data/discounts.json",
        pg=pg,
        allowed_origin=os.getenv("ALLOWED_ORIGIN") or "*",
        host=os.getenv("HOST") or "0.0.0.0",
        port=_env_int("PORT", default=8080),
        lookup_timeout=_env_float("LOOKUP_TIMEOUT", 15.0),
        strict_rules=_str_to_bool(os.getenv("STRICT_RULES")),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
