from __future__ import annotations

import logging
from typing import Any, Dict

from aiohttp import web

from coupongate.discounts.errors import MissingCredentialsError, ProviderError
from coupongate.discounts.model import Eligible, EvaluationResult
from coupongate.discounts.service import DiscountService
from coupongate.utils.text import eligible_text, ineligible_text

logger = logging.getLogger(__name__)

SERVICE_KEY = web.AppKey("discount_service", DiscountService)
ORIGIN_KEY = web.AppKey("allowed_origin", str)


def _cors_headers(app: web.Application) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": app[ORIGIN_KEY],
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Max-Age": "86400",
    }


def _reply(request: web.Request, body: Dict[str, Any], status: int = 200) -> web.Response:
    return web.json_response(body, status=status, headers=_cors_headers(request.app))


def result_payload(code: str, result: EvaluationResult) -> Dict[str, Any]:
    if isinstance(result, Eligible):
        return {
            "valid": True,
            "code": code,
            "message": eligible_text(code, result),
            "discount": {
                "amount_cents": result.discount_amount_cents,
                "original_total_cents": result.original_total_cents,
                "new_total_cents": result.new_total_cents,
            },
        }
    return {
        "valid": False,
        "code": code,
        "reason": result.reason.value,
        "message": ineligible_text(code, result),
        "details": dict(result.details),
    }


async def validate_coupon(request: web.Request) -> web.Response:
    if request.method == "OPTIONS":
        return web.Response(status=200, headers=_cors_headers(request.app))  # preflight

    if request.method != "POST":
        return _reply(request, {"valid": False, "message": "Method not allowed"}, 405)

    try:
        data = await request.json()
    except ValueError:
        data = None

    code = data.get("code") if isinstance(data, dict) else None
    if not isinstance(code, str) or not code.strip():
        return _reply(request, {"valid": False, "message": "No coupon provided"}, 400)
    code = code.strip()

    service = request.app[SERVICE_KEY]
    try:
        result = await service.evaluate(code, data.get("cart_total"))
    except MissingCredentialsError as e:
        logger.error("%s", e)
        return _reply(request, {"valid": False, "message": str(e)}, 500)
    except ProviderError as e:
        logger.error("rule provider failed for %r: %s", code, e)
        return _reply(
            request,
            {"valid": False, "message": "Could not check the discount code, try again later"},
            502,
        )

    return _reply(request, result_payload(code, result))


async def healthz(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


def create_app(service: DiscountService, allowed_origin: str = "*") -> web.Application:
    app = web.Application()
    app[SERVICE_KEY] = service
    app[ORIGIN_KEY] = allowed_origin

    # и со слэшем, и без
    app.router.add_route("*", "/api/validate-coupon", validate_coupon)
    app.router.add_route("*", "/api/validate-coupon/", validate_coupon)
    app.router.add_get("/healthz", healthz)
    return app
