"""FastAPI application serving the estimate gateway and webhook relay."""

from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.audit.logger import AuditLogger
from src.config import GatewayConfig
from src.errors import GatewayError, MethodNotAllowedError, PayloadTooLargeError
from src.estimate.gateway import EstimateGateway
from src.webhook.relay import WebhookRelay

logger = logging.getLogger(__name__)

# Common methods reach the handler and get MethodNotAllowedError there;
# anything else (TRACE, custom verbs) is a router 405 rendered by
# framework_error.
_ROUTED_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]
_POST_ONLY_PATHS = frozenset({"/api/estimate", "/api/webhook-relay"})


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    config = GatewayConfig.from_env()
    configure_logging(config.log_level)
    audit_logger = AuditLogger.from_config(config)
    if not config.webhook_secret:
        logger.warning(
            "SUPABASE_WEBHOOK_SECRET is not set; /api/webhook-relay accepts unauthenticated requests",
        )
    return create_app(config, audit_logger)


def create_app(
    config: GatewayConfig,
    audit_logger: AuditLogger | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create the app. ``transport`` is handed to both outbound HTTP clients."""
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
    gateway = EstimateGateway(config, audit_logger, transport)
    relay = WebhookRelay(config, audit_logger, transport)

    @app.exception_handler(GatewayError)
    async def gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
        headers = {"Allow": "POST"} if isinstance(exc, MethodNotAllowedError) else None
        return JSONResponse(exc.to_body(), status_code=exc.status_code, headers=headers)

    @app.exception_handler(StarletteHTTPException)
    async def framework_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        headers = dict(exc.headers or {})
        if exc.status_code == 405 and request.url.path in _POST_ONLY_PATHS:
            return JSONResponse(
                {"error": "Method not allowed"}, status_code=405, headers={"Allow": "POST"},
            )
        return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code, headers=headers)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.api_route("/api/estimate", methods=_ROUTED_METHODS)
    async def estimate(request: Request) -> JSONResponse:
        body = await _read_post_body(request, config.max_body_bytes)
        result = await gateway.estimate(body, source_ip=_client_ip(request))
        return JSONResponse(result)

    @app.api_route("/api/webhook-relay", methods=_ROUTED_METHODS)
    async def webhook_relay(request: Request) -> JSONResponse:
        body = await _read_post_body(request, config.max_body_bytes)
        result = await relay.relay(body, request.headers, source_ip=_client_ip(request))
        return JSONResponse(result)

    return app


async def _read_post_body(request: Request, max_bytes: int) -> bytes:
    if request.method != "POST":
        raise MethodNotAllowedError("Method not allowed")
    body = await request.body()
    if len(body) > max_bytes:
        raise PayloadTooLargeError("Request body too large")
    return body


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None
