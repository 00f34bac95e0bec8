import logging
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from gateway.forwarding.config import GatewayConfig, load_config
from gateway.forwarding.route import create_router
from gateway.utils.exception_logging import log_exception_with_details
from gateway.vars import SERVICE_NAME

logger = logging.getLogger("uvicorn.error")


def create_app(
    config: Optional[GatewayConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the gateway application.

    ``transport`` replaces the real network transport for outbound calls,
    which is how tests observe what reaches the upstream.
    """
    config = config or load_config()
    app = FastAPI(title=SERVICE_NAME, docs_url=None, redoc_url=None, openapi_url=None)

    @app.exception_handler(httpx.RequestError)
    async def upstream_transport_error(request: Request, exc: httpx.RequestError):
        log_exception_with_details(
            logger, f"[Gateway] Upstream call for {request.url.path} failed:", exc
        )
        return PlainTextResponse("Bad Gateway", status_code=502)

    if config.gate_enabled:
        logger.info(f"Gate token required in header {config.token_header}")
    else:
        logger.info("No GATEWAY_ACCESS_TOKEN set, gate disabled")
    if not config.default_api_key:
        logger.info("No default API key configured, callers must supply one")

    app.include_router(create_router(config, transport))
    return app


app = create_app()
