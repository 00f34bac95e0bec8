import logging
import secrets
from typing import Optional
from urllib.parse import unquote_plus

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse
from opentelemetry import trace
from starlette.background import BackgroundTask

from gateway.forwarding.config import GatewayConfig
from gateway.forwarding.headers import (
    missing_credential_message,
    prepare_headers,
    prepare_response_headers,
    resolve_credential,
)
from gateway.utils.exception_logging import format_exception_message
from gateway.utils.traced_requests import traced_request

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

ALLOWED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
BODYLESS_METHODS = {"GET", "HEAD"}


def strip_query_param(query: str, name: str) -> str:
    """Drop every ``name`` parameter from a raw query string, keeping the rest verbatim."""
    kept = []
    for part in query.split("&"):
        if not part:
            continue
        if unquote_plus(part.split("=", 1)[0]) == name:
            continue
        kept.append(part)
    return "&".join(kept)


def request_path(request: Request) -> str:
    """
    The inbound path with its original percent-encoding.
    ``request.url.path`` is decoded, which would turn ``%2F`` into a separator
    and ``%3F`` into a query delimiter on the way upstream.
    """
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return raw_path.decode("latin-1").split("?", 1)[0]
    return request.url.path


def get_target_url(request: Request, config: GatewayConfig) -> str:
    """Construct the upstream URL from the request path and query."""
    path = request_path(request)
    prefix = config.mount_prefix
    # Remove the mount prefix; other paths pass through unchanged
    if prefix and (path == prefix or path.startswith(prefix + "/")):
        path = path[len(prefix):]

    if not path.startswith("/"):
        path = "/" + path

    query_string = strip_query_param(str(request.url.query), config.credential_query_param)
    if query_string:
        path = f"{path}?{query_string}"

    return f"{config.upstream_origin}{path}"


def preflight_response(request: Request, config: GatewayConfig) -> Response:
    requested_headers = request.headers.get("access-control-request-headers") or "*"
    return Response(
        status_code=204,
        headers={
            "access-control-allow-origin": "*",
            "access-control-allow-methods": ",".join(ALLOWED_METHODS),
            "access-control-allow-headers": requested_headers,
            "access-control-max-age": str(config.preflight_max_age),
        },
    )


def is_authorized(request: Request, config: GatewayConfig) -> bool:
    """Check the gate token. Always true when no gate secret is configured."""
    if not config.gate_enabled:
        return True
    supplied = request.headers.get(config.token_header) or ""
    return secrets.compare_digest(
        supplied.encode("utf-8"), config.access_token.encode("utf-8")
    )


async def _close_upstream(response: httpx.Response, client: httpx.AsyncClient):
    await response.aclose()
    await client.aclose()


async def forward_to_upstream(
    request: Request,
    config: GatewayConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Response:
    """
    Forward one inbound request to the upstream origin and relay the response.

    - Answers CORS preflight directly
    - Enforces the optional gate token
    - Resolves and injects the upstream credential
    - Streams the request body up and the response body back without buffering

    Upstream transport errors are not handled here; they propagate to the
    application's exception handler.
    """
    if request.method == "OPTIONS":
        return preflight_response(request, config)

    if not is_authorized(request, config):
        logger.info(
            f"[Gateway] Rejected {request.method} {request.url.path}: "
            f"missing or invalid {config.token_header}"
        )
        return PlainTextResponse("Unauthorized", status_code=401)

    credential = resolve_credential(request, config)
    if credential is None:
        logger.info(
            f"[Gateway] Rejected {request.method} {request.url.path}: no API key available"
        )
        return PlainTextResponse(missing_credential_message(config), status_code=400)

    target_url = get_target_url(request, config)
    headers = prepare_headers(request, config, credential)
    # Unknown length: httpx sends an async iterator with chunked transfer encoding
    content = None if request.method in BODYLESS_METHODS else request.stream()

    with traced_request(
        tracer,
        operation="gateway_forward",
        start_message=(
            f"[Gateway] Forwarding {request.method} {request.url.path} -> {target_url} "
            f"(credential from {credential.source})"
        ),
        secret=credential.value,
        extra_attrs={
            "gateway.method": request.method,
            "gateway.upstream_url": target_url,
            "gateway.credential_source": credential.source,
        },
    ) as span:
        client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.upstream_timeout),
            follow_redirects=False,
            transport=transport,
        )
        try:
            upstream_request = client.build_request(
                request.method, target_url, headers=headers, content=content
            )
            upstream = await client.send(upstream_request, stream=True)
        except BaseException as e:
            span.set_attribute("gateway.error", format_exception_message(e))
            await client.aclose()
            raise

        span.set_attribute("gateway.status_code", upstream.status_code)

    response = StreamingResponse(
        upstream.aiter_raw(),
        status_code=upstream.status_code,
        background=BackgroundTask(_close_upstream, upstream, client),
    )
    for name, value in prepare_response_headers(upstream.headers):
        response.headers.append(name, value)
    return response


def create_router(
    config: GatewayConfig, transport: Optional[httpx.AsyncBaseTransport] = None
) -> APIRouter:
    """Catch-all router that forwards every request with ``config``, whatever its method."""
    router = APIRouter()

    async def proxy_all(request: Request):
        return await forward_to_upstream(request, config, transport)

    # A plain route with no method list matches any method, PROPFIND included
    router.add_route("/{path:path}", proxy_all, methods=None, include_in_schema=False)
    return router
