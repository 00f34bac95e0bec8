"""
Header handling for the forwarding gateway.

Covers the three header concerns of a forwarded request:
- resolving the upstream credential from the inbound request or configuration
- sanitizing inbound headers before they are replayed upstream
- adjusting upstream response headers before they are relayed to the caller
"""

import re
from typing import List, Mapping, NamedTuple, Optional, Tuple

import httpx
from fastapi import Request

from gateway.forwarding.config import GatewayConfig

# Hop-by-hop and framing headers of the inbound connection (RFC 7230 6.1).
# The outbound connection frames its own body, so these are never replayed.
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
    "host",
    "content-length",
}

# Transport headers of the upstream hop that the relaying server sets itself
RESPONSE_HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "trailer",
    "transfer-encoding",
    "upgrade",
}

BEARER_PATTERN = re.compile(r"^\s*bearer\s+(.+?)\s*$", re.IGNORECASE)

SOURCE_HEADER = "header"
SOURCE_BEARER = "bearer"
SOURCE_DEFAULT = "default"


class ResolvedCredential(NamedTuple):
    value: str
    source: str


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token of an ``Authorization: Bearer <token>`` value, if any."""
    if not authorization:
        return None
    match = BEARER_PATTERN.match(authorization)
    if not match:
        return None
    return match.group(1).strip() or None


def resolve_credential(
    request: Request, config: GatewayConfig
) -> Optional[ResolvedCredential]:
    """
    Resolve the upstream credential, first non-empty source wins:
    the credential header, then a bearer Authorization header, then the
    configured default. Returns None when no source yields a value.
    """
    header_value = (request.headers.get(config.credential_header) or "").strip()
    if header_value:
        return ResolvedCredential(header_value, SOURCE_HEADER)

    bearer = extract_bearer_token(request.headers.get("authorization"))
    if bearer:
        return ResolvedCredential(bearer, SOURCE_BEARER)

    if config.default_api_key:
        return ResolvedCredential(config.default_api_key, SOURCE_DEFAULT)

    return None


def missing_credential_message(config: GatewayConfig) -> str:
    env_names = " or ".join(config.default_api_key_env_names) or "a default key"
    return (
        f"Missing API key. Send it in the '{config.credential_header}' header, "
        f"as 'Authorization: Bearer <key>', or configure {env_names} on the gateway."
    )


def prepare_headers(
    request: Request, config: GatewayConfig, credential: ResolvedCredential
) -> List[Tuple[str, str]]:
    """
    Prepare headers for forwarding upstream.
    Removes hop-by-hop headers and the gate token, then sets the credential header.
    Returned as pairs so repeated request headers all reach the upstream.

    When the caller sent no Accept-Encoding, ``identity`` is requested instead of
    httpx's default compressed encodings, because response bodies are relayed
    undecoded.
    """
    headers = []

    for name, value in request.headers.items():
        name_lower = name.lower()
        if name_lower in HOP_BY_HOP_HEADERS:
            continue
        if name_lower in (config.token_header, config.credential_header):
            continue
        # A consumed bearer credential only travels in the credential header
        if name_lower == "authorization" and credential.source == SOURCE_BEARER:
            continue
        headers.append((name, value))

    if not any(name.lower() == "accept-encoding" for name, _ in headers):
        headers.append(("accept-encoding", "identity"))

    headers.append((config.credential_header, credential.value))
    return headers


def prepare_response_headers(
    upstream_headers: Mapping[str, str],
) -> List[Tuple[str, str]]:
    """
    Copy upstream response headers, disabling caching and opening CORS.
    Returned as pairs so repeated headers such as Set-Cookie survive.
    """
    headers = []
    for name, value in httpx.Headers(upstream_headers).multi_items():
        name_lower = name.lower()
        if name_lower in RESPONSE_HOP_BY_HOP_HEADERS:
            continue
        if name_lower in ("cache-control", "access-control-allow-origin"):
            continue
        headers.append((name, value))

    headers.append(("cache-control", "no-store"))
    headers.append(("access-control-allow-origin", "*"))
    return headers
