from dataclasses import dataclass, field
from typing import Optional, Tuple

from gateway import vars as gateway_vars


def _optional(value: Optional[str]) -> Optional[str]:
    """Treat unset and empty settings the same: feature disabled."""
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class GatewayConfig:
    """Process-wide forwarding settings, built once and shared read-only."""

    upstream_origin: str
    mount_prefix: str = ""
    credential_header: str = "x-goog-api-key"
    credential_query_param: str = "key"
    token_header: str = "x-gateway-token"
    default_api_key: Optional[str] = None
    access_token: Optional[str] = None
    preflight_max_age: int = 86400
    upstream_timeout: float = 300.0
    default_api_key_env_names: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "upstream_origin", self.upstream_origin.rstrip("/"))
        object.__setattr__(self, "mount_prefix", self.mount_prefix.rstrip("/"))
        object.__setattr__(self, "credential_header", self.credential_header.lower())
        object.__setattr__(self, "token_header", self.token_header.lower())
        object.__setattr__(self, "default_api_key", _optional(self.default_api_key))
        object.__setattr__(self, "access_token", _optional(self.access_token))

    @property
    def gate_enabled(self) -> bool:
        return self.access_token is not None


def load_config() -> GatewayConfig:
    """Build the configuration from the environment-backed ``gateway.vars``."""
    return GatewayConfig(
        upstream_origin=gateway_vars.UPSTREAM_ORIGIN,
        mount_prefix=gateway_vars.MOUNT_PREFIX,
        credential_header=gateway_vars.CREDENTIAL_HEADER,
        credential_query_param=gateway_vars.CREDENTIAL_QUERY_PARAM,
        token_header=gateway_vars.TOKEN_HEADER,
        default_api_key=gateway_vars.DEFAULT_API_KEY,
        access_token=gateway_vars.ACCESS_TOKEN,
        preflight_max_age=gateway_vars.PREFLIGHT_MAX_AGE,
        upstream_timeout=gateway_vars.UPSTREAM_TIMEOUT,
        default_api_key_env_names=tuple(gateway_vars.DEFAULT_API_KEY_ENV_NAMES),
    )
