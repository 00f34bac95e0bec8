from unittest.mock import Mock

import pytest
from fastapi import Request

from gateway.forwarding.config import GatewayConfig

TEST_UPSTREAM_ORIGIN = "https://upstream.example.com"
TEST_MOUNT_PREFIX = "/.netlify/functions/gateway"


@pytest.fixture
def gateway_config():
    """Gateway configuration without gate secret or default key."""
    return GatewayConfig(
        upstream_origin=TEST_UPSTREAM_ORIGIN,
        mount_prefix=TEST_MOUNT_PREFIX,
        default_api_key_env_names=("GATEWAY_DEFAULT_API_KEY", "GEMINI_API_KEY"),
    )


@pytest.fixture
def mock_request():
    """Create a mock FastAPI Request object addressed to the mount prefix."""
    request = Mock(spec=Request)
    request.method = "GET"
    request.url.path = f"{TEST_MOUNT_PREFIX}/v1/models"
    request.url.query = ""
    request.scope = {"type": "http"}
    request.headers = {"host": "gateway.example.com", "user-agent": "test-agent"}
    return request
