import dataclasses

import pytest

from gateway.forwarding import config as config_module
from gateway.forwarding.config import GatewayConfig, load_config


def test_optional_values_normalized():
    config = GatewayConfig(
        upstream_origin="https://upstream.example.com/",
        mount_prefix="/.netlify/functions/gateway/",
        credential_header="X-Goog-Api-Key",
        token_header="X-Gateway-Token",
        default_api_key="  ",
        access_token="",
    )

    assert config.upstream_origin == "https://upstream.example.com"
    assert config.mount_prefix == "/.netlify/functions/gateway"
    assert config.credential_header == "x-goog-api-key"
    assert config.token_header == "x-gateway-token"
    assert config.default_api_key is None
    assert config.access_token is None
    assert not config.gate_enabled


def test_gate_enabled_with_secret():
    config = GatewayConfig(upstream_origin="https://u", access_token="s3")

    assert config.gate_enabled
    assert config.access_token == "s3"


def test_config_is_immutable():
    config = GatewayConfig(upstream_origin="https://u")

    with pytest.raises(dataclasses.FrozenInstanceError):
        config.access_token = "changed"


def test_load_config_reads_vars(monkeypatch):
    monkeypatch.setattr(config_module.gateway_vars, "UPSTREAM_ORIGIN", "https://up")
    monkeypatch.setattr(config_module.gateway_vars, "MOUNT_PREFIX", "/gw")
    monkeypatch.setattr(config_module.gateway_vars, "ACCESS_TOKEN", "gate")
    monkeypatch.setattr(config_module.gateway_vars, "DEFAULT_API_KEY", "")
    monkeypatch.setattr(config_module.gateway_vars, "PREFLIGHT_MAX_AGE", 60)

    config = load_config()

    assert config.upstream_origin == "https://up"
    assert config.mount_prefix == "/gw"
    assert config.access_token == "gate"
    assert config.default_api_key is None
    assert config.preflight_max_age == 60
    assert config.default_api_key_env_names == (
        "GATEWAY_DEFAULT_API_KEY",
        "GEMINI_API_KEY",
    )
