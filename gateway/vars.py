import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "api-key-gateway")
HOST = os.environ.get("HOSTNAME", "0.0.0.0")
PORT = int(os.environ.get("PORT", "8080"))

UPSTREAM_ORIGIN = os.environ.get(
    "GATEWAY_UPSTREAM_ORIGIN", "https://generativelanguage.googleapis.com"
).rstrip("/")
MOUNT_PREFIX = os.environ.get(
    "GATEWAY_MOUNT_PREFIX", "/.netlify/functions/gateway"
).rstrip("/")

CREDENTIAL_HEADER = os.environ.get(
    "GATEWAY_CREDENTIAL_HEADER", "x-goog-api-key"
).lower()
CREDENTIAL_QUERY_PARAM = os.environ.get("GATEWAY_CREDENTIAL_QUERY_PARAM", "key")
TOKEN_HEADER = os.environ.get("GATEWAY_TOKEN_HEADER", "x-gateway-token").lower()

# Empty values disable the gate / default credential
ACCESS_TOKEN = os.getenv("GATEWAY_ACCESS_TOKEN", "")
DEFAULT_API_KEY = os.getenv("GATEWAY_DEFAULT_API_KEY") or os.getenv(
    "GEMINI_API_KEY", ""
)
DEFAULT_API_KEY_ENV_NAMES = ["GATEWAY_DEFAULT_API_KEY", "GEMINI_API_KEY"]

PREFLIGHT_MAX_AGE = int(os.getenv("GATEWAY_PREFLIGHT_MAX_AGE", "86400"))
UPSTREAM_TIMEOUT = float(os.getenv("GATEWAY_UPSTREAM_TIMEOUT", "300"))
