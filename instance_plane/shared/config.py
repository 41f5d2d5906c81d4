"""Configuration helpers — explicit values first, then environment variables."""

from __future__ import annotations

import os

DEFAULT_ENDPOINT = "https://cloud.lambda.ai"
DEFAULT_TIMEOUT = 60.0

API_KEY_ENV = "LAMBDA_CLOUD_API_KEY"
ENDPOINT_ENV = "LAMBDA_CLOUD_ENDPOINT"
RECORDS_TABLE_ENV = "RECORDS_TABLE"


def get_env(name: str, default: str | None = None) -> str:
    """Get an environment variable, raising if missing and no default."""
    value = os.environ.get(name, default)
    if value is None:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


RECORDS_TABLE = lambda: get_env(RECORDS_TABLE_ENV)


def load_provider_config(
    api_key: str | None = None,
    endpoint: str | None = None,
    timeout: float | None = None,
) -> dict:
    """Resolve the API credential and endpoint for one client.

    The result is handed to each transport explicitly; nothing here is cached.
    """
    if api_key is None:
        api_key = os.environ.get(API_KEY_ENV, "")
    if not api_key:
        raise RuntimeError(
            "api_key cannot be an empty string. "
            f"Pass api_key explicitly or set the {API_KEY_ENV} environment variable."
        )

    if endpoint is None:
        endpoint = os.environ.get(ENDPOINT_ENV) or DEFAULT_ENDPOINT

    return {
        "api_key": api_key,
        "endpoint": endpoint.rstrip("/"),
        "timeout": DEFAULT_TIMEOUT if timeout is None else timeout,
    }
