"""Instance type catalog."""

from __future__ import annotations

import logging

from instance_plane.core.errors import DecodeError, LambdaCloudError
from instance_plane.core.interfaces import Transport

logger = logging.getLogger(__name__)

INSTANCE_TYPES_PATH = "/api/v1/instance-types"

SPEC_KEYS = ("gpus", "memory_gib", "storage_gib", "vcpus")


def _flatten(item: dict) -> dict:
    details = item["instance_type"]
    specs = details.get("specs") or {}
    entry = {
        "name": details.get("name"),
        "description": details.get("description"),
        "gpu_description": details.get("gpu_description"),
        "price_cents_per_hour": details.get("price_cents_per_hour"),
    }
    entry.update({spec_key: specs.get(spec_key) for spec_key in SPEC_KEYS})
    return entry


def list_instance_types(transport: Transport, **call_opts) -> dict[str, dict]:
    """Fetch the instance type catalog, keyed exactly as the API keys it.

    Always a fresh request; prices stay in integer cents.
    """
    try:
        _, payload = transport.send("GET", INSTANCE_TYPES_PATH, **call_opts)
    except LambdaCloudError as exc:
        raise exc.add_context("list_instance_types")

    try:
        data = payload["data"]
        catalog = {key: _flatten(item) for key, item in data.items()}
    except (KeyError, TypeError, AttributeError) as exc:
        raise DecodeError(
            f"Unable to parse instance types response: {exc}", operation="list_instance_types"
        ) from exc

    logger.debug("Read %d instance types", len(catalog))
    return catalog
