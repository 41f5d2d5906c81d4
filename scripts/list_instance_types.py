#!/usr/bin/env python3
"""Print the Lambda Cloud instance type catalog as JSON."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure repository root is importable when running from a checkout.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


def main() -> None:
    parser = argparse.ArgumentParser(description="List Lambda Cloud instance types")
    parser.add_argument("--api-key", help="API key (or use LAMBDA_CLOUD_API_KEY)")
    parser.add_argument("--endpoint", help="API endpoint (or use LAMBDA_CLOUD_ENDPOINT)")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds")
    parser.add_argument(
        "--sort-by-price", action="store_true", help="Order entries from cheapest to most expensive"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log request traces")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    from instance_plane.backends.http.transport import HTTPTransport
    from instance_plane.core.catalog import list_instance_types
    from instance_plane.shared.config import load_provider_config

    config = load_provider_config(api_key=args.api_key, endpoint=args.endpoint, timeout=args.timeout)
    with HTTPTransport(config) as transport:
        catalog = list_instance_types(transport)

    if args.sort_by_price:
        catalog = dict(sorted(catalog.items(), key=lambda item: item[1]["price_cents_per_hour"] or 0))
    print(json.dumps(catalog, indent=2))


if __name__ == "__main__":
    main()
