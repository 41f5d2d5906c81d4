#!/usr/bin/env python3
"""Apply or destroy a Lambda Cloud instance described by a JSON spec file.

The spec file holds region_name, instance_type_name, ssh_key_names and
optionally name and file_system_names. Records are kept in DynamoDB.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from decimal import Decimal
from pathlib import Path

# Ensure repository root is importable when running from a checkout.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


def _json_default(value):
    """Serialize DynamoDB numbers, which come back as Decimal."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    raise TypeError(f"Object of type {value.__class__.__name__} is not JSON serializable")


def _env_name_for_option(option: str) -> str:
    return option.lstrip("-").replace("-", "_").upper()


def _resolve_opt(action: argparse.Action, cli_value: str | None, required: bool = True) -> str | None:
    if cli_value:
        return cli_value
    long_opts = [opt for opt in action.option_strings if opt.startswith("--")]
    canonical_opt = long_opts[0] if long_opts else action.option_strings[0]
    env_name = _env_name_for_option(canonical_opt)
    env_value = os.environ.get(env_name)
    if env_value:
        return env_value
    if required:
        raise RuntimeError(f"Missing {canonical_opt}. Provide {canonical_opt} or set {env_name}.")
    return None


def main() -> None:
    parser = argparse.ArgumentParser(description="Reconcile a Lambda Cloud instance")
    parser.add_argument("resource_key", help="Stable name for this instance record")
    parser.add_argument("--spec", type=Path, help="Desired spec JSON file (required unless --destroy)")
    parser.add_argument("--destroy", action="store_true", help="Terminate the instance and drop its record")
    parser.add_argument("--plan", action="store_true", help="Show what apply would do and exit")
    parser.add_argument("--api-key", help="API key (or use LAMBDA_CLOUD_API_KEY)")
    parser.add_argument("--endpoint", help="API endpoint (or use LAMBDA_CLOUD_ENDPOINT)")
    table_action = parser.add_argument(
        "--records-table", help="Records table name (or use RECORDS_TABLE)"
    )
    region_action = parser.add_argument(
        "--aws-region",
        "--region",
        dest="aws_region",
        help="AWS region (or use AWS_REGION)",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    records_table = _resolve_opt(table_action, args.records_table)
    region = _resolve_opt(region_action, args.aws_region, required=False)

    from instance_plane.backends.aws.store import DynamoDBRecordStore
    from instance_plane.backends.http.transport import HTTPTransport
    from instance_plane.core import reconciler
    from instance_plane.shared.config import load_provider_config

    store = DynamoDBRecordStore(records_table=records_table, region_name=region)

    if args.destroy:
        config = load_provider_config(api_key=args.api_key, endpoint=args.endpoint)
        with HTTPTransport(config) as transport:
            destroyed = reconciler.destroy(args.resource_key, transport, store)
        print(json.dumps({"resource_key": args.resource_key, "destroyed": destroyed}))
        return

    if args.spec is None:
        parser.error("--spec is required unless --destroy is given")
    desired = json.loads(args.spec.read_text())

    if args.plan:
        print(json.dumps(reconciler.plan(args.resource_key, desired, store), indent=2))
        return

    config = load_provider_config(api_key=args.api_key, endpoint=args.endpoint)
    with HTTPTransport(config) as transport:
        record = reconciler.apply(args.resource_key, desired, transport, store)
    print(json.dumps(record, indent=2, default=_json_default))


if __name__ == "__main__":
    main()
