"""E2E test fixtures — mock Lambda Cloud API plus optional LocalStack-backed DynamoDB."""

from __future__ import annotations

import os
import sys
import uuid

import boto3
import pytest
from botocore.exceptions import BotoCoreError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from tests.e2e.mock_lambda_api import API_KEY, MockLambdaServer


@pytest.fixture(scope="session")
def lambda_api_server():
    """Start a mock Lambda Cloud API on a random port."""
    server = MockLambdaServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def lambda_api(lambda_api_server):
    """The shared server with fresh state for each test."""
    lambda_api_server.reset(ids=["i-123", "i-456", "i-789"])
    return lambda_api_server


@pytest.fixture
def provider_config(lambda_api):
    return {"api_key": API_KEY, "endpoint": lambda_api.url, "timeout": 5}


@pytest.fixture(scope="session")
def localstack_env():
    """Start LocalStack and provision the DynamoDB records table."""
    try:
        from testcontainers.core.exceptions import ContainerStartException
        from testcontainers.localstack import LocalStackContainer
    except ModuleNotFoundError as exc:
        pytest.skip(f"LocalStack tests require testcontainers dependency: {exc}")

    container = LocalStackContainer(image="localstack/localstack:3.0").with_services("dynamodb")

    try:
        container.start()
    except (ContainerStartException, BotoCoreError, OSError) as exc:
        pytest.skip(f"LocalStack unavailable in this environment: {exc}")

    endpoint_url = container.get_url()
    region = "us-east-1"
    access_key = "test"
    secret_key = "test"

    os.environ.setdefault("AWS_ACCESS_KEY_ID", access_key)
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", secret_key)
    os.environ.setdefault("AWS_DEFAULT_REGION", region)

    records_table = f"instance-plane-records-e2e-{uuid.uuid4().hex[:8]}"

    dynamodb = boto3.client(
        "dynamodb",
        endpoint_url=endpoint_url,
        region_name=region,
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
    )

    dynamodb.create_table(
        TableName=records_table,
        AttributeDefinitions=[{"AttributeName": "resource_key", "AttributeType": "S"}],
        KeySchema=[{"AttributeName": "resource_key", "KeyType": "HASH"}],
        BillingMode="PAY_PER_REQUEST",
    )
    dynamodb.get_waiter("table_exists").wait(TableName=records_table)

    yield {
        "endpoint_url": endpoint_url,
        "region": region,
        "records_table": records_table,
    }

    container.stop()
