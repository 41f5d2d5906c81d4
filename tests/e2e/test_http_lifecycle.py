"""E2E tests driving the real HTTP transport against the mock Lambda Cloud API."""

from __future__ import annotations

import threading
import time

import pytest

from instance_plane.backends.http.transport import HTTPTransport
from instance_plane.backends.mock.store import InMemoryRecordStore
from instance_plane.core import catalog, instances, reconciler
from instance_plane.core.errors import (
    APIError,
    Cancelled,
    DecodeError,
    NotFound,
    TransportError,
)
from tests.e2e import mock_lambda_api

SPEC = {
    "region_name": "us-east-1",
    "instance_type_name": "gpu_1x_a10",
    "ssh_key_names": ["k1"],
}


def test_full_create_replace_destroy_cycle(lambda_api, provider_config):
    store = InMemoryRecordStore()

    with HTTPTransport(provider_config) as transport:
        created = reconciler.apply("trainer", SPEC, transport, store)
        assert created["instance_id"] == "i-123"
        assert created["status"] == "active"

        lambda_api.cloud.instances["i-123"]["ip"] = "1.2.3.4"
        observed = instances.read_instance("i-123", transport)
        assert observed["status"] == "active"
        assert observed["ip"] == "1.2.3.4"

        proposed = dict(SPEC, ssh_key_names=["k1", "k2"])
        assert reconciler.plan("trainer", proposed, store)["action"] == "replace"

        replaced = reconciler.apply("trainer", proposed, transport, store)
        assert replaced["instance_id"] not in ("", "i-123")

        with pytest.raises(NotFound):
            instances.read_instance("i-123", transport)

        assert reconciler.destroy("trainer", transport, store) is True

    assert lambda_api.cloud.terminated == ["i-123", replaced["instance_id"]]
    assert store.list_records() == []


def test_every_request_carries_auth_and_json_headers(lambda_api, provider_config):
    with HTTPTransport(provider_config) as transport:
        catalog.list_instance_types(transport)

    headers = lambda_api.server.seen_headers[0]
    assert headers["Authorization"] == f"Bearer {mock_lambda_api.API_KEY}"
    assert headers["Accept"] == "application/json"
    assert headers["Content-Type"] == "application/json"


def test_catalog_over_http_keeps_integer_prices(lambda_api, provider_config):
    with HTTPTransport(provider_config) as transport:
        result = catalog.list_instance_types(transport)

    assert len(result) == 2
    assert result["gpu_8x_h100_sxm5"]["price_cents_per_hour"] == 2392
    assert isinstance(result["gpu_1x_a10"]["price_cents_per_hour"], int)


def test_wrong_credential_is_api_error(lambda_api, provider_config):
    with HTTPTransport(dict(provider_config, api_key="wrong")) as transport:
        with pytest.raises(APIError) as excinfo:
            catalog.list_instance_types(transport)

    assert excinfo.value.status_code == 401


def test_accepted_status_is_not_success(lambda_api, provider_config):
    lambda_api.server.launch_status = 202

    with HTTPTransport(provider_config) as transport:
        with pytest.raises(APIError) as excinfo:
            instances.create_instance(SPEC, transport)

    assert excinfo.value.status_code == 202


def test_garbled_body_is_decode_error(lambda_api, provider_config):
    with HTTPTransport(provider_config) as transport:
        with pytest.raises(DecodeError):
            instances.read_instance("garbled", transport)


def test_timeout_aborts_with_cancelled(lambda_api, provider_config):
    with HTTPTransport(provider_config) as transport:
        started = time.monotonic()
        with pytest.raises(Cancelled):
            instances.read_instance("slow", transport, timeout=0.2)

    assert time.monotonic() - started < mock_lambda_api.SLOW_SECONDS


def test_cancel_event_stops_before_request(lambda_api, provider_config):
    cancel = threading.Event()
    cancel.set()

    with HTTPTransport(provider_config) as transport:
        with pytest.raises(Cancelled):
            catalog.list_instance_types(transport, cancel=cancel)

    assert lambda_api.server.seen_headers == []


def test_cancel_event_aborts_request_in_flight(lambda_api, provider_config):
    cancel = threading.Event()
    timer = threading.Timer(0.1, cancel.set)

    with HTTPTransport(provider_config) as transport:
        timer.start()
        started = time.monotonic()
        try:
            with pytest.raises(Cancelled) as excinfo:
                instances.read_instance("slow", transport, cancel=cancel)
            elapsed = time.monotonic() - started
        finally:
            timer.cancel()

    assert elapsed < mock_lambda_api.SLOW_SECONDS
    assert excinfo.value.operation == "read"
    assert excinfo.value.instance_id == "slow"


def test_unreachable_endpoint_is_transport_error():
    config = {"api_key": "k", "endpoint": "http://127.0.0.1:9", "timeout": 2}

    with HTTPTransport(config) as transport:
        with pytest.raises(TransportError):
            catalog.list_instance_types(transport)
