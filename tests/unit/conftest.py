"""Shared fixtures for unit tests — uses mock backends, no network needed."""

import pytest
import sys
import os

# Add project root to path so instance_plane is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from instance_plane.backends.mock.cloud import FakeLambdaCloud
from instance_plane.backends.mock.store import InMemoryRecordStore


SAMPLE_SPEC = {
    "region_name": "us-east-1",
    "instance_type_name": "gpu_1x_a10",
    "ssh_key_names": ["k1"],
}


@pytest.fixture
def spec():
    return dict(SAMPLE_SPEC, ssh_key_names=list(SAMPLE_SPEC["ssh_key_names"]))


@pytest.fixture
def cloud():
    return FakeLambdaCloud(ids=["i-123", "i-456", "i-789"])


@pytest.fixture
def store():
    return InMemoryRecordStore()
