"""In-memory Lambda Cloud API for testing.

Implements the Transport protocol directly, so core logic can run without a
network. Non-200 answers raise APIError exactly as HTTPTransport does.
"""

from __future__ import annotations

import time
import uuid

from instance_plane.core.errors import APIError, Cancelled

SAMPLE_INSTANCE_TYPES = {
    "gpu_1x_a10": {
        "instance_type": {
            "name": "gpu_1x_a10",
            "description": "1x A10 (24 GB PCIe)",
            "gpu_description": "A10 (24 GB PCIe)",
            "price_cents_per_hour": 75,
            "specs": {"gpus": 1, "memory_gib": 200, "storage_gib": 1400, "vcpus": 30},
        }
    },
    "gpu_8x_h100_sxm5": {
        "instance_type": {
            "name": "gpu_8x_h100_sxm5",
            "description": "8x H100 (80 GB SXM5)",
            "gpu_description": "H100 (80 GB SXM5)",
            "price_cents_per_hour": 2392,
            "specs": {"gpus": 8, "memory_gib": 1800, "storage_gib": 22000, "vcpus": 208},
        }
    },
}


class FakeLambdaCloud:
    """Simulates the instance-types, launch, read and terminate endpoints.

    ``ids`` pre-seeds the instance IDs handed out by launch, in order; once
    exhausted, random ``i-<hex>`` IDs are used. ``fail_next()`` queues a
    status code for the next request matching a method and path prefix.
    ``latency`` holds every request in flight for that many seconds; a
    cancel event set meanwhile aborts it before the request is served.
    """

    def __init__(
        self,
        ids: list[str] | None = None,
        instance_types: dict | None = None,
        initial_status: str = "active",
        latency: float = 0.0,
    ):
        self.instances: dict[str, dict] = {}
        self.terminated: list[str] = []
        self.calls: list[dict] = []
        self.instance_types = SAMPLE_INSTANCE_TYPES if instance_types is None else instance_types
        self.initial_status = initial_status
        self.latency = latency
        self.launch_returns_empty = False
        self._ids = list(ids or [])
        self._failures: list[tuple[str, str, int]] = []

    def fail_next(self, method: str, path_prefix: str, status: int) -> None:
        self._failures.append((method, path_prefix, status))

    def _pop_failure(self, method: str, path: str) -> int | None:
        for i, (fail_method, prefix, status) in enumerate(self._failures):
            if fail_method == method and path.startswith(prefix):
                del self._failures[i]
                return status
        return None

    def _next_id(self) -> str:
        if self._ids:
            return self._ids.pop(0)
        return f"i-{uuid.uuid4().hex[:10]}"

    def send(
        self,
        method: str,
        path: str,
        body: dict | None = None,
        *,
        timeout: float | None = None,
        cancel=None,
        expect_body: bool = True,
    ) -> tuple[int, dict | None]:
        if cancel is not None and cancel.is_set():
            raise Cancelled(f"{method} {path} cancelled before it was sent")

        self.calls.append({"method": method, "path": path, "body": body})

        if self.latency:
            if cancel is not None:
                if cancel.wait(self.latency):
                    raise Cancelled(f"{method} {path} cancelled while in flight")
            else:
                time.sleep(self.latency)

        status = self._pop_failure(method, path)
        if status is not None:
            raise APIError(status, f"{method} {path} returned status {status}")

        status, payload = self._route(method, path, body or {})
        if status != 200:
            raise APIError(status, f"{method} {path} returned status {status}")
        return status, payload if expect_body else None

    def _route(self, method: str, path: str, body: dict) -> tuple[int, dict]:
        if method == "GET" and path == "/api/v1/instance-types":
            return 200, {"data": self.instance_types}

        if method == "POST" and path == "/api/v1/instance-operations/launch":
            return self._launch(body)

        if method == "POST" and path == "/api/v1/instance-operations/terminate":
            return self._terminate(body)

        if method == "GET" and path.startswith("/api/v1/instances/"):
            instance_id = path.rsplit("/", 1)[-1]
            instance = self.instances.get(instance_id)
            if instance is None:
                return 404, {"error": {"code": "global/object-does-not-exist"}}
            return 200, {"data": dict(instance)}

        return 404, {"error": {"code": "global/not-found"}}

    def _launch(self, body: dict) -> tuple[int, dict]:
        required = ("region_name", "instance_type_name", "ssh_key_names")
        if any(not body.get(field) for field in required):
            return 400, {"error": {"code": "global/invalid-parameters"}}
        if body["instance_type_name"] not in self.instance_types:
            return 400, {"error": {"code": "instance-operations/launch/invalid-instance-type"}}
        if self.launch_returns_empty:
            return 200, {"data": {"instance_ids": []}}

        instance_id = self._next_id()
        self.instances[instance_id] = {
            "id": instance_id,
            "name": body.get("name"),
            "ip": f"10.0.{len(self.instances)}.4",
            "private_ip": f"172.16.{len(self.instances)}.4",
            "hostname": f"{instance_id}.cloud.lambda.ai",
            "status": self.initial_status,
            "region": {"name": body["region_name"]},
            "instance_type": {"name": body["instance_type_name"]},
            "ssh_key_names": list(body["ssh_key_names"]),
            "file_system_names": list(body.get("file_system_names", [])),
        }
        return 200, {"data": {"instance_ids": [instance_id]}}

    def _terminate(self, body: dict) -> tuple[int, dict]:
        instance_ids = body.get("instance_ids") or []
        if any(i not in self.instances for i in instance_ids):
            return 404, {"error": {"code": "global/object-does-not-exist"}}
        terminated = []
        for instance_id in instance_ids:
            instance = self.instances.pop(instance_id)
            instance["status"] = "terminated"
            terminated.append(instance)
            self.terminated.append(instance_id)
        return 200, {"data": {"terminated_instances": terminated}}
