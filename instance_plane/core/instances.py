"""Instance lifecycle: launch, read back, terminate.

An instance is Absent until launched, Present once read back, and Absent
again after termination. Nothing is ever changed in place: update is refused
outright and the reconciler replaces instances instead.
"""

from __future__ import annotations

import logging

from instance_plane.core.errors import (
    APIError,
    DecodeError,
    EmptyLaunchResult,
    InvalidSpecError,
    LambdaCloudError,
    NotFound,
    ReadAfterCreateError,
    UnsupportedOperation,
)
from instance_plane.core.interfaces import Transport

logger = logging.getLogger(__name__)

LAUNCH_PATH = "/api/v1/instance-operations/launch"
TERMINATE_PATH = "/api/v1/instance-operations/terminate"
INSTANCE_PATH = "/api/v1/instances/{instance_id}"

MAX_NAME_LENGTH = 64

SPEC_FIELDS = ("region_name", "instance_type_name", "ssh_key_names", "file_system_names", "name")
OBSERVED_FIELDS = ("name", "ip", "private_ip", "hostname", "status")


def validate_desired_spec(spec: dict) -> None:
    """Check the preconditions for launching an instance."""
    for field in ("region_name", "instance_type_name"):
        if not spec.get(field):
            raise InvalidSpecError(f"{field} is required")

    ssh_key_names = spec.get("ssh_key_names")
    if not ssh_key_names:
        raise InvalidSpecError("ssh_key_names must contain at least one key")
    if not all(isinstance(key, str) and key for key in ssh_key_names):
        raise InvalidSpecError("ssh_key_names must be non-empty strings")

    name = spec.get("name")
    if name is not None and len(name) > MAX_NAME_LENGTH:
        raise InvalidSpecError(f"name must be at most {MAX_NAME_LENGTH} characters")


def build_launch_request(spec: dict) -> dict:
    """Build the launch body, leaving out optional fields that are unset."""
    body = {
        "region_name": spec["region_name"],
        "instance_type_name": spec["instance_type_name"],
        "ssh_key_names": list(spec["ssh_key_names"]),
    }
    if spec.get("name") is not None:
        body["name"] = spec["name"]
    if spec.get("file_system_names"):
        body["file_system_names"] = list(spec["file_system_names"])
    return body


def launch_instance(spec: dict, transport: Transport, **call_opts) -> str:
    """Launch one instance and return its ID (the first one the API lists)."""
    try:
        _, payload = transport.send("POST", LAUNCH_PATH, build_launch_request(spec), **call_opts)
    except LambdaCloudError as exc:
        raise exc.add_context("launch")

    try:
        instance_ids = payload["data"]["instance_ids"]
    except (KeyError, TypeError) as exc:
        raise DecodeError(f"Launch response is missing data.instance_ids: {exc}", operation="launch") from exc

    if not isinstance(instance_ids, list):
        raise DecodeError(
            f"Launch response data.instance_ids is not a list: {instance_ids!r}", operation="launch"
        )
    if not instance_ids:
        raise EmptyLaunchResult("no instance IDs returned from launch API", operation="launch")
    return instance_ids[0]


def read_instance(instance_id: str, transport: Transport, **call_opts) -> dict:
    """Fetch the current remote state of an instance.

    Raises NotFound when the API reports the instance missing.
    """
    path = INSTANCE_PATH.format(instance_id=instance_id)
    try:
        _, payload = transport.send("GET", path, **call_opts)
    except LambdaCloudError as exc:
        if isinstance(exc, APIError) and exc.status_code == 404:
            raise NotFound(instance_id) from exc
        raise exc.add_context("read", instance_id)

    try:
        data = payload["data"]
        observed = {"id": data.get("id", instance_id)}
        observed.update({field: data.get(field) for field in OBSERVED_FIELDS})
    except (KeyError, TypeError, AttributeError) as exc:
        raise DecodeError(
            f"Instance response is missing data: {exc}", operation="read", instance_id=instance_id
        ) from exc
    return observed


def create_instance(spec: dict, transport: Transport, **call_opts) -> dict:
    """Launch an instance for ``spec`` and return its full record.

    If the launch succeeds but the read-back fails, ReadAfterCreateError is
    raised with the new instance's ID so the caller can still track it.
    """
    validate_desired_spec(spec)

    logger.info("Launching %s in %s", spec["instance_type_name"], spec["region_name"])
    instance_id = launch_instance(spec, transport, **call_opts)
    logger.info("Launched instance %s", instance_id)

    try:
        observed = read_instance(instance_id, transport, **call_opts)
    except LambdaCloudError as exc:
        logger.exception("Instance %s launched but read-back failed", instance_id)
        raise ReadAfterCreateError(instance_id, exc) from exc

    return build_record(spec, instance_id, observed)


def delete_instance(instance_id: str, transport: Transport, **call_opts) -> None:
    """Terminate an instance. A 200 is taken as final; nothing is re-read."""
    logger.info("Terminating instance %s", instance_id)
    try:
        transport.send("POST", TERMINATE_PATH, {"instance_ids": [instance_id]}, expect_body=False, **call_opts)
    except LambdaCloudError as exc:
        raise exc.add_context("delete", instance_id)


def update_instance(*args, **kwargs) -> None:
    """Instances cannot be changed in place; every change is a replacement."""
    raise UnsupportedOperation(
        "Instance updates are not supported. All changes require resource replacement.",
        operation="update",
    )


def build_record(spec: dict, instance_id: str, observed: dict | None) -> dict:
    """Merge desired fields, observed state and the instance ID into a record."""
    record = {field: spec.get(field) for field in SPEC_FIELDS}
    record["ssh_key_names"] = list(spec.get("ssh_key_names") or [])
    if spec.get("file_system_names") is not None:
        record["file_system_names"] = list(spec["file_system_names"])
    record["instance_id"] = instance_id
    for field in ("ip", "private_ip", "hostname", "status"):
        record[field] = observed.get(field) if observed else None
    return record


def desired_from_record(record: dict) -> dict:
    """Extract the desired fields a record was created from."""
    return {field: record.get(field) for field in SPEC_FIELDS}


# ---- Resource kinds ----


class InstanceResource:
    name = "instance"

    def create(self, spec: dict, transport: Transport, **call_opts) -> dict:
        return create_instance(spec, transport, **call_opts)

    def read(self, resource_id: str, transport: Transport, **call_opts) -> dict:
        return read_instance(resource_id, transport, **call_opts)

    def delete(self, resource_id: str, transport: Transport, **call_opts) -> None:
        delete_instance(resource_id, transport, **call_opts)

    def update(self, *args, **kwargs) -> None:
        update_instance(*args, **kwargs)


class SSHKeyResource:
    """Placeholder for SSH key management; every operation is refused."""

    name = "ssh_key"

    def _unsupported(self, operation: str):
        return UnsupportedOperation(
            f"SSH key {operation} is not implemented", operation=operation
        )

    def create(self, spec: dict, transport: Transport, **call_opts) -> dict:
        raise self._unsupported("create")

    def read(self, resource_id: str, transport: Transport, **call_opts) -> dict:
        raise self._unsupported("read")

    def delete(self, resource_id: str, transport: Transport, **call_opts) -> None:
        raise self._unsupported("delete")

    def update(self, *args, **kwargs) -> None:
        raise self._unsupported("update")


RESOURCE_KINDS = {
    InstanceResource.name: InstanceResource,
    SSHKeyResource.name: SSHKeyResource,
}


def get_resource_kind(name: str):
    """Return an instance of the resource kind registered under ``name``."""
    try:
        return RESOURCE_KINDS[name]()
    except KeyError:
        raise ValueError(f"Unknown resource kind: {name}") from None
