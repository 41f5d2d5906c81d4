"""Drive stored resource records toward their desired spec.

Store-agnostic: depends on the Transport and RecordStore protocols. Every
call is synchronous and makes at most one pass; nothing is retried.
"""

from __future__ import annotations

import logging
import time

from instance_plane.core import instances
from instance_plane.core.errors import (
    LambdaCloudError,
    NotFound,
    ReadAfterCreateError,
    ReplacementError,
)
from instance_plane.core.interfaces import RecordStore, Transport
from instance_plane.core.plan import NOOP, create_plan, diff_specs

logger = logging.getLogger(__name__)


def _persist(resource_key: str, record: dict, store: RecordStore) -> dict:
    record = dict(record)
    record["resource_key"] = resource_key
    record["updated_at"] = int(time.time())
    store.put_record(record)
    return record


def _create(resource_key: str, desired: dict, transport: Transport, store: RecordStore, **call_opts) -> dict:
    try:
        record = instances.create_instance(desired, transport, **call_opts)
    except ReadAfterCreateError as exc:
        # Keep tracking the launched instance; the next refresh fills in state.
        _persist(resource_key, instances.build_record(desired, exc.instance_id, None), store)
        raise
    return _persist(resource_key, record, store)


def plan(resource_key: str, desired: dict, store: RecordStore) -> dict:
    """Classify what apply() would do for ``desired``, without remote calls."""
    record = store.get_record(resource_key)
    if record is None or not record.get("instance_id"):
        return create_plan()
    return diff_specs(instances.desired_from_record(record), desired)


def refresh(resource_key: str, transport: Transport, store: RecordStore, **call_opts) -> dict | None:
    """Re-read a stored record's instance and persist the observed state.

    Returns None, and drops the record, when the instance is gone. Any other
    failure leaves the stored record untouched.
    """
    record = store.get_record(resource_key)
    if record is None or not record.get("instance_id"):
        return None

    instance_id = record["instance_id"]
    try:
        observed = instances.read_instance(instance_id, transport, **call_opts)
    except NotFound:
        logger.warning("Instance %s for %s no longer exists, dropping record", instance_id, resource_key)
        store.delete_record(resource_key)
        return None

    desired = instances.desired_from_record(record)
    return _persist(resource_key, instances.build_record(desired, instance_id, observed), store)


def apply(resource_key: str, desired: dict, transport: Transport, store: RecordStore, **call_opts) -> dict:
    """Make the remote instance for ``resource_key`` match ``desired``.

    Creates when there is no live instance, refreshes when nothing changed,
    and replaces (terminate, then launch) when anything changed.
    Returns the persisted record.
    """
    instances.validate_desired_spec(desired)

    current = refresh(resource_key, transport, store, **call_opts)
    if current is None:
        logger.info("No live instance for %s, creating", resource_key)
        return _create(resource_key, desired, transport, store, **call_opts)

    changes = diff_specs(instances.desired_from_record(current), desired)
    if changes["action"] == NOOP:
        return current

    old_id = current["instance_id"]
    logger.info(
        "Replacing instance %s for %s (changed: %s)",
        old_id, resource_key, ", ".join(changes["replace_fields"]),
    )
    return replace(resource_key, old_id, desired, transport, store, **call_opts)


def replace(
    resource_key: str,
    old_instance_id: str,
    desired: dict,
    transport: Transport,
    store: RecordStore,
    **call_opts,
) -> dict:
    """Terminate ``old_instance_id`` and launch a fresh instance for ``desired``.

    Not atomic. ReplacementError reports which half failed and which
    instance IDs are involved.
    """
    instances.validate_desired_spec(desired)

    try:
        instances.delete_instance(old_instance_id, transport, **call_opts)
    except LambdaCloudError as exc:
        raise ReplacementError("delete", exc, instance_id=old_instance_id) from exc

    store.delete_record(resource_key)

    try:
        return _create(resource_key, desired, transport, store, **call_opts)
    except ReadAfterCreateError as exc:
        raise ReplacementError(
            "create", exc, deleted_instance_id=old_instance_id, created_instance_id=exc.instance_id
        ) from exc
    except LambdaCloudError as exc:
        raise ReplacementError("create", exc, deleted_instance_id=old_instance_id) from exc


def destroy(resource_key: str, transport: Transport, store: RecordStore, **call_opts) -> bool:
    """Terminate the instance behind ``resource_key`` and drop its record.

    Returns False when there was nothing to destroy.
    """
    record = store.get_record(resource_key)
    if record is None:
        return False

    instance_id = record.get("instance_id")
    if instance_id:
        instances.delete_instance(instance_id, transport, **call_opts)
    store.delete_record(resource_key)
    return True


def import_instance(
    resource_key: str,
    instance_id: str,
    desired: dict,
    transport: Transport,
    store: RecordStore,
    **call_opts,
) -> dict:
    """Adopt an already running instance under ``resource_key``.

    ``desired`` is recorded as the spec the instance was launched with.
    """
    observed = instances.read_instance(instance_id, transport, **call_opts)
    logger.info("Imported instance %s as %s", instance_id, resource_key)
    return _persist(resource_key, instances.build_record(desired, instance_id, observed), store)

