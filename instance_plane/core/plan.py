"""Classify a desired-spec change as no-op or replacement.

No field of an instance can be changed in place, so ``update_fields`` is
always empty and any difference means destroy-then-create.
"""

from __future__ import annotations

NOOP = "noop"
REPLACE = "replace"
CREATE = "create"

# Fields compared between the prior and proposed spec. Every one of them
# forces replacement, including the display name.
REPLACE_FIELDS = (
    "region_name",
    "instance_type_name",
    "ssh_key_names",
    "file_system_names",
    "name",
)


def _normalize(spec: dict) -> dict:
    return {
        "region_name": spec.get("region_name"),
        "instance_type_name": spec.get("instance_type_name"),
        "ssh_key_names": list(spec.get("ssh_key_names") or []),
        "file_system_names": list(spec.get("file_system_names") or []),
        "name": spec.get("name"),
    }


def diff_specs(prior: dict, proposed: dict) -> dict:
    """Compare two desired specs.

    Lists are compared exactly, order included. A missing file system list
    is the same as an empty one.
    """
    before = _normalize(prior)
    after = _normalize(proposed)

    changed = sorted(field for field in REPLACE_FIELDS if before[field] != after[field])
    return {
        "action": REPLACE if changed else NOOP,
        "replace_fields": changed,
        "update_fields": [],
    }


def requires_replace(prior: dict, proposed: dict) -> bool:
    return diff_specs(prior, proposed)["action"] == REPLACE


def create_plan() -> dict:
    """Plan for a record with no remote instance yet."""
    return {"action": CREATE, "replace_fields": [], "update_fields": []}
