"""In-memory record store for testing."""

from __future__ import annotations

import copy


class InMemoryRecordStore:
    def __init__(self):
        self._records: dict[str, dict] = {}

    def get_record(self, resource_key: str) -> dict | None:
        record = self._records.get(resource_key)
        return copy.deepcopy(record) if record is not None else None

    def list_records(self) -> list[dict]:
        return [copy.deepcopy(r) for r in self._records.values()]

    def put_record(self, record: dict) -> None:
        self._records[record["resource_key"]] = copy.deepcopy(record)

    def delete_record(self, resource_key: str) -> None:
        self._records.pop(resource_key, None)
