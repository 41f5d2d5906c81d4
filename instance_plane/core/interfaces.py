"""Abstract interfaces for instance-plane backends.

Core reconciliation logic depends only on these protocols, never on a
particular HTTP library or database. Tests swap in the in-memory backends
under instance_plane/backends/mock/.
"""

from __future__ import annotations

import threading
from typing import Protocol


class Transport(Protocol):
    """Authenticated JSON requests against the Lambda Cloud API."""

    def send(
        self,
        method: str,
        path: str,
        body: dict | None = None,
        *,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
        expect_body: bool = True,
    ) -> tuple[int, dict | None]:
        """Issue one request and return (status_code, decoded_body).

        Raises APIError for any status other than 200.
        """
        ...


class RecordStore(Protocol):
    """Persistence for resource records between reconciliation calls."""

    def get_record(self, resource_key: str) -> dict | None:
        """Get a record by the caller's resource key."""
        ...

    def list_records(self) -> list[dict]:
        """List every stored record."""
        ...

    def put_record(self, record: dict) -> None:
        """Create or overwrite a record (keyed by record["resource_key"])."""
        ...

    def delete_record(self, resource_key: str) -> None:
        """Discard a record. Missing keys are ignored."""
        ...


class ResourceKind(Protocol):
    """Create/read/delete capability shared by every managed resource kind."""

    name: str

    def create(self, spec: dict, transport: Transport, **call_opts) -> dict:
        ...

    def read(self, resource_id: str, transport: Transport, **call_opts) -> dict:
        ...

    def delete(self, resource_id: str, transport: Transport, **call_opts) -> None:
        ...
