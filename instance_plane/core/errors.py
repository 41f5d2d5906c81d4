"""Error taxonomy for Lambda Cloud operations.

Nothing in this package retries. Every error carries the operation that was
attempted and, when known, the instance it concerned, so callers can decide
whether to retry or intervene by hand.
"""

from __future__ import annotations


class LambdaCloudError(Exception):
    """Base class for failures talking to the Lambda Cloud API."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        instance_id: str | None = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.instance_id = instance_id

    def add_context(self, operation: str, instance_id: str | None = None) -> LambdaCloudError:
        """Fill in the operation and instance when a lower layer left them unset."""
        if self.operation is None:
            self.operation = operation
        if self.instance_id is None:
            self.instance_id = instance_id
        return self


class TransportError(LambdaCloudError):
    """Connection-level failure. Possibly transient."""


class DecodeError(LambdaCloudError):
    """The API answered 200 but the body was not the JSON we expected."""


class APIError(LambdaCloudError):
    """The API answered with a status other than 200."""

    def __init__(self, status_code: int, message: str | None = None, **kwargs):
        super().__init__(message or f"API returned status {status_code}", **kwargs)
        self.status_code = status_code


class NotFound(APIError):
    """The remote object no longer exists (deleted out-of-band or never did)."""

    def __init__(self, instance_id: str, **kwargs):
        kwargs.setdefault("operation", "read")
        super().__init__(404, f"Instance {instance_id} not found", instance_id=instance_id, **kwargs)


class EmptyLaunchResult(LambdaCloudError):
    """Launch succeeded but returned no instance IDs."""


class UnsupportedOperation(LambdaCloudError):
    """Rejected by policy; no remote call was made."""


class Cancelled(LambdaCloudError):
    """Aborted by the caller's timeout or cancel event."""


class ReadAfterCreateError(LambdaCloudError):
    """The instance was launched but reading it back failed.

    ``instance_id`` always holds the launched instance so it is not orphaned.
    """

    def __init__(self, instance_id: str, cause: LambdaCloudError):
        super().__init__(
            f"Instance {instance_id} launched but could not be read back: {cause}",
            operation="create",
            instance_id=instance_id,
        )
        self.cause = cause


class ReplacementError(LambdaCloudError):
    """A replacement stopped partway through.

    ``stage`` is the half that failed ("delete" or "create").
    ``deleted_instance_id`` is set once the old instance is gone and
    ``created_instance_id`` once a new one has been launched.
    ``instance_id`` names the instance involved at whichever stage failed.
    """

    def __init__(
        self,
        stage: str,
        cause: LambdaCloudError,
        *,
        deleted_instance_id: str | None = None,
        created_instance_id: str | None = None,
        instance_id: str | None = None,
    ):
        if stage == "delete":
            detail = f"old instance {instance_id} was not deleted"
        elif created_instance_id:
            detail = (
                f"old instance {deleted_instance_id} deleted, "
                f"new instance {created_instance_id} launched but not read back"
            )
        else:
            detail = f"old instance {deleted_instance_id} deleted, no new instance launched"
        super().__init__(
            f"Replacement failed during {stage} ({detail}): {cause}",
            operation="replace",
            instance_id=created_instance_id or deleted_instance_id or instance_id,
        )
        self.stage = stage
        self.cause = cause
        self.deleted_instance_id = deleted_instance_id
        self.created_instance_id = created_instance_id


class InvalidSpecError(ValueError):
    """A desired instance spec is missing required fields or is malformed."""
