# errors.py
from typing import Any, Dict


class TaskError(Exception):
    """Base class for every failure the handlers turn into a JSON error body."""

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, error_code: str | None = None, **extra: Any):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.extra = extra

    def to_dict(self) -> Dict[str, Any]:
        body = {"message": self.message, "error": self.error_code}
        body.update(self.extra)
        return body


class ClientError(TaskError):
    status_code = 400
    error_code = "BAD_REQUEST"


class NotFound(TaskError):
    status_code = 404
    error_code = "TASK_NOT_FOUND"


class CorruptStore(TaskError):
    """The tasks file exists but is not a JSON array of task objects."""

    error_code = "INVALID_JSON"


class StorageUnavailable(TaskError):
    """The tasks file could not be read or written."""

    error_code = "FILE_ACCESS_ERROR"
