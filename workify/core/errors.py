from __future__ import annotations


class WorkifyError(RuntimeError):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(WorkifyError):
    status_code = 404


class ConflictError(WorkifyError):
    status_code = 409


class UpstreamAIError(WorkifyError):
    """An embedding or completion call failed and no fallback applies."""

    status_code = 502
