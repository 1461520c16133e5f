from __future__ import annotations


class ServiceError(Exception):
    """Base class that carries a default HTTP status code for API mapping."""

    default_status = 400

    def __init__(self, message: str = "", *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code if status_code is not None else self.default_status


class ScanAlreadyRunningError(ServiceError):
    default_status = 409


class PathNotAllowedError(ServiceError):
    default_status = 403


class ScanPathNotFoundError(ServiceError):
    default_status = 404


class InvalidConfigError(ServiceError):
    default_status = 422


class DirectoryBrowseError(ServiceError):
    default_status = 400
