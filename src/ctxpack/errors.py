"""Exception hierarchy for ctxpack."""


class CtxPackError(Exception):
    """Base class for all ctxpack errors."""


class ValidationError(CtxPackError):
    """Invalid input: empty query or content, out-of-range values."""


class ConfigurationError(CtxPackError):
    """Unknown platform/driver or malformed settings."""


class NetworkError(CtxPackError):
    """Request to an external service failed."""


class RequestTimeoutError(NetworkError):
    """Request to an external service did not finish in time."""


class StoreError(CtxPackError):
    """Write or query failure against the vector backend."""


class IndexingError(CtxPackError):
    """An index operation failed; nothing from the call should be relied upon."""


class ExclusionError(CtxPackError):
    """Path is blocked by the project exclude configuration."""

    def __init__(self, path: str):
        super().__init__(f"Path '{path}' is excluded by project configuration")
        self.path = path


class NotFoundError(CtxPackError):
    """Missing file, directory, collection or other keyed entry."""


class FileSystemError(CtxPackError):
    """Read/write failure, permission problem or path outside the project root."""
