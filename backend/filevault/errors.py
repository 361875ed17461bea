"""Error taxonomy for the file store.

Every error carries the HTTP status the API layer reports it with, so the
exception handlers in ``filevault.main`` stay a single mapping.
"""


class FileStoreError(Exception):
    """Base class for all caller-visible file store failures."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FileStoreError):
    """Rejected input; raised before anything is written."""
    status_code = 400


class StorageError(FileStoreError):
    """I/O failure on the blob store. Safe for the client to retry."""
    status_code = 503


class EmptyFileError(ValidationError, StorageError):
    """Upload carried no bytes."""

    def __init__(self, message: str = "Empty file"):
        super().__init__(message)


class NotFoundError(FileStoreError):
    """No record with the requested id."""
    status_code = 404


class StoredFileMissingError(NotFoundError):
    """A record exists but its blob is gone from disk."""

    def __init__(self, message: str = "Stored file missing on disk"):
        super().__init__(message)
