"""Custom exceptions for the keto tracker."""


class KetoTrackerError(Exception):
    """Base exception for all keto tracker errors."""

    pass


class ConfigurationError(KetoTrackerError):
    """Raised when there is a configuration error."""

    pass


class AuthenticationError(KetoTrackerError):
    """Raised when authentication with the remote store fails."""

    pass


class StorageError(KetoTrackerError):
    """Base exception for local and remote storage failures."""

    pass


class LocalStoreError(StorageError):
    """Raised when the local key/value store cannot be read or written."""

    pass


class QuotaExceededError(LocalStoreError):
    """Raised when a local write is rejected because storage is full."""

    pass


class TransientRemoteError(StorageError):
    """Raised when a remote store call fails (network, service, timeout)."""

    pass


class NotFoundError(StorageError):
    """Raised when a remote document does not exist."""

    pass


class PersistenceError(StorageError):
    """Raised when a write failed on every available storage target."""

    pass


class MigrationPartialFailure(KetoTrackerError):
    """Raised when one or more documents failed to migrate to the cloud."""

    def __init__(self, failed_documents: list[str]) -> None:
        self.failed_documents = failed_documents
        super().__init__(f"Failed to migrate {len(failed_documents)} document(s): {failed_documents}")
