class ProviderDirectoryError(Exception):
    """Base provider directory exception."""

    code = "PROVIDER_DIRECTORY_ERROR"
    status_code = 500
    public_message = "Provider directory error."


class RefreshCycleError(ProviderDirectoryError):
    """Raised when a refresh cycle fails; the cycle is aborted."""

    code = "DATA_UPDATE_FAILED"
    status_code = 422
    public_message = "Data update failed."


class FetchError(RefreshCycleError):
    """Raised when the open-data feed cannot be downloaded."""

    code = "FETCH_FAILED"


class FetchTemporaryError(FetchError):
    """Raised when the feed request can be retried."""


class ParseError(RefreshCycleError):
    """Raised when the feed payload is malformed."""

    code = "PARSE_FAILED"


class EmptyDatasetError(ParseError):
    """Raised when the feed parses to zero providers."""

    code = "EMPTY_DATASET"


class PersistenceError(RefreshCycleError):
    """Raised when a category or provider batch cannot be written."""

    code = "PERSISTENCE_FAILED"


class SnapshotWriteError(RefreshCycleError):
    """Raised when the snapshot archive cannot be written."""

    code = "SNAPSHOT_WRITE_FAILED"
    public_message = "The file cannot be downloaded."


class UpdateInProgressError(ProviderDirectoryError):
    """Raised while a refresh cycle is running; retry later."""

    code = "UPDATE_IN_PROGRESS"
    status_code = 422
    public_message = "Server is updating data."


class NotFoundError(ProviderDirectoryError):
    """Raised when a requested provider does not exist."""

    code = "NOT_FOUND"
    status_code = 404
    public_message = "The healthcare provider with this ID not found."


class SnapshotUnavailableError(NotFoundError):
    """Raised when no snapshot has been published yet."""

    code = "SNAPSHOT_UNAVAILABLE"
    public_message = "No provider snapshot has been published yet."
