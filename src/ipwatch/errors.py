"""Base exceptions for ipwatch."""


class IpWatchError(Exception):
    """Base exception for all ipwatch errors."""

    pass


class StorageError(IpWatchError):
    """Document storage operation error."""

    pass


class DocumentIOError(StorageError):
    """Reading or writing the document file failed."""

    pass


class ParseError(StorageError):
    """Persisted document is not well-formed JSON."""

    pass


class InvalidDocumentError(StorageError):
    """Value cannot be represented as a JSON document."""

    pass


class InvalidPathError(IpWatchError):
    """Malformed key path, or path does not fit the document shape."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid path {path!r}: {reason}")


class ConfigValueError(IpWatchError):
    """Rejected value for a configuration property."""

    pass


class NetworkError(IpWatchError):
    """Network operation failed."""

    pass


class IpFetchError(NetworkError):
    """Public IP lookup failed."""

    pass


class NotifyError(NetworkError):
    """Sending a notification failed."""

    pass
