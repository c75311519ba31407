"""Exceptions raised by the SoulLink sync package."""


class SoulLinkSyncError(Exception):
    """Base class for package errors."""


class RemoteStoreError(SoulLinkSyncError):
    """A remote document store read or write failed."""

    def __init__(self, message: str, path: str = "", retryable: bool = True):
        super().__init__(message)
        self.path = path
        self.retryable = retryable


class DocumentNotFoundError(SoulLinkSyncError):
    """No document is stored at the requested path."""

    def __init__(self, path: str):
        super().__init__(f"No document at {path}")
        self.path = path
