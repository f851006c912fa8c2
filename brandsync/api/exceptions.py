"""
Error taxonomy for the record sync layer.

Every error carries a human-readable message; the API boundary turns them
into ``{"error": message}`` responses.
"""


class SyncError(Exception):
    """Base class for all record sync failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(SyncError):
    """Backing store credentials or settings are missing."""


# Name used by the API error taxonomy
MissingCredentials = ConfigurationError


class SheetNotFound(SyncError):
    """The requested sheet title does not exist in the spreadsheet."""

    def __init__(self, title: str):
        super().__init__(f'Sheet "{title}" not found')
        self.title = title


class UpstreamFailure(SyncError):
    """Any other failure talking to the spreadsheet service."""


class InvalidRequest(SyncError):
    """The caller sent a write the API cannot dispatch."""
