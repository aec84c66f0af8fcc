"""
Error taxonomy for the URL shortener.

Store errors are raised synchronously to the caller and never retried
internally. The HTTP layer maps them to status codes:

- InvalidInput, InvalidAlias -> 400
- AliasInUse                 -> 409
- NotFound                   -> 404
- anything else              -> 500

ProbeFailure lives only inside the URL processor; its message ends up in
ProbeResult.error and it never reaches the shortening flow.
"""


class StoreError(Exception):
    """Base class for every error raised by a URL store"""

    message = "URL store error"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)


class InvalidInput(StoreError):
    message = "URL is required"


class InvalidAlias(StoreError):
    message = "Invalid alias: must be 3-20 alphanumeric characters"


class AliasInUse(StoreError):
    message = "Custom alias is already in use"


class NotFound(StoreError):
    message = "Code not found"


class BackendUnavailable(StoreError):
    """Relational backend could not connect or create its schema"""

    message = "URL store backend unavailable"


class ProbeFailure(Exception):
    """A background probe could not complete (parse, network or timeout)"""
