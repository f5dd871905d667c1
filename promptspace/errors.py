"""Error taxonomy shared by the services and the HTTP layer.

Every error carries the HTTP status it maps to and a public message that is
safe to hand back to a client. Details (paths, git output) belong in the
logs, never in ``public_message``.
"""


class PromptSpaceError(Exception):
    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message=None, public_message=None):
        super().__init__(message or self.public_message)
        if public_message is not None:
            self.public_message = public_message


class BadRequest(PromptSpaceError):
    """Malformed client input. The message is returned as-is."""

    status_code = 400
    public_message = "Bad request"

    def __init__(self, message):
        super().__init__(message, public_message=message)


class SyncError(PromptSpaceError):
    """Clone, fetch, reset, commit or push against the remote failed."""

    public_message = "Failed to synchronize prompt repository"


class ParseError(PromptSpaceError):
    """A metadata sidecar could not be read as a JSON object."""

    public_message = "Malformed prompt metadata"

    def __init__(self, message, path=None):
        super().__init__(message)
        self.path = path


class InternalError(PromptSpaceError):
    """Filesystem or unexpected failure while handling an upload."""

    public_message = "Failed to upload or update prompt"


__all__ = ["PromptSpaceError", "BadRequest", "SyncError", "ParseError", "InternalError"]
