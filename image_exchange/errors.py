"""Error taxonomy shared by services and routes.

Every error carries the HTTP status it maps to, so the exception handler in
``main`` can render it without knowing the concrete type.
"""


class FileExchangeError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(FileExchangeError):
    status_code = 400
    default_message = "bad request"


class InvalidFilename(BadRequest):
    default_message = "invalid filename"


class Unauthorized(FileExchangeError):
    status_code = 401
    default_message = "unauthorized"


class NotFound(FileExchangeError):
    status_code = 404
    default_message = "file not found"


class StorageUnavailable(FileExchangeError):
    status_code = 500
    default_message = "storage unavailable"


class InternalError(FileExchangeError):
    status_code = 500
    default_message = "internal error"


class FileCollision(StorageUnavailable):
    default_message = "file already exists"
