"""Failure categories shared by the public and console APIs.

Each category carries the HTTP status and a short machine code; the message
is what the caller is shown.
"""


class PortalError(Exception):
    status = 500
    code = "error"
    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class Unauthorized(PortalError):
    status = 401
    code = "unauthorized"
    default_message = "Unauthorized"


class NotFound(PortalError):
    status = 404
    code = "not_found"
    default_message = "Not found in the records."


class ValidationFailure(PortalError):
    status = 400
    code = "validation_failure"
    default_message = "The submission is incomplete or malformed."

    def __init__(self, message: str | None = None, fields: dict | None = None):
        super().__init__(message)
        self.fields = fields or {}


class DuplicateIdentifier(PortalError):
    status = 409
    code = "duplicate_identifier"
    default_message = "A record with this identifier already exists. Please try again."


class UpstreamFailure(PortalError):
    status = 502
    code = "upstream_failure"
    default_message = "A sacred connection error occurred. Please try again."
