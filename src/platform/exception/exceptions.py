from typing import Any


class CustomBaseError(Exception):
    """
    Expected, typed failure carrying its HTTP status

    @Logger.io logs these at ERROR without a traceback; the exception handler
    renders ``message``, the class name and ``context`` as the response body.
    """

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def code(self) -> str:
        return type(self).__name__

    @property
    def context(self) -> dict[str, Any]:
        """Structured fields merged into the error response"""
        return {}


class DomainError(CustomBaseError):
    """Request rejected by a business rule (400 unless a subclass says otherwise)"""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    """The request is valid but loses against the current state of the resource"""

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class ServiceUnavailableError(CustomBaseError):
    """A shared dependency (lock service, database) could not serve the request in time"""

    def __init__(self, message: str) -> None:
        super().__init__(message, 503)
