"""Service-layer exceptions, mapped to HTTP responses in main.py."""


class ServiceError(Exception):
    """Base class for errors raised by services."""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(ServiceError):
    """Input was well-formed but violates a business rule."""
    status_code = 400


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    """Integrity guard or invalid state transition."""
    status_code = 409


class ExternalServiceError(ServiceError):
    """A backend function, storage or search call failed."""
    status_code = 502
