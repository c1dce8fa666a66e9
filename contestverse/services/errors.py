"""
Service Errors
Failures raised by services and translated to HTTP responses by the app
"""


class ServiceError(Exception):
    """Base error carrying the HTTP status it maps to"""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(ServiceError):
    """No identity proof was supplied"""
    status_code = 401
    default_message = "unauthorized"


class InvalidTokenError(ServiceError):
    """The identity provider rejected the supplied token"""
    status_code = 403
    default_message = "invalid token"


class ForbiddenError(ServiceError):
    """Valid identity without the required capability or ownership"""
    status_code = 403
    default_message = "forbidden access"


class NotFoundError(ServiceError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ServiceError):
    """Request conflicts with the current state of an entity"""
    status_code = 400
    default_message = "Request conflicts with current state"


class PaymentNotCompletedError(ConflictError):
    default_message = "Payment not paid"


class UpstreamError(ServiceError):
    """Payment provider or store call failed"""
    status_code = 500
    default_message = "Internal Server Error"
