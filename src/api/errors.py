from typing import Optional


class ApiError(Exception):
    """
    Raised by the remote client for any failed call.
    `message` is safe to show to a user.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NetworkFailure(ApiError):
    """Request never got an answer: connection error or timeout."""


class NotFound(ApiError):
    """The service answered 404."""

    def __init__(self, message: str = "Not found."):
        super().__init__(message, 404)


class AuthRequired(ApiError):
    """A cart mutation was attempted without a logged-in user."""

    def __init__(self, message: str = "Please log in to add items to your cart."):
        super().__init__(message, 401)
