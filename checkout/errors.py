# checkout/errors.py


class PosError(Exception):
    """Base class for terminal errors."""


class GatewayError(PosError):
    """Transport, protocol or server failure talking to the backend."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status


class NotFound(PosError):
    """The catalog has no product for a scanned code."""

    def __init__(self, code: str):
        super().__init__(f"Product not found (code: {code})")
        self.code = code


class UserCancelled(PosError):
    """Purchase confirmation was declined."""


class InvalidTransition(PosError):
    """A session action was requested from a state that does not allow it."""
