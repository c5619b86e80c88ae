"""
Error taxonomy for the booking services.

The class is the internal kind; ``message`` is what the customer sees.
"""
from . import messages


class KaraokeError(Exception):
    """Base error for the booking services."""
    status_code = 500
    default_message = messages.PERSISTENCE_ERROR

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def kind(self):
        return type(self).__name__


class ValidationError(KaraokeError):
    """Malformed or missing input, raised before touching the database."""
    status_code = 400
    default_message = messages.INVALID_REQUEST


class AuthenticationError(KaraokeError):
    """Missing, invalid or expired admin credentials."""
    status_code = 401
    default_message = messages.NOT_AUTHENTICATED


class NotFoundError(KaraokeError):
    """Referenced booking, room, customer or payment does not exist."""
    status_code = 404


class ConflictError(KaraokeError):
    """Double-booked interval or a status transition from the wrong state."""
    status_code = 409


class PersistenceError(KaraokeError):
    """Database driver failure. The driver error is chained, never shown."""
    status_code = 500
    default_message = messages.PERSISTENCE_ERROR
