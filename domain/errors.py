"""
Seating error hierarchy.

An invalid manual move is not an error: `move_player` reports it by
returning False so callers can probe seat availability.
"""


class SeatingError(Exception):
    """Base class for table seating errors."""

    retryable = False

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class NotFoundError(SeatingError):
    """A tournament, participant or table id could not be resolved."""

    def __init__(self, message: str) -> None:
        super().__init__("NOT_FOUND", message)


class InvalidConfigurationError(SeatingError):
    def __init__(self, message: str) -> None:
        super().__init__("INVALID_CONFIGURATION", message)


class NoCapacityError(SeatingError):
    """No free seat could be found and no table could be opened."""

    def __init__(self, message: str) -> None:
        super().__init__("NO_CAPACITY", message)


class PersistenceError(SeatingError):
    """
    Saving the tournament failed. Nothing was applied, so the whole
    operation can be retried.
    """

    retryable = True

    def __init__(self, message: str) -> None:
        super().__init__("PERSISTENCE_FAILURE", message)
