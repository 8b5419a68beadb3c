class SyncError(RuntimeError):
    """Raised when busy intervals cannot be fetched (network errors, bad status, malformed payload)."""
    pass


class BookingValidationError(RuntimeError):
    """Raised when one or more draft fields fail their constraint. Carries per-field messages."""

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__("; ".join(f"{field}: {message}" for field, message in errors.items()))
        self.errors = dict(errors)


class SubmitError(RuntimeError):
    """Raised when a booking submission fails. The message is safe to show to the user."""
    pass


class SlotNoLongerAvailableError(SubmitError):
    """Raised when the chosen slot became busy between selection and submission."""
    pass


class DuplicateBookingError(SubmitError):
    """Raised when a booking for the same email and slot was already created."""
    pass


class SubmissionInProgressError(RuntimeError):
    """Raised when a second submission is attempted while one is still in flight."""
    pass


class AttributionError(RuntimeError):
    """Raised when a referral attribution record cannot be written. Never blocks a booking."""
    pass


class InvalidTransitionError(RuntimeError):
    """Raised when an action is not permitted from the current form step."""
    pass


class SessionNotFoundError(KeyError):
    """Raised when a form session id is unknown or was already discarded."""
    pass
