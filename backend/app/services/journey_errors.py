"""Exceptions raised by the booking journey core.

Routers translate these into HTTP errors; the services themselves never
touch FastAPI.
"""


class JourneyError(Exception):
    """Base class for recoverable journey failures."""

    field: str = "journey"

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        if field is not None:
            self.field = field


class ContributionValidationError(JourneyError):
    """A stage tried to advance without the value it is responsible for."""


class StepOutOfRangeError(JourneyError):
    """A command addressed a step index outside the defined stages."""

    field = "step_index"


class PriceUnavailableError(JourneyError):
    """Price requested before surgery and hospital were chosen."""

    field = "price"


class InvalidFinalizeTransitionError(JourneyError):
    field = "finalize_status"


class BookingSubmissionError(JourneyError):
    """The booking collaborator rejected or failed the submission."""

    field = "booking"


class ResumeSignalError(JourneyError):
    field = "resume"


class StageMismatchError(JourneyError):
    """The operation belongs to a different stage than the current one."""

    field = "step_index"
