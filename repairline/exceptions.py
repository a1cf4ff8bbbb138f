"""Exception hierarchy for the dialogue engine and its collaborators."""


class RepairlineError(Exception):
    """Base class for all errors raised by this package."""


class StoreError(RepairlineError):
    """The row store could not be reached or returned an error status."""

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


class ServiceUnavailableError(RepairlineError):
    """A resilience policy is open and is rejecting calls."""

    def __init__(self, service: str, retry_after: float) -> None:
        super().__init__(
            f"Service {service} temporarily unavailable, retry in {retry_after:.1f}s"
        )
        self.service = service
        self.retry_after = retry_after


class ResponderError(RepairlineError):
    """The fallback generative responder failed after all retries."""
