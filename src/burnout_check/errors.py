"""Exception types shared by the services and the HTTP layer."""


class BurnoutCheckError(Exception):
    """Base class for errors raised by this package."""

    status_code = 500


class RequestValidationFailed(BurnoutCheckError):
    """A request field was missing or malformed."""

    status_code = 400


class UpstreamServiceError(BurnoutCheckError):
    """The model API or the contact store failed.

    The underlying exception is chained as ``__cause__`` and logged server-side;
    callers only ever see the generic message.
    """

    status_code = 500

    def __init__(self, service: str, message: str = "Internal server error"):
        super().__init__(message)
        self.service = service
