"""Error taxonomy shared by the client, orchestrator and poller."""


class QACopilotError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(QACopilotError):
    """Configuration or project precondition is not satisfied.

    Never retried. The message carries a remediation hint where one is known.
    """


class RemoteError(QACopilotError):
    """Error reported while talking to the Test Collab API."""

    def __init__(self, message: str, status: int | None = None) -> None:
        """Store the HTTP status when the error came from a response."""
        super().__init__(message)
        self.status = status


class TransientError(RemoteError):
    """Network failure, timeout or 5xx response."""


class PermanentError(RemoteError):
    """4xx response such as bad credentials or an unknown id."""


class ProtocolError(QACopilotError):
    """Response payload could not be decoded or failed validation."""
