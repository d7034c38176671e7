from typing import Optional


class ExecmonError(Exception):
    """Base exception for the execution monitoring core."""


# Transport failures recorded per job by the pollers

class StatusFetchError(ExecmonError):
    """Raised when the status of an execution could not be fetched.

    Pollers record this error per job and keep polling; it never crosses the
    poller boundary except through the error field and the transport error
    hook.

    Attributes:
        message: Human-readable error description
        job_id: Execution identifier the fetch was issued for
        diagnostic: Technical diagnostic information for debugging
        upstream_status: HTTP status code from the execution API (if applicable)
    """
    def __init__(
        self,
        message: str,
        job_id: Optional[str] = None,
        diagnostic: Optional[str] = None,
        upstream_status: Optional[int] = None,
    ):
        self.message = message
        self.job_id = job_id
        self.diagnostic = diagnostic
        self.upstream_status = upstream_status
        super().__init__(message)

    @classmethod
    def wrap(cls, job_id: str, exc: BaseException) -> "StatusFetchError":
        """Normalize an arbitrary fetch failure into a StatusFetchError."""
        if isinstance(exc, StatusFetchError):
            if exc.job_id is None:
                exc.job_id = job_id
            return exc
        wrapped = cls(
            message=str(exc) or "Failed to fetch execution status",
            job_id=job_id,
            diagnostic=type(exc).__name__,
        )
        wrapped.__cause__ = exc
        return wrapped


class InvalidStatusPayloadError(StatusFetchError):
    """Raised when a fetch returns something that is not a valid status snapshot."""
    def __init__(self, job_id: str, diagnostic: Optional[str] = None):
        super().__init__(
            message=f"Unparseable status payload for execution {job_id}",
            job_id=job_id,
            diagnostic=diagnostic,
        )


class HttpClientNotInitializedError(ExecmonError, RuntimeError):
    """Raised when the HTTP client adapter is used outside `async with`."""
    def __init__(self):
        super().__init__("HTTP client not initialized. Use 'async with' context manager.")
