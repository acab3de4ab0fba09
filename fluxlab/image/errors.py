"""Failure taxonomy for the FLUX job workflow.

Every failure raised by `fluxlab.image.client` derives from `FluxError`, so the
command layer can render any of them to the user with `str(error)` while callers
that care can still branch on the concrete kind.

Error handling strategy:
    - The client never retries and never swallows; each error is terminal for the
      invocation that raised it.
    - HTTP-level failures keep the upstream status code and response text.
"""


class FluxError(Exception):
    """Base class for all job-workflow failures."""


class _HTTPFailure(FluxError):
    """Failure carrying optional upstream HTTP details."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SubmissionError(_HTTPFailure):
    """The creation call failed or returned no job id."""


class PollError(_HTTPFailure):
    """A `get_result` status check failed."""


class JobFailedError(FluxError):
    """The service reported a terminal failure status for the job."""

    def __init__(self, job_id: str, status: str):
        if "moderated" in status.casefold():
            message = f"Task was moderated. Status: {status}"
        else:
            message = f"Task failed or was not found. Status: {status}"
        super().__init__(message)
        self.job_id = job_id
        self.status = status


class MalformedResultError(FluxError):
    """The job is Ready but carries no usable `sample`."""

    def __init__(self, job_id: str):
        super().__init__("Task is ready, but 'sample' was not found in the result object.")
        self.job_id = job_id


class JobTimeoutError(FluxError, TimeoutError):
    """The attempt budget ran out while the job was still pending."""

    def __init__(self, job_id: str, attempts: int):
        super().__init__(f"Task was not ready after {attempts} polling attempts.")
        self.job_id = job_id
        self.attempts = attempts


class JobCancelledError(FluxError):
    """The caller signalled cancellation while the job was being awaited."""

    def __init__(self, job_id: str, attempts: int):
        super().__init__(f"Waiting for task {job_id} was cancelled after {attempts} polling attempts.")
        self.job_id = job_id
        self.attempts = attempts
