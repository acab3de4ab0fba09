"""FLUX image generation package.

Scope:
    Provides the request contracts, the async submit/poll client and a small
    service layer used by core orchestration when `/flux ...` commands are issued.

Non-goals:
    - No local persistence or job queue.
    - No retry/backoff on failed submissions or polls.
"""

from fluxlab.image.client import FluxClient
from fluxlab.image.errors import (
    FluxError,
    JobCancelledError,
    JobFailedError,
    JobTimeoutError,
    MalformedResultError,
    PollError,
    SubmissionError,
)
from fluxlab.image.models import FluxProRequest, FluxUltraRequest, JobStatus, PollResponse

__all__ = [
    "FluxClient",
    "FluxError",
    "FluxProRequest",
    "FluxUltraRequest",
    "JobCancelledError",
    "JobFailedError",
    "JobStatus",
    "JobTimeoutError",
    "MalformedResultError",
    "PollError",
    "PollResponse",
    "SubmissionError",
]
