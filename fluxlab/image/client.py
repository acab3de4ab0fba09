"""FLUX job client: submit, poll, and wait for a generated image.

Processing flow:
    1. POST the request body to the variant's model path (`X-Key` header).
    2. Read the job id from the creation response.
    3. Poll `get_result?id=<job id>` at a fixed interval.
    4. Return `result.sample` once the job is Ready.

Polling policy:
    - Fixed interval and fixed attempt budget; no backoff, no jitter.
    - No sleep after the final attempt.
    - Error, Task not found and the two moderation statuses are terminal failures.
    - Unknown statuses are treated as still pending.
    - An optional `asyncio.Event` ends the wait early with `JobCancelledError`.

Error handling strategy:
    - Every failure raises a `fluxlab.image.errors.FluxError` subclass.
    - Transport errors are wrapped, never retried.

Concurrency:
    The client holds only its token, base URL and timeout. Each call opens its own
    `httpx.AsyncClient`, so concurrent invocations share no mutable state. Waits use
    `asyncio` and never block the event loop.
"""

import asyncio
import logging
from typing import Any

import httpx

from fluxlab.image.errors import (
    JobCancelledError,
    JobFailedError,
    JobTimeoutError,
    MalformedResultError,
    PollError,
    SubmissionError,
)
from fluxlab.image.models import GenerationRequest, JobStatus, PollResponse
from fluxlab.image.provider_config import DEFAULT_BASE_URL, RESULT_PATH


logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 10.0
DEFAULT_MAX_POLL_ATTEMPTS = 60


class FluxClient:
    """Async client for the FLUX 1.1 [pro] / [pro] Ultra endpoints."""

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_attempts: int = DEFAULT_MAX_POLL_ATTEMPTS,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create a client.

        Args:
            token: API key sent as `X-Key` on every request.
            base_url: Service root; model paths are resolved relative to it.
            poll_interval: Default seconds between polls for `generate_image`.
            max_attempts: Default poll budget for `generate_image`.
            timeout: Per-request HTTP timeout in seconds.
            transport: Optional httpx transport override (used by tests).
        """
        self._token = token
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._timeout = timeout
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
            headers={"X-Key": self._token},
        )

    async def submit(self, request: GenerationRequest) -> str:
        """Submit a generation request and return its job id.

        Raises:
            SubmissionError: On transport failure, non-success status, a non-JSON
                body, or a missing/empty `id`.
        """
        path = request.target_path
        try:
            async with self._http() as http:
                response = await http.post(path, json=request.to_request_body())
        except httpx.HTTPError as exc:
            raise SubmissionError(f"Generation request to {path} failed: {exc}") from exc

        if not response.is_success:
            raise SubmissionError(
                f"Generation request failed. Status: {response.status_code}. Content: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        data = _json_object(response)
        job_id = data.get("id") if data is not None else None
        if not job_id:
            raise SubmissionError(
                f"No Task ID returned from {path} endpoint.",
                status_code=response.status_code,
                body=response.text,
            )

        logger.info("Submitted %s job %s", path, job_id)
        return str(job_id)

    async def poll(self, job_id: str) -> PollResponse:
        """Fetch the current status of a job once.

        Raises:
            PollError: On transport failure, non-success status or a non-JSON body.
        """
        try:
            async with self._http() as http:
                response = await http.get(RESULT_PATH, params={"id": job_id})
        except httpx.HTTPError as exc:
            raise PollError(f"GetResult call for {job_id} failed: {exc}") from exc

        if not response.is_success:
            raise PollError(
                f"GetResult call failed. Status: {response.status_code}. Content: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        data = _json_object(response)
        if data is None:
            raise PollError(
                f"GetResult returned an unreadable body: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        return PollResponse.from_json(data, job_id)

    async def wait_for_completion(
        self,
        job_id: str,
        poll_interval: float,
        max_attempts: int,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        """Poll until the job is Ready and return its sample URL.

        Args:
            job_id: Handle returned by `submit`.
            poll_interval: Seconds to wait between polls.
            max_attempts: Maximum number of polls.
            cancel_event: Optional event; once set, waiting stops before the next poll.

        Raises:
            MalformedResultError: Ready without a sample.
            JobFailedError: Terminal failure status reported by the service.
            JobTimeoutError: `max_attempts` polls all returned a pending status.
            JobCancelledError: `cancel_event` was set.
            PollError: Propagated from `poll`.
        """
        for attempt in range(1, max_attempts + 1):
            if cancel_event is not None and cancel_event.is_set():
                raise JobCancelledError(job_id, attempt - 1)

            observed = await self.poll(job_id)
            logger.debug("Job %s poll %d/%d: %s", job_id, attempt, max_attempts, observed.raw_status)

            if observed.status is JobStatus.READY:
                if not observed.sample:
                    raise MalformedResultError(job_id)
                logger.info("Job %s ready after %d polls", job_id, attempt)
                return observed.sample

            if observed.status.is_failure:
                raise JobFailedError(job_id, observed.raw_status)

            if attempt < max_attempts:
                await _pause(poll_interval, cancel_event, job_id, attempt)

        raise JobTimeoutError(job_id, max_attempts)

    async def generate_image(
        self,
        request: GenerationRequest,
        poll_interval: float | None = None,
        max_attempts: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        """Submit a request and wait for its image URL."""
        job_id = await self.submit(request)
        return await self.wait_for_completion(
            job_id,
            poll_interval=self.poll_interval if poll_interval is None else poll_interval,
            max_attempts=self.max_attempts if max_attempts is None else max_attempts,
            cancel_event=cancel_event,
        )


async def _pause(seconds: float, cancel_event: asyncio.Event | None, job_id: str, attempts: int) -> None:
    if cancel_event is None:
        await asyncio.sleep(seconds)
        return
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return
    raise JobCancelledError(job_id, attempts)


def _json_object(response: httpx.Response) -> dict[str, Any] | None:
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None
