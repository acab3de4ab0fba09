"""Image service used by core `/flux` command handling.

Role in pipeline:
    - Builds the default `FluxClient` from `provider_config.FluxConfig`.
    - Exposes `generate_image` as the single entry point for orchestration.
    - Downloads reference images and finished samples over HTTP.

Base64 handling:
    - Reference images are fetched as bytes; Base64 encoding happens when the
      request body is rendered (`models.encode_image_prompt`).

Error handling strategy:
    - Missing API key -> `RuntimeError`.
    - Client failures (`FluxError`) and download failures (`httpx.HTTPError`) are
      intentionally propagated.
"""

import asyncio
import logging

import httpx

from fluxlab.image.client import FluxClient
from fluxlab.image.models import GenerationRequest
from fluxlab.image.provider_config import FluxConfig


logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT_SECONDS = 60.0


def build_client(config: FluxConfig | None = None) -> FluxClient:
    """Create a `FluxClient` from configuration.

    Raises:
        RuntimeError: If no API key is configured.
    """
    config = config or FluxConfig()
    if not config.api_key:
        raise RuntimeError("FLUX_API_KEY is not set (env or config/flux.key).")
    return FluxClient(
        config.api_key,
        base_url=config.base_url,
        poll_interval=config.poll_interval_seconds,
        max_attempts=config.max_poll_attempts,
        timeout=config.timeout_seconds,
    )


async def generate_image(
    request: GenerationRequest,
    client: FluxClient | None = None,
    cancel_event: asyncio.Event | None = None,
) -> str:
    """Generate an image and return the URL of the finished sample.

    Args:
        request: Standard or Ultra request.
        client: Optional client override; defaults to `build_client()`.
        cancel_event: Optional event that abandons the wait when set.
    """
    client = client or build_client()
    return await client.generate_image(request, cancel_event=cancel_event)


async def download_image(
    url: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bytes:
    """Fetch raw image bytes from a URL.

    Raises:
        httpx.HTTPError: On transport failure or non-success status.
    """
    async with httpx.AsyncClient(
        timeout=DOWNLOAD_TIMEOUT_SECONDS,
        transport=transport,
        follow_redirects=True,
    ) as http:
        response = await http.get(url)
        response.raise_for_status()
    logger.debug("Downloaded %d bytes from %s", len(response.content), url)
    return response.content
