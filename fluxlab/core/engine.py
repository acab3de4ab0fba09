"""Core command orchestration for `/flux` and `/fluxultra`.

Architectural role:
    Provides the execution pipeline used by API/CLI layers to turn one chat message
    into an image reply: parse the command, build the request, wait for the job and
    fetch the finished image bytes.

Control-flow model:
    1. Parse the message (`fluxlab.core.commands.parse_command`).
    2. Optionally download the reference image given as `image_prompt=<url>`.
    3. Build a `FluxProRequest` or `FluxUltraRequest`.
    4. Await `fluxlab.image.service.generate_image`.
    5. Download the sample URL and wrap the bytes in a `CommandReply`.

Error handling strategy:
    Any failure along the pipeline ends the invocation and is returned to the user
    as the reply text, verbatim. Nothing is retried.

Side effects:
    - Outbound HTTP only (submission, polling, downloads).
    - No state is kept between invocations.
"""

import asyncio
import logging
import re
from dataclasses import dataclass

import httpx

from fluxlab.core.commands import (
    OUTPUT_FORMAT,
    USAGE,
    ImageCommand,
    is_image_command,
    parse_command,
)
from fluxlab.image.client import FluxClient
from fluxlab.image.models import FluxProRequest, FluxUltraRequest, GenerationRequest
from fluxlab.image.service import build_client, download_image, generate_image


logger = logging.getLogger(__name__)

FILENAME_PROMPT_CHARS = 60
_UNSAFE_FILENAME_CHARS = re.compile(r"[^\w\- ]+")


@dataclass(frozen=True)
class CommandReply:
    """Reply for one chat message.

    Attributes:
        text: Message shown to the user (error text when no image is attached).
        filename: Attachment name when an image was produced.
        content: Raw image bytes when an image was produced.
        image_url: Sample URL the bytes were downloaded from.
    """

    text: str
    filename: str | None = None
    content: bytes | None = None
    image_url: str | None = None

    @property
    def has_image(self) -> bool:
        return self.content is not None


def attachment_filename(prompt: str) -> str:
    """Build a filesystem-safe `.jpg` name from the first prompt characters."""
    stem = _UNSAFE_FILENAME_CHARS.sub("_", prompt[:FILENAME_PROMPT_CHARS]).strip()
    return f"{stem or 'image'}.jpg"


def _is_url(value: str) -> bool:
    return value.lower().startswith(("http://", "https://"))


async def build_request(
    command: ImageCommand,
    transport: httpx.AsyncBaseTransport | None = None,
) -> GenerationRequest:
    """Build the request for a parsed command.

    An `image_prompt` that looks like an http(s) URL is downloaded; any other
    value is forwarded as an already Base64-encoded image.
    """
    options = command.options
    image_prompt = options.get("image_prompt")
    if image_prompt and _is_url(image_prompt):
        image_prompt = await download_image(image_prompt, transport=transport)

    if command.ultra:
        return FluxUltraRequest(
            prompt=command.prompt,
            image_prompt=image_prompt,
            aspect_ratio=options["aspect_ratio"],
            seed=options["seed"],
            safety_tolerance=options["safety_tolerance"],
            output_format=OUTPUT_FORMAT,
            raw=options["raw"],
            image_prompt_strength=options["image_prompt_strength"],
        )

    return FluxProRequest(
        prompt=command.prompt,
        image_prompt=image_prompt,
        width=options["width"],
        height=options["height"],
        prompt_upsampling=options["prompt_improvement"],
        seed=options["seed"],
        safety_tolerance=options["safety_tolerance"],
        output_format=OUTPUT_FORMAT,
    )


async def process_message(
    question: str,
    client: FluxClient | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    cancel_event: asyncio.Event | None = None,
) -> CommandReply:
    """Process a single chat message.

    Args:
        question: Raw user message.
        client: Optional client override; defaults to one built from configuration.
        transport: Optional httpx transport for reference/sample downloads.
        cancel_event: Optional event that abandons the job wait when set.

    Returns:
        `CommandReply` carrying either the image or a message for the user.

    Edge cases:
        - Empty input returns an empty reply.
        - Non-command input returns the usage text.
    """
    if not question or not question.strip():
        return CommandReply(text="")

    if not is_image_command(question):
        return CommandReply(text=USAGE)

    try:
        command = parse_command(question)
        request = await build_request(command, transport=transport)
        image_url = await generate_image(
            request,
            client=client or build_client(),
            cancel_event=cancel_event,
        )
        content = await download_image(image_url, transport=transport)
    except Exception as exc:
        logger.exception("Image command failed: %r", question)
        return CommandReply(text=str(exc) or exc.__class__.__name__)

    filename = attachment_filename(command.prompt)
    logger.info("%s produced %s (%d bytes)", command.name, filename, len(content))
    return CommandReply(text=image_url, filename=filename, content=content, image_url=image_url)
