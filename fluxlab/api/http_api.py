"""
HTTP API adapter for FluxLab.

Architectural role:
- Expose the chat command layer and the two FLUX request variants over HTTP.
- Enforce adapter-level input validation through pydantic request schemas.
- Delegate work to `fluxlab.core.engine` and `fluxlab.image.service`.

Endpoint responsibilities:
- `GET /health`: liveness probe.
- `POST /v1/commands`: run one `/flux` or `/fluxultra` chat message and return
  the image bytes as an attachment.
- `POST /v1/images/flux`: generate with FLUX 1.1 [pro] and return the sample URL.
- `POST /v1/images/flux-ultra`: generate with FLUX 1.1 [pro] Ultra.

Error handling strategy:
- Commands that produce no image -> HTTP 400 with the reply text as `error`.
- Invalid request values -> HTTP 422 with the validation message.
- Missing API key configuration -> HTTP 503.
- Job workflow failures (`FluxError`) -> HTTP 502 with the error message.

Side effects:
- Outbound HTTP to the FLUX service and sample hosts.
- Emits debug prints only when `DEBUG == "true"`.
- Loads environment variables at import time via `load_dotenv()`.
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import os
from urllib.parse import quote

from fastapi import FastAPI
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from fluxlab.core.engine import process_message
from fluxlab.image.client import FluxClient
from fluxlab.image.errors import FluxError
from fluxlab.image.models import FluxProRequest, FluxUltraRequest, GenerationRequest
from fluxlab.image.service import build_client, generate_image


logger = logging.getLogger(__name__)

app = FastAPI(title="FluxLab")
# Sensitive request/response debug logging is opt-in.
DEBUG = os.getenv("DEBUG") == "true"

_CLIENT: FluxClient | None = None


def set_client(client: FluxClient | None) -> None:
    """Override or clear the client used by all endpoints.

    Passing `None` restores the configuration-built default.
    """
    global _CLIENT
    _CLIENT = client


# ============================================================
# Request Schemas
# ============================================================

class CommandBody(BaseModel):
    """Chat message forwarded to the command engine."""

    message: str


class FluxBody(BaseModel):
    """FLUX 1.1 [pro] parameters; `image_prompt` is Base64 image data."""

    prompt: str
    image_prompt: str | None = None
    width: int = 1024
    height: int = 768
    prompt_upsampling: bool = False
    seed: int | None = None
    safety_tolerance: int = 2
    output_format: str = "jpeg"


class FluxUltraBody(BaseModel):
    """FLUX 1.1 [pro] Ultra parameters; `image_prompt` is Base64 image data."""

    prompt: str
    image_prompt: str | None = None
    aspect_ratio: str = "16:9"
    seed: int | None = None
    safety_tolerance: int = 2
    output_format: str = "jpeg"
    raw: bool = False
    image_prompt_strength: float = 0.1


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# ============================================================
# Endpoints
# ============================================================

@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/v1/commands")
async def run_command(body: CommandBody):
    """
    Run one chat command and return the generated image.

    Response formatting:
    - Success: raw image bytes (`image/jpeg`) with a `Content-Disposition`
      attachment filename derived from the prompt.
    - Failure: HTTP 400 JSON `{"error": <reply text>}`.
    """
    if DEBUG:
        print("Incoming command:", body.message)

    reply = await process_message(body.message, client=_CLIENT)

    if not reply.has_image:
        if DEBUG:
            print("Command produced no image:", reply.text)
        return _error(400, reply.text)

    return Response(
        content=reply.content,
        media_type="image/jpeg",
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(reply.filename)}",
            "X-Image-Url": quote(reply.image_url, safe=":/?&=%#"),
        },
    )


async def _generate(build) -> JSONResponse | dict:
    try:
        request: GenerationRequest = build()
    except ValueError as exc:
        return _error(422, str(exc))

    try:
        client = _CLIENT or build_client()
    except RuntimeError as exc:
        return _error(503, str(exc))

    try:
        image_url = await generate_image(request, client=client)
    except FluxError as exc:
        logger.warning("Generation via %s failed: %s", request.target_path, exc)
        return _error(502, str(exc))

    return {"image_url": image_url}


@app.post("/v1/images/flux")
async def generate_flux(body: FluxBody):
    return await _generate(lambda: FluxProRequest(**body.model_dump()))


@app.post("/v1/images/flux-ultra")
async def generate_flux_ultra(body: FluxUltraBody):
    return await _generate(lambda: FluxUltraRequest(**body.model_dump()))


def main():
    """Serve the API with uvicorn (`FLUXLAB_HOST` / `FLUXLAB_PORT`)."""
    import uvicorn

    uvicorn.run(
        app,
        host=os.getenv("FLUXLAB_HOST", "127.0.0.1"),
        port=int(os.getenv("FLUXLAB_PORT", "8000")),
    )


if __name__ == "__main__":
    main()
