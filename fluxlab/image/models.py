"""Request and result contracts for the FLUX job workflow.

Architectural role:
    Defines the immutable request variants sent to the creation endpoints and the
    parsed view of one `get_result` poll consumed by `fluxlab.image.client`.

Wire contract:
    Field names of the request dataclasses are the JSON field names expected by the
    service (`prompt`, `image_prompt`, `width`, ...). `None` fields are omitted
    from the body and raw `bytes` image prompts are Base64-encoded.

Variant model:
    Both request variants expose `target_path` and `to_request_body()`; the client
    treats them uniformly and never branches on the concrete type.

Validation:
    Value ranges are checked at construction time and reported as `ValueError`.
"""

import base64
import re
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, ClassVar

from fluxlab.image.provider_config import MODEL_PATHS


OUTPUT_FORMATS = ("jpeg", "png")
MIN_SAFETY_TOLERANCE = 0
MAX_SAFETY_TOLERANCE = 6

_ASPECT_RATIO_PATTERN = re.compile(r"^\d+:\d+$")


class JobStatus(str, Enum):
    """Job state as reported by the service; the client only observes it."""

    PENDING = "Pending"
    READY = "Ready"
    REQUEST_MODERATED = "Request Moderated"
    CONTENT_MODERATED = "Content Moderated"
    NOT_FOUND = "Task not found"
    ERROR = "Error"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: str | None) -> "JobStatus":
        """Map a wire status to a member, ignoring case and surrounding spaces.

        Unrecognized or missing values map to `UNKNOWN`.
        """
        normalized = (value or "").strip().casefold()
        for member in cls:
            if member.value.casefold() == normalized:
                return member
        return cls.UNKNOWN

    @property
    def is_failure(self) -> bool:
        return self in _FAILURE_STATUSES


_FAILURE_STATUSES = frozenset({
    JobStatus.ERROR,
    JobStatus.NOT_FOUND,
    JobStatus.REQUEST_MODERATED,
    JobStatus.CONTENT_MODERATED,
})


def encode_image_prompt(image_prompt: bytes | str | None) -> str | None:
    """Return the Base64 string form of an image prompt.

    Strings are assumed to be encoded already and pass through unchanged.
    """
    if image_prompt is None:
        return None
    if isinstance(image_prompt, (bytes, bytearray)):
        return base64.b64encode(bytes(image_prompt)).decode("ascii")
    return image_prompt


class _GenerationRequest:
    """Shared body rendering and validation for request variants."""

    target_path: ClassVar[str]

    def to_request_body(self) -> dict[str, Any]:
        """Render the JSON body for the creation endpoint."""
        body: dict[str, Any] = {}
        for field in fields(self):
            value = getattr(self, field.name)
            if field.name == "image_prompt":
                value = encode_image_prompt(value)
            if value is None:
                continue
            body[field.name] = value
        return body

    def _validate_common(self) -> None:
        if not self.prompt or not self.prompt.strip():
            raise ValueError("Prompt must not be empty.")
        if not MIN_SAFETY_TOLERANCE <= self.safety_tolerance <= MAX_SAFETY_TOLERANCE:
            raise ValueError(
                f"safety_tolerance must be between {MIN_SAFETY_TOLERANCE} and "
                f"{MAX_SAFETY_TOLERANCE}, got {self.safety_tolerance}."
            )
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"output_format must be one of {', '.join(OUTPUT_FORMATS)}, "
                f"got {self.output_format!r}."
            )


@dataclass(frozen=True)
class FluxProRequest(_GenerationRequest):
    """Request body for FLUX 1.1 [pro]."""

    target_path: ClassVar[str] = MODEL_PATHS["standard"]

    prompt: str
    image_prompt: bytes | str | None = None
    width: int = 1024
    height: int = 768
    prompt_upsampling: bool = False
    seed: int | None = None
    safety_tolerance: int = 2
    output_format: str = "jpeg"

    def __post_init__(self):
        self._validate_common()
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}.")


@dataclass(frozen=True)
class FluxUltraRequest(_GenerationRequest):
    """Request body for FLUX 1.1 [pro] Ultra."""

    target_path: ClassVar[str] = MODEL_PATHS["ultra"]

    prompt: str
    image_prompt: bytes | str | None = None
    aspect_ratio: str = "16:9"
    seed: int | None = None
    safety_tolerance: int = 2
    output_format: str = "jpeg"
    raw: bool = False
    image_prompt_strength: float = 0.1

    def __post_init__(self):
        self._validate_common()
        if not _ASPECT_RATIO_PATTERN.match(self.aspect_ratio or ""):
            raise ValueError(f"aspect_ratio must look like '16:9', got {self.aspect_ratio!r}.")
        if not 0.0 <= self.image_prompt_strength <= 1.0:
            raise ValueError(
                f"image_prompt_strength must be between 0 and 1, got {self.image_prompt_strength}."
            )


GenerationRequest = FluxProRequest | FluxUltraRequest


@dataclass(frozen=True)
class PollResponse:
    """One observation of a job returned by `get_result`.

    Attributes:
        job_id: Id echoed by the service (falls back to the polled handle).
        status: Parsed status.
        raw_status: Status text exactly as received, used in error messages.
        sample: Image URL from `result.sample`; only meaningful when Ready.
    """

    job_id: str
    status: JobStatus
    raw_status: str
    sample: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any], job_id: str) -> "PollResponse":
        raw_status = str(data.get("status") or "")
        result = data.get("result")
        sample = result.get("sample") if isinstance(result, dict) else None
        return cls(
            job_id=str(data.get("id") or job_id),
            status=JobStatus.parse(raw_status),
            raw_status=raw_status,
            sample=sample if isinstance(sample, str) and sample else None,
        )
