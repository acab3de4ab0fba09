import base64
import dataclasses

import pytest

from fluxlab.image.models import (
    FluxProRequest,
    FluxUltraRequest,
    JobStatus,
    PollResponse,
    encode_image_prompt,
)


def test_pro_body_omits_unset_optional_fields():
    body = FluxProRequest(prompt="a lighthouse").to_request_body()

    assert "seed" not in body
    assert "image_prompt" not in body
    assert body["prompt"] == "a lighthouse"
    assert body["output_format"] == "jpeg"


def test_bytes_image_prompt_is_base64_encoded():
    request = FluxProRequest(prompt="restyle", image_prompt=b"\x89PNG\r\n")

    body = request.to_request_body()

    assert base64.b64decode(body["image_prompt"]) == b"\x89PNG\r\n"


def test_string_image_prompt_passes_through():
    assert encode_image_prompt("aGVsbG8=") == "aGVsbG8="
    assert encode_image_prompt(None) is None


def test_ultra_body_uses_ultra_wire_fields():
    body = FluxUltraRequest(prompt="dunes", aspect_ratio="21:9", seed=3, raw=True).to_request_body()

    assert body == {
        "prompt": "dunes",
        "aspect_ratio": "21:9",
        "seed": 3,
        "safety_tolerance": 2,
        "output_format": "jpeg",
        "raw": True,
        "image_prompt_strength": 0.1,
    }
    assert "width" not in body


def test_target_paths():
    assert FluxProRequest.target_path == "flux-pro-1.1"
    assert FluxUltraRequest.target_path == "flux-pro-1.1-ultra"


def test_requests_are_immutable():
    request = FluxProRequest(prompt="a lighthouse")

    with pytest.raises(dataclasses.FrozenInstanceError):
        request.prompt = "something else"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"prompt": ""},
        {"prompt": "   "},
        {"prompt": "x", "safety_tolerance": 7},
        {"prompt": "x", "safety_tolerance": -1},
        {"prompt": "x", "output_format": "gif"},
        {"prompt": "x", "width": 0},
    ],
)
def test_pro_request_validation(kwargs):
    with pytest.raises(ValueError):
        FluxProRequest(**kwargs)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"prompt": "x", "aspect_ratio": "wide"},
        {"prompt": "x", "image_prompt_strength": 1.5},
    ],
)
def test_ultra_request_validation(kwargs):
    with pytest.raises(ValueError):
        FluxUltraRequest(**kwargs)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Pending", JobStatus.PENDING),
        ("ready", JobStatus.READY),
        ("TASK NOT FOUND", JobStatus.NOT_FOUND),
        ("content moderated", JobStatus.CONTENT_MODERATED),
        ("Queued", JobStatus.UNKNOWN),
        (None, JobStatus.UNKNOWN),
    ],
)
def test_status_parse(raw, expected):
    assert JobStatus.parse(raw) is expected


def test_failure_statuses():
    assert JobStatus.ERROR.is_failure
    assert JobStatus.REQUEST_MODERATED.is_failure
    assert not JobStatus.PENDING.is_failure
    assert not JobStatus.READY.is_failure


def test_poll_response_from_json():
    observed = PollResponse.from_json(
        {"id": "abc123", "status": "Ready", "result": {"sample": "https://x/y.jpg"}},
        job_id="ignored",
    )

    assert observed.job_id == "abc123"
    assert observed.status is JobStatus.READY
    assert observed.sample == "https://x/y.jpg"


def test_poll_response_ignores_non_string_sample():
    observed = PollResponse.from_json({"status": "Ready", "result": {"sample": 42}}, job_id="abc123")

    assert observed.job_id == "abc123"
    assert observed.sample is None
