import json

import httpx
import pytest

from fluxlab.image.client import FluxClient


BASE_URL = "https://api.test/v1/"
SAMPLE_URL = "https://cdn.test/samples/y.jpg"
IMAGE_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"


class FakeFluxService:
    """In-memory stand-in for the FLUX API plus a sample/reference image host.

    `polls` is consumed one entry per `get_result` call; an entry is either a JSON
    dict (HTTP 200) or a `(status_code, body)` tuple where body may be a dict or
    raw text.
    """

    def __init__(self, submit=None, polls=(), images=None):
        self.submit_response = submit if submit is not None else {"id": "abc123"}
        self.polls = list(polls)
        self.images = images if images is not None else {SAMPLE_URL: IMAGE_BYTES}
        self.requests: list[httpx.Request] = []
        self.on_poll = None

    @property
    def poll_requests(self):
        return [r for r in self.requests if r.url.path.endswith("/get_result")]

    @property
    def submit_requests(self):
        return [r for r in self.requests if r.method == "POST"]

    @property
    def poll_count(self):
        return len(self.poll_requests)

    def _respond(self, entry):
        status_code, body = entry if isinstance(entry, tuple) else (200, entry)
        if isinstance(body, (dict, list)):
            return httpx.Response(status_code, json=body)
        return httpx.Response(status_code, text=body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)

        if url in self.images:
            return httpx.Response(200, content=self.images[url])

        if request.url.path.endswith("/get_result"):
            if self.on_poll is not None:
                self.on_poll(request)
            if not self.polls:
                return httpx.Response(200, json={"id": request.url.params.get("id"), "status": "Pending"})
            return self._respond(self.polls.pop(0))

        if request.method == "POST":
            return self._respond(self.submit_response)

        return httpx.Response(404, text="not found")

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def body_of(request: httpx.Request) -> dict:
    return json.loads(request.content)


def ready(sample=SAMPLE_URL, status="Ready"):
    return {"id": "abc123", "status": status, "result": {"sample": sample}}


def pending():
    return {"id": "abc123", "status": "Pending"}


@pytest.fixture
def service():
    return FakeFluxService()


@pytest.fixture
def make_client():
    def _make(service: FakeFluxService, **kwargs) -> FluxClient:
        kwargs.setdefault("poll_interval", 0)
        kwargs.setdefault("max_attempts", 5)
        return FluxClient("test-key", base_url=BASE_URL, transport=service.transport(), **kwargs)

    return _make
