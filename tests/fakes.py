"""
Test doubles for the HTTP layer.

FakeSession stands in for requests.Session: it records every POST and
answers from a per-URL script of responses or exceptions.
"""

import json as jsonlib
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import PipelineConfig

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"fake-image-payload"
GLB_BYTES = b"glTF" + b"\x02\x00\x00\x00" + b"\x14\x00\x00\x00" + b"fake-glb"

CAPTION_URL = "http://caption.test/blip"
LOCAL_URL = "http://local.test/generate"
PAID_URL = "http://paid.test/generate"
T2I_URL = "http://t2i.test/sdxl"


class FakeResponse:
    """Just enough of requests.Response for the providers."""

    def __init__(self, status_code: int = 200, content: bytes = b"", headers: dict = None, json_data=None):
        self.status_code = status_code
        self.headers = headers or {}
        if json_data is not None:
            content = jsonlib.dumps(json_data).encode()
            self.headers.setdefault("content-type", "application/json")
        self.content = content

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self):
        return jsonlib.loads(self.content.decode("utf-8"))


class FakeSession:
    """
    Scripted replacement for requests.Session.

    routes maps URL -> response, exception, or list of those (consumed in
    order, last entry repeats). Unknown URLs raise ConnectionError.
    """

    def __init__(self, routes: dict = None):
        self.routes = {url: (list(v) if isinstance(v, list) else [v]) for url, v in (routes or {}).items()}
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None, **kwargs):
        self.calls.append({"url": url, "json": json, "headers": headers or {}, "timeout": timeout})
        script = self.routes.get(url)
        if not script:
            import requests
            raise requests.ConnectionError(f"Connection refused: {url}")
        outcome = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def count(self, url: str) -> int:
        return sum(1 for call in self.calls if call["url"] == url)


def make_config(**overrides) -> PipelineConfig:
    """Config pointing at the fake URLs, no retries, no delays."""
    values = dict(
        hf_api_token="test-token",
        caption_model_url=CAPTION_URL,
        local_3d_url=LOCAL_URL,
        paid_3d_url=PAID_URL,
        paid_3d_api_key="paid-key",
        text_to_image_url=T2I_URL,
        provider_timeout=5.0,
        retry_delay=0.0,
    )
    values.update(overrides)
    return PipelineConfig(**values)


def caption_response(text: str) -> FakeResponse:
    return FakeResponse(200, json_data=[{"generated_text": text}])


def image_response(data: bytes = PNG_BYTES, content_type: str = "image/png") -> FakeResponse:
    return FakeResponse(200, content=data, headers={"content-type": content_type})


def glb_response(data: bytes = GLB_BYTES) -> FakeResponse:
    return FakeResponse(200, content=data, headers={"content-type": "model/gltf-binary"})
