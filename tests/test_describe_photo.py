"""
Test: Photo Description

Verifies that:
1. The captioning call sends the bearer token and a base64 image
2. Array and object responses both yield generated_text
3. Missing token / non-2xx / timeout raise ProviderUnavailable
4. A 2xx without generated_text raises MalformedResponse
5. Image payloads are normalised (bytes, data URL, base64)

Run: python tests/test_describe_photo.py
"""

import asyncio
import base64
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

import requests

from fakes import CAPTION_URL, PNG_BYTES, FakeResponse, FakeSession, caption_response, make_config
from skills.describe_photo.describe_photo import PhotoDescriber, image_bytes, normalize_image
from skills.errors import MalformedResponse, ProviderUnavailable


def _describe(session, image=PNG_BYTES, **config_overrides):
    describer = PhotoDescriber(make_config(**config_overrides), session=session)
    return asyncio.run(describer.describe(image))


def _expect(exc_type, session, **config_overrides):
    try:
        _describe(session, **config_overrides)
    except exc_type as e:
        return e
    raise AssertionError(f"expected {exc_type.__name__}")


def test_caption_success():
    print("=" * 60)
    print("TEST: Caption success")
    print("=" * 60)

    session = FakeSession({CAPTION_URL: caption_response("a man with a beard ")})
    caption = _describe(session)
    print(f"  caption: {caption!r}")

    assert caption == "a man with a beard"
    assert session.count(CAPTION_URL) == 1
    call = session.calls[0]
    assert call["headers"]["Authorization"] == "Bearer test-token"
    assert base64.b64decode(call["json"]["image"]) == PNG_BYTES
    assert call["timeout"] == 5.0
    print("✓ Request shape correct")


def test_object_response():
    session = FakeSession({CAPTION_URL: FakeResponse(200, json_data={"generated_text": "a smiling child"})})
    assert _describe(session) == "a smiling child"


def test_missing_token_makes_no_call():
    session = FakeSession({CAPTION_URL: caption_response("unused")})
    error = _expect(ProviderUnavailable, session, hf_api_token=None)
    assert "HF_API_TOKEN" in error.reason
    assert session.calls == []


def test_non_2xx():
    session = FakeSession({CAPTION_URL: FakeResponse(503, content=b"loading")})
    error = _expect(ProviderUnavailable, session)
    assert not isinstance(error, MalformedResponse)
    assert "503" in error.reason


def test_network_errors():
    for exc in (requests.ConnectionError("refused"), requests.Timeout("slow")):
        session = FakeSession({CAPTION_URL: exc})
        _expect(ProviderUnavailable, session)


def test_malformed_payloads():
    print("=" * 60)
    print("TEST: Malformed payloads")
    print("=" * 60)

    bad_responses = [
        FakeResponse(200, json_data=[]),
        FakeResponse(200, json_data=[{"label": "person"}]),
        FakeResponse(200, json_data={"generated_text": "   "}),
        FakeResponse(200, json_data={"generated_text": 42}),
        FakeResponse(200, content=b"<html>not json</html>"),
    ]
    for response in bad_responses:
        error = _expect(MalformedResponse, FakeSession({CAPTION_URL: response}))
        # MalformedResponse is still a ProviderUnavailable
        assert isinstance(error, ProviderUnavailable)
    print("✓ All malformed payloads rejected")


def test_normalize_image():
    encoded = base64.b64encode(PNG_BYTES).decode()

    assert normalize_image(PNG_BYTES) == (encoded, "image/png")
    assert normalize_image(f"data:image/webp;base64,{encoded}") == (encoded, "image/webp")
    assert normalize_image(encoded) == (encoded, "image/jpeg")
    assert image_bytes(f"data:image/png;base64,{encoded}") == PNG_BYTES
    assert image_bytes(encoded) == PNG_BYTES


def test_data_url_input_sends_bare_base64():
    session = FakeSession({CAPTION_URL: caption_response("a person")})
    encoded = base64.b64encode(PNG_BYTES).decode()
    _describe(session, image=f"data:image/png;base64,{encoded}")
    assert session.calls[0]["json"]["image"] == encoded


class _FakeGeminiModels:
    def __init__(self, text):
        self.text = text
        self.calls = []

    def generate_content(self, model, contents):
        self.calls.append((model, contents))

        class _Response:
            pass

        response = _Response()
        response.text = self.text
        return response


class _FakeGeminiClient:
    def __init__(self, text):
        self.models = _FakeGeminiModels(text)


def test_gemini_backend():
    client = _FakeGeminiClient("  an elderly woman with glasses \n")
    describer = PhotoDescriber(make_config(caption_backend="gemini"), session=FakeSession(), gemini_client=client)
    assert asyncio.run(describer.describe(PNG_BYTES)) == "an elderly woman with glasses"
    assert len(client.models.calls) == 1
    _, contents = client.models.calls[0]
    assert len(contents) == 2


def test_gemini_empty_caption_is_malformed():
    describer = PhotoDescriber(
        make_config(caption_backend="gemini"), session=FakeSession(), gemini_client=_FakeGeminiClient("")
    )
    try:
        asyncio.run(describer.describe(PNG_BYTES))
    except MalformedResponse:
        return
    raise AssertionError("expected MalformedResponse")


if __name__ == "__main__":
    print("\n" + "=" * 60)
    print(" PHOTO DESCRIPTION TESTS")
    print("=" * 60 + "\n")

    tests = [obj for name, obj in list(globals().items()) if name.startswith("test_") and callable(obj)]
    failed = 0
    for test in tests:
        try:
            test()
        except AssertionError as e:
            failed += 1
            print(f"✗ {test.__name__} failed: {e}")

    print("\n" + "=" * 60)
    print(" FINAL RESULT")
    print("=" * 60)

    if failed == 0:
        print(f"\n✅ ALL {len(tests)} TESTS PASSED\n")
        sys.exit(0)
    else:
        print(f"\n❌ {failed} TEST(S) FAILED\n")
        sys.exit(1)
