"""
Photo Description Skill - caption a photo with an external captioning model.

Backends:
- "huggingface": BLIP image captioning over the HF inference API (default)
- "gemini": Gemini multimodal, asked for a single-sentence caption

Either way the contract is the same: one outbound call, a caption string
back, or ProviderUnavailable / MalformedResponse. A caption is never invented.
"""

import asyncio
import base64
import binascii
import logging
from typing import Optional, Union

import requests

from config import PipelineConfig
from agent.prompts import Prompts
from skills.errors import MalformedResponse, ProviderUnavailable

logger = logging.getLogger(__name__)

ImageInput = Union[bytes, str]


def normalize_image(image: ImageInput) -> tuple[str, str]:
    """
    Normalize an image payload to (base64 string, mime type).

    Accepts raw bytes, a data URL, or a bare base64 string.
    """
    if isinstance(image, (bytes, bytearray)):
        return base64.b64encode(bytes(image)).decode("ascii"), sniff_mime_type(bytes(image))

    if image.startswith("data:"):
        header, _, payload = image.partition(",")
        mime_type = header[5:].split(";")[0] or "image/jpeg"
        return payload, mime_type

    return image, "image/jpeg"


def image_bytes(image: ImageInput) -> bytes:
    """Decode any accepted image payload to raw bytes."""
    if isinstance(image, (bytes, bytearray)):
        return bytes(image)
    payload, _ = normalize_image(image)
    try:
        return base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Image payload is not valid base64: {e}") from e


def sniff_mime_type(data: bytes) -> str:
    """Guess the mime type from magic bytes."""
    if data.startswith(b"\x89PNG"):
        return "image/png"
    if data.startswith(b"GIF8"):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def _extract_generated_text(payload) -> Optional[str]:
    """Pull generated_text out of an array-or-object response."""
    if isinstance(payload, list):
        payload = payload[0] if payload else None
    if isinstance(payload, dict):
        text = payload.get("generated_text")
        if isinstance(text, str) and text.strip():
            return text.strip()
    return None


class PhotoDescriber:
    """
    Turn a photo into a short natural-language caption.

    This is the single stage allowed to sink a whole pipeline run:
    without a caption there is nothing to derive traits from.
    """

    def __init__(
        self,
        config: PipelineConfig,
        session: Optional[requests.Session] = None,
        gemini_client=None,
    ):
        """Initialize with config; session and gemini_client are injectable for tests."""
        self.config = config
        self.backend = config.caption_backend
        self.session = session
        self._gemini_client = gemini_client

    @property
    def provider_name(self) -> str:
        return f"caption-{self.backend}"

    async def describe(self, image: ImageInput) -> str:
        """
        Caption an image.

        Args:
            image: raw bytes, a data URL, or a base64 string

        Returns:
            The caption text

        Raises:
            ProviderUnavailable: missing credential, network error, timeout, non-2xx
            MalformedResponse: 2xx response without a usable caption
        """
        if self.backend == "gemini":
            caption = await self._describe_with_gemini(image)
        else:
            caption = await asyncio.to_thread(self._describe_with_huggingface, image)

        logger.info(f"[PhotoDescriber] Caption ({self.backend}): {caption[:100]}")
        return caption

    def _describe_with_huggingface(self, image: ImageInput) -> str:
        if not self.config.hf_api_token:
            raise ProviderUnavailable(self.provider_name, "HF_API_TOKEN not set")

        encoded, _ = normalize_image(image)
        try:
            response = (self.session or requests).post(
                self.config.caption_model_url,
                headers={"Authorization": f"Bearer {self.config.hf_api_token}"},
                json={"image": encoded},
                timeout=self.config.provider_timeout,
            )
        except requests.Timeout as e:
            raise ProviderUnavailable(self.provider_name, f"timed out after {self.config.provider_timeout}s") from e
        except requests.RequestException as e:
            raise ProviderUnavailable(self.provider_name, f"request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise ProviderUnavailable(self.provider_name, f"HTTP {response.status_code}: {response.text[:200]}")

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponse(self.provider_name, "response is not JSON") from e

        caption = _extract_generated_text(payload)
        if caption is None:
            raise MalformedResponse(self.provider_name, "response has no generated_text")
        return caption

    async def _describe_with_gemini(self, image: ImageInput) -> str:
        from google.genai import types

        try:
            client = self._gemini_client or self._make_gemini_client()
        except ValueError as e:
            raise ProviderUnavailable(self.provider_name, str(e)) from e

        data = image_bytes(image)
        _, mime_type = normalize_image(image)

        def _call():
            return client.models.generate_content(
                model=self._gemini_model(),
                contents=[
                    types.Part.from_bytes(data=data, mime_type=mime_type),
                    Prompts.CAPTION_PHOTO,
                ],
            )

        try:
            response = await asyncio.wait_for(asyncio.to_thread(_call), timeout=self.config.provider_timeout)
        except asyncio.TimeoutError as e:
            raise ProviderUnavailable(self.provider_name, f"timed out after {self.config.provider_timeout}s") from e
        except Exception as e:
            logger.error(f"[PhotoDescriber] Gemini caption failed: {e}")
            raise ProviderUnavailable(self.provider_name, f"request failed: {e}") from e

        text = (getattr(response, "text", None) or "").strip()
        if not text:
            raise MalformedResponse(self.provider_name, "empty caption from Gemini")
        return text

    def _make_gemini_client(self):
        from config import get_gemini_client
        self._gemini_client = get_gemini_client()
        return self._gemini_client

    @staticmethod
    def _gemini_model() -> str:
        from config import GEMINI_MODEL
        return GEMINI_MODEL
