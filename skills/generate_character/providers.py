"""
Generation providers - the external backends tried by the ProviderChain.

Each provider does one request/response exchange with a bounded timeout
and either returns a GeneratedAsset or raises ProviderUnavailable (or one
of its subclasses). Blocking HTTP runs in a worker thread so concurrent
pipeline runs interleave.

Providers:
- LocalFreeServerProvider: self-hosted image-to-3D server, returns GLB
- PaidRemoteServiceProvider: hosted image-to-3D, off unless enable_paid_3d
- TextToImageProvider: HF text-to-image, returns raster bytes
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from config import (
    PipelineConfig,
    TEXT_TO_IMAGE_GUIDANCE,
    TEXT_TO_IMAGE_SIZE,
    TEXT_TO_IMAGE_STEPS,
)
from models.result import GeneratedAsset
from skills.errors import MalformedResponse, ProviderDisabled, ProviderUnavailable

logger = logging.getLogger(__name__)

GLB_MAGIC = b"glTF"
GLB_MIME = "model/gltf-binary"


@dataclass(frozen=True)
class GenerationRequest:
    """What every provider receives; each uses the fields it needs."""

    prompt: str
    negative_prompt: str
    image_b64: Optional[str] = None
    style: str = "rpg"
    quality: str = "standard"
    steps: int = TEXT_TO_IMAGE_STEPS
    guidance_scale: float = TEXT_TO_IMAGE_GUIDANCE
    width: int = TEXT_TO_IMAGE_SIZE[0]
    height: int = TEXT_TO_IMAGE_SIZE[1]


def is_glb(data: bytes) -> bool:
    """GLB files start with the ASCII magic 'glTF'."""
    return len(data) >= 12 and data[:4] == GLB_MAGIC


class GenerationProvider:
    """
    Base class: timeout handling, opt-in retries, status mapping.

    Subclasses implement _call() (blocking, runs in a thread).
    """

    name = "provider"

    def __init__(self, config: PipelineConfig, session: Optional[requests.Session] = None):
        self.config = config
        # None: every call goes through requests.post with its own connection
        self.session = session
        self.timeout = config.provider_timeout
        self.max_retries = config.provider_max_retries

    @property
    def enabled(self) -> bool:
        return True

    async def generate(self, request: GenerationRequest) -> GeneratedAsset:
        """
        Run one generation.

        Raises:
            ProviderDisabled: provider switched off, no network call made
            ProviderUnavailable: network/auth/timeout/non-2xx failure
            MalformedResponse: 2xx with an unusable body
        """
        if not self.enabled:
            raise ProviderDisabled(self.name)

        attempts = self.max_retries + 1
        for attempt in range(attempts):
            try:
                return await asyncio.to_thread(self._call, request)
            except (ProviderDisabled, MalformedResponse):
                raise
            except ProviderUnavailable as e:
                if attempt < attempts - 1:
                    wait_time = self.config.retry_delay * (2 ** attempt)
                    logger.warning(
                        f"[{self.name}] {e.reason}, retrying in {wait_time}s (attempt {attempt + 1}/{attempts})"
                    )
                    await asyncio.sleep(wait_time)
                    continue
                raise
        raise ProviderUnavailable(self.name, "no attempts made")

    def _call(self, request: GenerationRequest) -> GeneratedAsset:
        raise NotImplementedError

    def _post(self, url: str, payload: dict, headers: Optional[dict] = None) -> requests.Response:
        """POST with the bounded timeout; maps transport errors and non-2xx."""
        if not url:
            raise ProviderUnavailable(self.name, "no endpoint configured")
        try:
            http = self.session or requests
            response = http.post(url, json=payload, headers=headers or {}, timeout=self.timeout)
        except requests.Timeout as e:
            raise ProviderUnavailable(self.name, f"timed out after {self.timeout}s") from e
        except requests.ConnectionError as e:
            raise ProviderUnavailable(self.name, f"connection failed: {e}") from e
        except requests.RequestException as e:
            raise ProviderUnavailable(self.name, f"request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise ProviderUnavailable(self.name, f"HTTP {response.status_code}")
        return response


class Image3DProvider(GenerationProvider):
    """Shared contract of the image-to-3D backends: image in, GLB out."""

    def _headers(self) -> dict:
        return {}

    def _url(self) -> str:
        raise NotImplementedError

    def _call(self, request: GenerationRequest) -> GeneratedAsset:
        if not request.image_b64:
            raise ProviderUnavailable(self.name, "no source image for 3D generation")

        response = self._post(
            self._url(),
            {
                "image": request.image_b64,
                "style": request.style,
                "quality": request.quality,
                "format": "glb",
            },
            headers=self._headers(),
        )
        data = response.content
        if not is_glb(data):
            raise MalformedResponse(self.name, "response is not a GLB payload")

        logger.info(f"[{self.name}] Received GLB model ({len(data)} bytes)")
        return GeneratedAsset(kind="model", data=data, mime_type=GLB_MIME, provider=self.name)


class LocalFreeServerProvider(Image3DProvider):
    name = "local-3d-server"

    def _url(self) -> str:
        return self.config.local_3d_url


class PaidRemoteServiceProvider(Image3DProvider):
    """Hosted 3D generation. Costs money, so it stays off unless enabled."""

    name = "paid-3d-service"

    @property
    def enabled(self) -> bool:
        return self.config.enable_paid_3d

    def _url(self) -> str:
        return self.config.paid_3d_url

    def _headers(self) -> dict:
        if not self.config.paid_3d_api_key:
            raise ProviderUnavailable(self.name, "PAID_3D_API_KEY not set")
        return {"Authorization": f"Bearer {self.config.paid_3d_api_key}"}


class TextToImageProvider(GenerationProvider):
    """Prompt in, raster image out."""

    name = "text-to-image"

    def _call(self, request: GenerationRequest) -> GeneratedAsset:
        if not self.config.hf_api_token:
            raise ProviderUnavailable(self.name, "HF_API_TOKEN not set")

        response = self._post(
            self.config.text_to_image_url,
            {
                "inputs": request.prompt,
                "parameters": {
                    "steps": request.steps,
                    "guidance_scale": request.guidance_scale,
                    "negative_prompt": request.negative_prompt,
                    "width": request.width,
                    "height": request.height,
                },
            },
            headers={"Authorization": f"Bearer {self.config.hf_api_token}"},
        )

        content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        if not content_type.startswith("image/") or not response.content:
            raise MalformedResponse(self.name, f"expected image bytes, got '{content_type or 'no content-type'}'")

        logger.info(f"[{self.name}] Received {content_type} ({len(response.content)} bytes)")
        return GeneratedAsset(kind="image", data=response.content, mime_type=content_type, provider=self.name)
