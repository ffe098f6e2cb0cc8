"""
Result models - generated assets, provider attempts, pipeline events and
the final GenerationResult handed back to the caller.
"""

import base64
import json
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional

from .character import GameCharacter, GameCriteria

logger = logging.getLogger(__name__)

PROCEDURAL_FALLBACK = "procedural-fallback"

AssetKind = Literal["model", "image"]


def to_data_url(data: bytes, mime_type: str = "image/png") -> str:
    """Encode bytes as a base64 data URL."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


@dataclass(frozen=True)
class GeneratedAsset:
    """A single asset produced by a generation provider."""

    kind: AssetKind  # 'model' (GLB) or 'image' (PNG/JPEG/...)
    data: bytes
    mime_type: str
    provider: str
    url: Optional[str] = None

    @property
    def is_model(self) -> bool:
        return self.kind == "model"


@dataclass(frozen=True)
class ProviderAttempt:
    """Outcome of trying one provider in the chain."""

    provider: str
    succeeded: bool
    skipped: bool = False
    error: Optional[str] = None
    elapsed_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "error": self.error,
            "elapsed_ms": self.elapsed_ms,
        }


PipelineStage = Literal[
    "idle",
    "analyzing",
    "deriving_traits",
    "generating",
    "rendering_preview",
    "done",
    "failed",
]


@dataclass
class PipelineEvent:
    """Event emitted at every pipeline stage boundary."""
    stage: str  # one of PipelineStage
    message: str = ""
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        # The result object and raw exception stay out of the wire form
        payload = {k: v for k, v in self.data.items() if k not in ("result", "cause")}
        return {"type": self.stage, "message": self.message, **payload}


@dataclass(frozen=True)
class GenerationResult:
    """
    Everything one pipeline run produced.

    pop_image is always a raster image: the text-to-image output, a procedural
    preview of a 3D winner, or the procedural fallback itself. model_data is
    only set when a 3D provider won.
    """

    original_image: str
    characteristics: dict
    pop_image: bytes
    model_used: str
    processing_time_ms: int
    game_criteria: GameCriteria
    prompt: str
    pop_image_mime: str = "image/png"
    model_url: Optional[str] = None
    model_data: Optional[bytes] = None
    t_pose_views: Optional[tuple[tuple[str, bytes], ...]] = None
    game_character: Optional[GameCharacter] = None
    provider_attempts: tuple[ProviderAttempt, ...] = ()
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])

    def __post_init__(self):
        if self.t_pose_views is not None and len(self.t_pose_views) not in (3, 6):
            raise ValueError(f"t_pose_views must hold 3 or 6 views, got {len(self.t_pose_views)}")

    @property
    def pop_image_url(self) -> str:
        return to_data_url(self.pop_image, self.pop_image_mime)

    @property
    def used_fallback(self) -> bool:
        return self.model_used == PROCEDURAL_FALLBACK

    def to_dict(self, include_images: bool = False) -> dict:
        """Serialize result; binary payloads are only inlined on request."""
        data = {
            "id": self.id,
            "characteristics": self.characteristics,
            "model_used": self.model_used,
            "processing_time_ms": self.processing_time_ms,
            "game_criteria": self.game_criteria.to_dict(),
            "game_character": self.game_character.to_dict() if self.game_character else None,
            "prompt": self.prompt,
            "model_url": self.model_url,
            "has_model": self.model_data is not None,
            "t_pose_views": [name for name, _ in self.t_pose_views] if self.t_pose_views else None,
            "provider_attempts": [a.to_dict() for a in self.provider_attempts],
        }
        if include_images:
            data["original_image"] = self.original_image
            data["pop_image_url"] = self.pop_image_url
            if self.model_data is not None:
                data["model_data_url"] = to_data_url(self.model_data, "model/gltf-binary")
            if self.t_pose_views:
                data["t_pose_view_urls"] = {name: to_data_url(png) for name, png in self.t_pose_views}
        return data

    def save(self, output_dir: Path) -> Path:
        """
        Write the result into output_dir/<id>/.

        Layout: pop.<ext>, model.glb (if any), views/<name>.png, result.json.
        Returns the result directory.
        """
        result_dir = Path(output_dir) / self.id
        result_dir.mkdir(parents=True, exist_ok=True)

        ext = self.pop_image_mime.split("/")[-1].replace("jpeg", "jpg")
        (result_dir / f"pop.{ext}").write_bytes(self.pop_image)
        if self.model_data is not None:
            (result_dir / "model.glb").write_bytes(self.model_data)
        if self.t_pose_views:
            views_dir = result_dir / "views"
            views_dir.mkdir(exist_ok=True)
            for name, png in self.t_pose_views:
                (views_dir / f"{name}.png").write_bytes(png)

        (result_dir / "result.json").write_text(json.dumps(self.to_dict(), indent=2))
        logger.info(f"Saved result {self.id} to {result_dir}")
        return result_dir
