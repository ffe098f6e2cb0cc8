"""
Configuration for Photo-to-Pop.

Provider Selection:
- Captioning: HuggingFace BLIP (default) or Gemini (CAPTION_BACKEND=gemini)
- Generation chain: local 3D server -> paid 3D service (off by default) -> text-to-image
- Procedural fallback: always available, no network

API Access:
- HuggingFace inference (HF_API_TOKEN) for captioning and text-to-image
- Google AI Studio (GOOGLE_API_KEY) for the optional Gemini caption backend
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# =============================================================================
# Provider Configuration
# =============================================================================

HF_API_TOKEN = os.getenv("HF_API_TOKEN") or os.getenv("HUGGINGFACE_API_KEY")

# Caption backend: "huggingface" or "gemini"
CAPTION_BACKEND = os.getenv("CAPTION_BACKEND", "huggingface").lower()
CAPTION_MODEL_URL = os.getenv(
    "CAPTION_MODEL_URL",
    "https://api-inference.huggingface.co/models/Salesforce/blip-image-captioning-large",
)
TEXT_TO_IMAGE_URL = os.getenv(
    "TEXT_TO_IMAGE_URL",
    "https://api-inference.huggingface.co/models/stabilityai/stable-diffusion-xl-base-1.0",
)

# Local 3D generation server (free, self-hosted)
LOCAL_3D_URL = os.getenv("LOCAL_3D_URL", "http://localhost:8080/generate")

# Paid remote 3D service - disabled unless explicitly switched on (cost control)
PAID_3D_URL = os.getenv("PAID_3D_URL", "")
PAID_3D_API_KEY = os.getenv("PAID_3D_API_KEY")
ENABLE_PAID_3D = os.getenv("ENABLE_PAID_3D", "false").lower() == "true"

# Google AI Studio (optional Gemini captioning)
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")


def get_gemini_client():
    """
    Get a Gemini client for the optional caption backend.

    Raises ValueError when GOOGLE_API_KEY is missing.
    """
    from google import genai

    if not GOOGLE_API_KEY:
        raise ValueError(
            "GOOGLE_API_KEY not set. Set GOOGLE_API_KEY or use CAPTION_BACKEND=huggingface."
        )
    return genai.Client(api_key=GOOGLE_API_KEY)


# =============================================================================
# Paths
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.resolve()  # Always absolute
ASSETS_DIR = PROJECT_ROOT / "assets"
# Always resolve OUTPUT_DIR relative to PROJECT_ROOT, not CWD
_output_env = os.getenv("OUTPUT_DIR")
if _output_env:
    OUTPUT_DIR = (PROJECT_ROOT / _output_env).resolve()
else:
    OUTPUT_DIR = ASSETS_DIR / "outputs"
SKILLS_DIR = PROJECT_ROOT / "skills"

# =============================================================================
# Generation Settings
# =============================================================================

CHARACTER_STYLES = [
    "rpg",
    "cute",
    "anime",
    "disney",
    "pixar",
]

DEFAULT_CHARACTER_STYLE = os.getenv("DEFAULT_CHARACTER_STYLE", "rpg")

# Text-to-image parameters
TEXT_TO_IMAGE_STEPS = 25
TEXT_TO_IMAGE_GUIDANCE = 8.0
TEXT_TO_IMAGE_SIZE = (1024, 1024)

# Local/paid 3D request parameters
MODEL_3D_QUALITY = os.getenv("MODEL_3D_QUALITY", "standard")

# T-pose reference views: 0 (off), 3 or 6
T_POSE_VIEWS = int(os.getenv("T_POSE_VIEWS", "0"))
T_POSE_VIEW_SETS = {
    3: ("front", "left", "back"),
    6: ("front", "back", "left", "right", "top", "bottom"),
}

# Draw T-pose views with text-to-image when it won the chain
REMOTE_VIEWS = os.getenv("REMOTE_VIEWS", "false").lower() == "true"

# Seeded variety for age/height/weight inside their bucket; unset means midpoints
_variety_seed_env = os.getenv("VARIETY_SEED")
VARIETY_SEED = int(_variety_seed_env) if _variety_seed_env else None

# =============================================================================
# Timeouts & Retries
# =============================================================================

# Bounded wait for every single outbound call
PROVIDER_TIMEOUT_SECONDS = float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "60"))

# Whole-pipeline budget; unset means no global timeout
_pipeline_timeout_env = os.getenv("PIPELINE_TIMEOUT_SECONDS")
PIPELINE_TIMEOUT_SECONDS = float(_pipeline_timeout_env) if _pipeline_timeout_env else None

# Retries within a provider are off unless asked for
MAX_RETRIES = int(os.getenv("PROVIDER_MAX_RETRIES", "0"))
RETRY_DELAY_SECONDS = 2

# =============================================================================
# Pipeline Config Object
# =============================================================================


@dataclass(frozen=True)
class PipelineConfig:
    """
    Explicit configuration handed to the pipeline.

    Module constants above are read once by from_env(); components never
    consult globals at call time, so tests build their own PipelineConfig.
    """

    hf_api_token: Optional[str] = None
    caption_backend: str = "huggingface"
    caption_model_url: str = CAPTION_MODEL_URL
    text_to_image_url: str = TEXT_TO_IMAGE_URL
    local_3d_url: str = LOCAL_3D_URL
    paid_3d_url: str = ""
    paid_3d_api_key: Optional[str] = None
    enable_paid_3d: bool = False
    style: str = "rpg"
    model_3d_quality: str = "standard"
    t_pose_views: int = 0
    remote_views: bool = False
    provider_timeout: float = 60.0
    pipeline_timeout: Optional[float] = None
    provider_max_retries: int = 0
    retry_delay: float = RETRY_DELAY_SECONDS
    variety_seed: Optional[int] = None
    output_dir: Path = OUTPUT_DIR

    def __post_init__(self):
        if self.t_pose_views not in (0, 3, 6):
            raise ValueError(f"t_pose_views must be 0, 3 or 6, got {self.t_pose_views}")
        if self.caption_backend not in ("huggingface", "gemini"):
            raise ValueError(f"Unknown caption backend: {self.caption_backend}")
        if self.provider_timeout <= 0:
            raise ValueError("provider_timeout must be positive")

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build config from the environment-derived module constants."""
        return cls(
            hf_api_token=HF_API_TOKEN,
            caption_backend=CAPTION_BACKEND,
            caption_model_url=CAPTION_MODEL_URL,
            text_to_image_url=TEXT_TO_IMAGE_URL,
            local_3d_url=LOCAL_3D_URL,
            paid_3d_url=PAID_3D_URL,
            paid_3d_api_key=PAID_3D_API_KEY,
            enable_paid_3d=ENABLE_PAID_3D,
            style=DEFAULT_CHARACTER_STYLE,
            model_3d_quality=MODEL_3D_QUALITY,
            t_pose_views=T_POSE_VIEWS,
            remote_views=REMOTE_VIEWS,
            provider_timeout=PROVIDER_TIMEOUT_SECONDS,
            pipeline_timeout=PIPELINE_TIMEOUT_SECONDS,
            provider_max_retries=MAX_RETRIES,
            variety_seed=VARIETY_SEED,
            output_dir=OUTPUT_DIR,
        )

    def with_overrides(self, **changes) -> "PipelineConfig":
        """Return a copy with some fields replaced."""
        return replace(self, **changes)

    @property
    def view_names(self) -> tuple[str, ...]:
        """Ordered T-pose view names for the configured view count."""
        return T_POSE_VIEW_SETS.get(self.t_pose_views, ())


# =============================================================================
# Logging
# =============================================================================

import logging

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# =============================================================================
# Print Configuration (for debugging)
# =============================================================================


def print_config():
    """Print current configuration for debugging."""
    print(f"""
Photo-to-Pop Configuration
==========================
Caption backend: {CAPTION_BACKEND}
HF token: {"set" if HF_API_TOKEN else "not set"}
Local 3D server: {LOCAL_3D_URL}
Paid 3D service: {"enabled" if ENABLE_PAID_3D else "disabled"}
T-pose views: {T_POSE_VIEWS}
Remote views: {REMOTE_VIEWS}
Variety seed: {VARIETY_SEED}
Provider timeout: {PROVIDER_TIMEOUT_SECONDS}s
Pipeline timeout: {PIPELINE_TIMEOUT_SECONDS or "none"}
Output Dir: {OUTPUT_DIR}
Log Level: {LOG_LEVEL}
""")


if __name__ == "__main__":
    print_config()
