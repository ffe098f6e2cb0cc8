"""
API Server for Photo-to-Pop.

This FastAPI server provides:
1. /api/create-character - run the pipeline on an uploaded photo, JSON result
2. /api/create-character-stream - same, streaming stage events as SSE
3. /api/skills and /health for introspection

Run with: uvicorn ui.api_server:app --reload --port 8000
"""

import json
import logging
import os
import time
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, UploadFile, File, Form
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import PipelineConfig, LOG_LEVEL
from skills import list_skills
from skills.create_character.create_character import CharacterPipeline
from skills.errors import PipelineFailed

# =============================================================================
# Setup Logging - File + Console
# =============================================================================

LOGS_DIR = Path(__file__).parent.parent / "logs"
LOGS_DIR.mkdir(exist_ok=True)

_session_start = time.strftime("%Y%m%d_%H%M%S")
_log_file = LOGS_DIR / f"server_{_session_start}.log"

# force=True overrides the handlers config.py installed (uvicorn issue)
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.FileHandler(_log_file, mode='a'),
        logging.StreamHandler()
    ],
    force=True
)
logger = logging.getLogger("api_server")
logger.info(f"Server session started. Log file: {_log_file}")

app = FastAPI(
    title="Photo-to-Pop API",
    description="Turn a photo into a pop-style RPG character",
    version="0.1.0",
)

# CORS middleware for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp', '.gif'}
MAX_IMAGE_SIZE = 10 * 1024 * 1024  # 10MB

_pipeline: Optional[CharacterPipeline] = None


def get_pipeline() -> CharacterPipeline:
    """Lazily build the shared pipeline from the environment."""
    global _pipeline
    if _pipeline is None:
        _pipeline = CharacterPipeline(PipelineConfig.from_env())
    return _pipeline


def set_pipeline(pipeline: Optional[CharacterPipeline]):
    """Swap the shared pipeline (tests inject one with fake providers)."""
    global _pipeline
    _pipeline = pipeline


# =============================================================================
# Request/Response Models
# =============================================================================

class CharacterOverrides(BaseModel):
    """Explicit user input; always wins over values parsed from the photo."""
    age: Optional[int] = None
    height: Optional[int] = None
    weight: Optional[int] = None
    gender: Optional[str] = None

    def to_overrides(self) -> dict:
        return {k: v for k, v in self.model_dump().items() if v is not None}


async def _read_photo(file: UploadFile) -> bytes:
    ext = Path(file.filename).suffix.lower() if file.filename else ""
    if ext and ext not in IMAGE_EXTENSIONS:
        raise HTTPException(status_code=400, detail=f"Unsupported file type: {ext}")

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Empty photo")
    if len(content) > MAX_IMAGE_SIZE:
        raise HTTPException(
            status_code=413,
            detail=f"File too large: {len(content)} bytes (max: {MAX_IMAGE_SIZE})"
        )
    return content


# =============================================================================
# Endpoints
# =============================================================================


@app.get("/health")
async def health():
    """Health check endpoint."""
    pipeline = get_pipeline()
    return {"status": "healthy", "providers": pipeline.chain.names}


@app.get("/api/skills")
async def skills():
    """List pipeline skills from their SKILL.md metadata."""
    return {"skills": list_skills()}


@app.post("/api/create-character")
async def create_character(
    file: UploadFile = File(...),
    name: str = Form(default=""),
    style: str = Form(default=""),
    age: Optional[int] = Form(default=None),
    height: Optional[int] = Form(default=None),
    weight: Optional[int] = Form(default=None),
    gender: Optional[str] = Form(default=None),
    include_images: bool = Form(default=True),
    save: bool = Form(default=False),
):
    """Run the whole pipeline and return the result as JSON."""
    content = await _read_photo(file)
    overrides = CharacterOverrides(age=age, height=height, weight=weight, gender=gender)

    logger.info(f"Creating character from {file.filename} ({len(content)} bytes)")
    pipeline = get_pipeline()
    try:
        result = await pipeline.create_character(
            content,
            overrides=overrides.to_overrides(),
            name=name or None,
            style=style or None,
        )
    except PipelineFailed as e:
        logger.error(f"Pipeline failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    data = result.to_dict(include_images=include_images)
    if save:
        data["saved_to"] = str(result.save(pipeline.config.output_dir))
    return data


@app.post("/api/create-character-stream")
async def create_character_stream(
    file: UploadFile = File(...),
    name: str = Form(default=""),
    style: str = Form(default=""),
    age: Optional[int] = Form(default=None),
    height: Optional[int] = Form(default=None),
    weight: Optional[int] = Form(default=None),
    gender: Optional[str] = Form(default=None),
):
    """
    Streaming character creation using Server-Sent Events.

    One event per pipeline stage; the final 'done' event carries the
    serialized result, 'failed' carries the error.
    """
    content = await _read_photo(file)
    overrides = CharacterOverrides(age=age, height=height, weight=weight, gender=gender)
    pipeline = get_pipeline()

    async def stream_events():
        """Generator that yields SSE events as the pipeline advances."""
        async for event in pipeline.create_character_streaming(
            content,
            overrides=overrides.to_overrides(),
            name=name or None,
            style=style or None,
        ):
            payload = event.to_dict()
            if event.stage == "done":
                payload["result"] = event.data["result"].to_dict(include_images=True)
            yield f"data: {json.dumps(payload)}\n\n"

    return StreamingResponse(
        stream_events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


# =============================================================================
# Main
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    print("\n" + "=" * 60)
    print("Photo-to-Pop API Server")
    print("=" * 60)
    print(f"API Docs: http://localhost:8000/docs")
    print("=" * 60 + "\n")

    is_production = os.getenv("PHOTO_TO_POP_ENV") == "production"
    uvicorn.run(
        "api_server:app",
        host="0.0.0.0",
        port=8000,
        reload=not is_production,
        workers=2 if is_production else 1,
    )
