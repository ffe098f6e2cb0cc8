"""
Skills - Composable stages of the photo-to-character pipeline.

Each skill is a directory containing:
- SKILL.md: Metadata with YAML frontmatter + detailed instructions
- skill_name.py: Implementation
"""

from pathlib import Path

# Skill directories
SKILLS_DIR = Path(__file__).parent

from .errors import (
    PipelineError,
    ProviderUnavailable,
    MalformedResponse,
    ProviderDisabled,
    ExhaustedProviders,
    PipelineFailed,
)
from .describe_photo.describe_photo import PhotoDescriber
from .parse_traits.parse_traits import TraitParser, parse_caption
from .derive_traits.derive_traits import DerivedTraits, derive_traits
from .generate_character.providers import (
    GenerationProvider,
    GenerationRequest,
    LocalFreeServerProvider,
    PaidRemoteServiceProvider,
    TextToImageProvider,
)
from .generate_character.provider_chain import ProviderChain, ProviderOutcome, build_default_chain
from .render_fallback.render_fallback import ProceduralRenderer
from .create_character.create_character import CharacterPipeline

__all__ = [
    # Errors
    "PipelineError",
    "ProviderUnavailable",
    "MalformedResponse",
    "ProviderDisabled",
    "ExhaustedProviders",
    "PipelineFailed",
    # Stages
    "PhotoDescriber",
    "TraitParser",
    "parse_caption",
    "DerivedTraits",
    "derive_traits",
    "GenerationProvider",
    "GenerationRequest",
    "LocalFreeServerProvider",
    "PaidRemoteServiceProvider",
    "TextToImageProvider",
    "ProviderChain",
    "ProviderOutcome",
    "build_default_chain",
    "ProceduralRenderer",
    "CharacterPipeline",
    "SKILLS_DIR",
    "list_skills",
    "read_skill_metadata",
]


def read_skill_metadata(skill_md: Path) -> dict:
    """
    Parse the YAML frontmatter block at the top of a SKILL.md.

    Raises ValueError when the block is missing or is not valid YAML.
    """
    import yaml

    content = skill_md.read_text()
    end = content.find("---", 3) if content.startswith("---") else -1
    if end < 0:
        raise ValueError(f"{skill_md} has no YAML frontmatter")
    try:
        metadata = yaml.safe_load(content[3:end].strip()) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid SKILL.md frontmatter in {skill_md.parent.name}: {e}") from e
    return metadata


def list_skills() -> list[dict]:
    """Metadata of every pipeline skill, sorted by directory name."""
    skills = []
    for skill_md in sorted(SKILLS_DIR.glob("*/SKILL.md")):
        metadata = read_skill_metadata(skill_md)
        skills.append({
            "name": metadata.get("name", skill_md.parent.name),
            "description": metadata.get("description", ""),
            "triggers": metadata.get("triggers", []),
            "keywords": metadata.get("keywords", []),
            "path": str(skill_md.parent),
        })
    return skills
