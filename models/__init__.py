"""
Data models for Photo-to-Pop.

These models are the records passed between pipeline stages:
- PhotoAnalysis (caption -> structured traits)
- Personality, GameCriteria, GameCharacter (derived traits)
- GenerationResult, PipelineEvent (pipeline output)
"""

from .photo_analysis import PhotoAnalysis, EMOTIONS, STYLES
from .character import (
    CharacterClass,
    CharacterStats,
    GameAttributes,
    GameCharacter,
    GameCriteria,
    Personality,
    clamp,
)
from .result import (
    PROCEDURAL_FALLBACK,
    GeneratedAsset,
    GenerationResult,
    PipelineEvent,
    ProviderAttempt,
    to_data_url,
)

__all__ = [
    "PhotoAnalysis",
    "EMOTIONS",
    "STYLES",
    "CharacterClass",
    "CharacterStats",
    "GameAttributes",
    "GameCharacter",
    "GameCriteria",
    "Personality",
    "clamp",
    "PROCEDURAL_FALLBACK",
    "GeneratedAsset",
    "GenerationResult",
    "PipelineEvent",
    "ProviderAttempt",
    "to_data_url",
]
