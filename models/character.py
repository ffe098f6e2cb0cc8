"""
Character model - personality, game criteria and the RPG character sheet.

Everything here is derived from a PhotoAnalysis by the derive_traits skill.
Scores are clamped on construction so no record can hold an out-of-range value.
"""

from dataclasses import dataclass, field
from enum import Enum
import uuid


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp a score into [low, high]."""
    return max(low, min(high, value))


class CharacterClass(str, Enum):
    """The fixed set of character classes."""

    WARRIOR = "Warrior"
    MAGE = "Mage"
    HEALER = "Healer"
    ROGUE = "Rogue"
    EXPLORER = "Explorer"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Personality:
    """Four personality scores, each in [0, 100]."""

    energy: float
    friendliness: float
    creativity: float
    confidence: float

    def __post_init__(self):
        for name in ("energy", "friendliness", "creativity", "confidence"):
            object.__setattr__(self, name, round(clamp(float(getattr(self, name))), 2))

    def to_dict(self) -> dict:
        return {
            "energy": self.energy,
            "friendliness": self.friendliness,
            "creativity": self.creativity,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Personality":
        return cls(
            energy=data.get("energy", 50),
            friendliness=data.get("friendliness", 50),
            creativity=data.get("creativity", 50),
            confidence=data.get("confidence", 50),
        )


@dataclass(frozen=True)
class GameAttributes:
    """Gameplay potentials, each in [0, 100]."""

    health_potential: float
    social_skills: float
    learning_ability: float
    adaptability: float

    def __post_init__(self):
        for name in ("health_potential", "social_skills", "learning_ability", "adaptability"):
            object.__setattr__(self, name, round(clamp(float(getattr(self, name))), 2))

    def to_dict(self) -> dict:
        return {
            "health_potential": self.health_potential,
            "social_skills": self.social_skills,
            "learning_ability": self.learning_ability,
            "adaptability": self.adaptability,
        }


@dataclass(frozen=True)
class GameCriteria:
    """Class, attributes and abilities derived from analysis + personality."""

    character_class: CharacterClass
    game_attributes: GameAttributes
    special_abilities: frozenset[str]

    def __post_init__(self):
        if not isinstance(self.character_class, CharacterClass):
            object.__setattr__(self, "character_class", CharacterClass(self.character_class))
        if not self.special_abilities:
            raise ValueError("special_abilities must never be empty")
        object.__setattr__(self, "special_abilities", frozenset(self.special_abilities))

    def to_dict(self) -> dict:
        return {
            "character_class": self.character_class.value,
            "game_attributes": self.game_attributes.to_dict(),
            "special_abilities": sorted(self.special_abilities),
        }


STAT_NAMES = ("strength", "agility", "intelligence", "wisdom", "charisma", "constitution")
STAT_MIN = 20
STAT_MAX = 100


@dataclass(frozen=True)
class CharacterStats:
    """RPG stats, each in [20, 100]."""

    strength: int = 50
    agility: int = 50
    intelligence: int = 50
    wisdom: int = 50
    charisma: int = 50
    constitution: int = 50

    def __post_init__(self):
        for name in STAT_NAMES:
            object.__setattr__(self, name, int(round(clamp(getattr(self, name), STAT_MIN, STAT_MAX))))

    @property
    def total(self) -> int:
        return sum(getattr(self, name) for name in STAT_NAMES)

    def to_dict(self) -> dict:
        data = {name: getattr(self, name) for name in STAT_NAMES}
        data["total"] = self.total
        return data


@dataclass(frozen=True)
class GameCharacter:
    """
    A level-1 RPG character sheet built from the photo.

    Progression beyond the first level belongs to the surrounding game,
    so every sheet starts as a "Newcomer".
    """

    name: str
    character_class: CharacterClass
    stats: CharacterStats
    equipment: tuple[str, ...] = ()
    level: int = 1
    title: str = "Newcomer"
    experience: int = 0
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])

    def __post_init__(self):
        if not self.name:
            raise ValueError("GameCharacter must have a name")

    def to_dict(self) -> dict:
        """Serialize character sheet to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "character_class": self.character_class.value,
            "level": self.level,
            "title": self.title,
            "experience": self.experience,
            "stats": self.stats.to_dict(),
            "equipment": list(self.equipment),
        }
