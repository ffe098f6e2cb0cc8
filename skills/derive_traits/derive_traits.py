"""
Trait Derivation Skill - PhotoAnalysis to personality, game criteria and prompt.

Pure numeric mapping with clamping, a fixed-order class decision tree,
threshold-based abilities, and deterministic prompt assembly. Nothing in
this module touches the network or raises on valid input.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from agent.prompts import Prompts
from models.character import (
    CharacterClass,
    CharacterStats,
    GameAttributes,
    GameCharacter,
    GameCriteria,
    Personality,
    clamp,
)
from models.photo_analysis import PhotoAnalysis

logger = logging.getLogger(__name__)

DEFAULT_ABILITY = "Balanced Mind"
DEFAULT_NAME = "Pop Hero"

CLASS_EQUIPMENT = {
    CharacterClass.WARRIOR: ("sword", "shield", "armor"),
    CharacterClass.MAGE: ("staff", "spellbook", "robes"),
    CharacterClass.HEALER: ("mace", "holy symbol", "chainmail"),
    CharacterClass.ROGUE: ("daggers", "lockpicks", "cloak"),
    CharacterClass.EXPLORER: ("bow", "arrows", "hunting knife"),
}

ACCESSORIES_BY_STYLE = {
    "casual": ("hat", "watch", "bracelet"),
    "formal": ("glasses", "watch", "tie"),
    "artistic": ("glasses", "earrings", "necklace"),
    "sporty": ("hat", "watch", "headband"),
}
DEFAULT_ACCESSORIES = ("glasses", "watch")

SPECIAL_FEATURES_BY_EMOTION = {
    "happy": ("sparkly eyes", "dimples", "bright smile"),
    "sad": ("expressive eyes", "gentle features"),
    "angry": ("strong eyebrows", "determined look"),
    "surprised": ("wide eyes", "expressive eyebrows"),
    "fearful": ("gentle eyes", "soft features"),
    "disgusted": ("distinctive nose", "strong features"),
    "neutral": ("balanced features", "calm expression"),
}
DEFAULT_SPECIAL_FEATURES = ("unique smile", "expressive eyes")

# Hex defaults read better as words inside a prompt
COLOR_WORDS = {
    "#8b4513": "brown",
    "#4169e1": "blue",
}


# =============================================================================
# Personality & game criteria
# =============================================================================


def derive_personality(analysis: PhotoAnalysis) -> Personality:
    """Personality scores from emotion and style scores."""
    happy = analysis.emotion("happy")
    surprised = analysis.emotion("surprised")
    fearful = analysis.emotion("fearful")
    angry = analysis.emotion("angry")
    neutral = analysis.emotion("neutral")
    artistic = analysis.style_scores.get("artistic", 0.0)

    return Personality(
        energy=clamp(happy + surprised + 0.5 * fearful),
        friendliness=clamp(happy + (100 - angry) + 0.3 * neutral),
        creativity=clamp(artistic + 0.4 * surprised),
        confidence=clamp(neutral + happy + (100 - fearful)),
    )


def derive_game_attributes(analysis: PhotoAnalysis, personality: Personality) -> GameAttributes:
    happy = analysis.emotion("happy")
    surprised = analysis.emotion("surprised")
    return GameAttributes(
        health_potential=clamp(50 + 0.3 * happy + 0.2 * surprised),
        social_skills=clamp((personality.friendliness + personality.confidence) / 2),
        learning_ability=clamp(
            0.6 * personality.creativity + 0.4 * personality.confidence + (10 if analysis.glasses else 0)
        ),
        adaptability=clamp((personality.energy + personality.creativity) / 2 + 0.2 * surprised),
    )


def select_character_class(personality: Personality) -> CharacterClass:
    """Fixed-order decision tree; the first matching branch wins."""
    p = personality
    if p.energy > 70 and p.confidence > 70:
        return CharacterClass.WARRIOR
    if p.creativity > 70 and p.friendliness > 70:
        return CharacterClass.MAGE
    if p.friendliness > 70 and p.energy > 60:
        return CharacterClass.HEALER
    if p.confidence > 70 and p.creativity > 60:
        return CharacterClass.ROGUE
    return CharacterClass.EXPLORER


def derive_special_abilities(analysis: PhotoAnalysis, personality: Personality) -> frozenset[str]:
    """Independent threshold tests. Never empty."""
    abilities = set()
    if personality.energy > 70:
        abilities.add("Energy Boost")
    if personality.friendliness > 70:
        abilities.add("Team Spirit")
    if personality.creativity > 70:
        abilities.add("Creative Spark")
    if personality.confidence > 70:
        abilities.add("Leadership Aura")
    if analysis.emotion("happy") > 60:
        abilities.add("Positive Vibes")
    if analysis.emotion("surprised") > 50:
        abilities.add("Quick Reflexes")
    if analysis.glasses:
        abilities.add("Keen Insight")
    return frozenset(abilities or {DEFAULT_ABILITY})


def derive_game_criteria(analysis: PhotoAnalysis, personality: Personality) -> GameCriteria:
    return GameCriteria(
        character_class=select_character_class(personality),
        game_attributes=derive_game_attributes(analysis, personality),
        special_abilities=derive_special_abilities(analysis, personality),
    )


# =============================================================================
# Descriptive extras
# =============================================================================


def accessories_for_style(analysis: PhotoAnalysis) -> tuple[str, ...]:
    return ACCESSORIES_BY_STYLE.get(analysis.dominant_style, DEFAULT_ACCESSORIES)


def special_features_for_emotion(analysis: PhotoAnalysis) -> tuple[str, ...]:
    return SPECIAL_FEATURES_BY_EMOTION.get(analysis.dominant_emotion, DEFAULT_SPECIAL_FEATURES)


def describe_personality(personality: Personality) -> str:
    """Short personality phrase from 70/30 thresholds."""
    words = []
    for score, high, low in (
        (personality.energy, "energetic", "calm"),
        (personality.friendliness, "friendly", "reserved"),
        (personality.creativity, "creative", "practical"),
        (personality.confidence, "confident", "shy"),
    ):
        if score > 70:
            words.append(high)
        elif score < 30:
            words.append(low)
    return ", ".join(words) if words else "balanced"


def describe_age(age: int) -> str:
    if age < 18:
        return "young teenager"
    if age < 30:
        return "young adult"
    if age < 50:
        return "mature adult"
    return "experienced adult"


def color_word(color: str) -> str:
    return COLOR_WORDS.get(color.lower(), color)


# =============================================================================
# RPG character sheet
# =============================================================================

CLASS_STAT_BONUS = {
    CharacterClass.WARRIOR: {"strength": 10, "constitution": 5},
    CharacterClass.MAGE: {"intelligence": 10, "wisdom": 5},
    CharacterClass.HEALER: {"wisdom": 10, "charisma": 5},
    CharacterClass.ROGUE: {"agility": 10, "intelligence": 5},
    CharacterClass.EXPLORER: {"agility": 5, "constitution": 5},
}

EXPRESSION_STAT_BONUS = {
    "smiling": {"charisma": 15},
    "gentle": {"charisma": 10, "wisdom": 5},
    "confident": {"charisma": 10, "strength": 5},
    "serious": {"wisdom": 10},
    "mysterious": {"intelligence": 5, "agility": 5},
}

BUILD_STAT_BONUS = {
    "muscular": {"strength": 15, "constitution": 10},
    "slim": {"agility": 15, "strength": -5},
    "heavy": {"constitution": 15, "strength": 5, "agility": -10},
}

FACE_STAT_BONUS = {
    "square": {"strength": 5},
    "heart": {"charisma": 5},
    "oval": {"charisma": 5},
    "long": {"wisdom": 5},
}


def derive_stats(analysis: PhotoAnalysis, character_class: CharacterClass) -> CharacterStats:
    """Base 50 per stat, adjusted by appearance and class, clamped to [20, 100]."""
    stats = {name: 50 for name in ("strength", "agility", "intelligence", "wisdom", "charisma", "constitution")}

    def apply(bonus: dict):
        for name, delta in bonus.items():
            stats[name] += delta

    if analysis.age < 25:
        apply({"agility": 10, "constitution": 5, "wisdom": -5})
    elif analysis.age > 50:
        apply({"wisdom": 15, "intelligence": 5, "agility": -10, "strength": -5})

    if analysis.height > 180:
        apply({"strength": 5})
    elif analysis.height < 165:
        apply({"agility": 5})

    if analysis.glasses:
        apply({"intelligence": 10})
    if analysis.facial_hair:
        apply({"wisdom": 5, "charisma": 5})

    apply(BUILD_STAT_BONUS.get(analysis.build, {}))
    apply(EXPRESSION_STAT_BONUS.get(analysis.expression, {}))
    apply(FACE_STAT_BONUS.get(analysis.face_shape, {}))
    apply(CLASS_STAT_BONUS[character_class])

    return CharacterStats(**stats)


def build_game_character(
    analysis: PhotoAnalysis,
    character_class: CharacterClass,
    name: Optional[str] = None,
) -> GameCharacter:
    return GameCharacter(
        name=name or DEFAULT_NAME,
        character_class=character_class,
        stats=derive_stats(analysis, character_class),
        equipment=CLASS_EQUIPMENT[character_class],
    )


# =============================================================================
# Prompt assembly
# =============================================================================


def trait_phrases(analysis: PhotoAnalysis) -> list[str]:
    """Appearance phrases shared by the main prompt and the view prompts."""
    phrases = [f"{describe_age(analysis.age)} character"]
    if analysis.hair_style == "bald" or analysis.hair_color == "bald":
        phrases.append("bald head")
    else:
        phrases.append(f"{color_word(analysis.hair_color)} {analysis.hair_style} hair")
    phrases.append(f"{color_word(analysis.eye_color)} eyes")
    phrases.append(f"{analysis.skin_tone} skin tone")
    phrases.append(f"{analysis.face_shape} face")
    phrases.append(f"{analysis.build} build")
    if analysis.glasses:
        phrases.append("wearing glasses")
    if analysis.facial_hair:
        phrases.append("with facial hair")
    return phrases


def build_prompt(
    analysis: PhotoAnalysis,
    personality: Personality,
    criteria: GameCriteria,
    style: str = "rpg",
) -> str:
    """
    Assemble the generation prompt.

    Order: style template, appearance, expression and personality, class
    outfit, then the fixed composition block.
    """
    template = Prompts.STYLE_TEMPLATES.get(style, Prompts.STYLE_TEMPLATES["rpg"])
    equipment = ", ".join(CLASS_EQUIPMENT[criteria.character_class])
    parts = [template]
    parts.extend(trait_phrases(analysis))
    parts.append(f"{analysis.expression} expression")
    parts.append(f"{describe_personality(personality)} personality")
    parts.append(f"{criteria.character_class.value.lower()} class outfit with {equipment}")
    parts.append(Prompts.COMPOSITION_CONSTRAINTS)
    return ", ".join(parts)


def build_view_prompt(analysis: PhotoAnalysis, view: str, style: str = "rpg") -> str:
    template = Prompts.STYLE_TEMPLATES.get(style, Prompts.STYLE_TEMPLATES["rpg"])
    direction = Prompts.VIEW_DIRECTIONS.get(view, f"{view} view")
    return ", ".join([template, *trait_phrases(analysis), Prompts.T_POSE_BASE, direction, "single character only"])


# =============================================================================
# Bundle
# =============================================================================


@dataclass(frozen=True)
class DerivedTraits:
    """Everything the generation stage needs, derived in one pass."""

    analysis: PhotoAnalysis
    personality: Personality
    game_criteria: GameCriteria
    game_character: GameCharacter
    accessories: tuple[str, ...]
    special_features: tuple[str, ...]
    personality_description: str
    prompt: str
    style: str = "rpg"
    negative_prompt: str = Prompts.NEGATIVE_PROMPT
    view_prompts: dict = field(default_factory=dict)

    @property
    def character_class(self) -> CharacterClass:
        return self.game_criteria.character_class

    def characteristics(self) -> dict:
        """Flat dictionary for the result object and the procedural renderer."""
        data = self.analysis.to_dict()
        data.update({
            "personality": self.personality.to_dict(),
            "friendliness": self.personality.friendliness,
            "character_class": self.character_class.value,
            "accessories": list(self.accessories),
            "special_features": list(self.special_features),
            "personality_description": self.personality_description,
            "style": self.style,
        })
        return data


def derive_traits(
    analysis: PhotoAnalysis,
    overrides: Optional[dict] = None,
    name: Optional[str] = None,
    style: str = "rpg",
    views: tuple[str, ...] = (),
) -> DerivedTraits:
    """
    Derive personality, criteria, character sheet and prompts.

    Args:
        analysis: parsed traits
        overrides: optional user input (age, height, weight, gender) that
            takes precedence over parsed values
        name: character name for the RPG sheet
        style: one of Prompts.STYLE_TEMPLATES
        views: T-pose view names to build prompts for

    Returns:
        DerivedTraits bundle
    """
    if overrides:
        analysis = analysis.with_overrides(
            age=overrides.get("age"),
            height=overrides.get("height"),
            weight=overrides.get("weight"),
            gender=overrides.get("gender"),
        )

    personality = derive_personality(analysis)
    criteria = derive_game_criteria(analysis, personality)
    character = build_game_character(analysis, criteria.character_class, name)

    logger.info(
        f"[TraitDeriver] class={criteria.character_class.value} "
        f"energy={personality.energy} friendliness={personality.friendliness} "
        f"creativity={personality.creativity} confidence={personality.confidence}"
    )

    return DerivedTraits(
        analysis=analysis,
        personality=personality,
        game_criteria=criteria,
        game_character=character,
        accessories=accessories_for_style(analysis),
        special_features=special_features_for_emotion(analysis),
        personality_description=describe_personality(personality),
        prompt=build_prompt(analysis, personality, criteria, style),
        style=style,
        view_prompts={view: build_view_prompt(analysis, view, style) for view in views},
    )
