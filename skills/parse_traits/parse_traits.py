"""
Trait Parsing Skill - caption text to a fixed-schema PhotoAnalysis.

Pure keyword matching. Every field has an ordered rule list (first match
wins) and a default, so any caption, including an empty one, yields a
complete record. Gender is never inferred from appearance keywords.

An age stated as a number ("a 70-year-old") is used as is. Otherwise
age, height and weight use the midpoint of their bucket; passing a
variety_seed picks inside the bucket instead, reproducibly per seed.
"""

import logging
import random
import re
from typing import Optional

from models.photo_analysis import EMOTIONS, STYLES, PhotoAnalysis
from models.character import clamp

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.7

# (value, keywords) - evaluated top to bottom, first hit wins
FACE_SHAPE_RULES = [
    ("round", ["round face", "round-faced", "circular face", "chubby cheeks"]),
    ("square", ["square face", "square jaw", "angular", "strong jaw", "chiseled"]),
    ("heart", ["heart-shaped", "heart shaped", "pointed chin"]),
    ("long", ["long face", "elongated", "narrow face"]),
    ("oval", ["oval face", "oval"]),
]

HAIR_COLOR_RULES = [
    ("blonde", ["blonde", "blond", "golden hair", "golden"]),
    ("black", ["black hair", "black-haired", "dark hair", "dark-haired", "ebony"]),
    ("red", ["red hair", "red-haired", "redhead", "ginger", "auburn"]),
    ("gray", ["gray hair", "grey hair", "white hair", "silver hair", "gray-haired", "grey-haired", "white-haired", "silver"]),
    ("brown", ["brown hair", "brown-haired", "brunette", "chestnut"]),
    ("bald", ["bald"]),
]

HAIR_STYLE_RULES = [
    ("bald", ["bald", "shaved head"]),
    ("long", ["long hair", "long-haired", "long", "ponytail", "braid", "braids"]),
    ("curly", ["curly", "curly-haired", "curls"]),
    ("wavy", ["wavy"]),
    ("short", ["short hair", "short-haired", "short", "cropped", "buzz cut"]),
]

EYE_COLOR_RULES = [
    ("blue", ["blue eyes", "blue-eyed"]),
    ("green", ["green eyes", "green-eyed"]),
    ("brown", ["brown eyes", "brown-eyed"]),
    ("hazel", ["hazel"]),
    ("gray", ["gray eyes", "grey eyes"]),
    ("dark", ["dark eyes"]),
]

SKIN_TONE_RULES = [
    ("light", ["pale", "fair", "light skin", "light-skinned", "fair-skinned"]),
    ("dark", ["dark skin", "dark-skinned", "tan", "tanned"]),
    ("medium", ["olive", "bronze"]),
]

EXPRESSION_RULES = [
    ("smiling", ["smile", "smiles", "smiling", "happy", "cheerful", "grin", "grinning", "laughing", "laughs"]),
    ("surprised", ["surprised", "shocked", "astonished"]),
    ("sad", ["sad", "crying", "unhappy", "tearful"]),
    ("angry", ["angry", "furious", "scowling"]),
    ("serious", ["serious", "stern", "frown", "frowning"]),
    ("mysterious", ["mysterious"]),
    ("gentle", ["gentle", "kind", "soft", "warm", "friendly"]),
    ("confident", ["confident", "proud"]),
]

BUILD_RULES = [
    ("muscular", ["muscular", "athletic", "buff", "toned"]),
    ("heavy", ["heavy", "chubby", "stocky", "overweight", "plump", "portly"]),
    ("slim", ["slim", "thin", "slender", "skinny", "petite", "lean"]),
]

GLASSES_KEYWORDS = ["glasses", "eyeglasses", "spectacles", "eyewear", "sunglasses"]
FACIAL_HAIR_KEYWORDS = ["beard", "bearded", "mustache", "moustache", "goatee", "stubble", "whiskers"]

# (bucket, age range, keywords)
AGE_RULES = [
    ("elderly", (65, 85), ["old", "elderly", "senior", "aged", "wrinkled", "grandmother", "grandfather"]),
    ("young", (15, 30), ["young", "teen", "teenager", "teenage", "child", "kid", "baby", "youth"]),
    ("adult", (30, 50), ["middle", "middle-aged", "adult", "mature"]),
]
DEFAULT_AGE = 30

# bucket -> (height range cm, weight range kg)
BODY_RANGES = {
    "elderly": ((165, 180), (60, 80)),
    "young": ((160, 180), (55, 80)),
    "adult": ((165, 190), (60, 90)),
    "default": ((165, 190), (60, 90)),
}

BUILD_WEIGHT_OFFSET = {"slim": -8, "average": 0, "muscular": 6, "heavy": 15}

# Emotion profile per expression; unlisted emotions score 0
EMOTION_PROFILES = {
    "smiling":    {"happy": 80, "surprised": 10, "neutral": 10},
    "surprised":  {"surprised": 70, "happy": 20, "fearful": 10},
    "sad":        {"sad": 70, "neutral": 20, "fearful": 10},
    "angry":      {"angry": 70, "disgusted": 15, "neutral": 15},
    "serious":    {"neutral": 60, "angry": 20, "sad": 10},
    "mysterious": {"neutral": 50, "surprised": 20, "fearful": 10},
    "gentle":     {"happy": 50, "neutral": 40},
    "confident":  {"neutral": 50, "happy": 40},
}

EMOTION_BUMPS = [
    ("fearful", 30, ["scared", "afraid", "nervous", "worried", "frightened"]),
    ("disgusted", 30, ["disgusted", "grimacing"]),
    ("happy", 15, ["laughing", "joyful", "beaming"]),
    ("surprised", 15, ["wide-eyed", "open mouth"]),
]

STYLE_BASELINE = {"casual": 50, "formal": 20, "artistic": 30, "sporty": 20}

STYLE_BUMPS = [
    ("formal", 50, ["suit", "tie", "blazer", "formal", "business", "office", "dress shirt", "tuxedo"]),
    ("artistic", 50, ["artist", "painting", "paint", "colorful", "tattoo", "tattoos", "guitar", "creative", "art", "studio", "scarf"]),
    ("sporty", 50, ["sports", "jersey", "athletic", "gym", "running", "basketball", "soccer", "tennis", "bike", "cap"]),
    ("casual", 20, ["t-shirt", "shirt", "jeans", "sweater", "hoodie", "casual"]),
]

# "a 70-year-old", "5 years old": the stated number wins over keywords
_YEARS_OLD = re.compile(r"\b(?:(\d{1,3})[- ])?years?[- ]old\b")
MIN_AGE, MAX_AGE = 1, 110

_pattern_cache: dict[tuple[str, ...], re.Pattern] = {}


def _pattern(keywords: list[str]) -> re.Pattern:
    key = tuple(keywords)
    if key not in _pattern_cache:
        alternatives = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
        _pattern_cache[key] = re.compile(rf"(?<![\w-])(?:{alternatives})(?![\w-])")
    return _pattern_cache[key]


def has_any(text: str, keywords: list[str]) -> bool:
    """Whole-word (or whole-phrase) match of any keyword."""
    return bool(_pattern(keywords).search(text))


def match_rules(text: str, rules: list[tuple[str, list[str]]], default: str) -> str:
    for value, keywords in rules:
        if has_any(text, keywords):
            return value
    return default


def stated_age(text: str) -> Optional[int]:
    """Age written as a number ("a 70-year-old man"), clamped; None if absent."""
    match = _YEARS_OLD.search(text)
    if not match or not match.group(1):
        return None
    return max(MIN_AGE, min(MAX_AGE, int(match.group(1))))


def bucket_for_age(age: int) -> str:
    if age >= 65:
        return "elderly"
    if age < 30:
        return "young"
    return "adult"


def _age_bucket(text: str) -> tuple[str, Optional[tuple[int, int]]]:
    # The bare phrase "year old" must not trigger the "old" keyword
    cleaned = _YEARS_OLD.sub(" ", text)
    for bucket, age_range, keywords in AGE_RULES:
        if has_any(cleaned, keywords):
            return bucket, age_range
    return "default", None


def _midpoint(value_range: tuple[int, int]) -> int:
    return (value_range[0] + value_range[1]) // 2


def _pick(value_range: tuple[int, int], rng: Optional[random.Random]) -> int:
    if rng is None:
        return _midpoint(value_range)
    return rng.randint(value_range[0], value_range[1])


def parse_emotions(text: str, expression: str) -> dict[str, float]:
    """Emotion scores from the expression profile plus keyword bumps."""
    scores = {e: 0.0 for e in EMOTIONS}
    scores.update({k: float(v) for k, v in EMOTION_PROFILES.get(expression, EMOTION_PROFILES["confident"]).items()})
    for emotion, bump, keywords in EMOTION_BUMPS:
        if has_any(text, keywords):
            scores[emotion] = clamp(scores[emotion] + bump)
    return scores


def dominant_emotion(scores: dict[str, float]) -> str:
    """Highest score; ties resolve in EMOTIONS order."""
    return max(EMOTIONS, key=lambda e: (scores.get(e, 0.0), -EMOTIONS.index(e)))


def parse_style_scores(text: str) -> dict[str, float]:
    scores = {s: float(STYLE_BASELINE[s]) for s in STYLES}
    for style, bump, keywords in STYLE_BUMPS:
        if has_any(text, keywords):
            scores[style] = clamp(scores[style] + bump)
    return scores


def parse_caption(caption: Optional[str], variety_seed: Optional[int] = None) -> PhotoAnalysis:
    """
    Parse a caption into a PhotoAnalysis.

    Never raises. An empty or unrecognised caption yields the defaults.

    Args:
        caption: free text from the captioning model
        variety_seed: when set, age/height/weight are drawn inside their
            bucket with random.Random(variety_seed) instead of the midpoint

    Returns:
        A complete PhotoAnalysis
    """
    text = (caption or "").lower().strip()
    rng = random.Random(variety_seed) if variety_seed is not None else None

    age = stated_age(text)
    if age is not None:
        bucket = bucket_for_age(age)
    else:
        bucket, age_range = _age_bucket(text)
        age = _pick(age_range, rng) if age_range else DEFAULT_AGE

    build = match_rules(text, BUILD_RULES, "average")
    height_range, weight_range = BODY_RANGES[bucket]
    height = _pick(height_range, rng)
    weight = _pick(weight_range, rng) + BUILD_WEIGHT_OFFSET[build]

    expression = match_rules(text, EXPRESSION_RULES, "confident")
    emotions = parse_emotions(text, expression)

    analysis = PhotoAnalysis(
        face_shape=match_rules(text, FACE_SHAPE_RULES, "round"),
        eye_color=match_rules(text, EYE_COLOR_RULES, "#4169E1"),
        hair_color=match_rules(text, HAIR_COLOR_RULES, "#8B4513"),
        hair_style=match_rules(text, HAIR_STYLE_RULES, "short"),
        skin_tone=match_rules(text, SKIN_TONE_RULES, "medium"),
        expression=expression,
        dominant_emotion=dominant_emotion(emotions),
        gender="unknown",
        age=age,
        height=height,
        weight=weight,
        build=build,
        glasses=has_any(text, GLASSES_KEYWORDS),
        facial_hair=has_any(text, FACIAL_HAIR_KEYWORDS),
        confidence=DEFAULT_CONFIDENCE,
        emotions=emotions,
        style_scores=parse_style_scores(text),
        caption=caption or "",
    )

    logger.debug(
        f"[TraitParser] age={analysis.age} ({bucket}) hair={analysis.hair_color}/{analysis.hair_style} "
        f"expression={analysis.expression} build={analysis.build}"
    )
    return analysis


class TraitParser:
    """Thin wrapper holding the optional variety seed."""

    def __init__(self, variety_seed: Optional[int] = None):
        self.variety_seed = variety_seed

    def parse(self, caption: Optional[str]) -> PhotoAnalysis:
        return parse_caption(caption, self.variety_seed)
