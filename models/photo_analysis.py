"""
PhotoAnalysis model - the structured trait record parsed from a photo caption.

Produced once per photo and never mutated afterwards. User-supplied
age/height/weight/gender replace parsed values through with_overrides().
"""

from dataclasses import dataclass, field, fields, replace
from typing import Literal, Optional

EMOTIONS = ("happy", "sad", "angry", "surprised", "fearful", "disgusted", "neutral")
STYLES = ("casual", "formal", "artistic", "sporty")

Build = Literal["slim", "average", "muscular", "heavy"]


@dataclass(frozen=True)
class PhotoAnalysis:
    """
    Fixed-schema appearance record.

    Colors are either a named color ("blonde", "black") or a hex string.
    Emotion and style scores are 0-100.
    """

    face_shape: str = "round"
    eye_color: str = "#4169E1"
    hair_color: str = "#8B4513"
    hair_style: str = "short"
    skin_tone: str = "medium"
    expression: str = "confident"
    dominant_emotion: str = "neutral"
    gender: str = "unknown"
    age: int = 30
    height: int = 175
    weight: int = 70
    build: Build = "average"
    glasses: bool = False
    facial_hair: bool = False
    confidence: float = 0.7
    emotions: dict[str, float] = field(default_factory=dict)
    style_scores: dict[str, float] = field(default_factory=dict)
    caption: str = ""

    def __post_init__(self):
        # Fill every known score so lookups never miss
        object.__setattr__(self, "emotions", {e: float(self.emotions.get(e, 0.0)) for e in EMOTIONS})
        object.__setattr__(self, "style_scores", {s: float(self.style_scores.get(s, 0.0)) for s in STYLES})

    def emotion(self, name: str) -> float:
        return self.emotions.get(name, 0.0)

    @property
    def dominant_style(self) -> str:
        """Highest style score; ties resolve in STYLES order."""
        return max(STYLES, key=lambda s: (self.style_scores[s], -STYLES.index(s)))

    def with_overrides(
        self,
        age: Optional[int] = None,
        height: Optional[int] = None,
        weight: Optional[int] = None,
        gender: Optional[str] = None,
    ) -> "PhotoAnalysis":
        """Return a copy where explicit user input replaces parsed values."""
        changes = {}
        if age is not None:
            changes["age"] = int(age)
        if height is not None:
            changes["height"] = int(height)
        if weight is not None:
            changes["weight"] = int(weight)
        if gender:
            changes["gender"] = gender
        return replace(self, **changes) if changes else self

    def to_dict(self) -> dict:
        """Serialize analysis to dictionary."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["emotions"] = dict(self.emotions)
        data["style_scores"] = dict(self.style_scores)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "PhotoAnalysis":
        """Deserialize analysis from dictionary, ignoring unknown keys."""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)
