"""
Procedural Fallback Skill - draw a character with Pillow, no network.

Last resort when every generation provider failed, and the preview
renderer for 3D winners and T-pose views. One fixed topology (head, hair,
eyes, mouth, body, T-pose arms, legs, shoes) on a fixed 512x512 canvas;
colors and shapes come only from the characteristics dict.

Output is pixel-deterministic: the same characteristics always produce
byte-identical PNGs.
"""

import io
import logging
from typing import Iterable, Optional

from PIL import Image, ImageColor, ImageDraw

logger = logging.getLogger(__name__)

CANVAS_SIZE = 512
BACKGROUND_TOP = "#E8F4FD"
BACKGROUND_BOTTOM = "#F0F8FF"

VIEWS = ("front", "back", "left", "right", "top", "bottom")

HAIR_COLORS = {
    "blonde": "#F4D03F",
    "black": "#2C2C2C",
    "red": "#B5472D",
    "gray": "#A9A9A9",
    "brown": "#8B4513",
}
DEFAULT_HAIR = "#8B4513"

EYE_COLORS = {
    "blue": "#4169E1",
    "green": "#2E8B57",
    "brown": "#6B3E26",
    "hazel": "#8E7618",
    "gray": "#708090",
    "dark": "#3B2F2F",
}
DEFAULT_EYE = "#4169E1"

SKIN_TONES = {
    "light": "#FFDBB5",
    "medium": "#E6B89C",
    "tan": "#C68642",
    "dark": "#8D5524",
}
DEFAULT_SKIN = "#E6B89C"

CLASS_BODY_COLORS = {
    "Warrior": "#C0392B",
    "Mage": "#8E44AD",
    "Healer": "#27AE60",
    "Rogue": "#2C3E50",
    "Explorer": "#4ECDC4",
}
DEFAULT_BODY = "#4ECDC4"

LEG_COLOR = "#8B4513"
SHOE_COLOR = "#2C2C2C"
OUTLINE = "#333333"
LABEL_COLOR = "#555555"

HEAD_RADIUS = {"slim": 45, "average": 50, "muscular": 55, "heavy": 55}
BODY_WIDTH = {"slim": 35, "average": 60, "muscular": 75, "heavy": 85}

SMILE_THRESHOLD = 60


def resolve_color(value, palette: dict, default: str) -> tuple[int, int, int]:
    """Named color from palette, or any hex/CSS color, else default."""
    if isinstance(value, str) and value:
        named = palette.get(value) or palette.get(value.lower())
        if named:
            return ImageColor.getrgb(named)
        try:
            return ImageColor.getrgb(value)
        except ValueError:
            pass
    return ImageColor.getrgb(default)


def _friendliness(characteristics: dict) -> float:
    if "friendliness" in characteristics:
        return float(characteristics["friendliness"])
    return float(characteristics.get("personality", {}).get("friendliness", 50))


class ProceduralRenderer:
    """
    Deterministic 2D character renderer.

    Holds no state beyond the canvas size.
    """

    def __init__(self, size: int = CANVAS_SIZE):
        self.size = size

    def render(self, characteristics: dict, view: str = "front") -> bytes:
        """Render one view and return PNG bytes."""
        image = self.render_image(characteristics, view)
        buffer = io.BytesIO()
        image.save(buffer, format="PNG", optimize=False)
        return buffer.getvalue()

    def render_views(self, characteristics: dict, views: Iterable[str]) -> tuple[tuple[str, bytes], ...]:
        """Render each named view in order."""
        rendered = tuple((view, self.render(characteristics, view)) for view in views)
        logger.info(f"[ProceduralRenderer] Rendered {len(rendered)} views")
        return rendered

    def render_image(self, characteristics: dict, view: str = "front") -> Image.Image:
        if view not in VIEWS:
            raise ValueError(f"Unknown view '{view}', expected one of {VIEWS}")

        image = Image.new("RGB", (self.size, self.size))
        draw = ImageDraw.Draw(image)
        self._draw_background(draw)

        palette = self._palette(characteristics)
        build = characteristics.get("build", "average")
        head_r = HEAD_RADIUS.get(build, HEAD_RADIUS["average"])
        body_w = BODY_WIDTH.get(build, BODY_WIDTH["average"])

        if view == "top":
            self._draw_top(draw, palette, characteristics, head_r, body_w)
        elif view == "bottom":
            self._draw_bottom(draw, palette, head_r, body_w)
        else:
            side = view in ("left", "right")
            self._draw_limbs_and_body(draw, palette, body_w, side)
            self._draw_head(draw, palette, characteristics, head_r, view)

        self._draw_label(draw, view, characteristics.get("character_class"))
        return image

    # ------------------------------------------------------------------
    # Pieces
    # ------------------------------------------------------------------

    def _palette(self, characteristics: dict) -> dict:
        hair = characteristics.get("hair_color")
        bald = characteristics.get("hair_style") == "bald" or hair == "bald"
        return {
            "skin": resolve_color(characteristics.get("skin_tone"), SKIN_TONES, DEFAULT_SKIN),
            "hair": None if bald else resolve_color(hair, HAIR_COLORS, DEFAULT_HAIR),
            "eye": resolve_color(characteristics.get("eye_color"), EYE_COLORS, DEFAULT_EYE),
            "body": resolve_color(characteristics.get("character_class"), CLASS_BODY_COLORS, DEFAULT_BODY),
        }

    def _center(self) -> tuple[int, int]:
        return self.size // 2, self.size // 2

    def _draw_background(self, draw: ImageDraw.ImageDraw):
        top = ImageColor.getrgb(BACKGROUND_TOP)
        bottom = ImageColor.getrgb(BACKGROUND_BOTTOM)
        last = max(self.size - 1, 1)
        for y in range(self.size):
            t = y / last
            color = tuple(int(round(a + (b - a) * t)) for a, b in zip(top, bottom))
            draw.line([(0, y), (self.size, y)], fill=color)

    def _draw_limbs_and_body(self, draw, palette, body_w: int, side: bool):
        cx, cy = self._center()
        if side:
            body_w = max(body_w // 2, 20)
        half = body_w // 2

        # Legs and shoes
        leg_w = max(body_w // 3, 10)
        for offset in ((0,) if side else (-half + leg_w // 2 + 2, half - leg_w // 2 - 2)):
            x = cx + offset
            draw.rectangle([x - leg_w // 2, cy + 80, x + leg_w // 2, cy + 180], fill=LEG_COLOR, outline=OUTLINE)
            draw.ellipse([x - leg_w // 2 - 6, cy + 172, x + leg_w // 2 + 10, cy + 192], fill=SHOE_COLOR)

        # T-pose arms run sideways; seen from the side they point at the camera
        if not side:
            draw.rectangle([cx - half - 90, cy - 45, cx - half, cy - 28], fill=palette["body"], outline=OUTLINE)
            draw.rectangle([cx + half, cy - 45, cx + half + 90, cy - 28], fill=palette["body"], outline=OUTLINE)
            for hand_x in (cx - half - 98, cx + half + 98):
                draw.ellipse([hand_x - 9, cy - 46, hand_x + 9, cy - 28], fill=palette["skin"], outline=OUTLINE)

        draw.rectangle([cx - half, cy - 50, cx + half, cy + 80], fill=palette["body"], outline=OUTLINE)
        if side:
            draw.ellipse([cx - 12, cy - 45, cx + 12, cy - 21], fill=palette["body"], outline=OUTLINE)

    def _draw_head(self, draw, palette, characteristics: dict, r: int, view: str):
        cx, cy = self._center()
        hx, hy = cx, cy - 100
        draw.ellipse([hx - r, hy - r, hx + r, hy + r], fill=palette["skin"], outline=OUTLINE)

        hair = palette["hair"]
        style = characteristics.get("hair_style", "short")
        if hair is not None:
            if view == "back":
                draw.ellipse([hx - r - 2, hy - r - 6, hx + r + 2, hy + r - 4], fill=hair)
            else:
                self._draw_hair(draw, hair, style, hx, hy, r, view)

        if view == "back":
            return

        if view == "front":
            eye_xs = (hx - 15, hx + 15)
        else:
            direction = -1 if view == "left" else 1
            eye_xs = (hx + direction * 20,)

        eye_y = cy - 110
        for ex in eye_xs:
            draw.ellipse([ex - 8, eye_y - 8, ex + 8, eye_y + 8], fill="white", outline=OUTLINE)
            draw.ellipse([ex - 5, eye_y - 5, ex + 5, eye_y + 5], fill=palette["eye"])
            draw.ellipse([ex - 2, eye_y - 2, ex + 2, eye_y + 2], fill="black")

        if characteristics.get("glasses"):
            for ex in eye_xs:
                draw.ellipse([ex - 12, eye_y - 12, ex + 12, eye_y + 12], outline="black", width=2)
            if len(eye_xs) == 2:
                draw.line([(eye_xs[0] + 12, eye_y), (eye_xs[1] - 12, eye_y)], fill="black", width=2)

        mouth_x = hx if view == "front" else eye_xs[0]
        if _friendliness(characteristics) > SMILE_THRESHOLD:
            draw.arc([mouth_x - 15, cy - 98, mouth_x + 15, cy - 76], start=20, end=160, fill=OUTLINE, width=3)
        else:
            draw.line([(mouth_x - 10, cy - 82), (mouth_x + 10, cy - 82)], fill=OUTLINE, width=3)

        if characteristics.get("facial_hair"):
            beard = hair if hair is not None else ImageColor.getrgb("#555555")
            draw.chord([hx - r + 8, hy - 10, hx + r - 8, hy + r + 4], start=20, end=160, fill=beard)

    def _draw_hair(self, draw, hair, style: str, hx: int, hy: int, r: int, view: str):
        # Cap over the top half of the head
        top = hy - 15
        draw.pieslice([hx - r - 5, top - r - 5, hx + r + 5, top + r + 5], start=180, end=360, fill=hair)
        if style == "long":
            if view == "front":
                draw.rectangle([hx - r - 5, top, hx - r + 10, hy + 40], fill=hair)
                draw.rectangle([hx + r - 10, top, hx + r + 5, hy + 40], fill=hair)
            else:
                back = hx + (r - 10 if view == "left" else -r - 5)
                draw.rectangle([back, top, back + 15, hy + 40], fill=hair)
        elif style == "curly":
            for i in range(7):
                x = hx - r + i * (2 * r) // 6
                draw.ellipse([x - 9, top - r - 8, x + 9, top - r + 10], fill=hair)
        elif style == "wavy":
            for i in range(4):
                x = hx - r + 10 + i * (2 * r - 20) // 3
                draw.arc([x - 12, top - r, x + 12, top - r + 20], start=0, end=180, fill=hair, width=4)

    def _draw_top(self, draw, palette, characteristics: dict, r: int, body_w: int):
        cx, cy = self._center()
        half = body_w // 2
        # Shoulders and T-pose arms seen from above
        draw.rectangle([cx - half - 90, cy - 10, cx + half + 90, cy + 10], fill=palette["body"], outline=OUTLINE)
        for hand_x in (cx - half - 98, cx + half + 98):
            draw.ellipse([hand_x - 9, cy - 9, hand_x + 9, cy + 9], fill=palette["skin"], outline=OUTLINE)
        draw.ellipse([cx - half, cy - 25, cx + half, cy + 25], fill=palette["body"], outline=OUTLINE)
        crown = palette["hair"] if palette["hair"] is not None else palette["skin"]
        draw.ellipse([cx - r, cy - r, cx + r, cy + r], fill=crown, outline=OUTLINE)
        if characteristics.get("glasses"):
            draw.line([(cx - 20, cy + r - 2), (cx + 20, cy + r - 2)], fill="black", width=2)

    def _draw_bottom(self, draw, palette, r: int, body_w: int):
        cx, cy = self._center()
        half = body_w // 2
        # Soles first, body and head recede behind them
        draw.ellipse([cx - r // 2, cy - 150, cx + r // 2, cy - 150 + r], fill=palette["skin"], outline=OUTLINE)
        draw.rectangle([cx - half - 90, cy - 60, cx + half + 90, cy - 45], fill=palette["body"], outline=OUTLINE)
        draw.rectangle([cx - half, cy - 80, cx + half, cy + 20], fill=palette["body"], outline=OUTLINE)
        for x in (cx - half // 2 - 6, cx + half // 2 + 6):
            draw.rectangle([x - 10, cy + 10, x + 10, cy + 90], fill=LEG_COLOR, outline=OUTLINE)
            draw.ellipse([x - 18, cy + 80, x + 18, cy + 130], fill=SHOE_COLOR)

    def _draw_label(self, draw, view: str, character_class: Optional[str]):
        draw.text((12, 12), f"{view.upper()} VIEW", fill=LABEL_COLOR)
        if character_class:
            draw.text((12, self.size - 24), str(character_class), fill=LABEL_COLOR)
