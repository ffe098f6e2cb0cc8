"""
Prompt templates for captioning and character generation.

These prompts are designed to:
1. Get a short, appearance-focused caption out of a captioning model
2. Turn derived traits into a single-subject character prompt
3. Keep every generation single-character, centered and panel-free

The generation prompt itself is assembled by derive_traits.build_prompt();
this module only holds the fixed pieces.
"""


class Prompts:
    """Collection of prompt templates for the character pipeline."""

    # =========================================================================
    # CAPTIONING
    # =========================================================================

    CAPTION_PHOTO = """
Describe the person in this photo in ONE sentence for a character artist.
Mention, when visible: apparent age group, hair color and style, face shape,
skin tone, expression, glasses, facial hair, build and clothing style.
Do not guess gender. Reply with the sentence only.
"""

    # =========================================================================
    # CHARACTER STYLES
    # =========================================================================

    STYLE_TEMPLATES = {
        "rpg": (
            "toybox collectible figure style, oversized round head, small compact body, "
            "smooth plastic-like surface, simplified facial features, bright solid colors, "
            "cute proportions, minimal details"
        ),
        "cute": "cute cartoon character, big eyes, friendly smile, rounded shapes, bright colors",
        "anime": "anime style character, large expressive eyes, detailed features, vibrant colors",
        "disney": "Disney style character, classic animation style, expressive features, clean lines",
        "pixar": "Pixar style character, 3D cartoon style, detailed textures, expressive animation",
    }

    # Appended to every generation prompt
    COMPOSITION_CONSTRAINTS = (
        "single character only, centered composition, clean white background, "
        "full body visible, RPG character design, fantasy game art style, "
        "front-facing heroic pose, no multi-panel layout"
    )

    NEGATIVE_PROMPT = (
        "multiple characters, comic book panels, grid layout, multiple images, "
        "low quality, blurry, distorted, ugly, bad anatomy, bad proportions, "
        "extra limbs, missing limbs, deformed, disfigured, text, watermark, signature"
    )

    # =========================================================================
    # T-POSE VIEWS
    # =========================================================================

    T_POSE_BASE = (
        "character in T-pose, arms extended horizontally, legs slightly apart, "
        "neutral standing position, plain light background, 3D reference sheet view"
    )

    VIEW_DIRECTIONS = {
        "front": "front view, facing the camera directly",
        "back": "back view, facing away from the camera",
        "left": "left side profile view",
        "right": "right side profile view",
        "top": "top-down view from directly above",
        "bottom": "view from directly below looking up",
    }
