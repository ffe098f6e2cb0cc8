"""
Test: Configuration Loading

Verifies that:
1. Config module loads correctly
2. Environment variables are read into PipelineConfig
3. The paid provider stays off unless explicitly enabled
4. Invalid settings are rejected
5. Path configuration is correct

Run: python tests/test_config.py
"""

import importlib
import os
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import config
from config import PipelineConfig

ENV_KEYS = [
    "HF_API_TOKEN",
    "HUGGINGFACE_API_KEY",
    "ENABLE_PAID_3D",
    "T_POSE_VIEWS",
    "REMOTE_VIEWS",
    "VARIETY_SEED",
    "PROVIDER_TIMEOUT_SECONDS",
    "PIPELINE_TIMEOUT_SECONDS",
    "PROVIDER_MAX_RETRIES",
    "DEFAULT_CHARACTER_STYLE",
]


def _reload_with(env: dict):
    """Reload config under a temporary environment, then restore it."""
    saved = {key: os.environ.get(key) for key in ENV_KEYS}
    try:
        for key in ENV_KEYS:
            os.environ.pop(key, None)
        os.environ.update(env)
        return importlib.reload(config).PipelineConfig.from_env()
    finally:
        for key, value in saved.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value
        importlib.reload(config)


def test_config_loading():
    print("=" * 60)
    print("TEST: Configuration Loading")
    print("=" * 60)

    print(f"  CAPTION_BACKEND: {config.CAPTION_BACKEND}")
    print(f"  LOCAL_3D_URL: {config.LOCAL_3D_URL}")
    print(f"  ENABLE_PAID_3D: {config.ENABLE_PAID_3D}")
    print(f"  PROJECT_ROOT: {config.PROJECT_ROOT}")

    assert config.PROJECT_ROOT.exists()
    assert config.SKILLS_DIR.exists()
    assert "rpg" in config.CHARACTER_STYLES
    print("✓ Config module loaded")


def test_from_env():
    print("=" * 60)
    print("TEST: PipelineConfig.from_env")
    print("=" * 60)

    cfg = _reload_with({
        "HUGGINGFACE_API_KEY": "hf-legacy",
        "T_POSE_VIEWS": "6",
        "PROVIDER_TIMEOUT_SECONDS": "12.5",
        "PIPELINE_TIMEOUT_SECONDS": "90",
        "PROVIDER_MAX_RETRIES": "2",
        "DEFAULT_CHARACTER_STYLE": "anime",
    })
    print(f"  {cfg}")
    assert cfg.hf_api_token == "hf-legacy"
    assert cfg.t_pose_views == 6
    assert cfg.provider_timeout == 12.5
    assert cfg.pipeline_timeout == 90.0
    assert cfg.provider_max_retries == 2
    assert cfg.style == "anime"
    assert cfg.enable_paid_3d is False
    print("✓ Environment read")


def test_defaults_from_empty_env():
    cfg = _reload_with({})
    assert cfg.enable_paid_3d is False
    assert cfg.t_pose_views == 0
    assert cfg.pipeline_timeout is None
    assert cfg.provider_max_retries == 0
    assert cfg.view_names == ()
    assert cfg.remote_views is False
    assert cfg.variety_seed is None


def test_paid_provider_opt_in():
    assert _reload_with({"ENABLE_PAID_3D": "true"}).enable_paid_3d is True
    assert _reload_with({"ENABLE_PAID_3D": "yes-please"}).enable_paid_3d is False


def test_remote_views_and_seed_from_env():
    cfg = _reload_with({"REMOTE_VIEWS": "true", "VARIETY_SEED": "7", "T_POSE_VIEWS": "3"})
    assert cfg.remote_views is True
    assert cfg.variety_seed == 7
    assert cfg.view_names == ("front", "left", "back")
    assert _reload_with({"REMOTE_VIEWS": "1"}).remote_views is False


def test_validation():
    for bad in ({"t_pose_views": 4}, {"caption_backend": "ocr"}, {"provider_timeout": 0}):
        try:
            PipelineConfig(**bad)
        except ValueError:
            continue
        raise AssertionError(f"expected ValueError for {bad}")


def test_view_names_and_overrides():
    cfg = PipelineConfig(t_pose_views=3)
    assert cfg.view_names == ("front", "left", "back")
    six = cfg.with_overrides(t_pose_views=6)
    assert six.view_names == ("front", "back", "left", "right", "top", "bottom")
    # Original is frozen and unchanged
    assert cfg.t_pose_views == 3


if __name__ == "__main__":
    print("\n" + "=" * 60)
    print(" CONFIG TESTS")
    print("=" * 60 + "\n")

    tests = [obj for name, obj in list(globals().items()) if name.startswith("test_") and callable(obj)]
    failed = 0
    for test in tests:
        try:
            test()
        except AssertionError as e:
            failed += 1
            print(f"✗ {test.__name__} failed: {e}")

    print("\n" + "=" * 60)
    print(" FINAL RESULT")
    print("=" * 60)

    if failed == 0:
        print(f"\n✅ ALL {len(tests)} TESTS PASSED\n")
        sys.exit(0)
    else:
        print(f"\n❌ {failed} TEST(S) FAILED\n")
        sys.exit(1)
