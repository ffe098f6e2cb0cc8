"""
Character Creation Skill - the photo-to-character pipeline.

Sequences the stages:

    idle -> analyzing -> deriving_traits -> generating -> rendering_preview -> done
                 \\-> failed

Captioning is the only stage that can fail the run. Generation failures
degrade to the procedural renderer and are visible only through
model_used. Every stage boundary yields a PipelineEvent; callers either
consume create_character_streaming() or await create_character().
"""

import asyncio
import logging
import time
from typing import AsyncGenerator, Callable, Optional

import requests

from config import PipelineConfig
from models.result import (
    PROCEDURAL_FALLBACK,
    GeneratedAsset,
    GenerationResult,
    PipelineEvent,
    ProviderAttempt,
)
from skills.describe_photo.describe_photo import ImageInput, PhotoDescriber, normalize_image
from skills.derive_traits.derive_traits import DerivedTraits, derive_traits
from skills.errors import ExhaustedProviders, PipelineFailed, ProviderUnavailable
from skills.generate_character.provider_chain import ProviderChain, build_default_chain
from skills.generate_character.providers import GenerationRequest, TextToImageProvider
from skills.parse_traits.parse_traits import parse_caption
from skills.render_fallback.render_fallback import ProceduralRenderer

logger = logging.getLogger(__name__)

Observer = Callable[[PipelineEvent], None]


class CharacterPipeline:
    """
    Photo in, GenerationResult out.

    Owns its config, describer, provider chain and renderer. Holds no
    per-run state, so one instance can serve concurrent runs. Without an
    injected session every HTTP call opens its own connection through
    requests.post; an injected session is shared by all runs and is the
    caller's to make safe for concurrent use.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        describer: Optional[PhotoDescriber] = None,
        chain: Optional[ProviderChain] = None,
        renderer: Optional[ProceduralRenderer] = None,
        session: Optional[requests.Session] = None,
        observer: Optional[Observer] = None,
    ):
        """Initialize with config; every collaborator is injectable."""
        self.config = config or PipelineConfig.from_env()
        self.describer = describer or PhotoDescriber(self.config, session=session)
        self.chain = chain or build_default_chain(self.config, session=session)
        self.renderer = renderer or ProceduralRenderer()
        self.observer = observer

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def create_character_streaming(
        self,
        image: ImageInput,
        overrides: Optional[dict] = None,
        name: Optional[str] = None,
        style: Optional[str] = None,
    ) -> AsyncGenerator[PipelineEvent, None]:
        """
        Run the pipeline, yielding an event at every stage boundary.

        The last event is either 'done' (data['result'] holds the
        GenerationResult) or 'failed' (data['cause'] holds the exception).
        """
        start = time.monotonic()
        deadline = start + self.config.pipeline_timeout if self.config.pipeline_timeout else None
        style = style or self.config.style

        # --- analyzing ---------------------------------------------------
        yield self._emit("analyzing", "Describing your photo...")
        await asyncio.sleep(0)

        try:
            caption = await self._within_deadline(self.describer.describe(image), deadline)
        except (ProviderUnavailable, asyncio.TimeoutError, ValueError) as e:
            reason = "pipeline timed out" if isinstance(e, asyncio.TimeoutError) else str(e)
            logger.error(f"[CharacterPipeline] Captioning failed: {reason}")
            yield self._emit("failed", f"Could not describe the photo: {reason}", {
                "failed_stage": "analyzing",
                "error": reason,
                "cause": e,
            })
            return

        analysis = parse_caption(caption, self.config.variety_seed)

        # --- deriving_traits ---------------------------------------------
        yield self._emit("deriving_traits", "Reading personality from traits...", {"caption": caption})
        await asyncio.sleep(0)

        derived = derive_traits(
            analysis,
            overrides=overrides,
            name=name,
            style=style,
            views=self.config.view_names if self.config.remote_views else (),
        )
        characteristics = derived.characteristics()

        # --- generating --------------------------------------------------
        yield self._emit("generating", "Generating your character...", {
            "character_class": derived.character_class.value,
            "providers": self.chain.names,
        })
        await asyncio.sleep(0)

        asset, attempts = await self._generate(image, derived, deadline)
        if asset is None:
            logger.info("[CharacterPipeline] Falling back to procedural renderer")
            asset = GeneratedAsset(
                kind="image",
                data=self.renderer.render(characteristics),
                mime_type="image/png",
                provider=PROCEDURAL_FALLBACK,
            )

        # --- rendering_preview -------------------------------------------
        yield self._emit("rendering_preview", "Rendering preview...", {"model_used": asset.provider})
        await asyncio.sleep(0)

        if asset.is_model:
            pop_image, pop_mime, model_data = self.renderer.render(characteristics), "image/png", asset.data
        else:
            pop_image, pop_mime, model_data = asset.data, asset.mime_type, None

        views = await self._render_views(derived, characteristics, asset, deadline)

        processing_time_ms = int((time.monotonic() - start) * 1000)
        result = GenerationResult(
            original_image=self._original_image_url(image),
            characteristics=characteristics,
            pop_image=pop_image,
            pop_image_mime=pop_mime,
            model_used=asset.provider,
            model_url=asset.url,
            model_data=model_data,
            t_pose_views=views,
            processing_time_ms=processing_time_ms,
            game_criteria=derived.game_criteria,
            game_character=derived.game_character,
            prompt=derived.prompt,
            provider_attempts=attempts,
        )

        # --- done ----------------------------------------------------------
        logger.info(
            f"[CharacterPipeline] Done: {derived.character_class.value} via {asset.provider} "
            f"in {processing_time_ms}ms"
        )
        yield self._emit("done", "Character ready!", {
            "result": result,
            "model_used": result.model_used,
            "processing_time_ms": processing_time_ms,
            "result_id": result.id,
        })
        await asyncio.sleep(0)

    async def create_character(
        self,
        image: ImageInput,
        overrides: Optional[dict] = None,
        name: Optional[str] = None,
        style: Optional[str] = None,
    ) -> GenerationResult:
        """
        Run the pipeline to completion (non-streaming).

        Raises:
            PipelineFailed: captioning failed, so no character exists
        """
        result = None
        async for event in self.create_character_streaming(image, overrides=overrides, name=name, style=style):
            if event.stage == "done":
                result = event.data["result"]
            elif event.stage == "failed":
                raise PipelineFailed(event.data["failed_stage"], event.data.get("cause"), event.message)

        if result is None:
            raise PipelineFailed("unknown", message="Pipeline ended without a result")
        return result

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _generate(
        self,
        image: ImageInput,
        derived: DerivedTraits,
        deadline: Optional[float],
    ) -> tuple[Optional[GeneratedAsset], tuple[ProviderAttempt, ...]]:
        image_b64, _ = normalize_image(image)
        request = GenerationRequest(
            prompt=derived.prompt,
            negative_prompt=derived.negative_prompt,
            image_b64=image_b64,
            style=derived.style,
            quality=self.config.model_3d_quality,
        )
        try:
            outcome = await self._within_deadline(self.chain.run(request), deadline)
        except ExhaustedProviders as e:
            return None, tuple(e.attempts)
        except asyncio.TimeoutError:
            logger.warning("[CharacterPipeline] Pipeline deadline hit during generation")
            return None, ()
        return outcome.asset, outcome.attempts

    async def _render_views(
        self,
        derived: DerivedTraits,
        characteristics: dict,
        asset: GeneratedAsset,
        deadline: Optional[float],
    ) -> Optional[tuple[tuple[str, bytes], ...]]:
        view_names = self.config.view_names
        if not view_names:
            return None

        provider = self.chain.get(TextToImageProvider.name)
        if not (self.config.remote_views and provider is not None and asset.provider == provider.name):
            return self.renderer.render_views(characteristics, view_names)

        views = []
        for view in view_names:
            request = GenerationRequest(
                prompt=derived.view_prompts[view],
                negative_prompt=derived.negative_prompt,
                steps=20,
                guidance_scale=7.5,
                width=512,
                height=512,
            )
            try:
                view_asset = await self._within_deadline(provider.generate(request), deadline)
                views.append((view, view_asset.data))
            except (ProviderUnavailable, asyncio.TimeoutError) as e:
                logger.warning(f"[CharacterPipeline] Remote {view} view failed ({e}), drawing it instead")
                views.append((view, self.renderer.render(characteristics, view)))
            except Exception:
                logger.exception(f"[CharacterPipeline] Remote {view} view raised unexpectedly, drawing it instead")
                views.append((view, self.renderer.render(characteristics, view)))
        return tuple(views)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _emit(self, stage: str, message: str, data: Optional[dict] = None) -> PipelineEvent:
        """Build an event and hand it to the observer; observer errors are contained."""
        event = PipelineEvent(stage, message, data or {})
        if self.observer is not None:
            try:
                self.observer(event)
            except Exception as e:
                logger.warning(f"[CharacterPipeline] Observer raised on '{stage}': {e}")
        return event

    @staticmethod
    async def _within_deadline(coro, deadline: Optional[float]):
        if deadline is None:
            return await coro
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            coro.close()
            raise asyncio.TimeoutError()
        return await asyncio.wait_for(coro, timeout=remaining)

    @staticmethod
    def _original_image_url(image: ImageInput) -> str:
        if isinstance(image, str) and image.startswith("data:"):
            return image
        encoded, mime_type = normalize_image(image)
        return f"data:{mime_type};base64,{encoded}"


async def create_character(
    image: ImageInput,
    config: Optional[PipelineConfig] = None,
    **kwargs,
) -> GenerationResult:
    """Convenience wrapper: build a pipeline and run it once."""
    return await CharacterPipeline(config).create_character(image, **kwargs)


if __name__ == "__main__":
    import sys
    from pathlib import Path

    if len(sys.argv) < 2:
        print("Usage: python -m skills.create_character.create_character <photo> [style]")
        sys.exit(1)

    photo = Path(sys.argv[1])
    config = PipelineConfig.from_env()
    if len(sys.argv) > 2:
        config = config.with_overrides(style=sys.argv[2])

    async def _main():
        pipeline = CharacterPipeline(config)
        async for event in pipeline.create_character_streaming(photo.read_bytes()):
            print(f"[{event.stage}] {event.message}")
            if event.stage == "done":
                result = event.data["result"]
                print(f"Class: {result.game_criteria.character_class.value}")
                print(f"Model used: {result.model_used}")
                print(f"Saved to: {result.save(config.output_dir)}")
            elif event.stage == "failed":
                sys.exit(1)

    asyncio.run(_main())
