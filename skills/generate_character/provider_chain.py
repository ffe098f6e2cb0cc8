"""
Provider Chain - try generation backends in priority order.

Uniform try/advance loop over an ordered provider list. The first
success stops the loop; every failure is logged and recorded. When the
list is exhausted the chain raises ExhaustedProviders, which only the
pipeline sees: it answers with the procedural fallback.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, Sequence

import requests

from config import PipelineConfig
from models.result import GeneratedAsset, ProviderAttempt
from skills.errors import ExhaustedProviders, ProviderDisabled, ProviderUnavailable
from .providers import (
    GenerationProvider,
    GenerationRequest,
    LocalFreeServerProvider,
    PaidRemoteServiceProvider,
    TextToImageProvider,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderOutcome:
    """The winning asset plus the log of every attempt made on the way."""

    asset: GeneratedAsset
    attempts: tuple[ProviderAttempt, ...]

    @property
    def model_used(self) -> str:
        return self.asset.provider


class ProviderChain:
    """Ordered fallback sequence of generation providers."""

    def __init__(self, providers: Sequence[GenerationProvider]):
        if not providers:
            raise ValueError("ProviderChain needs at least one provider")
        self.providers = list(providers)

    @property
    def names(self) -> list[str]:
        return [p.name for p in self.providers]

    def get(self, name: str) -> Optional[GenerationProvider]:
        for provider in self.providers:
            if provider.name == name:
                return provider
        return None

    async def run(self, request: GenerationRequest) -> ProviderOutcome:
        """
        Try each provider in order; stop at the first success.

        Raises:
            ExhaustedProviders: every provider failed or was disabled
        """
        attempts: list[ProviderAttempt] = []

        for index, provider in enumerate(self.providers, start=1):
            if not provider.enabled:
                logger.info(f"[ProviderChain] {index}/{len(self.providers)} {provider.name}: skipped (disabled)")
                attempts.append(ProviderAttempt(provider.name, succeeded=False, skipped=True, error="disabled"))
                continue

            logger.info(f"[ProviderChain] {index}/{len(self.providers)} trying {provider.name}")
            start = time.monotonic()
            try:
                asset = await provider.generate(request)
            except ProviderDisabled as e:
                attempts.append(ProviderAttempt(provider.name, succeeded=False, skipped=True, error=e.reason))
                continue
            except ProviderUnavailable as e:
                elapsed = int((time.monotonic() - start) * 1000)
                logger.warning(f"[ProviderChain] {provider.name} failed after {elapsed}ms: {e.reason}")
                attempts.append(ProviderAttempt(provider.name, succeeded=False, error=e.reason, elapsed_ms=elapsed))
                continue
            except Exception as e:
                # A provider bug must not escape the chain
                elapsed = int((time.monotonic() - start) * 1000)
                logger.exception(f"[ProviderChain] {provider.name} raised unexpectedly after {elapsed}ms")
                attempts.append(ProviderAttempt(
                    provider.name,
                    succeeded=False,
                    error=f"unexpected {type(e).__name__}: {e}",
                    elapsed_ms=elapsed,
                ))
                continue

            elapsed = int((time.monotonic() - start) * 1000)
            attempts.append(ProviderAttempt(provider.name, succeeded=True, elapsed_ms=elapsed))
            logger.info(f"[ProviderChain] {provider.name} succeeded in {elapsed}ms")
            return ProviderOutcome(asset=asset, attempts=tuple(attempts))

        logger.warning(f"[ProviderChain] All {len(self.providers)} providers exhausted")
        raise ExhaustedProviders(attempts)


def build_default_chain(
    config: PipelineConfig,
    session: Optional[requests.Session] = None,
) -> ProviderChain:
    """local 3D server -> paid 3D service (gated) -> text-to-image."""
    return ProviderChain([
        LocalFreeServerProvider(config, session),
        PaidRemoteServiceProvider(config, session),
        TextToImageProvider(config, session),
    ])
