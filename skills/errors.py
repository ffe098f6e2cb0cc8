"""
Error taxonomy shared by the network-calling skills and the pipeline.

Only the network-calling stages raise. Parsing and derivation always
return a value through their documented defaults.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for every error raised by the pipeline."""


class ProviderUnavailable(PipelineError):
    """A single external call failed (network, auth, timeout, non-2xx)."""

    def __init__(self, provider: str, reason: str):
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider}: {reason}")


class MalformedResponse(ProviderUnavailable):
    """The call returned 2xx but the body violated the expected schema."""


class ProviderDisabled(ProviderUnavailable):
    """The provider is switched off by configuration; no call was made."""

    def __init__(self, provider: str, reason: str = "disabled by configuration"):
        super().__init__(provider, reason)


class ExhaustedProviders(PipelineError):
    """Every provider in the chain failed. Internal: triggers the procedural fallback."""

    def __init__(self, attempts: list):
        self.attempts = list(attempts)
        names = ", ".join(a.provider for a in self.attempts) or "none"
        super().__init__(f"All providers failed ({names})")


class PipelineFailed(PipelineError):
    """The pipeline could not produce a character at all."""

    def __init__(self, stage: str, cause: Optional[BaseException] = None, message: Optional[str] = None):
        self.stage = stage
        self.cause = cause
        super().__init__(message or f"Pipeline failed during {stage}: {cause}")
