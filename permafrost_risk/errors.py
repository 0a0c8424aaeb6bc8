"""
errors.py — Contract errors raised by the fusion pipeline.

Transport failures never surface as exceptions; providers turn them into
UNAVAILABLE signal results. The classes below mark configuration or
contract bugs that must not be silently absorbed into a fallback.
"""


class PipelineError(Exception):
    """Base class for contract errors in the fusion pipeline."""


class UnknownRegionError(PipelineError, KeyError):
    """Raised when a region id is not in the registry."""

    def __init__(self, region_id: str):
        self.region_id = region_id
        super().__init__(f"Unknown region '{region_id}'")

    def __str__(self) -> str:
        return self.args[0]


class MalformedResponseError(PipelineError):
    """Raised when a provider payload does not have the documented shape."""

    def __init__(self, provider: str, detail: str):
        self.provider = provider
        self.detail = detail
        super().__init__(f"{provider}: {detail}")
