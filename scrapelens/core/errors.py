"""Pipeline error taxonomy."""

from __future__ import annotations

from typing import Optional


class PipelineError(Exception):
    """Base class for every error the pipeline reports to callers."""


class ConfigError(PipelineError):
    """A required setting is missing; fatal at start-up."""


class ProviderError(PipelineError):
    """An upstream (scraping or analyzer) call returned a non-success status."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body

    @property
    def is_rate_limited(self) -> bool:
        return self.status == 429

    @property
    def is_server_error(self) -> bool:
        return self.status is not None and 500 <= self.status <= 599


class QuotaError(ProviderError):
    """The analyzer reports exhausted quota. Never retried, ends the batch."""


class StorageError(PipelineError):
    """A database read or write failed."""


class ShapeError(PipelineError):
    """The analyzer answered, but not with the expected JSON shape."""
