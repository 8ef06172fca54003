"""Abstract source interface for ingestion."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class BaseSource(ABC):
    """Abstract base class for raw-item sources."""

    name: str

    @abstractmethod
    async def fetch(self, limit: int) -> List[Dict[str, Any]]:
        """Fetch up to ``limit`` raw items; raise ProviderError on upstream failure."""
