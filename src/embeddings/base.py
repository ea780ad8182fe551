"""EmbeddingProvider abstract interface.

Providers map (already normalized) text to a fixed-length vector. Identical
text must yield near-identical vectors across calls. Any network, auth,
quota or malformed-response failure surfaces as ProviderFailure.
"""

from abc import ABC, abstractmethod


class EmbeddingProvider(ABC):
    """Abstract embedding provider, injected into whatever needs vectors."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name for logging."""
        ...

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Raises:
            ProviderFailure: the provider could not produce a vector.
        """
        ...
