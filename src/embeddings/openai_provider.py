"""OpenAIEmbeddingProvider — OpenAI embeddings over plain HTTP.

Calls ``POST {base_url}/embeddings`` with httpx. The client is created per
call from constructor-injected settings; there is no module-level client.
Every failure mode is translated into ProviderFailure (or ProviderTimeout).
"""

import logging

import httpx

from src.embeddings.base import EmbeddingProvider
from src.matching.errors import ProviderFailure, ProviderTimeout

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "text-embedding-3-small"
DEFAULT_BASE_URL = "https://api.openai.com/v1"


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embeddings from the OpenAI (or an OpenAI-compatible) REST API."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._transport = transport

    @property
    def name(self) -> str:
        return f"openai:{self._model}"

    async def embed(self, text: str) -> list[float]:
        if not self._api_key:
            raise ProviderFailure("OpenAI API key not configured")

        headers = {"Authorization": f"Bearer {self._api_key}"}
        payload = {"model": self._model, "input": text}

        async with httpx.AsyncClient(
            timeout=self._timeout_s,
            transport=self._transport,
        ) as client:
            try:
                resp = await client.post(
                    f"{self._base_url}/embeddings",
                    headers=headers,
                    json=payload,
                )
                resp.raise_for_status()
            except httpx.TimeoutException as exc:
                raise ProviderTimeout(
                    f"Embedding request timed out after {self._timeout_s}s",
                ) from exc
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                logger.warning("Embedding provider returned HTTP %d", status)
                raise ProviderFailure(
                    f"Embedding provider returned HTTP {status}",
                ) from exc
            except httpx.HTTPError as exc:
                raise ProviderFailure(f"Embedding request failed: {exc}") from exc

        return self._parse_embedding(resp)

    # ------------------------------------------------------------------
    # Response parsing
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_embedding(resp: httpx.Response) -> list[float]:
        try:
            data = resp.json()
            vector = data["data"][0]["embedding"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ProviderFailure("Malformed embedding response") from exc

        if not isinstance(vector, list) or not vector:
            raise ProviderFailure("Embedding response contained no vector")
        try:
            return [float(v) for v in vector]
        except (TypeError, ValueError) as exc:
            raise ProviderFailure("Embedding vector is not numeric") from exc
