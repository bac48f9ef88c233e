from __future__ import annotations

import logging
from typing import Protocol

import numpy as np
from openai import OpenAI

from .settings import OpenAISettings

logger = logging.getLogger(__name__)


class EmbeddingUnavailableError(RuntimeError):
    """Raised when the embedding capability is missing or a call fails."""


class EmbeddingProvider(Protocol):
    """Maps text to a fixed-dimension vector."""

    def embed(self, text: str) -> list[float]: ...


class OpenAIEmbeddingProvider:
    """Embedding provider backed by the OpenAI embeddings API."""

    def __init__(self, client: OpenAI, model: str = "text-embedding-3-small", timeout: float | None = None):
        self.client = client
        self.model = model
        self.timeout = timeout

    def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Raises:
            EmbeddingUnavailableError: On any API, network or timeout failure.
        """
        try:
            options = {"timeout": self.timeout} if self.timeout is not None else {}
            response = self.client.embeddings.create(model=self.model, input=text, **options)
            return list(response.data[0].embedding)
        except Exception as exc:
            raise EmbeddingUnavailableError(f"embedding request failed: {exc}") from exc


def build_embedding_provider(settings: OpenAISettings) -> OpenAIEmbeddingProvider | None:
    """Return an OpenAI-backed provider, or `None` when no API key is configured."""
    if not settings.api_key:
        logger.info("OPENAI_API_KEY not set; embeddings unavailable")
        return None
    client = OpenAI(api_key=settings.api_key, timeout=settings.timeout)
    return OpenAIEmbeddingProvider(client, model=settings.embedding_model, timeout=settings.timeout)


def cosine_similarity(query_vector: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Compute cosine similarity between one query vector and many vectors.

    Args:
        query_vector: Query embedding vector.
        matrix: Candidate embedding matrix where each row is one vector.

    Returns:
        A 1D array of cosine similarity scores aligned to matrix rows.
    """
    query_norm = np.linalg.norm(query_vector)
    matrix_norm = np.linalg.norm(matrix, axis=1)
    denominator = np.maximum(query_norm * matrix_norm, 1e-12)
    return (matrix @ query_vector) / denominator


def placeholder_vector(dimension: int, rng: np.random.Generator | None = None) -> list[float]:
    """Random non-semantic vector with components in `[-0.5, 0.5)`."""
    rng = rng if rng is not None else np.random.default_rng()
    return (rng.random(dimension) - 0.5).tolist()
