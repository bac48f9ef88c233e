"""Shared pytest fixtures for medfaq unit tests."""
from __future__ import annotations

import pytest

from medfaq.schema import Chunk, FallbackRecord, Match

SMALL_CORPUS = "## Adherence\nTake pills daily.\n## Risk\nWatch interactions."


class FakeEmbedder:
    """Embedding provider returning canned vectors keyed by exact text."""

    def __init__(self, vectors: dict[str, list[float]] | None = None, fail: bool = False):
        self.vectors = vectors or {}
        self.fail = fail
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail or text not in self.vectors:
            raise RuntimeError(f"no embedding for {text!r}")
        return self.vectors[text]


class FakeIndex:
    """Vector index double that either returns canned matches or raises."""

    def __init__(self, matches: list[Match] | None = None, error: Exception | None = None):
        self.matches = matches or []
        self.error = error
        self.calls: list[tuple[list[float], int]] = []

    def search(self, query_vector, k: int = 3) -> list[Match]:
        self.calls.append((list(query_vector), k))
        if self.error is not None:
            raise self.error
        return list(self.matches)


@pytest.fixture()
def small_corpus() -> str:
    return SMALL_CORPUS


@pytest.fixture()
def sample_chunks() -> list[Chunk]:
    return [
        Chunk(
            chunk_id="chunk-0",
            title="Adherence",
            body="Take pills daily.",
            full_text="Adherence\nTake pills daily.",
        ),
        Chunk(
            chunk_id="chunk-1",
            title="Risk",
            body="Watch interactions.",
            full_text="Risk\nWatch interactions.",
        ),
    ]


@pytest.fixture()
def sample_records() -> list[FallbackRecord]:
    return [
        FallbackRecord(
            id="chunk-0",
            title="Adherence",
            text="Take pills daily.",
            full_text="Adherence\nTake pills daily.",
            embedding=[1.0, 0.0, 0.0],
        ),
        FallbackRecord(
            id="chunk-1",
            title="Risk",
            text="Watch interactions.",
            full_text="Risk\nWatch interactions.",
            embedding=[0.0, 1.0, 0.0],
        ),
        FallbackRecord(
            id="chunk-2",
            title="Storage",
            text="Keep pills away from heat and moisture.",
            full_text="Storage\nKeep pills away from heat and moisture.",
            embedding=[0.6, 0.0, 0.8],
        ),
    ]


@pytest.fixture()
def sample_matches() -> list[Match]:
    return [
        Match(text="Take pills daily.", score=0.91, title="Adherence", chunk_id="chunk-0"),
        Match(text="Watch interactions.", score=0.62, title="Risk", chunk_id="chunk-1"),
    ]
