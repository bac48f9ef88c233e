from __future__ import annotations

import logging
from pathlib import Path
import threading
from typing import Protocol, Sequence

import numpy as np

from .embeddings import EmbeddingProvider, cosine_similarity
from .io_utils import load_fallback_store
from .schema import FallbackRecord, Match

logger = logging.getLogger(__name__)

MIN_TOKEN_LENGTH = 3
KEYWORD_SCORE_FLOOR = 0.5
KEYWORD_SCORE_SCALE = 0.9


class VectorIndex(Protocol):
    def search(self, query_vector: Sequence[float], k: int = 3) -> list[Match]: ...


def tokenize_query(query: str) -> list[str]:
    """Lower-case, whitespace-split and keep distinct tokens of 3+ characters."""
    tokens = [token for token in query.lower().split() if len(token) >= MIN_TOKEN_LENGTH]
    return list(dict.fromkeys(tokens))


def rank_matches(matches: list[Match], k: int) -> list[Match]:
    """Stable descending sort by score, truncated to `k`."""
    return sorted(matches, key=lambda match: match.score, reverse=True)[:k]


def keyword_search(query: str, records: list[FallbackRecord], k: int = 3) -> list[Match]:
    """Score records by the fraction of query tokens they contain.

    Args:
        query: Raw user query.
        records: Fallback records in corpus order.
        k: Number of results to return.

    Returns:
        Matches with raw overlap rescaled to `max(0.5, overlap * 0.9)`, so any
        kept result lands in `[0.5, 0.9]`. Records with no overlap are dropped.
    """
    tokens = tokenize_query(query)
    if not tokens:
        return []

    scored: list[tuple[float, FallbackRecord]] = []
    for record in records:
        haystack = f"{record.full_text} {record.title}".lower()
        hits = sum(1 for token in tokens if token in haystack)
        if hits:
            scored.append((hits / len(tokens), record))

    ranked = sorted(scored, key=lambda item: item[0], reverse=True)[:k]
    return [
        Match(
            text=record.text,
            score=max(KEYWORD_SCORE_FLOOR, raw_score * KEYWORD_SCORE_SCALE),
            title=record.title,
            chunk_id=record.id,
            source="keyword",
        )
        for raw_score, record in ranked
    ]


def vector_search(query_vector: Sequence[float], records: list[FallbackRecord], k: int = 3) -> list[Match]:
    """Rank records by cosine similarity against the query vector.

    Records without an embedding, or whose embedding dimension differs from
    the query's, are skipped rather than failing the search. Rows whose
    score is not finite are dropped so the ranking stays ordered.
    """
    query = np.asarray(query_vector, dtype=np.float32)
    candidates = [
        record
        for record in records
        if record.embedding is not None and len(record.embedding) == query.shape[0]
    ]
    if not candidates or not np.all(np.isfinite(query)):
        return []

    matrix = np.array([record.embedding for record in candidates], dtype=np.float32)
    scores = cosine_similarity(query, matrix)
    matches = [
        Match(
            text=record.text,
            score=float(score),
            title=record.title,
            chunk_id=record.id,
            source="local-vector",
        )
        for record, score in zip(candidates, scores, strict=True)
        if np.isfinite(score)
    ]
    return rank_matches(matches, k)


class LocalFallbackMatcher:
    """In-process search over the fallback snapshot.

    Uses vector mode when the embedding provider can embed the query and
    keyword mode otherwise.
    """

    def __init__(self, embedder: EmbeddingProvider | None = None):
        self.embedder = embedder

    def _embed_query(self, query: str) -> list[float] | None:
        if self.embedder is None:
            return None
        try:
            return self.embedder.embed(query)
        except Exception as exc:
            logger.warning("Query embedding failed, using keyword matching: %s", exc)
            return None

    def search(self, query: str, records: list[FallbackRecord], k: int = 3) -> list[Match]:
        query_vector = self._embed_query(query)
        if query_vector is None:
            return keyword_search(query, records, k=k)
        return vector_search(query_vector, records, k=k)

    def search_store(self, query: str, store_path: str | Path, k: int = 3) -> list[Match]:
        """Load the snapshot at `store_path` and search it; missing stores give `[]`."""
        return self.search(query, load_fallback_store(store_path), k=k)


class RetrievalOrchestrator:
    """Remote-first retrieval with a strict either/or local fallback.

    Each request runs `TRY_REMOTE`; any exception from it, including a
    timeout or an unconfigured index, moves to `TRY_LOCAL`. Results from the
    two paths are never merged.
    """

    def __init__(
        self,
        vector_index: VectorIndex | None,
        embedder: EmbeddingProvider | None,
        fallback_matcher: LocalFallbackMatcher,
        fallback_path: str | Path,
        remote_timeout: float | None = 15.0,
    ):
        """Wire the remote index, the local matcher and the snapshot path.

        Args:
            vector_index: Hosted index adapter, or `None` when not configured.
            embedder: Provider used to embed the query for the remote search.
            fallback_matcher: Matcher used when the remote attempt fails.
            fallback_path: Location of the fallback snapshot.
            remote_timeout: Seconds allowed for the whole remote attempt;
                `None` disables the bound.
        """
        self.vector_index = vector_index
        self.embedder = embedder
        self.fallback_matcher = fallback_matcher
        self.fallback_path = Path(fallback_path)
        self.remote_timeout = remote_timeout

    def _remote_search(self, query: str, k: int) -> list[Match]:
        if self.vector_index is None:
            raise RuntimeError("remote vector index is not configured")
        if self.embedder is None:
            raise RuntimeError("embedding provider is not configured")
        query_vector = self.embedder.embed(query)
        return self.vector_index.search(query_vector, k)

    def _remote_search_with_timeout(self, query: str, k: int) -> list[Match]:
        outcome: dict = {}

        def _run() -> None:
            try:
                outcome["matches"] = self._remote_search(query, k)
            except Exception as exc:
                outcome["error"] = exc

        # Daemon worker: a hung call must not hold up interpreter exit.
        worker = threading.Thread(target=_run, name="medfaq-remote", daemon=True)
        worker.start()
        worker.join(self.remote_timeout)
        if worker.is_alive():
            raise TimeoutError(f"remote search exceeded {self.remote_timeout}s")
        if "error" in outcome:
            raise outcome["error"]
        return outcome["matches"]

    def _try_remote(self, query: str, k: int) -> list[Match]:
        if self.remote_timeout is None:
            matches = self._remote_search(query, k)
        else:
            matches = self._remote_search_with_timeout(query, k)
        return rank_matches(matches, k)

    def _try_local(self, query: str, k: int) -> list[Match]:
        return self.fallback_matcher.search_store(query, self.fallback_path, k=k)

    def retrieve(self, query: str, k: int = 3) -> list[Match]:
        """Return ranked matches from the remote index, else from the local snapshot."""
        try:
            return self._try_remote(query, k)
        except Exception as exc:
            logger.warning("Remote vector search failed, using local fallback: %s", exc)
        return self._try_local(query, k)
