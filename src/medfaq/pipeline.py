from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path

import numpy as np

from .chunking import chunk_corpus_file
from .embeddings import EmbeddingProvider, build_embedding_provider, placeholder_vector
from .io_utils import save_fallback_store
from .qa import AnswerComposer
from .retrieval import LocalFallbackMatcher, RetrievalOrchestrator, VectorIndex
from .schema import FAQResponse, FallbackRecord
from .settings import Settings
from .vector_store import ChromaVectorIndex, VectorIndexError, connect_chroma_index

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IndexReport:
    """Outcome of one offline indexing run."""

    chunk_count: int
    placeholder_ids: list[str]
    remote_upserted: int
    fallback_path: str


def index_corpus(
    corpus_path: str | Path,
    embedder: EmbeddingProvider | None,
    vector_index: ChromaVectorIndex | None,
    fallback_path: str | Path,
    dimension: int = 1536,
    rng: np.random.Generator | None = None,
) -> IndexReport:
    """Chunk the corpus, embed every chunk and publish both stores.

    A chunk whose embedding fails keeps its place in the fallback store with
    a random placeholder vector (flagged `placeholder=True`). The remote
    index only receives real embeddings. A remote upsert failure is logged
    and the fallback snapshot is still written.

    Args:
        corpus_path: Markdown corpus split on `##` headings.
        embedder: Embedding provider, or `None` to use placeholders throughout.
        vector_index: Hosted index adapter, or `None` to skip the upsert.
        fallback_path: Destination of the local fallback snapshot.
        dimension: Placeholder vector length; match the embedding model.
        rng: Random generator for placeholders.

    Returns:
        Summary of chunk counts, placeholder ids and upserted vectors.
    """
    chunks = chunk_corpus_file(corpus_path)
    logger.info("Split corpus into %d chunks", len(chunks))
    rng = rng if rng is not None else np.random.default_rng()

    records: list[FallbackRecord] = []
    embedded_chunks = []
    embedded_vectors: list[list[float]] = []
    for chunk in chunks:
        vector = None
        if embedder is not None:
            try:
                vector = embedder.embed(chunk.full_text)
            except Exception as exc:
                logger.warning("Embedding failed for %s (%s): %s", chunk.chunk_id, chunk.title, exc)

        if vector is None:
            records.append(
                FallbackRecord(
                    id=chunk.chunk_id,
                    title=chunk.title,
                    text=chunk.body,
                    full_text=chunk.full_text,
                    embedding=placeholder_vector(dimension, rng),
                    placeholder=True,
                )
            )
            continue

        embedded_chunks.append(chunk)
        embedded_vectors.append(vector)
        records.append(
            FallbackRecord(
                id=chunk.chunk_id,
                title=chunk.title,
                text=chunk.body,
                full_text=chunk.full_text,
                embedding=list(vector),
            )
        )

    upserted = 0
    if vector_index is not None:
        try:
            upserted = vector_index.index(embedded_chunks, embedded_vectors)
        except VectorIndexError as exc:
            logger.warning("Remote index upsert failed, fallback store only: %s", exc)

    save_fallback_store(records, fallback_path)
    logger.info("Fallback store saved to %s", fallback_path)

    return IndexReport(
        chunk_count=len(chunks),
        placeholder_ids=[record.id for record in records if record.placeholder],
        remote_upserted=upserted,
        fallback_path=str(fallback_path),
    )


def validate_query(query: str | None, k: int = 3) -> None:
    """Reject input that must not reach retrieval."""
    if query is None or not query.strip():
        raise ValueError('query parameter "q" is required')
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")


def answer_query(
    query: str | None,
    orchestrator: RetrievalOrchestrator,
    composer: AnswerComposer,
    k: int = 3,
) -> FAQResponse:
    """Retrieve matches for `query` and compose the answer.

    Raises:
        ValueError: If the query is missing or blank, or `k` is below 1.
    """
    validate_query(query, k)
    matches = orchestrator.retrieve(query, k=k)
    answer = composer.compose(query, matches)
    return FAQResponse(answer=answer, matches=matches)


def build_orchestrator(
    settings: Settings,
    embedder: EmbeddingProvider | None = None,
    vector_index: VectorIndex | None = None,
) -> RetrievalOrchestrator:
    """Construct the orchestrator from configuration.

    Explicit `embedder`/`vector_index` arguments take precedence over the
    configured ones, which lets tests and scripts inject fakes.
    """
    if embedder is None:
        embedder = build_embedding_provider(settings.openai)
    if vector_index is None:
        try:
            vector_index = connect_chroma_index(settings.chroma)
        except VectorIndexError as exc:
            logger.warning("Remote vector index unavailable: %s", exc)

    return RetrievalOrchestrator(
        vector_index=vector_index,
        embedder=embedder,
        fallback_matcher=LocalFallbackMatcher(embedder),
        fallback_path=settings.paths.fallback_path,
        remote_timeout=settings.retrieval.remote_timeout,
    )
