from __future__ import annotations

import logging
from typing import Sequence

import chromadb

from .schema import Chunk, Match
from .settings import ChromaSettings

logger = logging.getLogger(__name__)


class VectorIndexError(RuntimeError):
    """Raised for any failure talking to the hosted vector index."""


class ChromaVectorIndex:
    """Vector index adapter over a Chroma collection using cosine distance."""

    def __init__(self, client, collection_name: str):
        """Bind the adapter to a Chroma client and collection name.

        Args:
            client: Any Chroma client (`HttpClient` in production,
                `EphemeralClient` in tests).
            collection_name: Collection holding the corpus vectors.
        """
        self.client = client
        self.collection_name = collection_name
        self._handle = None

    def _collection(self):
        if self._handle is not None:
            return self._handle
        try:
            self._handle = self.client.get_or_create_collection(
                name=self.collection_name,
                metadata={"hnsw:space": "cosine"},
            )
            return self._handle
        except Exception as exc:
            raise VectorIndexError(f"collection {self.collection_name!r} unavailable: {exc}") from exc

    def index(self, chunks: Sequence[Chunk], vectors: Sequence[Sequence[float]]) -> int:
        """Upsert chunk vectors with their title/text metadata.

        Re-indexing an existing chunk id replaces its vector and metadata.

        Args:
            chunks: Chunk records to index.
            vectors: Embedding vectors aligned to chunks.

        Returns:
            Number of upserted records.
        """
        if len(chunks) != len(vectors):
            raise VectorIndexError(f"got {len(chunks)} chunks but {len(vectors)} vectors")
        if not chunks:
            return 0

        collection = self._collection()
        try:
            collection.upsert(
                ids=[chunk.chunk_id for chunk in chunks],
                embeddings=[list(vector) for vector in vectors],
                documents=[chunk.body for chunk in chunks],
                metadatas=[
                    {"title": chunk.title, "text": chunk.body, "full_text": chunk.full_text}
                    for chunk in chunks
                ],
            )
        except Exception as exc:
            raise VectorIndexError(f"upsert failed: {exc}") from exc
        logger.info("Upserted %d vectors into %s", len(chunks), self.collection_name)
        return len(chunks)

    def search(self, query_vector: Sequence[float], k: int = 3) -> list[Match]:
        """Return up to `k` nearest chunks with cosine-similarity scores.

        Raises:
            VectorIndexError: On transport, auth or response-shape failures.
                An empty list only ever means the index holds no neighbours.
        """
        collection = self._collection()
        try:
            response = collection.query(
                query_embeddings=[list(query_vector)],
                n_results=k,
                include=["metadatas", "documents", "distances"],
            )
            rows = zip(
                response["ids"][0],
                response["metadatas"][0],
                response["documents"][0],
                response["distances"][0],
                strict=True,
            )
            matches = [
                Match(
                    text=(metadata or {}).get("text") or document or "",
                    score=float(1.0 - distance),
                    title=(metadata or {}).get("title"),
                    chunk_id=chunk_id,
                    source="remote",
                )
                for chunk_id, metadata, document, distance in rows
            ]
        except Exception as exc:
            raise VectorIndexError(f"query failed: {exc}") from exc
        return matches


def connect_chroma_index(settings: ChromaSettings) -> ChromaVectorIndex | None:
    """Build an adapter for a hosted Chroma server, or `None` when unconfigured."""
    if not settings.host:
        logger.info("CHROMA_HOST not set; remote vector index disabled")
        return None
    try:
        client = chromadb.HttpClient(host=settings.host, port=settings.port, ssl=settings.ssl)
    except Exception as exc:
        raise VectorIndexError(f"cannot connect to Chroma at {settings.host}:{settings.port}: {exc}") from exc
    return ChromaVectorIndex(client, settings.collection_name)
