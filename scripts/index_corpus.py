import logging

from medfaq.embeddings import build_embedding_provider
from medfaq.pipeline import index_corpus
from medfaq.settings import load_settings
from medfaq.vector_store import VectorIndexError, connect_chroma_index


def main() -> None:
    """Chunk and embed the corpus, then publish the remote index and fallback store."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    settings = load_settings()

    try:
        vector_index = connect_chroma_index(settings.chroma)
    except VectorIndexError as exc:
        logging.warning("Skipping remote index: %s", exc)
        vector_index = None

    report = index_corpus(
        corpus_path=settings.paths.corpus_path,
        embedder=build_embedding_provider(settings.openai),
        vector_index=vector_index,
        fallback_path=settings.paths.fallback_path,
        dimension=settings.openai.embedding_dimension,
    )
    print(
        f"Indexed {report.chunk_count} chunks "
        f"({len(report.placeholder_ids)} placeholder vectors, "
        f"{report.remote_upserted} upserted remotely) -> {report.fallback_path}"
    )


if __name__ == "__main__":
    main()
