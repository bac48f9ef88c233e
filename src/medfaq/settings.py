from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


@dataclass(slots=True)
class OpenAISettings:
    """Runtime model configuration for embedding and generation calls."""

    api_key: str | None = None
    embedding_model: str = "text-embedding-3-small"
    chat_model: str = "gpt-4.1-mini"
    timeout: float = 10.0
    embedding_dimension: int = 1536


@dataclass(slots=True)
class ChromaSettings:
    """Connection details for the hosted Chroma vector index."""

    host: str | None = None
    port: int = 8000
    collection_name: str = "medication-faq"
    ssl: bool = False


@dataclass(slots=True)
class Paths:
    """Corpus and fallback snapshot locations."""

    corpus_path: str = "data/corpus.md"
    fallback_path: str = "artifacts/fallback-embeddings.json"


@dataclass(slots=True)
class RetrievalSettings:
    top_k: int = 3
    remote_timeout: float = 15.0


@dataclass(slots=True)
class Settings:
    """Aggregate of every configuration group."""

    openai: OpenAISettings = field(default_factory=OpenAISettings)
    chroma: ChromaSettings = field(default_factory=ChromaSettings)
    paths: Paths = field(default_factory=Paths)
    retrieval: RetrievalSettings = field(default_factory=RetrievalSettings)


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def load_settings() -> Settings:
    """Load environment-backed settings and return typed config objects.

    Blank values are treated as unset, so a template `.env` neither enables a
    remote capability nor breaks numeric parsing.

    Returns:
        Settings aggregate covering OpenAI, Chroma, paths and retrieval.
    """
    load_dotenv()
    return Settings(
        openai=OpenAISettings(
            api_key=os.getenv("OPENAI_API_KEY") or None,
            embedding_model=os.getenv("OPENAI_EMBEDDING_MODEL") or "text-embedding-3-small",
            chat_model=os.getenv("OPENAI_CHAT_MODEL") or "gpt-4.1-mini",
            timeout=float(os.getenv("OPENAI_TIMEOUT") or "10"),
            embedding_dimension=int(os.getenv("EMBEDDING_DIMENSION") or "1536"),
        ),
        chroma=ChromaSettings(
            host=os.getenv("CHROMA_HOST") or None,
            port=int(os.getenv("CHROMA_PORT") or "8000"),
            collection_name=os.getenv("CHROMA_COLLECTION") or "medication-faq",
            ssl=_env_flag("CHROMA_SSL"),
        ),
        paths=Paths(
            corpus_path=os.getenv("MEDFAQ_CORPUS_PATH") or "data/corpus.md",
            fallback_path=os.getenv("MEDFAQ_FALLBACK_PATH") or "artifacts/fallback-embeddings.json",
        ),
        retrieval=RetrievalSettings(
            top_k=int(os.getenv("MEDFAQ_TOP_K") or "3"),
            remote_timeout=float(os.getenv("MEDFAQ_REMOTE_TIMEOUT") or "15"),
        ),
    )
