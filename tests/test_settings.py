"""Tests for settings.py — load_settings defaults and env overrides."""
from __future__ import annotations

import pytest

from medfaq.settings import ChromaSettings, OpenAISettings, Paths, RetrievalSettings, Settings, load_settings

ENV_VARS = [
    "OPENAI_API_KEY",
    "OPENAI_EMBEDDING_MODEL",
    "OPENAI_CHAT_MODEL",
    "OPENAI_TIMEOUT",
    "EMBEDDING_DIMENSION",
    "CHROMA_HOST",
    "CHROMA_PORT",
    "CHROMA_COLLECTION",
    "CHROMA_SSL",
    "MEDFAQ_CORPUS_PATH",
    "MEDFAQ_FALLBACK_PATH",
    "MEDFAQ_TOP_K",
    "MEDFAQ_REMOTE_TIMEOUT",
]


@pytest.fixture()
def clean_env(monkeypatch):
    monkeypatch.setattr("medfaq.settings.load_dotenv", lambda: None)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:
    def test_openai_defaults(self):
        s = OpenAISettings()
        assert s.api_key is None
        assert s.embedding_model == "text-embedding-3-small"
        assert s.chat_model == "gpt-4.1-mini"
        assert s.embedding_dimension == 1536

    def test_chroma_disabled_by_default(self):
        assert ChromaSettings().host is None

    def test_paths(self):
        p = Paths()
        assert p.corpus_path == "data/corpus.md"
        assert p.fallback_path.endswith("fallback-embeddings.json")

    def test_retrieval_top_k(self):
        assert RetrievalSettings().top_k == 3


class TestLoadSettings:
    def test_returns_settings(self, clean_env):
        assert isinstance(load_settings(), Settings)

    def test_defaults_when_env_vars_absent(self, clean_env):
        settings = load_settings()
        assert settings.openai.api_key is None
        assert settings.chroma.host is None
        assert settings.retrieval.remote_timeout == 15.0

    def test_blank_api_key_treated_as_unset(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "")
        clean_env.setenv("CHROMA_HOST", "")
        settings = load_settings()
        assert settings.openai.api_key is None
        assert settings.chroma.host is None

    def test_env_vars_override_defaults(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-test")
        clean_env.setenv("OPENAI_CHAT_MODEL", "gpt-4o")
        clean_env.setenv("CHROMA_HOST", "vectors.internal")
        clean_env.setenv("CHROMA_PORT", "9000")
        clean_env.setenv("CHROMA_SSL", "true")
        clean_env.setenv("MEDFAQ_TOP_K", "5")
        clean_env.setenv("MEDFAQ_FALLBACK_PATH", "/tmp/store.json")
        settings = load_settings()
        assert settings.openai.api_key == "sk-test"
        assert settings.openai.chat_model == "gpt-4o"
        assert settings.chroma.host == "vectors.internal"
        assert settings.chroma.port == 9000
        assert settings.chroma.ssl is True
        assert settings.retrieval.top_k == 5
        assert settings.paths.fallback_path == "/tmp/store.json"

    def test_blank_values_fall_back_to_defaults(self, clean_env):
        for name in ENV_VARS:
            clean_env.setenv(name, "")
        settings = load_settings()
        assert settings.openai.timeout == 10.0
        assert settings.openai.embedding_dimension == 1536
        assert settings.openai.embedding_model == "text-embedding-3-small"
        assert settings.chroma.port == 8000
        assert settings.chroma.ssl is False
        assert settings.retrieval.top_k == 3
        assert settings.retrieval.remote_timeout == 15.0
        assert settings.paths.corpus_path == "data/corpus.md"
