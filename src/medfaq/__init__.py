"""Medication FAQ retrieval with a hosted vector index and a local fallback."""

from .schema import Chunk, FAQResponse, FallbackRecord, Match

__all__ = ["Chunk", "Match", "FallbackRecord", "FAQResponse"]
