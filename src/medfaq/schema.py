from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class Chunk:
    """Titled section of the medication corpus used for retrieval."""

    chunk_id: str
    title: str
    body: str
    full_text: str


@dataclass(slots=True)
class Match:
    """Scored retrieval result returned by either retrieval path."""

    text: str
    score: float
    title: str | None = None
    chunk_id: str | None = None
    source: str = "remote"


@dataclass(slots=True)
class FallbackRecord:
    """One entry of the local fallback snapshot."""

    id: str
    title: str
    text: str
    full_text: str
    embedding: list[float] | None = None
    placeholder: bool = False


@dataclass(slots=True)
class FAQResponse:
    """Answer plus the matches it was composed from."""

    answer: str
    matches: list[Match] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Render the response for display, rounding scores to two decimals."""
        rendered = []
        for match in self.matches:
            row: dict = {"text": match.text, "score": round(float(match.score), 2)}
            if match.title is not None:
                row["title"] = match.title
            rendered.append(row)
        return {"answer": self.answer, "matches": rendered}
