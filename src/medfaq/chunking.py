from __future__ import annotations

from pathlib import Path

from .schema import Chunk

SECTION_MARKER = "##"


def split_into_chunks(text: str, marker: str = SECTION_MARKER) -> list[Chunk]:
    """Split a marker-delimited corpus into titled chunks.

    The first non-empty line of each section becomes the title and the
    remaining lines form the body. Sections without a body are dropped and
    do not consume an id, so ids stay dense in emission order.

    Args:
        text: Raw corpus text.
        marker: Section separator, `##` for markdown headings.

    Returns:
        Chunk records with ids `chunk-0`, `chunk-1`, ...
    """
    chunks: list[Chunk] = []
    for section in text.split(marker):
        if not section.strip():
            continue

        lines = section.strip().splitlines()
        title = lines[0].strip()
        body = "\n".join(lines[1:]).strip()
        if not body:
            continue

        chunks.append(
            Chunk(
                chunk_id=f"chunk-{len(chunks)}",
                title=title,
                body=body,
                full_text=f"{title}\n{body}",
            )
        )
    return chunks


def chunk_corpus_file(path: str | Path, marker: str = SECTION_MARKER) -> list[Chunk]:
    return split_into_chunks(Path(path).read_text(encoding="utf-8"), marker=marker)
