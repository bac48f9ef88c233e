from medfaq.chunking import split_into_chunks
from medfaq.retrieval import keyword_search
from medfaq.schema import FallbackRecord


if __name__ == "__main__":
    chunks = split_into_chunks("## Adherence\nTake pills daily.\n## Risk\nWatch interactions.")
    records = [
        FallbackRecord(id=c.chunk_id, title=c.title, text=c.body, full_text=c.full_text)
        for c in chunks
    ]
    matches = keyword_search("pills", records)
    print(
        {
            "chunks": [c.chunk_id for c in chunks],
            "keyword_matches": [(m.chunk_id, m.score) for m in matches],
        }
    )
