from __future__ import annotations

from dataclasses import asdict
import json
import logging
import math
import os
from pathlib import Path
import tempfile

from .schema import FallbackRecord

logger = logging.getLogger(__name__)

SNAPSHOT_MODE = 0o644


def save_fallback_store(records: list[FallbackRecord], path: str | Path) -> None:
    """Write the fallback snapshot, replacing any previous one atomically.

    The records are written to a temporary file in the destination directory
    and moved into place with `os.replace`, so concurrent readers see either
    the old snapshot or the new one, never a partial file.
    """
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=destination.parent, prefix=f".{destination.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as file_handle:
            json.dump([asdict(record) for record in records], file_handle, indent=2)
        os.chmod(tmp_name, SNAPSHOT_MODE)
        os.replace(tmp_name, destination)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _coerce_embedding(value) -> list[float] | None:
    if not isinstance(value, list) or not value:
        return None
    try:
        vector = [float(component) for component in value]
    except (TypeError, ValueError):
        return None
    if not all(math.isfinite(component) for component in vector):
        return None
    return vector


def _parse_record(raw: dict) -> FallbackRecord | None:
    text = raw.get("text")
    title = raw.get("title") or ""
    if not isinstance(text, str):
        return None
    return FallbackRecord(
        id=str(raw.get("id", "")),
        title=str(title),
        text=text,
        full_text=raw.get("full_text") or raw.get("fullText") or f"{title}\n{text}",
        embedding=_coerce_embedding(raw.get("embedding")),
        placeholder=bool(raw.get("placeholder", False)),
    )


def load_fallback_store(path: str | Path) -> list[FallbackRecord]:
    """Load the fallback snapshot, tolerating a missing or damaged file.

    Returns:
        Parsed records in corpus order. A missing, unreadable or non-list
        file yields an empty list; individual records without text are
        skipped and records with a bad `embedding` load with `None`.
    """
    source = Path(path)
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning("Fallback store not found at %s", source)
        return []
    except (OSError, ValueError) as exc:
        logger.warning("Fallback store at %s is unreadable: %s", source, exc)
        return []

    if not isinstance(raw, list):
        logger.warning("Fallback store at %s is not a list of records", source)
        return []

    records = [record for record in (_parse_record(item) for item in raw if isinstance(item, dict)) if record]
    if len(records) != len(raw):
        logger.warning("Skipped %d malformed fallback records", len(raw) - len(records))
    return records
