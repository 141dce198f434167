from typing import Iterable, List, Set
from urllib.parse import urlsplit, urlunsplit

from gallery_scraper.adapters.base import AssetRecord


def strip_query(url: str) -> str:
    """Drop query string and fragment: cache-busting variants collapse to one URL."""
    parts = urlsplit(url or "")
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def normalized_key(record: AssetRecord) -> str:
    return f"{strip_query(record.url)}|{strip_query(record.thumb)}"


def dedupe(records: Iterable[AssetRecord]) -> List[AssetRecord]:
    """Keep the first record per normalized key, preserving discovery order."""
    seen: Set[str] = set()
    out: List[AssetRecord] = []
    for record in records:
        key = normalized_key(record)
        if key in seen:
            continue
        seen.add(key)
        out.append(record)
    return out
