"""
JSON-file cache of numbered albums.

Layout:
    <storage>/cache/<quoted term>/images_<index>.json

Each file holds a bare JSON list of catalog entries. An empty list is a
valid record: "scraped before, nothing found".
"""

import json
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote, unquote

from gallery_scraper.adapters.base import CatalogEntry
from gallery_scraper.config import Environment

logger = logging.getLogger(__name__)

RECORD_RE = re.compile(r"^images_(\d+)\.json$")


def term_dirname(term: str) -> str:
    """Percent-encode a search term into one safe path segment."""
    if not term:
        raise ValueError("term must not be empty")
    # dots are encoded too so "." / ".." can never escape the cache root
    return quote(term, safe="").replace(".", "%2E")


@dataclass
class CacheRecord:
    term: str
    index: int
    entries: List[CatalogEntry]
    path: Path
    mtime: float

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def cached_at(self) -> str:
        return datetime.fromtimestamp(self.mtime, tz=timezone.utc).isoformat()


class CacheStore:
    """Durable (term, index) → [CatalogEntry] records, replaced wholesale on write."""

    def __init__(self, env: Environment):
        self.root = env.cache_dir

    def path_for(self, term: str, index: int) -> Path:
        return self.root / term_dirname(term) / f"images_{int(index)}.json"

    def get_record(self, term: str, index: int) -> Optional[CacheRecord]:
        path = self.path_for(term, index)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Unreadable cache file %s: %s", path, exc)
            return None

        if not isinstance(data, list):
            logger.warning("Unexpected cache payload in %s, ignoring", path)
            return None
        try:
            entries = [CatalogEntry.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed cache entry in %s: %s", path, exc)
            return None

        return CacheRecord(term=term, index=int(index), entries=entries, path=path, mtime=mtime)

    def get(self, term: str, index: int) -> Optional[List[CatalogEntry]]:
        record = self.get_record(term, index)
        return None if record is None else record.entries

    def put(self, term: str, index: int, entries: List[CatalogEntry]) -> Path:
        path = self.path_for(term, index)
        path.parent.mkdir(parents=True, exist_ok=True)

        tmp = path.with_name(path.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump([e.to_dict() for e in entries], f, ensure_ascii=False, indent=2)
        os.replace(tmp, path)

        logger.info("Cached %d images for %s at index %s -> %s", len(entries), term, index, path)
        return path

    def delete(self, term: str, index: int) -> bool:
        path = self.path_for(term, index)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def list_terms(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return sorted(unquote(p.name) for p in self.root.iterdir() if p.is_dir())

    def list_indexes(self, term: str) -> List[int]:
        folder = self.root / term_dirname(term)
        if not folder.is_dir():
            return []
        found = []
        for p in folder.iterdir():
            m = RECORD_RE.match(p.name)
            if m:
                found.append(int(m.group(1)))
        return sorted(found)
