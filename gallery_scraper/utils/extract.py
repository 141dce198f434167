"""
DOM → data transforms over a Document snapshot. No I/O.

extract_links  → ordered gallery URLs from a search page
extract_assets → ordered AssetRecords from one gallery page
"""

import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from gallery_scraper.adapters.base import AssetRecord
from gallery_scraper.browser import Document
from gallery_scraper.utils.dedupe import dedupe

logger = logging.getLogger(__name__)

IMAGE_EXT_RE = re.compile(r"\.(jpe?g|png|gif|webp)$", re.IGNORECASE)


def is_image_url(url: Optional[str]) -> bool:
    if not url:
        return False
    return bool(IMAGE_EXT_RE.search(urlsplit(url).path))


def extract_links(
    doc: Document,
    selectors: Sequence[str],
    host: str = "",
    exclude: Sequence[str] = (),
    require_img: bool = True,
    limit: int = 10,
) -> List[str]:
    """
    Evaluates selectors in priority order and merges matches first-seen.

    Returns:
        at most `limit` absolute gallery URLs
    """
    found: Dict[str, None] = {}

    for selector in selectors:
        for el in doc.select(selector):
            href = doc.absolute(el.get("href"))
            if not href:
                continue
            if host and host not in href:
                continue
            if any(x in href for x in exclude):
                continue
            if require_img and el.find("img") is None:
                continue
            found.setdefault(href, None)

    links = list(found)[:limit]
    logger.debug("extract_links: %d unique candidates, keeping %d", len(found), len(links))
    return links


def _is_junk(url: str, skip: Sequence[str]) -> bool:
    lower = url.lower()
    return any(j in lower for j in skip)


def _img_source(img, attrs: Sequence[str], doc: Document, skip: Sequence[str]) -> Optional[str]:
    # src first, then lazy-load attributes; placeholders fall through
    for attr in attrs:
        value = doc.absolute(img.get(attr))
        if not value or value.startswith("data:"):
            continue
        if _is_junk(value, skip):
            continue
        if is_image_url(value):
            return value
    return None


def _to_int(value) -> Optional[int]:
    if value is None:
        return None
    text = str(value).strip()
    # "50%" is not a pixel size
    if text.endswith("%"):
        return None
    match = re.match(r"(\d+)", text)
    return int(match.group(1)) if match else None


def image_size(img) -> Optional[Tuple[int, int]]:
    """Rendered size stamped by the navigator, else width/height attributes."""
    width = _to_int(img.get("data-rendered-width"))
    height = _to_int(img.get("data-rendered-height"))
    if width is None or height is None:
        width = _to_int(img.get("width"))
        height = _to_int(img.get("height"))
    if width is None or height is None:
        return None
    return width, height


def extract_assets(
    doc: Document,
    img_attrs: Sequence[str] = ("src",),
    hosts: Sequence[str] = (),
    min_width: int = 0,
    min_height: int = 0,
    skip: Sequence[str] = (),
) -> List[AssetRecord]:
    """
    Scans <img> elements and anchors pointing straight at image files, in
    document order. Images smaller than min_width x min_height are dropped
    when their size is known; `hosts` (if given) is an allowlist of URL
    substrings. The result is deduplicated by normalized URL together with
    the thumbnail, the same key used across pages.
    """
    records: List[AssetRecord] = []
    small = 0

    for el in doc.select("img, a[href]"):
        if el.name == "img":
            url = _img_source(el, img_attrs, doc, skip)
            if url is None:
                continue
            size = image_size(el)
            if size and (size[0] < min_width or size[1] < min_height):
                small += 1
                continue
            thumb = url
        else:
            url = doc.absolute(el.get("href"))
            if not is_image_url(url) or _is_junk(url, skip):
                continue
            img = el.find("img")
            thumb = _img_source(img, img_attrs, doc, skip) if img is not None else None

        if hosts and not any(h in url for h in hosts):
            continue

        records.append(AssetRecord(url=url, thumb=thumb or url))

    if small:
        logger.debug("extract_assets: skipped %d undersized images on %s", small, doc.url)
    return dedupe(records)
