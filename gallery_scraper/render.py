from html import escape
from typing import List

from gallery_scraper.adapters.base import CatalogEntry
from gallery_scraper.cache import CacheStore
from gallery_scraper.errors import NotFoundError

PAGE_STYLE = "body{margin:40px;font-family:Arial;}"


def render_album_html(term: str, index: int, entries: List[CatalogEntry]) -> str:
    """Plain HTML page listing every cached image of one album."""
    blocks = "".join(
        f'\n  <div><h3>{escape(e.name)}</h3>'
        f'<img src="{escape(e.url, quote=True)}" alt="{escape(e.name, quote=True)}" '
        f'style="max-width:100%;max-height:600px;"></div>'
        for e in entries
    )
    title = escape(term)
    return (
        f"<html><head><title>Images for {title}</title><style>{PAGE_STYLE}</style></head>\n"
        f"<body><h1>Images for {title} (Index {int(index)})</h1>"
        f"<p>Total: {len(entries)}</p>{blocks}\n</body></html>\n"
    )


def render_cached_album(cache: CacheStore, term: str, index: int) -> str:
    """Render from cache only; never scrapes."""
    entries = cache.get(term, index)
    if not entries:
        raise NotFoundError(term, str(index), cached=entries is not None)
    return render_album_html(term, index, entries)
