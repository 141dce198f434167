from dataclasses import dataclass, asdict          # dataclass creates lightweight, readable data objects
from pathlib import PurePosixPath
from typing import Dict, Any, List, Tuple         # type hints for selector tables and records
from urllib.parse import urlparse


@dataclass(frozen=True)
class AssetRecord:                                 # One image found on a gallery page
    url: str                                      # Absolute link to the full image
    thumb: str                                    # Preview URL (often identical to url)


@dataclass(frozen=True)
class CatalogEntry:                                # Numbered, persisted form of an AssetRecord
    id: int                                       # 1-based, dense, discovery order
    name: str                                     # image_<id>.<ext>
    url: str
    thumb: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogEntry":
        return cls(
            id=int(data["id"]),
            name=str(data["name"]),
            url=str(data["url"]),
            thumb=str(data.get("thumb") or data["url"]),
        )


def image_extension(url: str, default: str = "jpg") -> str:
    """File extension of the URL path, without the dot ('jpg' if absent)."""
    suffix = PurePosixPath(urlparse(url).path).suffix
    return suffix[1:] if len(suffix) > 1 else default


def number_assets(records: List[AssetRecord]) -> List[CatalogEntry]:
    """Map records 1:1, in order, to CatalogEntry ids 1..k."""
    return [
        CatalogEntry(
            id=i,
            name=f"image_{i}.{image_extension(rec.url)}",
            url=rec.url,
            thumb=rec.thumb or rec.url,
        )
        for i, rec in enumerate(records, start=1)
    ]


class SiteAdapter:                                # Selector rules for one remote site
    name: str = "base"                            # Registry key used by pick_adapter
    domains: List[str] = []                       # Host fragments this adapter handles

    SEARCH_URL: str = ""                          # Template with one {} for the quoted term
    PAGE_PARAM: str = "page"                      # Query parameter for gallery sub-pages

    SEARCH_READY: str = "body"                    # Selector awaited on the search page
    GALLERY_READY: str = "img"                    # Selector awaited on gallery pages

    LINK_SELECTORS: Tuple[str, ...] = ()          # Gallery link rules, highest priority first
    LINK_HOST: str = ""                           # Substring every gallery link must contain
    LINK_EXCLUDE: Tuple[str, ...] = ()            # Pagination / search / tag / anchor links
    LINK_REQUIRE_IMG: bool = True                 # Only anchors wrapping an <img> count

    IMG_ATTRS: Tuple[str, ...] = ("src",)         # src first, then lazy-load attributes
    ASSET_SKIP: Tuple[str, ...] = (               # Site chrome, never gallery content
        "logo", "placeholder", "blank.gif", "icon-play.svg",
    )
    ASSET_HOSTS: Tuple[str, ...] = ()             # Empty → any host accepted
    MIN_WIDTH: int = 0                            # Anti-icon filter, applied when size is known
    MIN_HEIGHT: int = 0

    def search_url(self, quoted_term: str) -> str:
        return self.SEARCH_URL.format(quoted_term)

    def link_rules(self) -> Dict[str, Any]:
        return {
            "selectors": self.LINK_SELECTORS,
            "host": self.LINK_HOST,
            "exclude": self.LINK_EXCLUDE,
            "require_img": self.LINK_REQUIRE_IMG,
        }

    def asset_rules(self) -> Dict[str, Any]:
        return {
            "img_attrs": self.IMG_ATTRS,
            "hosts": self.ASSET_HOSTS,
            "skip": self.ASSET_SKIP,
            "min_width": self.MIN_WIDTH,
            "min_height": self.MIN_HEIGHT,
        }
