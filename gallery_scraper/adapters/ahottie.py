from gallery_scraper.adapters.base import SiteAdapter


class AhottieAdapter(SiteAdapter):
    name = "ahottie"
    domains = ["ahottie.net"]

    SEARCH_URL = "https://ahottie.net/search?kw={}"
    PAGE_PARAM = "page"

    SEARCH_READY = "body"
    GALLERY_READY = "img, [style*='background-image']"

    LINK_SELECTORS = (
        "a[href*='/albums/']",
        "a[href*='/gallery/']",
        ".post-title a", ".entry-title a", "h2 a", "h3 a", ".post a",
        ".gallery a", ".thumb a", "a.image-link", ".post-thumbnail a",
    )
    LINK_HOST = "ahottie.net"
    LINK_EXCLUDE = ("/page/", "/search", "/?s=", "#", "/tags/")
    LINK_REQUIRE_IMG = True

    IMG_ATTRS = ("src", "data-src", "data-lazy-src", "data-original")
    ASSET_HOSTS = ("ahottie.net", "imgbox.com", "wp-content")
    # gallery thumbnails are well above this; site chrome (logos, icons) is not
    MIN_WIDTH = 100
    MIN_HEIGHT = 100
