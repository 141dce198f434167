import asyncio

from gallery_scraper.adapters.ahottie import AhottieAdapter
from gallery_scraper.collector import collect_gallery, page_url
from gallery_scraper.errors import NavigationError

from fakes import GALLERY_URL, StaticNavigator, site_pages

ADAPTER = AhottieAdapter()


def collect(pages, log, settings, base=GALLERY_URL):
    nav = StaticNavigator(pages, log)
    return asyncio.run(collect_gallery(nav, ADAPTER, base, settings))


def gallery(n):
    return f'<img src="https://ahottie.net/wp-content/uploads/p{n}.jpg">'


def test_page_url():
    assert page_url("https://h.net/albums/a", 1) == "https://h.net/albums/a"
    assert page_url("https://h.net/albums/a", 3) == "https://h.net/albums/a?page=3"
    assert page_url("https://h.net/albums/a?lang=en", 2) == "https://h.net/albums/a?lang=en&page=2"
    assert page_url("https://h.net/albums/a?page=9", 2) == "https://h.net/albums/a?page=2"


def test_collect_stops_at_first_404(session_log, settings):
    records = collect(site_pages(), session_log, settings)

    assert session_log.visits == [
        GALLERY_URL,
        GALLERY_URL + "?page=2",
        GALLERY_URL + "?page=3",
    ]
    # page order, within-page order; cross-page duplicates are left to dedupe
    assert [r.url for r in records] == [
        "https://ahottie.net/wp-content/uploads/a.jpg",
        "https://imgbox.com/b.webp",
        "https://imgbox.com/c.png",
        "https://imgbox.com/c_t.png",
        "https://ahottie.net/wp-content/uploads/a.jpg#top",
        "https://ahottie.net/wp-content/uploads/e.JPEG",
    ]


def test_collect_bounded_by_max_pages(session_log, settings):
    pages = {page_url(GALLERY_URL, n): (200, gallery(n)) for n in range(1, 9)}
    settings.max_pages = 5

    records = collect(pages, session_log, settings)

    assert len(session_log.visits) == 5
    assert [r.url.rsplit("/", 1)[-1] for r in records] == ["p1.jpg", "p2.jpg", "p3.jpg", "p4.jpg", "p5.jpg"]


def test_collect_skips_a_failed_page(session_log, settings):
    pages = {
        page_url(GALLERY_URL, 1): (200, gallery(1)),
        page_url(GALLERY_URL, 2): NavigationError("timeout", url="p2"),
        page_url(GALLERY_URL, 3): (200, gallery(3)),
    }

    records = collect(pages, session_log, settings)

    assert [r.url.rsplit("/", 1)[-1] for r in records] == ["p1.jpg", "p3.jpg"]
    assert session_log.visits[-1] == page_url(GALLERY_URL, 4)


def test_collect_first_page_missing(session_log, settings):
    assert collect({}, session_log, settings) == []
    assert session_log.visits == [GALLERY_URL]
