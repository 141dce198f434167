import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from gallery_scraper.cache import CacheStore
from gallery_scraper.config import Environment, ScrapeSettings
from gallery_scraper.dispatcher import pick_adapter
from gallery_scraper.errors import (
    BrowserNotFoundError,
    InvalidIndexError,
    NotFoundError,
    ScraperError,
)
from gallery_scraper.orchestrator import ScrapeOrchestrator
from gallery_scraper.render import render_cached_album
from gallery_scraper.resolver import normalize_term, parse_index

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID = 2
EXIT_NOT_FOUND = 3


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Gallery image scraper with on-disk cache")
    p.add_argument("--env-file", type=str, default=None, help=".env file to load")
    p.add_argument("--site", type=str, default=None, help="Adapter name (default: ahottie)")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    album = sub.add_parser("album", help="Fetch (or serve cached) images for TERM at INDEX")
    album.add_argument("term", help="Search term")
    album.add_argument("index", help="1-based gallery position in the search results")
    album.add_argument("--out-json", type=str, default=None, help="Also write the payload here")

    render = sub.add_parser("render", help="Render a cached album as HTML")
    render.add_argument("term")
    render.add_argument("index")
    render.add_argument("--out-html", type=str, required=True)

    listing = sub.add_parser("list", help="List cached terms, or the cached indexes of TERM")
    listing.add_argument("term", nargs="?", default=None)

    sub.add_parser("check", help="Verify the configured Chromium executable")
    return p.parse_args(argv)


def emit(payload: dict, out_json: str | None = None):
    text = json.dumps(payload, ensure_ascii=False, indent=2)
    print(text)
    if out_json:
        Path(out_json).parent.mkdir(parents=True, exist_ok=True)
        Path(out_json).write_text(text, encoding="utf-8")


async def run_album(args, env: Environment, settings: ScrapeSettings) -> int:
    try:
        term = normalize_term(args.term)
        adapter = pick_adapter(args.site)
    except ValueError as exc:
        emit({"error": str(exc)})
        return EXIT_INVALID

    orchestrator = ScrapeOrchestrator(CacheStore(env), env=env, settings=settings, adapter=adapter)
    try:
        result = await orchestrator.get_album(term, args.index)
    except InvalidIndexError as exc:
        emit({"error": str(exc)})
        return EXIT_INVALID
    except NotFoundError as exc:
        emit({
            "error": str(exc),
            "suggestion": f"Try another term or index. Visit {exc.search_url} to confirm.",
            "debug": exc.debug(),
        })
        return EXIT_NOT_FOUND
    except ScraperError as exc:
        emit({"error": str(exc), "debug": {"term": args.term, "index": args.index}})
        return EXIT_ERROR

    emit(result.to_dict(), args.out_json)
    logging.getLogger("runner").info("[OK] %d images (%s)", result.total, result.source)
    return EXIT_OK


def run_render(args, env: Environment) -> int:
    try:
        term = normalize_term(args.term)
        index = parse_index(args.index)
        html = render_cached_album(CacheStore(env), term, index)
    except (ValueError, InvalidIndexError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_INVALID
    except NotFoundError:
        print(
            f"No images in cache. Run `runner.py album {args.term!r} {args.index}` first.",
            file=sys.stderr,
        )
        return EXIT_NOT_FOUND

    Path(args.out_html).parent.mkdir(parents=True, exist_ok=True)
    Path(args.out_html).write_text(html, encoding="utf-8")
    print(f"[OK] Rendered -> {args.out_html}")
    return EXIT_OK


def run_list(args, env: Environment) -> int:
    cache = CacheStore(env)
    if args.term is None:
        emit({"terms": cache.list_terms()})
        return EXIT_OK
    try:
        term = normalize_term(args.term)
    except ValueError as exc:
        emit({"error": str(exc)})
        return EXIT_INVALID
    emit({"term": term, "indexes": cache.list_indexes(term)})
    return EXIT_OK


def run_check(env: Environment) -> int:
    try:
        path = env.verify_browser()
    except BrowserNotFoundError as exc:
        print(f"Chromium not found: {exc}", file=sys.stderr)
        return EXIT_ERROR
    print(f"Chromium found at {path}" if path else "Using Playwright's bundled Chromium")
    return EXIT_OK


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    env = Environment.from_env(args.env_file)
    if args.command == "check":
        return run_check(env)

    try:
        env.prepare()
    except OSError as exc:
        logging.getLogger("runner").error("Directory setup failed: %s", exc)
        return EXIT_ERROR

    if args.command == "render":
        return run_render(args, env)
    if args.command == "list":
        return run_list(args, env)

    try:
        settings = ScrapeSettings.from_env()
    except ValueError as exc:
        logging.getLogger("runner").error("Bad scraper settings: %s", exc)
        return EXIT_ERROR
    return asyncio.run(run_album(args, env, settings))


if __name__ == "__main__":
    sys.exit(main())
