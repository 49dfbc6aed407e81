# brochure/cli.py
"""
`brochure` command line.

    brochure build [--mode gh-pages] [--project .] [--no-images]
    brochure reviews | instagram          refresh the data files
    brochure sync data/google-reviews.json
    brochure bundle-sizes [dist]
    brochure contrast
    brochure cache warm --scope https://example.com/ --storage .cache
    brochure cache stats --storage .cache

Secrets come from the environment: GOOGLE_PLACES_API_KEY, GOOGLE_PLACE_ID,
INSTAGRAM_ACCESS_TOKEN, INSTAGRAM_USER_ID, GSC_VERIFICATION.
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path

from brochure.audit.contrast import audit_pairs
from brochure.build.bundle_sizes import HISTORY_FILE, format_bytes, run_bundle_check
from brochure.build.config import BUILD_CONFIGS, DEFAULT_MODE
from brochure.build.pipeline import run_build
from brochure.core.cache import CacheStorage, CacheWorker, requests_fetch
from brochure.feeds.instagram import MAX_POSTS, refresh_instagram_posts
from brochure.feeds.reviews import refresh_reviews
from brochure.feeds.sync import sync_to_public
from brochure.logging_utils import configure_logging
from brochure.schemas.models import WorkerConfig

DATA_DIR = Path("data")
PUBLIC_DATA_DIR = Path("public") / "data"


def _cmd_build(args: argparse.Namespace) -> int:
    report = run_build(
        args.mode,
        Path(args.project),
        optimize_images=not args.no_images,
        gsc_code=args.gsc_code or os.getenv("GSC_VERIFICATION"),
    )
    print(f"build {report.mode}: {report.out_dir}")
    print(f"steps ok: {', '.join(report.steps_ok) or '-'}")
    if report.steps_failed:
        print(f"steps skipped after failure: {', '.join(report.steps_failed)}")
    if report.images is not None:
        print(
            f"images: {len(report.images.variants)} variants, {len(report.images.placeholders)} placeholders, "
            f"{len(report.images.failed)} failed"
        )
    return 0


def _cmd_reviews(args: argparse.Namespace) -> int:
    envelope = refresh_reviews(
        Path(args.output),
        Path(args.manual),
        api_key=os.getenv("GOOGLE_PLACES_API_KEY"),
        place_id=os.getenv("GOOGLE_PLACE_ID"),
    )
    print(f"reviews: {len(envelope.reviews)} ({envelope.source}) -> {args.output}")
    if args.sync:
        sync_to_public(Path(args.output), PUBLIC_DATA_DIR)
    return 0


def _cmd_instagram(args: argparse.Namespace) -> int:
    envelope = refresh_instagram_posts(
        Path(args.output),
        Path(args.manual),
        access_token=os.getenv("INSTAGRAM_ACCESS_TOKEN"),
        user_id=os.getenv("INSTAGRAM_USER_ID"),
        images_dir=Path(args.images_dir) if args.images_dir else None,
        limit=args.limit,
    )
    print(f"instagram: {len(envelope.posts)} posts ({envelope.source}) -> {args.output}")
    if args.sync:
        sync_to_public(Path(args.output), PUBLIC_DATA_DIR)
    return 0


def _cmd_sync(args: argparse.Namespace) -> int:
    dest = sync_to_public(Path(args.source), Path(args.public_dir))
    return 0 if dest is not None else 1


def _cmd_bundle_sizes(args: argparse.Namespace) -> int:
    try:
        report = run_bundle_check(Path(args.out_dir), history_file=None if args.no_history else HISTORY_FILE)
    except FileNotFoundError as e:
        print(f"error: {e}")
        return 1
    for cat, total in report.totals.items():
        print(f"{cat}: {format_bytes(total)}")
    for msg in report.violations:
        print(f"VIOLATION {msg}")
    for msg in report.warnings:
        print(f"warning {msg}")
    return 0 if report.ok else 1


def _cmd_contrast(args: argparse.Namespace) -> int:
    results = audit_pairs()
    failed = [r for r in results if r.status == "FAIL"]
    for r in results:
        print(f"{r.status:<4} {r.ratio:>5.2f}:1  {r.name} ({r.size})")
    print(f"summary: {len(results) - len(failed)} passed, {len(failed)} failed")
    return 1 if failed else 0


def _cmd_cache_warm(args: argparse.Namespace) -> int:
    config = WorkerConfig(scope_url=args.scope, prefix=args.prefix, version=args.version)
    with CacheWorker(config, CacheStorage(Path(args.storage)), requests_fetch(timeout_s=args.timeout)) as worker:
        precache = worker.install()
        activation = worker.activate()
    print(f"pre-cached {len(precache.cached)}, failed {len(precache.failed)}")
    if activation.deleted_caches:
        print(f"removed old caches: {', '.join(activation.deleted_caches)}")
    return 0


def _cmd_cache_stats(args: argparse.Namespace) -> int:
    storage = CacheStorage(Path(args.storage))
    names = storage.keys()
    if not names:
        print("no caches")
    for name in names:
        bucket = storage.open(name)
        print(f"{name}: {len(bucket.keys())} entries, {format_bytes(bucket.total_size())}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="brochure", description="Static brochure-site toolkit")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    b = sub.add_parser("build", help="Build the site for a deployment target")
    b.add_argument("--mode", choices=sorted(BUILD_CONFIGS), default=DEFAULT_MODE)
    b.add_argument("--project", type=str, default=".", help="Project directory containing site/")
    b.add_argument("--no-images", action="store_true", help="Skip responsive image generation")
    b.add_argument("--gsc-code", type=str, default=None, help="Search Console verification code (default: $GSC_VERIFICATION)")
    b.set_defaults(func=_cmd_build)

    r = sub.add_parser("reviews", help="Refresh data/google-reviews.json")
    r.add_argument("--output", type=str, default=str(DATA_DIR / "google-reviews.json"))
    r.add_argument("--manual", type=str, default=str(DATA_DIR / "manual-reviews.json"))
    r.add_argument("--sync", action="store_true", help="Also copy into public/data")
    r.set_defaults(func=_cmd_reviews)

    i = sub.add_parser("instagram", help="Refresh data/instagram-posts.json")
    i.add_argument("--output", type=str, default=str(DATA_DIR / "instagram-posts.json"))
    i.add_argument("--manual", type=str, default=str(DATA_DIR / "manual-instagram-posts.json"))
    i.add_argument("--images-dir", type=str, default="assets/images/instagram", help="Download post images here ('' to skip)")
    i.add_argument("--limit", type=int, default=MAX_POSTS)
    i.add_argument("--sync", action="store_true", help="Also copy into public/data")
    i.set_defaults(func=_cmd_instagram)

    s = sub.add_parser("sync", help="Copy a data file into the public data directory")
    s.add_argument("source", type=str)
    s.add_argument("--public-dir", type=str, default=str(PUBLIC_DATA_DIR))
    s.set_defaults(func=_cmd_sync)

    bs = sub.add_parser("bundle-sizes", help="Check build output against size budgets")
    bs.add_argument("out_dir", nargs="?", default="dist")
    bs.add_argument("--no-history", action="store_true", help="Do not append to .bundle-history")
    bs.set_defaults(func=_cmd_bundle_sizes)

    c = sub.add_parser("contrast", help="WCAG contrast audit of the site palette")
    c.set_defaults(func=_cmd_contrast)

    cache = sub.add_parser("cache", help="Persistent cache worker utilities")
    cache_sub = cache.add_subparsers(dest="cache_command", required=True)
    w = cache_sub.add_parser("warm", help="Install + activate against a live origin")
    w.add_argument("--scope", type=str, required=True, help="Worker scope URL, e.g. https://example.com/logia/")
    w.add_argument("--storage", type=str, default=".cache")
    w.add_argument("--prefix", type=str, default="site")
    w.add_argument("--version", type=str, default="v1")
    w.add_argument("--timeout", type=float, default=15.0)
    w.set_defaults(func=_cmd_cache_warm)
    st = cache_sub.add_parser("stats", help="Entries and bytes per cache")
    st.add_argument("--storage", type=str, default=".cache")
    st.set_defaults(func=_cmd_cache_stats)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
