#!/usr/bin/env python3
"""
Command line entry point: build the manifest and publish sitemap.xml for a site root.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from pydantic import ValidationError

from . import __version__
from .config import PROTOCOL_MAX_ENTRIES, SitemapSettings
from .errors import EXIT_HELP, EXIT_OK, EXIT_USAGE, RootDirectoryError, RuntimeVersionError, SitemapError
from .manifest import build_manifest, split_chunks
from .mtime import METHOD_NAMES, MtimeReader, format_w3c, probe_mtime_reader
from .publish import (
    SITEMAP_NAME,
    PublishReport,
    PublishResult,
    Publisher,
    ScratchArea,
    gz_path,
    part_name,
    prune_parts,
)
from .render import location, render_index, render_urlset

logger = logging.getLogger(__name__)

MIN_PYTHON = (3, 11)
EXIT_SIGNALS = ("SIGTERM", "SIGHUP")


class SitemapArgumentParser(argparse.ArgumentParser):
    """Maps argparse exits onto the tool's exit codes: help/version 2, usage errors 3."""

    def exit(self, status: int = 0, message: str | None = None) -> None:  # type: ignore[override]
        if message:
            self._print_message(message, sys.stderr)
        raise SystemExit(EXIT_HELP if status == 0 else status)

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def check_runtime(version_info: tuple[int, ...] = tuple(sys.version_info)) -> None:
    if tuple(version_info[:2]) < MIN_PYTHON:
        found = ".".join(str(x) for x in version_info[:3])
        raise RuntimeVersionError(f"Python {MIN_PYTHON[0]}.{MIN_PYTHON[1]}+ required, found {found}")


def check_root(root: Path) -> None:
    if not root.exists():
        raise RootDirectoryError(f"Root path does not exist: {root}")
    if not root.is_dir():
        raise RootDirectoryError(f"Root path is not a directory: {root}")


def configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)
    logging.getLogger("dirsitemap").setLevel(level)


@contextmanager
def exit_on_signals() -> Iterator[None]:
    """Turn termination signals into SystemExit so cleanup handlers run."""

    def _handler(signum: int, frame: Any) -> None:
        raise SystemExit(128 + signum)

    previous: dict[int, Any] = {}
    for name in EXIT_SIGNALS:
        signum = getattr(signal, name, None)
        if signum is None:
            continue
        try:
            previous[signum] = signal.signal(signum, _handler)
        except ValueError:
            # not the main thread
            continue
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def settings_from_args(args: argparse.Namespace) -> SitemapSettings:
    overrides: dict[str, Any] = {
        "root": args.root,
        "base_url": args.base_url,
        "max_entries": args.max_entries,
        "dry_run": args.dry_run,
        "parse_only": args.parse_only,
        "mtime_method": args.mtime_method,
        "excludes": tuple(args.exclude) if args.exclude else None,
        "verbosity": -1 if args.quiet else args.verbose,
    }
    return SitemapSettings(**{key: value for key, value in overrides.items() if value is not None})


def publish_single(settings: SitemapSettings, entries: list[str], reader: MtimeReader, publisher: Publisher) -> int:
    document = render_urlset((location(settings.base_url, path), reader(settings.root / path)) for path in entries)
    publisher.publish(document, settings.root / SITEMAP_NAME)
    return 1


def publish_parts(
    settings: SitemapSettings,
    entries: list[str],
    reader: MtimeReader,
    publisher: Publisher,
    started: float,
) -> int:
    index_entries: list[tuple[str, str]] = []
    chunks = split_chunks(entries, settings.max_entries)
    for number, chunk in enumerate(chunks, start=1):
        name = part_name(number)
        target = settings.root / name
        document = render_urlset((location(settings.base_url, path), reader(settings.root / path)) for path in chunk)
        publisher.publish(document, target)
        compressed = gz_path(target)
        if compressed.is_file():
            lastmod = reader(compressed)
        else:
            # dry run over a part that was never published
            lastmod = format_w3c(started)
        index_entries.append((location(settings.base_url, compressed.name), lastmod))
        logger.info("Part %d: %d entries", number, len(chunk))
    publisher.publish(render_index(index_entries), settings.root / SITEMAP_NAME)
    return len(chunks)


def run_generate(settings: SitemapSettings) -> int:
    started = time.time()
    root = settings.root
    check_root(root)
    reader = probe_mtime_reader(root, settings.mtime_method)
    entries = build_manifest(settings)

    with exit_on_signals(), ScratchArea(root) as scratch:
        publisher = Publisher(scratch, dry_run=settings.dry_run)
        if len(entries) <= settings.max_entries:
            part_count = 0
            sitemap_files = publish_single(settings, entries, reader, publisher)
        else:
            part_count = publish_parts(settings, entries, reader, publisher, started)
            sitemap_files = part_count + 1
        publisher.report.pruned = prune_parts(root, part_count, dry_run=settings.dry_run)

    if settings.verbosity >= 0:
        print_summary(settings, entries, sitemap_files, publisher.report, time.time() - started)
    return EXIT_OK


def print_summary(
    settings: SitemapSettings,
    entries: list[str],
    sitemap_files: int,
    report: PublishReport,
    elapsed: float,
) -> None:
    print(f"Root: {settings.root}")
    print(f"Base URL: {settings.base_url}")
    print(f"Files listed: {len(entries)}")
    print(f"Sitemap files: {sitemap_files}")
    if settings.dry_run:
        print(f"Would replace: {report.count(PublishResult.WOULD_REPLACE)}")
    else:
        print(f"Replaced: {report.count(PublishResult.REPLACED)}")
    print(f"Unchanged: {report.count(PublishResult.UNCHANGED)}")
    if report.pruned:
        print(f"Stale parts {'to remove' if settings.dry_run else 'removed'}: {len(report.pruned)}")
    print(f"Finished in {elapsed:.2f} seconds")


def build_parser() -> argparse.ArgumentParser:
    parser = SitemapArgumentParser(
        prog="dirsitemap",
        description="Publish sitemap.xml (and sitemap.xml.gz) for every public file under a site root.",
    )
    parser.add_argument("--root", type=Path, default=None, help="Site root directory (default: current directory)")
    parser.add_argument("--base-url", default=None, help="Site base URL, e.g. https://example.com")
    parser.add_argument(
        "--max-entries",
        type=int,
        default=None,
        help=f"Entries per sitemap before splitting into parts (1-{PROTOCOL_MAX_ENTRIES}, default 35000)",
    )
    parser.add_argument("--exclude", action="append", default=None, metavar="GLOB", help="Extra exclusion pattern (repeatable)")
    parser.add_argument("--mtime-method", choices=("auto", *METHOD_NAMES), default=None)
    parser.add_argument("-v", "--verbose", action="count", default=None, help="More diagnostics (repeatable)")
    parser.add_argument("-q", "--quiet", action="store_true", default=None, help="Only report warnings and errors")
    parser.add_argument("-n", "--dry-run", action="store_true", default=None, help="Report changes without publishing")
    parser.add_argument("--parse-only", action="store_true", default=None, help="Validate arguments and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> int:
    try:
        check_runtime()
    except RuntimeVersionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return exc.exit_code

    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = settings_from_args(args)
    except ValidationError as exc:
        for err in exc.errors():
            field_name = ".".join(str(part) for part in err["loc"]) or "settings"
            print(f"Error: {field_name}: {err['msg']}", file=sys.stderr)
        return EXIT_USAGE

    configure_logging(settings.verbosity)
    if settings.parse_only:
        logger.info("Arguments valid: %s", settings.model_dump())
        return EXIT_OK

    try:
        return run_generate(settings)
    except SitemapError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return exc.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
