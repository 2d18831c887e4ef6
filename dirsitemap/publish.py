"""
Idempotent, rename-based publishing of sitemap documents and their gzip copies.
"""

from __future__ import annotations

import gzip
import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .errors import (
    CompressionError,
    EmptyPublishedError,
    EmptyRenderError,
    PruneError,
    ReplaceError,
    ScratchFileError,
)

logger = logging.getLogger(__name__)

SITEMAP_NAME = "sitemap.xml"
PART_TEMPLATE = "site.map.part.{}.xml"
GZ_SUFFIX = ".gz"
PART_RE = re.compile(r"^site\.map\.part\.(\d+)\.xml(?:\.gz)?$")
GENERATED_RE = re.compile(r"^(?:sitemap\.xml(?:\.gz)?|site\.map\.part\.\d+\.xml(?:\.gz)?)$")
# Dot prefix keeps scratch files out of any manifest built while they exist.
SCRATCH_PREFIX = ".sitemap-"
PUBLISHED_MODE = 0o644


class PublishResult(str, Enum):
    UNCHANGED = "unchanged"
    REPLACED = "replaced"
    WOULD_REPLACE = "would-replace"


def part_name(number: int) -> str:
    return PART_TEMPLATE.format(number)


def gz_path(target: Path) -> Path:
    return target.with_name(target.name + GZ_SUFFIX)


def compress_bytes(data: bytes) -> bytes:
    # zeroed header mtime keeps the copy a pure function of the plain bytes
    return gzip.compress(data, compresslevel=9, mtime=0)


def _compressed_matches(plain: Path, compressed: Path) -> bool:
    try:
        return compressed.read_bytes() == compress_bytes(plain.read_bytes())
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise CompressionError(f"Cannot compare {compressed} with {plain}: {exc}") from exc


def _non_empty(path: Path) -> bool:
    try:
        return path.stat().st_size > 0
    except FileNotFoundError:
        return False


class ScratchArea:
    """Tracks scratch files in one directory and removes the leftovers on exit."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self._paths: set[Path] = set()

    def __enter__(self) -> ScratchArea:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()

    @property
    def paths(self) -> set[Path]:
        return set(self._paths)

    def create(self, data: bytes) -> Path:
        try:
            fd, name = tempfile.mkstemp(prefix=SCRATCH_PREFIX, suffix=".tmp", dir=self.directory)
        except OSError as exc:
            raise ScratchFileError(f"Cannot create scratch file in {self.directory}: {exc}") from exc
        path = Path(name)
        self._paths.add(path)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
        except OSError as exc:
            raise ScratchFileError(f"Cannot write scratch file {path}: {exc}") from exc
        return path

    def release(self, path: Path) -> None:
        self._paths.discard(path)

    def discard(self, path: Path) -> None:
        path.unlink(missing_ok=True)
        self._paths.discard(path)

    def cleanup(self) -> None:
        for path in sorted(self._paths):
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Could not remove scratch file %s: %s", path, exc)
            else:
                logger.debug("Removed scratch file %s", path)
        self._paths.clear()


@dataclass
class PublishReport:
    results: dict[Path, PublishResult] = field(default_factory=dict)
    pruned: list[Path] = field(default_factory=list)

    def count(self, result: PublishResult) -> int:
        return sum(1 for value in self.results.values() if value is result)


class Publisher:
    def __init__(self, scratch: ScratchArea, dry_run: bool = False) -> None:
        self.scratch = scratch
        self.dry_run = dry_run
        self.report = PublishReport()

    def publish(self, document: bytes, target: Path) -> PublishResult:
        """Swap ``document`` in at ``target`` (and its ``.gz``) unless it is already there."""
        candidate = self.scratch.create(document)
        if not _non_empty(candidate):
            raise EmptyRenderError(f"Rendered sitemap for {target.name} is empty")

        result = self._publish_candidate(candidate, target)
        self.report.results[target] = result
        return result

    def _publish_candidate(self, candidate: Path, target: Path) -> PublishResult:
        compressed = gz_path(target)
        if target.is_file() and candidate.read_bytes() == target.read_bytes():
            self.scratch.discard(candidate)
            if not self.dry_run and not _compressed_matches(target, compressed):
                logger.info("Rebuilding stale compressed copy %s", compressed.name)
                self._compress(target, compressed)
            logger.debug("%s unchanged", target.name)
            return PublishResult.UNCHANGED

        if self.dry_run:
            self.scratch.discard(candidate)
            logger.warning("Dry run: %s would be replaced", target)
            return PublishResult.WOULD_REPLACE

        self._replace(candidate, target)
        if not _non_empty(target):
            raise EmptyPublishedError(f"Published file {target} is empty")
        self._compress(target, compressed)
        logger.info("Replaced %s", target)
        return PublishResult.REPLACED

    def _replace(self, candidate: Path, target: Path) -> None:
        try:
            os.chmod(candidate, PUBLISHED_MODE)
            os.replace(candidate, target)
        except OSError as exc:
            raise ReplaceError(f"Cannot replace {target}: {exc}") from exc
        self.scratch.release(candidate)

    def _compress(self, source: Path, target: Path) -> None:
        try:
            data = compress_bytes(source.read_bytes())
        except OSError as exc:
            raise CompressionError(f"Cannot compress {source}: {exc}") from exc
        candidate = self.scratch.create(data)
        if not _non_empty(candidate):
            raise CompressionError(f"Compressed copy of {source.name} is empty")
        self._replace(candidate, target)
        if not _non_empty(target):
            raise EmptyPublishedError(f"Published file {target} is empty")


def existing_parts(root: Path) -> dict[Path, int]:
    parts: dict[Path, int] = {}
    for path in root.iterdir():
        match = PART_RE.match(path.name)
        if match and path.is_file():
            parts[path] = int(match.group(1))
    return parts


def prune_parts(root: Path, keep: int, dry_run: bool = False) -> list[Path]:
    """Remove part files numbered above ``keep``; returns what was (or would be) removed."""
    try:
        stale = sorted(path for path, number in existing_parts(root).items() if number > keep)
    except OSError as exc:
        raise PruneError(f"Cannot list {root}: {exc}") from exc
    for path in stale:
        if dry_run:
            logger.warning("Dry run: stale part %s would be removed", path.name)
            continue
        try:
            path.unlink()
        except OSError as exc:
            raise PruneError(f"Cannot remove stale part {path}: {exc}") from exc
        logger.info("Removed stale part %s", path.name)
    return stale
