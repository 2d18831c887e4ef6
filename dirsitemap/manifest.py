"""
Manifest builder: the sorted list of publicly readable files under the site root.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import re
import stat
from pathlib import Path, PurePosixPath
from typing import Iterable

from .config import SitemapSettings
from .errors import EmptyManifestError, TraversalError
from .publish import GENERATED_RE

logger = logging.getLogger(__name__)

VCS_DIRS = {".git", ".hg", ".svn", ".bzr", "CVS", "_darcs"}
CONTROL_PATHS = {"robots.txt", "humans.txt", "crossdomain.xml", "w3c/p3p.xml"}
VERIFICATION_RE = re.compile(r"^(?:google[0-9a-f]+\.html|yandex_[0-9a-f]+\.html|BingSiteAuth\.xml)$")
WORLD_READABLE = stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH


def is_excluded_dir(name: str) -> bool:
    return name.startswith(".") or name in VCS_DIRS


def is_excluded(rel_path: str, patterns: Iterable[str] = ()) -> bool:
    """True when a relative POSIX path must stay out of the sitemap."""
    parts = PurePosixPath(rel_path).parts
    if any(is_excluded_dir(part) for part in parts[:-1]):
        return True
    name = parts[-1]
    if name.startswith("."):
        return True
    if rel_path in CONTROL_PATHS:
        return True
    if VERIFICATION_RE.match(name):
        return True
    if len(parts) == 1 and GENERATED_RE.match(name):
        return True
    for pattern in patterns:
        if fnmatch.fnmatchcase(rel_path, pattern) or fnmatch.fnmatchcase(name, pattern):
            return True
    return False


def is_public_file(path: Path) -> bool:
    try:
        info = os.lstat(path)
    except OSError as exc:
        raise TraversalError(f"Cannot stat {path}: {exc}") from exc
    if not stat.S_ISREG(info.st_mode):
        return False
    return info.st_mode & WORLD_READABLE == WORLD_READABLE


def sort_paths(paths: Iterable[str]) -> list[str]:
    """Byte-wise ascending order, the C locale collation."""
    return sorted(paths, key=os.fsencode)


def _raise_traversal(exc: OSError) -> None:
    raise TraversalError(f"Directory traversal failed: {exc}") from exc


def iter_candidates(root: Path, patterns: Iterable[str] = ()) -> Iterable[str]:
    patterns = tuple(patterns)
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_traversal):
        dirnames[:] = [d for d in dirnames if not is_excluded_dir(d)]
        base = Path(dirpath)
        for filename in filenames:
            full = base / filename
            rel_path = full.relative_to(root).as_posix()
            if is_excluded(rel_path, patterns):
                logger.debug("Excluded %s", rel_path)
                continue
            if not is_public_file(full):
                logger.debug("Skipped %s (not a readable regular file)", rel_path)
                continue
            yield rel_path


def build_manifest(settings: SitemapSettings) -> list[str]:
    entries = sort_paths(iter_candidates(settings.root, settings.excludes))
    if not entries:
        raise EmptyManifestError(f"No publishable files found under {settings.root}")
    logger.info("Manifest holds %d files", len(entries))
    return entries


def split_chunks(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]
