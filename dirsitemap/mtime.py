"""
Modification-time capability: probe the known methods once, then reuse the winner.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from .errors import MtimeMethodError, MtimeReadError

logger = logging.getLogger(__name__)

W3C_FORMAT = "%Y-%m-%dT%H:%M:%S+00:00"
COMMAND_TIMEOUT = 30


def format_w3c(epoch: float) -> str:
    return datetime.fromtimestamp(int(epoch), tz=timezone.utc).strftime(W3C_FORMAT)


def _run(cmd: list[str]) -> str:
    proc = subprocess.run(cmd, capture_output=True, text=True, timeout=COMMAND_TIMEOUT)
    if proc.returncode != 0:
        raise OSError(f"{cmd[0]} exited with status {proc.returncode}: {(proc.stderr or '').strip()}")
    return proc.stdout or ""


def os_stat_epoch(path: Path) -> int:
    return int(os.stat(path).st_mtime)


def gnu_stat_epoch(path: Path) -> int:
    return int(_run(["stat", "-c", "%Y", str(path)]).strip())


def bsd_stat_epoch(path: Path) -> int:
    return int(_run(["stat", "-f", "%m", str(path)]).strip())


def _ls_output(path: Path) -> str:
    try:
        return _run(["ls", "-ld", "--time-style=+%s", str(path)])
    except OSError:
        # BSD and macOS ls
        return _run(["ls", "-ldD", "%s", str(path)])


def ls_epoch(path: Path) -> int:
    # mode links owner group size epoch name
    fields = _ls_output(path).split()
    if len(fields) < 7:
        raise ValueError(f"Unexpected ls output for {path}")
    return int(fields[5])


@dataclass(frozen=True)
class MtimeReader:
    name: str
    epoch: Callable[[Path], int]

    def __call__(self, path: Path) -> str:
        try:
            return format_w3c(self.epoch(path))
        except (OSError, ValueError, subprocess.SubprocessError) as exc:
            raise MtimeReadError(f"Cannot read modification time of {path} ({self.name}): {exc}") from exc


READERS = (
    MtimeReader("os-stat", os_stat_epoch),
    MtimeReader("gnu-stat", gnu_stat_epoch),
    MtimeReader("bsd-stat", bsd_stat_epoch),
    MtimeReader("ls", ls_epoch),
)
METHOD_NAMES = tuple(reader.name for reader in READERS)


def probe_mtime_reader(known_path: Path, preferred: str = "auto") -> MtimeReader:
    """Return the first method that reads ``known_path``; ``preferred`` limits the probe to one method.

    Called once per run. Raises :class:`MtimeMethodError` if nothing works.
    """
    candidates = [r for r in READERS if preferred in ("auto", r.name)]
    for reader in candidates:
        try:
            value = reader(known_path)
        except MtimeReadError as exc:
            logger.debug("mtime method %s rejected: %s", reader.name, exc)
            continue
        logger.info("Using mtime method %s (probe %s -> %s)", reader.name, known_path, value)
        return reader
    tried = ", ".join(r.name for r in candidates) or preferred
    raise MtimeMethodError(f"No supported method to read modification times (tried: {tried})")
