from __future__ import annotations

from pathlib import Path

import pytest

BASE_URL = "https://example.com"


def write_files(root: Path, names: list[str], data: bytes = b"<html></html>\n") -> list[Path]:
    paths = []
    for name in names:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        path.chmod(0o644)
        paths.append(path)
    return paths


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    for name in ("BASE_URL", "ROOT", "MAX_ENTRIES", "VERBOSITY", "DRY_RUN", "PARSE_ONLY", "MTIME_METHOD", "EXCLUDES"):
        monkeypatch.delenv(f"SITEMAP_{name}", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def site(tmp_path):
    root = tmp_path / "site"
    root.mkdir()
    return root
