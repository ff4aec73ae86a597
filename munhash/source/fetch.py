"""Download the municipality CSV, rewriting the local copy only when its content changed."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from munhash.common.fs import sha256_hex, write_bytes
from munhash.common.http import HttpClient


@dataclass(frozen=True)
class FetchResult:
    path: Path
    sha256: str
    size_bytes: int
    cache_hit: bool


def _sidecar_path(cache_path: Path) -> Path:
    return cache_path.with_name(cache_path.name + ".sha256")


def cached_digest(cache_path: Path) -> str | None:
    # The file on disk, not the sidecar, decides a cache hit.
    if not cache_path.exists():
        return None
    return sha256_hex(cache_path.read_bytes())


def fetch_source_csv(url: str, cache_path: Path, http_client: HttpClient) -> FetchResult:
    payload = http_client.get_bytes(url)
    digest = sha256_hex(payload)

    if cached_digest(cache_path) == digest:
        return FetchResult(path=cache_path, sha256=digest, size_bytes=len(payload), cache_hit=True)

    write_bytes(cache_path, payload)
    _sidecar_path(cache_path).write_text(digest + "\n", encoding="utf-8")
    return FetchResult(path=cache_path, sha256=digest, size_bytes=len(payload), cache_hit=False)
