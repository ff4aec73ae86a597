"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from munhash.common.constants import (
    DEFAULT_CACHE_FILENAME,
    DEFAULT_OUTPUT_DIR_NAME,
    DEFAULT_OUTPUT_PREFIX,
    DEFAULT_SOURCE_URL,
    HASH_BYTES,
    PBKDF2_ITERATIONS,
)
from munhash.common.errors import ConfigError
from munhash.common.fs import read_yaml
from munhash.common.schema import validate_pipeline_config


@dataclass(frozen=True)
class KdfParams:
    iterations: int = PBKDF2_ITERATIONS
    hash_bytes: int = HASH_BYTES


@dataclass(frozen=True)
class PipelineConfig:
    source_url: str = DEFAULT_SOURCE_URL
    cache_filename: str = DEFAULT_CACHE_FILENAME
    kdf: KdfParams = KdfParams()
    output_dir_name: str = DEFAULT_OUTPUT_DIR_NAME
    output_prefix: str = DEFAULT_OUTPUT_PREFIX
    workers: int = 1
    partitions_in_flight: int = 1

    @classmethod
    def defaults(cls) -> "PipelineConfig":
        cpus = os.cpu_count() or 1
        return cls(workers=cpus, partitions_in_flight=cpus)


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def default_mapping() -> dict:
    defaults = PipelineConfig.defaults()
    return {
        "source": {"url": defaults.source_url, "cache_filename": defaults.cache_filename},
        "kdf": {"iterations": defaults.kdf.iterations, "hash_bytes": defaults.kdf.hash_bytes},
        "output": {"dir_name": defaults.output_dir_name, "prefix": defaults.output_prefix},
        "concurrency": {"workers": None, "partitions_in_flight": None},
    }


def _apply_overlay(base: Any, overlay_path: Path | None) -> Any:
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    if not isinstance(overlay, dict):
        raise ConfigError(f"Overlay config must be a mapping: {overlay_path}")
    return _deep_merge(base, overlay)


def config_from_mapping(cfg: dict) -> PipelineConfig:
    validated = validate_pipeline_config(cfg)
    defaults = PipelineConfig.defaults()
    concurrency = validated.get("concurrency") or {}
    workers = concurrency.get("workers") or defaults.workers
    return PipelineConfig(
        source_url=validated["source"]["url"],
        cache_filename=validated["source"]["cache_filename"],
        kdf=KdfParams(
            iterations=validated["kdf"]["iterations"],
            hash_bytes=validated["kdf"]["hash_bytes"],
        ),
        output_dir_name=validated["output"]["dir_name"],
        output_prefix=validated["output"]["prefix"],
        workers=workers,
        partitions_in_flight=concurrency.get("partitions_in_flight") or workers,
    )


def load_pipeline_config(
    config_path: Path | None,
    *,
    overlay_config_path: Path | None = None,
) -> PipelineConfig:
    """Load ``config_path`` (built-in defaults when ``None``) with the overlay merged on top."""
    if config_path is None:
        base = default_mapping()
    elif not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")
    else:
        base = read_yaml(config_path)
    return config_from_mapping(_apply_overlay(base, overlay_config_path))
