"""Minimal strict schema for the YAML pipeline config."""

from __future__ import annotations

from munhash.common.errors import ConfigError

_SECTIONS = {
    "source": ({"url", "cache_filename"}, set()),
    "kdf": ({"iterations", "hash_bytes"}, set()),
    "output": ({"dir_name", "prefix"}, set()),
    "concurrency": (set(), {"workers", "partitions_in_flight"}),
}


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_positive_int(value, ctx: str, *, optional: bool = False) -> None:
    if value is None and optional:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"{ctx} must be a positive integer, got {value!r}")


def validate_pipeline_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    if not isinstance(cfg, dict):
        raise ConfigError("pipeline config must be a mapping")

    _assert_required_keys(cfg, {"source", "kdf", "output"}, "pipeline config")
    _assert_no_unknown_keys(cfg, set(_SECTIONS), "pipeline config", allow_unknown)

    for section, (required, optional) in _SECTIONS.items():
        body = cfg.get(section)
        if body is None and not required:
            continue
        if not isinstance(body, dict):
            raise ConfigError(f"{section} must be a mapping")
        _assert_required_keys(body, required, section)
        _assert_no_unknown_keys(body, required | optional, section, allow_unknown)

    _assert_positive_int(cfg["kdf"]["iterations"], "kdf.iterations")
    _assert_positive_int(cfg["kdf"]["hash_bytes"], "kdf.hash_bytes")
    concurrency = cfg.get("concurrency") or {}
    _assert_positive_int(concurrency.get("workers"), "concurrency.workers", optional=True)
    _assert_positive_int(
        concurrency.get("partitions_in_flight"),
        "concurrency.partitions_in_flight",
        optional=True,
    )

    prefix = cfg["output"]["prefix"]
    if not isinstance(prefix, str) or not prefix.strip():
        raise ConfigError("output.prefix must be a non-empty string")

    return cfg
