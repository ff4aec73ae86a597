"""Per-partition CSV, JSON and binary export."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, Sequence

from munhash.common.constants import CSV_DELIMITER, CSV_HEADER, SOURCE_FIELD_COUNT
from munhash.common.errors import EmitError
from munhash.common.fs import write_bytes, write_json, write_lines
from munhash.common.models import EmittedArtifacts, HashedRecord


def artifact_paths(out_dir: Path, prefix: str, partition_key: str) -> tuple[Path, Path, Path]:
    stem = f"{prefix}_{partition_key.upper()}"
    return (
        out_dir / f"{stem}.csv",
        out_dir / f"{stem}.json",
        out_dir / f"{stem}.bin",
    )


def render_csv_lines(ordered: Sequence[HashedRecord]) -> tuple[list[str], int]:
    """Header plus one ``;``-joined line per record, and the count of rows with an embedded ``;``.

    Field values are written unescaped; conflicting rows are only counted.
    """
    lines = [CSV_DELIMITER.join(CSV_HEADER)]
    conflicts = 0
    for hashed in ordered:
        fields = hashed.to_csv_fields()
        if any(CSV_DELIMITER in value for value in fields):
            conflicts += 1
        lines.append(CSV_DELIMITER.join(fields))
    return lines, conflicts


def render_document(ordered: Sequence[HashedRecord]) -> list[dict[str, str]]:
    return [hashed.to_document() for hashed in ordered]


def encode_binary_string(value: str) -> bytes:
    """UTF-8 bytes prefixed by their length as a 7-bit variable-length integer."""
    data = value.encode("utf-8")
    length = len(data)
    prefix = bytearray()
    while length >= 0x80:
        prefix.append((length & 0x7F) | 0x80)
        length >>= 7
    prefix.append(length)
    return bytes(prefix) + data


def render_binary(ordered: Sequence[HashedRecord]) -> bytes:
    # The digest is not part of the binary layout.
    out = bytearray()
    for hashed in ordered:
        for value in hashed.record.source_fields():
            out += encode_binary_string(value)
    return bytes(out)


def iter_binary_strings(payload: bytes) -> Iterator[str]:
    pos = 0
    while pos < len(payload):
        length = 0
        shift = 0
        while True:
            if pos >= len(payload):
                raise ValueError("Truncated length prefix")
            byte = payload[pos]
            pos += 1
            length |= (byte & 0x7F) << shift
            if not byte & 0x80:
                break
            shift += 7
            if shift > 28:
                raise ValueError("Length prefix too long")
        end = pos + length
        if end > len(payload):
            raise ValueError("Truncated string payload")
        yield payload[pos:end].decode("utf-8")
        pos = end


def read_binary_records(path: Path) -> list[tuple[str, ...]]:
    values = list(iter_binary_strings(path.read_bytes()))
    if len(values) % SOURCE_FIELD_COUNT:
        raise ValueError(f"Binary file {path} holds a partial record")
    return [
        tuple(values[idx : idx + SOURCE_FIELD_COUNT])
        for idx in range(0, len(values), SOURCE_FIELD_COUNT)
    ]


def emit_partition(
    partition_key: str,
    ordered: Sequence[HashedRecord],
    out_dir: Path,
    prefix: str,
) -> EmittedArtifacts:
    """Write the three artifacts for one partition.

    Every write is attempted even if an earlier one failed; any failure is
    raised afterwards as a single ``EmitError``.
    """
    csv_path, json_path, bin_path = artifact_paths(out_dir, prefix, partition_key)
    csv_lines, conflicts = render_csv_lines(ordered)

    writes = (
        (csv_path, lambda: write_lines(csv_path, csv_lines)),
        (json_path, lambda: write_json(json_path, render_document(ordered), sort_keys=False)),
        (bin_path, lambda: write_bytes(bin_path, render_binary(ordered))),
    )

    failures: list[tuple[Path, OSError]] = []
    for path, write in writes:
        try:
            write()
        except OSError as exc:
            failures.append((path, exc))

    if failures:
        detail = "; ".join(f"{path}: {exc}" for path, exc in failures)
        raise EmitError(
            f"Failed to write artifacts for partition {partition_key}: {detail}",
            partition_key=partition_key,
            failed_paths=[str(path) for path, _ in failures],
        )

    return EmittedArtifacts(
        csv_path=csv_path,
        json_path=json_path,
        bin_path=bin_path,
        rows=len(ordered),
        delimiter_conflicts=conflicts,
    )
