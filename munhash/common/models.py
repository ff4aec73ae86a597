"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from munhash.common.constants import DOCUMENT_KEYS


@dataclass(frozen=True)
class Record:
    """One municipality row as delivered by the parser, already sanitised."""

    legacy_code: str
    region_code: str
    legacy_name: str
    canonical_name: str
    partition_key: str

    @property
    def concatenated_identity(self) -> str:
        return (
            f"{self.legacy_code}{self.region_code}{self.legacy_name}"
            f"{self.canonical_name}{self.partition_key}"
        )

    def source_fields(self) -> tuple[str, str, str, str, str]:
        return (
            self.legacy_code,
            self.region_code,
            self.legacy_name,
            self.canonical_name,
            self.partition_key,
        )


@dataclass(frozen=True)
class Partition:
    key: str
    records: tuple[Record, ...]


@dataclass(frozen=True)
class HashedRecord:
    record: Record
    digest_hex: str

    def to_csv_fields(self) -> tuple[str, ...]:
        return (*self.record.source_fields(), self.digest_hex)

    def to_document(self) -> dict[str, str]:
        return dict(zip(DOCUMENT_KEYS, self.to_csv_fields()))


@dataclass(frozen=True)
class EmittedArtifacts:
    csv_path: Path
    json_path: Path
    bin_path: Path
    rows: int
    delimiter_conflicts: int = 0

    def paths(self) -> list[Path]:
        return [self.csv_path, self.json_path, self.bin_path]


@dataclass(frozen=True)
class PartitionOutcome:
    partition_key: str
    status: str
    rows_in: int
    rows_out: int
    duration_ms: int
    artifacts: tuple[str, ...] = ()
    error_code: str | None = None
    record_id: str | None = None
    message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> dict[str, Any]:
        return {
            "partition_key": self.partition_key,
            "status": self.status,
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "duration_ms": self.duration_ms,
            "artifacts": list(self.artifacts),
            "error_code": self.error_code,
            "record_id": self.record_id,
            "message": self.message,
        }


@dataclass(frozen=True)
class RunSummary:
    run_id: str
    out_dir: Path
    elapsed_ms: int
    outcomes: tuple[PartitionOutcome, ...] = field(default_factory=tuple)

    @property
    def partitions_attempted(self) -> int:
        return len(self.outcomes)

    @property
    def partitions_produced(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.succeeded)

    @property
    def partitions_failed(self) -> int:
        return self.partitions_attempted - self.partitions_produced

    @property
    def status(self) -> str:
        if self.partitions_failed == 0:
            return "success"
        if self.partitions_produced == 0:
            return "error"
        return "partial"
