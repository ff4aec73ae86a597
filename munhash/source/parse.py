"""Semicolon-delimited municipality table parsing."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from munhash.common.constants import CSV_DELIMITER, SOURCE_FIELD_COUNT
from munhash.common.errors import StageError
from munhash.common.models import Record
from munhash.common.sanitize import sanitize


@dataclass(frozen=True)
class ParseResult:
    records: list[Record]
    header_skipped: bool
    short_lines: int
    missing_region_code: int

    @property
    def dropped(self) -> int:
        return self.short_lines + self.missing_region_code


def _looks_like_header(line: str) -> bool:
    upper = line.upper()
    return "IBGE" in upper or "UF" in upper


def parse_records(lines: Iterable[str]) -> ParseResult:
    records: list[Record] = []
    short_lines = 0
    missing_region_code = 0
    header_skipped = False

    for index, raw_line in enumerate(lines):
        line = (raw_line or "").strip()
        if index == 0 and _looks_like_header(line):
            header_skipped = True
            continue
        if not line:
            continue

        parts = line.split(CSV_DELIMITER)
        if len(parts) < SOURCE_FIELD_COUNT:
            short_lines += 1
            continue

        region_code = sanitize(parts[1])
        if not region_code:
            missing_region_code += 1
            continue

        records.append(
            Record(
                legacy_code=sanitize(parts[0]),
                region_code=region_code,
                legacy_name=sanitize(parts[2]),
                canonical_name=sanitize(parts[3]),
                partition_key=sanitize(parts[4]).upper(),
            )
        )

    return ParseResult(
        records=records,
        header_skipped=header_skipped,
        short_lines=short_lines,
        missing_region_code=missing_region_code,
    )


def read_records(path: Path) -> ParseResult:
    if not path.exists():
        raise StageError(f"Missing CSV input: {path}")
    # utf-8-sig drops a leading byte order mark if present.
    text = path.read_text(encoding="utf-8-sig")
    return parse_records(text.splitlines())
