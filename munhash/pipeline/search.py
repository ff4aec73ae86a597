"""Line-oriented search over the in-memory record set."""

from __future__ import annotations

from typing import Callable, Iterable, Sequence

from munhash.common.deterministic import ignore_case_key, stable_sorted
from munhash.common.models import Record
from munhash.pipeline.worker import canonical_sort_key

QUIT_COMMANDS = {"", ":q"}
UF_PREFIX = "uf:"


def filter_records(
    records: Iterable[Record],
    query: str,
    *,
    partition_key: str | None = None,
) -> list[Record]:
    needle = ignore_case_key(query.strip())
    wanted_key = ignore_case_key(partition_key) if partition_key else None

    matches = []
    for record in records:
        if wanted_key is not None and ignore_case_key(record.partition_key) != wanted_key:
            continue
        if needle and not any(needle in ignore_case_key(value) for value in record.source_fields()):
            continue
        matches.append(record)
    return stable_sorted(matches, key=canonical_sort_key)


def parse_query(line: str) -> tuple[str | None, str]:
    """Split ``uf:SP campinas`` into ``("SP", "campinas")``."""
    text = line.strip()
    if text.lower().startswith(UF_PREFIX):
        head, _, rest = text[len(UF_PREFIX) :].partition(" ")
        return (head.strip() or None), rest.strip()
    return None, text


def format_record(record: Record) -> str:
    return (
        f"{record.partition_key} | IBGE {record.region_code} | TOM {record.legacy_code} | "
        f"{record.canonical_name} ({record.legacy_name})"
    )


def run_search_loop(
    records: Sequence[Record],
    lines: Iterable[str],
    write: Callable[[str], None],
    *,
    limit: int = 50,
) -> int:
    """Answer one query per input line until a blank line or ``:q``. Returns the number of queries served."""
    served = 0
    for line in lines:
        if line.strip() in QUIT_COMMANDS:
            break
        partition_key, term = parse_query(line)
        matches = filter_records(records, term, partition_key=partition_key)
        served += 1
        write(f"{len(matches)} match(es)")
        for record in matches[:limit]:
            write(format_record(record))
        if len(matches) > limit:
            write(f"... {len(matches) - limit} more")
    return served
