"""Group records into per-UF partitions."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from munhash.common.constants import EXCLUDED_PARTITION_KEY
from munhash.common.deterministic import ignore_case_key, stable_sorted
from munhash.common.models import Partition, Record


def is_excluded_key(key: str) -> bool:
    return ignore_case_key(key) == EXCLUDED_PARTITION_KEY


def partition_records(records: Iterable[Record]) -> list[Partition]:
    """Group by upper-cased partition key, drop the ``EX`` group, order keys ignoring case.

    Records keep their input order inside each group.
    """
    grouped: dict[str, list[Record]] = defaultdict(list)
    for record in records:
        # Only the grouping key is upper-cased; the record's UF field is emitted as given.
        grouped[record.partition_key.upper()].append(record)

    keys = [key for key in grouped if not is_excluded_key(key)]
    ordered_keys = stable_sorted(keys, key=lambda key: (ignore_case_key(key), key))
    return [Partition(key=key, records=tuple(grouped[key])) for key in ordered_keys]
