"""Per-partition fan-out of digest derivation over a shared compute pool."""

from __future__ import annotations

from concurrent.futures import Executor, Future, as_completed

from munhash.common.config_loader import KdfParams
from munhash.common.deterministic import ignore_case_key, stable_sorted
from munhash.common.errors import DerivationError
from munhash.common.models import HashedRecord, Partition, Record
from munhash.pipeline.derive import derive_digest_hex, derive_salt


def canonical_sort_key(record: Record) -> tuple[str, str, str]:
    # Exact name and region code break ties between names equal ignoring case.
    return (ignore_case_key(record.canonical_name), record.canonical_name, record.region_code)


def hash_record(record: Record, kdf: KdfParams) -> HashedRecord:
    salt = derive_salt(record.region_code)
    digest = derive_digest_hex(record.concatenated_identity, salt, kdf.iterations, kdf.hash_bytes)
    return HashedRecord(record=record, digest_hex=digest)


class PartitionWorker:
    """Sorts a partition, derives every digest on ``compute_pool`` and re-sorts the results.

    The pool is shared by every partition in a run, so the number of
    concurrent derivations is bounded by the pool size alone.
    """

    def __init__(self, kdf: KdfParams, compute_pool: Executor) -> None:
        self.kdf = kdf
        self.compute_pool = compute_pool

    def _derive(self, partition_key: str, record: Record) -> HashedRecord:
        try:
            return hash_record(record, self.kdf)
        except Exception as exc:
            raise DerivationError(
                f"Digest derivation failed for record {record.region_code} in partition {partition_key}: {exc}",
                partition_key=partition_key,
                record_id=record.region_code,
            ) from exc

    def process(self, partition: Partition) -> list[HashedRecord]:
        ordered = stable_sorted(partition.records, key=canonical_sort_key)
        futures: list[Future] = [
            self.compute_pool.submit(self._derive, partition.key, record) for record in ordered
        ]

        # Completion order is arbitrary; results are re-sorted below.
        collected: list[HashedRecord] = []
        try:
            for future in as_completed(futures):
                collected.append(future.result())
        except BaseException:
            for future in futures:
                future.cancel()
            raise

        return stable_sorted(collected, key=lambda hashed: canonical_sort_key(hashed.record))
