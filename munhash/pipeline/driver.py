"""Run orchestration: partitions in parallel, one shared compute pool for every digest."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Sequence

from munhash.common.config_loader import PipelineConfig
from munhash.common.deterministic import ignore_case_key, stable_sorted
from munhash.common.errors import PipelineError
from munhash.common.fs import ensure_dir
from munhash.common.logging import log_event
from munhash.common.models import Partition, PartitionOutcome, Record, RunSummary
from munhash.common.time_utils import elapsed_ms
from munhash.pipeline.emit import emit_partition
from munhash.pipeline.partition import partition_records
from munhash.pipeline.worker import PartitionWorker

STAGE = "hash"


def _failed_outcome(
    partition: Partition,
    started: float,
    *,
    error_code: str,
    message: str,
    record_id: str | None = None,
) -> PartitionOutcome:
    return PartitionOutcome(
        partition_key=partition.key,
        status="error",
        rows_in=len(partition.records),
        rows_out=0,
        duration_ms=elapsed_ms(started),
        error_code=error_code,
        record_id=record_id,
        message=message,
    )


def process_partition(
    partition: Partition,
    worker: PartitionWorker,
    config: PipelineConfig,
    out_dir: Path,
    *,
    logger: logging.Logger,
    run_id: str,
) -> PartitionOutcome:
    started = time.perf_counter()
    log_event(
        logger,
        f"processing partition {partition.key}",
        run_id=run_id,
        stage=STAGE,
        partition=partition.key,
        event="PARTITION_START",
        status="ok",
        rows_in=len(partition.records),
    )

    try:
        ordered = worker.process(partition)
        artifacts = emit_partition(partition.key, ordered, out_dir, config.output_prefix)
    except PipelineError as exc:
        record_id = getattr(exc, "record_id", None)
        outcome = _failed_outcome(partition, started, error_code=exc.error_code, message=str(exc), record_id=record_id)
        log_event(
            logger,
            f"partition {partition.key} failed: {exc}",
            level=logging.ERROR,
            run_id=run_id,
            stage=STAGE,
            partition=partition.key,
            record_id=record_id,
            event="PARTITION_FAIL",
            status="error",
            duration_ms=outcome.duration_ms,
            error_code=exc.error_code,
        )
        return outcome
    except Exception as exc:
        outcome = _failed_outcome(partition, started, error_code="UNEXPECTED_ERROR", message=repr(exc))
        logger.exception(
            f"unexpected failure for partition {partition.key}",
            extra={
                "run_id": run_id,
                "stage": STAGE,
                "partition": partition.key,
                "event": "PARTITION_FAIL",
                "status": "error",
                "error_code": "UNEXPECTED_ERROR",
            },
        )
        return outcome

    if artifacts.delimiter_conflicts:
        log_event(
            logger,
            f"{artifacts.delimiter_conflicts} row(s) in {artifacts.csv_path.name} contain the CSV delimiter and were written unescaped",
            level=logging.WARNING,
            run_id=run_id,
            stage=STAGE,
            partition=partition.key,
            event="DELIMITER_IN_FIELD",
            status="warning",
            rows_out=artifacts.delimiter_conflicts,
        )

    outcome = PartitionOutcome(
        partition_key=partition.key,
        status="ok",
        rows_in=len(partition.records),
        rows_out=artifacts.rows,
        duration_ms=elapsed_ms(started),
        artifacts=tuple(str(path) for path in artifacts.paths()),
    )
    log_event(
        logger,
        f"partition {partition.key} done",
        run_id=run_id,
        stage=STAGE,
        partition=partition.key,
        event="PARTITION_END",
        status="ok",
        duration_ms=outcome.duration_ms,
        rows_in=outcome.rows_in,
        rows_out=outcome.rows_out,
    )
    return outcome


def run_pipeline(
    records: Sequence[Record],
    config: PipelineConfig,
    out_dir: Path,
    *,
    logger: logging.Logger,
    run_id: str,
) -> RunSummary:
    started = time.perf_counter()
    partitions = partition_records(records)
    log_event(
        logger,
        f"{len(partitions)} partition(s) from {len(records)} record(s)",
        run_id=run_id,
        stage=STAGE,
        event="PARTITIONS_READY",
        status="ok",
        rows_in=len(records),
        rows_out=len(partitions),
    )

    outcomes: list[PartitionOutcome] = []
    if partitions:
        ensure_dir(out_dir)
        # Partition threads only submit, wait and write; every digest runs on compute_pool.
        with ThreadPoolExecutor(
            max_workers=config.workers,
            thread_name_prefix="munhash-kdf",
        ) as compute_pool, ThreadPoolExecutor(
            max_workers=min(config.partitions_in_flight, len(partitions)),
            thread_name_prefix="munhash-partition",
        ) as partition_pool:
            worker = PartitionWorker(config.kdf, compute_pool)
            futures = [
                partition_pool.submit(
                    process_partition,
                    partition,
                    worker,
                    config,
                    out_dir,
                    logger=logger,
                    run_id=run_id,
                )
                for partition in partitions
            ]
            for future in as_completed(futures):
                outcomes.append(future.result())

    summary = RunSummary(
        run_id=run_id,
        out_dir=out_dir,
        elapsed_ms=elapsed_ms(started),
        outcomes=tuple(stable_sorted(outcomes, key=lambda o: (ignore_case_key(o.partition_key), o.partition_key))),
    )
    log_event(
        logger,
        f"{summary.partitions_produced} of {summary.partitions_attempted} partition(s) written to {out_dir}",
        level=logging.INFO if summary.status == "success" else logging.WARNING,
        run_id=run_id,
        stage=STAGE,
        event="RUN_SUMMARY",
        status=summary.status,
        duration_ms=summary.elapsed_ms,
        rows_in=summary.partitions_attempted,
        rows_out=summary.partitions_produced,
    )
    return summary
