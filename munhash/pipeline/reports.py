"""Run report persistence and console rendering."""

from __future__ import annotations

from pathlib import Path

from munhash.common.fs import write_json
from munhash.common.models import RunSummary
from munhash.common.time_utils import format_elapsed


def write_run_summary(reports_dir: Path, summary: RunSummary, *, source: dict | None = None) -> Path:
    payload = {
        "run_id": summary.run_id,
        "status": summary.status,
        "out_dir": str(summary.out_dir),
        "elapsed_ms": summary.elapsed_ms,
        "partitions_attempted": summary.partitions_attempted,
        "partitions_produced": summary.partitions_produced,
        "partitions_failed": summary.partitions_failed,
        "partitions": [outcome.to_dict() for outcome in summary.outcomes],
        "source": source or {},
    }
    summary_path = reports_dir / f"{summary.run_id}_summary.json"
    write_json(summary_path, payload)
    return summary_path


def render_summary_lines(summary: RunSummary) -> list[str]:
    lines = [
        "===== SUMMARY =====",
        f"Partitions produced: {summary.partitions_produced}",
    ]
    if summary.partitions_failed:
        lines.append(f"Partitions failed: {summary.partitions_failed} of {summary.partitions_attempted}")
        for outcome in summary.outcomes:
            if not outcome.succeeded:
                lines.append(f"  {outcome.partition_key}: {outcome.error_code} {outcome.message}")
    lines.append(f"Output folder: {summary.out_dir}")
    lines.append(f"Total time: {format_elapsed(summary.elapsed_ms)}")
    return lines
