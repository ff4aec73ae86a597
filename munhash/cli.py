"""CLI entrypoint for the per-UF municipality hash export."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from munhash.common.config_loader import PipelineConfig, load_pipeline_config
from munhash.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS, STAGES
from munhash.common.errors import ConfigError, PipelineError
from munhash.common.http import HttpClient
from munhash.common.ids import generate_run_id
from munhash.common.logging import build_logger, close_logger, log_event
from munhash.pipeline.driver import run_pipeline
from munhash.pipeline.reports import render_summary_lines, write_run_summary
from munhash.pipeline.search import filter_records, format_record, run_search_loop
from munhash.source.fetch import fetch_source_csv
from munhash.source.parse import read_records


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=[*STAGES, "search", "all"])
    parser.add_argument("--config", default="./config/pipeline.yml")
    parser.add_argument("--overlay-config", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--input", default=None)
    parser.add_argument("--workers", type=int, default=None)
    parser.add_argument("--iterations", type=int, default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--query", default=None)
    parser.add_argument("--uf", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    return parser.parse_args(argv)


def resolve_config(args: argparse.Namespace) -> PipelineConfig:
    config = load_pipeline_config(
        Path(args.config) if args.config else None,
        overlay_config_path=Path(args.overlay_config) if args.overlay_config else None,
    )
    if args.workers is not None:
        if args.workers < 1:
            raise ConfigError("--workers must be at least 1")
        config = replace(config, workers=args.workers, partitions_in_flight=args.workers)
    if args.iterations is not None:
        if args.iterations < 1:
            raise ConfigError("--iterations must be at least 1")
        config = replace(config, kdf=replace(config.kdf, iterations=args.iterations))
    return config


def _fail(logger: logging.Logger, run_id: str, stage: str, exc: PipelineError) -> int:
    log_event(
        logger,
        f"{stage} failed: {exc}",
        level=logging.ERROR,
        run_id=run_id,
        stage=stage,
        event="STAGE_FAIL",
        status="error",
        error_code=exc.error_code,
    )
    return EXIT_HARD_FAIL


def _search(args: argparse.Namespace, records) -> int:
    if args.query is not None:
        for record in filter_records(records, args.query, partition_key=args.uf):
            print(format_record(record))
        return EXIT_SUCCESS
    run_search_loop(records, sys.stdin, print)
    return EXIT_SUCCESS


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    data_dir = Path(args.data_dir)
    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    try:
        return _run(args, run_id, data_dir, logger)
    finally:
        close_logger(logger)


def _run(args: argparse.Namespace, run_id: str, data_dir: Path, logger: logging.Logger) -> int:
    try:
        config = resolve_config(args)
    except ConfigError as exc:
        return _fail(logger, run_id, "config", exc)

    input_path = Path(args.input) if args.input else data_dir / config.cache_filename
    source_meta: dict = {"path": str(input_path)}

    if args.command in ("fetch", "all"):
        log_event(logger, "stage start", run_id=run_id, stage="fetch", event="STAGE_START", status="ok")
        try:
            with HttpClient() as client:
                fetched = fetch_source_csv(config.source_url, input_path, client)
        except PipelineError as exc:
            return _fail(logger, run_id, "fetch", exc)
        source_meta.update(sha256=fetched.sha256, size_bytes=fetched.size_bytes, cache_hit=fetched.cache_hit)
        log_event(
            logger,
            f"source {'unchanged' if fetched.cache_hit else 'updated'} at {fetched.path}",
            run_id=run_id,
            stage="fetch",
            event="STAGE_END",
            status="ok",
            rows_out=fetched.size_bytes,
        )
        if args.command == "fetch":
            return EXIT_SUCCESS

    try:
        parsed = read_records(input_path)
    except PipelineError as exc:
        return _fail(logger, run_id, "parse", exc)
    log_event(
        logger,
        f"parsed {len(parsed.records)} record(s), dropped {parsed.dropped}",
        run_id=run_id,
        stage="parse",
        event="PARSE_END",
        status="ok" if parsed.dropped == 0 else "warning",
        rows_out=len(parsed.records),
    )

    if args.command == "search":
        return _search(args, parsed.records)

    out_dir = data_dir / config.output_dir_name
    summary = run_pipeline(parsed.records, config, out_dir, logger=logger, run_id=run_id)
    write_run_summary(data_dir / "reports", summary, source=source_meta)
    for line in render_summary_lines(summary):
        print(line)

    if summary.status == "error":
        return EXIT_HARD_FAIL
    if summary.status == "partial":
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except PipelineError:
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
