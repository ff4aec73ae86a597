from __future__ import annotations

import json
from pathlib import Path

import pytest

from munhash.cli import main, parse_args, run_command
from munhash.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from munhash.common.http import HttpClient, HttpRequestError
from munhash.pipeline import worker as worker_module
from munhash.pipeline.derive import derive_digest_hex as real_derive

SOURCE_CSV = (
    "TOM;IBGE;NOME TOM;NOME IBGE;UF\n"
    "7107;3550308;SAO PAULO;São Paulo;SP\n"
    "6291;3509502;CAMPINAS;Campinas;SP\n"
    "5869;3304557;RIO DE JANEIRO;Rio de Janeiro;RJ\n"
    "9701;9999901;EXTERIOR;Exterior;EX\n"
    "broken line\n"
)


def _args(command: str, data_dir: Path, *extra: str):
    return parse_args(
        [
            command,
            "--data-dir",
            str(data_dir),
            "--iterations",
            "10",
            "--workers",
            "2",
            "--run-id",
            "run-test",
            *extra,
        ]
    )


@pytest.mark.integration
def test_cli_hash_generates_expected_artifacts(tmp_path: Path, capsys):
    source = tmp_path / "municipios.csv"
    source.write_text(SOURCE_CSV, encoding="utf-8")

    exit_code = run_command(_args("hash", tmp_path / "data", "--input", str(source)))

    assert exit_code == EXIT_SUCCESS
    out_dir = tmp_path / "data" / "mun_hash_por_uf"
    assert sorted(p.name for p in out_dir.iterdir()) == [
        "municipios_hash_RJ.bin",
        "municipios_hash_RJ.csv",
        "municipios_hash_RJ.json",
        "municipios_hash_SP.bin",
        "municipios_hash_SP.csv",
        "municipios_hash_SP.json",
    ]
    report = json.loads((tmp_path / "data" / "reports" / "run-test_summary.json").read_text(encoding="utf-8"))
    assert report["partitions_produced"] == 2
    assert report["status"] == "success"
    assert (tmp_path / "data" / "run_meta" / "run-test.log.jsonl").exists()
    assert "Partitions produced: 2" in capsys.readouterr().out


@pytest.mark.integration
def test_cli_all_fetches_then_hashes(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(HttpClient, "get_bytes", lambda self, url, **_kwargs: SOURCE_CSV.encode("utf-8"))

    exit_code = run_command(_args("all", tmp_path))

    assert exit_code == EXIT_SUCCESS
    assert (tmp_path / "municipios.csv").exists()
    assert (tmp_path / "municipios.csv.sha256").exists()
    assert (tmp_path / "mun_hash_por_uf" / "municipios_hash_SP.csv").exists()


@pytest.mark.integration
def test_cli_fetch_failure_is_hard_fail(monkeypatch, tmp_path: Path):
    def fail(self, url, **_kwargs):
        raise HttpRequestError("HTTP status: 404")

    monkeypatch.setattr(HttpClient, "get_bytes", fail)
    assert run_command(_args("fetch", tmp_path)) == EXIT_HARD_FAIL


@pytest.mark.integration
def test_cli_missing_input_is_hard_fail(tmp_path: Path):
    assert run_command(_args("hash", tmp_path)) == EXIT_HARD_FAIL


@pytest.mark.integration
def test_cli_partial_failure_exit_code(monkeypatch, tmp_path: Path):
    source = tmp_path / "municipios.csv"
    source.write_text(SOURCE_CSV, encoding="utf-8")

    def failing_derive(password, salt, iterations, output_bytes):
        if "RIO DE JANEIRO" in password:
            raise ValueError("injected")
        return real_derive(password, salt, iterations, output_bytes)

    monkeypatch.setattr(worker_module, "derive_digest_hex", failing_derive)

    assert run_command(_args("hash", tmp_path, "--input", str(source))) == EXIT_PARTIAL
    assert not (tmp_path / "mun_hash_por_uf" / "municipios_hash_RJ.json").exists()


@pytest.mark.integration
def test_cli_search_with_query(tmp_path: Path, capsys):
    source = tmp_path / "municipios.csv"
    source.write_text(SOURCE_CSV, encoding="utf-8")

    exit_code = run_command(_args("search", tmp_path, "--input", str(source), "--query", "camp", "--uf", "sp"))

    assert exit_code == EXIT_SUCCESS
    out = capsys.readouterr().out
    assert "Campinas" in out
    assert "São Paulo" not in out


@pytest.mark.integration
def test_cli_null_config_section_is_hard_fail(tmp_path: Path):
    config = tmp_path / "pipeline.yml"
    config.write_text(
        "source:\n  url: u\n  cache_filename: m.csv\nkdf:\noutput:\n  dir_name: out\n  prefix: p\n",
        encoding="utf-8",
    )

    assert main(["hash", "--config", str(config), "--data-dir", str(tmp_path), "--run-id", "run-null"]) == EXIT_HARD_FAIL
