from dataclasses import replace
from pathlib import Path

import pytest

from munhash.common.config_loader import PipelineConfig, config_from_mapping, load_pipeline_config
from munhash.common.constants import HASH_BYTES, PBKDF2_ITERATIONS
from munhash.common.errors import ConfigError

BASE_YAML = """source:
  url: "https://example.test/municipios.csv"
  cache_filename: municipios.csv
kdf:
  iterations: 50000
  hash_bytes: 32
output:
  dir_name: mun_hash_por_uf
  prefix: municipios_hash
concurrency:
  workers: 3
"""


def test_defaults_use_production_kdf_parameters():
    config = PipelineConfig.defaults()
    assert config.kdf.iterations == PBKDF2_ITERATIONS == 50_000
    assert config.kdf.hash_bytes == HASH_BYTES == 32
    assert config.workers >= 1
    assert config.partitions_in_flight == config.workers


def test_load_pipeline_config_without_path_returns_defaults():
    assert load_pipeline_config(None) == PipelineConfig.defaults()


def test_load_pipeline_config_from_repo_config_file():
    config = load_pipeline_config(Path("config/pipeline.yml"))
    assert config.source_url.endswith("municipios.csv")
    assert config.output_prefix == "municipios_hash"
    assert config.workers == PipelineConfig.defaults().workers


def test_load_pipeline_config_applies_overlay(tmp_path: Path):
    base = tmp_path / "pipeline.yml"
    overlay = tmp_path / "overlay.yml"
    base.write_text(BASE_YAML, encoding="utf-8")
    overlay.write_text("kdf:\n  iterations: 10\n", encoding="utf-8")

    config = load_pipeline_config(base, overlay_config_path=overlay)

    assert config.kdf.iterations == 10
    assert config.kdf.hash_bytes == 32
    assert config.workers == 3
    assert config.partitions_in_flight == 3


def test_load_pipeline_config_ignores_empty_overlay(tmp_path: Path):
    base = tmp_path / "pipeline.yml"
    overlay = tmp_path / "overlay.yml"
    base.write_text(BASE_YAML, encoding="utf-8")
    overlay.write_text("", encoding="utf-8")
    assert load_pipeline_config(base, overlay_config_path=overlay).kdf.iterations == 50_000


def test_load_pipeline_config_rejects_non_mapping_overlay(tmp_path: Path):
    base = tmp_path / "pipeline.yml"
    overlay = tmp_path / "overlay.yml"
    base.write_text(BASE_YAML, encoding="utf-8")
    overlay.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_pipeline_config(base, overlay_config_path=overlay)


def test_load_pipeline_config_missing_file(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_pipeline_config(tmp_path / "nope.yml")


@pytest.mark.parametrize(
    "mutate",
    [
        lambda cfg: cfg["kdf"].update(iterations=0),
        lambda cfg: cfg["kdf"].update(hash_bytes="32"),
        lambda cfg: cfg.update(unexpected=True),
        lambda cfg: cfg["output"].pop("prefix"),
        lambda cfg: cfg.update(concurrency={"workers": -1}),
    ],
)
def test_config_from_mapping_rejects_invalid_values(mutate):
    cfg = {
        "source": {"url": "u", "cache_filename": "m.csv"},
        "kdf": {"iterations": 5, "hash_bytes": 32},
        "output": {"dir_name": "out", "prefix": "p"},
    }
    mutate(cfg)
    with pytest.raises(ConfigError):
        config_from_mapping(cfg)


def test_iterations_override_leaves_defaults_untouched():
    defaults = PipelineConfig.defaults()
    fast = replace(defaults, kdf=replace(defaults.kdf, iterations=5))
    assert fast.kdf.iterations == 5
    assert PipelineConfig.defaults().kdf.iterations == 50_000


def test_load_pipeline_config_applies_overlay_over_builtin_defaults(tmp_path: Path):
    overlay = tmp_path / "overlay.yml"
    overlay.write_text("kdf:\n  iterations: 7\n", encoding="utf-8")

    config = load_pipeline_config(None, overlay_config_path=overlay)

    assert config.kdf.iterations == 7
    assert config.kdf.hash_bytes == 32
    assert config.output_prefix == "municipios_hash"


@pytest.mark.parametrize(
    ("section", "block"),
    [
        ("source", 'source:\n  url: "https://example.test/municipios.csv"\n  cache_filename: municipios.csv\n'),
        ("kdf", "kdf:\n  iterations: 50000\n  hash_bytes: 32\n"),
        ("output", "output:\n  dir_name: mun_hash_por_uf\n  prefix: municipios_hash\n"),
    ],
)
def test_load_pipeline_config_rejects_null_required_section(tmp_path: Path, section: str, block: str):
    base = tmp_path / "pipeline.yml"
    assert block in BASE_YAML
    base.write_text(BASE_YAML.replace(block, f"{section}:\n"), encoding="utf-8")

    with pytest.raises(ConfigError, match=f"{section} must be a mapping"):
        load_pipeline_config(base)


def test_load_pipeline_config_accepts_null_concurrency_section(tmp_path: Path):
    base = tmp_path / "pipeline.yml"
    base.write_text(BASE_YAML.replace("concurrency:\n  workers: 3\n", "concurrency:\n"), encoding="utf-8")
    assert load_pipeline_config(base).workers == PipelineConfig.defaults().workers
