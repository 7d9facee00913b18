"""Tests for the reposcope config loader."""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest
import yaml

from reposcope.config import ConfigError, ReposcopeConfig, load_config
from reposcope.ingest.profiles import Language


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("REPOSCOPE_EMBEDDING_MODEL", "REPOSCOPE_DB_PATH", "REPOSCOPE_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def no_global(tmp_path: Path) -> Path:
    return tmp_path / "nonexistent" / "config.yaml"


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path, no_global: Path) -> None:
    cfg = load_config(project_dir=tmp_path, global_config_path=no_global)

    assert cfg == ReposcopeConfig()
    assert cfg.embedding.model == "openai/text-embedding-3-small"
    assert cfg.embedding.batch_size == 10
    assert cfg.embedding.batch_delay == 1.0
    assert cfg.embedding.num_retries == 3
    assert cfg.chunking.overlap_line_divisor == 50
    assert cfg.chunking.max_overlap_lines == 5
    assert cfg.analysis.batch_size == 50
    assert cfg.analysis.max_workers == 4
    assert cfg.store.path == ".reposcope.db"
    assert cfg.logging.level == "INFO"


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------


def test_global_overrides_defaults(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"embedding": {"model": "cohere/embed-english-v3.0"}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.embedding.model == "cohere/embed-english-v3.0"
    assert cfg.embedding.batch_size == 10


def test_project_overrides_global(tmp_path: Path) -> None:
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"embedding": {"model": "cohere/embed-english-v3.0", "batch_size": 5}})
    _write_yaml(tmp_path / "reposcope.yaml", {"embedding": {"model": "openai/text-embedding-3-large"}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.embedding.model == "openai/text-embedding-3-large"
    assert cfg.embedding.batch_size == 5


def test_env_overrides_files(tmp_path: Path, no_global: Path, monkeypatch) -> None:
    _write_yaml(tmp_path / "reposcope.yaml", {"store": {"path": "project.db"}})
    monkeypatch.setenv("REPOSCOPE_EMBEDDING_MODEL", "ollama/nomic-embed-text")
    monkeypatch.setenv("REPOSCOPE_DB_PATH", "/data/env.db")
    monkeypatch.setenv("REPOSCOPE_LOG_LEVEL", "debug")

    cfg = load_config(project_dir=tmp_path, global_config_path=no_global)
    assert cfg.embedding.model == "ollama/nomic-embed-text"
    assert cfg.store.path == "/data/env.db"
    assert cfg.logging.level == "DEBUG"


def test_empty_files_use_defaults(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("", encoding="utf-8")
    (tmp_path / "reposcope.yaml").write_text("", encoding="utf-8")

    assert load_config(project_dir=tmp_path, global_config_path=global_cfg) == ReposcopeConfig()


def test_chunking_profile_overrides(tmp_path: Path, no_global: Path) -> None:
    _write_yaml(
        tmp_path / "reposcope.yaml",
        {"chunking": {"max_overlap_lines": 3, "profiles": {"python": {"max_chunk_size": 1500}}}},
    )
    cfg = load_config(project_dir=tmp_path, global_config_path=no_global)

    table, default = cfg.chunking.build_profiles()
    assert cfg.chunking.max_overlap_lines == 3
    assert table[Language.PYTHON].max_chunk_size == 1500
    assert default.max_chunk_size == 1000


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def test_global_config_rejects_api_keys(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"embedding": {"api_key": "sk-secret"}})

    with pytest.raises(ConfigError, match="forbidden key 'embedding.api_key'"):
        load_config(project_dir=tmp_path, global_config_path=global_cfg)


def test_github_token_forbidden_in_global(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"github_token": "ghp_x"})

    with pytest.raises(ConfigError):
        load_config(project_dir=tmp_path, global_config_path=global_cfg)


def test_unknown_key_warns(tmp_path: Path, no_global: Path) -> None:
    _write_yaml(tmp_path / "reposcope.yaml", {"retrieval": {"top_k": 3}})

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        load_config(project_dir=tmp_path, global_config_path=no_global)
    assert any("retrieval" in str(w.message) for w in caught)


@pytest.mark.parametrize(
    "data",
    [
        {"embedding": {"batch_size": 0}},
        {"analysis": {"batch_delay": -1}},
        {"analysis": {"max_workers": 0}},
        {"chunking": {"overlap_line_divisor": 0}},
        {"logging": {"level": "LOUD"}},
        {"chunking": {"profiles": {"cobol": {"max_chunk_size": 10}}}},
        {"embedding": {"batch_size": "many"}},
    ],
)
def test_invalid_values_raise_config_error(tmp_path: Path, no_global: Path, data: dict) -> None:
    _write_yaml(tmp_path / "reposcope.yaml", data)
    with pytest.raises(ConfigError):
        load_config(project_dir=tmp_path, global_config_path=no_global)


def test_non_mapping_file_rejected(tmp_path: Path, no_global: Path) -> None:
    (tmp_path / "reposcope.yaml").write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(project_dir=tmp_path, global_config_path=no_global)
