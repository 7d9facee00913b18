"""CLI test fixtures: isolated working directory, config and a fake embedding model."""

from __future__ import annotations

import logging

import pytest
import yaml

import reposcope.config as config_module


@pytest.fixture(autouse=True)
def cli_env(tmp_path, monkeypatch, embedder):
    """Run every CLI test in tmp_path with no rate-limit delays and a fake embedder."""
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.setattr(config_module, "_GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml")
    for var in ("REPOSCOPE_EMBEDDING_MODEL", "REPOSCOPE_DB_PATH", "REPOSCOPE_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-key")

    (workdir / "reposcope.yaml").write_text(
        yaml.dump(
            {
                "embedding": {"batch_delay": 0},
                "analysis": {"batch_delay": 0},
                "logging": {"level": "WARNING"},
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setattr(
        "reposcope.cli.runtime.EmbeddingClient",
        lambda model, num_retries: embedder,
    )

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield workdir
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def checkout(tmp_path):
    root = tmp_path / "api"
    (root / "src").mkdir(parents=True)
    (root / "src" / "app.py").write_text(
        "import os\n\n\ndef main():\n    print(os.getcwd())\n", encoding="utf-8"
    )
    (root / "Dockerfile").write_text("FROM python:3.12\nCOPY . /app\n", encoding="utf-8")
    (root / "README.md").write_text("# API\n\nService docs.\n", encoding="utf-8")
    return root
