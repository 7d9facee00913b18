"""Tests for reposcope chunk."""

from __future__ import annotations

from typer.testing import CliRunner

from reposcope.cli.main import app

runner = CliRunner()


def test_chunk_reports_stats_without_api_key(checkout, monkeypatch, embedder):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    result = runner.invoke(app, ["chunk", str(checkout)])

    assert result.exit_code == 0, result.output
    assert "Files: 3" in result.output
    assert "Chunks: 3" in result.output
    assert "python" in result.output
    assert embedder.calls == []


def test_chunk_show_prints_chunk_content(checkout):
    result = runner.invoke(app, ["chunk", str(checkout), "--show", "1"])
    assert result.exit_code == 0, result.output
    assert "File: Dockerfile" in result.output


def test_chunk_missing_path_exits_1(tmp_path):
    result = runner.invoke(app, ["chunk", str(tmp_path / "missing")])
    assert result.exit_code == 1
