"""reposcope configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (REPOSCOPE_EMBEDDING_MODEL, REPOSCOPE_DB_PATH,
     REPOSCOPE_LOG_LEVEL)
  3. Per-project reposcope.yaml
  4. Global ~/.reposcope/config.yaml  (no API keys)
  5. Hardcoded defaults

Global config must never contain API keys or tokens; use environment variables.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from reposcope.ingest.profiles import ChunkingProfile, Language, with_overrides

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".reposcope"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "reposcope.yaml"

# Key names that suggest a credential. Does not match batch_size, max_workers etc.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["embedding", "chunking", "analysis", "store", "logging"]
)

_LOG_LEVELS: frozenset[str] = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (reposcope.yaml: embedding:)."""

    model: str = "openai/text-embedding-3-small"
    batch_size: int = 10
    batch_delay: float = 1.0
    num_retries: int = 3


@dataclass
class ChunkingCfg:
    """Chunking configuration (reposcope.yaml: chunking:).

    Attributes:
        overlap_line_divisor: Characters per overlap line in structure-aware mode.
        max_overlap_lines: Cap on overlap lines in structure-aware mode.
        profiles: Per-language size overrides, e.g.
            ``{"python": {"max_chunk_size": 1500}}``. ``default`` targets the
            fallback profile.
    """

    overlap_line_divisor: int = 50
    max_overlap_lines: int = 5
    profiles: dict[str, dict[str, int]] = field(default_factory=dict)

    def build_profiles(self) -> tuple[dict[Language, ChunkingProfile], ChunkingProfile]:
        """Profile table and fallback profile with the overrides applied."""
        return with_overrides(self.profiles)


@dataclass
class AnalysisCfg:
    """Background analysis configuration (reposcope.yaml: analysis:)."""

    batch_size: int = 50
    batch_delay: float = 1.0
    max_workers: int = 4


@dataclass
class StoreCfg:
    """Vector store location (reposcope.yaml: store:)."""

    path: str = ".reposcope.db"


@dataclass
class LoggingCfg:
    level: str = "INFO"


@dataclass
class ReposcopeConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    analysis: AnalysisCfg = field(default_factory=AnalysisCfg)
    store: StoreCfg = field(default_factory=StoreCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _read_yaml(path: Path) -> dict[str, Any]:
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file '{path}' must contain a mapping at the top level.")
    return raw


def _validate(cfg: ReposcopeConfig) -> None:
    if cfg.embedding.batch_size < 1 or cfg.analysis.batch_size < 1:
        raise ConfigError("batch_size must be >= 1")
    if cfg.embedding.batch_delay < 0 or cfg.analysis.batch_delay < 0:
        raise ConfigError("batch_delay must be >= 0")
    if cfg.analysis.max_workers < 1:
        raise ConfigError("analysis.max_workers must be >= 1")
    if cfg.chunking.overlap_line_divisor < 1:
        raise ConfigError("chunking.overlap_line_divisor must be >= 1")
    if cfg.chunking.max_overlap_lines < 0:
        raise ConfigError("chunking.max_overlap_lines must be >= 0")
    if cfg.logging.level not in _LOG_LEVELS:
        raise ConfigError(
            f"logging.level must be one of {', '.join(sorted(_LOG_LEVELS))}, "
            f"got '{cfg.logging.level}'"
        )
    try:
        cfg.chunking.build_profiles()
    except ValueError as exc:
        raise ConfigError(f"chunking.profiles: {exc}") from exc


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> ReposcopeConfig:
    """Build a *ReposcopeConfig* from a merged raw YAML dict."""
    cfg = ReposcopeConfig()

    if "embedding" in data:
        e = data["embedding"]
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", cfg.embedding.model)),
            batch_size=int(e.get("batch_size", cfg.embedding.batch_size)),
            batch_delay=float(e.get("batch_delay", cfg.embedding.batch_delay)),
            num_retries=int(e.get("num_retries", cfg.embedding.num_retries)),
        )

    if "chunking" in data:
        c = data["chunking"]
        cfg.chunking = ChunkingCfg(
            overlap_line_divisor=int(
                c.get("overlap_line_divisor", cfg.chunking.overlap_line_divisor)
            ),
            max_overlap_lines=int(c.get("max_overlap_lines", cfg.chunking.max_overlap_lines)),
            profiles={str(k): dict(v or {}) for k, v in (c.get("profiles") or {}).items()},
        )

    if "analysis" in data:
        a = data["analysis"]
        cfg.analysis = AnalysisCfg(
            batch_size=int(a.get("batch_size", cfg.analysis.batch_size)),
            batch_delay=float(a.get("batch_delay", cfg.analysis.batch_delay)),
            max_workers=int(a.get("max_workers", cfg.analysis.max_workers)),
        )

    if "store" in data:
        cfg.store = StoreCfg(path=str(data["store"].get("path", cfg.store.path)))

    if "logging" in data:
        cfg.logging = LoggingCfg(
            level=str(data["logging"].get("level", cfg.logging.level)).upper()
        )

    return cfg


def _apply_env_overrides(cfg: ReposcopeConfig) -> ReposcopeConfig:
    """Apply REPOSCOPE_* environment variable overrides."""
    if model := os.environ.get("REPOSCOPE_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if path := os.environ.get("REPOSCOPE_DB_PATH"):
        cfg.store.path = path
    if level := os.environ.get("REPOSCOPE_LOG_LEVEL"):
        cfg.logging.level = level.upper()
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> ReposcopeConfig:
    """Load and return a merged *ReposcopeConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *reposcope.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If the global config contains API-key-like fields or a
            value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    try:
        cfg = _cfg_from_dict(merged)
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigError(f"Invalid config value: {exc}") from exc

    cfg = _apply_env_overrides(cfg)
    _validate(cfg)
    return cfg
