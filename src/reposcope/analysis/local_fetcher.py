"""File fetcher for a local repository checkout.

Walks the checkout the way the remote fetcher walks a repository tree:
vendored/build directories are skipped, only code, config and documentation
files are kept, files over 1 MB and binary files are dropped.
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Any

from reposcope.db.models import FetchResult, RepoFile

logger = logging.getLogger(__name__)

MAX_FILE_BYTES = 1_000_000

_CODE_EXTS = frozenset(
    {
        ".js", ".ts", ".jsx", ".tsx", ".py", ".java", ".go", ".rs", ".cpp", ".c", ".h",
        ".cs", ".php", ".rb", ".swift", ".kt", ".scala", ".clj", ".hs", ".ml", ".fs",
        ".sh", ".bash", ".zsh", ".ps1", ".bat", ".cmd",
        ".yaml", ".yml", ".json", ".toml", ".ini", ".cfg", ".conf",
        ".sql", ".graphql", ".proto", ".thrift",
        ".html", ".css", ".scss", ".sass", ".less",
        ".md", ".rst", ".txt", ".dockerfile",
        ".tf", ".hcl", ".nomad",
    }
)
_CODE_NAMES = frozenset({"Dockerfile", "Makefile"})

_SKIP_DIRS = frozenset(
    {
        "node_modules", "vendor", ".git", "dist", "build", "target", ".next", ".nuxt",
        "coverage", "__pycache__", ".pytest_cache", "venv", ".venv", "env", ".env",
        "logs", "tmp", "temp",
    }
)

_LANGUAGES: dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".java": "java",
    ".go": "go",
    ".rs": "rust",
    ".cpp": "cpp",
    ".c": "c",
    ".h": "c",
    ".cs": "csharp",
    ".php": "php",
    ".rb": "ruby",
    ".swift": "swift",
    ".kt": "kotlin",
    ".scala": "scala",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".json": "json",
    ".sql": "sql",
    ".html": "html",
    ".css": "css",
    ".scss": "scss",
    ".md": "markdown",
    ".sh": "bash",
    ".bash": "bash",
    ".tf": "terraform",
    ".hcl": "hcl",
}

_PACKAGE_MANAGERS: tuple[tuple[str, str], ...] = (
    ("package.json", "npm"),
    ("yarn.lock", "yarn"),
    ("pnpm-lock.yaml", "pnpm"),
    ("requirements.txt", "pip"),
    ("pyproject.toml", "pip"),
    ("Pipfile", "pipenv"),
    ("poetry.lock", "poetry"),
    ("go.mod", "go"),
    ("Cargo.toml", "cargo"),
    ("pom.xml", "maven"),
    ("build.gradle", "gradle"),
)


def detect_language(path: str) -> str:
    """Language tag for *path* from its extension ('text' when unknown)."""
    return _LANGUAGES.get(Path(path).suffix.lower(), "text")


def is_code_file(relative: Path) -> bool:
    if any(part in _SKIP_DIRS for part in relative.parts[:-1]):
        return False
    return relative.suffix.lower() in _CODE_EXTS or relative.name in _CODE_NAMES


class LocalRepositoryFetcher:
    """Serve a repository from a directory on disk.

    Args:
        root: Path of the checkout. The owner/repo arguments of ``fetch`` only
            label the metadata.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def fetch(self, owner: str, repo: str, token: str | None = None) -> FetchResult:
        if not self.root.is_dir():
            raise FileNotFoundError(f"Repository checkout not found: {self.root}")

        logger.info("Fetching repository: %s/%s from %s", owner, repo, self.root)
        files: list[RepoFile] = []
        for path in sorted(self.root.rglob("*")):
            if not path.is_file():
                continue
            relative = path.relative_to(self.root)
            if not is_code_file(relative):
                continue
            file = self._read(path, relative.as_posix())
            if file is not None:
                files.append(file)

        logger.info("Successfully fetched %d files from %s/%s", len(files), owner, repo)
        return FetchResult(files=files, metadata=build_metadata(owner, repo, files))

    @staticmethod
    def _read(path: Path, relative: str) -> RepoFile | None:
        try:
            size = path.stat().st_size
            if size >= MAX_FILE_BYTES:
                return None
            content = path.read_bytes().decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Skipping binary file %s", relative)
            return None
        except OSError:
            logger.warning("Failed to read file %s", relative, exc_info=True)
            return None
        return RepoFile(path=relative, content=content, language=detect_language(relative), size=size)


def build_metadata(owner: str, repo: str, files: list[RepoFile]) -> dict[str, Any]:
    """Repository metadata derived from the file list."""
    paths = [f.path for f in files]
    names = {Path(p).name for p in paths}
    languages = Counter(f.language for f in files if f.language != "text")
    return {
        "owner": owner,
        "name": repo,
        "full_name": f"{owner}/{repo}",
        "description": "",
        "language": languages.most_common(1)[0][0] if languages else "",
        "languages": dict(languages),
        "has_dockerfile": any("dockerfile" in p.lower() for p in paths),
        "has_kubernetes": any(
            "k8s/" in p or "kubernetes/" in p or p.endswith((".yaml", ".yml")) for p in paths
        ),
        "has_ci": any(
            ".github/workflows/" in p or ".gitlab-ci.yml" in p or "Jenkinsfile" in p
            for p in paths
        ),
        "package_managers": sorted(
            {manager for filename, manager in _PACKAGE_MANAGERS if filename in names}
        ),
        "total_files": len(files),
        "total_size": sum(f.size for f in files),
    }
