"""Contracts for the collaborators the analysis pipeline depends on.

Implementations live outside the pipeline (GitHub client, credential store,
LLM-based analyzer); ``local_fetcher`` and ``readiness`` provide local ones
for the CLI.
"""

from __future__ import annotations

from typing import Any, Protocol

from reposcope.db.models import FetchResult, RepoFile


class FileFetcher(Protocol):
    def fetch(self, owner: str, repo: str, token: str | None = None) -> FetchResult:
        """Return every file of the repository plus its metadata.

        Raises a descriptive exception if the repository is inaccessible.
        """
        ...


class ProjectTokenStore(Protocol):
    def get_encrypted_token(self, project_id: str) -> str | None:
        """Return the project's encrypted GitHub token, or None if it has none."""
        ...


class TokenDecryptor(Protocol):
    def decrypt(self, encrypted_token: str) -> str: ...


class DevOpsAnalyzer(Protocol):
    def analyze(
        self, repo_id: str, metadata: dict[str, Any], files: list[RepoFile]
    ) -> dict[str, Any]:
        """Return a result dict that includes ``overall_score``."""
        ...
