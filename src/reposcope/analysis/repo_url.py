"""Parse ``owner/name`` repository ids from GitHub URLs or shorthand."""

from __future__ import annotations

import re

# Tried in order; first match wins.
_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"github\.com[/:]([^/\s]+)/([^/\s]+?)(?:\.git)?(?:/.*)?$"),
    # Owners never contain dots, so "github.com/owner" is not shorthand.
    re.compile(r"^([^/\s.]+)/([^/\s]+)$"),
)


class InvalidRepositoryUrlError(ValueError):
    """The repository URL matches none of the supported formats."""


def parse_repo_url(repo_url: str) -> str:
    """Return ``owner/name`` for *repo_url*.

    Accepts ``https://github.com/owner/name``, ``.git`` suffixes, deep links
    such as ``.../tree/main`` and the ``owner/name`` shorthand.

    Raises:
        InvalidRepositoryUrlError: If no pattern matches.
    """
    candidate = repo_url.strip()
    for pattern in _PATTERNS:
        match = pattern.search(candidate)
        if match:
            owner, name = match.groups()
            name = re.sub(r"\.git$", "", name)
            if owner and name:
                return f"{owner}/{name}"
    raise InvalidRepositoryUrlError(f"Invalid repository URL format: {repo_url!r}")


def split_repo_id(repo_id: str) -> tuple[str, str]:
    """Split ``owner/name`` into its two parts."""
    owner, _, name = repo_id.partition("/")
    if not owner or not name:
        raise InvalidRepositoryUrlError(f"Invalid repository id: {repo_id!r}")
    return owner, name
