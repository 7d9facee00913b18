"""Per-language chunking profiles.

A closed lookup table keyed by ``Language``. Tags that don't name a known
language resolve to ``DEFAULT_PROFILE``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum


class Language(str, Enum):
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    PYTHON = "python"
    JAVA = "java"
    GO = "go"
    YAML = "yaml"
    JSON = "json"
    MARKDOWN = "markdown"

    @classmethod
    def from_tag(cls, tag: str) -> Language | None:
        """Return the Language for *tag* (case-insensitive), or None if unknown."""
        try:
            return cls(tag.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class ChunkingProfile:
    """How files of one language are split.

    Attributes:
        max_chunk_size: Maximum chunk body size in characters.
        overlap_size: Overlap between neighbouring chunks in characters.
        split_on: Structural marker strings, in priority order.
        preserve_structure: Split on marker boundaries instead of fixed windows.
    """

    max_chunk_size: int
    overlap_size: int
    split_on: tuple[str, ...] = ()
    preserve_structure: bool = False

    def __post_init__(self) -> None:
        if self.max_chunk_size < 1:
            raise ValueError("max_chunk_size must be >= 1")
        if not 0 <= self.overlap_size < self.max_chunk_size:
            raise ValueError("overlap_size must be in [0, max_chunk_size)")


DEFAULT_PROFILE = ChunkingProfile(
    max_chunk_size=1000,
    overlap_size=100,
    split_on=("\n\n", "\n"),
    preserve_structure=False,
)

PROFILES: Mapping[Language, ChunkingProfile] = {
    Language.JAVASCRIPT: ChunkingProfile(
        max_chunk_size=1000,
        overlap_size=100,
        split_on=("function ", "class ", "const ", "let ", "var ", "export ", "import "),
        preserve_structure=True,
    ),
    Language.TYPESCRIPT: ChunkingProfile(
        max_chunk_size=1000,
        overlap_size=100,
        split_on=(
            "function ", "class ", "interface ", "type ",
            "const ", "let ", "export ", "import ",
        ),
        preserve_structure=True,
    ),
    Language.PYTHON: ChunkingProfile(
        max_chunk_size=1000,
        overlap_size=100,
        split_on=("def ", "class ", "import ", "from ", "if __name__"),
        preserve_structure=True,
    ),
    Language.JAVA: ChunkingProfile(
        max_chunk_size=1200,
        overlap_size=120,
        split_on=(
            "public class ", "private class ", "public interface ",
            "public void ", "private void ",
        ),
        preserve_structure=True,
    ),
    Language.GO: ChunkingProfile(
        max_chunk_size=1000,
        overlap_size=100,
        split_on=("func ", "type ", "var ", "const ", "package ", "import "),
        preserve_structure=True,
    ),
    Language.YAML: ChunkingProfile(
        max_chunk_size=800,
        overlap_size=80,
        split_on=("apiVersion:", "kind:", "metadata:", "spec:", "data:"),
        preserve_structure=True,
    ),
    Language.JSON: ChunkingProfile(
        max_chunk_size=800,
        overlap_size=80,
        split_on=("{", "}"),
        preserve_structure=False,
    ),
    Language.MARKDOWN: ChunkingProfile(
        max_chunk_size=1500,
        overlap_size=150,
        split_on=("# ", "## ", "### ", "#### "),
        preserve_structure=True,
    ),
}


def profile_for(
    tag: str,
    profiles: Mapping[Language, ChunkingProfile] = PROFILES,
    default: ChunkingProfile = DEFAULT_PROFILE,
) -> ChunkingProfile:
    """Return the profile for a language tag, falling back to *default*."""
    language = Language.from_tag(tag)
    if language is None:
        return default
    return profiles.get(language, default)


def with_overrides(
    overrides: Mapping[str, Mapping[str, int]],
    profiles: Mapping[Language, ChunkingProfile] = PROFILES,
    default: ChunkingProfile = DEFAULT_PROFILE,
) -> tuple[dict[Language, ChunkingProfile], ChunkingProfile]:
    """Apply size overrides (``{"python": {"max_chunk_size": 1500}}``).

    The key ``"default"`` overrides the fallback profile.

    Raises:
        ValueError: For an unknown language key or an invalid size combination.
    """
    table = dict(profiles)
    for key, sizes in overrides.items():
        fields = {
            k: int(v) for k, v in sizes.items() if k in ("max_chunk_size", "overlap_size")
        }
        if key == "default":
            default = replace(default, **fields)
            continue
        language = Language.from_tag(key)
        if language is None:
            raise ValueError(f"Unknown chunking profile language: {key!r}")
        table[language] = replace(table.get(language, default), **fields)
    return table, default
