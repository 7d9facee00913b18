"""Base chunker interface for all splitting strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import NamedTuple

from reposcope.ingest.profiles import ChunkingProfile


class Segment(NamedTuple):
    """A slice of file text with its 1-based inclusive line range."""

    text: str
    start_line: int
    end_line: int


class BaseChunker(ABC):
    """Abstract base for splitting strategies.

    Subclasses implement ``split()``. They only see raw file text; context
    headers, ids and metadata are added by ``CodeChunker``.
    """

    def __init__(self, profile: ChunkingProfile) -> None:
        self.profile = profile

    @abstractmethod
    def split(self, content: str) -> list[Segment]:
        """Split *content* into segments in ascending line order.

        Args:
            content: Full decoded text of the file. Callers only pass content
                longer than ``profile.max_chunk_size``.

        Returns:
            Ordered list of Segments. Neighbours may overlap; no line is skipped.
        """

    @staticmethod
    def line_count(text: str) -> int:
        """Number of lines in *text*; an empty string is one (empty) line."""
        return text.count("\n") + 1
