"""Structure-aware chunker: split on language markers with line overlap.

Strategy:
- A line is a *boundary* when, after leading whitespace is removed, it starts
  with one of the profile's markers (first marker wins). Line 1 is always a
  boundary so the whole file is covered.
- Each boundary up to the line before the next boundary is a *section*.
- Sections accumulate into a buffer. When the next section would push a
  non-empty buffer past ``max_chunk_size`` the buffer is emitted, and the new
  buffer starts with the last few lines of the emitted chunk.
- Sections are never split, so one oversized section becomes one oversized
  chunk.
"""

from __future__ import annotations

from typing import NamedTuple

from reposcope.ingest.base import BaseChunker, Segment
from reposcope.ingest.profiles import ChunkingProfile


class Boundary(NamedTuple):
    line_number: int
    marker: str | None  # None for the forced line-1 boundary


class StructureAwareChunker(BaseChunker):
    """Split on structural boundaries; overlap is measured in lines.

    The character overlap of the profile is converted to lines as
    ``min(overlap_size // overlap_line_divisor, max_overlap_lines)``.
    """

    def __init__(
        self,
        profile: ChunkingProfile,
        overlap_line_divisor: int = 50,
        max_overlap_lines: int = 5,
    ) -> None:
        super().__init__(profile)
        if overlap_line_divisor < 1:
            raise ValueError("overlap_line_divisor must be >= 1")
        if max_overlap_lines < 0:
            raise ValueError("max_overlap_lines must be >= 0")
        self.overlap_line_divisor = overlap_line_divisor
        self.max_overlap_lines = max_overlap_lines

    @property
    def overlap_lines(self) -> int:
        return min(self.profile.overlap_size // self.overlap_line_divisor, self.max_overlap_lines)

    def split(self, content: str) -> list[Segment]:
        lines = content.split("\n")
        boundaries = self.find_boundaries(lines)

        segments: list[Segment] = []
        buffer: list[str] = []
        buffer_size = 0
        start_line = 1
        end_line = 1

        for i, boundary in enumerate(boundaries):
            section_end = (
                boundaries[i + 1].line_number - 1 if i + 1 < len(boundaries) else len(lines)
            )
            section = lines[boundary.line_number - 1 : section_end]
            section_size = _joined_size(section)

            if buffer and buffer_size + section_size > self.profile.max_chunk_size:
                segments.append(Segment("\n".join(buffer), start_line, end_line))

                overlap_from = max(0, end_line - self.overlap_lines)
                buffer = lines[overlap_from:end_line] + section
                start_line = overlap_from + 1 if overlap_from < end_line else boundary.line_number
            else:
                buffer = buffer + section
            buffer_size = _joined_size(buffer)
            end_line = section_end

        if buffer:
            segments.append(Segment("\n".join(buffer), start_line, end_line))
        return segments

    def find_boundaries(self, lines: list[str]) -> list[Boundary]:
        """Return boundaries in ascending line order; line 1 is always included."""
        markers = [m for m in self.profile.split_on if m.strip()]
        boundaries: list[Boundary] = []
        for index, line in enumerate(lines):
            stripped = line.lstrip()
            for marker in markers:
                if stripped.startswith(marker.lstrip()):
                    boundaries.append(Boundary(index + 1, marker))
                    break

        if not boundaries or boundaries[0].line_number != 1:
            boundaries.insert(0, Boundary(1, None))
        return boundaries


def _joined_size(lines: list[str]) -> int:
    """Length of ``"\\n".join(lines)`` without building the string."""
    if not lines:
        return 0
    return sum(len(line) for line in lines) + len(lines) - 1
