"""Fixed-window chunker for languages without structural markers."""

from __future__ import annotations

from reposcope.ingest.base import BaseChunker, Segment


class FixedWindowChunker(BaseChunker):
    """Slide a ``max_chunk_size`` window over the raw text.

    Stride is ``max_chunk_size - overlap_size`` characters. Line numbers come
    from the newlines before and inside each window.
    """

    def split(self, content: str) -> list[Segment]:
        size = self.profile.max_chunk_size
        step = max(1, size - self.profile.overlap_size)

        segments: list[Segment] = []
        for pos in range(0, len(content), step):
            window = content[pos : pos + size]
            start_line = content.count("\n", 0, pos) + 1
            end_line = start_line + window.count("\n")
            segments.append(Segment(window, start_line, end_line))
        return segments
