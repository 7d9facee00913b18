"""reposcope ingest pipeline — chunking profiles and chunkers."""

from reposcope.ingest.base import BaseChunker, Segment
from reposcope.ingest.chunker import CodeChunker
from reposcope.ingest.profiles import DEFAULT_PROFILE, PROFILES, ChunkingProfile, Language
from reposcope.ingest.structured import StructureAwareChunker
from reposcope.ingest.window import FixedWindowChunker

__all__ = [
    "BaseChunker",
    "ChunkingProfile",
    "CodeChunker",
    "DEFAULT_PROFILE",
    "FixedWindowChunker",
    "Language",
    "PROFILES",
    "Segment",
    "StructureAwareChunker",
]
