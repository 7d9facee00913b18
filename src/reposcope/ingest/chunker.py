"""Code chunker: per-file strategy dispatch, context headers, chunking stats."""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from collections.abc import Iterable, Mapping
from pathlib import PurePosixPath

from reposcope.db.models import Chunk, ChunkingStats, ChunkMetadata, RepoFile
from reposcope.ingest.base import BaseChunker, Segment
from reposcope.ingest.profiles import (
    DEFAULT_PROFILE,
    PROFILES,
    ChunkingProfile,
    Language,
    profile_for,
)
from reposcope.ingest.structured import StructureAwareChunker
from reposcope.ingest.window import FixedWindowChunker

logger = logging.getLogger(__name__)


def classify_path(path: str) -> str | None:
    """Return a coarse file-type label for *path*, or None. First match wins."""
    if "test" in path or "spec" in path:
        return "Test file"
    if "config" in path:
        return "Configuration file"
    if "docker" in path or "dockerfile" in path.lower():
        return "Docker configuration"
    if "k8s" in path or "kubernetes" in path:
        return "Kubernetes configuration"
    if ".github/workflows" in path:
        return "GitHub Actions workflow"
    return None


def build_header(path: str, language: str) -> str:
    """Context block prepended to every chunk body before embedding."""
    header = f"File: {path}\nLanguage: {language}\n"
    kind = classify_path(path)
    if kind:
        header += f"Type: {kind}\n"
    return header + "\n"


class CodeChunker:
    """Split repository files into annotated chunks.

    Files at or under the profile's ``max_chunk_size`` become a single chunk.
    Larger files go to ``StructureAwareChunker`` when the profile preserves
    structure and to ``FixedWindowChunker`` otherwise.

    Args:
        profiles: Language → profile table.
        default_profile: Profile for unknown language tags.
        overlap_line_divisor: Characters per overlap line (structure-aware mode).
        max_overlap_lines: Cap on overlap lines (structure-aware mode).
    """

    def __init__(
        self,
        profiles: Mapping[Language, ChunkingProfile] = PROFILES,
        default_profile: ChunkingProfile = DEFAULT_PROFILE,
        overlap_line_divisor: int = 50,
        max_overlap_lines: int = 5,
    ) -> None:
        self.profiles = profiles
        self.default_profile = default_profile
        self.overlap_line_divisor = overlap_line_divisor
        self.max_overlap_lines = max_overlap_lines

    def chunk_files(self, files: Iterable[RepoFile], repo_id: str) -> list[Chunk]:
        """Chunk every file; a file that fails is logged and skipped."""
        chunks: list[Chunk] = []
        file_count = 0
        for file in files:
            file_count += 1
            try:
                chunks.extend(self.chunk_file(file, repo_id))
            except Exception:
                logger.warning("Failed to chunk file %s", file.path, exc_info=True)

        logger.info("Generated %d chunks from %d files", len(chunks), file_count)
        return chunks

    def chunk_file(self, file: RepoFile, repo_id: str) -> list[Chunk]:
        profile = self.profile_for(file.language)
        if len(file.content) <= profile.max_chunk_size:
            segments = [Segment(file.content, 1, BaseChunker.line_count(file.content))]
        else:
            segments = self._strategy(profile).split(file.content)

        header = build_header(file.path, file.language)
        return [
            Chunk(
                id=str(uuid.uuid4()),
                content=header + segment.text,
                metadata=ChunkMetadata(
                    file_path=file.path,
                    start_line=segment.start_line,
                    end_line=segment.end_line,
                    language=file.language,
                    repo_id=repo_id,
                ),
            )
            for segment in segments
        ]

    def profile_for(self, language: str) -> ChunkingProfile:
        return profile_for(language, self.profiles, self.default_profile)

    def _strategy(self, profile: ChunkingProfile) -> BaseChunker:
        if profile.preserve_structure:
            return StructureAwareChunker(
                profile,
                overlap_line_divisor=self.overlap_line_divisor,
                max_overlap_lines=self.max_overlap_lines,
            )
        return FixedWindowChunker(profile)

    @staticmethod
    def get_chunking_stats(chunks: list[Chunk]) -> ChunkingStats:
        """Aggregate chunk count, mean content size and distributions."""
        languages = Counter(c.metadata.language for c in chunks)
        file_types = Counter(
            PurePosixPath(c.metadata.file_path).suffix.lstrip(".") or "unknown"
            for c in chunks
        )
        total_size = sum(len(c.content) for c in chunks)
        return ChunkingStats(
            total_chunks=len(chunks),
            average_size=round(total_size / len(chunks)) if chunks else 0,
            language_distribution=dict(languages),
            file_type_distribution=dict(file_types),
        )
