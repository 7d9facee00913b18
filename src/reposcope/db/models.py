"""Domain models shared by the chunker, the vector store and the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RepoFile:
    path: str
    content: str
    language: str
    size: int = -1

    def __post_init__(self) -> None:
        if self.size < 0:
            object.__setattr__(self, "size", len(self.content.encode("utf-8")))


@dataclass
class FetchResult:
    files: list[RepoFile]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ChunkMetadata:
    file_path: str
    start_line: int
    end_line: int
    language: str
    repo_id: str

    def __post_init__(self) -> None:
        if self.start_line < 1 or self.end_line < self.start_line:
            raise ValueError(
                f"invalid line range {self.start_line}..{self.end_line} for {self.file_path}"
            )


@dataclass(frozen=True)
class Chunk:
    id: str
    content: str
    metadata: ChunkMetadata


@dataclass
class StoredChunk:
    chunk: Chunk
    embedding: list[float]
    created_at: str


@dataclass
class SearchResult:
    chunk: Chunk
    score: float


@dataclass
class CollectionStats:
    count: int = 0


@dataclass
class ChunkingStats:
    total_chunks: int = 0
    average_size: int = 0
    language_distribution: dict[str, int] = field(default_factory=dict)
    file_type_distribution: dict[str, int] = field(default_factory=dict)
