"""Tests for per-language chunking profiles."""

from __future__ import annotations

import pytest

from reposcope.ingest.profiles import (
    DEFAULT_PROFILE,
    PROFILES,
    ChunkingProfile,
    Language,
    profile_for,
    with_overrides,
)


def test_every_language_has_a_profile():
    assert set(PROFILES) == set(Language)


@pytest.mark.parametrize("tag", ["python", "Python", " PYTHON "])
def test_from_tag_is_case_insensitive(tag):
    assert Language.from_tag(tag) is Language.PYTHON


def test_from_tag_unknown_returns_none():
    assert Language.from_tag("cobol") is None


def test_profile_for_known_language():
    profile = profile_for("java")
    assert profile.max_chunk_size == 1200
    assert profile.overlap_size == 120
    assert profile.preserve_structure is True


@pytest.mark.parametrize("tag", ["text", "rust", ""])
def test_profile_for_unknown_language_falls_back(tag):
    assert profile_for(tag) is DEFAULT_PROFILE


def test_json_does_not_preserve_structure():
    assert profile_for("json").preserve_structure is False


def test_markdown_markers():
    assert profile_for("markdown").split_on == ("# ", "## ", "### ", "#### ")


@pytest.mark.parametrize("max_size, overlap", [(0, 0), (100, 100), (100, -1)])
def test_invalid_sizes_rejected(max_size, overlap):
    with pytest.raises(ValueError):
        ChunkingProfile(max_chunk_size=max_size, overlap_size=overlap)


# ------------------------------------------------------------------
# with_overrides
# ------------------------------------------------------------------

def test_with_overrides_replaces_sizes_only():
    table, default = with_overrides({"python": {"max_chunk_size": 1500}})
    assert table[Language.PYTHON].max_chunk_size == 1500
    assert table[Language.PYTHON].overlap_size == 100
    assert table[Language.PYTHON].split_on == PROFILES[Language.PYTHON].split_on
    assert default is DEFAULT_PROFILE


def test_with_overrides_does_not_mutate_builtin_table():
    with_overrides({"go": {"max_chunk_size": 2000}})
    assert PROFILES[Language.GO].max_chunk_size == 1000


def test_with_overrides_default_key():
    _, default = with_overrides({"default": {"max_chunk_size": 500, "overlap_size": 50}})
    assert (default.max_chunk_size, default.overlap_size) == (500, 50)
    assert default.preserve_structure is False


def test_with_overrides_unknown_language():
    with pytest.raises(ValueError, match="cobol"):
        with_overrides({"cobol": {"max_chunk_size": 10}})


def test_with_overrides_invalid_combination():
    with pytest.raises(ValueError):
        with_overrides({"python": {"overlap_size": 5000}})
