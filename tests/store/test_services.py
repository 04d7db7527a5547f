"""Tests for the file-backed content store."""

from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from cyclejournal.cycle import decode
from cyclejournal.errors import StoreUnavailable
from cyclejournal.store import ArtifactKey, ArtifactKind, FileContentStore


@pytest.fixture
def store(tmp_path: Path) -> FileContentStore:
    return FileContentStore(tmp_path / "journal")


class TestArtifactKey:
    """Tests for ArtifactKey addressing."""

    def test_prompt_filename(self):
        key = ArtifactKey(date=decode("00000"), kind=ArtifactKind.PROMPT, index=2)
        assert key.filename == "prompt2.txt"
        assert str(key) == "00000/prompt2"

    def test_entry_filename(self):
        key = ArtifactKey(date=decode("00000"), kind=ArtifactKind.ENTRY)
        assert key.filename == "entry.txt"

    def test_prompt_requires_index(self):
        with pytest.raises(ValidationError):
            ArtifactKey(date=decode("00000"), kind=ArtifactKind.PROMPT)

    def test_prompt_index_starts_at_one(self):
        with pytest.raises(ValidationError):
            ArtifactKey(date=decode("00000"), kind=ArtifactKind.PROMPT, index=0)

    def test_non_prompt_rejects_index(self):
        with pytest.raises(ValidationError):
            ArtifactKey(date=decode("00000"), kind=ArtifactKind.SUMMARY, index=1)


class TestFileContentStore:
    """Tests for FileContentStore."""

    def test_missing_artifact(self, store: FileContentStore):
        d = decode("00103")
        assert not store.exists(d, ArtifactKind.ENTRY)
        assert store.read(d, ArtifactKind.ENTRY) is None

    def test_write_then_read(self, store: FileContentStore):
        d = decode("00103")
        store.write(d, ArtifactKind.ENTRY, "Went hiking.")

        assert store.exists(d, ArtifactKind.ENTRY)
        assert store.read(d, ArtifactKind.ENTRY) == "Went hiking."

    def test_layout_on_disk(self, store: FileContentStore):
        d = decode("03B25")
        store.write(d, ArtifactKind.PROMPT, "What surprised you?", index=3)

        path = store.base_dir / "03B25" / "prompt3.txt"
        assert path.read_text(encoding="utf-8") == "What surprised you?"

    def test_overwrite_is_whole_file(self, store: FileContentStore):
        d = decode("00103")
        store.write(d, ArtifactKind.SUMMARY, "a much longer first version")
        store.write(d, ArtifactKind.SUMMARY, "short")
        assert store.read(d, ArtifactKind.SUMMARY) == "short"

    def test_no_temp_files_left(self, store: FileContentStore):
        d = decode("00103")
        store.write(d, ArtifactKind.ENTRY, "text")
        assert [p.name for p in (store.base_dir / "00103").iterdir()] == ["entry.txt"]

    def test_unicode_round_trip(self, store: FileContentStore):
        d = decode("00103")
        store.write(d, ArtifactKind.ENTRY, "café ☕ naïve")
        assert store.read(d, ArtifactKind.ENTRY) == "café ☕ naïve"

    def test_list_dates_sorted_and_filtered(self, store: FileContentStore):
        for code in ("01000", "00036", "00A12"):
            store.write(decode(code), ArtifactKind.ENTRY, code)
        (store.base_dir / "notes").mkdir()
        (store.base_dir / "00D00").mkdir()
        (store.base_dir / "status.txt").write_text("status")

        assert [str(d) for d in store.list_dates()] == ["00036", "00A12", "01000"]

    def test_list_dates_missing_base(self, tmp_path: Path):
        assert FileContentStore(tmp_path / "nowhere").list_dates() == []

    def test_ensure_directories(self, store: FileContentStore):
        store.ensure_directories()
        assert store.base_dir.is_dir()

    def test_write_failure_raises_store_unavailable(self, store: FileContentStore):
        with patch("cyclejournal.store.services._atomic_write", side_effect=OSError("disk full")):
            with pytest.raises(StoreUnavailable):
                store.write(decode("00000"), ArtifactKind.ENTRY, "text")

    def test_read_failure_raises_store_unavailable(self, store: FileContentStore):
        d = decode("00000")
        store.write(d, ArtifactKind.ENTRY, "text")
        with patch("pathlib.Path.read_text", side_effect=PermissionError("denied")):
            with pytest.raises(StoreUnavailable):
                store.read(d, ArtifactKind.ENTRY)


class TestDerivedQueries:
    """Tests for rollup and prompt-count queries."""

    def test_find_dates_needing_rollup(self, store: FileContentStore):
        done, half, fresh, no_entry = (decode(c) for c in ("00001", "00002", "00003", "00004"))
        for d in (done, half, fresh):
            store.write(d, ArtifactKind.ENTRY, "entry")
        store.write(done, ArtifactKind.SUMMARY, "s")
        store.write(done, ArtifactKind.STATUS, "st")
        store.write(half, ArtifactKind.SUMMARY, "s")
        store.write(no_entry, ArtifactKind.PROMPT, "p", index=1)

        assert store.find_dates_needing_rollup() == [half, fresh]

    def test_count_prompts_contiguous(self, store: FileContentStore):
        d = decode("00010")
        store.write(d, ArtifactKind.PROMPT, "p1", index=1)
        store.write(d, ArtifactKind.PROMPT, "p2", index=2)
        store.write(d, ArtifactKind.PROMPT, "p4", index=4)

        assert store.count_prompts(d, 5) == 2

    def test_count_prompts_respects_limit(self, store: FileContentStore):
        d = decode("00010")
        for n in range(1, 5):
            store.write(d, ArtifactKind.PROMPT, f"p{n}", index=n)
        assert store.count_prompts(d, 3) == 3

    def test_count_prompts_none(self, store: FileContentStore):
        assert store.count_prompts(decode("00010"), 3) == 0
