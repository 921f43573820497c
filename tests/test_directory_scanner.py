"""Tests for DirectoryScanner."""

import asyncio
from pathlib import Path

import pytest

from nebula_library.core import LocalDirectoryCapability
from nebula_library.models import FileEntry

from .conftest import PNG_BYTES, FakeCapability, make_chill_mix, make_wav, tag_wav


def scan(scanner, capability):
    return asyncio.run(scanner.scan(capability))


class TestAudioEligibility:
    """Test which entries become songs."""

    @pytest.mark.parametrize("name", ["a.mp3", "b.flac", "c.wav", "LOUD.MP3"])
    def test_allowlisted_extensions(self, scanner, name: str):
        """Test allowlisted extensions are audio regardless of media type."""
        entry = FileEntry(name=name, last_modified_ms=0, source_ref=name)
        assert scanner.is_audio(entry)

    def test_audio_media_type(self, scanner):
        """Test any audio/* media type is eligible."""
        entry = FileEntry(
            name="track.ogg",
            media_type="audio/ogg",
            last_modified_ms=0,
            source_ref="track.ogg",
        )
        assert scanner.is_audio(entry)

    @pytest.mark.parametrize(
        "name,media_type",
        [("notes.txt", "text/plain"), ("cover.jpg", "image/jpeg"), ("README", None)],
    )
    def test_non_audio(self, scanner, name: str, media_type):
        """Test other entries are skipped."""
        entry = FileEntry(
            name=name, media_type=media_type, last_modified_ms=0, source_ref=name
        )
        assert not scanner.is_audio(entry)


class TestScan:
    """Test scanning directories."""

    def test_chill_mix_directory(self, scanner, tmp_path: Path):
        """Test a directory with tagged, corrupt and non-audio files."""
        folder = make_chill_mix(tmp_path)

        songs = scan(scanner, LocalDirectoryCapability(folder, granted=True))

        assert [(s.title, s.artist) for s in songs] == [
            ("b", "Unknown"),
            ("Sunset", "Nova"),
        ]
        assert all(not s.source_ref.endswith("notes.txt") for s in songs)

    def test_counts_only_eligible_entries(self, scanner):
        """Test N audio and M other entries yield exactly N songs."""
        files = {f"song{i}.mp3": b"x" for i in range(4)}
        files.update({f"doc{i}.txt": b"x" for i in range(3)})

        songs = scan(scanner, FakeCapability("/music/Mixed", files))

        assert len(songs) == 4
        stats = scanner.get_scan_statistics()
        assert stats["entries_seen"] == 7
        assert stats["eligible"] == 4
        assert stats["skipped"] == 3
        assert stats["parse_failures"] == 4

    def test_sorted_case_insensitively(self, scanner):
        """Test titles sort ignoring case."""
        files = {"beta.mp3": b"x", "Alpha.mp3": b"x", "charlie.mp3": b"x"}

        songs = scan(scanner, FakeCapability("/music/Sorted", files))

        assert [s.title for s in songs] == ["Alpha", "beta", "charlie"]

    def test_accented_titles_sort_with_base_letter(self, scanner):
        """Test accented titles sort next to their unaccented letter."""
        files = {"zebra.mp3": b"x", "Émile.mp3": b"x", "apple.mp3": b"x"}

        songs = scan(scanner, FakeCapability("/music/Accents", files))

        assert [s.title for s in songs] == ["apple", "Émile", "zebra"]

    def test_same_title_ordered_by_id(self, scanner):
        """Test songs with equal titles keep a stable order."""
        files = {"Intro.mp3": b"x", "Intro.flac": b"x", "Intro.wav": b"x"}

        songs = scan(scanner, FakeCapability("/music/Ties", files))

        assert [s.id for s in songs] == sorted(s.id for s in songs)

    def test_rescan_is_idempotent(self, scanner, tmp_path: Path):
        """Test two scans of an unmodified directory give identical ids."""
        folder = make_chill_mix(tmp_path)
        make_wav(folder / "c.wav")
        capability = LocalDirectoryCapability(folder, granted=True)

        first = scan(scanner, capability)
        second = scan(scanner, capability)

        assert [s.id for s in first] == [s.id for s in second]

    def test_song_id_is_name_and_mtime(self, scanner):
        """Test song identity is filename plus modification time."""
        songs = scan(scanner, FakeCapability("/music/Ids", {"a.mp3": b"x"}))

        assert songs[0].id == "a.mp3-1700000000000"

    def test_non_recursive(self, scanner, tmp_path: Path):
        """Test files in subdirectories are not scanned."""
        folder = tmp_path / "Top"
        (folder / "nested").mkdir(parents=True)
        make_wav(folder / "top.wav")
        make_wav(folder / "nested" / "deep.wav")

        songs = scan(scanner, LocalDirectoryCapability(folder, granted=True))

        assert [s.title for s in songs] == ["top"]

    def test_artwork_becomes_cover_ref(self, scanner, tmp_path: Path):
        """Test embedded pictures are materialized as cover references."""
        folder = tmp_path / "Covers"
        folder.mkdir()
        tag_wav(make_wav(folder / "a.wav"), title="With Cover", picture=PNG_BYTES)

        songs = scan(scanner, LocalDirectoryCapability(folder, granted=True))

        assert songs[0].cover_ref is not None
        assert Path(songs[0].cover_ref).read_bytes() == PNG_BYTES
        assert scanner.get_scan_statistics()["artwork_extracted"] == 1

    def test_unreadable_file_is_skipped(self, scanner):
        """Test a file vanishing after listing does not abort the scan."""

        class VanishingCapability(FakeCapability):
            async def open(self, source_ref: str):
                if source_ref.endswith("gone.mp3"):
                    raise FileNotFoundError(source_ref)
                return await super().open(source_ref)

        capability = VanishingCapability(
            "/music/Vanish", {"gone.mp3": b"x", "kept.mp3": b"x"}
        )

        songs = scan(scanner, capability)

        assert [s.title for s in songs] == ["kept"]
        errors = scanner.get_scan_statistics()["errors"]
        assert any("gone.mp3" in error for error in errors)

    def test_empty_directory(self, scanner, tmp_path: Path):
        """Test an empty directory yields no songs."""
        songs = scan(scanner, LocalDirectoryCapability(tmp_path, granted=True))
        assert songs == []


class TestScanStatistics:
    """Test statistics reporting."""

    def test_overlapping_scans_keep_separate_counts(self, scanner):
        """Test a scan finishing last reports only its own entries."""
        slow = FakeCapability("/music/Slow", {f"s{i}.mp3": b"x" for i in range(3)})
        fast = FakeCapability("/music/Fast", {"f.mp3": b"x", "f.txt": b"x"})

        async def overlap():
            gate = asyncio.Event()
            slow.gates.append(gate)
            slow_scan = asyncio.create_task(scanner.scan(slow))
            await asyncio.sleep(0)

            await scanner.scan(fast)
            fast_stats = scanner.get_scan_statistics()

            gate.set()
            await slow_scan
            return fast_stats, scanner.get_scan_statistics()

        fast_stats, slow_stats = asyncio.run(overlap())

        assert fast_stats["entries_seen"] == 2
        assert fast_stats["eligible"] == 1
        assert slow_stats["entries_seen"] == 3
        assert slow_stats["eligible"] == 3
        assert slow_stats["skipped"] == 0

    def test_statistics_before_any_scan(self, scanner):
        """Test a fresh scanner reports zero counts."""
        stats = scanner.get_scan_statistics()

        assert stats["entries_seen"] == 0
        assert stats["error_count"] == 0
