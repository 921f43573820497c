"""Shared fixtures and test doubles."""

import io
import mimetypes
import struct
import wave
from pathlib import Path, PurePath
from typing import AsyncIterator, BinaryIO, Dict, List, Optional

import pytest
from mutagen.flac import FLAC, Picture
from mutagen.id3 import APIC, ID3, TALB, TIT2, TPE1
from mutagen.wave import WAVE

from nebula_library.core import (
    CapabilityStore,
    DirectoryCapability,
    DirectoryScanner,
    MetadataExtractor,
    PlaylistRegistry,
    SyncCoordinator,
)
from nebula_library.core.metadata import ArtworkStore
from nebula_library.database import DatabaseService
from nebula_library.exceptions import UserCancelled
from nebula_library.models import FileEntry, PermissionState

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def make_wav(path: Path, seconds: float = 1.0, rate: int = 8000) -> Path:
    """Write a silent mono WAV file."""
    with wave.open(str(path), "wb") as out:
        out.setnchannels(1)
        out.setsampwidth(2)
        out.setframerate(rate)
        out.writeframes(b"\x00\x00" * int(rate * seconds))
    return path


def tag_wav(
    path: Path,
    title: Optional[str] = None,
    artist: Optional[str] = None,
    album: Optional[str] = None,
    picture: Optional[bytes] = None,
) -> Path:
    """Add ID3 tags (and optionally a cover) to a WAV file."""
    audio = WAVE(str(path))
    audio.add_tags()
    if title:
        audio.tags.add(TIT2(encoding=3, text=[title]))
    if artist:
        audio.tags.add(TPE1(encoding=3, text=[artist]))
    if album:
        audio.tags.add(TALB(encoding=3, text=[album]))
    if picture:
        audio.tags.add(
            APIC(encoding=3, mime="image/png", type=3, desc="Cover", data=picture)
        )
    audio.save()
    return path


def make_flac(
    path: Path,
    title: Optional[str] = None,
    artist: Optional[str] = None,
    album: Optional[str] = None,
    picture: Optional[bytes] = None,
    seconds: int = 1,
    rate: int = 44100,
) -> Path:
    """Write a FLAC header with Vorbis comments and an optional cover."""
    # STREAMINFO: block sizes, frame sizes, then rate/channels/bps/samples
    packed = (rate << 44) | (1 << 41) | (15 << 36) | (rate * seconds)
    streaminfo = struct.pack(">HH", 4096, 4096) + b"\x00" * 6
    streaminfo += struct.pack(">Q", packed) + b"\x00" * 16
    path.write_bytes(b"fLaC" + b"\x80\x00\x00\x22" + streaminfo)

    audio = FLAC(str(path))
    audio.add_tags()
    for key, value in (("title", title), ("artist", artist), ("album", album)):
        if value:
            audio[key] = value
    if picture:
        cover = Picture()
        cover.type = 3
        cover.mime = "image/png"
        cover.data = picture
        audio.add_picture(cover)
    audio.save()
    return path


def make_mp3(
    path: Path,
    title: Optional[str] = None,
    artist: Optional[str] = None,
    picture: Optional[bytes] = None,
    frames: int = 40,
) -> Path:
    """Write silent MPEG-1 Layer III frames behind an ID3 tag."""
    # 128 kbit/s, 44.1 kHz, mono: 417 bytes per frame
    frame = b"\xff\xfb\x90\xc4" + b"\x00" * 413
    path.write_bytes(frame * frames)

    tags = ID3()
    if title:
        tags.add(TIT2(encoding=3, text=[title]))
    if artist:
        tags.add(TPE1(encoding=3, text=[artist]))
    if picture:
        tags.add(
            APIC(encoding=3, mime="image/png", type=3, desc="Cover", data=picture)
        )
    tags.save(str(path))
    return path


def make_chill_mix(root: Path) -> Path:
    """Create ChillMix/ with one tagged, one corrupt and one non-audio file."""
    folder = root / "ChillMix"
    folder.mkdir()
    tag_wav(make_wav(folder / "a.wav"), title="Sunset", artist="Nova")
    (folder / "b.flac").write_bytes(b"this is not a flac stream")
    (folder / "notes.txt").write_text("not music")
    return folder


class FakeCapability(DirectoryCapability):
    """In-memory directory with scripted permission answers."""

    def __init__(
        self,
        root_path: str,
        files: Optional[Dict[str, bytes]] = None,
        query_state: PermissionState = PermissionState.GRANTED,
        request_state: PermissionState = PermissionState.GRANTED,
    ) -> None:
        self._root_path = root_path
        self.files = dict(files or {})
        self.query_state = query_state
        self.request_state = request_state
        self.gates: List = []
        self.requests = 0
        self.listing_error: Optional[OSError] = None

    @property
    def name(self) -> str:
        return PurePath(self._root_path).name

    @property
    def root_path(self) -> str:
        return self._root_path

    async def query_permission(self) -> PermissionState:
        return self.query_state

    async def request_permission(self) -> PermissionState:
        self.requests += 1
        return self.request_state

    async def entries(self) -> AsyncIterator[FileEntry]:
        if self.listing_error is not None:
            raise self.listing_error
        snapshot = dict(self.files)
        gate = self.gates.pop(0) if self.gates else None
        if gate is not None:
            await gate.wait()
        for name, data in snapshot.items():
            yield FileEntry(
                name=name,
                media_type=mimetypes.guess_type(name)[0],
                last_modified_ms=1_700_000_000_000,
                size=len(data),
                source_ref=f"{self._root_path}/{name}",
            )

    async def open(self, source_ref: str) -> BinaryIO:
        name = PurePath(source_ref).name
        if name not in self.files:
            raise FileNotFoundError(source_ref)
        return io.BytesIO(self.files[name])


class FakePlatform:
    """Platform handing out FakeCapability objects by root path."""

    def __init__(self, *capabilities: FakeCapability) -> None:
        self.capabilities = {cap.root_path: cap for cap in capabilities}

    async def pick_directory(self, chooser) -> FakeCapability:
        selection = chooser()
        if not selection:
            raise UserCancelled("No directory selected")
        return self.capabilities[selection]

    def serialize(self, capability: FakeCapability) -> str:
        return f"fake:{capability.root_path}"

    def restore(self, token: str) -> FakeCapability:
        return self.capabilities[token[len("fake:"):]]


@pytest.fixture
def db_service(tmp_path):
    """Create a DatabaseService with a temporary database."""
    service = DatabaseService(tmp_path / "library.db")
    yield service
    service.close()


@pytest.fixture
def store(db_service):
    """Create a CapabilityStore backed by the temporary database."""
    return CapabilityStore(db_service)


@pytest.fixture
def scanner(tmp_path):
    """Create a DirectoryScanner with artwork stored under tmp_path."""
    return DirectoryScanner(MetadataExtractor(), ArtworkStore(tmp_path / "artwork"))


@pytest.fixture
def make_coordinator(scanner):
    """Build a coordinator (and its registry) around a store and platform."""

    def _make(store, platform):
        registry = PlaylistRegistry(store)
        return SyncCoordinator(store, registry, scanner, platform)

    return _make
