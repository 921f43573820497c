"""Directory capabilities: persistable, permission-gated access to one folder.

Core code only ever talks to :class:`DirectoryCapability` and treats tokens
as opaque strings. :class:`LocalFilesystemPlatform` is the local
implementation: a token is a path plus a persisted access grant.
"""

import asyncio
import base64
import binascii
import json
import logging
import mimetypes
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import AsyncIterator, BinaryIO, Callable, List, Optional

from pydantic import BaseModel, ValidationError

from ..exceptions import LibraryError, NotFoundError, UserCancelled
from ..models import FileEntry, PermissionState

logger = logging.getLogger(__name__)

PermissionPrompt = Callable[[str], bool]
DirectoryChooser = Callable[[], Optional[str]]


class DirectoryCapability(ABC):
    """Read access to the direct children of one directory."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name of the directory."""

    @property
    @abstractmethod
    def root_path(self) -> str:
        """Display/identity string of the directory."""

    @abstractmethod
    async def query_permission(self) -> PermissionState:
        """Get the current permission state without user interaction."""

    @abstractmethod
    async def request_permission(self) -> PermissionState:
        """Ask for access, prompting the user if needed."""

    @abstractmethod
    def entries(self) -> AsyncIterator[FileEntry]:
        """Iterate over the files directly inside the directory."""

    @abstractmethod
    async def open(self, source_ref: str) -> BinaryIO:
        """Open a file of this directory for binary reading."""

    async def read_bytes(self, entry: FileEntry) -> bytes:
        """Read the whole content of an entry."""
        handle = await self.open(entry.source_ref)
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, handle.read)
        finally:
            handle.close()


class _LocalToken(BaseModel):
    """Serialized form of a local capability."""

    v: int = 1
    path: str
    granted: bool = False


class LocalDirectoryCapability(DirectoryCapability):
    """Capability over a local directory path."""

    def __init__(
        self,
        path: Path,
        granted: bool = False,
        prompt: Optional[PermissionPrompt] = None,
    ) -> None:
        """Initialize local capability.

        Args:
            path: Directory the capability is scoped to
            granted: Whether the user already granted access
            prompt: Callable asking the user to allow access to a path
        """
        self.path = Path(path)
        self.granted = granted
        self._prompt = prompt

    @property
    def name(self) -> str:
        return self.path.name or str(self.path)

    @property
    def root_path(self) -> str:
        return str(self.path)

    def _readable(self) -> bool:
        return self.path.is_dir() and os.access(self.path, os.R_OK | os.X_OK)

    async def query_permission(self) -> PermissionState:
        loop = asyncio.get_running_loop()
        readable = await loop.run_in_executor(None, self._readable)
        if not readable:
            return PermissionState.DENIED
        return PermissionState.GRANTED if self.granted else PermissionState.PROMPT

    async def request_permission(self) -> PermissionState:
        state = await self.query_permission()
        if state != PermissionState.PROMPT:
            return state
        if self._prompt is None:
            logger.debug("No permission prompt available for %s", self.path)
            return PermissionState.DENIED

        loop = asyncio.get_running_loop()
        allowed = await loop.run_in_executor(None, self._prompt, str(self.path))
        if not allowed:
            logger.info("Access to %s was not allowed", self.path)
            return PermissionState.DENIED
        self.granted = True
        return PermissionState.GRANTED

    def _list_children(self) -> List[Path]:
        with os.scandir(self.path) as it:
            return [Path(entry.path) for entry in it]

    def _describe(self, child: Path) -> Optional[FileEntry]:
        try:
            # Follows symlinks: a link to a file is listed as that file
            if not child.is_file():
                return None
            stat = child.stat()
        except OSError as e:
            logger.debug("Cannot stat %s: %s", child, e)
            return None
        media_type, _ = mimetypes.guess_type(child.name)
        return FileEntry(
            name=child.name,
            media_type=media_type,
            last_modified_ms=int(stat.st_mtime * 1000),
            size=stat.st_size,
            source_ref=str(child),
        )

    async def entries(self) -> AsyncIterator[FileEntry]:
        loop = asyncio.get_running_loop()
        children = await loop.run_in_executor(None, self._list_children)
        for child in children:
            entry = await loop.run_in_executor(None, self._describe, child)
            if entry is not None:
                yield entry

    async def open(self, source_ref: str) -> BinaryIO:
        target = Path(source_ref)
        if target.parent != self.path:
            raise LibraryError(f"{source_ref} is outside of {self.path}")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, target.open, "rb")


class LocalFilesystemPlatform:
    """Creates, serializes and restores local directory capabilities."""

    def __init__(
        self,
        prompt: Optional[PermissionPrompt] = None,
        persist_grants: bool = True,
    ) -> None:
        """Initialize platform.

        Args:
            prompt: Callable used to ask for access on explicit syncs
            persist_grants: Whether a granted access survives a restart
        """
        self.prompt = prompt
        self.persist_grants = persist_grants

    async def pick_directory(
        self, chooser: DirectoryChooser
    ) -> LocalDirectoryCapability:
        """Run the directory picker and wrap its selection.

        Picking a directory is itself the user gesture granting access.

        Raises:
            UserCancelled: If the picker was dismissed
            NotFoundError: If the selection is not an existing directory
        """
        loop = asyncio.get_running_loop()
        selection = await loop.run_in_executor(None, chooser)
        if not selection:
            raise UserCancelled("No directory selected")

        path = Path(selection).expanduser().resolve()
        if not path.is_dir():
            raise NotFoundError(f"Not a directory: {path}")
        return LocalDirectoryCapability(path, granted=True, prompt=self.prompt)

    def serialize(self, capability: DirectoryCapability) -> str:
        """Turn a capability into an opaque token."""
        if not isinstance(capability, LocalDirectoryCapability):
            raise TypeError(f"Unsupported capability: {type(capability).__name__}")
        payload = _LocalToken(
            path=str(capability.path),
            granted=capability.granted and self.persist_grants,
        )
        return base64.urlsafe_b64encode(payload.model_dump_json().encode()).decode()

    def restore(self, token: str) -> LocalDirectoryCapability:
        """Rebuild a capability from a token produced by serialize().

        Raises:
            LibraryError: If the token is not a valid local token
        """
        try:
            raw = base64.urlsafe_b64decode(token.encode())
            payload = _LocalToken.model_validate(json.loads(raw))
        except (binascii.Error, ValueError, ValidationError) as e:
            raise LibraryError(f"Unreadable capability token: {e}")
        return LocalDirectoryCapability(
            Path(payload.path), granted=payload.granted, prompt=self.prompt
        )
