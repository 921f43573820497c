"""Library CLI commands: add, list, songs, sync and remove playlists.

Every command first restores the saved playlists with the silent permission
check, exactly as an application start would.
"""

import asyncio
import logging
from typing import Any, Optional

import click
from rich.console import Console
from sqlalchemy.exc import SQLAlchemyError

from ...config import Config, get_config
from ...core import (
    ArtworkStore,
    CapabilityStore,
    DirectoryScanner,
    LocalFilesystemPlatform,
    MetadataExtractor,
    PlaylistRegistry,
    SyncCoordinator,
)
from ...database import DatabaseService
from ...exceptions import LibraryError
from ...models import Playlist, SyncStatus
from ..display import display_error, display_playlists, display_songs

console = Console()
logger = logging.getLogger(__name__)


def confirm_access(root_path: str) -> bool:
    """Ask the user to allow reading a folder."""
    return click.confirm(f"Allow access to {root_path}?", default=True)


class LibraryApp:
    """Wires the library services together for one CLI invocation."""

    def __init__(self, config: Optional[Config] = None) -> None:
        """Initialize application.

        Args:
            config: Configuration, loaded from the environment if omitted
        """
        self.config = config or get_config()

        try:
            self.db_service: Optional[DatabaseService] = DatabaseService(
                self.config.database_path
            )
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Library database unavailable, nothing will be saved: %s", e)
            self.db_service = None

        self.store = CapabilityStore(self.db_service)
        self.registry = PlaylistRegistry(self.store)
        self.scanner = DirectoryScanner(
            MetadataExtractor(self.config.unknown_placeholder),
            ArtworkStore(self.config.artwork_dir),
            self.config.audio_extensions,
        )
        self.platform = LocalFilesystemPlatform(
            prompt=confirm_access, persist_grants=self.config.persist_grants
        )
        self.coordinator = SyncCoordinator(
            self.store, self.registry, self.scanner, self.platform
        )

    def close(self) -> None:
        """Release the database connection."""
        if self.db_service is not None:
            self.db_service.close()


def _get_playlist(app: LibraryApp, playlist_id: str) -> Playlist:
    playlist = app.registry.get(playlist_id)
    if playlist is None:
        raise click.ClickException(f"Unknown playlist: {playlist_id}")
    return playlist


@click.command("add")
@click.argument("path", required=False, type=click.Path(file_okay=False))
@click.pass_obj
def add_command(app: LibraryApp, path: Optional[str]) -> None:
    """Add a folder as a playlist.

    Without PATH the folder is asked for interactively; an empty answer
    cancels.
    """

    def choose() -> Optional[str]:
        if path:
            return path
        answer: str = click.prompt("Folder", default="", show_default=False)
        return answer.strip() or None

    async def run() -> Optional[Playlist]:
        await app.coordinator.restore()
        return await app.coordinator.select_directory(choose)

    try:
        playlist = asyncio.run(run())
    except LibraryError as e:
        display_error(e)
        raise SystemExit(1)

    if playlist is None:
        console.print("[yellow]Nothing added.[/yellow]")
        return

    console.print(
        f"[bold green]✅ {playlist.name}[/bold green]: {playlist.song_count} songs"
    )
    if not playlist.persisted:
        console.print("[yellow]Kept for this session only, add it again.[/yellow]")


@click.command("list")
@click.pass_obj
def list_command(app: LibraryApp) -> None:
    """List all playlists and their access state."""
    playlists = asyncio.run(app.coordinator.restore())
    permissions = {p.id: app.coordinator.permission_state(p.id) for p in playlists}
    display_playlists(playlists, permissions)


@click.command("songs")
@click.argument("playlist_id")
@click.option("--artist", help="Only show songs of this artist")
@click.pass_obj
def songs_command(app: LibraryApp, playlist_id: str, artist: Optional[str]) -> None:
    """Show the songs of a playlist, syncing it first if it is empty."""

    async def run() -> Playlist:
        await app.coordinator.restore()
        _get_playlist(app, playlist_id)
        return await app.coordinator.select_playlist(playlist_id)

    try:
        playlist = asyncio.run(run())
    except LibraryError as e:
        display_error(e)
        raise SystemExit(1)

    songs = app.registry.songs_by_artist(playlist.id, artist)
    display_songs(playlist, songs)


@click.command("sync")
@click.argument("playlist_id")
@click.pass_obj
def sync_command(app: LibraryApp, playlist_id: str) -> None:
    """Rescan a playlist folder, asking for access if needed."""

    async def run() -> Any:
        await app.coordinator.restore()
        return await app.coordinator.sync(playlist_id)

    try:
        result = asyncio.run(run())
    except LibraryError as e:
        display_error(e)
        raise SystemExit(1)

    if result.status == SyncStatus.NOTHING_TO_SYNC:
        console.print(f"[yellow]Nothing to sync for {playlist_id}.[/yellow]")
        return

    playlist = result.playlist
    if playlist is None:
        console.print("[yellow]A newer sync already updated this playlist.[/yellow]")
        return
    console.print(
        f"[bold green]✅ Synced {playlist.name}[/bold green]: "
        f"{playlist.song_count} songs"
    )


@click.command("remove")
@click.argument("playlist_id")
@click.pass_obj
def remove_command(app: LibraryApp, playlist_id: str) -> None:
    """Remove a playlist and forget its folder."""
    asyncio.run(app.coordinator.restore())
    playlist = _get_playlist(app, playlist_id)

    if app.coordinator.remove(playlist_id):
        console.print(f"[green]Removed {playlist.name}.[/green]")
    else:
        console.print(
            f"[yellow]Removed {playlist.name} for this session only, "
            "retry to forget it permanently.[/yellow]"
        )
