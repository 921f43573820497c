"""Display formatters and UI helpers for CLI."""

import logging
from typing import Dict, List, Optional

from rich.console import Console
from rich.table import Table

from ...exceptions import LibraryError
from ...models import PermissionState, Playlist, Song

console = Console()
logger = logging.getLogger(__name__)

_PERMISSION_STYLES = {
    PermissionState.GRANTED: "[green]granted[/green]",
    PermissionState.PROMPT: "[yellow]needs sync[/yellow]",
    PermissionState.DENIED: "[red]denied[/red]",
    PermissionState.UNCHECKED: "[dim]unchecked[/dim]",
}


def display_playlists(
    playlists: List[Playlist],
    permissions: Dict[str, PermissionState],
    active_id: Optional[str] = None,
) -> None:
    """Display the playlists of the library.

    Args:
        playlists: Playlists to list
        permissions: Permission state per playlist ID
        active_id: ID of the active playlist, highlighted if present
    """
    if not playlists:
        console.print("[yellow]No playlists yet. Add a folder first.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Folder")
    table.add_column("Songs", justify="right")
    table.add_column("Access")
    table.add_column("Saved", justify="center")

    for playlist in playlists:
        name = playlist.name
        if playlist.id == active_id:
            name = f"▶ {name}"
        state = permissions.get(playlist.id, PermissionState.UNCHECKED)
        table.add_row(
            playlist.id,
            name,
            playlist.root_path,
            str(playlist.song_count),
            _PERMISSION_STYLES[state],
            "✅" if playlist.persisted else "[yellow]session[/yellow]",
        )

    console.print(table)


def display_songs(playlist: Playlist, songs: List[Song]) -> None:
    """Display the songs of a playlist.

    Args:
        playlist: Playlist the songs belong to
        songs: Songs to show, in display order
    """
    console.print(
        f"\n[bold green]{playlist.name}[/bold green] "
        f"[dim]({len(songs)} songs, {playlist.root_path})[/dim]"
    )
    if not songs:
        console.print("[yellow]No songs. Run 'sync' to scan the folder.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Artist", style="cyan")
    table.add_column("Album")
    table.add_column("Time", justify="right")

    for index, song in enumerate(songs, start=1):
        table.add_row(
            str(index), song.title, song.artist, song.album, song.duration_formatted
        )

    console.print(table)


def display_error(error: LibraryError) -> None:
    """Display a library error with its actionable hint."""
    console.print(f"[bold red]❌ {error}[/bold red]")
    if error.hint:
        console.print(f"[yellow]→ {error.hint}[/yellow]")
