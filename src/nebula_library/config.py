"""Configuration management for the nebula library."""

import os
from pathlib import Path

try:
    from dotenv import load_dotenv

    # Load .env file from config directory or project root
    config_env = Path(__file__).parent.parent.parent / "config" / ".env"
    if config_env.exists():
        load_dotenv(config_env)
    else:
        load_dotenv()
except ImportError:
    # python-dotenv not available, skip loading
    pass


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        base_dir = Path.home() / ".nebula-library"

        # Database settings
        self.database_path = Path(
            os.getenv("NEBULA_LIBRARY_DATABASE_PATH", str(base_dir / "library.db"))
        )

        # Extracted cover art
        self.artwork_dir = Path(
            os.getenv("NEBULA_LIBRARY_ARTWORK_DIR", str(base_dir / "artwork"))
        )

        # Scanning settings
        self.audio_extensions = (".mp3", ".flac", ".wav")
        self.unknown_placeholder = os.getenv(
            "NEBULA_LIBRARY_UNKNOWN_PLACEHOLDER", "Unknown"
        )

        # Whether granted folder access survives a restart
        self.persist_grants = _env_flag("NEBULA_LIBRARY_PERSIST_GRANTS", True)

        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """Ensure required directories exist."""
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self.artwork_dir.mkdir(parents=True, exist_ok=True)


def get_config() -> Config:
    """Get application configuration."""
    return Config()
