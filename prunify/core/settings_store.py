"""Persist and load user settings (JSON)."""
import json
import logging
from pathlib import Path
from typing import Optional

from prunify.config import DEFAULT_SKIP_OFFSET_SECONDS, SETTINGS_PATH
from prunify.models.state import UserSettings

logger = logging.getLogger(__name__)


def load_settings(path: Path = SETTINGS_PATH) -> UserSettings:
    """Load settings from disk; missing or unreadable file gives defaults."""
    if not path.exists():
        return UserSettings()
    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Could not read settings from %s: %s", path, e)
        return UserSettings()
    try:
        return UserSettings(
            default_playlist_id=str(data.get("default_playlist_id") or ""),
            default_playlist_name=str(data.get("default_playlist_name") or ""),
            skip_offset_seconds=int(data.get("skip_offset_seconds", DEFAULT_SKIP_OFFSET_SECONDS)),
        )
    except (TypeError, ValueError, AttributeError):
        return UserSettings()


def save_settings(settings: UserSettings, path: Path = SETTINGS_PATH) -> None:
    """Save settings to disk."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {
        "default_playlist_id": settings.default_playlist_id,
        "default_playlist_name": settings.default_playlist_name,
        "skip_offset_seconds": settings.skip_offset_seconds,
    }
    path.write_text(json.dumps(data, indent=2))


def update_settings(
    settings: UserSettings,
    *,
    default_playlist_id: Optional[str] = None,
    default_playlist_name: Optional[str] = None,
    skip_offset_seconds: Optional[int] = None,
    path: Path = SETTINGS_PATH,
) -> UserSettings:
    """Apply the given fields in place and save. Returns the same object."""
    if default_playlist_id is not None:
        settings.default_playlist_id = default_playlist_id
    if default_playlist_name is not None:
        settings.default_playlist_name = default_playlist_name
    if skip_offset_seconds is not None:
        settings.skip_offset_seconds = skip_offset_seconds
    save_settings(settings, path)
    return settings
