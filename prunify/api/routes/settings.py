"""User settings: default playlist and skip offset."""
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from prunify.api.state import get_controller
from prunify.config import SETTINGS_PATH
from prunify.core.session import SessionController
from prunify.core.settings_store import update_settings

router = APIRouter()


class SettingsUpdateBody(BaseModel):
    default_playlist_id: Optional[str] = None
    default_playlist_name: Optional[str] = None
    skip_offset_seconds: Optional[int] = None


def get_settings_path() -> Path:
    return SETTINGS_PATH


def _settings_dict(controller: SessionController) -> dict:
    s = controller.settings
    return {
        "default_playlist_id": s.default_playlist_id,
        "default_playlist_name": s.default_playlist_name,
        "skip_offset_seconds": s.skip_offset_seconds,
    }


@router.get("")
def get_settings(controller: SessionController = Depends(get_controller)):
    return _settings_dict(controller)


@router.put("")
def put_settings(
    body: SettingsUpdateBody,
    controller: SessionController = Depends(get_controller),
    path: Path = Depends(get_settings_path),
):
    """Update any subset of settings; 0 skip offset means the default."""
    if body.skip_offset_seconds is not None and body.skip_offset_seconds < 0:
        raise HTTPException(status_code=400, detail="skip_offset_seconds must be >= 0")
    update_settings(
        controller.settings,
        default_playlist_id=body.default_playlist_id,
        default_playlist_name=body.default_playlist_name,
        skip_offset_seconds=body.skip_offset_seconds,
        path=path,
    )
    return _settings_dict(controller)
