"""Now-playing state, playlist commands, and playlists."""
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from prunify.api.state import get_controller
from prunify.core.session import CommandResult, SessionController

router = APIRouter()


class AddToPlaylistBody(BaseModel):
    playlist_id: str
    remove_from_current: bool = False


class MoveToPlaylistBody(BaseModel):
    playlist_id: str


def _result(result: CommandResult) -> dict:
    return {"ok": result.ok, "error": result.message}


@router.get("")
def get_playback(controller: SessionController = Depends(get_controller)):
    """Return the published state (track, playlist context, playlists, errors)."""
    return controller.state.to_dict()


@router.post("/remove-and-skip")
async def remove_and_skip(controller: SessionController = Depends(get_controller)):
    return _result(await controller.remove_and_skip())


@router.post("/add")
async def add_to_playlist(body: AddToPlaylistBody, controller: SessionController = Depends(get_controller)):
    """Add the current track to a playlist; optionally move it out of the current one."""
    return _result(await controller.add_to_playlist(body.playlist_id, body.remove_from_current))


@router.post("/move")
async def move_to_playlist(body: MoveToPlaylistBody, controller: SessionController = Depends(get_controller)):
    return _result(await controller.move_to_playlist(body.playlist_id))


@router.post("/add-to-default")
async def add_to_default_playlist(controller: SessionController = Depends(get_controller)):
    return _result(await controller.add_to_default_playlist())


@router.post("/skip")
async def skip(controller: SessionController = Depends(get_controller)):
    return _result(await controller.skip_to_next())


@router.get("/playlists")
def get_playlists(controller: SessionController = Depends(get_controller)):
    state = controller.state
    return {
        "playlists": [{"id": p.id, "uri": p.uri, "name": p.name} for p in state.playlists],
        "is_loading": state.is_loading,
    }


@router.post("/playlists/refresh")
async def refresh_playlists(controller: SessionController = Depends(get_controller)):
    return _result(await controller.refresh_playlists())
