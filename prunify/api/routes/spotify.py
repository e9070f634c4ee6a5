"""Spotify OAuth (PKCE): auth URL, callback, and logout."""
import html

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from prunify.api.state import get_controller
from prunify.config import SPOTIFY_CLIENT_ID
from prunify.core.session import SessionController

router = APIRouter()


@router.get("/auth-url")
def get_auth_url(controller: SessionController = Depends(get_controller)):
    """Start a login and return the authorization URL plus whether we are logged in."""
    logged_in = controller.state.authorized
    if not SPOTIFY_CLIENT_ID:
        return {"auth_url": None, "error": "SPOTIFY_CLIENT_ID not set", "logged_in": logged_in}
    return {"auth_url": controller.begin_authorization(), "logged_in": logged_in}


@router.get("/callback")
async def spotify_callback(request: Request, controller: SessionController = Depends(get_controller)):
    """Validate state, exchange the code for tokens, and store them."""
    result = await controller.handle_callback(str(request.url))
    if not result.ok:
        reason = html.escape(result.message or "")
        return HTMLResponse(
            f"<body><p>Failed to link Spotify: {reason}. Try logging in again.</p></body>",
            status_code=400,
        )
    return HTMLResponse(
        "<body><p>Spotify linked successfully. You can close this window.</p></body>"
    )


@router.post("/logout")
def logout(controller: SessionController = Depends(get_controller)):
    """Clear the stored session so the user is logged out."""
    controller.sign_out()
    return {"ok": True}
