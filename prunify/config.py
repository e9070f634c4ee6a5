"""Configuration: env, Spotify credentials, polling and storage settings."""
import os
from pathlib import Path

from dotenv import load_dotenv

# Base paths (project root = parent of prunify package)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from project root so SPOTIFY_CLIENT_ID etc. are set
load_dotenv(BASE_DIR / ".env")

DATA_DIR = BASE_DIR / "data"
SETTINGS_PATH = DATA_DIR / "settings.json"

# API
API_HOST = os.getenv("PRUNIFY_API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("PRUNIFY_API_PORT", "8000"))

# Spotify (PKCE; no client secret needed)
SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID", "")
SPOTIFY_REDIRECT_URI = os.getenv(
    "SPOTIFY_REDIRECT_URI", "http://127.0.0.1:8000/api/spotify/callback"
)
SPOTIFY_SCOPES = (
    "user-read-currently-playing user-read-playback-state user-modify-playback-state "
    "playlist-read-private playlist-modify-private playlist-modify-public"
)
SPOTIFY_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_PLAYLIST_PREFIX = "spotify:playlist:"

# Credential storage: "keyring" (OS secret store) or "file" (headless hosts)
CREDENTIAL_BACKEND = os.getenv("PRUNIFY_CREDENTIAL_BACKEND", "keyring").lower()
KEYRING_SERVICE = os.getenv("PRUNIFY_KEYRING_SERVICE", "com.prunify.spotify")
KEYRING_ACCOUNT = "spotifyAuthData"
CREDENTIAL_FILE = Path(os.getenv("PRUNIFY_CREDENTIAL_FILE", str(DATA_DIR / ".spotify-auth")))

# Now-playing polling
POLL_INTERVAL_SEC = float(os.getenv("PRUNIFY_POLL_INTERVAL_SEC", "5.0"))
PLAYLIST_PAGE_SIZE = 50  # Spotify API max page size for playlists.

# Commands
DEFAULT_SKIP_OFFSET_SECONDS = 30
REMOVE_SETTLE_SEC = 0.3
REFRESH_SETTLE_SEC = 0.5

# Tokens
TOKEN_EXPIRY_LEEWAY_SEC = 60
PENDING_AUTH_TTL_SEC = 600

# Remote client
REQUESTS_TIMEOUT_SEC = 10

LOG_LEVEL = os.getenv("PRUNIFY_LOG_LEVEL", "INFO").upper()


def ensure_data_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
