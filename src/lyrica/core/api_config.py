# src/lyrica/core/api_config.py

# Spotify accounts service (OAuth authorization-code flow)
SPOTIFY_ACCOUNTS_URL = "https://accounts.spotify.com"
SPOTIFY_AUTHORIZE_URL = f"{SPOTIFY_ACCOUNTS_URL}/authorize"
SPOTIFY_TOKEN_URL = f"{SPOTIFY_ACCOUNTS_URL}/api/token"

# Spotify Web API
SPOTIFY_API_URL = "https://api.spotify.com/v1"
SPOTIFY_PLAYER_URL = f"{SPOTIFY_API_URL}/me/player"

SPOTIFY_SCOPES = ["user-read-playback-state", "user-read-currently-playing"]

# LRCLIB lyrics lookup (free, no API key); path is relative to the configured base URL
LRCLIB_GET_PATH = "/api/get"
