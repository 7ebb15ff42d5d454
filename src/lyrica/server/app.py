"""
HTTP API for browser clients (aiohttp.web).

Routes:
- GET /auth/login            -> {"url"}: Spotify authorization URL
- GET /callback?code=        -> redirect to the client with tokens or error=auth_failed
- GET /auth/refresh          -> {"access_token", "expires_in"}
- GET /api/current-track     -> {"isPlaying", "track"?}; 401/403 when the token is refused
- GET /api/lyrics            -> {"lyrics", "synced", "duration"?}; 400/404/500
- GET /api                   -> service banner

In production mode the built client is served from `static_dir`, with
`index.html` as the fallback for unknown paths.
"""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from aiohttp import web

from ..core.config import LyricaSettings, get_settings
from ..core.errors import AuthError, FetchError, LyricaError, SessionExpiredError
from ..plugins.lyrics import LrclibPlugin
from ..plugins.spotify import SpotifyPlugin

logger = logging.getLogger(__name__)

SETTINGS_KEY = web.AppKey("settings", LyricaSettings)
SPOTIFY_KEY = web.AppKey("spotify", SpotifyPlugin)
LRCLIB_KEY = web.AppKey("lrclib", LrclibPlugin)

routes = web.RouteTableDef()


def _error(message: str, status: int) -> web.Response:
    return web.json_response({"error": message}, status=status)


@web.middleware
async def cors_middleware(request: web.Request, handler):
    """Allow any origin, as the dev client runs on its own port."""
    cors_headers = {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
    }
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=cors_headers)
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers.update(cors_headers)
        raise
    response.headers.update(cors_headers)
    return response


# ---------------- auth ----------------


@routes.get("/auth/login")
async def auth_login(request: web.Request) -> web.Response:
    spotify = request.app[SPOTIFY_KEY]
    try:
        url = spotify.authorize_url()
    except LyricaError as e:
        logger.error("Cannot build authorization URL: %s", e)
        return _error(str(e), 500)
    return web.json_response({"url": url})


@routes.get("/callback")
async def auth_callback(request: web.Request) -> web.Response:
    settings = request.app[SETTINGS_KEY]
    client_url = settings.resolved_client_url()
    code = request.query.get("code")

    if request.query.get("error") or not code:
        logger.warning("Authorization denied or missing code: %s", request.query.get("error"))
        raise web.HTTPFound(f"{client_url}?{urlencode({'error': 'auth_failed'})}")

    try:
        grant = await request.app[SPOTIFY_KEY].exchange_code(code)
    except AuthError as e:
        logger.error("Error getting tokens: %s", e)
        raise web.HTTPFound(f"{client_url}?{urlencode({'error': 'auth_failed'})}")

    params = {
        "access_token": grant.access_token,
        "refresh_token": grant.refresh_token or "",
        "expires_in": grant.expires_in,
    }
    raise web.HTTPFound(f"{client_url}?{urlencode(params)}")


@routes.get("/auth/refresh")
async def auth_refresh(request: web.Request) -> web.Response:
    refresh_token = request.query.get("refresh_token")
    if not refresh_token:
        return _error("refresh_token required", 400)
    try:
        grant = await request.app[SPOTIFY_KEY].refresh_access_token(refresh_token)
    except AuthError as e:
        logger.warning("Token refresh failed: %s", e)
        return _error("Token refresh failed", 401)
    return web.json_response({"access_token": grant.access_token, "expires_in": grant.expires_in})


# ---------------- api ----------------


@routes.get("/api/current-track")
async def current_track(request: web.Request) -> web.Response:
    access_token = request.query.get("access_token")
    if not access_token:
        return _error("No access token provided", 401)

    try:
        state = await request.app[SPOTIFY_KEY].current_playback(access_token)
    except SessionExpiredError as e:
        return _error("Access token expired or invalid", e.status)
    except FetchError as e:
        logger.error("Error fetching current track: %s", e)
        return _error("Failed to fetch current track", 500)
    return web.json_response(state.to_api())


@routes.get("/api/lyrics")
async def lyrics(request: web.Request) -> web.Response:
    track = request.query.get("track")
    artist = request.query.get("artist")
    if not track or not artist:
        return _error("Track and artist required", 400)

    try:
        payload = await request.app[LRCLIB_KEY].get_lyrics(track, artist)
    except FetchError as e:
        logger.error("Error fetching lyrics: %s", e)
        return _error("Failed to fetch lyrics", 500)
    if payload is None:
        return _error("Lyrics not found", 404)
    return web.json_response(payload.to_api())


@routes.get("/api")
async def api_info(request: web.Request) -> web.Response:
    return web.json_response({"message": "Lyrica Spotify Lyrics API"})


# ---------------- static client ----------------


def _spa_handler(static_dir: Path):
    root = static_dir.resolve()
    index = root / "index.html"

    async def handler(request: web.Request) -> web.StreamResponse:
        tail = request.match_info.get("tail", "")
        candidate = (root / tail).resolve()
        if tail and candidate.is_file() and candidate.is_relative_to(root):
            return web.FileResponse(candidate)
        if index.is_file():
            return web.FileResponse(index)
        raise web.HTTPNotFound()

    return handler


# ---------------- app factory ----------------


def create_app(
    settings: Optional[LyricaSettings] = None,
    *,
    spotify: Optional[SpotifyPlugin] = None,
    lrclib: Optional[LrclibPlugin] = None,
) -> web.Application:
    """Build the aiohttp application. Plugins are entered on startup."""
    settings = settings or get_settings()
    app = web.Application(middlewares=[cors_middleware])
    app[SETTINGS_KEY] = settings
    app[SPOTIFY_KEY] = spotify or SpotifyPlugin(settings)
    app[LRCLIB_KEY] = lrclib or LrclibPlugin(settings)

    async def plugins_ctx(app: web.Application):
        async with AsyncExitStack() as stack:
            await stack.enter_async_context(app[SPOTIFY_KEY])
            await stack.enter_async_context(app[LRCLIB_KEY])
            yield

    app.cleanup_ctx.append(plugins_ctx)
    app.add_routes(routes)

    if settings.production and settings.static_dir:
        app.router.add_get("/{tail:.*}", _spa_handler(Path(settings.static_dir)))
    return app


def run_server(settings: Optional[LyricaSettings] = None) -> None:
    settings = settings or get_settings()
    app = create_app(settings)
    logger.info("Lyrica server running on http://%s:%d", settings.host, settings.port)
    logger.info("Environment: %s", "production" if settings.production else "development")
    logger.info("Client URL: %s", settings.resolved_client_url())
    web.run_app(app, host=settings.host, port=settings.port, print=None)
