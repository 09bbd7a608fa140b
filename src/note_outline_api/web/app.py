from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from aiohttp import web

from note_outline_api.config import SERPAPI_KEY_ENV_VAR, Settings
from note_outline_api.errors import ConfigurationError, OutlineApiError, QueryRequiredError, UnauthorizedError, internal_error_payload
from note_outline_api.models.outline import OutlineRequest
from note_outline_api.servers.outline import OutlineServer
from note_outline_api.utils.logging import BASE_LOGGER
from note_outline_api.web.auth import is_authorized

logger = BASE_LOGGER.getChild(__name__)

SETTINGS_KEY = web.AppKey("settings", Settings)
OUTLINE_SERVER_KEY = web.AppKey("outline_server", OutlineServer)

READY_MESSAGE = "OK: note-outline-api is running"

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Render every failure as a JSON error body. Unexpected exceptions become a 500."""
    try:
        return await handler(request)
    except web.HTTPException as e:
        if e.status < 400:
            raise
        return web.json_response({"error": e.reason}, status=e.status)
    except OutlineApiError as e:
        return web.json_response(e.to_payload(), status=e.status)
    except Exception as e:
        logger.exception(f"Unhandled error serving {request.method} {request.path}")
        return web.json_response(internal_error_payload(e), status=500)


async def index(_request: web.Request) -> web.Response:
    return web.Response(text=READY_MESSAGE)


async def health(_request: web.Request) -> web.Response:
    return web.json_response({"ok": True})


async def _read_json_body(request: web.Request) -> dict[str, Any]:
    if not request.can_read_body:
        return {}

    try:
        body = await request.json()
    except ValueError:
        return {}

    return body if isinstance(body, dict) else {}


async def note_top_outline_get(request: web.Request) -> web.Response:
    outline_request = OutlineRequest.from_raw(query=request.query.get("q"), num=request.query.get("num"))
    return await handle_note_top_outline(request, outline_request)


async def note_top_outline_post(request: web.Request) -> web.Response:
    body = await _read_json_body(request)
    outline_request = OutlineRequest.from_raw(query=body.get("query"), num=body.get("num"))
    return await handle_note_top_outline(request, outline_request)


async def handle_note_top_outline(request: web.Request, outline_request: OutlineRequest) -> web.Response:
    settings = request.app[SETTINGS_KEY]

    if not is_authorized(settings.api_token, request.headers.get("Authorization")):
        raise UnauthorizedError

    if not settings.serpapi_key:
        raise ConfigurationError(SERPAPI_KEY_ENV_VAR)

    if not outline_request.query:
        raise QueryRequiredError

    outline_server = request.app[OUTLINE_SERVER_KEY]

    response = await outline_server.outline(query=outline_request.query, num=outline_request.num)

    return web.json_response(response.to_payload())


def create_app(settings: Settings, outline_server: OutlineServer | None = None) -> web.Application:
    """Build the HTTP application. `outline_server` defaults to one wired to SerpApi from `settings`."""
    app = web.Application(middlewares=[error_middleware], client_max_size=1024**2)

    app[SETTINGS_KEY] = settings
    app[OUTLINE_SERVER_KEY] = outline_server or OutlineServer.from_settings(settings)

    app.router.add_get("/", index)
    app.router.add_get("/health", health)
    app.router.add_get("/ping", health)
    app.router.add_get("/note_top_outline", note_top_outline_get)
    app.router.add_post("/note_top_outline", note_top_outline_post)

    app.cleanup_ctx.append(_close_outline_server)

    return app


async def _close_outline_server(app: web.Application) -> AsyncIterator[None]:
    yield
    await app[OUTLINE_SERVER_KEY].close()
