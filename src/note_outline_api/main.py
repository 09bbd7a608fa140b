import asyncio
from typing import Any, Literal

import asyncclick as click
from aiohttp import web
from fastmcp import FastMCP
from fastmcp.tools.tool import Tool

from note_outline_api.config import (
    API_TOKEN_ENV_VAR,
    DEFAULT_HOST,
    DEFAULT_PORT,
    HOST_ENV_VAR,
    PORT_ENV_VAR,
    SERPAPI_KEY_ENV_VAR,
    Settings,
)
from note_outline_api.servers.outline import OutlineServer
from note_outline_api.utils.logging import BASE_LOGGER
from note_outline_api.web.app import create_app

logger = BASE_LOGGER.getChild(__name__)


def build_mcp(settings: Settings, outline_server: OutlineServer | None = None) -> FastMCP[Any]:
    outline_server = outline_server or OutlineServer.from_settings(settings)

    mcp = FastMCP[Any](name="Note Outline API")
    mcp.add_tool(Tool.from_function(outline_server.outline, name="note_top_outline"))

    return mcp


@click.group()
@click.option("--serpapi-key", type=str, envvar=SERPAPI_KEY_ENV_VAR, default="", help="The SerpApi key used for searches")
@click.option("--api-token", type=str, envvar=API_TOKEN_ENV_VAR, default="", help="The bearer token callers must present")
@click.pass_context
def cli(ctx: click.Context, serpapi_key: str, api_token: str):
    ctx.obj = Settings(serpapi_key=serpapi_key, api_token=api_token)

    if not serpapi_key:
        logger.warning(f"{SERPAPI_KEY_ENV_VAR} is not set, outline requests will fail")


@cli.command()
@click.option("--host", type=str, envvar=HOST_ENV_VAR, default=DEFAULT_HOST, help="The interface to bind to")
@click.option("--port", type=int, envvar=PORT_ENV_VAR, default=DEFAULT_PORT, help="The port to listen on")
@click.pass_context
async def serve(ctx: click.Context, host: str, port: int):
    """Serve the outline API over HTTP."""
    settings: Settings = ctx.obj.model_copy(update={"host": host, "port": port})

    if not settings.auth_enabled:
        logger.warning(f"{API_TOKEN_ENV_VAR} is not set, /note_top_outline is unauthenticated. Do not run this way in production.")

    runner = web.AppRunner(create_app(settings))
    await runner.setup()

    site = web.TCPSite(runner, host=settings.host, port=settings.port)
    await site.start()

    logger.info(f"API running on {settings.host}:{settings.port}")

    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


@cli.command()
@click.option(
    "--mcp-transport", type=click.Choice(["stdio", "streamable-http"]), default="stdio", help="The transport to run the MCP server on"
)
@click.pass_context
async def mcp(ctx: click.Context, mcp_transport: Literal["stdio", "streamable-http"]):
    """Serve the outline operation as an MCP tool."""
    await build_mcp(ctx.obj).run_async(transport=mcp_transport)


def run():
    asyncio.run(cli())


if __name__ == "__main__":
    run()
