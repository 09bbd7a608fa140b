from json import JSONDecodeError
from typing import override

from aiohttp import ClientSession, ClientTimeout, ContentTypeError

from note_outline_api.clients.search.base import BaseSearchClient
from note_outline_api.config import SERPAPI_KEY_ENV_VAR
from note_outline_api.errors import ConfigurationError, UpstreamError
from note_outline_api.models.serpapi import SerpApiResponse
from note_outline_api.utils.logging import BASE_LOGGER

logger = BASE_LOGGER.getChild(__name__)

SERPAPI_URL = "https://serpapi.com/search.json"
SEARCH_TIMEOUT_SECONDS = 20

SEARCH_ENGINE = "google"
SEARCH_LANGUAGE = "ja"
SEARCH_COUNTRY = "jp"


class SerpApiClient(BaseSearchClient):
    session: ClientSession | None

    def __init__(self, api_key: str, session: ClientSession | None = None):
        self.api_key = api_key
        self.session = session

    @override
    async def search(self, query: str, num: int = 10) -> SerpApiResponse:
        """Run a Google search through SerpApi. `query` is sent as-is, so it should already carry any site restriction."""
        if not self.api_key:
            raise ConfigurationError(SERPAPI_KEY_ENV_VAR)

        if self.session is None:
            self.session = ClientSession()

        params = {
            "engine": SEARCH_ENGINE,
            "q": query,
            "hl": SEARCH_LANGUAGE,
            "gl": SEARCH_COUNTRY,
            "num": str(num),
            "api_key": self.api_key,
        }

        logger.info(f"Searching SerpApi for {query!r} (num={num})")

        async with self.session.get(SERPAPI_URL, params=params, timeout=ClientTimeout(total=SEARCH_TIMEOUT_SECONDS)) as response:
            if not response.ok:
                detail = await response.text(errors="replace")
                logger.warning(f"SerpApi returned HTTP {response.status} for {query!r}")
                raise UpstreamError(upstream_status=response.status, detail=detail)

            try:
                payload = await response.json(content_type=None)
            except (ContentTypeError, JSONDecodeError, UnicodeDecodeError):
                logger.warning(f"SerpApi returned a body that is not JSON for {query!r}")
                return SerpApiResponse()

        if not isinstance(payload, dict):
            return SerpApiResponse()

        return SerpApiResponse.model_validate(payload)

    @override
    async def close(self) -> None:
        if self.session is not None:
            await self.session.close()
            self.session = None
