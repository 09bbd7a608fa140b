from typing import override

from aiohttp import ClientError, ClientSession, ClientTimeout

from note_outline_api.clients.fetch.base import BaseFetchClient, FailedFetch, FetchedPage
from note_outline_api.utils.logging import BASE_LOGGER

logger = BASE_LOGGER.getChild(__name__)

FETCH_TIMEOUT_SECONDS = 20

# note.com rejects requests that do not look like they come from a browser.
BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122 Safari/537.36",
    "Accept-Language": "ja,en;q=0.9",
}


class BrowserFetchClient(BaseFetchClient):
    session: ClientSession | None

    def __init__(self, session: ClientSession | None = None):
        self.session = session

    @override
    async def fetch(self, url: str) -> FetchedPage | FailedFetch:
        if self.session is None:
            self.session = ClientSession()

        logger.debug(f"Fetching {url}")

        try:
            async with self.session.get(url, headers=BROWSER_HEADERS, timeout=ClientTimeout(total=FETCH_TIMEOUT_SECONDS)) as response:
                if not response.ok:
                    return FailedFetch(url=url, status=response.status, reason=f"HTTP {response.status}")

                html = await response.text(errors="replace")
                return FetchedPage(url=url, status=response.status, html=html)
        except TimeoutError:
            return FailedFetch(url=url, reason=f"Timed out after {FETCH_TIMEOUT_SECONDS}s")
        except (ClientError, UnicodeDecodeError, LookupError, ValueError) as e:
            return FailedFetch(url=url, reason=f"{type(e).__name__}: {e}")

    @override
    async def close(self) -> None:
        if self.session is not None:
            await self.session.close()
            self.session = None
