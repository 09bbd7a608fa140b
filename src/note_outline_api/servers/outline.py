import asyncio
from collections.abc import Sequence
from typing import Annotated, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field

from note_outline_api.clients.fetch.base import BaseFetchClient, FailedFetch
from note_outline_api.clients.fetch.browser import BrowserFetchClient
from note_outline_api.clients.parse.base import BaseOutlineParser
from note_outline_api.clients.parse.headings import HeadingParser
from note_outline_api.clients.search.base import SITE_DOMAIN, SITE_LINK_MARKER, BaseSearchClient, build_search_query
from note_outline_api.clients.search.serpapi import SerpApiClient
from note_outline_api.config import Settings
from note_outline_api.errors import QueryRequiredError
from note_outline_api.models.outline import (
    DEFAULT_NUM_RESULTS,
    DegradedPage,
    ExtractedPage,
    ExtractionResult,
    OutlineRecord,
    OutlineRequest,
    OutlineResponse,
    SearchResult,
)
from note_outline_api.models.serpapi import SerpApiOrganicResult
from note_outline_api.utils.logging import BASE_LOGGER

logger = BASE_LOGGER.getChild(__name__)

# Pause between successive page fetches so we do not hammer the target site.
FETCH_DELAY_SECONDS = 0.5

NO_RESULTS_NOTE = f"No {SITE_DOMAIN} results found in top organic results."


def filter_results(organic_results: Sequence[SerpApiOrganicResult], num: int) -> list[SearchResult]:
    """Keep the first `num` results that link to the target site, ranked by their position after filtering."""
    kept = [result for result in organic_results if result.url is not None and SITE_LINK_MARKER in result.url][:num]

    return [SearchResult(rank=index, url=result.url or "", serp_title=result.serp_title) for index, result in enumerate(kept, start=1)]


class OutlineServer(BaseModel):
    model_config: ClassVar[ConfigDict] = ConfigDict(arbitrary_types_allowed=True)

    search_client: BaseSearchClient
    fetch_client: BaseFetchClient = Field(default_factory=BrowserFetchClient)
    parser: BaseOutlineParser = Field(default_factory=HeadingParser)

    @classmethod
    def from_settings(cls, settings: Settings) -> Self:
        return cls(search_client=SerpApiClient(api_key=settings.serpapi_key))

    async def search(self, query: str, num: int = DEFAULT_NUM_RESULTS) -> tuple[str, list[SearchResult]]:
        """Search the target site and return the site-restricted query along with the filtered, ranked results."""
        search_query = build_search_query(query)

        response = await self.search_client.search(search_query, num=num)

        results = filter_results(response.organic_results, num=num)

        logger.info(f"Kept {len(results)} of {len(response.organic_results)} organic results for {search_query!r}")

        return search_query, results

    async def extract(self, url: str) -> ExtractionResult:
        """Fetch a page and extract its heading outline. Failures produce a `DegradedPage` instead of raising."""
        try:
            fetched = await self.fetch_client.fetch(url)

            if isinstance(fetched, FailedFetch):
                logger.warning(f"Could not fetch {url}: {fetched.reason}")
                return DegradedPage(reason=fetched.reason)

            return ExtractedPage(extract=self.parser.parse(fetched.html))
        except Exception as e:
            logger.warning(f"Could not extract headings from {url}: {e}")
            return DegradedPage(reason=f"{type(e).__name__}: {e}")

    async def outline(
        self,
        query: Annotated[str, "The free-text query. It is restricted to note.com automatically."],
        num: Annotated[int, "The number of results to outline, between 1 and 10."] = DEFAULT_NUM_RESULTS,
    ) -> OutlineResponse:
        """Search note.com and return the title, H1, H2 and H3 headings of each of the top results."""
        request = OutlineRequest.from_raw(query=query, num=num)

        if not request.query:
            raise QueryRequiredError

        search_query, search_results = await self.search(request.query, num=request.num)

        if not search_results:
            return OutlineResponse(query=search_query, results=[], note=NO_RESULTS_NOTE)

        records: list[OutlineRecord] = []

        for index, search_result in enumerate(search_results):
            if index > 0:
                await asyncio.sleep(FETCH_DELAY_SECONDS)

            extraction = await self.extract(search_result.url)
            records.append(OutlineRecord.from_extraction(search_result, extraction))

        return OutlineResponse(query=search_query, results=records)

    async def close(self) -> None:
        await self.search_client.close()
        await self.fetch_client.close()
