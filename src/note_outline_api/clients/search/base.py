from abc import ABC, abstractmethod

from note_outline_api.models.serpapi import SerpApiResponse

SITE_DOMAIN = "note.com"
SITE_LINK_MARKER = f"{SITE_DOMAIN}/"


def build_search_query(query: str) -> str:
    """Restrict a free-text query to the target site."""
    return f"{query} site:{SITE_DOMAIN}"


class BaseSearchClient(ABC):
    @abstractmethod
    async def search(self, query: str, num: int = 10) -> SerpApiResponse: ...

    async def close(self) -> None:  # noqa: B027
        pass
