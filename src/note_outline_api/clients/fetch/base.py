from abc import ABC, abstractmethod

from pydantic import BaseModel


class FetchedPage(BaseModel):
    """The body of a page that answered with a success status."""

    url: str
    status: int
    html: str


class FailedFetch(BaseModel):
    """A fetch that did not produce a usable page."""

    url: str
    reason: str
    status: int | None = None


class BaseFetchClient(ABC):
    @abstractmethod
    async def fetch(self, url: str) -> FetchedPage | FailedFetch:
        """Fetch a page. Implementations report failures as `FailedFetch` and never raise."""

    async def close(self) -> None:  # noqa: B027
        pass
