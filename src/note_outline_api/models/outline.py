import math
from datetime import UTC, datetime
from typing import Any, ClassVar, Literal, Self

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_NUM_RESULTS = 10
MIN_NUM_RESULTS = 1
MAX_NUM_RESULTS = 10

MAX_TEXT_LENGTH = 200
MAX_H2_HEADINGS = 20
MAX_H3_HEADINGS = 40


def clamp_num_results(raw: Any) -> int:
    """Turn a raw `num` value from a query string or JSON body into a result count within [1, 10].

    Missing, empty and non-numeric values fall back to the default of 10."""
    if raw is None or isinstance(raw, bool) or (isinstance(raw, str) and not raw.strip()):
        return DEFAULT_NUM_RESULTS

    if isinstance(raw, int):
        return min(max(raw, MIN_NUM_RESULTS), MAX_NUM_RESULTS)

    try:
        value = float(raw)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_NUM_RESULTS

    if not math.isfinite(value):
        return DEFAULT_NUM_RESULTS

    return min(max(int(value), MIN_NUM_RESULTS), MAX_NUM_RESULTS)


class SharedBaseModel(BaseModel):
    """A base model that is shared in this module."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, use_attribute_docstrings=True)


class OutlineRequest(SharedBaseModel):
    """A normalized outline request, regardless of whether it came from a query string or a JSON body."""

    query: str
    """The free-text query, trimmed."""

    num: int = Field(default=DEFAULT_NUM_RESULTS, ge=MIN_NUM_RESULTS, le=MAX_NUM_RESULTS)
    """The number of results to return."""

    @classmethod
    def from_raw(cls, query: Any, num: Any) -> Self:
        return cls(query="" if query is None else str(query).strip(), num=clamp_num_results(num))


class SearchResult(SharedBaseModel):
    """A search result that survived domain filtering."""

    rank: int = Field(ge=1)
    """The 1-based position of the result after filtering."""

    url: str
    """The URL of the result page."""

    serp_title: str = ""
    """The title shown on the search results page."""


class PageExtract(SharedBaseModel):
    """The heading outline of a web page."""

    page_title: str = ""
    """The text of the first <title> element."""

    h1: str = ""
    """The text of the first <h1> element."""

    h2: list[str] = Field(default_factory=list)
    """The texts of the <h2> elements, in document order."""

    h3: list[str] = Field(default_factory=list)
    """The texts of the <h3> elements, in document order."""

    @classmethod
    def capped(cls, page_title: str, h1: str, h2: list[str], h3: list[str]) -> Self:
        """Build an extract, applying the size caps that keep payloads small for downstream consumers."""
        return cls(
            page_title=page_title[:MAX_TEXT_LENGTH],
            h1=h1[:MAX_TEXT_LENGTH],
            h2=[heading[:MAX_TEXT_LENGTH] for heading in h2[:MAX_H2_HEADINGS]],
            h3=[heading[:MAX_TEXT_LENGTH] for heading in h3[:MAX_H3_HEADINGS]],
        )


class ExtractedPage(SharedBaseModel):
    """A page that was fetched and parsed."""

    status: Literal["extracted"] = "extracted"

    extract: PageExtract
    """The outline of the page."""


class DegradedPage(SharedBaseModel):
    """A page that could not be fetched or parsed. Its extract is always empty."""

    status: Literal["degraded"] = "degraded"

    reason: str
    """Why the page could not be extracted."""

    extract: PageExtract = Field(default_factory=PageExtract)
    """The all-empty outline."""


ExtractionResult = ExtractedPage | DegradedPage


class OutlineRecord(SharedBaseModel):
    """A search result merged with the outline of its page."""

    rank: int = Field(ge=1)
    url: str
    serp_title: str = ""
    page_title: str = ""
    h1: str = ""
    h2: list[str] = Field(default_factory=list)
    h3: list[str] = Field(default_factory=list)

    fetched_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    """When the page was extracted."""

    @classmethod
    def from_extraction(cls, search_result: SearchResult, extraction: ExtractionResult) -> Self:
        return cls(
            **search_result.model_dump(),
            **extraction.extract.model_dump(),
            fetched_at=datetime.now(tz=UTC),
        )


class OutlineResponse(SharedBaseModel):
    """The outlines of the top results for a query."""

    query: str
    """The query sent to the search engine, including the site restriction."""

    results: list[OutlineRecord] = Field(default_factory=list)
    """The outlines, ordered by rank."""

    note: str | None = None
    """An explanation when there are no results."""

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
