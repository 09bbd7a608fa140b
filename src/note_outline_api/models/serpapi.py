from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SerpApiOrganicResult(BaseModel):
    """An organic result from SerpApi. Any field may be missing or carry an unexpected type."""

    model_config = ConfigDict(extra="ignore")

    link: Any = None
    title: Any = None

    @property
    def url(self) -> str | None:
        return self.link if isinstance(self.link, str) else None

    @property
    def serp_title(self) -> str:
        return self.title if isinstance(self.title, str) else ""


class SerpApiResponse(BaseModel):
    """The subset of a SerpApi search response that we use."""

    model_config = ConfigDict(extra="ignore")

    organic_results: list[SerpApiOrganicResult] = Field(default_factory=list)

    @field_validator("organic_results", mode="before")
    @classmethod
    def _keep_object_entries(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []

        return [entry for entry in value if isinstance(entry, dict)]
