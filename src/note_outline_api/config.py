import os
from typing import ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_HOST = "0.0.0.0"  # noqa: S104
DEFAULT_PORT = 3000

PORT_ENV_VAR = "PORT"
HOST_ENV_VAR = "HOST"
SERPAPI_KEY_ENV_VAR = "SERPAPI_KEY"
API_TOKEN_ENV_VAR = "API_TOKEN"


class Settings(BaseModel):
    """Process-wide configuration, built once at startup and never mutated."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, use_attribute_docstrings=True)

    host: str = Field(default=DEFAULT_HOST)
    """The interface the HTTP server binds to."""

    port: int = Field(default=DEFAULT_PORT)
    """The port the HTTP server listens on."""

    serpapi_key: str = Field(default="", repr=False)
    """The SerpApi key. The outline endpoint fails with a 500 when it is empty."""

    api_token: str = Field(default="", repr=False)
    """The bearer token callers must present. When empty, the outline endpoint is unauthenticated."""

    @property
    def auth_enabled(self) -> bool:
        return bool(self.api_token)

    @classmethod
    def from_env(cls) -> Self:
        return cls(
            host=os.getenv(HOST_ENV_VAR) or DEFAULT_HOST,
            port=int(os.getenv(PORT_ENV_VAR) or DEFAULT_PORT),
            serpapi_key=os.getenv(SERPAPI_KEY_ENV_VAR, ""),
            api_token=os.getenv(API_TOKEN_ENV_VAR, ""),
        )
