from typing import Any

DETAIL_MAX_LENGTH = 800


class OutlineApiError(Exception):
    """A base exception for errors that end a request with a JSON error body."""

    status: int = 500
    msg: str

    def __init__(self, msg: str):
        self.msg = msg
        super().__init__(msg)

    def __str__(self) -> str:
        return self.msg

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.msg}


class UnauthorizedError(OutlineApiError):
    """The request did not carry the configured bearer token."""

    status = 401

    def __init__(self):
        super().__init__("Unauthorized")


class QueryRequiredError(OutlineApiError):
    """The request had an empty or whitespace-only query."""

    status = 400

    def __init__(self):
        super().__init__("query is required")


class ConfigurationError(OutlineApiError):
    """A required secret is missing from the configuration."""

    status = 500

    def __init__(self, setting: str):
        self.setting = setting
        super().__init__(f"{setting} is missing")


class UpstreamError(OutlineApiError):
    """The search API answered with a non-success status."""

    status = 502

    def __init__(self, upstream_status: int, detail: str):
        self.upstream_status = upstream_status
        self.detail = detail[:DETAIL_MAX_LENGTH]
        super().__init__("SERP API failed")

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.msg, "status": self.upstream_status, "detail": self.detail}


def internal_error_payload(error: BaseException) -> dict[str, Any]:
    """Render an unexpected exception the way the HTTP surface reports it."""
    return {"error": "Internal error", "detail": (str(error) or type(error).__name__)[:DETAIL_MAX_LENGTH]}
