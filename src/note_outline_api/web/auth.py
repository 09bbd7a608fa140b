BEARER_PREFIX = "Bearer "


def bearer_token(authorization: str | None) -> str:
    """Pull the token out of an `Authorization: Bearer <token>` header. Anything else yields an empty token."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return ""

    return authorization[len(BEARER_PREFIX) :].strip()


def is_authorized(api_token: str, authorization: str | None) -> bool:
    """Check a request's Authorization header against the configured token.

    When no token is configured every request is authorized. That mode is meant for local development only."""
    if not api_token:
        return True

    return bearer_token(authorization) == api_token
