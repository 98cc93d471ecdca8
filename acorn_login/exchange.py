"""
Server-side exchange of the provider's authorization code for an access token.
The client secret lives only in ExchangeSettings and never leaves this module: provider
error bodies are logged here and callers only see a generic ExchangeError.
"""
import logging
import os
from dataclasses import dataclass, field
from urllib.parse import urlencode

import httpx

from acorn_login.config import API_AUDIENCE, CLIENT_ID, EXCHANGE_TIMEOUT, REDIRECT_URI, TOKEN_URL

logger = logging.getLogger(__name__)


class ExchangeError(Exception):
    """The provider rejected the code or could not be reached. Safe to log; never shown to users."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class ExchangeSettings:
    token_url: str
    client_id: str
    client_secret: str | None = field(repr=False)
    audience: str
    redirect_uri: str
    timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "ExchangeSettings":
        secret = os.environ.get("OAUTH_CLIENT_SECRET") or None
        if secret is None:
            logger.warning("OAUTH_CLIENT_SECRET is not set; logins will fail at code exchange")
        return cls(
            token_url=TOKEN_URL,
            client_id=CLIENT_ID,
            client_secret=secret,
            audience=API_AUDIENCE,
            redirect_uri=REDIRECT_URI,
            timeout=EXCHANGE_TIMEOUT,
        )

    def callback_url(self, correlation_token: str | None) -> str:
        """Redirect URI as sent at authorization time (tempLoginToken appended)."""
        if correlation_token is None:
            return self.redirect_uri
        sep = "&" if "?" in self.redirect_uri else "?"
        return f"{self.redirect_uri}{sep}{urlencode({'tempLoginToken': correlation_token})}"


def exchange_code(code: str, settings: ExchangeSettings, *, correlation_token: str | None = None) -> str:
    """
    POST the authorization code to the token endpoint and return the access token.
    Raises ExchangeError on transport failure, non-2xx status, or a response without access_token.
    No retries.
    """
    if not settings.client_secret:
        raise ExchangeError("Client secret is not configured")

    try:
        r = httpx.post(
            settings.token_url,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "client_id": settings.client_id,
                "client_secret": settings.client_secret,
                "audience": settings.audience,
                "redirect_uri": settings.callback_url(correlation_token),
            },
            headers={"Accept": "application/json"},
            timeout=settings.timeout,
        )
    except httpx.HTTPError as e:
        logger.warning("Token endpoint request failed: %s", e.__class__.__name__)
        raise ExchangeError(f"Token endpoint request failed: {e.__class__.__name__}") from e

    if not 200 <= r.status_code < 300:
        logger.warning("Bad response while converting code to token: %s", r.status_code)
        logger.warning("Token endpoint response body: %s", r.text)
        raise ExchangeError("Token endpoint returned an error", status_code=r.status_code)

    try:
        data = r.json()
    except ValueError as e:
        logger.warning("Token endpoint returned a non-JSON body (status %s)", r.status_code)
        raise ExchangeError("Token endpoint returned a non-JSON body", status_code=r.status_code) from e

    access_token = data.get("access_token") if isinstance(data, dict) else None
    if not isinstance(access_token, str) or not access_token:
        logger.warning("Token endpoint response has no access_token (status %s)", r.status_code)
        raise ExchangeError("Token endpoint response has no access_token", status_code=r.status_code)
    return access_token
