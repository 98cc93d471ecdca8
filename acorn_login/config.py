"""
Login relay configuration. Provider identifiers are public; the client secret is
read only by acorn_login.exchange.ExchangeSettings.from_env().
"""
import os
from pathlib import Path

# Identity provider tenant (Auth0)
OAUTH_DOMAIN = os.environ.get("OAUTH_DOMAIN", "dev-3v7qe6ure8f3p1o1.us.auth0.com").strip("/")

# Issuer for bearer JWTs on protected endpoints (Auth0 issuers end with a slash)
ISSUER = os.environ.get("OAUTH_ISSUER", f"https://{OAUTH_DOMAIN}/")

# Token endpoint used for the server-side code exchange
TOKEN_URL = os.environ.get("OAUTH_TOKEN_URL", f"https://{OAUTH_DOMAIN}/oauth/token")

# Our client_id at the provider (public; also served to the login page)
CLIENT_ID = os.environ.get("OAUTH_CLIENT_ID", "hrxEwXcHs69kGHPxvlFM6FVIXeNWPAOX")

# Resource audience requested at exchange and enforced on protected endpoints
API_AUDIENCE = os.environ.get("OAUTH_API_AUDIENCE", "abc123")

# Callback URL the provider redirects to; tempLoginToken is appended per login
REDIRECT_URI = os.environ.get("OAUTH_REDIRECT_URI", "http://127.0.0.1:8080/redirected/")

# How long a completed login stays retrievable by the polling program (seconds)
HANDOFF_TTL_SECONDS = int(os.environ.get("ACORN_HANDOFF_TTL_SECONDS", "300"))

# Remove a handoff after its first successful poll (off: repeat polls see the same token)
HANDOFF_CONSUME_ON_READ = os.environ.get("ACORN_HANDOFF_CONSUME_ON_READ", "false").strip().lower() in (
    "1",
    "true",
    "yes",
)

# Timeout for the token endpoint round trip (seconds)
EXCHANGE_TIMEOUT = float(os.environ.get("ACORN_EXCHANGE_TIMEOUT", "10"))

# Optional poll rate limit per client IP, per minute. Off (0) unless set; behind a proxy
# every client shares one address and so one budget.
RATE_LIMIT_POLL_PER_MINUTE = int(os.environ.get("ACORN_RATE_LIMIT_POLL_PER_MINUTE", "0"))

# Static login page (login.html, login.js)
FRONTEND_DIR = Path(os.environ.get("ACORN_FRONTEND_DIR", Path(__file__).resolve().parent.parent / "frontend"))

PORT = int(os.environ.get("PORT", "8080"))
LOG_LEVEL = os.environ.get("ACORN_LOG_LEVEL", "info").lower()

# Body of a poll response while the login has not completed (or has expired)
NOT_READY_SENTINEL = "no"
