"""
Pytest configuration for acorn_login. Fixed provider settings so tests never depend on the real environment.
"""
import os

import pytest

os.environ["OAUTH_CLIENT_SECRET"] = "test-secret"
os.environ["OAUTH_TOKEN_URL"] = "https://idp.example/oauth/token"
os.environ["OAUTH_REDIRECT_URI"] = "http://127.0.0.1:8080/redirected/"
# Poll rate limit stays at its default (off); rate limit tests enable it explicitly
os.environ.pop("ACORN_RATE_LIMIT_POLL_PER_MINUTE", None)


@pytest.fixture(autouse=True)
def _empty_handoff_store():
    from acorn_login import rate_limit
    from acorn_login.handoff_store import store

    store.clear()
    rate_limit.reset()
    yield
    store.clear()
