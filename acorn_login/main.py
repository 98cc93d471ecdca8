"""
AcornGM login relay.
The desktop program opens login.html?tempLoginToken=..., the provider redirects the browser to
/redirected/ with a code, we exchange it and park the access token under tempLoginToken until the
program picks it up from /check_callback. Port 8080 by default.
"""
import html
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from acorn_login import rate_limit
from acorn_login.auth import RequireToken
from acorn_login.config import (
    API_AUDIENCE,
    CLIENT_ID,
    FRONTEND_DIR,
    LOG_LEVEL,
    NOT_READY_SENTINEL,
    OAUTH_DOMAIN,
    PORT,
    RATE_LIMIT_POLL_PER_MINUTE,
)
from acorn_login.exchange import ExchangeError, ExchangeSettings, exchange_code
from acorn_login.handoff_store import store

logger = logging.getLogger(__name__)

app = FastAPI(title="AcornGM Login Relay", version="0.2.0")

_exchange_settings: ExchangeSettings | None = None


def get_exchange_settings() -> ExchangeSettings:
    """Holds the client secret; only handed to exchange_code."""
    global _exchange_settings
    if _exchange_settings is None:
        _exchange_settings = ExchangeSettings.from_env()
    return _exchange_settings


def _page(title: str, body: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(
        f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{title}</title></head>
<body>
  {body}
</body>
</html>""",
        status_code=status_code,
    )


def _single_param(request: Request, name: str) -> str | None:
    """Value of a query parameter given exactly once; None if absent or repeated."""
    values = request.query_params.getlist(name)
    if len(values) != 1:
        return None
    return values[0]


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "acorn_login"}


@app.get("/", response_class=HTMLResponse)
def home():
    return HTMLResponse("Index Page is not set up yet. Please go to <code>/login.html</code>.")


@app.get("/auth_config.json")
def auth_config(request: Request, settings: ExchangeSettings = Depends(get_exchange_settings)):
    """
    Public provider settings for the browser login page. Never includes the secret.
    redirectUri is the exact callback URL the token request will later send for ?tempLoginToken,
    so the page must pass it to the provider unchanged.
    """
    return {
        "domain": OAUTH_DOMAIN,
        "clientId": CLIENT_ID,
        "audience": API_AUDIENCE,
        "redirectUri": settings.callback_url(_single_param(request, "tempLoginToken")),
    }


@app.get("/redirected/", response_class=HTMLResponse)
@app.get("/redirected", response_class=HTMLResponse, include_in_schema=False)
def redirected(request: Request, settings: ExchangeSettings = Depends(get_exchange_settings)):
    """
    Provider redirect target. Exchanges ?code for an access token and stores it under ?tempLoginToken.
    Nothing is stored unless the exchange succeeds.
    """
    error = _single_param(request, "error")
    if error:
        description = _single_param(request, "error_description") or error
        logger.debug("Provider redirected with error: %s", error)
        return _page(
            "Login failed",
            f"<h1>Login failed!</h1>\n  <p>{html.escape(description)}</p>",
            status_code=400,
        )

    code = _single_param(request, "code")
    if not code:
        logger.debug("Redirect without code")
        return _page(
            "Login failed",
            "<p>Login failed: You do not have a return code! "
            "Please try logging in at <code>login.html</code>.</p>",
            status_code=400,
        )

    temp_login_token = _single_param(request, "tempLoginToken")
    if temp_login_token is None:
        logger.debug("Redirect without a single tempLoginToken")
        return _page(
            "Login failed",
            "<p>Invalid Temp Login Token in Redirect URL!</p>",
            status_code=400,
        )

    try:
        access_token = exchange_code(code, settings, correlation_token=temp_login_token)
    except ExchangeError as e:
        logger.warning("Login failed at code exchange: %s", e)
        return _page(
            "Login failed",
            "<h1>Login failed!</h1>\n  <p>Could not get an access token from the login provider.</p>",
            status_code=502,
        )

    store.create(temp_login_token, access_token)
    return _page(
        "Login successful",
        "<h1>Login Successful!</h1>\n"
        "  <p>You can safely close this tab and return to the AcornGM program.</p>",
    )


@app.get("/check_callback")
def check_callback(request: Request):
    """
    Polled by the desktop program. Body is the access token once the login has completed,
    otherwise the literal "no" (keep polling).
    """
    ip = request.client.host if request.client else "unknown"
    allowed, retry_after = rate_limit.check_and_consume(f"poll:{ip}", RATE_LIMIT_POLL_PER_MINUTE)
    if not allowed:
        return PlainTextResponse(
            "Too many requests",
            status_code=429,
            headers={"Retry-After": str(retry_after)},
        )

    temp_login_token = _single_param(request, "tempLoginToken")
    if temp_login_token is None:
        return _page("Error", "<p>Invalid Temp Login Token in Query!</p>", status_code=400)

    access_token = store.find_by_correlation_token(temp_login_token)
    if access_token is None:
        return PlainTextResponse(NOT_READY_SENTINEL)
    return PlainTextResponse(access_token)


@app.get("/authorized")
def authorized(claims: dict = RequireToken):
    """Requires a valid bearer JWT for our audience."""
    return PlainTextResponse("Secured Resource")


@app.post("/upload/mod")
def upload_mod(claims: dict = RequireToken):
    """Requires a valid bearer JWT. Uploads themselves are not implemented yet."""
    logger.info("Mod upload attempted by %s", claims.get("sub", "unknown"))
    return JSONResponse(
        {"error": "not_implemented", "error_description": "Mod uploads are not available yet"},
        status_code=501,
    )


# Mounted last so the API routes above take precedence
if FRONTEND_DIR.is_dir():
    app.mount("/", StaticFiles(directory=FRONTEND_DIR), name="frontend")
else:
    logger.warning("Frontend directory %s not found; login page will not be served", FRONTEND_DIR)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "acorn_login.main:app",
        host="0.0.0.0",
        port=PORT,
        log_level=LOG_LEVEL,
    )
