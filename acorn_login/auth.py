"""
Bearer JWT guard for the relay's own protected routes (/authorized, /upload/mod).
Verifies signature via the provider's JWKS and checks iss, aud, exp. Handed-off login
tokens are never passed through here; the relay does not inspect them.
"""
import logging
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWKClient

from acorn_login.config import API_AUDIENCE, ISSUER

logger = logging.getLogger(__name__)

JWKS_URI = f"{ISSUER.rstrip('/')}/.well-known/jwks.json"

_jwks_client: PyJWKClient | None = None


def get_jwks_client() -> PyJWKClient:
    global _jwks_client
    if _jwks_client is None:
        _jwks_client = PyJWKClient(
            uri=JWKS_URI,
            cache_jwk_set=True,
            lifespan=300,
        )
    return _jwks_client


security = HTTPBearer(auto_error=False)


def _unauthorized(error: str, description: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "error_description": description},
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str:
    """Extract Bearer token from Authorization header. Raises 401 if missing or not Bearer."""
    if credentials is None:
        raise _unauthorized("invalid_request", "Authorization header missing")
    if credentials.scheme.lower() != "bearer":
        raise _unauthorized("invalid_request", "Bearer scheme required")
    return credentials.credentials


def verify_access_token(token: str) -> dict:
    """Verify RS256 signature via JWKS and validate iss, aud, exp. Returns decoded claims."""
    try:
        signing_key = get_jwks_client().get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            audience=API_AUDIENCE,
            issuer=ISSUER,
            options={"verify_exp": True, "verify_aud": True, "verify_iss": True},
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("invalid_token", "Token expired")
    except jwt.InvalidAudienceError:
        raise _unauthorized("invalid_token", "Invalid audience")
    except jwt.InvalidIssuerError:
        raise _unauthorized("invalid_token", "Invalid issuer")
    except Exception as e:
        logger.debug("JWT verification failed: %s", e)
        raise _unauthorized("invalid_token", "Token verification failed")


def get_claims(
    token: Annotated[str, Depends(get_bearer_token)],
) -> dict:
    """Dependency: valid Bearer token -> decoded claims."""
    return verify_access_token(token)


RequireToken = Depends(get_claims)
