"""Caller claims middleware using ContextVar.

Decodes the bearer JWT from the Authorization header and stores both the
raw token and the decoded claims in ContextVars, so route handlers and
services can call get_current_claims() / get_current_token() without
explicit parameter passing. The raw token is forwarded to the ILS
connector on the caller's behalf.
"""

import logging
from contextvars import ContextVar
from typing import Optional

import jwt
from fastapi import HTTPException
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from verticals.availability.models.schemas import Claims

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Context variables: task-safe per-request state
# ---------------------------------------------------------------------------

_current_claims: ContextVar[Optional[Claims]] = ContextVar("current_claims", default=None)
_current_token: ContextVar[str] = ContextVar("current_token", default="")


def get_current_claims() -> Optional[Claims]:
    """Return the decoded claims for the current request, if any."""
    return _current_claims.get()


def get_current_token() -> str:
    """Return the raw bearer token for the current request."""
    return _current_token.get()


async def require_claims() -> Claims:
    """FastAPI dependency for routes that need a signed-in caller::

        @router.get("/item/{title_id}")
        async def get_item(title_id: str, claims: Claims = Depends(require_claims)):
            ...
    """
    claims = get_current_claims()
    if claims is None:
        raise HTTPException(status_code=401, detail="not authorized")
    return claims


def decode_claims(token: str, key: str) -> Optional[Claims]:
    """Verify *token* with *key* and return its claims, or None."""
    try:
        payload = jwt.decode(token, key, algorithms=["HS256"])
        return Claims.model_validate(payload)
    except (jwt.PyJWTError, ValidationError) as exc:
        logger.warning("Rejected bearer token: %s", exc)
        return None


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

class ClaimsMiddleware(BaseHTTPMiddleware):
    """Extract caller claims from an ``Authorization: Bearer`` header.

    Requests without a valid token proceed with no claims; routes that
    need a caller depend on require_claims().
    """

    def __init__(self, app, jwt_key: str):
        super().__init__(app)
        self.jwt_key = jwt_key

    async def dispatch(self, request: Request, call_next) -> Response:
        token = ""
        claims = None
        auth = request.headers.get("Authorization", "")
        if auth.startswith("Bearer "):
            token = auth[len("Bearer "):].strip()
            if token:
                claims = decode_claims(token, self.jwt_key)

        token_ctx = _current_token.set(token if claims else "")
        claims_ctx = _current_claims.set(claims)
        try:
            response = await call_next(request)
            return response
        finally:
            _current_claims.reset(claims_ctx)
            _current_token.reset(token_ctx)
