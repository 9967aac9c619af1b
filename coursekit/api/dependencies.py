"""FastAPI dependencies shared by every router.

  CurrentUser    the verified Principal behind the bearer token (401 if none)
  AppContainer   the process-wide service container
  require_role   403 unless the principal carries the role

Route handlers never read headers or app.state themselves.
"""

from __future__ import annotations

import logging
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from coursekit.container import Container
from coursekit.models.principal import Principal
from coursekit.services import token_service

logger = logging.getLogger(__name__)

# Tokens come from the identity provider; tokenUrl only feeds the OpenAPI docs.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/oauth/token")


def get_container(request: Request) -> Container:
    return request.app.state.container


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_user(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    """Verify the bearer token and return the learner behind it."""
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.ExpiredSignatureError:
        logger.info("Expired token rejected")
        raise _unauthorized("Token expired") from None
    except jwt.InvalidTokenError as exc:
        # Class name only; the token text stays out of the logs.
        logger.warning("Invalid token rejected: %s", exc.__class__.__name__)
        raise _unauthorized("Invalid token") from None

    roles = claims.get("roles") or []
    if not isinstance(roles, list):
        logger.warning("Token with malformed roles claim rejected")
        raise _unauthorized("Invalid token")

    return Principal(user_id=claims["sub"], roles=frozenset(roles))


def require_role(role: str):
    """Dependency factory: Depends(require_role("admin"))."""

    def _guard(
        principal: Annotated[Principal, Depends(require_user)],
    ) -> Principal:
        if not principal.has_role(role):
            logger.warning(
                "Access denied: user=%s missing role=%s",
                principal.user_id,
                role,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return _guard


CurrentUser = Annotated[Principal, Depends(require_user)]
AppContainer = Annotated[Container, Depends(get_container)]
