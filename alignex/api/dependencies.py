import logging
from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from alignex.api.wiring import permission_resolver
from alignex.models.permission import PermissionKey
from alignex.models.principal import Principal
from alignex.services import token_service

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/oauth/token")


def require_user(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    """Extract and validate the JWT bearer token. Returns a Principal."""
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    return Principal(user_email=claims["sub"].strip().lower())


def require_permission(permission: PermissionKey):
    """Dependency factory: demand that the caller's tier allows `permission`.

    Usage: Depends(require_permission(PermissionKey.MANAGE))
    """

    async def _guard(
        principal: Annotated[Principal, Depends(require_user)],
    ) -> Principal:
        allowed = await permission_resolver.can_perform_action(
            principal.user_email, permission
        )
        if not allowed:
            logger.warning(
                "Access denied: user=%s lacks permission=%s",
                principal.user_email,
                permission.value,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return _guard


def require_org_permission(permission: PermissionKey):
    """Dependency factory: demand membership of the path's org plus `permission`.

    Membership is the organization the resolver assigns the caller, so an
    admin of one org gets 403 on every other org's routes.

    Usage::

        _require_org_manage = require_org_permission(PermissionKey.MANAGE)

        @router.get("/v1/orgs/{org_id}/licenses")
        async def list_licenses(
            org_id: UUID,
            principal: Annotated[Principal, Depends(_require_org_manage)],
        ): ...
    """
    _require = require_permission(permission)

    async def _guard(
        org_id: UUID,
        principal: Annotated[Principal, Depends(_require)],
    ) -> Principal:
        member_of = await permission_resolver.get_organization_id(
            principal.user_email
        )
        if member_of != org_id:
            logger.warning(
                "Access denied: user=%s not a member of org=%s",
                principal.user_email,
                org_id,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not a member of this organization",
            )
        return principal

    return _guard
