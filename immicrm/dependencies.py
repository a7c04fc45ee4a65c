from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from immicrm.auth.policy import Action, Resource, authorize, needs_owner
from immicrm.auth.schemas import Identity
from immicrm.auth.service import decode_access_token
from immicrm.common.exceptions import AuthenticationError

security = HTTPBearer(auto_error=False)


async def get_current_identity(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Identity:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required")
    return decode_access_token(credentials.credentials)


def require_permission(action: Action, resource: Resource):
    """Route guard for policy rows that depend on role alone.

    Owner-exempt rows need the resource loaded first, so those routes call
    ``authorize`` themselves with the owner id.
    """
    if needs_owner(action, resource):
        raise ValueError(f"{action.value} {resource.value} is ownership-scoped; call authorize() in the route")

    async def permission_checker(identity: Identity = Depends(get_current_identity)) -> Identity:
        authorize(identity, action, resource)
        return identity

    return permission_checker


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
