from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.errors import Unauthorized
from users.tokens import resolve_token

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
):
    if credentials is None or not credentials.credentials:
        raise Unauthorized()
    user = await resolve_token(db, credentials.credentials)
    if user is None:
        raise Unauthorized()
    return user
