import hashlib
import hmac
import secrets
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from users.models import AccessToken, User


def _hash(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


async def issue_token(db: AsyncSession, user: User, name: str = "auth_token") -> str:
    """Create a token row and return the plain ``<id>|<secret>`` value.

    Only the hash is stored; the caller commits.
    """
    secret = secrets.token_hex(20)
    token = AccessToken(user_id=user.id, name=name, token_hash=_hash(secret))
    db.add(token)
    await db.flush()
    return f"{token.id}|{secret}"


async def revoke_tokens(db: AsyncSession, user: User) -> int:
    result = await db.execute(delete(AccessToken).where(AccessToken.user_id == user.id))
    return result.rowcount or 0


async def resolve_token(db: AsyncSession, plain_token: str):
    token_id, sep, secret = plain_token.partition("|")
    if not sep or not token_id.isdigit() or not secret:
        return None

    result = await db.execute(select(AccessToken).where(AccessToken.id == int(token_id)))
    token = result.scalar_one_or_none()
    if token is None or not hmac.compare_digest(token.token_hash, _hash(secret)):
        return None

    token.last_used_at = datetime.utcnow()
    await db.commit()

    result = await db.execute(select(User).where(User.id == token.user_id))
    return result.scalar_one_or_none()
