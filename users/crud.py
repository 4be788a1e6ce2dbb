from datetime import datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from users.models import User
from users.phone import PhoneNumber


async def get_user_by_phone(db: AsyncSession, phone: PhoneNumber):
    result = await db.execute(
        select(User).where(User.country_code == phone.country_code, User.phone == phone.phone)
    )
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str):
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_all_users(db: AsyncSession):
    result = await db.execute(select(User).order_by(User.id))
    return result.scalars().all()


def create_user(db: AsyncSession, phone: PhoneNumber) -> User:
    db_user = User(phone=phone.phone, country_code=phone.country_code, status="inactive", password=None)
    db.add(db_user)
    return db_user


async def delete_incomplete_registrations(db: AsyncSession, older_than_hours: int) -> int:
    """Delete inactive, password-less users created before the retention window."""
    cutoff = datetime.utcnow() - timedelta(hours=older_than_hours)
    query = delete(User).where(
        User.password.is_(None),
        User.status == "inactive",
        User.created_at < cutoff,
    )
    result = await db.execute(query.execution_options(synchronize_session=False))
    return result.rowcount or 0
