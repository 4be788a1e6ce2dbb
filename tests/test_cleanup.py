from datetime import datetime, timedelta

from sqlalchemy import select

from conftest import make_user
from users.cleanup import cleanup_incomplete_registrations
from users.models import User


async def age(db, user, hours):
    user.created_at = datetime.utcnow() - timedelta(hours=hours)
    await db.commit()


async def test_only_stale_incomplete_registrations_are_deleted(db):
    stale = await make_user(db, phone="100000001", password=None)
    fresh = await make_user(db, phone="100000002", password=None)
    complete = await make_user(db, phone="100000003")
    suspended = await make_user(db, phone="100000004", password=None, status="suspended")
    for user in (stale, complete, suspended):
        await age(db, user, 48)
    await age(db, fresh, 1)

    deleted = await cleanup_incomplete_registrations(db, hours=24)

    assert deleted == 1
    db.expire_all()
    phones = set((await db.execute(select(User.phone))).scalars().all())
    assert phones == {"100000002", "100000003", "100000004"}
