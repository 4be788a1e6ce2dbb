import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./passo-test.db")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SMS_PROVIDER", "console")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from core.database import Base, get_db
from core.security import hash_password
from main import app
from sales.models import Business, Customer, Product
from sms.base import SmsProvider, SmsResult
from sms.registry import get_sms_provider
from users.models import User
from users.tokens import issue_token

PASSWORD = "Test123!@#"


class RecordingSmsProvider(SmsProvider):
    name = "recording"

    def __init__(self, succeed=True):
        self.succeed = succeed
        self.sent = []

    def send(self, number, message):
        self.sent.append((number, message))
        if not self.succeed:
            return SmsResult(success=False, provider=self.name, error="gateway down")
        return SmsResult(success=True, provider=self.name)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    # MySQL enforces foreign keys; SQLite only does when asked
    @event.listens_for(engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def sms():
    return RecordingSmsProvider()


@pytest_asyncio.fixture
async def client(session_factory, sms):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sms_provider] = lambda: sms
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ==========================================================
# ✅ DATA HELPERS
# ==========================================================
async def make_user(db, phone="123456789", country_code="255", password=PASSWORD, status=None, **fields):
    user = User(
        phone=phone,
        country_code=country_code,
        password=hash_password(password) if password else None,
        status=status or ("active" if password else "inactive"),
        **fields,
    )
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def owner(db):
    return await make_user(db)


@pytest_asyncio.fixture
async def auth_headers(db, owner):
    token = await issue_token(db, owner)
    await db.commit()
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def shop(db, owner):
    """A business owned by ``owner`` with one customer and two products."""
    business = Business(user_id=owner.id, name="Mama Duka", slug="mama-duka", phone="255700000000")
    db.add(business)
    await db.flush()

    customer = Customer(business_id=business.id, first_name="Asha", last_name="Juma")
    soap = Product(business_id=business.id, name="Soap", slug="soap", selling_price=10, stock_quantity=3)
    rice = Product(business_id=business.id, name="Rice", slug="rice", selling_price=20, stock_quantity=50)
    db.add_all([customer, soap, rice])
    await db.commit()
    return {"business": business, "customer": customer, "soap": soap, "rice": rice}
