import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from rental_api.main import app
from rental_api.database import Base, get_db
from rental_api.api.deps import create_access_token
from rental_api.models import Contract, Property, User
from tests.factories import (
    AdminUserFactory,
    ContractFactory,
    OwnerFactory,
    PropertyFactory,
    TenantFactory,
)

# Test database URL (SQLite for testing). File based so that several
# sessions can see the same data.
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"


@pytest_asyncio.fixture
async def test_engine():
    """Create test database and tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_db(session_factory):
    async with session_factory() as session:
        yield session


async def _add_user(db: AsyncSession, **data) -> User:
    user = User(**data)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def owner_user(test_db: AsyncSession) -> User:
    return await _add_user(test_db, **OwnerFactory(email="owner@x.com"))


@pytest_asyncio.fixture
async def tenant_user(test_db: AsyncSession) -> User:
    return await _add_user(test_db, **TenantFactory(email="t@x.com"))


@pytest_asyncio.fixture
async def other_owner(test_db: AsyncSession) -> User:
    return await _add_user(test_db, **OwnerFactory())


@pytest_asyncio.fixture
async def other_tenant(test_db: AsyncSession) -> User:
    return await _add_user(test_db, **TenantFactory())


@pytest_asyncio.fixture
async def admin_user(test_db: AsyncSession) -> User:
    return await _add_user(test_db, **AdminUserFactory())


@pytest_asyncio.fixture
async def rental_property(test_db: AsyncSession, owner_user: User) -> Property:
    rental_property = Property(**PropertyFactory(owner_id=owner_user.id))
    test_db.add(rental_property)
    await test_db.commit()
    await test_db.refresh(rental_property)
    return rental_property


@pytest.fixture
def make_contract(test_db: AsyncSession, owner_user: User, tenant_user: User, rental_property: Property):
    """Insert a contract row directly, in any state."""

    async def _make(**overrides) -> Contract:
        data = ContractFactory(
            property_id=rental_property.id,
            owner_id=owner_user.id,
            tenant_id=tenant_user.id,
        )
        data.update(overrides)
        contract = Contract(**data)
        test_db.add(contract)
        await test_db.commit()
        await test_db.refresh(contract)
        return contract

    return _make


@pytest.fixture
def auth_headers():
    """Bearer header for a user."""

    def _headers(user: User) -> dict:
        token = create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def client(test_db: AsyncSession):
    """Create test client with overridden database."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
