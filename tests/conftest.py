"""Test configuration and fixtures"""

from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database import Base, get_db
from app.models.menu import Category, DailyMenu, DailyMenuItem, MenuItem
from app.models.user import User, UserRole
from app.api.auth import create_access_token, get_password_hash
from app.services.policy import local_now
from app.services.reservations import Actor


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "testpass123"
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def users(test_db):
    """One user per role, plus a second employee"""
    users = {
        "employee": User(matricule="E12345", full_name="Amina Employee", role=UserRole.USER),
        "colleague": User(matricule="E67890", full_name="Youssef Colleague", role=UserRole.USER),
        "manager": User(matricule="M00001", full_name="Karim Manager", role=UserRole.MANAGER),
        "admin": User(matricule="A00001", full_name="Sara Admin", role=UserRole.ADMIN),
    }
    for user in users.values():
        user.hashed_password = TEST_PASSWORD_HASH
        user.is_active = True
        test_db.add(user)
    await test_db.commit()

    return users


@pytest.fixture
def actors(users):
    """Plain (user id, role) pairs; safe to use after a rollback"""
    return {name: Actor.from_user(user) for name, user in users.items()}


@pytest.fixture
def tokens(users):
    """Authorization headers per user"""
    return {
        name: {"Authorization": f"Bearer {create_access_token(user)}"}
        for name, user in users.items()
    }


@pytest.fixture
async def menu_items(test_db):
    """Create test menu items; returns ids by short name"""
    items = {
        "salad": MenuItem(label="Salade marocaine", category=Category.STARTER),
        "fish": MenuItem(label="Poisson grillé", category=Category.MAIN),
        "tajine": MenuItem(label="Tajine poulet", category=Category.MAIN),
        "cake": MenuItem(label="Gâteau", category=Category.DESSERT),
        "juice": MenuItem(label="Jus d'orange", category=Category.DRINK),
    }
    for item in items.values():
        test_db.add(item)
    await test_db.commit()

    return {name: item.id for name, item in items.items()}


@pytest.fixture
def plan(test_db, menu_items):
    """Plan a day: ``await plan(day, quotas={"salad": 1}, locked=False)``"""
    async def _plan(day, quotas=None, locked=False, items=None):
        quotas = quotas or {}
        daily = DailyMenu(day=day, locked=locked)
        test_db.add(daily)
        await test_db.flush()
        daily_id = daily.id
        for name in items or menu_items:
            test_db.add(DailyMenuItem(
                daily_menu_id=daily_id,
                menu_item_id=menu_items[name],
                stock_quota=quotas.get(name),
            ))
        await test_db.commit()
        return daily_id
    return _plan


@pytest.fixture
def future_day():
    """A day whose cutoff is comfortably ahead of the real clock"""
    return local_now().date() + timedelta(days=30)


@pytest.fixture
async def client(test_db):
    """Create test client with overridden database"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
