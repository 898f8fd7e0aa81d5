import pytest
import os
import warnings
from sqlalchemy import create_engine
from sqlalchemy.pool import NullPool

# Set environment variables BEFORE importing registry modules
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DATABASE_DSN"] = "sqlite+aiosqlite:///file:registry_tests?mode=memory&cache=shared&uri=true"
os.environ["SESSION_SECRET_KEY"] = "test-secret-key-32-chars-minimum!!"
os.environ["DEFAULT_GUEST_PASSWORD"] = "guest-pass"
os.environ["DEFAULT_ADMIN_PASSWORD"] = "admin-pass-123"
os.environ["LOG_LEVEL"] = "WARNING"

warnings.filterwarnings("ignore", category=DeprecationWarning)

from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from registry.db.session import Base, enable_sqlite_foreign_keys, get_db
from registry.main import app
from registry.core.config import settings
from registry.core.security import Role, create_session_token
from registry.models.models import Category, Gift


GUEST_PASSWORD = "guest-pass"
ADMIN_PASSWORD = "admin-pass-123"


def pytest_configure(config):
    warnings.filterwarnings("ignore", category=DeprecationWarning)


@pytest.fixture(scope="session", autouse=True)
def disable_rate_limiting():
    """Disable rate limiting for all tests."""
    original = settings.rate_limit_enabled
    settings.rate_limit_enabled = False
    yield
    settings.rate_limit_enabled = original


@pytest.fixture(autouse=True)
def session_factory(tmp_path):
    """Fresh SQLite file per test, wired into the app through ``get_db``."""
    db_path = tmp_path / "registry-test.db"
    from registry.models import models as models_module
    _ = models_module
    sync_engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    # NullPool: TestClient runs every request on its own event loop.
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    enable_sqlite_foreign_keys(engine.sync_engine)
    factory = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)

    async def override_get_db():
        async with factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    yield factory
    app.dependency_overrides.clear()
    engine.sync_engine.dispose()


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def test_client():
    return TestClient(app)


def auth_headers(role: Role) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_session_token(role)}"}


@pytest.fixture
def guest_headers() -> dict[str, str]:
    return auth_headers(Role.GUEST)


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return auth_headers(Role.ADMIN)


async def make_gift(
    session,
    *,
    type: str = "fundable",
    target_amount: int | None = 10000,
    status: str = "available",
    current_amount: int = 0,
    external_url: str | None = None,
    slug: str = "nursery",
) -> Gift:
    """Insert a gift directly, bypassing the catalog rules."""
    category = await session.get(Category, 1)
    if category is None:
        category = Category(id=1, name="Nursery", slug=slug, order=0)
        session.add(category)
    gift = Gift(
        category=category,
        title=f"{type} gift",
        type=type,
        target_amount=target_amount if type == "fundable" else None,
        current_amount=current_amount,
        status=status,
        external_url=external_url,
    )
    session.add(gift)
    await session.commit()
    return gift
