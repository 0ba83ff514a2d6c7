import sqlite3
import uuid
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.backends.postgres import POSTGRES_TABLE_DDL
from app.core.connectors import Connector
from app.core.database import get_backend_router
from app.core.repository import OrderRepository
from app.core.routing import BackendRouter
from app.core.sanitize import sanitize_identifier

SELECTOR = "tenant-a"

# SQLite understands the PostgreSQL DDL, which lets the real repository run in memory
SQLITE = Connector(
    dialect="sqlite",
    driver="pysqlite",
    default_port=0,
    table_ddl=POSTGRES_TABLE_DDL,
    is_duplicate_key=lambda error: isinstance(error, sqlite3.IntegrityError),
)


def open_sqlite_repository(table_name: str, connector: Connector = SQLITE):
    engine = connector.open(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    connector.ensure_table(engine, sanitize_identifier(table_name))
    return OrderRepository(engine, table_name, connector)


def unique_table_name():
    return f"orders_{uuid.uuid4().hex[:8]}"


# Each test gets fresh tables, dropped once it is done
@pytest.fixture(scope="function")
def primary_repository():
    repository = open_sqlite_repository(unique_table_name())
    yield repository
    repository.teardown()


@pytest.fixture(scope="function")
def secondary_repository():
    repository = open_sqlite_repository(unique_table_name())
    yield repository
    repository.teardown()


@pytest.fixture(scope="function")
def backend_router(primary_repository, secondary_repository):
    return BackendRouter(primary_repository, secondary_repository, SELECTOR)


# Client
@pytest_asyncio.fixture(scope="function")
async def client(backend_router: BackendRouter):
    app.dependency_overrides[get_backend_router] = lambda: backend_router

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# Headers routing requests to the primary backend
@pytest.fixture(scope="function")
def primary_headers():
    return {"end-user": SELECTOR}
