"""
Pytest configuration and fixtures for testing.

Provides:
- Database fixtures (aiosqlite in-memory, one fresh schema per test)
- Reference data (company, site, contact) and job template/schedule fixtures
- An HTTP client bound to the test session

Usage:
    pytest src/backend/tests -v
"""

from datetime import date
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import db.models  # noqa: F401  registers the tables on SQLModel.metadata
from core.dependencies import CurrentUser
from db.models import Company, CompanyContact, JobSchedule, JobTemplate, Site
from tests.factories import (
    CompanyContactFactory,
    CompanyFactory,
    JobScheduleFactory,
    JobTemplateFactory,
    SiteFactory,
)

TEST_DATABASE_URL = "sqlite+aiosqlite://"


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite engine with the full schema.

    StaticPool keeps the single connection alive for the whole test.
    pysqlite's own transaction handling is disabled so SAVEPOINTs
    (used by the generation engine) behave as on PostgreSQL.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        echo=False,  # Set to True for SQL debugging
    )

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session


# ============================================================================
# Reference Data Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def owner_company(db_session: AsyncSession) -> Company:
    """Company that owns the test site."""
    company = CompanyFactory.create(name="Acme Facilities")
    db_session.add(company)
    await db_session.commit()
    return company


@pytest_asyncio.fixture
async def contractor(db_session: AsyncSession) -> Company:
    """Company that gets assigned the recurring work."""
    company = CompanyFactory.create(name="CoolAir Services")
    db_session.add(company)
    await db_session.commit()
    return company


@pytest_asyncio.fixture
async def site(db_session: AsyncSession, owner_company: Company) -> Site:
    """Site named Plant A."""
    site = SiteFactory.create(owner_company_id=owner_company.id, name="Plant A")
    db_session.add(site)
    await db_session.commit()
    return site


@pytest_asyncio.fixture
async def contact(db_session: AsyncSession, contractor: Company) -> CompanyContact:
    """Contact working for the contractor."""
    contact = CompanyContactFactory.create(company_id=contractor.id, name="Omar Salem")
    db_session.add(contact)
    await db_session.commit()
    return contact


@pytest_asyncio.fixture
async def job_template(
    db_session: AsyncSession,
    site: Site,
    contractor: Company,
    contact: CompanyContact,
) -> JobTemplate:
    """Active job template at Plant A, 7 days estimated duration."""
    template = JobTemplateFactory.create(
        site=site,
        assigned_company_id=contractor.id,
        assigned_contact_id=contact.id,
        estimated_duration_days=7,
    )
    db_session.add(template)
    await db_session.commit()
    return template


@pytest_asyncio.fixture
async def monthly_schedule(
    db_session: AsyncSession, job_template: JobTemplate
) -> JobSchedule:
    """Monthly schedule due 2025-01-01 with no advance notice."""
    schedule = JobScheduleFactory.create(
        job_template_id=job_template.id,
        frequency_type="monthly",
        start_date=date(2025, 1, 1),
        next_due_date=date(2025, 1, 1),
        advance_notice_days=0,
    )
    db_session.add(schedule)
    await db_session.commit()
    return schedule


# ============================================================================
# HTTP Fixtures
# ============================================================================

@pytest.fixture(scope="session")
def app():
    """FastAPI application shared by the session.

    Built once: the Prometheus instrumentator registers its collectors
    on the global registry.
    """
    from api.v1.endpoints.scheduling import job_schedules
    from app import create_app

    job_schedules.limiter.enabled = False
    return create_app()


@pytest.fixture
def admin_user() -> CurrentUser:
    return CurrentUser(id=uuid4(), roles=["admin"])


@pytest_asyncio.fixture
async def raw_client(app, db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client using the test session; authentication is NOT overridden."""
    from core.database import get_session

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app, raw_client: AsyncClient, admin_user: CurrentUser) -> AsyncClient:
    """HTTP client authenticated as an administrator."""
    from core.dependencies import require_admin

    app.dependency_overrides[require_admin] = lambda: admin_user
    return raw_client
