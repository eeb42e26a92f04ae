"""Pytest configuration and fixtures for RentFlow tests.

Tests run against an in-memory SQLite database (aiosqlite) sharing one
connection, and a LocalDocumentStore rooted in a temporary directory.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "false")

from datetime import date, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from rentflow.auth.jwt import create_access_token
from rentflow.database import Base, get_db
from rentflow.main import app
from rentflow.models import Application, Property, TenantProfile, User, UserRole
from rentflow.services.documents import LocalDocumentStore, UploadedDocument, get_document_store

TODAY = date.today()


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    async_session = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


@pytest.fixture
def store(tmp_path) -> LocalDocumentStore:
    return LocalDocumentStore(tmp_path / "storage")


@pytest_asyncio.fixture
async def client(db_session, store) -> AsyncGenerator[AsyncClient, None]:
    """ASGI test client sharing the test session and document store."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_document_store] = lambda: store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Wizard data ──────────────────────────────────────────────────

def pdf(name: str = "document.pdf") -> UploadedDocument:
    return UploadedDocument(name, b"%PDF-1.4 test document", "application/pdf")


def jpeg(name: str = "photo.jpg") -> UploadedDocument:
    return UploadedDocument(name, b"\xff\xd8\xff\xe0 test image", "image/jpeg")


IDENTITY_PROFILE = {
    "date_of_birth": date(1990, 5, 17),
    "nationality": "CH",
    "phone_country_code": "+41",
    "phone_number": "791234567",
    "id_document_type": "passport",
    "id_number": "X1234567",
    "id_issuing_country": "CH",
    "id_expiry_date": TODAY + timedelta(days=3 * 365),
    "current_house_number": "12",
    "current_street_name": "Bahnhofstrasse",
    "current_city": "Zurich",
    "current_postal_code": "8001",
    "current_country": "CH",
    "id_document_front_path": "tenant-profiles/id_document_front/front.pdf",
    "id_document_back_path": "tenant-profiles/id_document_back/back.pdf",
}

FINANCIAL_PROFILE = {
    "employment_status": "employed",
    "employer_name": "Acme AG",
    "job_title": "Engineer",
    "monthly_income": 8000.0,
    "income_currency": "chf",
    "employment_contract_path": "tenant-profiles/employment_contract/contract.pdf",
    "payslip_1_path": "tenant-profiles/payslip_1/p1.pdf",
    "payslip_2_path": "tenant-profiles/payslip_2/p2.pdf",
    "payslip_3_path": "tenant-profiles/payslip_3/p3.pdf",
}

HISTORY_PROFILE = {
    "authorize_credit_check": True,
    "current_living_situation": "renting",
    "current_address_move_in_date": date(2020, 1, 1),
    "current_monthly_rent": 2000.0,
    "reason_for_moving": "upsizing",
}

COMPLETE_PROFILE = {**IDENTITY_PROFILE, **FINANCIAL_PROFILE, **HISTORY_PROFILE}

HOUSEHOLD = {
    "desired_move_in_date": (TODAY + timedelta(days=30)).isoformat(),
    "lease_duration_months": 12,
    "additional_occupants": 0,
    "has_pets": False,
}

CONSENT = {
    "declaration_accuracy": True,
    "consent_screening": True,
    "consent_data_processing": True,
    "consent_reference_contact": True,
    "digital_signature": "Anna Muster",
}

COMPLETE_LISTING = {
    "type": "apartment",
    "subtype": "loft",
    "house_number": "5",
    "street_name": "Seestrasse",
    "city": "Zurich",
    "postal_code": "8002",
    "country": "CH",
    "bedrooms": 2,
    "bathrooms": 1,
    "size": 75,
    "rent_amount": 2500,
    "rent_currency": "chf",
    "title": "Bright loft by the lake",
}


# ── Test Data Fixtures ───────────────────────────────────────────

@pytest_asyncio.fixture
async def tenant(db_session: AsyncSession) -> User:
    user = User(
        email="anna@example.com",
        first_name="Anna",
        last_name="Muster",
        role=UserRole.TENANT,
    )
    db_session.add(user)
    await db_session.flush()
    return user


@pytest_asyncio.fixture
async def manager(db_session: AsyncSession) -> User:
    user = User(
        email="manager@example.com",
        first_name="Max",
        last_name="Verwalter",
        role=UserRole.PROPERTY_MANAGER,
    )
    db_session.add(user)
    await db_session.flush()
    return user


@pytest_asyncio.fixture
async def listing(db_session: AsyncSession, manager: User) -> Property:
    """A published property accepting applications."""
    property = Property(
        property_manager_id=manager.id,
        status="vacant",
        visibility="unlisted",
        accepting_applications=True,
        wizard_step=8,
        **COMPLETE_LISTING,
    )
    db_session.add(property)
    await db_session.flush()
    return property


@pytest_asyncio.fixture
async def empty_profile(db_session: AsyncSession, tenant: User) -> TenantProfile:
    profile = TenantProfile(user_id=tenant.id)
    db_session.add(profile)
    await db_session.flush()
    return profile


@pytest_asyncio.fixture
async def complete_profile(db_session: AsyncSession, tenant: User) -> TenantProfile:
    profile = TenantProfile(user_id=tenant.id, **COMPLETE_PROFILE)
    db_session.add(profile)
    await db_session.flush()
    return profile


@pytest_asyncio.fixture
async def draft(db_session: AsyncSession, complete_profile: TenantProfile, listing: Property) -> Application:
    """A draft whose stored household answers are valid."""
    application = Application(
        tenant_profile_id=complete_profile.id,
        property_id=listing.id,
        status="draft",
        current_step=1,
        desired_move_in_date=TODAY + timedelta(days=30),
        lease_duration_months=12,
        additional_occupants=0,
        has_pets=False,
    )
    db_session.add(application)
    await db_session.flush()
    return application


@pytest.fixture
def tenant_headers(tenant: User) -> dict:
    token = create_access_token(user_id=tenant.id, role=tenant.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def manager_headers(manager: User) -> dict:
    token = create_access_token(user_id=manager.id, role=manager.role.value)
    return {"Authorization": f"Bearer {token}"}


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: API endpoint tests")
