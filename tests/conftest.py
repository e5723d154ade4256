from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sales_league import config
from sales_league.achievements_store import SqlAchievementStore
from sales_league.database import init_db
from sales_league.metrics import CompanyRow, InvoiceRow

PAID = config.PAID_STATUS

# 15 June 2025, midday in Moscow
FIXED_NOW = datetime(2025, 6, 15, 9, 0, tzinfo=timezone.utc)


def make_invoice(user_id="user_a", invoice_id="inv", amount=0, status="", **extra) -> InvoiceRow:
    return InvoiceRow(user_id=user_id, invoice_id=invoice_id, invoice_amount=amount, status=status, **extra)


def make_paid(user_id="user_a", amount=100_000, purchase=80_000, paid_date="2025-06-10", invoice_id="inv", **extra) -> InvoiceRow:
    return make_invoice(
        user_id=user_id, invoice_id=invoice_id, amount=amount, status=PAID,
        purchase_amount=purchase, paid_date=paid_date, **extra,
    )


def make_companies(user_id: str, count: int, contact: str = "Контакт") -> list:
    return [
        CompanyRow(user_id=user_id, company_id=f"{user_id}-{i}", company_name=f"Company {i}", contact_name=contact)
        for i in range(count)
    ]


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return SqlAchievementStore(session_factory=session_factory)


@pytest.fixture
def companies():
    return make_companies("Иванов Иван Петрович", 120) + make_companies("Петров Пётр Сергеевич", 10)


@pytest.fixture
def invoices():
    return [
        make_paid("Иванов Иван", amount=100_000, purchase=70_000, invoice_id="1", paid_date="10.06.2025"),
        make_paid("Иванов Иван", amount=40_000, purchase=30_000, invoice_id="2", paid_date="2025-05-03"),
        make_invoice("Иванов Иван", invoice_id="3", amount=60_000, status="Отказ"),
        make_paid("Петров Пётр Сергеевич", amount=50_000, purchase=45_000, invoice_id="4", paid_date="2025-05-20"),
    ]


@pytest.fixture
def client(companies, invoices, store):
    from sales_league.main import app
    from sales_league.routers.deps import get_companies, get_invoices, get_store

    app.dependency_overrides[get_companies] = lambda: companies
    app.dependency_overrides[get_invoices] = lambda: invoices
    app.dependency_overrides[get_store] = lambda: store
    # No lifespan: tables already exist on the in-memory engine
    yield TestClient(app)
    app.dependency_overrides.clear()
