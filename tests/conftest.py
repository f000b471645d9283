"""Shared test fixtures for the settlement test suite."""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
# override=True ensures .env takes precedence over shell env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from factories import TEST_USERS

SCHEMA_PATH = Path(__file__).parent.parent / "db" / "schema.sql"


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="session")
def db_client():
    """Session-scoped PostgresClient with the schema applied.

    Database tests need Vault (VAULT_ADDR plus credentials) pointing at a
    disposable PostgreSQL database; without it they are skipped.
    """
    if not os.getenv("VAULT_ADDR"):
        pytest.skip("VAULT_ADDR not set; database tests need Vault and PostgreSQL")

    from clients.postgres_client import PostgresClient
    from clients.vault_client import get_database_url

    client = PostgresClient(get_database_url())
    client.execute(SCHEMA_PATH.read_text())
    yield client
    client.close()


@pytest.fixture
def db(db_client):
    """Clean database seeded with the standard test users."""
    db_client.execute("""
        TRUNCATE
            audit_log, wallet_transactions, wallets, quotation_line_items,
            quotations, payments, bookings, users
        CASCADE
    """)

    for user_id, role, status in TEST_USERS:
        db_client.execute(
            "INSERT INTO users (id, role, status) VALUES (%s, %s, %s)",
            (user_id, role, status)
        )

    yield db_client


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def event_bus():
    from core.event_bus import EventBus
    return EventBus()


@pytest.fixture
def published(event_bus):
    """Every event published on event_bus, in order."""
    received = []
    for event_type in (
        "BookingStatusChanged", "BookingCancelled", "TechnicianAssigned",
        "QuotationCreated", "QuotationDecided", "PaymentRefunded", "WalletCredited",
    ):
        event_bus.subscribe(event_type, received.append)
    return received


@pytest.fixture
def services(db, event_bus):
    """Real service graph on the test database, notifications disabled."""
    from api.app import build_services
    return build_services(db, notifier=None, event_bus=event_bus)


@pytest.fixture
def settlement(services):
    return services["settlement"]
