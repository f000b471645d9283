"""API test fixtures - admin TestClient over Mock(spec=...) services."""

from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from api.app import create_app
from core.audit import AuditLogger
from core.services.settlement_service import SettlementService
from core.services.user_service import UserService
from core.services.wallet_service import WalletService
from factories import ADMIN_ID

ADMIN_HEADERS = {"X-User-Id": str(ADMIN_ID), "X-User-Role": "admin"}


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def settlement_service():
    return Mock(spec=SettlementService)


@pytest.fixture
def wallet_service():
    return Mock(spec=WalletService)


@pytest.fixture
def user_service():
    return Mock(spec=UserService)


@pytest.fixture
def audit():
    return Mock(spec=AuditLogger)


@pytest.fixture
def services(settlement_service, wallet_service, user_service, audit):
    return {
        "settlement": settlement_service,
        "wallet": wallet_service,
        "user": user_service,
        "audit": audit,
    }


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(services):
    """Production app wiring (middleware, error handlers, routes) over mocks."""
    return create_app(services)


@pytest.fixture
def client(app):
    """Client acting as an admin."""
    c = TestClient(app, raise_server_exceptions=False)
    c.headers.update(ADMIN_HEADERS)
    return c


@pytest.fixture
def anonymous_client(app):
    """Client without gateway identity headers."""
    return TestClient(app, raise_server_exceptions=False)
