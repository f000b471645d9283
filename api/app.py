"""
Application wiring.

build_services() assembles the service graph around one PostgresClient and
subscribes notification handlers; create_app() mounts middleware, error
handlers and routers on a FastAPI app.

Production entry point (secrets from Vault):

    uvicorn api.app:create_production_app --factory
"""

import logging
import os

from fastapi import FastAPI

from api.audit import create_audit_router
from api.bookings import create_bookings_router
from api.errors import register_error_handlers
from api.meta import create_meta_router
from api.middleware import ActorMiddleware, RequestIDMiddleware
from api.quotations import create_quotations_router
from api.wallets import create_wallets_router
from clients.notification_client import NotificationGatewayClient
from clients.postgres_client import PostgresClient
from core.audit import AuditLogger
from core.config import SettlementConfig
from core.event_bus import EventBus
from core.handlers.booking_notification_handler import (
    handle_booking_cancelled,
    handle_booking_status_changed,
    handle_technician_assigned,
)
from core.handlers.quotation_notification_handler import (
    handle_quotation_created,
    handle_quotation_decided,
)
from core.handlers.wallet_notification_handler import (
    handle_payment_refunded,
    handle_wallet_credited,
)
from core.services.booking_service import BookingService
from core.services.payment_service import PaymentService
from core.services.quotation_service import QuotationService
from core.services.settlement_service import SettlementService
from core.services.user_service import UserService
from core.services.wallet_service import WalletService

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    """Root logging setup; LOG_LEVEL env var when level is not given."""
    logging.basicConfig(
        level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def register_notification_handlers(event_bus: EventBus, notifier: NotificationGatewayClient) -> None:
    """Subscribe every notification handler to its event."""
    event_bus.subscribe("TechnicianAssigned", handle_technician_assigned(notifier))
    event_bus.subscribe("BookingStatusChanged", handle_booking_status_changed(notifier))
    event_bus.subscribe("BookingCancelled", handle_booking_cancelled(notifier))
    event_bus.subscribe("QuotationCreated", handle_quotation_created(notifier))
    event_bus.subscribe("QuotationDecided", handle_quotation_decided(notifier))
    event_bus.subscribe("PaymentRefunded", handle_payment_refunded(notifier))
    event_bus.subscribe("WalletCredited", handle_wallet_credited(notifier))


def build_services(
    postgres: PostgresClient,
    notifier: NotificationGatewayClient | None = None,
    config: SettlementConfig | None = None,
    event_bus: EventBus | None = None
) -> dict:
    """
    Assemble the service graph.

    Args:
        postgres: Shared database client
        notifier: Notification gateway; notifications are skipped when None
        config: Business policy (defaults apply when None)
        event_bus: Bus to publish on (a fresh one when None)

    Returns:
        Dict of services keyed by name, as consumed by the routers
    """
    config = config or SettlementConfig()
    event_bus = event_bus or EventBus()

    if notifier is not None:
        register_notification_handlers(event_bus, notifier)
    else:
        logger.warning("No notification gateway configured; notifications disabled")

    audit = AuditLogger(postgres)
    users = UserService(postgres)
    bookings = BookingService(postgres, audit)
    quotations = QuotationService(postgres, audit)
    payments = PaymentService(postgres, audit)
    wallets = WalletService(postgres, audit, payments, users)

    settlement = SettlementService(
        postgres, audit, bookings, quotations, payments, wallets, users, event_bus, config
    )

    return {
        "audit": audit,
        "user": users,
        "booking": bookings,
        "quotation": quotations,
        "payment": payments,
        "wallet": wallets,
        "settlement": settlement,
        "event_bus": event_bus,
    }


def create_app(services: dict, config: SettlementConfig | None = None) -> FastAPI:
    """FastAPI app with actor middleware, error handlers and settlement routes."""
    config = config or SettlementConfig()

    app = FastAPI(title="Booking Settlement Admin API")

    # Last added runs first: request id is assigned before the actor check
    app.add_middleware(ActorMiddleware, admin_roles=config.admin_roles)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_meta_router())
    app.include_router(create_bookings_router(services))
    app.include_router(create_quotations_router(services))
    app.include_router(create_wallets_router(services))
    app.include_router(create_audit_router(services))

    return app


def create_production_app() -> FastAPI:
    """App wired to Vault-provided database and notification gateway."""
    from clients.vault_client import get_database_url, get_notification_config

    configure_logging()

    config = SettlementConfig()
    postgres = PostgresClient(get_database_url())
    notifier = NotificationGatewayClient(**get_notification_config())

    logger.info("Settlement API starting")
    return create_app(build_services(postgres, notifier, config), config)
