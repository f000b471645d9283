# Infrastructure clients
from clients.vault_client import (
    VaultClient,
    VaultError,
    get_database_url,
    get_notification_config,
    clear_secret_cache,
)
from clients.postgres_client import PostgresClient, Transaction, LockConflictError
from clients.notification_client import (
    NotificationGatewayClient,
    NotificationGatewayError,
    NotificationType,
)
