"""
Settlement secrets from HashiCorp Vault (KV v2, AppRole login).

Every read is confined to the ``settlement/`` subtree. A missing address,
missing AppRole credentials or a failed login stops the process at startup
rather than letting it run half-configured.
"""

import os
import logging
from typing import Dict

import hvac
from hvac.exceptions import Forbidden, InvalidPath, Unauthorized, VaultError as HvacError

logger = logging.getLogger(__name__)

SECRET_ROOT = "settlement"

# Secrets that make up the notification gateway configuration
NOTIFICATION_FIELDS = ("gateway_url", "api_key", "hmac_secret")

_vault_client_instance: "VaultClient | None" = None
_secret_cache: Dict[str, str] = {}


class VaultError(PermissionError):
    """A secret could not be served: bad login, unknown path or access denied."""


class VaultClient:
    """
    Thin hvac wrapper that logs in once and reads settlement secrets.

    Connection settings default to VAULT_ADDR, VAULT_NAMESPACE,
    VAULT_ROLE_ID and VAULT_SECRET_ID.
    """

    def __init__(
        self,
        vault_addr: str | None = None,
        role_id: str | None = None,
        secret_id: str | None = None,
        namespace: str | None = None,
    ):
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        role_id = role_id or os.getenv("VAULT_ROLE_ID")
        secret_id = secret_id or os.getenv("VAULT_SECRET_ID")
        namespace = namespace or os.getenv("VAULT_NAMESPACE")

        if not self.vault_addr:
            raise ValueError("VAULT_ADDR environment variable is required")
        if not (role_id and secret_id):
            raise ValueError(
                "VAULT_ROLE_ID and VAULT_SECRET_ID environment variables are required"
            )

        self.client = hvac.Client(url=self.vault_addr, namespace=namespace)
        self._login(role_id, secret_id)
        logger.info(f"Connected to Vault at {self.vault_addr}")

    def _login(self, role_id: str, secret_id: str) -> None:
        try:
            login = self.client.auth.approle.login(role_id=role_id, secret_id=secret_id)
        except HvacError as e:
            logger.error(f"Vault AppRole login rejected: {e}")
            raise VaultError(f"AppRole login failed: {e}") from e

        self.client.token = login["auth"]["client_token"]
        if not self.client.is_authenticated():
            raise VaultError("Vault token not accepted after AppRole login")

    def read_secret(self, path: str) -> Dict[str, str]:
        """
        All fields of ``settlement/<path>``.

        Raises:
            VaultError: Path missing or not readable with this role
        """
        full_path = f"{SECRET_ROOT}/{path}"
        try:
            response = self.client.secrets.kv.v2.read_secret_version(
                path=full_path, raise_on_deleted_version=True
            )
        except InvalidPath as e:
            logger.error(f"No secret at {full_path}")
            raise VaultError(f"Secret path '{full_path}' not found in Vault") from e
        except (Unauthorized, Forbidden) as e:
            logger.error(f"Vault denied read of {full_path}: {e}")
            raise VaultError(f"Access denied to secret '{full_path}'") from e

        return response["data"]["data"]

    def get_secret(self, path: str, field: str) -> str:
        """
        One field of ``settlement/<path>``.

        Raises:
            VaultError: Path missing or not readable
            KeyError: The secret has no such field
        """
        data = self.read_secret(path)
        if field not in data:
            raise KeyError(
                f"Field '{field}' not found in secret '{SECRET_ROOT}/{path}'. "
                f"Available: {', '.join(sorted(data))}"
            )
        return data[field]


def _client() -> VaultClient:
    global _vault_client_instance
    if _vault_client_instance is None:
        _vault_client_instance = VaultClient()
    return _vault_client_instance


def _cached_secret(path: str, field: str) -> str:
    key = f"{path}/{field}"
    if key not in _secret_cache:
        _secret_cache[key] = _client().get_secret(path, field)
    return _secret_cache[key]


def get_database_url() -> str:
    """PostgreSQL DSN from ``settlement/database``."""
    return _cached_secret("database", "url")


def get_notification_config() -> Dict[str, str]:
    """Keyword arguments for NotificationGatewayClient from ``settlement/notifications``."""
    return {field: _cached_secret("notifications", field) for field in NOTIFICATION_FIELDS}


def clear_secret_cache() -> None:
    """Forget cached secrets; the next read goes back to Vault."""
    _secret_cache.clear()
