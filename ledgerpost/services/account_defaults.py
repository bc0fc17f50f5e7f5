"""
Account default resolution

Maps semantic account roles (AccountsReceivable, DefaultRevenue, ...) to
concrete ledger accounts using the `accountdefaults` resource. Resolved
defaults are cached for a TTL; external changes become visible once it
expires, writes made through this service clear it immediately.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, Generic, Optional, TypeVar

from ledgerpost.integrations.data_service import AccountingDataClient, odata_eq
from ledgerpost.models.account_defaults import AccountDefault, AccountType, ResolvedAccount
from ledgerpost.services.errors import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

ACCOUNT_DEFAULTS_RESOURCE = "accountdefaults"


class TTLCache(Generic[T]):
    """
    Single-value cache with get-or-refresh semantics.

    Concurrent readers may both miss and both load; the last load wins. The
    loader is never called while the lock is held.
    """

    def __init__(self, ttl_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._value: Optional[T] = None
        self._expires_at: Optional[float] = None

    def get(self) -> Optional[T]:
        with self._lock:
            if self._value is None or self._expires_at is None:
                return None
            if self._clock() >= self._expires_at:
                return None
            return self._value

    def put(self, value: T) -> None:
        with self._lock:
            self._value = value
            self._expires_at = self._clock() + self.ttl_seconds

    def get_or_refresh(self, loader: Callable[[], T]) -> T:
        cached = self.get()
        if cached is not None:
            return cached
        value = loader()
        self.put(value)
        return value

    def clear(self) -> None:
        with self._lock:
            self._value = None
            self._expires_at = None


class AccountDefaultResolver:
    """Resolves account roles to ledger account ids."""

    def __init__(self, client: AccountingDataClient, cache: Optional[TTLCache] = None) -> None:
        self.client = client
        self.cache: TTLCache[Dict[AccountType, ResolvedAccount]] = cache or TTLCache()

    def get_account_defaults(self) -> Dict[AccountType, ResolvedAccount]:
        """Active defaults indexed by account type. Never raises for missing types."""
        return self.cache.get_or_refresh(self._load)

    def get_account_default(self, account_type: AccountType) -> Optional[ResolvedAccount]:
        return self.get_account_defaults().get(account_type)

    def require_account(self, account_type: AccountType) -> ResolvedAccount:
        resolved = self.get_account_default(account_type)
        if not resolved:
            raise ConfigurationError(
                f"{account_type.label} default account not configured",
                account_type=account_type.value,
            )
        return resolved

    def set_account_default(
        self,
        account_type: AccountType,
        account_id: str,
        description: Optional[str] = None,
    ) -> Dict[str, object]:
        """
        Point an account role at a ledger account.

        Updates the existing default for the role if there is one, otherwise
        creates a new active default.
        """
        self.cache.clear()

        existing = self.client.list_records(
            ACCOUNT_DEFAULTS_RESOURCE, filter=odata_eq("AccountType", account_type.value)
        )
        if existing and existing[0].get("Id"):
            default_id = existing[0]["Id"]
            self.client.update_record(
                ACCOUNT_DEFAULTS_RESOURCE,
                default_id,
                {"AccountId": account_id, "Description": description, "IsActive": True},
            )
            logger.info(f"Updated {account_type.value} default -> {account_id}")
            return {"id": default_id, "updated": True}

        created = self.client.create_record(
            ACCOUNT_DEFAULTS_RESOURCE,
            {
                "AccountType": account_type.value,
                "AccountId": account_id,
                "Description": description,
                "IsActive": True,
            },
        )
        logger.info(f"Created {account_type.value} default -> {account_id}")
        return {"id": created.get("Id"), "updated": False}

    def clear_cache(self) -> None:
        self.cache.clear()

    def _load(self) -> Dict[AccountType, ResolvedAccount]:
        resolved: Dict[AccountType, ResolvedAccount] = {}
        for row in self.client.list_records(ACCOUNT_DEFAULTS_RESOURCE):
            default = AccountDefault.model_validate(row)
            if not default.is_active or not default.account_id:
                continue
            account_type = AccountType.parse(default.account_type)
            if account_type is None:
                logger.debug(f"Ignoring unknown account type '{default.account_type}'")
                continue
            resolved[account_type] = ResolvedAccount(
                account_type=account_type,
                account_id=default.account_id,
                default_id=default.id,
                description=default.description,
            )
        logger.debug(f"Loaded {len(resolved)} active account defaults")
        return resolved
