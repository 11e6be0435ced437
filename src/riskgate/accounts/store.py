"""Account Status Store - Abstraction for account status persistence.

This module provides an interface for account storage backends,
decoupling decision logic from specific persistence mechanisms.

Design principles:
- Capability interface: get/set by id, nothing else
- Each implementation owns its concurrency control
- Last writer wins; no versioning, no multi-key transactions
"""

import hmac
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, Optional

import yaml

from riskgate.accounts.schemas import Account, AccountSeedFile, AccountStatus
from riskgate.common.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


class AccountStatusStore(ABC):
    """Abstract base class for account status storage backends.

    Implementations must be safe for concurrent reads and writes from
    multiple request handlers without caller-side locking.
    """

    @abstractmethod
    def get(self, user_id: str) -> Optional[AccountStatus]:
        """Return the current status, or None if the user is unknown."""

    @abstractmethod
    def set(self, user_id: str, status: AccountStatus) -> bool:
        """Overwrite the status of a known user.

        Returns:
            True if the user exists and the write was applied, False for
            unknown users (the write is a logged no-op).
        """

    @abstractmethod
    def get_account(self, user_id: str) -> Optional[Account]:
        """Return a snapshot of the account, or None if unknown."""

    def exists(self, user_id: str) -> bool:
        """Check whether the user id is provisioned."""
        return self.get(user_id) is not None

    def verify_credential(self, user_id: str, credential_secret: Optional[str]) -> bool:
        """Compare a presented credential with the stored one."""
        account = self.get_account(user_id)
        if account is None or credential_secret is None:
            return False
        return hmac.compare_digest(
            account.credential_secret.encode("utf-8"),
            credential_secret.encode("utf-8"),
        )


class InMemoryAccountStore(AccountStatusStore):
    """Thread-safe in-memory account store.

    Accounts are immutable snapshots; a status write swaps the snapshot
    under the store lock.
    """

    def __init__(self, accounts: Optional[Iterable[Account]] = None):
        self._lock = threading.RLock()
        self._accounts: Dict[str, Account] = {}
        for account in accounts or ():
            self._accounts[account.user_id] = account

    def get(self, user_id: str) -> Optional[AccountStatus]:
        with self._lock:
            account = self._accounts.get(user_id)
        return account.status if account is not None else None

    def get_account(self, user_id: str) -> Optional[Account]:
        with self._lock:
            return self._accounts.get(user_id)

    def set(self, user_id: str, status: AccountStatus) -> bool:
        with self._lock:
            account = self._accounts.get(user_id)
            if account is None:
                logger.warning(
                    "Status update ignored for unknown user",
                    extra={"user_id": user_id, "status": status.value},
                )
                return False
            self._accounts[user_id] = account.model_copy(update={"status": status})
        return True

    def add(self, account: Account) -> None:
        """Provision an account (seeding and tests)."""
        with self._lock:
            self._accounts[account.user_id] = account

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)


def load_accounts_file(path: Path) -> InMemoryAccountStore:
    """Load an in-memory store from a YAML seed file.

    Expected format::

        accounts:
          - id: user_01
            credential: "12345678"
            status: NORMAL
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(
            f"Accounts file not found: {path}", details={"path": str(path)}
        )

    with open(path, "r") as f:
        raw_config = yaml.safe_load(f) or {}

    try:
        seed = AccountSeedFile.model_validate(raw_config)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid accounts file: {path}", details={"path": str(path)}
        ) from e

    store = InMemoryAccountStore(
        Account(user_id=entry.id, credential_secret=entry.credential, status=entry.status)
        for entry in seed.accounts
    )
    logger.info(f"Loaded {len(store)} accounts from {path}")
    return store
