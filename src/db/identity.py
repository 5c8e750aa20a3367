# registered accounts and the single active session
from __future__ import annotations

from typing import List, Optional

from db.database import CURRENT_USER, USERS, KeyValueStore
from db.models import ROLES, Account, new_id, now
from utils.logger import get_logger

_logger = get_logger(__name__)


class IdentityStore:
    """
    Owns the `users` collection and the `currentUser` session slot.

    Register and login report expected failures (taken email, bad
    credentials) by returning None rather than raising.
    """

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv
        self._current: Optional[Account] = None

    @property
    def current_user(self) -> Optional[Account]:
        return self._current

    @property
    def is_authenticated(self) -> bool:
        return self._current is not None

    @property
    def is_admin(self) -> bool:
        return self._current is not None and self._current.is_admin

    # ---------------------------
    # Auth & Registration
    # ---------------------------

    async def register(
        self, email: str, password: str, name: str, role: str = "user"
    ) -> Optional[Account]:
        """
        Create an account and make it the session.
        Returns None if an account with this email already exists.
        """
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role!r}")

        async with self._kv.transaction() as tx:
            users = await tx.get(USERS, [])
            if any(u["email"] == email for u in users):
                _logger.info(f"Registration refused, email taken: {email}")
                return None

            account = Account(
                id=new_id(),
                email=email,
                password=password,
                name=name,
                role=role,
                created_at=now(),
            )
            users.append(account.to_dict())
            await tx.set(USERS, users)
            await tx.set(CURRENT_USER, account.to_dict())

        self._current = account
        _logger.info(f"Registered {role} account {account.id} ({email})")
        return account

    async def login(self, email: str, password: str) -> Optional[Account]:
        """Return the Account if email and password both match exactly; otherwise None."""
        users = await self._kv.get(USERS, [])
        match = next(
            (u for u in users if u["email"] == email and u["password"] == password),
            None,
        )
        if match is None:
            _logger.info(f"Failed login for {email}")
            return None

        account = Account.from_dict(match)
        async with self._kv.transaction() as tx:
            await tx.set(CURRENT_USER, account.to_dict())
        self._current = account
        _logger.info(f"Login {account.id} ({email})")
        return account

    async def logout(self) -> None:
        async with self._kv.transaction() as tx:
            await tx.delete(CURRENT_USER)
        if self._current:
            _logger.info(f"Logout {self._current.id}")
        self._current = None

    async def restore_session(self) -> Optional[Account]:
        """Reload the persisted session, trusting it without checking credentials."""
        data = await self._kv.get(CURRENT_USER)
        self._current = Account.from_dict(data) if data else None
        if self._current:
            _logger.debug(f"Restored session for {self._current.id}")
        return self._current

    # ---------------------------
    # Lookups
    # ---------------------------

    async def list_accounts(self) -> List[Account]:
        return [Account.from_dict(u) for u in await self._kv.get(USERS, [])]

    async def get_account(self, account_id: str) -> Optional[Account]:
        for account in await self.list_accounts():
            if account.id == account_id:
                return account
        return None
