"""Login, registration and the persisted session.

Passwords are stored and compared in plaintext; this gate only decides
which user the UI is acting for.  The logged-in user's record (with the
password masked) is written to a small JSON file named after the
browser's session token, so that a reload of the app in that browser keeps
the user signed in without affecting other browsers.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

from .config import SESSION_DIR, SESSION_KEY
from .models import User, new_id
from .store import FinanceStore

logger = logging.getLogger(__name__)

_TOKEN_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def is_valid_token(token: Any) -> bool:
    """True for a browser token as minted by :func:`models.new_id`."""
    return isinstance(token, str) and bool(_TOKEN_PATTERN.match(token))


class SessionStorage:
    """JSON file holding one browser's logged-in user under a fixed key.

    Each browser carries its own token, and the token names the file in
    ``directory``.  Passing ``path`` pins the file explicitly.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        key: str = SESSION_KEY,
        token: Optional[str] = None,
        directory: Optional[Path] = None,
    ):
        if token is not None and not is_valid_token(token):
            raise ValueError(f"Invalid session token '{token}'")
        self.token = token or new_id()
        if path is not None:
            self.path = Path(path)
        else:
            self.path = Path(directory or SESSION_DIR) / f"session-{self.token}.json"
        self.key = key

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        try:
            with self.path.open('r', encoding='utf-8') as handle:
                data = json.load(handle)
        except (json.JSONDecodeError, OSError):
            return None
        if not isinstance(data, dict):
            return None
        record = data.get(self.key)
        return record if isinstance(record, dict) else None

    def save(self, record: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open('w', encoding='utf-8') as handle:
            json.dump({self.key: record}, handle, indent=2, sort_keys=True)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


class AuthGate:
    """Resolves the current user and keeps the session file in sync."""

    def __init__(self, store: FinanceStore, storage: Optional[SessionStorage] = None):
        self.store = store
        self.storage = storage or SessionStorage()
        self.current_user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    def login(self, email: str, password: str) -> Optional[User]:
        user = self.store.get_user_by_email(email)
        if user is None or user.password != password:
            logger.info("Rejected login for %s", email)
            return None
        return self._start_session(user)

    def register(self, email: str, password: str, name: str) -> Optional[User]:
        if self.store.get_user_by_email(email) is not None:
            logger.info("Rejected registration for existing email %s", email)
            return None
        user = self.store.create_user(email, password, name)
        return self._start_session(user)

    def logout(self) -> None:
        if self.current_user is not None:
            logger.info("Logged out %s", self.current_user.email)
        self.current_user = None
        self.storage.clear()

    def restore(self) -> Optional[User]:
        """Rehydrate the persisted user.

        Ids are minted per store, so the saved record is matched to the
        current store by email.  A record that no longer matches anyone
        is discarded.
        """
        record = self.storage.load()
        if record is None:
            return None
        try:
            saved = User.from_dict(record)
        except (KeyError, TypeError, ValueError):
            self.storage.clear()
            return None
        user = self.store.get_user_by_email(saved.email)
        if user is None:
            logger.info("Discarding saved session for unknown user %s", saved.email)
            self.storage.clear()
            return None
        return self._start_session(user)

    def require_user(self) -> User:
        if self.current_user is None:
            raise PermissionError("Not logged in")
        return self.current_user

    def _start_session(self, user: User) -> User:
        masked = user.masked()
        self.current_user = masked
        self.storage.save(masked.to_dict())
        logger.info("Session started for %s", user.email)
        return masked
