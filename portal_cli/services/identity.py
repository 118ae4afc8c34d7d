import json
import os
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from portal_cli.db.store import KeyValueStore
from portal_cli.models import ALL_COLLECTIONS, User
from portal_cli.utils.ids import now
from portal_cli.utils.logging_config import get_logger

logger = get_logger(__name__)

BOOT_MARKER = "booted"
ENTRY_POINT = "index"

DEFAULT_ADMIN = {
    "id": "admin_001",
    "username": "admin",
    "password": "admin123",
    "role": "admin",
    "name": "Portal Administrator",
    "email": "admin@noun.edu.ng",
    "phone": "",
}


class SessionSlot(Protocol):
    """Holds the currently authenticated user, apart from the persisted collections."""

    def get(self) -> Optional[Dict[str, Any]]: ...

    def set(self, user: Dict[str, Any]) -> None: ...

    def clear(self) -> None: ...


class MemorySessionSlot:
    """Session slot that lives as long as the process."""

    def __init__(self) -> None:
        self._user: Optional[Dict[str, Any]] = None

    def get(self) -> Optional[Dict[str, Any]]:
        return dict(self._user) if self._user else None

    def set(self, user: Dict[str, Any]) -> None:
        self._user = dict(user)

    def clear(self) -> None:
        self._user = None


class FileSessionSlot:
    """
    Session slot kept in a small JSON file so a CLI login survives
    between invocations until logout removes the file.
    """

    def __init__(self, path: str):
        self.path = path

    def get(self) -> Optional[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            logger.warning(f"Unreadable session file {self.path}, ignoring it")
            return None
        return data if isinstance(data, dict) else None

    def set(self, user: Dict[str, Any]) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(user, f, ensure_ascii=False)

    def clear(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)


def _log_redirect(target: str) -> None:
    logger.info(f"Redirecting to {target}")


class IdentityService:
    def __init__(
        self,
        store: KeyValueStore,
        session: Optional[SessionSlot] = None,
        redirect: Optional[Callable[[str], None]] = None,
    ):
        self.store = store
        self.session = session if session is not None else MemorySessionSlot()
        self.redirect = redirect or _log_redirect

    def bootstrap(self) -> bool:
        """
        Seed the admin account and empty collections on the very first run.

        Returns:
            True if the store was seeded, False if it had already been booted
        """
        if self.store.get_item(BOOT_MARKER):
            return False

        seed: Dict[str, List[Dict[str, Any]]] = {key: [] for key in ALL_COLLECTIONS}
        seed[User.collection] = [{**DEFAULT_ADMIN, "createdAt": now()}]
        self.store.write_many(seed)
        self.store.set_item(BOOT_MARKER, "1")
        logger.info("Seeded portal store with the default administrator")
        return True

    def get_users(self) -> List[User]:
        return [User.from_record(r) for r in self.store.read(User.collection)]

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return next((u for u in self.get_users() if u.id == user_id), None)

    def login(self, username: str, password: str, role: str) -> Optional[User]:
        """Match all three fields exactly and start a session for the first hit."""
        user = next(
            (
                u
                for u in self.get_users()
                if u.username == username and u.password == password and u.role == role
            ),
            None,
        )
        if user is None:
            logger.info(f"Failed login for '{username}' as {role}")
            return None
        self.start_session(user)
        logger.info(f"User '{username}' logged in as {role}")
        return user

    def start_session(self, user: User) -> None:
        self.session.set(user.to_record())

    def current_session(self) -> Optional[User]:
        data = self.session.get()
        return User.from_record(data) if data else None

    def require_auth(self, allowed_roles: Sequence[str] = ()) -> Optional[User]:
        """
        Guard for role restricted operations.

        Redirects to the entry point and returns None when nobody is logged in,
        or when ``allowed_roles`` is non-empty and excludes the session role.
        """
        user = self.current_session()
        if user is None:
            self.redirect(ENTRY_POINT)
            return None
        if allowed_roles and user.role not in allowed_roles:
            self.redirect(ENTRY_POINT)
            return None
        return user

    def logout(self) -> None:
        self.session.clear()
        self.redirect(ENTRY_POINT)
