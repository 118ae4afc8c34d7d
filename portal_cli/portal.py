import logging
from typing import Callable, Optional

from sqlalchemy.engine import Engine

from portal_cli.db.config import DEFAULT_SEMESTER, KEY_PREFIX, get_engine
from portal_cli.db.store import KeyValueStore
from portal_cli.services import (
    AcademicRegistry,
    AuditLog,
    FeedbackStore,
    IdentityService,
    MaterialsRepository,
    ProfileComposer,
    ResultsEngine,
    SessionSlot,
)


class Portal:
    """
    All portal services wired around one key-value store.

    Create one per process or session, then call ``bootstrap()`` once to
    seed a fresh store.
    """

    def __init__(
        self,
        store: KeyValueStore,
        session: Optional[SessionSlot] = None,
        redirect: Optional[Callable[[str], None]] = None,
        default_semester: str = DEFAULT_SEMESTER,
        audit_logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.identity = IdentityService(store, session, redirect)
        self.registry = AcademicRegistry(store, default_semester)
        self.audit = AuditLog(store, audit_logger)
        self.results = ResultsEngine(store, self.registry, self.audit)
        self.materials = MaterialsRepository(store, self.registry)
        self.feedback = FeedbackStore(store)
        self.profiles = ProfileComposer(store)

    @classmethod
    def open(
        cls,
        engine: Optional[Engine] = None,
        prefix: str = KEY_PREFIX,
        **kwargs,
    ) -> "Portal":
        """Build a portal on ``engine`` (the configured database by default) and bootstrap it."""
        store = KeyValueStore(engine if engine is not None else get_engine(), prefix)
        portal = cls(store, **kwargs)
        portal.bootstrap()
        return portal

    def bootstrap(self) -> bool:
        return self.identity.bootstrap()
