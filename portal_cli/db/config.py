import os
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import NullPool

load_dotenv()

DATABASE_URL = os.getenv("PORTAL_DATABASE_URL", "sqlite:///portal.db")
KEY_PREFIX = os.getenv("PORTAL_KEY_PREFIX", "noun_")
SESSION_FILE = os.getenv("PORTAL_SESSION_FILE", ".portal_session.json")
DEFAULT_SEMESTER = os.getenv("PORTAL_DEFAULT_SEMESTER", "2024/2025")

TIMEOUT_SECONDS = 30


def get_engine(url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Build the engine that backs the key-value store.

    File based SQLite databases get a NullPool so every store call opens and
    closes its own connection. In-memory SQLite keeps the default pool,
    otherwise each connection would see a fresh empty database.
    """
    url = url or DATABASE_URL
    parsed = make_url(url)

    if parsed.get_backend_name() != "sqlite":
        return create_engine(url, echo=echo, pool_pre_ping=True)

    connect_args = {"check_same_thread": False, "timeout": TIMEOUT_SECONDS}
    if parsed.database in (None, "", ":memory:"):
        return create_engine(url, connect_args=connect_args, echo=echo)

    return create_engine(
        url,
        connect_args=connect_args,
        echo=echo,
        poolclass=NullPool,
    )
