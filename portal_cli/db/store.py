import json
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from portal_cli.db.config import KEY_PREFIX
from portal_cli.models import Base, KVCollection
from portal_cli.utils.logging_config import get_logger

logger = get_logger(__name__)


class KeyValueStore:
    """
    Named collections of JSON records on top of a single key/value table.

    Every collection is written as a whole; there is no per-record update and
    no locking, so the last writer of a collection wins. Content that cannot
    be decoded as a JSON array reads back as an empty collection.
    """

    def __init__(self, engine: Engine, prefix: str = KEY_PREFIX):
        self.engine = engine
        self.prefix = prefix
        self._session_factory = sessionmaker(
            bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
        )
        Base.metadata.create_all(engine)

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _session(self) -> Session:
        return self._session_factory()

    def get_item(self, key: str) -> Optional[str]:
        with self._session() as db:
            row = db.get(KVCollection, self._key(key))
            return row.value if row else None

    def set_item(self, key: str, value: str) -> None:
        with self._session() as db:
            db.merge(KVCollection(key=self._key(key), value=value))
            db.commit()

    def remove_item(self, key: str) -> None:
        with self._session() as db:
            row = db.get(KVCollection, self._key(key))
            if row:
                db.delete(row)
                db.commit()

    def read(self, key: str) -> List[Dict[str, Any]]:
        raw = self.get_item(key)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning(f"Collection '{key}' holds malformed JSON, treating it as empty")
            return []
        if not isinstance(data, list):
            logger.warning(f"Collection '{key}' is not a JSON array, treating it as empty")
            return []
        return [record for record in data if isinstance(record, dict)]

    def write(self, key: str, records: List[Dict[str, Any]]) -> None:
        self.write_many({key: records})

    def write_many(self, collections: Mapping[str, List[Dict[str, Any]]]) -> None:
        """Replace several collections in one database transaction."""
        with self._session() as db:
            for key, records in collections.items():
                db.merge(
                    KVCollection(
                        key=self._key(key),
                        value=json.dumps(list(records), ensure_ascii=False),
                    )
                )
            db.commit()
        logger.debug(f"Wrote collections: {', '.join(collections)}")
