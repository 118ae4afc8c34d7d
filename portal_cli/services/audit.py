import logging
from typing import Any, Dict, List, Optional, Tuple

from portal_cli.db.store import KeyValueStore
from portal_cli.models import AuditEntry
from portal_cli.utils.ids import new_id, now
from portal_cli.utils.logging_config import get_logger

logger = get_logger(__name__)


class AuditLog:
    """
    Append-only history of grade changes.

    Entries are never updated or removed. When a ``trail_logger`` is given,
    each entry is also written to it, typically a dedicated audit log file.
    """

    def __init__(self, store: KeyValueStore, trail_logger: Optional[logging.Logger] = None):
        self.store = store
        self.trail_logger = trail_logger

    def get_audit_trail(self) -> List[AuditEntry]:
        return [AuditEntry.from_record(r) for r in self.store.read(AuditEntry.collection)]

    def prepare_entry(
        self,
        actor_id: str,
        actor_name: str,
        student_id: str,
        course_id: str,
        old_grade: str,
        new_grade: str,
        reason: str,
    ) -> Tuple[AuditEntry, List[Dict[str, Any]]]:
        """
        Build a new entry and the trail with it appended, without saving.

        Callers that change other collections in the same step write the
        returned trail together with them, then call ``announce``.
        """
        entry = AuditEntry(
            id=new_id(),
            ts=now(),
            actor_id=actor_id,
            actor_name=actor_name,
            student_id=student_id,
            course_id=course_id,
            old_grade=old_grade,
            new_grade=new_grade,
            reason=reason,
        )
        trail = self.store.read(AuditEntry.collection)
        trail.append(entry.to_record())
        return entry, trail

    def announce(self, entry: AuditEntry) -> None:
        message = (
            f"{entry.actor_name} ({entry.actor_id}) changed grade for student "
            f"{entry.student_id} in course {entry.course_id}: "
            f"{entry.old_grade} -> {entry.new_grade} [{entry.reason}]"
        )
        logger.debug(message)
        if self.trail_logger:
            self.trail_logger.info(message)

    def add_audit_entry(
        self,
        actor_id: str,
        actor_name: str,
        student_id: str,
        course_id: str,
        old_grade: str,
        new_grade: str,
        reason: str,
    ) -> AuditEntry:
        entry, trail = self.prepare_entry(
            actor_id, actor_name, student_id, course_id, old_grade, new_grade, reason
        )
        self.store.write(AuditEntry.collection, trail)
        self.announce(entry)
        return entry
