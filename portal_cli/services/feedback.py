from typing import List, Optional

from portal_cli.db.store import KeyValueStore
from portal_cli.models import Feedback
from portal_cli.utils.ids import new_id, now
from portal_cli.utils.logging_config import get_logger

logger = get_logger(__name__)


class FeedbackStore:
    """Portal feedback, at most one entry per user."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def get_feedback(self) -> List[Feedback]:
        return [Feedback.from_record(r) for r in self.store.read(Feedback.collection)]

    def get_user_feedback(self, user_id: str) -> Optional[Feedback]:
        return next((f for f in self.get_feedback() if f.user_id == user_id), None)

    def submit_feedback(
        self,
        user_id: str,
        user_name: str,
        role: str,
        ease_of_use: int,
        speed: int,
        satisfaction: int,
        comments: str = "",
    ) -> Feedback:
        """
        Store a user's feedback.

        A previous entry from the same user is replaced in its position,
        new id included.
        """
        entry = Feedback(
            id=new_id(),
            user_id=user_id,
            user_name=user_name,
            role=role,
            ease_of_use=ease_of_use,
            speed=speed,
            satisfaction=satisfaction,
            comments=comments,
            submitted_at=now(),
        )
        feedback = self.store.read(Feedback.collection)
        index = next(
            (i for i, f in enumerate(feedback) if f.get("userId") == user_id), None
        )
        if index is None:
            feedback.append(entry.to_record())
        else:
            feedback[index] = entry.to_record()
        self.store.write(Feedback.collection, feedback)
        logger.info(f"Stored feedback from {user_name} ({user_id})")
        return entry
