from typing import List, Optional

from portal_cli.db.store import KeyValueStore
from portal_cli.grade_definitions import (
    DEFAULT_UNITS,
    calculate_gpa,
    format_gpa,
    score_to_grade,
)
from portal_cli.models import NO_PREVIOUS_GRADE, AuditEntry, Enrollment, Result, User
from portal_cli.services.audit import AuditLog
from portal_cli.services.registry import AcademicRegistry
from portal_cli.utils.ids import new_id, now
from portal_cli.utils.logging_config import get_logger

logger = get_logger(__name__)

REASON_UPDATED = "Grade updated"
REASON_ENTERED = "Result entered"


class ResultsEngine:
    def __init__(self, store: KeyValueStore, registry: AcademicRegistry, audit: AuditLog):
        self.store = store
        self.registry = registry
        self.audit = audit

    def get_results(self) -> List[Result]:
        return [Result.from_record(r) for r in self.store.read(Result.collection)]

    def get_results_for_student(self, student_id: str) -> List[Result]:
        return [r for r in self.get_results() if r.student_id == student_id]

    def get_result_for_student_course(
        self, student_id: str, course_id: str
    ) -> Optional[Result]:
        return next(
            (
                r
                for r in self.get_results()
                if r.student_id == student_id and r.course_id == course_id
            ),
            None,
        )

    def upsert_result(
        self, student_id: str, course_id: str, score: float, actor: User
    ) -> Result:
        """
        Record a score for a student in a course and audit the change.

        An existing result is overwritten in place and audited as
        "Grade updated" with its previous grade. A first result also enrolls
        the student in the course, so every graded student is enrolled, and
        is audited as "Result entered" with no previous grade.

        The result, any new enrollment and the audit entry are saved in one
        ``write_many`` call, so either all of them land or none do.
        Every call writes an audit entry, even when the grade does not change.
        """
        results = self.store.read(Result.collection)
        existing = next(
            (
                r
                for r in results
                if r.get("studentId") == student_id and r.get("courseId") == course_id
            ),
            None,
        )
        new_grade = score_to_grade(score)
        timestamp = now()

        if existing is not None:
            old_grade = existing.get("grade", NO_PREVIOUS_GRADE)
            existing.update(
                {
                    "score": score,
                    "grade": new_grade,
                    "updatedAt": timestamp,
                    "updatedBy": actor.name,
                }
            )
            entry, trail = self.audit.prepare_entry(
                actor_id=actor.id,
                actor_name=actor.name,
                student_id=student_id,
                course_id=course_id,
                old_grade=old_grade,
                new_grade=new_grade,
                reason=REASON_UPDATED,
            )
            self.store.write_many(
                {Result.collection: results, AuditEntry.collection: trail}
            )
            self.audit.announce(entry)
            logger.info(
                f"Updated result for {student_id} in {course_id}: {old_grade} -> {new_grade}"
            )
            return Result.from_record(existing)

        result = Result(
            id=new_id(),
            student_id=student_id,
            course_id=course_id,
            score=score,
            grade=new_grade,
            semester=self.registry.default_semester,
            updated_at=timestamp,
            updated_by=actor.name,
        )
        results.append(result.to_record())
        entry, trail = self.audit.prepare_entry(
            actor_id=actor.id,
            actor_name=actor.name,
            student_id=student_id,
            course_id=course_id,
            old_grade=NO_PREVIOUS_GRADE,
            new_grade=new_grade,
            reason=REASON_ENTERED,
        )
        collections = {Result.collection: results, AuditEntry.collection: trail}
        enrollments = self.registry.prepare_enrollment(student_id, course_id)
        if enrollments is not None:
            collections[Enrollment.collection] = enrollments

        self.store.write_many(collections)
        self.audit.announce(entry)
        if enrollments is not None:
            logger.info(f"Enrolled student {student_id} in course {course_id}")
        logger.info(f"Entered result for {student_id} in {course_id}: {new_grade}")
        return result

    def calc_gpa(self, student_id: str) -> str:
        """
        Units-weighted GPA over all of a student's results, as "0.00" text.

        A result whose course no longer exists counts with the default units.
        """
        results = self.get_results_for_student(student_id)
        if not results:
            return format_gpa(0.0)

        units = {c.id: c.units for c in self.registry.get_courses()}
        return format_gpa(
            calculate_gpa(
                (r.grade, units.get(r.course_id, DEFAULT_UNITS)) for r in results
            )
        )
