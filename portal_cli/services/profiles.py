from typing import List, Optional

from portal_cli.db.store import KeyValueStore
from portal_cli.models import Lecturer, LecturerProfile, Student, StudentProfile, User


def build_student_profile(student: Student, user: Optional[User]) -> StudentProfile:
    """Join a student with its user; the student id is the profile ``id``."""
    return StudentProfile(
        id=student.id,
        student_id=student.id,
        user_id=student.user_id,
        username=user.username if user else None,
        role=user.role if user else None,
        name=user.name if user else None,
        email=user.email if user else None,
        phone=user.phone if user else None,
        created_at=user.created_at if user else None,
        matric=student.matric,
        department=student.department,
        level=student.level,
        study_center=student.study_center,
    )


def build_lecturer_profile(lecturer: Lecturer, user: Optional[User]) -> LecturerProfile:
    """Join a lecturer with its user; the lecturer id is the profile ``id``."""
    return LecturerProfile(
        id=lecturer.id,
        lecturer_id=lecturer.id,
        user_id=lecturer.user_id,
        username=user.username if user else None,
        role=user.role if user else None,
        name=user.name if user else None,
        email=user.email if user else None,
        phone=user.phone if user else None,
        created_at=user.created_at if user else None,
        staff_id=lecturer.staff_id,
        department=lecturer.department,
    )


class ProfileComposer:
    def __init__(self, store: KeyValueStore):
        self.store = store

    def _users_by_id(self) -> dict:
        users = (User.from_record(r) for r in self.store.read(User.collection))
        return {u.id: u for u in users}

    def _students(self) -> List[Student]:
        return [Student.from_record(r) for r in self.store.read(Student.collection)]

    def _lecturers(self) -> List[Lecturer]:
        return [Lecturer.from_record(r) for r in self.store.read(Lecturer.collection)]

    def student_full_profile(self, student_id: str) -> Optional[StudentProfile]:
        student = next((s for s in self._students() if s.id == student_id), None)
        if student is None:
            return None
        return build_student_profile(student, self._users_by_id().get(student.user_id))

    def lecturer_full_profile(self, lecturer_id: str) -> Optional[LecturerProfile]:
        lecturer = next((l for l in self._lecturers() if l.id == lecturer_id), None)
        if lecturer is None:
            return None
        return build_lecturer_profile(lecturer, self._users_by_id().get(lecturer.user_id))

    def all_students_with_profiles(self) -> List[StudentProfile]:
        users = self._users_by_id()
        return [build_student_profile(s, users.get(s.user_id)) for s in self._students()]

    def all_lecturers_with_profiles(self) -> List[LecturerProfile]:
        users = self._users_by_id()
        return [build_lecturer_profile(l, users.get(l.user_id)) for l in self._lecturers()]
