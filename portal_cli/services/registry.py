import time
from typing import Any, List, Optional

from portal_cli.db.config import DEFAULT_SEMESTER
from portal_cli.db.store import KeyValueStore
from portal_cli.exceptions import DuplicateKeyError
from portal_cli.grade_definitions import DEFAULT_UNITS
from portal_cli.models import Course, Enrollment, Lecturer, Student, User
from portal_cli.utils.ids import new_id, now, today
from portal_cli.utils.logging_config import get_logger

logger = get_logger(__name__)

EMAIL_DOMAIN = "noun.edu.ng"
DEFAULT_STUDY_CENTER = "Main Campus"


def parse_units(units: Any) -> int:
    """Leading integer of ``units``, or the default when it is missing or not positive."""
    if isinstance(units, bool):
        return DEFAULT_UNITS
    if isinstance(units, (int, float)):
        value = int(units)
    else:
        digits = ""
        for char in str(units or "").strip():
            if not char.isdigit():
                break
            digits += char
        value = int(digits) if digits else 0
    return value if value > 0 else DEFAULT_UNITS


class AcademicRegistry:
    """Students, lecturers, courses and the enrollments that link them."""

    def __init__(self, store: KeyValueStore, default_semester: str = DEFAULT_SEMESTER):
        self.store = store
        self.default_semester = default_semester

    def _users(self) -> List[dict]:
        return self.store.read(User.collection)

    def _check_username(self, users: List[dict], username: str) -> None:
        if any(u.get("username") == username for u in users):
            raise DuplicateKeyError("username", username, "Username already exists.")

    def _new_user(
        self,
        role: str,
        name: str,
        username: str,
        password: str,
        email: Optional[str],
        phone: Optional[str],
    ) -> User:
        return User(
            id=new_id(),
            username=username,
            password=password,
            role=role,  # type: ignore[arg-type]
            name=name,
            email=email or f"{username}@{EMAIL_DOMAIN}",
            phone=phone or "",
            created_at=now(),
        )

    # Students

    def get_students(self) -> List[Student]:
        return [Student.from_record(r) for r in self.store.read(Student.collection)]

    def get_student_by_id(self, student_id: str) -> Optional[Student]:
        return next((s for s in self.get_students() if s.id == student_id), None)

    def get_student_by_user_id(self, user_id: str) -> Optional[Student]:
        return next((s for s in self.get_students() if s.user_id == user_id), None)

    def get_student_by_matric(self, matric: str) -> Optional[Student]:
        return next((s for s in self.get_students() if s.matric == matric), None)

    def add_student(
        self,
        name: str,
        username: str,
        password: str,
        matric: str,
        department: str = "",
        level: str = "",
        study_center: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> str:
        """
        Create a student account and its linked student record.

        Both uniqueness checks run before anything is written, so a
        DuplicateKeyError leaves every collection untouched.

        Returns:
            The new student id
        """
        users = self._users()
        students = self.store.read(Student.collection)
        self._check_username(users, username)
        if any(s.get("matric") == matric for s in students):
            raise DuplicateKeyError("matric", matric, "Matric number already exists.")

        user = self._new_user("student", name, username, password, email, phone)
        student = Student(
            id=new_id(),
            user_id=user.id,
            matric=matric,
            department=department,
            level=level,
            study_center=study_center or DEFAULT_STUDY_CENTER,
        )
        users.append(user.to_record())
        students.append(student.to_record())
        self.store.write_many(
            {User.collection: users, Student.collection: students}
        )
        logger.info(f"Added student {matric} ({username}) as {student.id}")
        return student.id

    # Lecturers

    def get_lecturers(self) -> List[Lecturer]:
        return [Lecturer.from_record(r) for r in self.store.read(Lecturer.collection)]

    def get_lecturer_by_id(self, lecturer_id: str) -> Optional[Lecturer]:
        return next((l for l in self.get_lecturers() if l.id == lecturer_id), None)

    def get_lecturer_by_user_id(self, user_id: str) -> Optional[Lecturer]:
        return next((l for l in self.get_lecturers() if l.user_id == user_id), None)

    def add_lecturer(
        self,
        name: str,
        username: str,
        password: str,
        department: str = "",
        staff_id: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> str:
        users = self._users()
        self._check_username(users, username)

        user = self._new_user("lecturer", name, username, password, email, phone)
        lecturer = Lecturer(
            id=new_id(),
            user_id=user.id,
            staff_id=staff_id or f"STAFF-{int(time.time() * 1000)}",
            department=department,
        )
        lecturers = self.store.read(Lecturer.collection)
        users.append(user.to_record())
        lecturers.append(lecturer.to_record())
        self.store.write_many(
            {User.collection: users, Lecturer.collection: lecturers}
        )
        logger.info(f"Added lecturer {lecturer.staff_id} ({username}) as {lecturer.id}")
        return lecturer.id

    # Courses

    def get_courses(self) -> List[Course]:
        return [Course.from_record(r) for r in self.store.read(Course.collection)]

    def get_course_by_id(self, course_id: str) -> Optional[Course]:
        return next((c for c in self.get_courses() if c.id == course_id), None)

    def get_course_by_code(self, code: str) -> Optional[Course]:
        return next((c for c in self.get_courses() if c.code == code), None)

    def get_courses_for_lecturer(self, lecturer_id: str) -> List[Course]:
        return [c for c in self.get_courses() if c.lecturer_id == lecturer_id]

    def add_course(
        self,
        code: str,
        title: str,
        units: Any = DEFAULT_UNITS,
        lecturer_id: Optional[str] = None,
    ) -> str:
        courses = self.store.read(Course.collection)
        if any(c.get("code") == code for c in courses):
            raise DuplicateKeyError("code", code, "Course code already exists.")

        course = Course(
            id=new_id(),
            code=code,
            title=title,
            units=parse_units(units),
            lecturer_id=lecturer_id or None,
        )
        courses.append(course.to_record())
        self.store.write(Course.collection, courses)
        logger.info(f"Added course {code} as {course.id}")
        return course.id

    def assign_lecturer_to_course(self, course_id: str, lecturer_id: str) -> None:
        courses = self.store.read(Course.collection)
        course = next((c for c in courses if c.get("id") == course_id), None)
        if course is None:
            logger.warning(f"Cannot assign lecturer, course {course_id} not found")
            return
        course["lecturerId"] = lecturer_id
        self.store.write(Course.collection, courses)
        logger.info(f"Assigned lecturer {lecturer_id} to course {course_id}")

    # Enrollments

    def get_enrollments(self) -> List[Enrollment]:
        return [Enrollment.from_record(r) for r in self.store.read(Enrollment.collection)]

    def get_enrollments_for_student(self, student_id: str) -> List[Enrollment]:
        return [e for e in self.get_enrollments() if e.student_id == student_id]

    def get_enrolled_courses(self, student_id: str) -> List[Course]:
        courses = {c.id: c for c in self.get_courses()}
        return [
            courses[e.course_id]
            for e in self.get_enrollments_for_student(student_id)
            if e.course_id in courses
        ]

    def prepare_enrollment(
        self, student_id: str, course_id: str, semester: Optional[str] = None
    ) -> Optional[List[dict]]:
        """
        Enrollments with the pair appended, without saving.

        Returns:
            The updated collection, or None when the student is already
            enrolled in the course
        """
        enrollments = self.store.read(Enrollment.collection)
        if any(
            e.get("studentId") == student_id and e.get("courseId") == course_id
            for e in enrollments
        ):
            return None

        enrollment = Enrollment(
            id=new_id(),
            student_id=student_id,
            course_id=course_id,
            semester=semester or self.default_semester,
            date=today(),
        )
        enrollments.append(enrollment.to_record())
        return enrollments

    def enroll(
        self, student_id: str, course_id: str, semester: Optional[str] = None
    ) -> None:
        """Enroll a student in a course; enrolling twice is a no-op."""
        enrollments = self.prepare_enrollment(student_id, course_id, semester)
        if enrollments is None:
            return
        self.store.write(Enrollment.collection, enrollments)
        logger.info(f"Enrolled student {student_id} in course {course_id}")
