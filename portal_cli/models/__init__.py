import base64
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, ClassVar, Dict, Literal, Optional, Type, TypeVar

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class KVCollection(Base):
    """One named collection, stored as the JSON text of a list of records."""

    __tablename__ = "kv_collections"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.now, onupdate=datetime.now
    )

    def __repr__(self) -> str:
        return f"<KVCollection key={self.key!r} size={len(self.value or '')}>"


UserRole = Literal["admin", "student", "lecturer"]
GradeType = Literal["A", "B", "C", "D", "F"]

NO_PREVIOUS_GRADE = "—"

R = TypeVar("R", bound="Record")


def json_field(key: str, default: Any = None) -> Any:
    """Dataclass field persisted under the camelCase ``key``."""
    return field(default=default, metadata={"key": key})


@dataclass
class Record:
    """
    Base for every persisted record.

    Attributes are snake_case; the persisted JSON keys come from the
    ``key`` metadata of each field, falling back to the attribute name.
    Missing keys load as the field default so older data stays readable.
    """

    collection: ClassVar[str] = ""

    @classmethod
    def from_record(cls: Type[R], data: Dict[str, Any]) -> R:
        kwargs = {}
        for f in fields(cls):
            key = f.metadata.get("key", f.name)
            if key in data:
                kwargs[f.name] = data[key]
        return cls(**kwargs)

    def to_record(self) -> Dict[str, Any]:
        return {f.metadata.get("key", f.name): getattr(self, f.name) for f in fields(self)}


@dataclass
class User(Record):
    collection: ClassVar[str] = "users"

    id: str = json_field("id", "")
    username: str = json_field("username", "")
    password: str = json_field("password", "")
    role: UserRole = json_field("role", "student")
    name: str = json_field("name", "")
    email: str = json_field("email", "")
    phone: str = json_field("phone", "")
    created_at: str = json_field("createdAt", "")

    def __repr__(self) -> str:
        return f"<User id={self.id!r} username={self.username!r} role={self.role!r}>"


@dataclass
class Student(Record):
    collection: ClassVar[str] = "students"

    id: str = json_field("id", "")
    user_id: str = json_field("userId", "")
    matric: str = json_field("matric", "")
    department: str = json_field("department", "")
    level: str = json_field("level", "")
    study_center: str = json_field("studyCenter", "")


@dataclass
class Lecturer(Record):
    collection: ClassVar[str] = "lecturers"

    id: str = json_field("id", "")
    user_id: str = json_field("userId", "")
    staff_id: str = json_field("staffId", "")
    department: str = json_field("department", "")


@dataclass
class Course(Record):
    collection: ClassVar[str] = "courses"

    id: str = json_field("id", "")
    code: str = json_field("code", "")
    title: str = json_field("title", "")
    units: int = json_field("units", 3)
    lecturer_id: Optional[str] = json_field("lecturerId", None)

    def __repr__(self) -> str:
        return f"Course(id={self.id!r}, code={self.code!r}, title={self.title!r})"


@dataclass
class Enrollment(Record):
    collection: ClassVar[str] = "enrollments"

    id: str = json_field("id", "")
    student_id: str = json_field("studentId", "")
    course_id: str = json_field("courseId", "")
    semester: str = json_field("semester", "")
    date: str = json_field("date", "")


@dataclass
class Result(Record):
    collection: ClassVar[str] = "results"

    id: str = json_field("id", "")
    student_id: str = json_field("studentId", "")
    course_id: str = json_field("courseId", "")
    score: float = json_field("score", 0)
    grade: str = json_field("grade", "F")
    semester: str = json_field("semester", "")
    updated_at: str = json_field("updatedAt", "")
    updated_by: str = json_field("updatedBy", "")


@dataclass
class Material(Record):
    collection: ClassVar[str] = "materials"

    id: str = json_field("id", "")
    course_id: str = json_field("courseId", "")
    title: str = json_field("title", "")
    type: str = json_field("type", "")
    filename: str = json_field("filename", "")
    data: str = json_field("data", "")
    size: int = json_field("size", 0)
    uploaded_by: str = json_field("uploadedBy", "")
    uploader_name: str = json_field("uploaderName", "")
    uploaded_at: str = json_field("uploadedAt", "")

    def payload(self) -> bytes:
        """Decode the base64 ``data`` field back into the uploaded bytes."""
        return base64.b64decode(self.data or "")

    def __repr__(self) -> str:
        return f"Material(id={self.id!r}, course_id={self.course_id!r}, filename={self.filename!r})"


@dataclass
class AuditEntry(Record):
    collection: ClassVar[str] = "audit_trail"

    id: str = json_field("id", "")
    ts: str = json_field("ts", "")
    actor_id: str = json_field("actorId", "")
    actor_name: str = json_field("actorName", "")
    student_id: str = json_field("studentId", "")
    course_id: str = json_field("courseId", "")
    old_grade: str = json_field("oldGrade", NO_PREVIOUS_GRADE)
    new_grade: str = json_field("newGrade", "")
    reason: str = json_field("reason", "")


@dataclass
class Feedback(Record):
    collection: ClassVar[str] = "feedback"

    id: str = json_field("id", "")
    user_id: str = json_field("userId", "")
    user_name: str = json_field("userName", "")
    role: str = json_field("role", "")
    ease_of_use: int = json_field("easeOfUse", 0)
    speed: int = json_field("speed", 0)
    satisfaction: int = json_field("satisfaction", 0)
    comments: str = json_field("comments", "")
    submitted_at: str = json_field("submittedAt", "")


@dataclass
class StudentProfile:
    """A student joined with its user account. ``id`` is the student id."""

    id: str
    student_id: str
    user_id: str
    username: Optional[str]
    role: Optional[str]
    name: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    created_at: Optional[str]
    matric: str
    department: str
    level: str
    study_center: str


@dataclass
class LecturerProfile:
    """A lecturer joined with its user account. ``id`` is the lecturer id."""

    id: str
    lecturer_id: str
    user_id: str
    username: Optional[str]
    role: Optional[str]
    name: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    created_at: Optional[str]
    staff_id: str
    department: str


ALL_COLLECTIONS = [
    User.collection,
    Student.collection,
    Lecturer.collection,
    Course.collection,
    Enrollment.collection,
    Result.collection,
    Material.collection,
    AuditEntry.collection,
    Feedback.collection,
]
