import pytest

from portal_cli.exceptions import DuplicateKeyError
from portal_cli.services.registry import parse_units


def test_add_student_creates_linked_user(portal, student_id):
    student = portal.registry.get_student_by_id(student_id)
    user = portal.identity.get_user_by_id(student.user_id)

    assert student.matric == "NOU100001"
    assert student.study_center == "Main Campus"
    assert user.role == "student"
    assert user.username == "ada"
    assert user.email == "ada@noun.edu.ng"
    assert user.phone == ""
    assert portal.registry.get_student_by_user_id(user.id) == student


def test_duplicate_username_leaves_collections_unchanged(portal, student_id):
    with pytest.raises(DuplicateKeyError) as excinfo:
        portal.registry.add_student(
            name="Other", username="ada", password="x", matric="NOU100002"
        )

    assert excinfo.value.field == "username"
    assert len(portal.registry.get_students()) == 1
    assert len(portal.identity.get_users()) == 2


def test_duplicate_matric_leaves_collections_unchanged(portal, student_id):
    with pytest.raises(DuplicateKeyError) as excinfo:
        portal.registry.add_student(
            name="Other", username="other", password="x", matric="NOU100001"
        )

    assert excinfo.value.field == "matric"
    assert len(portal.registry.get_students()) == 1
    assert [u.username for u in portal.identity.get_users()] == ["admin", "ada"]


def test_duplicate_key_is_a_value_error(portal, student_id):
    with pytest.raises(ValueError, match="Username already exists."):
        portal.registry.add_lecturer(name="X", username="ada", password="x")

    assert len(portal.registry.get_lecturers()) == 0
    assert len(portal.identity.get_users()) == 2


def test_add_lecturer_generates_staff_id(portal):
    lecturer_id = portal.registry.add_lecturer(
        name="Dr. Bello", username="bello", password="pw", department="Physics"
    )

    lecturer = portal.registry.get_lecturer_by_id(lecturer_id)
    user = portal.identity.get_user_by_id(lecturer.user_id)
    assert lecturer.staff_id.startswith("STAFF-")
    assert user.role == "lecturer"
    assert portal.registry.get_lecturer_by_user_id(user.id) == lecturer


def test_add_lecturer_keeps_given_staff_id(portal):
    lecturer_id = portal.registry.add_lecturer(
        name="Dr. Bello", username="bello", password="pw", staff_id="NOUN/042"
    )

    assert portal.registry.get_lecturer_by_id(lecturer_id).staff_id == "NOUN/042"


def test_add_course_and_lookups(portal, course_id):
    course = portal.registry.get_course_by_id(course_id)

    assert course.code == "CIT101"
    assert course.units == 3
    assert course.lecturer_id is None
    assert portal.registry.get_course_by_code("CIT101") == course
    assert portal.registry.get_course_by_code("NOPE") is None


def test_duplicate_course_code(portal, course_id):
    with pytest.raises(DuplicateKeyError):
        portal.registry.add_course("CIT101", "Another", 2)

    assert len(portal.registry.get_courses()) == 1


@pytest.mark.parametrize(
    "units,expected",
    [(2, 2), ("4", 4), ("4.5", 4), ("3abc", 3), ("abc", 3), ("", 3), (None, 3), (0, 3), ("0", 3), (0.5, 3), (-1, 3)],
)
def test_parse_units(units, expected):
    assert parse_units(units) == expected


def test_zero_units_course_gets_default_units(portal):
    course_id = portal.registry.add_course("SEM000", "Seminar", "0")

    assert portal.registry.get_course_by_id(course_id).units == 3


def test_assign_lecturer_to_course(portal, course_id):
    lecturer_id = portal.registry.add_lecturer(name="L", username="l1", password="pw")

    portal.registry.assign_lecturer_to_course(course_id, lecturer_id)

    assert portal.registry.get_course_by_id(course_id).lecturer_id == lecturer_id
    assert portal.registry.get_courses_for_lecturer(lecturer_id)[0].id == course_id


def test_assign_lecturer_to_missing_course_is_noop(portal, course_id):
    portal.registry.assign_lecturer_to_course("missing", "lecturer")

    assert portal.registry.get_courses_for_lecturer("lecturer") == []


def test_enroll_is_idempotent(portal, student_id, course_id):
    for _ in range(3):
        portal.registry.enroll(student_id, course_id)

    enrollments = portal.registry.get_enrollments()
    assert len(enrollments) == 1
    assert enrollments[0].semester == "2024/2025"
    assert len(enrollments[0].date) == len("YYYY-MM-DD")


def test_enroll_with_explicit_semester(portal, student_id, course_id):
    portal.registry.enroll(student_id, course_id, "2025/2026")

    assert portal.registry.get_enrollments()[0].semester == "2025/2026"


def test_enrolled_courses_skip_missing_courses(portal, student_id, course_id):
    portal.registry.enroll(student_id, course_id)
    portal.registry.enroll(student_id, "deleted-course")

    courses = portal.registry.get_enrolled_courses(student_id)

    assert [c.id for c in courses] == [course_id]
    assert len(portal.registry.get_enrollments_for_student(student_id)) == 2


def test_returned_records_do_not_write_back(portal, course_id):
    portal.registry.get_course_by_id(course_id).title = "Changed"

    assert portal.registry.get_course_by_id(course_id).title == "Introduction to Computing"


def test_ids_are_unique(portal):
    ids = {portal.registry.add_course(f"C{i}", "T") for i in range(50)}

    assert len(ids) == 50
