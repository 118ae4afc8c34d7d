def test_student_profile_id_is_the_student_id(portal, student_id):
    profile = portal.profiles.student_full_profile(student_id)
    student = portal.registry.get_student_by_id(student_id)

    assert profile.id == student_id
    assert profile.student_id == student_id
    assert profile.user_id == student.user_id != student_id
    assert profile.name == "Ada Obi"
    assert profile.username == "ada"
    assert profile.matric == "NOU100001"
    assert profile.study_center == "Main Campus"


def test_lecturer_profile_id_is_the_lecturer_id(portal):
    lecturer_id = portal.registry.add_lecturer(
        name="Dr. Bello", username="bello", password="pw", department="Physics"
    )

    profile = portal.profiles.lecturer_full_profile(lecturer_id)

    assert profile.id == lecturer_id
    assert profile.lecturer_id == lecturer_id
    assert profile.user_id != lecturer_id
    assert profile.name == "Dr. Bello"
    assert profile.department == "Physics"


def test_unknown_ids_have_no_profile(portal):
    assert portal.profiles.student_full_profile("missing") is None
    assert portal.profiles.lecturer_full_profile("missing") is None


def test_all_profiles(portal, student_id):
    portal.registry.add_student(name="Bola", username="bola", password="pw", matric="NOU100002")
    portal.registry.add_lecturer(name="Dr. Bello", username="bello", password="pw")

    students = portal.profiles.all_students_with_profiles()
    lecturers = portal.profiles.all_lecturers_with_profiles()

    assert [p.matric for p in students] == ["NOU100001", "NOU100002"]
    assert all(p.id == p.student_id for p in students)
    assert [p.name for p in lecturers] == ["Dr. Bello"]


def test_profile_without_user_keeps_role_fields(portal, student_id, store):
    store.write("users", [u for u in store.read("users") if u["username"] != "ada"])

    [profile] = portal.profiles.all_students_with_profiles()

    assert profile.id == student_id
    assert profile.name is None
    assert profile.matric == "NOU100001"
