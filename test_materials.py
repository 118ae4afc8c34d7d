from portal_cli.services.materials import encode_payload


def upload(portal, admin, course_id, filename="notes.pdf", content=b"%PDF-1.4 notes"):
    return portal.materials.upload_material(
        course_id=course_id,
        title="Week 1 notes",
        type="pdf",
        filename=filename,
        data=encode_payload(content),
        size=len(content),
        uploaded_by=admin,
    )


def test_upload_tags_uploader(portal, admin, course_id):
    material = upload(portal, admin, course_id)

    stored = portal.materials.get_materials_for_course(course_id)
    assert stored == [material]
    assert material.uploaded_by == "admin_001"
    assert material.uploader_name == "Portal Administrator"
    assert len(material.uploaded_at) == len("YYYY-MM-DD HH:MM:SS")
    assert stored[0].payload() == b"%PDF-1.4 notes"


def test_student_sees_only_enrolled_course_materials(portal, admin, student_id, course_id):
    other_course = portal.registry.add_course("CIT102", "Programming", 2)
    upload(portal, admin, course_id, "a.pdf")
    upload(portal, admin, other_course, "b.pdf")

    assert portal.materials.get_materials_for_student(student_id) == []

    portal.registry.enroll(student_id, course_id)

    visible = portal.materials.get_materials_for_student(student_id)
    assert [m.filename for m in visible] == ["a.pdf"]


def test_delete_material(portal, admin, course_id):
    keep = upload(portal, admin, course_id, "keep.pdf")
    drop = upload(portal, admin, course_id, "drop.pdf")

    portal.materials.delete_material(drop.id)

    assert portal.materials.get_materials() == [keep]


def test_delete_unknown_material_is_harmless(portal, admin, course_id):
    upload(portal, admin, course_id)

    portal.materials.delete_material("missing")

    assert len(portal.materials.get_materials()) == 1
