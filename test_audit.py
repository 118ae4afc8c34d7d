import logging

from portal_cli.services.audit import AuditLog


def add(audit, new_grade="B", old_grade="C"):
    return audit.add_audit_entry(
        actor_id="admin_001",
        actor_name="Portal Administrator",
        student_id="s1",
        course_id="c1",
        old_grade=old_grade,
        new_grade=new_grade,
        reason="Grade updated",
    )


def test_entries_are_appended_in_order(store):
    audit = AuditLog(store)

    first = add(audit, "B")
    second = add(audit, "A", "B")

    assert audit.get_audit_trail() == [first, second]
    assert first.id != second.id


def test_persisted_keys_are_camel_case(store):
    add(AuditLog(store))

    [record] = store.read("audit_trail")
    assert set(record) == {
        "id",
        "ts",
        "actorId",
        "actorName",
        "studentId",
        "courseId",
        "oldGrade",
        "newGrade",
        "reason",
    }


def test_entries_go_to_trail_logger(store, caplog):
    trail_logger = logging.getLogger("test.audit.trail")

    with caplog.at_level(logging.INFO, logger="test.audit.trail"):
        add(AuditLog(store, trail_logger), "A", "C")

    assert "C -> A" in caplog.text
    assert "Portal Administrator" in caplog.text


def test_prepare_entry_does_not_save(store):
    audit = AuditLog(store)
    add(audit)

    entry, trail = audit.prepare_entry(
        "admin_001", "Portal Administrator", "s1", "c1", "B", "A", "Grade updated"
    )

    assert len(audit.get_audit_trail()) == 1
    assert [r["id"] for r in trail][-1] == entry.id
    assert len(trail) == 2
