from portal_cli.models import ALL_COLLECTIONS, User
from portal_cli.portal import Portal
from portal_cli.services.identity import BOOT_MARKER, FileSessionSlot, MemorySessionSlot


def test_bootstrap_seeds_admin_and_empty_collections(store):
    portal = Portal(store)

    assert portal.bootstrap() is True

    users = portal.identity.get_users()
    assert [u.username for u in users] == ["admin"]
    assert users[0].id == "admin_001"
    assert users[0].role == "admin"
    for key in ALL_COLLECTIONS:
        assert store.get_item(key) is not None
    assert store.get_item(BOOT_MARKER) == "1"


def test_bootstrap_is_idempotent(portal, student_id):
    assert portal.bootstrap() is False
    assert len(portal.identity.get_users()) == 2
    assert portal.registry.get_student_by_id(student_id) is not None


def test_login_with_seeded_admin(portal):
    user = portal.identity.login("admin", "admin123", "admin")

    assert user is not None
    assert user.name == "Portal Administrator"
    assert portal.identity.current_session() == user


def test_login_rejects_wrong_password(portal):
    assert portal.identity.login("admin", "wrong", "admin") is None
    assert portal.identity.current_session() is None


def test_login_requires_matching_role(portal):
    assert portal.identity.login("admin", "admin123", "student") is None


def test_require_auth_without_session_redirects(portal, redirects):
    assert portal.identity.require_auth() is None
    assert redirects == ["index"]


def test_require_auth_with_wrong_role_redirects(portal, redirects):
    portal.identity.login("admin", "admin123", "admin")

    assert portal.identity.require_auth(["student", "lecturer"]) is None
    assert redirects == ["index"]


def test_require_auth_allows_listed_role(portal, redirects):
    portal.identity.login("admin", "admin123", "admin")

    user = portal.identity.require_auth(["admin"])

    assert user is not None and user.username == "admin"
    assert redirects == []


def test_require_auth_with_no_roles_accepts_any_session(portal, student_id):
    user = portal.identity.login("ada", "pw", "student")

    assert portal.identity.require_auth() == user


def test_logout_clears_session_and_redirects(portal, redirects):
    portal.identity.login("admin", "admin123", "admin")

    portal.identity.logout()

    assert portal.identity.current_session() is None
    assert redirects == ["index"]


def test_session_is_separate_from_store(store):
    first = Portal(store, session=MemorySessionSlot())
    first.bootstrap()
    first.identity.login("admin", "admin123", "admin")

    second = Portal(store, session=MemorySessionSlot())

    assert second.identity.current_session() is None


def test_file_session_slot_round_trip(tmp_path):
    slot = FileSessionSlot(str(tmp_path / "session.json"))
    user = User(id="u1", username="ada", role="student", name="Ada")

    slot.set(user.to_record())

    assert User.from_record(slot.get()) == user
    slot.clear()
    assert slot.get() is None


def test_corrupt_session_file_is_ignored(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("not json", encoding="utf-8")

    assert FileSessionSlot(str(path)).get() is None


def test_open_bootstraps_the_store(engine):
    portal = Portal.open(engine, prefix="open_")

    assert portal.identity.login("admin", "admin123", "admin") is not None
    assert Portal.open(engine, prefix="open_").bootstrap() is False
