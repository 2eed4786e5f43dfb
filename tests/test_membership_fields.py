from membership_admin.services.membership_fields import (
    COMMUNITY_FIELDS,
    ORPHAN_USER_FIELDS,
    USER_FIELDS,
    canonical_membership_id,
    first_present,
)


def test_first_present_respects_priority():
    data = {"userId": "second", "uid": "first", "user_id": "third"}
    assert first_present(data, USER_FIELDS) == "first"
    assert first_present({"user_id": "third", "userId": "second"}, USER_FIELDS) == "second"
    assert first_present({"community_id": "c3"}, COMMUNITY_FIELDS) == "c3"


def test_first_present_skips_empty_values():
    assert first_present({"uid": "", "userId": "u2"}, USER_FIELDS) == "u2"
    assert first_present({"uid": None}, USER_FIELDS) is None
    assert first_present({}, USER_FIELDS) is None


def test_orphan_cleanup_ignores_user_id_snake_case():
    assert "user_id" not in ORPHAN_USER_FIELDS
    assert first_present({"user_id": "u1"}, ORPHAN_USER_FIELDS) is None


def test_canonical_membership_id_coerces_to_string():
    assert canonical_membership_id("c1", "u1") == "c1_u1"
    assert canonical_membership_id(42, "u1") == "42_u1"
