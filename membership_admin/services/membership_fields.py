"""
Legacy field names on `memberships` documents.

Older clients wrote the community and user references under different
attribute names. Each tuple below lists the accepted names for one logical
value, highest priority first. Add new legacy names here, not at call sites.
"""

from typing import Any, Iterable, Optional

COMMUNITY_FIELDS = ("cid", "communityId", "community_id")
USER_FIELDS = ("uid", "userId", "user_id")

# Orphan cleanup has only ever recognised the first two user field names;
# records keyed by `user_id` alone are reported as missing a user.
ORPHAN_USER_FIELDS = USER_FIELDS[:2]

# The community filter queries this field only.
COMMUNITY_FILTER_FIELD = COMMUNITY_FIELDS[0]


def first_present(data: dict, names: Iterable[str]) -> Optional[Any]:
    """Return the first truthy value among `names`, or None."""
    for name in names:
        value = data.get(name)
        if value:
            return value
    return None


def canonical_membership_id(community_id: Any, user_id: Any) -> str:
    return f"{community_id}_{user_id}"
