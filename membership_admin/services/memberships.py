import logging
import os
from typing import List, Optional

from google.cloud.firestore_v1.base_query import FieldFilter

from membership_admin.services.membership_fields import COMMUNITY_FILTER_FIELD

logger = logging.getLogger("membership_admin.memberships")

DEFAULT_COLLECTION = "memberships"


def memberships_collection_name() -> str:
    return os.environ.get("MEMBERSHIPS_COLLECTION") or DEFAULT_COLLECTION


def scan_memberships(db, collection: str = DEFAULT_COLLECTION, community_id: Optional[str] = None) -> List:
    """
    Fetch membership snapshots, optionally restricted to one community.

    The filter only matches the primary `cid` field. Records that store the
    community under a legacy name are not returned by a filtered scan.
    """
    query = db.collection(collection)
    if community_id:
        logger.info("Filtering by communityId = %s", community_id)
        query = query.where(filter=FieldFilter(COMMUNITY_FILTER_FIELD, "==", community_id))
    # Materialize before any write so deletes/moves never feed back into the scan.
    docs = list(query.stream())
    logger.info("Membership docs found: %d", len(docs))
    return docs
