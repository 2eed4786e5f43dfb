import logging
from typing import Set

from firebase_admin import auth

logger = logging.getLogger("membership_admin.identity")

# Firebase Auth caps list_users at 1000 per page.
AUTH_PAGE_SIZE = 1000


def list_all_auth_uids(app=None, page_size: int = AUTH_PAGE_SIZE) -> Set[str]:
    """
    Collect every uid in Firebase Auth.

    Follows next_page_token until the listing is exhausted. Errors propagate:
    a partial uid set would make live users look like orphans.
    """
    uids: Set[str] = set()
    page_token = None
    pages = 0
    while True:
        page = auth.list_users(max_results=page_size, page_token=page_token, app=app)
        pages += 1
        for user in page.users:
            uids.add(user.uid)
        page_token = page.next_page_token
        if not page_token:
            break
    logger.debug("Fetched %d auth users across %d pages", len(uids), pages)
    return uids
