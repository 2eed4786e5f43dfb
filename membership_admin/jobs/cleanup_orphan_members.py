"""
Delete `memberships` documents whose user no longer exists in Firebase Auth.

A membership is an orphan when it has no `uid`/`userId` field at all, or when
that uid is missing from the Auth user listing. Orphans are always reported
first; they are deleted only without --dryRun.

Usage:
    python -m membership_admin.jobs.cleanup_orphan_members --serviceAccount=key.json --dryRun
    python -m membership_admin.jobs.cleanup_orphan_members --serviceAccount=key.json [--communityId=C1]

Exit codes: 0 ok, 1 failure during the run, 2 missing/invalid credentials.
"""

import logging
import os
import sys
from typing import Iterable, List, Optional, Sequence, Set

from membership_admin.config import MaintenanceOptions, build_cleanup_parser, parse_options
from membership_admin.errors import BatchAborted, CredentialsError
from membership_admin.firebase import connect
from membership_admin.models import CleanupResult, OrphanEntry
from membership_admin.services.identity import list_all_auth_uids
from membership_admin.services.membership_fields import ORPHAN_USER_FIELDS, first_present
from membership_admin.services.memberships import scan_memberships

logger = logging.getLogger("membership_admin.cleanup_orphan_members")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_BAD_CREDENTIALS = 2


def find_orphans(docs: Iterable, uids: Set[str]) -> List[OrphanEntry]:
    orphans = []
    for doc in docs:
        data = doc.to_dict() or {}
        uid = first_present(data, ORPHAN_USER_FIELDS)
        if not uid:
            orphans.append(OrphanEntry(id=doc.id, uid=None))
        elif not isinstance(uid, str) or uid not in uids:
            # A map or array uid can never match an Auth user.
            orphans.append(OrphanEntry(id=doc.id, uid=str(uid)))
    return orphans


def delete_orphans(db, collection: str, orphans: Sequence[OrphanEntry], result: CleanupResult) -> None:
    """Delete one by one, stopping at the first failure."""
    logger.info("Deleting orphan memberships...")
    for orphan in orphans:
        try:
            db.collection(collection).document(orphan.id).delete()
        except Exception as e:
            logger.error("Delete of %s failed after %d deletions", orphan.id, result.deleted)
            raise BatchAborted(f"delete of {orphan.id} failed: {e}", result) from e
        result.deleted += 1
    logger.info("Deleted: %d", result.deleted)


def cleanup_orphan_members(
    db,
    uids: Set[str],
    *,
    collection: str = "memberships",
    community_id: Optional[str] = None,
    dry_run: bool = False,
) -> CleanupResult:
    result = CleanupResult(dry_run=dry_run, auth_users=len(uids))

    logger.info("Fetching memberships...")
    docs = scan_memberships(db, collection, community_id)
    result.scanned = len(docs)

    result.orphans = find_orphans(docs, uids)
    logger.info("Orphans detected: %d", len(result.orphans))
    for orphan in result.orphans:
        logger.info(" - %s %s", orphan.id, orphan.uid)

    if not result.orphans:
        return result
    if dry_run:
        logger.info("Dry run, exiting without deletions.")
        return result

    delete_orphans(db, collection, result.orphans, result)
    return result


def run(options: MaintenanceOptions) -> CleanupResult:
    logger.info("=== Orphan membership cleanup (%s) ===", options.mode())
    with connect(options.service_account_path, require_credentials=True) as handle:
        logger.info("Fetching auth users...")
        uids = list_all_auth_uids(handle.app)
        logger.info("Auth users count: %d", len(uids))
        logger.warning(
            "Auth users and memberships are read at different times; "
            "a user created after the Auth listing will look orphaned."
        )
        return cleanup_orphan_members(
            handle.db,
            uids,
            collection=options.collection,
            community_id=options.community_id,
            dry_run=options.dry_run,
        )


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
    options = parse_options(build_cleanup_parser(), argv)

    try:
        result = run(options)
    except CredentialsError as e:
        logger.error("%s", e)
        logger.info(CleanupResult(dry_run=options.dry_run).summary())
        return EXIT_BAD_CREDENTIALS
    except BatchAborted as e:
        logger.error("Error: %s", e, exc_info=True)
        logger.info(e.result.summary())
        return EXIT_FAILURE
    except Exception as e:
        logger.error("Error: %s", e, exc_info=True)
        logger.info(CleanupResult(dry_run=options.dry_run).summary())
        return EXIT_FAILURE

    logger.info(result.summary())
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
