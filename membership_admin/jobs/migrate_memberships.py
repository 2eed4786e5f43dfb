"""
Migrate `memberships` documents to deterministic ids `{communityId}_{userId}`.

Only documents with both a community field (cid / communityId / community_id)
and a user field (uid / userId / user_id) are moved. The new document gets the
exact same fields. An existing target is left alone unless --overwrite is
given. Old documents are kept unless --deleteOld is given.

The target existence check and the write are two separate calls, not a
transaction: do not run two migrations against the same collection at once.

Usage:
    # dry-run (no writes)
    python -m membership_admin.jobs.migrate_memberships --dryRun

    # create new docs, keep old ones
    python -m membership_admin.jobs.migrate_memberships

    # create new docs and delete old ones
    python -m membership_admin.jobs.migrate_memberships --deleteOld
"""

import logging
import os
import sys
from typing import Optional, Sequence

from membership_admin.config import MaintenanceOptions, build_migrate_parser, parse_options
from membership_admin.errors import BatchAborted
from membership_admin.firebase import connect
from membership_admin.models import MigrationResult
from membership_admin.services.membership_fields import (
    COMMUNITY_FIELDS,
    USER_FIELDS,
    canonical_membership_id,
    first_present,
)
from membership_admin.services.memberships import scan_memberships

logger = logging.getLogger("membership_admin.migrate_memberships")

EXIT_OK = 0
EXIT_FAILURE = 1

# migrate_document outcomes
MOVED = "moved"
MISSING_FIELDS = "missing_fields"
ALREADY_CANONICAL = "already_canonical"
CONFLICT = "conflict"


def migrate_document(
    db, collection: str, doc, result: MigrationResult, *, dry_run: bool, delete_old: bool, overwrite: bool,
) -> str:
    """Move one document. `moved` and `deleted_sources` on `result` are updated as each write lands."""
    data = doc.to_dict() or {}
    cid = first_present(data, COMMUNITY_FIELDS)
    uid = first_present(data, USER_FIELDS)
    if not cid or not uid:
        logger.warning("Skipping doc %s: missing cid or uid", doc.id)
        return MISSING_FIELDS

    target_id = canonical_membership_id(cid, uid)
    if doc.id == target_id:
        return ALREADY_CANONICAL

    target_ref = db.collection(collection).document(target_id)
    if target_ref.get().exists and not overwrite:
        logger.warning("Target %s already exists. Skipping %s", target_id, doc.id)
        return CONFLICT

    logger.info("Migrating %s -> %s", doc.id, target_id)
    if dry_run:
        result.moved += 1
        return MOVED

    target_ref.set(data, merge=False)
    result.moved += 1
    if delete_old:
        try:
            db.collection(collection).document(doc.id).delete()
        except Exception:
            logger.error("Copied %s -> %s but could not delete the source", doc.id, target_id)
            raise
        result.deleted_sources += 1
    return MOVED


def migrate_memberships(
    db,
    *,
    collection: str = "memberships",
    dry_run: bool = False,
    delete_old: bool = False,
    overwrite: bool = False,
    continue_on_error: bool = False,
) -> MigrationResult:
    result = MigrationResult(dry_run=dry_run)
    docs = scan_memberships(db, collection)
    logger.info("Found %d membership docs", len(docs))

    for doc in docs:
        result.scanned += 1
        try:
            outcome = migrate_document(
                db, collection, doc, result, dry_run=dry_run, delete_old=delete_old, overwrite=overwrite,
            )
        except Exception as e:
            if not continue_on_error:
                logger.error("Migration of %s failed after %d moves", doc.id, result.moved)
                raise BatchAborted(f"migration of {doc.id} failed: {e}", result) from e
            logger.error("Failed to migrate %s: %s", doc.id, e)
            result.failed += 1
            continue

        if outcome == ALREADY_CANONICAL:
            result.already_canonical += 1
        elif outcome == CONFLICT:
            result.conflicts += 1
            result.skipped += 1
        elif outcome == MISSING_FIELDS:
            result.skipped += 1

    return result


def run(options: MaintenanceOptions) -> MigrationResult:
    logger.info("Starting memberships migration (%s)", options.mode())
    logger.info(
        "dryRun=%s deleteOld=%s overwrite=%s continueOnError=%s",
        options.dry_run, options.delete_old, options.overwrite, options.continue_on_error,
    )
    # Application Default Credentials, so authorized_user files work too.
    with connect(options.service_account_path, env_fallback=False) as handle:
        return migrate_memberships(
            handle.db,
            collection=options.collection,
            dry_run=options.dry_run,
            delete_old=options.delete_old,
            overwrite=options.overwrite,
            continue_on_error=options.continue_on_error,
        )


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
    options = parse_options(build_migrate_parser(), argv)

    try:
        result = run(options)
    except BatchAborted as e:
        logger.error("Migration failed: %s", e, exc_info=True)
        logger.info(e.result.summary())
        return EXIT_FAILURE
    except Exception as e:
        logger.error("Migration failed: %s", e, exc_info=True)
        logger.info(MigrationResult(dry_run=options.dry_run).summary())
        return EXIT_FAILURE

    logger.info(result.summary())
    if result.failed:
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
