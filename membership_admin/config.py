import argparse
from typing import Optional, Sequence

from pydantic import BaseModel, field_validator

from membership_admin.services.memberships import memberships_collection_name


class MaintenanceOptions(BaseModel):
    """Parsed command line for either maintenance tool."""

    service_account_path: Optional[str] = None
    community_id: Optional[str] = None
    dry_run: bool = False
    delete_old: bool = False
    overwrite: bool = False
    continue_on_error: bool = False
    collection: str = "memberships"

    @field_validator("community_id", "service_account_path")
    @classmethod
    def _reject_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("collection")
    @classmethod
    def _collection_name(cls, v):
        if not v or "/" in v:
            raise ValueError("collection must be a top-level collection name")
        return v

    def mode(self) -> str:
        return "DRY RUN" if self.dry_run else "EXECUTE"


def _base_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--dryRun", dest="dry_run", action="store_true",
                        help="Report what would change without writing anything")
    parser.add_argument("--collection", default=memberships_collection_name(),
                        help="Memberships collection (default: $MEMBERSHIPS_COLLECTION or memberships)")
    return parser


def build_cleanup_parser() -> argparse.ArgumentParser:
    parser = _base_parser("Delete memberships whose uid no longer exists in Firebase Auth")
    parser.add_argument("--serviceAccount", dest="service_account_path",
                        help="Service account key JSON (default: $GOOGLE_APPLICATION_CREDENTIALS)")
    parser.add_argument("--communityId", dest="community_id",
                        help="Only scan memberships with this cid")
    return parser


def build_migrate_parser() -> argparse.ArgumentParser:
    parser = _base_parser("Move memberships to deterministic {communityId}_{userId} document ids")
    parser.add_argument("--deleteOld", dest="delete_old", action="store_true",
                        help="Delete the source document after it has been copied")
    parser.add_argument("--overwrite", action="store_true",
                        help="Replace an existing document at the target id")
    parser.add_argument("--continueOnError", dest="continue_on_error", action="store_true",
                        help="Log and count failing records instead of stopping the run")
    return parser


def parse_options(parser: argparse.ArgumentParser, argv: Optional[Sequence[str]] = None) -> MaintenanceOptions:
    args = parser.parse_args(argv)
    try:
        return MaintenanceOptions(**vars(args))
    except ValueError as e:
        parser.error(str(e))
