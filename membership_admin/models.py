from typing import List, Optional

from pydantic import BaseModel, Field


class OrphanEntry(BaseModel):
    id: str
    uid: Optional[str] = None  # None when the record carries no user field


class CleanupResult(BaseModel):
    dry_run: bool = False
    auth_users: int = 0
    scanned: int = 0
    orphans: List[OrphanEntry] = Field(default_factory=list)
    deleted: int = 0

    def summary(self) -> str:
        return f"Done. scanned={self.scanned} deleted={self.deleted}"


class MigrationResult(BaseModel):
    dry_run: bool = False
    scanned: int = 0
    moved: int = 0  # "would move" in dry run
    skipped: int = 0  # missing fields + conflicts
    conflicts: int = 0
    already_canonical: int = 0
    deleted_sources: int = 0
    failed: int = 0  # only with continue_on_error

    def summary(self) -> str:
        line = f"Done. moved={self.moved} skipped={self.skipped}"
        if self.failed:
            line += f" failed={self.failed}"
        return line
