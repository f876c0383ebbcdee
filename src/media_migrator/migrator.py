from dataclasses import dataclass, asdict
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError

from media_migrator.config import Settings
from media_migrator.exceptions import StorageError, TraversalError
from media_migrator.formats import parse_formats
from media_migrator.repository import FileRepository
from media_migrator.storage import ObjectStorage
from media_migrator.walker import iter_files

logger = structlog.get_logger(__name__)


class FileOutcome(str, Enum):
    UPDATED = "updated"
    MISSING = "missing"          # no record, or a record with an empty url
    QUERY_FAILED = "query_failed"
    UPLOAD_FAILED = "upload_failed"
    UPDATE_FAILED = "update_failed"
    DRY_RUN = "dry_run"


@dataclass
class MigrationStats:
    scanned: int = 0
    uploaded: int = 0
    updated: int = 0
    missing: int = 0
    failed: int = 0
    dry_run: int = 0

    def record(self, outcome: FileOutcome) -> None:
        self.scanned += 1
        if outcome == FileOutcome.UPDATED:
            self.updated += 1
        elif outcome == FileOutcome.MISSING:
            self.missing += 1
        elif outcome == FileOutcome.DRY_RUN:
            self.dry_run += 1
        else:
            self.failed += 1

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def object_key_for(root: Path, file_path: Path) -> str:
    """Bucket key of a local file: its path relative to the scan root, '/'-separated."""
    return file_path.relative_to(root).as_posix().replace("\\", "/").lstrip("/")


class Migrator:
    """
    Moves every local file that has a matching ``public.files`` row into the
    bucket and repoints the row's ``url`` and ``formats`` at it.

    Files are handled one at a time in walk order. Only a walk that cannot
    start aborts the run; every per-file problem is logged and the walk goes on.
    """

    def __init__(
        self,
        settings: Settings,
        storage: ObjectStorage,
        repository: FileRepository,
        dry_run: Optional[bool] = None,
    ):
        self.settings = settings
        self.storage = storage
        self.repository = repository
        self.dry_run = settings.DRY_RUN if dry_run is None else dry_run
        self.stats = MigrationStats()

    def run(self) -> MigrationStats:
        if not self.settings.FOLDER_PATH:
            raise TraversalError("No folder path configured")
        root = Path(self.settings.FOLDER_PATH)
        logger.info(
            "Starting migration",
            root=str(root),
            bucket=self.settings.MINIO_BUCKET,
            endpoint=self.settings.MINIO_ENDPOINT,
            dry_run=self.dry_run,
        )

        for file_path in iter_files(root):
            outcome = self.migrate_file(root, file_path)
            self.stats.record(outcome)

        logger.info("Migration complete", **self.stats.to_dict())
        return self.stats

    def migrate_file(self, root: Path, file_path: Path) -> FileOutcome:
        object_key = object_key_for(root, file_path)
        # Lookup is by base name only; same-named files in different
        # folders resolve to the same row.
        filename = file_path.name
        log = logger.bind(path=str(file_path), filename=filename)

        try:
            stored = self.repository.find(filename)
        except SQLAlchemyError as e:
            log.error("Error checking file existence in the database", error=str(e))
            return FileOutcome.QUERY_FAILED

        if stored is None or not stored.url:
            log.info("File does not exist in the database")
            return FileOutcome.MISSING

        if not self.dry_run:
            try:
                self.storage.upload(file_path, object_key)
            except StorageError as e:
                log.error("Error uploading file", key=object_key, error=str(e))
                return FileOutcome.UPLOAD_FAILED
            self.stats.uploaded += 1
            log.info("Successfully uploaded", key=object_key, bucket=self.settings.MINIO_BUCKET)

        formats, parse_error = parse_formats(stored.formats)
        if parse_error is not None:
            log.warning("Error parsing existing formats JSON", error=str(parse_error))

        formats.rewrite(object_key, self.settings.MINIO_ENDPOINT, self.settings.MINIO_BUCKET)
        try:
            formats_text = formats.to_text()
        except ValueError as e:
            log.error("Error converting updated formats to JSON", error=str(e))
            return FileOutcome.UPDATE_FAILED

        if self.dry_run:
            log.info("Dry run, skipping upload and update", key=object_key, url=formats.url, formats=formats_text)
            return FileOutcome.DRY_RUN

        try:
            rows = self.repository.update(filename, formats.url, formats_text)
        except SQLAlchemyError as e:
            log.error("Error updating the URL and formats in the database", error=str(e))
            return FileOutcome.UPDATE_FAILED

        log.info("Updated URL and formats in the database", url=formats.url, rows=rows)
        return FileOutcome.UPDATED
