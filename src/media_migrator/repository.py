from dataclasses import dataclass
from typing import Optional

from sqlalchemy import bindparam, select, update
from sqlalchemy.engine import Connection

from media_migrator.models import FileRecord


@dataclass(frozen=True)
class StoredFile:
    url: Optional[str]
    formats: Optional[str]


class FileRepository:
    """
    Reads and rewrites rows of ``public.files`` over one long-lived connection.

    Statements are built once and reused for every file. Each call runs in its
    own transaction, so a failure only affects the file being processed.
    """

    def __init__(self, connection: Connection):
        self.connection = connection
        self._select = select(FileRecord.url, FileRecord.formats).where(
            FileRecord.name == bindparam("record_name")
        )
        self._update = (
            update(FileRecord)
            .where(FileRecord.name == bindparam("record_name"))
            .values(url=bindparam("new_url"), formats=bindparam("new_formats"))
        )

    def find(self, name: str) -> Optional[StoredFile]:
        with self.connection.begin():
            row = self.connection.execute(self._select, {"record_name": name}).first()
        if row is None:
            return None
        return StoredFile(url=row.url, formats=row.formats)

    def update(self, name: str, url: str, formats: str) -> int:
        with self.connection.begin():
            result = self.connection.execute(
                self._update,
                {"record_name": name, "new_url": url, "new_formats": formats},
            )
        return result.rowcount

    def close(self) -> None:
        self.connection.close()
