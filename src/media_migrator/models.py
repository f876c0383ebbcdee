from sqlalchemy import Column, Integer, String, Text

from media_migrator.db import Base

class FileRecord(Base):
    __tablename__ = "files"
    __table_args__ = {"schema": "public"}

    id = Column(Integer, primary_key=True)

    # Lookup key, the base name of the local file
    name = Column(String(255), nullable=False, index=True)

    url = Column(Text, nullable=True)
    formats = Column(Text, nullable=True)  # JSON text, see media_migrator.formats
