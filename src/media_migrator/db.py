from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base

from media_migrator.exceptions import DatabaseError

Base = declarative_base()


def make_engine(connection_string: str, **kwargs) -> Engine:
    try:
        return create_engine(connection_string, pool_pre_ping=True, **kwargs)
    except (SQLAlchemyError, ImportError, ValueError) as e:
        raise DatabaseError(f"Invalid database connection string: {e}") from e


def open_connection(engine: Engine) -> Connection:
    """Open the connection used for the whole run."""
    try:
        return engine.connect()
    except SQLAlchemyError as e:
        raise DatabaseError(f"Could not connect to the database: {e}") from e
