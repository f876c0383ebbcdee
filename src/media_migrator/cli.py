import argparse
import sys
from typing import List, Optional

import structlog
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from media_migrator import __version__
from media_migrator.config import Settings, load_settings
from media_migrator.db import make_engine, open_connection
from media_migrator.exceptions import ConfigurationError, MigrationError
from media_migrator.logging_config import configure_logging
from media_migrator.migrator import MigrationStats, Migrator
from media_migrator.repository import FileRepository
from media_migrator.storage import ObjectStorage

logger = structlog.get_logger(__name__)

# --- THEME CONFIGURATION ---
custom_theme = Theme({
    "brand": "bold blue",
    "status.success": "green",
    "status.warning": "yellow",
    "status.error": "red",
    "muted": "dim white",
})

# Summary goes to stderr so stdout stays free for piping
IS_TTY = sys.stderr.isatty()
console = Console(theme=custom_theme, stderr=True, no_color=not IS_TTY)

PROGRAM_DESCRIPTION = """
Media Migrator - move local media files into MinIO / S3

Walks a folder, uploads every file that has a matching row in public.files
and repoints the row's url and formats at the bucket.

Every option can also be set through the environment or a .env file
(MINIO_ENDPOINT, MINIO_ACCESS_KEY, MINIO_SECRET_KEY, MINIO_BUCKET,
FOLDER_PATH, PG_CONNECTION_STRING, ...).
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="media-migrator",
        description=PROGRAM_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    # Defaults live in Settings; None means "use the environment / default"
    parser.add_argument("--minioEndpoint", dest="MINIO_ENDPOINT", help="Minio server endpoint (host:port)")
    parser.add_argument("--minioAccessKey", dest="MINIO_ACCESS_KEY", help="Minio access key")
    parser.add_argument("--minioSecretKey", dest="MINIO_SECRET_KEY", help="Minio secret key")
    parser.add_argument("--minioBucket", dest="MINIO_BUCKET", help="Minio bucket name")
    parser.add_argument("--folderPath", dest="FOLDER_PATH", help="Path to the folder to upload")
    parser.add_argument("--pgConnectionString", dest="PG_CONNECTION_STRING", help="PostgreSQL connection string")
    parser.add_argument(
        "--secure",
        dest="MINIO_SECURE",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Talk to Minio over TLS (public URLs are always https)"
    )
    parser.add_argument("--region", dest="MINIO_REGION", help="Region name passed to the S3 client")
    parser.add_argument(
        "--dry-run",
        dest="DRY_RUN",
        action="store_true",
        default=None,
        help="Look up records and compute new URLs without uploading or writing"
    )
    parser.add_argument("--log-level", dest="LOG_LEVEL", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--json-logs", dest="LOG_JSON", action="store_true", default=None, help="Emit JSON log lines")
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    return parser


def configure_settings(args: argparse.Namespace) -> Settings:
    try:
        return load_settings(**vars(args))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def show_summary(stats: MigrationStats, dry_run: bool = False) -> None:
    table = Table(title="Migration Summary" + (" (dry run)" if dry_run else ""), box=box.SIMPLE)
    table.add_column("Result")
    table.add_column("Files", justify="right")

    table.add_row("Scanned", str(stats.scanned))
    table.add_row("[status.success]Uploaded[/]", str(stats.uploaded))
    table.add_row("[status.success]Updated[/]", str(stats.updated))
    table.add_row("[muted]Not in database[/]", str(stats.missing))
    if dry_run:
        table.add_row("[status.warning]Dry run[/]", str(stats.dry_run))
    table.add_row("[status.error]Failed[/]", str(stats.failed))

    console.print(table)


def run(settings: Settings) -> int:
    """Run a migration. Returns the process exit code."""
    try:
        storage = ObjectStorage(settings)
        engine = make_engine(settings.PG_CONNECTION_STRING)
    except MigrationError as e:
        logger.error("Fatal error during startup", error=str(e))
        return 1

    try:
        connection = open_connection(engine)
    except MigrationError as e:
        logger.error("Fatal error during startup", error=str(e))
        engine.dispose()
        return 1

    try:
        migrator = Migrator(settings, storage, FileRepository(connection))
        stats = migrator.run()
    except MigrationError as e:
        logger.error("Fatal error during migration", error=str(e))
        return 1
    finally:
        connection.close()
        engine.dispose()

    show_summary(stats, dry_run=migrator.dry_run)
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = configure_settings(args)
    except ConfigurationError as e:
        configure_logging()
        logger.error("Fatal error during startup", error=str(e))
        sys.exit(1)

    if not settings.FOLDER_PATH:
        parser.error("--folderPath is required (or set FOLDER_PATH)")

    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    try:
        code = run(settings)
    except KeyboardInterrupt:
        console.print("\n[status.warning]Interrupted.[/]")
        code = 130
    sys.exit(code)

if __name__ == "__main__":
    main()
