import tempfile
from pathlib import Path
from typing import Generator, Optional

import structlog
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import Session, sessionmaker

from scriptflow.config.settings import settings

logger = structlog.get_logger()

FALLBACK_SQLITE_NAME = "scriptflow_fallback.db"


def _sqlite_file(database_url: str) -> Optional[Path]:
    """Absolute path of a file-backed SQLite database, None for anything else"""
    try:
        url = make_url(database_url)
    except ArgumentError as e:
        logger.warning("Unparseable database URL", error=str(e))
        return None
    if not url.drivername.startswith("sqlite") or url.database in (None, "", ":memory:"):
        return None
    path = Path(url.database)
    return path if path.is_absolute() else (Path.cwd() / path).resolve()


def _directory_is_writable(directory: Path) -> bool:
    try:
        directory.mkdir(parents=True, exist_ok=True)
        probe = directory / ".write_probe"
        probe.write_text("ok")
        probe.unlink()
        return True
    except OSError as e:
        logger.error("SQLite directory not writable", directory=str(directory), error=str(e))
        return False


def _resolve_database_url(database_url: str) -> str:
    """Create the SQLite parent directory, or fall back to a temp file when it can't be written"""
    db_file = _sqlite_file(database_url)
    if db_file is None:
        return database_url

    logger.info("Using SQLite database", path=str(db_file))
    if _directory_is_writable(db_file.parent):
        return database_url

    fallback = f"sqlite:///{(Path(tempfile.gettempdir()) / FALLBACK_SQLITE_NAME).as_posix()}"
    logger.warning("Falling back to temporary SQLite database", fallback=fallback)
    return fallback


def _build_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # sessions are handed across threadpool workers
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)


engine = _build_engine(_resolve_database_url(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_database() -> Generator[Session, None, None]:
    """Request-scoped session dependency"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind: Optional[Engine] = None) -> None:
    from scriptflow.models.database import Base

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database schema ready", url=str((bind or engine).url))
