"""Apply the organization isolation policies. Run once after ``alembic upgrade head``."""
import logging
import pathlib

import psycopg2

from daycare.settings import get_settings

logger = logging.getLogger(__name__)

SQL_FILE = pathlib.Path(__file__).parent / "rls" / "init_rls.sql"


def dsn_from_sqlalchemy_url(url: str) -> str:
    # psycopg2 does not understand the SQLAlchemy driver suffix
    return url.replace("postgresql+psycopg2://", "postgresql://", 1)


def apply_rls(url: str | None = None) -> None:
    dsn = dsn_from_sqlalchemy_url(url or get_settings().DATABASE_SYNC_URL)
    conn = psycopg2.connect(dsn)
    conn.autocommit = True
    try:
        with conn.cursor() as cur:
            cur.execute(SQL_FILE.read_text())
    finally:
        conn.close()
    logger.info("RLS policies applied from %s", SQL_FILE.name)


if __name__ == "__main__":
    logging.basicConfig(level=get_settings().LOG_LEVEL.upper())
    apply_rls()
