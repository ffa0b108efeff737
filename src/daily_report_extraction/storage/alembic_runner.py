"""Apply the report and queue schema migrations programmatically."""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

logger = logging.getLogger(__name__)

# src/daily_report_extraction/storage -> repository root
_ROOT_DIR = Path(__file__).resolve().parents[3]


def upgrade_head(db_path: Path) -> None:
    """Bring the SQLite database at ``db_path`` to the latest schema revision."""

    alembic_dir = _ROOT_DIR / "alembic"
    if not alembic_dir.is_dir():
        raise RuntimeError(f"Alembic migrations not found under {_ROOT_DIR}")

    db_path.parent.mkdir(parents=True, exist_ok=True)
    config = Config(str(_ROOT_DIR / "alembic.ini"))
    config.set_main_option("script_location", str(alembic_dir))
    config.set_main_option("sqlalchemy.url", f"sqlite:///{db_path}")
    command.upgrade(config, "head")
    logger.debug("Database %s is at schema head", db_path)
