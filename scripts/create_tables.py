"""Create the draw_results table in the configured database.

Reads DATABASE_URL (or PG* vars) from .env / environment.

Usage:
  python scripts/create_tables.py
"""

from __future__ import annotations

import pathlib
import sys

from dotenv import load_dotenv
from sqlalchemy import text

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from bicho.config import resolve_database_url
from bicho.db import create_app_engine
from bicho.models.base import Base

# Import models so they register with Base.metadata
from bicho import models  # noqa: F401


def main() -> int:
    """Create all ORM tables in the target database."""

    load_dotenv()
    env_local = PROJECT_ROOT / ".env.local"
    if env_local.exists():
        load_dotenv(dotenv_path=env_local, override=True)

    engine = create_app_engine(resolve_database_url())
    Base.metadata.create_all(bind=engine)

    # create_all() does not add indexes to existing tables.
    if engine.dialect.name == "postgresql":
        ddl = [
            "CREATE UNIQUE INDEX IF NOT EXISTS uq_draw_results_lottery_date ON draw_results (lottery_id, draw_date)",
            "CREATE INDEX IF NOT EXISTS ix_draw_results_lottery_id ON draw_results (lottery_id)",
            "CREATE INDEX IF NOT EXISTS ix_draw_results_draw_date ON draw_results (draw_date)",
        ]
        with engine.begin() as conn:
            for stmt in ddl:
                conn.execute(text(stmt))

    print("Tables created (or already exist).")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
