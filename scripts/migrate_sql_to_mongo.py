"""Copy draw results from SQL (SQLAlchemy) to MongoDB.

Usage:
  DATABASE_URL=sqlite:///./bicho.db MONGODB_URI=mongodb://localhost:27017 \
    python scripts/migrate_sql_to_mongo.py --skip-existing

Notes:
- This does NOT delete your SQL DB.
- Use `--drop-target` only if you want to clear the Mongo collection first.
"""

from __future__ import annotations

import argparse
import logging
import os
import pathlib
import sys
from collections.abc import Sequence

from dotenv import load_dotenv
from sqlalchemy import select
from tqdm import tqdm

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from bicho.config import resolve_database_url
from bicho.db import connect_mongo, create_session_factory
from bicho.logging_config import configure_logging
from bicho.models.draw_result import DrawResult
from bicho.repositories.draw_result_repository import COLLECTION, DrawResultRepository

logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Migrate draw results from SQL to MongoDB")
    parser.add_argument("--sql-url", dest="sql_url", type=str, default=None)
    parser.add_argument("--mongo-uri", dest="mongo_uri", type=str, default=None)
    parser.add_argument("--mongo-db", dest="mongo_db", type=str, default=None)
    parser.add_argument("--drop-target", action="store_true", help="Drop the target collection before import")
    parser.add_argument("--skip-existing", action="store_true", help="Skip draws already present in Mongo")
    args = parser.parse_args(argv)

    load_dotenv()
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    sql_url = str(args.sql_url or resolve_database_url())
    mongo_uri = str(args.mongo_uri or os.getenv("MONGODB_URI") or "mongodb://localhost:27017")
    mongo_db_name = str(args.mongo_db or os.getenv("MONGODB_DB") or "bicho")

    logger.info("Target Mongo: %s (db=%s)", mongo_uri, mongo_db_name)

    mongo_db = connect_mongo(mongo_uri, mongo_db_name)
    if args.drop_target:
        logger.warning("Dropping target collection: %s", COLLECTION)
        mongo_db[COLLECTION].drop()

    factory = create_session_factory(sql_url, create_tables=False)
    source = DrawResultRepository(factory, backend="sql")
    target = DrawResultRepository(backend="mongo", mongo_db=mongo_db)

    with factory() as session:
        lottery_ids = list(session.scalars(select(DrawResult.lottery_id).distinct()).all())

    copied = 0
    for lottery_id in lottery_ids:
        history = source.list_history(lottery_id)
        logger.info("Found %d draws for %s in SQL", len(history), lottery_id)
        for record in tqdm(history, desc=lottery_id):
            if args.skip_existing and target.get(record.lottery_id, record.draw_date) is not None:
                continue
            target.upsert(record)
            copied += 1

    logger.info("Copied draws: %d", copied)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
