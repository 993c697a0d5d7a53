"""Database engine, session and Mongo client management.

Flask requests use a session-per-request pattern; the batch scraper and the
CLI scripts work outside a request and open their own short sessions from the
stored ``sessionmaker``.
"""

from __future__ import annotations

import os
from functools import lru_cache

from flask import Flask, current_app, g, has_app_context
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from bicho.config import resolve_db_backend
from bicho import models  # noqa: F401  (registers tables on Base.metadata)
from bicho.models.base import Base


def _assume_role_with_vercel_oidc(region: str) -> dict[str, str] | None:
    """Assume AWS_ROLE_ARN using VERCEL_OIDC_TOKEN if available."""

    token = os.getenv("VERCEL_OIDC_TOKEN")
    role_arn = os.getenv("AWS_ROLE_ARN")
    if not token or not role_arn:
        return None

    import boto3

    sts = boto3.client("sts", region_name=region)
    resp = sts.assume_role_with_web_identity(
        RoleArn=role_arn,
        RoleSessionName="bicho-rds",
        WebIdentityToken=token,
    )
    c = resp["Credentials"]
    return {
        "aws_access_key_id": c["AccessKeyId"],
        "aws_secret_access_key": c["SecretAccessKey"],
        "aws_session_token": c["SessionToken"],
    }


def _generate_rds_iam_token(*, host: str, port: int, user: str, region: str) -> str:
    """Generate an RDS IAM auth token to use as the Postgres password."""

    import boto3

    creds = _assume_role_with_vercel_oidc(region)
    if creds:
        rds = boto3.client("rds", region_name=region, **creds)
    else:
        rds = boto3.client("rds", region_name=region)

    return rds.generate_db_auth_token(
        DBHostname=host,
        Port=port,
        DBUsername=user,
        Region=region,
    )


def create_app_engine(database_url: str) -> Engine:
    url = make_url(database_url)

    # Postgres without a static password: try RDS IAM auth.
    if url.get_backend_name() == "postgresql" and not url.password:
        region = os.getenv("AWS_REGION")
        host = url.host
        username = url.username
        database = url.database

        if region and host and username and database:
            import psycopg2

            port = int(url.port or 5432)
            sslmode = (url.query or {}).get("sslmode") or os.getenv("PGSSLMODE") or "require"

            def _creator() -> object:
                token = _generate_rds_iam_token(host=host, port=port, user=username, region=region)
                return psycopg2.connect(
                    host=host,
                    port=port,
                    user=username,
                    password=token,
                    dbname=database,
                    sslmode=sslmode,
                )

            return create_engine("postgresql+psycopg2://", creator=_creator, pool_pre_ping=True)

    if url.get_backend_name() == "sqlite":
        # Scrape workers write from several threads.
        return create_engine(
            database_url,
            pool_pre_ping=True,
            connect_args={"check_same_thread": False},
        )

    return create_engine(database_url, pool_pre_ping=True)


def create_session_factory(database_url: str, *, create_tables: bool = True) -> sessionmaker[Session]:
    """Engine + sessionmaker for code running outside a Flask request."""

    engine = create_app_engine(database_url)
    if create_tables:
        Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@lru_cache(maxsize=4)
def _mongo_client(uri: str):
    from pymongo import MongoClient

    return MongoClient(uri, serverSelectionTimeoutMS=5000, tz_aware=False)


def connect_mongo(uri: str, database: str):
    """Return a pymongo Database handle (clients are cached per URI)."""

    return _mongo_client(uri)[database]


def init_db(app: Flask) -> None:
    """Initialize the configured backend and per-request sessions."""

    app.extensions["db_backend"] = str(app.config.get("DB_BACKEND", "sql")).lower()

    if app.extensions["db_backend"] == "mongo":
        app.extensions["mongo_db"] = connect_mongo(
            str(app.config["MONGODB_URI"]),
            str(app.config["MONGODB_DB"]),
        )
        return

    engine = create_app_engine(str(app.config["DATABASE_URL"]))
    session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    # Tables are created on startup; production would use migrations.
    Base.metadata.create_all(bind=engine)

    app.extensions["engine"] = engine
    app.extensions["session_factory"] = session_factory

    @app.before_request
    def _open_session() -> None:
        g.db = session_factory()  # type: ignore[attr-defined]

    @app.teardown_request
    def _close_session(exc: BaseException | None) -> None:
        session: Session | None = getattr(g, "db", None)
        if session is None:
            return

        try:
            if exc is None:
                session.commit()
            else:
                session.rollback()
        finally:
            session.close()


def get_db_backend() -> str:
    """Return "sql" or "mongo" for the current app (or the environment)."""

    if has_app_context():
        return str(current_app.extensions.get("db_backend") or current_app.config.get("DB_BACKEND", "sql"))
    return resolve_db_backend()


def get_mongo_db():
    """Mongo database handle for the current app (or the environment)."""

    if has_app_context() and "mongo_db" in current_app.extensions:
        return current_app.extensions["mongo_db"]
    return connect_mongo(
        os.getenv("MONGODB_URI", "mongodb://localhost:27017"),
        os.getenv("MONGODB_DB", "bicho"),
    )


def get_session_factory() -> sessionmaker[Session] | None:
    if not has_app_context():
        return None
    return current_app.extensions.get("session_factory")


def get_optional_session() -> Session | None:
    """The request session when the SQL backend is active, else None."""

    if get_db_backend() != "sql":
        return None
    return getattr(g, "db", None)
