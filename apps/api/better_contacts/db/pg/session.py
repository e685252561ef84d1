from __future__ import annotations

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from better_contacts.core.config import Settings, get_settings


def sqlalchemy_dsn(dsn: str) -> str:
    """Route plain postgres DSNs through the psycopg 3 driver."""
    for prefix in ("postgres://", "postgresql://"):
        if dsn.startswith(prefix):
            return "postgresql+psycopg://" + dsn[len(prefix) :]
    return dsn


def build_engine(settings: Settings) -> Engine:
    dsn = sqlalchemy_dsn(settings.database_dsn)
    options: dict[str, object] = {"pool_pre_ping": True}
    if dsn.startswith("postgresql+psycopg://"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout_seconds,
            pool_recycle=settings.db_pool_recycle_seconds,
        )
    elif dsn.startswith("sqlite"):
        # Request handlers and TestClient run on worker threads.
        options["connect_args"] = {"check_same_thread": False}
        if dsn in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise each checkout sees an empty database.
            options["poolclass"] = StaticPool
    return create_engine(dsn, **options)


engine = build_engine(get_settings())
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
