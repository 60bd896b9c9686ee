from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker


@dataclass(frozen=True)
class DatabaseConfig:
    database_url: str
    echo: bool = False


def _enable_sqlite_savepoints(engine: Engine) -> None:
    # pysqlite defers BEGIN until the first DML statement, which breaks SAVEPOINT.
    # Take over transaction control so begin_nested() behaves like on PostgreSQL.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")


def create_db_engine(cfg: DatabaseConfig) -> Engine:
    engine = create_engine(cfg.database_url, echo=cfg.echo, pool_pre_ping=True)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_savepoints(engine)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
