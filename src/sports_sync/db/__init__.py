from sports_sync.db.base import Base
from sports_sync.db.engine import DatabaseConfig, create_db_engine, create_session_factory

__all__ = [
    "Base",
    "DatabaseConfig",
    "create_db_engine",
    "create_session_factory",
]
