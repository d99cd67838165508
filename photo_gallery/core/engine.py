from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def create_engine_for_url(database_url: str, **kwargs) -> Engine:
    """
    Builds an engine for the given URL with the per-dialect tuning used by the
    application engine. Scripts use this to open independent stores.
    """
    is_sqlite = database_url.startswith("sqlite")

    connect_args = {}
    if is_sqlite:
        # For SQLite, we need to allow the same connection to be used across
        # different threads and set a timeout to handle concurrent writes.
        connect_args = {"check_same_thread": False, "timeout": 15} # 15 second timeout

    engine = create_engine(database_url, connect_args=connect_args, **kwargs)

    if is_sqlite:
        # Enable Write-Ahead Logging (WAL) mode for SQLite.
        # Readers can continue while a writer is in progress.
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA journal_mode=WAL;")
            finally:
                cursor.close()

    return engine
