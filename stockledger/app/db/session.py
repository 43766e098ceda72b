from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from stockledger.app.core.config import get_settings


def enable_sqlite_savepoints(engine: Engine) -> None:
    """
    pysqlite gère mal BEGIN / SAVEPOINT : on désactive sa gestion
    implicite et SQLAlchemy émet lui-même le BEGIN.
    Nécessaire pour Session.begin_nested() (change_withdrawal_quantity).
    """

    @event.listens_for(engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str, echo: bool = False) -> Engine:
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
        )
        enable_sqlite_savepoints(engine)
        return engine

    return create_engine(database_url, echo=echo, pool_pre_ping=True)


settings = get_settings()

engine = build_engine(settings.database_url, echo=settings.sql_echo)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
