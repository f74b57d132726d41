# storefront/db/session.py
# Инициализация SQLAlchemy engine и фабрики сессий.
# Поддерживает как Postgres, так и SQLite (для тестов/локального использования).

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from storefront.core.config import settings


def make_engine(url: str) -> Engine:
    """Создаёт engine; для sqlite включает BEGIN IMMEDIATE.

    В SQLite нет построчных блокировок, поэтому пишущие транзакции
    сериализуются на блокировке всей базы с момента BEGIN.
    """
    if not url.startswith("sqlite"):
        # pool_pre_ping полезен для долгоживущих соединений с Postgres
        return create_engine(url, pool_pre_ping=True)

    engine = create_engine(
        url,
        connect_args={"check_same_thread": False, "timeout": 30},
        pool_pre_ping=True,
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        # pysqlite сам открывает транзакции — отключаем, BEGIN шлём ниже
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    """Сессия на одну единицу работы: commit при успехе, rollback при ошибке."""
    session = factory()
    try:
        yield session
        session.commit()
    except BaseException:
        session.rollback()
        raise
    finally:
        session.close()


engine = make_engine(settings.DATABASE_URL)

SessionLocal = make_session_factory(engine)
