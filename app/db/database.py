# app/db/database.py
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def criar_engine(url: str) -> AsyncEngine:
    """
    Cria o engine assíncrono. Para SQLite liga as chaves estrangeiras, WAL e
    um busy_timeout, já que auditoria/notificação/backup rodam em sessões
    próprias enquanto a próxima escrita principal já pode ter começado.
    """
    engine = create_async_engine(url)
    if engine.dialect.name == "sqlite":
        @event.listens_for(engine.sync_engine, "connect")
        def _sqlite_pragmas(dbapi_conn, _record):
            # o driver deixa de abrir transações por conta própria;
            # sem isso SAVEPOINT (begin_nested) não funciona no SQLite
            dbapi_conn.isolation_level = None
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys = ON")
            cur.execute("PRAGMA busy_timeout = 5000")
            cur.execute("PRAGMA journal_mode = WAL")
            cur.close()

        @event.listens_for(engine.sync_engine, "begin")
        def _sqlite_begin(conn):
            # IMMEDIATE pega o lock de escrita já no início: uma transação que
            # leu antes de escrever nunca precisa "subir" de SHARED para
            # RESERVED, que é o caso em que o SQLite devolve BUSY sem esperar
            # o busy_timeout.
            conn.exec_driver_sql("BEGIN IMMEDIATE")
    return engine


def criar_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)
