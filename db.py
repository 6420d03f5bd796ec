from contextlib import asynccontextmanager
from typing import Any
import logging

from sqlalchemy import event, Engine, inspect, Result, CursorResult
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

import config
from models.base import Base
"""
Imports of these models are needed to correctly create tables in the database.
For more information see https://stackoverflow.com/questions/7478403/sqlalchemy-classes-across-files
"""
from models.menu_item import MenuItem
from models.variation import Variation
from models.addon import Addon, MenuItemAddon
from models.order import Order
from models.order_item import OrderItem
from models.order_item_addon import OrderItemAddon

# SQLAlchemy logging configuration
# HARD DISABLE SQL echo - SQL statements would drown the order logs
sql_echo = False

url = config.DB_URL
engine = create_async_engine(url, echo=sql_echo)
session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def get_db_session() -> AsyncSession:
    session = None
    try:
        async with session_maker() as async_session:
            session = async_session
            yield session
    finally:
        if session is not None:
            await session.close()


async def session_execute(stmt, session: AsyncSession) -> Result[Any] | CursorResult[Any]:
    query_result = await session.execute(stmt)
    return query_result


async def session_flush(session: AsyncSession) -> None:
    await session.flush()


async def session_commit(session: AsyncSession) -> None:
    await session.commit()


async def session_rollback(session: AsyncSession) -> None:
    await session.rollback()


async def session_refresh(session: AsyncSession, instance) -> None:
    await session.refresh(instance)


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    # Only SQLite needs foreign keys switched on per connection
    if "sqlite" not in type(dbapi_connection).__module__.lower():
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async def check_all_tables_exist() -> bool:
    async with engine.connect() as conn:
        existing = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
    return all(table.name in existing for table in Base.metadata.tables.values())


async def create_db_and_tables():
    if await check_all_tables_exist():
        return
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logging.info(f"Database tables created: {', '.join(Base.metadata.tables.keys())}")
